"""Sequence step variants."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from .gcal import GcalConfig, SmartGcalType
from .instruments import DynamicConfig


class Offset(BaseModel):
    """Telescope offset in arcseconds."""

    p: float = 0.0
    q: float = 0.0

    model_config = ConfigDict(frozen=True)


class BiasStep(BaseModel):
    step_type: Literal["bias"] = "bias"
    config: DynamicConfig

    model_config = ConfigDict(frozen=True)


class DarkStep(BaseModel):
    step_type: Literal["dark"] = "dark"
    config: DynamicConfig

    model_config = ConfigDict(frozen=True)


class ScienceStep(BaseModel):
    step_type: Literal["science"] = "science"
    config: DynamicConfig
    offset: Offset = Field(default_factory=Offset)

    model_config = ConfigDict(frozen=True)


class GcalStep(BaseModel):
    step_type: Literal["gcal"] = "gcal"
    config: DynamicConfig
    gcal: GcalConfig

    model_config = ConfigDict(frozen=True)


class SmartGcalStep(BaseModel):
    """Placeholder naming a calibration recipe, resolved by expansion."""

    step_type: Literal["smart_gcal"] = "smart_gcal"
    config: DynamicConfig
    smart_gcal_type: SmartGcalType

    model_config = ConfigDict(frozen=True)


Step = Annotated[
    Union[BiasStep, DarkStep, ScienceStep, GcalStep, SmartGcalStep],
    Field(discriminator="step_type"),
]


def describe(step: Step) -> dict:
    """Compact, JSON-friendly summary used by the CLI."""

    summary: dict = {"type": step.step_type, "instrument": step.config.instrument}
    if isinstance(step, ScienceStep):
        summary["offset"] = {"p": step.offset.p, "q": step.offset.q}
    elif isinstance(step, GcalStep):
        summary["gcal"] = step.gcal.model_dump(mode="json")
    elif isinstance(step, SmartGcalStep):
        summary["smart_gcal_type"] = step.smart_gcal_type.value
    return summary
