"""Calibration unit (GCAL) configuration types."""

from __future__ import annotations

from datetime import timedelta
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class GcalContinuum(str, Enum):
    IR_GREY_BODY_HIGH = "IrGreyBodyHigh"
    IR_GREY_BODY_LOW = "IrGreyBodyLow"
    QUARTZ_HALOGEN = "QuartzHalogen"


class GcalArc(str, Enum):
    AR_ARC = "ArArc"
    CUAR_ARC = "CuArArc"
    THAR_ARC = "ThArArc"
    XE_ARC = "XeArc"


class GcalFilter(str, Enum):
    NONE = "None"
    ND10 = "Nd10"
    ND16 = "Nd16"
    ND20 = "Nd20"
    ND30 = "Nd30"
    ND40 = "Nd40"
    ND45 = "Nd45"
    ND50 = "Nd50"
    GMOS = "Gmos"
    HROS = "Hros"
    NIR = "Nir"


class GcalDiffuser(str, Enum):
    IR = "Ir"
    VISIBLE = "Visible"


class GcalShutter(str, Enum):
    OPEN = "Open"
    CLOSED = "Closed"


class GcalLampType(str, Enum):
    ARC = "Arc"
    FLAT = "Flat"


class GcalBaselineType(str, Enum):
    NIGHT = "Night"
    DAY = "Day"


class SmartGcalType(str, Enum):
    """Calibration recipe named by a smart step.

    Arc and Flat select mapping rows by lamp type, the baseline types select
    rows by baseline.
    """

    ARC = "Arc"
    FLAT = "Flat"
    NIGHT_BASELINE = "NightBaseline"
    DAY_BASELINE = "DayBaseline"

    @property
    def lamp_type(self) -> Optional[GcalLampType]:
        return {
            SmartGcalType.ARC: GcalLampType.ARC,
            SmartGcalType.FLAT: GcalLampType.FLAT,
        }.get(self)

    @property
    def baseline_type(self) -> Optional[GcalBaselineType]:
        return {
            SmartGcalType.NIGHT_BASELINE: GcalBaselineType.NIGHT,
            SmartGcalType.DAY_BASELINE: GcalBaselineType.DAY,
        }.get(self)


class GcalLamp(BaseModel):
    """Either a single continuum source or a set of arc lamps, never both."""

    continuum: Optional[GcalContinuum] = None
    arcs: frozenset[GcalArc] = Field(default_factory=frozenset)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _one_lamp_category(self) -> "GcalLamp":
        if self.continuum is not None and self.arcs:
            raise ValueError("gcal lamp cannot mix continuum and arc sources")
        if self.continuum is None and not self.arcs:
            raise ValueError("gcal lamp requires a continuum or at least one arc")
        return self

    @classmethod
    def from_continuum(cls, continuum: GcalContinuum) -> "GcalLamp":
        return cls(continuum=continuum)

    @classmethod
    def from_arcs(cls, *arcs: GcalArc) -> "GcalLamp":
        return cls(arcs=frozenset(arcs))

    @property
    def is_arc(self) -> bool:
        return bool(self.arcs)

    def sorted_arcs(self) -> list[GcalArc]:
        order = list(GcalArc)
        return sorted(self.arcs, key=order.index)


class GcalConfig(BaseModel):
    lamp: GcalLamp
    filter: GcalFilter
    diffuser: GcalDiffuser
    shutter: GcalShutter
    exposure_time: timedelta
    coadds: int = 1

    model_config = ConfigDict(frozen=True)

    @field_validator("exposure_time")
    @classmethod
    def _non_negative_exposure(cls, value: timedelta) -> timedelta:
        if value < timedelta(0):
            raise ValueError("exposure time must not be negative")
        return value

    @field_validator("coadds")
    @classmethod
    def _positive_coadds(cls, value: int) -> int:
        if value < 1:
            raise ValueError("coadds must be at least 1")
        return value
