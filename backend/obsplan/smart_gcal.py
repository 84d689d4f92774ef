"""Outcomes of smart calibration expansion."""

# purpose: reportable domain failures returned (not raised) by preview/expand
# status: active

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Union

from .location import Middle
from .steps import GcalStep


class ExpansionError(ABC):
    """Base for the three ways a smart step can fail to expand."""

    __slots__ = ()

    @property
    @abstractmethod
    def code(self) -> str:
        """Stable machine-readable identifier."""

    @abstractmethod
    def describe(self) -> str:
        """Human-readable explanation."""


@dataclass(frozen=True)
class StepNotFound(ExpansionError):
    location: Middle

    @property
    def code(self) -> str:
        return "step_not_found"

    def describe(self) -> str:
        return f"no step at location {self.location}"


@dataclass(frozen=True)
class NotSmartGcal(ExpansionError):
    @property
    def code(self) -> str:
        return "not_smart_gcal"

    def describe(self) -> str:
        return "step is not a smart gcal step"


@dataclass(frozen=True)
class NoMappingDefined(ExpansionError):
    # covers both an underivable search key and an empty mapping lookup

    @property
    def code(self) -> str:
        return "no_mapping_defined"

    def describe(self) -> str:
        return "no smart gcal mapping defined for the step configuration"


ExpandedSteps = list[GcalStep]
ExpansionResult = Union[ExpandedSteps, ExpansionError]


def step_not_found(location: Middle) -> ExpansionError:
    return StepNotFound(location)


not_smart_gcal: ExpansionError = NotSmartGcal()
no_mapping_defined: ExpansionError = NoMappingDefined()


def is_error(result: ExpansionResult) -> bool:
    return isinstance(result, ExpansionError)
