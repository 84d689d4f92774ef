"""Smart calibration step expansion.

A smart gcal step names a calibration recipe instead of a concrete
calibration configuration. Expansion resolves the recipe against the
instrument's smart mapping table and replaces the placeholder, in place, with
one concrete gcal step per mapped configuration.

The protocol runs in three stages:

1. resolve the context: the step at the location, its calibration type and
   the instrument search key derived from its exposure configuration;
2. resolve the candidates: the ordered calibration configurations mapped to
   that key and type, each wrapped as a gcal step reusing the original
   exposure configuration;
3. apply (``expand`` only): allocate fresh locations between the placeholder
   and its successor, delete the placeholder and insert the gcal steps.

Domain failures are returned as :class:`~obsplan.smart_gcal.ExpansionError`
values; nothing is written unless the first two stages succeed.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from sqlalchemy.orm import Session

from .. import location as locations
from ..gcal import SmartGcalType
from ..instruments import DynamicConfig, SearchKey, derive_search_key
from ..location import Location, Middle
from ..smart_gcal import (
    ExpansionError,
    ExpansionResult,
    is_error,
    no_mapping_defined,
    not_smart_gcal,
    step_not_found,
)
from ..steps import GcalStep, SmartGcalStep, Step
from . import gcal_mapping, step_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _SmartContext:
    key: SearchKey
    smart_gcal_type: SmartGcalType
    config: DynamicConfig


def _resolve_context(step: Step | None, loc: Middle) -> _SmartContext | ExpansionError:
    if step is None:
        return step_not_found(loc)
    if not isinstance(step, SmartGcalStep):
        return not_smart_gcal
    key = derive_search_key(step.config)
    if key is None:
        return no_mapping_defined
    return _SmartContext(key=key, smart_gcal_type=step.smart_gcal_type, config=step.config)


def _resolve_candidates(db: Session, context: _SmartContext) -> ExpansionResult:
    configs = gcal_mapping.select(db, context.key, context.smart_gcal_type)
    if not configs:
        return no_mapping_defined
    return [GcalStep(config=context.config, gcal=gcal) for gcal in configs]


def _lookup(db: Session, step: Step | None, loc: Middle) -> ExpansionResult:
    context = _resolve_context(step, loc)
    if isinstance(context, ExpansionError):
        return context
    return _resolve_candidates(db, context)


def _successor(steps: Mapping[Middle, Step], loc: Middle) -> Location:
    after: Location = locations.END
    for other in steps:
        if loc < other < after:
            after = other
    return after


def preview(db: Session, observation_id: str, loc: Middle) -> ExpansionResult:
    """Return the gcal steps the smart step at ``loc`` would expand into, without writing."""

    result = _lookup(db, step_store.select_one(db, observation_id, loc), loc)
    _log_outcome("preview", observation_id, loc, result)
    return result


def expand(db: Session, observation_id: str, loc: Middle) -> ExpansionResult:
    """Replace the smart step at ``loc`` with its gcal steps.

    Runs in the caller's transaction: the observation row is locked before the
    sequence is read, so competing expansions or insertions in the same
    observation wait for this one. Writes are flushed but not committed, so a
    failure part way through the apply stage is undone by the caller rolling
    back (see :func:`obsplan.database.session_scope`). Expansion is one-shot;
    calling it again for the same location yields ``StepNotFound``.
    """

    step_store.lock_observation(db, observation_id)
    steps = step_store.select_all(db, observation_id)
    result = _lookup(db, steps.get(loc), loc)
    if is_error(result):
        _log_outcome("expand", observation_id, loc, result)
        return result

    # allocate above the placeholder so its key is retired with it
    fresh = locations.find(len(result), loc, _successor(steps, loc))
    step_store.delete_at(db, observation_id, loc)
    for new_loc, gcal_step in zip(fresh, result):
        step_store.insert(db, observation_id, new_loc, gcal_step)
    _log_outcome("expand", observation_id, loc, result)
    return result


def expand_observation(db: Session, observation_id: str) -> dict[Middle, ExpansionResult]:
    """Expand every smart gcal step in the observation, in location order."""

    smart_locations = [
        loc
        for loc, step in step_store.select_all(db, observation_id).items()
        if isinstance(step, SmartGcalStep)
    ]
    return {loc: expand(db, observation_id, loc) for loc in smart_locations}


def _log_outcome(action: str, observation_id: str, loc: Middle, result: ExpansionResult) -> None:
    if is_error(result):
        logger.debug("%s of %s at %s failed: %s", action, observation_id, loc, result.describe())
    elif action == "expand":
        logger.info(
            "expanded smart gcal step at %s in %s into %d gcal step(s)",
            loc,
            observation_id,
            len(result),
        )
