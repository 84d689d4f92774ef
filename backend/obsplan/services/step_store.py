"""Persistence for per-observation step sequences."""

# purpose: point lookup, ordered listing, insertion and deletion of sequence steps
# inputs: SQLAlchemy session, observation identifier, Location.Middle keys, Step values
# outputs: Step values decoded from ORM rows, ordered by location
# status: active

from __future__ import annotations

import logging

import sqlalchemy as sa
from sqlalchemy.orm import Session, joinedload

from .. import models
from ..gcal import SmartGcalType
from ..instruments import dump_dynamic_config, load_dynamic_config
from ..location import Middle
from ..steps import (
    BiasStep,
    DarkStep,
    GcalStep,
    Offset,
    ScienceStep,
    SmartGcalStep,
    Step,
)
from .gcal_mapping import gcal_from_row, gcal_to_row

logger = logging.getLogger(__name__)


class StepStoreError(RuntimeError):
    """Base error for step persistence."""


class LocationOccupied(StepStoreError):
    """Raised when inserting at a location that already holds a step."""


class ObservationNotFound(StepStoreError):
    """Raised when the target observation does not exist."""


def create_observation(
    db: Session,
    observation_id: str,
    *,
    title: str = "",
    instrument: str | None = None,
) -> models.Observation:
    observation = models.Observation(id=observation_id, title=title, instrument=instrument)
    db.add(observation)
    db.flush()
    return observation


def lock_observation(db: Session, observation_id: str) -> models.Observation | None:
    """Take a row lock on the observation, serializing sequence edits within it."""

    return (
        db.query(models.Observation)
        .filter(models.Observation.id == observation_id)
        .with_for_update()
        .one_or_none()
    )


def _step_from_row(row: models.Step) -> Step:
    config = load_dynamic_config(row.dynamic_config)
    if row.step_type == "bias":
        return BiasStep(config=config)
    if row.step_type == "dark":
        return DarkStep(config=config)
    if row.step_type == "science":
        return ScienceStep(config=config, offset=Offset(p=row.offset_p or 0.0, q=row.offset_q or 0.0))
    if row.step_type == "gcal":
        return GcalStep(config=config, gcal=gcal_from_row(row.gcal))
    if row.step_type == "smart_gcal":
        return SmartGcalStep(config=config, smart_gcal_type=SmartGcalType(row.smart_gcal_type))
    raise StepStoreError(f"unknown step type {row.step_type!r} at {row.location}")


def _row_from_step(observation_id: str, location: Middle, step: Step) -> models.Step:
    row = models.Step(
        observation_id=observation_id,
        location=location,
        step_type=step.step_type,
        instrument=step.config.instrument,
        dynamic_config=dump_dynamic_config(step.config),
    )
    if isinstance(step, ScienceStep):
        row.offset_p = step.offset.p
        row.offset_q = step.offset.q
    elif isinstance(step, GcalStep):
        row.gcal = gcal_to_row(step.gcal)
    elif isinstance(step, SmartGcalStep):
        row.smart_gcal_type = step.smart_gcal_type.value
    return row


def _rows(db: Session, observation_id: str):
    return (
        db.query(models.Step)
        .options(joinedload(models.Step.gcal))
        .filter(models.Step.observation_id == observation_id)
    )


def select_all(db: Session, observation_id: str) -> dict[Middle, Step]:
    """Return the observation's steps keyed by location, in ascending location order."""

    rows = sorted(_rows(db, observation_id).all(), key=lambda row: row.location)
    return {row.location: _step_from_row(row) for row in rows}


def select_one(db: Session, observation_id: str, location: Middle) -> Step | None:
    row = _rows(db, observation_id).filter(models.Step.location == location).one_or_none()
    return _step_from_row(row) if row is not None else None


def insert(db: Session, observation_id: str, location: Middle, step: Step) -> Step:
    """Insert ``step`` at ``location``; the location must be free."""

    if not isinstance(location, Middle):
        raise ValueError(f"steps may only be placed at middle locations, got {location!r}")
    if lock_observation(db, observation_id) is None:
        raise ObservationNotFound(f"observation {observation_id} not found")
    occupied = db.query(
        sa.exists().where(
            models.Step.observation_id == observation_id,
            models.Step.location == location,
        )
    ).scalar()
    if occupied:
        raise LocationOccupied(f"observation {observation_id} already has a step at {location}")
    db.add(_row_from_step(observation_id, location, step))
    db.flush()
    logger.debug("inserted %s step at %s in %s", step.step_type, location, observation_id)
    return step


def delete_at(db: Session, observation_id: str, location: Middle) -> bool:
    row = (
        db.query(models.Step)
        .filter(
            models.Step.observation_id == observation_id,
            models.Step.location == location,
        )
        .one_or_none()
    )
    if row is None:
        return False
    gcal = row.gcal
    db.delete(row)
    if gcal is not None:
        db.delete(gcal)
    db.flush()
    logger.debug("deleted %s step at %s in %s", row.step_type, location, observation_id)
    return True
