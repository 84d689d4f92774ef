"""Read-only lookup of smart calibration mapping tables."""

# purpose: resolve (search key, calibration type) to the ordered calibration configurations to run
# inputs: SQLAlchemy session, instrument search key, SmartGcalType
# outputs: list of GcalConfig values in mapping-table row order
# status: active

from __future__ import annotations

from datetime import timedelta

import sqlalchemy as sa
from sqlalchemy.orm import Session, joinedload

from .. import models
from ..gcal import GcalArc, GcalConfig, GcalContinuum, GcalLamp, SmartGcalType
from ..instruments import (
    F2SearchKey,
    GmosNorthSearchKey,
    GmosSearchKey,
    GmosSouthSearchKey,
    SearchKey,
)

_MIN_WAVELENGTH = 0
_MAX_WAVELENGTH = 2**31 - 1


class UnsupportedSearchKey(TypeError):
    """Raised when no mapping table exists for a search key family."""


def gcal_from_row(row: models.GcalConfig) -> GcalConfig:
    if row.continuum:
        lamp = GcalLamp.from_continuum(GcalContinuum(row.continuum))
    else:
        lamp = GcalLamp.from_arcs(*(GcalArc(arc) for arc in row.arcs or []))
    return GcalConfig(
        lamp=lamp,
        filter=row.filter,
        diffuser=row.diffuser,
        shutter=row.shutter,
        exposure_time=timedelta(milliseconds=row.exposure_time_ms),
        coadds=row.coadds,
    )


def gcal_to_row(config: GcalConfig) -> models.GcalConfig:
    lamp = config.lamp
    if lamp.is_arc:
        continuum, arcs = None, [arc.value for arc in lamp.sorted_arcs()]
    else:
        continuum, arcs = lamp.continuum.value, []
    return models.GcalConfig(
        continuum=continuum,
        arcs=arcs,
        filter=config.filter.value,
        diffuser=config.diffuser.value,
        shutter=config.shutter.value,
        exposure_time_ms=int(config.exposure_time / timedelta(milliseconds=1)),
        coadds=config.coadds,
    )


def _type_filter(table, smart_gcal_type: SmartGcalType):
    lamp = smart_gcal_type.lamp_type
    if lamp is not None:
        return table.lamp == lamp.value
    return table.baseline == smart_gcal_type.baseline_type.value


def _matches(column, value):
    return column.is_(None) if value is None else column == value


def _f2_query(db: Session, key: F2SearchKey, smart_gcal_type: SmartGcalType):
    table = models.SmartF2
    return db.query(table).filter(
        _type_filter(table, smart_gcal_type),
        table.disperser == key.disperser,
        table.filter == key.filter,
        table.fpu == key.fpu,
    )


def _gmos_query(db: Session, table, key: GmosSearchKey, smart_gcal_type: SmartGcalType):
    upper = key.wavelength if key.wavelength is not None else _MAX_WAVELENGTH
    lower = key.wavelength if key.wavelength is not None else _MIN_WAVELENGTH
    return db.query(table).filter(
        _type_filter(table, smart_gcal_type),
        _matches(table.disperser, key.disperser),
        _matches(table.filter, key.filter),
        _matches(table.fpu, key.fpu),
        table.x_binning == key.x_binning,
        table.y_binning == key.y_binning,
        table.amp_gain == key.amp_gain,
        table.min_wavelength <= upper,
        table.max_wavelength > lower,
    )


def select(db: Session, key: SearchKey, smart_gcal_type: SmartGcalType) -> list[GcalConfig]:
    """Return the calibration configurations mapped to ``key`` for ``smart_gcal_type``.

    Rows come back in insertion (row id) order, which is the order the
    generated calibration steps are executed in.
    """

    if isinstance(key, F2SearchKey):
        query = _f2_query(db, key, smart_gcal_type)
        table = models.SmartF2
    elif isinstance(key, GmosNorthSearchKey):
        table = models.SmartGmosNorth
        query = _gmos_query(db, table, key, smart_gcal_type)
    elif isinstance(key, GmosSouthSearchKey):
        table = models.SmartGmosSouth
        query = _gmos_query(db, table, key, smart_gcal_type)
    else:
        raise UnsupportedSearchKey(f"no smart gcal table for {type(key).__name__}")

    rows = query.options(joinedload(table.gcal)).order_by(sa.asc(table.id)).all()
    return [gcal_from_row(row.gcal) for row in rows if row.gcal is not None]
