import os
os.environ["DATABASE_URL"] = "sqlite:///./test_obsplan.db"
import pytest
from datetime import timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[2]))

from obsplan import models
from obsplan.database import Base
from obsplan.gcal import (
    GcalArc,
    GcalBaselineType,
    GcalConfig,
    GcalContinuum,
    GcalDiffuser,
    GcalFilter,
    GcalLamp,
    GcalLampType,
    GcalShutter,
)
from obsplan.instruments import F2DynamicConfig
from obsplan.services.gcal_mapping import gcal_to_row
from obsplan.services import step_store

SQLALCHEMY_DATABASE_URL = os.environ["DATABASE_URL"]
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False, "timeout": 30},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base.metadata.drop_all(bind=engine)
Base.metadata.create_all(bind=engine)

OBS_ID = "GS-2016A-Q-102-108"

F2_CONFIG = F2DynamicConfig(
    disperser="R1200JH",
    exposure_time=timedelta(seconds=1),
    filter="JH",
    fpu="LongSlit1",
    lyot_wheel="F16",
    read_mode="Bright",
    window_cover="Open",
)

ARC_NIGHT = GcalConfig(
    lamp=GcalLamp.from_arcs(GcalArc.AR_ARC),
    filter=GcalFilter.NIR,
    diffuser=GcalDiffuser.IR,
    shutter=GcalShutter.CLOSED,
    exposure_time=timedelta(seconds=30),
    coadds=1,
)

FLAT_NIGHT = GcalConfig(
    lamp=GcalLamp.from_continuum(GcalContinuum.IR_GREY_BODY_HIGH),
    filter=GcalFilter.ND20,
    diffuser=GcalDiffuser.IR,
    shutter=GcalShutter.OPEN,
    exposure_time=timedelta(seconds=20),
    coadds=1,
)

# (lamp, baseline, config) rows of the F2 smart table used across tests
F2_GCALS = [
    (GcalLampType.ARC, GcalBaselineType.NIGHT, ARC_NIGHT),
    (GcalLampType.FLAT, GcalBaselineType.NIGHT, FLAT_NIGHT),
]


def _clear(session):
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        _clear(session)
        session.close()


@pytest.fixture
def observation(db):
    """Observation row every sequence test writes into."""

    obs = step_store.create_observation(db, OBS_ID, title="SmartGcal obs", instrument="Flamingos2")
    db.commit()
    return obs


def add_f2_mapping(session, disperser, filter, fpu, rows):
    """Load smart_f2 rows for the given key; ``rows`` are (lamp, baseline, GcalConfig) tuples."""

    for lamp, baseline, config in rows:
        session.add(
            models.SmartF2(
                lamp=lamp.value,
                baseline=baseline.value,
                disperser=disperser,
                filter=filter,
                fpu=fpu,
                gcal=gcal_to_row(config),
            )
        )
    session.flush()


@pytest.fixture
def f2_mapping(db):
    add_f2_mapping(db, F2_CONFIG.disperser, F2_CONFIG.filter, F2_CONFIG.fpu, F2_GCALS)
    db.commit()
    return F2_GCALS
