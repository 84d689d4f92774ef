import uuid
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy import (
    Column,
    String,
    DateTime,
    ForeignKey,
    JSON,
    Integer,
    Float,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.types import TypeDecorator

from .database import Base
from .location import Middle, middle


class LocationType(TypeDecorator):
    """Persist ``Location.Middle`` keys as their canonical text form."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, Middle):
            raise ValueError(f"only middle locations may be stored, got {value!r}")
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return middle(value)


class Observation(Base):
    __tablename__ = "observations"
    id = Column(String, primary_key=True)
    title = Column(String, nullable=False, default="")
    instrument = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    steps = relationship(
        "Step", back_populates="observation", cascade="all, delete-orphan"
    )


class GcalConfig(Base):
    __tablename__ = "gcal"
    id = Column(Integer, primary_key=True, autoincrement=True)
    continuum = Column(String, nullable=True)
    arcs = Column(JSON, nullable=False, default=list)
    filter = Column(String, nullable=False)
    diffuser = Column(String, nullable=False)
    shutter = Column(String, nullable=False)
    exposure_time_ms = Column(Integer, nullable=False)
    coadds = Column(Integer, nullable=False, default=1)


class Step(Base):
    __tablename__ = "steps"
    __table_args__ = (
        sa.UniqueConstraint("observation_id", "location", name="uq_steps_observation_location"),
    )
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    observation_id = Column(
        String, ForeignKey("observations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    location = Column(LocationType, nullable=False)
    step_type = Column(String, nullable=False)
    instrument = Column(String, nullable=False)
    dynamic_config = Column(JSON, nullable=False, default=dict)
    offset_p = Column(Float, nullable=True)
    offset_q = Column(Float, nullable=True)
    gcal_id = Column(Integer, ForeignKey("gcal.id"), nullable=True)
    smart_gcal_type = Column(String, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    observation = relationship("Observation", back_populates="steps")
    gcal = relationship("GcalConfig")


class SmartF2(Base):
    __tablename__ = "smart_f2"
    __table_args__ = (sa.Index("smart_f2_index", "disperser", "filter", "fpu"),)
    id = Column(Integer, primary_key=True, autoincrement=True)
    lamp = Column(String, nullable=False)
    baseline = Column(String, nullable=False)
    disperser = Column(String, nullable=False)
    filter = Column(String, nullable=False)
    fpu = Column(String, nullable=False)
    gcal_id = Column(Integer, ForeignKey("gcal.id"), nullable=False)

    gcal = relationship("GcalConfig")


class _SmartGmosColumns:
    id = Column(Integer, primary_key=True, autoincrement=True)
    lamp = Column(String, nullable=False)
    baseline = Column(String, nullable=False)
    disperser = Column(String, nullable=True)
    filter = Column(String, nullable=True)
    fpu = Column(String, nullable=True)
    x_binning = Column(Integer, nullable=False, default=1)
    y_binning = Column(Integer, nullable=False, default=1)
    amp_gain = Column(String, nullable=False, default="Low")
    min_wavelength = Column(Integer, nullable=False, default=0)
    max_wavelength = Column(Integer, nullable=False, default=2**31 - 1)


class SmartGmosNorth(_SmartGmosColumns, Base):
    __tablename__ = "smart_gmos_north"
    __table_args__ = (sa.Index("smart_gmos_north_index", "disperser", "filter", "fpu"),)
    gcal_id = Column(Integer, ForeignKey("gcal.id"), nullable=False)

    gcal = relationship("GcalConfig")


class SmartGmosSouth(_SmartGmosColumns, Base):
    __tablename__ = "smart_gmos_south"
    __table_args__ = (sa.Index("smart_gmos_south_index", "disperser", "filter", "fpu"),)
    gcal_id = Column(Integer, ForeignKey("gcal.id"), nullable=False)

    gcal = relationship("GcalConfig")
