"""Per-instrument dynamic (exposure) configurations and smart calibration search keys."""

# purpose: project instrument exposure settings onto the keys of the smart calibration tables
# inputs: instrument dynamic configuration payloads
# outputs: instrument-specific search keys, or None when a family has no smart table
# status: active

from __future__ import annotations

from datetime import timedelta
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class F2SearchKey(BaseModel):
    disperser: str
    filter: str
    fpu: str

    model_config = ConfigDict(frozen=True)


class GmosSearchKey(BaseModel):
    disperser: Optional[str] = None
    filter: Optional[str] = None
    fpu: Optional[str] = None
    x_binning: int = 1
    y_binning: int = 1
    amp_gain: str = "Low"
    wavelength: Optional[int] = None

    model_config = ConfigDict(frozen=True)


class GmosNorthSearchKey(GmosSearchKey):
    pass


class GmosSouthSearchKey(GmosSearchKey):
    pass


SearchKey = Union[F2SearchKey, GmosNorthSearchKey, GmosSouthSearchKey]


class F2DynamicConfig(BaseModel):
    instrument: Literal["Flamingos2"] = "Flamingos2"
    disperser: str
    exposure_time: timedelta
    filter: str
    fpu: str
    lyot_wheel: str = "F16"
    read_mode: str = "Bright"
    window_cover: str = "Open"

    model_config = ConfigDict(frozen=True)

    def smart_gcal_key(self) -> F2SearchKey:
        return F2SearchKey(disperser=self.disperser, filter=self.filter, fpu=self.fpu)


class _GmosDynamicConfig(BaseModel):
    exposure_time: timedelta
    x_binning: int = 1
    y_binning: int = 1
    amp_gain: str = "Low"
    disperser: Optional[str] = None
    wavelength: Optional[int] = Field(default=None, description="central wavelength in angstroms")
    filter: Optional[str] = None
    fpu: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    def _key_fields(self) -> dict:
        return {
            "disperser": self.disperser,
            "filter": self.filter,
            "fpu": self.fpu,
            "x_binning": self.x_binning,
            "y_binning": self.y_binning,
            "amp_gain": self.amp_gain,
            # the wavelength only matters when a grating is in the beam
            "wavelength": self.wavelength if self.disperser else None,
        }


class GmosNorthDynamicConfig(_GmosDynamicConfig):
    instrument: Literal["GmosNorth"] = "GmosNorth"

    def smart_gcal_key(self) -> GmosNorthSearchKey:
        return GmosNorthSearchKey(**self._key_fields())


class GmosSouthDynamicConfig(_GmosDynamicConfig):
    instrument: Literal["GmosSouth"] = "GmosSouth"

    def smart_gcal_key(self) -> GmosSouthSearchKey:
        return GmosSouthSearchKey(**self._key_fields())


class GenericDynamicConfig(BaseModel):
    """Exposure settings for instruments without a smart calibration table."""

    instrument: Literal["Generic"] = "Generic"
    name: str = "AcqCam"
    exposure_time: timedelta = timedelta(0)

    model_config = ConfigDict(frozen=True)

    def smart_gcal_key(self) -> None:
        return None


DynamicConfig = Annotated[
    Union[F2DynamicConfig, GmosNorthDynamicConfig, GmosSouthDynamicConfig, GenericDynamicConfig],
    Field(discriminator="instrument"),
]

dynamic_config_adapter: TypeAdapter[DynamicConfig] = TypeAdapter(DynamicConfig)


def derive_search_key(config: DynamicConfig) -> Optional[SearchKey]:
    """Return the smart calibration search key for ``config``, if its family defines one."""

    return config.smart_gcal_key()


def load_dynamic_config(payload: dict) -> DynamicConfig:
    return dynamic_config_adapter.validate_python(payload)


def dump_dynamic_config(config: DynamicConfig) -> dict:
    return dynamic_config_adapter.dump_python(config, mode="json")
