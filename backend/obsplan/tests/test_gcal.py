from datetime import timedelta

import pytest
from pydantic import ValidationError

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
    SmartGcalType,
)
from obsplan.instruments import (
    F2SearchKey,
    GenericDynamicConfig,
    GmosNorthDynamicConfig,
    GmosNorthSearchKey,
    GmosSouthDynamicConfig,
    GmosSouthSearchKey,
    derive_search_key,
    dump_dynamic_config,
    load_dynamic_config,
)

from obsplan.tests.conftest import F2_CONFIG


def test_smart_gcal_type_projects_lamp_or_baseline():
    assert SmartGcalType.ARC.lamp_type is GcalLampType.ARC
    assert SmartGcalType.FLAT.lamp_type is GcalLampType.FLAT
    assert SmartGcalType.NIGHT_BASELINE.baseline_type is GcalBaselineType.NIGHT
    assert SmartGcalType.DAY_BASELINE.baseline_type is GcalBaselineType.DAY
    for smart_type in SmartGcalType:
        assert (smart_type.lamp_type is None) != (smart_type.baseline_type is None)


def test_gcal_lamp_categories_are_exclusive():
    continuum = GcalLamp.from_continuum(GcalContinuum.QUARTZ_HALOGEN)
    arcs = GcalLamp.from_arcs(GcalArc.THAR_ARC, GcalArc.AR_ARC)

    assert not continuum.is_arc
    assert arcs.is_arc
    assert arcs.sorted_arcs() == [GcalArc.AR_ARC, GcalArc.THAR_ARC]
    with pytest.raises(ValidationError):
        GcalLamp(continuum=GcalContinuum.IR_GREY_BODY_LOW, arcs=frozenset({GcalArc.XE_ARC}))
    with pytest.raises(ValidationError):
        GcalLamp()


def test_gcal_config_validates_coadds_and_exposure():
    lamp = GcalLamp.from_arcs(GcalArc.CUAR_ARC)
    base = dict(
        lamp=lamp,
        filter=GcalFilter.GMOS,
        diffuser=GcalDiffuser.VISIBLE,
        shutter=GcalShutter.CLOSED,
        exposure_time=timedelta(seconds=5),
    )
    assert GcalConfig(**base).coadds == 1
    with pytest.raises(ValidationError):
        GcalConfig(**{**base, "coadds": 0})
    with pytest.raises(ValidationError):
        GcalConfig(**{**base, "exposure_time": timedelta(seconds=-1)})


def test_f2_search_key_projects_disperser_filter_fpu():
    assert derive_search_key(F2_CONFIG) == F2SearchKey(disperser="R1200JH", filter="JH", fpu="LongSlit1")


def test_gmos_search_keys_keep_site_and_drop_wavelength_without_grating():
    north = GmosNorthDynamicConfig(
        exposure_time=timedelta(seconds=60),
        disperser="B600_G5303",
        wavelength=5200,
        filter="GPrime",
        fpu="Longslit_1_00",
        x_binning=2,
        y_binning=2,
    )
    south = GmosSouthDynamicConfig(exposure_time=timedelta(seconds=60), wavelength=5200, filter="RPrime")

    north_key = derive_search_key(north)
    south_key = derive_search_key(south)

    assert isinstance(north_key, GmosNorthSearchKey)
    assert north_key.wavelength == 5200
    assert north_key.x_binning == 2
    assert isinstance(south_key, GmosSouthSearchKey)
    assert south_key.disperser is None
    assert south_key.wavelength is None


def test_generic_instruments_have_no_search_key():
    assert derive_search_key(GenericDynamicConfig(name="Phoenix")) is None


def test_dynamic_config_json_round_trip_keeps_instrument_family():
    payload = dump_dynamic_config(F2_CONFIG)
    assert payload["instrument"] == "Flamingos2"
    assert load_dynamic_config(payload) == F2_CONFIG
