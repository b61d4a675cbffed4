"""Unit tests for PlotId, display ranges and PlotSettings."""

import pytest

from o3plot.plot_config.conventions import ALL_REGIONS_ORDERED, DEFAULT_MONTHS
from o3plot.plot_config.errors import IllegalPlotState
from o3plot.plot_config.plot_state import (
    PlotId,
    PlotSettings,
    RegionSelection,
    YearRange,
    YRange,
    region_selection,
    x_range_from_value,
)


def test_plot_id_parse():
    assert PlotId.parse("tco3_zm") is PlotId.TCO3_ZM
    assert PlotId.parse(PlotId.TCO3_RETURN) is PlotId.TCO3_RETURN
    with pytest.raises(IllegalPlotState):
        PlotId.parse("vmro3_zm")


def test_plot_id_uses_years():
    assert PlotId.TCO3_ZM.uses_years is True
    assert PlotId.TCO3_RETURN.uses_years is False


def test_year_range_contains_is_inclusive():
    r = YearRange(1960, 2000)
    assert r.contains(1960)
    assert r.contains(2000)
    assert not r.contains(2001)


def test_region_selection_sorts_and_dedups():
    sel = region_selection([3, 1, 3, 0])
    assert sel.regions == (0, 1, 3)
    assert sel.labels() == [ALL_REGIONS_ORDERED[0], ALL_REGIONS_ORDERED[1], ALL_REGIONS_ORDERED[3]]


def test_region_selection_out_of_range_raises():
    with pytest.raises(ValueError):
        region_selection([len(ALL_REGIONS_ORDERED)])
    with pytest.raises(ValueError):
        region_selection([-1])


def test_x_range_from_value_shapes():
    assert x_range_from_value({"years": {"minX": 1970, "maxX": 1990}}) == YearRange(1970, 1990)
    assert x_range_from_value({"regions": [2, 0]}) == RegionSelection((0, 2))
    with pytest.raises(ValueError):
        x_range_from_value({"foo": 1})


def test_y_range_is_unset():
    assert YRange().is_unset
    assert not YRange(min_y=1.0).is_unset


def test_plot_settings_defaults():
    settings = PlotSettings()
    assert settings.plot_id is PlotId.TCO3_ZM
    assert settings.general.months == DEFAULT_MONTHS
    assert (settings.general.min_lat, settings.general.max_lat) == (-90.0, 90.0)

    zm = settings.specific[PlotId.TCO3_ZM]
    assert zm.title == "OCTS Plot"
    assert zm.display_x_range == YearRange(1960, 2100)
    assert zm.display_y_range == YRange(280, 330)

    ret = settings.specific[PlotId.TCO3_RETURN]
    assert ret.display_x_range.regions == tuple(range(len(ALL_REGIONS_ORDERED)))
    assert ret.display_y_range == YRange(2000, 2100)


def test_plot_settings_active_raises_for_unsupported_plot():
    settings = PlotSettings(plot_id="vmro3_zm")
    assert settings.is_supported is False
    with pytest.raises(IllegalPlotState):
        _ = settings.active


def test_plot_settings_dict_roundtrip():
    settings = PlotSettings(plot_id=PlotId.TCO3_RETURN)
    settings.general.months = [3, 4]
    settings.specific[PlotId.TCO3_RETURN].display_x_range = RegionSelection((1, 4))
    settings.specific[PlotId.TCO3_RETURN].user_region_name = "Alps"
    settings.specific[PlotId.TCO3_ZM].display_y_range = YRange(250.5, 350.0)

    restored = PlotSettings.from_dict(settings.to_dict())
    assert restored == settings


def test_plot_settings_from_dict_is_tolerant():
    data = {
        "plotId": "unknown_plot",
        "generalSettings": {"location": {"minLat": "x"}, "months": [1, 1, 13, "2", 5]},
        "plotSpecificSettings": {
            "tco3_zm": {"displayXRange": {"regions": [1]}},
            "other": {"title": "ignored"},
        },
    }
    settings = PlotSettings.from_dict(data)
    assert settings.plot_id is PlotId.TCO3_ZM
    assert (settings.general.min_lat, settings.general.max_lat) == (-90.0, 90.0)
    assert settings.general.months == [1, 5]
    # mismatching shape falls back to the default year range
    assert settings.specific[PlotId.TCO3_ZM].display_x_range == YearRange(1960, 2100)


def test_plot_settings_from_dict_drops_bad_y_bounds_and_bool_months():
    data = {
        "generalSettings": {"months": [True, 3, False, 12]},
        "plotSpecificSettings": {
            "tco3_zm": {"displayYRange": {"minY": "abc", "maxY": float("nan")}},
            "tco3_return": {"displayYRange": {"minY": 2010, "maxY": True}},
        },
    }
    settings = PlotSettings.from_dict(data)
    assert settings.general.months == [3, 12]
    assert settings.specific[PlotId.TCO3_ZM].display_y_range == YRange(None, None)
    assert settings.specific[PlotId.TCO3_RETURN].display_y_range == YRange(2010.0, None)


def test_plot_settings_from_dict_infinite_years_fall_back_to_default():
    data = {"plotSpecificSettings": {"tco3_zm": {"displayXRange": {"years": {"minX": float("inf"), "maxX": 2000}}}}}
    settings = PlotSettings.from_dict(data)
    assert settings.specific[PlotId.TCO3_ZM].display_x_range == YearRange(1960, 2100)


def test_region_selection_rejects_infinite_index():
    with pytest.raises(ValueError):
        region_selection([0, float("inf")])
