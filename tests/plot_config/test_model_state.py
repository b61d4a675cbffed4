"""Unit tests for StatisticKind, ModelSettings and ModelGroup."""

import pytest

from o3plot.plot_config.errors import InvalidStatisticKind
from o3plot.plot_config.model_state import (
    ModelGroup,
    ModelSettings,
    StatisticKind,
    all_statistics,
)


def test_statistic_kind_canonical_order():
    assert [k.value for k in StatisticKind] == ["mean", "median", "derivative", "percentile"]


def test_statistic_kind_parse_accepts_member_and_string():
    assert StatisticKind.parse("median") is StatisticKind.MEDIAN
    assert StatisticKind.parse(StatisticKind.MEAN) is StatisticKind.MEAN


def test_statistic_kind_parse_rejects_unknown():
    with pytest.raises(InvalidStatisticKind) as exc_info:
        StatisticKind.parse("std")
    assert exc_info.value.kind == "std"
    # also usable as a ValueError
    assert isinstance(exc_info.value, ValueError)


def test_model_settings_defaults():
    settings = ModelSettings()
    assert settings.color is None
    assert settings.is_visible is True
    assert all(settings.included(k) for k in StatisticKind)


def test_model_settings_set_included():
    settings = ModelSettings()
    settings.set_included(StatisticKind.DERIVATIVE, False)
    assert settings.derivative is False
    assert settings.included(StatisticKind.DERIVATIVE) is False
    assert settings.included(StatisticKind.MEAN) is True


def test_model_group_keeps_insertion_order():
    group = ModelGroup(name="g", models={"b": ModelSettings(), "a": ModelSettings(), "c": ModelSettings()})
    assert group.model_list == ["b", "a", "c"]


def test_model_group_statistic_visible_defaults_true():
    group = ModelGroup(name="g", visible_sv={})
    assert group.statistic_visible(StatisticKind.PERCENTILE) is True


def test_model_group_dict_roundtrip_keeps_order_and_flags():
    group = ModelGroup(
        name="Group A",
        models={"m2": ModelSettings(color="#ff0000", mean=False), "m1": ModelSettings(is_visible=False)},
        hidden=True,
        visible_sv={**all_statistics(), StatisticKind.MEDIAN: False},
    )
    restored = ModelGroup.from_dict(group.to_dict())
    assert restored == group
    assert restored.model_list == ["m2", "m1"]


def test_model_group_from_dict_tolerates_inconsistent_data():
    """Listed models without settings get defaults; unlisted settings are dropped."""
    data = {
        "name": "g",
        "model_list": ["m1", "m2", "m1"],
        "models": {"m1": {"mean": False}, "stray": {"mean": False}},
        "visible_sv": {"mean": False, "bogus": True},
    }
    group = ModelGroup.from_dict(data)
    assert group.model_list == ["m1", "m2"]
    assert group.models["m1"].mean is False
    assert group.models["m2"] == ModelSettings()
    assert group.statistic_visible(StatisticKind.MEAN) is False
    assert group.statistic_visible(StatisticKind.MEDIAN) is True
