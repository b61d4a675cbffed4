"""Model-group state for o3plot.

This module defines the StatisticKind enum and the ModelSettings / ModelGroup
dataclasses that the ConfigStore owns. A group keeps its members in a single
insertion-ordered dict (model id -> ModelSettings), so the ordered model list
and the per-model lookup can never get out of step.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from o3plot.plot_config.errors import InvalidStatisticKind
from o3plot.utils.logging import get_logger

logger = get_logger(__name__)


class StatisticKind(str, Enum):
    """Statistical values computable per model.

    Definition order is the canonical order used for series and legend.
    """
    MEAN = "mean"
    MEDIAN = "median"
    DERIVATIVE = "derivative"
    PERCENTILE = "percentile"

    @classmethod
    def parse(cls, value: Union["StatisticKind", str]) -> "StatisticKind":
        """Return the member for value, or raise InvalidStatisticKind."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidStatisticKind(value) from None


def all_statistics(value: bool = True) -> dict[StatisticKind, bool]:
    """Build a flag per statistic kind, in canonical order."""
    return {kind: value for kind in StatisticKind}


@dataclass
class ModelSettings:
    """Per-model display settings inside a group.

    A new model starts visible with every statistic included and no color
    override (None = use the default palette).
    """
    color: Optional[str] = None
    is_visible: bool = True
    mean: bool = True
    median: bool = True
    derivative: bool = True
    percentile: bool = True

    def included(self, kind: StatisticKind) -> bool:
        return bool(getattr(self, kind.value))

    def set_included(self, kind: StatisticKind, value: bool) -> None:
        setattr(self, kind.value, bool(value))

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"color": self.color, "is_visible": self.is_visible}
        for kind in StatisticKind:
            d[kind.value] = self.included(kind)
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ModelSettings":
        color = data.get("color")
        settings = cls(
            color=str(color) if color is not None else None,
            is_visible=bool(data.get("is_visible", True)),
        )
        for kind in StatisticKind:
            settings.set_included(kind, bool(data.get(kind.value, True)))
        return settings


@dataclass
class ModelGroup:
    """A named, ordered collection of models sharing display defaults.

    Attributes:
        name: Display name of the group.
        models: Model id -> ModelSettings; insertion order is the model order.
        hidden: Hide the complete group.
        visible_sv: Group-wide switch per statistic kind.
    """
    name: str
    models: dict[str, ModelSettings] = field(default_factory=dict)
    hidden: bool = False
    visible_sv: dict[StatisticKind, bool] = field(default_factory=all_statistics)

    @property
    def model_list(self) -> list[str]:
        return list(self.models)

    def statistic_visible(self, kind: StatisticKind) -> bool:
        return bool(self.visible_sv.get(kind, True))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-friendly dict (model order kept in model_list)."""
        return {
            "name": self.name,
            "model_list": self.model_list,
            "models": {model_id: s.to_dict() for model_id, s in self.models.items()},
            "hidden": self.hidden,
            "visible_sv": {kind.value: v for kind, v in self.visible_sv.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ModelGroup":
        """Deserialize from dict.

        The order comes from model_list; models listed without settings get
        defaults, settings without a model_list entry are dropped.
        Unknown statistic keys in visible_sv are ignored with a warning.
        """
        models_raw = data.get("models")
        if not isinstance(models_raw, dict):
            models_raw = {}
        model_list = data.get("model_list")
        if not isinstance(model_list, list):
            model_list = list(models_raw)

        models: dict[str, ModelSettings] = {}
        for model_id in model_list:
            model_id = str(model_id)
            if model_id in models:
                continue
            raw = models_raw.get(model_id)
            models[model_id] = ModelSettings.from_dict(raw) if isinstance(raw, dict) else ModelSettings()

        visible_sv = all_statistics()
        sv_raw = data.get("visible_sv")
        if isinstance(sv_raw, dict):
            for key, value in sv_raw.items():
                try:
                    visible_sv[StatisticKind.parse(key)] = bool(value)
                except InvalidStatisticKind:
                    logger.warning(f"Ignoring unknown statistic {key!r} in group settings")

        return cls(
            name=str(data.get("name", "")),
            models=models,
            hidden=bool(data.get("hidden", False)),
            visible_sv=visible_sv,
        )
