"""Series synthesis for o3plot.

generate_series() merges the model-group configuration with the fetched
payload into an ordered list of renderable series plus a styling map.
Series follow the canonical order: groups in store order, models in group
order, statistics in StatisticKind order; the reference line comes last.
Nothing passed in is mutated.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Mapping, Optional

import numpy as np
from plotly.colors import qualitative

from o3plot.plot_config.model_state import ModelGroup, StatisticKind
from o3plot.plot_config.plot_state import PlotId, XRange, YearRange, YRange
from o3plot.plot_config.reference_state import ReferenceSettings
from o3plot.plot_view.request_cache import PlotPayload
from o3plot.utils.logging import get_logger

logger = get_logger(__name__)

# Default model colors, indexed by canonical model position.
DEFAULT_PALETTE: list[str] = list(qualitative.Plotly) + list(qualitative.D3)

REFERENCE_COLOR = "#000000"
REFERENCE_LINE_DASH = "dash"

LINE_DASH: dict[StatisticKind, str] = {
    StatisticKind.MEAN: "solid",
    StatisticKind.MEDIAN: "dot",
    StatisticKind.DERIVATIVE: "dashdot",
    StatisticKind.PERCENTILE: "longdash",
}

Point = tuple[float, Optional[float]]


@dataclass
class Series:
    """One renderable line."""
    name: str
    points: list[Point]
    statistic: Optional[StatisticKind]
    model_id: Optional[str]
    group_id: Optional[str] = None
    is_reference: bool = False


@dataclass(frozen=True)
class SeriesStyle:
    color: str
    line_dash: str
    group_label: str
    is_reference: bool = False


@dataclass
class SeriesSet:
    """Ordered series and their styling (keyed by series name)."""
    series: list[Series] = field(default_factory=list)
    styling: dict[str, SeriesStyle] = field(default_factory=dict)

    @property
    def names(self) -> list[str]:
        return [s.name for s in self.series]

    @property
    def is_empty(self) -> bool:
        return not self.series

    def model_names(self) -> list[str]:
        """Model ids that contribute at least one series, in canonical order."""
        seen: dict[str, None] = {}
        for s in self.series:
            if s.model_id is not None and not s.is_reference:
                seen.setdefault(s.model_id, None)
        return list(seen)


def default_color(position: int) -> str:
    return DEFAULT_PALETTE[position % len(DEFAULT_PALETTE)]


def _x_values(plot_id: PlotId, payload: PlotPayload, n: int) -> np.ndarray:
    if plot_id.uses_years:
        return np.arange(n, dtype=float) + payload.x_start
    return np.arange(n, dtype=float)


def _x_mask(x: np.ndarray, x_range: XRange) -> np.ndarray:
    if isinstance(x_range, YearRange):
        return (x >= x_range.min_x) & (x <= x_range.max_x)
    return np.isin(x, np.asarray(x_range.regions, dtype=float))


def _clip_points(
    plot_id: PlotId,
    payload: PlotPayload,
    values: list[Optional[float]],
    x_range: XRange,
    offset: float,
) -> list[Point]:
    """Keep points inside the x display range; y is never filtered."""
    y = np.array([np.nan if v is None else v for v in values], dtype=float)
    x = _x_values(plot_id, payload, len(y))
    mask = _x_mask(x, x_range)
    points: list[Point] = []
    for xi, yi in zip(x[mask], y[mask]):
        points.append((float(xi), None if math.isnan(yi) else float(yi) - offset))
    return points


def reference_value(payload: PlotPayload, reference: ReferenceSettings, plot_id: PlotId) -> Optional[float]:
    """Reference value from the payload, else the reference model's mean at the reference year."""
    if payload.reference_value is not None:
        return float(payload.reference_value)
    if not plot_id.uses_years:
        return None
    ref_series = payload.series.get(reference.model, {}).get(StatisticKind.MEAN)
    if not ref_series:
        return None
    idx = reference.year - payload.x_start
    if 0 <= idx < len(ref_series) and ref_series[idx] is not None:
        value = float(ref_series[idx])
        return value if math.isfinite(value) else None
    return None


def _reference_points(x_range: XRange, value: Optional[float]) -> list[Point]:
    if value is None:
        return []
    if isinstance(x_range, YearRange):
        return [(float(x_range.min_x), value), (float(x_range.max_x), value)]
    return [(float(i), value) for i in x_range.regions]


def generate_series(
    plot_id: PlotId,
    payload: PlotPayload,
    model_groups: Mapping[str, ModelGroup],
    x_range: XRange,
    y_range: YRange,
    reference: ReferenceSettings,
) -> SeriesSet:
    """Build the ordered series set for one plot.

    Args:
        plot_id: Active plot type (decides the x axis: years or regions).
        payload: Fetched data. Models missing from it are skipped.
        model_groups: Group id -> ModelGroup, in canonical order.
        x_range: Active x display range; points outside are dropped.
        y_range: Active y display range; only frames the axis, data is kept.
        reference: Reference settings; a reference series is appended if visible.

    Returns:
        SeriesSet, possibly empty.
    """
    if isinstance(x_range, YearRange) != plot_id.uses_years:
        raise ValueError(f"x range {x_range!r} does not fit plot {plot_id.value}")

    ref_value = reference_value(payload, reference, plot_id)
    offset = ref_value if reference.is_offset_applied and ref_value is not None else 0.0

    result = SeriesSet()
    position = -1
    for group_id, group in model_groups.items():
        for model_id, settings in group.models.items():
            # position counts every model so colors do not shift when others are hidden
            position += 1
            if group.hidden or not settings.is_visible:
                continue
            model_data = payload.series.get(model_id)
            if model_data is None:
                logger.debug(f"Model {model_id!r} not in payload (yet), skipping")
                continue
            color = settings.color or default_color(position)
            for kind in StatisticKind:
                if not (settings.included(kind) and group.statistic_visible(kind)):
                    continue
                values = model_data.get(kind)
                if values is None:
                    continue
                name = f"{model_id}-{kind.value}"
                if name in result.styling:
                    name = f"{group_id}/{name}"
                result.series.append(Series(
                    name=name,
                    points=_clip_points(plot_id, payload, values, x_range, offset),
                    statistic=kind,
                    model_id=model_id,
                    group_id=group_id,
                ))
                result.styling[name] = SeriesStyle(
                    color=color,
                    line_dash=LINE_DASH[kind],
                    group_label=group.name,
                )

    if reference.visible:
        name = reference.label
        line_value = 0.0 if reference.is_offset_applied and ref_value is not None else ref_value
        result.series.append(Series(
            name=name,
            points=_reference_points(x_range, line_value),
            statistic=None,
            model_id=reference.model,
            is_reference=True,
        ))
        result.styling[name] = SeriesStyle(
            color=REFERENCE_COLOR,
            line_dash=REFERENCE_LINE_DASH,
            group_label="Reference",
            is_reference=True,
        )

    logger.debug(
        f"generate_series: plot={plot_id.value}, series={len(result.series)}, "
        f"y_range=({y_range.min_y}, {y_range.max_y})"
    )
    return result
