"""Chart options (Plotly layout) for o3plot.

build_options() derives axes, title, legend and hover formatting from the
plot type, the display ranges and the canonical series order. The legend
order is carried in layout["meta"]["legend_order"] and applied per trace by
FigureGenerator.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from o3plot.plot_config.conventions import ALL_REGIONS_ORDERED
from o3plot.plot_config.plot_state import PlotId, RegionSelection, XRange, YearRange, YRange
from o3plot.plot_view.series_synthesizer import SeriesStyle
from o3plot.utils.logging import get_logger

logger = get_logger(__name__)

Y_AXIS_TITLES: dict[PlotId, str] = {
    PlotId.TCO3_ZM: "TCO3 [DU]",
    PlotId.TCO3_RETURN: "Return year",
}


def _x_axis(plot_id: PlotId, x_range: XRange) -> dict[str, Any]:
    if plot_id.uses_years:
        if not isinstance(x_range, YearRange):
            raise ValueError(f"Plot {plot_id.value} needs a year range, got {x_range!r}")
        return {
            "title": {"text": "Year"},
            "type": "linear",
            "range": [x_range.min_x, x_range.max_x],
            "autorange": False,
            "tickformat": "d",
        }
    if not isinstance(x_range, RegionSelection):
        raise ValueError(f"Plot {plot_id.value} needs a region selection, got {x_range!r}")
    axis: dict[str, Any] = {
        "title": {"text": "Region"},
        "type": "linear",
        "tickmode": "array",
        "tickvals": list(x_range.regions),
        "ticktext": [ALL_REGIONS_ORDERED[i] for i in x_range.regions],
        "autorange": not x_range.regions,
    }
    if x_range.regions:
        # half a category of padding on both sides
        axis["range"] = [min(x_range.regions) - 0.5, max(x_range.regions) + 0.5]
    return axis


def _y_axis(plot_id: PlotId, y_range: YRange) -> dict[str, Any]:
    axis: dict[str, Any] = {
        "title": {"text": Y_AXIS_TITLES[plot_id]},
        "hoverformat": ".2f" if plot_id.uses_years else "d",
    }
    if y_range.is_unset:
        axis["autorange"] = True
    else:
        # a single unset bound (None) is left for plotly to fill in
        axis["range"] = [y_range.min_y, y_range.max_y]
        axis["autorange"] = False
    return axis


def build_options(
    plot_id: PlotId,
    styling: Mapping[str, SeriesStyle],
    plot_title: str,
    x_range: XRange,
    y_range: YRange,
    series_names: list[str],
    *,
    subtitle: Optional[str] = None,
) -> dict[str, Any]:
    """Build the Plotly layout dict for a plot.

    Args:
        plot_id: Active plot type.
        styling: Series name -> SeriesStyle, from generate_series().
        plot_title: Chart title.
        x_range: Active x display range (years or regions, matching plot_id).
        y_range: Active y display range; fixed unless both bounds are unset.
        series_names: Series names in canonical order; becomes the legend order.
        subtitle: Optional second title line (e.g. latitude band and months).

    Returns:
        Plotly layout dictionary.
    """
    title = plot_title if not subtitle else f"{plot_title}<br><sup>{subtitle}</sup>"
    layout: dict[str, Any] = {
        "title": {"text": title, "x": 0.5},
        "xaxis": _x_axis(plot_id, x_range),
        "yaxis": _y_axis(plot_id, y_range),
        "showlegend": bool(series_names),
        "legend": {
            "traceorder": "normal",
            "title": {"text": "Models"},
        },
        "hovermode": "x unified" if plot_id.uses_years else "closest",
        "margin": dict(l=60, r=20, t=60, b=60),
        "uirevision": plot_id.value,
        "meta": {"legend_order": list(series_names)},
    }
    colors = [styling[n].color for n in series_names if n in styling]
    if colors:
        layout["colorway"] = colors
    logger.debug(f"build_options: plot={plot_id.value}, legend entries={len(series_names)}")
    return layout
