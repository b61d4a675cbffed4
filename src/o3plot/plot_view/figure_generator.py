"""Plotly figure generation for o3plot.

This module provides the FigureGenerator class, which turns a SeriesSet and
a layout from build_options() into the Plotly figure dictionary that the
rendering widget (ui.plotly) consumes.
"""

from __future__ import annotations

from typing import Any

import plotly.graph_objects as go

from o3plot.plot_config.conventions import ALL_REGIONS_ORDERED
from o3plot.plot_config.plot_state import PlotId
from o3plot.plot_view.series_synthesizer import Series, SeriesSet, SeriesStyle
from o3plot.utils.logging import get_logger

logger = get_logger(__name__)


class FigureGenerator:
    """Generates Plotly figure dictionaries from synthesized series.

    Attributes:
        line_width: Width of model lines.
        reference_line_width: Width of the reference line.
    """

    def __init__(self, *, line_width: float = 2.0, reference_line_width: float = 2.5) -> None:
        self.line_width = line_width
        self.reference_line_width = reference_line_width

    def make_figure(self, plot_id: PlotId, series_set: SeriesSet, layout: dict[str, Any]) -> dict:
        """Generate Plotly figure dictionary.

        Args:
            plot_id: Active plot type (lines for years, lines+markers for regions).
            series_set: Output of generate_series().
            layout: Output of build_options(); its meta.legend_order ranks the legend.

        Returns:
            Plotly figure dictionary.
        """
        legend_order = layout.get("meta", {}).get("legend_order") or series_set.names
        rank = {name: i + 1 for i, name in enumerate(legend_order)}

        fig = go.Figure()
        for series in series_set.series:
            style = series_set.styling[series.name]
            fig.add_trace(self._trace(plot_id, series, style, rank.get(series.name, len(rank) + 1)))
        fig.update_layout(**layout)

        logger.debug(f"Figure generated: {len(series_set.series)} traces")
        return fig.to_dict()

    def _trace(self, plot_id: PlotId, series: Series, style: SeriesStyle, legendrank: int) -> go.Scatter:
        xs = [p[0] for p in series.points]
        ys = [p[1] for p in series.points]
        if series.is_reference:
            hovertemplate = f"{series.name}: %{{y:.2f}}<extra></extra>"
        elif plot_id.uses_years:
            hovertemplate = f"{series.name}: %{{y:.2f}}<extra>{style.group_label}</extra>"
        else:
            hovertemplate = f"{series.name}<br>%{{text}}: %{{y:.0f}}<extra>{style.group_label}</extra>"
        return go.Scatter(
            x=xs,
            y=ys,
            name=series.name,
            mode="lines" if plot_id.uses_years or series.is_reference else "lines+markers",
            line=dict(
                color=style.color,
                dash=style.line_dash,
                width=self.reference_line_width if series.is_reference else self.line_width,
            ),
            connectgaps=False,
            legendrank=legendrank,
            text=None if plot_id.uses_years else [ALL_REGIONS_ORDERED[int(x)] for x in xs],
            hovertemplate=hovertemplate,
        )
