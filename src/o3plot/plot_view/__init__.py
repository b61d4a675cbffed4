"""Plot view: request cache, series synthesis, chart options and the controller.

The NiceGUI widget lives in o3plot.plot_view.plot_view_widget and is not
imported here, so the core stays usable without a UI.
"""

from o3plot.plot_view.figure_generator import FigureGenerator
from o3plot.plot_view.option_builder import build_options
from o3plot.plot_view.plot_view_controller import PlotViewController, PlotViewState, ViewKind
from o3plot.plot_view.request_cache import (
    FetchParams,
    PlotPayload,
    RequestCache,
    RequestCacheEntry,
    RequestState,
)
from o3plot.plot_view.series_synthesizer import Series, SeriesSet, SeriesStyle, generate_series

__all__ = [
    "FetchParams",
    "FigureGenerator",
    "PlotPayload",
    "PlotViewController",
    "PlotViewState",
    "RequestCache",
    "RequestCacheEntry",
    "RequestState",
    "Series",
    "SeriesSet",
    "SeriesStyle",
    "ViewKind",
    "build_options",
    "generate_series",
]
