"""Plot view controller for o3plot.

PlotViewController ties the ConfigStore, the RequestCache, the series
synthesizer and the option builder together:

- **refresh()** issues a fetch for the active plot (never retried; a failure
  stays until the fetch parameters change or a forced refresh).
- **render()** maps the cache state to what the view shows: loading, an
  informational note (no months selected), an error, an empty plot, or the
  ready series/layout/figure triple.

The store version is the explicit change signal: render() recomputes only if
the store version or the cache entry changed since the last call.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from o3plot.plot_config.config_store import (
    ConfigStore,
    select_all_model_ids,
    select_location,
    select_months,
    select_plot_title,
    select_reference,
    select_x_range,
    select_y_range,
)
from o3plot.plot_config.conventions import (
    DEFAULT_END_YEAR,
    DEFAULT_START_YEAR,
    NO_MONTH_SELECTED,
    month_label,
)
from o3plot.plot_config.errors import FetchFailure
from o3plot.plot_config.model_state import StatisticKind
from o3plot.plot_config.plot_state import PlotId
from o3plot.plot_view.figure_generator import FigureGenerator
from o3plot.plot_view.option_builder import build_options
from o3plot.plot_view.request_cache import (
    FetchParams,
    PlotPayload,
    RequestCache,
    RequestCacheEntry,
    RequestState,
)
from o3plot.plot_view.series_synthesizer import SeriesSet, generate_series
from o3plot.utils.logging import get_logger

logger = get_logger(__name__)

FetchFn = Callable[[FetchParams], Awaitable[PlotPayload]]
ErrorReporter = Callable[[str], None]

LOADING_MESSAGE = "Loading Data..."
EMPTY_MESSAGE = "No series to display. Add models or enable statistics to see data."


class ViewKind(Enum):
    UNSUPPORTED = "unsupported"
    LOADING = "loading"
    INFO = "info"
    ERROR = "error"
    EMPTY = "empty"
    READY = "ready"


@dataclass
class PlotViewState:
    """What the plot view should show.

    series_set, layout and figure are set for READY only.
    """
    kind: ViewKind
    message: Optional[str] = None
    series_set: Optional[SeriesSet] = None
    layout: Optional[dict[str, Any]] = None
    figure: Optional[dict[str, Any]] = None
    version: int = 0
    request_id: int = 0


class PlotViewController:
    """Orchestrates fetch, synthesis and options for the active plot.

    Attributes:
        store: Configuration store (read only here).
        cache: Request state cache, one entry per plot type.
        figure_generator: Builds the Plotly figure dict.
    """

    def __init__(
        self,
        store: ConfigStore,
        fetch: FetchFn,
        *,
        cache: Optional[RequestCache] = None,
        report_error: Optional[ErrorReporter] = None,
        figure_generator: Optional[FigureGenerator] = None,
        start_year: int = DEFAULT_START_YEAR,
        end_year: int = DEFAULT_END_YEAR,
    ) -> None:
        """Initialize the controller.

        Args:
            store: ConfigStore to read configuration from.
            fetch: Async callable returning the PlotPayload for FetchParams.
                Errors are raised (FetchFailure preferred) and recorded, not retried.
            cache: RequestCache to use; a new one if None.
            report_error: Called with the message of each failed request (once per request).
                Not called for the no-months-selected note.
            figure_generator: FigureGenerator to use; a default one if None.
            start_year: First year requested from the data service.
            end_year: Last year requested from the data service.
        """
        self.store = store
        self.cache = cache if cache is not None else RequestCache()
        self.figure_generator = figure_generator if figure_generator is not None else FigureGenerator()
        self._fetch = fetch
        self._report_error = report_error
        self.start_year = start_year
        self.end_year = end_year

        self._reported_request_ids: set[int] = set()
        self._last_state: Optional[PlotViewState] = None
        self._last_key: Optional[tuple[Any, ...]] = None

    # -----------------------------
    # Fetching
    # -----------------------------
    def fetch_params(self) -> Optional[FetchParams]:
        """FetchParams for the active plot, or None if the plot type is unsupported."""
        plot_id = self.store.plot.plot_id
        if not isinstance(plot_id, PlotId):
            return None
        lat_min, lat_max = select_location(self.store)
        reference = select_reference(self.store)
        return FetchParams(
            plot_id=plot_id,
            lat_min=lat_min,
            lat_max=lat_max,
            months=tuple(select_months(self.store)),
            model_ids=tuple(select_all_model_ids(self.store)),
            start_year=self.start_year,
            end_year=self.end_year,
            ref_model=reference.model,
            ref_year=reference.year,
        )

    def needs_refresh(self) -> bool:
        """True if the active plot has no request yet for the current parameters."""
        params = self.fetch_params()
        if params is None:
            return False
        entry = self.cache.get(params.plot_id)
        return entry.status is RequestState.IDLE or entry.params != params

    async def refresh(self, force: bool = False) -> RequestCacheEntry:
        """Fetch data for the active plot and record the outcome in the cache.

        Args:
            force: Fetch even if the latest request used the same parameters
                (including after a failure).

        Returns:
            The cache entry of the active plot after the request completed.
            If a newer request was issued meanwhile, that one's entry.
        """
        params = self.fetch_params()
        if params is None:
            logger.warning(f"Not fetching: unsupported plot type {self.store.plot.plot_id!r}")
            return self.cache.get(self.store.plot.plot_id)

        plot_id = params.plot_id
        if not force and not self.needs_refresh():
            return self.cache.get(plot_id)

        if not params.months:
            logger.info(f"Not fetching {plot_id.value}: no month selected")
            self.cache.fail(plot_id, NO_MONTH_SELECTED, params)
            return self.cache.get(plot_id)

        request_id = self.cache.begin(plot_id, params)
        logger.info(
            f"Fetching {plot_id.value} (request {request_id}): {len(params.model_ids)} models, "
            f"lat {params.lat_min}..{params.lat_max}, months={list(params.months)}"
        )
        try:
            payload = await self._fetch(params)
        except FetchFailure as e:
            logger.error(f"Fetch {request_id} for {plot_id.value} failed: {e.message}")
            self.cache.reject(plot_id, request_id, e.message)
        except Exception as e:
            logger.error(f"Fetch {request_id} for {plot_id.value} raised {type(e).__name__}: {e}")
            self.cache.reject(plot_id, request_id, str(e) or type(e).__name__)
        else:
            self.cache.resolve(plot_id, request_id, payload)
        return self.cache.get(plot_id)

    # -----------------------------
    # Rendering
    # -----------------------------
    def render(self) -> PlotViewState:
        """Map the active plot's cache state and configuration to a PlotViewState."""
        plot_id = self.store.plot.plot_id
        entry = self.cache.get(plot_id)
        key = (self.store.version, plot_id, entry.request_id, entry.status)
        if self._last_state is not None and key == self._last_key:
            return self._last_state

        state = self._render(plot_id, entry)
        self._last_key = key
        self._last_state = state
        return state

    def _render(self, plot_id: Any, entry: RequestCacheEntry) -> PlotViewState:
        version = self.store.version
        if not isinstance(plot_id, PlotId):
            return PlotViewState(
                kind=ViewKind.UNSUPPORTED,
                message=f"This plot type ({plot_id}) is not supported yet.",
                version=version,
            )

        if entry.status in (RequestState.IDLE, RequestState.LOADING):
            return PlotViewState(
                kind=ViewKind.LOADING,
                message=LOADING_MESSAGE,
                version=version,
                request_id=entry.request_id,
            )

        if entry.status is RequestState.ERROR:
            message = entry.error or "Unknown error"
            if message == NO_MONTH_SELECTED:
                return PlotViewState(
                    kind=ViewKind.INFO,
                    message=message,
                    version=version,
                    request_id=entry.request_id,
                )
            self._report_once(entry.request_id, message)
            return PlotViewState(
                kind=ViewKind.ERROR,
                message=message,
                version=version,
                request_id=entry.request_id,
            )

        assert entry.data is not None
        x_range = select_x_range(self.store)
        y_range = select_y_range(self.store)
        series_set = generate_series(
            plot_id,
            entry.data,
            self.store.model_groups,
            x_range,
            y_range,
            select_reference(self.store),
        )
        if series_set.is_empty:
            return PlotViewState(
                kind=ViewKind.EMPTY,
                message=EMPTY_MESSAGE,
                series_set=series_set,
                version=version,
                request_id=entry.request_id,
            )

        layout = build_options(
            plot_id,
            series_set.styling,
            select_plot_title(self.store),
            x_range,
            y_range,
            series_set.names,
            subtitle=self._subtitle(),
        )
        figure = self.figure_generator.make_figure(plot_id, series_set, layout)
        return PlotViewState(
            kind=ViewKind.READY,
            series_set=series_set,
            layout=layout,
            figure=figure,
            version=version,
            request_id=entry.request_id,
        )

    def _subtitle(self) -> str:
        lat_min, lat_max = select_location(self.store)
        return f"lat {lat_min:g}..{lat_max:g}, months: {month_label(select_months(self.store))}"

    def _report_once(self, request_id: int, message: str) -> None:
        if self._report_error is None or request_id in self._reported_request_ids:
            return
        # ids only grow and only the latest id per plot can still render
        live = {self.cache.get(pid).request_id for pid in PlotId}
        self._reported_request_ids &= live
        self._reported_request_ids.add(request_id)
        self._report_error(message)

    def included_model_names(self) -> list[str]:
        """Models that contribute a series, in canonical order (for the PDF export).

        Uses the last READY render if there is one for the current store version,
        otherwise the configuration alone (visible models with a shown statistic).
        """
        state = self._last_state
        if state is not None and state.series_set is not None and state.version == self.store.version:
            return state.series_set.model_names()
        names: dict[str, None] = {}
        for group in self.store.model_groups.values():
            if group.hidden:
                continue
            for model_id, settings in group.models.items():
                if not settings.is_visible:
                    continue
                if any(settings.included(k) and group.statistic_visible(k) for k in StatisticKind):
                    names.setdefault(model_id, None)
        return list(names)
