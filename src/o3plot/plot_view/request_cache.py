"""Request state cache for fetched plot data.

One RequestCacheEntry per plot type moves through
IDLE -> LOADING -> SUCCESS | ERROR, and back to LOADING on a new fetch.
Every fetch gets a new request id; a completion is applied only if it
belongs to the latest request for that plot (last fetch wins), so a slow
response to an outdated configuration cannot overwrite a newer one.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from o3plot.plot_config.model_state import StatisticKind
from o3plot.plot_config.plot_state import PlotId
from o3plot.utils.logging import get_logger

logger = get_logger(__name__)


class RequestState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class FetchParams:
    """Everything a fetch for one plot depends on.

    Two equal FetchParams would fetch the same data, so a configuration
    change only warrants a re-fetch if it changes these.
    """
    plot_id: PlotId
    lat_min: float
    lat_max: float
    months: tuple[int, ...]
    model_ids: tuple[str, ...]
    start_year: int
    end_year: int
    ref_model: str
    ref_year: int


@dataclass
class PlotPayload:
    """Raw measurement data for one plot.

    Attributes:
        series: Model id -> statistic kind -> values, aligned to the implicit x axis
            (year x_start + i, or region index i). None marks a missing value.
        x_start: First year of the year axis; unused for region plots.
        reference_value: Value of the reference model at the reference year, if reported.
    """
    series: dict[str, dict[StatisticKind, list[Optional[float]]]] = field(default_factory=dict)
    x_start: int = 0
    reference_value: Optional[float] = None


@dataclass(frozen=True)
class RequestCacheEntry:
    status: RequestState = RequestState.IDLE
    data: Optional[PlotPayload] = None
    error: Optional[str] = None
    request_id: int = 0
    params: Optional[FetchParams] = None


class RequestCache:
    """Per-plot-type cache of fetched data and its lifecycle state."""

    def __init__(self) -> None:
        self._entries: dict[Union[PlotId, str], RequestCacheEntry] = {}
        self._ids = itertools.count(1)

    def get(self, plot_id: Union[PlotId, str]) -> RequestCacheEntry:
        return self._entries.get(plot_id, RequestCacheEntry())

    def begin(self, plot_id: PlotId, params: Optional[FetchParams] = None) -> int:
        """Mark plot_id as loading and return the id of the new request."""
        request_id = next(self._ids)
        self._entries[plot_id] = RequestCacheEntry(
            status=RequestState.LOADING,
            request_id=request_id,
            params=params,
        )
        logger.debug(f"Request {request_id} for {plot_id} issued")
        return request_id

    def resolve(self, plot_id: PlotId, request_id: int, payload: PlotPayload) -> bool:
        """Store payload for request_id; returns False if the request is outdated."""
        current = self._entries.get(plot_id)
        if not self._is_current(current, request_id):
            logger.warning(f"Discarding stale response {request_id} for {plot_id}")
            return False
        self._entries[plot_id] = RequestCacheEntry(
            status=RequestState.SUCCESS,
            data=payload,
            request_id=request_id,
            params=current.params,
        )
        logger.info(f"Request {request_id} for {plot_id} succeeded ({len(payload.series)} models)")
        return True

    def reject(self, plot_id: PlotId, request_id: int, message: str) -> bool:
        """Record an error for request_id; returns False if the request is outdated."""
        current = self._entries.get(plot_id)
        if not self._is_current(current, request_id):
            logger.warning(f"Discarding stale error {request_id} for {plot_id}: {message}")
            return False
        self._entries[plot_id] = RequestCacheEntry(
            status=RequestState.ERROR,
            error=message,
            request_id=request_id,
            params=current.params,
        )
        return True

    def fail(self, plot_id: PlotId, message: str, params: Optional[FetchParams] = None) -> int:
        """Record an error without a fetch (e.g. invalid input); returns its request id."""
        request_id = self.begin(plot_id, params)
        self.reject(plot_id, request_id, message)
        return request_id

    @staticmethod
    def _is_current(entry: Optional[RequestCacheEntry], request_id: int) -> bool:
        return (
            entry is not None
            and entry.request_id == request_id
            and entry.status is RequestState.LOADING
        )
