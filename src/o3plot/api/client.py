"""HTTP client for the O3as data service.

O3asClient wraps the REST endpoints the plot view needs. Every transport,
HTTP or decoding problem is raised as FetchFailure with a readable message;
the client never retries.

Configuration comes from the environment (see ApiSettings.from_env):
    O3PLOT_API_URL      base URL of the API
    O3PLOT_API_TIMEOUT  request timeout in seconds
"""

from __future__ import annotations

import asyncio
import math
import os
from dataclasses import dataclass
from typing import Any, Optional

import requests

from o3plot.plot_config.errors import FetchFailure, InvalidStatisticKind
from o3plot.plot_config.model_state import StatisticKind
from o3plot.plot_view.request_cache import FetchParams, PlotPayload
from o3plot.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_API_URL = "https://api.o3as.fedcloud.eu/api/v1"
# fetching the model list alone can take ~30s
DEFAULT_TIMEOUT_SEC = 60.0


@dataclass(frozen=True)
class ApiSettings:
    base_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT_SEC

    @classmethod
    def from_env(cls) -> "ApiSettings":
        """Read O3PLOT_API_URL / O3PLOT_API_TIMEOUT; invalid timeouts fall back to the default."""
        base_url = os.environ.get("O3PLOT_API_URL", DEFAULT_API_URL).rstrip("/")
        timeout = DEFAULT_TIMEOUT_SEC
        raw_timeout = os.environ.get("O3PLOT_API_TIMEOUT")
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                logger.warning(f"Invalid O3PLOT_API_TIMEOUT={raw_timeout!r}, using {DEFAULT_TIMEOUT_SEC}s")
        return cls(base_url=base_url, timeout=timeout)


def _number_or_none(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def parse_plot_payload(data: Any) -> PlotPayload:
    """Convert the JSON body of a plot request into a PlotPayload.

    Expected shape:
        {"x_start": 1959, "reference_value": 300.1,
         "models": {model_id: {"mean": [...], "median": [...], ...}}}

    Unknown statistic keys are ignored; non-numeric values become gaps (None).

    Raises:
        FetchFailure: If the body does not have this shape.
    """
    if not isinstance(data, dict) or not isinstance(data.get("models"), dict):
        raise FetchFailure("Unexpected response from data service: missing 'models'")

    series: dict[str, dict[StatisticKind, list[Optional[float]]]] = {}
    for model_id, stats in data["models"].items():
        if not isinstance(stats, dict):
            logger.warning(f"Ignoring malformed data for model {model_id!r}")
            continue
        model_series: dict[StatisticKind, list[Optional[float]]] = {}
        for key, values in stats.items():
            try:
                kind = StatisticKind.parse(key)
            except InvalidStatisticKind:
                logger.debug(f"Ignoring unknown statistic {key!r} for model {model_id!r}")
                continue
            if not isinstance(values, list):
                continue
            model_series[kind] = [_number_or_none(v) for v in values]
        series[str(model_id)] = model_series

    try:
        x_start = int(data.get("x_start", 0))
    except (TypeError, ValueError):
        raise FetchFailure(f"Unexpected x_start in response: {data.get('x_start')!r}") from None

    return PlotPayload(
        series=series,
        x_start=x_start,
        reference_value=_number_or_none(data.get("reference_value")),
    )


class O3asClient:
    """Blocking client for the O3as API (requests.Session based)."""

    def __init__(
        self,
        settings: Optional[ApiSettings] = None,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.settings = settings if settings is not None else ApiSettings.from_env()
        self.session = session if session is not None else requests.Session()

    def _url(self, endpoint: str) -> str:
        return f"{self.settings.base_url}{endpoint}"

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        url = self._url(endpoint)
        try:
            response = self.session.request(method, url, timeout=self.settings.timeout, **kwargs)
            response.raise_for_status()
        except requests.Timeout:
            raise FetchFailure(f"Request to {endpoint} timed out after {self.settings.timeout:g}s") from None
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else "?"
            raise FetchFailure(f"Data service returned HTTP {status} for {endpoint}") from e
        except requests.RequestException as e:
            raise FetchFailure(f"Could not reach data service: {e}") from e
        try:
            return response.json()
        except ValueError as e:
            raise FetchFailure(f"Data service returned invalid JSON for {endpoint}") from e

    def get_plot_types(self) -> list[str]:
        return list(self._request("GET", "/plots"))

    def get_models(self, plot_type: Optional[str] = None, select: Optional[str] = None) -> list[Any]:
        params: dict[str, str] = {}
        if plot_type is not None:
            params["ptype"] = plot_type
        if select is not None:
            params["select"] = select
        return list(self._request("GET", "/models", params=params or None))

    def get_models_plot_style(self, plot_type: str) -> Any:
        return self._request("POST", "/models/plotstyle", json={"ptype": plot_type})

    def fetch_plot_data(self, params: FetchParams) -> PlotPayload:
        """POST the model list to /plots/{plot_id} and parse the response.

        Raises:
            FetchFailure: On any transport, HTTP or format error.
        """
        query = {
            "begin": params.start_year,
            "end": params.end_year,
            "month": ",".join(str(m) for m in params.months),
            "lat_min": params.lat_min,
            "lat_max": params.lat_max,
            "ref_meas": params.ref_model,
            "ref_year": params.ref_year,
        }
        logger.debug(f"POST /plots/{params.plot_id.value} {query} ({len(params.model_ids)} models)")
        # the API takes the bare list of model ids as body
        data = self._request(
            "POST",
            f"/plots/{params.plot_id.value}",
            params=query,
            json=list(params.model_ids),
        )
        return parse_plot_payload(data)

    async def fetch_plot_data_async(self, params: FetchParams) -> PlotPayload:
        """fetch_plot_data() in a worker thread; usable as PlotViewController fetch."""
        return await asyncio.to_thread(self.fetch_plot_data, params)
