"""Unit tests for PlotViewController (fetch lifecycle and render states).

Async code is driven with asyncio.run; the fetch functions are fakes.
"""

import asyncio

import pytest

from o3plot.plot_config.config_store import ConfigStore
from o3plot.plot_config.conventions import DEFAULT_MODEL_GROUP_ID, DEFAULT_MODEL_IDS, NO_MONTH_SELECTED
from o3plot.plot_config.errors import FetchFailure
from o3plot.plot_config.model_state import StatisticKind
from o3plot.plot_config.plot_state import PlotId
from o3plot.plot_view.plot_view_controller import LOADING_MESSAGE, PlotViewController, ViewKind
from o3plot.plot_view.request_cache import FetchParams, PlotPayload, RequestState

MODEL = DEFAULT_MODEL_IDS[0]


def _payload(params: FetchParams) -> PlotPayload:
    n = params.end_year - params.start_year + 1
    values = [300.0 + i * 0.1 for i in range(n)]
    return PlotPayload(
        series={m: {kind: list(values) for kind in StatisticKind} for m in params.model_ids},
        x_start=params.start_year,
    )


class FakeFetch:
    """Records calls; returns a payload or raises the configured error."""

    def __init__(self, error: Exception = None):
        self.calls: list[FetchParams] = []
        self.error = error

    async def __call__(self, params: FetchParams) -> PlotPayload:
        self.calls.append(params)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return _payload(params)


@pytest.fixture
def store():
    return ConfigStore()


@pytest.fixture
def reported():
    return []


def _controller(store, fetch, reported):
    return PlotViewController(store, fetch, report_error=reported.append)


def test_initial_render_is_loading(store, reported):
    ctrl = _controller(store, FakeFetch(), reported)
    state = ctrl.render()
    assert state.kind is ViewKind.LOADING
    assert state.message == LOADING_MESSAGE
    assert ctrl.needs_refresh() is True


def test_fetch_params_follow_store(store, reported):
    ctrl = _controller(store, FakeFetch(), reported)
    store.set_location(-30, 30)
    store.set_months([6])
    params = ctrl.fetch_params()
    assert params.plot_id is PlotId.TCO3_ZM
    assert (params.lat_min, params.lat_max) == (-30.0, 30.0)
    assert params.months == (6,)
    assert params.model_ids == (MODEL,)
    assert (params.ref_model, params.ref_year) == (store.reference.model, store.reference.year)


def test_refresh_success_renders_ready(store, reported):
    fetch = FakeFetch()
    ctrl = _controller(store, fetch, reported)
    entry = asyncio.run(ctrl.refresh())
    assert entry.status is RequestState.SUCCESS
    assert len(fetch.calls) == 1

    state = ctrl.render()
    assert state.kind is ViewKind.READY
    assert state.series_set.names[:4] == [f"{MODEL}-{k.value}" for k in StatisticKind]
    assert state.figure["layout"]["title"]["text"].startswith("OCTS Plot")
    assert [t["name"] for t in state.figure["data"]] == state.series_set.names
    assert reported == []


def test_refresh_skips_when_params_unchanged(store, reported):
    fetch = FakeFetch()
    ctrl = _controller(store, fetch, reported)
    asyncio.run(ctrl.refresh())
    asyncio.run(ctrl.refresh())
    assert len(fetch.calls) == 1
    assert ctrl.needs_refresh() is False

    # display-only changes do not warrant a fetch
    store.set_reference_offset_applied(True)
    store.set_display_y_range(100, 400)
    assert ctrl.needs_refresh() is False

    store.set_months([3])
    assert ctrl.needs_refresh() is True
    asyncio.run(ctrl.refresh())
    assert len(fetch.calls) == 2


def test_force_refresh_fetches_again(store, reported):
    fetch = FakeFetch()
    ctrl = _controller(store, fetch, reported)
    asyncio.run(ctrl.refresh())
    asyncio.run(ctrl.refresh(force=True))
    assert len(fetch.calls) == 2


def test_fetch_failure_reports_once_and_is_not_retried(store, reported):
    fetch = FakeFetch(error=FetchFailure("service down"))
    ctrl = _controller(store, fetch, reported)
    entry = asyncio.run(ctrl.refresh())
    assert entry.status is RequestState.ERROR

    state = ctrl.render()
    assert state.kind is ViewKind.ERROR
    assert state.message == "service down"
    # re-rendering the same error does not report again
    store.set_plot_title("Other title")
    assert ctrl.render().kind is ViewKind.ERROR
    assert reported == ["service down"]

    asyncio.run(ctrl.refresh())
    assert len(fetch.calls) == 1


def test_unexpected_exception_becomes_error_state(store, reported):
    ctrl = _controller(store, FakeFetch(error=RuntimeError("kaput")), reported)
    asyncio.run(ctrl.refresh())
    assert ctrl.render().kind is ViewKind.ERROR
    assert reported == ["kaput"]


def test_new_failure_is_reported_again(store, reported):
    fetch = FakeFetch(error=FetchFailure("service down"))
    ctrl = _controller(store, fetch, reported)
    asyncio.run(ctrl.refresh())
    ctrl.render()
    asyncio.run(ctrl.refresh(force=True))
    ctrl.render()
    assert reported == ["service down", "service down"]


def test_failure_is_not_reported_again_after_switching_plots(store, reported):
    class FailPerPlot(FakeFetch):
        async def __call__(self, params):
            self.calls.append(params)
            await asyncio.sleep(0)
            raise FetchFailure(f"boom {params.plot_id.value}")

    ctrl = _controller(store, FailPerPlot(), reported)
    asyncio.run(ctrl.refresh())
    ctrl.render()

    store.set_active_plot(PlotId.TCO3_RETURN)
    asyncio.run(ctrl.refresh())
    ctrl.render()

    # the cached failure of the first plot is shown again, not re-reported
    store.set_active_plot(PlotId.TCO3_ZM)
    assert ctrl.needs_refresh() is False
    assert ctrl.render().kind is ViewKind.ERROR
    assert reported == ["boom tco3_zm", "boom tco3_return"]


def test_no_months_selected_is_info_not_error(store, reported):
    fetch = FakeFetch()
    ctrl = _controller(store, fetch, reported)
    store.set_months([])
    entry = asyncio.run(ctrl.refresh())
    assert entry.status is RequestState.ERROR
    assert entry.error == NO_MONTH_SELECTED
    assert fetch.calls == []

    state = ctrl.render()
    assert state.kind is ViewKind.INFO
    assert state.message == NO_MONTH_SELECTED
    assert reported == []

    # selecting months again warrants a fetch
    store.set_months([1])
    assert ctrl.needs_refresh() is True
    asyncio.run(ctrl.refresh())
    assert ctrl.render().kind is ViewKind.READY


def test_empty_series_renders_empty_state(store, reported):
    ctrl = _controller(store, FakeFetch(), reported)
    asyncio.run(ctrl.refresh())
    store.set_reference_visibility(False)
    store.set_model_visibility(DEFAULT_MODEL_GROUP_ID, MODEL, False)
    state = ctrl.render()
    assert state.kind is ViewKind.EMPTY
    assert state.series_set.is_empty
    assert reported == []


def test_unsupported_plot_renders_unsupported(store, reported):
    fetch = FakeFetch()
    ctrl = _controller(store, fetch, reported)
    store.set_active_plot("vmro3_zm")
    assert ctrl.fetch_params() is None
    assert ctrl.needs_refresh() is False
    asyncio.run(ctrl.refresh())
    assert fetch.calls == []
    state = ctrl.render()
    assert state.kind is ViewKind.UNSUPPORTED
    assert "vmro3_zm" in state.message


def test_stale_response_is_discarded():
    """A slow response for an old configuration must not overwrite the newer one."""
    store = ConfigStore()

    async def scenario():
        release_first = asyncio.Event()
        calls = []

        async def fetch(params):
            calls.append(params)
            if len(calls) == 1:
                await release_first.wait()
                return PlotPayload(series={"stale-model": {StatisticKind.MEAN: [1.0]}}, x_start=params.start_year)
            return _payload(params)

        ctrl = PlotViewController(store, fetch)
        first = asyncio.ensure_future(ctrl.refresh())
        await asyncio.sleep(0)
        store.set_months([7])
        await ctrl.refresh()
        release_first.set()
        await first
        return ctrl, calls

    ctrl, calls = asyncio.run(scenario())
    assert len(calls) == 2
    state = ctrl.render()
    assert state.kind is ViewKind.READY
    assert ctrl.cache.get(PlotId.TCO3_ZM).params.months == (7,)
    assert "stale-model-mean" not in state.series_set.names


def test_render_is_cached_per_version(store, reported):
    ctrl = _controller(store, FakeFetch(), reported)
    asyncio.run(ctrl.refresh())
    first = ctrl.render()
    assert ctrl.render() is first
    store.set_plot_title("New")
    second = ctrl.render()
    assert second is not first
    assert second.version == store.version


def test_store_change_during_fetch_uses_latest_configuration(store, reported):
    """A model added while the fetch is in flight is skipped, not an error."""

    async def scenario():
        ctrl = _controller(store, FakeFetch(), reported)
        task = asyncio.ensure_future(ctrl.refresh())
        await asyncio.sleep(0)
        store.add_models(DEFAULT_MODEL_GROUP_ID, ["late-model"])
        await task
        return ctrl

    ctrl = asyncio.run(scenario())
    state = ctrl.render()
    assert state.kind is ViewKind.READY
    assert state.series_set.model_names() == [MODEL]
    assert ctrl.needs_refresh() is True


def test_included_model_names(store, reported):
    ctrl = _controller(store, FakeFetch(), reported)
    store.add_models(DEFAULT_MODEL_GROUP_ID, ["m2"])
    store.set_model_visibility(DEFAULT_MODEL_GROUP_ID, "m2", False)
    assert ctrl.included_model_names() == [MODEL]
    asyncio.run(ctrl.refresh())
    ctrl.render()
    assert ctrl.included_model_names() == [MODEL]
