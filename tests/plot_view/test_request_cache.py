"""Unit tests for RequestCache lifecycle and last-fetch-wins."""

import pytest

from o3plot.plot_config.plot_state import PlotId
from o3plot.plot_view.request_cache import PlotPayload, RequestCache, RequestState


@pytest.fixture
def cache():
    return RequestCache()


def test_unknown_plot_is_idle(cache):
    entry = cache.get(PlotId.TCO3_ZM)
    assert entry.status is RequestState.IDLE
    assert entry.data is None
    assert entry.request_id == 0


def test_begin_then_resolve(cache):
    rid = cache.begin(PlotId.TCO3_ZM)
    assert cache.get(PlotId.TCO3_ZM).status is RequestState.LOADING

    payload = PlotPayload(series={"m": {}}, x_start=1959)
    assert cache.resolve(PlotId.TCO3_ZM, rid, payload) is True
    entry = cache.get(PlotId.TCO3_ZM)
    assert entry.status is RequestState.SUCCESS
    assert entry.data is payload
    assert entry.request_id == rid


def test_begin_then_reject(cache):
    rid = cache.begin(PlotId.TCO3_ZM)
    assert cache.reject(PlotId.TCO3_ZM, rid, "boom") is True
    entry = cache.get(PlotId.TCO3_ZM)
    assert entry.status is RequestState.ERROR
    assert entry.error == "boom"


def test_error_then_new_fetch_goes_back_to_loading(cache):
    rid = cache.begin(PlotId.TCO3_ZM)
    cache.reject(PlotId.TCO3_ZM, rid, "boom")
    rid2 = cache.begin(PlotId.TCO3_ZM)
    assert rid2 != rid
    entry = cache.get(PlotId.TCO3_ZM)
    assert entry.status is RequestState.LOADING
    assert entry.error is None


def test_stale_response_is_discarded(cache):
    old = cache.begin(PlotId.TCO3_ZM)
    new = cache.begin(PlotId.TCO3_ZM)

    new_payload = PlotPayload(series={"new": {}})
    assert cache.resolve(PlotId.TCO3_ZM, new, new_payload) is True
    assert cache.resolve(PlotId.TCO3_ZM, old, PlotPayload(series={"old": {}})) is False
    assert cache.reject(PlotId.TCO3_ZM, old, "late error") is False

    entry = cache.get(PlotId.TCO3_ZM)
    assert entry.status is RequestState.SUCCESS
    assert entry.data is new_payload


def test_completing_twice_is_ignored(cache):
    rid = cache.begin(PlotId.TCO3_ZM)
    cache.resolve(PlotId.TCO3_ZM, rid, PlotPayload())
    assert cache.reject(PlotId.TCO3_ZM, rid, "late") is False
    assert cache.get(PlotId.TCO3_ZM).status is RequestState.SUCCESS


def test_entries_are_per_plot(cache):
    zm = cache.begin(PlotId.TCO3_ZM)
    cache.begin(PlotId.TCO3_RETURN)
    cache.resolve(PlotId.TCO3_ZM, zm, PlotPayload())
    assert cache.get(PlotId.TCO3_ZM).status is RequestState.SUCCESS
    assert cache.get(PlotId.TCO3_RETURN).status is RequestState.LOADING


def test_fail_records_error_without_fetch(cache):
    rid = cache.fail(PlotId.TCO3_ZM, "No month selected")
    entry = cache.get(PlotId.TCO3_ZM)
    assert entry.status is RequestState.ERROR
    assert entry.error == "No month selected"
    assert entry.request_id == rid
