# Demo app for PlotViewWidget
"""Demo application for PlotViewController + PlotViewWidget.

Uses synthetic data by default. Set O3PLOT_API_URL to fetch from a running
O3as API instead. The configuration is restored from and saved to the
per-user plot config file.
"""

from __future__ import annotations

import asyncio
import os

import numpy as np
from nicegui import ui

from o3plot.api.client import O3asClient
from o3plot.plot_config.config_store import ConfigStore
from o3plot.plot_config.conventions import ALL_REGIONS_ORDERED, month_label
from o3plot.plot_config.model_state import StatisticKind
from o3plot.plot_config.plot_state import PlotId
from o3plot.plot_config.store_config import StoreConfig
from o3plot.plot_view.plot_view_controller import PlotViewController
from o3plot.plot_view.plot_view_widget import PlotViewWidget
from o3plot.plot_view.request_cache import FetchParams, PlotPayload
from o3plot.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

DEMO_GROUP_ID = "demo"
DEMO_MODELS = [
    "CCMI-1_CESM1-WACCM_refC2",
    "CCMI-1_CHASER-MIROC-ESM_refC2",
    "CCMI-1_EMAC-L47MA_refC2",
]


async def synthetic_fetch(params: FetchParams) -> PlotPayload:
    """Random-walk ozone columns per model; return years per region."""
    await asyncio.sleep(0.5)
    rng = np.random.default_rng(abs(hash(params)) % (2**32))
    band = (params.lat_max - params.lat_min) / 180.0
    series: dict[str, dict[StatisticKind, list]] = {}
    for i, model_id in enumerate(dict.fromkeys((params.ref_model,) + params.model_ids)):
        if params.plot_id.uses_years:
            n = params.end_year - params.start_year + 1
            base = 300.0 + 10.0 * band + i * 2.0 + np.cumsum(rng.normal(0, 0.6, n))
            values = {
                StatisticKind.MEAN: base,
                StatisticKind.MEDIAN: base + rng.normal(0, 1.0, n),
                StatisticKind.DERIVATIVE: np.gradient(base) + 300.0,
                StatisticKind.PERCENTILE: base + 5.0,
            }
        else:
            n = len(ALL_REGIONS_ORDERED)
            base = rng.integers(2030, 2080, n).astype(float)
            values = {
                StatisticKind.MEAN: base,
                StatisticKind.MEDIAN: base + rng.integers(-3, 4, n),
                StatisticKind.DERIVATIVE: base - 5.0,
                StatisticKind.PERCENTILE: base + 5.0,
            }
        series[model_id] = {kind: [round(float(v), 2) for v in arr] for kind, arr in values.items()}
    return PlotPayload(series=series, x_start=params.start_year)


def build_controls(store: ConfigStore) -> None:
    """A few controls writing straight into the store."""
    with ui.row().classes("w-full items-end gap-4"):
        ui.select(
            {PlotId.TCO3_ZM.value: "tco3_zm", PlotId.TCO3_RETURN.value: "tco3_return", "vmro3_zm": "vmro3_zm"},
            value=getattr(store.plot.plot_id, "value", store.plot.plot_id),
            label="Plot type",
            on_change=lambda e: store.set_active_plot(e.value),
        ).classes("w-40")
        months = ui.select(
            {m: month_label([m]) for m in range(1, 13)},
            value=list(store.plot.general.months),
            multiple=True,
            label="Months",
            on_change=lambda e: store.set_months(sorted(e.value or [])),
        ).classes("w-64")
        months.props("use-chips")
        ui.checkbox(
            "Reference line",
            value=store.reference.visible,
            on_change=lambda e: store.set_reference_visibility(e.value),
        )
        ui.checkbox(
            "Relative to reference",
            value=store.reference.is_offset_applied,
            on_change=lambda e: store.set_reference_offset_applied(e.value),
        )

    with ui.row().classes("w-full items-end gap-4"):
        for kind in StatisticKind:
            ui.checkbox(
                kind.value,
                value=store.model_groups[DEMO_GROUP_ID].statistic_visible(kind),
                on_change=lambda e, k=kind: store.set_group_statistic_visibility(DEMO_GROUP_ID, k, e.value),
            )
        lat_min = ui.number("Lat min", value=store.plot.general.min_lat, min=-90, max=90).classes("w-24")
        lat_max = ui.number("Lat max", value=store.plot.general.max_lat, min=-90, max=90).classes("w-24")

        def _apply_location() -> None:
            try:
                store.set_location(lat_min.value, lat_max.value)
            except ValueError as e:
                ui.notify(str(e), type="warning")

        ui.button("Apply band", on_click=_apply_location).classes("text-sm")


# ----------------------------
# Demo entrypoint
# ----------------------------

def main() -> None:
    configure_logging(level=os.environ.get("O3PLOT_LOG_LEVEL", "INFO"))

    config = StoreConfig.load()
    store = config.get_store()
    if DEMO_GROUP_ID not in store.model_groups:
        store.add_model_group(DEMO_GROUP_ID, "Demo models", DEMO_MODELS)

    def _persist(_change) -> None:
        config.set_store(store)
        config.save()

    store.subscribe(_persist)

    if os.environ.get("O3PLOT_API_URL"):
        fetch = O3asClient().fetch_plot_data_async
        logger.info("Using the O3as API")
    else:
        fetch = synthetic_fetch
        logger.info("Using synthetic data")

    @ui.page("/")
    def index() -> None:
        ui.page_title("o3plot demo")
        controller = PlotViewController(
            store,
            fetch,
            report_error=lambda msg: ui.notify(msg, type="negative"),
        )
        with ui.column().classes("w-full gap-4 p-4"):
            build_controls(store)
            widget = PlotViewWidget(controller)
            widget.build()
        ui.context.client.on_disconnect(widget.close)

    ui.run(reload=False, title="o3plot demo")


if __name__ in {"__main__", "__mp_main__"}:
    main()
