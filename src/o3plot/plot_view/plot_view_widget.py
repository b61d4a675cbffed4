"""NiceGUI rendering of a PlotViewController.

PlotViewWidget shows whatever PlotViewController.render() returns: a spinner
while loading, an informational note, an error text, an empty-state note, or
the Plotly figure. It re-renders on store changes and schedules a refresh
when the fetch parameters changed.

The PDF export rasterizes the chart in the browser (Plotly.toImage) and
lays it out server side with create_pdf().
"""

from __future__ import annotations

import asyncio
import base64
from typing import Callable, Optional

from nicegui import ui

from o3plot.export.csv_export import series_to_frame
from o3plot.export.pdf_report import create_pdf
from o3plot.plot_config.config_store import StoreChange, select_plot_title
from o3plot.plot_view.plot_view_controller import PlotViewController, PlotViewState, ViewKind
from o3plot.utils.logging import get_logger

logger = get_logger(__name__)

PLOT_HEIGHT = "h-[32rem]"
PDF_IMAGE_SIZE_PX = (1200, 600)
PDF_CAPTURE_TIMEOUT_S = 10.0


class PlotViewWidget:
    """Plot area bound to a PlotViewController.

    **Public API:**

    - **build(container=None)** - Build the plot area and issue the first fetch.
    - **update()** - Re-render from the controller (no fetch).
    - **export_pdf(image_bytes)** - Offer the PDF report for a rendered chart image as download.
    - **close()** - Stop listening to the store.
    """

    def __init__(self, controller: PlotViewController) -> None:
        self.controller = controller
        self._container: Optional[ui.column] = None
        self._plot: Optional[ui.plotly] = None
        self._rendered_kind: Optional[ViewKind] = None
        self._rendered_key: Optional[tuple[int, int]] = None
        self._refresh_task: Optional[asyncio.Task[None]] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    def build(self, *, container: Optional[ui.element] = None) -> None:
        parent = container if container is not None else ui.column().classes("w-full")
        with parent:
            with ui.row().classes("w-full items-center gap-3"):
                ui.button("Reload data", on_click=lambda: self._schedule_refresh(force=True)).classes("text-sm")
                ui.button("Download CSV", on_click=self._on_download_csv).classes("text-sm")
                ui.button("Export PDF", on_click=self._on_export_pdf).classes("text-sm")
            self._container = ui.column().classes(f"w-full {PLOT_HEIGHT}")
        self._unsubscribe = self.controller.store.subscribe(self._on_store_change)
        self.update()
        self._schedule_refresh()

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_store_change(self, change: StoreChange) -> None:
        logger.debug(f"Store changed (v{change.version}, {change.domain}.{change.operation})")
        if self.controller.needs_refresh():
            self._schedule_refresh()
        else:
            self.update()

    def _schedule_refresh(self, force: bool = False) -> None:
        # a running refresh is not cancelled; its result is discarded by the cache if outdated
        self._refresh_task = asyncio.create_task(self._refresh(force))

    async def _refresh(self, force: bool) -> None:
        refresh = asyncio.ensure_future(self.controller.refresh(force=force))
        await asyncio.sleep(0)  # let the request begin so the loading state shows
        self.update()
        await refresh
        self.update()

    def update(self) -> None:
        if self._container is None:
            return
        state = self.controller.render()
        key = (state.version, state.request_id)
        if key == self._rendered_key and state.kind is self._rendered_kind:
            return

        if state.kind is ViewKind.READY and self._plot is not None and self._rendered_kind is ViewKind.READY:
            # same widget, new data: no rebuild
            self._plot.update_figure(state.figure)
            self._plot.update()
        else:
            self._rebuild(state)
        self._rendered_key = key
        self._rendered_kind = state.kind

    def _rebuild(self, state: PlotViewState) -> None:
        assert self._container is not None
        self._container.clear()
        self._plot = None
        with self._container:
            if state.kind is ViewKind.READY:
                self._plot = ui.plotly(state.figure).classes("w-full h-full")
            elif state.kind is ViewKind.LOADING:
                with ui.column().classes("w-full h-full items-center justify-center"):
                    ui.spinner(size="5em")
                    ui.label(state.message or "").classes("text-gray-600")
            elif state.kind is ViewKind.ERROR:
                ui.label(f"Error: {state.message}").classes("w-full text-center text-red-700")
            else:
                # UNSUPPORTED, INFO (no months selected), EMPTY
                ui.label(state.message or "").classes("w-full p-6 text-center text-lg bg-blue-50 text-sky-900")

    def _on_download_csv(self) -> None:
        state = self.controller.render()
        if state.series_set is None or state.series_set.is_empty:
            ui.notify("Nothing to export yet", type="warning")
            return
        csv_bytes = series_to_frame(state.series_set).to_csv().encode("utf-8")
        ui.download(csv_bytes, "o3plot_series.csv")

    async def _on_export_pdf(self) -> None:
        if self._plot is None or self._rendered_kind is not ViewKind.READY:
            ui.notify("Nothing to export yet", type="warning")
            return
        width, height = PDF_IMAGE_SIZE_PX
        js = (
            f"Plotly.toImage(getHtmlElement({self._plot.id}), "
            f'{{format: "png", width: {width}, height: {height}}})'
        )
        try:
            data_url = await self._plot.client.run_javascript(js, timeout=PDF_CAPTURE_TIMEOUT_S)
        except TimeoutError:
            logger.warning("Chart image capture timed out")
            ui.notify("Could not capture the chart", type="negative")
            return
        # "data:image/png;base64,<payload>"
        image_bytes = base64.b64decode(str(data_url).split(",", 1)[-1])
        self.export_pdf(image_bytes)

    def export_pdf(self, image_bytes: bytes) -> bytes:
        """Build the PDF report for image_bytes and send it to the browser."""
        pdf = create_pdf(
            image_bytes,
            self.controller.included_model_names(),
            title=select_plot_title(self.controller.store),
        )
        ui.download(pdf, "o3plot.pdf")
        logger.info(f"Exported PDF ({len(pdf)} bytes)")
        return pdf
