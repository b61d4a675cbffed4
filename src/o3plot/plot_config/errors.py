"""Exception types raised by o3plot.

Configuration errors (UnknownGroup, UnknownModel, InvalidStatisticKind,
IllegalPlotState) signal a caller bug and are raised before any state is
touched. FetchFailure wraps a runtime error from the data service.
"""

from __future__ import annotations

from typing import Any, Optional


class O3PlotError(Exception):
    """Base class for all o3plot errors."""


class UnknownGroup(O3PlotError, KeyError):
    """Raised when a model-group id does not exist in the store."""

    def __init__(self, group_id: str) -> None:
        self.group_id = group_id
        super().__init__(f"Tried to access model-group with groupId {group_id!r} that is not defined")

    def __str__(self) -> str:
        return str(self.args[0])


class UnknownModel(O3PlotError, KeyError):
    """Raised when a group or model id does not resolve to a model."""

    def __init__(self, group_id: str, model_id: str) -> None:
        self.group_id = group_id
        self.model_id = model_id
        super().__init__(
            f"Tried to access model {model_id!r} in group {group_id!r} that is not defined"
        )

    def __str__(self) -> str:
        return str(self.args[0])


class InvalidStatisticKind(O3PlotError, ValueError):
    """Raised for a statistical-value kind outside mean|median|derivative|percentile."""

    def __init__(self, kind: Any) -> None:
        self.kind = kind
        super().__init__(
            f"{kind!r} is not a valid statistical value (mean|median|derivative|percentile)"
        )


class IllegalPlotState(O3PlotError, RuntimeError):
    """Raised when the active plot id does not fit the requested operation."""

    def __init__(self, plot_id: Any, detail: Optional[str] = None) -> None:
        self.plot_id = plot_id
        msg = f"Illegal internal state for plot {plot_id!r}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class FetchFailure(O3PlotError):
    """Raised by the fetch client; carries a human-readable message."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
