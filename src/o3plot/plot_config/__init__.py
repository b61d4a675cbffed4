"""Plot configuration state: model groups, plot settings and reference baseline."""

from o3plot.plot_config.config_store import ConfigStore, StoreChange, StoreSnapshot
from o3plot.plot_config.errors import (
    FetchFailure,
    IllegalPlotState,
    InvalidStatisticKind,
    O3PlotError,
    UnknownGroup,
    UnknownModel,
)
from o3plot.plot_config.model_state import ModelGroup, ModelSettings, StatisticKind
from o3plot.plot_config.plot_state import PlotId, RegionSelection, YearRange, YRange
from o3plot.plot_config.reference_state import ReferenceSettings

__all__ = [
    "ConfigStore",
    "FetchFailure",
    "IllegalPlotState",
    "InvalidStatisticKind",
    "ModelGroup",
    "ModelSettings",
    "O3PlotError",
    "PlotId",
    "ReferenceSettings",
    "RegionSelection",
    "StatisticKind",
    "StoreChange",
    "StoreSnapshot",
    "UnknownGroup",
    "UnknownModel",
    "YRange",
    "YearRange",
]
