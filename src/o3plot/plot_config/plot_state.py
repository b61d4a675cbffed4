"""Plot settings for o3plot.

This module defines the PlotId enum and the dataclasses holding the general
(shared) and per-plot-type display settings. The x display range has a
different shape per plot type: a year interval for the zonal-mean time
series, a selection of region indices for the return/recovery plot.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from o3plot.plot_config.conventions import (
    ALL_REGIONS_ORDERED,
    DEFAULT_LOCATION,
    DEFAULT_MONTHS,
)
from o3plot.plot_config.errors import IllegalPlotState
from o3plot.utils.logging import get_logger

logger = get_logger(__name__)


def finite_or_none(value: Any) -> Optional[float]:
    """Return value as float if it is a finite number, else None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


class PlotId(str, Enum):
    """Supported plot types."""
    TCO3_ZM = "tco3_zm"          # zonal-mean time series, x axis in years
    TCO3_RETURN = "tco3_return"  # return/recovery per region, categorical x axis

    @classmethod
    def parse(cls, value: Union["PlotId", str]) -> "PlotId":
        """Return the member for value, or raise IllegalPlotState."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise IllegalPlotState(value, "not a supported plot type") from None

    @property
    def uses_years(self) -> bool:
        return self is PlotId.TCO3_ZM


@dataclass(frozen=True)
class YearRange:
    """Year interval shown on the x axis (inclusive)."""
    min_x: int
    max_x: int

    def contains(self, x: float) -> bool:
        return self.min_x <= x <= self.max_x

    def to_dict(self) -> dict[str, Any]:
        return {"years": {"minX": self.min_x, "maxX": self.max_x}}


@dataclass(frozen=True)
class RegionSelection:
    """Selected region indices (into ALL_REGIONS_ORDERED), sorted."""
    regions: tuple[int, ...]

    def contains(self, x: float) -> bool:
        return x in self.regions

    def labels(self) -> list[str]:
        return [ALL_REGIONS_ORDERED[i] for i in self.regions]

    def to_dict(self) -> dict[str, Any]:
        return {"regions": list(self.regions)}


XRange = Union[YearRange, RegionSelection]


@dataclass(frozen=True)
class YRange:
    """Y display range; a bound of None means unset."""
    min_y: Optional[float] = None
    max_y: Optional[float] = None

    @property
    def is_unset(self) -> bool:
        return self.min_y is None and self.max_y is None

    def to_dict(self) -> dict[str, Any]:
        return {"minY": self.min_y, "maxY": self.max_y}


def x_range_from_value(value: Any) -> XRange:
    """Convert a range object or its dict form ({"years": ...} / {"regions": ...}).

    Raises:
        ValueError: If value has neither shape.
    """
    if isinstance(value, (YearRange, RegionSelection)):
        return value
    if isinstance(value, dict):
        if "years" in value and isinstance(value["years"], dict):
            years = value["years"]
            return YearRange(min_x=int(years["minX"]), max_x=int(years["maxX"]))
        if "regions" in value:
            return region_selection(value["regions"])
    raise ValueError(f"Not a display x range: {value!r}")


def region_selection(regions: Any) -> RegionSelection:
    """Build a RegionSelection, sorted and de-duplicated.

    Raises:
        ValueError: If an index does not address ALL_REGIONS_ORDERED.
    """
    try:
        indices = sorted({int(i) for i in regions})
    except OverflowError:
        raise ValueError(f"Invalid region indices {regions!r}") from None
    for i in indices:
        if not 0 <= i < len(ALL_REGIONS_ORDERED):
            raise ValueError(f"Region index {i} out of range 0..{len(ALL_REGIONS_ORDERED) - 1}")
    return RegionSelection(regions=tuple(indices))


@dataclass
class PlotSpecificSettings:
    """Settings owned by a single plot type."""
    title: str
    display_x_range: XRange
    display_y_range: YRange
    user_region_name: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "title": self.title,
            "displayXRange": self.display_x_range.to_dict(),
            "displayYRange": self.display_y_range.to_dict(),
        }
        if self.user_region_name is not None:
            d["userRegionName"] = self.user_region_name
        return d


@dataclass
class GeneralSettings:
    """Settings shared by all plot types."""
    min_lat: float = DEFAULT_LOCATION[0]
    max_lat: float = DEFAULT_LOCATION[1]
    months: list[int] = field(default_factory=lambda: list(DEFAULT_MONTHS))

    def to_dict(self) -> dict[str, Any]:
        return {
            "location": {"minLat": self.min_lat, "maxLat": self.max_lat},
            "months": list(self.months),
        }


def default_plot_specific_settings() -> dict[PlotId, PlotSpecificSettings]:
    """Default per-plot settings: OCTS years 1960-2100, all regions for return plots."""
    return {
        PlotId.TCO3_ZM: PlotSpecificSettings(
            title="OCTS Plot",
            display_x_range=YearRange(min_x=1960, max_x=2100),
            display_y_range=YRange(min_y=280, max_y=330),
        ),
        PlotId.TCO3_RETURN: PlotSpecificSettings(
            title="Return/Recovery Plot",
            display_x_range=RegionSelection(regions=tuple(range(len(ALL_REGIONS_ORDERED)))),
            display_y_range=YRange(min_y=2000, max_y=2100),
        ),
    }


@dataclass
class PlotSettings:
    """Active plot id plus general and per-plot-type settings.

    plot_id may hold an unsupported id (a plain str) selected from outside;
    anything that needs the active plot-type settings then raises IllegalPlotState.
    """
    plot_id: Union[PlotId, str] = PlotId.TCO3_ZM
    general: GeneralSettings = field(default_factory=GeneralSettings)
    specific: dict[PlotId, PlotSpecificSettings] = field(default_factory=default_plot_specific_settings)

    @property
    def is_supported(self) -> bool:
        return isinstance(self.plot_id, PlotId)

    @property
    def active(self) -> PlotSpecificSettings:
        if not isinstance(self.plot_id, PlotId):
            raise IllegalPlotState(self.plot_id, "not a supported plot type")
        return self.specific[self.plot_id]

    def to_dict(self) -> dict[str, Any]:
        return {
            "plotId": getattr(self.plot_id, "value", self.plot_id),
            "generalSettings": self.general.to_dict(),
            "plotSpecificSettings": {pid.value: s.to_dict() for pid, s in self.specific.items()},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlotSettings":
        """Tolerant loader: unknown plot ids and malformed entries fall back to defaults."""
        settings = cls()
        try:
            settings.plot_id = PlotId.parse(data.get("plotId", PlotId.TCO3_ZM.value))
        except IllegalPlotState:
            logger.warning(f"Unknown plotId {data.get('plotId')!r} in plot settings, using default")

        general = data.get("generalSettings")
        if isinstance(general, dict):
            location = general.get("location") or {}
            try:
                settings.general.min_lat = float(location.get("minLat", DEFAULT_LOCATION[0]))
                settings.general.max_lat = float(location.get("maxLat", DEFAULT_LOCATION[1]))
            except (TypeError, ValueError):
                logger.warning(f"Invalid location {location!r} in plot settings, using default")
                settings.general.min_lat, settings.general.max_lat = DEFAULT_LOCATION
            months = general.get("months")
            if isinstance(months, list):
                settings.general.months = list(dict.fromkeys(
                    m for m in months
                    if isinstance(m, int) and not isinstance(m, bool) and 1 <= m <= 12
                ))

        specific = data.get("plotSpecificSettings")
        if isinstance(specific, dict):
            for key, raw in specific.items():
                try:
                    pid = PlotId.parse(key)
                except IllegalPlotState:
                    logger.warning(f"Ignoring settings for unknown plot {key!r}")
                    continue
                if not isinstance(raw, dict):
                    continue
                target = settings.specific[pid]
                target.title = str(raw.get("title", target.title))
                target.user_region_name = raw.get("userRegionName")
                try:
                    x_range = x_range_from_value(raw.get("displayXRange"))
                    if isinstance(x_range, YearRange) == pid.uses_years:
                        target.display_x_range = x_range
                    else:
                        logger.warning(f"displayXRange shape does not fit plot {pid.value}, using default")
                except (KeyError, TypeError, ValueError, OverflowError) as e:
                    logger.warning(f"Invalid displayXRange for plot {pid.value}: {e}, using default")
                y_raw = raw.get("displayYRange")
                if isinstance(y_raw, dict):
                    # same finite rule as the live setter; a bad bound is left unset
                    bounds = [y_raw.get("minY"), y_raw.get("maxY")]
                    min_y, max_y = (finite_or_none(b) for b in bounds)
                    if [min_y, max_y].count(None) != bounds.count(None):
                        logger.warning(f"Invalid displayYRange {y_raw!r} for plot {pid.value}, dropping bad bounds")
                    target.display_y_range = YRange(min_y=min_y, max_y=max_y)
        return settings
