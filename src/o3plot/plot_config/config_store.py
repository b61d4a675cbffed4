"""Configuration store for o3plot.

ConfigStore owns the three configuration domains of a plot: model groups,
plot display settings and the reference baseline. It is constructed
explicitly and passed by reference (no module-level singleton).

Every mutation validates its arguments first and only then changes state, so
a rejected call leaves the store untouched. Effective changes bump a version
counter and notify subscribers with a StoreChange; calls that change nothing
(idempotent adds, clamped ranges) do not.

Read access goes through the module-level select_* functions, which take the
store explicitly.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Union

from o3plot.plot_config.conventions import (
    ALL_REGIONS_ORDERED,
    DEFAULT_MODEL_GROUP_ID,
    DEFAULT_MODEL_GROUP_NAME,
    DEFAULT_MODEL_IDS,
)
from o3plot.plot_config.errors import IllegalPlotState, UnknownGroup, UnknownModel
from o3plot.plot_config.model_state import ModelGroup, ModelSettings, StatisticKind
from o3plot.plot_config.plot_state import (
    PlotId,
    PlotSettings,
    PlotSpecificSettings,
    RegionSelection,
    XRange,
    YearRange,
    YRange,
    finite_or_none,
    region_selection,
)
from o3plot.plot_config.reference_state import ReferenceSettings
from o3plot.utils.logging import get_logger

logger = get_logger(__name__)

DOMAIN_MODELS = "models"
DOMAIN_PLOT = "plot"
DOMAIN_REFERENCE = "reference"


@dataclass(frozen=True)
class StoreChange:
    """Notification sent to subscribers after an effective mutation."""
    version: int
    domain: str      # "models" | "plot" | "reference"
    operation: str   # name of the mutating method


@dataclass(frozen=True)
class StoreSnapshot:
    """Deep copy of the store state for read-only consumers."""
    version: int
    model_groups: dict[str, ModelGroup]
    plot: PlotSettings
    reference: ReferenceSettings


StoreListener = Callable[[StoreChange], None]


def default_model_groups() -> dict[str, ModelGroup]:
    """The initial 'all' group holding the default model."""
    return {
        DEFAULT_MODEL_GROUP_ID: ModelGroup(
            name=DEFAULT_MODEL_GROUP_NAME,
            models={model_id: ModelSettings() for model_id in DEFAULT_MODEL_IDS},
        )
    }


class ConfigStore:
    """Model groups, plot settings and reference settings of one plot view.

    Attributes:
        model_groups: Group id -> ModelGroup; insertion order is the group order.
        plot: Active plot id with general and per-plot-type settings.
        reference: Reference baseline.
        version: Incremented on every effective mutation.
    """

    def __init__(
        self,
        *,
        model_groups: Optional[dict[str, ModelGroup]] = None,
        plot: Optional[PlotSettings] = None,
        reference: Optional[ReferenceSettings] = None,
    ) -> None:
        self.model_groups: dict[str, ModelGroup] = (
            model_groups if model_groups is not None else default_model_groups()
        )
        self.plot: PlotSettings = plot if plot is not None else PlotSettings()
        self.reference: ReferenceSettings = reference if reference is not None else ReferenceSettings()
        self.version: int = 0
        self._listeners: list[StoreListener] = []

    # -----------------------------
    # Change signalling
    # -----------------------------
    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register listener for StoreChange events; returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _changed(self, domain: str, operation: str) -> None:
        self.version += 1
        change = StoreChange(version=self.version, domain=domain, operation=operation)
        for listener in list(self._listeners):
            listener(change)

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            version=self.version,
            model_groups=copy.deepcopy(self.model_groups),
            plot=copy.deepcopy(self.plot),
            reference=copy.deepcopy(self.reference),
        )

    # -----------------------------
    # Lookup helpers
    # -----------------------------
    def _group(self, group_id: str) -> ModelGroup:
        group = self.model_groups.get(group_id)
        if group is None:
            logger.warning(f"Rejected: unknown model group {group_id!r}")
            raise UnknownGroup(group_id)
        return group

    def _model(self, group_id: str, model_id: str) -> ModelSettings:
        group = self.model_groups.get(group_id)
        settings = group.models.get(model_id) if group is not None else None
        if settings is None:
            logger.warning(f"Rejected: unknown model {model_id!r} in group {group_id!r}")
            raise UnknownModel(group_id, model_id)
        return settings

    # -----------------------------
    # Model groups
    # -----------------------------
    def add_model_group(self, group_id: str, name: str, model_ids: Iterable[str] = ()) -> None:
        """Append a new group with default settings for model_ids.

        Raises:
            ValueError: If group_id already exists.
        """
        if group_id in self.model_groups:
            raise ValueError(f"Model group {group_id!r} already exists")
        self.model_groups[group_id] = ModelGroup(
            name=name,
            models={model_id: ModelSettings() for model_id in dict.fromkeys(model_ids)},
        )
        logger.info(f"Added model group {group_id!r} ({len(self.model_groups[group_id].models)} models)")
        self._changed(DOMAIN_MODELS, "add_model_group")

    def remove_model_group(self, group_id: str) -> None:
        self._group(group_id)
        del self.model_groups[group_id]
        logger.info(f"Removed model group {group_id!r}")
        self._changed(DOMAIN_MODELS, "remove_model_group")

    def add_models(self, group_id: str, model_ids: Iterable[str]) -> None:
        """Append model ids not yet in the group, in input order, with default settings.

        Ids already present are left as they are.

        Raises:
            UnknownGroup: If group_id does not exist.
        """
        group = self._group(group_id)
        new_ids = [m for m in dict.fromkeys(model_ids) if m not in group.models]
        if not new_ids:
            return
        for model_id in new_ids:
            group.models[model_id] = ModelSettings()
        logger.info(f"Added {len(new_ids)} model(s) to group {group_id!r}: {new_ids}")
        self._changed(DOMAIN_MODELS, "add_models")

    def remove_models(self, group_id: str, model_ids: Iterable[str]) -> None:
        """Remove model ids (list entry and settings); ids not in the group are ignored.

        Raises:
            UnknownGroup: If group_id does not exist.
        """
        group = self._group(group_id)
        removed = [m for m in dict.fromkeys(model_ids) if m in group.models]
        if not removed:
            return
        for model_id in removed:
            del group.models[model_id]
        logger.info(f"Removed {len(removed)} model(s) from group {group_id!r}: {removed}")
        self._changed(DOMAIN_MODELS, "remove_models")

    def set_model_visibility(self, group_id: str, model_id: str, visible: bool) -> None:
        settings = self._model(group_id, model_id)
        if settings.is_visible == bool(visible):
            return
        settings.is_visible = bool(visible)
        logger.debug(f"Model {model_id!r} in {group_id!r} visible={settings.is_visible}")
        self._changed(DOMAIN_MODELS, "set_model_visibility")

    def set_model_statistic(
        self,
        group_id: str,
        model_id: str,
        kind: Union[StatisticKind, str],
        included: bool,
    ) -> None:
        """Include/exclude one statistic for a single model.

        Raises:
            UnknownModel: If group or model id does not resolve.
            InvalidStatisticKind: If kind is not a statistic kind.
        """
        settings = self._model(group_id, model_id)
        sv = StatisticKind.parse(kind)
        if settings.included(sv) == bool(included):
            return
        settings.set_included(sv, included)
        logger.debug(f"Model {model_id!r} in {group_id!r}: {sv.value}={bool(included)}")
        self._changed(DOMAIN_MODELS, "set_model_statistic")

    def set_group_statistic_visibility(
        self,
        group_id: str,
        kind: Union[StatisticKind, str],
        included: bool,
    ) -> None:
        """Set the group-wide switch for one statistic.

        Raises:
            InvalidStatisticKind: If kind is not a statistic kind.
            UnknownGroup: If group_id does not exist.
        """
        sv = StatisticKind.parse(kind)
        group = self._group(group_id)
        if group.statistic_visible(sv) == bool(included):
            return
        group.visible_sv[sv] = bool(included)
        logger.debug(f"Group {group_id!r}: {sv.value}={bool(included)}")
        self._changed(DOMAIN_MODELS, "set_group_statistic_visibility")

    def set_model_color(self, group_id: str, model_id: str, color: Optional[str]) -> None:
        """Override the color of a model; None restores the default palette color."""
        settings = self._model(group_id, model_id)
        if settings.color == color:
            return
        settings.color = color
        self._changed(DOMAIN_MODELS, "set_model_color")

    def set_group_hidden(self, group_id: str, hidden: bool) -> None:
        group = self._group(group_id)
        if group.hidden == bool(hidden):
            return
        group.hidden = bool(hidden)
        logger.debug(f"Group {group_id!r} hidden={group.hidden}")
        self._changed(DOMAIN_MODELS, "set_group_hidden")

    # -----------------------------
    # Plot settings
    # -----------------------------
    def set_active_plot(self, plot_id: Union[PlotId, str]) -> None:
        """Select the active plot.

        Unsupported ids are stored as given so the view can report them;
        plot-type specific setters then raise IllegalPlotState.
        """
        try:
            new_id: Union[PlotId, str] = PlotId.parse(plot_id)
        except IllegalPlotState:
            logger.warning(f"Active plot set to unsupported plot type {plot_id!r}")
            new_id = str(plot_id)
        if new_id == self.plot.plot_id:
            return
        self.plot.plot_id = new_id
        logger.info(f"Active plot: {plot_id}")
        self._changed(DOMAIN_PLOT, "set_active_plot")

    def set_plot_title(self, title: str) -> None:
        active = self.plot.active
        if active.title == title:
            return
        active.title = title
        self._changed(DOMAIN_PLOT, "set_plot_title")

    def set_location(self, min_lat: float, max_lat: float) -> None:
        """Set the latitude band shared by all plots.

        Like the y range, a call with a missing or non-finite bound is dropped.

        Raises:
            ValueError: If not -90 <= min_lat <= max_lat <= 90.
        """
        lo = finite_or_none(min_lat)
        hi = finite_or_none(max_lat)
        if lo is None or hi is None:
            logger.debug(f"Ignoring latitude band [{min_lat!r}, {max_lat!r}]")
            return
        if not -90.0 <= lo <= hi <= 90.0:
            raise ValueError(f"Invalid latitude band [{min_lat}, {max_lat}]")
        general = self.plot.general
        if (general.min_lat, general.max_lat) == (lo, hi):
            return
        general.min_lat, general.max_lat = lo, hi
        logger.info(f"Location: lat {lo}..{hi}")
        self._changed(DOMAIN_PLOT, "set_location")

    def set_months(self, months: Iterable[int]) -> None:
        """Set the selected months (1-12, order kept, no duplicates). Empty is allowed.

        Raises:
            ValueError: If a month is out of range or repeated.
        """
        new_months = list(months)
        for m in new_months:
            if isinstance(m, bool) or not isinstance(m, int) or not 1 <= m <= 12:
                raise ValueError(f"Invalid month {m!r}, expected an integer 1-12")
        if len(set(new_months)) != len(new_months):
            raise ValueError(f"Duplicate months in {new_months}")
        if new_months == self.plot.general.months:
            return
        self.plot.general.months = new_months
        logger.info(f"Months: {new_months}")
        self._changed(DOMAIN_PLOT, "set_months")

    def set_display_x_range(self, x_range: Union[XRange, dict[str, Any]]) -> None:
        """Set the x display range of the active plot.

        Accepts a YearRange or {"years": {"minX", "maxX"}} for the zonal-mean plot,
        a RegionSelection or {"regions": [...]} for the return/recovery plot.

        Raises:
            IllegalPlotState: If the active plot is unsupported or the shape does not fit it.
            ValueError: If a year interval is reversed or a region index is out of range.
        """
        plot_id = self.plot.plot_id
        if not isinstance(plot_id, PlotId):
            raise IllegalPlotState(plot_id, "a non valid plot is current plot")

        if plot_id is PlotId.TCO3_ZM:
            new_range = self._parse_year_range(plot_id, x_range)
        elif plot_id is PlotId.TCO3_RETURN:
            new_range = self._parse_region_selection(plot_id, x_range)
        else:
            raise IllegalPlotState(plot_id, "no x range shape for this plot")

        active = self.plot.active
        if active.display_x_range == new_range:
            return
        active.display_x_range = new_range
        logger.debug(f"Display x range for {plot_id.value}: {new_range}")
        self._changed(DOMAIN_PLOT, "set_display_x_range")

    @staticmethod
    def _parse_year_range(plot_id: PlotId, value: Any) -> YearRange:
        if isinstance(value, YearRange):
            years = value
        elif isinstance(value, dict) and isinstance(value.get("years"), dict):
            raw = value["years"]
            try:
                years = YearRange(min_x=int(raw["minX"]), max_x=int(raw["maxX"]))
            except (KeyError, TypeError, ValueError, OverflowError):
                raise ValueError(f"Invalid year range {raw!r}") from None
        else:
            raise IllegalPlotState(plot_id, f"expected a year range, got {value!r}")
        if years.min_x > years.max_x:
            raise ValueError(f"Reversed year range {years.min_x}..{years.max_x}")
        return years

    @staticmethod
    def _parse_region_selection(plot_id: PlotId, value: Any) -> RegionSelection:
        if isinstance(value, RegionSelection):
            return region_selection(value.regions)
        if isinstance(value, dict) and "regions" in value and "years" not in value:
            return region_selection(value["regions"])
        raise IllegalPlotState(plot_id, f"expected a region selection, got {value!r}")

    def set_display_y_range(self, min_y: Any, max_y: Any) -> None:
        """Set the y display range of the active plot.

        A call with a missing or non-finite bound is dropped without error;
        the values usually come straight from text fields.

        Raises:
            IllegalPlotState: If the active plot is unsupported and both bounds are finite.
        """
        self._set_y_range(lambda: self.plot.active, self.plot.plot_id, min_y, max_y, "set_display_y_range")

    def set_display_y_range_for_plot(self, plot_id: Union[PlotId, str], min_y: Any, max_y: Any) -> None:
        """Like set_display_y_range, for a given plot type instead of the active one."""
        pid = PlotId.parse(plot_id)
        self._set_y_range(lambda: self.plot.specific[pid], pid, min_y, max_y, "set_display_y_range_for_plot")

    def _set_y_range(
        self,
        target: Callable[[], PlotSpecificSettings],
        plot_id: Union[PlotId, str],
        min_y: Any,
        max_y: Any,
        operation: str,
    ) -> None:
        lo = finite_or_none(min_y)
        hi = finite_or_none(max_y)
        if lo is None or hi is None:
            logger.debug(f"Ignoring y range [{min_y!r}, {max_y!r}] for {plot_id}")
            return
        new_range = YRange(min_y=lo, max_y=hi)
        settings = target()
        if settings.display_y_range == new_range:
            return
        settings.display_y_range = new_range
        self._changed(DOMAIN_PLOT, operation)

    def set_user_region_name(self, name: Optional[str]) -> None:
        """Label of a user-defined region on the return/recovery plot."""
        target = self.plot.specific[PlotId.TCO3_RETURN]
        if target.user_region_name == name:
            return
        target.user_region_name = name
        self._changed(DOMAIN_PLOT, "set_user_region_name")

    # -----------------------------
    # Reference settings
    # -----------------------------
    def set_reference_year(self, year: int) -> None:
        if self.reference.year == year:
            return
        self.reference.year = year
        logger.info(f"Reference year: {year}")
        self._changed(DOMAIN_REFERENCE, "set_reference_year")

    def set_reference_model(self, model: str) -> None:
        if self.reference.model == model:
            return
        self.reference.model = model
        logger.info(f"Reference model: {model}")
        self._changed(DOMAIN_REFERENCE, "set_reference_model")

    def set_reference_visibility(self, visible: bool) -> None:
        if self.reference.visible == visible:
            return
        self.reference.visible = visible
        self._changed(DOMAIN_REFERENCE, "set_reference_visibility")

    def set_reference_offset_applied(self, is_offset_applied: bool) -> None:
        if self.reference.is_offset_applied == is_offset_applied:
            return
        self.reference.is_offset_applied = is_offset_applied
        self._changed(DOMAIN_REFERENCE, "set_reference_offset_applied")

    # -----------------------------
    # Serialization
    # -----------------------------
    def to_dict(self) -> dict[str, Any]:
        return {
            "models": {
                "modelGroupList": list(self.model_groups),
                "modelGroups": {gid: g.to_dict() for gid, g in self.model_groups.items()},
            },
            "plot": self.plot.to_dict(),
            "reference": self.reference.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConfigStore":
        """Restore a store from to_dict() output; missing sections use defaults."""
        model_groups: Optional[dict[str, ModelGroup]] = None
        models_raw = data.get("models")
        if isinstance(models_raw, dict) and isinstance(models_raw.get("modelGroups"), dict):
            groups_raw = models_raw["modelGroups"]
            order = models_raw.get("modelGroupList")
            if not isinstance(order, list):
                order = list(groups_raw)
            model_groups = {}
            for gid in order:
                raw = groups_raw.get(gid)
                if isinstance(raw, dict):
                    model_groups[str(gid)] = ModelGroup.from_dict(raw)
                else:
                    logger.warning(f"Model group {gid!r} listed without settings, skipping")

        plot_raw = data.get("plot")
        reference_raw = data.get("reference")
        return cls(
            model_groups=model_groups,
            plot=PlotSettings.from_dict(plot_raw) if isinstance(plot_raw, dict) else None,
            reference=ReferenceSettings.from_dict(reference_raw) if isinstance(reference_raw, dict) else None,
        )


# -----------------------------
# Selectors
# -----------------------------
def select_plot_id(store: ConfigStore) -> Union[PlotId, str]:
    return store.plot.plot_id


def select_plot_title(store: ConfigStore) -> str:
    return store.plot.active.title


def select_location(store: ConfigStore) -> tuple[float, float]:
    return store.plot.general.min_lat, store.plot.general.max_lat


def select_months(store: ConfigStore) -> list[int]:
    return list(store.plot.general.months)


def select_x_range(store: ConfigStore) -> XRange:
    return store.plot.active.display_x_range


def select_y_range(store: ConfigStore) -> YRange:
    return store.plot.active.display_y_range


def select_user_region_name(store: ConfigStore) -> Optional[str]:
    return store.plot.specific[PlotId.TCO3_RETURN].user_region_name


def select_model_groups(store: ConfigStore) -> dict[str, ModelGroup]:
    return store.model_groups


def select_model_group(store: ConfigStore, group_id: str) -> ModelGroup:
    group = store.model_groups.get(group_id)
    if group is None:
        raise UnknownGroup(group_id)
    return group


def select_reference(store: ConfigStore) -> ReferenceSettings:
    return store.reference


def select_all_model_ids(store: ConfigStore) -> list[str]:
    """Model ids of all groups, first occurrence order, without duplicates."""
    ids: dict[str, None] = {}
    for group in store.model_groups.values():
        for model_id in group.models:
            ids.setdefault(model_id, None)
    return list(ids)


def select_region_labels(store: ConfigStore) -> list[str]:
    x_range = store.plot.specific[PlotId.TCO3_RETURN].display_x_range
    if isinstance(x_range, RegionSelection):
        return x_range.labels()
    return list(ALL_REGIONS_ORDERED)
