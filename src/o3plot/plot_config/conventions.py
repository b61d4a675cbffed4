"""Shared constants and sentinels for o3plot.

Single source of truth for default settings and sentinel values so the
store, the fetch client and the plot view stay consistent.
"""

# Error message recorded in the request cache when a fetch is requested with an
# empty month selection. The plot view shows it as guidance, not as a failure.
NO_MONTH_SELECTED = "No month selected"

DEFAULT_MONTHS: list[int] = [1, 2, 12]
DEFAULT_LOCATION: tuple[float, float] = (-90.0, 90.0)

DEFAULT_REF_MODEL = "SBUV_GSFC_merged-SAT-ozone"
DEFAULT_REF_YEAR = 1980

# Years requested from the API; the display range is a sub-window of this.
DEFAULT_START_YEAR = 1959
DEFAULT_END_YEAR = 2100

# Categorical x axis of the return/recovery plot. Region indices refer into this list.
ALL_REGIONS_ORDERED: list[str] = [
    "Antarctic(Oct)",
    "SH mid-lat",
    "Tropics",
    "NH mid-lat",
    "Arctic(Mar)",
    "Near global",
    "Global",
]

DEFAULT_MODEL_GROUP_ID = "all"
DEFAULT_MODEL_GROUP_NAME = "All OCTS models"
DEFAULT_MODEL_IDS: list[str] = ["CCMI-1_ACCESS_ACCESS-CCM-refC2"]


def month_label(months: list[int]) -> str:
    """Short label for a month selection, e.g. 'Jan, Feb, Dec' or 'none'."""
    names = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
    if not months:
        return "none"
    return ", ".join(names[m - 1] for m in months)
