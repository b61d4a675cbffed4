"""Client for the O3as data service."""

from o3plot.api.client import ApiSettings, O3asClient, parse_plot_payload

__all__ = [
    "ApiSettings",
    "O3asClient",
    "parse_plot_payload",
]
