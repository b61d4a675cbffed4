"""
o3plot: ozone plot configuration, series synthesis and NiceGUI plot view.

This package provides:
- ConfigStore: model groups, plot settings and reference baseline
- PlotViewController: fetch lifecycle, series and Plotly options for the active plot
- O3asClient: requests based client for the O3as data service
- PDF / CSV export of a rendered plot

For logging configuration in standalone scripts/demos:
    ```python
    from o3plot.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```

When used as a library, logging is handled by the parent application's configuration.
"""

import logging

from o3plot.utils.logging import configure_logging, get_logger

from o3plot.plot_config import ConfigStore, PlotId, StatisticKind
from o3plot.plot_view import PlotViewController, RequestCache

# Ensure o3plot logger has NullHandler so logs don't propagate to root
# when no application has configured logging. Applications/demos call
# configure_logging() to replace this with a real handler.
_logger = logging.getLogger("o3plot")
if not _logger.handlers:
    _logger.addHandler(logging.NullHandler())

__all__ = [
    "ConfigStore",
    "PlotId",
    "PlotViewController",
    "RequestCache",
    "StatisticKind",
    "configure_logging",
    "get_logger",
]

__version__ = "0.1.0"
