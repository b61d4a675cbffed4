"""Export of rendered plots (PDF) and synthesized series (CSV)."""

from o3plot.export.csv_export import series_to_frame, write_csv
from o3plot.export.pdf_report import create_pdf

__all__ = [
    "create_pdf",
    "series_to_frame",
    "write_csv",
]
