"""Tabular export of synthesized series (pandas)."""

from __future__ import annotations

from pathlib import Path
from typing import Union

import pandas as pd

from o3plot.plot_view.series_synthesizer import SeriesSet


def series_to_frame(series_set: SeriesSet) -> pd.DataFrame:
    """One column per series (canonical order), indexed by x.

    Series with different x values are outer-joined; missing values are NaN.
    """
    columns: dict[str, pd.Series] = {}
    for s in series_set.series:
        xs = [p[0] for p in s.points]
        ys = [p[1] for p in s.points]
        columns[s.name] = pd.Series(ys, index=pd.Index(xs, name="x"), dtype=float)
    if not columns:
        return pd.DataFrame(index=pd.Index([], name="x", dtype=float))
    df = pd.concat(columns, axis=1).sort_index()
    df.index.name = "x"
    return df


def write_csv(series_set: SeriesSet, path: Union[str, Path]) -> Path:
    """Write series_to_frame() to path and return the path."""
    path = Path(path)
    series_to_frame(series_set).to_csv(path)
    return path
