"""Merge utilities for combining per-file index record sets."""

from __future__ import annotations

from typing import Mapping, Sequence

import pandas as pd


def merge_records(record_sets: Mapping[str, Sequence[Mapping[str, object]]]) -> pd.DataFrame:
    """
    Union the raw records of several index files into one frame.

    Keys are the data identifiers the records belong to; they end up in the
    ``path`` column. Columns missing from some files are left empty.
    """

    frames = []
    for path, records in record_sets.items():
        if not records:
            continue
        frame = pd.DataFrame.from_records(list(records))
        frame["path"] = path
        frames.append(frame)
    if not frames:
        return pd.DataFrame()
    return pd.concat(frames, ignore_index=True, sort=False)
