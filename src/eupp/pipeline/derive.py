"""Derived field labels used when reshaping extracted values."""

from __future__ import annotations

import pandas as pd

PARAM_RENAMES = {
    "2t": "t2m",
    "10u": "u10m",
    "10v": "v10m",
    "10fg": "fg10m",
}
PRESSURE_LEVTYPES = frozenset({"pl", "isobaricInhPa"})


def label_fields(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add a ``label`` column naming each field uniquely.

    Short names are made friendlier (``2t`` -> ``t2m``), pressure-level
    fields get their level appended (``t500``) and ensemble fields their
    member number (``t2m_3``).
    """

    result = df.copy()
    labels = result["param"].astype(str).map(lambda param: PARAM_RENAMES.get(param, param))
    if "levtype" in result and "level" in result:
        level = result["level"].astype("Int64")
        pressure = result["levtype"].isin(PRESSURE_LEVTYPES) & level.notna()
        labels = labels.where(~pressure, labels + level.astype(str))
    if "number" in result:
        number = result["number"].astype("Int64")
        labels = labels.where(number.isna(), labels + "_" + number.astype(str))
    result["label"] = labels.astype(str)
    return result
