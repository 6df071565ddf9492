"""Normalization helpers for parsed index records."""

from __future__ import annotations

import re

import pandas as pd

# Canonical inventory columns and their dtypes; extra index keys follow them.
SCHEMA: dict[str, str] = {
    "path": "object",
    "offset": "int64",
    "length": "int64",
    "param": "object",
    "type": "object",
    "levtype": "object",
    "level": "Int64",
    "number": "Int64",
    "init": "datetime64[ns]",
    "step": "int64",
    "valid": "datetime64[ns]",
}

RENAMES = {"levelist": "level"}
CONTROL_TYPE = "cf"

_LEADING_UNDERSCORE = re.compile(r"^_(?=[A-Za-z])")
_TRAILING_DIGITS = r"(\d+)$"


def empty_inventory() -> pd.DataFrame:
    """Return an inventory without rows but with every canonical column."""

    return coerce_schema(pd.DataFrame())


def coerce_schema(df: pd.DataFrame) -> pd.DataFrame:
    """
    Cast the canonical columns to their dtypes and put them first.

    Missing canonical columns are added holding the "no value" sentinel of
    their dtype (``pd.NA`` / ``NaT`` / ``None``).
    """

    result = df.copy()
    for column, dtype in SCHEMA.items():
        if column not in result:
            result[column] = pd.Series([None] * len(result), index=result.index, dtype="object")
        if dtype == "Int64":
            result[column] = pd.to_numeric(result[column], errors="coerce").astype("Int64")
        elif dtype.startswith("datetime64"):
            values = pd.to_datetime(result[column])
            if values.dt.tz is not None:
                values = values.dt.tz_convert(None)
            result[column] = values.astype(dtype)
        elif dtype == "int64":
            result[column] = result[column].astype("int64")
        else:
            result[column] = _as_object(result[column])
    extras = [column for column in result.columns if column not in SCHEMA]
    for column in extras:
        if result[column].dtype == object:
            result[column] = _as_object(result[column])
    return result[[*SCHEMA, *extras]].reset_index(drop=True)


def _as_object(series: pd.Series) -> pd.Series:
    series = series.astype(object)
    return series.where(series.notna(), None)


def parse_step(raw: pd.Series) -> pd.Series:
    """
    Extract the trailing integer of raw steps, e.g. ``"12"`` -> 12, ``"24-48"`` -> 48.
    """

    text = raw.astype(str).str.strip()
    digits = text.str.extract(_TRAILING_DIGITS, expand=False)
    if digits.isna().any():
        bad = text[digits.isna()].unique().tolist()
        raise ValueError(f"Cannot parse forecast step from {bad}")
    return digits.astype("int64")


def normalize(raw: pd.DataFrame) -> pd.DataFrame:
    """
    Turn raw index records into the canonical inventory layout.

    Derives ``init`` from ``date``/``time``, ``step`` from the trailing
    integer of the raw step and recomputes ``valid = init + step hours``.
    Control-run records (``type == "cf"``) always get member ``0``.
    """

    if raw.empty:
        return empty_inventory()

    df = raw.copy()
    df.columns = [_LEADING_UNDERSCORE.sub("", str(column)) for column in df.columns]
    df = df.rename(columns=RENAMES)

    missing = [column for column in ("date", "time", "step") if column not in df]
    if missing:
        raise ValueError(f"Index records lack required fields: {missing}")

    time_of_day = df["time"].astype(str).str.strip().str.zfill(4)
    df["init"] = pd.to_datetime(df["date"].astype(str).str.strip() + time_of_day, format="%Y%m%d%H%M")
    df["step"] = parse_step(df["step"])
    df["valid"] = df["init"] + pd.to_timedelta(df["step"], unit="h")

    if "number" in df:
        number = pd.to_numeric(df["number"], errors="coerce").astype("Int64")
    else:
        number = pd.Series(pd.NA, index=df.index, dtype="Int64")
    if "type" in df:
        number = number.mask(df["type"] == CONTROL_TYPE, 0)
    df["number"] = number

    df = df.drop(columns=["date", "time"])
    return coerce_schema(df)
