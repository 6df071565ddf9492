"""Helpers for reading GRIB messages with cfgrib and extracting point values."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Callable

import logging

import numpy as np
import pandas as pd
import xarray as xr

from eupp.pipeline import label_fields, merge_records, normalize
from eupp.storage import read_sidecar, sidecar_path

if TYPE_CHECKING:
    import cfgrib

logger = logging.getLogger(__name__)

Grid = tuple[np.ndarray, np.ndarray, np.ndarray]
Sampler = Callable[[np.ndarray, np.ndarray, np.ndarray, float, float], float]


def get_coord_names(ds: xr.Dataset) -> tuple[str, str]:
    """Identify the latitude/longitude coordinate names in the dataset."""

    if "latitude" in ds.coords:
        lat_name = "latitude"
    elif "lat" in ds.coords:
        lat_name = "lat"
    else:
        raise KeyError("Could not find latitude coordinate in dataset.")

    if "longitude" in ds.coords:
        lon_name = "longitude"
    elif "lon" in ds.coords:
        lon_name = "lon"
    else:
        raise KeyError("Could not find longitude coordinate in dataset.")

    return lat_name, lon_name


def _message_grid(message: cfgrib.Message) -> Grid:
    """Return ``(lats, lons, values)`` of a regular lat/lon message."""

    grid_type = message.get("gridType")
    if grid_type != "regular_ll":
        raise ValueError(f"Only regular_ll grids are supported, got {grid_type!r}")
    ni = int(message["Ni"])
    nj = int(message["Nj"])
    lats = np.asarray(message["latitudes"], dtype=float).reshape(nj, ni)[:, 0]
    lons = np.asarray(message["longitudes"], dtype=float).reshape(nj, ni)[0, :]
    values = np.asarray(message["values"], dtype=float).reshape(nj, ni)
    return lats, lons, values


def _message_record(message: cfgrib.Message) -> dict[str, object]:
    """Describe a message with the same keys a remote index uses."""

    record: dict[str, object] = {
        "param": message["shortName"],
        "date": str(message["dataDate"]),
        "time": f"{int(message['dataTime']):04d}",
        "step": str(message["endStep"]),
        "levtype": message["typeOfLevel"],
        "levelist": message.get("level"),
        "type": message.get("dataType"),
        "_offset": message.get("offset"),
        "_length": message.get("totalLength"),
    }
    if int(message.get("numberOfForecastsInEnsemble", 0) or 0) > 0:
        record["number"] = message.get("perturbationNumber")
    return record


def read_grib(path: Path, *, with_inventory: bool) -> tuple[list[Grid], pd.DataFrame | None]:
    """
    Read every message grid of a GRIB file, optionally describing each message.
    """

    import cfgrib

    grids: list[Grid] = []
    records: list[dict[str, object]] = []
    for _, message in cfgrib.FileStream(str(path)).items():
        grids.append(_message_grid(message))
        if with_inventory:
            records.append(_message_record(message))
    inventory = normalize(merge_records({path.name: records})) if with_inventory else None
    return grids, inventory


def _wrap_longitude(lons: np.ndarray, lon: float) -> float:
    lon_min = float(np.nanmin(lons))
    lon_max = float(np.nanmax(lons))
    if lon < 0.0 and lon_min >= 0.0 and lon_max > 180.0:
        return lon + 360.0
    if lon > 180.0 and lon_max <= 180.0:
        return lon - 360.0
    return lon


def _ascending(lats: np.ndarray, lons: np.ndarray, values: np.ndarray) -> Grid:
    if lats[0] > lats[-1]:
        lats = lats[::-1]
        values = values[::-1, :]
    if lons[0] > lons[-1]:
        lons = lons[::-1]
        values = values[:, ::-1]
    return lats, lons, values


def _close_seam(lons: np.ndarray, values: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Repeat the first column at +360 degrees on grids that wrap around the globe."""

    if len(lons) < 2:
        return lons, values
    spacing = lons[1] - lons[0]
    if not np.isclose(lons[-1] + spacing - lons[0], 360.0):
        return lons, values
    return np.append(lons, lons[0] + 360.0), np.hstack([values, values[:, :1]])


def _prepare(lats: np.ndarray, lons: np.ndarray, values: np.ndarray, lon: float) -> tuple[Grid, float]:
    lats, lons, values = _ascending(lats, lons, values)
    lons, values = _close_seam(lons, values)
    return (lats, lons, values), _wrap_longitude(lons, lon)


def _bracket(axis: np.ndarray, x: float) -> tuple[int, int, float] | None:
    """Return neighbouring indices and the weight of the upper one."""

    if x < axis[0] or x > axis[-1]:
        return None
    hi = int(np.searchsorted(axis, x, side="left"))
    if axis[hi] == x:
        return hi, hi, 0.0
    lo = hi - 1
    return lo, hi, float((x - axis[lo]) / (axis[hi] - axis[lo]))


def nearest_value(lats: np.ndarray, lons: np.ndarray, values: np.ndarray, lat: float, lon: float) -> float:
    """Value of the grid point closest to ``(lat, lon)``; NaN outside the grid."""

    (lats, lons, values), lon = _prepare(lats, lons, values, lon)
    if _bracket(lats, lat) is None or _bracket(lons, lon) is None:
        return float("nan")
    idx_lat = int(np.nanargmin(np.abs(lats - lat)))
    idx_lon = int(np.nanargmin(np.abs(lons - lon)))
    return float(values[idx_lat, idx_lon])


def bilinear_value(lats: np.ndarray, lons: np.ndarray, values: np.ndarray, lat: float, lon: float) -> float:
    """
    Bilinear interpolation on a regular grid; NaN outside the grid.

    Grids spanning the full circle interpolate across the 0/360 seam.
    """

    (lats, lons, values), lon = _prepare(lats, lons, values, lon)
    by = _bracket(lats, lat)
    bx = _bracket(lons, lon)
    if by is None or bx is None:
        return float("nan")
    j0, j1, wy = by
    i0, i1, wx = bx
    lower = values[j0, i0] * (1.0 - wx) + values[j0, i1] * wx
    upper = values[j1, i0] * (1.0 - wx) + values[j1, i1] * wx
    return float(lower * (1.0 - wy) + upper * wy)


def sample_points(
    grids: list[Grid],
    inventory: pd.DataFrame,
    points: pd.DataFrame,
    *,
    name_column: str | None = None,
    bilinear: bool = True,
) -> pd.DataFrame:
    """
    Sample every grid at every point and return a long frame.

    ``grids`` and ``inventory`` rows must be in the same (message) order.
    """

    if len(grids) != len(inventory):
        raise ValueError(
            f"Mismatch between grib inventory ({len(inventory)} fields) "
            f"and number of messages read ({len(grids)})"
        )
    sampler: Sampler = bilinear_value if bilinear else nearest_value
    meta = label_fields(inventory)
    meta_columns = ["init", "valid", "step", "param", "levtype", "level", "number", "label"]
    frames: list[pd.DataFrame] = []
    for _, point in points.iterrows():
        lat = float(point["lat"])
        lon = float(point["lon"])
        frame = meta[meta_columns].copy()
        if name_column is not None:
            frame[name_column] = point[name_column]
        frame["lat"] = lat
        frame["lon"] = lon
        frame["value"] = [sampler(glat, glon, gval, lat, lon) for glat, glon, gval in grids]
        frames.append(frame)
    if not frames:
        return pd.DataFrame(columns=[*meta_columns, "lat", "lon", "value"])
    return pd.concat(frames, ignore_index=True)


def to_wide(
    long_df: pd.DataFrame,
    *,
    name_column: str | None = None,
    ignore_init: bool = False,
) -> pd.DataFrame:
    """
    Pivot field labels into columns.

    With ``ignore_init`` only the valid time identifies a row, which merges
    analysis fields and short-range forecast fields describing the same time.
    """

    time_columns = ["valid"] if ignore_init else ["init", "valid", "step"]
    index = [*([name_column] if name_column else []), "lat", "lon", *time_columns]
    wide = long_df.pivot(index=index, columns="label", values="value").reset_index()
    wide.columns.name = None
    labels = sorted(column for column in wide.columns if column not in index)
    return wide[[*index, *labels]]


def interpolate_grib(
    path: Path | str,
    points: pd.DataFrame,
    *,
    name_column: str | None = None,
    bilinear: bool = True,
    wide: bool = True,
    ignore_init: bool = False,
) -> pd.DataFrame:
    """
    Extract point values from a GRIB file written by ``download_gridded``.

    Field meta information is taken from the ``.meta`` sidecar when present,
    otherwise from the GRIB messages themselves.

    Parameters
    ----------
    path : str or pathlib.Path
        GRIB file to read.
    points : pandas.DataFrame
        Locations with ``lat`` and ``lon`` columns in degrees.
    name_column : str, optional
        Column of ``points`` carried through to the result.
    bilinear : bool
        Bilinear interpolation; ``False`` picks the nearest grid point.
    wide : bool
        Pivot fields into columns instead of returning a long frame.
    ignore_init : bool
        Identify wide rows by valid time only (see :func:`to_wide`).
    """

    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"GRIB file not found: {path}")
    missing = [column for column in ("lat", "lon") if column not in points]
    if missing:
        raise KeyError(f"points lack required columns: {missing}")
    if name_column is not None and name_column not in points:
        raise KeyError(f"points lack name column {name_column!r}")

    meta_path = sidecar_path(path)
    if meta_path.exists():
        logger.info("%s exists; using it for field meta information", meta_path)
        grids, _ = read_grib(path, with_inventory=False)
        inventory = read_sidecar(meta_path)
    else:
        logger.info("%s does not exist; reading field meta information from messages", meta_path)
        grids, inventory = read_grib(path, with_inventory=True)

    long_df = sample_points(grids, inventory, points, name_column=name_column, bilinear=bilinear)
    if not wide:
        return long_df
    return to_wide(long_df, name_column=name_column, ignore_init=ignore_init)
