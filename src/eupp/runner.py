"""Orchestrate inventory resolution, downloads and container conversion."""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

import pandas as pd
import xarray as xr

from eupp.backends.base import FetchBackend
from eupp.backends.cfgrib_helpers import get_coord_names
from eupp.backends.http_backend import HttpBackend
from eupp.finalize import FormatFinalizer
from eupp.inventory import get_inventory
from eupp.retriever import SegmentRetriever
from eupp.selection import BoundingBox, Selection
from eupp.sources import SourceLocator

LOGGER = logging.getLogger("eupp.runner")


class DownloadRunner:
    """Execute a full validate -> inventory -> download -> convert workflow."""

    def __init__(
        self,
        selection: Selection,
        output_file: Path | str,
        *,
        output_format: str = "grib",
        overwrite: bool = False,
        netcdf_kind: int = 3,
        locator: SourceLocator | None = None,
        backend: FetchBackend | None = None,
    ) -> None:
        self.selection = selection
        self.output_file = Path(output_file)
        self.output_format = output_format
        self.overwrite = overwrite
        self.locator = locator or SourceLocator()
        self.backend = backend or HttpBackend()
        self.finalizer = FormatFinalizer(netcdf_kind=netcdf_kind)

    def validate(self) -> None:
        """Check the output path and container before touching the network."""

        path = self.output_file
        if path.is_dir():
            raise IsADirectoryError(f"'output_file' is an existing directory: {path}")
        if path.exists() and not self.overwrite:
            raise FileExistsError(f"'output_file' exists: {path}")
        if not path.parent.is_dir():
            raise FileNotFoundError(f"Cannot write 'output_file' to {path.parent}, directory does not exist.")
        self.finalizer.validate(self.selection, self.output_format)

    def run(self) -> pd.DataFrame:
        """Download the selection and return the inventory it was built from."""

        self.validate()
        inventory = get_inventory(self.selection, locator=self.locator, backend=self.backend)
        retriever = SegmentRetriever(locator=self.locator, backend=self.backend)
        if self.output_format == "grib":
            retriever.retrieve(inventory, self.output_file, sidecar=True)
            return inventory
        if inventory.empty:
            # grib_to_netcdf rejects input without messages.
            LOGGER.warning("Nothing to convert; %s not written", self.output_file)
            return inventory
        with tempfile.TemporaryDirectory(prefix="eupp-") as tmpdir:
            grib_path = retriever.retrieve(inventory, Path(tmpdir) / "download.grb", sidecar=False)
            self.finalizer.finalize(grib_path, self.output_file, self.selection)
        return inventory


def download_gridded(
    selection: Selection,
    output_file: Path | str,
    output_format: str = "grib",
    overwrite: bool = False,
    netcdf_kind: int = 3,
    *,
    locator: SourceLocator | None = None,
    backend: FetchBackend | None = None,
) -> pd.DataFrame:
    """
    Download the fields of ``selection`` into ``output_file``.

    Parameters
    ----------
    selection : Selection
        What to download.
    output_file : str or pathlib.Path
        Destination; its directory must exist.
    output_format : {"grib", "nc"}
        ``grib`` stores the messages as served plus a ``.meta`` sidecar with
        the inventory; ``nc`` converts with ecCodes' ``grib_to_netcdf`` and
        requires a single date. An empty selection writes an empty ``grib``
        file but no ``nc`` file.
    overwrite : bool
        Replace an existing ``output_file``.
    netcdf_kind : int
        ``-k`` flag passed to ``grib_to_netcdf`` (1 to 4).

    Returns
    -------
    pandas.DataFrame
        The inventory rows the file was assembled from.
    """

    runner = DownloadRunner(
        selection,
        output_file,
        output_format=output_format,
        overwrite=overwrite,
        netcdf_kind=netcdf_kind,
        locator=locator,
        backend=backend,
    )
    return runner.run()


def subset_area(ds: xr.Dataset, area: BoundingBox) -> xr.Dataset:
    """Cut a dataset down to a bounding box, whatever the axis orientation."""

    lat_name, lon_name = get_coord_names(ds)
    lat = ds[lat_name].values
    lon = ds[lon_name].values
    lat_slice = slice(area.top, area.bottom) if lat[0] > lat[-1] else slice(area.bottom, area.top)
    lon_slice = slice(area.right, area.left) if lon[0] > lon[-1] else slice(area.left, area.right)
    return ds.sel({lat_name: lat_slice, lon_name: lon_slice})


def get_gridded(
    selection: Selection,
    *,
    netcdf_kind: int = 3,
    locator: SourceLocator | None = None,
    backend: FetchBackend | None = None,
) -> xr.Dataset:
    """
    Download a single-date selection as NetCDF and return it as an in-memory dataset.

    An empty selection gives an empty dataset.
    """

    with tempfile.TemporaryDirectory(prefix="eupp-") as tmpdir:
        nc_path = Path(tmpdir) / "gridded.nc"
        inventory = download_gridded(
            selection,
            nc_path,
            "nc",
            netcdf_kind=netcdf_kind,
            locator=locator,
            backend=backend,
        )
        if inventory.empty:
            return xr.Dataset()
        with xr.open_dataset(nc_path) as ds:
            data = ds.load()
    if selection.area is not None:
        data = subset_area(data, selection.area)
    return data
