"""Partial retrieval of EUPP benchmark GRIB archives via remote indexes."""

from __future__ import annotations

from eupp.backends.cfgrib_helpers import interpolate_grib
from eupp.errors import (
    ConfigurationError,
    ConversionError,
    EmptyResultWarning,
    EuppError,
    RetrievalError,
)
from eupp.inventory import IndexResolver, get_inventory
from eupp.retriever import SegmentRetriever
from eupp.runner import DownloadRunner, download_gridded, get_gridded
from eupp.selection import BoundingBox, DatasetKind, EnsembleType, Level, Product, Selection
from eupp.sources import SourceLocator
from eupp.storage import read_sidecar, write_sidecar

__all__ = [
    "BoundingBox",
    "ConfigurationError",
    "ConversionError",
    "DatasetKind",
    "DownloadRunner",
    "EmptyResultWarning",
    "EnsembleType",
    "EuppError",
    "IndexResolver",
    "Level",
    "Product",
    "RetrievalError",
    "SegmentRetriever",
    "Selection",
    "SourceLocator",
    "download_gridded",
    "get_gridded",
    "get_inventory",
    "interpolate_grib",
    "read_sidecar",
    "write_sidecar",
]
