"""Backend implementations for fetching index files and byte ranges."""

from __future__ import annotations

from .base import FetchBackend, byte_range_header
from .http_backend import HttpBackend

__all__ = ["FetchBackend", "HttpBackend", "byte_range_header"]
