"""Core interfaces for index and byte-range fetch backends."""

from __future__ import annotations

from abc import ABC, abstractmethod


def byte_range_header(offset: int, length: int) -> str:
    """Return the inclusive HTTP ``Range`` value covering one message."""

    if offset < 0 or length <= 0:
        raise ValueError(f"Invalid byte range offset={offset} length={length}")
    return f"bytes={offset}-{offset + length - 1}"


class FetchBackend(ABC):
    """Abstract base class for remote fetch backends."""

    @abstractmethod
    def fetch_index(self, url: str) -> str:
        """Return the full text body of an index resource."""

    @abstractmethod
    def fetch_range(self, url: str, offset: int, length: int) -> bytes:
        """Return exactly ``length`` bytes of ``url`` starting at ``offset``."""
