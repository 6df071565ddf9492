"""Resolve, parse and filter remote index files into an inventory."""

from __future__ import annotations

import json
import logging
import warnings

import pandas as pd

from eupp.backends.base import FetchBackend
from eupp.backends.http_backend import HttpBackend
from eupp.errors import EmptyResultWarning
from eupp.pipeline import filter_inventory, merge_records, normalize
from eupp.selection import Selection
from eupp.sources import SourceLocator, data_identifier
from eupp.storage import IndexCache

LOGGER = logging.getLogger("eupp.inventory")


def parse_index(text: str) -> list[dict[str, object]]:
    """Parse an index body holding one JSON object per non-empty line."""

    records: list[dict[str, object]] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Malformed index line {lineno}: {exc}") from exc
        if not isinstance(record, dict):
            raise ValueError(f"Index line {lineno} is not an object")
        records.append(record)
    return records


class IndexResolver:
    """Fetch (or load cached) index files and merge them into one inventory."""

    def __init__(
        self,
        *,
        locator: SourceLocator | None = None,
        backend: FetchBackend | None = None,
    ) -> None:
        self.locator = locator or SourceLocator()
        self.backend = backend or HttpBackend()

    def fetch(self, selection: Selection) -> pd.DataFrame:
        """
        Return the unified, normalized (but unfiltered) inventory for a selection.
        """

        cache = IndexCache(selection.cache_dir) if selection.cache_dir is not None else None
        record_sets: dict[str, list[dict[str, object]]] = {}
        for identifier in self.locator.resolve(selection, want_index=True):
            url = self.locator.url(identifier)
            LOGGER.info("Accessing %s", identifier)
            record_sets[data_identifier(identifier)] = self._load(url, cache)
        return normalize(merge_records(record_sets))

    def _load(self, url: str, cache: IndexCache | None) -> list[dict[str, object]]:
        if cache is None:
            return parse_index(self.backend.fetch_index(url))
        cached = cache.load(url)
        if cached is not None:
            LOGGER.info("Index cached, loading %s", cache.path_for(url))
            return cached
        records = parse_index(self.backend.fetch_index(url))
        path = cache.save(url, records)
        LOGGER.info("Index not cached, stored as %s", path)
        return records


def get_inventory(
    selection: Selection,
    *,
    locator: SourceLocator | None = None,
    backend: FetchBackend | None = None,
) -> pd.DataFrame:
    """
    Return the inventory rows matching a selection, in retrieval order.

    Issues :class:`EmptyResultWarning` when nothing matches.
    """

    resolver = IndexResolver(locator=locator, backend=backend)
    inventory = filter_inventory(resolver.fetch(selection), selection)
    if inventory.empty:
        LOGGER.warning("No field match found for %s", selection.kind.name)
        warnings.warn(
            "No field match found; check the selection settings.",
            EmptyResultWarning,
            stacklevel=2,
        )
    return inventory
