"""Assemble GRIB artifacts from byte-range downloads of inventory rows."""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from eupp.backends.base import FetchBackend
from eupp.backends.http_backend import HttpBackend
from eupp.sources import SourceLocator
from eupp.storage import staged_path, write_sidecar

LOGGER = logging.getLogger("eupp.retriever")


class SegmentRetriever:
    """Download every inventory row and concatenate the messages into one file."""

    def __init__(
        self,
        *,
        locator: SourceLocator | None = None,
        backend: FetchBackend | None = None,
    ) -> None:
        self.locator = locator or SourceLocator()
        self.backend = backend or HttpBackend()

    def retrieve(
        self,
        inventory: pd.DataFrame,
        output_path: Path | str,
        *,
        sidecar: bool = True,
    ) -> Path:
        """
        Write the messages of ``inventory`` to ``output_path`` in row order.

        Bytes are staged in a temporary sibling file which is only renamed to
        ``output_path`` once every range has been fetched. With ``sidecar``
        the inventory is stored next to the artifact.
        """

        output = Path(output_path)
        LOGGER.info("Downloading grib messages (%d)", len(inventory))
        with staged_path(output, suffix=".part") as tmp:
            with tmp.open("wb") as handle:
                for count, row in enumerate(inventory.itertuples(index=False), start=1):
                    url = self.locator.url(row.path)
                    handle.write(self.backend.fetch_range(url, int(row.offset), int(row.length)))
                    LOGGER.debug("Fetched message %d/%d from %s", count, len(inventory), row.path)
        if sidecar:
            write_sidecar(inventory, output)
        LOGGER.info("Wrote %s", output)
        return output
