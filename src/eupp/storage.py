"""Local persistence for cached index files and artifact sidecars."""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Mapping, Sequence

import pandas as pd

from eupp.config import CACHE_FORMAT_VERSION
from eupp.pipeline.normalize import coerce_schema, empty_inventory

LOGGER = logging.getLogger("eupp.storage")
SIDECAR_SUFFIX = ".meta"


@contextmanager
def staged_path(path: Path, suffix: str = ".tmp") -> Iterator[Path]:
    """
    Yield a sibling temporary path that replaces ``path`` on success.

    The temporary file is removed on every exit path, so a failure never
    leaves partial content at ``path``.
    """

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=suffix, dir=path.parent)
    os.close(fd)
    tmp = Path(tmp_name)
    try:
        yield tmp
        os.replace(tmp, path)
    finally:
        tmp.unlink(missing_ok=True)


def _atomic_write_text(path: Path, text: str) -> None:
    with staged_path(path) as tmp:
        tmp.write_text(text, encoding="utf-8")


class IndexCache:
    """Content-addressed cache of parsed index files."""

    def __init__(self, cache_dir: Path | str, version: str = CACHE_FORMAT_VERSION) -> None:
        self.cache_dir = Path(cache_dir)
        self.version = version

    def path_for(self, source: str) -> Path:
        """Return the cache file used for an index location."""

        digest = hashlib.md5(source.encode("utf-8")).hexdigest()
        return self.cache_dir / f"{digest}-{self.version}.index.json"

    def load(self, source: str) -> list[dict[str, object]] | None:
        path = self.path_for(source)
        if not path.exists():
            return None
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    def save(self, source: str, records: Sequence[Mapping[str, object]]) -> Path:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(source)
        _atomic_write_text(path, json.dumps(list(records), separators=(",", ":")) + "\n")
        return path


def sidecar_path(artifact: Path | str) -> Path:
    """Return the sidecar location belonging to an artifact."""

    return Path(f"{artifact}{SIDECAR_SUFFIX}")


def write_sidecar(inventory: pd.DataFrame, artifact: Path | str) -> Path:
    """Persist the inventory rows an artifact was assembled from."""

    path = sidecar_path(artifact)
    text = inventory.to_json(orient="records", date_format="iso", date_unit="ns")
    _atomic_write_text(path, text)
    LOGGER.debug("Wrote sidecar %s (%d rows)", path, len(inventory))
    return path


def read_sidecar(path: Path | str) -> pd.DataFrame:
    """
    Read a sidecar back into an inventory frame.

    ``path`` may be the sidecar itself or the artifact it belongs to.
    """

    path = Path(path)
    if path.suffix != SIDECAR_SUFFIX:
        path = sidecar_path(path)
    with path.open("r", encoding="utf-8") as handle:
        records = json.load(handle)
    if not records:
        return empty_inventory()
    return coerce_schema(pd.DataFrame.from_records(records))
