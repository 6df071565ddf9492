"""Shared configuration helpers for eupp."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Sequence

LOGGER = logging.getLogger("eupp.config")

DEFAULT_BASE_URL = "https://storage.ecmwf.europeanweather.cloud/benchmark-dataset"
CACHE_FORMAT_VERSION = "1"
DEFAULT_RETRIES = 3
DEFAULT_TIMEOUT = 60.0
DEFAULT_LOG_LEVEL = "WARNING"


def _get_env_int(name: str, fallback: int) -> int:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return fallback
    try:
        return int(value)
    except ValueError:
        LOGGER.warning("Invalid integer for %s=%s; using %s", name, value, fallback)
        return fallback


def _get_env_float(name: str, fallback: float) -> float:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return fallback
    try:
        return float(value)
    except ValueError:
        LOGGER.warning("Invalid float for %s=%s; using %s", name, value, fallback)
        return fallback


def get_base_url() -> str:
    """Return the base URL all resource identifiers are relative to."""

    value = os.environ.get("EUPP_BASEURL", "").strip()
    return (value or DEFAULT_BASE_URL).rstrip("/")


def get_cache_dir() -> Path | None:
    """Return the default index cache directory, or None if caching is off."""

    value = os.environ.get("EUPP_CACHE_DIR", "").strip()
    if not value:
        return None
    return Path(value).expanduser()


def get_retries() -> int:
    """Return how many attempts an index fetch gets."""

    return max(1, _get_env_int("EUPP_RETRIES", DEFAULT_RETRIES))


def get_timeout() -> float:
    """Return the HTTP timeout in seconds."""

    return _get_env_float("EUPP_TIMEOUT", DEFAULT_TIMEOUT)


def get_log_level() -> str:
    """Return the log level name used by the command line interface."""

    return os.environ.get("EUPP_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper() or DEFAULT_LOG_LEVEL


def parse_steps(value: str) -> Sequence[int]:
    """
    Parse integer lists such as ``"0,6,12"``, ``"72-120"`` or ``"0-240:6"``.
    """

    hours: list[int] = []
    for fragment in value.split(","):
        fragment = fragment.strip()
        if not fragment:
            continue
        if ":" in fragment and "-" in fragment:
            range_part, step_part = fragment.split(":")
            start, end = [int(x) for x in range_part.split("-", 1)]
            step = int(step_part)
            if step <= 0:
                raise ValueError(f"Stride must be positive in {fragment!r}")
            hours.extend(range(start, end + 1, step))
        elif "-" in fragment:
            start, end = [int(x) for x in fragment.split("-", 1)]
            hours.extend(range(start, end + 1))
        else:
            hours.append(int(fragment))
    return tuple(sorted(set(hours)))
