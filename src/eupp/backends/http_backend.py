"""requests-backed implementation of :class:`FetchBackend`."""

from __future__ import annotations

import logging
import time

import requests

from eupp.backends.base import FetchBackend, byte_range_header
from eupp.config import get_retries, get_timeout
from eupp.errors import RetrievalError

LOGGER = logging.getLogger("eupp.backends")

TRANSIENT_STATUS = frozenset({429, 500, 502, 503, 504})


class HttpBackend(FetchBackend):
    """Fetch backend talking HTTP(S) to the object store."""

    def __init__(
        self,
        *,
        retries: int | None = None,
        timeout: float | None = None,
        backoff: float = 1.0,
        session: requests.Session | None = None,
    ) -> None:
        self.retries = max(1, retries if retries is not None else get_retries())
        self.timeout = timeout if timeout is not None else get_timeout()
        self.backoff = backoff
        self.session = session or requests.Session()

    def fetch_index(self, url: str) -> str:
        """
        GET an index resource, retrying transient failures.
        """

        for attempt in range(1, self.retries + 1):
            try:
                resp = self.session.get(url, timeout=self.timeout)
            except (requests.ConnectionError, requests.Timeout) as exc:
                if attempt == self.retries:
                    raise RetrievalError(url, reason=str(exc)) from exc
                LOGGER.warning("Index fetch attempt %d/%d for %s failed: %s", attempt, self.retries, url, exc)
            else:
                if resp.status_code == 200:
                    resp.encoding = "utf-8"
                    return resp.text
                if resp.status_code not in TRANSIENT_STATUS or attempt == self.retries:
                    raise RetrievalError(url, status_code=resp.status_code)
                LOGGER.warning(
                    "Index fetch attempt %d/%d for %s returned %d",
                    attempt,
                    self.retries,
                    url,
                    resp.status_code,
                )
            self._sleep(attempt)
        raise RetrievalError(url, reason="no attempts made")

    def fetch_range(self, url: str, offset: int, length: int) -> bytes:
        """
        GET a single byte range; any failure is fatal.
        """

        rng = byte_range_header(offset, length)
        LOGGER.debug("Requesting %s (%s)", url, rng)
        try:
            resp = self.session.get(url, headers={"Range": rng}, timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise RetrievalError(url, byte_range=rng, reason=str(exc)) from exc
        if resp.status_code // 100 != 2:
            raise RetrievalError(url, byte_range=rng, status_code=resp.status_code)
        content = resp.content
        if len(content) != length:
            raise RetrievalError(
                url,
                byte_range=rng,
                status_code=resp.status_code,
                reason=f"expected {length} bytes, received {len(content)}",
            )
        return content

    def _sleep(self, attempt: int) -> None:
        delay = self.backoff * 2 ** (attempt - 1)
        if delay > 0:
            time.sleep(delay)
