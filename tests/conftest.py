import json

import pytest

from eupp.backends.base import FetchBackend
from eupp.errors import RetrievalError
from eupp.selection import Selection
from eupp.sources import SourceLocator

BASE_URL = "https://eupp.test/benchmark"


class DummyBackend(FetchBackend):
    """In-memory object store keyed by absolute URL."""

    def __init__(self, indexes=None, blobs=None):
        self.indexes = dict(indexes or {})
        self.blobs = dict(blobs or {})
        self.index_calls: list[str] = []
        self.range_calls: list[tuple[str, int, int]] = []

    def fetch_index(self, url: str) -> str:
        self.index_calls.append(url)
        if url not in self.indexes:
            raise RetrievalError(url, status_code=404)
        return self.indexes[url]

    def fetch_range(self, url: str, offset: int, length: int) -> bytes:
        self.range_calls.append((url, offset, length))
        return self.blobs[url][offset : offset + length]


def make_archive(messages):
    """Return ``(index_text, blob)`` for a list of index records without offsets."""

    lines = []
    blob = b""
    for message in messages:
        payload = json.dumps(message, sort_keys=True).encode("utf-8") + b"\n"
        record = dict(message, _offset=len(blob), _length=len(payload))
        lines.append(json.dumps(record))
        blob += payload
    return "\n".join(lines) + "\n", blob


def add_archive(backend, locator, selection, identifier_suffix, messages):
    """Register one archive of ``selection`` whose identifier ends with ``identifier_suffix``."""

    (index_id,) = [i for i in locator.resolve(selection, want_index=True) if i.endswith(identifier_suffix)]
    (data_id,) = [i for i in locator.resolve(selection) if i.endswith(identifier_suffix.replace(".index", ".grb"))]
    text, blob = make_archive(messages)
    backend.indexes[locator.url(index_id)] = text
    backend.blobs[locator.url(data_id)] = blob


@pytest.fixture
def locator():
    return SourceLocator(base_url=BASE_URL)


@pytest.fixture
def ensemble_backend(locator):
    """Forecast ensemble archive for 2017-01-02 with members 0..5 and hourly steps 0..144."""

    selection = Selection(product="forecast", level="surface", type="ens", dates=["2017-01-02"])
    common = {"domain": "g", "date": "20170102", "time": "0000", "levtype": "sfc"}
    control = [
        dict(common, type="cf", param=param, step=str(step))
        for step in range(145)
        for param in ("cp", "2t")
    ]
    perturbed = [
        dict(common, type="pf", number=str(number), param=param, step=str(step))
        for number in range(1, 6)
        for step in range(145)
        for param in ("cp", "2t")
    ]
    backend = DummyBackend()
    add_archive(backend, locator, selection, "_cf.index", control)
    add_archive(backend, locator, selection, "_pf.index", perturbed)
    return backend


@pytest.fixture
def analysis_backend(locator):
    """Monthly analysis archive for January 2017."""

    selection = Selection(product="analysis", level="surface", dates=["2017-01-02"])
    messages = [
        {"date": "20170101", "time": "1800", "step": "6", "param": "2t", "type": "fc", "levtype": "sfc"},
        *[
            {"date": "20170102", "time": f"{hour:02d}00", "step": "0", "param": "2t", "type": "an", "levtype": "sfc"}
            for hour in (0, 6, 12, 18)
        ],
        {"date": "20170102", "time": "1800", "step": "6", "param": "2t", "type": "fc", "levtype": "sfc"},
        {"date": "20170103", "time": "0000", "step": "0", "param": "2t", "type": "an", "levtype": "sfc"},
    ]
    backend = DummyBackend()
    add_archive(backend, locator, selection, ".index", messages)
    return backend
