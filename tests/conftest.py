"""Shared fixtures for scriptorai-search tests.

Index documents are served through httpx.MockTransport, so tests exercise
the real client code path without network access.
"""

import json
from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import patch

import httpx
import pytest

from scriptorai_search.models import TextSource

SITE_URL = "https://scriptorai.test"


def make_record(record_id: str, text: str, **overrides: object) -> dict[str, Any]:
    """Create an index record shaped like the content pipeline's output."""
    base: dict[str, Any] = {
        "id": record_id,
        "project": "CCAG_1",
        "type": "page",
        "page_name": f"Page {record_id}",
        "page_id_string": f"page_{record_id}",
        "title": f"CCAG 1 - Page {record_id}",
        "text": text,
        "url": f"/texts/CCAG_1/page_{record_id}",
    }
    base.update(overrides)
    return base


CCAG_1_RECORDS = [
    make_record("1", "Saturn saturn saturn and mars in opposition."),
    make_record("2", "Saturn with venus, jupiter and mercury."),
    make_record("3", "Mars rules the eighth place."),
]

CCAG_2_RECORDS = [
    make_record(
        "10",
        "On the great error of Ptolemy concerning saturn.",
        project="CCAG_2",
        title="CCAG 2 - Page 10",
    ),
]

TEXTS = [
    TextSource(slug="CCAG_1", label="CCAG 1"),
    TextSource(slug="CCAG_2", label="CCAG 2"),
]


class IndexServer:
    """In-memory stand-in for the site's static index documents.

    Attributes:
        documents: Response bodies keyed by request path. A value of None
            answers 404; bytes are served verbatim; anything else as JSON.
        requests: Paths requested so far.
    """

    def __init__(self) -> None:
        self.documents: dict[str, Any] = {
            "/texts_indices/CCAG_1.json": CCAG_1_RECORDS,
            "/texts_indices/CCAG_2.json": CCAG_2_RECORDS,
        }
        self.requests: list[str] = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request.url.path)
        body = self.documents.get(request.url.path)
        if body is None:
            return httpx.Response(404)
        if isinstance(body, bytes):
            return httpx.Response(200, content=body)
        return httpx.Response(200, json=body)


@pytest.fixture
def index_server() -> IndexServer:
    return IndexServer()


@pytest.fixture
def client(index_server: IndexServer) -> Generator[httpx.Client, None, None]:
    """httpx client whose transport is the in-memory index server."""
    with httpx.Client(transport=httpx.MockTransport(index_server.handle), base_url=SITE_URL) as c:
        yield c


@pytest.fixture
def config_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Redirect ~/.config/scriptorai-search to a temporary directory."""
    directory = tmp_path / "config"
    with patch("scriptorai_search.storage.paths.get_config_dir", return_value=directory):
        yield directory


@pytest.fixture
def static_dir(tmp_path: Path) -> Path:
    """A local static directory holding the CCAG_1 index document."""
    directory = tmp_path / "static"
    (directory / "texts_indices").mkdir(parents=True)
    (directory / "texts_indices" / "CCAG_1.json").write_text(json.dumps(CCAG_1_RECORDS))
    return directory


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of the tests."""
    for name in ("SCRIPTORAI_SITE_URL", "SCRIPTORAI_STATIC_DIR", "OTEL_ENABLED", "LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
