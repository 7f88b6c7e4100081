"""Tests for the index document store and the static directory transport."""

from pathlib import Path
from typing import Any

import httpx
import pytest

from scriptorai_search.errors import IndexFetchError, InvalidIndexDocumentError, UnknownTextError
from scriptorai_search.storage import (
    LOCAL_BASE_URL,
    IndexDocumentStore,
    StaticDirTransport,
    create_client,
    get_index_document_path,
)
from tests.conftest import CCAG_1_RECORDS, SITE_URL, TEXTS, IndexServer


class TestEnsureLoaded:
    """Tests for fetching and caching collections."""

    def test_fetches_collection(self, client: httpx.Client) -> None:
        store = IndexDocumentStore(client, TEXTS)

        collections = store.ensure_loaded(["CCAG_1"])

        assert [r.id for r in collections["CCAG_1"]] == ["1", "2", "3"]
        assert store.is_loaded("CCAG_1")
        assert not store.is_loaded("CCAG_2")

    def test_each_slug_fetched_once(self, client: httpx.Client, index_server: IndexServer) -> None:
        store = IndexDocumentStore(client, TEXTS)

        store.ensure_loaded(["CCAG_1"])
        store.ensure_loaded(["CCAG_1", "CCAG_2"])
        store.ensure_loaded(["CCAG_2", "CCAG_1", "CCAG_1"])

        assert store.fetch_count == 2
        assert index_server.requests == [
            "/texts_indices/CCAG_1.json",
            "/texts_indices/CCAG_2.json",
        ]

    def test_collections_are_immutable_tuples(self, client: httpx.Client) -> None:
        store = IndexDocumentStore(client, TEXTS)
        collection = store.ensure_loaded(["CCAG_1"])["CCAG_1"]
        assert isinstance(collection, tuple)
        assert store.get("CCAG_1") is collection

    def test_failure_commits_nothing(self, client: httpx.Client, index_server: IndexServer) -> None:
        """A failing text aborts the load; texts fetched in the same call are dropped."""
        index_server.documents["/texts_indices/CCAG_2.json"] = None
        store = IndexDocumentStore(client, TEXTS)

        with pytest.raises(IndexFetchError, match="HTTP 404"):
            store.ensure_loaded(["CCAG_1", "CCAG_2"])

        assert store.collections == {}
        assert not store.is_loaded("CCAG_1")

    def test_failure_keeps_previous_cache(
        self, client: httpx.Client, index_server: IndexServer
    ) -> None:
        index_server.documents["/texts_indices/CCAG_2.json"] = None
        store = IndexDocumentStore(client, TEXTS)
        store.ensure_loaded(["CCAG_1"])

        with pytest.raises(IndexFetchError):
            store.ensure_loaded(["CCAG_1", "CCAG_2"])

        assert list(store.collections) == ["CCAG_1"]

    def test_network_error(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with httpx.Client(transport=httpx.MockTransport(refuse), base_url=SITE_URL) as c:
            store = IndexDocumentStore(c, TEXTS)
            with pytest.raises(IndexFetchError, match="connection refused") as exc_info:
                store.ensure_loaded(["CCAG_1"])

        assert exc_info.value.slug == "CCAG_1"
        assert exc_info.value.path == "/texts_indices/CCAG_1.json"

    def test_unknown_slug(self, client: httpx.Client) -> None:
        store = IndexDocumentStore(client, TEXTS)
        with pytest.raises(UnknownTextError, match="CCAG_9"):
            store.ensure_loaded(["CCAG_9"])
        assert store.fetch_count == 0

    def test_trace_entries(self, client: httpx.Client) -> None:
        entries: list[tuple[str, Any]] = []
        store = IndexDocumentStore(
            client, TEXTS, trace=lambda msg, data: entries.append((msg, data))
        )

        store.ensure_loaded(["CCAG_1"])

        assert entries[0] == ("Fetching index for CCAG_1 from /texts_indices/CCAG_1.json", None)
        msg, data = entries[1]
        assert msg == "Fetched data for CCAG_1"
        assert data["length"] == 3
        assert data["sample"] == CCAG_1_RECORDS[0]


class TestInvalidDocuments:
    """Index documents are validated before they are cached."""

    @pytest.mark.parametrize(
        ("body", "reason"),
        [
            (b"<html>not json</html>", "not JSON"),
            ({"records": []}, "expected a JSON array"),
            ([{"title": "no id"}], "invalid field"),
        ],
    )
    def test_rejected(
        self, client: httpx.Client, index_server: IndexServer, body: object, reason: str
    ) -> None:
        index_server.documents["/texts_indices/CCAG_1.json"] = body
        store = IndexDocumentStore(client, TEXTS)

        with pytest.raises(InvalidIndexDocumentError, match=reason):
            store.ensure_loaded(["CCAG_1"])

        assert not store.is_loaded("CCAG_1")

    def test_empty_array_is_valid(self, client: httpx.Client, index_server: IndexServer) -> None:
        index_server.documents["/texts_indices/CCAG_1.json"] = []
        store = IndexDocumentStore(client, TEXTS)
        assert store.ensure_loaded(["CCAG_1"])["CCAG_1"] == ()


class TestStaticDirTransport:
    """Tests for reading index documents from a local static directory."""

    def test_serves_index_document(self, static_dir: Path) -> None:
        with create_client(SITE_URL, static_dir) as c:
            store = IndexDocumentStore(c, TEXTS)
            collection = store.ensure_loaded(["CCAG_1"])["CCAG_1"]
        assert len(collection) == 3

    def test_missing_file_is_404(self, static_dir: Path) -> None:
        with create_client(SITE_URL, static_dir) as c:
            store = IndexDocumentStore(c, TEXTS)
            with pytest.raises(IndexFetchError, match="HTTP 404"):
                store.ensure_loaded(["CCAG_2"])

    def test_non_get_is_405(self, static_dir: Path) -> None:
        transport = StaticDirTransport(static_dir)
        with httpx.Client(transport=transport, base_url=LOCAL_BASE_URL) as c:
            assert c.post("/texts_indices/CCAG_1.json").status_code == 405

    def test_paths_cannot_escape_static_dir(self, static_dir: Path) -> None:
        assert get_index_document_path(static_dir, "/../secret.json") is None
        assert get_index_document_path(static_dir, "/texts_indices/CCAG_1.json") == (
            static_dir.resolve() / "texts_indices" / "CCAG_1.json"
        )
