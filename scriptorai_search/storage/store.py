"""Index document store for scriptorai-search.

This module fetches and caches the per-text index documents published by
the site at ``/texts_indices/<slug>.json``. A store belongs to one search
session: each text is fetched at most once and then kept for the rest of
the session. Cached collections are never mutated or evicted; new slugs
are only ever added.

Classes:
    IndexDocumentStore: Session-scoped fetcher and cache of document collections.

Type Aliases:
    DocumentCollection: Immutable ordered sequence of DocumentRecord.
    TraceFn: Callback receiving (message, data) debug trace entries.
"""

from collections.abc import Callable, Iterable
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from scriptorai_search.errors import IndexFetchError, InvalidIndexDocumentError, UnknownTextError
from scriptorai_search.logging_config import get_logger
from scriptorai_search.models import DocumentRecord, TextSource
from scriptorai_search.telemetry import trace_span, traced

logger = get_logger(__name__)

DocumentCollection = tuple[DocumentRecord, ...]
TraceFn = Callable[[str, Any], None]

_RECORDS_ADAPTER = TypeAdapter(list[DocumentRecord])


def _no_trace(msg: str, data: Any) -> None:
    pass


class IndexDocumentStore:
    """Fetch and cache document collections per text slug.

    A failed ensure-load commits nothing fetched during that call, so the
    cache only ever holds complete, validated collections.

    Attributes:
        client: HTTP client whose base URL (or transport) serves the site.
        texts: Catalog of known texts keyed by slug.
        fetch_count: Number of index document requests issued.

    Example:
        >>> store = IndexDocumentStore(client, [TextSource(slug="CCAG_1", label="CCAG 1")])
        >>> collections = store.ensure_loaded(["CCAG_1"])
        >>> len(collections["CCAG_1"])
        412
    """

    def __init__(
        self,
        client: httpx.Client,
        texts: Iterable[TextSource],
        trace: TraceFn | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            client: HTTP client used for fetching.
            texts: Catalog of texts that may be requested.
            trace: Optional debug trace callback.
        """
        self.client = client
        self.texts = {source.slug: source for source in texts}
        self.fetch_count = 0
        self._trace = trace or _no_trace
        self._collections: dict[str, DocumentCollection] = {}

    @property
    def collections(self) -> dict[str, DocumentCollection]:
        """Snapshot of the cached collections."""
        return dict(self._collections)

    def is_loaded(self, slug: str) -> bool:
        return slug in self._collections

    def get(self, slug: str) -> DocumentCollection | None:
        return self._collections.get(slug)

    @traced("index_store.ensure_loaded")
    def ensure_loaded(self, slugs: Iterable[str]) -> dict[str, DocumentCollection]:
        """Make sure every requested text is cached.

        Fetches the texts that are not cached yet, in request order. The
        first failure aborts the call; texts fetched earlier in the same
        call are discarded and the cache is left as it was.

        Args:
            slugs: Text slugs to load.

        Returns:
            Snapshot of all cached collections, keyed by slug.

        Raises:
            UnknownTextError: A slug is not in the catalog.
            IndexFetchError: A request failed or answered non-success.
            InvalidIndexDocumentError: A response is not a valid record array.
        """
        missing = [slug for slug in dict.fromkeys(slugs) if slug not in self._collections]
        if not missing:
            return self.collections

        fetched: dict[str, DocumentCollection] = {}
        for slug in missing:
            fetched[slug] = self._fetch(slug)

        self._collections.update(fetched)
        return self.collections

    def _fetch(self, slug: str) -> DocumentCollection:
        """Fetch and validate one index document."""
        source = self.texts.get(slug)
        if source is None:
            raise UnknownTextError(slug)

        path = source.index_path or ""
        self._trace(f"Fetching index for {slug} from {path}", None)
        logger.info("Fetching index for %s from %s", slug, path)

        with trace_span("index_store.fetch", {"text.slug": slug, "http.path": path}):
            self.fetch_count += 1
            try:
                response = self.client.get(path)
            except httpx.HTTPError as e:
                raise IndexFetchError(f"Failed to fetch {path}: {e}", slug=slug, path=path) from e

        if not response.is_success:
            raise IndexFetchError(
                f"Failed to fetch {path} (HTTP {response.status_code})", slug=slug, path=path
            )

        try:
            data = response.json()
        except ValueError as e:
            raise InvalidIndexDocumentError(slug, path, f"body is not JSON ({e})") from e

        if not isinstance(data, list):
            raise InvalidIndexDocumentError(
                slug, path, f"expected a JSON array, got {type(data).__name__}"
            )

        try:
            records = _RECORDS_ADAPTER.validate_python(data)
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            raise InvalidIndexDocumentError(
                slug,
                path,
                f"{e.error_count()} invalid field(s), first at [{location}]: {first['msg']}",
            ) from e

        self._trace(
            f"Fetched data for {slug}",
            {"length": len(data), "sample": data[0] if data else None},
        )
        logger.info("Fetched %d records for %s", len(records), slug)
        return tuple(records)
