"""Search session state and orchestration.

A SearchSession is what the search page holds for one visit: the query
box, the selected texts, loading and error state, the debug trace, the
page URL and the texts fetched so far. It is created when a search page
is entered (a CLI run, an interactive shell) and discarded afterwards;
there is no process-wide session.

Classes:
    DebugLog: Bounded, newest-first debug trace.
    History: Minimal browser-history stand-in holding the page URL.
    SearchSession: Query state plus the load → index → search → merge flow.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from types import TracebackType
from typing import Any

import httpx

from scriptorai_search.errors import IndexFetchError, SearchError, UnknownTextError
from scriptorai_search.logging_config import get_logger
from scriptorai_search.models import DebugEntry, SearchResult, Settings, TextSource
from scriptorai_search.search import search_collections
from scriptorai_search.storage import DocumentCollection, IndexDocumentStore, create_client
from scriptorai_search.telemetry import traced

logger = get_logger(__name__)

SEARCH_PATH = "/search"
QUERY_PARAM = "q"


class DebugLog:
    """Newest-first debug trace keeping the last ``max_entries`` entries.

    Every entry is also written to this module's logger at DEBUG level.
    Data other than strings and None is rendered as indented JSON.
    """

    def __init__(self, max_entries: int = 20) -> None:
        self.max_entries = max_entries
        self._entries: list[DebugEntry] = []

    def add(self, msg: str, data: Any = None) -> None:
        rendered = data
        if data is not None and not isinstance(data, str):
            rendered = json.dumps(data, indent=2, default=str)
        self._entries = [DebugEntry(msg=msg, data=rendered), *self._entries[: self.max_entries - 1]]
        logger.debug("[DEBUG] %s %s", msg, rendered or "")

    def clear(self) -> None:
        self._entries = []

    @property
    def entries(self) -> list[DebugEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class History:
    """Page URL history; the search page only ever replaces the current entry."""

    def __init__(self, url: str = SEARCH_PATH) -> None:
        self.entries = [url]

    @property
    def current(self) -> str:
        return self.entries[-1]

    def replace_state(self, url: str) -> None:
        self.entries[-1] = url


class SearchSession:
    """State and orchestration of one search page visit.

    Attributes:
        query: Live content of the query box.
        last_search_term: Query of the last submission; used for
            highlighting so later typing does not change shown snippets.
        results: Result Set of the last submission.
        loading: True while index documents are being fetched.
        error: User-visible message of the last fetch failure, or None.
        debug: Debug trace of the last submission.
        history: Page URL history.
        store: Index documents fetched during this session.

    Example:
        >>> with SearchSession.from_settings(Settings(), url="/search?q=saturn") as session:
        ...     results = session.on_load()
    """

    def __init__(
        self,
        client: httpx.Client,
        texts: Iterable[TextSource],
        url: str = SEARCH_PATH,
        selected_texts: Iterable[str] | None = None,
        owns_client: bool = False,
    ) -> None:
        """Initialize a session.

        Args:
            client: HTTP client serving the site's index documents.
            texts: Catalog of searchable texts.
            url: URL of the search page being entered.
            selected_texts: Initially selected slugs (default: first text).
            owns_client: Close the client when the session closes.
        """
        self.texts = list(texts)
        self.debug = DebugLog()
        self.history = History(url)
        self.store = IndexDocumentStore(client, self.texts, trace=self.debug.add)
        self.query = ""
        self.last_search_term = ""
        self.results: list[SearchResult] = []
        self.loading = False
        self.error: str | None = None
        self._selected: list[str] = []
        self._did_auto_search = False
        self._client = client
        self._owns_client = owns_client

        initial = selected_texts if selected_texts is not None else [t.slug for t in self.texts[:1]]
        for slug in initial:
            if slug not in self._selected:
                self.toggle_text(slug)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        url: str = SEARCH_PATH,
        selected_texts: Iterable[str] | None = None,
    ) -> SearchSession:
        """Create a session reading from the configured site or static dir."""
        client = create_client(settings.site_url, settings.static_dir)
        if selected_texts is None:
            selected_texts = settings.default_texts
        try:
            return cls(
                client,
                settings.texts,
                url=url,
                selected_texts=selected_texts,
                owns_client=True,
            )
        except SearchError:
            client.close()
            raise

    def __enter__(self) -> SearchSession:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # =========================================================================
    # Selection and URL state
    # =========================================================================

    @property
    def selected_texts(self) -> list[str]:
        """Selected slugs, in selection order."""
        return list(self._selected)

    def toggle_text(self, slug: str) -> bool:
        """Select an unselected text or deselect a selected one.

        Returns:
            True if the text is selected afterwards.

        Raises:
            UnknownTextError: If the slug is not in the catalog.
        """
        if slug in self._selected:
            self._selected.remove(slug)
            return False
        if all(source.slug != slug for source in self.texts):
            raise UnknownTextError(slug)
        self._selected.append(slug)
        return True

    @property
    def url(self) -> str:
        return self.history.current

    @property
    def url_query(self) -> str:
        """Value of the ``q`` parameter of the current URL."""
        return httpx.URL(self.history.current).params.get(QUERY_PARAM) or ""

    @property
    def can_submit(self) -> bool:
        return not self.loading and bool(self.query) and bool(self._selected)

    def _reflect_query_in_url(self) -> None:
        url = httpx.URL(self.history.current)
        if self.query:
            url = url.copy_set_param(QUERY_PARAM, self.query)
        else:
            url = url.copy_remove_param(QUERY_PARAM)
        self.history.replace_state(str(url))

    # =========================================================================
    # Submission
    # =========================================================================

    def on_load(self) -> list[SearchResult] | None:
        """Pick up ``?q=`` from the URL and auto-search once.

        Fills the query box from the URL when it is empty, then submits if
        the query box holds the URL's query and no auto-search has run in
        this session. Later calls never submit again.

        Returns:
            The Result Set if a search was triggered, else None.
        """
        url_query = self.url_query
        if url_query and not self.query:
            self.query = url_query
        if url_query and self.query == url_query and not self._did_auto_search:
            self._did_auto_search = True
            logger.info("Auto-searching for %r from URL", url_query)
            return self.submit()
        return None

    @traced("session.submit")
    def submit(self) -> list[SearchResult]:
        """Run a search for the current query over the selected texts.

        Reflects the query into the URL, resets results, error and the
        debug trace, then loads, indexes, searches and merges. A fetch
        failure sets ``error`` and the search continues over whatever
        texts were loaded before.

        Returns:
            The new Result Set, best score first.

        Raises:
            SearchError: If no text is selected.
        """
        if not self._selected:
            raise SearchError(
                "Select at least one text to search. "
                "List available texts with: scriptorai-search texts"
            )

        self._reflect_query_in_url()
        self.results = []
        self.error = None
        self.debug.clear()
        self.last_search_term = self.query

        selected = self.selected_texts
        collections = self._ensure_loaded(selected)
        self.debug.add("Starting search", {"selectedTexts": selected, "query": self.query})

        self.results = search_collections(collections, selected, self.query, trace=self.debug.add)
        logger.info("Search for %r returned %d results", self.query, len(self.results))
        return self.results

    def _ensure_loaded(self, slugs: list[str]) -> dict[str, DocumentCollection]:
        if all(self.store.is_loaded(slug) for slug in slugs):
            return self.store.collections

        self.loading = True
        try:
            return self.store.ensure_loaded(slugs)
        except IndexFetchError as e:
            self.error = str(e)
            self.debug.add("Error fetching indices", str(e))
            logger.warning("Error fetching indices: %s", e)
            return self.store.collections
        finally:
            self.loading = False
