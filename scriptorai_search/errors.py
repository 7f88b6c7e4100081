"""Error classes for scriptorai-search.

All errors raised by the search core derive from SearchError, so callers
(the CLI in particular) can handle the whole family in one place. Messages
say what failed and what to try next.

Exceptions:
    SearchError: Base exception for search operations.
    IndexFetchError: An index document could not be fetched.
    UnknownTextError: A text slug is not in the catalog.
    InvalidIndexDocumentError: An index document is not a valid record array.
    IndexBuildError: A search index could not be built for a text.
    QuerySyntaxError: A query string could not be parsed.
"""


class SearchError(Exception):
    """Base exception for search operations.

    Example:
        >>> try:
        ...     session.submit()
        ... except SearchError as e:
        ...     print(f"Search failed: {e}")
    """

    pass


class IndexFetchError(SearchError):
    """An index document could not be fetched.

    Raised for network failures and non-success responses. Aborts the
    whole ensure-load call; nothing fetched in that call is cached.

    Attributes:
        slug: Text whose index document failed.
        path: Location that was requested (if known).
    """

    def __init__(self, message: str, slug: str | None = None, path: str | None = None) -> None:
        """Initialize with a message and the failing location.

        Args:
            message: Error description.
            slug: Text slug involved.
            path: Index document path involved.
        """
        self.slug = slug
        self.path = path
        super().__init__(message)


class UnknownTextError(IndexFetchError):
    """A text slug is not present in the text catalog.

    Example:
        >>> raise UnknownTextError("CCAG_9")
    """

    def __init__(self, slug: str) -> None:
        """Initialize with the unknown slug.

        Args:
            slug: The slug that was requested.
        """
        super().__init__(
            f"Unknown text '{slug}'. "
            f"List available texts with: scriptorai-search texts. "
            f"Add one with: scriptorai-search config add-text {slug} <label>",
            slug=slug,
        )


class InvalidIndexDocumentError(IndexFetchError):
    """An index document is not a JSON array of valid document records.

    Example:
        >>> raise InvalidIndexDocumentError("CCAG_1", "/texts_indices/CCAG_1.json", "not a list")
    """

    def __init__(self, slug: str, path: str, reason: str) -> None:
        """Initialize with the failing document and the reason.

        Args:
            slug: Text slug involved.
            path: Index document path.
            reason: What was wrong with the document.
        """
        super().__init__(
            f"Invalid index document for '{slug}' at {path}: {reason}. "
            f"Regenerate the text index with the content pipeline.",
            slug=slug,
            path=path,
        )


class IndexBuildError(SearchError):
    """A search index could not be built from a document collection.

    Example:
        >>> raise IndexBuildError("duplicate document id '12'")
    """

    def __init__(self, message: str) -> None:
        """Initialize with descriptive message.

        Args:
            message: Description of the build failure.
        """
        super().__init__(f"Failed to build search index: {message}")


class QuerySyntaxError(SearchError):
    """A query string could not be parsed.

    Attributes:
        query: The query string that failed.
    """

    def __init__(self, query: str, message: str) -> None:
        """Initialize with the query and what is wrong with it.

        Args:
            query: The full query string.
            message: Description of the syntax problem.
        """
        self.query = query
        super().__init__(
            f"Invalid query '{query}': {message}. "
            f"Use plain words, +required, -excluded, field:term "
            f"(fields: title, text, page), term^2, term* or term~1."
        )
