"""scriptorai-search: full-text search over Scriptorai text indices.

Fetches the per-text index documents published by the Scriptorai site,
builds an in-memory BM25 index per text and renders ranked results with
highlighted context snippets and deep links back to the page viewer.
"""

__version__ = "0.1.0"
