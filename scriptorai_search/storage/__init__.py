"""Storage module for scriptorai-search.

This module provides access to the site's index documents and local
path management.

Classes:
    IndexDocumentStore: Session-scoped fetcher and cache of document collections.
    StaticDirTransport: httpx transport serving a local static directory.

Functions:
    create_client: Create the httpx client for a site URL or static directory.
    get_config_dir: Get the main configuration directory.
    get_settings_path: Get the path to settings.json.
    get_index_document_path: Map an index path onto a local static directory.
    ensure_config_dir: Create the configuration directory.
"""

from scriptorai_search.storage.paths import (
    ensure_config_dir,
    get_config_dir,
    get_index_document_path,
    get_settings_path,
)
from scriptorai_search.storage.store import DocumentCollection, IndexDocumentStore, TraceFn
from scriptorai_search.storage.transport import LOCAL_BASE_URL, StaticDirTransport, create_client

__all__ = [
    # Store
    "DocumentCollection",
    "IndexDocumentStore",
    "TraceFn",
    # Transport
    "LOCAL_BASE_URL",
    "StaticDirTransport",
    "create_client",
    # Path functions
    "ensure_config_dir",
    "get_config_dir",
    "get_index_document_path",
    "get_settings_path",
]
