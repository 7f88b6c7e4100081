"""Path management for scriptorai-search.

This module provides centralized path configuration for local storage
used by scriptorai-search. All paths live under the user's home directory
in ~/.config/scriptorai-search/, and for local static mirrors under the
site's own static layout.

Functions:
    get_config_dir: Get the main configuration directory.
    get_settings_path: Get the path to the settings file.
    get_index_document_path: Map an index path onto a local static directory.
    ensure_config_dir: Create the configuration directory if missing.
"""

from pathlib import Path


def get_config_dir() -> Path:
    """Get the configuration directory for scriptorai-search.

    Returns:
        Path to ~/.config/scriptorai-search/

    Example:
        >>> str(get_config_dir()).endswith(".config/scriptorai-search")
        True
    """
    return Path.home() / ".config" / "scriptorai-search"


def get_settings_path() -> Path:
    """Get the path to the settings file.

    Returns:
        Path to ~/.config/scriptorai-search/settings.json
    """
    return get_config_dir() / "settings.json"


def get_index_document_path(static_dir: Path, index_path: str) -> Path | None:
    """Map a site-relative index path onto a local static directory.

    The site serves ``static/texts_indices/CCAG_1.json`` as
    ``/texts_indices/CCAG_1.json``; a local mirror keeps the same layout.

    Args:
        static_dir: Root of the local static directory.
        index_path: Site-relative path, e.g. "/texts_indices/CCAG_1.json".

    Returns:
        The resolved file path, or None when the path escapes static_dir.

    Example:
        >>> get_index_document_path(Path("/srv/static"), "/texts_indices/CCAG_1.json")
        PosixPath('/srv/static/texts_indices/CCAG_1.json')
    """
    root = static_dir.resolve()
    candidate = (root / index_path.lstrip("/")).resolve()
    if not candidate.is_relative_to(root):
        return None
    return candidate


def ensure_config_dir() -> None:
    """Create the configuration directory if it doesn't exist.

    This function is idempotent and safe to call multiple times.
    """
    get_config_dir().mkdir(parents=True, exist_ok=True)
