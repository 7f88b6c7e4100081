"""Settings management for scriptorai-search.

This module loads and saves the settings that persist across CLI runs:
which site to read from, an optional local static directory, the catalog
of searchable texts and the texts selected by default.

Environment variables take precedence over the settings file:
    SCRIPTORAI_SITE_URL: Site URL.
    SCRIPTORAI_STATIC_DIR: Local static directory.

Functions:
    load_settings: Load settings from disk (defaults when absent).
    save_settings: Save settings to disk.
    resolve_settings: Load settings and apply environment overrides.
    set_site_url: Persist the site URL.
    set_static_dir: Persist or clear the local static directory.
    add_text: Add a text to the catalog.
    remove_text: Remove a text from the catalog.
    reset_settings: Restore the default settings.
"""

from __future__ import annotations

import json
import os

from scriptorai_search.logging_config import get_logger
from scriptorai_search.models import Settings, TextSource
from scriptorai_search.storage.paths import ensure_config_dir, get_settings_path

logger = get_logger(__name__)


def load_settings() -> Settings:
    """Load settings from disk.

    Returns:
        Settings object. Returns default settings if the file doesn't
        exist or cannot be read.
    """
    settings_path = get_settings_path()

    if not settings_path.exists():
        return Settings()

    try:
        with open(settings_path) as f:
            data = json.load(f)
        return Settings(**data)
    except (OSError, ValueError, TypeError) as e:
        logger.warning("Failed to load settings from %s, using defaults: %s", settings_path, e)
        return Settings()


def save_settings(settings: Settings) -> None:
    """Save settings to disk.

    Args:
        settings: Settings object to save.
    """
    ensure_config_dir()
    settings_path = get_settings_path()

    with open(settings_path, "w") as f:
        json.dump(settings.model_dump(mode="json"), f, indent=2)

    logger.debug("Saved settings to %s", settings_path)


def resolve_settings() -> Settings:
    """Load settings and apply environment overrides.

    Returns:
        Settings with SCRIPTORAI_SITE_URL / SCRIPTORAI_STATIC_DIR applied.
    """
    settings = load_settings()
    overrides: dict[str, str] = {}
    if site_url := os.environ.get("SCRIPTORAI_SITE_URL"):
        overrides["site_url"] = site_url
    if static_dir := os.environ.get("SCRIPTORAI_STATIC_DIR"):
        overrides["static_dir"] = static_dir
    if not overrides:
        return settings
    return Settings(**{**settings.model_dump(), **overrides})


def set_site_url(site_url: str) -> Settings:
    """Persist the site URL.

    Raises:
        ValidationError: If the URL is not http(s).
    """
    settings = load_settings()
    updated = Settings(**{**settings.model_dump(), "site_url": site_url})
    save_settings(updated)
    logger.info("Site URL set to %s", updated.site_url)
    return updated


def set_static_dir(static_dir: str | None) -> Settings:
    """Persist the local static directory; None switches back to the site."""
    settings = load_settings()
    settings.static_dir = static_dir
    save_settings(settings)
    logger.info("Static directory set to %s", static_dir or "(none)")
    return settings


def add_text(
    slug: str, label: str, index_path: str | None = None, select: bool = False
) -> Settings:
    """Add a text to the catalog.

    Args:
        slug: Text slug.
        label: Display name.
        index_path: Site-relative index path (defaults from the slug).
        select: Also select the text by default.

    Returns:
        The saved settings.

    Raises:
        ValidationError: If the slug is invalid or already in the catalog.
    """
    settings = load_settings()
    data = settings.model_dump()
    data["texts"].append(TextSource(slug=slug, label=label, index_path=index_path).model_dump())
    if select:
        data["default_texts"].append(slug)
    updated = Settings(**data)
    save_settings(updated)
    logger.info("Added text %s", slug)
    return updated


def remove_text(slug: str) -> bool:
    """Remove a text from the catalog (and from the default selection).

    Returns:
        True if the text was in the catalog.
    """
    settings = load_settings()
    if settings.get_text(slug) is None:
        return False
    settings.texts = [t for t in settings.texts if t.slug != slug]
    settings.default_texts = [s for s in settings.default_texts if s != slug]
    save_settings(settings)
    logger.info("Removed text %s", slug)
    return True


def reset_settings() -> Settings:
    """Restore and save the default settings."""
    settings = Settings()
    save_settings(settings)
    return settings

