"""Data models for scriptorai-search.

This module provides Pydantic v2 models for the records published in the
Scriptorai text indices, the text catalog, search results and excerpts.
Index documents are produced by an external content pipeline, so records
are validated here, at the fetch boundary, rather than trusted ad hoc.

Models:
    TextSource: Catalog entry naming a text and where its index lives.
    DocumentRecord: One page/passage of a text, as published in the index.
    SearchResult: A ranked match joined with its document record.
    Excerpt: A bounded-context slice of a document body with a marked match.
    DebugEntry: One entry in a session's debug trace.
    Settings: Persisted user settings (site, static dir, catalog).

Constants:
    DEFAULT_SITE_URL: Public Scriptorai site.
    DEFAULT_TEXTS: Catalog shipped with the tool.
"""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_SITE_URL = "https://scriptorai.sadalsvvd.com"
INDEX_PATH_TEMPLATE = "/texts_indices/{slug}.json"
PAGE_LINK_TEMPLATE = "/texts/{project}/{page_id_string}"


# =============================================================================
# Reusable Validator Functions
# =============================================================================


def validate_slug(value: str, field_name: str = "slug") -> str:
    """Validate a text slug (letters, digits, underscore, dot, dash).

    Args:
        value: The slug to validate.
        field_name: Name of the field for error messages.

    Returns:
        The validated slug.

    Raises:
        ValueError: If the slug contains other characters.

    Example:
        >>> validate_slug("CCAG_1")
        'CCAG_1'
    """
    if not re.match(r"^[A-Za-z0-9_.-]+$", value):
        raise ValueError(
            f"Invalid {field_name}: '{value}'. "
            f"Use letters, digits, '_', '.' or '-', e.g., 'CCAG_1'."
        )
    return value


def validate_url(value: str, field_name: str = "url") -> str:
    """Validate URL format (http/https).

    Args:
        value: The URL to validate.
        field_name: Name of the field for error messages.

    Returns:
        The validated URL without a trailing slash.

    Raises:
        ValueError: If URL format is invalid.
    """
    if not re.match(r"^https?://[^\s]+", value):
        raise ValueError(
            f"Invalid {field_name} format: '{value}'. "
            f"URL must start with 'http://' or 'https://'. "
            f"Example: '{DEFAULT_SITE_URL}'"
        )
    return value.rstrip("/")


def coerce_scalar_to_str(value: Any) -> Any:
    """Turn JSON numbers into strings; leave everything else to pydantic."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return str(value)
    return value


# =============================================================================
# Text Catalog
# =============================================================================


class TextSource(BaseModel):
    """A searchable text and the location of its index document.

    Attributes:
        slug: Short identifier of the text, e.g. "CCAG_1".
        label: Human-readable name, e.g. "CCAG 1".
        index_path: Site-relative path of the index document. Defaults to
            /texts_indices/<slug>.json.

    Example:
        >>> TextSource(slug="CCAG_1", label="CCAG 1").index_path
        '/texts_indices/CCAG_1.json'
    """

    slug: str = Field(description="Short identifier of the text")
    label: str = Field(min_length=1, description="Display name of the text")
    index_path: str | None = Field(default=None, description="Site-relative index document path")

    @field_validator("slug")
    @classmethod
    def validate_slug_field(cls, v: str) -> str:
        """Validate slug characters."""
        return validate_slug(v)

    @field_validator("index_path")
    @classmethod
    def validate_index_path(cls, v: str | None) -> str | None:
        """Index paths are site-relative."""
        if v is not None and not v.startswith("/"):
            raise ValueError(
                f"Invalid index_path: '{v}'. Path must be site-relative and start with '/', "
                f"e.g., '/texts_indices/CCAG_1.json'."
            )
        return v

    @model_validator(mode="after")
    def default_index_path(self) -> TextSource:
        """Derive the index path from the slug when none is given."""
        if self.index_path is None:
            self.index_path = INDEX_PATH_TEMPLATE.format(slug=self.slug)
        return self


DEFAULT_TEXTS = [TextSource(slug="CCAG_1", label="CCAG 1")]


# =============================================================================
# Document Record
# =============================================================================


class DocumentRecord(BaseModel):
    """One page or passage of a text as published in its index document.

    Keys the content pipeline adds beyond these (type, url, ...) are kept
    but not used.

    Attributes:
        id: Identifier, unique within the text's collection.
        title: Human-readable label of the page/passage.
        text: Full plain-text body, searched and excerpted.
        page: Page label, if the pipeline provides one.
        page_name: Preferred display label of the originating page.
        page_id_string: Routing id used to deep link into the page viewer.
        project: Identifier of the owning text, used in the deep link.
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1, description="Unique reference within the collection")
    title: str = Field(description="Page/passage title")
    text: str = Field(default="", description="Plain-text body")
    page: str | None = Field(default=None, description="Page label")
    page_name: str | None = Field(default=None, description="Display label of the page")
    page_id_string: str | None = Field(default=None, description="Routing id of the page")
    project: str | None = Field(default=None, description="Owning text identifier")

    @field_validator("id", "page", "page_id_string", mode="before")
    @classmethod
    def coerce_numbers(cls, v: Any) -> Any:
        """Accept numeric ids and page labels."""
        return coerce_scalar_to_str(v)

    @field_validator("text", mode="before")
    @classmethod
    def null_text_is_empty(cls, v: Any) -> Any:
        """Treat a null body as empty."""
        return "" if v is None else v

    @property
    def page_label(self) -> str | None:
        """Page label shown next to a result (page_name wins over page)."""
        return self.page_name or self.page

    @property
    def link(self) -> str | None:
        """Site-relative deep link into the page viewer, if routable."""
        if not self.project or not self.page_id_string:
            return None
        return PAGE_LINK_TEMPLATE.format(project=self.project, page_id_string=self.page_id_string)


# =============================================================================
# Search Results
# =============================================================================


class SearchResult(BaseModel):
    """A ranked match joined with its source document record.

    When the matched reference does not resolve to a record the result is
    kept in degraded form: ``record`` is None and every content accessor
    returns None.

    Attributes:
        ref: The matched document id.
        score: Relevance score (higher is more relevant).
        slug: Text the match came from.
        record: The resolved document record, or None.
    """

    ref: str
    score: float
    slug: str
    record: DocumentRecord | None = None

    @property
    def title(self) -> str | None:
        return self.record.title if self.record else None

    @property
    def text(self) -> str | None:
        return self.record.text if self.record else None

    @property
    def page_label(self) -> str | None:
        return self.record.page_label if self.record else None

    @property
    def link(self) -> str | None:
        return self.record.link if self.record else None

    def to_dict(self, site_url: str | None = None) -> dict[str, Any]:
        """Flatten into the shape the site renders (record fields + score + slug).

        Args:
            site_url: When given, the deep link is made absolute against it.

        Returns:
            Dictionary with the record fields, score, slug and link.
        """
        data: dict[str, Any] = self.record.model_dump(mode="json") if self.record else {"id": None}
        data["ref"] = self.ref
        data["score"] = self.score
        data["slug"] = self.slug
        link = self.link
        if link is not None and site_url:
            link = site_url.rstrip("/") + link
        data["link"] = link
        return data


class Excerpt(BaseModel):
    """A bounded-context slice of a document body.

    The rendered excerpt is ``prefix + before + match + after + suffix``.
    ``match`` is the span to emphasize; it is None for a plain leading
    excerpt.

    Attributes:
        prefix: "..." when the window does not start at the beginning.
        before: Context preceding the match.
        match: The matched span, or None.
        after: Context following the match.
        suffix: "..." when the window does not reach the end.
        start: Window start offset in the source text.
        end: Window end offset in the source text.
    """

    prefix: str = ""
    before: str = ""
    match: str | None = None
    after: str = ""
    suffix: str = ""
    start: int = Field(default=0, ge=0)
    end: int = Field(default=0, ge=0)

    @property
    def has_match(self) -> bool:
        return self.match is not None

    @property
    def plain(self) -> str:
        """Excerpt as unmarked text."""
        return f"{self.prefix}{self.before}{self.match or ''}{self.after}{self.suffix}"


class DebugEntry(BaseModel):
    """One entry of a session debug trace."""

    msg: str
    data: str | None = None


# =============================================================================
# Settings Model
# =============================================================================


class Settings(BaseModel):
    """Persisted settings for scriptorai-search.

    Attributes:
        site_url: Site that serves the index documents and page viewer.
        static_dir: Local copy of the site's static directory. When set,
            index documents are read from it instead of the site.
        texts: Catalog of searchable texts.
        default_texts: Slugs selected when a session starts.

    Example:
        >>> settings = Settings(static_dir="./static")
    """

    site_url: str = Field(default=DEFAULT_SITE_URL, description="Scriptorai site URL")
    static_dir: str | None = Field(default=None, description="Local static directory")
    texts: list[TextSource] = Field(default_factory=lambda: list(DEFAULT_TEXTS))
    default_texts: list[str] = Field(default_factory=lambda: [t.slug for t in DEFAULT_TEXTS])

    @field_validator("site_url")
    @classmethod
    def validate_site_url(cls, v: str) -> str:
        """Validate site URL format."""
        return validate_url(v, "site_url")

    @model_validator(mode="after")
    def validate_catalog(self) -> Settings:
        """Slugs must be unique and default selections must exist."""
        slugs = [t.slug for t in self.texts]
        duplicates = sorted({s for s in slugs if slugs.count(s) > 1})
        if duplicates:
            raise ValueError(f"Duplicate text slugs in catalog: {', '.join(duplicates)}.")
        unknown = [s for s in self.default_texts if s not in slugs]
        if unknown:
            raise ValueError(
                f"Default texts not in catalog: {', '.join(unknown)}. "
                f"Known texts: {', '.join(slugs) or '(none)'}."
            )
        return self

    def get_text(self, slug: str) -> TextSource | None:
        """Look up a catalog entry by slug."""
        for source in self.texts:
            if source.slug == slug:
                return source
        return None
