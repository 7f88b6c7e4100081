"""Tests for scriptorai_search.models."""

import pytest
from pydantic import ValidationError

from scriptorai_search.models import (
    DocumentRecord,
    Excerpt,
    SearchResult,
    Settings,
    TextSource,
    validate_url,
)
from tests.conftest import make_record


class TestTextSource:
    """Tests for catalog entries."""

    def test_index_path_defaults_from_slug(self) -> None:
        source = TextSource(slug="CCAG_1", label="CCAG 1")
        assert source.index_path == "/texts_indices/CCAG_1.json"

    def test_explicit_index_path_is_kept(self) -> None:
        source = TextSource(slug="CCAG_1", label="CCAG 1", index_path="/alt/ccag1.json")
        assert source.index_path == "/alt/ccag1.json"

    def test_relative_index_path_rejected(self) -> None:
        with pytest.raises(ValidationError, match="site-relative"):
            TextSource(slug="CCAG_1", label="CCAG 1", index_path="texts_indices/CCAG_1.json")

    def test_invalid_slug_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Invalid slug"):
            TextSource(slug="../etc", label="Bad")


class TestDocumentRecord:
    """Tests for index records as published by the content pipeline."""

    def test_pipeline_record_validates(self) -> None:
        record = DocumentRecord(**make_record("7", "body"))
        assert record.id == "7"
        assert record.project == "CCAG_1"
        assert record.link == "/texts/CCAG_1/page_7"

    def test_extra_keys_preserved(self) -> None:
        record = DocumentRecord(**make_record("7", "body"))
        assert record.model_dump()["type"] == "page"

    def test_numbers_coerced_to_strings(self) -> None:
        record = DocumentRecord(id=12, title="t", page=3, page_id_string=3, project="P")
        assert record.id == "12"
        assert record.page == "3"
        assert record.page_id_string == "3"

    def test_null_text_is_empty(self) -> None:
        record = DocumentRecord(id="1", title="t", text=None)
        assert record.text == ""

    def test_empty_id_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DocumentRecord(id="", title="t")

    def test_page_label_prefers_page_name(self) -> None:
        assert DocumentRecord(id="1", title="t", page="1", page_name="Folio 1r").page_label == (
            "Folio 1r"
        )
        assert DocumentRecord(id="1", title="t", page="1").page_label == "1"

    def test_link_requires_project_and_page_id(self) -> None:
        assert DocumentRecord(id="1", title="Page 1", text="x", page="1").link is None


class TestSearchResult:
    """Tests for joined search results."""

    def test_degraded_result_has_no_content(self) -> None:
        result = SearchResult(ref="99", score=1.5, slug="CCAG_1")
        assert result.title is None
        assert result.text is None
        assert result.page_label is None
        assert result.link is None
        assert result.to_dict() == {
            "id": None,
            "ref": "99",
            "score": 1.5,
            "slug": "CCAG_1",
            "link": None,
        }

    def test_to_dict_makes_link_absolute(self) -> None:
        record = DocumentRecord(**make_record("2", "body"))
        result = SearchResult(ref="2", score=0.5, slug="CCAG_1", record=record)

        data = result.to_dict("https://scriptorai.sadalsvvd.com")

        assert data["link"] == "https://scriptorai.sadalsvvd.com/texts/CCAG_1/page_2"
        assert data["title"] == "CCAG 1 - Page 2"
        assert data["score"] == 0.5
        assert data["slug"] == "CCAG_1"


class TestExcerpt:
    """Tests for excerpts."""

    def test_plain_joins_parts(self) -> None:
        excerpt = Excerpt(prefix="...", before="the ", match="error", after=" of", suffix="...")
        assert excerpt.has_match
        assert excerpt.plain == "...the error of..."

    def test_leading_excerpt_has_no_match(self) -> None:
        assert not Excerpt(before="start").has_match


class TestSettings:
    """Tests for the settings model."""

    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.site_url == "https://scriptorai.sadalsvvd.com"
        assert [t.slug for t in settings.texts] == ["CCAG_1"]
        assert settings.default_texts == ["CCAG_1"]
        assert settings.static_dir is None

    def test_site_url_trailing_slash_stripped(self) -> None:
        assert Settings(site_url="https://example.org/").site_url == "https://example.org"

    def test_invalid_site_url_rejected(self) -> None:
        with pytest.raises(ValidationError, match="http"):
            Settings(site_url="ftp://example.org")

    def test_duplicate_slugs_rejected(self) -> None:
        source = {"slug": "CCAG_1", "label": "CCAG 1"}
        with pytest.raises(ValidationError, match="Duplicate"):
            Settings(texts=[source, source])

    def test_unknown_default_text_rejected(self) -> None:
        with pytest.raises(ValidationError, match="not in catalog"):
            Settings(default_texts=["CCAG_9"])

    def test_get_text(self) -> None:
        settings = Settings()
        assert settings.get_text("CCAG_1") is not None
        assert settings.get_text("CCAG_9") is None


def test_validate_url_accepts_http() -> None:
    """Plain http URLs (local mirrors) are accepted."""
    assert validate_url("http://localhost:8000/") == "http://localhost:8000"
