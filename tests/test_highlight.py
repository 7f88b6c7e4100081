"""Tests for context snippets."""

from scriptorai_search.highlight import highlight, leading_excerpt, result_excerpts


class TestHighlight:
    """Tests for highlight."""

    def test_ptolemy_example(self) -> None:
        excerpts = highlight("the great error of Ptolemy", "error")

        assert len(excerpts) == 1
        excerpt = excerpts[0]
        assert (excerpt.prefix, excerpt.before, excerpt.match, excerpt.after, excerpt.suffix) == (
            "",
            "the great ",
            "error",
            " of Ptolemy",
            "",
        )

    def test_window_is_clamped_with_markers(self) -> None:
        text = "a" * 150 + "error" + "b" * 150

        excerpt = highlight(text, "error")[0]

        assert excerpt.prefix == "..."
        assert excerpt.before == "a" * 100
        assert excerpt.match == "error"
        assert excerpt.after == "b" * 100
        assert excerpt.suffix == "..."
        assert (excerpt.start, excerpt.end) == (50, 255)

    def test_window_at_text_edges(self) -> None:
        text = "error" + "b" * 100
        excerpt = highlight(text, "error")[0]
        assert excerpt.prefix == ""
        assert excerpt.suffix == ""
        assert excerpt.end == len(text)

    def test_case_insensitive_keeps_original_case(self) -> None:
        assert [e.match for e in highlight("Error upon ERROR and error", "error")] == [
            "Error",
            "ERROR",
            "error",
        ]

    def test_one_excerpt_per_occurrence(self) -> None:
        text = "saturn " * 5
        excerpts = highlight(text, "saturn")
        assert len(excerpts) == 5
        assert [e.start for e in excerpts] == [0, 0, 0, 0, 0]

    def test_occurrences_do_not_overlap(self) -> None:
        excerpts = highlight("aaaa", "aa")
        assert [(e.before, e.match, e.after) for e in excerpts] == [
            ("", "aa", "aa"),
            ("aa", "aa", ""),
        ]

    def test_excerpts_stay_within_bounds(self) -> None:
        text = ("x" * 37 + "mars ") * 20
        for excerpt in highlight(text, "mars"):
            assert len(excerpt.before) <= 100
            assert len(excerpt.after) <= 100
            assert text[excerpt.start : excerpt.end] == excerpt.before + "mars" + excerpt.after

    def test_custom_context(self) -> None:
        excerpt = highlight("0123456789error0123456789", "error", context=3)[0]
        assert excerpt.plain == "...789error012..."

    def test_no_occurrence(self) -> None:
        assert highlight("no match here", "xyz") == []

    def test_empty_term(self) -> None:
        assert highlight("anything", "") == []

    def test_multi_word_term_matched_literally(self) -> None:
        assert len(highlight("the great error of Ptolemy", "great error")) == 1
        assert highlight("the great error of Ptolemy", "error great") == []


class TestLeadingExcerpt:
    """Tests for the fallback excerpt."""

    def test_short_text_kept_whole(self) -> None:
        excerpt = leading_excerpt("no match here")
        assert excerpt.plain == "no match here"
        assert excerpt.match is None

    def test_long_text_truncated(self) -> None:
        excerpt = leading_excerpt("z" * 1000)
        assert excerpt.before == "z" * 400
        assert excerpt.suffix == "..."
        assert excerpt.end == 400


class TestResultExcerpts:
    """Tests for result_excerpts."""

    def test_highlighted_when_term_occurs(self) -> None:
        excerpts = result_excerpts("the great error of Ptolemy", "error")
        assert [e.has_match for e in excerpts] == [True]

    def test_falls_back_to_leading_excerpt(self) -> None:
        excerpts = result_excerpts("no match here", "xyz")
        assert len(excerpts) == 1
        assert not excerpts[0].has_match
        assert len(excerpts[0].before) <= 400

    def test_no_text(self) -> None:
        assert result_excerpts("", "error") == []
        assert result_excerpts(None, "error") == []
