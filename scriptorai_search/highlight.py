"""Context snippets with highlighted matches.

Snippets are cut around literal, case-insensitive occurrences of the
submitted search term. This is plain substring matching, independent of
the tokenization and stemming the ranked index uses, so a result can be
ranked on "errors" yet show no "error" snippet, in which case the leading
part of the text is shown instead.

The windowing is deliberately naive: no Unicode normalization, no merging
of overlapping windows, no deduplication.

Functions:
    highlight: One excerpt per occurrence of a term.
    leading_excerpt: Plain excerpt of the start of a text.
    result_excerpts: Excerpts to display for one search result.
"""

from scriptorai_search.models import Excerpt

CONTEXT_CHARS = 100
LEADING_CHARS = 400
ELLIPSIS = "..."


def highlight(text: str, term: str, context: int = CONTEXT_CHARS) -> list[Excerpt]:
    """Cut one excerpt around every occurrence of a term.

    Occurrences are found case-insensitively and never overlap: the scan
    resumes after the end of each occurrence. The window around an
    occurrence at ``idx`` is ``[idx - context, idx + len(term) + context]``
    clamped to the text; "..." marks a side that was cut.

    Args:
        text: Document body.
        term: Literal search term.
        context: Characters of context on each side.

    Returns:
        Excerpts in text order; empty when term is empty or absent.

    Example:
        >>> [e.match for e in highlight("Error upon error", "error")]
        ['Error', 'error']
    """
    if not term:
        return []

    lower_text = text.lower()
    lower_term = term.lower()
    length = len(lower_term)
    excerpts: list[Excerpt] = []

    idx = lower_text.find(lower_term)
    while idx != -1:
        start = max(0, idx - context)
        end = min(len(text), idx + length + context)
        excerpts.append(
            Excerpt(
                prefix=ELLIPSIS if start > 0 else "",
                before=text[start:idx],
                match=text[idx : idx + length],
                after=text[idx + length : end],
                suffix=ELLIPSIS if end < len(text) else "",
                start=start,
                end=end,
            )
        )
        idx = lower_text.find(lower_term, idx + length)

    return excerpts


def leading_excerpt(text: str, limit: int = LEADING_CHARS) -> Excerpt:
    """Plain excerpt of the first ``limit`` characters of a text."""
    end = min(len(text), limit)
    return Excerpt(
        before=text[:end],
        suffix=ELLIPSIS if len(text) > limit else "",
        start=0,
        end=end,
    )


def result_excerpts(text: str | None, term: str) -> list[Excerpt]:
    """Excerpts to show for a search result.

    Returns the highlighted excerpts, or a single leading excerpt when the
    term does not occur literally, or nothing when there is no text.
    """
    if not text:
        return []
    return highlight(text, term) or [leading_excerpt(text)]
