"""BM25 search functionality for scriptorai-search.

This module builds an in-memory BM25 index per text and runs queries
against it. Indices are ephemeral: one is built from a document
collection every time a search runs and thrown away afterwards, so an
index always agrees with the collection it is searched alongside.

Each of the fields title, text and page gets its own bm25s retriever;
a document's score for a term is the sum of its per-field scores.

Classes:
    Analyzer: bm25s tokenization with English stopwords and stemming.
    SearchIndex: Queryable index over one document collection.

Functions:
    build_index: Build a SearchIndex from a document collection.
    execute_query: Run a query and join matches with their records.
    merge_results: Merge per-text results into one ranked list.
    search_collections: Build, query and merge across several texts.
"""

import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import bm25s  # type: ignore[import-untyped]
import numpy as np
import Stemmer  # type: ignore[import-not-found]
from rapidfuzz.distance import Levenshtein

from scriptorai_search.errors import IndexBuildError, QuerySyntaxError
from scriptorai_search.logging_config import get_logger
from scriptorai_search.models import DocumentRecord, SearchResult
from scriptorai_search.query import SEARCH_FIELDS, Clause, Presence, parse_query
from scriptorai_search.storage import DocumentCollection, TraceFn
from scriptorai_search.telemetry import trace_span, traced

logger = get_logger(__name__)

# Keep single-character tokens so bare page numbers ("7") are searchable.
TOKEN_PATTERN = r"(?u)\b\w+\b"


def _no_trace(msg: str, data: Any) -> None:
    pass


# =============================================================================
# Analyzer
# =============================================================================


class Analyzer:
    """Tokenize text the same way for indexing and querying.

    Lowercases, drops English stopwords and applies the English Snowball
    stemmer, using bm25s' tokenizer.
    """

    def __init__(self) -> None:
        self.stemmer = Stemmer.Stemmer("english")

    def tokenize(self, texts: list[str]) -> Any:
        """Tokenize a batch of texts into a bm25s Tokenized (ids + vocab)."""
        return bm25s.tokenize(
            texts,
            stopwords="en",
            stemmer=self.stemmer,
            token_pattern=TOKEN_PATTERN,
            show_progress=False,
        )

    def terms(self, text: str) -> list[str]:
        """Tokenize one string into its index terms.

        Example:
            >>> Analyzer().terms("The great errors of Ptolemy")
            ['great', 'error', 'ptolemi']
        """
        tokenized = self.tokenize([text])
        id_to_token = {token_id: token for token, token_id in tokenized.vocab.items()}
        return [id_to_token[token_id] for token_id in tokenized.ids[0] if id_to_token[token_id]]


# =============================================================================
# Search Index
# =============================================================================


class SearchIndex:
    """Queryable BM25 index over one document collection.

    Attributes:
        refs: Document ids in collection order.
        analyzer: Analyzer used for indexing, reused for queries.
    """

    def __init__(
        self,
        refs: Sequence[str],
        retrievers: Mapping[str, bm25s.BM25],
        analyzer: Analyzer,
    ) -> None:
        self.refs = tuple(refs)
        self.analyzer = analyzer
        self._retrievers = dict(retrievers)

    def __len__(self) -> int:
        return len(self.refs)

    @property
    def fields(self) -> tuple[str, ...]:
        """Fields that have at least one indexed value."""
        return tuple(self._retrievers)

    def vocabulary(self, field: str) -> set[str]:
        """Indexed terms of a field (empty when the field has no values)."""
        retriever = self._retrievers.get(field)
        if retriever is None:
            return set()
        return {token for token in retriever.vocab_dict if token}

    def term_scores(self, field: str, term: str) -> np.ndarray:
        """Per-document BM25 scores of one indexed term in one field."""
        retriever = self._retrievers.get(field)
        if retriever is None or term not in retriever.vocab_dict:
            return np.zeros(len(self.refs))
        return np.asarray(retriever.get_scores([term]), dtype=float)

    def query(self, query: str) -> list[tuple[str, float]]:
        """Run a query and return ranked (ref, score) pairs.

        A document is returned when it matches at least one optional or
        required clause, matches every required clause and matches no
        prohibited clause. A query made only of prohibited clauses returns
        every other document with score 0.

        Args:
            query: Query string, see scriptorai_search.query.

        Returns:
            (ref, score) pairs, best first; ties keep collection order.

        Raises:
            QuerySyntaxError: If the query cannot be parsed.
        """
        clauses = parse_query(query)
        count = len(self.refs)
        if count == 0 or not clauses:
            return []

        total = np.zeros(count)
        matched = np.zeros(count, dtype=bool)
        required = np.ones(count, dtype=bool)
        prohibited = np.zeros(count, dtype=bool)
        has_positive = False

        for clause in clauses:
            scores = self._clause_scores(clause)
            present = scores > 0
            if clause.presence is Presence.PROHIBITED:
                prohibited |= present
                continue
            has_positive = True
            if clause.presence is Presence.REQUIRED:
                required &= present
            matched |= present
            total += scores * clause.boost

        if not has_positive:
            matched = np.ones(count, dtype=bool)
        selected = np.flatnonzero(matched & required & ~prohibited)
        ranked = sorted(selected, key=lambda i: total[i], reverse=True)
        return [(self.refs[i], float(total[i])) for i in ranked]

    def _clause_scores(self, clause: Clause) -> np.ndarray:
        scores = np.zeros(len(self.refs))
        for field in clause.fields:
            for term in self._expand(clause, field):
                scores += self.term_scores(field, term)
        return scores

    def _expand(self, clause: Clause, field: str) -> list[str]:
        """Indexed terms of a field that a clause stands for."""
        vocabulary = self.vocabulary(field)
        if not vocabulary:
            return []

        if clause.is_wildcard:
            pattern = re.compile(
                ".*".join(re.escape(part) for part in clause.term.lower().split("*"))
            )
            return sorted(term for term in vocabulary if pattern.fullmatch(term))

        terms = self.analyzer.terms(clause.term)
        if clause.edit_distance == 0:
            return [term for term in terms if term in vocabulary]

        distance = clause.edit_distance
        expanded: set[str] = set()
        for base in terms:
            expanded.update(
                candidate
                for candidate in vocabulary
                if Levenshtein.distance(base, candidate, score_cutoff=distance) <= distance
            )
        return sorted(expanded)


@traced("search.build_index")
def build_index(collection: Sequence[DocumentRecord]) -> SearchIndex:
    """Build a SearchIndex over a document collection.

    Every record is added before the index is returned. The ``id`` of
    each record is its reference and must be unique.

    Args:
        collection: Records of one text.

    Returns:
        SearchIndex over title, text and page.

    Raises:
        IndexBuildError: On duplicate ids or a tokenizer/indexer failure.
    """
    refs = [record.id for record in collection]
    seen: set[str] = set()
    for ref in refs:
        if ref in seen:
            raise IndexBuildError(f"duplicate document id '{ref}'")
        seen.add(ref)

    analyzer = Analyzer()
    retrievers: dict[str, bm25s.BM25] = {}
    for field in SEARCH_FIELDS:
        values = [getattr(record, field) or "" for record in collection]
        if not any(values):
            continue
        tokenized = analyzer.tokenize(values)
        # Only stopwords or punctuation: nothing to search in this field.
        if not any(token for token in tokenized.vocab):
            continue
        try:
            retriever = bm25s.BM25()
            retriever.index(tokenized, show_progress=False)
        except (ValueError, TypeError, IndexError) as e:
            raise IndexBuildError(f"field '{field}': {e}") from e
        retrievers[field] = retriever

    logger.debug("Indexed %d records over fields %s", len(refs), ", ".join(retrievers) or "-")
    return SearchIndex(refs, retrievers, analyzer)


# =============================================================================
# Query Execution
# =============================================================================


def execute_query(
    index: SearchIndex,
    collection: Sequence[DocumentRecord],
    query: str,
    slug: str,
    trace: TraceFn | None = None,
) -> list[SearchResult]:
    """Run a query and join each match with its document record.

    A match whose ref has no record in the collection is logged and kept
    as a degraded result without content.

    Args:
        index: Index built from the collection.
        collection: Records to resolve matches against.
        query: Query string, passed through unmodified.
        slug: Text the collection belongs to.
        trace: Optional debug trace callback.

    Returns:
        SearchResults, best first.

    Raises:
        QuerySyntaxError: If the query cannot be parsed.
    """
    trace = trace or _no_trace
    with trace_span("search.execute", {"text.slug": slug}) as span:
        matches = index.query(query)
        trace(
            f"Search results for {slug}",
            [{"ref": ref, "score": score} for ref, score in matches],
        )

        records = {record.id: record for record in collection}
        results: list[SearchResult] = []
        for ref, score in matches:
            record = records.get(ref)
            if record is None:
                logger.warning("No entry found for ref %s in %s", ref, slug)
                trace(f"No entry found for ref {ref} in {slug}", None)
            results.append(SearchResult(ref=ref, score=score, slug=slug, record=record))

        if span is not None:
            span.set_attribute("search.results", len(results))
    return results


def merge_results(per_text_results: Iterable[Sequence[SearchResult]]) -> list[SearchResult]:
    """Merge per-text result lists into one list, best score first.

    The sort is stable: equal scores keep text order, then rank order.

    Example:
        >>> merged = merge_results([[low], [high]])
        >>> [r.score for r in merged]
        [0.9, 0.5]
    """
    combined = [result for results in per_text_results for result in results]
    return sorted(combined, key=lambda result: result.score, reverse=True)


@traced("search.search_collections")
def search_collections(
    collections: Mapping[str, DocumentCollection],
    slugs: Iterable[str],
    query: str,
    trace: TraceFn | None = None,
) -> list[SearchResult]:
    """Search several texts and merge their results.

    Texts without a loaded collection are skipped. A text whose index
    cannot be built, or against which the query fails, is logged and
    contributes nothing; the other texts are still searched.

    Args:
        collections: Loaded collections keyed by slug.
        slugs: Texts to search, in order.
        query: Query string.
        trace: Optional debug trace callback.

    Returns:
        Merged SearchResults, best first.
    """
    trace = trace or _no_trace
    per_text: list[list[SearchResult]] = []

    for slug in slugs:
        collection = collections.get(slug)
        if collection is None:
            logger.info("No entries loaded for %s", slug)
            trace(f"No entries loaded for {slug}", None)
            continue

        trace(
            f"Building search index for {slug}",
            {
                "count": len(collection),
                "sample": collection[0].model_dump() if collection else None,
            },
        )
        try:
            index = build_index(collection)
        except IndexBuildError as e:
            logger.warning("Error building search index for %s: %s", slug, e)
            trace(f"Error building search index for {slug}", str(e))
            continue
        trace(f"Search index built for {slug}", None)

        try:
            results = execute_query(index, collection, query, slug, trace)
        except QuerySyntaxError as e:
            logger.warning("Error running search for %s: %s", slug, e)
            trace(f"Error running search for {slug}", str(e))
            continue

        logger.info("Found %d results in %s", len(results), slug)
        per_text.append(results)

    merged = merge_results(per_text)
    trace("Final sorted results", [result.to_dict() for result in merged])
    return merged
