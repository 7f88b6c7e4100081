"""Output rendering for scriptorai-search.

Human output mirrors the result list of the site's search page: a linked
title, the text and page a result comes from, and its excerpts with every
match emphasized. JSON output carries the same information for scripting.

Functions:
    format_excerpt: Render one excerpt, emphasizing its match.
    print_results: Print a Result Set in human or JSON form.
    print_debug_log: Print a session's debug trace to stderr.
    print_texts: Print the text catalog.
"""

import json
from collections.abc import Sequence
from enum import Enum
from typing import Any

import typer

from scriptorai_search.highlight import result_excerpts
from scriptorai_search.models import DebugEntry, Excerpt, SearchResult, TextSource


class OutputFormat(str, Enum):
    """Output format options."""

    HUMAN = "human"
    JSON = "json"


def format_excerpt(excerpt: Excerpt) -> str:
    """Render one excerpt with its match in bold yellow."""
    match = typer.style(excerpt.match, fg=typer.colors.YELLOW, bold=True) if excerpt.match else ""
    return f"{excerpt.prefix}{excerpt.before}{match}{excerpt.after}{excerpt.suffix}"


def _result_data(result: SearchResult, term: str, site_url: str | None) -> dict[str, Any]:
    data = result.to_dict(site_url)
    data["excerpts"] = [e.model_dump() for e in result_excerpts(result.text, term)]
    return data


def print_results(
    results: Sequence[SearchResult],
    term: str,
    output_format: OutputFormat,
    site_url: str | None = None,
) -> None:
    """Print a Result Set.

    Args:
        results: Results, best first.
        term: Last submitted search term, used for excerpts.
        output_format: Human or JSON.
        site_url: Site URL for absolute deep links.
    """
    if output_format == OutputFormat.JSON:
        typer.echo(json.dumps([_result_data(r, term, site_url) for r in results], indent=2))
        return

    if not results:
        typer.echo("No results found")
        return

    for i, result in enumerate(results, 1):
        title = result.title or f"(missing entry {result.ref})"
        typer.echo(f"[{i}] {typer.style(title, bold=True)} (score: {result.score:.4f})")
        typer.echo(f"    Text: {result.slug} | Page: {result.page_label or '-'}")
        if result.link:
            link = f"{site_url}{result.link}" if site_url else result.link
            typer.echo(f"    {typer.style(link, fg=typer.colors.BLUE)}")
        for excerpt in result_excerpts(result.text, term):
            typer.echo(f"\n    {format_excerpt(excerpt)}")
        typer.echo()


def print_debug_log(entries: Sequence[DebugEntry]) -> None:
    """Print debug entries (newest first) to stderr."""
    typer.echo(typer.style("Debug Log:", bold=True), err=True)
    for entry in entries:
        typer.echo(f"- {entry.msg}", err=True)
        if entry.data is not None:
            for line in entry.data.splitlines():
                typer.echo(f"    {line}", err=True)


def print_texts(
    texts: Sequence[TextSource],
    selected: Sequence[str],
    output_format: OutputFormat = OutputFormat.HUMAN,
) -> None:
    """Print the text catalog, marking selected texts."""
    if output_format == OutputFormat.JSON:
        data = [{**t.model_dump(), "selected": t.slug in selected} for t in texts]
        typer.echo(json.dumps(data, indent=2))
        return

    if not texts:
        typer.echo("No texts in catalog")
        return

    for source in texts:
        marker = "[x]" if source.slug in selected else "[ ]"
        typer.echo(f"{marker} {source.slug}: {source.label} ({source.index_path})")
