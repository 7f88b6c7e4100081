"""CLI entry point for scriptorai-search.

This module provides a CLI for searching the texts published on the
Scriptorai site. A search fetches the index documents of the selected
texts, ranks matches per text and merges them into one list with
highlighted excerpts and links into the page viewer.

Command Structure:
    scriptorai-search
    ├── search      One search (QUERY, or ?q= from --url)
    ├── shell       Interactive search session
    ├── texts       List the text catalog
    ├── config (subcommand group)
    │   └── show, set-site, set-static-dir, add-text, remove-text, reset
    └── completion
"""

import atexit
import json
from pathlib import Path
from typing import Annotated, NoReturn

import typer

from scriptorai_search import __version__
from scriptorai_search.completion import completion_app
from scriptorai_search.errors import SearchError
from scriptorai_search.logging_config import get_logger, setup_logging
from scriptorai_search.models import Settings
from scriptorai_search.render import OutputFormat, print_debug_log, print_results, print_texts
from scriptorai_search.session import SEARCH_PATH, SearchSession
from scriptorai_search.settings import (
    add_text,
    remove_text,
    reset_settings,
    resolve_settings,
    set_site_url,
    set_static_dir,
)
from scriptorai_search.storage import get_settings_path
from scriptorai_search.telemetry import TelemetryConfig, TelemetryService

logger = get_logger(__name__)

app = typer.Typer(invoke_without_command=True)
config_app = typer.Typer(help="Manage settings: site URL, static directory, text catalog")

SHELL_HELP = """\
Type a query to search the selected texts. Commands:
  :texts          List texts ([x] = selected)
  :toggle SLUG    Select or deselect a text
  :debug          Show the debug log of the last search
  :url            Show the page URL
  :quit           Leave the shell"""


# =============================================================================
# Version Callback
# =============================================================================


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"scriptorai-search version {__version__}")
        raise typer.Exit()


def _shutdown_telemetry() -> None:
    """Shutdown telemetry on exit."""
    TelemetryService.get_instance().shutdown()


# =============================================================================
# Helper Functions
# =============================================================================


def _exit_with_error(message: object) -> NoReturn:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def _load_settings_or_exit(site: str | None = None, static_dir: Path | None = None) -> Settings:
    """Resolve settings and apply command-line overrides."""
    try:
        settings = resolve_settings()
        overrides: dict[str, object] = {}
        if site:
            overrides["site_url"] = site
        if static_dir:
            overrides["static_dir"] = str(static_dir)
        if overrides:
            settings = Settings(**{**settings.model_dump(), **overrides})
    except ValueError as e:
        _exit_with_error(e)

    if settings.static_dir and not Path(settings.static_dir).expanduser().is_dir():
        _exit_with_error(f"Static directory not found: {settings.static_dir}")
    return settings


def _print_session(
    session: SearchSession, site_url: str, output_format: OutputFormat, debug: bool
) -> None:
    """Print the outcome of the last submission."""
    if session.error:
        typer.echo(f"Error: {session.error}", err=True)
    print_results(session.results, session.last_search_term, output_format, site_url)
    if debug:
        print_debug_log(session.debug.entries)


# Shared options
TextsOption = Annotated[
    list[str] | None,
    typer.Option("--text", "-t", help="Text slug to search (repeatable; default: configured)"),
]
UrlOption = Annotated[
    str, typer.Option("--url", help="Search page URL; its ?q= parameter starts a search")
]
SiteOption = Annotated[str | None, typer.Option("--site", help="Site URL to fetch indices from")]
StaticDirOption = Annotated[
    Path | None,
    typer.Option("--static-dir", help="Read indices from a local copy of the site's static dir"),
]
FormatOption = Annotated[
    OutputFormat, typer.Option("--format", "-f", help="Output format: human or json")
]
DebugOption = Annotated[bool, typer.Option("--debug", help="Print the debug log to stderr")]


# =============================================================================
# Main Callback
# =============================================================================


def _run_main_command() -> None:
    """Execute main command logic."""
    typer.echo("scriptorai-search - Search the texts of the Scriptorai site")
    typer.echo("Use --help for available commands")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Verbosity level: -v=INFO, -vv=DEBUG, -vvv=TRACE (includes library internals)",
        ),
    ] = 0,
    _version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
    telemetry: Annotated[
        bool,
        typer.Option(
            "--telemetry",
            envvar="OTEL_ENABLED",
            help="Enable OpenTelemetry tracing (or set OTEL_ENABLED=true)",
        ),
    ] = False,
) -> None:
    """Full-text search over the texts of the Scriptorai site.

    \b
    QUICK START:
        scriptorai-search search "saturn"
        scriptorai-search search "+saturn -mars" -t CCAG_1 --format json
        scriptorai-search search --url "/search?q=ptolemy"
        scriptorai-search shell

    \b
    QUERY SYNTAX:
        word        any word may match
        +word       must match
        -word       must not match
        title:word  match one field (title, text, page)
        word^2      boost a word
        sat*        wildcard
        saturn~1    fuzzy, edit distance 1

    \b
    DATA STORAGE:
        ~/.config/scriptorai-search/settings.json   - Site, static dir, text catalog
    """
    setup_logging(verbose)

    config = TelemetryConfig.from_env()
    config.enabled = telemetry or config.enabled
    TelemetryService.get_instance().initialize(config)
    atexit.register(_shutdown_telemetry)

    if ctx.invoked_subcommand is None:
        _run_main_command()


# =============================================================================
# Search Commands
# =============================================================================


@app.command(name="search")
def search_command(
    query: Annotated[str | None, typer.Argument(help="Search query")] = None,
    texts: TextsOption = None,
    url: UrlOption = SEARCH_PATH,
    site: SiteOption = None,
    static_dir: StaticDirOption = None,
    output_format: FormatOption = OutputFormat.HUMAN,
    debug: DebugOption = False,
) -> None:
    """Search the selected texts and print merged, ranked results.

    \b
    EXAMPLES:
        scriptorai-search search "saturn in the ascendant"
        scriptorai-search search "title:saturn" -t CCAG_1 -t CCAG_2
        scriptorai-search search --url "https://scriptorai.sadalsvvd.com/search?q=mars"
        scriptorai-search search ptolemy --static-dir ./static --format json

    \b
    JSON OUTPUT SCHEMA:
        [{"id": "...", "title": "...", "score": 1.23, "slug": "CCAG_1",
          "link": "https://.../texts/CCAG_1/7", "excerpts": [...], ...}]
    """
    settings = _load_settings_or_exit(site, static_dir)
    logger.info("Query: %s", query)

    try:
        with SearchSession.from_settings(settings, url=url, selected_texts=texts) as session:
            if query:
                session.query = query
                session.submit()
            elif session.on_load() is None:
                _exit_with_error("No query given. Pass QUERY or a --url with a ?q= parameter.")
            _print_session(session, settings.site_url, output_format, debug)
            if session.error and not session.results:
                raise typer.Exit(1)
    except SearchError as e:
        _exit_with_error(e)


def _handle_shell_command(session: SearchSession, line: str) -> bool:
    """Run one ':' command; returns False when the shell should exit."""
    command, _, arg = line[1:].partition(" ")
    arg = arg.strip()

    if command in ("quit", "q", "exit"):
        return False
    if command == "texts":
        print_texts(session.texts, session.selected_texts)
    elif command == "toggle":
        if not arg:
            typer.echo("Usage: :toggle SLUG", err=True)
        else:
            try:
                selected = session.toggle_text(arg)
                typer.echo(f"{arg} {'selected' if selected else 'deselected'}")
            except SearchError as e:
                typer.echo(f"Error: {e}", err=True)
    elif command == "debug":
        print_debug_log(session.debug.entries)
    elif command == "url":
        typer.echo(session.url)
    else:
        typer.echo(SHELL_HELP)
    return True


@app.command(name="shell")
def shell_command(
    texts: TextsOption = None,
    url: UrlOption = SEARCH_PATH,
    site: SiteOption = None,
    static_dir: StaticDirOption = None,
    debug: DebugOption = False,
) -> None:
    """Interactive search session.

    Index documents fetched by one search are reused by the next. A ?q=
    parameter in --url runs one search on start.

    \b
    EXAMPLES:
        scriptorai-search shell
        scriptorai-search shell --url "/search?q=saturn" -t CCAG_1
    """
    settings = _load_settings_or_exit(site, static_dir)

    try:
        session = SearchSession.from_settings(settings, url=url, selected_texts=texts)
    except SearchError as e:
        _exit_with_error(e)

    with session:
        typer.echo(SHELL_HELP)
        try:
            if session.on_load() is not None:
                _print_session(session, settings.site_url, OutputFormat.HUMAN, debug)
        except SearchError as e:
            typer.echo(f"Error: {e}", err=True)

        while True:
            try:
                line = typer.prompt("search", default="", show_default=False, prompt_suffix="> ")
            except typer.Abort:
                break

            line = line.strip()
            if not line:
                continue
            if line.startswith(":"):
                if not _handle_shell_command(session, line):
                    break
                continue

            session.query = line
            if not session.can_submit:
                typer.echo("Error: Select at least one text with :toggle SLUG", err=True)
                continue
            try:
                session.submit()
            except SearchError as e:
                typer.echo(f"Error: {e}", err=True)
                continue
            _print_session(session, settings.site_url, OutputFormat.HUMAN, debug)


@app.command(name="texts")
def texts_command(
    output_format: FormatOption = OutputFormat.HUMAN,
) -> None:
    """List searchable texts ([x] = selected by default)."""
    settings = _load_settings_or_exit()
    print_texts(settings.texts, settings.default_texts, output_format)


# =============================================================================
# CONFIG Commands
# =============================================================================


@config_app.command(name="show")
def config_show() -> None:
    """Show the effective settings (file plus environment overrides)."""
    settings = _load_settings_or_exit()
    typer.echo(f"# {get_settings_path()}")
    typer.echo(json.dumps(settings.model_dump(mode="json"), indent=2))


@config_app.command(name="set-site")
def config_set_site(
    site_url: Annotated[
        str, typer.Argument(help="Site URL, e.g. https://scriptorai.sadalsvvd.com")
    ],
) -> None:
    """Set the site index documents are fetched from."""
    try:
        settings = set_site_url(site_url)
    except ValueError as e:
        _exit_with_error(e)
    typer.echo(f"Site URL set to {settings.site_url}")


@config_app.command(name="set-static-dir")
def config_set_static_dir(
    static_dir: Annotated[
        Path | None, typer.Argument(help="Local static directory (omit to use the site)")
    ] = None,
) -> None:
    """Read index documents from a local static directory instead of the site."""
    if static_dir is not None and not static_dir.expanduser().is_dir():
        _exit_with_error(f"Static directory not found: {static_dir}")
    value = str(static_dir.expanduser().resolve()) if static_dir is not None else None
    set_static_dir(value)
    typer.echo(f"Static directory set to {value}" if value else "Static directory cleared")


@config_app.command(name="add-text")
def config_add_text(
    slug: Annotated[str, typer.Argument(help="Text slug, e.g. CCAG_2")],
    label: Annotated[str, typer.Argument(help="Display name, e.g. 'CCAG 2'")],
    index_path: Annotated[
        str | None,
        typer.Option(
            "--index-path", help="Site-relative index path (default: /texts_indices/SLUG.json)"
        ),
    ] = None,
    select: Annotated[
        bool, typer.Option("--select", help="Also select the text by default")
    ] = False,
) -> None:
    """Add a text to the catalog."""
    try:
        settings = add_text(slug, label, index_path=index_path, select=select)
    except ValueError as e:
        _exit_with_error(e)
    source = settings.get_text(slug)
    typer.echo(f"Added text {slug} ({source.index_path if source else index_path})")


@config_app.command(name="remove-text")
def config_remove_text(
    slug: Annotated[str, typer.Argument(help="Text slug to remove")],
) -> None:
    """Remove a text from the catalog."""
    if not remove_text(slug):
        _exit_with_error(f"Text '{slug}' not in catalog. List texts with: scriptorai-search texts")
    typer.echo(f"Removed text {slug}")


@config_app.command(name="reset")
def config_reset(
    force: Annotated[bool, typer.Option("--force", "-F", help="Skip confirmation")] = False,
) -> None:
    """Restore the default settings."""
    if not force:
        confirm = typer.confirm("Reset all settings to defaults?")
        if not confirm:
            typer.echo("Cancelled")
            raise typer.Exit(0)
    reset_settings()
    typer.echo("Settings reset to defaults")


# =============================================================================
# Register Subcommands
# =============================================================================

app.add_typer(config_app, name="config", help="Settings management commands")
app.add_typer(completion_app, name="completion")


if __name__ == "__main__":
    app()
