"""Completion command for scriptorai-search."""

from enum import Enum

import typer
from click.shell_completion import BashComplete, FishComplete, ShellComplete, ZshComplete

completion_app = typer.Typer(help="Generate shell completion scripts.")

PROG_NAME = "scriptorai-search"
COMPLETE_VAR = "_SCRIPTORAI_SEARCH_COMPLETE"

COMPLETION_CLASSES: dict[str, type[ShellComplete]] = {
    "bash": BashComplete,
    "zsh": ZshComplete,
    "fish": FishComplete,
}


class Shell(str, Enum):
    """Supported shell types for completion."""

    bash = "bash"
    zsh = "zsh"
    fish = "fish"


@completion_app.command(name="generate")
def generate_completion(
    shell: Shell = typer.Argument(..., help="Shell type (bash, zsh, fish)"),
) -> None:
    """Generate shell completion script.

    \b
    # Bash (add to ~/.bashrc):
    eval "$(scriptorai-search completion generate bash)"

    \b
    # Zsh (add to ~/.zshrc):
    eval "$(scriptorai-search completion generate zsh)"

    \b
    # Fish:
    scriptorai-search completion generate fish > ~/.config/fish/completions/scriptorai-search.fish
    """
    from scriptorai_search.cli import app

    click_command = typer.main.get_command(app)
    completer = COMPLETION_CLASSES[shell.value](
        cli=click_command,
        ctx_args={},
        prog_name=PROG_NAME,
        complete_var=COMPLETE_VAR,
    )
    typer.echo(completer.source())
