"""Main CLI entry point.

    syncstream serve                         # start the HTTP service
    syncstream watch http://host:8080/v1/sync  # trigger a run and follow it
"""

import sys

import click
from rich.console import Console

from syncstream import __version__
from syncstream.cli.serve_cmd import serve
from syncstream.cli.watch_cmd import watch
from syncstream.core.errors import SyncStreamError

console = Console(stderr=True)


def cli_entrypoint() -> None:
    """Wrapped entrypoint with global error handling.

    Renders SyncStreamError with its recovery hints instead of a traceback.
    Called from pyproject.toml [project.scripts].
    """
    try:
        main(standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.Abort:
        console.print("\n[dim]Interrupted[/dim]")
        sys.exit(130)
    except SyncStreamError as e:
        handle_error(e)


def handle_error(error: SyncStreamError) -> None:
    """Print a SyncStreamError and exit non-zero."""
    console.print(f"[red]{error}[/red]", highlight=False)
    for hint in error.recovery_hints:
        console.print(f"  [dim]- {hint}[/dim]", highlight=False)
    sys.exit(1)


@click.group()
@click.version_option(__version__, prog_name="syncstream")
def main() -> None:
    """Run a mirror sync on request and stream its output."""


main.add_command(serve)
main.add_command(watch)
