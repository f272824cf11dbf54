"""HTTP server command.

Usage:
    syncstream serve                 # socket activation, else localhost:8080
    syncstream serve --port 3000     # custom fallback port
    syncstream serve --no-activation # always bind host:port
"""

import shlex

import click
from rich.console import Console

from syncstream.config import load_config
from syncstream.logging_config import setup_logging

console = Console(stderr=True)


@click.command()
@click.option("--host", default=None, help="Fallback host to bind (default: $HOST or localhost)")
@click.option("--port", default=None, type=int, help="Fallback port to bind (default: $PORT or 8080)")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="Config file (default: .syncstream/config.yaml)",
)
@click.option("--no-activation", is_flag=True, help="Ignore sockets passed by systemd")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
@click.option("-q", "--quiet", is_flag=True, help="Only log errors")
@click.option("--log-file", default=None, type=click.Path(dir_okay=False), help="Also log to this file")
def serve(
    host: str | None,
    port: int | None,
    config_path: str | None,
    no_activation: bool,
    verbose: bool,
    quiet: bool,
    log_file: str | None,
) -> None:
    """Start the sync streaming HTTP server.

    Sockets handed over by systemd socket activation are used when present.
    Otherwise a single listener is bound on HOST:PORT.
    """
    from syncstream.server import create_app
    from syncstream.server.listeners import activated_sockets, serve as run_server

    config = load_config(config_path)
    setup_logging(verbose=verbose or config.verbose, quiet=quiet, log_file=log_file)

    if host is None:
        host = config.server.host
    if port is None:
        port = config.server.port
    sockets = activated_sockets() if config.server.socket_activation and not no_activation else []

    app = create_app(config)

    console.print()
    console.print("[bold green]syncstream[/bold green]")
    console.print(f"   Command: {shlex.join(config.command)}", highlight=False)
    if sockets:
        console.print(f"   Listening: {len(sockets)} activated socket(s)")
    else:
        console.print(f"   URL: http://{host}:{port}/v1/sync")
    console.print()

    run_server(app, host=host, port=port, sockets=sockets, log_level=config.server.log_level)
