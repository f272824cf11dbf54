"""syncstream CLI - serve sync runs and watch them from a client."""

from syncstream.cli.main import cli_entrypoint, main

__all__ = ["cli_entrypoint", "main"]
