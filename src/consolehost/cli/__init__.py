"""Typer entry point for the console host."""

from .app import create_cli_app, run_host, wait_for_key

__all__ = ["cli", "create_cli_app", "run_host", "wait_for_key"]


def cli() -> None:
    """Console-script entry: build the Typer app and hand it ``sys.argv``."""
    create_cli_app()(prog_name="consolehost")
