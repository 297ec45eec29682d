"""CLI application factory."""

import sys
from pathlib import Path
from typing import Optional

import typer

from ..config.settings import LogLevel, Settings, build_settings
from ..domain.exceptions import ResolutionError
from .state import AppFactory, CLIState


def stdin_is_interactive() -> bool:
    return sys.stdin.isatty()


def wait_for_key() -> None:
    """Block until a key is pressed; returns at once without a terminal."""
    if not stdin_is_interactive():
        return
    typer.echo("Press any key to exit...")
    typer.getchar()


def run_host(state: CLIState, wait: bool = True) -> None:
    """Build the app, resolve the application and run it.

    Raises:
        typer.Exit: With code 1 if the application cannot be resolved
        ConfigurationError: If a required configuration source is unusable
    """
    app = state.create_app()
    logger = app.logger_factory.create_logger(__name__)

    try:
        application = app.services.resolve_application()
    except ResolutionError as e:
        logger.critical(f"Startup failed: {e}")
        raise typer.Exit(code=1)

    application.run()

    if wait:
        wait_for_key()


def create_cli_app(
    settings: Settings | None = None,
    app_factory: AppFactory | None = None,
) -> typer.Typer:
    """Create CLI application with optional settings override.

    Args:
        settings: Optional Settings override for testing
        app_factory: Optional App factory override for testing

    Returns:
        Configured Typer application; running it without a subcommand runs
        the host
    """
    app = typer.Typer(
        name="consolehost",
        help="Load configuration, then resolve and run the application",
        no_args_is_help=False,
    )

    @app.callback(invoke_without_command=True)
    def main(
        ctx: typer.Context,
        config: Optional[Path] = typer.Option(
            None,
            "--config",
            "-c",
            help="JSON configuration file (required when given)",
        ),
        env_prefix: Optional[str] = typer.Option(
            None,
            "--env-prefix",
            help="Prefix of environment variables to load",
        ),
        secrets_id: Optional[str] = typer.Option(
            None,
            "--secrets-id",
            help="User secrets id to load after the environment",
        ),
        logging_config: Optional[Path] = typer.Option(
            None,
            "--logging-config",
            help="JSON logging configuration file",
        ),
        verbose: bool = typer.Option(
            False,
            "--verbose",
            "-v",
            help="Enable verbose output (DEBUG logging)",
        ),
        no_wait: bool = typer.Option(
            False,
            "--no-wait",
            help="Exit without waiting for a key press",
        ),
    ) -> None:
        """Global options; with no subcommand the host runs."""
        if settings is not None:
            resolved_settings = settings
        else:
            resolved_settings = build_settings(
                config_file=config,
                config_optional=False if config is not None else None,
                env_prefix=env_prefix,
                secrets_id=secrets_id,
                logging_config=logging_config,
                log_level=LogLevel.DEBUG if verbose else None,
            )

        if app_factory is not None:
            state = CLIState(resolved_settings, app_factory=app_factory)
        else:
            state = CLIState(resolved_settings)
        ctx.obj = state

        if ctx.invoked_subcommand is None:
            run_host(state, wait=not no_wait)

    return app
