"""Logging infrastructure built on loguru.

Every logger handed out by this module is loguru's global logger bound with a
``category`` extra naming its owner. Sinks are configured either from host
settings (one stderr sink at a minimum level) or from an external JSON
logging configuration file.
"""

import json
import sys
import typing as t
from pathlib import Path

from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..config.settings import Environment, LogLevel, Settings
from ..domain.exceptions import ConfigurationError

if t.TYPE_CHECKING:
    import loguru

DEVELOPMENT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[category]}</cyan> - <level>{message}</level>"
)
PLAIN_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[category]} | {message}"
)

_configured = False


class SinkConfig(BaseModel):
    """One output of the logging configuration file."""

    target: str = "stderr"
    level: LogLevel = LogLevel.INFO
    format: str | None = None
    colorize: bool | None = None
    serialize: bool = False

    @field_validator("level", mode="before")
    @classmethod
    def uppercase_level(cls, value: t.Any) -> t.Any:
        return value.upper() if isinstance(value, str) else value


class LoggingConfig(BaseModel):
    """Schema of the external logging configuration file."""

    sinks: list[SinkConfig] = Field(default_factory=lambda: [SinkConfig()])


def load_logging_config(path: Path) -> LoggingConfig:
    """Read and validate a JSON logging configuration file.

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            f"Logging configuration '{path}' could not be read: {e}"
        ) from e

    try:
        return LoggingConfig.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ConfigurationError(
            f"Logging configuration '{path}' is invalid: {e}"
        ) from e


def _format_for(environment: Environment) -> str:
    if environment == Environment.DEVELOPMENT:
        return DEVELOPMENT_FORMAT
    return PLAIN_FORMAT


def _resolve_target(target: str, base_dir: Path) -> t.Any:
    if target == "stderr":
        return sys.stderr
    if target == "stdout":
        return sys.stdout
    path = Path(target)
    return path if path.is_absolute() else base_dir / path


def _reset_handlers() -> None:
    logger.remove()
    logger.configure(extra={"category": ""})


def configure_logger(
    level: LogLevel | str = LogLevel.INFO,
    environment: Environment = Environment.PRODUCTION,
    sink: t.Any = None,
) -> None:
    """Replace all handlers with a single sink at ``level``.

    Args:
        level: Minimum severity delivered to the sink
        environment: Selects the record format
        sink: Any loguru sink; defaults to stderr
    """
    global _configured

    _reset_handlers()
    logger.add(
        sink if sink is not None else sys.stderr,
        level=LogLevel(level).value,
        format=_format_for(environment),
        backtrace=environment == Environment.DEVELOPMENT,
        diagnose=environment == Environment.DEVELOPMENT,
    )
    _configured = True


def apply_logging_config(
    config: LoggingConfig,
    environment: Environment = Environment.PRODUCTION,
    base_dir: Path | None = None,
) -> None:
    """Replace all handlers with the sinks described by ``config``.

    Relative file targets resolve against ``base_dir``.
    """
    global _configured

    base_dir = base_dir if base_dir is not None else Path.cwd()
    _reset_handlers()
    for sink in config.sinks:
        logger.add(
            _resolve_target(sink.target, base_dir),
            level=sink.level.value,
            format=sink.format or _format_for(environment),
            colorize=sink.colorize,
            serialize=sink.serialize,
        )
    _configured = True


def setup_logging(settings: Settings) -> None:
    """Configure logging from host settings.

    When ``settings.logging_config`` is set the file decides the sinks and
    their levels; otherwise one stderr sink at ``settings.log_level`` is used.
    """
    if settings.logging_config is None:
        configure_logger(level=settings.log_level, environment=settings.environment)
        return

    path = settings.logging_config
    if not path.is_absolute():
        path = settings.base_dir / path
    apply_logging_config(
        load_logging_config(path), settings.environment, base_dir=path.parent
    )


def get_logger(name: str) -> "loguru.Logger":
    """Return a logger bound to ``name``, configuring defaults if needed."""
    if not _configured:
        configure_logger()
    return logger.bind(category=name)


def reset_logging() -> None:
    """Remove every handler and mark logging as unconfigured."""
    global _configured

    logger.remove()
    _configured = False


def is_configured() -> bool:
    return _configured


class LoggerFactory:
    """Hands out category-scoped loggers.

    Creating the factory applies the logging configuration, so one instance
    should exist per process.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        setup_logging(self.settings)

    def create_logger(self, owner: str | type) -> "loguru.Logger":
        """Return a logger whose category is ``owner``.

        Types are named by their fully qualified name.
        """
        if isinstance(owner, type):
            category = f"{owner.__module__}.{owner.__qualname__}"
        else:
            category = owner
        return get_logger(category)
