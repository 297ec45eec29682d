from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path


class Environment(Enum):
    """Runtime environment for the application."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Ordered severity levels, lowest first.

    Values match loguru's level names so they can be passed straight through.
    """

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True)
class Settings:
    """Host settings: where configuration and logging come from.

    These describe the *sources*; the values the application itself reads
    live in the configuration root and are bound into options objects.
    """

    environment: Environment = Environment.PRODUCTION
    log_level: LogLevel = LogLevel.INFO
    base_dir: Path = field(default_factory=Path.cwd)
    config_file: Path = Path("appsettings.json")
    config_optional: bool = True
    env_prefix: str = "CONSOLEHOST_"
    secrets_id: str | None = None
    secrets_optional: bool = True
    options_section: str = "appConfig"
    logging_config: Path | None = None


def build_settings(**overrides) -> Settings:
    """Build Settings from defaults, applying only non-None overrides.

    Unknown keys raise TypeError, same as the dataclass constructor.
    """
    known = {f.name for f in fields(Settings)}
    unknown = set(overrides) - known
    if unknown:
        raise TypeError(f"Unknown settings: {', '.join(sorted(unknown))}")

    values = {key: value for key, value in overrides.items() if value is not None}
    return replace(Settings(), **values)
