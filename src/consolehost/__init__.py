"""consolehost - layered configuration, loguru logging and options binding
composed into a single console application."""

from .app import App, ServiceProvider, create_app
from .application import Application
from .config.options import AppConfig
from .config.settings import Environment, LogLevel, Settings, build_settings
from .domain.exceptions import ConfigurationError, ConsoleHostError, ResolutionError

__all__ = [
    "App",
    "AppConfig",
    "Application",
    "ConfigurationError",
    "ConsoleHostError",
    "Environment",
    "LogLevel",
    "ResolutionError",
    "ServiceProvider",
    "Settings",
    "build_settings",
    "create_app",
]
