"""Domain types shared across consolehost."""

from .exceptions import ConfigurationError, ConsoleHostError, ResolutionError

__all__ = ["ConsoleHostError", "ConfigurationError", "ResolutionError"]
