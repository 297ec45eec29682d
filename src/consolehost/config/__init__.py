"""Host settings, layered configuration and options binding.

Only settings are re-exported here; ``configuration`` and ``options`` depend
on the logging infrastructure, which itself imports settings.
"""

from .settings import Environment, LogLevel, Settings, build_settings

__all__ = ["Environment", "LogLevel", "Settings", "build_settings"]
