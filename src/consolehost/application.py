"""The application resolved and run by the host."""

import traceback
import typing as t

from .config.options import AppConfig

if t.TYPE_CHECKING:
    import loguru


class Application:
    """Emits one record per severity level, then a configured greeting.

    Both dependencies are constructor-injected by the service provider.
    ``settings`` may be None, in which case the name renders empty.
    """

    def __init__(self, logger: "loguru.Logger", settings: AppConfig | None) -> None:
        self.logger = logger
        self.settings = settings

    def run(self) -> None:
        self.logger.critical("Log Critical")
        self.logger.error("Log Error")
        self.logger.warning("Log Warning")
        self.logger.info("Log Information")
        # Dropped by the default INFO minimum level
        self.logger.debug("Log Debug")
        self.logger.trace("Log Trace")

        try:
            name = self.settings.name if self.settings is not None else ""
            self.logger.info("This is a console application for {name}", name=name)
        except Exception as e:
            self.logger.error("".join(traceback.format_exception(e)))
