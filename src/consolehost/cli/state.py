"""CLI state container."""

import typing as t

from ..app import App, create_app
from ..config.settings import Settings

AppFactory = t.Callable[[Settings], App]


class CLIState:
    """Application state container for CLI commands.

    Holds Settings and the factory used to build the App from them, so tests
    can substitute a prepared App.
    """

    def __init__(self, settings: Settings, app_factory: AppFactory = create_app):
        self.settings = settings
        self._app_factory = app_factory

    def create_app(self) -> App:
        return self._app_factory(self.settings)
