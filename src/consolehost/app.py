"""Composition root.

Builds the process-wide singletons (logger factory, configuration root) and
the service provider that constructs the application from them.
"""

import typing as t
from dataclasses import dataclass

from pydantic import BaseModel, ValidationError

from .application import Application
from .config.configuration import ConfigurationBuilder, ConfigurationRoot
from .config.options import AppConfig, bind_options
from .config.settings import Settings
from .domain.exceptions import ResolutionError
from .infrastructure.logging import LoggerFactory

ModelT = t.TypeVar("ModelT", bound=BaseModel)


def build_configuration(settings: Settings) -> ConfigurationRoot:
    """Build the configuration root: JSON file, then environment, then secrets.

    Raises:
        ConfigurationError: If a required source is missing or malformed
    """
    builder = ConfigurationBuilder(settings.base_dir).add_json_file(
        settings.config_file, optional=settings.config_optional
    )
    builder.add_environment_variables(prefix=settings.env_prefix)
    if settings.secrets_id:
        builder.add_user_secrets(
            settings.secrets_id, optional=settings.secrets_optional
        )
    return builder.build()


class ServiceProvider:
    """Explicit registry of the host's services.

    The logger factory and configuration root are shared singletons. Options
    objects are bound once per model type and cached for the process
    lifetime. Each call to ``resolve_application`` builds a new Application.
    """

    def __init__(
        self,
        logger_factory: LoggerFactory,
        configuration: ConfigurationRoot,
        options_sections: t.Mapping[type[BaseModel], str] | None = None,
    ) -> None:
        self.logger_factory = logger_factory
        self.configuration = configuration
        self._options_sections: dict[type[BaseModel], str] = dict(
            options_sections or {}
        )
        self._options: dict[type[BaseModel], BaseModel] = {}

    def configure(self, model_type: type[BaseModel], section: str) -> None:
        """Register ``model_type`` to be bound from ``section``."""
        self._options_sections[model_type] = section
        self._options.pop(model_type, None)

    def get_options(self, model_type: type[ModelT]) -> ModelT:
        """Return the options bound for ``model_type``, binding on first use.

        Raises:
            ResolutionError: If the type is not registered or binding fails
        """
        cached = self._options.get(model_type)
        if cached is not None:
            return t.cast(ModelT, cached)

        section = self._options_sections.get(model_type)
        if section is None:
            raise ResolutionError(
                model_type.__name__, "no configuration section registered"
            )

        try:
            options = bind_options(self.configuration.get_section(section), model_type)
        except ValidationError as e:
            raise ResolutionError(
                model_type.__name__,
                f"section '{section}' does not match the model: {e}",
            ) from e

        self._options[model_type] = options
        return options

    def resolve_application(self) -> Application:
        """Construct a new Application with its logger and options injected.

        Raises:
            ResolutionError: If a dependency cannot be satisfied
        """
        try:
            settings = self.get_options(AppConfig)
        except ResolutionError as e:
            raise ResolutionError(Application.__name__, e.reason) from e

        return Application(
            logger=self.logger_factory.create_logger(Application),
            settings=settings,
        )


@dataclass(frozen=True)
class App:
    """Application wiring container.

    Holds the host settings, the process-wide singletons and the service
    provider built from them.
    """

    settings: Settings
    logger_factory: LoggerFactory
    configuration: ConfigurationRoot
    services: ServiceProvider


def create_app(settings: Settings | None = None) -> App:
    """Create an `App` with provided settings or defaults.

    Logging is configured before configuration is built so that source
    loading can log.

    Raises:
        ConfigurationError: If a required source is missing or malformed
    """
    settings = settings or Settings()
    logger_factory = LoggerFactory(settings)
    configuration = build_configuration(settings)

    services = ServiceProvider(logger_factory, configuration)
    services.configure(AppConfig, settings.options_section)

    return App(
        settings=settings,
        logger_factory=logger_factory,
        configuration=configuration,
        services=services,
    )
