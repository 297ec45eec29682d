"""Typed options bound from configuration sections."""

import typing as t

from pydantic import BaseModel, ConfigDict, model_validator

from .configuration import ConfigurationView

ModelT = t.TypeVar("ModelT", bound=BaseModel)


class AppConfig(BaseModel):
    """Options read by the application from the ``appConfig`` section."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = ""

    @model_validator(mode="before")
    @classmethod
    def lowercase_keys(cls, data: t.Any) -> t.Any:
        """Configuration keys are case-insensitive; field names are lower case."""
        if isinstance(data, dict):
            return {
                key.lower() if isinstance(key, str) else key: value
                for key, value in data.items()
            }
        return data


def bind_options(section: ConfigurationView, model_type: type[ModelT]) -> ModelT:
    """Build ``model_type`` from the keys under ``section``.

    A missing or empty section yields the model's defaults.

    Raises:
        pydantic.ValidationError: If the section's values do not fit the model
    """
    return model_type.model_validate(section.as_dict())
