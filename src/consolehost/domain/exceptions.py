"""Custom exceptions for consolehost."""


class ConsoleHostError(Exception):
    """Base exception for consolehost errors."""

    pass


class ConfigurationError(ConsoleHostError):
    """Raised when a required configuration source is missing or malformed.

    Optional sources never raise this; they are treated as absent.
    """

    pass


class ResolutionError(ConsoleHostError):
    """Raised when the service provider cannot build a requested object.

    The original cause (typically a pydantic ``ValidationError`` from options
    binding) is chained as ``__cause__``.
    """

    def __init__(self, service: str, reason: str) -> None:
        self.service = service
        self.reason = reason
        super().__init__(f"Unable to resolve {service}: {reason}")
