"""Gateway error taxonomy.

Every tool-level error is converted into data inside a ``ToolResult`` and kept
in the conversation. Only ``ModelUnreachableError`` ends a request early.
"""
from typing import Any, Dict


class GatewayError(Exception):
    """Base class. ``extra`` carries structured context (path, timeout, status...)."""

    def __init__(self, message: str, **extra: Any):
        self.message = message
        self.extra = extra
        super().__init__(message)

    @property
    def error_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "error_type": self.error_type, **self.extra}


class ConfigurationError(GatewayError):
    """A credential or setting required by a tool is missing."""


class UpstreamError(GatewayError):
    """A remote dependency answered with a failure or could not be reached."""


class ToolNotFoundError(GatewayError):
    """The model asked for a tool that is not registered."""


class ArgumentValidationError(GatewayError):
    """Tool arguments failed validation (schema, path escape, denied command)."""


class ProcessTimeoutError(GatewayError):
    """A subprocess exceeded its time bound and was killed."""


class ModelUnreachableError(GatewayError):
    """The language-model service could not be reached or rejected the call."""
