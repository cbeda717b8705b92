"""
Error types shared by the Home Assistant clients and capability handlers.

Remote failures are raised as exceptions carrying a human readable message.
Capability callbacks turn them into error-flagged content using
:func:`format_failure`, so the agent conversation keeps going.
"""

from typing import Any


class HomeAssistantError(Exception):
    """Base exception for Home Assistant errors."""


class HomeAssistantConnectionError(HomeAssistantError):
    """Hub unreachable or connection handshake failed."""


class HomeAssistantAuthError(HomeAssistantConnectionError):
    """Access token rejected by the hub."""


class HomeAssistantAPIError(HomeAssistantError):
    """Non-success response from the REST API."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class HomeAssistantCommandError(HomeAssistantError):
    """Websocket command rejected by the hub (``success: false``)."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code


class HomeAssistantNotFoundError(HomeAssistantError):
    """A targeted lookup (entity, automation, script) found nothing."""


class InvalidInputError(HomeAssistantError, ValueError):
    """Caller supplied input that was rejected before any remote call."""


def get_error_message(error: BaseException) -> str:
    """Return the message of an exception, falling back to its class name."""
    message = str(error)
    return message if message else type(error).__name__


def format_failure(prefix: str, error: BaseException) -> str:
    """Build a ``"{prefix}: {message}"`` failure text."""
    return f"{prefix}: {get_error_message(error)}"


def get_error_code(error: BaseException) -> str:
    """Best-effort error code used in validation failure texts."""
    code = getattr(error, "code", None)
    if code:
        return str(code)
    status_code = getattr(error, "status_code", None)
    if status_code is not None:
        return str(status_code)
    return type(error).__name__
