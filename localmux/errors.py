"""Errors raised by the local inference gateway."""

from typing import Any, Optional


class LocalMuxError(Exception):
    """Base error for gateway failures."""


class InvalidRequestError(LocalMuxError, ValueError):
    """Raised when a request carries neither a prompt nor messages."""


class ConfigurationError(LocalMuxError, RuntimeError):
    """Raised when a provider's host address is not configured."""


class TransportError(LocalMuxError, RuntimeError):
    """
    Raised when a provider call fails: non-2xx status, a provider-reported
    error object, or a connection-level failure.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        body: Any = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.body = body
