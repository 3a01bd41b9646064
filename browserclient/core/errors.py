"""Exceptions raised by the browser client."""

from __future__ import annotations

from typing import Any, Optional


class BrowserClientError(Exception):
    """Base class for every error raised by this package."""


class EmptyRequestError(BrowserClientError, ValueError):
    """Raised when ``do`` is called without a request."""

    def __init__(self, message: str = "Request is empty") -> None:
        super().__init__(message)


class InterceptorRejection(BrowserClientError):
    """Raised by a ``before_request`` hook to stop a request from being sent."""

    def __init__(self, reason: str, request: Optional[Any] = None) -> None:
        self.reason = reason
        self.request = request
        super().__init__(f"Request not sent: {reason}")


class ProxyConfigError(BrowserClientError, ValueError):
    """The configured proxy URL could not be parsed."""

    def __init__(self, proxy: str, detail: str) -> None:
        self.proxy = proxy
        super().__init__(f"Invalid proxy URL {proxy!r}: {detail}")


class SerializationError(BrowserClientError, TypeError):
    """A JSON request body could not be built from the given value."""


__all__ = [
    "BrowserClientError",
    "EmptyRequestError",
    "InterceptorRejection",
    "ProxyConfigError",
    "SerializationError",
]
