"""
Wallet API exceptions for error handling.

Every non-success outcome of the request pipeline surfaces as one of these.
The base class doubles as the generic HTTP error for statuses that have no
dedicated subclass.
"""

from typing import Optional, Dict, Any


class WalletAPIError(Exception):
    """Base exception for wallet API errors (generic non-2xx status)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        response: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.response = response or {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, status_code={self.status_code})"


class SessionExpiredError(WalletAPIError):
    """
    Raised when the access token expired and could not be renewed.

    The session has already been invalidated when this is raised; callers
    should not retry.
    """

    def __init__(
        self,
        message: str = "Session expired, please log in again",
        **kwargs,
    ):
        super().__init__(message, status_code=401, **kwargs)


class ForbiddenError(WalletAPIError):
    """Raised when the caller lacks permission for a resource (403)."""

    def __init__(
        self,
        message: str = "Access denied",
        **kwargs,
    ):
        super().__init__(message, status_code=403, **kwargs)


class NotFoundError(WalletAPIError):
    """Raised when a requested resource is not found (404)."""

    def __init__(
        self,
        message: str = "Resource not found",
        **kwargs,
    ):
        super().__init__(message, status_code=404, **kwargs)


class WalletConnectionError(WalletAPIError):
    """Raised when network/connection errors occur."""

    def __init__(
        self,
        message: str = "Connection error - unable to reach wallet API",
        **kwargs,
    ):
        super().__init__(message, **kwargs)


class WalletTimeoutError(WalletConnectionError):
    """Raised when a request times out."""

    def __init__(
        self,
        message: str = "Request timed out",
        **kwargs,
    ):
        super().__init__(message, **kwargs)


class InvalidResponseError(WalletAPIError):
    """Raised when a successful response carries a body that is not JSON
    or lacks a field the client relies on."""

    def __init__(
        self,
        message: str = "Invalid JSON in response body",
        **kwargs,
    ):
        super().__init__(message, **kwargs)
