"""
Client for the prepaid-recharge wallet API.

This package provides an authenticated async client that attaches the stored
access token to every call, renews it once when it expires and ends the
session when renewal is impossible.
"""

from wallet_client.client import AuthenticatedClient, extract_error_message
from wallet_client.wallet import WalletClient, get_wallet_client
from wallet_client.exceptions import (
    WalletAPIError,
    SessionExpiredError,
    ForbiddenError,
    NotFoundError,
    WalletConnectionError,
    WalletTimeoutError,
    InvalidResponseError,
)
from wallet_client.models import RequestDescriptor, TokenResponse, UserProfile
from wallet_client.refresh import RefreshCoordinator
from wallet_client.session import (
    Navigator,
    LoggingNavigator,
    CallbackNavigator,
    SessionInvalidator,
)
from wallet_client.storage import (
    KeyValueStore,
    MemoryStore,
    FileStore,
    CredentialStore,
)

__all__ = [
    # Client
    "AuthenticatedClient",
    "WalletClient",
    "get_wallet_client",
    "extract_error_message",
    # Exceptions
    "WalletAPIError",
    "SessionExpiredError",
    "ForbiddenError",
    "NotFoundError",
    "WalletConnectionError",
    "WalletTimeoutError",
    "InvalidResponseError",
    # Models
    "RequestDescriptor",
    "TokenResponse",
    "UserProfile",
    # Session
    "RefreshCoordinator",
    "Navigator",
    "LoggingNavigator",
    "CallbackNavigator",
    "SessionInvalidator",
    # Storage
    "KeyValueStore",
    "MemoryStore",
    "FileStore",
    "CredentialStore",
]
