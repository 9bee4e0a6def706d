"""
Authenticated request pipeline for the wallet API.

This client handles:
- Attaching the stored access token as a bearer header
- Sending the HTTP-only renewal cookie with every call
- Renewing an expired access token once per expiry, shared by all callers
- Retrying the failed call exactly once with the renewed token
- Classifying error responses into typed exceptions

SECURITY: Access tokens are never logged.
"""

import logging
import os
from typing import Optional, Dict, Any, Mapping

import httpx

from wallet_client.exceptions import (
    WalletAPIError,
    SessionExpiredError,
    ForbiddenError,
    NotFoundError,
    WalletConnectionError,
    WalletTimeoutError,
    InvalidResponseError,
)
from wallet_client.models import RequestDescriptor
from wallet_client.refresh import RefreshCoordinator, DEFAULT_REFRESH_ENDPOINT
from wallet_client.session import (
    SessionInvalidator,
    Navigator,
    LoggingNavigator,
    DEFAULT_LOGIN_URL,
)
from wallet_client.storage import CredentialStore, FileStore, MemoryStore

logger = logging.getLogger(__name__)

# Default configuration
DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0


def extract_error_message(response: httpx.Response, default: str) -> str:
    """
    Pull the human-readable message out of an error body.

    The backend sends {"detail": "..."} or, for validation failures,
    {"detail": [{"msg": "..."}, ...]}. Bodies that are empty, not JSON or
    not an object fall back to the default.
    """
    try:
        body = response.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict):
        body = {}

    detail = body.get("detail")
    if isinstance(detail, str) and detail:
        return detail
    if isinstance(detail, list):
        messages = [
            str(item.get("msg"))
            for item in detail
            if isinstance(item, dict) and item.get("msg")
        ]
        if messages:
            return ", ".join(messages)
    return default


def _error_body(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class AuthenticatedClient:
    """
    Async client that routes every call through the authenticated pipeline.

    All methods are async and should be used with async/await. One instance
    owns one cookie jar, one credential store and one refresh coordinator;
    share the instance across tasks to get single-flight renewal.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        store: Optional[CredentialStore] = None,
        navigator: Optional[Navigator] = None,
        refresh_endpoint: Optional[str] = None,
        login_url: Optional[str] = None,
        storage_path: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Wallet API base URL (default: from env or localhost)
            store: Credential store (default: file store at storage_path, else memory)
            navigator: Login redirect port (default: logs the redirect)
            refresh_endpoint: Token renewal endpoint path (default: from env)
            login_url: Login entry point passed to the navigator (default: from env)
            storage_path: JSON file for durable credentials (default: from env)
            timeout: Request timeout in seconds
            connect_timeout: Connection timeout in seconds
            transport: Optional httpx transport, mainly for tests
        """
        self.base_url = (
            base_url or os.getenv("WALLET_API_BASE_URL") or DEFAULT_BASE_URL
        ).rstrip("/")
        self.refresh_endpoint = (
            refresh_endpoint
            or os.getenv("WALLET_REFRESH_ENDPOINT")
            or DEFAULT_REFRESH_ENDPOINT
        )
        self.login_url = login_url or os.getenv("WALLET_LOGIN_URL") or DEFAULT_LOGIN_URL

        if store is None:
            path = storage_path or os.getenv("WALLET_STORAGE_PATH")
            store = CredentialStore(FileStore(path) if path else MemoryStore())
        self.store = store

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout, connect=connect_timeout),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )
        self.refresher = RefreshCoordinator(
            self._client, self.store, refresh_endpoint=self.refresh_endpoint
        )
        self.invalidator = SessionInvalidator(
            self.store, navigator or LoggingNavigator(), login_url=self.login_url
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AuthenticatedClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def call(
        self,
        endpoint: str,
        method: str = "GET",
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        authenticate: bool = True,
    ) -> Any:
        """Shorthand for request() with a freshly built descriptor."""
        return await self.request(
            RequestDescriptor(
                endpoint=endpoint,
                method=method,
                headers=dict(headers or {}),
                json=json,
                params=params,
                authenticate=authenticate,
            )
        )

    async def request(self, descriptor: RequestDescriptor) -> Any:
        """
        Send a call through the authenticated pipeline.

        Args:
            descriptor: The outbound call

        Returns:
            Parsed JSON body, or None for an empty success body

        Raises:
            SessionExpiredError: Token expired and could not be renewed
            ForbiddenError: 403
            NotFoundError: 404
            WalletAPIError: Any other non-2xx status
            WalletConnectionError: On transport failures
        """
        if not descriptor.authenticate:
            return self._handle(await self._send(descriptor), descriptor)

        token = self.store.get_token()
        caller_auth = any(name.lower() == "authorization" for name in descriptor.headers)
        if token and not caller_auth:
            descriptor = descriptor.with_bearer(token)

        response = await self._send(descriptor)

        if response.status_code == 401:
            return await self._recover(descriptor, token)

        return self._handle(response, descriptor)

    async def _recover(self, descriptor: RequestDescriptor, sent_token: Optional[str]) -> Any:
        logger.debug(
            "Access token rejected, attempting renewal",
            extra={"endpoint": descriptor.endpoint, "method": descriptor.method},
        )

        # Another caller may have renewed while this request was in flight.
        current = self.store.get_token()
        if current and current != sent_token:
            new_token: Optional[str] = current
        else:
            new_token = await self.refresher.renew()

        if not new_token:
            self.invalidator.invalidate(reason="renewal_failed")
            raise SessionExpiredError()

        retry_response = await self._send(descriptor.with_bearer(new_token))

        if retry_response.status_code == 401:
            self.invalidator.invalidate(reason="retry_unauthorized")
            raise SessionExpiredError()

        if not retry_response.is_success:
            status_code = retry_response.status_code
            self._log_error(retry_response, descriptor)
            raise WalletAPIError(
                message=extract_error_message(retry_response, f"Error {status_code}"),
                status_code=status_code,
                response=_error_body(retry_response),
            )

        return self._parse(retry_response, descriptor)

    def _handle(self, response: httpx.Response, descriptor: RequestDescriptor) -> Any:
        status_code = response.status_code

        if status_code == 403:
            raise ForbiddenError(
                message=extract_error_message(response, "Access denied"),
                response=_error_body(response),
            )

        if status_code == 404:
            raise NotFoundError(
                message=extract_error_message(response, "Resource not found"),
                response=_error_body(response),
            )

        if not response.is_success:
            self._log_error(response, descriptor)
            raise WalletAPIError(
                message=extract_error_message(response, f"Error {status_code}"),
                status_code=status_code,
                response=_error_body(response),
            )

        return self._parse(response, descriptor)

    def _parse(self, response: httpx.Response, descriptor: RequestDescriptor) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(
                "Wallet API returned invalid JSON",
                extra={
                    "endpoint": descriptor.endpoint,
                    "status_code": response.status_code,
                },
            )
            raise InvalidResponseError(
                message=f"Invalid JSON in response: {e}",
                status_code=response.status_code,
            )

    def _log_error(self, response: httpx.Response, descriptor: RequestDescriptor) -> None:
        logger.error(
            "Wallet API error",
            extra={
                "status_code": response.status_code,
                "endpoint": descriptor.endpoint,
                "method": descriptor.method,
                "response": response.text[:500],
            },
        )

    async def _send(self, descriptor: RequestDescriptor) -> httpx.Response:
        request = self._client.build_request(
            method=descriptor.method,
            url=descriptor.endpoint,
            headers=dict(descriptor.headers),
            json=descriptor.json,
            params=descriptor.params,
        )
        if not descriptor.with_credentials:
            request.headers.pop("Cookie", None)

        try:
            response = await self._client.send(request)
        except httpx.TimeoutException as e:
            logger.error(
                "Wallet API timeout",
                extra={"endpoint": descriptor.endpoint, "error": str(e)},
            )
            raise WalletTimeoutError(f"Request timeout: {e}")
        except httpx.RequestError as e:
            logger.error(
                "Wallet API connection error",
                extra={"endpoint": descriptor.endpoint, "error": str(e)},
            )
            raise WalletConnectionError(f"Connection error: {e}")

        logger.debug(
            "Wallet API response",
            extra={
                "endpoint": descriptor.endpoint,
                "method": descriptor.method,
                "status_code": response.status_code,
            },
        )
        return response
