"""
Wallet service client: auth flows and endpoint wrappers.

Every method goes through the authenticated pipeline in AuthenticatedClient,
so token renewal and session invalidation apply uniformly. Responses are
returned as parsed JSON except where the client itself interprets them
(tokens and the profile snapshot).

Usage:
    async with get_wallet_client() as client:
        profile = await client.login("ana@example.com", "secret")
        balance = await client.get_balance()
"""

import logging
from typing import Optional, Dict, Any

from wallet_client.client import AuthenticatedClient
from wallet_client.exceptions import WalletAPIError, InvalidResponseError
from wallet_client.models import TokenResponse, UserProfile
from wallet_client.session import Navigator

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


def _page_params(page: int, limit: int, **filters: Optional[str]) -> Dict[str, Any]:
    params: Dict[str, Any] = {"page": page, "limit": limit}
    for name, value in filters.items():
        if value:
            params[name] = value
    return params


def _read_token(data: Any) -> TokenResponse:
    try:
        return TokenResponse.from_dict(data)
    except (ValueError, AttributeError) as e:
        logger.error("Auth response without a usable access token")
        raise InvalidResponseError(message=f"Invalid token response: {e}")


class WalletClient(AuthenticatedClient):
    """Client for the prepaid-recharge wallet API."""

    # =========================================================================
    # Auth
    # =========================================================================

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
    ) -> UserProfile:
        """
        Create an account and start a session for it.

        The register response carries both the access token and the new
        user's profile.
        """
        payload: Dict[str, Any] = {
            "name": name.strip(),
            "email": email.strip().lower(),
            "password": password,
        }
        if phone and phone.strip():
            payload["phone"] = phone.strip()

        data = await self.call(
            "/users/register", method="POST", json=payload, authenticate=False
        )
        token = _read_token(data)
        self.store.set_token(token.access_token)

        profile_data = {k: v for k, v in data.items() if k not in ("access_token", "token_type")}
        self.store.set_user(profile_data)

        logger.info("Account registered", extra={"email": payload["email"]})
        return UserProfile.from_dict(profile_data)

    async def login(self, email: str, password: str) -> UserProfile:
        """
        Log in, store the access token and cache the user's profile.

        The renewal cookie set by the server lands in the client's cookie jar.
        """
        data = await self.call(
            "/users/login",
            method="POST",
            json={"email": email, "password": password},
        )
        token = _read_token(data)
        self.store.set_token(token.access_token)

        try:
            profile = await self.get_profile()
        except Exception:
            # No half-open session: a token without its profile is cleared.
            self.store.clear()
            raise
        logger.info("Logged in", extra={"role": profile.role})
        return profile

    async def get_profile(self) -> UserProfile:
        """Fetch the current user's profile and refresh the cached snapshot."""
        data = await self.call("/users/me")
        self.store.set_user(data)
        return UserProfile.from_dict(data)

    async def update_profile(self, data: Dict[str, Any]) -> UserProfile:
        result = await self.call("/users/me", method="PUT", json=data)
        self.store.set_user(result)
        return UserProfile.from_dict(result)

    def current_user(self) -> Optional[UserProfile]:
        """Return the cached profile snapshot without a network call."""
        user = self.store.get_user()
        return UserProfile.from_dict(user) if user else None

    async def logout(self) -> None:
        """
        End the session on the server and locally.

        Server errors are ignored: the renewal cookie may already have expired.
        """
        try:
            await self.call("/users/logout", method="POST")
        except WalletAPIError as e:
            logger.info(
                "Server logout failed, clearing local session anyway",
                extra={"error": e.message, "status_code": e.status_code},
            )
        self.invalidator.invalidate(reason="logout")

    def require_auth(self) -> bool:
        return self.invalidator.require_auth()

    def require_admin(self) -> bool:
        return self.invalidator.require_admin()

    # =========================================================================
    # Customer
    # =========================================================================

    async def get_balance(self) -> Any:
        return await self.call("/wallet/balance")

    async def get_my_transactions(
        self,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        tx_type: Optional[str] = None,
    ) -> Any:
        return await self.call(
            "/wallet/history",
            params=_page_params(page, limit, tx_type=tx_type),
        )

    async def create_deposit(self, amount: float) -> Any:
        return await self.call(
            "/wallet/deposit",
            method="POST",
            json={"amount": float(amount)},
        )

    async def create_order(
        self,
        destination_phone: str,
        operator: str,
        amount: float,
    ) -> Any:
        """Place a prepaid recharge order debited from the wallet."""
        return await self.call(
            "/orders/",
            method="POST",
            json={
                "destination_phone": destination_phone,
                "operator": operator,
                "amount": float(amount),
            },
        )

    async def request_reseller(self) -> Any:
        return await self.call("/users/request-reseller", method="POST")

    async def get_packages(self) -> Any:
        return await self.call("/packages/")

    # =========================================================================
    # Admin
    # =========================================================================

    async def get_all_users(self) -> Any:
        return await self.call("/admin/users")

    async def get_user_transactions(
        self,
        user_id: int,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        tx_type: Optional[str] = None,
    ) -> Any:
        return await self.call(
            f"/admin/users/{user_id}/transactions",
            params=_page_params(page, limit, tx_type=tx_type),
        )

    async def get_orders(
        self,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        status: Optional[str] = None,
    ) -> Any:
        return await self.call(
            "/admin/orders",
            params=_page_params(page, limit, status=status),
        )

    async def confirm_order(self, order_id: int) -> Any:
        return await self.call(f"/admin/orders/{order_id}/confirm", method="PATCH")

    async def refund_order(self, order_id: int) -> Any:
        return await self.call(f"/admin/orders/{order_id}/refund", method="PATCH")

    async def get_reseller_requests(self) -> Any:
        return await self.call("/admin/reseller-requests")

    async def approve_reseller(self, user_id: int) -> Any:
        return await self.call(f"/admin/users/{user_id}/approve-reseller", method="PATCH")

    async def reject_reseller(self, user_id: int) -> Any:
        return await self.call(f"/admin/users/{user_id}/reject-reseller", method="PATCH")

    async def adjust_balance(
        self,
        user_id: int,
        amount: float,
        tx_type: str,
        reason: str,
    ) -> Any:
        """
        Credit or debit a user's wallet by hand.

        Args:
            user_id: Target user
            amount: Amount to move
            tx_type: 'credit' or 'debit'
            reason: Free-text justification recorded in the audit log
        """
        return await self.call(
            f"/admin/users/{user_id}/adjust-balance",
            method="POST",
            json={"amount": amount, "tx_type": tx_type, "reason": reason},
        )

    async def get_logs(
        self,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        action: Optional[str] = None,
    ) -> Any:
        return await self.call(
            "/admin/logs",
            params=_page_params(page, limit, action=action),
        )

    async def get_all_packages_admin(self) -> Any:
        return await self.call("/packages/admin/all")

    async def update_package_price(
        self,
        package_id: int,
        selling_price: float,
        is_active: Optional[bool] = None,
    ) -> Any:
        payload: Dict[str, Any] = {"selling_price": float(selling_price)}
        if is_active is not None:
            payload["is_active"] = is_active
        return await self.call(f"/packages/{package_id}", method="PATCH", json=payload)


def get_wallet_client(
    base_url: Optional[str] = None,
    navigator: Optional[Navigator] = None,
    storage_path: Optional[str] = None,
) -> WalletClient:
    """
    Factory function to create a WalletClient.

    Args:
        base_url: Override API base URL
        navigator: Login redirect port
        storage_path: Override credential file location

    Returns:
        Configured WalletClient instance
    """
    return WalletClient(
        base_url=base_url,
        navigator=navigator,
        storage_path=storage_path,
    )
