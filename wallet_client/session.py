"""
Session invalidation and navigation to the login entry point.

Navigation is behind a one-method port so the request pipeline stays free of
any platform-specific redirect logic. Applications plug in whatever "go to
the login screen" means for them; the default just logs it.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable

from wallet_client.models import UserProfile
from wallet_client.storage import CredentialStore

logger = logging.getLogger(__name__)

DEFAULT_LOGIN_URL = "login.html"


class Navigator(ABC):
    """Port for sending the user back to the login entry point."""

    @abstractmethod
    def on_session_expired(self, login_url: str) -> None:
        ...


class LoggingNavigator(Navigator):
    """Default navigator: records the redirect and does nothing else."""

    def on_session_expired(self, login_url: str) -> None:
        logger.warning(
            "Session ended, login required",
            extra={"login_url": login_url},
        )


class CallbackNavigator(Navigator):
    """Adapts a plain callable taking the login URL."""

    def __init__(self, callback: Callable[[str], None]):
        self._callback = callback

    def on_session_expired(self, login_url: str) -> None:
        self._callback(login_url)


class SessionInvalidator:
    """
    Clears the stored session and redirects to login, at most once per session.

    Concurrent calls failing with an expired session all end up here; only
    the first one clears storage and navigates. Once a new session is stored
    the next invalidation acts again.
    """

    def __init__(
        self,
        store: CredentialStore,
        navigator: Navigator,
        login_url: str = DEFAULT_LOGIN_URL,
    ):
        self._store = store
        self._navigator = navigator
        self.login_url = login_url
        self._invalidated = False

    @property
    def invalidated(self) -> bool:
        return self._invalidated

    def invalidate(self, reason: str = "session_expired") -> None:
        if self._invalidated and not self._store.has_session():
            logger.debug(
                "Session already invalidated",
                extra={"reason": reason},
            )
            return

        self._invalidated = True
        self._store.clear()
        logger.warning(
            "Session invalidated",
            extra={"reason": reason, "login_url": self.login_url},
        )
        self._navigator.on_session_expired(self.login_url)

    def require_auth(self) -> bool:
        """Return True if a token is stored, otherwise end the session."""
        if self._store.get_token():
            return True
        self.invalidate(reason="login_required")
        return False

    def require_admin(self) -> bool:
        """
        Return True if the cached profile belongs to an admin.

        Without a profile the session is ended like require_auth(). Non-admins
        are sent to the login entry point with their session left intact; the
        login screen routes them on by role.
        """
        user = self._store.get_user()
        if not user:
            self.invalidate(reason="profile_missing")
            return False
        if UserProfile.from_dict(user).is_admin:
            return True
        logger.info("Admin role required", extra={"login_url": self.login_url})
        self._navigator.on_session_expired(self.login_url)
        return False
