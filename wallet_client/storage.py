"""
Durable client-side credential storage.

The credential store keeps two values under fixed keys: the access token and
a JSON snapshot of the logged-in user's profile. It sits on top of a small
synchronous key-value port so the same store can run against process memory
(tests, short-lived scripts) or a JSON file on local disk.

Storage failures on read are treated as "absent" so a broken file never
blocks an outbound call; the session simply looks logged out.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
USER_KEY = "user"


class KeyValueStore(ABC):
    """Synchronous string key-value port."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...


class MemoryStore(KeyValueStore):
    """In-process store; contents are lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FileStore(KeyValueStore):
    """
    JSON-file backed store.

    The whole file is rewritten on every change through a temporary file and
    os.replace, so readers never observe a half-written document.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = Lock()

    def _read(self) -> Dict[str, str]:
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(
                "Credential storage unreadable, treating as empty",
                extra={"path": str(self.path), "error": str(e)},
            )
            return {}

        if not isinstance(data, dict):
            logger.warning(
                "Credential storage has unexpected shape, treating as empty",
                extra={"path": str(self.path)},
            )
            return {}
        return data

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key not in data:
                return
            del data[key]
            try:
                self._write(data)
            except OSError as e:
                logger.warning(
                    "Failed to remove credential from storage",
                    extra={"path": str(self.path), "key": key, "error": str(e)},
                )


class CredentialStore:
    """
    Holds the access token and the cached profile snapshot.

    clear() removes both so a session is never left half present.
    """

    def __init__(self, backend: Optional[KeyValueStore] = None):
        self.backend = backend if backend is not None else MemoryStore()

    def get_token(self) -> Optional[str]:
        try:
            token = self.backend.get(TOKEN_KEY)
        except OSError as e:
            logger.warning(
                "Credential storage unavailable",
                extra={"error": str(e)},
            )
            return None
        return token or None

    def set_token(self, token: str) -> None:
        if not token:
            raise ValueError("token must be a non-empty string")
        self.backend.set(TOKEN_KEY, token)

    def clear_token(self) -> None:
        self.backend.remove(TOKEN_KEY)

    def get_user(self) -> Optional[Dict[str, Any]]:
        try:
            raw = self.backend.get(USER_KEY)
        except OSError as e:
            logger.warning(
                "Credential storage unavailable",
                extra={"error": str(e)},
            )
            return None
        if not raw:
            return None
        try:
            user = json.loads(raw)
        except ValueError:
            logger.warning("Cached user snapshot is not valid JSON, ignoring")
            return None
        return user if isinstance(user, dict) else None

    def set_user(self, user: Dict[str, Any]) -> None:
        self.backend.set(USER_KEY, json.dumps(user))

    def has_session(self) -> bool:
        return self.get_token() is not None or self.get_user() is not None

    def clear(self) -> None:
        self.backend.remove(TOKEN_KEY)
        self.backend.remove(USER_KEY)
