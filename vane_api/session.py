from __future__ import annotations

import base64
import hashlib
import logging
from typing import MutableMapping, Any

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)

OAUTH_STATE_KEY = "oauth_state"
USER_UID_KEY = "uid"
GITHUB_ID_KEY = "github_id"


def build_fernet(secret: str) -> Fernet:
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    key = base64.urlsafe_b64encode(digest)
    return Fernet(key)


class SessionStore:
    """Per-request key/value session with values sealed by Fernet.

    Wraps the cookie-backed mapping that Starlette's SessionMiddleware puts on
    ``request.session``.
    """

    def __init__(self, session: MutableMapping[str, Any], fernet: Fernet):
        self._session = session
        self._fernet = fernet

    def get(self, key: str, default: str | None = None) -> str | None:
        raw = self._session.get(key)
        if raw is None:
            return default
        try:
            return self._fernet.decrypt(str(raw).encode("utf-8")).decode("utf-8")
        except InvalidToken:
            logger.warning("Dropping unreadable session value %r", key)
            self._session.pop(key, None)
            return default

    def set(self, key: str, value: str) -> None:
        self._session[key] = self._fernet.encrypt(str(value).encode("utf-8")).decode("utf-8")

    def pop(self, key: str, default: str | None = None) -> str | None:
        value = self.get(key, default)
        self._session.pop(key, None)
        return value

    def clear(self) -> None:
        self._session.clear()
