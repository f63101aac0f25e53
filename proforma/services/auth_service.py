from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from proforma.models.user import AuthSession, User
from proforma.settings import get_settings
from proforma.storage.api_client import ApiClient, AuthError
from proforma.storage.session_store import SessionStore

log = logging.getLogger(__name__)


class AuthService:
    """
    Login / register / logout on top of the API, plus the session lifecycle:
    restore() once at startup, logout() to tear down. The AuthSession lives on
    the ApiClient, so every service sharing that client sees the same credential.
    """

    def __init__(self, api: Optional[ApiClient] = None, store: Optional[SessionStore] = None) -> None:
        self.api = api or ApiClient()
        self.store = store or SessionStore(get_settings().session_path)

    @property
    def session(self) -> AuthSession:
        return self.api.session

    def restore(self) -> Optional[AuthSession]:
        saved = self.store.load()
        if saved is None:
            return None
        self.session.token = saved.token
        self.session.user = saved.user
        self.session.saved_at = saved.saved_at
        log.info("Session restored for %s", saved.user.email if saved.user else "unknown user")
        return self.session

    def login(self, email: str, password: str) -> AuthSession:
        data = self.api.post("auth/login", {"email": email, "password": password})
        return self._open(data)

    def register(self, email: str, password: str, name: str, lastname: str) -> AuthSession:
        data = self.api.post("auth/register", {
            "email": email,
            "password": password,
            "profile": {"name": name, "lastname": lastname},
        })
        return self._open(data)

    def logout(self) -> None:
        self.session.clear()
        self.store.clear()
        log.info("Logged out")

    def require_session(self) -> AuthSession:
        if not self.session.is_authenticated:
            raise AuthError("Not logged in")
        return self.session

    # ---------- internals ---------- #

    def _open(self, data: Any) -> AuthSession:
        if not isinstance(data, Mapping):
            raise AuthError("Unexpected authentication response")
        token = data.get("access_token") or data.get("accessToken")
        if not token:
            raise AuthError("Authentication response without access token")
        user = None
        if data.get("user"):
            try:
                user = User.model_validate(data["user"])
            except ValidationError as e:
                log.warning("Unreadable user in authentication response: %s", e)

        self.session.token = token
        self.session.user = user
        self.session.saved_at = datetime.now(timezone.utc)
        self.store.save(self.session)
        log.info("Logged in as %s", user.email if user else "unknown user")
        return self.session
