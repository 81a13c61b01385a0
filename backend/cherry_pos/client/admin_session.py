# Overview: Administrator session provider; bearer/refresh token pair held in client storage.

"""
Administrator sign-in for a terminal.

State machine:
- ANONYMOUS: no stored tokens, or the stored tokens were rejected.
- LOADING: tokens are stored and the identity behind them is being fetched.
- AUTHENTICATED: identity resolved.

Failures never raise to the caller. sign_in/sign_up return {"error": message
or None}; anything that invalidates the stored tokens leaves the provider
ANONYMOUS with the tokens purged.
"""

from __future__ import annotations

import json
import logging
from typing import Callable, Optional

from ..identity import Identity, KIND_ADMIN
from .api import ApiClient, ApiError


logger = logging.getLogger(__name__)

ADMIN_TOKENS_KEY = "pos_admin_tokens"

STATE_LOADING = "loading"
STATE_AUTHENTICATED = "authenticated"
STATE_ANONYMOUS = "anonymous"


def identity_from_user(user: dict) -> Identity:
    profile = user.get("profile") or {}
    return Identity(
        kind=KIND_ADMIN,
        id=user["id"],
        role=user.get("role"),
        display_name=profile.get("full_name"),
        email=user.get("email"),
    )


class AdminSessionProvider:
    def __init__(self, api: ApiClient, storage):
        self.api = api
        self.storage = storage
        self.state = STATE_LOADING
        self.user: Optional[dict] = None
        self.identity: Optional[Identity] = None
        self._listeners: list[Callable[[str], None]] = []

    # -- state --

    @property
    def role(self) -> Optional[str]:
        return self.identity.role if self.identity else None

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    @property
    def loading(self) -> bool:
        return self.state == STATE_LOADING

    @property
    def access_token(self) -> Optional[str]:
        tokens = self._tokens()
        return tokens.get("access_token") if tokens else None

    def add_listener(self, listener: Callable[[str], None]) -> Callable[[], None]:
        """Call listener(state) on every state change. Returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def _set_state(self, state: str) -> None:
        self.state = state
        for listener in list(self._listeners):
            listener(state)

    def _set_user(self, user: Optional[dict]) -> None:
        self.user = user
        self.identity = identity_from_user(user) if user else None
        self._set_state(STATE_AUTHENTICATED if user else STATE_ANONYMOUS)

    # -- token storage --

    def _tokens(self) -> Optional[dict]:
        raw = self.storage.get(ADMIN_TOKENS_KEY)
        if not raw:
            return None
        try:
            tokens = json.loads(raw)
        except ValueError:
            self.storage.remove(ADMIN_TOKENS_KEY)
            return None
        if not isinstance(tokens, dict) or not tokens.get("access_token"):
            self.storage.remove(ADMIN_TOKENS_KEY)
            return None
        return tokens

    def _store_tokens(self, session: dict) -> None:
        self.storage.set(ADMIN_TOKENS_KEY, json.dumps({
            "access_token": session["access_token"],
            "refresh_token": session.get("refresh_token"),
            "expires_at": session.get("expires_at"),
            "refresh_expires_at": session.get("refresh_expires_at"),
        }))

    def _clear_tokens(self) -> None:
        self.storage.remove(ADMIN_TOKENS_KEY)

    # -- operations --

    def initialize(self) -> None:
        if self._tokens() is None:
            self._set_user(None)
            return
        self._set_state(STATE_LOADING)
        self.refresh_user()

    def refresh_user(self) -> None:
        """Re-fetch the identity behind the stored token; fail closed."""
        tokens = self._tokens()
        if tokens is None:
            self._set_user(None)
            return

        try:
            data = self.api.me(tokens["access_token"])
            self._set_user(data.get("user"))
            return
        except ApiError as e:
            if not e.is_auth_error or not tokens.get("refresh_token"):
                logger.warning("Error fetching current user: %s", e.message)
                self._clear_tokens()
                self._set_user(None)
                return

        try:
            data = self.api.refresh(tokens["refresh_token"])
        except ApiError as e:
            logger.info("Stored session rejected: %s", e.message)
            self._clear_tokens()
            self._set_user(None)
            return

        self._store_tokens(data["session"])
        self._set_user(data.get("user"))

    def sign_in(self, email: str, password: str) -> dict:
        try:
            data = self.api.login(email, password)
        except ApiError as e:
            logger.info("Login error: %s", e.message)
            return {"error": e.message}
        self._store_tokens(data["session"])
        self._set_user(data.get("user"))
        return {"error": None}

    def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> dict:
        try:
            data = self.api.signup(email, password, full_name)
        except ApiError as e:
            logger.info("Registration error: %s", e.message)
            return {"error": e.message}
        self._store_tokens(data["session"])
        self._set_user(data.get("user"))
        return {"error": None}

    def sign_out(self) -> None:
        tokens = self._tokens()
        try:
            if tokens:
                self.api.logout(tokens["access_token"])
        except ApiError as e:
            logger.warning("Logout error: %s", e.message)
        finally:
            self._clear_tokens()
            self._set_user(None)
