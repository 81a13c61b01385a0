# Overview: Staff session provider; username/password login with a fixed 12-hour local session.

"""
Floor staff sign-in.

The password goes to the server's verification procedure as-is; nothing is
hashed client-side. A successful login persists

    {"user": {...}, "expiresAt": "<ISO-8601 Z>", "token": "..."}

under pos_staff_session. The record is only trusted while expiresAt is in
the future: an unparseable, incomplete or expired record is deleted on
load, and an identity whose expiry passes while the terminal is running is
dropped on next access.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..identity import Identity, KIND_STAFF
from ..time_utils import parse_iso_datetime, to_utc_z, utcnow
from .api import ApiClient, ApiError


logger = logging.getLogger(__name__)

STAFF_SESSION_KEY = "pos_staff_session"
STAFF_SESSION_TTL = timedelta(hours=12)

INVALID_CREDENTIALS = "Invalid username or password"
LOGIN_FAILED = "Login failed. Please try again."
UNEXPECTED_ERROR = "An unexpected error occurred"


class StaffSessionProvider:
    def __init__(
        self,
        api: ApiClient,
        storage,
        clock: Callable[[], datetime] = utcnow,
        ttl: timedelta = STAFF_SESSION_TTL,
    ):
        self.api = api
        self.storage = storage
        self.clock = clock
        self.ttl = ttl
        self.is_loading = True
        self._user: Optional[dict] = None
        self._token: Optional[str] = None
        self._expires_at: Optional[datetime] = None

    def initialize(self) -> None:
        """Restore the persisted session; anything unusable is deleted."""
        self._clear_memory()
        raw = self.storage.get(STAFF_SESSION_KEY)
        if raw:
            try:
                record = json.loads(raw)
                user = record["user"]
                expires_at = parse_iso_datetime(record.get("expiresAt"))
                if not isinstance(user, dict) or "id" not in user:
                    raise ValueError("malformed staff session")
            except (ValueError, KeyError, TypeError, AttributeError):
                logger.info("Discarding unreadable staff session")
                self.storage.remove(STAFF_SESSION_KEY)
            else:
                if expires_at is not None and expires_at > self.clock():
                    self._user = user
                    self._token = record.get("token")
                    self._expires_at = expires_at
                else:
                    self.storage.remove(STAFF_SESSION_KEY)
        self.is_loading = False

    def _clear_memory(self) -> None:
        self._user = None
        self._token = None
        self._expires_at = None

    def _expire_if_due(self) -> None:
        if self._user is not None and (self._expires_at is None or self._expires_at <= self.clock()):
            self.storage.remove(STAFF_SESSION_KEY)
            self._clear_memory()

    @property
    def staff_user(self) -> Optional[dict]:
        self._expire_if_due()
        return self._user

    @property
    def token(self) -> Optional[str]:
        self._expire_if_due()
        return self._token

    @property
    def expires_at(self) -> Optional[datetime]:
        self._expire_if_due()
        return self._expires_at

    @property
    def is_staff_authenticated(self) -> bool:
        return self.staff_user is not None

    @property
    def identity(self) -> Optional[Identity]:
        user = self.staff_user
        if user is None:
            return None
        return Identity(
            kind=KIND_STAFF,
            id=user["id"],
            role=user.get("role"),
            display_name=user.get("full_name"),
            email=user.get("email"),
            username=user.get("username"),
        )

    def staff_login(self, username: str, password: str) -> dict:
        try:
            data = self.api.staff_login(username, password)
            row = data.get("staff")
            if not row:
                return {"success": False, "error": INVALID_CREDENTIALS}

            user = {
                "id": row["staff_id"],
                "username": (data.get("username") or username).lower(),
                "full_name": row.get("staff_name"),
                "email": row.get("staff_email"),
                "role": row.get("staff_role"),
            }
            expires_at = self.clock() + self.ttl
            self.storage.set(STAFF_SESSION_KEY, json.dumps({
                "user": user,
                "expiresAt": to_utc_z(expires_at),
                "token": data.get("token"),
            }))
            self._user = user
            self._token = data.get("token")
            self._expires_at = expires_at
            return {"success": True}

        except ApiError as e:
            if e.status == 401:
                return {"success": False, "error": INVALID_CREDENTIALS}
            logger.error("Staff login error: %s", e.message)
            return {"success": False, "error": LOGIN_FAILED}
        except Exception:
            logger.exception("Staff login exception")
            return {"success": False, "error": UNEXPECTED_ERROR}

    def staff_logout(self) -> None:
        token = self._token
        self.storage.remove(STAFF_SESSION_KEY)
        self._clear_memory()
        if token:
            try:
                self.api.logout(token)
            except ApiError as e:
                logger.info("Staff token revoke failed: %s", e.message)
