# Overview: Effective identity of a terminal, computed from both session providers.

from __future__ import annotations

from typing import Iterable, Optional

from ..identity import Identity, has_role, resolve_effective_identity
from ..permissions import NavGroup, filter_navigation
from .admin_session import AdminSessionProvider
from .staff_session import StaffSessionProvider


class TerminalSession:
    """
    Who is using this terminal right now.

    Nothing here is stored: each property asks both providers, and a live
    staff session takes precedence over the administrator.
    """

    def __init__(self, admin: AdminSessionProvider, staff: StaffSessionProvider):
        self.admin = admin
        self.staff = staff

    def initialize(self) -> None:
        self.staff.initialize()
        self.admin.initialize()

    @property
    def identity(self) -> Optional[Identity]:
        return resolve_effective_identity(self.staff.identity, self.admin.identity)

    @property
    def role(self) -> Optional[str]:
        identity = self.identity
        return identity.role if identity else None

    @property
    def token(self) -> Optional[str]:
        """Bearer token matching the effective identity."""
        if self.staff.identity is not None:
            return self.staff.token
        if self.admin.identity is not None:
            return self.admin.access_token
        return None

    def can(self, roles: Iterable[str]) -> bool:
        return has_role(self.role, roles)

    def navigation(self) -> list[NavGroup]:
        return filter_navigation(self.role)
