"""
Effective identity resolution.

Two independent identities can be active on a terminal at the same time: an
administrator signed in through the account service and a floor-staff member
signed in with a username/password. Nothing stores "who is logged in"; it is
computed here every time from whatever each session provider currently holds.

Precedence: a staff session overrides the administrator identity. When neither
is present the effective identity (and role) is None, and every role check
denies.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

KIND_ADMIN = "admin"
KIND_STAFF = "staff"


@dataclass(frozen=True)
class Identity:
    kind: str
    id: int
    role: Optional[str]
    display_name: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None

    @property
    def is_staff(self) -> bool:
        return self.kind == KIND_STAFF

    @property
    def is_admin(self) -> bool:
        return self.kind == KIND_ADMIN

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "id": self.id,
            "role": self.role,
            "display_name": self.display_name,
            "email": self.email,
            "username": self.username,
        }


def resolve_effective_identity(
    staff_identity: Optional[Identity],
    admin_identity: Optional[Identity],
) -> Optional[Identity]:
    if staff_identity is not None:
        return staff_identity
    return admin_identity


def resolve_effective_role(
    staff_identity: Optional[Identity],
    admin_identity: Optional[Identity],
) -> Optional[str]:
    identity = resolve_effective_identity(staff_identity, admin_identity)
    return identity.role if identity is not None else None


def has_role(role: Optional[str], allowed: Iterable[str]) -> bool:
    """Deny when the role is absent; never default-allow."""
    if not role:
        return False
    return role in set(allowed)
