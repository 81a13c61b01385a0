# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management Service

Two kinds of session share the session_tokens table and never mix:

- admin: bearer token plus refresh token. The bearer expires after
  ACCESS_TOKEN_TTL_HOURS; the refresh token can exchange for a new pair until
  REFRESH_TOKEN_TTL_DAYS. Refresh rotates the pair and revokes the old one.
- staff: a single token with a fixed STAFF_SESSION_TTL_HOURS lifetime and no
  refresh. Staff sessions end by expiry or logout.

Tokens are 32 random bytes from secrets.token_hex; only their SHA-256 hashes
are stored.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..identity import Identity, KIND_ADMIN, KIND_STAFF
from ..models import AdminUser, SessionToken, StaffUser
from ..time_utils import expires_after, is_expired, utcnow


@dataclass
class SessionContext:
    """Identity resolved from a valid token, plus the session row it came from."""
    identity: Identity
    session: SessionToken
    user: AdminUser | StaffUser


def generate_token() -> str:
    """64-character hex token (32 bytes of entropy). Sent to the client, never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def admin_identity(user: AdminUser) -> Identity:
    return Identity(
        kind=KIND_ADMIN,
        id=user.id,
        role=user.role,
        display_name=user.full_name or user.email,
        email=user.email,
    )


def staff_identity(staff: StaffUser) -> Identity:
    return Identity(
        kind=KIND_STAFF,
        id=staff.id,
        role=staff.role,
        display_name=staff.full_name,
        email=staff.email,
        username=staff.username,
    )


def create_admin_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str, str]:
    """
    Issue a bearer/refresh token pair for an administrator.

    Returns (session_record, access_token, refresh_token).
    """
    user = db.session.get(AdminUser, user_id)
    if not user or not user.is_active:
        raise ValueError("User not found")

    access_token = generate_token()
    refresh_token = generate_token()
    now = utcnow()

    session = SessionToken(
        kind=KIND_ADMIN,
        user_id=user.id,
        token_hash=hash_token(access_token),
        refresh_token_hash=hash_token(refresh_token),
        created_at=now,
        last_used_at=now,
        expires_at=expires_after(hours=current_app.config["ACCESS_TOKEN_TTL_HOURS"], now=now),
        refresh_expires_at=expires_after(days=current_app.config["REFRESH_TOKEN_TTL_DAYS"], now=now),
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()

    return session, access_token, refresh_token


def create_staff_session(
    staff_user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """Issue a fixed-lifetime staff token. Returns (session_record, token)."""
    staff = db.session.get(StaffUser, staff_user_id)
    if not staff or not staff.is_active:
        raise ValueError("Staff user not found")

    token = generate_token()
    now = utcnow()

    session = SessionToken(
        kind=KIND_STAFF,
        staff_user_id=staff.id,
        token_hash=hash_token(token),
        created_at=now,
        last_used_at=now,
        expires_at=expires_after(hours=current_app.config["STAFF_SESSION_TTL_HOURS"], now=now),
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()

    return session, token


def _revoke(session: SessionToken, reason: str, now=None) -> None:
    session.is_revoked = True
    session.revoked_at = now or utcnow()
    session.revoked_reason = reason


def validate_session(token: str | None) -> SessionContext | None:
    """
    Resolve a bearer token of either kind.

    Returns None if the token is unknown, expired or revoked, or if the
    account behind it has been deactivated (the session is revoked then).
    Updates last_used_at on success.
    """
    if not token:
        return None

    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session or is_expired(session.expires_at, now):
        return None

    if session.kind == KIND_STAFF:
        user = session.staff_user
        identity = staff_identity(user) if user else None
    else:
        user = session.user
        identity = admin_identity(user) if user else None

    if not user or not user.is_active:
        _revoke(session, "Account deactivated", now)
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(identity=identity, session=session, user=user)


def refresh_admin_session(
    refresh_token: str | None,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str, str] | None:
    """
    Exchange a refresh token for a new token pair.

    The old pair is revoked. Returns None when the refresh token is unknown,
    revoked or past refresh_expires_at.
    """
    if not refresh_token:
        return None

    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        refresh_token_hash=hash_token(refresh_token),
        kind=KIND_ADMIN,
        is_revoked=False,
    ).first()

    if not session or is_expired(session.refresh_expires_at, now):
        return None

    user_id = session.user_id
    _revoke(session, "Refreshed", now)
    db.session.commit()

    try:
        return create_admin_session(user_id, user_agent=user_agent, ip_address=ip_address)
    except ValueError:
        return None


def revoke_session(token: str | None, reason: str = "User logout") -> bool:
    """Revoke a session of either kind. Returns False if the token was not found."""
    if not token:
        return False

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return False

    _revoke(session, reason)
    db.session.commit()
    return True


def revoke_all_sessions(
    *,
    user_id: int | None = None,
    staff_user_id: int | None = None,
    reason: str = "Revoke all sessions",
) -> int:
    """Revoke every live session of one administrator or one staff account. Returns the count."""
    if (user_id is None) == (staff_user_id is None):
        raise ValueError("Exactly one of user_id or staff_user_id is required")

    query = db.session.query(SessionToken).filter_by(is_revoked=False)
    if user_id is not None:
        query = query.filter_by(user_id=user_id)
    else:
        query = query.filter_by(staff_user_id=staff_user_id)

    now = utcnow()
    count = 0
    for session in query.all():
        _revoke(session, reason, now)
        count += 1

    db.session.commit()
    return count


def cleanup_expired_sessions(older_than_days: int = 30) -> int:
    """Delete sessions that are expired or revoked and older than the cutoff."""
    now = utcnow()
    cutoff = now - timedelta(days=older_than_days)

    deleted = db.session.query(SessionToken).filter(
        db.or_(
            SessionToken.expires_at < now,
            SessionToken.is_revoked.is_(True),
        ),
        SessionToken.created_at < cutoff,
    ).delete(synchronize_session=False)

    db.session.commit()
    return deleted
