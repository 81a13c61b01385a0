# Overview: Service-layer operations for administrator account management.

"""
Privileged management of administrator accounts (create, update, delete).

Creation provisions the account and its profile first, then the role. If the
role write fails the account is kept and the failure is reported as a
warning, so an operator can retry the role assignment alone.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import AdminUser, CashierBarAssignment, SessionToken
from ..permissions import validate_role_code
from .auth_service import AuthError, set_user_role, sign_up


logger = logging.getLogger(__name__)


class AccountError(Exception):
    """Raised when an account management action is rejected."""
    pass


def create_account(email: str, password: str, full_name: str | None = None, role: str | None = None) -> dict:
    """
    Returns {"user": AdminUser, "warning": str | None}.

    Raises:
        AccountError: missing credentials, invalid role, or sign-up failure
    """
    if not email or not password:
        raise AccountError("Email and password required")
    if role is not None and not validate_role_code(role):
        raise AccountError(f"Invalid role: {role}")

    try:
        user = sign_up(email, password, full_name=full_name)
    except AuthError as e:
        raise AccountError(str(e)) from e

    warning = None
    if role:
        try:
            set_user_role(user.id, role)
        except (AuthError, SQLAlchemyError) as e:
            db.session.rollback()
            logger.warning("Account %s created without role %s: %s", user.id, role, e)
            warning = f"Account created but role assignment failed: {e}"

    return {"user": user, "warning": warning}


def update_account(user_id: int, full_name: str | None = None, role: str | None = None) -> AdminUser:
    """Edit the profile name and/or role. The role row is created if absent."""
    user = db.session.get(AdminUser, user_id)
    if not user:
        raise AccountError("User not found")

    if role is not None and not validate_role_code(role):
        raise AccountError(f"Invalid role: {role}")

    if full_name is not None:
        user.full_name = full_name.strip() or None
        db.session.commit()

    if role:
        set_user_role(user.id, role)

    return user


def delete_account(user_id: int, requested_by: int) -> None:
    if user_id == requested_by:
        raise AccountError("Cannot delete yourself")

    user = db.session.get(AdminUser, user_id)
    if not user:
        raise AccountError("User not found")

    db.session.query(SessionToken).filter_by(user_id=user_id).delete(synchronize_session=False)
    db.session.query(CashierBarAssignment).filter_by(user_id=user_id).delete(synchronize_session=False)
    db.session.query(CashierBarAssignment).filter_by(assigned_by=user_id).update(
        {"assigned_by": None}, synchronize_session=False
    )
    db.session.delete(user)
    db.session.commit()


def get_account(user_id: int) -> AdminUser | None:
    return db.session.get(AdminUser, user_id)


def list_accounts() -> list[AdminUser]:
    return db.session.query(AdminUser).order_by(AdminUser.created_at.desc(), AdminUser.id.desc()).all()


def update_profile(user_id: int, requested_by: int, **fields) -> AdminUser:
    """
    Self-service profile edit (full_name, avatar_url). Only the account owner
    may change it.
    """
    if user_id != requested_by:
        raise AccountError("Cannot update other users profile")

    user = db.session.get(AdminUser, user_id)
    if not user:
        raise AccountError("User not found")

    if "full_name" in fields:
        user.full_name = (fields["full_name"] or "").strip() or None
    if "avatar_url" in fields:
        user.avatar_url = (fields["avatar_url"] or "").strip() or None

    db.session.commit()
    return user
