# Overview: Service-layer operations for staff accounts; encapsulates business logic and database work.

"""
Floor-staff accounts verified locally by username and password.

verify_staff_password mirrors a stored procedure: it returns a list with zero
rows (unknown user, wrong password, inactive account) or one row of identity
attributes. Callers can't tell the failure cases apart.
"""

from ..extensions import db
from ..models import CashierBarAssignment, SessionToken, StaffUser
from ..permissions import validate_role_code
from ..time_utils import utcnow
from . import session_service
from .auth_service import PasswordValidationError, hash_password, verify_password


class StaffAccountError(Exception):
    """Raised when a staff account operation fails validation."""
    pass


def normalize_username(username: str | None) -> str:
    return (username or "").strip().lower()


def get_staff_user(staff_id: int) -> StaffUser | None:
    return db.session.get(StaffUser, staff_id)


def list_staff_users(active_only: bool = False) -> list[StaffUser]:
    query = db.session.query(StaffUser)
    if active_only:
        query = query.filter(StaffUser.is_active.is_(True))
    return query.order_by(StaffUser.full_name.asc(), StaffUser.id.asc()).all()


def create_staff_user(
    username: str,
    password: str,
    full_name: str,
    role: str,
    email: str | None = None,
) -> StaffUser:
    """
    Create a staff account.

    Raises:
        StaffAccountError: missing fields, unknown role or taken username
    """
    username = normalize_username(username)
    full_name = (full_name or "").strip()

    if not username:
        raise StaffAccountError("Username is required")
    if not full_name:
        raise StaffAccountError("Full name is required")
    if not validate_role_code(role):
        raise StaffAccountError(f"Invalid role: {role}")

    if db.session.query(StaffUser).filter_by(username=username).first():
        raise StaffAccountError("Username already exists")

    try:
        password_hash = hash_password(password)
    except PasswordValidationError as e:
        raise StaffAccountError(str(e)) from e

    staff = StaffUser(
        username=username,
        full_name=full_name,
        email=(email or "").strip() or None,
        role=role,
        password_hash=password_hash,
        is_active=True,
    )
    db.session.add(staff)
    db.session.commit()
    return staff


def update_staff_user(staff_id: int, **fields) -> StaffUser:
    """Update full_name, email, role and/or is_active. Unknown keys are ignored."""
    staff = get_staff_user(staff_id)
    if not staff:
        raise StaffAccountError("Staff user not found")

    if "full_name" in fields and fields["full_name"] is not None:
        full_name = str(fields["full_name"]).strip()
        if not full_name:
            raise StaffAccountError("Full name is required")
        staff.full_name = full_name

    if "email" in fields:
        staff.email = (fields["email"] or "").strip() or None

    if "role" in fields and fields["role"] is not None:
        if not validate_role_code(fields["role"]):
            raise StaffAccountError(f"Invalid role: {fields['role']}")
        staff.role = fields["role"]

    if "is_active" in fields and fields["is_active"] is not None:
        staff.is_active = bool(fields["is_active"])
        if not staff.is_active:
            session_service.revoke_all_sessions(staff_user_id=staff.id, reason="Account deactivated")

    db.session.commit()
    return staff


def delete_staff_user(staff_id: int) -> None:
    staff = get_staff_user(staff_id)
    if not staff:
        raise StaffAccountError("Staff user not found")

    db.session.query(CashierBarAssignment).filter_by(staff_user_id=staff_id).delete(synchronize_session=False)
    db.session.query(SessionToken).filter_by(staff_user_id=staff_id).delete(synchronize_session=False)
    db.session.delete(staff)
    db.session.commit()


def verify_staff_password(username: str, password: str) -> list[dict]:
    """
    Check staff credentials.

    Returns [] on any failure, or one row:
    {staff_id, staff_name, staff_email, staff_role}.
    Successful verification stamps last_login_at.
    """
    username = normalize_username(username)
    if not username or not password:
        return []

    staff = db.session.query(StaffUser).filter(
        StaffUser.username == username,
        StaffUser.is_active.is_(True),
    ).first()

    if not staff or not verify_password(password, staff.password_hash):
        return []

    staff.last_login_at = utcnow()
    db.session.commit()

    return [{
        "staff_id": staff.id,
        "staff_name": staff.full_name,
        "staff_email": staff.email,
        "staff_role": staff.role,
    }]


def update_staff_password(staff_id: int, new_password: str) -> bool:
    """Reset a staff password. Returns only success or failure."""
    staff = get_staff_user(staff_id)
    if not staff:
        return False

    try:
        staff.password_hash = hash_password(new_password)
    except PasswordValidationError:
        return False

    session_service.revoke_all_sessions(staff_user_id=staff.id, reason="Password reset")
    db.session.commit()
    return True
