# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Administrator account authentication.

Administrators sign in with email and password. Passwords are hashed with
bcrypt (cost factor BCRYPT_ROUNDS, default 12) for administrators and staff alike; the staff path
reuses hash_password/verify_password from here.

Accounts created through sign-up have no role until one is assigned, so they
pass authentication but fail every role-gated check.
"""

import re

import bcrypt
from flask import current_app, has_app_context

from ..extensions import db
from ..models import AdminUser, UserRole
from ..permissions import validate_role_code
from ..time_utils import utcnow


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class AuthError(Exception):
    """Raised when an authentication operation cannot be completed."""
    pass


class PasswordValidationError(AuthError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character

    Raises PasswordValidationError if requirements not met.
    """
    if not password or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>?_\-+=]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt. Returns the hash as text for storage."""
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12) if has_app_context() else 12
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """bcrypt.checkpw; malformed hashes verify as False."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def is_valid_email(email: str | None) -> bool:
    return bool(email) and bool(EMAIL_PATTERN.match(email))


def sign_up(email: str, password: str, full_name: str | None = None, role: str | None = None) -> AdminUser:
    """
    Create an administrator account.

    Raises:
        AuthError: invalid email or duplicate account
        PasswordValidationError: weak password
    """
    email = normalize_email(email)
    if not is_valid_email(email):
        raise AuthError("A valid email address is required")

    existing = db.session.query(AdminUser).filter_by(email=email).first()
    if existing:
        raise AuthError("User already registered")

    if role is not None and not validate_role_code(role):
        raise AuthError(f"Unknown role: {role}")

    user = AdminUser(
        email=email,
        password_hash=hash_password(password),
        full_name=(full_name or "").strip() or None,
    )
    db.session.add(user)
    db.session.flush()

    if role is not None:
        db.session.add(UserRole(user_id=user.id, role=role))

    db.session.commit()
    return user


def authenticate(email: str, password: str) -> AdminUser | None:
    """
    Check administrator credentials.

    Returns the user on success (and stamps last_login_at), None otherwise.
    Unknown email, wrong password and inactive account are indistinguishable.
    """
    email = normalize_email(email)
    user = db.session.query(AdminUser).filter(
        AdminUser.email == email,
        AdminUser.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None


def change_password(user: AdminUser, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        raise AuthError("Current password is incorrect")
    user.password_hash = hash_password(new_password)
    db.session.commit()


def set_user_role(user_id: int, role: str) -> UserRole:
    """Set the administrator's role, creating the user_roles row if absent."""
    if not validate_role_code(role):
        raise AuthError(f"Unknown role: {role}")
    assignment = db.session.query(UserRole).filter_by(user_id=user_id).first()
    if assignment:
        assignment.role = role
    else:
        assignment = UserRole(user_id=user_id, role=role)
        db.session.add(assignment)
    db.session.commit()
    return assignment
