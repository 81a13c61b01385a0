# Overview: Service-layer operations for bulk staff import from a legacy staff export.

"""
Bulk import of legacy staff records as administrator accounts.

Each record: {firstName, lastName, username, email, phone, address, isActive}.

- full name is "firstName lastName", trimmed
- a missing or invalid email becomes <username, lower-cased, no spaces>@<IMPORT_EMAIL_DOMAIN>
- each account gets a random temporary password and the cashier role

One bad record never aborts the batch; its failure is collected with the
person's name.
"""

import logging
import re
import secrets
import string

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..permissions import DEFAULT_IMPORTED_ROLE
from .auth_service import AuthError, set_user_role, sign_up


logger = logging.getLogger(__name__)

_TEMP_ALPHABET = string.ascii_lowercase + string.digits


class StaffImportError(Exception):
    """Raised for a record that cannot be imported."""
    pass


def temporary_password() -> str:
    """Cherry + 8 random [a-z0-9] + 2025!"""
    middle = "".join(secrets.choice(_TEMP_ALPHABET) for _ in range(8))
    return f"Cherry{middle}2025!"


def full_name_of(record: dict) -> str:
    return f"{record.get('firstName') or ''} {record.get('lastName') or ''}".strip()


def import_email(record: dict, domain: str) -> str:
    email = (record.get("email") or "").strip()
    if email and "@" in email:
        return email
    username = record.get("username")
    if not isinstance(username, str) or not username.strip():
        raise StaffImportError("Username is required when email is missing")
    local_part = re.sub(r"\s+", "", username.lower())
    return f"{local_part}@{domain}"


def _import_one(record: dict, domain: str) -> str:
    if not isinstance(record, dict):
        raise StaffImportError("Record must be an object")

    full_name = full_name_of(record)
    email = import_email(record, domain)

    try:
        user = sign_up(email, temporary_password(), full_name=full_name or None)
    except AuthError as e:
        if "already" in str(e):
            raise StaffImportError("User already exists") from e
        raise StaffImportError(str(e)) from e

    set_user_role(user.id, DEFAULT_IMPORTED_ROLE)
    return full_name or email


def import_staff(staff_list: list) -> dict:
    """
    Returns {success, imported, failed, details: {success: [names],
    failed: [{name, error}]}}.
    """
    domain = current_app.config.get("IMPORT_EMAIL_DOMAIN", "cherrydining.local")
    results = {"success": [], "failed": []}

    for record in staff_list:
        name = full_name_of(record) if isinstance(record, dict) else str(record)
        try:
            results["success"].append(_import_one(record, domain))
        except StaffImportError as e:
            db.session.rollback()
            results["failed"].append({"name": name, "error": str(e)})
        except (AuthError, SQLAlchemyError) as e:
            db.session.rollback()
            logger.warning("Staff import failed for %s: %s", name, e)
            results["failed"].append({"name": name, "error": str(e)})

    return {
        "success": True,
        "imported": len(results["success"]),
        "failed": len(results["failed"]),
        "details": results,
    }
