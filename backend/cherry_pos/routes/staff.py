# Overview: Flask API routes for staff account operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_role
from ..permissions import STAFF_ADMIN_ROLES
from ..services import audit_service, staff_service
from ..services.staff_service import StaffAccountError


staff_bp = Blueprint("staff", __name__, url_prefix="/api/staff")


def _audit(event_type: str, staff_id: int | None, success: bool = True, reason: str | None = None):
    audit_service.log_event(
        event_type=event_type,
        success=success,
        actor=g.current_identity,
        resource=f"staff_users/{staff_id}" if staff_id is not None else "staff_users",
        action=request.method,
        reason=reason,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )


@staff_bp.get("")
@require_auth
@require_role(*STAFF_ADMIN_ROLES)
def list_staff_route():
    active_only = request.args.get("active", "").lower() in ("1", "true", "yes")
    staff = staff_service.list_staff_users(active_only=active_only)
    return jsonify({"staff": [s.to_dict() for s in staff]}), 200


@staff_bp.post("")
@require_auth
@require_role(*STAFF_ADMIN_ROLES)
def create_staff_route():
    """
    Create a staff account.

    Request body: {username, password, full_name, role, email?}
    """
    try:
        data = request.get_json(silent=True) or {}
        staff = staff_service.create_staff_user(
            username=data.get("username"),
            password=data.get("password"),
            full_name=data.get("full_name"),
            role=data.get("role"),
            email=data.get("email"),
        )
        _audit("STAFF_CREATED", staff.id)
        return jsonify({"staff": staff.to_dict()}), 201

    except StaffAccountError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create staff user")
        return jsonify({"error": "Internal server error"}), 500


@staff_bp.patch("/<int:staff_id>")
@require_auth
@require_role(*STAFF_ADMIN_ROLES)
def update_staff_route(staff_id: int):
    try:
        data = request.get_json(silent=True) or {}
        fields = {k: data[k] for k in ("full_name", "email", "role", "is_active") if k in data}
        staff = staff_service.update_staff_user(staff_id, **fields)
        _audit("STAFF_UPDATED", staff.id)
        return jsonify({"staff": staff.to_dict()}), 200

    except StaffAccountError as e:
        status = 404 if "not found" in str(e) else 400
        return jsonify({"error": str(e)}), status
    except Exception:
        current_app.logger.exception("Failed to update staff user")
        return jsonify({"error": "Internal server error"}), 500


@staff_bp.delete("/<int:staff_id>")
@require_auth
@require_role(*STAFF_ADMIN_ROLES)
def delete_staff_route(staff_id: int):
    try:
        staff_service.delete_staff_user(staff_id)
        _audit("STAFF_DELETED", staff_id)
        return jsonify({"success": True}), 200

    except StaffAccountError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete staff user")
        return jsonify({"error": "Internal server error"}), 500


@staff_bp.post("/<int:staff_id>/password")
@require_auth
@require_role(*STAFF_ADMIN_ROLES)
def reset_staff_password_route(staff_id: int):
    """Password reset procedure: {new_password} -> {success} only."""
    try:
        data = request.get_json(silent=True) or {}
        success = staff_service.update_staff_password(staff_id, data.get("new_password") or "")
        _audit("STAFF_PASSWORD_RESET", staff_id, success=success)
        return jsonify({"success": success}), 200 if success else 400

    except Exception:
        current_app.logger.exception("Failed to reset staff password")
        return jsonify({"error": "Internal server error"}), 500
