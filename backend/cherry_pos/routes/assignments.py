# Overview: Flask API routes for cashier-bar assignment; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_role
from ..permissions import STAFF_ADMIN_ROLES
from ..services import assignment_service, audit_service
from ..services.assignment_service import AssignmentError


assignments_bp = Blueprint("assignments", __name__, url_prefix="/api/assignments")


def _assignee_from(data: dict) -> dict:
    user_id = data.get("user_id")
    staff_user_id = data.get("staff_user_id")
    return {
        "user_id": int(user_id) if user_id is not None else None,
        "staff_user_id": int(staff_user_id) if staff_user_id is not None else None,
    }


@assignments_bp.get("")
@require_auth
@require_role(*STAFF_ADMIN_ROLES)
def list_assignments_route():
    bar_id = request.args.get("bar_id", type=int)
    return jsonify({"assignments": assignment_service.list_active_assignments(bar_id=bar_id)}), 200


@assignments_bp.get("/me")
@require_auth
def my_assignment_route():
    """Active assignment of the caller, or null."""
    assignment = assignment_service.get_active_assignment(
        **assignment_service.assignee_kwargs(g.current_identity)
    )
    return jsonify({"assignment": assignment.to_dict() if assignment else None}), 200


@assignments_bp.post("")
@require_auth
@require_role(*STAFF_ADMIN_ROLES)
def assign_route():
    """
    Assign a cashier to a bar.

    Request body: {"bar_id": 1, "user_id": 2} or {"bar_id": 1, "staff_user_id": 3}
    """
    try:
        data = request.get_json(silent=True) or {}
        if data.get("bar_id") is None:
            return jsonify({"error": "bar_id required"}), 400

        identity = g.current_identity
        assignment = assignment_service.assign(
            int(data["bar_id"]),
            assigned_by=identity.id if identity.is_admin else None,
            **_assignee_from(data),
        )
        audit_service.log_event(
            event_type="BAR_ASSIGNED",
            success=True,
            actor=identity,
            resource=f"bars/{assignment.bar_id}",
            action="ASSIGN",
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
        return jsonify({"assignment": assignment.to_dict()}), 200

    except AssignmentError as e:
        return jsonify({"error": str(e)}), 400
    except (TypeError, ValueError):
        return jsonify({"error": "Invalid id"}), 400
    except Exception:
        current_app.logger.exception("Failed to assign cashier")
        return jsonify({"error": "Internal server error"}), 500


@assignments_bp.delete("")
@require_auth
@require_role(*STAFF_ADMIN_ROLES)
def unassign_route():
    try:
        data = request.get_json(silent=True) or {}
        count = assignment_service.unassign(**_assignee_from(data))
        return jsonify({"success": True, "deactivated": count}), 200

    except AssignmentError as e:
        return jsonify({"error": str(e)}), 400
    except (TypeError, ValueError):
        return jsonify({"error": "Invalid id"}), 400
    except Exception:
        current_app.logger.exception("Failed to unassign cashier")
        return jsonify({"error": "Internal server error"}), 500
