# Overview: Flask API routes for privileged admin operations; parses input and returns JSON responses.

"""
Privileged admin endpoints.

- POST /api/admin/accounts        manage administrator accounts (super_admin, manager)
- GET  /api/admin/accounts        list administrator accounts (super_admin, manager)
- POST /api/admin/import-staff    bulk staff import (super_admin, manager)
- POST /api/admin/migrate-legacy  legacy POS catalog migration (super_admin)
- GET  /api/admin/audit-events    audit log (super_admin, manager)
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_admin_identity, require_auth, require_role
from ..permissions import MIGRATION_ROLES, STAFF_ADMIN_ROLES
from ..services import account_service, audit_service, migration_service, staff_import_service
from ..services.account_service import AccountError
from ..services.migration_service import MigrationError


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _audit(event_type: str, success: bool = True, resource: str | None = None, reason: str | None = None):
    audit_service.log_event(
        event_type=event_type,
        success=success,
        actor=g.current_identity,
        resource=resource,
        action=request.method,
        reason=reason,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )


@admin_bp.get("/accounts")
@require_auth
@require_role(*STAFF_ADMIN_ROLES)
def list_accounts_route():
    return jsonify({"accounts": [u.to_dict() for u in account_service.list_accounts()]}), 200


@admin_bp.post("/accounts")
@require_auth
@require_role(*STAFF_ADMIN_ROLES)
@require_admin_identity
def manage_accounts_route():
    """
    Account-management endpoint.

    Request body:
    {"action": "create", "email", "password", "fullName"?, "role"?}
    {"action": "update", "userId", "fullName"?, "role"?}
    {"action": "delete", "userId"}
    """
    try:
        data = request.get_json(silent=True) or {}
        action = data.get("action")
        full_name = data.get("fullName", data.get("full_name"))
        user_id = data.get("userId", data.get("user_id"))

        if action == "create":
            result = account_service.create_account(
                email=data.get("email"),
                password=data.get("password"),
                full_name=full_name,
                role=data.get("role"),
            )
            user = result["user"]
            _audit("ACCOUNT_CREATED", resource=f"admin_users/{user.id}", reason=result["warning"])
            body = {"success": True, "user": user.to_dict()}
            if result["warning"]:
                body["warning"] = result["warning"]
            return jsonify(body), 200

        if action in ("update", "delete") and not user_id:
            return jsonify({"error": "User ID required"}), 400

        if action == "update":
            account_service.update_account(int(user_id), full_name=full_name, role=data.get("role"))
            _audit("ACCOUNT_UPDATED", resource=f"admin_users/{user_id}")
            return jsonify({"success": True}), 200

        if action == "delete":
            account_service.delete_account(int(user_id), requested_by=g.current_identity.id)
            _audit("ACCOUNT_DELETED", resource=f"admin_users/{user_id}")
            return jsonify({"success": True}), 200

        return jsonify({"error": "Invalid action"}), 400

    except AccountError as e:
        return jsonify({"error": str(e)}), 400
    except (TypeError, ValueError):
        return jsonify({"error": "Invalid user ID"}), 400
    except Exception:
        current_app.logger.exception("Failed to manage account")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/import-staff")
@require_auth
@require_role(*STAFF_ADMIN_ROLES)
def import_staff_route():
    """Request body: {"staffList": [{firstName, lastName, username, email, phone, address, isActive}]}"""
    try:
        data = request.get_json(silent=True) or {}
        staff_list = data.get("staffList")
        if not isinstance(staff_list, list):
            return jsonify({"error": "Staff list required"}), 400

        result = staff_import_service.import_staff(staff_list)
        _audit(
            "STAFF_IMPORT",
            resource="admin_users",
            reason=f"imported={result['imported']} failed={result['failed']}",
        )
        return jsonify(result), 200

    except Exception:
        current_app.logger.exception("Failed to import staff")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/migrate-legacy")
@require_auth
@require_role(*MIGRATION_ROLES)
def migrate_legacy_route():
    """
    Legacy catalog migration.

    Request body is either the catalog itself ({categories, items}) or
    {"database_url": "mysql+pymysql://...", "table_prefix"?: "ospos_"}.
    """
    try:
        data = request.get_json(silent=True) or {}
        if data.get("database_url"):
            payload = migration_service.load_legacy_catalog(
                data["database_url"],
                table_prefix=data.get("table_prefix"),
            )
        else:
            payload = data

        result = migration_service.migrate_catalog(payload)
        _audit(
            "LEGACY_MIGRATION",
            resource="menu_items",
            reason=f"categories={result['categories']} menu_items={result['menu_items']} errors={len(result['errors'])}",
        )
        return jsonify({"success": True, "message": "Migration completed", "result": result}), 200

    except MigrationError as e:
        return jsonify({"success": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Legacy migration failed")
        return jsonify({"success": False, "error": "Internal server error"}), 500


@admin_bp.get("/audit-events")
@require_auth
@require_role(*STAFF_ADMIN_ROLES)
def list_audit_events_route():
    try:
        limit = min(int(request.args.get("limit", 100)), 500)
    except ValueError:
        return jsonify({"error": "limit must be an integer"}), 400

    events = audit_service.list_events(
        event_type=request.args.get("event_type") or None,
        limit=limit,
    )
    return jsonify({"events": [e.to_dict() for e in events]}), 200
