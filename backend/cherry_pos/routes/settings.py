# Overview: Flask API routes for venue settings and account profiles.

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_role
from ..permissions import SETTINGS_WRITE_ROLES
from ..services import account_service, settings_service
from ..services.account_service import AccountError
from ..services.settings_service import SettingsError


settings_bp = Blueprint("settings", __name__, url_prefix="/api")


@settings_bp.get("/settings")
@require_auth
def get_settings_route():
    """The venue profile, or null until it has been saved once."""
    settings = settings_service.get_settings()
    return jsonify({"settings": settings.to_dict() if settings else None}), 200


@settings_bp.patch("/settings")
@require_auth
@require_role(*SETTINGS_WRITE_ROLES)
def update_settings_route():
    try:
        data = request.get_json(silent=True) or {}
        settings = settings_service.update_settings(data)
        return jsonify({"settings": settings.to_dict()}), 200

    except SettingsError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update settings")
        return jsonify({"error": "Internal server error"}), 500


@settings_bp.get("/profiles/<int:user_id>")
@require_auth
def get_profile_route(user_id: int):
    user = account_service.get_account(user_id)
    if not user:
        return jsonify({"error": "Profile not found"}), 404
    return jsonify({"profile": {"id": user.id, "email": user.email, **user.to_dict()["profile"]}}), 200


@settings_bp.patch("/profiles/<int:user_id>")
@require_auth
def update_profile_route(user_id: int):
    """Request body: {"full_name": "...", "avatar_url": "..."}. Own profile only."""
    identity = g.current_identity
    if not identity.is_admin or identity.id != user_id:
        return jsonify({"error": "Cannot update other users profile"}), 403

    try:
        data = request.get_json(silent=True) or {}
        fields = {k: data[k] for k in ("full_name", "avatar_url") if k in data}
        user = account_service.update_profile(user_id, identity.id, **fields)
        return jsonify({"profile": {"id": user.id, "email": user.email, **user.to_dict()["profile"]}}), 200

    except AccountError as e:
        status = 404 if "not found" in str(e) else 400
        return jsonify({"error": str(e)}), status
    except Exception:
        current_app.logger.exception("Failed to update profile")
        return jsonify({"error": "Internal server error"}), 500
