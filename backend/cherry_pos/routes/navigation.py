# Overview: Flask API routes for the role-filtered navigation menu and the role catalogue.

from flask import Blueprint, jsonify, g

from ..decorators import require_auth
from ..permissions import filter_navigation, get_all_role_codes, get_role_definition


navigation_bp = Blueprint("navigation", __name__, url_prefix="/api")


@navigation_bp.get("/navigation")
@require_auth
def navigation_route():
    """Menu groups visible to the caller's effective role. Empty groups are dropped."""
    role = g.current_identity.role
    groups = filter_navigation(role)
    return jsonify({
        "role": role,
        "groups": [group.to_dict() for group in groups],
    }), 200


@navigation_bp.get("/roles")
@require_auth
def roles_route():
    return jsonify({"roles": [get_role_definition(code) for code in get_all_role_codes()]}), 200
