# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

Administrator path: signup, login (bearer + refresh pair), refresh, me,
change-password, logout.
Staff path: staff/login (username + password, fixed 12h token), logout.

Failure messages are fixed strings; they never say whether the account
exists.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..services import audit_service, auth_service, session_service, staff_service
from ..services.auth_service import AuthError, PasswordValidationError
from ..time_utils import to_utc_z


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

INVALID_STAFF_CREDENTIALS = "Invalid username or password"


def _client_context() -> dict:
    return {
        "user_agent": request.headers.get("User-Agent"),
        "ip_address": request.remote_addr,
    }


def _admin_session_payload(session, access_token: str, refresh_token: str) -> dict:
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "expires_at": to_utc_z(session.expires_at),
        "refresh_expires_at": to_utc_z(session.refresh_expires_at),
    }


@auth_bp.post("/signup")
def signup_route():
    """
    Create an administrator account and sign it in.

    New accounts have no role until a manager assigns one.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")
        full_name = data.get("full_name") or data.get("fullName")

        if not email or not password:
            return jsonify({"error": "Email and password required"}), 400

        user = auth_service.sign_up(email, password, full_name=full_name)
        session, access_token, refresh_token = session_service.create_admin_session(
            user.id, **_client_context()
        )

        return jsonify({
            "user": user.to_dict(),
            "session": _admin_session_payload(session, access_token, refresh_token),
        }), 201

    except PasswordValidationError as e:
        return jsonify({"error": str(e)}), 400
    except AuthError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to sign up user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """Authenticate an administrator by email and password."""
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not email or not password:
            return jsonify({"error": "Email and password required"}), 400

        ctx = _client_context()
        user = auth_service.authenticate(email, password)

        if not user:
            audit_service.log_event(
                event_type="LOGIN_FAILED",
                success=False,
                resource="/api/auth/login",
                reason="Invalid credentials",
                **ctx,
            )
            return jsonify({"error": "Invalid login credentials"}), 401

        session, access_token, refresh_token = session_service.create_admin_session(user.id, **ctx)
        audit_service.log_event(
            event_type="LOGIN_SUCCESS",
            success=True,
            actor=session_service.admin_identity(user),
            resource="/api/auth/login",
            **ctx,
        )

        return jsonify({
            "user": user.to_dict(),
            "session": _admin_session_payload(session, access_token, refresh_token),
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/refresh")
def refresh_route():
    """Exchange a refresh token for a new token pair. The old pair stops working."""
    try:
        data = request.get_json(silent=True) or {}
        result = session_service.refresh_admin_session(data.get("refresh_token"), **_client_context())
        if not result:
            return jsonify({"error": "Invalid or expired refresh token"}), 401

        session, access_token, refresh_token = result
        return jsonify({
            "user": session.user.to_dict(),
            "session": _admin_session_payload(session, access_token, refresh_token),
        }), 200

    except Exception:
        current_app.logger.exception("Failed to refresh session")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    """Identity behind the bearer token, administrator or staff."""
    return jsonify({
        "identity": g.current_identity.to_dict(),
        "user": g.current_user.to_dict(),
    }), 200


@auth_bp.post("/change-password")
@require_auth
def change_password_route():
    if not g.current_identity.is_admin:
        return jsonify({"error": "Staff passwords are reset by a manager"}), 403
    try:
        data = request.get_json(silent=True) or {}
        auth_service.change_password(
            g.current_user,
            data.get("current_password") or "",
            data.get("new_password") or "",
        )
        return jsonify({"message": "Password updated"}), 200

    except AuthError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to change password")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """
    Revoke the bearer token (either kind).

    Expects Authorization header: Bearer <token>
    """
    try:
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authorization header required"}), 401

        token = auth_header.split(" ", 1)[1]
        revoked = session_service.revoke_session(token, reason="User logout")

        if not revoked:
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/staff/login")
def staff_login_route():
    """
    Staff verification procedure.

    Request body: {"username": "...", "password": "..."}

    200: {"staff": {staff_id, staff_name, staff_email, staff_role},
          "token": "...", "expires_at": "...Z"}
    401: {"error": "Invalid username or password"}
    """
    try:
        data = request.get_json(silent=True) or {}
        username = data.get("username") or ""
        password = data.get("password") or ""
        ctx = _client_context()

        rows = staff_service.verify_staff_password(username, password)
        if not rows:
            audit_service.log_event(
                event_type="STAFF_LOGIN_FAILED",
                success=False,
                resource="/api/auth/staff/login",
                reason="Invalid credentials",
                **ctx,
            )
            return jsonify({"error": INVALID_STAFF_CREDENTIALS}), 401

        row = rows[0]
        session, token = session_service.create_staff_session(row["staff_id"], **ctx)
        audit_service.log_event(
            event_type="STAFF_LOGIN_SUCCESS",
            success=True,
            actor=session_service.staff_identity(session.staff_user),
            resource="/api/auth/staff/login",
            **ctx,
        )

        return jsonify({
            "staff": row,
            "username": session.staff_user.username,
            "token": token,
            "expires_at": to_utc_z(session.expires_at),
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login staff user")
        return jsonify({"error": "Internal server error"}), 500
