# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .identity import has_role
from .services import audit_service, session_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def _is_authenticated() -> bool:
    return getattr(g, "current_identity", None) is not None


def require_auth(f):
    """
    Require a valid administrator or staff bearer token.

    Sets the following Flask g attributes:
    - g.current_identity: the resolved Identity (kind, id, role)
    - g.current_user: the AdminUser or StaffUser row
    - g.session_context: the full SessionContext

    Returns 401 when the header is missing or the token is unknown, expired,
    revoked or belongs to a deactivated account.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_identity = context.identity
        g.current_user = context.user
        g.session_context = context
        g.bearer_token = token

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles):
    """
    Require the effective role to be one of roles.

    An identity without a role is denied. Denials are written to the audit
    log as ROLE_DENIED.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            identity = g.current_identity
            if not has_role(identity.role, roles):
                audit_service.log_event(
                    event_type="ROLE_DENIED",
                    success=False,
                    actor=identity,
                    resource=request.path,
                    action=request.method,
                    reason=f"Role {identity.role or 'none'} not in {', '.join(roles)}",
                    ip_address=request.remote_addr,
                    user_agent=request.headers.get("User-Agent"),
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": list(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_admin_identity(f):
    """Require the caller to be an administrator account (not a staff session)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return jsonify({"error": "Authentication required"}), 401
        if not g.current_identity.is_admin:
            return jsonify({"error": "Administrator account required"}), 403
        return f(*args, **kwargs)
    return decorated_function
