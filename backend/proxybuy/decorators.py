# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import g, jsonify, request

from .errors import ForbiddenError, error_response
from .services import permission_service, session_service


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'principal')


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer session.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.principal: Principal(id, role, verification_status) handed to services
    - g.session_context: The full SessionContext object

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired, idle or revoked token
    - User account deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "unauthenticated", "message": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "unauthenticated", "message": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.principal = context.principal
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """
    Require a specific capability from the role table.

    Denials are written to security_events as PERMISSION_DENIED.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": "unauthenticated", "message": "Authentication required"}), 401

            principal = g.principal
            if not permission_service.has_permission(principal, permission_code):
                permission_service.log_security_event(
                    user_id=principal.id,
                    event_type="PERMISSION_DENIED",
                    success=False,
                    resource=request.path,
                    action=permission_code,
                    reason=f"Role {principal.role} lacks {permission_code}",
                    ip_address=request.remote_addr,
                    user_agent=request.headers.get("User-Agent"),
                )
                return jsonify({
                    "error": "forbidden",
                    "required_permission": permission_code,
                    "message": f"Permission denied: {permission_code}",
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def domain_error_response(exc):
    """
    Translate a DomainError raised by a service into a JSON response.

    Record-level denials (ForbiddenError from a service) are audited the
    same way as capability denials.
    """
    if isinstance(exc, ForbiddenError) and _is_authenticated():
        permission_service.log_security_event(
            user_id=g.principal.id,
            event_type="PERMISSION_DENIED",
            success=False,
            resource=request.path,
            action=request.method,
            reason=exc.message,
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
    return error_response(exc)


def internal_error_response():
    return jsonify({"error": "internal_error", "message": "Internal server error"}), 500
