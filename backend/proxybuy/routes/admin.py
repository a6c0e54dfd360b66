# Overview: Flask API routes for admin operations; user listing, verification review and role changes.

"""
Admin routes for user management.

- List users (admin, super_admin)
- Review identity verification (admin, super_admin)
- Change roles (super_admin only)

Role and verification changes are written to security_events.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import (
    domain_error_response,
    internal_error_response,
    require_auth,
    require_permission,
)
from ..errors import DomainError
from ..services import auth_service, permission_service, verification


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _audit(event_type: str, target_id: str, reason: str) -> None:
    permission_service.log_security_event(
        user_id=g.principal.id,
        event_type=event_type,
        success=True,
        resource=request.path,
        action=target_id,
        reason=reason,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )


@admin_bp.get("/users")
@require_auth
@require_permission("VIEW_USERS")
def list_users_route():
    """All users, newest first."""
    try:
        users = auth_service.list_users(g.principal)
    except DomainError as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list users")
        return internal_error_response()

    return jsonify({"users": [u.to_dict() for u in users], "count": len(users)})


@admin_bp.get("/users/<user_id>")
@require_auth
@require_permission("VIEW_USERS")
def get_user_route(user_id: str):
    try:
        user = auth_service.get_user(g.principal, user_id)
    except DomainError as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load user")
        return internal_error_response()

    return jsonify({"user": user.to_dict()})


@admin_bp.get("/verification/pending")
@require_auth
@require_permission("VERIFY_USERS")
def pending_verifications_route():
    try:
        users = verification.list_pending_verifications(g.principal)
    except DomainError as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list pending verifications")
        return internal_error_response()

    return jsonify({"users": [u.to_dict() for u in users], "count": len(users)})


@admin_bp.post("/users/<user_id>/verify")
@require_auth
@require_permission("VERIFY_USERS")
def verify_user_route(user_id: str):
    """Body: {"status": "verified" | "rejected"}"""
    data = request.get_json(silent=True) or {}
    try:
        user = verification.set_verification_status(g.principal, user_id, data.get("status"))
        _audit("VERIFICATION_CHANGED", user.id, f"verification_status={user.verification_status}")
    except DomainError as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update verification status")
        return internal_error_response()

    current_app.logger.info(
        "User %s verification set to %s by %s", user.id, user.verification_status, g.principal.id
    )
    return jsonify({"user": user.to_dict()})


@admin_bp.patch("/users/<user_id>/role")
@require_auth
@require_permission("CHANGE_USER_ROLE")
def change_role_route(user_id: str):
    """Body: {"role": "user" | "employee" | "admin" | "super_admin"}"""
    data = request.get_json(silent=True) or {}
    try:
        user = auth_service.change_role(g.principal, user_id, data.get("role"))
        _audit("ROLE_CHANGED", user.id, f"role={user.role}")
    except DomainError as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to change user role")
        return internal_error_response()

    current_app.logger.info("User %s role set to %s by %s", user.id, user.role, g.principal.id)
    return jsonify({"user": user.to_dict()})
