# backend/proxybuy/routes/system.py
"""
System health endpoint and uploaded-file serving.
"""

import time

from flask import Blueprint, abort, current_app, g, send_from_directory

from ..decorators import require_auth
from ..extensions import db
from ..models import Message, Order, SessionToken, User
from ..services import message_service, permission_service, upload_service
from proxybuy.time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        user_count = db.session.query(User).count()
        order_count = db.session.query(Order).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "users": user_count,
                "orders": order_count,
            }
        }
    except Exception:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_session_service_health() -> dict:
    """
    Check session service health by verifying session table accessibility.
    """
    start_time = time.time()
    try:
        active_sessions = db.session.query(SessionToken).filter_by(
            is_revoked=False
        ).count()

        # Expired but not yet cleaned up
        expired_sessions = db.session.query(SessionToken).filter(
            SessionToken.expires_at < utcnow(),
            SessionToken.is_revoked.is_(False)
        ).count()

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "active_sessions": active_sessions,
                "expired_pending_cleanup": expired_sessions,
            }
        }
    except Exception:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Session service health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Session service error"
        }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: All systems healthy
    - 503: One or more systems unhealthy
    """
    start_time = time.time()

    database_health = check_database_health()
    session_health = check_session_service_health()

    all_checks = [database_health, session_health]
    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status = "unhealthy"
        http_status = 503
    else:
        overall_status = "healthy"
        http_status = 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "session_service": session_health,
        }
    }

    return response, http_status


@system_bp.get("/uploads/<subdir>/<name>")
@require_auth
def uploaded_file(subdir: str, name: str):
    """
    Serve a stored upload to the people who can see the record holding it.

    - verification: the account owner and reviewers (VERIFY_USERS)
    - screenshots: whoever can see the order
    - chat/videos: whoever can read the message

    A file no record refers to is not served.
    """
    directory = upload_service.resolve_upload_dir(subdir, name)
    if directory is None:
        abort(404)

    path = f"/uploads/{subdir}/{name}"
    principal = g.principal

    if subdir in upload_service.PRIVATE_SUBDIRS:
        user = g.current_user
        is_owner = path in (user.id_photo_path, user.selfie_path)
        if not is_owner and not permission_service.has_permission(principal, "VERIFY_USERS"):
            abort(403)
    elif subdir == "screenshots":
        order = db.session.query(Order).filter(Order.screenshot_path == path).first()
        if order is None:
            abort(404)
        if not permission_service.can_access_order(principal, order):
            abort(403)
    else:
        messages = db.session.query(Message).filter(Message.media_path == path).all()
        if not messages:
            abort(404)
        if not any(message_service.can_read_message(principal, m) for m in messages):
            abort(403)

    return send_from_directory(directory, name)

