# Overview: Flask API routes for messaging; order threads, staff threads and read receipts.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import (
    domain_error_response,
    internal_error_response,
    require_auth,
    require_permission,
)
from ..errors import DomainError
from ..services import message_service, upload_service


messages_bp = Blueprint("messages", __name__, url_prefix="/api/messages")


@messages_bp.post("")
@require_auth
def send_message_route():
    """
    Send a message.

    JSON or multipart form:
    - content: required
    - order_id: post into that order's thread
    - receiver_id: staff-to-staff message when no order_id is given
    - media (multipart only): image or video up to 2MB, stored only once
      the sender is allowed to post
    """
    stored_paths = []
    try:
        media_type = None
        media_path = None
        if request.is_json:
            data = request.get_json(silent=True) or {}
        else:
            data = request.form.to_dict()
            media = request.files.get("media")
            if media and media.filename:
                message_service.ensure_can_send(
                    g.principal,
                    content=data.get("content"),
                    order_id=data.get("order_id") or None,
                    receiver_id=data.get("receiver_id") or None,
                )
                stored = upload_service.save_upload(media, "chat")
                stored_paths.append(stored.path)
                media_type = stored.media_type
                media_path = stored.path

        message = message_service.send_message(
            g.principal,
            content=data.get("content"),
            order_id=data.get("order_id") or None,
            receiver_id=data.get("receiver_id") or None,
            media_type=media_type,
            media_path=media_path,
        )
    except DomainError as e:
        upload_service.discard_uploads(stored_paths)
        return domain_error_response(e)
    except Exception:
        upload_service.discard_uploads(stored_paths)
        current_app.logger.exception("Failed to send message")
        return internal_error_response()

    return jsonify({"message": message.to_dict()}), 201


@messages_bp.get("/orders/<order_id>")
@require_auth
def order_thread_route(order_id: str):
    try:
        messages = message_service.list_thread(g.principal, order_id)
    except DomainError as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load order messages")
        return internal_error_response()

    return jsonify({"messages": [m.to_dict() for m in messages]})


@messages_bp.get("/staff")
@messages_bp.get("/staff/<user_id>")
@require_auth
@require_permission("STAFF_MESSAGING")
def staff_thread_route(user_id: str | None = None):
    try:
        messages = message_service.list_staff_thread(g.principal, user_id)
    except DomainError as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load staff messages")
        return internal_error_response()

    return jsonify({"messages": [m.to_dict() for m in messages]})


@messages_bp.post("/read")
@require_auth
def mark_read_route():
    """Body: {"message_ids": ["...", ...]}"""
    data = request.get_json(silent=True) or {}
    try:
        updated = message_service.mark_read(g.principal, data.get("message_ids") or [])
    except DomainError as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to mark messages read")
        return internal_error_response()

    return jsonify({"updated": updated})


@messages_bp.get("/unread-count")
@require_auth
def unread_count_route():
    try:
        count = message_service.unread_count(g.principal)
    except DomainError as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to count unread messages")
        return internal_error_response()

    return jsonify({"count": count})
