# Overview: Service-layer operations for messaging; order threads, staff threads and read receipts.

"""
Messaging Service

Two conversation types:
- user_order: attached to one order; readable by whoever can see the order
  (owner, assigned employee, admin, super admin)
- employee_admin: direct staff-to-staff messages; readable by the two
  participants

Messages are immutable apart from the is_read flag.
"""

from __future__ import annotations

from ..errors import ForbiddenError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Message, Order, User
from ..permissions import STAFF_ROLES
from .concurrency import run_in_transaction
from .permission_service import (
    Principal,
    can_access_order,
    require_order_access,
    require_permission,
    require_principal,
)


CONVERSATION_USER_ORDER = "user_order"
CONVERSATION_EMPLOYEE_ADMIN = "employee_admin"

MEDIA_TYPES = ("text", "image", "video", "document")

MAX_CONTENT_LENGTH = 5000


def _clean_content(content) -> str:
    text = str(content).strip() if content is not None else ""
    if not text:
        raise ValidationError("Message content is required", field="content")
    if len(text) > MAX_CONTENT_LENGTH:
        raise ValidationError(f"content exceeds max length {MAX_CONTENT_LENGTH}", field="content")
    return text


def ensure_can_send(
    principal: Principal,
    *,
    content: str | None,
    order_id: str | None = None,
    receiver_id: str | None = None,
) -> str:
    """
    Check that the principal may post this message and return its
    conversation type.

    With order_id the message joins that order's thread: the sender must be
    able to see the order, and an explicit receiver must be a party to it
    too. With only receiver_id it is a staff-to-staff message; both ends
    must be staff. Nothing is written.
    """
    require_principal(principal)
    _clean_content(content)

    if order_id:
        order = db.session.get(Order, order_id)
        if not order:
            raise NotFoundError("Order not found")
        require_order_access(principal, order)
        if receiver_id:
            receiver = db.session.get(User, receiver_id)
            if not receiver:
                raise NotFoundError("Receiver not found")
            if not can_access_order(Principal.from_user(receiver), order):
                raise ValidationError("Receiver is not a party to this order", field="receiver_id")
        return CONVERSATION_USER_ORDER

    if receiver_id:
        require_permission(principal, "STAFF_MESSAGING")
        receiver = db.session.get(User, receiver_id)
        if not receiver:
            raise NotFoundError("Receiver not found")
        if receiver.role not in STAFF_ROLES:
            raise ValidationError("Staff messages can only be sent to staff members", field="receiver_id")
        return CONVERSATION_EMPLOYEE_ADMIN

    raise ValidationError("Either order_id or receiver_id is required")


def send_message(
    principal: Principal,
    *,
    content: str | None,
    order_id: str | None = None,
    receiver_id: str | None = None,
    media_type: str | None = None,
    media_path: str | None = None,
) -> Message:
    """Post a message after the checks in ensure_can_send."""
    conversation_type = ensure_can_send(
        principal, content=content, order_id=order_id, receiver_id=receiver_id
    )
    text = _clean_content(content)

    media_type = media_type or "text"
    if media_type not in MEDIA_TYPES:
        raise ValidationError(f"media_type must be one of: {', '.join(MEDIA_TYPES)}", field="media_type")
    if media_type != "text" and not media_path:
        raise ValidationError("media_path is required for media messages", field="media_path")

    def _op():
        message = Message(
            order_id=order_id or None,
            sender_id=principal.id,
            receiver_id=receiver_id or None,
            content=text,
            media_type=media_type,
            media_path=media_path,
            conversation_type=conversation_type,
            is_read=False,
        )
        db.session.add(message)
        db.session.flush()
        return message

    return run_in_transaction(_op)



def list_thread(principal: Principal, order_id: str) -> list[Message]:
    """user_order messages of one order, oldest first."""
    require_principal(principal)
    order = db.session.get(Order, order_id) if order_id else None
    if not order:
        raise NotFoundError("Order not found")
    require_order_access(principal, order)

    return (
        db.session.query(Message)
        .filter(
            Message.order_id == order.id,
            Message.conversation_type == CONVERSATION_USER_ORDER,
        )
        .order_by(Message.created_at.asc(), Message.id.asc())
        .all()
    )


def list_staff_thread(principal: Principal, other_user_id: str | None = None) -> list[Message]:
    """
    Staff-to-staff messages touching the principal, oldest first.

    With other_user_id only the messages between the two of them
    (either direction) are returned.
    """
    require_permission(principal, "STAFF_MESSAGING")

    query = db.session.query(Message).filter(
        Message.conversation_type == CONVERSATION_EMPLOYEE_ADMIN
    )
    if other_user_id:
        query = query.filter(
            db.or_(
                db.and_(Message.sender_id == principal.id, Message.receiver_id == other_user_id),
                db.and_(Message.sender_id == other_user_id, Message.receiver_id == principal.id),
            )
        )
    else:
        query = query.filter(
            db.or_(Message.sender_id == principal.id, Message.receiver_id == principal.id)
        )

    return query.order_by(Message.created_at.asc(), Message.id.asc()).all()


def can_read_message(principal: Principal, message: Message) -> bool:
    if principal is None:
        return False
    if message.conversation_type == CONVERSATION_EMPLOYEE_ADMIN:
        return principal.id in (message.sender_id, message.receiver_id)
    if message.receiver_id == principal.id:
        return True
    order = db.session.get(Order, message.order_id) if message.order_id else None
    return can_access_order(principal, order)


def mark_read(principal: Principal, message_ids) -> int:
    """
    Flip is_read on the given messages.

    Unknown ids are ignored. If any known message is not readable by the
    principal, nothing is flipped and ForbiddenError is raised. Returns the
    number of messages that changed from unread to read.
    """
    require_principal(principal)
    if message_ids is None:
        return 0
    if isinstance(message_ids, str) or not isinstance(message_ids, (list, tuple, set)):
        raise ValidationError("message_ids must be a list", field="message_ids")

    ids = {str(mid) for mid in message_ids if mid}
    if not ids:
        return 0

    def _op():
        messages = db.session.query(Message).filter(Message.id.in_(ids)).all()
        for message in messages:
            if not can_read_message(principal, message):
                raise ForbiddenError("You cannot access one or more of these messages")

        flipped = 0
        for message in messages:
            if not message.is_read:
                message.is_read = True
                flipped += 1
        return flipped

    return run_in_transaction(_op)


def unread_count(principal: Principal) -> int:
    """Unread messages addressed to the principal."""
    require_principal(principal)
    return (
        db.session.query(db.func.count(Message.id))
        .filter(Message.receiver_id == principal.id, Message.is_read.is_(False))
        .scalar()
    ) or 0
