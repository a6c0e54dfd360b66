from __future__ import annotations

from ..extensions import db
from .base import new_id
from proxybuy.time_utils import to_utc_z, utcnow


class Message(db.Model):
    """
    Conversation messages.

    conversation_type:
    - user_order:     scoped to one order (order_id set); visible to the
                      owner, the assigned employee, admins and super admins
    - employee_admin: staff-to-staff thread (receiver_id set)

    Only is_read is ever mutated. Messages are never deleted.
    """
    __tablename__ = "messages"
    __table_args__ = (
        db.Index("ix_messages_order_created", "order_id", "created_at"),
        db.Index("ix_messages_receiver_read", "receiver_id", "is_read"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    order_id = db.Column(db.String(36), db.ForeignKey("orders.id"), nullable=True, index=True)
    sender_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)
    receiver_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)

    content = db.Column(db.Text, nullable=False)
    media_type = db.Column(db.String(16), nullable=False, default="text")  # text, image, video, document
    media_path = db.Column(db.String(255), nullable=True)
    conversation_type = db.Column(db.String(16), nullable=False, default="user_order", index=True)

    is_read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "sender_id": self.sender_id,
            "receiver_id": self.receiver_id,
            "content": self.content,
            "media_type": self.media_type,
            "media_path": self.media_path,
            "conversation_type": self.conversation_type,
            "is_read": self.is_read,
            "created_at": to_utc_z(self.created_at),
        }
