from __future__ import annotations

from ..extensions import db
from .base import new_id
from proxybuy.time_utils import to_utc_z, utcnow


class Order(db.Model):
    """
    A purchasing-proxy order placed by a verified customer.

    LIFECYCLE:
        status:       pending -> approved | declined   (declined is terminal)
        order_stage:  only while approved; one of purchased_from_china,
                      in_warehouse, in_ship, in_rwanda, delivered

    INVARIANTS (enforced by order_service):
    - decline_reason is set iff status == declined
    - order_stage is set only if status == approved
    - every status/stage change has exactly one OrderStatusHistory row

    Orders are never deleted.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_user_created", "user_id", "created_at"),
        db.Index("ix_orders_assigned_created", "assigned_employee_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)

    product_link = db.Column(db.String(2048), nullable=False)
    product_name = db.Column(db.String(255), nullable=False)
    screenshot_path = db.Column(db.String(255), nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    variation = db.Column(db.Text, nullable=True)
    specifications = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    shipping_address = db.Column(db.Text, nullable=False)
    estimated_cost = db.Column(db.Numeric(12, 2), nullable=True)
    tracking_number = db.Column(db.String(128), nullable=True)

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    order_stage = db.Column(db.String(32), nullable=True, index=True)

    approved_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)
    declined_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)
    decline_reason = db.Column(db.Text, nullable=True)
    assigned_employee_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True, index=True)

    # Staff-only; stripped from customer-facing payloads
    internal_notes = db.Column(db.Text, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    owner = db.relationship("User", foreign_keys=[user_id], backref=db.backref("orders", lazy=True))
    assigned_employee = db.relationship("User", foreign_keys=[assigned_employee_id])

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Order id={self.id} status={self.status} stage={self.order_stage}>"

    def to_dict(self, *, include_internal: bool = True) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "product_link": self.product_link,
            "product_name": self.product_name,
            "screenshot_path": self.screenshot_path,
            "quantity": self.quantity,
            "variation": self.variation,
            "specifications": self.specifications,
            "notes": self.notes,
            "shipping_address": self.shipping_address,
            "estimated_cost": str(self.estimated_cost) if self.estimated_cost is not None else None,
            "tracking_number": self.tracking_number,
            "status": self.status,
            "order_stage": self.order_stage,
            "approved_by": self.approved_by,
            "declined_by": self.declined_by,
            "decline_reason": self.decline_reason,
            "assigned_employee_id": self.assigned_employee_id,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_internal:
            data["internal_notes"] = self.internal_notes
        return data


class OrderStatusHistory(db.Model):
    """
    Append-only audit log of order transitions.

    One row per create/approve/decline/stage update, written in the same
    transaction as the order mutation. updated_by is NULL for entries the
    system writes on the customer's behalf (order submission).

    IMMUTABLE: Never update or delete.
    """
    __tablename__ = "order_status_history"
    __table_args__ = (
        db.Index("ix_order_status_history_order_created", "order_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    order_id = db.Column(db.String(36), db.ForeignKey("orders.id"), nullable=False, index=True)
    stage = db.Column(db.String(32), nullable=False)
    note = db.Column(db.Text, nullable=True)
    updated_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    order = db.relationship("Order", backref=db.backref("status_history", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "stage": self.stage,
            "note": self.note,
            "updated_by": self.updated_by,
            "created_at": to_utc_z(self.created_at),
        }
