# Overview: Service-layer operations for orders; lifecycle transitions with an append-only status history.

"""
Order Lifecycle Engine

LIFECYCLE:
    pending --approve--> approved --advance_stage--> (stage updates)
    pending --decline--> declined   (terminal)

Every create/approve/decline/stage operation writes exactly one
OrderStatusHistory row in the same transaction as the order mutation.

CONCURRENCY:
Status transitions are check-and-set: the UPDATE carries
`WHERE status = <expected>` and bumps version_id. If another request moved
the order first, zero rows match, the transaction is rolled back and a
ConflictError is raised, so no history row is left behind.
Assignment, notes and tracking go through the ORM under SELECT ... FOR UPDATE
(where the database honors it) and the version_id optimistic lock
(StaleDataError -> retry).
"""

from __future__ import annotations

from ..errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Order, OrderStatusHistory, User
from ..permissions import STAFF_ROLES
from ..validation import (
    ModelValidationPolicy,
    coerce_quantity,
    enforce_rules_order,
    validate_payload,
)
from .concurrency import lock_for_update, run_in_transaction
from .permission_service import (
    Principal,
    can_access_order,
    require_order_access,
    require_permission,
    require_principal,
)
from .verification import can_place_order
from proxybuy.time_utils import utcnow


STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_DECLINED = "declined"

ORDER_STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_DECLINED)

ORDER_STAGES = (
    "purchased_from_china",
    "in_warehouse",
    "in_ship",
    "in_rwanda",
    "delivered",
)

SCOPE_OWN = "own"
SCOPE_ASSIGNED = "assigned"
SCOPE_ALL = "all"

# Capability required to list each scope
SCOPE_PERMISSIONS = {
    SCOPE_OWN: "VIEW_OWN_ORDERS",
    SCOPE_ASSIGNED: "VIEW_ASSIGNED_ORDERS",
    SCOPE_ALL: "VIEW_ALL_ORDERS",
}

ORDER_SUBMITTED_NOTE = "Order submitted"
ORDER_APPROVED_NOTE = "Order approved"

ORDER_POLICY = ModelValidationPolicy(
    writable_fields={
        "product_link",
        "product_name",
        "quantity",
        "variation",
        "specifications",
        "notes",
        "shipping_address",
        "estimated_cost",
    },
    required_on_create={"product_link", "product_name", "shipping_address"},
)

_OPTIONAL_TEXT_FIELDS = ("variation", "specifications", "notes")


def default_scope_for(principal: Principal) -> str:
    if principal.is_elevated:
        return SCOPE_ALL
    if principal.is_staff:
        return SCOPE_ASSIGNED
    return SCOPE_OWN


def _get_order_or_404(order_id: str, *, for_update: bool = False) -> Order:
    if not order_id:
        raise NotFoundError("Order not found")
    if for_update:
        order = lock_for_update(db.session.query(Order).filter(Order.id == order_id)).first()
    else:
        order = db.session.get(Order, order_id)
    if not order:
        raise NotFoundError("Order not found")
    return order


def _require_staff_assignee(user_id: str) -> User:
    assignee = db.session.get(User, user_id) if user_id else None
    if not assignee:
        raise NotFoundError("Assignee not found")
    if assignee.role not in STAFF_ROLES:
        raise ValidationError("Orders can only be assigned to staff members", field="assigned_employee_id")
    return assignee


def _append_history(order_id: str, stage: str, note: str | None, updated_by: str | None) -> OrderStatusHistory:
    entry = OrderStatusHistory(
        order_id=order_id,
        stage=stage,
        note=note,
        updated_by=updated_by,
        created_at=utcnow(),
    )
    db.session.add(entry)
    return entry


def _compare_and_set(order_id: str, expected_status: str, values: dict) -> None:
    """
    Conditionally update one order row.

    Raises ConflictError when the row is no longer in expected_status.
    """
    changes = dict(values)
    changes["version_id"] = Order.version_id + 1
    changes["updated_at"] = utcnow()

    matched = (
        db.session.query(Order)
        .filter(Order.id == order_id, Order.status == expected_status)
        .update(changes, synchronize_session=False)
    )
    if matched != 1:
        raise ConflictError(f"Order is no longer {expected_status}")


def ensure_can_create(principal: Principal) -> None:
    """Raise ForbiddenError unless principal may submit orders right now."""
    require_permission(principal, "CREATE_ORDER")
    if not can_place_order(principal):
        raise ForbiddenError("Your account must be verified before placing orders")


def create_order(principal: Principal, payload: dict, *, screenshot_path: str | None = None) -> Order:
    """
    Submit a new order for the principal.

    The principal must be verified and hold CREATE_ORDER. The order starts
    pending with no stage, and the "Order submitted" history row is written
    in the same commit.

    Raises ForbiddenError, ValidationError, StorageError.
    """
    ensure_can_create(principal)
    patch = validate_order_payload(payload)

    def _op():
        order = Order(
            user_id=principal.id,
            screenshot_path=screenshot_path,
            status=STATUS_PENDING,
            order_stage=None,
            **patch,
        )
        db.session.add(order)
        db.session.flush()
        _append_history(order.id, STATUS_PENDING, ORDER_SUBMITTED_NOTE, None)
        return order

    return run_in_transaction(_op)


def validate_order_payload(payload: dict) -> dict:
    """Normalized column values for a new order. Nothing is written."""
    data = dict(payload or {})
    if "quantity" in data:
        data["quantity"] = coerce_quantity(data["quantity"])
    if data.get("estimated_cost") == "":
        data["estimated_cost"] = None

    patch = validate_payload(model=Order, payload=data, policy=ORDER_POLICY, partial=False)
    patch.setdefault("quantity", 1)
    for field in _OPTIONAL_TEXT_FIELDS:
        if field in patch and not patch[field]:
            patch[field] = None
    enforce_rules_order(patch)
    return patch


def approve_order(principal: Principal, order_id: str, assigned_employee_id: str | None = None) -> Order:
    """
    pending -> approved.

    Optionally assigns a staff member in the same transition.
    A second approval raises ConflictError.
    """
    require_permission(principal, "PROCESS_ORDERS")

    def _op():
        order = _get_order_or_404(order_id)
        if order.status != STATUS_PENDING:
            raise ConflictError(f"Only pending orders can be approved (current status: {order.status})")

        values = {"status": STATUS_APPROVED, "approved_by": principal.id}
        if assigned_employee_id:
            _require_staff_assignee(assigned_employee_id)
            values["assigned_employee_id"] = assigned_employee_id

        _compare_and_set(order.id, STATUS_PENDING, values)
        _append_history(order.id, STATUS_APPROVED, ORDER_APPROVED_NOTE, principal.id)
        return order

    return run_in_transaction(_op)


def decline_order(principal: Principal, order_id: str, reason: str | None) -> Order:
    """pending -> declined (terminal). reason is required and recorded in history."""
    require_permission(principal, "PROCESS_ORDERS")

    reason = str(reason).strip() if reason is not None else ""
    if not reason:
        raise ValidationError("A decline reason is required", field="reason")

    def _op():
        order = _get_order_or_404(order_id)
        if order.status != STATUS_PENDING:
            raise ConflictError(f"Only pending orders can be declined (current status: {order.status})")

        _compare_and_set(order.id, STATUS_PENDING, {
            "status": STATUS_DECLINED,
            "declined_by": principal.id,
            "decline_reason": reason,
        })
        _append_history(order.id, STATUS_DECLINED, f"Declined: {reason}", principal.id)
        return order

    return run_in_transaction(_op)


def advance_stage(principal: Principal, order_id: str, stage: str | None, note: str | None = None) -> Order:
    """
    Set the fulfillment stage of an approved order.

    Any of the five stages may be set in any order, including moving back;
    each update is recorded in history. Only staff who can see the order
    (elevated roles or the assignee) may move it.
    """
    require_permission(principal, "PROCESS_ORDERS")

    if stage not in ORDER_STAGES:
        raise ValidationError(
            f"stage must be one of: {', '.join(ORDER_STAGES)}", field="stage"
        )
    note = (note or "").strip() or f"Stage updated to {stage}"

    def _op():
        order = _get_order_or_404(order_id)
        require_order_access(principal, order)
        if order.status != STATUS_APPROVED:
            raise ConflictError(f"Only approved orders can change stage (current status: {order.status})")

        _compare_and_set(order.id, STATUS_APPROVED, {"order_stage": stage})
        _append_history(order.id, stage, note, principal.id)
        return order

    return run_in_transaction(_op)


def assign_employee(principal: Principal, order_id: str, employee_id: str | None) -> Order:
    """Assign an approved order to a staff member. No history row."""
    require_permission(principal, "ASSIGN_ORDERS")

    def _op():
        order = _get_order_or_404(order_id, for_update=True)
        if order.status != STATUS_APPROVED:
            raise ConflictError(f"Only approved orders can be assigned (current status: {order.status})")
        _require_staff_assignee(employee_id)
        order.assigned_employee_id = employee_id
        db.session.flush()
        return order

    return run_in_transaction(_op)


def set_internal_notes(principal: Principal, order_id: str, notes: str | None) -> Order:
    """Replace the staff-only notes. Empty input clears them."""
    require_permission(principal, "PROCESS_ORDERS")

    if notes is not None and not isinstance(notes, str):
        raise ValidationError("notes must be a string", field="notes")
    notes = (notes or "").strip() or None

    def _op():
        order = _get_order_or_404(order_id, for_update=True)
        require_order_access(principal, order)
        order.internal_notes = notes
        db.session.flush()
        return order

    return run_in_transaction(_op)


def set_tracking_number(principal: Principal, order_id: str, tracking_number: str | None) -> Order:
    """Record the carrier tracking number of an approved order."""
    require_permission(principal, "PROCESS_ORDERS")

    if tracking_number is not None and not isinstance(tracking_number, str):
        raise ValidationError("tracking_number must be a string", field="tracking_number")
    tracking_number = (tracking_number or "").strip() or None
    if tracking_number and len(tracking_number) > 128:
        raise ValidationError("tracking_number exceeds max length 128", field="tracking_number")

    def _op():
        order = _get_order_or_404(order_id, for_update=True)
        require_order_access(principal, order)
        if order.status != STATUS_APPROVED:
            raise ConflictError(f"Only approved orders can be tracked (current status: {order.status})")
        order.tracking_number = tracking_number
        db.session.flush()
        return order

    return run_in_transaction(_op)


def get_order(principal: Principal, order_id: str) -> Order:
    require_principal(principal)
    order = _get_order_or_404(order_id)
    require_order_access(principal, order)
    return order


def get_order_history(principal: Principal, order_id: str) -> list[OrderStatusHistory]:
    """History rows for a visible order, newest first."""
    order = get_order(principal, order_id)
    return (
        db.session.query(OrderStatusHistory)
        .filter(OrderStatusHistory.order_id == order.id)
        .order_by(OrderStatusHistory.created_at.desc(), OrderStatusHistory.id.desc())
        .all()
    )


def list_orders(principal: Principal, scope: str | None = None, status: str | None = None) -> list[Order]:
    """
    Orders visible under scope, newest first.

    scope defaults by role: user -> own, employee -> assigned,
    admin/super_admin -> all. Asking for a scope the role does not hold
    raises ForbiddenError.
    """
    require_principal(principal)

    scope = scope or default_scope_for(principal)
    if scope not in SCOPE_PERMISSIONS:
        raise ValidationError(f"scope must be one of: {', '.join(SCOPE_PERMISSIONS)}", field="scope")
    if status is not None and status not in ORDER_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(ORDER_STATUSES)}", field="status")

    require_permission(principal, SCOPE_PERMISSIONS[scope])

    query = db.session.query(Order)
    if scope == SCOPE_OWN:
        query = query.filter(Order.user_id == principal.id)
    elif scope == SCOPE_ASSIGNED:
        query = query.filter(Order.assigned_employee_id == principal.id)
    if status:
        query = query.filter(Order.status == status)

    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def serialize_order(order: Order, principal: Principal) -> dict:
    """Order payload for principal; internal notes only reach staff who can see the order."""
    return order.to_dict(include_internal=principal.is_staff and can_access_order(principal, order))
