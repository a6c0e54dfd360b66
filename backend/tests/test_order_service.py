"""
Order lifecycle tests.

Covers creation gating, the pending -> approved/declined transitions,
stage updates, assignment, and the rule that every transition writes
exactly one history row in the same commit as the order change.
"""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from proxybuy.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from proxybuy.extensions import db
from proxybuy.models import Order, OrderStatusHistory
from proxybuy.services import order_service

from conftest import VALID_ORDER, create_test_order, principal_for


def _history(order_id):
    return (
        db.session.query(OrderStatusHistory)
        .filter_by(order_id=order_id)
        .order_by(OrderStatusHistory.created_at.asc())
        .all()
    )


# =============================================================================
# CREATE
# =============================================================================

class TestCreateOrder:
    """Submitting orders."""

    def test_verified_user_creates_pending_order(self, customer):
        order = create_test_order(customer)

        assert order.status == "pending"
        assert order.order_stage is None
        assert order.user_id == customer.id
        assert order.quantity == 2

        history = _history(order.id)
        assert len(history) == 1
        assert history[0].stage == "pending"
        assert history[0].note == "Order submitted"
        assert history[0].updated_by is None

    def test_unverified_user_is_forbidden(self, unverified_customer):
        with pytest.raises(ForbiddenError):
            create_test_order(unverified_customer)
        assert db.session.query(Order).count() == 0

    def test_rejected_user_is_forbidden(self, make_user):
        user = make_user("user", verification_status="rejected")
        with pytest.raises(ForbiddenError):
            create_test_order(user)

    def test_staff_cannot_create_orders(self, employee):
        with pytest.raises(ForbiddenError):
            create_test_order(employee)

    @pytest.mark.parametrize("field", ["product_link", "product_name", "shipping_address"])
    def test_missing_required_field(self, customer, field):
        payload = dict(VALID_ORDER)
        payload.pop(field)
        with pytest.raises(ValidationError) as exc:
            order_service.create_order(principal_for(customer), payload)
        assert exc.value.field == field
        assert db.session.query(Order).count() == 0

    def test_invalid_product_link(self, customer):
        with pytest.raises(ValidationError) as exc:
            create_test_order(customer, product_link="not a url")
        assert exc.value.field == "product_link"

    @pytest.mark.parametrize("raw,expected", [
        ("3", 3),
        ("5 pieces", 5),
        ("abc", 1),
        (0, 1),
        (-4, 1),
    ])
    def test_quantity_is_coerced(self, customer, raw, expected):
        order = create_test_order(customer, quantity=raw)
        assert order.quantity == expected

    def test_quantity_defaults_to_one(self, customer):
        payload = dict(VALID_ORDER)
        payload.pop("quantity")
        order = order_service.create_order(principal_for(customer), payload)
        assert order.quantity == 1

    def test_unknown_field_rejected(self, customer):
        with pytest.raises(ValidationError):
            create_test_order(customer, status="approved")

    def test_negative_estimated_cost_rejected(self, customer):
        with pytest.raises(ValidationError):
            create_test_order(customer, estimated_cost="-5")

    def test_quantity_above_cap_rejected(self, customer):
        assert create_test_order(customer, quantity=100_000).quantity == 100_000

        with pytest.raises(ValidationError) as exc:
            create_test_order(customer, quantity="100001")
        assert exc.value.field == "quantity"
        assert db.session.query(Order).count() == 1

    def test_payload_check_writes_nothing(self, customer):
        patch = order_service.validate_order_payload(dict(VALID_ORDER, quantity="4 pcs", notes=""))
        assert patch["quantity"] == 4
        assert patch["notes"] is None
        assert db.session.query(Order).count() == 0

        with pytest.raises(ValidationError):
            order_service.validate_order_payload({"product_name": "Shoes"})

    def test_screenshot_path_is_stored(self, customer):
        order = order_service.create_order(
            principal_for(customer), dict(VALID_ORDER),
            screenshot_path="/uploads/screenshots/abc.png",
        )
        assert order.screenshot_path == "/uploads/screenshots/abc.png"

    def test_storage_failure_leaves_nothing_behind(self, customer, monkeypatch):
        def broken_commit():
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(db.session, "commit", broken_commit)

        with pytest.raises(StorageError):
            create_test_order(customer)

        monkeypatch.undo()
        assert db.session.query(Order).count() == 0
        assert db.session.query(OrderStatusHistory).count() == 0


# =============================================================================
# APPROVE / DECLINE
# =============================================================================

class TestApproveDecline:
    """pending -> approved | declined."""

    def test_employee_approves_with_assignment(self, customer, employee, other_employee):
        order = create_test_order(customer)

        approved = order_service.approve_order(
            principal_for(employee), order.id, assigned_employee_id=other_employee.id
        )

        assert approved.status == "approved"
        assert approved.approved_by == employee.id
        assert approved.assigned_employee_id == other_employee.id
        assert approved.version_id == 2

        history = _history(order.id)
        assert [h.stage for h in history] == ["pending", "approved"]
        assert history[1].updated_by == employee.id

    def test_second_approval_conflicts(self, customer, admin):
        order = create_test_order(customer)
        order_service.approve_order(principal_for(admin), order.id)

        with pytest.raises(ConflictError):
            order_service.approve_order(principal_for(admin), order.id)
        assert len(_history(order.id)) == 2

    def test_customer_cannot_approve(self, customer):
        order = create_test_order(customer)
        with pytest.raises(ForbiddenError):
            order_service.approve_order(principal_for(customer), order.id)
        assert len(_history(order.id)) == 1

    def test_approve_unknown_order(self, admin):
        with pytest.raises(NotFoundError):
            order_service.approve_order(principal_for(admin), "missing")

    def test_assignee_must_be_staff(self, customer, other_customer, admin):
        order = create_test_order(customer)
        with pytest.raises(ValidationError):
            order_service.approve_order(
                principal_for(admin), order.id, assigned_employee_id=other_customer.id
            )
        db.session.expire_all()
        assert db.session.get(Order, order.id).status == "pending"
        assert len(_history(order.id)) == 1

    def test_decline_records_reason(self, customer, employee):
        order = create_test_order(customer)

        declined = order_service.decline_order(principal_for(employee), order.id, "Item out of stock")

        assert declined.status == "declined"
        assert declined.declined_by == employee.id
        assert declined.decline_reason == "Item out of stock"
        assert declined.order_stage is None

        history = _history(order.id)
        assert history[-1].stage == "declined"
        assert history[-1].note == "Declined: Item out of stock"

    @pytest.mark.parametrize("reason", [None, "", "   "])
    def test_decline_requires_reason(self, customer, employee, reason):
        order = create_test_order(customer)
        with pytest.raises(ValidationError):
            order_service.decline_order(principal_for(employee), order.id, reason)
        assert len(_history(order.id)) == 1

    def test_declined_is_terminal(self, customer, admin):
        order = create_test_order(customer)
        order_service.decline_order(principal_for(admin), order.id, "Restricted item")

        with pytest.raises(ConflictError):
            order_service.approve_order(principal_for(admin), order.id)
        with pytest.raises(ConflictError):
            order_service.advance_stage(principal_for(admin), order.id, "in_warehouse")

    def test_concurrent_transition_loses_cleanly(self, customer, employee):
        """A status change that lands between read and write is a conflict, not a double transition."""
        order = create_test_order(customer)
        assert order.status == "pending"

        db.session.execute(
            text("UPDATE orders SET status = 'declined', decline_reason = 'x' WHERE id = :id"),
            {"id": order.id},
        )

        with pytest.raises(ConflictError):
            order_service.approve_order(principal_for(employee), order.id)

        assert len(_history(order.id)) == 1


# =============================================================================
# STAGES
# =============================================================================

class TestAdvanceStage:
    """Fulfillment stage updates on approved orders."""

    @pytest.fixture
    def approved_order(self, customer, employee):
        order = create_test_order(customer)
        return order_service.approve_order(principal_for(employee), order.id, assigned_employee_id=employee.id)

    def test_stage_update_appends_history(self, approved_order, employee):
        order = order_service.advance_stage(principal_for(employee), approved_order.id, "in_warehouse")

        assert order.status == "approved"
        assert order.order_stage == "in_warehouse"

        history = _history(order.id)
        assert history[-1].stage == "in_warehouse"
        assert history[-1].note == "Stage updated to in_warehouse"

    def test_custom_note(self, approved_order, employee):
        order_service.advance_stage(
            principal_for(employee), approved_order.id, "in_ship", note="Left Shenzhen port"
        )
        assert _history(approved_order.id)[-1].note == "Left Shenzhen port"

    def test_stages_may_move_backwards(self, approved_order, employee):
        p = principal_for(employee)
        order_service.advance_stage(p, approved_order.id, "delivered")
        order = order_service.advance_stage(p, approved_order.id, "in_rwanda")

        assert order.order_stage == "in_rwanda"
        assert [h.stage for h in _history(order.id)] == ["pending", "approved", "delivered", "in_rwanda"]

    def test_unknown_stage_rejected(self, approved_order, employee):
        with pytest.raises(ValidationError):
            order_service.advance_stage(principal_for(employee), approved_order.id, "teleported")

    def test_pending_order_has_no_stage(self, customer, admin):
        order = create_test_order(customer)
        with pytest.raises(ConflictError):
            order_service.advance_stage(principal_for(admin), order.id, "purchased_from_china")
        assert len(_history(order.id)) == 1

    def test_history_is_newest_first(self, approved_order, employee):
        p = principal_for(employee)
        order_service.advance_stage(p, approved_order.id, "purchased_from_china")

        history = order_service.get_order_history(p, approved_order.id)
        assert history[0].stage == "purchased_from_china"
        assert history[-1].stage == "pending"

    def test_unassigned_employee_cannot_move_stage(self, approved_order, other_employee):
        with pytest.raises(ForbiddenError):
            order_service.advance_stage(principal_for(other_employee), approved_order.id, "delivered")

        db.session.expire_all()
        assert db.session.get(Order, approved_order.id).order_stage is None
        assert len(_history(approved_order.id)) == 2

    def test_approver_without_assignment_cannot_move_stage(self, customer, employee, other_employee):
        order = create_test_order(customer)
        order_service.approve_order(principal_for(employee), order.id, assigned_employee_id=other_employee.id)

        with pytest.raises(ForbiddenError):
            order_service.advance_stage(principal_for(employee), order.id, "in_warehouse")



# =============================================================================
# ASSIGN / NOTES / TRACKING
# =============================================================================

class TestOrderMetadata:
    """Administrative updates that do not touch history."""

    def test_admin_reassigns(self, customer, admin, employee):
        order = create_test_order(customer)
        order_service.approve_order(principal_for(admin), order.id)

        updated = order_service.assign_employee(principal_for(admin), order.id, employee.id)

        assert updated.assigned_employee_id == employee.id
        assert len(_history(order.id)) == 2

    def test_employee_cannot_assign(self, customer, employee, other_employee):
        order = create_test_order(customer)
        order_service.approve_order(principal_for(employee), order.id)
        with pytest.raises(ForbiddenError):
            order_service.assign_employee(principal_for(employee), order.id, other_employee.id)

    def test_assign_requires_approved(self, customer, admin, employee):
        order = create_test_order(customer)
        with pytest.raises(ConflictError):
            order_service.assign_employee(principal_for(admin), order.id, employee.id)

    @pytest.fixture
    def assigned_order(self, customer, employee, admin):
        order = create_test_order(customer)
        return order_service.approve_order(principal_for(admin), order.id, assigned_employee_id=employee.id)

    def test_internal_notes(self, assigned_order, employee):
        p = principal_for(employee)

        updated = order_service.set_internal_notes(p, assigned_order.id, "  Seller slow to reply  ")
        assert updated.internal_notes == "Seller slow to reply"

        cleared = order_service.set_internal_notes(p, assigned_order.id, "")
        assert cleared.internal_notes is None

    def test_admin_annotates_pending_order(self, customer, admin):
        order = create_test_order(customer)
        updated = order_service.set_internal_notes(principal_for(admin), order.id, "check seller")
        assert updated.internal_notes == "check seller"

    def test_internal_notes_hidden_from_customer(self, assigned_order, customer, employee, other_employee):
        order = order_service.set_internal_notes(principal_for(employee), assigned_order.id, "fragile")

        assert "internal_notes" not in order_service.serialize_order(order, principal_for(customer))
        assert "internal_notes" not in order_service.serialize_order(order, principal_for(other_employee))
        assert order_service.serialize_order(order, principal_for(employee))["internal_notes"] == "fragile"

    def test_unassigned_employee_cannot_touch_notes_or_tracking(self, assigned_order, other_employee):
        p = principal_for(other_employee)
        with pytest.raises(ForbiddenError):
            order_service.set_internal_notes(p, assigned_order.id, "overwritten")
        with pytest.raises(ForbiddenError):
            order_service.set_tracking_number(p, assigned_order.id, "YT999")

        db.session.expire_all()
        order = db.session.get(Order, assigned_order.id)
        assert order.internal_notes is None
        assert order.tracking_number is None

    def test_assignee_sets_tracking(self, assigned_order, employee):
        updated = order_service.set_tracking_number(principal_for(employee), assigned_order.id, "YT123")
        assert updated.tracking_number == "YT123"


    def test_tracking_number(self, customer, admin):
        order = create_test_order(customer)
        p = principal_for(admin)

        with pytest.raises(ConflictError):
            order_service.set_tracking_number(p, order.id, "YT123")

        order_service.approve_order(p, order.id)
        updated = order_service.set_tracking_number(p, order.id, "YT123")
        assert updated.tracking_number == "YT123"


# =============================================================================
# LISTING
# =============================================================================

class TestListOrders:
    """Scope defaults and filters."""

    def test_default_scopes(self, customer, other_customer, employee, admin):
        mine = create_test_order(customer)
        theirs = create_test_order(other_customer)
        order_service.approve_order(principal_for(admin), theirs.id, assigned_employee_id=employee.id)

        assert [o.id for o in order_service.list_orders(principal_for(customer))] == [mine.id]
        assert [o.id for o in order_service.list_orders(principal_for(employee))] == [theirs.id]
        assert len(order_service.list_orders(principal_for(admin))) == 2

    def test_customer_cannot_list_all(self, customer):
        with pytest.raises(ForbiddenError):
            order_service.list_orders(principal_for(customer), scope="all")

    def test_status_filter(self, customer, admin):
        first = create_test_order(customer)
        create_test_order(customer)
        order_service.approve_order(principal_for(admin), first.id)

        approved = order_service.list_orders(principal_for(admin), status="approved")
        assert [o.id for o in approved] == [first.id]

    def test_invalid_filters(self, admin):
        with pytest.raises(ValidationError):
            order_service.list_orders(principal_for(admin), scope="everything")
        with pytest.raises(ValidationError):
            order_service.list_orders(principal_for(admin), status="shipped")
