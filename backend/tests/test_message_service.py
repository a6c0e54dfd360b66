"""
Messaging tests: order threads, staff threads, read receipts.
"""

import pytest

from proxybuy.errors import ForbiddenError, NotFoundError, ValidationError
from proxybuy.extensions import db
from proxybuy.models import Message
from proxybuy.services import message_service, order_service

from conftest import create_test_order, principal_for


@pytest.fixture
def assigned_order(customer, employee, admin):
    order = create_test_order(customer)
    return order_service.approve_order(principal_for(admin), order.id, assigned_employee_id=employee.id)


# =============================================================================
# ORDER THREADS
# =============================================================================

class TestOrderThread:
    """user_order conversations follow order visibility."""

    def test_owner_and_assignee_exchange_messages(self, assigned_order, customer, employee):
        first = message_service.send_message(
            principal_for(customer), content="Is the black one in stock?", order_id=assigned_order.id
        )
        second = message_service.send_message(
            principal_for(employee), content="Yes, buying today.",
            order_id=assigned_order.id, receiver_id=customer.id,
        )

        assert first.conversation_type == "user_order"
        assert first.is_read is False

        thread = message_service.list_thread(principal_for(customer), assigned_order.id)
        assert [m.id for m in thread] == [first.id, second.id]

    def test_outsider_cannot_post(self, assigned_order, other_customer):
        with pytest.raises(ForbiddenError):
            message_service.send_message(
                principal_for(other_customer), content="hello", order_id=assigned_order.id
            )
        assert db.session.query(Message).count() == 0

    def test_outsider_cannot_read(self, assigned_order, other_employee):
        with pytest.raises(ForbiddenError):
            message_service.list_thread(principal_for(other_employee), assigned_order.id)

    def test_receiver_must_be_party_to_order(self, assigned_order, customer, other_customer):
        with pytest.raises(ValidationError) as exc:
            message_service.send_message(
                principal_for(customer), content="psst", order_id=assigned_order.id, receiver_id=other_customer.id
            )
        assert exc.value.field == "receiver_id"
        assert message_service.unread_count(principal_for(other_customer)) == 0
        assert db.session.query(Message).count() == 0

    def test_unassigned_employee_is_not_a_party(self, assigned_order, customer, other_employee):
        with pytest.raises(ValidationError):
            message_service.send_message(
                principal_for(customer), content="hi", order_id=assigned_order.id, receiver_id=other_employee.id
            )

    def test_missing_order(self, customer):
        with pytest.raises(NotFoundError):
            message_service.send_message(principal_for(customer), content="hi", order_id="nope")

    @pytest.mark.parametrize("content", [None, "", "   "])
    def test_content_required(self, assigned_order, customer, content):
        with pytest.raises(ValidationError):
            message_service.send_message(principal_for(customer), content=content, order_id=assigned_order.id)

    def test_media_requires_path(self, assigned_order, customer):
        with pytest.raises(ValidationError):
            message_service.send_message(
                principal_for(customer), content="photo", order_id=assigned_order.id, media_type="image"
            )

    def test_media_message(self, assigned_order, customer):
        message = message_service.send_message(
            principal_for(customer), content="photo", order_id=assigned_order.id,
            media_type="image", media_path="/uploads/chat/abc.png",
        )
        assert message.media_type == "image"
        assert message.media_path == "/uploads/chat/abc.png"

    def test_addressing_required(self, customer):
        with pytest.raises(ValidationError):
            message_service.send_message(principal_for(customer), content="hi")


# =============================================================================
# STAFF THREADS
# =============================================================================

class TestStaffThread:
    """employee_admin conversations between staff members."""

    def test_staff_pair_thread(self, employee, admin, other_employee):
        sent = message_service.send_message(principal_for(employee), content="Need approval", receiver_id=admin.id)
        reply = message_service.send_message(principal_for(admin), content="Done", receiver_id=employee.id)
        message_service.send_message(principal_for(other_employee), content="Unrelated", receiver_id=admin.id)

        assert sent.conversation_type == "employee_admin"

        pair = message_service.list_staff_thread(principal_for(employee), admin.id)
        assert [m.id for m in pair] == [sent.id, reply.id]

        everything = message_service.list_staff_thread(principal_for(admin))
        assert len(everything) == 3

    def test_customer_cannot_use_staff_messaging(self, customer, admin):
        with pytest.raises(ForbiddenError):
            message_service.send_message(principal_for(customer), content="hi", receiver_id=admin.id)
        with pytest.raises(ForbiddenError):
            message_service.list_staff_thread(principal_for(customer))

    def test_receiver_must_be_staff(self, employee, customer):
        with pytest.raises(ValidationError):
            message_service.send_message(principal_for(employee), content="hi", receiver_id=customer.id)

    def test_unknown_receiver(self, employee):
        with pytest.raises(NotFoundError):
            message_service.send_message(principal_for(employee), content="hi", receiver_id="ghost")


# =============================================================================
# READ RECEIPTS
# =============================================================================

class TestReadReceipts:
    """mark_read and unread_count."""

    def test_unread_count_and_mark_read(self, assigned_order, customer, employee):
        message = message_service.send_message(
            principal_for(employee), content="Shipped", order_id=assigned_order.id, receiver_id=customer.id
        )

        assert message_service.unread_count(principal_for(customer)) == 1
        assert message_service.unread_count(principal_for(employee)) == 0

        assert message_service.mark_read(principal_for(customer), [message.id]) == 1
        assert message_service.unread_count(principal_for(customer)) == 0

        # Already read: nothing flips
        assert message_service.mark_read(principal_for(customer), [message.id]) == 0

    def test_unknown_ids_are_ignored(self, customer):
        assert message_service.mark_read(principal_for(customer), ["missing-1", "missing-2"]) == 0

    @pytest.mark.parametrize("ids", [None, []])
    def test_empty_input(self, customer, ids):
        assert message_service.mark_read(principal_for(customer), ids) == 0

    def test_non_list_rejected(self, customer):
        with pytest.raises(ValidationError):
            message_service.mark_read(principal_for(customer), "abc")

    def test_foreign_message_blocks_whole_batch(self, assigned_order, customer, employee, admin, other_customer):
        mine = message_service.send_message(
            principal_for(employee), content="For customer", order_id=assigned_order.id, receiver_id=customer.id
        )
        staff_only = message_service.send_message(principal_for(employee), content="Staff", receiver_id=admin.id)

        with pytest.raises(ForbiddenError):
            message_service.mark_read(principal_for(customer), [mine.id, staff_only.id])

        db.session.expire_all()
        assert db.session.get(Message, mine.id).is_read is False

        with pytest.raises(ForbiddenError):
            message_service.mark_read(principal_for(other_customer), [mine.id])
