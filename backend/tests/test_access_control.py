"""
Role capability table and record-level order visibility.

The capability table decides *what* a role may do; record-level
visibility decides *which* orders and threads a principal may touch.
"""

import pytest

from proxybuy.errors import ForbiddenError, UnauthenticatedError
from proxybuy.permissions import (
    ROLE_PERMISSIONS,
    VALID_ROLES,
    get_all_permission_codes,
    role_has_permission,
    validate_permission_code,
)
from proxybuy.services import order_service, permission_service
from proxybuy.services.permission_service import Principal

from conftest import create_test_order, principal_for


# =============================================================================
# CAPABILITY TABLE
# =============================================================================

class TestCapabilityTable:
    """Every role grants only defined capabilities."""

    def test_every_granted_code_is_defined(self):
        defined = set(get_all_permission_codes())
        for role, codes in ROLE_PERMISSIONS.items():
            assert codes <= defined, f"{role} grants undefined codes: {codes - defined}"

    def test_every_role_has_an_entry(self):
        assert set(ROLE_PERMISSIONS) == set(VALID_ROLES)

    @pytest.mark.parametrize("role,code,expected", [
        ("user", "CREATE_ORDER", True),
        ("user", "PROCESS_ORDERS", False),
        ("employee", "PROCESS_ORDERS", True),
        ("employee", "CREATE_ORDER", False),
        ("employee", "VIEW_ALL_ORDERS", False),
        ("employee", "ASSIGN_ORDERS", False),
        ("admin", "ASSIGN_ORDERS", True),
        ("admin", "VERIFY_USERS", True),
        ("admin", "CHANGE_USER_ROLE", False),
        ("admin", "MANAGE_CONTENT", False),
        ("super_admin", "CHANGE_USER_ROLE", True),
        ("super_admin", "MANAGE_CONTENT", True),
    ])
    def test_matrix(self, role, code, expected):
        assert role_has_permission(role, code) is expected

    def test_unknown_role_fails_closed(self):
        assert role_has_permission("owner", "CREATE_ORDER") is False

    def test_validate_permission_code(self):
        assert validate_permission_code("VIEW_USERS")
        assert not validate_permission_code("DROP_TABLES")


# =============================================================================
# PRINCIPAL CHECKS
# =============================================================================

class TestPrincipalChecks:
    """Service-level checks raise; auditing happens at the HTTP edge."""

    def test_missing_principal_is_unauthenticated(self):
        with pytest.raises(UnauthenticatedError):
            permission_service.require_permission(None, "CREATE_ORDER")

    def test_lacking_capability_is_forbidden(self):
        principal = Principal(id="u1", role="user", verification_status="verified")
        with pytest.raises(ForbiddenError):
            permission_service.require_permission(principal, "VIEW_USERS")

    def test_staff_flags(self):
        assert Principal("a", "employee", "verified").is_staff
        assert not Principal("a", "employee", "verified").is_elevated
        assert Principal("a", "admin", "verified").is_elevated
        assert not Principal("a", "user", "verified").is_staff


# =============================================================================
# RECORD-LEVEL VISIBILITY
# =============================================================================

class TestOrderVisibility:
    """Owner, assigned employee, admin and super admin can see an order; nobody else."""

    @pytest.fixture
    def assigned_order(self, customer, employee, admin):
        order = create_test_order(customer)
        return order_service.approve_order(principal_for(admin), order.id, assigned_employee_id=employee.id)

    def test_owner_sees_order(self, assigned_order, customer):
        assert order_service.get_order(principal_for(customer), assigned_order.id).id == assigned_order.id

    def test_assigned_employee_sees_order(self, assigned_order, employee):
        assert order_service.get_order(principal_for(employee), assigned_order.id).id == assigned_order.id

    @pytest.mark.parametrize("role", ["admin", "super_admin"])
    def test_elevated_roles_see_order(self, assigned_order, make_user, role):
        viewer = make_user(role)
        assert order_service.get_order(principal_for(viewer), assigned_order.id).id == assigned_order.id

    def test_other_customer_is_forbidden(self, assigned_order, other_customer):
        with pytest.raises(ForbiddenError):
            order_service.get_order(principal_for(other_customer), assigned_order.id)

    def test_unassigned_employee_is_forbidden(self, assigned_order, other_employee):
        with pytest.raises(ForbiddenError):
            order_service.get_order(principal_for(other_employee), assigned_order.id)
        with pytest.raises(ForbiddenError):
            order_service.get_order_history(principal_for(other_employee), assigned_order.id)

    def test_unassigned_employee_listing_is_empty(self, assigned_order, other_employee):
        assert order_service.list_orders(principal_for(other_employee)) == []

    def test_unassigned_pending_order_hidden_from_employees(self, customer, employee):
        order = create_test_order(customer)
        assert not permission_service.can_access_order(principal_for(employee), order)

    def test_reassignment_moves_visibility(self, assigned_order, admin, employee, other_employee):
        order_service.assign_employee(principal_for(admin), assigned_order.id, other_employee.id)

        assert order_service.get_order(principal_for(other_employee), assigned_order.id)
        with pytest.raises(ForbiddenError):
            order_service.get_order(principal_for(employee), assigned_order.id)
