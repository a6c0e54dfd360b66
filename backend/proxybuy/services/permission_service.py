# Overview: Service-layer operations for permission; capability checks, record-level order access and the security audit log.

"""
Permission Checking and Security Event Logging

WHY: Enforce role-based access control and keep an audit trail of denials.

DESIGN PRINCIPLES:
- Fail closed: unknown roles resolve to no capabilities
- Explicit principal: services receive a Principal, never read request globals
- Log denials only: permission grants are not logged
- One table: every capability decision resolves through ROLE_PERMISSIONS
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ForbiddenError, UnauthenticatedError
from ..extensions import db
from ..models import SecurityEvent
from ..permissions import (
    ELEVATED_ROLES,
    STAFF_ROLES,
    role_has_permission,
)
from proxybuy.time_utils import utcnow


@dataclass(frozen=True)
class Principal:
    """
    The authenticated caller as the core sees it.

    Built once per request by require_auth from the session's user, then
    passed explicitly into every service call.
    """
    id: str
    role: str
    verification_status: str

    @classmethod
    def from_user(cls, user) -> "Principal":
        return cls(id=user.id, role=user.role, verification_status=user.verification_status)

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES

    @property
    def is_elevated(self) -> bool:
        return self.role in ELEVATED_ROLES


def log_security_event(
    user_id: str | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> SecurityEvent:
    """
    Log security event to audit trail.

    event_type examples:
    - PERMISSION_DENIED
    - LOGIN_FAILED
    - LOGOUT
    - ROLE_CHANGED
    - VERIFICATION_CHANGED
    """
    event = SecurityEvent(
        user_id=user_id,
        event_type=event_type,
        resource=resource[:128] if resource else None,
        action=action[:64] if action else None,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent[:512] if user_agent else None,
        occurred_at=utcnow(),
    )

    db.session.add(event)
    db.session.commit()

    return event


def require_principal(principal: Principal | None) -> Principal:
    if principal is None:
        raise UnauthenticatedError("Authentication required")
    return principal


def has_permission(principal: Principal | None, permission_code: str) -> bool:
    if principal is None:
        return False
    return role_has_permission(principal.role, permission_code)


def require_permission(principal: Principal | None, permission_code: str) -> None:
    """
    Raise unless principal holds permission_code.

    Raises UnauthenticatedError for a missing principal and ForbiddenError
    for a principal whose role lacks the capability. Auditing of the denial
    is the caller's job (see decorators.require_permission).
    """
    require_principal(principal)
    if not has_permission(principal, permission_code):
        raise ForbiddenError(f"Permission denied: {permission_code}")


def can_access_order(principal: Principal | None, order) -> bool:
    """
    Record-level visibility for an order and its message thread.

    Allowed iff the principal owns the order, is its assigned employee,
    or has an elevated role (admin, super_admin).
    """
    if principal is None or order is None:
        return False
    if principal.is_elevated:
        return True
    if order.user_id == principal.id:
        return True
    return order.assigned_employee_id is not None and order.assigned_employee_id == principal.id


def require_order_access(principal: Principal | None, order) -> None:
    require_principal(principal)
    if not can_access_order(principal, order):
        raise ForbiddenError("You do not have access to this order")
