# Overview: Verification gate; identity evidence submission and staff review.

"""
Verification gate.

Customers upload an ID photo and a selfie; an admin or super admin then
marks the account verified or rejected. Only verified principals may place
orders. Re-submitting evidence always puts the account back into review.
"""

from __future__ import annotations

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import User
from .concurrency import run_in_transaction
from .permission_service import Principal, require_permission


VERIFICATION_PENDING = "pending"
VERIFICATION_VERIFIED = "verified"
VERIFICATION_REJECTED = "rejected"

VERIFICATION_STATUSES = (VERIFICATION_PENDING, VERIFICATION_VERIFIED, VERIFICATION_REJECTED)

# Decisions a reviewer can record
REVIEW_DECISIONS = (VERIFICATION_VERIFIED, VERIFICATION_REJECTED)

# Older clients still send this label for an unreviewed account
_LEGACY_ALIASES = {"not_verified": VERIFICATION_PENDING}


def normalize_verification_status(value: str | None) -> str:
    if value is None:
        raise ValidationError("status is required", field="status")
    status = str(value).strip().lower()
    status = _LEGACY_ALIASES.get(status, status)
    if status not in VERIFICATION_STATUSES:
        raise ValidationError(f"Invalid verification status: {value}", field="status")
    return status


def can_place_order(principal: Principal | None) -> bool:
    return principal is not None and principal.verification_status == VERIFICATION_VERIFIED


def submit_verification(principal: Principal, id_photo_path: str | None, selfie_path: str | None) -> User:
    """Store both evidence references and reset the account to pending review."""
    if not id_photo_path or not selfie_path:
        raise ValidationError("Both an ID photo and a selfie are required")

    def _op():
        user = db.session.get(User, principal.id)
        if not user:
            raise NotFoundError("User not found")
        user.id_photo_path = id_photo_path
        user.selfie_path = selfie_path
        user.verification_status = VERIFICATION_PENDING
        return user

    return run_in_transaction(_op)


def set_verification_status(principal: Principal, user_id: str, status: str | None) -> User:
    """Record a reviewer's decision (verified or rejected) for user_id."""
    require_permission(principal, "VERIFY_USERS")

    decision = normalize_verification_status(status)
    if decision not in REVIEW_DECISIONS:
        raise ValidationError("status must be 'verified' or 'rejected'", field="status")

    def _op():
        user = db.session.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        user.verification_status = decision
        return user

    return run_in_transaction(_op)


def list_pending_verifications(principal: Principal) -> list[User]:
    """Accounts awaiting review, oldest first."""
    require_permission(principal, "VERIFY_USERS")
    return (
        db.session.query(User)
        .filter(User.verification_status == VERIFICATION_PENDING)
        .order_by(User.updated_at.asc())
        .all()
    )
