# Overview: Service-layer operations for auth; registration, credentials and user administration.

"""
Authentication and User Administration Service

WHY: Every action must be attributable. Uses bcrypt for secure password
hashing and validates password strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, at least one letter and one digit
- Emails are stored lower-case; lookups are case-insensitive
- Session tokens managed separately (see session_service.py); the
  principal is rebuilt from the user row on every request, so role
  changes apply immediately
"""

import re

import bcrypt

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import User
from ..permissions import ROLE_USER, VALID_ROLES
from ..validation import is_valid_email
from .concurrency import run_in_transaction
from .permission_service import Principal, require_permission
from .verification import VERIFICATION_PENDING
from proxybuy.time_utils import utcnow


MIN_PASSWORD_LENGTH = 8


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""

    def __init__(self, message: str):
        super().__init__(message, field="password")


def validate_password_strength(password: str | None) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit

    Raises PasswordValidationError if requirements not met.
    """
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    A malformed stored hash counts as a mismatch.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def get_user_by_email(email: str) -> User | None:
    return db.session.query(User).filter(User.email == normalize_email(email)).first()


def _clean_name(value, field: str, *, required: bool) -> str | None:
    cleaned = str(value).strip() if value is not None else ""
    if not cleaned:
        if required:
            raise ValidationError(f"{field} is required", field=field)
        return None
    if len(cleaned) > 120:
        raise ValidationError(f"{field} exceeds max length 120", field=field)
    return cleaned


def register_user(
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    phone: str | None = None,
    *,
    role: str = ROLE_USER,
) -> User:
    """
    Create a new account.

    Self-registration always produces role=user; the role argument exists
    for CLI provisioning of staff accounts. Every new account starts with
    verification_status=pending.

    Raises:
        ValidationError: malformed email, weak password, missing names, bad role
        ConflictError: email already registered
    """
    email = normalize_email(email)
    if not is_valid_email(email) or len(email) > 255:
        raise ValidationError("Invalid email address", field="email")
    if role not in VALID_ROLES:
        raise ValidationError(f"Invalid role: {role}", field="role")

    first = _clean_name(first_name, "first_name", required=True)
    last = _clean_name(last_name, "last_name", required=True)
    phone = (phone or "").strip() or None
    if phone and len(phone) > 32:
        raise ValidationError("phone exceeds max length 32", field="phone")

    password_hash = hash_password(password)

    if get_user_by_email(email):
        raise ConflictError("User with this email already exists", field="email")

    def _op():
        user = User(
            email=email,
            password_hash=password_hash,
            first_name=first,
            last_name=last,
            phone=phone,
            role=role,
            verification_status=VERIFICATION_PENDING,
        )
        db.session.add(user)
        db.session.flush()
        return user

    return run_in_transaction(_op)


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid and the account is active, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    user = db.session.query(User).filter(
        User.email == normalize_email(email),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None


def list_users(principal: Principal) -> list[User]:
    """All accounts, newest first."""
    require_permission(principal, "VIEW_USERS")
    return db.session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def get_user(principal: Principal, user_id: str) -> User:
    require_permission(principal, "VIEW_USERS")
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def change_role(principal: Principal, user_id: str, role: str | None) -> User:
    """
    Set user_id's role. Super admin only.

    A super admin cannot demote themselves; that would leave the system
    without anyone able to change roles back.
    """
    require_permission(principal, "CHANGE_USER_ROLE")

    role = (role or "").strip()
    if role not in VALID_ROLES:
        raise ValidationError(f"Invalid role: {role or '<empty>'}", field="role")
    if user_id == principal.id and role != principal.role:
        raise ValidationError("You cannot change your own role", field="role")

    def _op():
        user = db.session.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        user.role = role
        return user

    return run_in_transaction(_op)


def set_user_active(user_id: str, is_active: bool) -> User:
    """Activate or deactivate an account (CLI maintenance)."""
    def _op():
        user = db.session.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        user.is_active = bool(is_active)
        return user

    return run_in_transaction(_op)
