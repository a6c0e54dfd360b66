# Overview: Permission system package.
# Re-exports all public APIs for convenient imports.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    ORDER_PERMISSIONS,
    USER_PERMISSIONS,
    MESSAGING_PERMISSIONS,
    CONTENT_PERMISSIONS,
)
from .roles import (
    ROLE_USER,
    ROLE_EMPLOYEE,
    ROLE_ADMIN,
    ROLE_SUPER_ADMIN,
    VALID_ROLES,
    STAFF_ROLES,
    ELEVATED_ROLES,
    ROLE_PERMISSIONS,
)
from .helpers import (
    get_all_permission_codes,
    get_permissions_by_category,
    validate_permission_code,
    get_role_permissions,
    role_has_permission,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "ORDER_PERMISSIONS",
    "USER_PERMISSIONS",
    "MESSAGING_PERMISSIONS",
    "CONTENT_PERMISSIONS",
    "ROLE_USER",
    "ROLE_EMPLOYEE",
    "ROLE_ADMIN",
    "ROLE_SUPER_ADMIN",
    "VALID_ROLES",
    "STAFF_ROLES",
    "ELEVATED_ROLES",
    "ROLE_PERMISSIONS",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "validate_permission_code",
    "get_role_permissions",
    "role_has_permission",
]
