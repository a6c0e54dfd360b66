# Overview: Role constants and the role -> permission capability table.

"""
Role capability table.

Roles are not a strict hierarchy: employee is a separate lane (works
assigned orders) rather than a subset of admin. Every authorization
decision in routes and services resolves through ROLE_PERMISSIONS.
"""

ROLE_USER = "user"
ROLE_EMPLOYEE = "employee"
ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super_admin"

VALID_ROLES = (ROLE_USER, ROLE_EMPLOYEE, ROLE_ADMIN, ROLE_SUPER_ADMIN)

# Roles that count as staff for assignment and staff messaging
STAFF_ROLES = frozenset({ROLE_EMPLOYEE, ROLE_ADMIN, ROLE_SUPER_ADMIN})

# Roles that can see every order and every order thread
ELEVATED_ROLES = frozenset({ROLE_ADMIN, ROLE_SUPER_ADMIN})


_STAFF_COMMON = {
    "PROCESS_ORDERS",
    "STAFF_MESSAGING",
}

ROLE_PERMISSIONS = {
    ROLE_USER: frozenset({
        "CREATE_ORDER",
        "VIEW_OWN_ORDERS",
    }),
    ROLE_EMPLOYEE: frozenset(_STAFF_COMMON | {
        "VIEW_ASSIGNED_ORDERS",
    }),
    ROLE_ADMIN: frozenset(_STAFF_COMMON | {
        "VIEW_ALL_ORDERS",
        "ASSIGN_ORDERS",
        "VIEW_USERS",
        "VERIFY_USERS",
    }),
    ROLE_SUPER_ADMIN: frozenset(_STAFF_COMMON | {
        "VIEW_ALL_ORDERS",
        "ASSIGN_ORDERS",
        "VIEW_USERS",
        "VERIFY_USERS",
        "CHANGE_USER_ROLE",
        "MANAGE_CONTENT",
    }),
}
