# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- ORDERS --

ORDER_PERMISSIONS = [
    (
        "CREATE_ORDER",
        "Create Order",
        "Submit a purchasing order for yourself (requires verified identity)",
        PermissionCategory.ORDERS,
    ),
    (
        "VIEW_OWN_ORDERS",
        "View Own Orders",
        "List orders you placed",
        PermissionCategory.ORDERS,
    ),
    (
        "VIEW_ASSIGNED_ORDERS",
        "View Assigned Orders",
        "List orders assigned to you for fulfillment",
        PermissionCategory.ORDERS,
    ),
    (
        "VIEW_ALL_ORDERS",
        "View All Orders",
        "List every order in the system",
        PermissionCategory.ORDERS,
    ),
    (
        "PROCESS_ORDERS",
        "Process Orders",
        "Approve, decline, advance fulfillment stage and annotate orders",
        PermissionCategory.ORDERS,
    ),
    (
        "ASSIGN_ORDERS",
        "Assign Orders",
        "Reassign an approved order to a staff member",
        PermissionCategory.ORDERS,
    ),
]


# -- USERS --

USER_PERMISSIONS = [
    (
        "VIEW_USERS",
        "View Users",
        "List user accounts",
        PermissionCategory.USERS,
    ),
    (
        "VERIFY_USERS",
        "Verify Users",
        "Accept or reject identity verification documents",
        PermissionCategory.USERS,
    ),
    (
        "CHANGE_USER_ROLE",
        "Change User Role",
        "Promote or demote a user between user, employee, admin and super_admin",
        PermissionCategory.USERS,
    ),
]


# -- MESSAGING --

MESSAGING_PERMISSIONS = [
    (
        "STAFF_MESSAGING",
        "Staff Messaging",
        "Send and read employee/admin conversation threads",
        PermissionCategory.MESSAGING,
    ),
]


# -- CONTENT --

CONTENT_PERMISSIONS = [
    (
        "MANAGE_CONTENT",
        "Manage Homepage Content",
        "Edit hero slides, about us, partner companies, social links and policies",
        PermissionCategory.CONTENT,
    ),
]


# Combined list of all permissions, in category order
PERMISSION_DEFINITIONS = (
    ORDER_PERMISSIONS
    + USER_PERMISSIONS
    + MESSAGING_PERMISSIONS
    + CONTENT_PERMISSIONS
)
