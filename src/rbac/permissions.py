"""
Marketplace Admin - Permission Definitions

Fine-grained capabilities held by administrative users. The set is closed:
permissions are defined here and never created at runtime.

Categories:
    - BUSINESS: Business-for-sale listings
    - INVESTMENT: Investment requests between investors and owners
    - USER: User accounts
    - ADMIN: Administrator and role management
    - PLATFORM: Settings, analytics, content
"""

from enum import Enum
from dataclasses import dataclass
from typing import Optional


class Permission(str, Enum):
    """
    All permissions in the system.

    Naming: action_resource (e.g., manage_businesses, view_users)
    """

    # =========================================================================
    # BUSINESS LISTINGS
    # =========================================================================

    MANAGE_BUSINESSES = "manage_businesses"
    VERIFY_BUSINESSES = "verify_businesses"
    VIEW_BUSINESSES = "view_businesses"

    # =========================================================================
    # INVESTMENT REQUESTS
    # =========================================================================

    MANAGE_INVESTMENT_REQUESTS = "manage_investment_requests"
    REVIEW_INVESTMENT_REQUESTS = "review_investment_requests"
    VIEW_INVESTMENT_REQUESTS = "view_investment_requests"

    # =========================================================================
    # USERS
    # =========================================================================

    MANAGE_USERS = "manage_users"
    VIEW_USERS = "view_users"
    ASSIGN_ROLES = "assign_roles"

    # =========================================================================
    # PLATFORM
    # =========================================================================

    MANAGE_SETTINGS = "manage_settings"
    VIEW_ANALYTICS = "view_analytics"
    MANAGE_CONTENT = "manage_content"

    # =========================================================================
    # ADMINISTRATION
    # =========================================================================

    MANAGE_ADMINS = "manage_admins"
    ASSIGN_ADMIN_ROLES = "assign_admin_roles"


class Category(str, Enum):
    """Permission categories."""
    BUSINESS = "business"
    INVESTMENT = "investment"
    USER = "user"
    PLATFORM = "platform"
    ADMIN = "admin"


@dataclass(frozen=True)
class PermissionInfo:
    """Complete information about a permission."""
    permission: Permission
    name: str
    description: str
    category: Category


# =============================================================================
# PERMISSION REGISTRY
# =============================================================================

PERMISSIONS: dict[Permission, PermissionInfo] = {
    # Business Permissions
    Permission.MANAGE_BUSINESSES: PermissionInfo(
        Permission.MANAGE_BUSINESSES,
        "Manage Businesses",
        "Edit, suspend and delete business listings",
        Category.BUSINESS,
    ),
    Permission.VERIFY_BUSINESSES: PermissionInfo(
        Permission.VERIFY_BUSINESSES,
        "Verify Businesses",
        "Approve or reject listings awaiting verification",
        Category.BUSINESS,
    ),
    Permission.VIEW_BUSINESSES: PermissionInfo(
        Permission.VIEW_BUSINESSES,
        "View Businesses",
        "View all business listings including unpublished ones",
        Category.BUSINESS,
    ),

    # Investment Permissions
    Permission.MANAGE_INVESTMENT_REQUESTS: PermissionInfo(
        Permission.MANAGE_INVESTMENT_REQUESTS,
        "Manage Investment Requests",
        "Edit and cancel investment requests",
        Category.INVESTMENT,
    ),
    Permission.REVIEW_INVESTMENT_REQUESTS: PermissionInfo(
        Permission.REVIEW_INVESTMENT_REQUESTS,
        "Review Investment Requests",
        "Approve or reject investment requests",
        Category.INVESTMENT,
    ),
    Permission.VIEW_INVESTMENT_REQUESTS: PermissionInfo(
        Permission.VIEW_INVESTMENT_REQUESTS,
        "View Investment Requests",
        "View all investment requests",
        Category.INVESTMENT,
    ),

    # User Permissions
    Permission.MANAGE_USERS: PermissionInfo(
        Permission.MANAGE_USERS,
        "Manage Users",
        "Update user accounts and verification status",
        Category.USER,
    ),
    Permission.VIEW_USERS: PermissionInfo(
        Permission.VIEW_USERS,
        "View Users",
        "View and search user accounts",
        Category.USER,
    ),
    Permission.ASSIGN_ROLES: PermissionInfo(
        Permission.ASSIGN_ROLES,
        "Assign Roles",
        "Change the marketplace role of ordinary users",
        Category.USER,
    ),

    # Platform Permissions
    Permission.MANAGE_SETTINGS: PermissionInfo(
        Permission.MANAGE_SETTINGS,
        "Manage Settings",
        "Change platform-wide settings",
        Category.PLATFORM,
    ),
    Permission.VIEW_ANALYTICS: PermissionInfo(
        Permission.VIEW_ANALYTICS,
        "View Analytics",
        "View dashboards and platform statistics",
        Category.PLATFORM,
    ),
    Permission.MANAGE_CONTENT: PermissionInfo(
        Permission.MANAGE_CONTENT,
        "Manage Content",
        "Moderate listing content and media",
        Category.PLATFORM,
    ),

    # Admin Permissions
    Permission.MANAGE_ADMINS: PermissionInfo(
        Permission.MANAGE_ADMINS,
        "Manage Admins",
        "Promote users to admin and revoke admin access",
        Category.ADMIN,
    ),
    Permission.ASSIGN_ADMIN_ROLES: PermissionInfo(
        Permission.ASSIGN_ADMIN_ROLES,
        "Assign Admin Roles",
        "Change admin roles and grant explicit permissions",
        Category.ADMIN,
    ),
}


def get_permission_info(permission: Permission) -> PermissionInfo:
    """Get information about a permission."""
    return PERMISSIONS[permission]


def coerce_permission(value) -> Optional[Permission]:
    """
    Normalize a permission-like value (enum member or stored string).

    Returns None for values outside the catalog instead of raising, so
    stale rows never break an authorization check.
    """
    if isinstance(value, Permission):
        return value
    raw = value.value if hasattr(value, "value") else value
    try:
        return Permission(raw)
    except (TypeError, ValueError):
        return None
