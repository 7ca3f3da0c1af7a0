"""
Marketplace Admin - Role-Based Access Control (RBAC)

Two-tier role model for the marketplace admin backend.

    Coarse role (every user): investor, project_owner, admin
    Admin role (admins only): super_admin, content_moderator,
        investment_moderator, user_manager, read_only_admin

Effective permissions of an admin are the admin role's defaults plus any
explicit grants. Non-admin users have no permissions at all.

Usage:
    from rbac import Permission, default_resolver

    if default_resolver.has_permission(user.role, user.admin_role,
                                       user.permissions, Permission.VIEW_USERS):
        ...
"""

from .permissions import (
    Category,
    Permission,
    PermissionInfo,
    PERMISSIONS,
    coerce_permission,
    get_permission_info,
)
from .roles import (
    AdminRole,
    AdminRoleInfo,
    ADMIN_ROLES,
    DEFAULT_ADMIN_ROLE_PERMISSIONS,
    DEFAULT_CATALOG,
    Role,
    RoleCatalog,
    coerce_admin_role,
    coerce_role,
    get_admin_role_info,
)
from .resolver import Grant, PermissionResolver, default_resolver
from .context import BuiltinSuperAdmin, StoredSubject, Subject, subject_to_dict
from .requirements import (
    Combinator,
    PermissionRequirement,
    RequirementTable,
    require,
    require_admin_management,
    require_analytics_view,
    require_business_management,
    require_business_or_investment_view,
    require_business_verification,
    require_business_view,
    require_content_moderation,
    require_full_investment_access,
    require_investment_management,
    require_investment_review,
    require_investment_view,
    require_role_assignment,
    require_settings_management,
    require_user_management,
    require_user_view,
)
from .dependencies import (
    enforce_permissions,
    evaluate_requirement,
    get_current_subject,
    get_resolver,
    require_permissions,
)

__all__ = [
    # Permissions
    "Category",
    "Permission",
    "PermissionInfo",
    "PERMISSIONS",
    "coerce_permission",
    "get_permission_info",

    # Roles
    "AdminRole",
    "AdminRoleInfo",
    "ADMIN_ROLES",
    "DEFAULT_ADMIN_ROLE_PERMISSIONS",
    "DEFAULT_CATALOG",
    "Role",
    "RoleCatalog",
    "coerce_admin_role",
    "coerce_role",
    "get_admin_role_info",

    # Resolver
    "Grant",
    "PermissionResolver",
    "default_resolver",

    # Subjects
    "BuiltinSuperAdmin",
    "StoredSubject",
    "Subject",
    "subject_to_dict",

    # Requirements
    "Combinator",
    "PermissionRequirement",
    "RequirementTable",
    "require",
    "require_admin_management",
    "require_analytics_view",
    "require_business_management",
    "require_business_or_investment_view",
    "require_business_verification",
    "require_business_view",
    "require_content_moderation",
    "require_full_investment_access",
    "require_investment_management",
    "require_investment_review",
    "require_investment_view",
    "require_role_assignment",
    "require_settings_management",
    "require_user_management",
    "require_user_view",

    # Dependencies
    "enforce_permissions",
    "evaluate_requirement",
    "get_current_subject",
    "get_resolver",
    "require_permissions",
]
