"""
Marketplace Admin - Role Definitions

Two tiers of roles:

    COARSE ROLE (every user)
    ├── investor        - Browses listings, sends investment requests
    ├── project_owner   - Lists businesses for sale
    └── admin           - Administrative user (eligible for an AdminRole)

    ADMIN ROLE (admins only)
    ├── super_admin           - Everything, including other admins
    ├── content_moderator     - Business listings and content
    ├── investment_moderator  - Investment requests
    ├── user_manager          - User accounts
    └── read_only_admin       - View-only access

Each admin role maps to a fixed default permission set. Admins may also hold
explicit permissions on top of that set.
"""

from enum import Enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, FrozenSet, Tuple

from .permissions import Permission


class Role(str, Enum):
    """Coarse user classification."""

    INVESTOR = "investor"
    PROJECT_OWNER = "project_owner"
    ADMIN = "admin"


class AdminRole(str, Enum):
    """
    Administrative roles.

    Naming convention: UPPER_SNAKE_CASE for enum, lower_snake_case for value.
    """

    SUPER_ADMIN = "super_admin"
    """
    Full access. The only role that may assign super_admin.
    Who: Founders, platform owners
    """

    CONTENT_MODERATOR = "content_moderator"
    """
    Verifies and moderates business listings.
    Who: Content team
    """

    INVESTMENT_MODERATOR = "investment_moderator"
    """
    Reviews investment requests.
    Who: Investment desk
    """

    USER_MANAGER = "user_manager"
    """
    Manages user accounts.
    Who: Support team
    """

    READ_ONLY_ADMIN = "read_only_admin"
    """
    Views everything, changes nothing.
    Who: Auditors, analysts
    """


@dataclass(frozen=True)
class AdminRoleInfo:
    """Complete information about an admin role."""
    admin_role: AdminRole
    name: str
    description: str


# =============================================================================
# ROLE REGISTRY
# =============================================================================

ADMIN_ROLES: dict[AdminRole, AdminRoleInfo] = {
    AdminRole.SUPER_ADMIN: AdminRoleInfo(
        admin_role=AdminRole.SUPER_ADMIN,
        name="Super Admin",
        description="Full platform access",
    ),
    AdminRole.CONTENT_MODERATOR: AdminRoleInfo(
        admin_role=AdminRole.CONTENT_MODERATOR,
        name="Content Moderator",
        description="Moderates and verifies business listings",
    ),
    AdminRole.INVESTMENT_MODERATOR: AdminRoleInfo(
        admin_role=AdminRole.INVESTMENT_MODERATOR,
        name="Investment Moderator",
        description="Reviews investment requests",
    ),
    AdminRole.USER_MANAGER: AdminRoleInfo(
        admin_role=AdminRole.USER_MANAGER,
        name="User Manager",
        description="Manages user accounts",
    ),
    AdminRole.READ_ONLY_ADMIN: AdminRoleInfo(
        admin_role=AdminRole.READ_ONLY_ADMIN,
        name="Read-Only Admin",
        description="View-only administrative access",
    ),
}


def get_admin_role_info(admin_role: AdminRole) -> AdminRoleInfo:
    """Get information about an admin role."""
    return ADMIN_ROLES[admin_role]


def coerce_admin_role(value) -> Optional[AdminRole]:
    """Normalize an admin-role-like value. Unknown values map to None."""
    if value is None or isinstance(value, AdminRole):
        return value
    raw = value.value if hasattr(value, "value") else value
    try:
        return AdminRole(raw)
    except (TypeError, ValueError):
        return None


def coerce_role(value) -> Optional[Role]:
    """Normalize a coarse-role-like value. Unknown values map to None."""
    if value is None or isinstance(value, Role):
        return value
    raw = value.value if hasattr(value, "value") else value
    try:
        return Role(raw)
    except (TypeError, ValueError):
        return None


# =============================================================================
# ADMIN ROLE -> DEFAULT PERMISSIONS
# =============================================================================

DEFAULT_ADMIN_ROLE_PERMISSIONS: Mapping[AdminRole, FrozenSet[Permission]] = MappingProxyType({
    # -------------------------------------------------------------------------
    # SUPER_ADMIN: Everything
    # -------------------------------------------------------------------------
    AdminRole.SUPER_ADMIN: frozenset(Permission),

    # -------------------------------------------------------------------------
    # CONTENT_MODERATOR: Listings and content
    # -------------------------------------------------------------------------
    AdminRole.CONTENT_MODERATOR: frozenset({
        Permission.MANAGE_BUSINESSES,
        Permission.VERIFY_BUSINESSES,
        Permission.VIEW_BUSINESSES,
        Permission.VIEW_ANALYTICS,
        Permission.MANAGE_CONTENT,
    }),

    # -------------------------------------------------------------------------
    # INVESTMENT_MODERATOR: Investment requests
    # -------------------------------------------------------------------------
    AdminRole.INVESTMENT_MODERATOR: frozenset({
        Permission.MANAGE_INVESTMENT_REQUESTS,
        Permission.REVIEW_INVESTMENT_REQUESTS,
        Permission.VIEW_INVESTMENT_REQUESTS,
        Permission.VIEW_BUSINESSES,
        Permission.VIEW_ANALYTICS,
    }),

    # -------------------------------------------------------------------------
    # USER_MANAGER: Accounts
    # -------------------------------------------------------------------------
    AdminRole.USER_MANAGER: frozenset({
        Permission.MANAGE_USERS,
        Permission.VIEW_USERS,
        Permission.VIEW_ANALYTICS,
    }),

    # -------------------------------------------------------------------------
    # READ_ONLY_ADMIN: View only
    # -------------------------------------------------------------------------
    AdminRole.READ_ONLY_ADMIN: frozenset({
        Permission.VIEW_BUSINESSES,
        Permission.VIEW_INVESTMENT_REQUESTS,
        Permission.VIEW_USERS,
        Permission.VIEW_ANALYTICS,
    }),
})


# =============================================================================
# CATALOG
# =============================================================================

@dataclass(frozen=True)
class RoleCatalog:
    """
    Immutable authorization catalog consumed by the resolver.

    Holds the default permission table together with the closed permission
    and admin-role lists, the top admin role, the coarse roles treated as
    administrative, and the permission that gates delegation. Tests can build
    alternate catalogs and inject them into PermissionResolver.
    """

    default_permissions: Mapping[AdminRole, FrozenSet[Permission]]
    permissions: Tuple[Permission, ...] = tuple(Permission)
    admin_roles: Tuple[AdminRole, ...] = tuple(AdminRole)
    top_role: AdminRole = AdminRole.SUPER_ADMIN
    administrative_roles: FrozenSet[Role] = field(default_factory=lambda: frozenset({Role.ADMIN}))
    delegation_permission: Permission = Permission.ASSIGN_ADMIN_ROLES

    def __post_init__(self):
        frozen = {
            role: frozenset(perms)
            for role, perms in dict(self.default_permissions).items()
        }
        object.__setattr__(self, "default_permissions", MappingProxyType(frozen))
        object.__setattr__(self, "permissions", tuple(self.permissions))
        object.__setattr__(self, "admin_roles", tuple(self.admin_roles))
        object.__setattr__(self, "administrative_roles", frozenset(self.administrative_roles))

    def defaults_for(self, admin_role) -> FrozenSet[Permission]:
        """Default permission set for a role; empty for unknown or unmapped roles."""
        return self.default_permissions.get(coerce_admin_role(admin_role), frozenset())

    def is_administrative(self, role) -> bool:
        return coerce_role(role) in self.administrative_roles


DEFAULT_CATALOG = RoleCatalog(default_permissions=DEFAULT_ADMIN_ROLE_PERMISSIONS)
