"""
Admin Roles Service - administrator and user management.

This service provides:
- Listing administrators with their effective permissions
- Role assignment, explicit permission grants, promotion and revocation
- Read-only role catalog lookups
- User listing, lookup, search, status updates and statistics

Every operation receives the acting Subject (already authenticated) and
re-checks the actor's permissions through the PermissionResolver. Route
level guards are a first line; these checks are the authoritative one.
"""

import math
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from database.models import UserRecord
from database.repositories.user_repository import UserFilters, UserRepository
from rbac.context import Subject
from rbac.permissions import Permission, coerce_permission
from rbac.resolver import PermissionResolver, default_resolver
from rbac.roles import AdminRole, Role, coerce_admin_role, coerce_role
from security.api_errors import APIError, ErrorCode
from services.logging_config import AdminAuditLogger

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DEFAULT_SEARCH_LIMIT = 10

# Fields an admin with manage_users may change through update_user_status
STATUS_FIELDS = ("email_verified", "phone_verified", "city", "business_type")
# Profile fields that may be cleared with None
CLEARABLE_FIELDS = ("city", "business_type")


class SortField(str, Enum):
    """Fields available for sorting the user list."""
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    NAME = "name"
    EMAIL = "email"


class SortOrder(str, Enum):
    """Sort order."""
    ASC = "asc"
    DESC = "desc"


_SORT_ALIASES = {
    "createdAt": SortField.CREATED_AT,
    "updatedAt": SortField.UPDATED_AT,
}


# =============================================================================
# ERRORS
# =============================================================================

def _forbidden(message: str) -> APIError:
    return APIError(code=ErrorCode.AUTH_INSUFFICIENT_PERMISSIONS, message=message)


def _not_found(message: str = "User not found") -> APIError:
    return APIError(code=ErrorCode.RESOURCE_NOT_FOUND, message=message)


def _bad_request(message: str) -> APIError:
    return APIError(code=ErrorCode.BUSINESS_RULE_VIOLATION, message=message)


# =============================================================================
# SERIALIZATION
# =============================================================================

def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _stored_permissions(record: UserRecord) -> List[str]:
    return list(record.permissions or [])


def authorization_view(record: UserRecord) -> Dict[str, Any]:
    """Identity plus authorization attributes, as returned by mutations."""
    return {
        "id": record.id,
        "name": record.name,
        "email": record.email,
        "role": record.role,
        "admin_role": record.admin_role,
        "permissions": _stored_permissions(record),
    }


def user_view(record: UserRecord) -> Dict[str, Any]:
    """Full user row for the admin user screens."""
    return {
        **authorization_view(record),
        "phone": record.phone,
        "email_verified": record.email_verified,
        "phone_verified": record.phone_verified,
        "city": record.city,
        "business_type": record.business_type,
        "image": record.image,
        "created_at": _iso(record.created_at),
        "updated_at": _iso(record.updated_at),
    }


def search_view(record: UserRecord) -> Dict[str, Any]:
    return {
        "id": record.id,
        "name": record.name,
        "email": record.email,
        "role": record.role,
        "admin_role": record.admin_role,
        "city": record.city,
        "business_type": record.business_type,
        "created_at": _iso(record.created_at),
    }


class AdminRolesService:
    """
    Administrator and user management on top of the PermissionResolver.

    Usage:
        async with get_async_session() as session:
            service = AdminRolesService(session)
            admins = await service.get_admin_users(subject)
    """

    def __init__(self, session: AsyncSession, resolver: PermissionResolver = default_resolver):
        self._users = UserRepository(session)
        self._resolver = resolver
        self._audit = AdminAuditLogger()

    @property
    def resolver(self) -> PermissionResolver:
        return self._resolver

    # =========================================================================
    # Internal checks
    # =========================================================================

    def _values(self, permissions: Iterable[Permission]) -> List[str]:
        return [p.value for p in self._resolver.order_permissions(permissions)]

    def _require_admin(self, actor: Subject, action: str) -> None:
        if not self._resolver.catalog.is_administrative(actor.role):
            self._audit.denied(actor.user_id, action, "not an admin")
            raise _forbidden(f"Only admins can {action}")

    def _has(self, actor: Subject, permission: Permission) -> bool:
        role, admin_role, explicit = actor.grant()
        return self._resolver.has_permission(role, admin_role, explicit, permission)

    def _require_permission(self, actor: Subject, permission: Permission, action: str) -> None:
        self._require_admin(actor, action)
        if not self._has(actor, permission):
            self._audit.denied(actor.user_id, action, f"missing {permission.value}")
            raise _forbidden(f"You do not have permission to {action}")

    def _can_assign(self, actor: Subject, admin_role) -> bool:
        role, actor_admin_role, explicit = actor.grant()
        return self._resolver.can_assign_role(role, actor_admin_role, explicit, admin_role)

    async def _get_target(self, user_id: str) -> UserRecord:
        record = await self._users.get_by_id(user_id)
        if record is None:
            raise _not_found()
        return record

    @staticmethod
    def _written(record: Optional[UserRecord]) -> UserRecord:
        # The row can vanish between the read and the UPDATE
        if record is None:
            raise _not_found()
        return record

    def _is_admin_record(self, record: UserRecord) -> bool:
        return self._resolver.catalog.is_administrative(record.role)

    @staticmethod
    def _parse_admin_role(value) -> AdminRole:
        admin_role = coerce_admin_role(value)
        if admin_role is None:
            raise _bad_request("Invalid admin role")
        return admin_role

    # =========================================================================
    # Role management
    # =========================================================================

    async def get_admin_users(self, actor: Subject) -> List[Dict[str, Any]]:
        """Every admin user with explicit and effective permissions, newest first."""
        self._require_admin(actor, "view admin users")

        admins = await self._users.list_admins(Role.ADMIN.value)
        return [
            {
                "id": record.id,
                "name": record.name,
                "email": record.email,
                "admin_role": record.admin_role,
                "permissions": _stored_permissions(record),
                "effective_permissions": self._values(
                    self._resolver.get_all_user_permissions(Role.ADMIN, record.admin_role, record.permissions)
                ),
                "created_at": _iso(record.created_at),
                "updated_at": _iso(record.updated_at),
            }
            for record in admins
        ]

    def get_available_roles(self, actor: Subject) -> List[str]:
        """Admin roles the actor may assign, in catalog order."""
        self._require_admin(actor, "view available roles")
        role, admin_role, explicit = actor.grant()
        roles = self._resolver.get_assignable_roles(role, admin_role, explicit)
        return [r.value for r in self._resolver.order_roles(roles)]

    def get_available_permissions(self, actor: Subject) -> List[str]:
        """Permissions the actor may grant, in catalog order."""
        self._require_admin(actor, "view available permissions")
        role, admin_role, explicit = actor.grant()
        return self._values(self._resolver.get_grantable_permissions(role, admin_role, explicit))

    async def get_user_permissions(self, actor: Subject, target_id: str) -> Dict[str, List[str]]:
        """Explicit, effective and role-default permissions of a user."""
        self._require_admin(actor, "view user permissions")
        target = await self._get_target(target_id)

        defaults = (
            self._resolver.get_default_permissions(target.admin_role)
            if target.admin_role else frozenset()
        )
        effective = self._resolver.get_all_user_permissions(
            target.role, target.admin_role, target.permissions
        )
        return {
            "explicit_permissions": _stored_permissions(target),
            "effective_permissions": self._values(effective),
            "default_role_permissions": self._values(defaults),
        }

    async def update_user_role(self, actor: Subject, target_id: str, new_role) -> Dict[str, Any]:
        """
        Change an admin's role.

        Explicit permissions are cleared in the same write; the new role's
        defaults take over.
        """
        new_role = self._parse_admin_role(new_role)
        self._require_admin(actor, "update user roles")

        if not self._can_assign(actor, new_role):
            self._audit.denied(actor.user_id, "assign role", new_role.value)
            raise _forbidden("You cannot assign this role")

        target = await self._get_target(target_id)
        if not self._is_admin_record(target):
            raise _bad_request("User must be an admin to assign admin roles")

        top_role = self._resolver.catalog.top_role
        if actor.user_id == target.id and actor.admin_role == top_role and new_role != top_role:
            raise _forbidden("Cannot demote yourself from Super Admin")

        updated = await self._users.set_admin_role(target.id, new_role.value)
        self._audit.role_changed(actor.user_id, target.id, new_role)
        return authorization_view(self._written(updated))

    async def update_user_permissions(
        self,
        actor: Subject,
        target_id: str,
        permissions: Iterable,
    ) -> Dict[str, Any]:
        """Replace an admin's explicit permissions."""
        requested: List[Permission] = []
        for value in permissions:
            permission = coerce_permission(value)
            if permission is None:
                raise _bad_request(f"Invalid permission: {value}")
            if permission not in requested:
                requested.append(permission)

        self._require_admin(actor, "update user permissions")

        target = await self._get_target(target_id)
        if not self._is_admin_record(target):
            raise _bad_request("User must be an admin to have permissions")

        role, admin_role, explicit = actor.grant()
        for permission in requested:
            if not self._resolver.can_grant_permission(role, admin_role, explicit, permission):
                self._audit.denied(actor.user_id, "grant permission", permission.value)
                raise _forbidden(f"You cannot grant the permission: {permission.value}")

        updated = await self._users.set_permissions(target.id, [p.value for p in requested])
        self._audit.permissions_replaced(actor.user_id, target.id, requested)
        return authorization_view(self._written(updated))

    async def promote_to_admin(self, actor: Subject, target_id: str, admin_role) -> Dict[str, Any]:
        """Make a non-admin user an admin with the given admin role."""
        admin_role = self._parse_admin_role(admin_role)
        self._require_admin(actor, "promote users")
        if not self._has(actor, Permission.MANAGE_ADMINS):
            raise _forbidden("You cannot promote users to admin")

        target = await self._get_target(target_id)
        if self._is_admin_record(target):
            raise _bad_request("User is already an admin")

        if not self._can_assign(actor, admin_role):
            raise _forbidden("You cannot assign this admin role")

        updated = await self._users.set_authorization(target.id, Role.ADMIN.value, admin_role.value, [])
        self._audit.promoted(actor.user_id, target.id, admin_role)
        return authorization_view(self._written(updated))

    async def revoke_admin_access(self, actor: Subject, target_id: str) -> Dict[str, Any]:
        """Turn an admin back into a project owner with no admin role."""
        self._require_admin(actor, "revoke admin access")
        if not self._has(actor, Permission.MANAGE_ADMINS):
            raise _forbidden("You cannot revoke admin access")

        target = await self._get_target(target_id)
        if not self._is_admin_record(target):
            raise _bad_request("User is not an admin")

        if actor.user_id == target.id:
            raise _forbidden("Cannot revoke your own admin access")

        # Clearing an admin role is an assignment; the top role needs the top role
        if not self._can_assign(actor, target.admin_role):
            self._audit.denied(actor.user_id, "revoke admin access", target.admin_role or "none")
            raise _forbidden("You cannot revoke this admin role")

        updated = await self._users.set_authorization(target.id, Role.PROJECT_OWNER.value, None, [])
        self._audit.revoked(actor.user_id, target.id)
        return authorization_view(self._written(updated))

    def get_role_permissions(self, role_name) -> List[str]:
        """Default permissions of an admin role."""
        admin_role = self._parse_admin_role(role_name)
        return self._values(self._resolver.get_default_permissions(admin_role))

    # =========================================================================
    # User management
    # =========================================================================

    @staticmethod
    def _parse_sort(sort_by: Optional[str], sort_order: Optional[str]):
        raw = sort_by or SortField.CREATED_AT.value
        field = _SORT_ALIASES.get(raw)
        if field is None:
            try:
                field = SortField(raw)
            except ValueError:
                raise _bad_request(f"Cannot sort users by {raw!r}")
        try:
            order = SortOrder((sort_order or SortOrder.DESC.value).lower())
        except ValueError:
            raise _bad_request("Sort order must be 'asc' or 'desc'")
        return field, order

    @staticmethod
    def _check_filters(filters: UserFilters) -> None:
        if filters.role is not None and coerce_role(filters.role) is None:
            raise _bad_request(f"Invalid role: {filters.role}")
        if filters.admin_role is not None and coerce_admin_role(filters.admin_role) is None:
            raise _bad_request(f"Invalid admin role: {filters.admin_role}")

    async def list_users(
        self,
        actor: Subject,
        filters: Optional[UserFilters] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Filtered and paginated user list."""
        self._require_permission(actor, Permission.VIEW_USERS, "view users")

        filters = filters or UserFilters()
        self._check_filters(filters)
        field, order = self._parse_sort(sort_by, sort_order)

        page = max(1, page or 1)
        limit = min(MAX_PAGE_SIZE, max(1, limit or DEFAULT_PAGE_SIZE))

        records, total = await self._users.list_users(
            filters, page, limit, sort_by=field.value, descending=order == SortOrder.DESC
        )
        total_pages = math.ceil(total / limit)

        return {
            "users": [user_view(record) for record in records],
            "pagination": {
                "page": page,
                "limit": limit,
                "total_count": total,
                "total_pages": total_pages,
                "has_next_page": page < total_pages,
                "has_previous_page": page > 1,
            },
        }

    async def get_user(self, actor: Subject, user_id: str) -> Dict[str, Any]:
        self._require_permission(actor, Permission.VIEW_USERS, "view user details")
        return user_view(await self._get_target(user_id))

    async def search_users(
        self,
        actor: Subject,
        term: str,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> List[Dict[str, Any]]:
        """Name or email match, ordered by name."""
        self._require_permission(actor, Permission.VIEW_USERS, "search users")
        limit = min(MAX_PAGE_SIZE, max(1, limit))
        records = await self._users.search(term.strip(), limit)
        return [search_view(record) for record in records]

    async def update_user_status(
        self,
        actor: Subject,
        user_id: str,
        changes: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Update verification flags and profile fields of a user."""
        self._require_permission(actor, Permission.MANAGE_USERS, "update users")

        unknown = set(changes) - set(STATUS_FIELDS)
        if unknown:
            raise _bad_request(f"Cannot update fields: {', '.join(sorted(unknown))}")

        not_nullable = sorted(
            key for key, value in changes.items() if value is None and key not in CLEARABLE_FIELDS
        )
        if not_nullable:
            raise _bad_request(f"Cannot clear fields: {', '.join(not_nullable)}")

        target = await self._get_target(user_id)

        updated = await self._users.update_profile(target.id, **changes)
        self._audit.status_updated(actor.user_id, target.id, changes)
        return user_view(self._written(updated))

    async def get_user_stats(self, actor: Subject) -> Dict[str, Any]:
        """User counts for the admin dashboard."""
        self._require_permission(actor, Permission.VIEW_ANALYTICS, "view user statistics")

        now = datetime.utcnow()
        month_start = datetime(now.year, now.month, 1)

        total_users = await self._users.count()
        total_admins = await self._users.count(UserRecord.role == Role.ADMIN.value)
        overview = {
            "total_users": total_users,
            "total_admins": total_admins,
            "regular_users": total_users - total_admins,
            "email_verified_users": await self._users.count(UserRecord.email_verified.is_(True)),
            "phone_verified_users": await self._users.count(UserRecord.phone_verified.is_(True)),
            "new_users_this_month": await self._users.count(UserRecord.created_at >= month_start),
            "active_users_this_month": await self._users.count(
                UserRecord.updated_at >= now - timedelta(days=30)
            ),
        }

        return {
            "overview": overview,
            "role_distribution": await self._users.count_by_role(),
            "top_cities": [
                {"city": city, "count": count}
                for city, count in await self._users.top_cities(10)
            ],
        }
