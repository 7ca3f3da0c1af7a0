"""
Marketplace Admin - Permission Resolver

Computes effective permissions from a subject's grant:

    (role, admin_role, explicit_permissions)

Effective permissions are the admin role's default set plus the explicit
permissions, and are always empty unless the coarse role is administrative
and an admin role is set. Explicit grants on a non-admin user are inert.

The resolver is pure: no I/O, no shared mutable state. Identity checks
(actor == target) belong to the calling service, not here.

Usage:
    resolver = PermissionResolver()
    if resolver.has_permission(user.role, user.admin_role, user.permissions,
                               Permission.VERIFY_BUSINESSES):
        ...
"""

from typing import FrozenSet, Iterable, NamedTuple, Optional

from .permissions import Permission, coerce_permission
from .roles import AdminRole, Role, RoleCatalog, DEFAULT_CATALOG, coerce_admin_role


class Grant(NamedTuple):
    """Authorization attributes of a subject, as stored."""
    role: Optional[Role]
    admin_role: Optional[AdminRole]
    explicit_permissions: FrozenSet[Permission]


def _normalize_permissions(values: Optional[Iterable]) -> FrozenSet[Permission]:
    if not values:
        return frozenset()
    normalized = (coerce_permission(value) for value in values)
    return frozenset(p for p in normalized if p is not None)


class PermissionResolver:
    """Answers has/can queries against an injected RoleCatalog."""

    def __init__(self, catalog: RoleCatalog = DEFAULT_CATALOG):
        self._catalog = catalog

    @property
    def catalog(self) -> RoleCatalog:
        return self._catalog

    # =========================================================================
    # Permission Checks
    # =========================================================================

    def has_permission(
        self,
        role,
        admin_role,
        explicit_permissions: Optional[Iterable],
        permission,
    ) -> bool:
        """
        Check a single permission.

        True only for administrative users with an admin role, when the
        permission is explicit or in the admin role's default set.
        """
        if not self._catalog.is_administrative(role):
            return False

        admin_role = coerce_admin_role(admin_role)
        if admin_role is None:
            return False

        required = coerce_permission(permission)
        if required is None:
            return False

        if required in _normalize_permissions(explicit_permissions):
            return True

        return required in self.get_default_permissions(admin_role)

    def has_any_permission(
        self,
        role,
        admin_role,
        explicit_permissions: Optional[Iterable],
        permissions: Iterable,
    ) -> bool:
        """Check that at least one permission holds. Empty input is False."""
        return any(
            self.has_permission(role, admin_role, explicit_permissions, permission)
            for permission in permissions
        )

    def has_all_permissions(
        self,
        role,
        admin_role,
        explicit_permissions: Optional[Iterable],
        permissions: Iterable,
    ) -> bool:
        """Check that every permission holds. Empty input is True."""
        return all(
            self.has_permission(role, admin_role, explicit_permissions, permission)
            for permission in permissions
        )

    # =========================================================================
    # Effective Permissions
    # =========================================================================

    def get_all_user_permissions(
        self,
        role,
        admin_role,
        explicit_permissions: Optional[Iterable],
    ) -> FrozenSet[Permission]:
        """Union of the admin role defaults and explicit permissions."""
        if not self._catalog.is_administrative(role):
            return frozenset()

        admin_role = coerce_admin_role(admin_role)
        if admin_role is None:
            return frozenset()

        return self.get_default_permissions(admin_role) | _normalize_permissions(explicit_permissions)

    def get_default_permissions(self, admin_role) -> FrozenSet[Permission]:
        """Default permissions for an admin role. Unknown roles get an empty set."""
        return self._catalog.defaults_for(admin_role)

    # =========================================================================
    # Delegation
    # =========================================================================

    def _may_delegate(self, role, admin_role, explicit_permissions) -> bool:
        return self.has_permission(
            role,
            admin_role,
            explicit_permissions,
            self._catalog.delegation_permission,
        )

    def _is_top_role(self, admin_role) -> bool:
        return coerce_admin_role(admin_role) == self._catalog.top_role

    def can_assign_role(
        self,
        actor_role,
        actor_admin_role,
        actor_permissions: Optional[Iterable],
        target_admin_role,
    ) -> bool:
        """
        Check whether the actor may assign target_admin_role to someone.

        Requires the delegation permission. The top role assigns anything;
        every other role assigns anything except the top role.
        """
        if not self._catalog.is_administrative(actor_role):
            return False

        if not self._may_delegate(actor_role, actor_admin_role, actor_permissions):
            return False

        if self._is_top_role(actor_admin_role):
            return True

        return coerce_admin_role(target_admin_role) != self._catalog.top_role

    def can_grant_permission(
        self,
        granter_role,
        granter_admin_role,
        granter_permissions: Optional[Iterable],
        permission_to_grant,
    ) -> bool:
        """
        Check whether the granter may grant permission_to_grant.

        Requires the delegation permission. The top role grants anything;
        every other role grants only permissions it currently holds.
        """
        if not self._catalog.is_administrative(granter_role):
            return False

        if not self._may_delegate(granter_role, granter_admin_role, granter_permissions):
            return False

        if self._is_top_role(granter_admin_role):
            return True

        return self.has_permission(
            granter_role,
            granter_admin_role,
            granter_permissions,
            permission_to_grant,
        )

    def get_assignable_roles(
        self,
        actor_role,
        actor_admin_role,
        actor_permissions: Optional[Iterable],
    ) -> FrozenSet[AdminRole]:
        """All admin roles the actor may assign."""
        return frozenset(
            candidate
            for candidate in self._catalog.admin_roles
            if self.can_assign_role(actor_role, actor_admin_role, actor_permissions, candidate)
        )

    def get_grantable_permissions(
        self,
        granter_role,
        granter_admin_role,
        granter_permissions: Optional[Iterable],
    ) -> FrozenSet[Permission]:
        """All permissions the granter may grant."""
        return frozenset(
            candidate
            for candidate in self._catalog.permissions
            if self.can_grant_permission(granter_role, granter_admin_role, granter_permissions, candidate)
        )

    # =========================================================================
    # Ordering helpers (API responses list in catalog order)
    # =========================================================================

    def order_roles(self, roles: Iterable[AdminRole]) -> list[AdminRole]:
        wanted = set(roles)
        return [role for role in self._catalog.admin_roles if role in wanted]

    def order_permissions(self, permissions: Iterable[Permission]) -> list[Permission]:
        wanted = set(permissions)
        return [p for p in self._catalog.permissions if p in wanted]


default_resolver = PermissionResolver()
