"""Tests for PermissionResolver."""

import pytest

from rbac.permissions import Permission
from rbac.resolver import PermissionResolver, default_resolver
from rbac.roles import AdminRole, Role, RoleCatalog, DEFAULT_ADMIN_ROLE_PERMISSIONS


@pytest.fixture
def resolver():
    return PermissionResolver()


NON_ADMIN_ROLES = [Role.INVESTOR, Role.PROJECT_OWNER, None, "unknown"]


class TestHasPermission:
    """Single permission checks."""

    @pytest.mark.parametrize("role", NON_ADMIN_ROLES)
    @pytest.mark.parametrize("permission", list(Permission))
    def test_non_admin_never_has_permission(self, resolver, role, permission):
        """Explicit grants and admin roles are inert on ordinary users."""
        assert not resolver.has_permission(role, AdminRole.SUPER_ADMIN, list(Permission), permission)

    @pytest.mark.parametrize("permission", list(Permission))
    def test_admin_without_admin_role_has_nothing(self, resolver, permission):
        assert not resolver.has_permission(Role.ADMIN, None, list(Permission), permission)

    @pytest.mark.parametrize("admin_role", list(AdminRole))
    def test_defaults_hold_without_explicit_grants(self, resolver, admin_role):
        for permission in DEFAULT_ADMIN_ROLE_PERMISSIONS[admin_role]:
            assert resolver.has_permission(Role.ADMIN, admin_role, [], permission)

    def test_user_manager_scenario(self, resolver):
        assert resolver.has_permission(Role.ADMIN, AdminRole.USER_MANAGER, [], Permission.MANAGE_USERS)
        assert not resolver.has_permission(Role.ADMIN, AdminRole.USER_MANAGER, [], Permission.MANAGE_BUSINESSES)

    def test_explicit_grant_extends_defaults(self, resolver):
        explicit = [Permission.MANAGE_BUSINESSES]
        assert resolver.has_permission(Role.ADMIN, AdminRole.USER_MANAGER, explicit, Permission.MANAGE_BUSINESSES)

    def test_inconsistent_investor_grant_is_ignored(self, resolver):
        """An investor row carrying manage_users still has no permissions."""
        assert not resolver.has_permission(Role.INVESTOR, None, ["manage_users"], Permission.MANAGE_USERS)

    def test_accepts_stored_strings(self, resolver):
        assert resolver.has_permission("admin", "user_manager", ["verify_businesses"], "verify_businesses")
        assert resolver.has_permission("admin", "user_manager", None, "view_users")

    def test_unknown_values_are_denied(self, resolver):
        assert not resolver.has_permission("admin", "ghost_role", [], Permission.VIEW_USERS)
        assert not resolver.has_permission("admin", AdminRole.SUPER_ADMIN, [], "fly")

    def test_unknown_stored_permissions_are_skipped(self, resolver):
        assert resolver.has_permission(
            Role.ADMIN, AdminRole.READ_ONLY_ADMIN, ["retired_permission", "manage_content"],
            Permission.MANAGE_CONTENT,
        )


class TestCombinators:
    """Any/all checks, including the empty list asymmetry."""

    def test_any_of_empty_is_false(self, resolver):
        assert resolver.has_any_permission(Role.ADMIN, AdminRole.SUPER_ADMIN, [], []) is False

    def test_all_of_empty_is_true(self, resolver):
        assert resolver.has_all_permissions(Role.INVESTOR, None, [], []) is True

    def test_any(self, resolver):
        perms = [Permission.MANAGE_SETTINGS, Permission.VIEW_USERS]
        assert resolver.has_any_permission(Role.ADMIN, AdminRole.USER_MANAGER, [], perms)
        assert not resolver.has_any_permission(
            Role.ADMIN, AdminRole.USER_MANAGER, [], [Permission.MANAGE_SETTINGS]
        )

    def test_all(self, resolver):
        perms = [Permission.MANAGE_USERS, Permission.VIEW_USERS]
        assert resolver.has_all_permissions(Role.ADMIN, AdminRole.USER_MANAGER, [], perms)
        assert not resolver.has_all_permissions(
            Role.ADMIN, AdminRole.USER_MANAGER, [], perms + [Permission.MANAGE_SETTINGS]
        )

    def test_accepts_generators(self, resolver):
        perms = (p for p in [Permission.VIEW_USERS])
        assert resolver.has_all_permissions(Role.ADMIN, AdminRole.USER_MANAGER, [], perms)


class TestEffectivePermissions:
    """get_all_user_permissions and get_default_permissions."""

    def test_union_without_duplicates(self, resolver):
        explicit = [Permission.MANAGE_BUSINESSES, Permission.MANAGE_USERS]
        result = resolver.get_all_user_permissions(Role.ADMIN, AdminRole.USER_MANAGER, explicit)
        assert result == DEFAULT_ADMIN_ROLE_PERMISSIONS[AdminRole.USER_MANAGER] | {Permission.MANAGE_BUSINESSES}

    @pytest.mark.parametrize("admin_role", list(AdminRole))
    def test_superset_of_defaults(self, resolver, admin_role):
        result = resolver.get_all_user_permissions(Role.ADMIN, admin_role, [Permission.MANAGE_CONTENT])
        assert result >= resolver.get_default_permissions(admin_role)

    def test_empty_for_non_admin(self, resolver):
        assert resolver.get_all_user_permissions(Role.PROJECT_OWNER, AdminRole.SUPER_ADMIN, ["view_users"]) == frozenset()

    def test_empty_without_admin_role(self, resolver):
        assert resolver.get_all_user_permissions(Role.ADMIN, None, ["view_users"]) == frozenset()

    def test_default_permissions_unknown_role(self, resolver):
        assert resolver.get_default_permissions("nonexistent") == frozenset()

    def test_results_are_immutable(self, resolver):
        result = resolver.get_all_user_permissions(Role.ADMIN, AdminRole.READ_ONLY_ADMIN, [])
        assert isinstance(result, frozenset)


class TestDelegation:
    """Role assignment and permission granting."""

    def test_super_admin_assigns_every_role(self, resolver):
        for target in AdminRole:
            assert resolver.can_assign_role(Role.ADMIN, AdminRole.SUPER_ADMIN, [], target)
        assert resolver.get_assignable_roles(Role.ADMIN, AdminRole.SUPER_ADMIN, []) == frozenset(AdminRole)

    def test_super_admin_grants_every_permission(self, resolver):
        for permission in Permission:
            assert resolver.can_grant_permission(Role.ADMIN, AdminRole.SUPER_ADMIN, [], permission)
        assert resolver.get_grantable_permissions(Role.ADMIN, AdminRole.SUPER_ADMIN, []) == frozenset(Permission)

    def test_moderator_without_delegation_assigns_nothing(self, resolver):
        assert resolver.get_assignable_roles(Role.ADMIN, AdminRole.CONTENT_MODERATOR, []) == frozenset()
        assert resolver.get_grantable_permissions(Role.ADMIN, AdminRole.CONTENT_MODERATOR, []) == frozenset()

    def test_delegating_moderator_never_assigns_top_role(self, resolver):
        explicit = [Permission.ASSIGN_ADMIN_ROLES]
        assert not resolver.can_assign_role(
            Role.ADMIN, AdminRole.CONTENT_MODERATOR, explicit, AdminRole.SUPER_ADMIN
        )
        assert resolver.get_assignable_roles(Role.ADMIN, AdminRole.CONTENT_MODERATOR, explicit) == (
            frozenset(AdminRole) - {AdminRole.SUPER_ADMIN}
        )

    def test_delegating_moderator_grants_only_what_it_holds(self, resolver):
        explicit = [Permission.ASSIGN_ADMIN_ROLES]
        grantable = resolver.get_grantable_permissions(Role.ADMIN, AdminRole.USER_MANAGER, explicit)
        assert grantable == DEFAULT_ADMIN_ROLE_PERMISSIONS[AdminRole.USER_MANAGER] | {Permission.ASSIGN_ADMIN_ROLES}
        assert not resolver.can_grant_permission(
            Role.ADMIN, AdminRole.USER_MANAGER, explicit, Permission.MANAGE_SETTINGS
        )

    def test_non_admin_cannot_delegate(self, resolver):
        assert not resolver.can_assign_role(
            Role.INVESTOR, AdminRole.SUPER_ADMIN, list(Permission), AdminRole.READ_ONLY_ADMIN
        )
        assert not resolver.can_grant_permission(
            Role.INVESTOR, AdminRole.SUPER_ADMIN, list(Permission), Permission.VIEW_USERS
        )

    def test_unknown_target_role(self, resolver):
        """Only the top role is excluded for non-top delegators."""
        explicit = [Permission.ASSIGN_ADMIN_ROLES]
        assert resolver.can_assign_role(Role.ADMIN, AdminRole.USER_MANAGER, explicit, AdminRole.READ_ONLY_ADMIN)


class TestInjectedCatalog:
    """Resolvers built over alternate catalogs."""

    def test_alternate_defaults(self):
        catalog = RoleCatalog(default_permissions={
            AdminRole.SUPER_ADMIN: frozenset(Permission),
            AdminRole.READ_ONLY_ADMIN: {Permission.VIEW_USERS},
        })
        resolver = PermissionResolver(catalog)
        assert resolver.catalog is catalog
        assert resolver.get_default_permissions(AdminRole.READ_ONLY_ADMIN) == frozenset({Permission.VIEW_USERS})
        assert resolver.get_default_permissions(AdminRole.USER_MANAGER) == frozenset()
        assert not resolver.has_permission(Role.ADMIN, AdminRole.READ_ONLY_ADMIN, [], Permission.VIEW_ANALYTICS)
        # Module default is untouched
        assert default_resolver.has_permission(Role.ADMIN, AdminRole.READ_ONLY_ADMIN, [], Permission.VIEW_ANALYTICS)

    def test_alternate_delegation_permission_and_top_role(self):
        catalog = RoleCatalog(
            default_permissions=DEFAULT_ADMIN_ROLE_PERMISSIONS,
            top_role=AdminRole.USER_MANAGER,
            delegation_permission=Permission.MANAGE_USERS,
        )
        resolver = PermissionResolver(catalog)
        assert resolver.can_assign_role(Role.ADMIN, AdminRole.USER_MANAGER, [], AdminRole.USER_MANAGER)
        assert resolver.can_grant_permission(Role.ADMIN, AdminRole.USER_MANAGER, [], Permission.MANAGE_SETTINGS)
        # super_admin holds manage_users but is no longer the top role
        assert not resolver.can_assign_role(Role.ADMIN, AdminRole.SUPER_ADMIN, [], AdminRole.USER_MANAGER)

    def test_alternate_administrative_roles(self):
        catalog = RoleCatalog(
            default_permissions=DEFAULT_ADMIN_ROLE_PERMISSIONS,
            administrative_roles={Role.ADMIN, Role.PROJECT_OWNER},
        )
        resolver = PermissionResolver(catalog)
        assert resolver.has_permission(Role.PROJECT_OWNER, AdminRole.READ_ONLY_ADMIN, [], Permission.VIEW_USERS)


class TestOrdering:

    def test_order_follows_catalog(self, resolver):
        ordered = resolver.order_permissions({Permission.ASSIGN_ADMIN_ROLES, Permission.MANAGE_BUSINESSES})
        assert ordered == [Permission.MANAGE_BUSINESSES, Permission.ASSIGN_ADMIN_ROLES]
        assert resolver.order_roles({AdminRole.READ_ONLY_ADMIN, AdminRole.SUPER_ADMIN}) == [
            AdminRole.SUPER_ADMIN, AdminRole.READ_ONLY_ADMIN,
        ]
