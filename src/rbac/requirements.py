"""
Marketplace Admin - Permission Requirements

Routes declare what they need through a RequirementTable instead of
metadata hidden on handler functions. The table maps dotted operation ids
to requirements:

    table = RequirementTable()
    table.bind_scope("admin_roles", require_role_assignment())
    table.bind("admin_roles.promote_to_admin", require_admin_management())

    table.resolve("admin_roles.get_admin_users")   # scope binding
    table.resolve("admin_roles.promote_to_admin")  # operation binding
    table.resolve("health.ping")                   # None

The most specific binding wins. An operation with no binding at any level
resolves to None and the permission guard falls back to the undeclared
operation policy.
"""

from enum import Enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .permissions import Permission


class Combinator(str, Enum):
    """How multiple required permissions combine."""
    ALL = "all"   # User must have ALL permissions
    ANY = "any"   # User must have ANY permission


@dataclass(frozen=True)
class PermissionRequirement:
    """Non-empty permission list plus a combinator."""

    permissions: Tuple[Permission, ...]
    combinator: Combinator = Combinator.ANY

    def __post_init__(self):
        perms = tuple(Permission(p) for p in self.permissions)
        if not perms:
            raise ValueError("A permission requirement needs at least one permission")
        object.__setattr__(self, "permissions", perms)
        object.__setattr__(self, "combinator", Combinator(self.combinator))

    def to_dict(self) -> dict:
        return {
            "permissions": [p.value for p in self.permissions],
            "combinator": self.combinator.value,
        }


def require(*permissions: Permission, combinator: Combinator = Combinator.ANY) -> PermissionRequirement:
    """Build a requirement from positional permissions."""
    return PermissionRequirement(tuple(permissions), combinator)


class RequirementTable:
    """Mapping of operation ids (and their dotted prefixes) to requirements."""

    def __init__(self, bindings: Optional[Mapping[str, PermissionRequirement]] = None):
        self._bindings: Dict[str, PermissionRequirement] = {}
        self._frozen = False
        for operation_id, requirement in (bindings or {}).items():
            self.bind(operation_id, requirement)

    def _check_writable(self) -> None:
        if self._frozen:
            raise RuntimeError("RequirementTable is frozen")

    def bind(self, operation_id: str, requirement: PermissionRequirement) -> "RequirementTable":
        """Bind a requirement to an operation id (or any dotted prefix)."""
        self._check_writable()
        if not operation_id or operation_id.startswith(".") or operation_id.endswith("."):
            raise ValueError(f"Invalid operation id: {operation_id!r}")
        if not isinstance(requirement, PermissionRequirement):
            raise TypeError("requirement must be a PermissionRequirement")
        self._bindings[operation_id] = requirement
        return self

    def bind_scope(self, scope: str, requirement: PermissionRequirement) -> "RequirementTable":
        """Bind a default for every operation under a collection prefix."""
        return self.bind(scope, requirement)

    def bind_many(self, bindings: Iterable[Tuple[str, PermissionRequirement]]) -> "RequirementTable":
        for operation_id, requirement in bindings:
            self.bind(operation_id, requirement)
        return self

    def freeze(self) -> "RequirementTable":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def resolve(self, operation_id: Optional[str]) -> Optional[PermissionRequirement]:
        """Innermost binding for operation_id, or None when nothing is declared."""
        if not operation_id:
            return None
        parts = operation_id.split(".")
        for end in range(len(parts), 0, -1):
            requirement = self._bindings.get(".".join(parts[:end]))
            if requirement is not None:
                return requirement
        return None

    def describe(self) -> Mapping[str, dict]:
        """Read-only view of every binding, for inspection and docs."""
        return MappingProxyType({
            operation_id: requirement.to_dict()
            for operation_id, requirement in sorted(self._bindings.items())
        })

    def __contains__(self, operation_id: str) -> bool:
        return operation_id in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)


# =============================================================================
# COMMON REQUIREMENTS
# =============================================================================

def require_business_management() -> PermissionRequirement:
    return require(Permission.MANAGE_BUSINESSES)


def require_business_view() -> PermissionRequirement:
    return require(Permission.VIEW_BUSINESSES)


def require_business_verification() -> PermissionRequirement:
    return require(Permission.VERIFY_BUSINESSES)


def require_investment_management() -> PermissionRequirement:
    return require(Permission.MANAGE_INVESTMENT_REQUESTS)


def require_investment_review() -> PermissionRequirement:
    return require(Permission.REVIEW_INVESTMENT_REQUESTS)


def require_investment_view() -> PermissionRequirement:
    return require(Permission.VIEW_INVESTMENT_REQUESTS)


def require_user_management() -> PermissionRequirement:
    return require(Permission.MANAGE_USERS)


def require_user_view() -> PermissionRequirement:
    return require(Permission.VIEW_USERS)


def require_admin_management() -> PermissionRequirement:
    return require(Permission.MANAGE_ADMINS)


def require_role_assignment() -> PermissionRequirement:
    return require(Permission.ASSIGN_ADMIN_ROLES)


def require_settings_management() -> PermissionRequirement:
    return require(Permission.MANAGE_SETTINGS)


def require_analytics_view() -> PermissionRequirement:
    return require(Permission.VIEW_ANALYTICS)


# Combined requirements

def require_business_or_investment_view() -> PermissionRequirement:
    return require(
        Permission.VIEW_BUSINESSES,
        Permission.VIEW_INVESTMENT_REQUESTS,
        combinator=Combinator.ANY,
    )


def require_content_moderation() -> PermissionRequirement:
    return require(
        Permission.MANAGE_BUSINESSES,
        Permission.VERIFY_BUSINESSES,
        combinator=Combinator.ALL,
    )


def require_full_investment_access() -> PermissionRequirement:
    return require(
        Permission.MANAGE_INVESTMENT_REQUESTS,
        Permission.REVIEW_INVESTMENT_REQUESTS,
        combinator=Combinator.ALL,
    )
