"""
Marketplace Admin - Authenticated Subjects

A subject is whoever is making the request. There are two kinds:

    StoredSubject      - a row in the users table
    BuiltinSuperAdmin  - the reserved administrator account, which has no
                         backing row and holds the full permission catalog

Both expose grant(), the (role, admin_role, explicit_permissions) triple
the resolver consumes.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional, Union

from .permissions import Permission, coerce_permission
from .roles import AdminRole, Role, coerce_admin_role, coerce_role
from .resolver import Grant


def _freeze_permissions(values: Optional[Iterable]) -> FrozenSet[Permission]:
    if not values:
        return frozenset()
    return frozenset(p for p in (coerce_permission(v) for v in values) if p is not None)


@dataclass(frozen=True)
class StoredSubject:
    """Subject loaded from the users table."""

    user_id: str
    email: str
    name: str
    role: Optional[Role]
    admin_role: Optional[AdminRole] = None
    explicit_permissions: FrozenSet[Permission] = field(default_factory=frozenset)

    is_builtin = False

    @classmethod
    def from_record(cls, record) -> "StoredSubject":
        """Build from a UserRecord (or anything with the same attributes)."""
        return cls(
            user_id=str(record.id),
            email=record.email,
            name=record.name or "",
            role=coerce_role(record.role),
            admin_role=coerce_admin_role(record.admin_role),
            explicit_permissions=_freeze_permissions(record.permissions),
        )

    def grant(self) -> Grant:
        return Grant(self.role, self.admin_role, self.explicit_permissions)


@dataclass(frozen=True)
class BuiltinSuperAdmin:
    """Reserved administrator identity with every permission."""

    user_id: str = "ADMIN-001"
    email: str = "admin@marketplace.local"
    name: str = "Administrator"

    is_builtin = True

    @property
    def role(self) -> Role:
        return Role.ADMIN

    @property
    def admin_role(self) -> AdminRole:
        return AdminRole.SUPER_ADMIN

    @property
    def explicit_permissions(self) -> FrozenSet[Permission]:
        return frozenset(Permission)

    def grant(self) -> Grant:
        return Grant(self.role, self.admin_role, self.explicit_permissions)


Subject = Union[StoredSubject, BuiltinSuperAdmin]


def subject_to_dict(subject: Subject) -> dict:
    """Convert to dictionary for API responses."""
    return {
        "user_id": subject.user_id,
        "email": subject.email,
        "name": subject.name,
        "role": subject.role.value if subject.role else None,
        "admin_role": subject.admin_role.value if subject.admin_role else None,
        "permissions": sorted(p.value for p in subject.explicit_permissions),
        "builtin": subject.is_builtin,
    }
