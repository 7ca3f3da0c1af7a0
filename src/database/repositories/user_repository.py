"""Async User Repository.

Reads and writes the authorization attributes of users (role, admin role,
explicit permissions) plus the profile fields used by the admin screens.
Every authorization change is a single UPDATE statement so that the role
and the permission list can never be observed half-written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import select, update, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import UserRecord

logger = logging.getLogger(__name__)


SORTABLE_COLUMNS = {
    "created_at": UserRecord.created_at,
    "updated_at": UserRecord.updated_at,
    "name": UserRecord.name,
    "email": UserRecord.email,
}


@dataclass
class UserFilters:
    """Optional filters for the user listing. None means "don't filter"."""
    search: Optional[str] = None
    role: Optional[str] = None
    admin_role: Optional[str] = None
    email_verified: Optional[bool] = None
    phone_verified: Optional[bool] = None
    city: Optional[str] = None
    business_type: Optional[str] = None
    created_after: Optional[datetime] = None
    created_before: Optional[datetime] = None


def _contains(term: str):
    pattern = f"%{term}%"
    return or_(UserRecord.name.ilike(pattern), UserRecord.email.ilike(pattern))


class UserRepository:
    """Repository for user records."""

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with a session.

        Args:
            session: SQLAlchemy async session.
        """
        self._session = session

    # =========================================================================
    # Lookups
    # =========================================================================

    async def get_by_id(self, user_id: str) -> Optional[UserRecord]:
        result = await self._session.execute(
            select(UserRecord)
            .where(UserRecord.id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[UserRecord]:
        result = await self._session.execute(
            select(UserRecord).where(func.lower(UserRecord.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def list_admins(self, admin_role_value: str) -> List[UserRecord]:
        """All users whose coarse role is admin_role_value, newest first."""
        result = await self._session.execute(
            select(UserRecord)
            .where(UserRecord.role == admin_role_value)
            .order_by(UserRecord.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_users(
        self,
        filters: UserFilters,
        page: int,
        limit: int,
        sort_by: str = "created_at",
        descending: bool = True,
    ) -> Tuple[List[UserRecord], int]:
        """
        Filtered, paginated listing.

        Returns:
            (records on the requested page, total matching count)
        """
        conditions = []
        if filters.search:
            conditions.append(_contains(filters.search))
        if filters.role:
            conditions.append(UserRecord.role == filters.role)
        if filters.admin_role:
            conditions.append(UserRecord.admin_role == filters.admin_role)
        if filters.email_verified is not None:
            conditions.append(UserRecord.email_verified == filters.email_verified)
        if filters.phone_verified is not None:
            conditions.append(UserRecord.phone_verified == filters.phone_verified)
        if filters.city:
            conditions.append(UserRecord.city == filters.city)
        if filters.business_type:
            conditions.append(UserRecord.business_type == filters.business_type)
        if filters.created_after:
            conditions.append(UserRecord.created_at >= filters.created_after)
        if filters.created_before:
            conditions.append(UserRecord.created_at <= filters.created_before)

        column = SORTABLE_COLUMNS[sort_by]
        query = (
            select(UserRecord)
            .where(*conditions)
            .order_by(column.desc() if descending else column.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        count_query = select(func.count()).select_from(UserRecord).where(*conditions)

        records = list((await self._session.execute(query)).scalars().all())
        total = (await self._session.execute(count_query)).scalar_one()
        return records, total

    async def search(self, term: str, limit: int) -> List[UserRecord]:
        """Case-insensitive name/email match, ordered by name."""
        result = await self._session.execute(
            select(UserRecord)
            .where(_contains(term))
            .order_by(UserRecord.name.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    # =========================================================================
    # Writes
    # =========================================================================

    async def create(self, **fields: Any) -> UserRecord:
        fields.setdefault("permissions", [])
        record = UserRecord(**fields)
        self._session.add(record)
        await self._session.flush()
        logger.debug(f"Created user {record.id} ({record.email})")
        return record

    async def _update(self, user_id: str, values: Dict[str, Any]) -> Optional[UserRecord]:
        values = dict(values, updated_at=datetime.utcnow())
        result = await self._session.execute(
            update(UserRecord)
            .where(UserRecord.id == user_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        return await self.get_by_id(user_id)

    async def set_admin_role(self, user_id: str, admin_role: str) -> Optional[UserRecord]:
        """Change the admin role and clear explicit permissions."""
        return await self._update(user_id, {"admin_role": admin_role, "permissions": []})

    async def set_permissions(self, user_id: str, permissions: Iterable[str]) -> Optional[UserRecord]:
        """Replace the explicit permission list."""
        return await self._update(user_id, {"permissions": list(permissions)})

    async def set_authorization(
        self,
        user_id: str,
        role: str,
        admin_role: Optional[str],
        permissions: Iterable[str] = (),
    ) -> Optional[UserRecord]:
        """Overwrite role, admin role and permissions together."""
        return await self._update(
            user_id,
            {"role": role, "admin_role": admin_role, "permissions": list(permissions)},
        )

    async def update_profile(self, user_id: str, **fields: Any) -> Optional[UserRecord]:
        if not fields:
            return await self.get_by_id(user_id)
        return await self._update(user_id, fields)

    # =========================================================================
    # Statistics
    # =========================================================================

    async def count(self, *conditions) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(UserRecord).where(*conditions)
        )
        return result.scalar_one()

    async def count_by_role(self) -> Dict[str, int]:
        result = await self._session.execute(
            select(UserRecord.role, func.count()).group_by(UserRecord.role)
        )
        return {role: total for role, total in result.all()}

    async def top_cities(self, limit: int = 10) -> List[Tuple[str, int]]:
        total = func.count().label("total")
        result = await self._session.execute(
            select(UserRecord.city, total)
            .where(UserRecord.city.is_not(None))
            .group_by(UserRecord.city)
            .order_by(total.desc(), UserRecord.city.asc())
            .limit(limit)
        )
        return [(city, count) for city, count in result.all()]
