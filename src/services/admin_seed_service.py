"""
Admin Seed Service - creates the initial administrator accounts.

Runs on startup when AUTH_SEED_ADMINS is enabled:
- a super admin holding every permission explicitly
- one account per moderator role (content, investment, users)

Seeding is idempotent: existing accounts are matched by email and left
alone, except that a super admin account missing its privileges is repaired.
"""

from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import AuthSettings, get_auth_settings
from database.repositories.user_repository import UserRepository
from rbac.permissions import Permission
from rbac.roles import AdminRole, Role
from security.password import BCRYPT_ROUNDS, hash_password
from services.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SeedAccount:
    """One admin account to create."""
    email: str
    password: str
    name: str
    admin_role: AdminRole
    permissions: tuple


def default_admin_accounts(settings: AuthSettings) -> List[SeedAccount]:
    """Moderator accounts created alongside the super admin."""
    return [
        SeedAccount(
            email=settings.seed_content_admin_email,
            password=settings.seed_content_admin_password,
            name="Content Manager",
            admin_role=AdminRole.CONTENT_MODERATOR,
            permissions=(
                Permission.MANAGE_CONTENT,
                Permission.MANAGE_BUSINESSES,
                Permission.VIEW_BUSINESSES,
                Permission.VIEW_ANALYTICS,
            ),
        ),
        SeedAccount(
            email=settings.seed_investment_admin_email,
            password=settings.seed_investment_admin_password,
            name="Investment Manager",
            admin_role=AdminRole.INVESTMENT_MODERATOR,
            permissions=(
                Permission.MANAGE_INVESTMENT_REQUESTS,
                Permission.REVIEW_INVESTMENT_REQUESTS,
                Permission.VIEW_INVESTMENT_REQUESTS,
                Permission.VIEW_BUSINESSES,
                Permission.VIEW_ANALYTICS,
            ),
        ),
        SeedAccount(
            email=settings.seed_user_admin_email,
            password=settings.seed_user_admin_password,
            name="User Manager",
            admin_role=AdminRole.USER_MANAGER,
            permissions=(
                Permission.MANAGE_USERS,
                Permission.VIEW_USERS,
                Permission.ASSIGN_ROLES,
                Permission.VIEW_ANALYTICS,
            ),
        ),
    ]


class AdminSeedService:
    """Creates the super admin and default moderator accounts."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Optional[AuthSettings] = None,
        password_rounds: int = BCRYPT_ROUNDS,
    ):
        self._users = UserRepository(session)
        self._settings = settings or get_auth_settings()
        self._rounds = password_rounds

    async def seed_super_admin(self) -> str:
        """Create (or repair) the super admin. Returns its user id."""
        settings = self._settings
        all_permissions = [p.value for p in Permission]

        existing = await self._users.get_by_email(settings.seed_super_admin_email)
        if existing is not None:
            logger.info(f"Super admin already exists: {existing.email}")
            if existing.role != Role.ADMIN.value or existing.admin_role != AdminRole.SUPER_ADMIN.value:
                await self._users.set_authorization(
                    existing.id, Role.ADMIN.value, AdminRole.SUPER_ADMIN.value, all_permissions
                )
                logger.info("Updated existing user with super admin privileges")
            return existing.id

        record = await self._users.create(
            email=settings.seed_super_admin_email,
            password_hash=hash_password(settings.seed_super_admin_password, self._rounds),
            name=settings.seed_super_admin_name,
            role=Role.ADMIN.value,
            admin_role=AdminRole.SUPER_ADMIN.value,
            permissions=all_permissions,
            email_verified=True,
        )
        logger.info(f"Super admin created: {record.email} ({len(all_permissions)} permissions)")
        return record.id

    async def seed_default_admins(self) -> List[str]:
        """Create missing moderator accounts. Returns ids of new accounts."""
        created = []
        for account in default_admin_accounts(self._settings):
            if await self._users.get_by_email(account.email) is not None:
                logger.info(f"Admin already exists: {account.email}")
                continue

            record = await self._users.create(
                email=account.email,
                password_hash=hash_password(account.password, self._rounds),
                name=account.name,
                role=Role.ADMIN.value,
                admin_role=account.admin_role.value,
                permissions=[p.value for p in account.permissions],
                email_verified=True,
            )
            logger.info(f"Admin created: {record.email} ({account.admin_role.value})")
            created.append(record.id)
        return created

    async def seed_all(self) -> None:
        logger.info("Starting admin seeding")
        await self.seed_super_admin()
        await self.seed_default_admins()
        logger.info("Admin seeding completed")
