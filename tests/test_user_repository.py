"""Tests for UserRepository."""

from datetime import datetime, timedelta

import pytest

from database.models import UserRecord
from database.repositories.user_repository import UserFilters, UserRepository


@pytest.fixture
def repo(db_session):
    return UserRepository(db_session)


class TestUserRepository:

    @pytest.mark.asyncio
    async def test_create_defaults(self, repo):
        record = await repo.create(email="new@example.com", name="New")
        assert record.id
        assert record.role == "investor"
        assert record.admin_role is None
        assert record.permissions == []
        assert record.email_verified is False

    @pytest.mark.asyncio
    async def test_get_by_email_is_case_insensitive(self, repo, make_user):
        await make_user("u-1", email="Mixed@Example.com")
        assert (await repo.get_by_email("mixed@example.COM")).id == "u-1"
        assert await repo.get_by_email("other@example.com") is None

    @pytest.mark.asyncio
    async def test_set_admin_role_clears_permissions(self, repo, make_user):
        await make_user("u-1", role="admin", admin_role="content_moderator", permissions=["manage_users"])
        record = await repo.set_admin_role("u-1", "user_manager")
        assert record.admin_role == "user_manager"
        assert record.permissions == []

    @pytest.mark.asyncio
    async def test_set_authorization_in_one_write(self, repo, make_user):
        await make_user("u-1")
        record = await repo.set_authorization("u-1", "admin", "read_only_admin", ["view_users"])
        assert (record.role, record.admin_role, record.permissions) == ("admin", "read_only_admin", ["view_users"])

    @pytest.mark.asyncio
    async def test_updates_on_missing_user(self, repo):
        assert await repo.set_permissions("nobody", ["view_users"]) is None
        assert await repo.update_profile("nobody", city="Lagos") is None

    @pytest.mark.asyncio
    async def test_update_profile_touches_updated_at(self, repo, make_user):
        created = await make_user("u-1")
        before = created.updated_at
        record = await repo.update_profile("u-1", city="Lagos")
        assert record.city == "Lagos"
        assert record.updated_at >= before

    @pytest.mark.asyncio
    async def test_list_admins_newest_first(self, repo, make_user):
        now = datetime.utcnow()
        await make_user("old", role="admin", admin_role="super_admin", created_at=now - timedelta(days=2))
        await make_user("new", role="admin", admin_role="user_manager", created_at=now)
        await make_user("investor")
        assert [r.id for r in await repo.list_admins("admin")] == ["new", "old"]

    @pytest.mark.asyncio
    async def test_list_users_date_window(self, repo, make_user):
        now = datetime.utcnow()
        await make_user("a", created_at=now - timedelta(days=10))
        await make_user("b", created_at=now - timedelta(days=5))
        await make_user("c", created_at=now)

        filters = UserFilters(created_after=now - timedelta(days=6), created_before=now - timedelta(days=1))
        records, total = await repo.list_users(filters, page=1, limit=10)
        assert [r.id for r in records] == ["b"]
        assert total == 1

    @pytest.mark.asyncio
    async def test_counts(self, repo, make_user):
        await make_user("a", role="admin", admin_role="super_admin", city="Lagos")
        await make_user("b", city="Lagos")
        await make_user("c", city="Abuja")
        await make_user("d")

        assert await repo.count() == 4
        assert await repo.count(UserRecord.role == "admin") == 1
        assert await repo.count_by_role() == {"admin": 1, "investor": 3}
        assert await repo.top_cities(1) == [("Lagos", 2)]
