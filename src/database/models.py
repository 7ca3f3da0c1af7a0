"""
SQLAlchemy ORM Models for the marketplace user store.

Only the columns the authorization layer reads or writes are mapped:
identity, the coarse role, the admin role and the explicit permission list,
plus the profile fields the admin user screens filter on.

Role columns hold the enum *values* as plain strings so that a stale or
unknown value in storage loads without error and resolves to no permission.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, String, Boolean, DateTime, Index, JSON
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator


# Cross-database compatible JSON type
# Uses JSONB on PostgreSQL, JSON on SQLite/others
class JSONB(TypeDecorator):
    """A portable JSONB type that works with both PostgreSQL and SQLite."""
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(PG_JSONB())
        return dialect.type_descriptor(JSON())


Base = declarative_base()


def _new_user_id() -> str:
    return str(uuid4())


class UserRecord(Base):
    """A marketplace account: investor, project owner or administrator."""

    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=_new_user_id)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(255), nullable=False, default="")
    password_hash = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    city = Column(String(128), nullable=True)
    business_type = Column(String(128), nullable=True)
    image = Column(String(512), nullable=True)

    email_verified = Column(Boolean, nullable=False, default=False)
    phone_verified = Column(Boolean, nullable=False, default=False)

    # Authorization attributes
    role = Column(String(32), nullable=False, default="investor")
    admin_role = Column(String(32), nullable=True)
    permissions = Column(JSONB, nullable=False, default=list, comment="Explicit permission values")

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_users_role", "role"),
        Index("ix_users_admin_role", "admin_role"),
        Index("ix_users_created_at", "created_at"),
    )

    def __repr__(self):
        return f"<UserRecord(id={self.id}, email={self.email}, role={self.role}, admin_role={self.admin_role})>"
