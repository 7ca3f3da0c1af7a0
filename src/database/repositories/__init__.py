"""Repository implementations for the marketplace user store."""

from .user_repository import UserFilters, UserRepository

__all__ = [
    "UserFilters",
    "UserRepository",
]
