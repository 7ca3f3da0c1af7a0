"""
Security module for the marketplace admin API.

Provides the standard API error envelope and password hashing.
"""

from .api_errors import (
    APIError,
    ErrorCode,
    ErrorResponse,
    RequestIDMiddleware,
    register_exception_handlers,
)
from .password import hash_password, verify_password, generate_temporary_password

__all__ = [
    "APIError",
    "ErrorCode",
    "ErrorResponse",
    "RequestIDMiddleware",
    "register_exception_handlers",
    "hash_password",
    "verify_password",
    "generate_temporary_password",
]
