"""
Marketplace Admin - JWT Token Handling

Access tokens are HS256-signed JWTs whose payload carries:

    sub    - user id (or the reserved built-in administrator id)
    email  - user email
    role   - coarse role value (investor, project_owner, admin)
    type   - always "access"

Only the subject id and role are trusted for authorization; everything else
is reloaded from the users table on each request.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

import jwt

from config.settings import AuthSettings, get_auth_settings
from .roles import Role


# =============================================================================
# TOKEN CREATION
# =============================================================================

def create_access_token(
    user_id: str,
    email: str,
    role: Role,
    name: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
    settings: Optional[AuthSettings] = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        user_id: User's unique identifier
        email: User's email
        role: User's coarse role
        name: Display name (informational)
        expires_delta: Custom expiration time; negative values give an
            already-expired token
        settings: Auth settings; loaded from environment when omitted

    Returns:
        JWT token string
    """
    settings = settings or get_auth_settings()
    if expires_delta is None:
        expires_delta = timedelta(hours=settings.access_token_expire_hours)

    issued_at = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": Role(role).value,
        "iat": issued_at,
        "exp": issued_at + expires_delta,
        "type": "access",
    }
    if name:
        payload["name"] = name

    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_builtin_admin_token(
    expires_delta: Optional[timedelta] = None,
    settings: Optional[AuthSettings] = None,
) -> str:
    """Token for the reserved administrator account."""
    settings = settings or get_auth_settings()
    return create_access_token(
        settings.builtin_admin_id,
        settings.builtin_admin_email,
        Role.ADMIN,
        name=settings.builtin_admin_name,
        expires_delta=expires_delta,
        settings=settings,
    )


# =============================================================================
# TOKEN DECODING
# =============================================================================

def decode_token(token: str, settings: Optional[AuthSettings] = None) -> Dict[str, Any]:
    """
    Decode and validate a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If the token has expired
        jwt.InvalidTokenError: If the token is otherwise invalid
    """
    settings = settings or get_auth_settings()
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        options={"require": ["sub", "exp"]},
    )


def decode_token_safe(token: str, settings: Optional[AuthSettings] = None) -> Optional[Dict[str, Any]]:
    """
    Decode a JWT token without raising exceptions.

    Returns None if token is invalid.
    """
    try:
        return decode_token(token, settings)
    except jwt.InvalidTokenError:
        return None


def validate_access_token(token: str, settings: Optional[AuthSettings] = None) -> Optional[Dict[str, Any]]:
    """
    Validate an access token.

    Returns payload if valid, None if invalid.
    """
    payload = decode_token_safe(token, settings)
    if payload and payload.get("type") == "access":
        return payload
    return None
