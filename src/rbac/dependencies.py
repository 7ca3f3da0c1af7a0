"""
Marketplace Admin - FastAPI Dependencies

Two guards protect admin routes:

    get_current_subject  - identity: bearer JWT -> Subject, or 401
    enforce_permissions  - authorization: the route's declared requirement
                           (looked up in the app's RequirementTable) -> 403

Usage:
    from rbac import enforce_permissions, get_current_subject

    router = APIRouter(prefix="/admin/roles", dependencies=[Depends(enforce_permissions)])

    @router.get("/admin-users", name="admin_roles.get_admin_users")
    async def get_admin_users(subject: Subject = Depends(get_current_subject)):
        ...

    # Ad-hoc check on a single route
    @router.get("/reports", dependencies=[Depends(require_permissions(Permission.VIEW_ANALYTICS))])
"""

import logging
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
import jwt

from config.settings import AuthSettings, get_auth_settings
from database.async_engine import get_db_session
from database.repositories.user_repository import UserRepository
from security.api_errors import APIError, ErrorCode
from services.logging_config import user_id_var
from .context import BuiltinSuperAdmin, StoredSubject, Subject
from .permissions import Permission
from .requirements import Combinator, PermissionRequirement, RequirementTable, require
from .resolver import PermissionResolver, default_resolver
from .roles import Role
from .jwt import decode_token

logger = logging.getLogger(__name__)

INSUFFICIENT_PERMISSIONS = "Insufficient permissions to access this resource"


# =============================================================================
# HTTP BEARER SECURITY
# =============================================================================

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str, code: ErrorCode = ErrorCode.AUTH_REQUIRED) -> APIError:
    return APIError(
        code=code,
        message=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _forbidden(detail: str = INSUFFICIENT_PERMISSIONS) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


# =============================================================================
# APP-SCOPED COLLABORATORS
# =============================================================================

def get_resolver(request: Request) -> PermissionResolver:
    """Resolver installed on the app, or the module default."""
    return getattr(request.app.state, "resolver", None) or default_resolver


def get_requirement_table(request: Request) -> RequirementTable:
    table = getattr(request.app.state, "requirements", None)
    if table is None:
        table = RequirementTable().freeze()
    return table


def get_settings_for_auth(request: Request) -> AuthSettings:
    return getattr(request.app.state, "auth_settings", None) or get_auth_settings()


def operation_id_for(request: Request) -> Optional[str]:
    """Dotted operation id of the matched route (its name)."""
    route = request.scope.get("route")
    if route is None:
        return None
    name = getattr(route, "name", None)
    if name:
        return name
    endpoint = getattr(route, "endpoint", None)
    return getattr(endpoint, "__name__", None)


# =============================================================================
# IDENTITY GUARD
# =============================================================================

def _is_builtin_claim(payload: dict, settings: AuthSettings) -> bool:
    if not settings.builtin_admin_enabled:
        return False
    role = str(payload.get("role", "")).lower()
    return payload.get("sub") == settings.builtin_admin_id and role == Role.ADMIN.value


async def get_current_subject(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_db_session),
) -> Subject:
    """
    Authenticate the bearer token and load the acting subject.

    Raises 401 when the token is missing, malformed, badly signed, expired,
    or names a user that no longer exists.
    """
    # Reuse the subject if another dependency already resolved it
    cached = getattr(request.state, "subject", None)
    if cached is not None:
        return cached

    if credentials is None or not credentials.credentials:
        raise _unauthorized("Access token not found")

    settings = get_settings_for_auth(request)

    try:
        payload = decode_token(credentials.credentials, settings)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Access token expired", ErrorCode.AUTH_TOKEN_EXPIRED)
    except jwt.InvalidTokenError as e:
        logger.debug(f"Invalid JWT token: {e}")
        raise _unauthorized("Invalid access token", ErrorCode.AUTH_INVALID_TOKEN)

    if payload.get("type", "access") != "access":
        raise _unauthorized("Invalid access token", ErrorCode.AUTH_INVALID_TOKEN)

    subject: Subject
    if _is_builtin_claim(payload, settings):
        subject = BuiltinSuperAdmin(
            user_id=settings.builtin_admin_id,
            email=settings.builtin_admin_email,
            name=settings.builtin_admin_name,
        )
    else:
        record = await UserRepository(session).get_by_id(str(payload["sub"]))
        if record is None:
            raise _unauthorized("User not found")
        subject = StoredSubject.from_record(record)

    request.state.subject = subject
    user_id_var.set(subject.user_id)
    return subject


# =============================================================================
# PERMISSION GUARD
# =============================================================================

def evaluate_requirement(
    resolver: PermissionResolver,
    subject: Subject,
    requirement: PermissionRequirement,
) -> bool:
    """Check a subject's grant against a requirement."""
    role, admin_role, explicit = subject.grant()
    if requirement.combinator == Combinator.ALL:
        return resolver.has_all_permissions(role, admin_role, explicit, requirement.permissions)
    return resolver.has_any_permission(role, admin_role, explicit, requirement.permissions)


async def enforce_permissions(
    request: Request,
    subject: Subject = Depends(get_current_subject),
) -> Subject:
    """
    Enforce the requirement bound to the current route.

    Routes with no binding at operation or collection level follow the
    AUTH_UNDECLARED_POLICY setting.
    """
    operation_id = operation_id_for(request)
    requirement = get_requirement_table(request).resolve(operation_id)

    if requirement is None:
        if get_settings_for_auth(request).deny_undeclared:
            logger.warning(f"Denied undeclared operation {operation_id!r} for {subject.user_id}")
            raise _forbidden()
        return subject

    if not evaluate_requirement(get_resolver(request), subject, requirement):
        logger.info(
            f"Permission denied for {subject.user_id} on {operation_id}",
            extra={"required": requirement.to_dict()},
        )
        raise _forbidden()

    return subject


def require_permissions(
    *permissions: Permission,
    combinator: Combinator = Combinator.ANY,
) -> Callable:
    """
    Dependency factory for a one-off permission check on a single route.

    Usage:
        @router.delete("/x", dependencies=[Depends(require_permissions(Permission.MANAGE_USERS))])
    """
    requirement = require(*permissions, combinator=combinator)

    async def dependency(
        request: Request,
        subject: Subject = Depends(get_current_subject),
    ) -> Subject:
        if not evaluate_requirement(get_resolver(request), subject, requirement):
            raise _forbidden()
        return subject

    return dependency
