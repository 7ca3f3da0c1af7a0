"""
Admin Roles API - administrator and user management.

Endpoints (all under /admin/roles):
- GET   /admin-users                 - Admin users with effective permissions
- GET   /available-roles             - Admin roles the caller may assign
- GET   /available-permissions       - Permissions the caller may grant
- GET   /requirements                - Permission requirement of every route
- GET   /{user_id}/permissions       - Explicit, effective and default permissions
- PUT   /{user_id}/role              - Change an admin's role
- PATCH /{user_id}/permissions       - Replace an admin's explicit permissions
- PUT   /{user_id}/promote-to-admin  - Make a user an admin
- PUT   /{user_id}/revoke-admin      - Remove admin access
- GET   /role-permissions/{role}     - Default permissions of an admin role
- GET   /users                       - Filtered, paginated user list
- GET   /users/search                - Name/email search
- GET   /users/stats/overview        - User statistics
- GET   /users/{user_id}             - User details
- PATCH /users/{user_id}/status      - Update verification flags and profile

Route names double as operation ids for the permission requirement table.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from database.async_engine import get_db_session
from database.repositories.user_repository import UserFilters
from rbac import (
    AdminRole,
    Permission,
    RequirementTable,
    Role,
    Subject,
    enforce_permissions,
    get_current_subject,
    get_resolver,
    require_admin_management,
    require_analytics_view,
    require_role_assignment,
    require_user_management,
    require_user_view,
)
from rbac.dependencies import get_requirement_table
import services
from services.admin_roles_service import AdminRolesService

SCOPE = "admin_roles"

router = APIRouter(
    prefix="/admin/roles",
    tags=["Admin Roles"],
    dependencies=[Depends(enforce_permissions)],
)


def register_requirements(table: RequirementTable) -> RequirementTable:
    """Bind this router's permission requirements into table."""
    table.bind_scope(SCOPE, require_role_assignment())
    table.bind_many([
        (f"{SCOPE}.promote_to_admin", require_admin_management()),
        (f"{SCOPE}.revoke_admin_access", require_admin_management()),
        (f"{SCOPE}.list_users", require_user_view()),
        (f"{SCOPE}.search_users", require_user_view()),
        (f"{SCOPE}.get_user", require_user_view()),
        (f"{SCOPE}.get_user_stats", require_analytics_view()),
        (f"{SCOPE}.update_user_status", require_user_management()),
    ])
    return table


# =============================================================================
# SCHEMAS
# =============================================================================

class UpdateAdminRoleRequest(BaseModel):
    """Request to change an admin's role."""
    admin_role: AdminRole


class UpdatePermissionsRequest(BaseModel):
    """Request to replace an admin's explicit permissions."""
    permissions: List[Permission] = Field(default_factory=list)


class PromoteToAdminRequest(BaseModel):
    """Request to promote a user to admin."""
    admin_role: AdminRole


class UpdateUserStatusRequest(BaseModel):
    """Fields an admin may change on a user account."""
    email_verified: Optional[bool] = None
    phone_verified: Optional[bool] = None
    city: Optional[str] = Field(None, max_length=128)
    business_type: Optional[str] = Field(None, max_length=128)


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_admin_roles_service(
    request: Request,
    session: AsyncSession = Depends(get_db_session),
) -> AdminRolesService:
    return services.get_admin_roles_service(session, get_resolver(request))


# =============================================================================
# ROLE MANAGEMENT
# =============================================================================

@router.get("/admin-users", name=f"{SCOPE}.get_admin_users")
async def get_admin_users(
    subject: Subject = Depends(get_current_subject),
    service: AdminRolesService = Depends(get_admin_roles_service),
):
    users = await service.get_admin_users(subject)
    return {"success": True, "users": users}


@router.get("/available-roles", name=f"{SCOPE}.get_available_roles")
async def get_available_roles(
    subject: Subject = Depends(get_current_subject),
    service: AdminRolesService = Depends(get_admin_roles_service),
):
    return {"success": True, "roles": service.get_available_roles(subject)}


@router.get("/available-permissions", name=f"{SCOPE}.get_available_permissions")
async def get_available_permissions(
    subject: Subject = Depends(get_current_subject),
    service: AdminRolesService = Depends(get_admin_roles_service),
):
    return {"success": True, "permissions": service.get_available_permissions(subject)}


@router.get("/requirements", name=f"{SCOPE}.get_requirements")
async def get_requirements(table: RequirementTable = Depends(get_requirement_table)):
    return {"success": True, "requirements": dict(table.describe())}


@router.get("/role-permissions/{role}", name=f"{SCOPE}.get_role_permissions")
async def get_role_permissions(
    role: str,
    service: AdminRolesService = Depends(get_admin_roles_service),
):
    return {"success": True, "role": role, "permissions": service.get_role_permissions(role)}


# =============================================================================
# USER MANAGEMENT
# Static paths are registered before /users/{user_id}.
# =============================================================================

@router.get("/users", name=f"{SCOPE}.list_users")
async def list_users(
    search: Optional[str] = None,
    role: Optional[Role] = None,
    admin_role: Optional[AdminRole] = None,
    email_verified: Optional[bool] = None,
    phone_verified: Optional[bool] = None,
    city: Optional[str] = None,
    business_type: Optional[str] = None,
    created_after: Optional[datetime] = None,
    created_before: Optional[datetime] = None,
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    subject: Subject = Depends(get_current_subject),
    service: AdminRolesService = Depends(get_admin_roles_service),
):
    filters = UserFilters(
        search=search,
        role=role.value if role else None,
        admin_role=admin_role.value if admin_role else None,
        email_verified=email_verified,
        phone_verified=phone_verified,
        city=city,
        business_type=business_type,
        created_after=created_after,
        created_before=created_before,
    )
    result = await service.list_users(
        subject, filters, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order
    )
    return {"success": True, **result}


@router.get("/users/search", name=f"{SCOPE}.search_users")
async def search_users(
    q: str = Query(..., min_length=1, max_length=255),
    limit: int = Query(10),
    subject: Subject = Depends(get_current_subject),
    service: AdminRolesService = Depends(get_admin_roles_service),
):
    users = await service.search_users(subject, q, limit)
    return {"success": True, "users": users}


@router.get("/users/stats/overview", name=f"{SCOPE}.get_user_stats")
async def get_user_stats(
    subject: Subject = Depends(get_current_subject),
    service: AdminRolesService = Depends(get_admin_roles_service),
):
    return {"success": True, "stats": await service.get_user_stats(subject)}


@router.get("/users/{user_id}", name=f"{SCOPE}.get_user")
async def get_user(
    user_id: str,
    subject: Subject = Depends(get_current_subject),
    service: AdminRolesService = Depends(get_admin_roles_service),
):
    return {"success": True, "user": await service.get_user(subject, user_id)}


@router.patch("/users/{user_id}/status", name=f"{SCOPE}.update_user_status")
async def update_user_status(
    user_id: str,
    body: UpdateUserStatusRequest,
    subject: Subject = Depends(get_current_subject),
    service: AdminRolesService = Depends(get_admin_roles_service),
):
    user = await service.update_user_status(subject, user_id, body.model_dump(exclude_unset=True))
    return {"success": True, "user": user, "message": "User status updated successfully"}


# =============================================================================
# PER-USER ROLE MANAGEMENT
# =============================================================================

@router.get("/{user_id}/permissions", name=f"{SCOPE}.get_user_permissions")
async def get_user_permissions(
    user_id: str,
    subject: Subject = Depends(get_current_subject),
    service: AdminRolesService = Depends(get_admin_roles_service),
):
    permissions = await service.get_user_permissions(subject, user_id)
    return {"success": True, "permissions": permissions}


@router.put("/{user_id}/role", name=f"{SCOPE}.update_user_role")
async def update_user_role(
    user_id: str,
    body: UpdateAdminRoleRequest,
    subject: Subject = Depends(get_current_subject),
    service: AdminRolesService = Depends(get_admin_roles_service),
):
    user = await service.update_user_role(subject, user_id, body.admin_role)
    return {"success": True, "user": user, "message": "User role updated successfully"}


@router.patch("/{user_id}/permissions", name=f"{SCOPE}.update_user_permissions")
async def update_user_permissions(
    user_id: str,
    body: UpdatePermissionsRequest,
    subject: Subject = Depends(get_current_subject),
    service: AdminRolesService = Depends(get_admin_roles_service),
):
    user = await service.update_user_permissions(subject, user_id, body.permissions)
    return {"success": True, "user": user, "message": "User permissions updated successfully"}


@router.put("/{user_id}/promote-to-admin", name=f"{SCOPE}.promote_to_admin")
async def promote_to_admin(
    user_id: str,
    body: PromoteToAdminRequest,
    subject: Subject = Depends(get_current_subject),
    service: AdminRolesService = Depends(get_admin_roles_service),
):
    user = await service.promote_to_admin(subject, user_id, body.admin_role)
    return {"success": True, "user": user, "message": "User promoted to admin successfully"}


@router.put("/{user_id}/revoke-admin", name=f"{SCOPE}.revoke_admin_access")
async def revoke_admin_access(
    user_id: str,
    subject: Subject = Depends(get_current_subject),
    service: AdminRolesService = Depends(get_admin_roles_service),
):
    user = await service.revoke_admin_access(subject, user_id)
    return {"success": True, "user": user, "message": "Admin access revoked successfully"}
