"""
FastAPI application for the Marketplace Admin API.

Routes:
- /admin/roles/... : administrator and user management (permission guarded)
- /health/live     : liveness probe
- /health/ready    : readiness probe

Authorization is wired once here: the app owns the PermissionResolver and
the frozen RequirementTable, and the router-level guard reads both from
app.state.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from config.settings import AuthSettings, Settings, get_auth_settings, get_settings
from database.async_engine import close_database, get_async_session, init_database
from rbac.requirements import RequirementTable
from rbac.resolver import PermissionResolver, default_resolver
from security.api_errors import RequestIDMiddleware, register_exception_handlers
from services import get_admin_seed_service
from web.routers import admin_roles_router, health_router, register_admin_roles_requirements

logger = logging.getLogger(__name__)


def build_requirement_table() -> RequirementTable:
    """Requirement bindings for every mounted router, frozen."""
    table = RequirementTable()
    register_admin_roles_requirements(table)
    return table.freeze()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the schema, optionally seed admins, and dispose the engine on exit."""
    await init_database()

    auth_settings: AuthSettings = app.state.auth_settings
    if auth_settings.seed_admins:
        async with get_async_session() as session:
            await get_admin_seed_service(session, auth_settings).seed_all()

    logger.info(
        "Marketplace admin API started",
        extra={"undeclared_policy": auth_settings.undeclared_policy},
    )
    yield

    await close_database()


def create_app(
    settings: Optional[Settings] = None,
    auth_settings: Optional[AuthSettings] = None,
    resolver: Optional[PermissionResolver] = None,
    requirements: Optional[RequirementTable] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Application settings; loaded from environment when omitted
        auth_settings: Auth settings; loaded from environment when omitted
        resolver: Permission resolver (tests may inject one with another catalog)
        requirements: Requirement table; the default bindings when omitted
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.name,
        version=settings.version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.auth_settings = auth_settings or get_auth_settings()
    app.state.resolver = resolver or default_resolver
    app.state.requirements = requirements if requirements is not None else build_requirement_table()

    register_exception_handlers(app)
    app.add_middleware(RequestIDMiddleware)

    app.include_router(health_router)
    app.include_router(admin_roles_router)

    return app


app = create_app()
