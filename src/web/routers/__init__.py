"""
FastAPI Routers.

- admin_roles: administrator and user management (/admin/roles)
- health: liveness and readiness probes (/health)
"""

from .admin_roles import router as admin_roles_router, register_requirements as register_admin_roles_requirements
from .health import router as health_router

__all__ = [
    "admin_roles_router",
    "register_admin_roles_requirements",
    "health_router",
]
