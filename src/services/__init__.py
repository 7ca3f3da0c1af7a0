"""
Services Module - business logic for the marketplace admin API.

Application Services:
- AdminRolesService: administrator and user management
- AdminSeedService: initial admin accounts

Infrastructure Services:
- logging_config: structured logging and the admin audit logger
"""


# These imports are deferred to avoid circular imports
# (security.api_errors -> services.logging_config -> services)
def get_admin_roles_service(session, resolver=None):
    """Get an AdminRolesService bound to session."""
    from .admin_roles_service import AdminRolesService
    if resolver is None:
        return AdminRolesService(session)
    return AdminRolesService(session, resolver)


def get_admin_seed_service(session, settings=None):
    """Get an AdminSeedService bound to session."""
    from .admin_seed_service import AdminSeedService
    return AdminSeedService(session, settings)


__all__ = [
    "get_admin_roles_service",
    "get_admin_seed_service",
]
