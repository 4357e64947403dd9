"""
Role-based permission engine for the heritage platform.

The web layer authenticates a caller, builds a subject, fetches the target
entity when needed and asks ``PermissionService.can`` for a yes/no answer.
"""
from .auth.permission_table import PERMISSIONS, ResourcePath
from .auth.roles import Role
from .bootstrap import configure_logging, create_permission_service
from .schemas.subject import Subject, Target
from .services.permission_service import Decision, DenyReason, PermissionService
from .services.scopes import ScopeRegistry, default_scopes

__all__ = [
    "PERMISSIONS",
    "Decision",
    "DenyReason",
    "PermissionService",
    "ResourcePath",
    "Role",
    "ScopeRegistry",
    "Subject",
    "Target",
    "configure_logging",
    "create_permission_service",
    "default_scopes",
]
