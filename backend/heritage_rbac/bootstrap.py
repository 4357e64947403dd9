"""Process startup wiring: logging and the permission service."""
from __future__ import annotations

import logging

from .auth.permission_table import PermissionTable
from .config import Settings, get_settings
from .domain.ports.staff import StaffRoster
from .services.audit import DecisionAuditor
from .services.permission_service import PermissionService
from .services.scopes import ScopeRegistry

logger = logging.getLogger("heritage_rbac")


def _resolve_log_level(value: str) -> int:
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    log_level = _resolve_log_level(settings.log_level)

    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
    logger.setLevel(log_level)
    if settings.debug:
        logger.warning("DEBUG=true, do not use in production")


def create_permission_service(
    settings: Settings | None = None,
    *,
    roster: StaffRoster | None = None,
    table: PermissionTable | None = None,
    scopes: ScopeRegistry | None = None,
) -> PermissionService:
    """
    Build the permission service once at startup.

    The returned instance is immutable; hand it to request handlers instead of
    creating one per request.

    Args:
        settings: Settings; read from the environment when omitted
        roster: Staff roster backing the ``museum_staff`` scope
        table: Permission table override
        scopes: Scope registry override; ``roster`` is ignored when given

    Raises:
        PermissionTableError: If ``table`` is malformed
    """
    settings = settings or get_settings()
    auditor = None
    if settings.audit_denials or settings.audit_grants:
        auditor = DecisionAuditor(
            record_denials=settings.audit_denials,
            record_grants=settings.audit_grants,
        )

    service = PermissionService(table, scopes, roster=roster, auditor=auditor)
    logger.info(
        "permission_service_ready roles=%d scopes=%d audit_denials=%s audit_grants=%s",
        len(service.table),
        len(service.scopes),
        settings.audit_denials,
        settings.audit_grants,
    )
    return service
