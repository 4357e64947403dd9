"""
Permission Service - evaluates ``(subject, action, resource_path, target)``.

Lookup walks ``table[role][resource segments][action]`` and evaluates the rule
found there:
- ``True``, ``"all"`` or ``"public"`` grants
- ``False`` denies
- any other string is a scope token resolved through the ScopeRegistry

Every branch fails closed. ``can`` and ``evaluate`` never raise: unknown
roles, resources, actions and scopes, malformed input, a missing target for a
scope rule and errors inside scope predicates all resolve to a deny. The
reason is kept on the Decision for logging and auditing only; callers get a
plain yes/no.

The service holds no mutable state, so one instance can be shared by every
request handler. It is built once at startup and passed to callers.
"""
from __future__ import annotations

import inspect
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..auth.permission_table import (
    GRANT_RULES,
    PERMISSIONS,
    PermissionTable,
    ResourcePath,
    Rule,
    build_table,
    resolve_resource,
    role_permissions,
    split_resource_path,
)
from ..domain.ports.staff import StaffRoster
from ..errors import AuthError, PermissionDeniedError
from .audit import DecisionAuditor
from .scopes import ScopePredicate, ScopeRegistry, default_scopes, subject_role

logger = logging.getLogger("heritage_rbac.permissions")


class DenyReason(str, Enum):
    MISSING_SUBJECT = "missing_subject"
    INVALID_REQUEST = "invalid_request"
    UNKNOWN_ROLE = "unknown_role"
    UNKNOWN_RESOURCE = "unknown_resource"
    UNKNOWN_ACTION = "unknown_action"
    EXPLICIT_DENY = "explicit_deny"
    UNKNOWN_SCOPE = "unknown_scope"
    MISSING_TARGET = "missing_target"
    SCOPE_FAILED = "scope_failed"
    SCOPE_ERROR = "scope_error"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: DenyReason | None = None
    rule: Rule | None = None

    def __bool__(self) -> bool:
        return self.allowed


@dataclass(frozen=True)
class _PendingScope:
    rule: str
    predicate: ScopePredicate


Check = tuple[Any, ...]


class PermissionService:
    """Fail-closed permission evaluator over an immutable permission table."""

    def __init__(
        self,
        table: PermissionTable | None = None,
        scopes: ScopeRegistry | None = None,
        *,
        roster: StaffRoster | None = None,
        auditor: DecisionAuditor | None = None,
    ):
        """
        Args:
            table: Permission table; defaults to the built-in PERMISSIONS.
                Other tables are validated and frozen here.
            scopes: Scope registry; defaults to default_scopes(roster)
            roster: Staff roster used by the default ``museum_staff`` scope
            auditor: Optional audit trail for decisions

        Raises:
            PermissionTableError: If ``table`` is malformed
        """
        self._table = PERMISSIONS if table is None or table is PERMISSIONS else build_table(table)
        self._scopes = scopes if scopes is not None else default_scopes(roster)
        self._auditor = auditor

    @property
    def table(self) -> PermissionTable:
        return self._table

    @property
    def scopes(self) -> ScopeRegistry:
        return self._scopes

    @property
    def auditor(self) -> DecisionAuditor | None:
        return self._auditor

    # ------------------------------------------------------------------
    # Boolean API
    # ------------------------------------------------------------------

    def can(
        self,
        subject: Any,
        action: str,
        resource_path: str | ResourcePath,
        target: Any = None,
    ) -> bool:
        """
        Check whether ``subject`` may perform ``action`` on ``resource_path``.

        Args:
            subject: Principal exposing ``role``, ``id`` and optionally ``museum_id``
            action: Action name, e.g. "approve"
            resource_path: Dotted resource path, e.g. "content.artifacts"
            target: Entity the action applies to; needed by scope rules

        Returns:
            bool: True only when a rule explicitly grants the action
        """
        return self.evaluate(subject, action, resource_path, target).allowed

    async def can_async(
        self,
        subject: Any,
        action: str,
        resource_path: str | ResourcePath,
        target: Any = None,
    ) -> bool:
        """Like ``can`` but awaits scope predicates backed by async collaborators."""
        decision = await self.evaluate_async(subject, action, resource_path, target)
        return decision.allowed

    def can_any(self, subject: Any, checks: Iterable[Check]) -> bool:
        """
        Check whether any of ``checks`` is granted.

        Args:
            subject: The acting principal
            checks: ``(action, resource_path)`` or ``(action, resource_path, target)``
        """
        return any(self._can_check(subject, check) for check in checks)

    def can_all(self, subject: Any, checks: Iterable[Check]) -> bool:
        """Check whether every one of ``checks`` is granted. No checks means False."""
        checked = False
        for check in checks:
            checked = True
            if not self._can_check(subject, check):
                return False
        return checked

    def _can_check(self, subject: Any, check: Any) -> bool:
        if not isinstance(check, (tuple, list)) or len(check) not in (2, 3):
            logger.debug("permission_denied reason=malformed check check=%r", check)
            return False
        return self.can(subject, *check)

    def allowed_actions(
        self,
        subject: Any,
        resource_path: str | ResourcePath,
        target: Any = None,
    ) -> list[str]:
        """Actions on ``resource_path`` that ``subject`` would be granted, sorted."""
        segments = split_resource_path(resource_path)
        permissions = role_permissions(self._table, _safe_role(subject))
        if segments is None or permissions is None:
            return []
        resource = resolve_resource(permissions, segments)
        if resource is None:
            return []
        return sorted(
            action
            for action, rule in resource.items()
            if isinstance(rule, (bool, str))
            and self.evaluate(subject, action, resource_path, target, audit=False).allowed
        )

    def require(
        self,
        subject: Any,
        action: str,
        resource_path: str | ResourcePath,
        target: Any = None,
    ) -> None:
        """
        Raise if ``subject`` may not perform the action.

        Raises:
            AuthError: 401 when there is no subject
            PermissionDeniedError: 403 when the action is not granted
        """
        if subject is None:
            raise AuthError()
        decision = self.evaluate(subject, action, resource_path, target)
        if not decision.allowed:
            raise _denied(action, resource_path)

    async def require_async(
        self,
        subject: Any,
        action: str,
        resource_path: str | ResourcePath,
        target: Any = None,
    ) -> None:
        if subject is None:
            raise AuthError()
        decision = await self.evaluate_async(subject, action, resource_path, target)
        if not decision.allowed:
            raise _denied(action, resource_path)

    # ------------------------------------------------------------------
    # Decision API
    # ------------------------------------------------------------------

    def evaluate(
        self,
        subject: Any,
        action: str,
        resource_path: str | ResourcePath,
        target: Any = None,
        *,
        audit: bool = True,
    ) -> Decision:
        step = self._match(subject, action, resource_path, target)
        if isinstance(step, _PendingScope):
            step = self._run_scope(step, subject, target)
        return self._finish(step, subject, action, resource_path, target, audit)

    async def evaluate_async(
        self,
        subject: Any,
        action: str,
        resource_path: str | ResourcePath,
        target: Any = None,
        *,
        audit: bool = True,
    ) -> Decision:
        step = self._match(subject, action, resource_path, target)
        if isinstance(step, _PendingScope):
            step = await self._run_scope_async(step, subject, target)
        return self._finish(step, subject, action, resource_path, target, audit)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _match(
        self,
        subject: Any,
        action: Any,
        resource_path: Any,
        target: Any,
    ) -> Decision | _PendingScope:
        if subject is None:
            return Decision(False, DenyReason.MISSING_SUBJECT)

        segments = split_resource_path(resource_path)
        if not isinstance(action, str) or not action or segments is None:
            return Decision(False, DenyReason.INVALID_REQUEST)

        permissions = role_permissions(self._table, _safe_role(subject))
        if permissions is None:
            return Decision(False, DenyReason.UNKNOWN_ROLE)

        resource = resolve_resource(permissions, segments)
        if resource is None:
            return Decision(False, DenyReason.UNKNOWN_RESOURCE)

        rule = resource.get(action)
        if not isinstance(rule, (bool, str)):
            return Decision(False, DenyReason.UNKNOWN_ACTION)

        if rule is True or rule in GRANT_RULES:
            return Decision(True, rule=rule)
        if rule is False:
            return Decision(False, DenyReason.EXPLICIT_DENY, rule)

        predicate = self._scopes.get(rule)
        if predicate is None:
            return Decision(False, DenyReason.UNKNOWN_SCOPE, rule)
        if target is None:
            return Decision(False, DenyReason.MISSING_TARGET, rule)
        return _PendingScope(rule, predicate)

    def _run_scope(self, step: _PendingScope, subject: Any, target: Any) -> Decision:
        try:
            result = step.predicate(subject, target)
        except Exception:
            logger.exception("scope_error scope=%s", step.rule)
            return Decision(False, DenyReason.SCOPE_ERROR, step.rule)

        if inspect.isawaitable(result):
            if inspect.iscoroutine(result):
                result.close()
            logger.warning(
                "scope_error scope=%s reason=awaitable result in sync evaluation, use can_async",
                step.rule,
            )
            return Decision(False, DenyReason.SCOPE_ERROR, step.rule)

        return _scope_decision(step.rule, result)

    async def _run_scope_async(
        self, step: _PendingScope, subject: Any, target: Any
    ) -> Decision:
        try:
            result = step.predicate(subject, target)
            if inspect.isawaitable(result):
                result = await result
        except Exception:
            logger.exception("scope_error scope=%s", step.rule)
            return Decision(False, DenyReason.SCOPE_ERROR, step.rule)

        return _scope_decision(step.rule, result)

    def _finish(
        self,
        decision: Decision,
        subject: Any,
        action: Any,
        resource_path: Any,
        target: Any,
        audit: bool,
    ) -> Decision:
        resource = _path_text(resource_path)
        if not decision.allowed:
            logger.debug(
                "permission_denied role=%s action=%s resource=%s reason=%s rule=%s",
                _safe_role(subject),
                action,
                resource,
                decision.reason.value if decision.reason else None,
                decision.rule,
            )
        if audit and self._auditor is not None:
            self._auditor.record(
                decision,
                subject=subject,
                action=action,
                resource=resource,
                target=target,
            )
        return decision


def _scope_decision(rule: str, result: Any) -> Decision:
    if result is True:
        return Decision(True, rule=rule)
    return Decision(False, DenyReason.SCOPE_FAILED, rule)


def _safe_role(subject: Any) -> str | None:
    try:
        return subject_role(subject)
    except Exception:
        logger.warning("permission_denied reason=unreadable subject role", exc_info=True)
        return None


def _path_text(resource_path: Any) -> str | None:
    if isinstance(resource_path, ResourcePath):
        return resource_path.value
    if isinstance(resource_path, str):
        return resource_path
    return None


def _denied(action: Any, resource_path: Any) -> PermissionDeniedError:
    resource = _path_text(resource_path)
    return PermissionDeniedError(
        f"Permission denied: {action} on {resource} required",
        details={"action": action, "resource": resource},
    )
