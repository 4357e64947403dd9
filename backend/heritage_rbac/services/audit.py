"""
Decision Auditor - structured audit trail for permission decisions.

Entries are written to the standard logger as JSON. Auditing is
fire-and-forget: a failure while building or writing an entry is logged and
never changes the decision handed back to the caller.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from .scopes import read_field

if TYPE_CHECKING:
    from .permission_service import Decision

logger = logging.getLogger("heritage_rbac.audit")


class DecisionAuditor:
    """Write permission decisions to the audit log."""

    def __init__(self, *, record_denials: bool = True, record_grants: bool = False):
        self.record_denials = record_denials
        self.record_grants = record_grants

    def record(
        self,
        decision: Decision,
        *,
        subject: Any,
        action: Any,
        resource: str | None,
        target: Any = None,
    ) -> None:
        """
        Log one decision in structured JSON format.

        Args:
            decision: The decision that was returned to the caller
            subject: The acting principal
            action: Requested action
            resource: Dotted resource path
            target: Target entity, only its id is recorded
        """
        if decision.allowed and not self.record_grants:
            return
        if not decision.allowed and not self.record_denials:
            return

        try:
            audit_entry = {
                "actor_id": _text(read_field(subject, "id")),
                "actor_role": _text(read_field(subject, "role")),
                "action": _text(action),
                "resource": resource,
                "target_id": _text(read_field(target, "id")),
                "allowed": decision.allowed,
                "reason": decision.reason.value if decision.reason else None,
                "rule": decision.rule,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }

            logger.info(
                "AUDIT: %s",
                json.dumps(audit_entry, ensure_ascii=False),
                extra={"audit_entry": audit_entry},
            )

        except Exception as e:
            logger.error(
                "Audit logging failed for action %s: %s",
                action,
                str(e),
                exc_info=True,
            )


def _text(value: Any) -> str | None:
    if value is None:
        return None
    if hasattr(value, "value") and isinstance(value.value, str):
        return value.value
    return str(value)
