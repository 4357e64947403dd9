"""
Scope evaluation - relationship rules a flat boolean cannot express.

A scope token in the permission table names a predicate
``(subject, target) -> bool``. Predicates live in a ``ScopeRegistry`` so new
scopes are added by registering a function, not by editing the evaluator.
A predicate may return an awaitable when it depends on an async collaborator
(the staff roster); only the async evaluation path resolves those.

Subjects and targets can be mappings or plain objects. Field names accept the
snake_case spelling and the camelCase / Mongo spelling (``museum_id`` and
``museumId``, ``id`` and ``_id``).
"""
from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable, Mapping
from types import MappingProxyType
from typing import Any, Final

from ..auth.permission_table import GRANT_RULES
from ..auth.roles import Role, normalize_role
from ..domain.ports.staff import StaffRoster

ScopePredicate = Callable[[Any, Any], "bool | Awaitable[bool]"]

_FIELD_ALIASES: Final[dict[str, tuple[str, ...]]] = {
    "id": ("id", "_id"),
    "museum_id": ("museum_id", "museumId"),
}


def read_field(obj: Any, name: str) -> Any:
    """Read ``name`` (or one of its aliases) from a mapping or an object."""
    if obj is None:
        return None
    for key in _FIELD_ALIASES.get(name, (name,)):
        if isinstance(obj, Mapping):
            value = obj.get(key)
        else:
            value = getattr(obj, key, None)
        if value is not None:
            return value
    return None


def reference_id(value: Any) -> Any:
    """Id of a reference that may be a raw id or an embedded document."""
    if value is None or isinstance(value, (str, int, uuid.UUID)):
        return value
    nested = read_field(value, "id")
    return nested if nested is not None else value


def same_id(left: Any, right: Any) -> bool:
    left, right = reference_id(left), reference_id(right)
    if left is None or right is None:
        return False
    return str(left) == str(right)


def subject_role(subject: Any) -> str | None:
    return normalize_role(read_field(subject, "role"))


def target_in_subject_museum(subject: Any, target: Any) -> bool:
    return same_id(read_field(target, "museum"), read_field(subject, "museum_id"))


# ============================================================================
# BUILT-IN PREDICATES
# ============================================================================

def own(subject: Any, target: Any) -> bool:
    if target is None:
        return False
    subject_id = read_field(subject, "id")
    return same_id(read_field(target, "admin"), subject_id) or same_id(
        read_field(target, "owner"), subject_id
    )


def own_artifacts(subject: Any, target: Any) -> bool:
    return target is not None and target_in_subject_museum(subject, target)


def first_level(subject: Any, target: Any) -> bool:
    """First-pass approval: museum admins, for their own museum's items only."""
    if subject_role(subject) != Role.MUSEUM_ADMIN.value:
        return False
    return target is not None and target_in_subject_museum(subject, target)


def final(subject: Any, target: Any) -> bool:
    return subject_role(subject) == Role.SUPER_ADMIN.value


def museum_staff(roster: StaffRoster | None) -> ScopePredicate:
    """Build the ``museum_staff`` predicate around a staff roster collaborator."""

    def predicate(subject: Any, target: Any) -> bool | Awaitable[bool]:
        if roster is None or target is None:
            return False
        subject_id = read_field(subject, "id")
        target_id = read_field(target, "id")
        if subject_id is None or target_id is None:
            return False
        return roster.is_staff_of(subject_id, target_id)

    return predicate


# ============================================================================
# REGISTRY
# ============================================================================

class ScopeRegistry:
    """Immutable mapping from scope token to predicate."""

    def __init__(self, scopes: Mapping[str, ScopePredicate] | None = None):
        scopes = dict(scopes or {})
        for name, predicate in scopes.items():
            _validate_scope(name, predicate)
        self._scopes = MappingProxyType(scopes)

    def with_scope(self, name: str, predicate: ScopePredicate) -> ScopeRegistry:
        """Return a new registry with ``name`` bound to ``predicate``."""
        _validate_scope(name, predicate)
        return ScopeRegistry({**self._scopes, name: predicate})

    def without_scope(self, name: str) -> ScopeRegistry:
        return ScopeRegistry(
            {key: value for key, value in self._scopes.items() if key != name}
        )

    def get(self, name: str) -> ScopePredicate | None:
        return self._scopes.get(name)

    def names(self) -> frozenset[str]:
        return frozenset(self._scopes)

    def __contains__(self, name: object) -> bool:
        return name in self._scopes

    def __len__(self) -> int:
        return len(self._scopes)


def _validate_scope(name: object, predicate: object) -> None:
    if not isinstance(name, str) or not name:
        raise ValueError(f"Invalid scope name {name!r}")
    if name in GRANT_RULES:
        raise ValueError(f"Scope name '{name}' is reserved for unconditional grants")
    if not callable(predicate):
        raise ValueError(f"Scope '{name}' predicate must be callable")


def default_scopes(roster: StaffRoster | None = None) -> ScopeRegistry:
    """
    Built-in scopes.

    Args:
        roster: Staff roster for ``museum_staff``; without one that scope denies

    Returns:
        ScopeRegistry: own, museum_staff, own_artifacts, first_level, initial
        and final
    """
    return ScopeRegistry({
        "own": own,
        "museum_staff": museum_staff(roster),
        "own_artifacts": own_artifacts,
        "first_level": first_level,
        "initial": first_level,
        "final": final,
    })
