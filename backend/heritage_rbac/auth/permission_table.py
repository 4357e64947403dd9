"""
Permission Table - declarative source of truth for what each role may do.

Layout: ``role -> resource segments -> action -> rule``. Resource paths nest
(``content.artifacts``) and are addressed externally as dotted strings or
``ResourcePath`` members.

A rule is one of:
- ``True`` / ``False`` - unconditional grant / deny
- ``"all"`` - unconditional grant, same as ``True``
- ``"public"`` - unconditional grant for publicly visible content
- any other string - a scope token resolved by the scope registry

Roles without an entry have no permissions at all. The table is frozen at
import time and validated fail-fast: a malformed table is a configuration
error raised at startup, never at evaluation time.
"""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any, Final, Union

from ..errors import PermissionTableError
from .roles import Role, normalize_role

Rule = Union[bool, str]
PermissionTable = Mapping[str, Mapping[str, Any]]

GRANT_ALL: Final[str] = "all"
GRANT_PUBLIC: Final[str] = "public"
GRANT_RULES: Final[frozenset[str]] = frozenset({GRANT_ALL, GRANT_PUBLIC})


class ResourcePath(str, Enum):
    """Known resource locations in the permission table."""
    USERS = "users"
    MUSEUMS = "museums"
    CONTENT_ARTIFACTS = "content.artifacts"
    CONTENT_EVENTS = "content.events"
    CONTENT_MUSEUMS = "content.museums"
    RENTALS = "rentals"
    SYSTEM = "system"
    ANALYTICS = "analytics"
    STAFF = "staff"
    PROFILE = "profile"


# ============================================================================
# TABLE
# ============================================================================

_PERMISSIONS: dict[str, dict[str, Any]] = {
    # Platform-wide control
    Role.SUPER_ADMIN.value: {
        "users": {
            "create": True,
            "read": "all",
            "update": "all",
            "delete": "all",
            "changeRole": "all",
            "activate": "all",
            "viewSensitive": True,
        },
        "museums": {
            "create": True,
            "read": "all",
            "update": "all",
            "delete": "all",
            "approve": True,
            "verify": True,
            "override": True,
        },
        "content": {
            "artifacts": {
                "read": "all",
                "approve": "final",
                "reject": "final",
                "publish": True,
                "unpublish": True,
                "delete": "all",
            },
            "events": {
                "read": "all",
                "approve": "final",
                "reject": "final",
                "modify": "all",
                "cancel": "all",
            },
        },
        "rentals": {
            "read": "all",
            "approve": "final",
            "reject": "final",
            "terminate": "all",
            "pricing": "modify",
            "policies": "create",
        },
        "system": {
            "settings": "full",
            "backups": True,
            "logs": "all",
            "analytics": "global",
            "notifications": "broadcast",
            "maintenance": True,
        },
    },

    # Museum-specific control; approvals are first level only
    Role.MUSEUM_ADMIN.value: {
        "users": {
            "create": False,
            "read": "museum_staff",
            "update": "museum_staff",
            "delete": False,
            "changeRole": False,
            "activate": "museum_staff",
            "invite": "museum_staff",
        },
        "museums": {
            "create": False,
            "read": "own",
            "update": "own",
            "delete": False,
            "approve": False,
            "verify": False,
            "staff": "manage",
        },
        "content": {
            "artifacts": {
                "read": "own",
                "create": True,
                "update": "own",
                "approve": "first_level",
                "reject": "own_submissions",
                "submit": "to_super_admin",
                "delete": "own_drafts",
            },
            "events": {
                "read": "own",
                "create": True,
                "update": "own",
                "submit": "for_approval",
                "cancel": "own",
            },
        },
        "rentals": {
            "read": "own_artifacts",
            "approve": "initial",
            "reject": "initial",
            "pricing": "set",
            "conditions": "set",
            "communicate": True,
        },
        "analytics": {
            "museum": "own",
            "visitors": "own",
            "revenue": "own",
            "artifacts": "own",
            "export": "own_data",
        },
        "staff": {
            "manage": "own_museum",
            "assign_roles": "museum_roles",
            "permissions": "museum_scope",
            "schedule": True,
        },
    },

    # Basic access
    Role.VISITOR.value: {
        "content": {
            "artifacts": {"read": "public"},
            "events": {"read": "public"},
            "museums": {"read": "public"},
        },
        "rentals": {
            "request": "public_artifacts",
            "view": "own_requests",
        },
        "profile": {"update": "own"},
    },
}


# ============================================================================
# VALIDATION AND FREEZING
# ============================================================================

def _validate_node(node: Any, where: str, errors: list[str]) -> None:
    if not isinstance(node, Mapping):
        errors.append(f"{where}: expected a mapping, got {type(node).__name__}")
        return
    if not node:
        errors.append(f"{where}: empty mapping")
    for key, value in node.items():
        if not isinstance(key, str) or not key or "." in key:
            errors.append(f"{where}: invalid key {key!r}")
            continue
        path = f"{where}.{key}"
        if isinstance(value, Mapping):
            _validate_node(value, path, errors)
        elif isinstance(value, bool):
            continue
        elif isinstance(value, str):
            if not value:
                errors.append(f"{path}: empty scope token")
        else:
            errors.append(f"{path}: invalid rule {value!r}")


def validate_table(table: Mapping[Any, Any]) -> None:
    """
    Validate the structure of a permission table.

    Raises:
        PermissionTableError: With every problem found listed in ``details``
    """
    errors: list[str] = []
    if not isinstance(table, Mapping):
        raise PermissionTableError(
            "Permission table must be a mapping",
            details=[f"got {type(table).__name__}"],
        )
    for role, resources in table.items():
        if not isinstance(role, str) or not role:
            errors.append(f"invalid role key {role!r}")
            continue
        _validate_node(resources, role, errors)
        if isinstance(resources, Mapping):
            for key, value in resources.items():
                if not isinstance(value, Mapping):
                    errors.append(f"{role}.{key}: rule outside of a resource")

    if errors:
        raise PermissionTableError(
            "Permission table validation failed:\n"
            + "\n".join(f"  - {e}" for e in errors),
            details=errors,
        )


def freeze_table(node: Mapping[str, Any]) -> Mapping[str, Any]:
    """Recursively copy ``node`` into read-only mappings."""
    return MappingProxyType({
        key: freeze_table(value) if isinstance(value, Mapping) else value
        for key, value in node.items()
    })


def build_table(table: Mapping[str, Any]) -> PermissionTable:
    validate_table(table)
    return freeze_table(table)


PERMISSIONS: Final[PermissionTable] = build_table(_PERMISSIONS)


# ============================================================================
# LOOKUP
# ============================================================================

def split_resource_path(resource_path: object) -> tuple[str, ...] | None:
    """Split a dotted resource path, or return None when it is malformed."""
    if isinstance(resource_path, ResourcePath):
        value = resource_path.value
    elif isinstance(resource_path, str):
        value = resource_path
    else:
        return None
    segments = tuple(value.split("."))
    if not value or any(not segment for segment in segments):
        return None
    return segments


def role_permissions(table: PermissionTable, role: object) -> Mapping[str, Any] | None:
    name = normalize_role(role)
    if not name:
        return None
    permissions = table.get(name)
    return permissions if isinstance(permissions, Mapping) else None


def resolve_resource(
    permissions: Mapping[str, Any],
    segments: tuple[str, ...],
) -> Mapping[str, Any] | None:
    current: Any = permissions
    for segment in segments:
        if not isinstance(current, Mapping):
            return None
        current = current.get(segment)
        if current is None:
            return None
    return current if isinstance(current, Mapping) else None


def lookup_rule(
    table: PermissionTable,
    role: object,
    resource_path: object,
    action: object,
) -> Rule | None:
    """
    Find the rule stored at ``table[role][resource_path][action]``.

    Returns:
        The rule, or None when any level of the lookup is missing
    """
    permissions = role_permissions(table, role)
    segments = split_resource_path(resource_path)
    if permissions is None or segments is None:
        return None
    resource = resolve_resource(permissions, segments)
    if resource is None or not isinstance(action, str) or not action:
        return None
    rule = resource.get(action)
    if isinstance(rule, (bool, str)):
        return rule
    return None


def iter_rules(table: PermissionTable) -> Iterator[tuple[str, str, str, Rule]]:
    """Yield ``(role, dotted_path, action, rule)`` for every leaf in the table."""

    def walk(node: Mapping[str, Any], prefix: tuple[str, ...]):
        for key, value in node.items():
            if isinstance(value, Mapping):
                yield from walk(value, prefix + (key,))
            elif prefix:
                yield ".".join(prefix), key, value

    for role, resources in table.items():
        for path, action, rule in walk(resources, ()):
            yield role, path, action, rule
