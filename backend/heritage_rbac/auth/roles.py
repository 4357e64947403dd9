"""
Role definitions and the role hierarchy.

Roles are ordered by authority level. Higher roles can reach functions that
require a lower role, which is what the "X or higher" checks of the web
layer rely on.

Hierarchy (highest to lowest):
1. super_admin  (100) - platform owner
2. admin        (80)  - platform administrator
3. museum_admin (60)  - manager of a single museum
4. tour_admin   (50)  - tour administration
5. museum       (40)  - museum staff / curator
6. organizer    (30)  - tour organizer
7. educator     (20)  - educational content creator
8. visitor      (10)  - regular user

Unknown role strings have level 0 and never pass a hierarchy check.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from types import MappingProxyType
from typing import Final


class Role(str, Enum):
    """Closed set of roles known to the permission engine."""
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    MUSEUM_ADMIN = "museum_admin"
    MUSEUM = "museum"
    ORGANIZER = "organizer"
    EDUCATOR = "educator"
    TOUR_ADMIN = "tour_admin"
    VISITOR = "visitor"


ALL_ROLES: Final[frozenset[str]] = frozenset(role.value for role in Role)

ROLE_LEVELS: Final[dict[str, int]] = {
    Role.VISITOR.value: 10,
    Role.EDUCATOR.value: 20,
    Role.ORGANIZER.value: 30,
    Role.MUSEUM.value: 40,
    Role.TOUR_ADMIN.value: 50,
    Role.MUSEUM_ADMIN.value: 60,
    Role.ADMIN.value: 80,
    Role.SUPER_ADMIN.value: 100,
}


def normalize_role(role: object) -> str | None:
    """Return the plain role string, or None when ``role`` is not a string."""
    if isinstance(role, Role):
        return role.value
    if isinstance(role, str):
        return role
    return None


def role_level(role: object) -> int:
    name = normalize_role(role)
    if name is None:
        return 0
    return ROLE_LEVELS.get(name, 0)


def has_role_access(role: object, required_role: object) -> bool:
    """
    Check whether ``role`` has at least the authority of ``required_role``.

    Args:
        role: The caller's role
        required_role: Minimum role required

    Returns:
        bool: False for unknown roles on either side
    """
    level = role_level(role)
    required = role_level(required_role)
    if level == 0 or required == 0:
        return False
    return level >= required


def has_any_role_access(role: object, allowed_roles: Iterable[object]) -> bool:
    return any(has_role_access(role, allowed) for allowed in allowed_roles)


def accessible_roles(role: object) -> list[Role]:
    """Roles at or below ``role``, highest first."""
    level = role_level(role)
    if level == 0:
        return []
    reachable = [r for r in Role if ROLE_LEVELS[r.value] <= level]
    return sorted(reachable, key=lambda r: ROLE_LEVELS[r.value], reverse=True)


def is_higher_role(role: object, other: object) -> bool:
    return role_level(role) > role_level(other)


def can_manage_role(manager_role: object, target_role: object) -> bool:
    """
    Check whether a user with ``manager_role`` may manage users of ``target_role``.

    super_admin manages everyone. Everybody else only manages strictly lower
    roles, so peers cannot promote or demote each other.
    """
    if normalize_role(manager_role) == Role.SUPER_ADMIN.value:
        return True
    if role_level(manager_role) == 0 or role_level(target_role) == 0:
        return False
    return is_higher_role(manager_role, target_role)


# ============================================================================
# NAMED CAPABILITIES
# ============================================================================

# Capabilities each role adds on top of the roles below it
ROLE_CAPABILITIES: Final[Mapping[str, tuple[str, ...]]] = MappingProxyType({
    Role.VISITOR.value: (
        "view_content",
        "book_tours",
        "rate_artifacts",
        "basic_chat",
    ),
    Role.EDUCATOR.value: (
        "create_educational_content",
        "manage_courses",
        "view_learning_analytics",
    ),
    Role.ORGANIZER.value: (
        "create_tours",
        "manage_tours",
        "view_tour_analytics",
        "handle_bookings",
    ),
    Role.MUSEUM.value: (
        "add_artifacts",
        "edit_museum_artifacts",
        "view_museum_analytics",
        "manage_museum_content",
    ),
    Role.TOUR_ADMIN.value: (
        "approve_tours",
        "manage_all_tours",
        "tour_system_settings",
    ),
    Role.MUSEUM_ADMIN.value: (
        "manage_museum_profile",
        "approve_museum_artifacts",
        "manage_museum_staff",
        "approve_museum_rentals",
        "museum_analytics",
        "museum_events",
        "museum_notifications",
    ),
    Role.ADMIN.value: (
        "manage_users",
        "manage_general_content",
        "view_platform_analytics",
    ),
    Role.SUPER_ADMIN.value: (
        "full_platform_access",
        "manage_all_users",
        "manage_all_museums",
        "manage_system_settings",
        "approve_all_content",
        "manage_rentals",
        "platform_analytics",
        "heritage_sites",
    ),
})


def _ordered_unique(roles_in_order: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    capabilities: list[str] = []
    for name in roles_in_order:
        for capability in ROLE_CAPABILITIES.get(name, ()):
            if capability not in seen:
                seen.add(capability)
                capabilities.append(capability)
    return capabilities


ALL_CAPABILITIES: Final[frozenset[str]] = frozenset(
    _ordered_unique(ROLE_CAPABILITIES)
)


def role_capabilities(role: object) -> list[str]:
    """
    Capabilities of ``role`` and every role below it, lowest role first.

    Returns:
        list[str]: Deduplicated capabilities; empty for unknown roles
    """
    level = role_level(role)
    if level == 0:
        return []
    by_level = sorted(ROLE_LEVELS, key=ROLE_LEVELS.__getitem__)
    return _ordered_unique(name for name in by_level if ROLE_LEVELS[name] <= level)


def has_capability(role: object, capability: object) -> bool:
    """
    Check whether ``role`` holds ``capability``, directly or through a lower role.

    super_admin holds every known capability. Unknown roles and unknown
    capability names are refused.
    """
    if not isinstance(capability, str) or capability not in ALL_CAPABILITIES:
        return False
    return capability in role_capabilities(role)
