"""In-memory staff roster used by the ``museum_staff`` scope."""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

logger = logging.getLogger("heritage_rbac.staff_roster")


class InMemoryStaffRoster:
    """
    Museum staff membership held in memory.

    A user is staff of a museum admin when the user appears on the staff list
    of a museum that admin administers. Identifiers are compared by their
    string form so ObjectId, UUID and plain string ids interoperate.
    """

    def __init__(
        self,
        museum_admins: Mapping[Any, Any],
        museum_staff: Mapping[Any, Iterable[Any]],
    ):
        """
        Args:
            museum_admins: museum id -> id of the user administering it
            museum_staff: museum id -> ids of the museum's staff users
        """
        self._museums_by_admin: dict[str, frozenset[str]] = {}
        for museum_id, admin_id in museum_admins.items():
            key = str(admin_id)
            self._museums_by_admin[key] = self._museums_by_admin.get(
                key, frozenset()
            ) | {str(museum_id)}
        self._staff = MappingProxyType({
            str(museum_id): frozenset(str(user_id) for user_id in staff)
            for museum_id, staff in museum_staff.items()
        })

    def museums_of(self, museum_admin_id: Any) -> frozenset[str]:
        if museum_admin_id is None:
            return frozenset()
        return self._museums_by_admin.get(str(museum_admin_id), frozenset())

    def is_staff_of(self, museum_admin_id: Any, target_user_id: Any) -> bool:
        if museum_admin_id is None or target_user_id is None:
            return False
        user_key = str(target_user_id)
        for museum_id in self.museums_of(museum_admin_id):
            if user_key in self._staff.get(museum_id, frozenset()):
                return True
        logger.debug(
            "staff_check_failed admin_id=%s user_id=%s",
            museum_admin_id,
            target_user_id,
        )
        return False
