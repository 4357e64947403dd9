from __future__ import annotations

from collections.abc import Awaitable
from typing import Any, Protocol


class StaffRoster(Protocol):
    def is_staff_of(
        self, museum_admin_id: Any, target_user_id: Any
    ) -> bool | Awaitable[bool]:
        ...
