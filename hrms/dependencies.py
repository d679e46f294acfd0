"""
Shared request dependencies.

The canonical auth dependencies live in hrms.routers.auth_deps and are
re-exported here. `get_clock` supplies "now" for attendance events so that
tests can pin check-in times by overriding it.
"""
from datetime import datetime, timezone
from typing import Callable

from hrms.routers.auth_deps import (
    ensure_self_or_hr,
    get_current_employee,
    require_admin,
    require_hr,
    require_payroll,
    require_role,
)

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    # Aware; attendance converts it into the office zone of each employee
    return datetime.now(timezone.utc)


def get_clock() -> Clock:
    return system_clock


__all__ = [
    "Clock",
    "ensure_self_or_hr",
    "get_clock",
    "get_current_employee",
    "require_admin",
    "require_hr",
    "require_payroll",
    "require_role",
    "system_clock",
]
