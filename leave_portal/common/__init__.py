"""Common module — shared enums and error handling for the leave portal."""

from leave_portal.common.constants import (
    DATE_FORMAT,
    HALF_DAY_UNIT,
    LEAVE_TYPE_ALIASES,
    MONTH_FORMAT,
    NORMAL_LEAVE_START,
    BalanceLabel,
    HalfDayRouting,
    LeaveStatus,
    LeaveType,
    NotComputableReason,
    PendingHalfDayMode,
    PolicyClass,
)
from leave_portal.common.exceptions import (
    AppException,
    ValidationException,
    register_exception_handlers,
)

__all__ = [
    # Constants / Enums
    "BalanceLabel",
    "HalfDayRouting",
    "LeaveStatus",
    "LeaveType",
    "NotComputableReason",
    "PendingHalfDayMode",
    "PolicyClass",
    "LEAVE_TYPE_ALIASES",
    "HALF_DAY_UNIT",
    "NORMAL_LEAVE_START",
    "DATE_FORMAT",
    "MONTH_FORMAT",
    # Exceptions
    "AppException",
    "ValidationException",
    "register_exception_handlers",
]
