"""Enums and constants for the leave balance engine — matching the backend's wire values."""

from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal


# ── Leave ───────────────────────────────────────────────────────────

class LeaveType(str, enum.Enum):
    casual = "CasualLeave"
    earned = "EarnedLeave"
    half_day = "HalfDay"
    without_pay = "LeaveWithoutPay"
    normal = "NormalLeave"


class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


# ── Policy ──────────────────────────────────────────────────────────

class PolicyClass(str, enum.Enum):
    standard = "standard"
    jrf = "jrf"
    yp = "yp"


class HalfDayRouting(str, enum.Enum):
    """Where approved half-day units are deducted from."""

    casual_then_earned = "casual_then_earned"
    casual = "casual"
    casual_until_cutover_then_normal = "casual_until_cutover_then_normal"


class PendingHalfDayMode(str, enum.Enum):
    report_only = "report_only"
    apportioned = "apportioned"


class NotComputableReason(str, enum.Enum):
    joining_date_missing = "joining_date_missing"
    not_yet_joined = "not_yet_joined"


# ── Presentation ────────────────────────────────────────────────────

class BalanceLabel(str, enum.Enum):
    left = "left"
    deficit = "deficit"
    deducted = "deducted"
    not_applicable = "not_applicable"


# Keys are lower-cased with spaces, dashes and underscores stripped.
LEAVE_TYPE_ALIASES: dict[str, LeaveType] = {
    "cl": LeaveType.casual,
    "casual": LeaveType.casual,
    "casualleave": LeaveType.casual,
    "el": LeaveType.earned,
    "earned": LeaveType.earned,
    "earnedleave": LeaveType.earned,
    "hd": LeaveType.half_day,
    "half": LeaveType.half_day,
    "halfday": LeaveType.half_day,
    "lwp": LeaveType.without_pay,
    "withoutpay": LeaveType.without_pay,
    "leavewithoutpay": LeaveType.without_pay,
    "nl": LeaveType.normal,
    "normal": LeaveType.normal,
    "normalleave": LeaveType.normal,
}

# Position substrings checked in order; first match wins.
POSITION_MARKERS: tuple[tuple[str, PolicyClass], ...] = (
    ("jrf", PolicyClass.jrf),
    ("yp", PolicyClass.yp),
)

# ── Misc constants ──────────────────────────────────────────────────

HALF_DAY_UNIT = Decimal("0.5")
ZERO = Decimal("0")
DISPLAY_QUANTUM = Decimal("0.1")
NORMAL_LEAVE_START = date(2026, 1, 1)
DEFAULT_HISTORY_MONTHS = 6

DATE_FORMAT = "%b %d, %Y"         # Jan 15, 2023
MONTH_FORMAT = "%b %Y"            # Jan 2023
