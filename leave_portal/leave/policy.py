"""Leave policy table — which buckets each policy class gets and how they accrue.

Policy classes are derived from the employee's free-text position:

  - Standard: CL 8/leave-year, EL 2.5/month from the second calendar month,
    half-days come out of CL first and spill over into EL.
  - JRF:      CL 8/leave-year with half-days folded in; no EL.
  - YP:       CL 8/leave-year; NL 1.5/month from 2026-01-01; half-days go to
              CL before that date and to NL from it onwards; no EL.

Every class also tracks HalfDay and LeaveWithoutPay usage.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from leave_portal.common.constants import (
    LEAVE_TYPE_ALIASES,
    NORMAL_LEAVE_START,
    POSITION_MARKERS,
    HalfDayRouting,
    LeaveType,
    PolicyClass,
)

_SEPARATORS = re.compile(r"[\s_\-]+")


@dataclass(frozen=True)
class AccrualRule:
    """Monthly credit for a carry-forward bucket."""

    leave_type: LeaveType
    rate: Decimal
    grace_months: int = 0
    starts_on: Optional[date] = None

    def credits(self, month_index: int, month_start: date) -> bool:
        """Whether the month ``month_index`` months after joining earns a credit."""
        if month_index < self.grace_months:
            return False
        return self.starts_on is None or month_start >= self.starts_on


@dataclass(frozen=True)
class LeavePolicy:
    policy_class: PolicyClass
    casual_allocation: Decimal
    accruals: tuple[AccrualRule, ...]
    half_day_routing: HalfDayRouting
    half_day_cutover: Optional[date] = None

    def accrual_for(self, leave_type: LeaveType) -> Optional[AccrualRule]:
        for rule in self.accruals:
            if rule.leave_type == leave_type:
                return rule
        return None

    def offers(self, leave_type: LeaveType) -> bool:
        if leave_type in (LeaveType.casual, LeaveType.half_day, LeaveType.without_pay):
            return True
        return self.accrual_for(leave_type) is not None

    @property
    def buckets(self) -> list[LeaveType]:
        """Report buckets in display order. EL is always listed so its
        historical usage stays visible to classes that no longer accrue it."""
        order = [LeaveType.casual, LeaveType.earned]
        if self.offers(LeaveType.normal):
            order.append(LeaveType.normal)
        order.extend([LeaveType.half_day, LeaveType.without_pay])
        return order

    @property
    def half_day_spill_target(self) -> Optional[LeaveType]:
        """Bucket that absorbs half-days once the leave year's CL is used up."""
        if self.half_day_routing == HalfDayRouting.casual_then_earned:
            return LeaveType.earned
        return None

    def half_day_target(self, on: date) -> LeaveType:
        """Bucket a half-day dated ``on`` is deducted from first."""
        if (
            self.half_day_routing == HalfDayRouting.casual_until_cutover_then_normal
            and self.half_day_cutover is not None
            and on >= self.half_day_cutover
        ):
            return LeaveType.normal
        return LeaveType.casual


CASUAL_PER_YEAR = Decimal("8")

POLICY_TABLE: dict[PolicyClass, LeavePolicy] = {
    PolicyClass.standard: LeavePolicy(
        policy_class=PolicyClass.standard,
        casual_allocation=CASUAL_PER_YEAR,
        accruals=(
            AccrualRule(LeaveType.earned, Decimal("2.5"), grace_months=1),
        ),
        half_day_routing=HalfDayRouting.casual_then_earned,
    ),
    PolicyClass.jrf: LeavePolicy(
        policy_class=PolicyClass.jrf,
        casual_allocation=CASUAL_PER_YEAR,
        accruals=(),
        half_day_routing=HalfDayRouting.casual,
    ),
    PolicyClass.yp: LeavePolicy(
        policy_class=PolicyClass.yp,
        casual_allocation=CASUAL_PER_YEAR,
        accruals=(
            AccrualRule(LeaveType.normal, Decimal("1.5"), starts_on=NORMAL_LEAVE_START),
        ),
        half_day_routing=HalfDayRouting.casual_until_cutover_then_normal,
        half_day_cutover=NORMAL_LEAVE_START,
    ),
}


def resolve_policy_class(position: Optional[str]) -> PolicyClass:
    """Map a free-text position onto a policy class.

    Matching is a case-insensitive substring test in POSITION_MARKERS order,
    so a position mentioning both "jrf" and "yp" resolves to JRF.
    """
    if not position:
        return PolicyClass.standard
    lowered = position.lower()
    for marker, policy_class in POSITION_MARKERS:
        if marker in lowered:
            return policy_class
    return PolicyClass.standard


def get_policy(policy_class: PolicyClass) -> LeavePolicy:
    return POLICY_TABLE[policy_class]


def normalize_leave_type(raw: Optional[str]) -> Optional[LeaveType]:
    """Map "CL", "cl", "Casual Leave", "casual_leave"... onto a LeaveType."""
    if not raw:
        return None
    key = _SEPARATORS.sub("", raw).lower()
    return LEAVE_TYPE_ALIASES.get(key)
