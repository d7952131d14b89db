"""Presentation boundary — the only place engine quantities are rounded."""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from leave_portal.common.constants import (
    DATE_FORMAT,
    DISPLAY_QUANTUM,
    MONTH_FORMAT,
    ZERO,
    BalanceLabel,
    LeaveType,
    NotComputableReason,
)
from leave_portal.leave.schemas import (
    BucketBalance,
    BucketSummaryOut,
    EmployeeProfileIn,
    HalfDayApportionment,
    LeaveBalanceReport,
    LeaveBalanceSummaryOut,
    LedgerRowOut,
    NotComputable,
    NotComputableOut,
)

BUCKET_NAMES: dict[LeaveType, str] = {
    LeaveType.casual: "Casual Leave (CL)",
    LeaveType.earned: "Earned Leave (EL)",
    LeaveType.normal: "Normal Leave (NL)",
    LeaveType.half_day: "Half Day",
    LeaveType.without_pay: "Leave Without Pay (LWP)",
}

NOT_COMPUTABLE_MESSAGES: dict[NotComputableReason, str] = {
    NotComputableReason.joining_date_missing: (
        "Joining date not available. Cannot calculate leave balance."
    ),
    NotComputableReason.not_yet_joined: "Employee has not joined yet.",
}


def round_days(value: Decimal) -> Decimal:
    """Round a day quantity to one decimal place, halves away from zero."""
    rounded = value.quantize(DISPLAY_QUANTUM, rounding=ROUND_HALF_UP)
    # Avoid "-0.0" for tiny deficits
    return rounded if rounded != 0 else abs(rounded)


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def format_month(value: date) -> str:
    return value.strftime(MONTH_FORMAT)


def _label(bucket: BucketBalance) -> BalanceLabel:
    if not bucket.applicable:
        return BalanceLabel.not_applicable
    if bucket.leave_type == LeaveType.without_pay:
        return BalanceLabel.deducted
    if bucket.in_deficit:
        return BalanceLabel.deficit
    return BalanceLabel.left


def _percent_remaining(bucket: BucketBalance) -> Optional[int]:
    if not bucket.applicable:
        return None
    if bucket.leave_type == LeaveType.casual:
        base = bucket.allocated
    elif bucket.is_accrual:
        base = bucket.accumulated
    else:
        return None
    if base <= 0:
        return 0
    ratio = bucket.remaining / base * 100
    ratio = min(Decimal(100), max(ZERO, ratio))
    return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _format_bucket(bucket: BucketBalance) -> BucketSummaryOut:
    apportionment = None
    if bucket.apportionment is not None:
        apportionment = HalfDayApportionment(
            casual=round_days(bucket.apportionment.casual),
            earned=round_days(bucket.apportionment.earned),
            normal=round_days(bucket.apportionment.normal),
        )
    label = _label(bucket)
    return BucketSummaryOut(
        leave_type=bucket.leave_type,
        name=BUCKET_NAMES[bucket.leave_type],
        applicable=bucket.applicable,
        allocated=round_days(bucket.allocated),
        accumulated=round_days(bucket.accumulated),
        used=round_days(bucket.used),
        pending=round_days(bucket.pending),
        remaining=round_days(bucket.remaining),
        label=label,
        percent_remaining=_percent_remaining(bucket),
        recovers_monthly=label == BalanceLabel.deficit and bucket.is_accrual,
        accrual_rate=bucket.accrual_rate,
        half_day_spillover=round_days(bucket.half_day_spillover),
        reference_used=round_days(bucket.reference_used),
        history=[
            LedgerRowOut(
                month=format_month(row.month),
                credit=round_days(row.credit),
                used=round_days(row.used),
                half_day=round_days(row.half_day),
                balance=round_days(row.balance),
            )
            for row in bucket.history
        ],
        apportionment=apportionment,
    )


def format_report(
    result: Union[LeaveBalanceReport, NotComputable],
    profile: Optional[EmployeeProfileIn] = None,
) -> Union[LeaveBalanceSummaryOut, NotComputableOut]:
    """Turn an engine result into the rounded, labelled shape the portal renders."""
    if isinstance(result, NotComputable):
        return NotComputableOut(
            reason=result.reason,
            message=NOT_COMPUTABLE_MESSAGES[result.reason],
        )

    years = result.years_since_joining
    return LeaveBalanceSummaryOut(
        employee=(profile.username or profile.email) if profile else None,
        department=profile.department if profile else None,
        policy_class=result.policy_class,
        as_of=result.as_of,
        joining_date=result.joining_date,
        tenure=(
            f"{result.months_since_joining} months "
            f"({years} year{'' if years == 1 else 's'})"
        ),
        months_since_joining=result.months_since_joining,
        years_since_joining=years,
        leave_year=f"{format_date(result.leave_year_start)} - {format_date(result.leave_year_end)}",
        leave_year_start=result.leave_year_start,
        leave_year_end=result.leave_year_end,
        buckets=[_format_bucket(bucket) for bucket in result.buckets.values()],
        diagnostics=result.diagnostics,
    )
