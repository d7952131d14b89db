"""Leave balance engine — derives a balance report from a profile and leave records.

Business logic:
  - Casual Leave: fixed allocation per leave year, the year anchored on the
    joining-date anniversary; no carry-forward, never below zero
  - Accrual buckets (EL, NL): monthly credit with carry-forward; the running
    balance may go negative and recovers as later months are credited
  - Half-day units count 0.5 day each and are apportioned into CL / EL / NL
    according to the employee's policy class
  - Leave Without Pay: no allocation, usage only
  - Pending requests are reported but never reduce a remaining balance

The computation is pure: the caller fetches the employee's records first and
passes them in; nothing outside the call is read or mutated, and all
quantities stay exact Decimals until ``format_report`` rounds them.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import ValidationError

from leave_portal.common.constants import (
    HALF_DAY_UNIT,
    ZERO,
    LeaveStatus,
    LeaveType,
    NotComputableReason,
    PendingHalfDayMode,
)
from leave_portal.common.exceptions import ValidationException
from leave_portal.config import Settings
from leave_portal.config import settings as app_settings
from leave_portal.leave.policy import (
    AccrualRule,
    LeavePolicy,
    get_policy,
    resolve_policy_class,
)
from leave_portal.leave.schemas import (
    BalanceDiagnostics,
    BucketBalance,
    EmployeeProfileIn,
    HalfDayApportionment,
    LeaveBalanceReport,
    LeaveRecordIn,
    MonthlyLedgerRow,
    NotComputable,
)

logger = logging.getLogger(__name__)

BalanceResult = Union[LeaveBalanceReport, NotComputable]


@dataclass(frozen=True)
class _HalfDaySplit:
    """How one half-day record was apportioned."""

    record: LeaveRecordIn
    leave_year: int
    casual: Decimal
    accrual_bucket: Optional[LeaveType]
    accrual: Decimal


# ═════════════════════════════════════════════════════════════════════
# LeaveBalanceEngine
# ═════════════════════════════════════════════════════════════════════


class LeaveBalanceEngine:
    """Stateless leave balance computation; every call starts from scratch."""

    # ─────────────────────────────────────────────────────────────────
    # Calendar helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _add_years(d: date, years: int) -> date:
        """Shift by whole years; 29 February rolls over to 1 March."""
        try:
            return d.replace(year=d.year + years)
        except ValueError:
            return date(d.year + years, 3, 1)

    @staticmethod
    def _shift_month(month_start: date, months: int) -> date:
        index = month_start.year * 12 + (month_start.month - 1) + months
        return date(index // 12, index % 12 + 1, 1)

    @staticmethod
    def _months_since_joining(joining: date, on: date) -> int:
        """Calendar months from the joining month through ``on``'s month, inclusive."""
        return (on.year - joining.year) * 12 + (on.month - joining.month) + 1

    @staticmethod
    def _leave_year_index(joining: date, on: date) -> int:
        """Number of joining anniversaries on or before ``on`` (negative before joining)."""
        years = LeaveBalanceEngine._months_since_joining(joining, on) // 12
        if LeaveBalanceEngine._add_years(joining, years) > on:
            years -= 1
        return years

    # ─────────────────────────────────────────────────────────────────
    # Half-day apportionment
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _split_half_days(
        records: list[LeaveRecordIn],
        policy: LeavePolicy,
        joining: date,
        casual_used_by_year: Mapping[int, Decimal],
    ) -> list[_HalfDaySplit]:
        """Apportion half-day records in date order.

        ``casual_used_by_year`` is the CL usage already charged to each leave
        year; a half-day only takes from CL what is left of that year's
        allocation, and the rest spills into the policy's spill bucket.
        Policies without a spill bucket fold the whole half-day into CL.
        """
        spill_target = policy.half_day_spill_target
        taken_by_year: dict[int, Decimal] = defaultdict(Decimal)
        splits: list[_HalfDaySplit] = []

        for record in sorted(records, key=lambda r: r.from_date):
            days = record.total_days * HALF_DAY_UNIT
            leave_year = LeaveBalanceEngine._leave_year_index(joining, record.from_date)
            target = policy.half_day_target(record.from_date)

            if target != LeaveType.casual:
                splits.append(_HalfDaySplit(record, leave_year, ZERO, target, days))
                continue

            if spill_target is None:
                casual = days
            else:
                room = (
                    policy.casual_allocation
                    - casual_used_by_year.get(leave_year, ZERO)
                    - taken_by_year[leave_year]
                )
                casual = min(days, max(ZERO, room))
            taken_by_year[leave_year] += casual

            spill = days - casual
            splits.append(
                _HalfDaySplit(
                    record,
                    leave_year,
                    casual,
                    spill_target if spill else None,
                    spill,
                )
            )

        return splits

    @staticmethod
    def _apportionment(splits: list[_HalfDaySplit]) -> HalfDayApportionment:
        result = HalfDayApportionment()
        for split in splits:
            result.casual += split.casual
            if split.accrual_bucket == LeaveType.earned:
                result.earned += split.accrual
            elif split.accrual_bucket == LeaveType.normal:
                result.normal += split.accrual
        return result

    # ─────────────────────────────────────────────────────────────────
    # Buckets
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _accrue(
        rule: AccrualRule,
        first_month: date,
        months: int,
        used_by_month: Mapping[date, Decimal],
        half_day_by_month: Mapping[date, Decimal],
        history_months: int,
    ) -> BucketBalance:
        """Walk every calendar month since joining, crediting, then deducting."""
        balance = ZERO
        accumulated = ZERO
        used_total = ZERO
        half_day_total = ZERO
        rows: list[MonthlyLedgerRow] = []

        for index in range(months):
            month = LeaveBalanceEngine._shift_month(first_month, index)
            credit = rule.rate if rule.credits(index, month) else ZERO
            used = used_by_month.get(month, ZERO)
            half_day = half_day_by_month.get(month, ZERO)

            balance += credit - used - half_day
            accumulated += credit
            used_total += used
            half_day_total += half_day
            rows.append(
                MonthlyLedgerRow(
                    month=month,
                    credit=credit,
                    used=used,
                    half_day=half_day,
                    balance=balance,
                )
            )

        return BucketBalance(
            leave_type=rule.leave_type,
            allocated=accumulated,
            accumulated=accumulated,
            used=used_total,
            remaining=balance,
            accrual_rate=rule.rate,
            half_day_spillover=half_day_total,
            history=rows[-history_months:],
        )

    @staticmethod
    def _sum_days(records: Iterable[LeaveRecordIn]) -> Decimal:
        return sum((r.total_days for r in records), ZERO)

    # ─────────────────────────────────────────────────────────────────
    # Compute
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def compute(
        profile: EmployeeProfileIn,
        leaves: list[LeaveRecordIn],
        as_of: date,
        *,
        history_months: int,
        pending_half_day_mode: PendingHalfDayMode,
    ) -> BalanceResult:
        joining = profile.joining_date
        if joining is None:
            logger.info("Leave balance not computable: joining date missing")
            return NotComputable(reason=NotComputableReason.joining_date_missing)
        if as_of < joining:
            logger.info(
                "Leave balance not computable: joins on %s, after %s", joining, as_of,
            )
            return NotComputable(reason=NotComputableReason.not_yet_joined)

        policy = get_policy(resolve_policy_class(profile.position))

        months = LeaveBalanceEngine._months_since_joining(joining, as_of)
        current_year = LeaveBalanceEngine._leave_year_index(joining, as_of)
        first_month = joining.replace(day=1)
        last_month = as_of.replace(day=1)

        # ── Classify records ────────────────────────────────────────
        unknown: Counter[str] = Counter()
        inapplicable = 0
        out_of_window = 0
        approved: dict[LeaveType, list[LeaveRecordIn]] = defaultdict(list)
        pending: dict[LeaveType, list[LeaveRecordIn]] = defaultdict(list)

        for record in leaves:
            bucket = record.bucket
            if bucket is None:
                unknown[record.leave_type] += 1
                continue
            if record.approval_status == LeaveStatus.rejected:
                continue
            if bucket != LeaveType.earned and not policy.offers(bucket):
                inapplicable += 1
                continue
            if record.approval_status == LeaveStatus.approved:
                approved[bucket].append(record)
            else:
                pending[bucket].append(record)

        if unknown:
            logger.warning(
                "Ignoring %d leave record(s) with unrecognized types: %s",
                sum(unknown.values()),
                ", ".join(sorted(unknown)),
            )

        # ── Casual leave usage per leave year ───────────────────────
        casual_by_year: dict[int, Decimal] = defaultdict(Decimal)
        for record in approved[LeaveType.casual]:
            year = LeaveBalanceEngine._leave_year_index(joining, record.from_date)
            casual_by_year[year] += record.total_days

        # ── Half-days ───────────────────────────────────────────────
        splits = LeaveBalanceEngine._split_half_days(
            approved[LeaveType.half_day], policy, joining, casual_by_year,
        )
        half_day_casual_by_year: dict[int, Decimal] = defaultdict(Decimal)
        half_day_by_month: dict[LeaveType, dict[date, Decimal]] = defaultdict(
            lambda: defaultdict(Decimal)
        )
        for split in splits:
            half_day_casual_by_year[split.leave_year] += split.casual
            if split.accrual_bucket is None:
                continue
            month = split.record.from_date.replace(day=1)
            if first_month <= month <= last_month:
                half_day_by_month[split.accrual_bucket][month] += split.accrual
            else:
                out_of_window += 1

        pending_split = HalfDayApportionment()
        if pending_half_day_mode == PendingHalfDayMode.apportioned:
            charged = {
                year: casual_by_year.get(year, ZERO) + half_day_casual_by_year.get(year, ZERO)
                for year in set(casual_by_year) | set(half_day_casual_by_year)
            }
            pending_split = LeaveBalanceEngine._apportionment(
                LeaveBalanceEngine._split_half_days(
                    pending[LeaveType.half_day], policy, joining, charged,
                )
            )

        # ── Buckets ─────────────────────────────────────────────────
        buckets: dict[LeaveType, BucketBalance] = {}
        for leave_type in policy.buckets:
            if leave_type == LeaveType.casual:
                used = casual_by_year.get(current_year, ZERO) + half_day_casual_by_year.get(
                    current_year, ZERO
                )
                buckets[leave_type] = BucketBalance(
                    leave_type=leave_type,
                    allocated=policy.casual_allocation,
                    accumulated=policy.casual_allocation,
                    used=used,
                    pending=(
                        LeaveBalanceEngine._sum_days(pending[leave_type]) + pending_split.casual
                    ),
                    remaining=max(ZERO, policy.casual_allocation - used),
                )

            elif leave_type == LeaveType.half_day:
                units_pending = LeaveBalanceEngine._sum_days(pending[leave_type])
                apportionment = LeaveBalanceEngine._apportionment(splits)
                buckets[leave_type] = BucketBalance(
                    leave_type=leave_type,
                    used=apportionment.total,
                    pending=units_pending * HALF_DAY_UNIT,
                    apportionment=apportionment,
                )

            elif leave_type == LeaveType.without_pay:
                used = LeaveBalanceEngine._sum_days(approved[leave_type])
                buckets[leave_type] = BucketBalance(
                    leave_type=leave_type,
                    used=used,
                    pending=LeaveBalanceEngine._sum_days(pending[leave_type]),
                    remaining=-used,
                )

            else:
                rule = policy.accrual_for(leave_type)
                if rule is None:
                    # Bucket no longer offered; keep its history for reference
                    buckets[leave_type] = BucketBalance(
                        leave_type=leave_type,
                        applicable=False,
                        reference_used=LeaveBalanceEngine._sum_days(approved[leave_type]),
                        pending=LeaveBalanceEngine._sum_days(pending[leave_type]),
                    )
                    continue

                used_by_month: dict[date, Decimal] = defaultdict(Decimal)
                for record in approved[leave_type]:
                    month = record.from_date.replace(day=1)
                    if first_month <= month <= last_month:
                        used_by_month[month] += record.total_days
                    else:
                        out_of_window += 1

                bucket = LeaveBalanceEngine._accrue(
                    rule,
                    first_month,
                    months,
                    used_by_month,
                    half_day_by_month[leave_type],
                    history_months,
                )
                bucket.pending = LeaveBalanceEngine._sum_days(pending[leave_type]) + (
                    pending_split.earned if leave_type == LeaveType.earned else pending_split.normal
                )
                buckets[leave_type] = bucket

        logger.debug(
            "Computed %s leave balance as of %s: %d record(s) over %d month(s)",
            policy.policy_class.value,
            as_of,
            len(leaves),
            months,
        )

        return LeaveBalanceReport(
            policy_class=policy.policy_class,
            as_of=as_of,
            joining_date=joining,
            months_since_joining=months,
            years_since_joining=current_year,
            leave_year_start=LeaveBalanceEngine._add_years(joining, current_year),
            leave_year_end=LeaveBalanceEngine._add_years(joining, current_year + 1),
            buckets=buckets,
            diagnostics=BalanceDiagnostics(
                unknown_leave_types=dict(unknown),
                inapplicable_records=inapplicable,
                out_of_window_records=out_of_window,
            ),
        )


# ═════════════════════════════════════════════════════════════════════
# Input boundary
# ═════════════════════════════════════════════════════════════════════


def parse_profile(raw: Union[EmployeeProfileIn, Mapping[str, Any]]) -> EmployeeProfileIn:
    """Validate an employee profile; raises ValidationException on bad fields."""
    try:
        return EmployeeProfileIn.model_validate(raw)
    except ValidationError as exc:
        raise ValidationException.from_pydantic(exc, prefix="profile") from exc


def parse_leave_records(
    raw: Iterable[Union[LeaveRecordIn, Mapping[str, Any]]],
) -> list[LeaveRecordIn]:
    """Validate leave records, collecting every bad field before raising."""
    records: list[LeaveRecordIn] = []
    errors: dict[str, list[str]] = {}
    for index, item in enumerate(raw):
        try:
            records.append(LeaveRecordIn.model_validate(item))
        except ValidationError as exc:
            failure = ValidationException.from_pydantic(exc, prefix=f"leaves.{index}")
            for field, messages in (failure.errors or {}).items():
                errors.setdefault(field, []).extend(messages)
    if errors:
        raise ValidationException(errors)
    return records


def compute_balance(
    profile: Union[EmployeeProfileIn, Mapping[str, Any]],
    leaves: Iterable[Union[LeaveRecordIn, Mapping[str, Any]]],
    as_of: Optional[date] = None,
    *,
    settings: Optional[Settings] = None,
    pending_half_day_mode: Optional[PendingHalfDayMode] = None,
) -> BalanceResult:
    """Compute an employee's leave balance as of ``as_of`` (default: today).

    Precondition: ``leaves`` is the complete, already-fetched record list for
    the employee. Returns NotComputable instead of raising when the joining
    date is missing; raises ValidationException for malformed input.
    """
    settings = settings or app_settings
    return LeaveBalanceEngine.compute(
        parse_profile(profile),
        parse_leave_records(leaves),
        as_of or date.today(),
        history_months=settings.HISTORY_MONTHS,
        pending_half_day_mode=pending_half_day_mode or settings.PENDING_HALF_DAY_MODE,
    )
