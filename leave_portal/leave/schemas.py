"""Leave balance Pydantic v2 schemas — input validation, engine reports, display output.

Naming conventions:
  - *In                  → records and profiles supplied by the backend (read-only)
  - *Request             → request bodies (HTTP)
  - Report / Balance     → unrounded engine output
  - *Out                 → presentation-boundary output (rounded, labelled)
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from leave_portal.common.constants import (
    ZERO,
    BalanceLabel,
    HalfDayRouting,
    LeaveStatus,
    LeaveType,
    NotComputableReason,
    PendingHalfDayMode,
    PolicyClass,
)
from leave_portal.leave.policy import normalize_leave_type


# ═════════════════════════════════════════════════════════════════════
# Inputs
# ═════════════════════════════════════════════════════════════════════


class LeaveRecordIn(BaseModel):
    """A leave request record as returned by the backend."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: Optional[Union[int, str]] = None
    leave_type: str = Field(..., min_length=1)
    from_date: date = Field(..., description="Leave start date (inclusive)")
    to_date: date = Field(..., description="Leave end date (inclusive)")
    total_days: Decimal = Field(
        ...,
        ge=0,
        description="Days as recorded by the requester; half-day events for HalfDay",
    )
    approval_status: LeaveStatus
    reason: Optional[str] = None
    supervisor_email: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("approval_status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @model_validator(mode="after")
    def validate_dates(self) -> "LeaveRecordIn":
        if self.from_date > self.to_date:
            raise ValueError("from_date must be on or before to_date.")
        return self

    @property
    def bucket(self) -> Optional[LeaveType]:
        """Normalized leave type, or None when the type is not recognized."""
        return normalize_leave_type(self.leave_type)


class EmployeeProfileIn(BaseModel):
    """Employee fields the engine reads. A missing joining date is allowed."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    username: Optional[str] = None
    email: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    joining_date: Optional[date] = None

    @field_validator("joining_date", mode="before")
    @classmethod
    def blank_joining_date_is_missing(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class BalanceRequest(BaseModel):
    """Payload for computing a leave balance from already-fetched records."""

    profile: EmployeeProfileIn
    leaves: list[LeaveRecordIn] = Field(default_factory=list)
    as_of: Optional[date] = Field(
        default=None, description="Computation date; defaults to today"
    )
    pending_half_day_mode: Optional[PendingHalfDayMode] = Field(
        default=None, description="Overrides PENDING_HALF_DAY_MODE for this call"
    )


# ═════════════════════════════════════════════════════════════════════
# Engine report (full precision)
# ═════════════════════════════════════════════════════════════════════


class MonthlyLedgerRow(BaseModel):
    """One calendar month of an accrual bucket."""

    month: date
    credit: Decimal = ZERO
    used: Decimal = ZERO
    half_day: Decimal = ZERO
    balance: Decimal = ZERO


class HalfDayApportionment(BaseModel):
    """Approved half-day days split by the bucket they were deducted from."""

    casual: Decimal = ZERO
    earned: Decimal = ZERO
    normal: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.casual + self.earned + self.normal


class BucketBalance(BaseModel):
    leave_type: LeaveType
    applicable: bool = True
    allocated: Decimal = ZERO
    accumulated: Decimal = ZERO
    used: Decimal = ZERO
    pending: Decimal = ZERO
    remaining: Decimal = ZERO

    # Accrual buckets only
    accrual_rate: Optional[Decimal] = None
    half_day_spillover: Decimal = ZERO
    history: list[MonthlyLedgerRow] = Field(default_factory=list)

    # Approved days of a bucket the policy class no longer offers
    reference_used: Decimal = ZERO

    # HalfDay bucket only
    apportionment: Optional[HalfDayApportionment] = None

    @property
    def is_accrual(self) -> bool:
        return self.accrual_rate is not None

    @property
    def in_deficit(self) -> bool:
        return self.remaining < 0


class BalanceDiagnostics(BaseModel):
    """Records that did not contribute to any bucket, and why."""

    unknown_leave_types: dict[str, int] = Field(default_factory=dict)
    inapplicable_records: int = 0
    out_of_window_records: int = 0

    @property
    def unknown_records(self) -> int:
        return sum(self.unknown_leave_types.values())


class LeaveBalanceReport(BaseModel):
    computable: Literal[True] = True
    policy_class: PolicyClass
    as_of: date
    joining_date: date
    months_since_joining: int
    years_since_joining: int
    leave_year_start: date
    leave_year_end: date
    buckets: dict[LeaveType, BucketBalance]
    diagnostics: BalanceDiagnostics = Field(default_factory=BalanceDiagnostics)

    def bucket(self, leave_type: LeaveType) -> Optional[BucketBalance]:
        return self.buckets.get(leave_type)


class NotComputable(BaseModel):
    """The balance cannot be derived from the inputs; a display state, not an error."""

    computable: Literal[False] = False
    reason: NotComputableReason


# ═════════════════════════════════════════════════════════════════════
# Presentation output (rounded)
# ═════════════════════════════════════════════════════════════════════


class LedgerRowOut(BaseModel):
    month: str
    credit: Decimal
    used: Decimal
    half_day: Decimal
    balance: Decimal


class BucketSummaryOut(BaseModel):
    leave_type: LeaveType
    name: str
    applicable: bool
    allocated: Decimal
    accumulated: Decimal
    used: Decimal
    pending: Decimal
    remaining: Decimal
    label: BalanceLabel
    percent_remaining: Optional[int] = None
    recovers_monthly: bool = False
    accrual_rate: Optional[Decimal] = None
    half_day_spillover: Decimal = ZERO
    reference_used: Decimal = ZERO
    history: list[LedgerRowOut] = Field(default_factory=list)
    apportionment: Optional[HalfDayApportionment] = None


class LeaveBalanceSummaryOut(BaseModel):
    computable: Literal[True] = True
    employee: Optional[str] = None
    department: Optional[str] = None
    policy_class: PolicyClass
    as_of: date
    joining_date: date
    tenure: str
    months_since_joining: int
    years_since_joining: int
    leave_year: str
    leave_year_start: date
    leave_year_end: date
    buckets: list[BucketSummaryOut]
    diagnostics: BalanceDiagnostics


class NotComputableOut(BaseModel):
    computable: Literal[False] = False
    reason: NotComputableReason
    message: str


# ═════════════════════════════════════════════════════════════════════
# Policy table
# ═════════════════════════════════════════════════════════════════════


class AccrualRuleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    leave_type: LeaveType
    rate: Decimal
    grace_months: int
    starts_on: Optional[date] = None


class PolicyOut(BaseModel):
    """A row of the policy table."""

    model_config = ConfigDict(from_attributes=True)

    policy_class: PolicyClass
    casual_allocation: Decimal
    accruals: list[AccrualRuleOut]
    half_day_routing: HalfDayRouting
    half_day_cutover: Optional[date] = None
    buckets: list[LeaveType]


class PolicyResolutionOut(BaseModel):
    position: Optional[str] = None
    policy_class: PolicyClass
