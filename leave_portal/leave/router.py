"""Leave router — balance computation and the policy table.

Endpoints are stateless: the caller posts the employee profile and the leave
records it has already fetched from the backend.
"""

from typing import Optional, Union

from fastapi import APIRouter, Query, Request

from leave_portal.common.rate_limit import limiter
from leave_portal.config import settings
from leave_portal.leave.engine import compute_balance
from leave_portal.leave.formatting import format_report
from leave_portal.leave.policy import POLICY_TABLE, resolve_policy_class
from leave_portal.leave.schemas import (
    AccrualRuleOut,
    BalanceRequest,
    LeaveBalanceReport,
    LeaveBalanceSummaryOut,
    NotComputable,
    NotComputableOut,
    PolicyOut,
    PolicyResolutionOut,
)

router = APIRouter(prefix="", tags=["leave"])


# ── POST /balance ───────────────────────────────────────────────────

@router.post(
    "/balance",
    response_model=Union[LeaveBalanceSummaryOut, NotComputableOut],
)
@limiter.limit(settings.RATE_LIMIT)
async def leave_balance(request: Request, body: BalanceRequest):
    """Rounded, labelled balance summary; ``computable: false`` when it cannot be derived."""
    result = compute_balance(
        body.profile,
        body.leaves,
        body.as_of,
        pending_half_day_mode=body.pending_half_day_mode,
    )
    return format_report(result, body.profile)


# ── POST /balance/raw ───────────────────────────────────────────────

@router.post(
    "/balance/raw",
    response_model=Union[LeaveBalanceReport, NotComputable],
)
@limiter.limit(settings.RATE_LIMIT)
async def leave_balance_raw(request: Request, body: BalanceRequest):
    """Full-precision engine report, for callers that do their own rounding."""
    return compute_balance(
        body.profile,
        body.leaves,
        body.as_of,
        pending_half_day_mode=body.pending_half_day_mode,
    )


# ── GET /policies ───────────────────────────────────────────────────

@router.get("/policies", response_model=list[PolicyOut])
async def list_policies():
    """The policy table: allocations, accrual rules and half-day routing per class."""
    return [
        PolicyOut(
            policy_class=policy.policy_class,
            casual_allocation=policy.casual_allocation,
            accruals=[AccrualRuleOut.model_validate(rule) for rule in policy.accruals],
            half_day_routing=policy.half_day_routing,
            half_day_cutover=policy.half_day_cutover,
            buckets=policy.buckets,
        )
        for policy in POLICY_TABLE.values()
    ]


# ── GET /policies/resolve ───────────────────────────────────────────

@router.get("/policies/resolve", response_model=PolicyResolutionOut)
async def resolve_policy(position: Optional[str] = Query(None, max_length=200)):
    """Which policy class a position string maps to."""
    return PolicyResolutionOut(
        position=position,
        policy_class=resolve_policy_class(position),
    )
