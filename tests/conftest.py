"""Shared test fixtures — app, client, and leave record factories.

The engine is pure, so most tests call it directly; API tests go through an
httpx AsyncClient bound to a fresh app instance.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Optional, Union

import pytest
from httpx import ASGITransport, AsyncClient

from leave_portal.leave.schemas import EmployeeProfileIn, LeaveRecordIn
from leave_portal.main import create_app


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from leave_portal.common.rate_limit import limiter

    limiter.reset()
    yield


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance."""
    yield create_app()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Factories ───────────────────────────────────────────────────────

def make_profile(
    *,
    position: Optional[str] = "Scientist",
    joining_date: Optional[date] = date(2023, 1, 15),
    department: str = "physics",
    username: str = "asha",
) -> EmployeeProfileIn:
    return EmployeeProfileIn(
        username=username,
        email=f"{username}@institute.ac.in",
        position=position,
        department=department,
        joining_date=joining_date,
    )


def make_leave(
    leave_type: str,
    from_date: date,
    total_days: Union[str, int, Decimal],
    *,
    status: str = "approved",
    to_date: Optional[date] = None,
) -> LeaveRecordIn:
    return LeaveRecordIn(
        leave_type=leave_type,
        from_date=from_date,
        to_date=to_date or from_date,
        total_days=Decimal(str(total_days)),
        approval_status=status,
        reason="Personal work",
    )


def leave_payload(
    leave_type: str,
    from_date: str,
    total_days: Union[int, float, str],
    *,
    status: str = "approved",
    to_date: Optional[str] = None,
) -> dict:
    """Leave record as the backend serializes it."""
    return {
        "id": 1,
        "leave_type": leave_type,
        "from_date": from_date,
        "to_date": to_date or from_date,
        "total_days": total_days,
        "approval_status": status,
        "reason": "Personal work",
        "created_at": "2023-01-02T10:00:00Z",
        "supervisor_email": "head@institute.ac.in",
    }
