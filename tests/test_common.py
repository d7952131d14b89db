"""Tests for common utilities — exceptions, problem details, and settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from leave_portal.common.constants import PendingHalfDayMode
from leave_portal.common.exceptions import AppException, ValidationException
from leave_portal.config import Settings
from leave_portal.leave.schemas import LeaveRecordIn


# ═════════════════════════════════════════════════════════════════════
# EXCEPTION TESTS
# ═════════════════════════════════════════════════════════════════════


class TestExceptions:

    def test_validation_exception_problem_body(self):
        exc = ValidationException({"leaves.0.total_days": ["Input should be a finite number"]})
        body = exc.to_problem("/api/v1/leave/balance")

        assert body["type"].endswith("/validation-error")
        assert body["status"] == 422
        assert body["instance"] == "/api/v1/leave/balance"
        assert body["errors"] == {"leaves.0.total_days": ["Input should be a finite number"]}

    def test_problem_body_without_errors(self):
        exc = AppException(400, "bad-request", "Bad Request", "Nope.")
        body = exc.to_problem()

        assert "errors" not in body
        assert "instance" not in body
        assert str(exc) == "Nope."

    def test_from_pydantic_prefixes_paths(self):
        with pytest.raises(ValidationError) as exc_info:
            LeaveRecordIn.model_validate({"leave_type": "CL"})

        exc = ValidationException.from_pydantic(exc_info.value, prefix="leaves.4")
        assert "leaves.4.from_date" in exc.errors
        assert "leaves.4.approval_status" in exc.errors


# ═════════════════════════════════════════════════════════════════════
# SETTINGS TESTS
# ═════════════════════════════════════════════════════════════════════


class TestSettings:

    def test_defaults(self):
        s = Settings()
        assert s.HISTORY_MONTHS == 6
        assert s.PENDING_HALF_DAY_MODE == PendingHalfDayMode.report_only

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("PENDING_HALF_DAY_MODE", "apportioned")
        monkeypatch.setenv("HISTORY_MONTHS", "12")
        s = Settings()
        assert s.PENDING_HALF_DAY_MODE == PendingHalfDayMode.apportioned
        assert s.HISTORY_MONTHS == 12

    def test_history_months_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(HISTORY_MONTHS=0)

    def test_cors_origins_fallback(self):
        assert Settings(CORS_ORIGINS="not json").cors_origins_list == ["http://localhost:3000"]
        assert Settings(CORS_ORIGINS='["https://portal.example"]').cors_origins_list == [
            "https://portal.example"
        ]
