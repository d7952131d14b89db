"""Presentation boundary tests — rounding, labels, percentages, not-computable messages."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from leave_portal.common.constants import BalanceLabel, LeaveType, NotComputableReason
from leave_portal.leave.engine import compute_balance
from leave_portal.leave.formatting import format_report, round_days
from leave_portal.leave.schemas import (
    LeaveBalanceSummaryOut,
    NotComputable,
    NotComputableOut,
)
from tests.conftest import make_leave, make_profile


def _bucket(summary: LeaveBalanceSummaryOut, leave_type: LeaveType):
    return next(b for b in summary.buckets if b.leave_type == leave_type)


class TestRoundDays:

    def test_rounds_half_up(self):
        assert round_days(Decimal("2.25")) == Decimal("2.3")
        assert round_days(Decimal("0.45")) == Decimal("0.5")

    def test_negative_values_keep_sign(self):
        assert round_days(Decimal("-1.25")) == Decimal("-1.3")

    def test_no_negative_zero(self):
        assert str(round_days(Decimal("-0.04"))) == "0.0"


class TestFormatReport:

    def test_summary_header(self):
        profile = make_profile()
        summary = format_report(compute_balance(profile, [], date(2023, 4, 15)), profile)

        assert isinstance(summary, LeaveBalanceSummaryOut)
        assert summary.employee == "asha"
        assert summary.department == "physics"
        assert summary.tenure == "4 months (0 years)"
        assert summary.leave_year == "Jan 15, 2023 - Jan 15, 2024"
        assert [b.leave_type for b in summary.buckets] == [
            LeaveType.casual,
            LeaveType.earned,
            LeaveType.half_day,
            LeaveType.without_pay,
        ]

    def test_tenure_singular_year(self):
        summary = format_report(compute_balance(make_profile(), [], date(2024, 1, 20)))
        assert summary.tenure == "13 months (1 year)"
        assert summary.employee is None

    def test_earned_bucket_labels_and_history(self):
        summary = format_report(compute_balance(make_profile(), [], date(2023, 4, 15)))
        el = _bucket(summary, LeaveType.earned)

        assert el.name == "Earned Leave (EL)"
        assert el.accumulated == Decimal("7.5")
        assert el.label == BalanceLabel.left
        assert el.percent_remaining == 100
        assert el.recovers_monthly is False
        assert [row.month for row in el.history] == [
            "Jan 2023", "Feb 2023", "Mar 2023", "Apr 2023",
        ]

    def test_deficit_is_labelled(self):
        leaves = [make_leave("EL", date(2023, 3, 6), 6)]
        summary = format_report(compute_balance(make_profile(), leaves, date(2023, 3, 20)))
        el = _bucket(summary, LeaveType.earned)

        assert el.remaining == Decimal("-1.0")
        assert el.label == BalanceLabel.deficit
        assert el.recovers_monthly is True
        assert el.percent_remaining == 0

    def test_casual_percentage(self):
        leaves = [make_leave("CL", date(2023, 3, 1), 2)]
        summary = format_report(compute_balance(make_profile(), leaves, date(2023, 4, 15)))
        cl = _bucket(summary, LeaveType.casual)

        assert cl.remaining == Decimal("6.0")
        assert cl.percent_remaining == 75
        assert cl.label == BalanceLabel.left

    def test_without_pay_and_not_applicable_labels(self):
        profile = make_profile(position="JRF", joining_date=date(2024, 7, 1))
        leaves = [make_leave("LWP", date(2024, 9, 2), 1)]
        summary = format_report(compute_balance(profile, leaves, date(2025, 3, 15)))

        assert _bucket(summary, LeaveType.without_pay).label == BalanceLabel.deducted
        el = _bucket(summary, LeaveType.earned)
        assert el.label == BalanceLabel.not_applicable
        assert el.percent_remaining is None

    def test_rounding_happens_only_here(self):
        """Engine sums 0.15 × 3 exactly; the summary rounds the total once."""
        leaves = [make_leave("EL", date(2023, 3, d), Decimal("0.15")) for d in (1, 2, 3)]
        result = compute_balance(make_profile(), leaves, date(2023, 4, 15))
        summary = format_report(result)

        assert result.bucket(LeaveType.earned).used == Decimal("0.45")
        assert _bucket(summary, LeaveType.earned).used == Decimal("0.5")
        assert _bucket(summary, LeaveType.earned).remaining == Decimal("7.1")

    def test_half_day_apportionment_rounded(self):
        leaves = [make_leave("HalfDay", date(2023, 3, 10), 3)]
        summary = format_report(compute_balance(make_profile(), leaves, date(2023, 4, 15)))
        hd = _bucket(summary, LeaveType.half_day)

        assert hd.used == Decimal("1.5")
        assert hd.apportionment.casual == Decimal("1.5")
        assert hd.percent_remaining is None


class TestFormatNotComputable:

    def test_missing_joining_date_message(self):
        out = format_report(NotComputable(reason=NotComputableReason.joining_date_missing))

        assert isinstance(out, NotComputableOut)
        assert out.computable is False
        assert out.message == "Joining date not available. Cannot calculate leave balance."

    def test_not_yet_joined_message(self):
        out = format_report(NotComputable(reason=NotComputableReason.not_yet_joined))
        assert out.message == "Employee has not joined yet."
