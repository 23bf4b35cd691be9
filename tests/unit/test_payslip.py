"""Tests for payslip assembly."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from wagecalc.sdk.payslip import (
    build_payslip,
    build_payslip_from_events,
    PayItem,
    StaffProfile,
)


@pytest.fixture
def profile():
    return StaffProfile(
        name="Test Staff",
        hourly_wage=1200,
        dependents=0,
        tax_category="甲",
        allowances=[PayItem(name="通勤手当", value=10000)],
        deductions=[PayItem(name="寮費", value=20000)],
    )


def month_of_days(days: int) -> list[dict]:
    """Event rows for `days` 09:00-18:00 shifts with a one-hour break."""
    rows = []
    for day in range(1, days + 1):
        for event_type, hour in (("clock_in", 9), ("break_start", 12), ("break_end", 13), ("clock_out", 18)):
            rows.append({"event_type": event_type, "timestamp": f"2026-01-{day:02d}T{hour:02d}:00:00"})
    return rows


class TestBuildPayslip:
    """Tests for build_payslip."""

    def test_totals(self, profile):
        """160h at 1,200 = 192,000 base; +10,000 allowance = 202,000 gross.

        Tax on 202,000: employment 67,267, basic 48,000 -> 86,733 * 5.105% = 4,427.7 -> 4,430
        """
        slip = build_payslip(profile, 160 * 60)
        assert slip.base_wage == 192000
        assert slip.total_allowances == 10000
        assert slip.gross_for_tax == 202000
        assert slip.tax == 4430
        assert slip.total_deductions == 20000
        assert slip.net_pay == 202000 - (20000 + 4430)
        assert slip.total_hours == 160.0
        assert slip.tax_category == "甲"

    def test_check_value_flows_through(self):
        """A 145,223 taxable month withholds exactly 2,220."""
        staff = StaffProfile(hourly_wage=60, allowances=[PayItem(name="手当", value=223)])
        slip = build_payslip(staff, 145000)
        assert slip.gross_for_tax == 145223
        assert slip.tax == 2220

    def test_secondary_category(self, profile):
        staff = profile.model_copy(update={"tax_category": "乙", "allowances": [], "deductions": []})
        slip = build_payslip(staff, 6001)  # 100h 1m -> 120,020
        assert slip.gross_for_tax == 120020
        assert slip.tax_category == "乙"
        assert slip.tax == 12254  # 120,020 * 10.21% = 12,254.04

    def test_unknown_category_reported_as_primary(self, profile):
        staff = profile.model_copy(update={"tax_category": "?"})
        assert build_payslip(staff, 60).tax_category == "甲"

    def test_blank_and_zero_items_dropped(self):
        staff = StaffProfile(
            hourly_wage=1000,
            allowances=[PayItem(name="", value=500), PayItem(name="皆勤手当", value=0)],
            deductions=[PayItem(name="", value=100)],
        )
        slip = build_payslip(staff, 60)
        assert slip.allowance_items == []
        assert slip.deduction_items == []
        assert slip.net_pay == 1000

    def test_no_minutes(self, profile):
        slip = build_payslip(profile, 0)
        assert slip.base_wage == 0
        assert slip.gross_for_tax == 10000
        assert slip.tax == 0
        assert slip.net_pay == 10000 - 20000


class TestFromEvents:
    """Tests for build_payslip_from_events."""

    def test_month_of_shifts(self, profile):
        slip, summary = build_payslip_from_events(profile, month_of_days(20))
        assert summary.days_worked == 20
        assert slip.total_minutes == 20 * 480
        assert slip.base_wage == 192000

    def test_accepts_parsed_events(self, profile):
        from wagecalc.sdk.timecard import TimecardEvent

        events = [TimecardEvent.from_dict(r) for r in month_of_days(1)]
        slip, _ = build_payslip_from_events(profile, events)
        assert slip.total_minutes == 480

    def test_row_without_timestamp_is_skipped(self):
        rows = [
            {"event_type": "clock_in", "timestamp": "2026-01-05T09:00:00"},
            {"event_type": "clock_out", "timestamp": "2026-01-05T18:00:00"},
            {"event_type": "clock_in", "timestamp": None},
        ]
        slip, summary = build_payslip_from_events(StaffProfile(hourly_wage=1000), rows)
        assert summary.total_minutes == 540
        assert slip.base_wage == 9000


class TestStaffProfile:
    """Tests for StaffProfile parsing."""

    def test_from_flat_record(self):
        record = {
            "id": "abc",
            "name": "Flat Row",
            "hourly_wage": 1100,
            "dependents": None,
            "tax_category": "乙",
            "allowance1_name": "通勤手当",
            "allowance1_value": 5000,
            "allowance2_name": None,
            "allowance2_value": None,
            "deduction1_name": "寮費",
            "deduction1_value": 15000,
        }
        staff = StaffProfile.from_record(record)
        assert staff.dependents == 0
        assert staff.allowances[0] == PayItem(name="通勤手当", value=5000)
        assert staff.allowances[1] == PayItem(name="", value=0)
        assert staff.deductions == [PayItem(name="寮費", value=15000)]

    def test_negative_dependents_rejected(self):
        with pytest.raises(ValidationError):
            StaffProfile(dependents=-1)

    def test_negative_wage_pays_nothing(self):
        slip = build_payslip(StaffProfile(hourly_wage=-1000), 600)
        assert slip.base_wage == 0
