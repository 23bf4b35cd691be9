"""Monthly payslip assembly.

Combines worked minutes, a staff member's wage settings and the
withholding engine into one pay statement:

    base wage      = compute_salary(minutes, hourly wage)
    gross for tax  = base wage + allowances
    tax            = compute_income_tax(gross for tax, dependents, category)
    net pay        = gross for tax - (fixed deductions + tax)
"""

import re
from typing import Iterable, List, Optional, Union
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field

from .labor import compute_salary, format_hours_from_minutes
from .taxes import compute_income_tax, resolve_category, WithholdingRules
from .timecard import parse_events, PeriodSummary, TimecardEvent, summarize_period


class PayItem(BaseModel):
    """A named allowance or fixed deduction."""

    model_config = ConfigDict(extra="forbid")

    name: str
    value: int


class StaffProfile(BaseModel):
    """Wage settings for one staff member."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    hourly_wage: float = 0
    dependents: int = Field(0, ge=0)
    tax_category: Optional[str] = None
    allowances: List[PayItem] = Field(default_factory=list)
    deductions: List[PayItem] = Field(default_factory=list)

    @classmethod
    def from_record(cls, record: dict) -> "StaffProfile":
        """Build from a flat staff row with allowanceN_* / deductionN_* columns.

        Example row:
            {"name": "...", "hourly_wage": 1100, "dependents": 0,
             "tax_category": "甲", "allowance1_name": "通勤手当",
             "allowance1_value": 5000}
        """
        data = {k: v for k, v in record.items() if not _NUMBERED_ITEM.match(k)}
        data["allowances"] = _numbered_items(record, "allowance")
        data["deductions"] = _numbered_items(record, "deduction")
        # Stored rows use null for "not set"
        for key in ("hourly_wage", "dependents"):
            if data.get(key) is None:
                data.pop(key, None)
        return cls.model_validate(data)


_NUMBERED_ITEM = re.compile(r"^(allowance|deduction)(\d+)_(name|value)$")


def _numbered_items(record: dict, prefix: str) -> List[dict]:
    indexes = sorted({
        int(m.group(2))
        for key in record
        if (m := _NUMBERED_ITEM.match(key)) and m.group(1) == prefix
    })
    return [
        {"name": record.get(f"{prefix}{i}_name") or "", "value": record.get(f"{prefix}{i}_value") or 0}
        for i in indexes
    ]


class Payslip(BaseModel):
    """Computed pay statement for one staff member and period."""

    model_config = ConfigDict(extra="forbid")

    staff_name: str
    total_minutes: int
    total_hours: float
    hourly_wage: float
    base_wage: int
    allowance_items: List[PayItem]
    deduction_items: List[PayItem]
    total_allowances: int
    total_deductions: int
    gross_for_tax: int
    dependents: int
    tax_category: str
    tax: int
    net_pay: int


def _effective_items(items: Iterable[PayItem]) -> List[PayItem]:
    """Items with both a name and a nonzero value."""
    return [item for item in items if item.name and item.value]


def build_payslip(
    profile: StaffProfile,
    net_minutes: int,
    year: Optional[str] = None,
    rules: Optional[WithholdingRules] = None,
) -> Payslip:
    """Build a payslip from a period's net worked minutes.

    Args:
        profile: Staff wage settings
        net_minutes: Paid minutes for the period (breaks already excluded)
        year: Withholding table year
        rules: Explicit withholding table, bypassing year lookup

    Returns:
        Payslip; net_pay may be negative when fixed deductions exceed pay
    """
    base_wage = compute_salary(net_minutes, profile.hourly_wage)

    allowances = _effective_items(profile.allowances)
    deductions = _effective_items(profile.deductions)
    total_allowances = sum(item.value for item in allowances)
    total_deductions = sum(item.value for item in deductions)

    gross_for_tax = base_wage + total_allowances
    tax = compute_income_tax(
        gross_for_tax, profile.dependents, profile.tax_category, year=year, rules=rules
    )

    return Payslip(
        staff_name=profile.name,
        total_minutes=net_minutes,
        total_hours=format_hours_from_minutes(net_minutes),
        hourly_wage=profile.hourly_wage,
        base_wage=base_wage,
        allowance_items=allowances,
        deduction_items=deductions,
        total_allowances=total_allowances,
        total_deductions=total_deductions,
        gross_for_tax=gross_for_tax,
        dependents=profile.dependents,
        tax_category=resolve_category(profile.tax_category).value,
        tax=tax,
        net_pay=gross_for_tax - (total_deductions + tax),
    )


def build_payslip_from_events(
    profile: StaffProfile,
    events: Iterable[Union[TimecardEvent, dict]],
    tz: Union[str, ZoneInfo, None] = None,
    year: Optional[str] = None,
    rules: Optional[WithholdingRules] = None,
) -> tuple[Payslip, PeriodSummary]:
    """Summarize a period's timecard events, then build its payslip.

    Rows with no timestamp are skipped.

    Returns:
        (payslip, period summary)
    """
    parsed = parse_events(events)
    summary = summarize_period(parsed, tz)
    return build_payslip(profile, summary.total_minutes, year=year, rules=rules), summary
