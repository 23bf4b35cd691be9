"""Wage Calc SDK - attendance, wage and withholding calculations."""

from .config import (
    get_config_dir,
    get_settings_path,
    load_settings,
    set_setting,
    get_tax_rules_dir,
    SettingsError,
    SETTING_KEYS,
)

from .labor import (
    compute_net_working_minutes,
    compute_salary,
    format_hours_from_minutes,
    parse_timestamp,
    as_aware,
    TimestampError,
)

from .timecard import (
    EventType,
    TimecardEvent,
    DailyWork,
    PeriodSummary,
    StampRejectedError,
    group_events_by_day,
    compute_daily_work,
    summarize_period,
    current_status,
    validate_stamp,
    event_from_row,
    parse_events,
)

from .taxes import (
    compute_income_tax,
    explain_income_tax,
    load_withholding_rules,
    WithholdingCategory,
    WithholdingBreakdown,
    TaxRulesNotFoundError,
)

from .payslip import (
    PayItem,
    StaffProfile,
    Payslip,
    build_payslip,
    build_payslip_from_events,
)

__all__ = [
    # Config
    "get_config_dir",
    "get_settings_path",
    "load_settings",
    "set_setting",
    "get_tax_rules_dir",
    "SettingsError",
    "SETTING_KEYS",
    # Labor
    "compute_net_working_minutes",
    "compute_salary",
    "format_hours_from_minutes",
    "parse_timestamp",
    "as_aware",
    "TimestampError",
    # Timecard
    "EventType",
    "TimecardEvent",
    "DailyWork",
    "PeriodSummary",
    "StampRejectedError",
    "group_events_by_day",
    "compute_daily_work",
    "summarize_period",
    "current_status",
    "validate_stamp",
    "event_from_row",
    "parse_events",
    # Tax
    "compute_income_tax",
    "explain_income_tax",
    "load_withholding_rules",
    "WithholdingCategory",
    "WithholdingBreakdown",
    "TaxRulesNotFoundError",
    # Payslip
    "PayItem",
    "StaffProfile",
    "Payslip",
    "build_payslip",
    "build_payslip_from_events",
]
