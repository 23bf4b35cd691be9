"""taxes - Monthly income tax withholding.

Scope:
- Monthly withholding table (月額表), computer-calculation special rule
- Primary (甲欄) and Secondary (乙欄) schedules with their own rounding
- Year-specific tables loaded from tax_rules/{year}.yaml

Constraints:
- Pure calculation - no staff records, no storage access
- Receives the taxable amount (after social insurance), returns yen

Modules:
- withholding: Schedules, category resolution, compute_income_tax
- rules: Table loading with prior-year fallback
- schemas: Pydantic models for the YAML tables and breakdowns

Usage:
    from wagecalc.sdk.taxes import compute_income_tax, load_withholding_rules

    tax = compute_income_tax(145223, dependent_count=0, category="甲")
    rules = load_withholding_rules("2026")
"""

# Withholding calculations
from .withholding import (
    compute_income_tax,
    explain_income_tax,
    get_schedule,
    resolve_category,
    round_half_up,
    PrimarySchedule,
    SecondarySchedule,
    WithholdingCategory,
    WithholdingSchedule,
)

# Table schemas
from .schemas import (
    DeductionTier,
    OverrideBand,
    SecondaryBracket,
    TaxBracket,
    WithholdingBreakdown,
    WithholdingRules,
)

# Table loading
from .rules import (
    clear_rules_cache,
    get_available_years,
    load_withholding_rules,
    resolve_rules_year,
    TaxRulesNotFoundError,
)

__all__ = [
    # Withholding
    "compute_income_tax",
    "explain_income_tax",
    "get_schedule",
    "resolve_category",
    "round_half_up",
    "PrimarySchedule",
    "SecondarySchedule",
    "WithholdingCategory",
    "WithholdingSchedule",
    # Schemas
    "DeductionTier",
    "OverrideBand",
    "SecondaryBracket",
    "TaxBracket",
    "WithholdingBreakdown",
    "WithholdingRules",
    # Rules
    "clear_rules_cache",
    "get_available_years",
    "load_withholding_rules",
    "resolve_rules_year",
    "TaxRulesNotFoundError",
]
