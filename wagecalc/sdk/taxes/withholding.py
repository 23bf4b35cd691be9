"""Monthly income tax withholding calculations.

Implements the NTA computer-calculation special rule for the monthly
withholding table (月額表). Two schedules exist:

- Primary (甲欄): employee filed a dependents declaration. Deductions for
  employment income, dependents and the basic deduction are subtracted
  before a six-bracket lookup; the result is rounded half up to 10 yen.
  A handful of published-table values the formula misses are pinned by
  override bands, checked first.
- Secondary (乙欄): no declaration filed. No deductions; a rate table is
  applied to the amount directly and the result is floored to whole yen.

Every function here is pure. Tables come from load_withholding_rules().
"""

import logging
import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional

from .rules import load_withholding_rules
from .schemas import (
    DeductionTier,
    OverrideBand,
    PrimaryRules,
    SecondaryRules,
    WithholdingBreakdown,
    WithholdingRules,
)

logger = logging.getLogger(__name__)


class WithholdingCategory(str, Enum):
    """Withholding column, valued by the designator staff records carry."""

    PRIMARY = "甲"
    SECONDARY = "乙"


def resolve_category(category: Any) -> WithholdingCategory:
    """Map a raw category value to a WithholdingCategory.

    Only an exact match to the secondary designator selects SECONDARY.
    Anything else (None, "", unknown strings) is PRIMARY, so a missing
    category never lands an employee on the harsher schedule.
    """
    if category == WithholdingCategory.SECONDARY:
        return WithholdingCategory.SECONDARY
    return WithholdingCategory.PRIMARY


def round_half_up(amount: float, step: int = 1) -> int:
    """Round to the nearest multiple of step, halves going up.

    Example: 2214.99 -> 2210, 2215.0 -> 2220 (step=10)
    """
    scaled = amount / step
    rounded = math.floor(scaled)
    if scaled - rounded >= 0.5:
        rounded += 1
    return int(rounded * step)


def find_tier(rows: list, amount: float) -> int:
    """Index of the first row whose upper bound admits amount."""
    for i, row in enumerate(rows):
        if row.contains(amount):
            return i
    # Validated tables always end with an open row
    raise ValueError(f"No tier covers amount {amount}")


def find_override(overrides: list[OverrideBand], amount: float, dependents: int) -> Optional[int]:
    """Index of the override band matching amount and dependents, if any."""
    for i, band in enumerate(overrides):
        if band.matches(amount, dependents):
            return i
    return None


def calc_employment_deduction(tiers: list[DeductionTier], amount: float) -> int:
    """Employment income deduction, rounded up to whole yen."""
    tier = tiers[find_tier(tiers, amount)]
    return math.ceil(tier.apply(amount))


def calc_basic_deduction(tiers: list[DeductionTier], amount: float) -> float:
    """Basic deduction for the taxable amount; tapers to 0 above the top tier."""
    return tiers[find_tier(tiers, amount)].apply(amount)


class WithholdingSchedule(ABC):
    """One withholding column. Subclasses own their final rounding."""

    category: WithholdingCategory

    def __init__(self, rules: WithholdingRules):
        self.rules = rules

    def compute(self, taxable_amount: float, dependents: int) -> int:
        return self.explain(taxable_amount, dependents).tax

    @abstractmethod
    def explain(self, taxable_amount: float, dependents: int) -> WithholdingBreakdown:
        raise NotImplementedError

    @abstractmethod
    def round_tax(self, raw_tax: float) -> int:
        raise NotImplementedError

    def _breakdown(self, taxable_amount: float, dependents: int, **fields) -> WithholdingBreakdown:
        return WithholdingBreakdown(
            category=self.category.value,
            year=self.rules.year,
            taxable_amount=taxable_amount,
            dependents=dependents,
            **fields,
        )


class PrimarySchedule(WithholdingSchedule):
    """甲欄: deductions, bracket lookup, nearest 10 yen."""

    category = WithholdingCategory.PRIMARY
    round_to = 10

    @property
    def table(self) -> PrimaryRules:
        return self.rules.primary

    def round_tax(self, raw_tax: float) -> int:
        return round_half_up(raw_tax, self.round_to)

    def explain(self, taxable_amount: float, dependents: int) -> WithholdingBreakdown:
        table = self.table

        band_index = find_override(table.overrides, taxable_amount, dependents)
        if band_index is not None:
            band = table.overrides[band_index]
            logger.debug(f"Override band {band_index} hit for {taxable_amount}: {band.tax}")
            return self._breakdown(
                taxable_amount, dependents,
                path="override",
                override_band=band_index,
                raw_tax=band.tax,
                tax=band.tax,
            )

        employment = calc_employment_deduction(table.employment_deduction, taxable_amount)
        dependent = table.dependent_deduction_per_head * dependents
        basic = calc_basic_deduction(table.basic_deduction, taxable_amount)

        income = taxable_amount - (employment + dependent + basic)
        if income < 0:
            income = 0

        bracket_index = find_tier(table.brackets, income)
        raw_tax = table.brackets[bracket_index].apply(income)
        tax = self.round_tax(raw_tax)
        logger.debug(
            f"Primary {taxable_amount}: deductions {employment}+{dependent}+{basic}, "
            f"income {income}, bracket {bracket_index}, tax {raw_tax} -> {tax}"
        )

        return self._breakdown(
            taxable_amount, dependents,
            path="formula",
            employment_deduction=employment,
            dependent_deduction=dependent,
            basic_deduction=basic,
            taxable_income=income,
            bracket=bracket_index,
            raw_tax=raw_tax,
            tax=tax,
        )


class SecondarySchedule(WithholdingSchedule):
    """乙欄: rate table on the full amount, floored to whole yen.

    The middle row is a flat-rate approximation of the stepped published
    table and is not exact.
    """

    category = WithholdingCategory.SECONDARY

    @property
    def table(self) -> SecondaryRules:
        return self.rules.secondary

    def round_tax(self, raw_tax: float) -> int:
        return math.floor(raw_tax)

    def explain(self, taxable_amount: float, dependents: int) -> WithholdingBreakdown:
        brackets = self.table.brackets
        bracket_index = find_tier(brackets, taxable_amount)
        raw_tax = brackets[bracket_index].apply(taxable_amount)
        tax = self.round_tax(raw_tax)
        logger.debug(f"Secondary {taxable_amount}: bracket {bracket_index}, tax {raw_tax} -> {tax}")

        return self._breakdown(
            taxable_amount, dependents,
            path="secondary",
            bracket=bracket_index,
            raw_tax=raw_tax,
            tax=tax,
        )


SCHEDULES = {
    WithholdingCategory.PRIMARY: PrimarySchedule,
    WithholdingCategory.SECONDARY: SecondarySchedule,
}


def get_schedule(category: Any, rules: WithholdingRules) -> WithholdingSchedule:
    """Schedule strategy for a raw category value."""
    return SCHEDULES[resolve_category(category)](rules)


def explain_income_tax(
    taxable_amount: float,
    dependent_count: int = 0,
    category: Any = WithholdingCategory.PRIMARY,
    year: Optional[str] = None,
    rules: Optional[WithholdingRules] = None,
) -> WithholdingBreakdown:
    """Calculate withholding and report how it was reached.

    Args:
        taxable_amount: Monthly pay after social insurance deductions
        dependent_count: Dependents declared, spouse included
        category: "甲", "乙", a WithholdingCategory, or None (= 甲)
        year: Table year (default: latest bundled table)
        rules: Explicit table, bypassing year lookup

    Returns:
        WithholdingBreakdown; .tax is the amount to withhold
    """
    if rules is None:
        rules = load_withholding_rules(year)
    schedule = get_schedule(category, rules)

    if taxable_amount < 0:
        return schedule._breakdown(taxable_amount, dependent_count, path="clamped")

    return schedule.explain(taxable_amount, dependent_count)


def compute_income_tax(
    taxable_amount: float,
    dependent_count: int = 0,
    category: Any = WithholdingCategory.PRIMARY,
    year: Optional[str] = None,
    rules: Optional[WithholdingRules] = None,
) -> int:
    """Monthly income tax to withhold, in whole yen.

    Negative amounts withhold nothing. See explain_income_tax() for args.

    Example:
        compute_income_tax(145223, 0)  # 2220
        compute_income_tax(100000, 0, "乙")  # 3063
    """
    return explain_income_tax(taxable_amount, dependent_count, category, year, rules).tax
