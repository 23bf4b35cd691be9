"""Pydantic schemas for withholding table validation.

These schemas validate the tax_rules/*.yaml files and provide typed access
to the deduction tiers, tax brackets and override bands of a year's
monthly withholding table.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TierRow(BaseModel):
    """Base for rows of an ordered first-match table."""
    model_config = ConfigDict(extra="forbid")

    up_to: Optional[float] = Field(default=None, description="Upper bound (None for the open-ended last row)")
    inclusive: bool = Field(default=True, description="Whether up_to itself belongs to this row")

    def contains(self, amount: float) -> bool:
        """True if amount is at or below this row's upper bound."""
        if self.up_to is None:
            return True
        if self.inclusive:
            return amount <= self.up_to
        return amount < self.up_to


class DeductionTier(TierRow):
    """Deduction row: amount * rate + offset."""

    rate: float = Field(default=0, ge=0, le=1)
    offset: float = Field(default=0, ge=0)

    def apply(self, amount: float) -> float:
        return amount * self.rate + self.offset


class TaxBracket(TierRow):
    """Primary bracket row: income * rate - subtraction."""

    rate: float = Field(..., ge=0, le=1, description="Tax rate as decimal (reconstruction surtax included)")
    subtraction: float = Field(default=0, ge=0)

    def apply(self, income: float) -> float:
        return income * self.rate - self.subtraction


class SecondaryBracket(TierRow):
    """Secondary bracket row: base + (amount - over) * rate."""

    rate: float = Field(..., ge=0, le=1)
    base: float = Field(default=0, ge=0)
    over: float = Field(default=0, ge=0)

    def apply(self, amount: float) -> float:
        return self.base + (amount - self.over) * self.rate


class OverrideBand(BaseModel):
    """Literal published-table value for lower <= amount < upper."""
    model_config = ConfigDict(extra="forbid")

    dependents: int = Field(..., ge=0, description="Dependent count the band applies to")
    lower: float
    upper: float
    tax: int = Field(..., ge=0)

    @model_validator(mode="after")
    def check_range(self):
        if self.upper <= self.lower:
            raise ValueError(f"override band upper ({self.upper}) must exceed lower ({self.lower})")
        return self

    def matches(self, amount: float, dependents: int) -> bool:
        return dependents == self.dependents and self.lower <= amount < self.upper


def _check_tiers(rows: list, name: str) -> None:
    """Rows must ascend and only the last may be open-ended."""
    if not rows:
        raise ValueError(f"{name} must have at least one row")
    prev = None
    for i, row in enumerate(rows):
        if row.up_to is None:
            if i != len(rows) - 1:
                raise ValueError(f"{name}: only the last row may omit up_to (row {i})")
            continue
        if prev is not None and row.up_to <= prev:
            raise ValueError(f"{name}: up_to must ascend (row {i}: {row.up_to} <= {prev})")
        prev = row.up_to
    if rows[-1].up_to is not None:
        raise ValueError(f"{name}: last row must omit up_to to cover all larger amounts")


class PrimaryRules(BaseModel):
    """甲欄 rules: overrides, three deduction tables, six brackets."""
    model_config = ConfigDict(extra="forbid")

    overrides: List[OverrideBand] = Field(default_factory=list)
    employment_deduction: List[DeductionTier]
    dependent_deduction_per_head: float = Field(..., ge=0)
    basic_deduction: List[DeductionTier]
    brackets: List[TaxBracket]

    @model_validator(mode="after")
    def check_tables(self):
        _check_tiers(self.employment_deduction, "employment_deduction")
        _check_tiers(self.basic_deduction, "basic_deduction")
        _check_tiers(self.brackets, "brackets")
        return self


class SecondaryRules(BaseModel):
    """乙欄 rules: brackets only, no dependents deduction."""
    model_config = ConfigDict(extra="forbid")

    brackets: List[SecondaryBracket]

    @model_validator(mode="after")
    def check_tables(self):
        _check_tiers(self.brackets, "secondary.brackets")
        return self


class WithholdingRules(BaseModel):
    """Complete monthly withholding table for a year."""
    model_config = ConfigDict(extra="ignore")  # Allow unknown fields for forward compat

    year: int
    source: Optional[str] = None
    primary: PrimaryRules
    secondary: SecondaryRules


class WithholdingBreakdown(BaseModel):
    """How a withholding amount was reached, for audit display."""
    model_config = ConfigDict(extra="forbid")

    category: str
    year: int
    taxable_amount: float
    dependents: int
    path: Literal["clamped", "override", "formula", "secondary"]
    override_band: Optional[int] = Field(None, description="Index of the override band hit")
    employment_deduction: Optional[int] = None
    dependent_deduction: Optional[float] = None
    basic_deduction: Optional[float] = None
    taxable_income: Optional[float] = None
    bracket: Optional[int] = Field(None, description="Index of the bracket used")
    raw_tax: float = 0
    tax: int = 0
