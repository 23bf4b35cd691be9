"""Tests for monthly income tax withholding.

The published-table check values (甲欄, no dependents) must match exactly:
    96,018 -> 0
    145,223 -> 2,220
    163,266 -> 3,050
    170,586 -> 3,270
"""

import pytest

from wagecalc.sdk.taxes import (
    compute_income_tax,
    explain_income_tax,
    get_schedule,
    load_withholding_rules,
    PrimarySchedule,
    resolve_category,
    round_half_up,
    SecondarySchedule,
    WithholdingCategory,
)


class TestPublishedCheckValues:
    """Literal values from the published table."""

    @pytest.mark.parametrize("amount,expected", [
        (96018, 0),
        (145223, 2220),
        (163266, 3050),
        (170586, 3270),
    ])
    def test_check_value(self, amount, expected):
        assert compute_income_tax(amount, 0, "甲") == expected

    @pytest.mark.parametrize("amount", [96018, 145223, 163266, 170586])
    def test_check_values_use_override(self, amount):
        assert explain_income_tax(amount, 0).path == "override"

    def test_override_band_is_closed_open(self):
        assert explain_income_tax(96000, 0).path == "override"
        assert explain_income_tax(96999.5, 0).path == "override"
        assert explain_income_tax(97000, 0).path == "formula"
        assert explain_income_tax(95999, 0).path == "formula"

    def test_override_needs_zero_dependents(self):
        """With one dependent, 145,223 goes through the formula.

        54,167 + 31,667 + 48,000 = 133,834 deducted -> 11,389 * 5.105% = 581.4 -> 580
        """
        breakdown = explain_income_tax(145223, 1)
        assert breakdown.path == "formula"
        assert breakdown.tax == 580

    def test_override_ignored_for_secondary(self):
        assert explain_income_tax(145223, 0, "乙").path == "secondary"


class TestPrimaryFormula:
    """甲欄 general formula."""

    def test_low_bracket(self):
        """200,000: 66,667 + 48,000 deducted -> 85,333 * 5.105% = 4,356.2 -> 4,360."""
        breakdown = explain_income_tax(200000, 0)
        assert breakdown.employment_deduction == 66667
        assert breakdown.basic_deduction == 48000
        assert breakdown.taxable_income == 85333
        assert breakdown.bracket == 0
        assert breakdown.tax == 4360

    def test_dependent_deduction_per_head(self):
        """One dependent removes 31,667 more: 53,666 * 5.105% = 2,739.6 -> 2,740."""
        breakdown = explain_income_tax(200000, 1)
        assert breakdown.dependent_deduction == 31667
        assert breakdown.tax == 2740

    def test_employment_deduction_rounds_up(self):
        """158,334 * 30% + 6,667 = 54,167.2 -> 54,168."""
        assert explain_income_tax(158334, 0).employment_deduction == 54168

    def test_third_bracket_without_basic_deduction(self):
        """500,000 with 2 dependents: 136,667 + 63,334 + 0 -> 299,999.

        299,999 * 20.42% - 36,475 = 24,784.8 -> 24,780
        """
        breakdown = explain_income_tax(500000, 2)
        assert breakdown.basic_deduction == 0
        assert breakdown.taxable_income == 299999
        assert breakdown.bracket == 2
        assert breakdown.tax == 24780

    def test_taxable_income_floored_at_zero(self):
        breakdown = explain_income_tax(50000, 3)
        assert breakdown.taxable_income == 0
        assert breakdown.tax == 0

    def test_top_bracket(self):
        breakdown = explain_income_tax(3000000, 0)
        assert breakdown.bracket == 5

    @pytest.mark.parametrize("amount", range(0, 2000001, 12347))
    @pytest.mark.parametrize("dependents", [0, 1, 4])
    def test_formula_results_are_multiples_of_ten(self, amount, dependents):
        breakdown = explain_income_tax(amount, dependents)
        assert breakdown.tax >= 0
        if breakdown.path == "formula":
            assert breakdown.tax % 10 == 0

    def test_more_dependents_never_raise_tax(self):
        for amount in range(180000, 800000, 9973):
            taxes = [compute_income_tax(amount, d) for d in range(0, 6)]
            assert taxes == sorted(taxes, reverse=True)


class TestSecondary:
    """乙欄 schedule."""

    def test_low_rate(self):
        """100,001 * 3.063% = 3,063.03 -> 3,063."""
        assert compute_income_tax(100001, 0, "乙") == 3063

    def test_floor_not_round_to_ten(self):
        """104,999 * 3.063% = 3,216.1 -> 3,216."""
        assert compute_income_tax(104999, 0, "乙") == 3216

    def test_low_band_upper_bound_is_exclusive(self):
        """105,000 falls in the 10.21% row: 10,720.5 -> 10,720."""
        breakdown = explain_income_tax(105000, 0, "乙")
        assert breakdown.bracket == 1
        assert breakdown.tax == 10720

    def test_mid_band_flat_rate(self):
        """500,003 * 10.21% = 51,050.3 -> 51,050."""
        assert compute_income_tax(500003, 0, "乙") == 51050

    def test_mid_band_upper_bound_is_inclusive(self):
        assert explain_income_tax(740000, 0, "乙").bracket == 1
        assert explain_income_tax(740001, 0, "乙").bracket == 2

    def test_high_band(self):
        """259,200 + 60,001 * 40.84% = 283,704.4 -> 283,704."""
        assert compute_income_tax(800001, 0, "乙") == 283704

    def test_top_band(self):
        """655,400 + 290,000 * 45.945% = 788,640.5 -> 788,640."""
        assert compute_income_tax(2000000, 0, "乙") == 788640

    def test_top_band_lower_bound(self):
        assert explain_income_tax(1709999, 0, "乙").bracket == 2
        assert explain_income_tax(1710000, 0, "乙").bracket == 3

    @pytest.mark.parametrize("dependents", [0, 1, 3, 7])
    def test_dependents_ignored(self, dependents):
        assert compute_income_tax(250001, dependents, "乙") == compute_income_tax(250001, 0, "乙")


class TestCategoryResolution:
    """Category strings and defaults."""

    def test_secondary_marker(self):
        assert resolve_category("乙") is WithholdingCategory.SECONDARY
        assert resolve_category(WithholdingCategory.SECONDARY) is WithholdingCategory.SECONDARY

    @pytest.mark.parametrize("value", ["甲", None, "", "乙 ", "otsu", "丙", 2])
    def test_everything_else_is_primary(self, value):
        assert resolve_category(value) is WithholdingCategory.PRIMARY

    def test_unknown_category_matches_primary(self):
        assert compute_income_tax(200000, 0, "unknown") == compute_income_tax(200000, 0, "甲")
        assert compute_income_tax(200000, 0, None) == 4360

    def test_schedule_strategy_by_category(self):
        rules = load_withholding_rules()
        assert isinstance(get_schedule("甲", rules), PrimarySchedule)
        assert isinstance(get_schedule("乙", rules), SecondarySchedule)


class TestEdgeCases:
    """Clamping and contract violations."""

    @pytest.mark.parametrize("category", ["甲", "乙", None, "x"])
    def test_negative_amount_is_zero(self, category):
        assert compute_income_tax(-1, 0, category) == 0
        assert explain_income_tax(-500000, 2, category).path == "clamped"

    def test_zero_amount(self):
        assert compute_income_tax(0, 0) == 0
        assert compute_income_tax(0, 0, "乙") == 0

    @pytest.mark.parametrize("category", ["甲", "乙", None, "unrecognized"])
    def test_non_negative_everywhere(self, category):
        for amount in range(0, 3000000, 4999):
            assert compute_income_tax(amount, 0, category) >= 0

    def test_non_numeric_amount_raises(self):
        with pytest.raises(TypeError):
            compute_income_tax(None, 0)

    def test_pure(self):
        assert compute_income_tax(321987, 1, "甲") == compute_income_tax(321987, 1, "甲")
        assert compute_income_tax(321987, 1, "乙") == compute_income_tax(321987, 1, "乙")

    def test_explicit_rules_object(self):
        rules = load_withholding_rules("2026")
        assert compute_income_tax(145223, 0, rules=rules) == 2220


class TestRoundHalfUp:
    """Tests for round_half_up."""

    @pytest.mark.parametrize("amount,expected", [
        (2214.99, 2210),
        (2215.0, 2220),
        (2215.01, 2220),
        (4.9, 0),
        (5.0, 10),
        (0, 0),
    ])
    def test_nearest_ten(self, amount, expected):
        assert round_half_up(amount, 10) == expected

    def test_step_one(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
