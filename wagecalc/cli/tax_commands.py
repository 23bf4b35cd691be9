"""Withholding tax commands."""

import json
from typing import Optional

import click
from pydantic import ValidationError

from wagecalc.sdk import (
    explain_income_tax,
    get_tax_rules_dir,
    load_withholding_rules,
    TaxRulesNotFoundError,
)
from wagecalc.sdk.taxes import get_available_years
from .settings_commands import check_year, load_settings_or_fail


def load_rules_or_fail(year: Optional[str]):
    """Load the table for year (else settings tax_year, else latest).

    Honors the configured tables directory and converts SDK errors to CLI errors.
    """
    check_year(year)
    settings = load_settings_or_fail()
    if year is None:
        year = settings.get("tax_year")
        check_year(year)
    try:
        return load_withholding_rules(year, rules_dir=get_tax_rules_dir(settings))
    except TaxRulesNotFoundError as e:
        raise click.ClickException(str(e))
    except ValidationError as e:
        raise click.ClickException(f"Invalid withholding table: {e}")


@click.command("tax")
@click.argument("amount", type=float)
@click.option("--dependents", "-d", type=click.IntRange(min=0), default=0, show_default=True,
              help="Dependents declared, spouse included.")
@click.option("--category", "-c", default="甲", show_default=True,
              help="Withholding column: 甲 (declaration filed) or 乙. Anything else is 甲.")
@click.option("--year", "-y", help="Table year (default: settings tax_year or latest).")
@click.option("--explain", is_flag=True, help="Show deductions and bracket used.")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]),
              default="text", help="Output format.")
def tax(amount: float, dependents: int, category: str, year: Optional[str],
        explain: bool, output_format: str):
    """Monthly income tax to withhold on AMOUNT.

    AMOUNT is the month's pay after social insurance deductions.

    \b
    Examples:
      wage-calc tax 145223              # 2220
      wage-calc tax 200000 -d 2
      wage-calc tax 300000 -c 乙 --explain
    """
    rules = load_rules_or_fail(year)
    breakdown = explain_income_tax(amount, dependents, category, rules=rules)

    if output_format == "json":
        click.echo(json.dumps(breakdown.model_dump(), indent=2, ensure_ascii=False))
        return

    if not explain:
        click.echo(breakdown.tax)
        return

    click.echo(f"Table:           {breakdown.year} ({breakdown.category})")
    click.echo(f"Taxable amount:  {breakdown.taxable_amount:,.0f}")
    click.echo(f"Dependents:      {breakdown.dependents}")
    click.echo(f"Path:            {breakdown.path}")
    if breakdown.override_band is not None:
        click.echo(f"Override band:   #{breakdown.override_band}")
    if breakdown.path == "formula":
        click.echo(f"Employment ded.: {breakdown.employment_deduction:,}")
        click.echo(f"Dependents ded.: {breakdown.dependent_deduction:,.0f}")
        click.echo(f"Basic ded.:      {breakdown.basic_deduction:,.0f}")
        click.echo(f"Taxable income:  {breakdown.taxable_income:,.0f}")
    if breakdown.bracket is not None:
        click.echo(f"Bracket:         #{breakdown.bracket}")
        click.echo(f"Raw tax:         {breakdown.raw_tax:,.2f}")
    click.echo(f"Tax:             {breakdown.tax:,}")


@click.group()
def rules():
    """Inspect withholding tables (tax_rules/YYYY.yaml)."""
    pass


@rules.command("list")
def rules_list():
    """List available table years."""
    years = get_available_years(get_tax_rules_dir(load_settings_or_fail()))
    if not years:
        click.echo("No withholding tables found.")
        return
    for y in years:
        click.echo(y)


@rules.command("show")
@click.argument("year", required=False)
def rules_show(year: Optional[str]):
    """Show the table used for YEAR (default: latest)."""
    table = load_rules_or_fail(year)
    primary = table.primary
    secondary = table.secondary

    click.echo(f"Withholding table {table.year}")
    if table.source:
        click.echo(f"Source: {table.source}")

    click.echo("\n甲 overrides (lower <= amount < upper):")
    for band in primary.overrides:
        click.echo(f"  dependents={band.dependents}  {band.lower:>10,.0f} - {band.upper:>10,.0f}  -> {band.tax:,}")

    click.echo("\n甲 employment deduction:")
    for row in primary.employment_deduction:
        click.echo(f"  {_bound(row)}  amount * {row.rate} + {row.offset:,.0f}")

    click.echo(f"\n甲 dependents deduction: {primary.dependent_deduction_per_head:,.0f} per head")

    click.echo("\n甲 basic deduction:")
    for row in primary.basic_deduction:
        click.echo(f"  {_bound(row)}  {row.offset:,.0f}")

    click.echo("\n甲 brackets:")
    for row in primary.brackets:
        click.echo(f"  {_bound(row)}  income * {row.rate} - {row.subtraction:,.0f}")

    click.echo("\n乙 brackets:")
    for row in secondary.brackets:
        click.echo(f"  {_bound(row)}  {row.base:,.0f} + (amount - {row.over:,.0f}) * {row.rate}")


def _bound(row) -> str:
    if row.up_to is None:
        return f"{'above':>5} {'':>12}"
    op = "<=" if row.inclusive else "<"
    return f"{op:>5} {row.up_to:>12,.0f}"
