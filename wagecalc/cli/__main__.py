"""Wage Calc CLI - Command-line interface for payroll calculations."""

import logging
from typing import Optional

import click

from wagecalc import __version__
from wagecalc.sdk import (
    compute_net_working_minutes,
    compute_salary,
    format_hours_from_minutes,
    TimestampError,
)

from .settings_commands import settings as settings_group
from .tax_commands import rules as rules_group, tax as tax_command
from .timecard_commands import payslip as payslip_command, timecard as timecard_command


@click.group()
@click.version_option(version=__version__, prog_name="wage-calc")
@click.option("--debug", is_flag=True, help="Log calculation decisions to stderr.")
def cli(debug: bool):
    """Wage Calc - Attendance, wage and withholding tax calculations.

    Configuration is loaded from (in order):

    \b
    1. WAGE_CALC_CONFIG_PATH environment variable
    2. ~/.config/wage-calc/settings.json (XDG default)

    Run 'wage-calc settings show' to see the effective settings.
    """
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


cli.add_command(settings_group)
cli.add_command(rules_group)
cli.add_command(tax_command)
cli.add_command(timecard_command)
cli.add_command(payslip_command)


@cli.command("minutes")
@click.argument("start")
@click.argument("end", required=False)
def minutes(start: str, end: Optional[str]):
    """Completed minutes between START and END (ISO-8601).

    Without END the shift is in progress and counts as 0.
    """
    try:
        click.echo(compute_net_working_minutes(start, end))
    except TimestampError as e:
        raise click.BadParameter(str(e))


@cli.command("salary")
@click.argument("minutes", type=int)
@click.argument("wage", type=float)
@click.option("--hours", is_flag=True, help="Also show the hours figure.")
def salary(minutes: int, wage: float, hours: bool):
    """Gross pay for MINUTES worked at hourly WAGE."""
    click.echo(compute_salary(minutes, wage))
    if hours:
        click.echo(f"{format_hours_from_minutes(minutes):.2f}h")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
