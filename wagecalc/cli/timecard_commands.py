"""Timecard and payslip commands.

Events files are JSON lists of {"event_type", "timestamp"} rows, as
exported from the timecard log. Profiles are YAML staff rows.
"""

import json
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import click
import yaml
from pydantic import ValidationError

from wagecalc.sdk import (
    build_payslip_from_events,
    StaffProfile,
    summarize_period,
    event_from_row,
    TimecardEvent,
    TimestampError,
)
from .settings_commands import load_settings_or_fail
from .tax_commands import load_rules_or_fail


def load_events(path: str) -> list[TimecardEvent]:
    """Load and parse a JSON events file, skipping rows with no timestamp."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            rows = json.load(f)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{path}: invalid JSON ({e})")

    if isinstance(rows, dict):
        rows = rows.get("events", [])
    if not isinstance(rows, list):
        raise click.ClickException(f"{path}: expected a list of events")

    events = []
    for i, row in enumerate(rows):
        if not isinstance(row, dict):
            raise click.ClickException(f"{path}: event {i}: expected an object")
        try:
            event = event_from_row(row)
        except (TimestampError, ValueError) as e:
            raise click.ClickException(f"{path}: event {i}: {e}")
        if event is not None:
            events.append(event)
    return events


def resolve_timezone(tz: Optional[str]) -> Optional[ZoneInfo]:
    """--tz, else settings timezone, else None (machine local zone)."""
    name = tz or load_settings_or_fail().get("timezone")
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise click.BadParameter(f"Unknown timezone '{name}'")


def load_profile(path: str) -> StaffProfile:
    """Load a staff profile YAML (nested items or flat allowanceN_* columns)."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    try:
        if "allowances" in data or "deductions" in data:
            return StaffProfile.model_validate(data)
        return StaffProfile.from_record(data)
    except ValidationError as e:
        raise click.ClickException(f"{path}: invalid profile: {e}")


def _summary_json(summary) -> dict:
    return {
        "days": [
            {
                "date": d.work_date.isoformat() if d.work_date else None,
                "gross_minutes": d.gross_minutes,
                "break_minutes": d.break_minutes,
                "net_minutes": d.net_minutes,
                "hours": d.hours,
                "open_span": d.open_span,
            }
            for d in summary.days
        ],
        "total_minutes": summary.total_minutes,
        "total_hours": summary.total_hours,
        "days_worked": summary.days_worked,
    }


@click.command("timecard")
@click.argument("events_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--tz", help="Timezone for day boundaries (default: settings timezone, else local).")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]),
              default="text", help="Output format.")
def timecard(events_file: str, tz: Optional[str], output_format: str):
    """Summarize worked minutes per day from a timecard events file."""
    events = load_events(events_file)
    summary = summarize_period(events, resolve_timezone(tz))

    if output_format == "json":
        click.echo(json.dumps(_summary_json(summary), indent=2))
        return

    click.echo(f"{'Date':<12} {'Gross':>6} {'Break':>6} {'Net':>6} {'Hours':>6}")
    click.echo("-" * 40)
    for d in summary.days:
        flag = " (open)" if d.open_span else ""
        click.echo(f"{d.work_date.isoformat():<12} {d.gross_minutes:>6} {d.break_minutes:>6} "
                   f"{d.net_minutes:>6} {d.hours:>6.2f}{flag}")
    click.echo("-" * 40)
    click.echo(f"{'Total':<12} {'':>6} {'':>6} {summary.total_minutes:>6} {summary.total_hours:>6.2f}")


@click.command("payslip")
@click.argument("profile_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("events_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--tz", help="Timezone for day boundaries (default: settings timezone, else local).")
@click.option("--year", "-y", help="Withholding table year.")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]),
              default="text", help="Output format.")
def payslip(profile_file: str, events_file: str, tz: Optional[str], year: Optional[str],
            output_format: str):
    """Compute a period payslip from a staff PROFILE_FILE and EVENTS_FILE.

    \b
    Examples:
      wage-calc payslip staff.yaml 2026-01.json
      wage-calc payslip staff.yaml 2026-01.json --tz Asia/Tokyo --format json
    """
    profile = load_profile(profile_file)
    events = load_events(events_file)
    rules = load_rules_or_fail(year)

    slip, _ = build_payslip_from_events(profile, events, resolve_timezone(tz), rules=rules)

    if output_format == "json":
        click.echo(json.dumps(slip.model_dump(), indent=2, ensure_ascii=False))
        return

    click.echo(f"Payslip: {slip.staff_name or Path(profile_file).stem}")
    click.echo(f"  Hours worked:   {slip.total_hours:.2f} ({slip.total_minutes} min)")
    click.echo(f"  Hourly wage:    {slip.hourly_wage:,.0f}")
    click.echo(f"  Base wage:      {slip.base_wage:,}")
    for item in slip.allowance_items:
        click.echo(f"  + {item.name}: {item.value:,}")
    click.echo(f"  Gross for tax:  {slip.gross_for_tax:,}")
    click.echo(f"  Income tax:     {slip.tax:,} ({slip.tax_category}, dependents {slip.dependents})")
    for item in slip.deduction_items:
        click.echo(f"  - {item.name}: {item.value:,}")
    click.echo(f"  Net pay:        {slip.net_pay:,}")
