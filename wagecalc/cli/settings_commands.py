"""Settings CLI commands for Wage Calc.

Manages settings.json (timezone, default table year, tax rules path) and
resolves those settings for the other commands.
"""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import click

from wagecalc.sdk import (
    get_settings_path,
    get_tax_rules_dir,
    load_settings,
    set_setting,
    SETTING_KEYS,
    SettingsError,
)


def load_settings_or_fail() -> dict:
    """settings.json contents, with a bad file reported as a CLI error."""
    try:
        return load_settings()
    except SettingsError as e:
        raise click.ClickException(str(e))


def check_year(year) -> None:
    if year is not None and (not str(year).isdigit() or len(str(year)) != 4):
        raise click.BadParameter(f"Invalid year '{year}'. Must be 4 digits.")


@click.group()
def settings():
    """Manage settings (settings.json).

    Available settings:
    - timezone: IANA zone for day boundaries (e.g. Asia/Tokyo)
    - tax_year: default withholding table year
    - tax_rules_dir: directory of YYYY.yaml withholding tables
    """
    pass


@settings.command("show")
def settings_show():
    """Show settings.json and the effective tables directory."""
    current = load_settings_or_fail()

    click.echo(f"Settings file: {get_settings_path()}")
    if not current:
        click.echo("No settings configured (using defaults).")
    for key in SETTING_KEYS:
        if key in current:
            click.echo(f"  {key}: {current[key]}")
    click.echo(f"Tables from: {get_tax_rules_dir(current)}")


@settings.command("set")
@click.argument("key", type=click.Choice(SETTING_KEYS))
@click.argument("value")
def settings_set(key: str, value: str):
    """Set KEY to VALUE in settings.json."""
    if key == "timezone":
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise click.BadParameter(f"Unknown timezone '{value}'")
    if key == "tax_year":
        check_year(value)

    try:
        path = set_setting(key, value)
    except SettingsError as e:
        raise click.ClickException(str(e))
    click.echo(f"Set {key}: {value} ({path})")
