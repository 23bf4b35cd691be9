"""Withholding table loading.

Tables live in <rules dir>/YYYY.yaml and are validated against
WithholdingRules on load. A year without its own file falls back to the
nearest earlier year, since the monthly table is often carried over
unchanged.

The rules dir defaults to the tables bundled with the package. Nothing
here reads settings; callers that honor a configured directory or year
pass them in.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

import yaml

from .schemas import WithholdingRules

logger = logging.getLogger(__name__)

BUNDLED_RULES_DIR = Path(__file__).parent.parent.parent / "tax_rules"  # taxes -> sdk -> wagecalc


class TaxRulesNotFoundError(FileNotFoundError):
    """Raised when no withholding table covers the requested year."""
    pass


def get_available_years(rules_dir: Optional[Path] = None) -> list[int]:
    """Get sorted list of available table years (descending)."""
    rules_dir = Path(rules_dir or BUNDLED_RULES_DIR)
    years = [int(p.stem) for p in rules_dir.glob("*.yaml") if p.stem.isdigit()]
    return sorted(years, reverse=True)


def resolve_rules_year(year: Union[str, int, None] = None, rules_dir: Optional[Path] = None) -> int:
    """Pick the table year to use for a requested year.

    Args:
        year: Requested year (e.g. "2026"); None means the latest table
        rules_dir: Directory to search (defaults to the bundled tables)

    Returns:
        The newest available year not after the requested one

    Raises:
        TaxRulesNotFoundError: If no table is at or before the requested year
    """
    rules_dir = Path(rules_dir or BUNDLED_RULES_DIR)
    available = get_available_years(rules_dir)
    if not available:
        raise TaxRulesNotFoundError(f"No withholding tables found in {rules_dir}")

    if year is None:
        return available[0]

    target = int(year)
    for candidate in available:
        if candidate <= target:
            if candidate != target:
                logger.debug(f"No table for {target}, falling back to {candidate}")
            return candidate

    raise TaxRulesNotFoundError(
        f"No withholding table for {target} or earlier in {rules_dir} "
        f"(available: {', '.join(str(y) for y in sorted(available))})"
    )


@lru_cache(maxsize=None)
def _load_rules_file(path: str) -> WithholdingRules:
    logger.debug(f"Loading withholding table: {path}")
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return WithholdingRules.model_validate(data)


def load_withholding_rules(
    year: Union[str, int, None] = None,
    rules_dir: Optional[Path] = None,
) -> WithholdingRules:
    """Load the validated withholding table for a year.

    Results are cached per file; call clear_rules_cache() after editing
    a table in-process.

    Raises:
        TaxRulesNotFoundError: If no table covers the year
        pydantic.ValidationError: If the YAML doesn't match the schema
    """
    rules_dir = Path(rules_dir or BUNDLED_RULES_DIR)
    resolved = resolve_rules_year(year, rules_dir)
    return _load_rules_file(str(rules_dir / f"{resolved}.yaml"))


def clear_rules_cache() -> None:
    """Drop cached tables."""
    _load_rules_file.cache_clear()
