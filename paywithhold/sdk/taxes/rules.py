"""Rule table loading.

Rule tables are YAML files named by tax year, bundled under
paywithhold/sdk/tax_rules/. A table is validated in full on load (see
schemas.TaxRules); a malformed file raises pydantic's ValidationError and
never reaches a calculator.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

import yaml

from .schemas import TaxRules

logger = logging.getLogger(__name__)


class RulesNotFoundError(FileNotFoundError):
    """Raised when a rule table file cannot be located."""
    pass


def _get_tax_rules_dir() -> Path:
    """Get the bundled tax_rules directory path."""
    return Path(__file__).parent.parent / "tax_rules"  # taxes -> sdk


def get_available_years() -> list[int]:
    """Get sorted list of bundled rule table years (descending)."""
    rules_dir = _get_tax_rules_dir()
    years = [int(p.stem) for p in rules_dir.glob("*.yaml") if p.stem.isdigit()]
    return sorted(years, reverse=True)


def resolve_rules_year(year: Optional[Union[int, str]] = None) -> int:
    """Pick the rule table year to use for a requested tax year.

    Uses the requested year if bundled, else the newest year before it,
    else the newest year available.

    Raises:
        RulesNotFoundError: If no rule tables are bundled at all
    """
    available = get_available_years()
    if not available:
        raise RulesNotFoundError(f"No tax rule files found in {_get_tax_rules_dir()}")

    if year is None:
        return available[0]

    target = int(year)
    candidates = [y for y in available if y <= target]
    chosen = candidates[0] if candidates else available[0]
    if chosen != target:
        logger.info(f"No rule table for {target}; using {chosen}")
    return chosen


def load_tax_rules_file(path: Union[str, Path]) -> TaxRules:
    """Load and validate a rule table from a YAML file.

    The year is taken from the file's 'year' key, or from a numeric file
    name (2024.yaml) when the key is absent.
    """
    rules_file = Path(path)
    if not rules_file.exists():
        raise RulesNotFoundError(f"Tax rules file not found: {rules_file}")

    with open(rules_file, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if "year" not in data and rules_file.stem.isdigit():
        data["year"] = int(rules_file.stem)

    rules = TaxRules.model_validate(data)
    logger.debug(f"Loaded {len(rules.jurisdictions)} jurisdictions from {rules_file}")
    return rules


@lru_cache(maxsize=None)
def _load_bundled(year: int) -> TaxRules:
    return load_tax_rules_file(_get_tax_rules_dir() / f"{year}.yaml")


def load_tax_rules(year: Optional[Union[int, str]] = None) -> TaxRules:
    """Load the bundled rule table for a tax year (cached)."""
    return _load_bundled(resolve_rules_year(year))
