"""Load age-keyed risk tables shipped with the calculator.

This module loads the lookup tables from:
    nipt_calculators/nipt_risk_calculator/risk_tables/

Tables loaded:
    - base_risk.csv: "1 in N" denominators for trisomy 21, 18 and 13 by maternal age
    - sca_risk.csv: sex-chromosome aneuploidy risk per 1000 by maternal age

Both can be replaced by pointing `tables_dir` at a directory holding files
with the same names and columns.
"""

import csv
import logging
from pathlib import Path

from nipt_calculators.nipt_risk_calculator.interpolation import AgeRiskTable
from nipt_calculators.nipt_risk_calculator.models import InvalidInputError

logger = logging.getLogger(__name__)

# Base directory for risk tables
DATA_DIR = Path(__file__).parent / "risk_tables"

BASE_RISK_FIELDS = ("t21", "t18", "t13")

# Cache loaded tables
_CACHE: dict[str, AgeRiskTable] = {}


def _get_tables_dir(tables_dir: str | Path | None) -> Path:
    """Resolve the directory holding the risk table CSVs."""
    resolved = Path(tables_dir).expanduser().resolve() if tables_dir else DATA_DIR
    if not resolved.is_dir():
        raise FileNotFoundError(f"Risk tables not found. Expected directory: {resolved}")
    return resolved


def _parse_number(raw: str | None, column: str, line: int) -> float:
    try:
        return float(str(raw).strip())
    except ValueError:
        raise InvalidInputError(f"line {line}: column '{column}' is not a number: {raw!r}") from None


def _parse_age(raw: str | None, line: int) -> int:
    try:
        return int(str(raw).strip())
    except ValueError:
        raise InvalidInputError(f"line {line}: age is not an integer: {raw!r}") from None


def load_base_risk_table(tables_dir: str | Path | None = None) -> AgeRiskTable:
    """Load trisomy risk denominators from base_risk.csv.

    Args:
        tables_dir: Directory with the table CSVs (defaults to the packaged tables)

    Returns:
        Record table mapping age to {"t21": N, "t18": N, "t13": N}
    """
    directory = _get_tables_dir(tables_dir)
    cache_key = f"base_risk:{directory}"
    if cache_key in _CACHE:
        return _CACHE[cache_key]

    records: dict[int, dict[str, float]] = {}

    with open(directory / "base_risk.csv", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        # Header is line 1
        for line, row in enumerate(reader, start=2):
            age = _parse_age(row.get("age"), line)
            records[age] = {
                field: _parse_number(row.get(field), field, line) for field in BASE_RISK_FIELDS
            }

    table = AgeRiskTable.record(records)
    logger.debug("Loaded base risk table from %s (%d ages)", directory, len(table.breakpoints))

    _CACHE[cache_key] = table
    return table


def load_sca_risk_table(tables_dir: str | Path | None = None) -> AgeRiskTable:
    """Load sex-chromosome aneuploidy risk from sca_risk.csv.

    Args:
        tables_dir: Directory with the table CSVs (defaults to the packaged tables)

    Returns:
        Scalar table mapping age to affected pregnancies per 1000
    """
    directory = _get_tables_dir(tables_dir)
    cache_key = f"sca_risk:{directory}"
    if cache_key in _CACHE:
        return _CACHE[cache_key]

    values: dict[int, float] = {}

    with open(directory / "sca_risk.csv", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        for line, row in enumerate(reader, start=2):
            age = _parse_age(row.get("age"), line)
            values[age] = _parse_number(row.get("per_1000"), "per_1000", line)

    table = AgeRiskTable.scalar(values)
    logger.debug("Loaded SCA risk table from %s (%d ages)", directory, len(table.breakpoints))

    _CACHE[cache_key] = table
    return table


def clear_cache() -> None:
    """Clear the table cache."""
    _CACHE.clear()
