from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import polars as pl

from nipt_calculators.config import CalculatorConfig
from nipt_calculators.nipt_risk_calculator.calculator import NIPTCalculator
from nipt_calculators.nipt_risk_calculator.form_processing import (
    coerce_condition,
    coerce_result,
    percent_to_fraction,
)
from nipt_calculators.nipt_risk_calculator.models import RiskInput
from nipt_calculators.nipt_risk_calculator.scenario_grid import GRID_SCHEMA

logger = logging.getLogger(__name__)

OUTPUT_SCHEMA = {"row": pl.Int64, **GRID_SCHEMA}


def rows_to_risk_inputs(
    rows: Iterable[dict[str, Any]],
    *,
    config: CalculatorConfig | None = None,
) -> tuple[list[tuple[int, RiskInput]], dict[str, Any]]:
    """
    Convert raw scenario rows into RiskInput objects with validation.

    Expected row keys: age, result, condition, sensitivity, specificity.
    Sensitivity and specificity are percentages; blank means the configured default.
    A condition on a `low` row is dropped, as the form helper does.
    Rows that cannot be turned into a RiskInput are skipped.

    Returns (list of (row number, RiskInput), stats).
    """
    config = config or CalculatorConfig()
    inputs: list[tuple[int, RiskInput]] = []
    skipped_rows: list[int] = []

    for i, row in enumerate(rows, start=1):
        try:
            age = row.get("age")
            if age is None or not str(age).strip():
                raise ValueError("age is required")
            result = coerce_result(row.get("result"))
            if result is None:
                raise ValueError(f"unrecognized result {row.get('result')!r}")
            condition = coerce_condition(row.get("condition"))
            if condition is None and row.get("condition") not in (None, ""):
                raise ValueError(f"unrecognized condition {row.get('condition')!r}")
            if not result.requires_condition:
                condition = None

            risk_input = RiskInput(
                age=int(str(age).strip()),
                result=result,
                condition=condition,
                sensitivity=percent_to_fraction(row.get("sensitivity"), config.default_sensitivity_percent),
                specificity=percent_to_fraction(row.get("specificity"), config.default_specificity_percent),
            )
        except ValueError as e:
            logger.warning("Skipping row %d: %s", i, e)
            skipped_rows.append(i)
            continue

        inputs.append((i, risk_input))

    return inputs, {"skipped": len(skipped_rows), "skipped_rows": skipped_rows}


def score_csv_to_csv(
    *,
    input_csv_path: str | Path,
    output_csv_path: str | Path,
    calculator: NIPTCalculator | None = None,
    config: CalculatorConfig | None = None,
) -> int:
    """Read scenarios from CSV and write risk results to CSV.

    Returns number of rows written.

    Expected input columns:
    - age, result, condition, sensitivity, specificity
    """
    config = config or CalculatorConfig()
    calculator = calculator or NIPTCalculator(tables_dir=config.tables_dir)

    input_path = Path(input_csv_path).expanduser().resolve()
    # Read everything as text; parsing happens per row
    df = pl.read_csv(input_path, infer_schema_length=0)

    missing = [c for c in ("age", "result") if c not in df.columns]
    if missing:
        raise ValueError(f"{input_path} is missing required columns: {', '.join(missing)}")

    inputs, stats = rows_to_risk_inputs(df.iter_rows(named=True), config=config)

    records = []
    for row_number, risk_input in inputs:
        output = calculator.compute_risk(risk_input)
        records.append(
            {
                "row": row_number,
                "age": risk_input.age,
                "result": risk_input.result.value,
                "condition": risk_input.condition.value if risk_input.condition else None,
                "sensitivity": output.sensitivity,
                "specificity": output.specificity,
                "prevalence": output.prevalence,
                "ppv": output.ppv,
                "npv": output.npv,
                "false_negative_rate": output.false_negative_rate,
            }
        )

    output_path = Path(output_csv_path).expanduser().resolve()
    output_path.parent.mkdir(parents=True, exist_ok=True)

    out = pl.DataFrame(records, schema=OUTPUT_SCHEMA)
    out.write_csv(output_path)

    skipped = int(stats["skipped"])
    if skipped:
        total_rows = df.height
        pct = (skipped / total_rows) * 100 if total_rows > 0 else 0
        logger.warning(
            "Skipped %d/%d (%.2f%%) rows: %s",
            skipped,
            total_rows,
            pct,
            ", ".join(str(r) for r in stats["skipped_rows"]),
        )

    return out.height
