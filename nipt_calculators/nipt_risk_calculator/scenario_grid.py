from __future__ import annotations

from collections.abc import Iterable

import polars as pl

from nipt_calculators.config import CalculatorConfig
from nipt_calculators.nipt_risk_calculator.calculator import NIPTCalculator
from nipt_calculators.nipt_risk_calculator.models import ConditionCode, RiskInput, ScreeningResult

GRID_SCHEMA = {
    "age": pl.Int64,
    "result": pl.Utf8,
    "condition": pl.Utf8,
    "sensitivity": pl.Float64,
    "specificity": pl.Float64,
    "prevalence": pl.Float64,
    "ppv": pl.Float64,
    "npv": pl.Float64,
    "false_negative_rate": pl.Float64,
}


def build_scenario_grid(
    result: ScreeningResult | str,
    condition: ConditionCode | str | None = None,
    *,
    sensitivity: float | None = None,
    specificity: float | None = None,
    ages: Iterable[int] | None = None,
    calculator: NIPTCalculator | None = None,
    config: CalculatorConfig | None = None,
) -> pl.DataFrame:
    """Compute one risk row per age for a fixed result/condition.

    Args:
        result: Screening result category
        condition: Condition code (required unless result is `low`)
        sensitivity: Fraction; defaults to the configured default
        specificity: Fraction; defaults to the configured default
        ages: Ages to compute (defaults to config min_age..max_age)
        calculator: Calculator to use (defaults to one built from config)
        config: Calculator settings

    Returns:
        DataFrame with columns from GRID_SCHEMA, one row per age
    """
    config = config or CalculatorConfig()
    calculator = calculator or NIPTCalculator(tables_dir=config.tables_dir)

    if sensitivity is None:
        sensitivity = config.default_sensitivity_percent / 100
    if specificity is None:
        specificity = config.default_specificity_percent / 100

    rows = []
    for age in ages if ages is not None else config.ages:
        risk_input = RiskInput(
            age=age,
            result=result,
            condition=condition,
            sensitivity=sensitivity,
            specificity=specificity,
        )
        output = calculator.compute_risk(risk_input)
        rows.append(
            {
                "age": age,
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

    return pl.DataFrame(rows, schema=GRID_SCHEMA)
