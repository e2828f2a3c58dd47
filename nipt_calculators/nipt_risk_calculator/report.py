"""Numbers shown alongside a risk calculation.

Turns a RiskOutput into the figures a results page displays: full-precision
percentages, "X out of 1000" counts, the comparison with the miscarriage risk
of amniocentesis, and the Bayes formula with the actual values substituted.
Nothing here draws anything.
"""

import math
from decimal import Decimal

from pydantic import BaseModel, Field

from nipt_calculators.nipt_risk_calculator.interpolation import round_half_up
from nipt_calculators.nipt_risk_calculator.models import RiskInput, RiskOutput, ScreeningResult

# Procedure-related miscarriage risk of amniocentesis
AMNIOCENTESIS_RISK_PERCENT = 0.75
AMNIOCENTESIS_RISK = 0.0075

# Rate of fetal sex mismatch reported on low-risk results (5 in 100)
SEX_MISMATCH_RATE = 0.05

PPV_FORMULA = "(Sens * P) / (Sens * P + (1 - Spec) * (1 - P))"
NPV_FORMULA = "(Spec * (1 - P)) / ((1 - Sens) * P + Spec * (1 - P))"


class FormulaTrace(BaseModel):
    name: str
    formula: str
    substituted: str
    value: float


class RiskReport(BaseModel):
    """Display figures for one calculation.

    Attributes:
        result: Screening result category
        condition: Condition code, None on the low-risk path
        condition_display_id: Display identifier of the condition
        prevalence_percent: Prevalence as full-precision percent text
        per_thousand: "X out of 1000" counts keyed by quantity (None when undefined)
        ppv_percent: PPV percent text (high/suspicious only)
        npv_percent: NPV percent text (low only)
        times_amniocentesis_risk: PPV relative to amniocentesis risk (high/suspicious only)
        sex_mismatch_percent: Fetal sex mismatch rate (low only)
        variables: Prevalence, sensitivity and specificity as decimal text
        trace: Formula worked through with the actual values
    """

    result: ScreeningResult
    condition: str | None = None
    condition_display_id: str | None = None
    prevalence_percent: str
    per_thousand: dict[str, int | None] = Field(default_factory=dict)
    ppv_percent: str | None = None
    npv_percent: str | None = None
    times_amniocentesis_risk: float | None = None
    sex_mismatch_percent: str | None = None
    variables: dict[str, str] = Field(default_factory=dict)
    trace: FormulaTrace


def format_decimal(value: float) -> str:
    """Render a float as plain decimal text with no exponent or grouping.

    Uses the shortest representation that round-trips, e.g. 6.23e-05 -> "0.0000623".
    """
    if math.isnan(value):
        return "NaN"
    text = f"{Decimal(repr(value)):f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_percent(value: float) -> str:
    """Render a fraction as a full-precision percentage (without the % sign)."""
    return format_decimal(value * 100)


def per_thousand(risk: float) -> int | None:
    """Number of affected out of 1000, capped at 1000. None when the risk is undefined."""
    if math.isnan(risk):
        return None
    return min(round_half_up(risk * 1000), 1000)


def times_amniocentesis_risk(ppv: float) -> float:
    """How many times the PPV exceeds the amniocentesis miscarriage risk."""
    return (ppv * 100) / AMNIOCENTESIS_RISK_PERCENT


def formula_trace(output: RiskOutput, result: ScreeningResult) -> FormulaTrace:
    """Work the relevant formula through with the output's values.

    The low-risk path shows NPV; high and suspicious show PPV.
    """
    p = format_decimal(output.prevalence)
    sens = format_decimal(output.sensitivity)
    spec = format_decimal(output.specificity)

    if result is ScreeningResult.low:
        return FormulaTrace(
            name="NPV",
            formula=NPV_FORMULA,
            substituted=f"({spec} * (1 - {p})) / ((1 - {sens}) * {p} + {spec} * (1 - {p}))",
            value=output.npv,
        )
    return FormulaTrace(
        name="PPV",
        formula=PPV_FORMULA,
        substituted=f"({sens} * {p}) / ({sens} * {p} + (1 - {spec}) * (1 - {p}))",
        value=output.ppv,
    )


def build_report(risk_input: RiskInput, output: RiskOutput) -> RiskReport:
    """Collect the display figures for a calculation."""
    variables = {
        "prevalence": format_decimal(output.prevalence),
        "sensitivity": format_decimal(output.sensitivity),
        "specificity": format_decimal(output.specificity),
    }
    trace = formula_trace(output, risk_input.result)

    if risk_input.result is ScreeningResult.low:
        return RiskReport(
            result=risk_input.result,
            prevalence_percent=format_percent(output.prevalence),
            per_thousand={"false_negative": per_thousand(output.false_negative_rate)},
            npv_percent=format_percent(output.npv),
            sex_mismatch_percent=format_percent(SEX_MISMATCH_RATE),
            variables=variables,
            trace=trace,
        )

    return RiskReport(
        result=risk_input.result,
        condition=risk_input.condition.value,
        condition_display_id=risk_input.condition.display_id,
        prevalence_percent=format_percent(output.prevalence),
        per_thousand={
            "prevalence": per_thousand(output.prevalence),
            "ppv": per_thousand(output.ppv),
            "amniocentesis": per_thousand(AMNIOCENTESIS_RISK),
        },
        ppv_percent=format_percent(output.ppv),
        times_amniocentesis_risk=times_amniocentesis_risk(output.ppv),
        variables=variables,
        trace=trace,
    )
