"""NIPT Risk Calculator.

Derives the prior risk of trisomy 21/18/13 and sex-chromosome aneuploidy from
maternal age, then applies Bayes' theorem to the screening result.
Loads its age tables from risk_tables/.
"""

from nipt_calculators.nipt_risk_calculator.calculator import NIPTCalculator, compute_risk
from nipt_calculators.nipt_risk_calculator.interpolation import AgeRiskTable, interpolate
from nipt_calculators.nipt_risk_calculator.models import (
    ConditionCode,
    IncompleteFormError,
    InvalidInputError,
    RiskInput,
    RiskOutput,
    ScreeningResult,
)

__all__ = [
    "AgeRiskTable",
    "ConditionCode",
    "IncompleteFormError",
    "InvalidInputError",
    "NIPTCalculator",
    "RiskInput",
    "RiskOutput",
    "ScreeningResult",
    "compute_risk",
    "interpolate",
]
