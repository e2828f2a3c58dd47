"""NIPT Bayesian Risk Calculator.

This module implements the calculator that:
1. Looks up the age-specific prior risk from the risk tables
2. Derives the prevalence for the screening result and condition
3. Applies Bayes' theorem to get PPV, NPV and the false-negative rate

The calculator loads its tables from:
    nipt_risk_calculator/risk_tables/
"""

import logging
import math
from pathlib import Path

from nipt_calculators.nipt_risk_calculator.interpolation import (
    AgeRiskTable,
    TableKind,
    interpolate_record,
    interpolate_scalar,
)
from nipt_calculators.nipt_risk_calculator.models import (
    ConditionCode,
    InvalidInputError,
    RiskInput,
    RiskOutput,
    ScreeningResult,
)
from nipt_calculators.nipt_risk_calculator.table_loader import (
    BASE_RISK_FIELDS,
    load_base_risk_table,
    load_sca_risk_table,
)

logger = logging.getLogger(__name__)


def _divide(numerator: float, denominator: float) -> float:
    # 0/0 is undefined; propagate NaN rather than raise
    if denominator == 0:
        return math.nan
    return numerator / denominator


def positive_predictive_value(sensitivity: float, specificity: float, prevalence: float) -> float:
    """Probability the condition is present given a positive result.

    PPV = (Sens * P) / (Sens * P + (1 - Spec) * (1 - P))
    """
    true_positive = sensitivity * prevalence
    false_positive = (1 - specificity) * (1 - prevalence)
    return _divide(true_positive, true_positive + false_positive)


def negative_predictive_value(sensitivity: float, specificity: float, prevalence: float) -> float:
    """Probability the condition is absent given a negative result.

    NPV = (Spec * (1 - P)) / ((1 - Sens) * P + Spec * (1 - P))
    """
    true_negative = specificity * (1 - prevalence)
    false_negative = (1 - sensitivity) * prevalence
    return _divide(true_negative, false_negative + true_negative)


def false_negative_rate(sensitivity: float, prevalence: float) -> float:
    """Probability of a negative result with the condition present: (1 - Sens) * P."""
    return (1 - sensitivity) * prevalence


def _check_tables(base_table: AgeRiskTable, sca_table: AgeRiskTable) -> None:
    if base_table.kind is not TableKind.record:
        raise InvalidInputError("base risk table must be a record table")
    fields = set(base_table.values[base_table.breakpoints[0]])
    missing = [f for f in BASE_RISK_FIELDS if f not in fields]
    if missing:
        raise InvalidInputError(f"base risk table is missing fields: {', '.join(missing)}")
    if sca_table.kind is not TableKind.scalar:
        raise InvalidInputError("SCA risk table must be a scalar table")


class NIPTCalculator:
    """Bayesian risk calculator for NIPT screening results.

    Implements the risk algorithm:
    1. Interpolate the prior risk table(s) at the patient's age
    2. Derive prevalence:
       - low result: 1/t21 + 1/t18 + 1/t13 (combined trisomy risk)
       - SCA: per-1000 value / 1000
       - single trisomy: 1/denominator
    3. Apply Bayes' theorem with the assumed sensitivity and specificity

    Example:
        >>> calculator = NIPTCalculator()
        >>> risk_input = RiskInput(
        ...     age=35,
        ...     result="high",
        ...     condition="t21",
        ...     sensitivity=0.99,
        ...     specificity=0.999,
        ... )
        >>> result = calculator.compute_risk(risk_input)
        >>> print(f"PPV: {result.ppv:.4f}")
        PPV: 0.7990
    """

    def __init__(
        self,
        tables_dir: str | Path | None = None,
        *,
        base_table: AgeRiskTable | None = None,
        sca_table: AgeRiskTable | None = None,
    ):
        """Initialize calculator with its risk tables.

        Args:
            tables_dir: Directory with base_risk.csv and sca_risk.csv.
                Defaults to the packaged tables.
            base_table: Explicit trisomy record table (overrides tables_dir)
            sca_table: Explicit SCA per-1000 table (overrides tables_dir)

        Raises:
            InvalidInputError: if a table does not have the expected shape
        """
        # Load tables (cached after first load)
        self._base_table = base_table if base_table is not None else load_base_risk_table(tables_dir)
        self._sca_table = sca_table if sca_table is not None else load_sca_risk_table(tables_dir)
        _check_tables(self._base_table, self._sca_table)

    def derive_prevalence(self, risk_input: RiskInput) -> tuple[float, dict]:
        """Derive the prior probability for a request.

        Args:
            risk_input: Calculation request

        Returns:
            Tuple of (prevalence, details describing the table lookup)
        """
        age = risk_input.age
        condition = risk_input.condition

        if risk_input.result is ScreeningResult.low:
            risk = interpolate_record(age, self._base_table)
            # Sum of the three risks; overlap between conditions is ignored
            prevalence = 1 / risk["t21"] + 1 / risk["t18"] + 1 / risk["t13"]
            return prevalence, {"prevalence_source": "base_risk", "base_risk": risk}

        if condition is None:
            raise InvalidInputError(
                f"condition is required when result is '{risk_input.result.value}'"
            )

        if condition is ConditionCode.sca:
            per_1000 = interpolate_scalar(age, self._sca_table)
            return per_1000 / 1000, {"prevalence_source": "sca_risk", "sca_per_1000": per_1000}

        risk = interpolate_record(age, self._base_table)
        return 1 / risk[condition.value], {"prevalence_source": "base_risk", "base_risk": risk}

    def compute_risk(self, risk_input: RiskInput) -> RiskOutput:
        """Calculate predictive values for a single request.

        Args:
            risk_input: Calculation request

        Returns:
            RiskOutput with prevalence, PPV, NPV and false-negative rate
        """
        # Step 1: Prior probability from the risk tables
        prevalence, lookup = self.derive_prevalence(risk_input)
        logger.debug(
            "age=%s result=%s condition=%s prevalence=%r (%s)",
            risk_input.age,
            risk_input.result.value,
            risk_input.condition.value if risk_input.condition else None,
            prevalence,
            lookup["prevalence_source"],
        )

        # Step 2: Bayes' theorem
        sens = risk_input.sensitivity
        spec = risk_input.specificity

        return RiskOutput(
            prevalence=prevalence,
            sensitivity=sens,
            specificity=spec,
            ppv=positive_predictive_value(sens, spec, prevalence),
            npv=negative_predictive_value(sens, spec, prevalence),
            false_negative_rate=false_negative_rate(sens, prevalence),
            details={
                "age": risk_input.age,
                "result": risk_input.result.value,
                "condition": risk_input.condition.value if risk_input.condition else None,
                **lookup,
            },
        )

    def compute_batch(self, risk_inputs: list[RiskInput]) -> list[RiskOutput]:
        """Calculate risks for multiple requests.

        Args:
            risk_inputs: List of calculation requests

        Returns:
            List of outputs in same order as inputs
        """
        return [self.compute_risk(risk_input) for risk_input in risk_inputs]


def compute_risk(risk_input: RiskInput) -> RiskOutput:
    """Calculate risk for a request using the packaged risk tables."""
    return NIPTCalculator().compute_risk(risk_input)
