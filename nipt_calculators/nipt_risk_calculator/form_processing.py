from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from nipt_calculators.config import CalculatorConfig
from nipt_calculators.nipt_risk_calculator.models import (
    ConditionCode,
    IncompleteFormError,
    RiskInput,
    ScreeningResult,
)

DEFAULT_SENSITIVITY_PERCENT = 99.0
DEFAULT_SPECIFICITY_PERCENT = 99.9


@dataclass(frozen=True)
class RiskForm:
    """Raw values collected from the caller's form, before any parsing.

    `anatomy_normal` is the "anatomy scan normal" confirmation the form
    requires before a calculation may run.
    """

    age: Any = None
    result: Any = None
    condition: Any = None
    sensitivity: Any = None
    specificity: Any = None
    anatomy_normal: bool = False


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def percent_to_fraction(value: Any, default: float | None = None) -> float:
    """Convert a percentage (e.g. "99.9" or 99.9) to a fraction (0.999).

    Blank values fall back to `default`, itself a percentage.
    """
    if _is_blank(value):
        if default is None:
            raise ValueError("percentage value is required")
        value = default
    return float(str(value).strip()) / 100


def coerce_result(value: Any) -> ScreeningResult | None:
    """Normalize a result category to ScreeningResult, or None if unrecognized."""
    if _is_blank(value):
        return None
    text = str(value.value if isinstance(value, ScreeningResult) else value).strip().lower()
    try:
        return ScreeningResult(text)
    except ValueError:
        return None


def coerce_condition(value: Any) -> ConditionCode | None:
    """Normalize a condition code to ConditionCode, or None if unrecognized."""
    if _is_blank(value):
        return None
    text = str(value.value if isinstance(value, ConditionCode) else value).strip().lower()
    try:
        return ConditionCode(text)
    except ValueError:
        return None


def is_form_complete(form: RiskForm) -> bool:
    """Check the minimal preconditions for running a calculation.

    Age and result must be set, a condition must be set unless the result is
    `low`, and the anatomy scan must be confirmed normal.
    """
    if _is_blank(form.age) or not form.anatomy_normal:
        return False
    result = coerce_result(form.result)
    if result is None:
        return False
    if result.requires_condition and coerce_condition(form.condition) is None:
        return False
    return True


def form_to_risk_input(form: RiskForm, config: CalculatorConfig | None = None) -> RiskInput:
    """Build a RiskInput from raw form values.

    Args:
        form: Raw form values
        config: Calculator settings supplying default sensitivity/specificity

    Returns:
        Validated RiskInput

    Raises:
        IncompleteFormError: if the form is missing a required value
    """
    if not is_form_complete(form):
        raise IncompleteFormError()

    sens_default = config.default_sensitivity_percent if config else DEFAULT_SENSITIVITY_PERCENT
    spec_default = config.default_specificity_percent if config else DEFAULT_SPECIFICITY_PERCENT

    result = coerce_result(form.result)
    # A condition left over from a previous result selection is dropped for `low`
    condition = coerce_condition(form.condition) if result.requires_condition else None

    return RiskInput(
        age=int(str(form.age).strip()),
        result=result,
        condition=condition,
        sensitivity=percent_to_fraction(form.sensitivity, sens_default),
        specificity=percent_to_fraction(form.specificity, spec_default),
    )
