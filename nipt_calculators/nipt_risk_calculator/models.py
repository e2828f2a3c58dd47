"""Data models for the NIPT risk calculator."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class InvalidInputError(ValueError):
    """Raised when a calculation precondition is violated."""


class IncompleteFormError(InvalidInputError):
    """Raised when the caller's form is missing a required value."""

    def __init__(self, message: str = "Please complete all required fields."):
        super().__init__(message)


class ConditionCode(str, Enum):
    """Condition screened for by the test."""

    t21 = "t21"
    t18 = "t18"
    t13 = "t13"
    sca = "sca"

    @property
    def display_id(self) -> str:
        return f"CONDITION_{self.value.upper()}"

    @property
    def label(self) -> str:
        return CONDITION_LABELS[self]

    @property
    def is_trisomy(self) -> bool:
        return self is not ConditionCode.sca


CONDITION_LABELS: dict[ConditionCode, str] = {
    ConditionCode.t21: "Trisomy 21 (Down syndrome)",
    ConditionCode.t18: "Trisomy 18 (Edwards syndrome)",
    ConditionCode.t13: "Trisomy 13 (Patau syndrome)",
    ConditionCode.sca: "Sex-chromosome aneuploidy",
}


class ScreeningResult(str, Enum):
    """Screening result category reported by the lab."""

    low = "low"
    high = "high"
    suspicious = "suspicious"

    @property
    def requires_condition(self) -> bool:
        return self is not ScreeningResult.low


def selectable_conditions(result: ScreeningResult) -> list[ConditionCode]:
    """Return the conditions a caller may pick for a screening result.

    `high` offers the autosomal trisomies, `suspicious` offers only SCA and
    `low` offers nothing (the low-risk path combines all three trisomies).
    """
    if result is ScreeningResult.high:
        return [c for c in ConditionCode if c.is_trisomy]
    if result is ScreeningResult.suspicious:
        return [ConditionCode.sca]
    return []


class RiskInput(BaseModel):
    """Input for a single risk calculation.

    Attributes:
        age: Maternal age in completed years
        result: Screening result category
        condition: Suspected condition (required unless result is `low`)
        sensitivity: Assumed test sensitivity as a fraction
        specificity: Assumed test specificity as a fraction
    """

    model_config = ConfigDict(frozen=True)

    age: int
    result: ScreeningResult
    condition: ConditionCode | None = None
    sensitivity: float = Field(default=0.99, ge=0.0, le=1.0)
    specificity: float = Field(default=0.999, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_condition(self) -> "RiskInput":
        if self.result.requires_condition:
            if self.condition is None:
                raise ValueError(f"condition is required when result is '{self.result.value}'")
            if self.condition not in selectable_conditions(self.result):
                raise ValueError(
                    f"condition '{self.condition.value}' is not selectable "
                    f"when result is '{self.result.value}'"
                )
        elif self.condition is not None:
            raise ValueError("condition must be omitted when result is 'low'")
        return self


class RiskOutput(BaseModel):
    """Output from a risk calculation.

    Attributes:
        prevalence: Prior probability of the condition(s) of interest
        sensitivity: Sensitivity used, echoed from the input
        specificity: Specificity used, echoed from the input
        ppv: Positive predictive value (NaN when undefined)
        npv: Negative predictive value (NaN when undefined)
        false_negative_rate: Probability of a negative result with the condition present
        details: Dictionary with calculation details
    """

    model_config = ConfigDict(frozen=True)

    prevalence: float
    sensitivity: float
    specificity: float
    ppv: float
    npv: float
    false_negative_rate: float
    details: dict = Field(default_factory=dict)
