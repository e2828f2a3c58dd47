"""Tests for turning raw form values into calculator input."""

import pytest

from nipt_calculators.config import CalculatorConfig
from nipt_calculators.nipt_risk_calculator.form_processing import (
    RiskForm,
    coerce_condition,
    coerce_result,
    form_to_risk_input,
    is_form_complete,
    percent_to_fraction,
)
from nipt_calculators.nipt_risk_calculator.models import (
    ConditionCode,
    IncompleteFormError,
    InvalidInputError,
    ScreeningResult,
)


class TestPercentToFraction:
    def test_string_value(self):
        assert percent_to_fraction("99") == 0.99
        assert percent_to_fraction(" 99.9 ") == pytest.approx(0.999)

    def test_numeric_value(self):
        assert percent_to_fraction(50) == 0.5

    def test_blank_uses_default(self):
        assert percent_to_fraction("", default=99.0) == 0.99
        assert percent_to_fraction(None, default=99.9) == pytest.approx(0.999)

    def test_blank_without_default(self):
        with pytest.raises(ValueError):
            percent_to_fraction(None)

    def test_not_a_number(self):
        with pytest.raises(ValueError):
            percent_to_fraction("abc")


class TestCoercion:
    def test_result(self):
        assert coerce_result("High") is ScreeningResult.high
        assert coerce_result(ScreeningResult.low) is ScreeningResult.low
        assert coerce_result("") is None
        assert coerce_result("positive") is None

    def test_condition(self):
        assert coerce_condition("T21") is ConditionCode.t21
        assert coerce_condition(ConditionCode.sca) is ConditionCode.sca
        assert coerce_condition(None) is None
        assert coerce_condition("t99") is None


class TestFormCompleteness:
    """Tests for the minimal completeness check."""

    def test_complete_low(self):
        form = RiskForm(age="35", result="low", anatomy_normal=True)
        assert is_form_complete(form)

    def test_complete_high(self):
        form = RiskForm(age="35", result="high", condition="t21", anatomy_normal=True)
        assert is_form_complete(form)

    def test_missing_age(self):
        assert not is_form_complete(RiskForm(age="", result="low", anatomy_normal=True))

    def test_missing_result(self):
        assert not is_form_complete(RiskForm(age="35", anatomy_normal=True))

    def test_missing_condition(self):
        assert not is_form_complete(RiskForm(age="35", result="high", anatomy_normal=True))
        assert not is_form_complete(RiskForm(age="35", result="suspicious", anatomy_normal=True))

    def test_anatomy_not_confirmed(self):
        assert not is_form_complete(RiskForm(age="35", result="low"))


class TestFormToRiskInput:
    """Tests for form_to_risk_input."""

    def test_incomplete_form(self):
        """Test that any missing value gives the same generic error."""
        with pytest.raises(IncompleteFormError) as exc_info:
            form_to_risk_input(RiskForm(age="35", result="high", anatomy_normal=True))

        assert str(exc_info.value) == "Please complete all required fields."
        assert isinstance(exc_info.value, InvalidInputError)

    def test_defaults_applied(self):
        risk_input = form_to_risk_input(RiskForm(age="35", result="low", anatomy_normal=True))

        assert risk_input.age == 35
        assert risk_input.sensitivity == 0.99
        assert risk_input.specificity == pytest.approx(0.999)

    def test_percentages_converted(self):
        form = RiskForm(
            age=38,
            result="high",
            condition="t18",
            sensitivity="97",
            specificity="99.5",
            anatomy_normal=True,
        )
        risk_input = form_to_risk_input(form)

        assert risk_input.condition is ConditionCode.t18
        assert risk_input.sensitivity == 0.97
        assert risk_input.specificity == pytest.approx(0.995)

    def test_stale_condition_dropped_for_low(self):
        """Test that a condition picked for an earlier result is ignored on low."""
        form = RiskForm(age="35", result="low", condition="t21", anatomy_normal=True)
        assert form_to_risk_input(form).condition is None

    def test_config_defaults(self):
        config = CalculatorConfig(default_sensitivity_percent=95, default_specificity_percent=99)
        risk_input = form_to_risk_input(
            RiskForm(age="35", result="low", anatomy_normal=True), config
        )
        assert risk_input.sensitivity == 0.95
        assert risk_input.specificity == 0.99

    def test_condition_not_selectable(self):
        """Test that a complete form with a mismatched condition is rejected."""
        form = RiskForm(age="35", result="high", condition="sca", anatomy_normal=True)
        with pytest.raises(ValueError):
            form_to_risk_input(form)
