"""Tests for risk table interpolation."""

import pytest

from nipt_calculators.nipt_risk_calculator.interpolation import (
    AgeRiskTable,
    TableKind,
    find_breakpoints,
    interpolate,
    interpolate_record,
    interpolate_scalar,
    interpolation_ratio,
    round_half_up,
)
from nipt_calculators.nipt_risk_calculator.models import InvalidInputError
from nipt_calculators.nipt_risk_calculator.table_loader import (
    load_base_risk_table,
    load_sca_risk_table,
)


class TestAgeRiskTable:
    """Tests for AgeRiskTable construction."""

    def test_breakpoints_sorted(self):
        """Test that breakpoints are held in increasing order."""
        table = AgeRiskTable.scalar({40: 200, 30: 100, 35: 150})
        assert table.breakpoints == (30, 35, 40)

    def test_kind_from_string(self):
        """Test that the kind tag accepts its string value."""
        table = AgeRiskTable(kind="record", values={30: {"a": 1}})
        assert table.kind is TableKind.record

    def test_empty_table_rejected(self):
        """Test that an empty table cannot be built."""
        with pytest.raises(InvalidInputError):
            AgeRiskTable.scalar({})

    def test_non_positive_value_rejected(self):
        """Test that zero or negative risks are rejected."""
        with pytest.raises(InvalidInputError):
            AgeRiskTable.scalar({30: 0})
        with pytest.raises(InvalidInputError):
            AgeRiskTable.record({30: {"a": 10, "b": -1}})

    def test_mismatched_record_fields_rejected(self):
        """Test that all records must share the same fields."""
        with pytest.raises(InvalidInputError):
            AgeRiskTable.record({30: {"a": 1, "b": 2}, 40: {"a": 1}})

    def test_non_integer_age_rejected(self):
        """Test that fractional ages are rejected rather than merged."""
        with pytest.raises(InvalidInputError):
            AgeRiskTable.scalar({30.2: 2, 30.6: 1})
        with pytest.raises(InvalidInputError):
            AgeRiskTable.record({"30": {"a": 1}})

    def test_table_is_read_only(self):
        """Test that table values cannot be modified after construction."""
        source = {30: {"a": 100}}
        table = AgeRiskTable.record(source)
        source[30]["a"] = 999

        assert table.values[30]["a"] == 100
        with pytest.raises(TypeError):
            table.values[30]["a"] = 1


class TestBreakpoints:
    """Tests for breakpoint search."""

    def test_between(self):
        assert find_breakpoints(35, (30, 40)) == (30, 40)

    def test_exact(self):
        assert find_breakpoints(30, (20, 30, 40)) == (30, 30)

    def test_below_all_has_no_lower(self):
        """Test that no lower breakpoint is reported as None, not a number."""
        lower, upper = find_breakpoints(10, (20, 30))
        assert lower is None
        assert upper == 20

    def test_above_all_has_no_upper(self):
        lower, upper = find_breakpoints(50, (20, 30))
        assert lower == 30
        assert upper is None

    def test_zero_breakpoint_is_found(self):
        """Test that a breakpoint at age 0 is not mistaken for a missing one."""
        assert find_breakpoints(0, (0, 10)) == (0, 0)
        assert find_breakpoints(5, (0, 10)) == (0, 10)

    def test_ratio(self):
        assert interpolation_ratio(35, 30, 40) == 0.5
        assert interpolation_ratio(22, 20, 25) == pytest.approx(0.4)


class TestInterpolateScalar:
    """Tests for scalar tables."""

    @pytest.fixture
    def table(self):
        return AgeRiskTable.scalar({30: 100, 40: 200})

    def test_midpoint(self, table):
        """Test linear interpolation halfway between breakpoints."""
        assert interpolate(35, table) == 150

    def test_exact_breakpoint(self, table):
        assert interpolate(30, table) == 100
        assert interpolate(40, table) == 200

    def test_clamp_below(self, table):
        """Test that ages below the first breakpoint use the first value."""
        assert interpolate(20, table) == 100

    def test_clamp_above(self, table):
        """Test that ages above the last breakpoint use the last value."""
        assert interpolate(50, table) == 200

    def test_scalar_not_rounded(self):
        """Test that scalar interpolation keeps fractional values."""
        table = AgeRiskTable.scalar({33: 7.8, 38: 11})
        assert interpolate_scalar(35, table) == pytest.approx(9.08)

    def test_single_breakpoint(self):
        table = AgeRiskTable.scalar({30: 5})
        assert interpolate(10, table) == 5
        assert interpolate(30, table) == 5
        assert interpolate(90, table) == 5


class TestInterpolateRecord:
    """Tests for record tables."""

    @pytest.fixture
    def table(self):
        return AgeRiskTable.record({30: {"a": 100, "b": 200}, 40: {"a": 200, "b": 400}})

    def test_midpoint(self, table):
        """Test that each field is interpolated with the same ratio."""
        assert interpolate(35, table) == {"a": 150, "b": 300}

    def test_clamp(self, table):
        assert interpolate(25, table) == {"a": 100, "b": 200}
        assert interpolate(45, table) == {"a": 200, "b": 400}

    def test_result_is_a_copy(self, table):
        """Test that callers cannot modify the table through a result."""
        value = interpolate_record(30, table)
        value["a"] = 0
        assert interpolate_record(30, table) == {"a": 100, "b": 200}

    def test_rounds_half_up(self):
        """Test that interpolated denominators are rounded with halves up."""
        table = AgeRiskTable.record({0: {"a": 2}, 2: {"a": 3}})
        assert interpolate(1, table) == {"a": 3}

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(2.4) == 2
        assert round_half_up(1059.6) == 1060


class TestPackagedTables:
    """Tests against the packaged risk tables."""

    def test_exact_breakpoints_unchanged(self):
        """Test that every table age returns its stored value exactly."""
        base = load_base_risk_table()
        for age in base.breakpoints:
            assert interpolate(age, base) == dict(base.values[age])

        sca = load_sca_risk_table()
        for age in sca.breakpoints:
            assert interpolate(age, sca) == sca.values[age]

    def test_base_between_breakpoints(self):
        base = load_base_risk_table()
        assert interpolate(22, base) == {"t21": 1060, "t18": 2380, "t13": 7480}
        assert interpolate(27, base) == {"t21": 860, "t18": 1920, "t13": 6040}

    def test_base_age_35(self):
        base = load_base_risk_table()
        assert interpolate(35, base) == {"t21": 250, "t18": 600, "t13": 1800}

    def test_sca_clamps(self):
        sca = load_sca_risk_table()
        assert interpolate(20, sca) == 6
        assert interpolate(40, sca) == 11.2

    def test_sca_between(self):
        sca = load_sca_risk_table()
        assert interpolate(25, sca) == pytest.approx(6.0)
        assert interpolate(35, sca) == pytest.approx(9.08)
