"""Unit tests for the Eisenhower priority mapping."""

import pytest
from brainspace.models import Quadrant, TaskNode
from brainspace.priority import (
    linear_to_log, log_to_linear, get_quadrant, get_task_quadrant, get_quadrant_info,
    quadrant_priority, position_in_quadrant, simple_to_numeric, numeric_to_simple,
)


class TestScaleConversion:
    """Test linear <-> log conversion."""

    @pytest.mark.parametrize("value", [0, 1, 5, 9.99, 10])
    def test_round_trip(self, value):
        """Test log_to_linear undoes linear_to_log."""
        assert log_to_linear(linear_to_log(value)) == pytest.approx(value, abs=1e-9)

    def test_endpoints_map_to_themselves(self):
        """Test both ends of the range are fixed points."""
        assert linear_to_log(0) == 0
        assert linear_to_log(10) == pytest.approx(10)
        assert log_to_linear(0) == 0
        assert log_to_linear(10) == pytest.approx(10)

    def test_monotonic(self):
        """Test the transform preserves order."""
        values = [linear_to_log(v / 2) for v in range(21)]
        assert values == sorted(values)
        assert len(set(values)) == len(values)

    def test_low_values_spread_out(self):
        """Test the log scale gives the low end more room."""
        assert linear_to_log(1) > 1
        assert linear_to_log(5) > 5

    def test_out_of_range_clamped(self):
        """Test values outside 0-10 are clamped."""
        assert linear_to_log(-3) == 0
        assert linear_to_log(42) == pytest.approx(10)
        assert log_to_linear(11) == pytest.approx(10)


class TestQuadrant:
    """Test quadrant classification."""

    @pytest.mark.parametrize("importance,urgency,expected", [
        (5, 5, Quadrant.DO_FIRST),
        (10, 7, Quadrant.DO_FIRST),
        (8, 2, Quadrant.SCHEDULE),
        (5, 4.99, Quadrant.SCHEDULE),
        (2, 9, Quadrant.DELEGATE),
        (4.99, 5, Quadrant.DELEGATE),
        (0, 0, Quadrant.ELIMINATE),
        (4.99, 4.99, Quadrant.ELIMINATE),
    ])
    def test_mapping(self, importance, urgency, expected):
        """Test the documented axis mapping."""
        assert get_quadrant(importance, urgency) == expected

    def test_unscored(self):
        """Test missing values are never guessed."""
        assert get_quadrant(None, 7) is None
        assert get_quadrant(7, None) is None
        assert get_quadrant(None, None) is None

    def test_task_quadrant_uses_log_scale(self):
        """Test stored priorities are converted before classifying."""
        # log 6 is roughly linear 3.2
        assert get_task_quadrant(TaskNode(id="t", importance=6, urgency=6)) == Quadrant.ELIMINATE
        high = linear_to_log(8)
        assert get_task_quadrant(TaskNode(id="t", importance=high, urgency=high)) == Quadrant.DO_FIRST
        assert get_task_quadrant(TaskNode(id="t", importance=high)) is None

    def test_quadrant_info(self):
        """Test display metadata lookup."""
        info = get_quadrant_info(Quadrant.DO_FIRST)
        assert info.label == "Do First"
        assert info.position == (1, 1)
        assert get_quadrant_info(Quadrant.ELIMINATE).label == "Eliminate"
        assert get_quadrant_info(None).label == "Unscored"
        assert {get_quadrant_info(q).position for q in Quadrant} == {(0, 0), (0, 1), (1, 0), (1, 1)}

    @pytest.mark.parametrize("quadrant", list(Quadrant))
    def test_drop_values_land_in_quadrant(self, quadrant):
        """Test the values written on drop classify back to the same quadrant."""
        importance, urgency = quadrant_priority(quadrant)
        assert get_task_quadrant(TaskNode(id="t", importance=importance, urgency=urgency)) == quadrant


class TestHelpers:
    """Test the smaller priority helpers."""

    def test_position_in_quadrant(self):
        """Test the offset inside a quadrant cell."""
        assert position_in_quadrant(7.5, 2.5) == (0.5, 0.5)
        assert position_in_quadrant(5, 0) == (0.0, 0.0)
        assert position_in_quadrant(None, 3) is None

    def test_simple_mode(self):
        """Test the high/low toggle conversion."""
        assert simple_to_numeric(True) == 7
        assert simple_to_numeric(False) == 3
        assert numeric_to_simple(simple_to_numeric(True)) is True
        assert numeric_to_simple(simple_to_numeric(False)) is False
        assert numeric_to_simple(5) is True
        assert numeric_to_simple(None) is None
