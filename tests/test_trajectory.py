"""Tests for the trajectory indexer."""

import numpy as np
import pytest

from kontrol.errors import InsufficientDataError, ShapeMismatchError
from kontrol.trajectory import find_closest_indices


def straight_line(n: int = 5, spacing: float = 1.0) -> np.ndarray:
    """Equally spaced points along the x axis with a zero y column."""
    return np.column_stack([np.arange(n) * spacing, np.zeros(n)])


class TestFindClosestIndices:
    """Tests for bracketing index selection."""

    def test_midpoint_forwards(self):
        """Test a pose between points 2 and 3 brackets them with equal errors."""
        (lower, d_lower), (upper, d_upper) = find_closest_indices(
            [2.5, 0.0], straight_line()
        )

        assert lower == 2
        assert upper == 3
        assert d_lower == pytest.approx(0.5)
        assert d_lower == pytest.approx(d_upper)

    def test_midpoint_backwards_swaps_roles(self):
        """Test driving backwards swaps lower and upper indices."""
        (lower, d_lower), (upper, d_upper) = find_closest_indices(
            [2.5, 0.0], straight_line(), forwards=False
        )

        assert lower == 3
        assert upper == 2
        assert d_lower == pytest.approx(d_upper)

    def test_off_path_pose(self):
        """Test a laterally offset pose brackets the segment it projects onto."""
        (lower, d_lower), (upper, d_upper) = find_closest_indices(
            [1.2, 0.4], straight_line()
        )

        assert (lower, upper) == (1, 2)
        assert d_lower == pytest.approx(np.hypot(0.2, 0.4))
        assert d_upper == pytest.approx(np.hypot(0.8, 0.4))

    def test_coincident_point_forwards(self):
        """Test a pose on point j gives (j, 0) and the next point ahead."""
        (lower, d_lower), (upper, d_upper) = find_closest_indices(
            [2.0, 0.0], straight_line()
        )

        assert (lower, d_lower) == (2, 0.0)
        assert upper == 3
        assert d_upper == pytest.approx(1.0)

    def test_coincident_point_backwards(self):
        """Test backwards travel picks the previous point as upper bound."""
        (lower, d_lower), (upper, _) = find_closest_indices(
            [2.0, 0.0], straight_line(), forwards=False
        )

        assert (lower, d_lower) == (2, 0.0)
        assert upper == 1

    def test_coincident_last_point_forwards(self):
        """Test a pose on the final point returns the end segment."""
        (lower, _), (upper, d_upper) = find_closest_indices([4.0, 0.0], straight_line())

        assert (lower, upper) == (3, 4)
        assert d_upper == 0.0

    def test_coincident_first_point_backwards(self):
        """Test reversing onto the first point returns the start segment."""
        (lower, d_lower), (upper, d_upper) = find_closest_indices(
            [0.0, 0.0], straight_line(), forwards=False
        )

        assert (lower, upper) == (1, 0)
        assert d_lower == pytest.approx(1.0)
        assert d_upper == 0.0

    def test_before_first_point(self):
        """Test a pose before the start returns the first two points."""
        (lower, d_lower), (upper, d_upper) = find_closest_indices(
            [-3.0, 0.0], straight_line()
        )

        assert (lower, upper) == (0, 1)
        assert d_lower == pytest.approx(3.0)
        assert d_upper == pytest.approx(4.0)

    def test_after_last_point(self):
        """Test a pose past the end returns the last two points."""
        (lower, _), (upper, _) = find_closest_indices([9.0, 0.0], straight_line())
        assert (lower, upper) == (3, 4)

    def test_after_last_point_backwards(self):
        """Test a pose past the end while reversing puts the last point behind."""
        (lower, _), (upper, _) = find_closest_indices(
            [9.0, 0.0], straight_line(), forwards=False
        )
        assert (lower, upper) == (4, 3)

    def test_curved_trajectory(self):
        """Test bracketing on a quarter circle."""
        angles = np.linspace(0.0, np.pi / 2, 10)
        trajectory = np.column_stack([np.cos(angles), np.sin(angles)])
        midpoint_angle = (angles[6] + angles[7]) / 2
        pose = 1.05 * np.array([np.cos(midpoint_angle), np.sin(midpoint_angle)])

        (lower, _), (upper, _) = find_closest_indices(pose, trajectory)

        assert (lower, upper) == (6, 7)

    def test_two_point_trajectory(self):
        """Test the minimal valid trajectory."""
        (lower, _), (upper, _) = find_closest_indices([0.3, 0.0], straight_line(2))
        assert (lower, upper) == (0, 1)

    def test_position_dims_ignores_trailing_components(self):
        """Test position_dims restricts the distance to leading components."""
        trajectory = np.array(
            [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0], [3.0, 0.0, 0.0]]
        )
        pose = [1.0, 0.0, 3.14]

        (lower, d_lower), (upper, _) = find_closest_indices(
            pose, trajectory, position_dims=2
        )

        assert (lower, d_lower) == (1, 0.0)
        assert upper == 2

    def test_column_state_accepted(self):
        """Test an Sx1 state is accepted."""
        (lower, _), (upper, _) = find_closest_indices(
            np.array([[2.5], [0.0]]), straight_line()
        )
        assert (lower, upper) == (2, 3)

    def test_returns_builtin_types(self):
        """Test indices are ints and errors are floats."""
        (lower, d_lower), (upper, d_upper) = find_closest_indices(
            [2.5, 0.0], straight_line()
        )
        assert type(lower) is int and type(upper) is int
        assert type(d_lower) is float and type(d_upper) is float


class TestFindClosestIndicesValidation:
    """Tests for input validation."""

    @pytest.mark.parametrize(
        "trajectory",
        [np.empty((0, 2)), np.array([[1.0, 2.0]]), [], [1.0, 2.0]],
    )
    def test_insufficient_rows_raise(self, trajectory):
        """Test trajectories with fewer than two rows raise InsufficientDataError."""
        with pytest.raises(InsufficientDataError, match="at least 2 rows"):
            find_closest_indices([0.0, 0.0], trajectory)

    def test_state_width_mismatch_raises(self):
        """Test a state of the wrong length raises ShapeMismatchError."""
        with pytest.raises(ShapeMismatchError, match="3 components"):
            find_closest_indices([0.0, 0.0, 0.0], straight_line())

    def test_invalid_position_dims_raises(self):
        """Test out-of-range position_dims raises ShapeMismatchError."""
        with pytest.raises(ShapeMismatchError, match="position_dims"):
            find_closest_indices([0.0, 0.0], straight_line(), position_dims=3)
