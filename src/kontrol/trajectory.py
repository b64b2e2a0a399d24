"""
Trajectory Indexing

Locates the two trajectory points that bracket the agent's current pose so
the caller can re-target the desired state before computing controls.

A trajectory is an N x S array of state vectors in traversal order. The
lower index is the closest point behind the agent and the upper index the
closest point ahead of it. When driving backwards (forwards=False) the agent
travels towards decreasing indices and the roles swap.

Selection rules:
- A pose that coincides exactly with row j returns j as the lower bound with
  zero error and the next row in the direction of travel as the upper bound.
- Otherwise the closest segment (i, i+1) by point-to-segment distance is
  used. Projections are clamped to the segment, so poses before the first
  or after the last point select the end segments; extrapolating past the
  trajectory is left to the caller.
"""

import logging

import numpy as np

from .errors import InsufficientDataError, ShapeMismatchError
from .linalg import as_vector

logger = logging.getLogger(__name__)


def _segment_distances(point: np.ndarray, trajectory: np.ndarray) -> np.ndarray:
    """
    Distances from a point to every segment of a polyline.

    Args:
        point: Point of dimension D.
        trajectory: Polyline vertices (N x D).

    Returns:
        Array of N-1 distances, one per segment (i, i+1).
    """
    starts = trajectory[:-1]
    directions = trajectory[1:] - starts
    lengths_sq = np.einsum("ij,ij->i", directions, directions)
    offsets = point - starts

    # Degenerate segments (repeated points) project onto their start
    with np.errstate(divide="ignore", invalid="ignore"):
        t = np.where(
            lengths_sq > 0,
            np.einsum("ij,ij->i", offsets, directions) / lengths_sq,
            0.0,
        )
    t = np.clip(t, 0.0, 1.0)

    projections = starts + t[:, np.newaxis] * directions
    return np.linalg.norm(point - projections, axis=1)


def find_closest_indices(
    current_state,
    trajectory,
    forwards: bool = True,
    position_dims: int | None = None,
) -> tuple[tuple[int, float], tuple[int, float]]:
    """
    Find the two trajectory indices bracketing the current pose.

    Args:
        current_state: State vector of length S (1xS, Sx1 or flat).
        trajectory: Trajectory of shape N x S, rows in traversal order.
        forwards: True when travelling towards increasing indices.
        position_dims: Number of leading state components used for the
            distance (e.g. 2 for x, y of a pose with heading). Defaults to
            all components.

    Returns:
        ((lower_index, lower_error), (upper_index, upper_error)) with
        Euclidean errors between the pose and the respective rows.

    Raises:
        InsufficientDataError: If the trajectory has fewer than two rows.
        ShapeMismatchError: If the state does not match the trajectory width
            or position_dims is out of range.
    """
    points = np.asarray(trajectory, dtype=float)
    if points.ndim == 1:
        points = points.reshape(1, -1) if points.size else points.reshape(0, 0)
    if points.ndim != 2:
        raise ShapeMismatchError(
            f"trajectory must be a 2-D array, got shape {points.shape}"
        )
    if points.shape[0] < 2:
        raise InsufficientDataError(
            f"trajectory must contain at least 2 rows, got {points.shape[0]}"
        )

    state = as_vector(current_state, "current_state")
    if state.shape[0] != points.shape[1]:
        raise ShapeMismatchError(
            f"current_state has {state.shape[0]} components but trajectory rows "
            f"have {points.shape[1]}"
        )

    if position_dims is not None:
        if not 1 <= position_dims <= state.shape[0]:
            raise ShapeMismatchError(
                f"position_dims must be between 1 and {state.shape[0]}, "
                f"got {position_dims}"
            )
        state = state[:position_dims]
        points = points[:, :position_dims]

    errors = np.linalg.norm(points - state, axis=1)
    last = points.shape[0] - 1

    coincident = np.flatnonzero(errors == 0.0)
    if coincident.size:
        j = int(coincident[0])
        if forwards:
            lower, upper = (j, j + 1) if j < last else (last - 1, last)
        else:
            lower, upper = (j, j - 1) if j > 0 else (1, 0)
    else:
        segment = int(np.argmin(_segment_distances(state, points)))
        if forwards:
            lower, upper = segment, segment + 1
        else:
            lower, upper = segment + 1, segment

    logger.debug(
        "closest indices (forwards=%s): lower=%d (%.4f), upper=%d (%.4f)",
        forwards,
        lower,
        errors[lower],
        upper,
        errors[upper],
    )
    return (lower, float(errors[lower])), (upper, float(errors[upper]))
