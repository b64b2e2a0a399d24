"""
Discrete-Time Riccati Solver

Computes the stabilizing solution H of the discrete-time algebraic Riccati
equation (DARE):
    H = Q + A'HA - A'HB(R + B'HB)^{-1}B'HA

and the optimal feedback gain:
    K = (R + B'HB)^{-1}B'HA

Both iterative methods work with the control Gramian G = B R^{-1} B' and the
equivalent form of the recursion:
    H = Q + A'H(I + GH)^{-1}A

Methods:
- fixed_point: Plain fixed-point (value) iteration seeded with Q, or with a
  caller-supplied matrix. Linear convergence; a converged seed terminates
  after a single iteration.
- doubling: Structure-preserving doubling algorithm (SDA). Quadratic
  convergence, always seeded with Q.
- scipy: Reference solution from scipy.linalg.solve_discrete_are.

References:
    https://www.cds.caltech.edu/~murray/courses/cds110/wi06/lqr.pdf
    Chu, Fan, Lin, Wang (2004), "Structure-preserving algorithms for periodic
    discrete-time algebraic Riccati equations", Int. J. Control 77(8).
"""

import logging
import math
from dataclasses import dataclass

import numpy as np

from .errors import ConvergenceError, ShapeMismatchError
from .linalg import (
    as_matrix,
    check_positive_definite,
    check_positive_semidefinite,
    frobenius_norm,
    identity,
    MAX_CONDITION_NUMBER,
    inverse,
    require_shape,
    require_square,
)

logger = logging.getLogger(__name__)

VALID_METHODS = ("fixed_point", "doubling", "scipy")

DEFAULT_EPSILON = 1e-6
DEFAULT_MAX_ITERATIONS = 10_000


@dataclass(frozen=True)
class RiccatiSolution:
    """
    Result of a DARE solve.

    Attributes:
        H: Stabilizing DARE solution (S x S).
        K: Optimal feedback gain (C x S).
        iterations: Number of iterations performed (0 for the scipy method).
        relative_error: Relative Frobenius change of the last iteration.
    """

    H: np.ndarray
    K: np.ndarray
    iterations: int
    relative_error: float


def _relative_change(previous: np.ndarray, current: np.ndarray) -> float:
    """Relative Frobenius-norm change between two successive iterates."""
    difference = frobenius_norm(previous - current)
    reference = frobenius_norm(previous)
    if reference == 0.0:
        return 0.0 if difference == 0.0 else math.inf
    return difference / reference


def _validate_system(A, B, Q, R) -> tuple[np.ndarray, ...]:
    """
    Coerce and validate the system and cost matrices.

    Raises:
        ShapeMismatchError: If the matrices are not conformant.
    """
    A = as_matrix(A, "A")
    B = as_matrix(B, "B")
    Q = as_matrix(Q, "Q")
    R = as_matrix(R, "R")

    n = require_square(A, "A")
    if B.shape[0] != n:
        raise ShapeMismatchError(
            f"B must have {n} rows to match A {A.shape}, got shape {B.shape}"
        )
    m = B.shape[1]
    require_shape(Q, (n, n), "Q")
    require_shape(R, (m, m), "R")

    # Indefinite costs are accepted but almost always a configuration mistake
    check_positive_semidefinite(Q, "Q")
    check_positive_definite(R, "R")

    return A, B, Q, R


def compute_gain_matrix(
    A: np.ndarray,
    B: np.ndarray,
    R: np.ndarray,
    H: np.ndarray,
    max_condition_number: float = MAX_CONDITION_NUMBER,
) -> np.ndarray:
    """
    Compute the discrete-time optimal gain K = (R + B'HB)^{-1}B'HA.

    Args:
        A: State matrix (S x S).
        B: Control matrix (S x C).
        R: Control cost (C x C).
        H: DARE solution (S x S).
        max_condition_number: Condition-number cap for the inversion.

    Returns:
        Gain matrix K (C x S).

    Raises:
        SingularMatrixError: If R + B'HB is not invertible.
    """
    BtH = B.T @ H
    return inverse(R + BtH @ B, "R + B'HB", max_condition_number) @ (BtH @ A)


def _iterate_fixed_point(A, G, Q, H, epsilon, max_iterations, max_condition_number):
    n = A.shape[0]
    eye = identity(n)
    relative_error = math.inf

    for iteration in range(1, max_iterations + 1):
        temp = inverse(eye + G @ H, "I + GH", max_condition_number)
        H_next = Q + A.T @ H @ temp @ A
        if not np.all(np.isfinite(H_next)):
            raise ConvergenceError(
                f"Riccati iterate became non-finite at iteration {iteration}",
                iterations=iteration,
                relative_error=math.inf,
            )

        relative_error = _relative_change(H, H_next)
        H = H_next
        logger.debug(
            "fixed_point iteration %d: relative error %.3e", iteration, relative_error
        )
        if relative_error < epsilon:
            return H, iteration, relative_error

    raise ConvergenceError(
        f"Riccati fixed-point iteration did not converge within {max_iterations} "
        f"iterations (relative error {relative_error:.3e}, epsilon {epsilon:.1e})",
        iterations=max_iterations,
        relative_error=relative_error,
    )


def _iterate_doubling(A, G, Q, epsilon, max_iterations, max_condition_number):
    n = A.shape[0]
    eye = identity(n)
    H = Q
    relative_error = math.inf

    for iteration in range(1, max_iterations + 1):
        temp = inverse(eye + G @ H, "I + GH", max_condition_number)
        A_next = A @ temp @ A
        G_next = G + A @ temp @ G @ A.T
        H_next = H + A.T @ H @ temp @ A
        if not all(np.all(np.isfinite(M)) for M in (A_next, G_next, H_next)):
            raise ConvergenceError(
                f"Riccati iterate became non-finite at iteration {iteration}",
                iterations=iteration,
                relative_error=math.inf,
            )

        relative_error = _relative_change(H, H_next)
        A, G, H = A_next, G_next, H_next
        logger.debug(
            "doubling iteration %d: relative error %.3e", iteration, relative_error
        )
        if relative_error < epsilon:
            return H, iteration, relative_error

    raise ConvergenceError(
        f"Riccati doubling iteration did not converge within {max_iterations} "
        f"iterations (relative error {relative_error:.3e}, epsilon {epsilon:.1e})",
        iterations=max_iterations,
        relative_error=relative_error,
    )


def _solve_with_scipy(A, B, Q, R):
    try:
        from scipy.linalg import solve_discrete_are
    except ImportError as e:
        raise ImportError(
            "scipy is required for the 'scipy' Riccati method. "
            "Install it with: pip install scipy>=1.11.0"
        ) from e

    try:
        H = solve_discrete_are(A, B, Q, R)
    except (np.linalg.LinAlgError, ValueError) as e:
        raise ConvergenceError(
            f"scipy DARE solver failed: {e}", iterations=0, relative_error=math.inf
        ) from e
    return H


def solve_riccati(
    A,
    B,
    Q,
    R,
    epsilon: float = DEFAULT_EPSILON,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    method: str = "fixed_point",
    initial=None,
    max_condition_number: float = MAX_CONDITION_NUMBER,
) -> RiccatiSolution:
    """
    Solve the DARE and derive the optimal feedback gain.

    Args:
        A: State matrix (S x S).
        B: Control matrix (S x C).
        Q: State cost matrix (S x S), expected positive semi-definite.
        R: Control cost matrix (C x C), expected positive definite.
        epsilon: Relative Frobenius-norm tolerance between successive
            iterates (default: 1e-6).
        max_iterations: Iteration cap (default: 10000).
        method: 'fixed_point', 'doubling' or 'scipy'.
        initial: Optional seed for H (S x S), fixed_point method only.
            Defaults to Q.
        max_condition_number: Largest condition number accepted when
            inverting R, I + GH and R + B'HB (default: 1e12). Raise it for
            badly scaled but well-posed problems.

    Returns:
        RiccatiSolution with H, K, the iteration count and last relative error.

    Raises:
        ValueError: If epsilon, max_iterations, max_condition_number or method
            is invalid.
        ShapeMismatchError: If the matrices are not conformant.
        SingularMatrixError: If R or I + GH cannot be inverted.
        ConvergenceError: If the iteration cap is exceeded or diverges.
    """
    if method not in VALID_METHODS:
        raise ValueError(
            f"Unknown Riccati method '{method}', expected one of {VALID_METHODS}"
        )
    if not epsilon > 0:
        raise ValueError(f"epsilon must be positive, got {epsilon}")
    if not max_condition_number > 1:
        raise ValueError(
            f"max_condition_number must be greater than 1, got {max_condition_number}"
        )
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")
    if initial is not None and method != "fixed_point":
        raise ValueError("initial seed is only supported by the 'fixed_point' method")

    A, B, Q, R = _validate_system(A, B, Q, R)
    n = A.shape[0]

    R_inv = inverse(R, "R", max_condition_number)
    G = B @ R_inv @ B.T

    if method == "scipy":
        H = _solve_with_scipy(A, B, Q, R)
        iterations, relative_error = 0, 0.0
    elif method == "doubling":
        H, iterations, relative_error = _iterate_doubling(
            A, G, Q, epsilon, max_iterations, max_condition_number
        )
    else:
        if initial is None:
            H0 = Q
        else:
            H0 = as_matrix(initial, "initial")
            require_shape(H0, (n, n), "initial")
        H, iterations, relative_error = _iterate_fixed_point(
            A, G, Q, H0, epsilon, max_iterations, max_condition_number
        )

    K = compute_gain_matrix(A, B, R, H, max_condition_number)
    logger.info(
        "DARE solved with %s after %d iterations (relative error %.3e), K shape: %s",
        method,
        iterations,
        relative_error,
        K.shape,
    )
    return RiccatiSolution(H=H, K=K, iterations=iterations, relative_error=relative_error)
