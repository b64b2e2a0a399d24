"""
Linear Algebra Adapter

Thin layer over numpy providing the dense matrix primitives used by the
controllers. Inputs are coerced to float64 arrays, shapes are checked up
front and inversion failures surface as SingularMatrixError instead of
leaking NaN/Inf into the control loop.
"""

import logging

import numpy as np

from .errors import ShapeMismatchError, SingularMatrixError

logger = logging.getLogger(__name__)

# Default cap on the 2-norm condition number accepted by inverse()
MAX_CONDITION_NUMBER = 1e12


def as_matrix(value, name: str = "matrix") -> np.ndarray:
    """
    Convert a nested sequence or array to a finite 2-D float64 matrix.

    Scalars become 1x1 matrices.

    Args:
        value: Matrix-like input.
        name: Name for error messages.

    Returns:
        2-D float64 numpy array.

    Raises:
        ShapeMismatchError: If the input is not 2-D (after scalar promotion).
        ValueError: If the input contains non-finite values.
    """
    matrix = np.asarray(value, dtype=float)
    if matrix.ndim == 0:
        matrix = matrix.reshape(1, 1)
    if matrix.ndim != 2:
        raise ShapeMismatchError(
            f"{name} must be a 2-D matrix, got {matrix.ndim}-D array with "
            f"shape {matrix.shape}"
        )
    if not np.all(np.isfinite(matrix)):
        raise ValueError(f"{name} contains non-finite values")
    return matrix


def as_vector(value, name: str = "vector") -> np.ndarray:
    """
    Flatten a 1xS, Sx1 or flat state into a length-S float64 vector.

    Args:
        value: Vector-like input.
        name: Name for error messages.

    Returns:
        1-D float64 numpy array.

    Raises:
        ShapeMismatchError: If the input is a matrix with more than one row
            and more than one column.
    """
    array = np.asarray(value, dtype=float)
    if array.ndim > 2 or (array.ndim == 2 and min(array.shape) > 1):
        raise ShapeMismatchError(
            f"{name} must be a 1xS, Sx1 or flat vector, got shape {array.shape}"
        )
    return array.reshape(-1)


def require_square(matrix: np.ndarray, name: str) -> int:
    """Return the dimension of a square matrix, raising if it is not square."""
    rows, cols = matrix.shape
    if rows != cols:
        raise ShapeMismatchError(f"{name} must be square, got shape {matrix.shape}")
    return rows


def require_shape(matrix: np.ndarray, shape: tuple[int, int], name: str) -> None:
    """Raise ShapeMismatchError unless ``matrix`` has exactly ``shape``."""
    if matrix.shape != shape:
        raise ShapeMismatchError(
            f"{name} must have shape {shape}, got {matrix.shape}"
        )


def identity(n: int) -> np.ndarray:
    return np.eye(n)


def frobenius_norm(matrix: np.ndarray) -> float:
    return float(np.linalg.norm(matrix, "fro"))


def inverse(
    matrix: np.ndarray,
    name: str = "matrix",
    max_condition_number: float = MAX_CONDITION_NUMBER,
) -> np.ndarray:
    """
    Invert a square matrix, refusing singular or ill-conditioned input.

    Args:
        matrix: Square matrix to invert.
        name: Name used in error messages.
        max_condition_number: Largest accepted 2-norm condition number.
            Raise it for badly scaled but invertible matrices.

    Returns:
        The inverse matrix.

    Raises:
        ShapeMismatchError: If the matrix is not square.
        SingularMatrixError: If the matrix is singular, its condition number
            exceeds max_condition_number, or the inverse is not finite.
    """
    require_square(matrix, name)

    with np.errstate(divide="ignore", invalid="ignore"):
        try:
            condition_number = float(np.linalg.cond(matrix))
        except np.linalg.LinAlgError as e:
            raise SingularMatrixError(name) from e
    if not np.isfinite(condition_number) or condition_number > max_condition_number:
        raise SingularMatrixError(name, condition_number, max_condition_number)

    try:
        result = np.linalg.inv(matrix)
    except np.linalg.LinAlgError as e:
        raise SingularMatrixError(name) from e

    if not np.all(np.isfinite(result)):
        raise SingularMatrixError(name, condition_number, max_condition_number)
    return result


def is_symmetric(matrix: np.ndarray, atol: float = 1e-8) -> bool:
    return matrix.shape[0] == matrix.shape[1] and np.allclose(
        matrix, matrix.T, atol=atol
    )


def check_positive_semidefinite(matrix: np.ndarray, name: str = "matrix") -> bool:
    """
    Check whether a matrix is symmetric positive semi-definite.

    Failures are logged as warnings rather than raised; the caller decides
    what to do with the result.

    Args:
        matrix: Square matrix to check.
        name: Name for log messages.

    Returns:
        True if symmetric with all eigenvalues >= 0 (within tolerance).
    """
    if not is_symmetric(matrix):
        logger.warning("%s is not symmetric", name)
        return False

    eigenvalues = np.linalg.eigvalsh(matrix)
    if np.any(eigenvalues < -1e-10):
        logger.warning("%s has negative eigenvalues: %s", name, eigenvalues)
        return False

    return True


def check_positive_definite(matrix: np.ndarray, name: str = "matrix") -> bool:
    """
    Check whether a matrix is symmetric positive definite.

    Args:
        matrix: Square matrix to check.
        name: Name for log messages.

    Returns:
        True if symmetric with all eigenvalues > 0 (within tolerance).
    """
    if not is_symmetric(matrix):
        logger.warning("%s is not symmetric", name)
        return False

    eigenvalues = np.linalg.eigvalsh(matrix)
    if np.any(eigenvalues <= 1e-10):
        logger.warning(
            "%s is not positive definite, eigenvalues: %s", name, eigenvalues
        )
        return False

    return True
