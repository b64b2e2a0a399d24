"""
Exception Taxonomy

All errors raised by the control core derive from KontrolError so callers
can catch them as a group. Each concrete error also derives from the builtin
exception it most closely resembles, so existing ``except ValueError`` or
``except RuntimeError`` handlers keep working.
"""

import math


class KontrolError(Exception):
    """Base class for all control core errors."""

    pass


class ShapeMismatchError(KontrolError, ValueError):
    """Operand matrices or vectors have non-conformant dimensions."""

    pass


class SingularMatrixError(KontrolError, ArithmeticError):
    """An inversion target is singular or too ill-conditioned to invert."""

    def __init__(
        self,
        name: str,
        condition_number: float | None = None,
        max_condition_number: float | None = None,
    ):
        self.name = name
        self.condition_number = condition_number
        self.max_condition_number = max_condition_number
        if condition_number is None or not math.isfinite(condition_number):
            message = f"{name} is singular and cannot be inverted"
        elif (
            max_condition_number is not None
            and condition_number > max_condition_number
        ):
            message = (
                f"{name} is ill-conditioned (condition number "
                f"{condition_number:.3e} exceeds {max_condition_number:.1e})"
            )
        else:
            message = (
                f"{name} has a non-finite inverse "
                f"(condition number {condition_number:.3e})"
            )
        super().__init__(message)


class NotInitializedError(KontrolError, RuntimeError):
    """A controller was used before its required set-up step."""

    pass


class InsufficientDataError(KontrolError, ValueError):
    """Input data is too small for the requested operation."""

    pass


class ConvergenceError(KontrolError, RuntimeError):
    """An iterative solver stopped without meeting its tolerance."""

    def __init__(self, message: str, iterations: int, relative_error: float):
        self.iterations = iterations
        self.relative_error = relative_error
        super().__init__(message)
