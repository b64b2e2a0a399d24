"""
Base Controller Module

Provides the common base class and shared helpers for the feedback
controllers.

Controllers are long-lived and stateful: one instance is built at start-up
for each control loop and mutated on every tick. Instances are not safe for
concurrent use; each control loop must own its own controller.
"""

import math


def clamp(value: float, limit: float | None) -> float:
    """
    Clamp a value symmetrically to [-limit, +limit].

    Args:
        value: Value to clamp.
        limit: Non-negative bound, or None for unbounded.

    Returns:
        The clamped value.
    """
    if limit is None:
        return value
    return max(-limit, min(limit, value))


def validate_limit(limit, name: str) -> float | None:
    """
    Validate an optional symmetric limit.

    Args:
        limit: Candidate limit (None means unbounded).
        name: Name for error messages.

    Returns:
        The limit as a float, or None.

    Raises:
        ValueError: If the limit is negative or not a finite number.
    """
    if limit is None:
        return None
    limit = float(limit)
    if math.isnan(limit) or limit < 0:
        raise ValueError(f"{name} must be a non-negative number or None, got {limit}")
    return limit


class BaseController:
    """
    Base class for stateful feedback controllers.

    Attributes:
        name (str): Controller identifier for logging/comparison.
        config (dict): Controller-specific configuration.
    """

    def __init__(self, name: str = "base", config: dict | None = None):
        """
        Initialize the controller.

        Args:
            name: Human-readable controller name.
            config: Controller configuration parameters.
        """
        self.name = name
        self.config = config or {}

    def reset(self) -> None:
        """Reset controller state (for stateful controllers)."""
        pass
