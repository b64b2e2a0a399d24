"""
LQR Controller Module

Linear Quadratic Regulator feedback controller with integral correction on
the lateral (y) channel.

An LQR solves the optimal control problem for a system described by linear
difference equations with a quadratic cost:
    J = sum(x'Qx + u'Ru)

The gain K is obtained from the discrete-time algebraic Riccati equation
(see kontrol.riccati). LQR alone cancels transient error but leaves a
steady-state bias under persistent disturbances; a scalar integrator on
state component 1 (the lateral error) removes that bias without altering
the gain itself.

State vector:
    Length S, given as 1xS, Sx1 or flat. Component 1 is the lateral error.

Control vector:
    Length C. The integral correction is subtracted from component 0.

Usage:
    controller = LQRController(config={"ki": 0.05, "y_epsilon": 1e-3})
    controller.compute_gain(A, B, Q, R, epsilon=1e-6)
    u = controller.compute_optimal_controls(current_state, desired_state)

The returned controls are feedback corrections only; they have to be combined
with the feedforward controls of the trajectory to drive the agent.
"""

import logging

import numpy as np

from ..errors import NotInitializedError, ShapeMismatchError
from ..linalg import as_matrix, as_vector
from ..riccati import (
    DEFAULT_EPSILON,
    DEFAULT_MAX_ITERATIONS,
    RiccatiSolution,
    solve_riccati,
)
from .base import BaseController

logger = logging.getLogger(__name__)

# Index of the lateral error channel in the state vector
LATERAL_INDEX = 1


class LQRController(BaseController):
    """
    Discrete-time LQR controller with lateral integral correction.

    Attributes:
        Q (ndarray | None): State cost matrix (S x S), set by compute_gain.
        R (ndarray | None): Control cost matrix (C x C), set by compute_gain.
        K (ndarray | None): Optimal gain (C x S), set by compute_gain.
        solution (RiccatiSolution | None): Last DARE solution.
        ki (float): Lateral integral gain.
        integral_error (float): Accumulated lateral integral correction.
        y_epsilon (float): Default lateral deadband below which the integral
            is reset.
        epsilon (float): Default Riccati convergence tolerance.
        max_iterations (int): Riccati iteration cap.
        method (str): Riccati solver method.
        last_control_components (dict | None): Terms of the last tick.
    """

    def __init__(self, config: dict | None = None):
        """
        Initialize LQR controller.

        The gain is not computed here; call compute_gain before requesting
        control outputs.

        Args:
            config: Configuration with LQR parameters:
                - ki: Lateral integral gain (default: 0.0)
                - y_epsilon: Lateral deadband (default: 1e-3)
                - epsilon: Riccati tolerance (default: 1e-6)
                - max_iterations: Riccati iteration cap (default: 10000)
                - method: Riccati method (default: 'fixed_point')
        """
        config = config or {}
        super().__init__(name="lqr", config=config)

        self.ki = float(config.get("ki", 0.0))
        self.y_epsilon = float(config.get("y_epsilon", 1e-3))
        self.epsilon = float(config.get("epsilon", DEFAULT_EPSILON))
        self.max_iterations = int(config.get("max_iterations", DEFAULT_MAX_ITERATIONS))
        self.method = config.get("method", "fixed_point")

        self.Q: np.ndarray | None = None
        self.R: np.ndarray | None = None
        self.K: np.ndarray | None = None
        self.solution: RiccatiSolution | None = None

        # State variables
        self.integral_error = 0.0
        self.last_control_components: dict | None = None

    @classmethod
    def from_config(cls, config: dict) -> "LQRController":
        """
        Create an LQRController from a full configuration (e.g. load_config).

        Solver settings come from the 'riccati' section and controller
        settings from the 'lqr' section; the latter wins on conflicts.

        Args:
            config: Configuration dictionary.

        Returns:
            LQRController instance.
        """
        merged = dict(config.get("riccati", {}))
        merged.update(config.get("lqr", {}))
        return cls(config=merged)

    def compute_gain(self, A, B, Q, R, epsilon: float | None = None) -> np.ndarray:
        """
        Compute and store the optimal gain matrix K.

        Args:
            A: State matrix of shape S x S.
            B: Control matrix of shape S x C.
            Q: State cost matrix of shape S x S.
            R: Control cost matrix of shape C x C.
            epsilon: Riccati tolerance; defaults to the controller's epsilon.
                1e-6 works nicely.

        Returns:
            Optimal feedback gain matrix K of shape C x S.

        Raises:
            ShapeMismatchError: If the matrices are not conformant.
            SingularMatrixError: If an inversion fails.
            ConvergenceError: If the solver does not converge.
        """
        solution = solve_riccati(
            A,
            B,
            Q,
            R,
            epsilon=self.epsilon if epsilon is None else epsilon,
            max_iterations=self.max_iterations,
            method=self.method,
        )

        self.Q = as_matrix(Q, "Q")
        self.R = as_matrix(R, "R")
        self.K = solution.K
        self.solution = solution
        logger.info("LQR gain assigned, K shape: %s", self.K.shape)
        return self.K

    def compute_optimal_controls(
        self,
        current_state,
        desired_state,
        y_epsilon: float | None = None,
    ) -> np.ndarray:
        """
        Compute the feedback controls for the current and desired state.

        Must be called only after compute_gain.

        Args:
            current_state: State vector of length S.
            desired_state: State vector of length S to steer towards.
            y_epsilon: Lateral deadband; defaults to the controller's
                y_epsilon. While |y_error| < y_epsilon the integral is held
                at zero.

        Returns:
            Control vector of length C.

        Raises:
            NotInitializedError: If compute_gain has not been called.
            ShapeMismatchError: If the state vectors do not match K.
        """
        if self.K is None:
            raise NotInitializedError(
                "compute_gain must be called before compute_optimal_controls"
            )

        current = as_vector(current_state, "current_state")
        desired = as_vector(desired_state, "desired_state")
        n = self.K.shape[1]
        if current.shape != (n,) or desired.shape != (n,):
            raise ShapeMismatchError(
                f"State vectors must have length {n} to match K {self.K.shape}, "
                f"got {current.shape} and {desired.shape}"
            )
        if n <= LATERAL_INDEX:
            raise ShapeMismatchError(
                f"State must have at least {LATERAL_INDEX + 1} components for "
                f"lateral integral correction, got {n}"
            )

        if y_epsilon is None:
            y_epsilon = self.y_epsilon

        error = desired - current
        y_error = float(error[LATERAL_INDEX])

        # Within the deadband there is nothing to correct; drop the history
        # so the integrator cannot drift.
        if abs(y_error) < y_epsilon:
            self.integral_error = 0.0
        else:
            self.integral_error += y_error * self.ki

        feedback_u = self.K @ error
        controls = feedback_u.copy()
        controls[0] -= self.integral_error

        self.last_control_components = {
            "state_error": error,
            "feedback_u": feedback_u,
            "integral_error": self.integral_error,
            "controls": controls.copy(),
        }
        return controls

    def reset_integral_error(self) -> None:
        """Reset the lateral integral accumulator to zero."""
        self.integral_error = 0.0
        logger.debug("LQR integral error reset to zero")

    def reset(self) -> None:
        """Reset integral state and diagnostics; the gain is kept."""
        self.integral_error = 0.0
        self.last_control_components = None

    def __repr__(self) -> str:
        return f"LQRController(Q={self.Q}, R={self.R}, Ki={self.ki})"
