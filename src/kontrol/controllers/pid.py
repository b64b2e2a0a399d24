"""
PID Controller Module

Proportional-integral-derivative feedback controller for a single scalar
process value.

The controller continuously computes an error e(t) between a caller-set
set-point and the measured process value and applies a correction based on
proportional, integral and derivative terms:
- Integral windup is bounded by clamping the accumulated I term to i_limit.
- Derivative kick is avoided by differentiating the measurement instead of
  the error, so set-point steps do not spike the D term.
- Each term and the total output can be clamped symmetrically.

For more info see
https://www.cds.caltech.edu/~murray/courses/cds101/fa04/caltech/am04_ch8-3nov04.pdf

Usage:
    pid = PIDController(config={"kp": 0.6, "ki": 0.1, "kd": 0.02,
                                "output_limit": 1.0})
    pid.set_point = 2.0
    out = pid.next_output(measured=1.7)
    actuate(out.output)
"""

import logging
from dataclasses import dataclass

from .base import BaseController, clamp, validate_limit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PIDOutput:
    """
    Contributions of a single PID tick.

    Attributes:
        p: Contribution of the P term.
        i: Contribution of the I term (sum of error(t) * ki(t) over all t).
        d: Contribution of the D term.
        output: Total (clamped) controller output.
    """

    p: float
    i: float
    d: float
    output: float


class PIDController(BaseController):
    """
    Scalar PID controller with anti-windup, derivative-on-measurement and
    per-term symmetric clamping.

    Limits are either None (unbounded) or a non-negative bound applied as
    [-limit, +limit].

    Attributes:
        kp (float): Proportional gain.
        ki (float): Integral gain.
        kd (float): Derivative gain.
        p_limit (float | None): Limit on the P contribution.
        i_limit (float | None): Limit on the accumulated I contribution.
        d_limit (float | None): Limit on the D contribution.
        output_limit (float | None): Limit on the total output.
        set_point (float): Goal value; only changed by the caller.
        prev_measurement (float | None): Measurement from the previous tick.
        integral_term (float): Accumulated I contribution.
        last_output (PIDOutput | None): Output of the most recent tick.
    """

    def __init__(self, config: dict | None = None):
        """
        Initialize PID controller.

        Args:
            config: Configuration with PID parameters:
                - kp: Proportional gain (default: 1.0)
                - ki: Integral gain (default: 0.0)
                - kd: Derivative gain (default: 0.0)
                - p_limit: Limit on the P term (default: None)
                - i_limit: Limit on the I term (default: None)
                - d_limit: Limit on the D term (default: None)
                - output_limit: Limit on the output (default: None)
                - set_point: Initial set-point (default: 0.0)

        Raises:
            ValueError: If any limit is negative.
        """
        config = config or {}
        super().__init__(name="pid", config=config)

        self.kp = float(config.get("kp", 1.0))
        self.ki = float(config.get("ki", 0.0))
        self.kd = float(config.get("kd", 0.0))

        self.p_limit = config.get("p_limit")
        self.i_limit = config.get("i_limit")
        self.d_limit = config.get("d_limit")
        self.output_limit = config.get("output_limit")

        self.set_point = float(config.get("set_point", 0.0))

        # State variables
        self.prev_measurement: float | None = None
        self.integral_term = 0.0
        self.last_output: PIDOutput | None = None

    @classmethod
    def from_config(cls, config: dict) -> "PIDController":
        """
        Create a PIDController from a full configuration (e.g. load_config).

        Args:
            config: Configuration dictionary with a 'pid' section.

        Returns:
            PIDController instance.
        """
        return cls(config=dict(config.get("pid", {})))

    @property
    def p_limit(self) -> float | None:
        return self._p_limit

    @p_limit.setter
    def p_limit(self, value) -> None:
        self._p_limit = validate_limit(value, "p_limit")

    @property
    def i_limit(self) -> float | None:
        return self._i_limit

    @i_limit.setter
    def i_limit(self, value) -> None:
        self._i_limit = validate_limit(value, "i_limit")

    @property
    def d_limit(self) -> float | None:
        return self._d_limit

    @d_limit.setter
    def d_limit(self, value) -> None:
        self._d_limit = validate_limit(value, "d_limit")

    @property
    def output_limit(self) -> float | None:
        return self._output_limit

    @output_limit.setter
    def output_limit(self, value) -> None:
        self._output_limit = validate_limit(value, "output_limit")

    def next_output(self, measured: float) -> PIDOutput:
        """
        Given a new measurement, calculate the next control output.

        Args:
            measured: The measured process value.

        Returns:
            PIDOutput with the P, I and D contributions and the total output.
        """
        measured = float(measured)
        error = self.set_point - measured

        p = clamp(error * self.kp, self.p_limit)

        # The gain is folded into the accumulator, so changing ki at run time
        # does not rescale the history.
        self.integral_term += error * self.ki
        # Anti-windup: never accumulate beyond what i_limit allows
        self.integral_term = clamp(self.integral_term, self.i_limit)

        # Derivative on measurement, not on error, to avoid derivative kick
        if self.prev_measurement is not None:
            d_unbounded = (self.prev_measurement - measured) * self.kd
        else:
            d_unbounded = 0.0
        self.prev_measurement = measured
        d = clamp(d_unbounded, self.d_limit)

        output = clamp(p + self.integral_term + d, self.output_limit)

        self.last_output = PIDOutput(p=p, i=self.integral_term, d=d, output=output)
        logger.debug(
            "pid tick: error=%.4f p=%.4f i=%.4f d=%.4f output=%.4f",
            error,
            p,
            self.integral_term,
            d,
            output,
        )
        return self.last_output

    def reset(self) -> None:
        """Reset the integral accumulator, measurement history and diagnostics."""
        self.integral_term = 0.0
        self.prev_measurement = None
        self.last_output = None

    def __repr__(self) -> str:
        return f"PIDController(Kp={self.kp}, Ki={self.ki}, Kd={self.kd})"
