"""
Kontrol Controllers Package

Stateful feedback controllers for trajectory-following agents.

Controller Types:
- LQR: Discrete-time LQR with DARE-solved gains and lateral integral
  correction
- PID: Scalar proportional-integral-derivative control with anti-windup and
  derivative-on-measurement

Design Philosophy:
- One controller instance per control loop, mutated every tick
- Controllers compose only through the caller's loop
- Errors propagate to the caller; nothing is retried internally
"""

from .base import BaseController, clamp
from .lqr import LQRController
from .pid import PIDController, PIDOutput

__all__ = [
    "BaseController",
    "LQRController",
    "PIDController",
    "PIDOutput",
    "clamp",
]
