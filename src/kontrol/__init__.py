"""
Kontrol: State-Feedback Control Core

Control commands for trajectory-following agents (e.g. ground vehicles).

Subpackages / modules:
- riccati: Discrete-time algebraic Riccati equation solver
- controllers: LQR and PID controllers
- trajectory: Closest bracketing indices on a trajectory
- linalg: numpy adapter with shape and singularity checks
- errors: Exception taxonomy
- utils: Configuration loading
"""

import importlib.metadata

try:
    # Retrieve the version from installed package metadata
    __version__ = importlib.metadata.version("kontrol")
except importlib.metadata.PackageNotFoundError:
    # Fallback for when the package is not installed
    __version__ = "0.0.0-dev"

from kontrol.controllers import (
    BaseController,
    LQRController,
    PIDController,
    PIDOutput,
)
from kontrol.errors import (
    ConvergenceError,
    InsufficientDataError,
    KontrolError,
    NotInitializedError,
    ShapeMismatchError,
    SingularMatrixError,
)
from kontrol.riccati import RiccatiSolution, solve_riccati
from kontrol.trajectory import find_closest_indices
from kontrol.utils import get_default_config, load_config

__all__ = [
    "BaseController",
    "LQRController",
    "PIDController",
    "PIDOutput",
    "RiccatiSolution",
    "solve_riccati",
    "find_closest_indices",
    "load_config",
    "get_default_config",
    # Errors
    "KontrolError",
    "ShapeMismatchError",
    "SingularMatrixError",
    "NotInitializedError",
    "InsufficientDataError",
    "ConvergenceError",
]
