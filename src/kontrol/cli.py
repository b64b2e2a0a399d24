"""
LQR Gain Command-Line Interface

Computes the optimal LQR gain for a system described in a YAML or JSON file
with keys A, B, Q and R, and prints the result as JSON.

Usage Examples:
    # Gain for a double integrator with default solver settings
    kontrol-gain double_integrator.yaml

    # Quadratic-convergence solver, tighter tolerance, write to file
    kontrol-gain system.json --method doubling --epsilon 1e-10 \\
        --output reports/gain.json

    # Solver defaults from a config file (overridden by KONTROL_* env vars)
    kontrol-gain system.yaml --config configs/kontrol.yaml

Environment Variables:
    KONTROL_RICCATI_EPSILON, KONTROL_RICCATI_MAX_ITERATIONS,
    KONTROL_RICCATI_METHOD: Override the solver defaults.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from kontrol.errors import KontrolError
from kontrol.riccati import VALID_METHODS, solve_riccati
from kontrol.utils import load_config, load_matrix_file

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Compute the optimal discrete-time LQR gain K",
    )
    parser.add_argument(
        "matrices",
        type=str,
        help="YAML or JSON file containing the matrices A, B, Q and R",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML or JSON configuration file with a 'riccati' section",
    )
    parser.add_argument(
        "--epsilon",
        type=float,
        default=None,
        help="Relative convergence tolerance (default: from config, 1e-6)",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        help="Iteration cap (default: from config, 10000)",
    )
    parser.add_argument(
        "--method",
        type=str,
        choices=VALID_METHODS,
        default=None,
        help="Riccati solver method (default: from config, fixed_point)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write the JSON result to this file instead of stdout",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    args = parse_args(argv)

    try:
        config = load_config(args.config)
        matrices = load_matrix_file(args.matrices)
    except (FileNotFoundError, PermissionError, ValueError) as e:
        logger.error("Failed to load input: %s", e)
        return 1

    solver_config = config["riccati"]
    try:
        epsilon = float(
            args.epsilon if args.epsilon is not None else solver_config["epsilon"]
        )
        max_iterations = int(
            args.max_iterations
            if args.max_iterations is not None
            else solver_config["max_iterations"]
        )
    except (TypeError, ValueError) as e:
        logger.error("Invalid solver configuration: %s", e)
        return 1
    method = args.method or solver_config["method"]

    try:
        solution = solve_riccati(
            matrices["A"],
            matrices["B"],
            matrices["Q"],
            matrices["R"],
            epsilon=epsilon,
            max_iterations=max_iterations,
            method=method,
        )
    except (KontrolError, TypeError, ValueError) as e:
        logger.error("Failed to compute gain: %s", e)
        return 1

    result = {
        "K": solution.K.tolist(),
        "H": solution.H.tolist(),
        "iterations": solution.iterations,
        "relative_error": solution.relative_error,
    }
    text = json.dumps(result, indent=2)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text + "\n")
        logger.info("Gain written to %s", output_path)
    else:
        print(text)

    return 0


if __name__ == "__main__":
    sys.exit(main())
