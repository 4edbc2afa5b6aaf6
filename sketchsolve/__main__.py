import argparse
import logging
import sys
from typing import Dict, List, Optional, Sequence

from sketchsolve import Concrete, ResolveError, parse_equations, solve_system
from sketchsolve.solver import NUMERIC_STRATEGIES, SolveOptions

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _parse_assignments(items: Optional[List[str]], option: str) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for item in items or []:
        name, sep, value = item.partition("=")
        if not sep or not name.strip() or not value.strip():
            raise ValueError(f"{option} expects NAME=VALUE, got {item!r}")
        out[name.strip()] = value.strip()
    return out


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Solve a system of sketch equations")
    parser.add_argument("path", help="Path to a file with one equation per line")
    parser.add_argument(
        "--known",
        action="append",
        metavar="NAME=VALUE",
        help="Known value for a variable (repeatable)",
    )
    parser.add_argument(
        "--guess",
        action="append",
        metavar="NAME=VALUE",
        help="Initial guess for an unresolved variable (repeatable)",
    )
    parser.add_argument(
        "--numeric",
        choices=NUMERIC_STRATEGIES,
        default="auto",
        help="Numeric strategy for variables substitution cannot resolve (default: auto)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    try:
        with open(args.path) as fin:
            text = fin.read()
        equations = parse_equations(text, simplify=True)
        logger.info("Parsed %d equation(s) from %s", len(equations), args.path)
        known = {
            name: Concrete.parse(value)
            for name, value in _parse_assignments(args.known, "--known").items()
        }
        guesses = {
            name: float(value)
            for name, value in _parse_assignments(args.guess, "--guess").items()
        }
        solution = solve_system(
            equations, known=known, guesses=guesses, options=SolveOptions(numeric=args.numeric)
        )
    except (OSError, SyntaxError, ValueError, ResolveError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    print("Values:")
    for name, value in solution.values.items():
        print(f"  {name} = {value}")

    if solution.unresolved:
        print("Unresolved:")
        for name in solution.unresolved:
            print(f"  {name}")

    if solution.residuals:
        print("Residuals:")
        for name, residual in solution.residuals.items():
            print(f"  {name}: {residual.expression()}")

    if solution.numeric is not None:
        numeric = solution.numeric
        print("Numeric:")
        print(f"  method: {numeric.method}")
        print(f"  success: {numeric.success}")
        print(f"  error: {numeric.error:.6g}")
        print(f"  iterations: {numeric.iterations}")

    if solution.warnings:
        print("Warnings:")
        for warning in solution.warnings:
            print(f"  - {warning}")

    print(f"Success: {solution.success}")
    return 0 if solution.success else 1


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
