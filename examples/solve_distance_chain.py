"""Example pipeline: two 88-unit legs from the origin, solved numerically."""

import math

from sketchsolve import parse_equations, solve_system
from sketchsolve.solver import SolveOptions

TEXT = """
# (0,0) ---d1--- (x1,y1) ---d2--- (x2,y2)
d1 = sqrt((x1 - x0)^2 + (y1 - y0)^2)
d2 = sqrt((x2 - x1)^2 + (y2 - y1)^2)
"""


def main() -> None:
    equations = parse_equations(TEXT, simplify=True)
    known = {"x0": 0.0, "y0": 0.0, "d1": 88, "d2": 88}

    for strategy in ("gradient", "trust-region", "search"):
        solution = solve_system(
            equations,
            known=known,
            guesses={"x1": -3000.0, "y1": -3000.0},
            options=SolveOptions(numeric=strategy),
        )
        numeric = solution.numeric
        print(f"\n{strategy}: success={solution.success}")
        if numeric is not None:
            print(f"  error={numeric.error:.6g} iterations={numeric.iterations}")
            x1, y1 = numeric.values["x1"], numeric.values["y1"]
            print(f"  leg 1 = {math.hypot(x1, y1):.6f}")
        for warning in solution.warnings:
            print(f"  warning: {warning}")


if __name__ == "__main__":
    main()
