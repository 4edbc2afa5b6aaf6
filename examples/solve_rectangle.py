"""Example pipeline: a rectangle resolved entirely by substitution."""

from sketchsolve import parse_equations, solve_system

TEXT = """
# Corner 0 is pinned; width w and height h are given.
x1 = x0 + w
y1 = y0
x2 = x1
y2 = y1 + h
x3 = x0
y3 = y2

# Diagonal length, derived from the corners.
d4 = sqrt((x2 - x0)^2 + (y2 - y0)^2)
"""


def main() -> None:
    equations = parse_equations(TEXT, simplify=True)
    print("Equations:")
    for equation in equations:
        print(f"  {equation}")

    solution = solve_system(equations, known={"x0": 0, "y0": 0, "w": 4, "h": "3/2"})

    print("\nSolved\nSuccess:", solution.success)
    for name, value in solution.values.items():
        print(f"{name} = {value}")


if __name__ == "__main__":
    main()
