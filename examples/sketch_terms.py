"""Example pipeline: name sketch terms with a TermAllocator, then solve."""

from sketchsolve import TermAllocator, TermType, solve_system


def main() -> None:
    terms = TermAllocator()
    ax = terms.get_feature_term("point A", TermType.POSITION_X)
    ay = terms.get_feature_term("point A", TermType.POSITION_Y)
    bx = terms.get_feature_term("point B", TermType.POSITION_X)
    by = terms.get_feature_term("point B", TermType.POSITION_Y)
    d = terms.get_feature_term("line AB", TermType.SCALAR_DISTANCE)

    equations = [
        f"{d} = sqrt(({bx} - {ax})^2 + ({by} - {ay})^2)",
        f"{by} = {ay}",
    ]
    print("Equations:")
    for equation in equations:
        print(f"  {equation}")

    solution = solve_system(
        equations, known={str(ax): 1, str(ay): 2, str(d): 10}, guesses={str(bx): 0.0}
    )
    print("\nSolved\nSuccess:", solution.success)
    for name, value in solution.values.items():
        ref = terms.get_var_ref(name)
        owner = ref.feature if ref is not None else None
        print(f"{name} ({owner}) = {value}")

    print("\nAllocator state:", terms.to_dict())


if __name__ == "__main__":
    main()
