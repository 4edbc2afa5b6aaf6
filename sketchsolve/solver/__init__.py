"""Solver façade: substitution first, then a numeric strategy for the rest."""

from __future__ import annotations

import dataclasses
import logging
import math
from fractions import Fraction
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from ..errors import ResolveError
from ..expression import Expression
from ..numbers import Concrete
from ..parser import parse_expression
from .config import get_numeric_config, set_numeric_config
from .gradient import GradientSolver
from .model import (
    NUMERIC_STRATEGIES,
    ConcretePlan,
    EquivalentExpressions,
    ExpressionInfo,
    ExpSearchParams,
    GradientParams,
    NumericConfig,
    NumericResult,
    RemainingResidual,
    SearchOptions,
    SolveOptions,
    SolvePlan,
    SubstitutedPlan,
    SystemSolution,
    TrustRegionParams,
)
from .resolvers import VarResolver, closest_solution, mean_abs, residual_vector, sort_vars_by_base
from .search import ExpSearchIter, SearchSolver, bits_for
from .substitution import SubSolver, SubSolverState
from .trust_region import TrustRegionSolver, minimize

logger = logging.getLogger(__name__)

if not logging.getLogger().handlers:  # pragma: no cover - depends on host application
    logging.basicConfig(level=logging.INFO)

EquationInput = Union[str, Expression]
ValueInput = Union[Concrete, int, float, Fraction, str]


def _coerce_equation(equation: EquationInput) -> Expression:
    if isinstance(equation, str):
        return parse_expression(equation, simplify=True)
    if isinstance(equation, Expression):
        return equation
    raise TypeError(f"expected an equation string or Expression, got {type(equation).__name__}")


def _coerce_value(value: ValueInput) -> Concrete:
    if isinstance(value, Concrete):
        return value
    if isinstance(value, str):
        return Concrete.parse(value)
    return Concrete(value)


def _residual_variables(residuals: Sequence[Expression], values: Mapping[str, Concrete]) -> List[str]:
    names: List[str] = []
    for expr in residuals:
        names.extend(name for name in expr.variables() if name not in values)
    return sort_vars_by_base(names)


def _result_key(
    result: NumericResult,
    known: Mapping[str, Concrete],
    solve_for: Sequence[str],
    residuals: Sequence[Expression],
) -> Tuple[int, float]:
    """Rank by success, then by mean |residual| at the result values."""

    x = np.array([result.values.get(name, np.nan) for name in solve_for], dtype=float)
    try:
        score = mean_abs(residual_vector(residuals, VarResolver(solve_for, x, known)))
    except ResolveError:
        score = math.inf
    return (0 if result.success else 1, score)


def _run_strategy(
    strategy: str,
    config: NumericConfig,
    known: Mapping[str, Concrete],
    solve_for: Sequence[str],
    residuals: Sequence[Expression],
    initials: Sequence[float],
) -> NumericResult:
    if strategy == "gradient":
        return GradientSolver(known, solve_for, residuals, params=config.gradient, initials=initials).solve()
    if strategy == "trust-region":
        return minimize(known, solve_for, residuals, initials, params=config.trust_region)
    if strategy == "search":
        opts = config.search_options
        bits = bits_for(len(solve_for), opts.bits, opts.budget_bits)
        solver = SearchSolver(dataclasses.replace(config.search), known, solve_for, residuals, initials)
        return solver.solve(bits, accept_error=opts.accept_error)
    raise ValueError(f"unknown numeric strategy {strategy!r}")


def _run_numeric(
    strategy: str,
    config: NumericConfig,
    known: Mapping[str, Concrete],
    solve_for: Sequence[str],
    residuals: Sequence[Expression],
    initials: Sequence[float],
    warnings: List[str],
) -> Optional[NumericResult]:
    order = ("gradient", "trust-region", "search") if strategy == "auto" else (strategy,)
    best: Optional[NumericResult] = None
    best_key: Optional[Tuple[int, float]] = None
    for name in order:
        try:
            result = _run_strategy(name, config, known, solve_for, residuals, initials)
        except ResolveError as exc:
            warnings.append(f"{name} solver failed: {exc}")
            logger.warning("%s solver failed: %s", name, exc)
            continue
        logger.info(
            "%s solver finished success=%s error=%.6g iterations=%d",
            name,
            result.success,
            result.error,
            result.iterations,
        )
        key = _result_key(result, known, solve_for, residuals)
        if best_key is None or key < best_key:
            best, best_key = result, key
        if result.success:
            break
    return best


def solve_system(
    equations: Iterable[EquationInput],
    known: Optional[Mapping[str, ValueInput]] = None,
    guesses: Optional[Mapping[str, float]] = None,
    options: Optional[SolveOptions] = None,
) -> SystemSolution:
    """Resolve every variable of ``equations`` that can be resolved.

    Substitution and rearrangement run first.  Multi-branch results pick the
    branch closest to the caller's guess.  Variables still unresolved after that
    are handed to the numeric strategy named by ``options.numeric``; their values
    are only merged into the result when that strategy succeeds.
    """

    options = options or SolveOptions()
    config = options.config or get_numeric_config()
    parsed = [_coerce_equation(eq) for eq in equations]
    known_values = {name: _coerce_value(value) for name, value in (known or {}).items()}
    guess_map = {name: float(value) for name, value in (guesses or {}).items()}
    warnings: List[str] = []

    logger.info("Solving system with %d equations and %d known values", len(parsed), len(known_values))

    state = SubSolverState(known_values, parsed)
    solver = SubSolver()

    def _choose(st: SubSolverState, var: str, plan: SolvePlan) -> Tuple[bool, Optional[Concrete]]:
        if isinstance(plan, ConcretePlan):
            return True, None
        return True, closest_solution(plan, st, guess_map.get(var), options.max_branches)

    solver.walk_solutions(state, _choose)
    values, unresolved = solver.all_concrete_results(state)
    remaining = solver.all_remaining_residuals(state)
    residuals = solver.all_residuals(state)

    numeric: Optional[NumericResult] = None
    if unresolved and options.numeric != "none":
        solve_for = _residual_variables(residuals, values)
        if solve_for:
            initials = [guess_map.get(name, config.gradient.initial_guess) for name in solve_for]
            numeric = _run_numeric(options.numeric, config, values, solve_for, residuals, initials, warnings)
        else:
            warnings.append("no residuals constrain the unresolved variables")

    if numeric is not None and numeric.success:
        for name, value in numeric.values.items():
            values[name] = Concrete(value)
    elif numeric is not None:
        warnings.append(f"numeric solve did not converge (error {numeric.error:.6g})")

    still_unresolved = [name for name in unresolved if name not in values]
    success = not still_unresolved
    logger.info(
        "Solve finished success=%s resolved=%d unresolved=%d", success, len(values), len(still_unresolved)
    )
    return SystemSolution(
        values=values,
        unresolved=still_unresolved,
        residuals=remaining,
        numeric=numeric,
        success=success,
        warnings=warnings,
    )


__all__ = [
    "ConcretePlan",
    "EquivalentExpressions",
    "ExpSearchIter",
    "ExpSearchParams",
    "ExpressionInfo",
    "GradientParams",
    "GradientSolver",
    "NUMERIC_STRATEGIES",
    "NumericConfig",
    "NumericResult",
    "RemainingResidual",
    "SearchOptions",
    "SearchSolver",
    "SolveOptions",
    "SolvePlan",
    "SubSolver",
    "SubSolverState",
    "SubstitutedPlan",
    "SystemSolution",
    "TrustRegionParams",
    "TrustRegionSolver",
    "VarResolver",
    "bits_for",
    "closest_solution",
    "get_numeric_config",
    "minimize",
    "set_numeric_config",
    "solve_system",
    "sort_vars_by_base",
]
