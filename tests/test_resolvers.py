import math

import numpy as np
import pytest

from sketchsolve import Concrete, UnknownVariableError, parse_expression
from sketchsolve.solver import (
    ConcretePlan,
    EquivalentExpressions,
    ExpressionInfo,
    RemainingResidual,
    SubstitutedPlan,
    VarResolver,
    closest_solution,
    sort_vars_by_base,
)
from sketchsolve.solver.resolvers import mean_abs, residual_vector


def test_expression_info_cost():
    assert ExpressionInfo.from_expression(parse_expression("x + 1")).cost == 58
    assert ExpressionInfo.from_expression(parse_expression("sqrt_pm(x)")).cost == 84
    assert ExpressionInfo.from_expression(parse_expression("3")).cost == 1


def test_equivalent_expressions_dedupe_and_order():
    ee = EquivalentExpressions()
    assert ee.push(ExpressionInfo.from_expression(parse_expression("sqrt(y)")))
    assert ee.push(ExpressionInfo.from_expression(parse_expression("y + 1")))
    assert not ee.push(ExpressionInfo.from_expression(parse_expression("y + 1")))
    assert len(ee) == 2
    assert [str(info.expr) for info in ee] == ["(y + 1)", "sqrt(y)"]


def test_closest_solution():
    plan = SubstitutedPlan(ExpressionInfo.from_expression(parse_expression("sqrt_pm(25)")))
    resolver = VarResolver([], np.array([]), {})
    assert closest_solution(plan, resolver, -4.0) == Concrete(-5.0)
    assert closest_solution(plan, resolver, None) == Concrete(5.0)
    assert closest_solution(plan, resolver, 3.0, max_branches=1) is None


def test_closest_solution_skips_failing_branches():
    plan = SubstitutedPlan(ExpressionInfo.from_expression(parse_expression("1 / a")))
    resolver = VarResolver([], np.array([]), {"a": Concrete(0)})
    assert closest_solution(plan, resolver, None) is None
    assert closest_solution(ConcretePlan(Concrete(2)), resolver, 7.0) == Concrete(2)


def test_var_resolver_prefers_known_values():
    resolver = VarResolver(["a", "b"], np.array([1.5, 2.5]), {"a": Concrete(9)})
    assert resolver.resolve_variable("a") == Concrete(9)
    assert resolver.resolve_variable("b") == Concrete(2.5)
    with pytest.raises(UnknownVariableError):
        resolver.resolve_variable("c")


def test_sort_vars_by_base():
    assert sort_vars_by_base(["d10", "x3", "a", "y3", "x3"]) == ["x3", "y3", "d10", "a"]


def test_residual_vector_clamps():
    resolver = VarResolver(["x"], np.array([-1.0]), {})
    residuals = [parse_expression("sqrt(x)"), parse_expression("x * 10000000"), parse_expression("x + 1")]
    fx = residual_vector(residuals, resolver)
    assert fx.tolist() == [999999.0, -999999.0, 0.0]
    assert mean_abs(fx) == pytest.approx(666666.0)
    assert mean_abs(np.array([])) == 0.0


def test_remaining_residual_expression():
    remaining = RemainingResidual("x", 2, parse_expression("(10 - y) + (2 + y)"))
    expr = remaining.expression()
    assert math.isclose(float(expr.evaluate(VarResolver(["x", "y"], np.array([6.0, 1.0]), {}))), 0.0)
