import pytest

from sketchsolve import (
    Concrete,
    Difference,
    Integer,
    NotSupportedError,
    Power,
    Product,
    Quotient,
    StaticResolver,
    Sum,
    Variable,
    as_residual,
    derivative,
    parse_expression,
)

x = Variable("x")
y = Variable("y")


@pytest.mark.parametrize(
    "text, variable, expected",
    [
        ("x^3", "x", Product(Integer(3), Power(x, Integer(2)))),
        ("x^2", "x", Product(Integer(2), x)),
        ("1 / x", "x", Quotient(Integer(-1), Power(x, Integer(2)))),
        ("3x + y", "x", Integer(3)),
        ("3x + y", "y", Integer(1)),
        ("x * y", "x", y),
        ("x * y", "z", Integer(0)),
        ("7", "x", Integer(0)),
    ],
)
def test_derivative(text, variable, expected):
    assert derivative(parse_expression(text), variable) == expected


def test_derivative_of_distance_residual():
    residual = parse_expression("5 - sqrt(x^2 + y^2)")
    at = StaticResolver({"x": 3, "y": 4})
    assert float(derivative(residual, "x").evaluate(at).value) == pytest.approx(-0.6)
    assert float(derivative(residual, "y").evaluate(at).value) == pytest.approx(-0.8)


def test_derivative_of_abs():
    slope = derivative(parse_expression("abs(x)"), "x")
    assert slope.evaluate(StaticResolver({"x": -2})) == Concrete(-1)
    assert slope.evaluate(StaticResolver({"x": 3})) == Concrete(1)


def test_chain_rule_through_power():
    slope = derivative(parse_expression("(2x + 1)^3"), "x")
    # 3 * (2x + 1)^2 * 2 at x = 1
    assert float(slope.evaluate(StaticResolver({"x": 1})).value) == pytest.approx(54)


def test_derivative_through_substitution():
    expr = parse_expression("a + 1").substitute("a", parse_expression("2x"))
    assert derivative(expr, "x") == Integer(2)


def test_variable_exponent_is_not_supported():
    with pytest.raises(NotSupportedError):
        derivative(parse_expression("2 ^ x"), "x")


def test_equation_cannot_be_differentiated():
    with pytest.raises(NotSupportedError):
        derivative(parse_expression("x = 1"), "x")


def test_residual_from_zero_equation():
    assert as_residual(parse_expression("0 = x - 1")) == Difference(x, Integer(1))


def test_residual_from_definition():
    assert as_residual(parse_expression("x = y + 1")) == Difference(x, Sum(y, Integer(1)))


def test_residual_clears_fraction():
    residual = as_residual(parse_expression("x = y / 2 + 3"))
    assert residual == Difference(Product(Difference(x, Integer(3)), Integer(2)), y)


@pytest.mark.parametrize("text", ["x + 1 = y", "x + 1"])
def test_no_residual(text):
    assert as_residual(parse_expression(text)) is None
