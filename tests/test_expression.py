from fractions import Fraction

import pytest

from sketchsolve import (
    Concrete,
    DivisionByZeroError,
    Equal,
    Integer,
    NotSupportedError,
    PowerError,
    Product,
    Rational,
    Sqrt,
    StaticResolver,
    Substitution,
    UnknownVariableError,
    Variable,
    parse_expression,
)

EMPTY = StaticResolver({})


@pytest.mark.parametrize(
    "text, cost",
    [
        ("x", 5),
        ("1", 1),
        ("x + 1", 8),
        ("x * 2", 10),
        ("x / 2", 11),
        ("sqrt(x)", 17),
        ("abs(x)", 15),
        ("(x)^2", 16),
        ("-x", 7),
    ],
)
def test_cost(text, cost):
    assert parse_expression(text).cost() == cost


def test_cost_orders_operators():
    assert parse_expression("x + 1").cost() < parse_expression("x * 1").cost()
    assert parse_expression("x * 1").cost() < parse_expression("x / 1").cost()
    assert parse_expression("x / 1").cost() < parse_expression("x ^ 1").cost()
    assert parse_expression("x ^ 1").cost() < parse_expression("sqrt(x) + 1").cost()


def test_num_solutions():
    assert parse_expression("x + 1").num_solutions() == 1
    assert parse_expression("sqrt_pm(x)").num_solutions() == 2
    assert parse_expression("sqrt_pm(a) + sqrt_pm(b)").num_solutions() == 4
    assert parse_expression("sqrt_pm(sqrt_pm(a))").num_solutions() == 4
    with pytest.raises(NotSupportedError):
        parse_expression("a = b").num_solutions()


def test_plus_minus_solution_index():
    expr = parse_expression("5 - sqrt_pm(4)")
    assert float(expr.evaluate(EMPTY, 0)) == 3.0
    assert float(expr.evaluate(EMPTY, 1)) == 7.0


def test_solution_index_splits_across_operands():
    expr = parse_expression("sqrt_pm(a) + sqrt_pm(b)")
    resolver = StaticResolver({"a": 4, "b": 9})
    values = [float(expr.evaluate(resolver, i)) for i in range(4)]
    assert values == [5.0, 1.0, -1.0, -5.0]


def test_evaluate_exact():
    expr = parse_expression("(x + 1) / 3")
    assert expr.evaluate(StaticResolver({"x": 1})) == Concrete(Fraction(2, 3))


def test_evaluate_errors():
    with pytest.raises(UnknownVariableError):
        parse_expression("x + 1").evaluate(EMPTY)
    with pytest.raises(DivisionByZeroError):
        parse_expression("1 / 0").evaluate(EMPTY)
    with pytest.raises(PowerError):
        parse_expression("2 ^ (1/2)").evaluate(EMPTY)
    with pytest.raises(NotSupportedError):
        parse_expression("a = b").evaluate(EMPTY)


def test_substitution_prefers_known_value():
    expr = Variable("a").substitute("a", Integer(3))
    assert expr == Substitution("a", Integer(3))
    assert str(expr) == "&[3]"
    assert expr.evaluate(StaticResolver({"a": 5})) == Concrete(5)
    assert expr.evaluate(EMPTY) == Concrete(3)


def test_substitute_leaves_other_variables():
    expr = parse_expression("a + b").substitute("b", Integer(2))
    assert str(expr) == "(a + &[2])"


@pytest.mark.parametrize(
    "expr, text",
    [
        (Product(Integer(2), Variable("x")), "2x"),
        (parse_expression("a / b"), "(a / b)"),
        (parse_expression("a * b"), "(a * b)"),
        (parse_expression("a ^ 2"), "(a)^2"),
        (parse_expression("a = b + 1"), "a = (b + 1)"),
        (parse_expression("-a"), "-a"),
        (parse_expression("abs(a)"), "abs(a)"),
        (Sqrt(Variable("a"), plus_minus=True), "sqrt_pm(a)"),
        (Rational(Fraction(1, 3)), "(1/3)"),
        (Rational(Fraction(1, 4), as_fraction=False), "0.25"),
        (Rational(Fraction(-5, 4), as_fraction=False), "-1.25"),
        (Rational(Fraction(1, 3), as_fraction=False), "(1/3)"),
    ],
)
def test_display(expr, text):
    assert str(expr) == text


def test_display_flag_does_not_affect_equality():
    assert Rational(Fraction(1, 2)) == Rational(Fraction(1, 2), as_fraction=False)
    assert hash(Rational(Fraction(1, 2))) == hash(Rational(Fraction(1, 2), as_fraction=False))


def test_content_hash_is_structural():
    assert parse_expression("a + b").content_hash() == parse_expression("a + b").content_hash()
    assert parse_expression("a + b").content_hash() != parse_expression("b + a").content_hash()
    assert 0 <= parse_expression("a").content_hash() < 2**64


def test_variables_in_order_of_appearance():
    counts = parse_expression("y1 + x1 * y1").variables()
    assert list(counts) == ["y1", "x1"]
    assert counts == {"y1": 2, "x1": 1}


def test_walk_can_prune():
    seen = []

    def visit(node):
        seen.append(type(node).__name__)
        return not isinstance(node, Sqrt)

    parse_expression("a + sqrt(b * c)").walk(visit)
    assert seen == ["Sum", "Variable", "Sqrt"]


def test_contains():
    expr = parse_expression("a + sqrt(b * c)")
    assert expr.contains(Variable("c"))
    assert not expr.contains(Variable("d"))


def test_variable_name_length():
    Variable("abcdefghijkl")
    with pytest.raises(ValueError):
        Variable("abcdefghijklm")


def test_equation_sides():
    eq = parse_expression("a = b")
    assert isinstance(eq, Equal)
    assert eq.lhs == Variable("a")
    assert eq.rhs == Variable("b")
