import pytest

from sketchsolve import (
    Equal,
    Integer,
    ReverseOp,
    ReverseOpKind,
    Sqrt,
    StaticResolver,
    Variable,
    make_subject,
    parse_expression,
    raise_for,
    simplify,
)

x = Variable("x")


def _subject(text, name="x"):
    return make_subject(parse_expression(text), Variable(name))


@pytest.mark.parametrize(
    "text, expected",
    [
        ("y = x + 2", "x = (y - 2)"),
        ("y = 2*(x+3)", "x = ((y / 2) - 3)"),
        ("y = 5 - x", "x = (5 - y)"),
        ("y = x - 5", "x = (y + 5)"),
        ("y = 6 / x", "x = (6 / y)"),
        ("y = x / 4", "x = 4y"),
        ("y = sqrt(x)", "x = (y)^2"),
        ("y = -x", "x = -y"),
        ("x = y + 1", "x = (y + 1)"),
        ("y + 1 = x", "x = (y + 1)"),
    ],
)
def test_make_subject(text, expected):
    assert str(_subject(text)) == expected


def test_square_gives_plus_minus_root():
    assert _subject("y = x^2") == Equal(x, Sqrt(Variable("y"), plus_minus=True))


def test_distance_rearranged_for_coordinate():
    result = _subject("d1 = sqrt((x1-x0)^2 + (y1-y0)^2)", "x1")
    expected = simplify(parse_expression("sqrt_pm(d1^2 - (y1-y0)^2) + x0"))
    assert result == Equal(Variable("x1"), expected)


@pytest.mark.parametrize(
    "text",
    [
        "y = x * x",
        "y = abs(x)",
        "y = x^3",
        "y = z + 1",
        "x = x + 1",
    ],
)
def test_make_subject_fails(text):
    assert _subject(text) is None


def test_make_subject_requires_equation():
    assert make_subject(parse_expression("x + 1"), x) is None


@pytest.mark.parametrize(
    "text, y_value",
    [
        ("y = x + 2", 7),
        ("y = 2*(x+3)", 10),
        ("y = 5 - x", -3),
        ("y = 6 / x", 3),
        ("y = (x - 1) / 4", 2),
    ],
)
def test_rearrangement_round_trips(text, y_value):
    forward = parse_expression(text)
    inverse = make_subject(forward, x)
    x_value = inverse.rhs.evaluate(StaticResolver({"y": y_value}))
    back = forward.rhs.evaluate(StaticResolver({"x": x_value}))
    assert float(back) == pytest.approx(y_value)


def test_raise_for_records_inverse_operations():
    assert raise_for(parse_expression("x + 2"), x) == [ReverseOp(ReverseOpKind.SUBTRACT, Integer(2))]
    assert raise_for(parse_expression("3 - x"), x) == [
        ReverseOp(ReverseOpKind.ADD, Integer(3)),
        ReverseOp(ReverseOpKind.MULTIPLY, Integer(-1)),
    ]
    assert raise_for(parse_expression("(x)^2"), x) == [ReverseOp(ReverseOpKind.SQRT)]
    assert raise_for(parse_expression("x * x"), x) is None


def test_reverse_op_without_operand_is_rejected():
    with pytest.raises(ValueError):
        ReverseOp(ReverseOpKind.ADD).apply(x)
