from fractions import Fraction
from typing import List, Optional

from .expression import (
    Abs,
    Difference,
    Equal,
    Expression,
    Integer,
    Neg,
    Power,
    Product,
    Quotient,
    Rational,
    Sqrt,
    Sum,
    Variable,
)
from .lexer import Token, tokenize_line
from .simplify import simplify as simplify_expr

_FUNCTIONS = ('sqrt', 'sqrt_pm', 'abs')


class Cursor:
    def __init__(self, tokens: List[Token]):
        self.toks = tokens
        self.i = 0

    def peek(self):
        return self.toks[self.i] if self.i < len(self.toks) else None

    def peek_ahead(self, offset: int = 1):
        idx = self.i + offset
        return self.toks[idx] if idx < len(self.toks) else None

    def match(self, *types: str):
        if self.i < len(self.toks) and self.toks[self.i][0] in types:
            t = self.toks[self.i]
            self.i += 1
            return t
        return None

    def expect(self, *types: str):
        t = self.peek()
        if t and t[0] in types:
            self.i += 1
            return t
        want = '|'.join(types)
        if t:
            raise SyntaxError(f'[line {t[2]}, col {t[3]}] expected {want}, got {t[0]}')
        raise SyntaxError(f'Unexpected end of input: expected {want}')


def _variable(tok: Token) -> Variable:
    try:
        return Variable(tok[1])
    except ValueError as exc:
        raise SyntaxError(f'[line {tok[2]}, col {tok[3]}] {exc}') from None


def _adjacent(first: Token, second: Optional[Token]) -> bool:
    return (
        second is not None
        and second[2] == first[2]
        and second[3] == first[3] + len(first[1])
    )


def parse_atom(cur: Cursor) -> Expression:
    t = cur.peek()
    if t is None:
        raise SyntaxError('Unexpected end of input: expected an expression')
    if t[0] == 'NUMBER':
        cur.i += 1
        if '.' in t[1]:
            return Rational(Fraction(t[1]), as_fraction=False)
        coeff = Integer(int(t[1]))
        nxt = cur.peek()
        # "2x" is a coefficient applied to a variable
        if nxt is not None and nxt[0] == 'ID' and _adjacent(t, nxt):
            cur.i += 1
            return Product(coeff, _variable(nxt))
        return coeff
    if t[0] == 'ID':
        cur.i += 1
        nxt = cur.peek()
        if t[1] in _FUNCTIONS and nxt is not None and nxt[0] == 'LPAREN':
            cur.expect('LPAREN')
            inner = parse_sum(cur)
            cur.expect('RPAREN')
            if t[1] == 'abs':
                return Abs(inner)
            return Sqrt(inner, plus_minus=t[1] == 'sqrt_pm')
        return _variable(t)
    if t[0] == 'LPAREN':
        cur.i += 1
        inner = parse_sum(cur)
        cur.expect('RPAREN')
        return inner
    raise SyntaxError(f'[line {t[2]}, col {t[3]}] unexpected token {t[1]!r}')


def parse_unary(cur: Cursor) -> Expression:
    if cur.match('DASH'):
        return Neg(parse_unary(cur))
    return parse_atom(cur)


def parse_power(cur: Cursor) -> Expression:
    expr = parse_unary(cur)
    while cur.match('CARET'):
        expr = Power(expr, parse_unary(cur))
    return expr


def parse_product(cur: Cursor) -> Expression:
    expr = parse_power(cur)
    while True:
        t = cur.match('STAR', 'SLASH')
        if not t:
            return expr
        rhs = parse_power(cur)
        expr = Product(expr, rhs) if t[0] == 'STAR' else Quotient(expr, rhs)


def parse_sum(cur: Cursor) -> Expression:
    expr = parse_product(cur)
    while True:
        t = cur.match('PLUS', 'DASH')
        if not t:
            return expr
        rhs = parse_product(cur)
        expr = Sum(expr, rhs) if t[0] == 'PLUS' else Difference(expr, rhs)


def parse_equality(cur: Cursor) -> Expression:
    expr = parse_sum(cur)
    while cur.match('EQUAL'):
        expr = Equal(expr, parse_sum(cur))
    return expr


def _parse_tokens(tokens: List[Token], simplify: bool) -> Expression:
    cur = Cursor(tokens)
    expr = parse_equality(cur)
    t = cur.peek()
    if t is not None:
        raise SyntaxError(f'[line {t[2]}, col {t[3]}] unexpected token {t[1]!r}')
    return simplify_expr(expr) if simplify else expr


def parse_expression(text: str, simplify: bool = False) -> Expression:
    """Parse a single expression or equation, e.g. ``"d1 = sqrt((x1-x0)^2 + (y1-y0)^2)"``."""

    tokens: List[Token] = []
    for line_no, line in enumerate(text.splitlines() or [''], start=1):
        tokens.extend(tokenize_line(line, line_no))
    if not tokens:
        raise SyntaxError('Unexpected end of input: expected an expression')
    return _parse_tokens(tokens, simplify)


def parse_equations(text: str, simplify: bool = False) -> List[Expression]:
    """Parse one equation per non-empty line; ``#`` starts a comment."""

    equations: List[Expression] = []
    for line_no, line in enumerate(text.splitlines(), start=1):
        tokens = tokenize_line(line, line_no)
        if tokens:
            equations.append(_parse_tokens(tokens, simplify))
    return equations
