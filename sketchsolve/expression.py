"""Immutable algebraic expression trees.

Nodes are frozen dataclasses, so equality and hashing are structural.  The
``as_fraction`` flag of :class:`Rational` only affects how the value is
printed and does not take part in comparisons.  Use
:meth:`Expression.content_hash` when a hash must be stable across processes.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Callable, ClassVar, Dict, Iterator, List, Mapping, Optional, Protocol, Tuple, Union

from .errors import NotSupportedError, UnknownVariableError
from .numbers import Concrete

MAX_VARIABLE_LENGTH = 12


class Resolver(Protocol):
    def resolve_variable(self, name: str) -> Concrete:
        ...


class StaticResolver:
    """Resolver backed by a fixed mapping of variable names to values."""

    def __init__(self, values: Mapping[str, Union[Concrete, int, float, Fraction]]) -> None:
        self.values: Dict[str, Concrete] = {
            name: value if isinstance(value, Concrete) else Concrete(value)
            for name, value in values.items()
        }

    def resolve_variable(self, name: str) -> Concrete:
        try:
            return self.values[name]
        except KeyError:
            raise UnknownVariableError(name) from None


@dataclass(frozen=True)
class Expression:
    weight: ClassVar[int] = 0

    def children(self) -> Tuple["Expression", ...]:
        return ()

    def with_children(self, *children: "Expression") -> "Expression":
        return self

    @property
    def is_coefficient(self) -> bool:
        return False

    def walk(self, callback: Callable[["Expression"], bool]) -> None:
        """Visit nodes depth-first; returning ``False`` skips a node's children."""

        if callback(self):
            for child in self.children():
                child.walk(callback)

    def iter_nodes(self) -> Iterator["Expression"]:
        stack: List[Expression] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children()))

    def variables(self) -> Dict[str, int]:
        """Referenced variable names, in order of first appearance, with counts."""

        counts: Dict[str, int] = {}
        for node in self.iter_nodes():
            if isinstance(node, Variable):
                counts[node.name] = counts.get(node.name, 0) + 1
        return counts

    def contains(self, target: "Expression") -> bool:
        return any(node == target for node in self.iter_nodes())

    def cost(self) -> int:
        """Heuristic complexity weight; cheaper expressions are preferred when solving."""

        return sum(node.weight for node in self.iter_nodes())

    def num_solutions(self) -> int:
        return 1

    def evaluate(self, resolver: Resolver, which: int = 0) -> Concrete:
        raise NotSupportedError(f"cannot evaluate {type(self).__name__}")

    def substitute(self, variable: str, replacement: "Expression") -> "Expression":
        """Replace every reference to ``variable`` with a :class:`Substitution` node."""

        children = self.children()
        if not children:
            return self
        return self.with_children(*(child.substitute(variable, replacement) for child in children))

    def signature(self) -> str:
        raise NotImplementedError

    def content_hash(self) -> int:
        digest = hashlib.blake2b(self.signature().encode("utf-8"), digest_size=8).digest()
        return int.from_bytes(digest, "big")


@dataclass(frozen=True)
class Variable(Expression):
    name: str
    weight: ClassVar[int] = 5

    def __post_init__(self) -> None:
        if not self.name or len(self.name) > MAX_VARIABLE_LENGTH:
            raise ValueError(
                f"variable names must be 1-{MAX_VARIABLE_LENGTH} characters, got {self.name!r}"
            )

    def evaluate(self, resolver: Resolver, which: int = 0) -> Concrete:
        return resolver.resolve_variable(self.name)

    def substitute(self, variable: str, replacement: Expression) -> Expression:
        if self.name == variable:
            return Substitution(variable, replacement)
        return self

    def signature(self) -> str:
        return f"v:{self.name}"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Integer(Expression):
    value: int
    weight: ClassVar[int] = 1

    @property
    def is_coefficient(self) -> bool:
        return True

    def evaluate(self, resolver: Resolver, which: int = 0) -> Concrete:
        return Concrete(Fraction(self.value))

    def signature(self) -> str:
        return f"i:{self.value}"

    def __str__(self) -> str:
        return str(self.value)


def _decimal_text(value: Fraction) -> Optional[str]:
    """Exact decimal text for ``value``, or ``None`` if it does not terminate."""

    den = value.denominator
    twos = fives = 0
    while den % 2 == 0:
        den //= 2
        twos += 1
    while den % 5 == 0:
        den //= 5
        fives += 1
    if den != 1:
        return None
    places = max(twos, fives)
    scaled = abs(value.numerator) * (10 ** places) // value.denominator
    whole, frac = divmod(scaled, 10 ** places)
    sign = "-" if value < 0 else ""
    if places == 0:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{frac:0{places}d}"


@dataclass(frozen=True)
class Rational(Expression):
    value: Fraction
    as_fraction: bool = field(default=True, compare=False)
    weight: ClassVar[int] = 1

    def __post_init__(self) -> None:
        if not isinstance(self.value, Fraction):
            object.__setattr__(self, "value", Fraction(self.value))

    @property
    def is_coefficient(self) -> bool:
        return True

    def evaluate(self, resolver: Resolver, which: int = 0) -> Concrete:
        return Concrete(self.value)

    def signature(self) -> str:
        return f"q:{self.value.numerator}/{self.value.denominator}"

    def __str__(self) -> str:
        if not self.as_fraction:
            text = _decimal_text(self.value)
            if text is not None:
                return text
        return f"({self.value.numerator}/{self.value.denominator})"


@dataclass(frozen=True)
class Substitution(Expression):
    """A variable replaced by the expression that defines it."""

    variable: str
    expr: Expression
    weight: ClassVar[int] = 35

    def children(self) -> Tuple[Expression, ...]:
        return (self.expr,)

    def with_children(self, *children: Expression) -> Expression:
        return Substitution(self.variable, children[0])

    def num_solutions(self) -> int:
        return self.expr.num_solutions()

    def evaluate(self, resolver: Resolver, which: int = 0) -> Concrete:
        try:
            return resolver.resolve_variable(self.variable)
        except UnknownVariableError:
            return self.expr.evaluate(resolver, which)

    def signature(self) -> str:
        return f"s:{self.variable}({self.expr.signature()})"

    def __str__(self) -> str:
        return f"&[{self.expr}]"


@dataclass(frozen=True)
class UnaryOp(Expression):
    operand: Expression
    tag: ClassVar[str] = "?"

    def children(self) -> Tuple[Expression, ...]:
        return (self.operand,)

    def with_children(self, *children: Expression) -> Expression:
        return type(self)(children[0])

    def num_solutions(self) -> int:
        return self.operand.num_solutions()

    def signature(self) -> str:
        return f"{self.tag}({self.operand.signature()})"


@dataclass(frozen=True)
class Neg(UnaryOp):
    weight: ClassVar[int] = 2
    tag: ClassVar[str] = "neg"

    def evaluate(self, resolver: Resolver, which: int = 0) -> Concrete:
        return -self.operand.evaluate(resolver, which)

    def __str__(self) -> str:
        if isinstance(self.operand, Power):
            return f"-({self.operand})"
        return f"-{self.operand}"


@dataclass(frozen=True)
class Abs(UnaryOp):
    weight: ClassVar[int] = 10
    tag: ClassVar[str] = "abs"

    def evaluate(self, resolver: Resolver, which: int = 0) -> Concrete:
        return abs(self.operand.evaluate(resolver, which))

    def __str__(self) -> str:
        return f"abs({self.operand})"


@dataclass(frozen=True)
class Sqrt(UnaryOp):
    """Square root; with ``plus_minus`` set both roots are admissible."""

    plus_minus: bool = False
    weight: ClassVar[int] = 12

    def with_children(self, *children: Expression) -> Expression:
        return Sqrt(children[0], self.plus_minus)

    def num_solutions(self) -> int:
        if self.plus_minus:
            return 2 * self.operand.num_solutions()
        return self.operand.num_solutions()

    def evaluate(self, resolver: Resolver, which: int = 0) -> Concrete:
        if not self.plus_minus:
            return self.operand.evaluate(resolver, which).sqrt()
        root = self.operand.evaluate(resolver, which // 2).sqrt()
        return root if which % 2 == 0 else -root

    def signature(self) -> str:
        tag = "sqrtpm" if self.plus_minus else "sqrt"
        return f"{tag}({self.operand.signature()})"

    def __str__(self) -> str:
        name = "sqrt_pm" if self.plus_minus else "sqrt"
        return f"{name}({self.operand})"


@dataclass(frozen=True)
class BinaryOp(Expression):
    left: Expression
    right: Expression
    tag: ClassVar[str] = "?"
    symbol: ClassVar[str] = "?"

    def children(self) -> Tuple[Expression, ...]:
        return (self.left, self.right)

    def with_children(self, *children: Expression) -> Expression:
        return type(self)(children[0], children[1])

    def num_solutions(self) -> int:
        return self.left.num_solutions() * self.right.num_solutions()

    def evaluate(self, resolver: Resolver, which: int = 0) -> Concrete:
        left_solutions = self.left.num_solutions()
        a = self.left.evaluate(resolver, which % left_solutions)
        b = self.right.evaluate(resolver, which // left_solutions)
        return self.combine(a, b)

    def combine(self, a: Concrete, b: Concrete) -> Concrete:
        raise NotSupportedError(f"cannot evaluate {type(self).__name__}")

    def signature(self) -> str:
        return f"{self.tag}({self.left.signature()},{self.right.signature()})"

    def __str__(self) -> str:
        return f"({self.left} {self.symbol} {self.right})"


@dataclass(frozen=True)
class Equal(BinaryOp):
    tag: ClassVar[str] = "eq"
    symbol: ClassVar[str] = "="

    @property
    def lhs(self) -> Expression:
        return self.left

    @property
    def rhs(self) -> Expression:
        return self.right

    def num_solutions(self) -> int:
        raise NotSupportedError("an equation has no solution count")

    def evaluate(self, resolver: Resolver, which: int = 0) -> Concrete:
        raise NotSupportedError("cannot evaluate an equation")

    def __str__(self) -> str:
        return f"{self.left} = {self.right}"


@dataclass(frozen=True)
class Sum(BinaryOp):
    weight: ClassVar[int] = 2
    tag: ClassVar[str] = "add"
    symbol: ClassVar[str] = "+"

    def combine(self, a: Concrete, b: Concrete) -> Concrete:
        return a + b


@dataclass(frozen=True)
class Difference(BinaryOp):
    weight: ClassVar[int] = 2
    tag: ClassVar[str] = "sub"
    symbol: ClassVar[str] = "-"

    def combine(self, a: Concrete, b: Concrete) -> Concrete:
        return a - b


@dataclass(frozen=True)
class Product(BinaryOp):
    weight: ClassVar[int] = 4
    tag: ClassVar[str] = "mul"
    symbol: ClassVar[str] = "*"

    def combine(self, a: Concrete, b: Concrete) -> Concrete:
        return a * b

    def __str__(self) -> str:
        if isinstance(self.left, Integer) and isinstance(self.right, Variable):
            return f"{self.left}{self.right}"
        return super().__str__()


@dataclass(frozen=True)
class Quotient(BinaryOp):
    weight: ClassVar[int] = 5
    tag: ClassVar[str] = "div"
    symbol: ClassVar[str] = "/"

    def combine(self, a: Concrete, b: Concrete) -> Concrete:
        return a / b


@dataclass(frozen=True)
class Power(BinaryOp):
    weight: ClassVar[int] = 10
    tag: ClassVar[str] = "pow"
    symbol: ClassVar[str] = "^"

    def combine(self, a: Concrete, b: Concrete) -> Concrete:
        return a ** b

    def __str__(self) -> str:
        if isinstance(self.right, Power):
            return f"({self.left})^({self.right})"
        return f"({self.left})^{self.right}"


def constant(value: Union[int, Fraction], as_fraction: bool = True) -> Expression:
    """Integer node for whole values, :class:`Rational` otherwise."""

    value = Fraction(value)
    if value.denominator == 1:
        return Integer(value.numerator)
    return Rational(value, as_fraction)


__all__ = [
    "Abs",
    "BinaryOp",
    "Difference",
    "Equal",
    "Expression",
    "Integer",
    "MAX_VARIABLE_LENGTH",
    "Neg",
    "Power",
    "Product",
    "Quotient",
    "Rational",
    "Resolver",
    "Sqrt",
    "StaticResolver",
    "Substitution",
    "Sum",
    "UnaryOp",
    "Variable",
    "constant",
]
