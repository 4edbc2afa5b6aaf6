"""Stable variable names for sketch entities.

Each feature (a point, a line, a circle...) owns one numeric base; its terms are
named by a one-letter prefix plus that base, e.g. ``x3``/``y3`` for the
position of feature 3.  Deleting a feature frees the base for the next one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Hashable, List, Mapping, Optional

from .expression import Variable

logger = logging.getLogger(__name__)


class TermType(Enum):
    SCALAR_DISTANCE = "d"
    POSITION_X = "x"
    POSITION_Y = "y"
    SCALAR_RADIUS = "r"
    SCALAR_GLOBAL_COS = "c"
    SCALAR_GLOBAL_SIN = "s"

    @property
    def prefix(self) -> str:
        return self.value


_BY_PREFIX = {t.prefix: t for t in TermType}


@dataclass(frozen=True)
class TermRef:
    base: int
    kind: TermType
    feature: Optional[Hashable] = field(default=None, compare=False, hash=False)

    def __str__(self) -> str:
        return f"{self.kind.prefix}{self.base}"

    @property
    def variable(self) -> Variable:
        return Variable(str(self))


class TermAllocator:
    """Hands out feature bases; the most recently freed base is reused first."""

    def __init__(self) -> None:
        self.top = 0
        self.by_feature: Dict[Hashable, int] = {}
        self.by_base: Dict[int, Hashable] = {}
        self.free: List[int] = []

    def _alloc_base(self) -> int:
        if self.free:
            return self.free.pop()
        base = self.top
        self.top += 1
        return base

    def get_feature_term(self, feature: Hashable, kind: TermType) -> TermRef:
        base = self.by_feature.get(feature)
        if base is None:
            base = self._alloc_base()
            self.by_feature[feature] = base
            self.by_base[base] = feature
            logger.debug("Allocated base %d for feature %r", base, feature)
        return TermRef(base=base, kind=kind, feature=feature)

    def get_var_ref(self, name: str) -> Optional[TermRef]:
        """Map a variable name such as ``"x3"`` back to its term, if it is one."""

        kind = _BY_PREFIX.get(name[:1])
        digits = name[1:]
        if kind is None or not digits.isdigit() or not digits.isascii():
            return None
        base = int(digits)
        return TermRef(base=base, kind=kind, feature=self.by_base.get(base))

    def delete(self, feature: Hashable) -> None:
        base = self.by_feature.pop(feature, None)
        if base is None:
            return
        del self.by_base[base]
        self.free.append(base)
        logger.debug("Freed base %d of feature %r", base, feature)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "top": self.top,
            "features": [[feature, base] for feature, base in self.by_feature.items()],
            "free": list(self.free),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TermAllocator":
        out = cls()
        out.top = int(data.get("top", 0))
        for feature, base in data.get("features", []):
            if isinstance(feature, list):
                feature = tuple(feature)
            out.by_feature[feature] = int(base)
            out.by_base[int(base)] = feature
        out.free = [int(base) for base in data.get("free", [])]
        if any(base >= out.top for base in list(out.by_base) + out.free):
            raise ValueError("term allocator data references a base beyond 'top'")
        return out
