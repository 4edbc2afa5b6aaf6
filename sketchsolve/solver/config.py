"""Process-wide defaults for the numeric solvers."""

from __future__ import annotations

import copy

from .model import NumericConfig

_NUMERIC_CONFIG = NumericConfig()


def get_numeric_config() -> NumericConfig:
    return copy.deepcopy(_NUMERIC_CONFIG)


def set_numeric_config(config: NumericConfig) -> None:
    global _NUMERIC_CONFIG
    _NUMERIC_CONFIG = copy.deepcopy(config)
