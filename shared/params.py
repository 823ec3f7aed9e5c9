"""Declarative parameter schema.

A tool's parameter contract is defined as a list of ParamDef objects.
ParamSchema wraps the list and derives the defaults dict, the range table
and strict validation of user-supplied dicts (CLI flags, JSON presets,
interactive answers).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from shared.errors import InvalidInput


class ParamType(Enum):
    FLOAT = "float"
    INT = "int"
    CHOICE = "choice"


@dataclass
class ParamDef:
    key: str
    type: ParamType
    default: Any
    section: str
    label: str = ""
    range: tuple | None = None  # (min, max), either end may be None
    choices: list[str] | None = None  # accepted names for CHOICE type
    normalize: Callable[[Any], str] | None = None  # CHOICE spelling -> canonical name
    check: Callable[[Any], bool] | None = None
    check_msg: str = ""
    optional: bool = False      # None is a legal value


class ParamSchema:
    """Derives defaults and validation from a declarative param list."""

    def __init__(self, params: list[ParamDef]):
        self._params = params
        self._by_key: dict[str, ParamDef] = {p.key: p for p in params}

    def default_params(self) -> dict:
        return {p.key: p.default for p in self._params}

    def param_ranges(self) -> dict[str, tuple]:
        """Continuous params only (float/int with range)."""
        return {p.key: p.range for p in self._params
                if p.range is not None and p.type != ParamType.CHOICE}

    def validate(self, raw: dict) -> dict:
        """Validate a params dict, filling missing keys with defaults.

        Unlike a clamp, anything out of contract is rejected: unknown keys,
        values that do not cast, out-of-range numbers, unknown choices.

        Raises:
            InvalidInput: describing the first offending key.
        """
        unknown = sorted(set(raw) - set(self._by_key))
        if unknown:
            raise InvalidInput(f"unknown parameter(s): {', '.join(unknown)}")

        result = self.default_params()
        for key, value in raw.items():
            result[key] = self._coerce(self._by_key[key], value)
        return result

    def _coerce(self, p: ParamDef, value):
        if value is None:
            if p.optional:
                return None
            raise InvalidInput(f"{p.key} is required")

        if p.type == ParamType.CHOICE:
            if p.normalize is not None:
                name = p.normalize(value)
            else:
                name = str(value).strip().upper().replace("-", "_")
            if name not in p.choices:
                raise InvalidInput(
                    f"{p.key} must be one of {', '.join(p.choices)}, got {value!r}")
            return name

        try:
            if p.type == ParamType.INT:
                if isinstance(value, float) and not value.is_integer():
                    raise ValueError(value)
                v = int(value)
            else:
                v = float(value)
        except (TypeError, ValueError):
            raise InvalidInput(f"{p.key} must be {p.type.value}, got {value!r}") from None

        if p.range:
            lo, hi = p.range
            if (lo is not None and v < lo) or (hi is not None and v > hi):
                raise InvalidInput(f"{p.key}={v} outside {_fmt_range(lo, hi)}")
        if p.check is not None and not p.check(v):
            raise InvalidInput(f"{p.key}={v}: {p.check_msg or 'rejected'}")
        return v

    def get(self, key: str) -> ParamDef | None:
        return self._by_key.get(key)

    def __iter__(self):
        return iter(self._params)

    def __len__(self):
        return len(self._params)


def _fmt_range(lo, hi):
    lo_s = "-inf" if lo is None else str(lo)
    hi_s = "inf" if hi is None else str(hi)
    return f"[{lo_s}, {hi_s}]"
