"""Typed lookups in parsed TOML configuration tables and arrays.

Each function returns the value when it exists and has the requested type,
and ``None`` otherwise.
"""

from __future__ import annotations

from typing import Any


def _get(table: dict[str, Any], key: str) -> Any:
    return table.get(key)


def _at(array: list[Any], index: int) -> Any:
    if 0 <= index < len(array):
        return array[index]
    return None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _typed(value: Any, kind: str) -> Any:
    checks = {
        "string": lambda v: isinstance(v, str),
        "int": _is_int,
        "bool": lambda v: isinstance(v, bool),
        "float": lambda v: isinstance(v, float),
        "array": lambda v: isinstance(v, list),
        "table": lambda v: isinstance(v, dict),
    }
    return value if checks[kind](value) else None


def string_in(table: dict[str, Any], key: str) -> str | None:
    """Returns the string at ``key``, if any."""
    return _typed(_get(table, key), "string")


def int_in(table: dict[str, Any], key: str) -> int | None:
    """Returns the integer at ``key``, if any."""
    return _typed(_get(table, key), "int")


def bool_in(table: dict[str, Any], key: str) -> bool | None:
    """Returns the boolean at ``key``, if any."""
    return _typed(_get(table, key), "bool")


def float_in(table: dict[str, Any], key: str) -> float | None:
    """Returns the float at ``key``, if any."""
    return _typed(_get(table, key), "float")


def array_in(table: dict[str, Any], key: str) -> list[Any] | None:
    """Returns the array at ``key``, if any."""
    return _typed(_get(table, key), "array")


def table_in(table: dict[str, Any], key: str) -> dict[str, Any] | None:
    """Returns the sub-table at ``key``, if any."""
    return _typed(_get(table, key), "table")


def string_at(array: list[Any], index: int) -> str | None:
    """Returns the string at ``index``, if any."""
    return _typed(_at(array, index), "string")


def int_at(array: list[Any], index: int) -> int | None:
    """Returns the integer at ``index``, if any."""
    return _typed(_at(array, index), "int")


def bool_at(array: list[Any], index: int) -> bool | None:
    """Returns the boolean at ``index``, if any."""
    return _typed(_at(array, index), "bool")


def float_at(array: list[Any], index: int) -> float | None:
    """Returns the float at ``index``, if any."""
    return _typed(_at(array, index), "float")


def array_at(array: list[Any], index: int) -> list[Any] | None:
    """Returns the array at ``index``, if any."""
    return _typed(_at(array, index), "array")


def table_at(array: list[Any], index: int) -> dict[str, Any] | None:
    """Returns the table at ``index``, if any."""
    return _typed(_at(array, index), "table")