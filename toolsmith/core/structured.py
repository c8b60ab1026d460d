"""Helpers for reading untyped TOML/JSON structures.

Recipe files, config files and GitHub API payloads all arrive as plain
``dict``/``list`` trees. These helpers validate at the boundary and narrow
the static type at the same time.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TypeGuard, cast

__all__ = [
    "StrDict",
    "ObjList",
    "as_str_dict",
    "as_obj_list",
    "get_str",
    "get_int",
    "get_float",
    "get_bool",
    "get_table",
    "get_list",
    "get_str_list",
]

StrDict = dict[str, object]
ObjList = list[object]


def is_str_dict(obj: object) -> TypeGuard[StrDict]:
    """Return True if obj is a dict with string keys."""
    if not isinstance(obj, dict):
        return False
    d = cast(dict[object, object], obj)
    return all(isinstance(k, str) for k in d)


def as_str_dict(obj: object) -> StrDict | None:
    return obj if is_str_dict(obj) else None


def as_obj_list(obj: object) -> ObjList | None:
    if isinstance(obj, list):
        return cast(ObjList, obj)
    return None


def get_str(table: Mapping[str, object], key: str) -> str | None:
    """Get a stripped, non-empty string value, else None."""
    value = table.get(key)
    if not isinstance(value, str):
        return None
    s = value.strip()
    return s or None


def get_int(table: Mapping[str, object], key: str) -> int | None:
    value = table.get(key)
    # bool is an int subclass; TOML `true` is not a count.
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def get_float(table: Mapping[str, object], key: str) -> float | None:
    value = table.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def get_bool(table: Mapping[str, object], key: str) -> bool | None:
    value = table.get(key)
    return value if isinstance(value, bool) else None


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    return as_str_dict(table.get(key))


def get_list(table: Mapping[str, object], key: str) -> ObjList | None:
    return as_obj_list(table.get(key))


def get_str_list(table: Mapping[str, object], key: str) -> list[str] | None:
    """Get a list of strings.

    A bare string is accepted as a one-element list, which keeps hand-written
    TOML such as ``provides = "rg"`` working. Returns None when the key is
    missing or any element is not a string.
    """
    value = table.get(key)
    if isinstance(value, str):
        return [value] if value.strip() else []
    items = as_obj_list(value)
    if items is None:
        return None
    out: list[str] = []
    for item in items:
        if not isinstance(item, str):
            return None
        out.append(item)
    return out
