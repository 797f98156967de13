"""Helpers for safely working with untyped JSON.

package.json files and `npm view --json` / `npm search --json` output are all
parsed into plain objects first; these helpers validate and narrow them.
"""

from __future__ import annotations

import json
from typing import Mapping, TypeGuard, cast

StrDict = dict[str, object]
ObjList = list[object]


def is_str_dict(obj: object) -> TypeGuard[StrDict]:
    """Return True if obj is a dict with string keys."""
    if not isinstance(obj, dict):
        return False
    d = cast(dict[object, object], obj)
    return all(isinstance(k, str) for k in d.keys())


def as_str_dict(obj: object) -> StrDict | None:
    if is_str_dict(obj):
        return obj
    return None


def as_obj_list(obj: object) -> ObjList | None:
    if isinstance(obj, list):
        return cast(ObjList, obj)
    return None


def as_str_list(obj: object) -> list[str] | None:
    """Return obj as a list of strings, or None if any item is not a str.

    A bare string is treated as a one-element list: `npm view pkg versions
    --json` prints a string instead of an array when only one version exists.
    """
    if isinstance(obj, str):
        return [obj]
    items = as_obj_list(obj)
    if items is None:
        return None
    out: list[str] = []
    for item in items:
        if not isinstance(item, str):
            return None
        out.append(item)
    return out


def get_str(table: Mapping[str, object], key: str) -> str | None:
    """Get a non-empty, stripped string value from a mapping."""
    value = table.get(key)
    if not isinstance(value, str):
        return None
    s = value.strip()
    return s or None


def get_bool(table: Mapping[str, object], key: str) -> bool:
    """Return True only if the key holds the JSON literal `true`."""
    return table.get(key) is True


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    return as_str_dict(table.get(key))


def loads_json(text: str) -> object | None:
    """Parse JSON text, returning None on malformed input."""
    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError:
        return None
    return obj


def dumps_pretty(data: Mapping[str, object]) -> str:
    """Serialize a manifest the way npm writes it (2-space indent)."""
    return json.dumps(data, indent=2)
