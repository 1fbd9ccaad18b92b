from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Mapping, Sequence
from enum import Enum
from typing import Any, Optional


class ValueKind(str, Enum):
    NULL = "null"
    MAPPING = "mapping"
    SEQUENCE = "sequence"
    SCALAR = "scalar"


def classify(value: Any) -> ValueKind:
    if value is None:
        return ValueKind.NULL
    if isinstance(value, Mapping):
        return ValueKind.MAPPING
    # strings/bytes are sequences in Python but scalars in JSON payloads
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return ValueKind.SEQUENCE
    return ValueKind.SCALAR


def is_empty(value: Any) -> bool:
    return value is None or value == ""


def pick_one(*values: Any) -> Any:
    """First value that is neither None nor the empty string."""
    for v in values:
        if not is_empty(v):
            return v
    return None


def pick_from_mapping(obj: Any, keys: Iterable[str]) -> Any:
    if classify(obj) is not ValueKind.MAPPING:
        return None
    for k in keys:
        if k in obj and not is_empty(obj[k]):
            return obj[k]
    return None


def find_value_by_hints(payload: Any, hints: Iterable[str]) -> Optional[str]:
    """
    Breadth-first search for the first scalar stored under a hinted key.

    Keys are compared case-insensitively. Shallower matches win; within one
    level, mapping insertion order wins. Containers are visited once
    (identity-based), so self-referencing payloads terminate.
    """
    wanted = {h.lower() for h in hints}
    queue: deque[Any] = deque([payload])
    seen: set[int] = set()

    while queue:
        current = queue.popleft()
        kind = classify(current)
        if kind in (ValueKind.NULL, ValueKind.SCALAR):
            continue
        if id(current) in seen:
            continue
        seen.add(id(current))

        if kind is ValueKind.SEQUENCE:
            queue.extend(current)
            continue

        for k, v in current.items():
            v_kind = classify(v)
            if str(k).lower() in wanted and v_kind is ValueKind.SCALAR and not isinstance(v, bool):
                text = str(v)
                if text != "":
                    return text
            if v_kind in (ValueKind.MAPPING, ValueKind.SEQUENCE):
                queue.append(v)
    return None


def get_errcode(resp: Any) -> Optional[int]:
    code = pick_one(
        _nested(resp, "errcode"),
        _nested(resp, "code"),
        _nested(resp, "data", "errcode"),
        _nested(resp, "data", "code"),
    )
    if isinstance(code, bool) or not isinstance(code, int):
        return None
    return code


def get_description(resp: Any) -> str:
    desc = pick_one(
        _nested(resp, "description"),
        _nested(resp, "message"),
        _nested(resp, "data", "description"),
        _nested(resp, "data", "message"),
    )
    return "" if desc is None else str(desc)


def extract_data(resp: Any) -> Any:
    """Business data of a response: data.data, data.list, data.rows, data, then the response itself."""
    if classify(resp) is not ValueKind.MAPPING:
        return resp
    return pick_one(
        _nested(resp, "data", "data"),
        _nested(resp, "data", "list"),
        _nested(resp, "data", "rows"),
        _nested(resp, "data"),
        resp,
    )


def has_visible_data(resp: Any) -> bool:
    data = extract_data(resp)
    if is_empty(data):
        return False
    if classify(data) in (ValueKind.MAPPING, ValueKind.SEQUENCE):
        return len(data) > 0
    return True


def _nested(obj: Any, *path: str) -> Any:
    cur = obj
    for name in path:
        if not isinstance(cur, Mapping):
            return None
        cur = cur.get(name)
    return cur
