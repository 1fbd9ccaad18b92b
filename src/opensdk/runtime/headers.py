from __future__ import annotations

import math
import uuid
from collections.abc import Mapping
from typing import Any, Callable, Optional

from opensdk.core.logging import MASK
from opensdk.runtime.payload import find_value_by_hints, is_empty

IDEMPOTENCY_KEY_HEADER = "Idempotency-Key"
IDEMPOTENCY_TIMEOUT_HEADER = "Idempotency-Timeout"
CONTENT_TYPE_HEADER = "Content-Type"

IDEMPOTENCY_HINT_KEYS = (
    "number",
    "no",
    "code",
    "billno",
    "externalno",
    "extno",
    "thirdno",
    "编码",
    "单号",
)

_SENSITIVE_PARTS = ("token", "secret", "signature", "authorization")

UuidFn = Callable[[], Any]


def find_header(headers: Mapping[str, Any], name: str) -> Optional[str]:
    """Actual key under which `name` is stored (case-insensitive), or None."""
    lower = name.lower()
    for k in headers:
        if str(k).lower() == lower:
            return k
    return None


def has_header(headers: Mapping[str, Any], name: str) -> bool:
    return find_header(headers, name) is not None


def set_header(headers: dict[str, Any], name: str, value: Any) -> None:
    existing = find_header(headers, name)
    if existing is not None:
        del headers[existing]
    headers[name] = value


def make_token(uuid_fn: Optional[UuidFn] = None) -> str:
    if uuid_fn is not None:
        return str(uuid_fn())
    return str(uuid.uuid4())


def resolve_idempotency_key(
    idempotency_key: Any = None,
    payload: Any = None,
    uuid_fn: Optional[UuidFn] = None,
) -> str:
    """
    Explicit key > first hinted field found breadth-first in the payload > fresh token.
    """
    if not is_empty(idempotency_key):
        return str(idempotency_key)
    from_payload = find_value_by_hints(payload, IDEMPOTENCY_HINT_KEYS)
    if from_payload:
        return from_payload
    return make_token(uuid_fn)


def _positive_seconds(value: Any) -> Optional[int]:
    if is_empty(value) or isinstance(value, bool):
        return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(n) or n <= 0:
        return None
    return int(n)


def build_headers(
    default_headers: Optional[Mapping[str, Any]] = None,
    extra_headers: Optional[Mapping[str, Any]] = None,
    *,
    is_write: bool = False,
    is_body_method: bool = False,
    idempotency_key: Any = None,
    idempotency_timeout_sec: Any = None,
    payload: Any = None,
    enable_idempotency: bool = True,
    uuid_fn: Optional[UuidFn] = None,
) -> dict[str, Any]:
    headers: dict[str, Any] = {}
    for source in (default_headers or {}, extra_headers or {}):
        for k, v in source.items():
            set_header(headers, k, v)

    if not is_write:
        return headers

    if is_body_method and not has_header(headers, CONTENT_TYPE_HEADER):
        headers[CONTENT_TYPE_HEADER] = "application/json"

    if enable_idempotency:
        set_header(
            headers,
            IDEMPOTENCY_KEY_HEADER,
            resolve_idempotency_key(idempotency_key, payload, uuid_fn),
        )

    timeout = _positive_seconds(idempotency_timeout_sec)
    if timeout is not None:
        set_header(headers, IDEMPOTENCY_TIMEOUT_HEADER, str(timeout))

    return headers


def _mask_value(key: str, value: Any) -> Any:
    lower = str(key).lower()
    if lower == IDEMPOTENCY_KEY_HEADER.lower():
        text = "" if value is None else str(value)
        return text[:6] + MASK if text else MASK
    if any(part in lower for part in _SENSITIVE_PARTS):
        return MASK
    return value


def mask_sensitive_headers_for_log(headers: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Copy of `headers` safe to log. The input mapping is left untouched."""
    return {k: _mask_value(k, v) for k, v in (headers or {}).items()}
