from __future__ import annotations

import math
from collections.abc import Mapping
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    TRANSPORT = "transport"
    BUSINESS_REJECTION = "business_rejection"
    VERIFICATION = "verification"
    CONFIGURATION = "configuration"


class SdkError(Exception):
    """
    Base for every error raised by opensdk itself.

    `kind` tells callers whether the write was rejected, left unconfirmed,
    never reached the server, or was never attempted.
    """

    kind: ErrorKind = ErrorKind.CONFIGURATION

    def __init__(self, message: str, *, action: str = "", context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.action = action
        self.context = dict(context or {})

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "type": type(self).__name__,
            "message": self.message,
            "action": self.action,
            **self.context,
        }


class ConfigurationError(SdkError):
    """Missing endpoint, transport or identifiers. Never retried."""

    kind = ErrorKind.CONFIGURATION


class TransportError(SdkError):
    kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Any = None,
        name: str = "",
        response: Any = None,
        action: str = "",
    ):
        super().__init__(message, action=action)
        self.status = status
        self.code = code
        # timeout classification looks at this before the class name
        self.name = name or type(self).__name__
        self.response = response


class BusinessRejectionError(SdkError):
    """The call succeeded on the wire but the payload carries a non-zero errcode."""

    kind = ErrorKind.BUSINESS_REJECTION

    def __init__(self, action: str, code: int, description: str = ""):
        message = f"[{action}] failed: errcode={code} {description}".strip()
        super().__init__(message, action=action, context={"errcode": code})
        self.errcode = code
        self.description = description


class VerificationError(SdkError):
    kind = ErrorKind.VERIFICATION

    def __init__(self, message: str, *, action: str, step: str = "", still_visible: bool = False):
        super().__init__(message, action=action, context={"step": step})
        self.step = step
        self.still_visible = still_visible


# (path, ...) lookups tried against attributes first, then mapping keys
_CODE_PATHS: tuple[tuple[str, ...], ...] = (
    ("status",),
    ("status_code",),
    ("statusCode",),
    ("code",),
    ("error_code",),
    ("errorCode",),
    ("errcode",),
    ("response", "status"),
    ("response", "status_code"),
    ("response", "data", "errcode"),
    ("data", "errcode"),
)


def _step(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(name)
    try:
        return getattr(obj, name, None)
    except Exception:
        # some response objects raise on attribute access (e.g. unread bodies)
        return None


def lookup_path(obj: Any, path: tuple[str, ...]) -> Any:
    cur = obj
    for name in path:
        cur = _step(cur, name)
        if cur is None:
            return None
    return cur


def to_code(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def collect_error_codes(err: BaseException) -> list[int]:
    """Every numeric status / errcode the error carries, in lookup order."""
    codes: list[int] = []
    for path in _CODE_PATHS:
        code = to_code(lookup_path(err, path))
        if code is not None:
            codes.append(code)
    return codes


def error_message(err: BaseException) -> str:
    msg = getattr(err, "message", None)
    if isinstance(msg, str) and msg:
        return msg
    return str(err) or type(err).__name__
