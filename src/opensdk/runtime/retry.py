"""Retry classification and exponential backoff for write calls.

    >>> await with_retry(lambda: transport(req), max_retries=3, sleep=fake_sleep)

Retries cover rate limiting (429), network/timeout failures and 5xx.
Request-shape and auth errors (4xx, 601/603/604) fail on the first attempt.
"""

from __future__ import annotations

import asyncio
import math
import random
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from opensdk.core.errors import ConfigurationError, collect_error_codes, error_message
from opensdk.core.logging import get_logger

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY_MS = 500

NON_RETRY_CODES = frozenset({400, 401, 403, 404, 405, 415, 601, 603, 604})
NETWORK_ERROR_CODES = frozenset({"ETIMEDOUT", "ECONNRESET", "ENOTFOUND"})

_TIMEOUT_NAME = re.compile(r"timeout", re.IGNORECASE)

SleepFn = Callable[[float], Awaitable[Any]]
JitterFn = Callable[[], float]

log = get_logger(__name__)


@dataclass(frozen=True)
class RetryEvent:
    attempt: int          # 1-based number of the retry about to happen
    max_retries: int
    delay_ms: int
    message: str


OnRetry = Callable[[RetryEvent], Any]


@dataclass(frozen=True)
class RetryOptions:
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay_ms: float = DEFAULT_BASE_DELAY_MS
    sleep: Optional[SleepFn] = None   # receives milliseconds
    jitter: Optional[JitterFn] = None


def is_media_type_unsupported(err: BaseException) -> bool:
    return 415 in collect_error_codes(err) or "415" in error_message(err)


def is_rate_limited(err: BaseException) -> bool:
    msg = error_message(err)
    return (
        429 in collect_error_codes(err)
        or "429" in msg
        or "限流" in msg
        or "rate limit" in msg.lower()
    )


def is_server_error(err: BaseException) -> bool:
    return any(500 <= c <= 599 for c in collect_error_codes(err))


def is_network_or_timeout(err: BaseException) -> bool:
    name = getattr(err, "name", None)
    if isinstance(name, str) and _TIMEOUT_NAME.search(name):
        return True
    if any(_TIMEOUT_NAME.search(cls.__name__) for cls in type(err).__mro__):
        return True
    code = getattr(err, "code", None)
    if isinstance(code, str) and code.upper() in NETWORK_ERROR_CODES:
        return True
    return False


def should_retry(err: BaseException, attempt: int, max_retries: int = DEFAULT_MAX_RETRIES) -> bool:
    if attempt >= max_retries:
        return False
    if is_media_type_unsupported(err):
        return False

    codes = collect_error_codes(err)
    if any(c in NON_RETRY_CODES and c != 429 for c in codes):
        return False

    if is_rate_limited(err):
        return True
    if is_network_or_timeout(err):
        return True
    if is_server_error(err):
        return True
    return False


def backoff_delay_ms(
    attempt: int,
    base_delay_ms: Any = DEFAULT_BASE_DELAY_MS,
    jitter: Optional[JitterFn] = None,
) -> int:
    """floor(base * 2^attempt) + 0..100ms of jitter."""
    try:
        base = float(base_delay_ms)
    except (TypeError, ValueError):
        base = float(DEFAULT_BASE_DELAY_MS)
    if not math.isfinite(base):
        base = float(DEFAULT_BASE_DELAY_MS)
    base = max(0.0, base)

    jitter_fn = jitter if jitter is not None else random.random
    jitter_ms = math.floor(jitter_fn() * 101)
    return math.floor(base * (2 ** max(0, attempt))) + jitter_ms


async def _default_sleep(ms: float) -> None:
    await asyncio.sleep(ms / 1000.0)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay_ms: float = DEFAULT_BASE_DELAY_MS,
    on_retry: Optional[OnRetry] = None,
    sleep: Optional[SleepFn] = None,
    jitter: Optional[JitterFn] = None,
) -> T:
    """
    Run `operation` until it succeeds or the classifier refuses another try.

    Up to max_retries + 1 attempts. The last error is re-raised unchanged.
    """
    if not callable(operation):
        raise ConfigurationError("with_retry requires a callable")
    sleep_fn = sleep if sleep is not None else _default_sleep
    attempt = 0

    while True:
        try:
            return await operation()
        except Exception as err:
            if not should_retry(err, attempt, max_retries):
                raise
            delay = backoff_delay_ms(attempt, base_delay_ms, jitter)
            event = RetryEvent(
                attempt=attempt + 1,
                max_retries=max_retries,
                delay_ms=delay,
                message=error_message(err),
            )
            if on_retry is not None:
                on_retry(event)
            else:
                log.info(
                    "retry",
                    attempt=event.attempt,
                    max_retries=max_retries,
                    delay_ms=delay,
                    message=event.message,
                )
            await sleep_fn(delay)
            attempt += 1


async def run_with_options(
    operation: Callable[[], Awaitable[T]],
    options: RetryOptions,
    on_retry: Optional[OnRetry] = None,
) -> T:
    return await with_retry(
        operation,
        max_retries=options.max_retries,
        base_delay_ms=options.base_delay_ms,
        on_retry=on_retry,
        sleep=options.sleep,
        jitter=options.jitter,
    )
