"""
Structured logging for opensdk.

Configure once at the edge (CLI entry, application startup):

    from opensdk.core.logging import configure_logging, get_logger
    configure_logging(level="INFO", format="console")
    log = get_logger(__name__)
    log.info("request", action="save", url="https://...")

Values under secret-looking keys are masked before rendering, and
`secret=...` style fragments inside strings are rewritten, so request
headers and payloads can be logged as-is.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor

MASK = "***"

_SENSITIVE_KEY_PARTS = ("token", "secret", "signature", "authorization")

_INLINE_SECRET = re.compile(
    r"(client_secret|app_secret|token|signature|secret)(\\?[\"']?\s*[:=]\s*\\?[\"']?)([^\"\s&]+)",
    re.IGNORECASE,
)
_APP_TOKEN_QS = re.compile(r"(app-token=)[^&\s]+", re.IGNORECASE)
_ACCESS_TOKEN_QS = re.compile(r"(access_token=)[^&\s]+", re.IGNORECASE)

_configured = False


def redact_secrets(text: str) -> str:
    out = _INLINE_SECRET.sub(lambda m: f"{m.group(1)}{m.group(2)}{MASK}", text)
    out = _APP_TOKEN_QS.sub(lambda m: f"{m.group(1)}{MASK}", out)
    return _ACCESS_TOKEN_QS.sub(lambda m: f"{m.group(1)}{MASK}", out)


def is_sensitive_key(key: str) -> bool:
    lower = str(key).lower()
    return any(part in lower for part in _SENSITIVE_KEY_PARTS)


def _redact_value(key: str, value: Any) -> Any:
    if is_sensitive_key(key):
        return MASK
    if isinstance(value, str):
        return redact_secrets(value)
    if isinstance(value, dict):
        return {k: _redact_value(str(k), v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_redact_value("", v) for v in value]
    return value


def redact_event(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    for key in list(event_dict.keys()):
        if key == "event":
            continue
        event_dict[key] = _redact_value(key, event_dict[key])
    return event_dict


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO",
    format: Literal["json", "console"] = "console",
    force: bool = False,
) -> None:
    """Set up structlog + stdlib logging. Later calls are no-ops unless force=True."""
    global _configured
    if _configured and not force:
        return

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_event,
        structlog.processors.format_exc_info,
    ]
    if format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level),
        force=True,
    )
    logging.getLogger("opensdk").setLevel(getattr(logging, level))
    _configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
