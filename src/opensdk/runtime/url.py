from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

from opensdk.core.errors import ConfigurationError

DEFAULT_OPENAPI_HOST = "https://api.kingdee.com"

_ABSOLUTE = re.compile(r"^https?://", re.IGNORECASE)


def normalize_host(host: Optional[str]) -> str:
    h = (host or "").strip()
    if not h:
        return DEFAULT_OPENAPI_HOST
    return h.rstrip("/")


def is_absolute_url(url: Optional[str]) -> bool:
    return bool(_ABSOLUTE.match(str(url or "")))


def build_url(openapi_host: Optional[str], endpoint_url: Optional[str], override_host: bool = False) -> str:
    """
    Resolve an endpoint path against the configured host.

    - absolute URLs pass through, unless override_host swaps in the
      configured scheme + host (path/query kept)
    - relative paths are joined onto the normalized host
    """
    if not endpoint_url:
        raise ConfigurationError("endpoint_url is required")
    raw = str(endpoint_url).strip()
    base_host = normalize_host(openapi_host)

    if is_absolute_url(raw):
        if not override_host:
            return raw
        src = urlsplit(raw)
        dst = urlsplit(base_host)
        return urlunsplit((dst.scheme, dst.netloc, src.path, src.query, src.fragment))

    path = raw if raw.startswith("/") else f"/{raw}"
    return f"{base_host}{path}"
