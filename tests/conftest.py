from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit

import pytest

from opensdk.catalog.catalog import build_catalog
from opensdk.core.config import ClientConfig
from opensdk.domain.models import EndpointDescriptor
from opensdk.runtime.retry import RetryOptions


class FakeTransport:
    """
    Routes requests by URL path. A route is a response, an exception, a
    callable(request), or a list of those consumed in order (last one sticks).
    """

    def __init__(self, routes: dict[str, Any]):
        self.routes = routes
        self.requests = []

    async def __call__(self, request):
        self.requests.append(request)
        path = urlsplit(request.url).path
        outcome = self.routes[path]
        if isinstance(outcome, list):
            outcome = outcome.pop(0) if len(outcome) > 1 else outcome[0]
        if callable(outcome) and not isinstance(outcome, BaseException):
            outcome = outcome(request)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def paths(self) -> list[str]:
        return [urlsplit(r.url).path for r in self.requests]


def ep(op: str, title: str, method: str, path: str) -> EndpointDescriptor:
    return EndpointDescriptor(operation=op, title=title, method=method, path_or_url=path, is_relative=True)


CUSTOMER_ENDPOINTS = {
    "list": ep("read:list", "客户列表", "GET", "/jdy/v2/bd/customer_list"),
    "detail": ep("read:detail", "客户详情", "GET", "/jdy/v2/bd/customer_detail"),
    "save": ep("write:upsert", "客户保存", "POST", "/jdy/v2/bd/customer"),
    "update": ep("write:update", "客户修改", "POST", "/jdy/v2/bd/customer_update"),
    "delete": ep("write:delete", "客户删除", "POST", "/jdy/v2/bd/customer_delete"),
    "audit": ep("workflow:audit", "客户审核", "POST", "/jdy/v2/bd/customer_audit"),
}


async def _no_sleep(ms: float) -> None:
    return None


@pytest.fixture
def fake_transport():
    return FakeTransport


@pytest.fixture
def customer_catalog():
    def _make(*actions: str):
        names = actions or tuple(CUSTOMER_ENDPOINTS)
        return build_catalog("customer", [CUSTOMER_ENDPOINTS[a] for a in names])

    return _make


@pytest.fixture
def fast_config() -> ClientConfig:
    return ClientConfig(
        openapi_host="https://api.example.com",
        retry=RetryOptions(max_retries=2, base_delay_ms=1, sleep=_no_sleep, jitter=lambda: 0),
        uuid_fn=lambda: "uuid-fixed",
    )
