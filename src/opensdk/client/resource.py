"""Resource clients: one class per object key, exposing only the cataloged actions.

    >>> catalog = build_catalog("customer", endpoints)
    >>> api = create_resource_client("customer", catalog, transport, ClientConfig())
    >>> await api.save({"number": "C-001", "name": "ACME"})

Writes are retried on transient failures, checked for business errcodes,
and confirmed through a detail/list read before returning.
"""

from __future__ import annotations

import inspect
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Union

from opensdk.catalog.catalog import ResourceCatalog
from opensdk.client.verify import (
    VerificationCriteria,
    assert_business_success,
    infer_verify_criteria,
    verify_delete,
    verify_read_after_write,
)
from opensdk.core.config import ClientConfig
from opensdk.core.errors import ConfigurationError
from opensdk.core.logging import get_logger
from opensdk.domain.models import (
    BODY_METHODS,
    WORKFLOW_ACTIONS,
    EndpointDescriptor,
    is_write_or_workflow,
)
from opensdk.runtime.headers import build_headers, mask_sensitive_headers_for_log
from opensdk.runtime.payload import is_empty
from opensdk.runtime.retry import OnRetry, RetryEvent, RetryOptions, run_with_options
from opensdk.runtime.url import build_url

log = get_logger(__name__)


@dataclass(frozen=True)
class RequestContext:
    """What the transport receives. Built per call, never shared."""

    method: str
    url: str
    params: dict[str, Any] = field(default_factory=dict)
    data: Any = field(default_factory=dict)
    headers: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "url": self.url,
            "params": self.params,
            "data": self.data,
            "headers": self.headers,
        }


Transport = Callable[[RequestContext], Union[Awaitable[Any], Any]]


@dataclass(frozen=True)
class CallOptions:
    headers: Mapping[str, Any] = field(default_factory=dict)
    idempotency_key: Optional[str] = None
    idempotency_timeout_sec: Optional[float] = None
    enable_idempotency: bool = True
    override_host: Optional[bool] = None
    params: Mapping[str, Any] = field(default_factory=dict)
    retry: Optional[RetryOptions] = None
    on_retry: Optional[OnRetry] = None


_DEFAULT_OPTS = CallOptions()


class ResourceClient:
    def __init__(
        self,
        object_key: str,
        catalog: ResourceCatalog,
        transport: Transport,
        config: Optional[ClientConfig] = None,
    ):
        if not callable(transport):
            raise ConfigurationError("transport callable is required")
        self.object_key = object_key
        self.catalog = catalog
        self.transport = transport
        self.config = config or ClientConfig()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.object_key} actions={list(self.catalog.actions)}>"

    # ----------------------------
    # Request building
    # ----------------------------

    def _endpoint(self, action: str) -> EndpointDescriptor:
        endpoint = self.catalog.for_action(action)
        if endpoint is None:
            raise ConfigurationError(f"Endpoint for action {action} is not configured", action=action)
        return endpoint

    def get_request_url(self, action: str, override_host: Optional[bool] = None) -> str:
        endpoint = self.catalog.for_action(action)
        if endpoint is None:
            raise ConfigurationError(f"Unknown endpoint action: {action}", action=action)
        return build_url(
            self.config.openapi_host,
            endpoint.path_or_url,
            override_host=self.config.override_host if override_host is None else override_host,
        )

    def build_request(self, action: str, payload: Any, opts: CallOptions = _DEFAULT_OPTS) -> RequestContext:
        endpoint = self._endpoint(action)
        method = endpoint.effective_method
        is_write = is_write_or_workflow(endpoint.operation)
        timeout = opts.idempotency_timeout_sec
        if timeout is None:
            timeout = self.config.idempotency_timeout_sec

        headers = build_headers(
            self.config.default_headers,
            opts.headers,
            is_write=is_write,
            is_body_method=method in BODY_METHODS,
            idempotency_key=opts.idempotency_key,
            idempotency_timeout_sec=timeout,
            payload=payload or {},
            enable_idempotency=opts.enable_idempotency,
            uuid_fn=self.config.uuid_fn,
        )
        url = self.get_request_url(action, opts.override_host)

        if method == "GET":
            return RequestContext(method=method, url=url, params=dict(payload or {}), data={}, headers=headers)
        return RequestContext(method=method, url=url, params=dict(opts.params), data=payload or {}, headers=headers)

    # ----------------------------
    # Execution
    # ----------------------------

    async def _send(self, request: RequestContext) -> Any:
        result = self.transport(request)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _retry_logger(self, action: str) -> OnRetry:
        def _log(event: RetryEvent) -> None:
            log.info(
                "retry",
                action=action,
                object_key=self.object_key,
                attempt=event.attempt,
                max_retries=event.max_retries,
                delay_ms=event.delay_ms,
                message=event.message,
            )

        return _log

    async def call_endpoint(self, action: str, payload: Any = None, opts: Optional[CallOptions] = None) -> Any:
        """Send one request. Write/workflow actions go through the retry engine, reads do not."""
        opts = opts or _DEFAULT_OPTS
        endpoint = self._endpoint(action)
        request = self.build_request(action, payload, opts)
        log.info(
            "request",
            action=action,
            object_key=self.object_key,
            method=request.method,
            url=request.url,
            headers=mask_sensitive_headers_for_log(request.headers),
        )

        if not is_write_or_workflow(endpoint.operation):
            return await self._send(request)

        return await run_with_options(
            lambda: self._send(request),
            opts.retry or self.config.retry,
            on_retry=opts.on_retry or self._retry_logger(action),
        )

    async def _write_and_verify(
        self,
        action: str,
        payload: dict[str, Any],
        opts: Optional[CallOptions],
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        resp = await self.call_endpoint(action, payload, opts)
        assert_business_success(action, resp)
        criteria = infer_verify_criteria(resp, payload, overrides)
        await verify_read_after_write(self, action, criteria, opts)
        return resp


def _require_model(action: str, model: Any) -> dict[str, Any]:
    if not isinstance(model, Mapping):
        raise ConfigurationError(f"{action}(model) requires a mapping model", action=action)
    return dict(model)


def _require_id(action: str, id: Any) -> None:
    if is_empty(id):
        raise ConfigurationError(f"{action}(id) requires id", action=action)


# ----------------------------
# Action implementations (attached per catalog)
# ----------------------------


async def _list(
    self: ResourceClient,
    page: int = 1,
    page_size: int = 50,
    filters: Optional[Mapping[str, Any]] = None,
    updated_after: Any = None,
    updated_before: Any = None,
    opts: Optional[CallOptions] = None,
) -> Any:
    payload: dict[str, Any] = dict(filters or {})
    payload["page"] = page
    payload["pageSize"] = page_size
    if updated_after is not None:
        payload["updatedAfter"] = updated_after
    if updated_before is not None:
        payload["updatedBefore"] = updated_before
    return await self.call_endpoint("list", payload, opts)


async def _detail(
    self: ResourceClient,
    id: Any = None,
    number: Any = None,
    opts: Optional[CallOptions] = None,
) -> Any:
    if is_empty(id) and is_empty(number):
        raise ConfigurationError("detail requires id or number", action="detail")
    payload: dict[str, Any] = {}
    if not is_empty(id):
        payload["id"] = id
    if not is_empty(number):
        payload["number"] = number
    return await self.call_endpoint("detail", payload, opts)


async def _save(self: ResourceClient, model: Mapping[str, Any], opts: Optional[CallOptions] = None) -> Any:
    return await self._write_and_verify("save", _require_model("save", model), opts)


async def _create(self: ResourceClient, model: Mapping[str, Any], opts: Optional[CallOptions] = None) -> Any:
    return await self._write_and_verify("create", _require_model("create", model), opts)


async def _update(
    self: ResourceClient,
    id: Any,
    model: Optional[Mapping[str, Any]] = None,
    opts: Optional[CallOptions] = None,
) -> Any:
    _require_id("update", id)
    payload = _require_model("update", model or {})
    payload["id"] = id
    return await self._write_and_verify("update", payload, opts, {"id": id})


async def _delete(self: ResourceClient, id: Any, opts: Optional[CallOptions] = None) -> Any:
    _require_id("delete", id)
    resp = await self.call_endpoint("delete", {"id": id}, opts)
    assert_business_success("delete", resp)
    await verify_delete(self, "delete", VerificationCriteria(id=id), opts)
    return resp


def _workflow_action(name: str) -> Callable[..., Awaitable[Any]]:
    async def action(self: ResourceClient, id: Any, opts: Optional[CallOptions] = None) -> Any:
        _require_id(name, id)
        return await self._write_and_verify(name, {"id": id}, opts, {"id": id})

    action.__name__ = name
    action.__qualname__ = name
    action.__doc__ = f"Run the {name} workflow step on one record and confirm it through a read."
    return action


_ACTION_IMPLS: dict[str, Callable[..., Awaitable[Any]]] = {
    "list": _list,
    "detail": _detail,
    "save": _save,
    "create": _create,
    "update": _update,
    "delete": _delete,
    **{name: _workflow_action(name) for name in WORKFLOW_ACTIONS},
}

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]+")


def to_pascal_case(text: str) -> str:
    return "".join(p[0].upper() + p[1:] for p in _NON_ALNUM.split(text or "") if p)


def resource_class_for(object_key: str, catalog: ResourceCatalog) -> type[ResourceClient]:
    """Build a ResourceClient subclass carrying only the actions the catalog exposes."""
    namespace: dict[str, Any] = {name: _ACTION_IMPLS[name] for name in catalog.actions}
    notes = catalog.candidate_notes()
    doc = f"API client for {object_key}."
    if notes:
        doc += "\n\nCandidate endpoints (not selected):\n" + "\n".join(notes)
    namespace["__doc__"] = doc
    return type(f"{to_pascal_case(object_key) or 'Resource'}Api", (ResourceClient,), namespace)


def create_resource_client(
    object_key: str,
    catalog: ResourceCatalog,
    transport: Transport,
    config: Optional[ClientConfig] = None,
) -> ResourceClient:
    return resource_class_for(object_key, catalog)(object_key, catalog, transport, config)
