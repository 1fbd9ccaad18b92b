from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from opensdk.core.errors import (
    BusinessRejectionError,
    ConfigurationError,
    VerificationError,
    collect_error_codes,
    error_message,
)
from opensdk.core.logging import get_logger
from opensdk.runtime.payload import (
    ValueKind,
    classify,
    extract_data,
    get_description,
    get_errcode,
    has_visible_data,
    is_empty,
    pick_from_mapping,
    pick_one,
)

if TYPE_CHECKING:
    from opensdk.client.resource import CallOptions, ResourceClient

log = get_logger(__name__)

ID_KEYS = ("id", "Id", "FID", "fid")
NUMBER_KEYS = ("number", "Number", "no", "No", "code", "Code", "billNo", "bill_no", "编码", "单号")
# responses use code/Code for status, so they never count as a document number there
RESPONSE_NUMBER_KEYS = tuple(k for k in NUMBER_KEYS if k not in ("code", "Code"))


@dataclass(frozen=True)
class VerificationCriteria:
    id: Any = None
    number: Any = None

    @property
    def is_empty(self) -> bool:
        return is_empty(self.id) and is_empty(self.number)

    def as_filters(self) -> dict[str, Any]:
        filters: dict[str, Any] = {}
        if not is_empty(self.number):
            filters["number"] = self.number
        if not is_empty(self.id):
            filters["id"] = self.id
        return filters


def assert_business_success(action: str, resp: Any) -> None:
    """Raise BusinessRejectionError when the response carries a non-zero errcode."""
    code = get_errcode(resp)
    if code is not None and code != 0:
        raise BusinessRejectionError(action, code, get_description(resp))


def infer_verify_criteria(
    resp: Any,
    payload: Any,
    overrides: Optional[Mapping[str, Any]] = None,
) -> VerificationCriteria:
    """Response-declared id/number first, then the written payload, then caller overrides."""
    overrides = overrides or {}
    data = extract_data(resp)
    return VerificationCriteria(
        id=pick_one(
            pick_from_mapping(data, ID_KEYS),
            pick_from_mapping(resp, ID_KEYS),
            pick_from_mapping(payload, ID_KEYS),
            overrides.get("id"),
        ),
        number=pick_one(
            pick_from_mapping(data, RESPONSE_NUMBER_KEYS),
            pick_from_mapping(resp, RESPONSE_NUMBER_KEYS),
            pick_from_mapping(payload, NUMBER_KEYS),
            overrides.get("number"),
        ),
    )


def _first_row(resp: Any) -> Any:
    data = extract_data(resp)
    if classify(data) is ValueKind.SEQUENCE:
        return data[0] if len(data) else None
    return data


def row_matches(resp: Any, criteria: VerificationCriteria) -> bool:
    row = _first_row(resp)
    if classify(row) is not ValueKind.MAPPING:
        return False
    if not is_empty(criteria.id):
        found = pick_from_mapping(row, ID_KEYS)
        if found is not None and str(found) == str(criteria.id):
            return True
    if not is_empty(criteria.number):
        found = pick_from_mapping(row, NUMBER_KEYS)
        if found is not None and str(found) == str(criteria.number):
            return True
    return False


async def _read_list(
    client: "ResourceClient",
    action: str,
    filters: dict[str, Any],
    opts: Optional["CallOptions"],
) -> Any:
    """One-row list read. Any failure here leaves the write unconfirmed, not rejected."""
    try:
        list_resp = await client.list(page=1, page_size=1, filters=filters, opts=opts)
        assert_business_success(f"{action}:list", list_resp)
    except Exception as exc:
        raise VerificationError(
            f"[{action}] verification list read failed: {error_message(exc)}",
            action=action,
            step="list",
        ) from exc
    return list_resp


def _is_not_found(exc: BaseException) -> bool:
    return isinstance(exc, BusinessRejectionError) or 404 in collect_error_codes(exc)


async def verify_read_after_write(
    client: "ResourceClient",
    action: str,
    criteria: VerificationCriteria,
    opts: Optional["CallOptions"] = None,
) -> Any:
    """
    Block until the written record is visible through a read endpoint.

    Detail lookup first; any failure or empty result there falls back to a
    one-row list search filtered by whichever of id/number is known. Returns
    the confirming read response.
    """
    catalog = client.catalog
    strict = client.config.strict_list_verification
    if not catalog.has("read:detail") and not catalog.has("read:list"):
        raise VerificationError(
            f"[{action}] read-after-write verification failed: no detail or list endpoint",
            action=action,
            step="setup",
        )
    if criteria.is_empty and strict:
        raise VerificationError(
            f"[{action}] read-after-write verification failed: no id or number to look up",
            action=action,
            step="criteria",
        )

    if catalog.has("read:detail") and not criteria.is_empty:
        try:
            detail_resp = await client.detail(id=criteria.id, number=criteria.number, opts=opts)
            assert_business_success(f"{action}:detail", detail_resp)
            if has_visible_data(detail_resp):
                return detail_resp
            log.info("verify_fallback", action=action, step="detail", message="no visible data")
        except Exception as exc:
            log.warning("verify_fallback", action=action, step="detail", message=error_message(exc))

    if catalog.has("read:list"):
        if criteria.is_empty:
            log.warning("verify_unfiltered_list", action=action)
        list_resp = await _read_list(client, action, criteria.as_filters(), opts)
        if has_visible_data(list_resp):
            if not strict or row_matches(list_resp, criteria):
                return list_resp
            log.warning("verify_list_mismatch", action=action, criteria=criteria.as_filters())

    raise VerificationError(
        f"[{action}] read-after-write verification failed",
        action=action,
        step="list" if catalog.has("read:list") else "detail",
    )


async def verify_delete(
    client: "ResourceClient",
    action: str,
    criteria: VerificationCriteria,
    opts: Optional["CallOptions"] = None,
) -> None:
    """
    Confirm the record is gone.

    Detail coming back empty confirms it; visible data fails with
    still_visible. A failing detail read defers to the list check when a list
    endpoint exists. Without one, only not-found style failures (404 or a
    business rejection) confirm, anything else propagates.
    """
    catalog = client.catalog
    has_list = catalog.has("read:list")

    if catalog.has("read:detail") and not is_empty(criteria.id):
        try:
            detail_resp = await client.detail(id=criteria.id, opts=opts)
            assert_business_success(f"{action}:detail", detail_resp)
        except Exception as exc:
            log.info("verify_fallback", action=action, step="detail", message=error_message(exc))
            if not has_list:
                if _is_not_found(exc):
                    return
                raise
        else:
            if has_visible_data(detail_resp):
                raise VerificationError(
                    f"[{action}] delete verification failed: resource still visible in detail",
                    action=action,
                    step="detail",
                    still_visible=True,
                )
            return

    if has_list:
        filters = {"id": criteria.id} if not is_empty(criteria.id) else {}
        list_resp = await _read_list(client, action, filters, opts)
        if has_visible_data(list_resp):
            raise VerificationError(
                f"[{action}] delete verification failed: resource still visible in list",
                action=action,
                step="list",
                still_visible=True,
            )
        return

    raise ConfigurationError(f"[{action}] delete verification needs detail or list endpoint", action=action)
