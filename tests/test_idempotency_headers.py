import math

from opensdk.runtime.headers import (
    build_headers,
    mask_sensitive_headers_for_log,
    resolve_idempotency_key,
)


def test_resolve_prefers_explicit_key_over_payload():
    key = resolve_idempotency_key("idem-from-opts", {"billNo": "SO-001"}, lambda: "uuid-fallback")
    assert key == "idem-from-opts"


def test_resolve_finds_nested_hint_breadth_first():
    assert resolve_idempotency_key(None, {"nested": {"externalNo": "EXT-88"}}, lambda: "u") == "EXT-88"


def test_resolve_shallower_match_wins():
    payload = {"entries": {"number": "deep"}, "billNo": "top"}
    assert resolve_idempotency_key(None, payload, lambda: "u") == "top"


def test_resolve_same_depth_uses_insertion_order():
    payload = {"x": {"code": "c1"}, "y": {"no": "n1"}}
    assert resolve_idempotency_key(None, payload, lambda: "u") == "c1"


def test_resolve_walks_sequences_and_skips_empty_or_container_values():
    payload = {"number": "", "no": {"inner": 1}, "lines": [{"thirdNo": "T-9"}]}
    assert resolve_idempotency_key(None, payload, lambda: "u") == "T-9"


def test_resolve_handles_cycles_and_falls_back_to_generator():
    payload = {"name": "x"}
    payload["self"] = payload
    assert resolve_idempotency_key("", payload, lambda: "uuid-fixed-123") == "uuid-fixed-123"


def test_resolve_without_generator_returns_unique_tokens():
    a = resolve_idempotency_key(None, {}, None)
    b = resolve_idempotency_key(None, {}, None)
    assert a and b and a != b


def test_build_headers_injects_default_content_type_for_write_body_requests():
    headers = build_headers(is_write=True, is_body_method=True, extra_headers={})
    assert headers["Content-Type"] == "application/json"


def test_build_headers_respects_caller_content_type_in_any_case():
    headers = build_headers(
        is_write=True,
        is_body_method=True,
        extra_headers={"content-type": "application/custom+json"},
    )
    assert headers["content-type"] == "application/custom+json"
    assert "Content-Type" not in headers


def test_build_headers_extra_wins_case_insensitively():
    headers = build_headers({"X-Tenant": "a", "Accept": "text/plain"}, {"x-tenant": "b"})
    assert headers == {"Accept": "text/plain", "x-tenant": "b"}


def test_idempotency_key_rule_opts_then_payload_then_uuid():
    h1 = build_headers(
        is_write=True,
        idempotency_key="idem-from-opts",
        payload={"billNo": "SO-001"},
        uuid_fn=lambda: "uuid-fallback",
    )
    assert h1["Idempotency-Key"] == "idem-from-opts"

    h2 = build_headers(is_write=True, payload={"nested": {"externalNo": "EXT-88"}}, uuid_fn=lambda: "uuid-fallback")
    assert h2["Idempotency-Key"] == "EXT-88"

    h3 = build_headers(is_write=True, payload={}, idempotency_timeout_sec=180, uuid_fn=lambda: "uuid-fixed-123")
    assert h3["Idempotency-Key"] == "uuid-fixed-123"
    assert h3["Idempotency-Timeout"] == "180"


def test_idempotency_timeout_only_for_positive_finite_values():
    assert build_headers(is_write=True, idempotency_timeout_sec=90.9)["Idempotency-Timeout"] == "90"
    assert build_headers(is_write=True, idempotency_timeout_sec="45")["Idempotency-Timeout"] == "45"
    for bad in (0, -3, math.inf, math.nan, "abc", None, ""):
        assert "Idempotency-Timeout" not in build_headers(is_write=True, idempotency_timeout_sec=bad)


def test_idempotency_can_be_disabled():
    headers = build_headers(is_write=True, enable_idempotency=False, payload={"number": "N1"})
    assert "Idempotency-Key" not in headers


def test_reads_never_get_idempotency_or_content_type():
    headers = build_headers(
        {"Accept": "application/json"},
        is_write=False,
        is_body_method=True,
        idempotency_key="k",
        idempotency_timeout_sec=60,
        payload={"number": "N1"},
    )
    assert headers == {"Accept": "application/json"}


def test_mask_sensitive_headers_for_log():
    original = {
        "Authorization": "Bearer abc",
        "accessToken": "tk-1",
        "X-Api-Signature": "sig-raw",
        "X-App-Secret": "s",
        "Idempotency-Key": "abcdef123456",
        "Content-Type": "application/json",
    }
    masked = mask_sensitive_headers_for_log(original)

    assert masked["Authorization"] == "***"
    assert masked["accessToken"] == "***"
    assert masked["X-Api-Signature"] == "***"
    assert masked["X-App-Secret"] == "***"
    assert masked["Idempotency-Key"] == "abcdef***"
    assert masked["Content-Type"] == "application/json"
    # input untouched
    assert original["Authorization"] == "Bearer abc"
    assert masked is not original


def test_mask_empty_idempotency_key():
    assert mask_sensitive_headers_for_log({"idempotency-key": ""}) == {"idempotency-key": "***"}
