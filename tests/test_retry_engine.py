import pytest

from opensdk.core.errors import TransportError
from opensdk.runtime.retry import backoff_delay_ms, should_retry, with_retry


class HttpishError(Exception):
    """Stand-in for a third-party client error carrying loose status fields."""

    def __init__(self, message, **fields):
        super().__init__(message)
        for k, v in fields.items():
            setattr(self, k, v)


async def no_sleep(ms):
    return None


async def run_failing(err, max_retries):
    calls = {"n": 0}

    async def op():
        calls["n"] += 1
        raise err

    with pytest.raises(type(err)) as info:
        await with_retry(op, max_retries=max_retries, base_delay_ms=1, sleep=no_sleep, jitter=lambda: 0)
    return calls["n"], info.value


@pytest.mark.asyncio
async def test_429_retries_up_to_max_then_fails_with_original_error():
    err = HttpishError("429 Too Many Requests", status=429)
    calls, raised = await run_failing(err, max_retries=3)
    assert calls == 4
    assert raised is err
    assert "429" in str(raised)


@pytest.mark.asyncio
async def test_400_is_not_retried():
    calls, _ = await run_failing(HttpishError("400 bad request", statusCode=400), max_retries=3)
    assert calls == 1


@pytest.mark.asyncio
async def test_500_retries_then_fails():
    calls, raised = await run_failing(TransportError("server fail", status=500), max_retries=2)
    assert calls == 3
    assert raised.message == "server fail"


@pytest.mark.asyncio
async def test_success_after_transient_failures_reports_each_retry():
    events = []
    outcomes = [TransportError("boom", status=503), TransportError("boom", status=502), {"ok": True}]

    async def op():
        o = outcomes.pop(0)
        if isinstance(o, Exception):
            raise o
        return o

    result = await with_retry(
        op,
        max_retries=3,
        base_delay_ms=1,
        on_retry=events.append,
        sleep=no_sleep,
        jitter=lambda: 0,
    )
    assert result == {"ok": True}
    assert [(e.attempt, e.delay_ms, e.max_retries) for e in events] == [(1, 1, 3), (2, 2, 3)]
    assert events[0].message == "boom"


@pytest.mark.asyncio
async def test_sleep_receives_backoff_delays():
    slept = []

    async def record(ms):
        slept.append(ms)

    async def op():
        raise TransportError("rate limited", status=429)

    with pytest.raises(TransportError):
        await with_retry(op, max_retries=3, base_delay_ms=100, sleep=record, jitter=lambda: 0.5)
    assert slept == [150, 250, 450]


def test_should_retry_budget_exhausted():
    err = TransportError("x", status=500)
    assert should_retry(err, 0, 1) is True
    assert should_retry(err, 1, 1) is False


def test_should_retry_415_never():
    assert should_retry(HttpishError("415 Unsupported Media Type"), 0, 3) is False
    assert should_retry(HttpishError("bad", code=415), 0, 3) is False


def test_should_retry_non_retryable_codes_win_over_5xx():
    err = HttpishError("mixed", status=500, response={"data": {"errcode": 601}})
    assert should_retry(err, 0, 3) is False


def test_should_retry_rate_limit_message_without_code():
    assert should_retry(HttpishError("请求触发限流"), 0, 3) is True
    assert should_retry(HttpishError("Rate limit exceeded"), 0, 3) is True


def test_should_retry_network_and_timeout():
    assert should_retry(TimeoutError("read timed out"), 0, 3) is True
    assert should_retry(HttpishError("socket hang up", code="ECONNRESET"), 0, 3) is True
    assert should_retry(TransportError("dns", code="ENOTFOUND"), 0, 3) is True
    assert should_retry(HttpishError("x", name="RequestTimeoutError"), 0, 3) is True


def test_should_retry_unknown_error_is_not_retried():
    assert should_retry(ValueError("boom"), 0, 3) is False


def test_should_retry_reads_nested_status_fields():
    assert should_retry(HttpishError("x", response={"status": 502}), 0, 3) is True
    assert should_retry(HttpishError("x", data={"errcode": "603"}), 0, 3) is False


def test_backoff_delay_formula():
    assert backoff_delay_ms(0, 500, lambda: 0) == 500
    assert backoff_delay_ms(2, 500, lambda: 0.999) == 2000 + 100
    assert backoff_delay_ms(1, 10.7, lambda: 0.5) == 21 + 50


def test_backoff_delay_invalid_base():
    assert backoff_delay_ms(0, "abc", lambda: 0) == 500
    assert backoff_delay_ms(0, float("nan"), lambda: 0) == 500
    assert backoff_delay_ms(3, -20, lambda: 0) == 0


def test_backoff_delay_default_jitter_in_range():
    for _ in range(50):
        d = backoff_delay_ms(0, 0)
        assert 0 <= d <= 100
