"""Tests for the readiness gate."""
import socket
import time

import httpx
import pytest

from auth_e2e.errors import ServiceUnavailable
from auth_e2e.readiness import ReadinessState, wait_for_service, wait_for_service_sync


def _scripted_transport(outcomes):
    """Transport replaying `outcomes` (status codes or exceptions) and logging call times."""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(time.monotonic())
        outcome = outcomes[min(len(calls), len(outcomes)) - 1]
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome)

    return httpx.MockTransport(handler), calls


def _closed_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.mark.asyncio
async def test_ready_on_first_attempt():
    transport, calls = _scripted_transport([200])

    state = await wait_for_service("http://svc.test", poll_interval_ms=10, transport=transport)

    assert state == ReadinessState(max_attempts=30, poll_interval_ms=10, attempts_made=1, ready=True)
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_non_success_statuses_are_retried():
    transport, calls = _scripted_transport([503, 404, 204])

    state = await wait_for_service("http://svc.test", max_attempts=5, poll_interval_ms=10, transport=transport)

    assert state.ready
    assert state.attempts_made == 3
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_connection_errors_count_as_failed_attempts():
    transport, calls = _scripted_transport([
        httpx.ConnectError("connection refused"),
        httpx.ConnectError("name resolution failed"),
        200,
    ])

    state = await wait_for_service("http://svc.test", max_attempts=5, poll_interval_ms=10, transport=transport)

    assert state.ready
    assert state.attempts_made == 3


@pytest.mark.asyncio
async def test_gives_up_after_exactly_max_attempts():
    transport, calls = _scripted_transport([httpx.ConnectError("connection refused"), 500])
    interval_ms = 30

    with pytest.raises(ServiceUnavailable) as excinfo:
        await wait_for_service("http://svc.test", max_attempts=4, poll_interval_ms=interval_ms, transport=transport)

    assert len(calls) == 4
    assert excinfo.value.attempts == 4
    assert excinfo.value.last_error == "HTTP 500"
    gaps = [later - earlier for earlier, later in zip(calls, calls[1:])]
    assert all(gap >= interval_ms / 1000 * 0.9 for gap in gaps), gaps


@pytest.mark.asyncio
async def test_redirected_root_is_ready():
    requested = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(request.url.path)
        if request.url.path == "/":
            return httpx.Response(302, headers={"location": "/index.html"})
        return httpx.Response(200, text="ok")

    state = await wait_for_service(
        "http://svc.test", max_attempts=2, poll_interval_ms=10, transport=httpx.MockTransport(handler)
    )

    assert state.ready
    assert state.attempts_made == 1
    assert requested == ["/", "/index.html"]


@pytest.mark.asyncio
async def test_attempt_timeout_is_bounded_by_poll_interval():
    timeouts = []

    def handler(request: httpx.Request) -> httpx.Response:
        timeouts.append(request.extensions["timeout"])
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(ServiceUnavailable):
        await wait_for_service(
            "http://svc.test", max_attempts=2, poll_interval_ms=50, timeout=10.0,
            transport=httpx.MockTransport(handler),
        )

    assert len(timeouts) == 2
    assert all(t["read"] == 0.05 and t["connect"] == 0.05 for t in timeouts)


@pytest.mark.asyncio
async def test_request_timeout_caps_attempt_timeout():
    timeouts = []

    def handler(request: httpx.Request) -> httpx.Response:
        timeouts.append(request.extensions["timeout"])
        return httpx.Response(200)

    await wait_for_service(
        "http://svc.test", poll_interval_ms=5000, timeout=2.0, transport=httpx.MockTransport(handler)
    )

    assert timeouts[0]["read"] == 2.0


@pytest.mark.asyncio
async def test_rejects_zero_attempts():
    with pytest.raises(ValueError):
        await wait_for_service("http://svc.test", max_attempts=0)


def test_sync_gate_against_mock_service(fresh_mock_auth_service):
    state = wait_for_service_sync(fresh_mock_auth_service.url, max_attempts=3, poll_interval_ms=500)
    assert state.ready
    assert state.attempts_made == 1


def test_sync_gate_against_closed_port():
    base_url = f"http://127.0.0.1:{_closed_port()}"

    with pytest.raises(ServiceUnavailable) as excinfo:
        wait_for_service_sync(base_url, max_attempts=2, poll_interval_ms=10, timeout=1.0)

    assert excinfo.value.base_url == base_url
    assert excinfo.value.attempts == 2
