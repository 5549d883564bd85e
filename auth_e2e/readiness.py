"""Pre-run barrier: wait until the target service answers `GET /`.

The gate polls a fixed number of times with a fixed delay. Connection errors
and non-2xx statuses both count as a failed attempt; only exhausting every
attempt is fatal.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial

import anyio
import httpx

from auth_e2e.errors import ServiceUnavailable

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 30
DEFAULT_POLL_INTERVAL_MS = 1000


@dataclass
class ReadinessState:
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    attempts_made: int = 0
    ready: bool = False


async def wait_for_service(
    base_url: str,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
    timeout: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ReadinessState:
    """Poll `base_url` until it responds with a 2xx status.

    Redirects are followed; only the final response counts. A single probe
    never runs longer than one poll interval (or `timeout`, if shorter).

    Raises:
        ServiceUnavailable: after `max_attempts` failed polls.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    state = ReadinessState(max_attempts=max_attempts, poll_interval_ms=poll_interval_ms)
    probe_url = base_url.rstrip("/") + "/"
    probe_timeout = min(timeout, poll_interval_ms / 1000) if poll_interval_ms > 0 else timeout
    last_error: str | None = None

    async with httpx.AsyncClient(timeout=probe_timeout, follow_redirects=True, transport=transport) as client:
        while state.attempts_made < state.max_attempts:
            state.attempts_made += 1
            try:
                response = await client.get(probe_url)
            except httpx.TransportError as exc:
                last_error = str(exc) or exc.__class__.__name__
            else:
                if response.is_success:
                    state.ready = True
                    logger.info("Service at %s is ready (attempt %d)", base_url, state.attempts_made)
                    return state
                last_error = f"HTTP {response.status_code}"

            logger.info(
                "Waiting for service at %s... (%d/%d, %s)",
                base_url, state.attempts_made, state.max_attempts, last_error,
            )
            if state.attempts_made < state.max_attempts:
                await anyio.sleep(state.poll_interval_ms / 1000)

    logger.warning("Service at %s never became ready after %d attempts", base_url, state.attempts_made)
    raise ServiceUnavailable(base_url, state.attempts_made, last_error)


def wait_for_service_sync(base_url: str, **kwargs) -> ReadinessState:
    """Blocking variant for synchronous runner hooks."""
    return anyio.run(partial(wait_for_service, base_url, **kwargs))
