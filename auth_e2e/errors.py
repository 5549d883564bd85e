"""Error taxonomy for the auth service E2E harness.

- ServiceUnavailable: the readiness gate gave up; aborts the whole run.
- NetworkError: a single request never reached the service; fails one scenario.
- ContractViolation: a response did not match its contract; fails one scenario.
"""
from __future__ import annotations

from typing import Any


class HarnessError(Exception):
    """Base class for harness errors."""


class ServiceUnavailable(HarnessError):
    """Raised when the target service never became reachable."""

    def __init__(self, base_url: str, attempts: int, last_error: str | None = None) -> None:
        self.base_url = base_url
        self.attempts = attempts
        self.last_error = last_error
        message = f"Service at {base_url} not ready after {attempts} attempts"
        if last_error:
            message += f" (last error: {last_error})"
        super().__init__(message)


class NetworkError(HarnessError):
    """Raised when a request cannot reach the service at all."""

    def __init__(self, method: str, url: str, reason: str) -> None:
        self.method = method
        self.url = url
        self.reason = reason
        super().__init__(f"{method} {url} failed: {reason}")


class ContractViolation(HarnessError, AssertionError):
    """Raised when a response envelope does not satisfy a named contract."""

    def __init__(self, contract: str, field: str, expected: Any, actual: Any) -> None:
        self.contract = contract
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(f"{contract}: expected {field}={expected!r}, got {actual!r}")
