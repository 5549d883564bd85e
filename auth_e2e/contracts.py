"""Named response contracts.

Contracts check status plus the minimal body shape an operation promises.
They deliberately ignore extra fields so additive service changes do not
break the suite. Each returns the parsed body for chaining.
"""
from __future__ import annotations

from typing import Any, Dict

from auth_e2e.api_client import JWT_COOKIE_NAME, Envelope
from auth_e2e.errors import ContractViolation

SIGNUP_SUCCESS_MESSAGE = "User created successfully!"

_MISSING = "<missing>"


def expect_status(envelope: Envelope, expected: int, contract: str = "expect_status") -> Dict[str, Any]:
    if envelope.status != expected:
        raise ContractViolation(contract, "status", expected, envelope.status)
    return envelope.body


def expect_successful_signup(envelope: Envelope) -> Dict[str, Any]:
    """201 with the fixed success message."""
    body = expect_status(envelope, 201, "expect_successful_signup")
    if body.get("message") != SIGNUP_SUCCESS_MESSAGE:
        raise ContractViolation(
            "expect_successful_signup", "body.message", SIGNUP_SUCCESS_MESSAGE, body.get("message", _MISSING)
        )
    return body


def expect_validation_error(envelope: Envelope) -> Dict[str, Any]:
    """400 with an `error` key (any value)."""
    body = expect_status(envelope, 400, "expect_validation_error")
    if "error" not in body:
        raise ContractViolation("expect_validation_error", "body.error", "<present>", _MISSING)
    return body


def expect_duplicate_user(envelope: Envelope) -> Dict[str, Any]:
    return expect_status(envelope, 409, "expect_duplicate_user")


def expect_unauthorized(envelope: Envelope) -> Dict[str, Any]:
    return expect_status(envelope, 401, "expect_unauthorized")


def expect_successful_login(envelope: Envelope) -> Dict[str, Any]:
    """200 and a session token issued as the `jwt` cookie."""
    body = expect_status(envelope, 200, "expect_successful_login")
    if not envelope.jwt:
        raise ContractViolation("expect_successful_login", f"cookie.{JWT_COOKIE_NAME}", "<present>", _MISSING)
    return body


def expect_two_factor_required(envelope: Envelope) -> Dict[str, Any]:
    """206 carrying the login attempt id needed by /verify-2fa."""
    body = expect_status(envelope, 206, "expect_two_factor_required")
    if not body.get("loginAttemptId"):
        raise ContractViolation(
            "expect_two_factor_required", "body.loginAttemptId", "<present>", body.get("loginAttemptId", _MISSING)
        )
    return body


def expect_successful_logout(envelope: Envelope) -> Dict[str, Any]:
    return expect_status(envelope, 200, "expect_successful_logout")
