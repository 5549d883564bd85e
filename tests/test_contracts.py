"""Tests for the named response contracts."""
import httpx
import pytest

from auth_e2e.api_client import Envelope
from auth_e2e.contracts import (
    SIGNUP_SUCCESS_MESSAGE,
    expect_duplicate_user,
    expect_status,
    expect_successful_login,
    expect_successful_signup,
    expect_two_factor_required,
    expect_validation_error,
)
from auth_e2e.errors import ContractViolation


class TestSuccessfulSignup:

    def test_passes_and_returns_body(self):
        envelope = Envelope(status=201, body={"message": SIGNUP_SUCCESS_MESSAGE, "extra": 1})
        assert expect_successful_signup(envelope) == {"message": SIGNUP_SUCCESS_MESSAGE, "extra": 1}

    def test_wrong_status(self):
        with pytest.raises(ContractViolation) as excinfo:
            expect_successful_signup(Envelope(status=200, body={"message": SIGNUP_SUCCESS_MESSAGE}))
        assert excinfo.value.field == "status"
        assert excinfo.value.expected == 201
        assert excinfo.value.actual == 200

    def test_wrong_message(self):
        with pytest.raises(ContractViolation) as excinfo:
            expect_successful_signup(Envelope(status=201, body={"message": "ok"}))
        assert excinfo.value.field == "body.message"
        assert "User created successfully!" in str(excinfo.value)

    def test_missing_message(self):
        with pytest.raises(ContractViolation):
            expect_successful_signup(Envelope(status=201, body={}))


class TestValidationError:

    def test_passes_with_any_error_value(self):
        assert expect_validation_error(Envelope(status=400, body={"error": None})) == {"error": None}

    def test_missing_error_key(self):
        with pytest.raises(ContractViolation) as excinfo:
            expect_validation_error(Envelope(status=400, body={"message": "bad"}))
        assert excinfo.value.field == "body.error"

    def test_wrong_status(self):
        with pytest.raises(ContractViolation):
            expect_validation_error(Envelope(status=422, body={"error": "Malformed input"}))


def test_violation_is_an_assertion_error():
    with pytest.raises(AssertionError):
        expect_status(Envelope(status=500), 200)


def test_duplicate_user():
    expect_duplicate_user(Envelope(status=409, body={"error": "User already exists"}))
    with pytest.raises(ContractViolation):
        expect_duplicate_user(Envelope(status=201))


def test_successful_login_needs_jwt_cookie():
    expect_successful_login(Envelope(status=200, cookies={"jwt": "token"}))
    with pytest.raises(ContractViolation) as excinfo:
        expect_successful_login(Envelope(status=200))
    assert excinfo.value.field == "cookie.jwt"


def test_two_factor_required_needs_attempt_id():
    body = {"message": "2FA required", "loginAttemptId": "abc"}
    assert expect_two_factor_required(Envelope(status=206, body=body)) == body
    with pytest.raises(ContractViolation):
        expect_two_factor_required(Envelope(status=206, body={"message": "2FA required"}))


def test_envelope_ignores_non_object_bodies():
    request = httpx.Request("GET", "http://auth.test/")

    envelope = Envelope.from_response(httpx.Response(200, json=["a", "b"], request=request))
    assert envelope.body == {}

    envelope = Envelope.from_response(httpx.Response(500, text="<html>oops</html>", request=request))
    assert envelope.body == {}
    assert envelope.text == "<html>oops</html>"
