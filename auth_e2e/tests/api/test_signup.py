"""
Signup API scenarios.

Each test generates its own user, so tests can run in any order and in
parallel. The duplicate-registration test is the only one that posts the
same user twice, and it does so within itself.

Run with: pytest auth_e2e/tests/api/test_signup.py -v
"""
import pytest

from auth_e2e.contracts import (
    SIGNUP_SUCCESS_MESSAGE,
    expect_duplicate_user,
    expect_successful_signup,
    expect_validation_error,
)
from auth_e2e.test_data import INVALID_EMAILS, SHORT_PASSWORD, VALID_PASSWORD, generate_test_user, user_payload

pytestmark = [pytest.mark.asyncio, pytest.mark.api]


async def test_signup_creates_user(api_client):
    user = generate_test_user("signup")

    response = await api_client.signup(user)

    body = expect_successful_signup(response)
    assert body["message"] == SIGNUP_SUCCESS_MESSAGE


async def test_signup_creates_user_with_2fa(api_client):
    user = generate_test_user("signup2fa")
    user.requires_2fa = True

    response = await api_client.signup(user)

    expect_successful_signup(response)


class TestSignupValidation:
    """Invalid input is rejected with 400 and an `error` field."""

    async def test_rejects_empty_email(self, api_client):
        response = await api_client.signup(user_payload(email=""))
        expect_validation_error(response)

    async def test_rejects_short_password(self, api_client):
        response = await api_client.signup(user_payload(email="test@example.com", password=SHORT_PASSWORD))
        expect_validation_error(response)

    @pytest.mark.parametrize("email", INVALID_EMAILS)
    async def test_rejects_invalid_email(self, api_client, email):
        response = await api_client.signup(user_payload(email=email, password=VALID_PASSWORD))
        expect_validation_error(response)

    async def test_rejection_is_repeatable(self, api_client):
        """The same invalid input is rejected the same way every time."""
        payload = user_payload(email="not-an-email")

        outcomes = []
        for _ in range(3):
            response = await api_client.signup(payload)
            expect_validation_error(response)
            outcomes.append(response.status)

        assert outcomes == [400, 400, 400]


async def test_duplicate_registration_conflicts(api_client):
    user = generate_test_user("duplicate")

    # The first signup should succeed
    first = await api_client.signup(user)
    expect_successful_signup(first)

    # The second signup should fail
    second = await api_client.signup(user)
    expect_duplicate_user(second)
