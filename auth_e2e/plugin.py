"""pytest binding for the harness.

- Applies command line overrides to `auth_e2e.config.settings`.
- Starts the in-process mock service when the target is "mock".
- Runs the readiness gate once, before any test, and aborts the run if the
  service never comes up. Under pytest-xdist only the controller does this.
- Provides the fixtures scenarios use.

Registered from the root conftest via `pytest_plugins`.
"""
import logging
import os

import pytest
import pytest_asyncio
from playwright.async_api import Error as PlaywrightError

from auth_e2e.api_client import AuthApiClient
from auth_e2e.browser import Browser
from auth_e2e.config import settings
from auth_e2e.errors import ServiceUnavailable
from auth_e2e.mock_auth_service import MockAuthServiceServer
from auth_e2e.playwright_client import PlaywrightClient
from auth_e2e.readiness import wait_for_service_sync

logger = logging.getLogger(__name__)

READINESS_EXIT_CODE = 3


def pytest_addoption(parser):
    group = parser.getgroup("auth-e2e", "auth service end-to-end harness")
    group.addoption(
        "--auth-target",
        choices=("mock", "live"),
        default=None,
        help="Run against the in-process mock service or the live BASE_URL (default: AUTH_E2E_TARGET or mock)",
    )
    group.addoption("--base-url-override", default=None, help="Override BASE_URL for this run")
    group.addoption(
        "--skip-readiness",
        action="store_true",
        default=False,
        help="Do not wait for the target service before running tests",
    )


def _is_xdist_worker(config) -> bool:
    return hasattr(config, "workerinput")


def pytest_configure(config):
    config.addinivalue_line("markers", "api: scenario drives the HTTP API")
    config.addinivalue_line("markers", "ui: scenario drives a browser")

    target = config.getoption("--auth-target")
    if target:
        os.environ["AUTH_E2E_TARGET"] = target
    base_url = config.getoption("--base-url-override")
    if base_url:
        os.environ["BASE_URL"] = base_url
    settings.reload()


def pytest_sessionstart(session):
    config = session.config
    if _is_xdist_worker(config):
        return

    if settings.target == "mock":
        server = MockAuthServiceServer().start()
        config._auth_e2e_mock_server = server
        # Workers spawned after this point inherit the mock's address.
        os.environ["BASE_URL"] = server.url
        os.environ["AUTH_BASE_URL"] = server.url
        settings.reload()

    if config.getoption("--skip-readiness"):
        logger.info("Readiness gate skipped")
        return

    try:
        wait_for_service_sync(
            settings.auth_base_url,
            max_attempts=settings.max_attempts,
            poll_interval_ms=settings.poll_interval_ms,
            timeout=settings.request_timeout,
        )
    except ServiceUnavailable as exc:
        pytest.exit(f"Readiness gate failed: {exc}", returncode=READINESS_EXIT_CODE)


def pytest_report_header(config):
    workers = settings.workers or "runner default"
    return f"auth-e2e: target={settings.target} base_url={settings.auth_base_url} retries={settings.retries} workers={workers}"


def pytest_collection_modifyitems(config, items):
    # CI retries need pytest-rerunfailures; without it scenarios run once.
    if not settings.retries or not config.pluginmanager.hasplugin("rerunfailures"):
        return
    for item in items:
        if item.get_closest_marker("api") or item.get_closest_marker("ui"):
            item.add_marker(pytest.mark.flaky(reruns=settings.retries))


def pytest_unconfigure(config):
    server = getattr(config, "_auth_e2e_mock_server", None)
    if server is not None:
        server.stop()
        config._auth_e2e_mock_server = None


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture()
def harness_settings():
    return settings


@pytest.fixture()
def fresh_mock_auth_service():
    """A private mock service with empty state, independent of the run's target."""
    with MockAuthServiceServer() as server:
        yield server


@pytest.fixture()
def two_fa_code(request):
    """Look up the pending (login_attempt_id, code) for an email.

    The live service delivers codes by email, so this only works against the
    in-process mock started by this run.
    """
    server = getattr(request.config, "_auth_e2e_mock_server", None)
    if server is None:
        pytest.skip("2FA codes are only readable from the in-process mock service")

    def lookup(email):
        pending = server.state.two_fa_code(email)
        assert pending is not None, f"no pending 2FA code for {email}"
        return pending

    return lookup


@pytest_asyncio.fixture()
async def api_client():
    """AuthApiClient bound to the configured auth base URL."""
    async with AuthApiClient(settings.auth_base_url, timeout=settings.request_timeout) as client:
        yield client


@pytest_asyncio.fixture()
async def playwright_client():
    """Playwright client; skips when no browser binary is installed."""
    client = PlaywrightClient(base_url=settings.base_url)
    try:
        await client.connect()
    except PlaywrightError as exc:
        pytest.skip(f"Playwright browser unavailable: {exc}")
    try:
        yield client
    finally:
        await client.close()


@pytest_asyncio.fixture()
async def browser(playwright_client):
    """Browser wrapper with page errors filtered instead of raised."""
    browser = Browser(playwright_client.page)
    await browser.reset()
    return browser
