"""Landing page UI checks."""
import pytest

from auth_e2e.config import settings

pytestmark = [pytest.mark.asyncio, pytest.mark.ui]

LOGO_SELECTOR = 'img[src="/lgr_logo.png"]'


async def test_navbar_shows_logo_and_title(browser):
    result = await browser.goto(settings.url("/"))
    assert result["status"] == 200

    await browser.expect_visible("nav.navbar")

    await browser.expect_visible(LOGO_SELECTOR)
    await browser.expect_attribute(LOGO_SELECTOR, "width", "25")
    await browser.expect_attribute(LOGO_SELECTOR, "height", "25")

    await browser.wait_for_text(".navbar-brand", "Auth Service")


async def test_page_errors_do_not_fail_the_scenario(browser):
    await browser.goto(settings.url("/"))

    await browser.page.evaluate("() => setTimeout(() => { throw new Error('boom from page') }, 0)")
    await browser.page.wait_for_timeout(200)

    assert any("boom from page" in message for message in browser.error_policy.captured)
    await browser.expect_visible("nav.navbar")
