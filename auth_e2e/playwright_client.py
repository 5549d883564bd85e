"""
Direct Playwright Client
========================

Launches Playwright in-process and hands out pages for UI scenarios.

Usage:
    from auth_e2e.playwright_client import PlaywrightClient

    async with PlaywrightClient(browser_type="firefox") as client:
        await client.page.goto("http://localhost:3000")
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright

from auth_e2e.config import settings

logger = logging.getLogger(__name__)

DEFAULT_VIEWPORT = {"width": 1280, "height": 720}


class PlaywrightClient:
    """
    Owns one Playwright instance, one browser, one default context and page.

    Example:
        async with PlaywrightClient() as client:
            page = await client.new_page()
            await page.goto("https://example.com")
    """

    def __init__(
        self,
        browser_type: Optional[str] = None,
        headless: Optional[bool] = None,
        timeout: int = 10000,
        base_url: Optional[str] = None,
    ):
        """
        Args:
            browser_type: chromium, firefox or webkit (None = PLAYWRIGHT_BROWSER)
            headless: Run headless (None = PLAYWRIGHT_HEADLESS)
            timeout: Default action timeout in milliseconds
            base_url: Base URL for relative navigation
        """
        self.browser_type = browser_type or settings.playwright_browser
        self.headless = settings.playwright_headless if headless is None else headless
        self.timeout = timeout
        self.base_url = base_url

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def connect(self):
        """Launch the browser and open the default context and page."""
        self._playwright = await async_playwright().start()
        try:
            if self.browser_type == "firefox":
                launcher = self._playwright.firefox
            elif self.browser_type == "webkit":
                launcher = self._playwright.webkit
            else:
                launcher = self._playwright.chromium
            self._browser = await launcher.launch(headless=self.headless)
        except Exception:
            await self.close()
            raise
        logger.debug("Launched %s (headless=%s)", self.browser_type, self.headless)

        self._context = await self.new_context()
        self._page = await self._context.new_page()

    async def new_context(self, **kwargs) -> BrowserContext:
        if not self._browser:
            raise RuntimeError("Client not connected. Use 'async with' or call connect()")
        kwargs.setdefault("viewport", DEFAULT_VIEWPORT)
        if self.base_url:
            kwargs.setdefault("base_url", self.base_url)
        context = await self._browser.new_context(**kwargs)
        context.set_default_timeout(self.timeout)
        return context

    async def new_page(self) -> Page:
        if not self._context:
            raise RuntimeError("Client not connected. Use 'async with' or call connect()")
        return await self._context.new_page()

    async def close(self):
        """Close all connections and cleanup resources."""
        if self._page:
            await self._page.close()
            self._page = None

        if self._context:
            await self._context.close()
            self._context = None

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    @property
    def browser(self) -> Browser:
        if not self._browser:
            raise RuntimeError("Client not connected")
        return self._browser

    @property
    def page(self) -> Page:
        if not self._page:
            raise RuntimeError("Client not connected or page not created")
        return self._page


@asynccontextmanager
async def playwright_session(base_url: Optional[str] = None, **kwargs):
    """Yield a fresh page, closing the browser afterwards."""
    client = PlaywrightClient(base_url=base_url, **kwargs)
    await client.connect()
    try:
        yield client.page
    finally:
        await client.close()
