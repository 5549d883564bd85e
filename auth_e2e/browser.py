"""Thin wrapper around a Playwright page for ergonomic UI assertions."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Pattern

import anyio
from playwright.async_api import Error as PlaywrightError, Page, TimeoutError as PlaywrightTimeout

from auth_e2e.errors import HarnessError

logger = logging.getLogger(__name__)


@dataclass
class ToolError(HarnessError):
    """Raised when a browser operation fails."""

    name: str
    payload: Dict[str, Any]
    message: str

    def __str__(self) -> str:  # pragma: no cover - human readable helper
        return f"{self.name} failed ({self.message}) with payload={self.payload}"


@dataclass
class PageErrorPolicy:
    """Decides what happens to uncaught script errors raised by the page.

    Errors are recorded and logged but never fail a scenario on their own;
    a scenario that cares calls `assert_clean()` explicitly. Messages matching
    `ignore` are dropped without being recorded.
    """

    ignore: List[Pattern[str]] = field(default_factory=list)
    captured: List[str] = field(default_factory=list)

    def attach(self, page: Page) -> "PageErrorPolicy":
        page.on("pageerror", self.handle)
        return self

    def handle(self, error: Any) -> None:
        message = str(getattr(error, "message", None) or error)
        if any(pattern.search(message) for pattern in self.ignore):
            return
        self.captured.append(message)
        logger.info("Suppressed uncaught page error: %s", message)

    def assert_clean(self) -> None:
        assert not self.captured, f"Uncaught page errors: {self.captured}"


class Browser:
    """Convenience wrapper over a Playwright page."""

    def __init__(self, page: Page, error_policy: PageErrorPolicy | None = None) -> None:
        self._page = page
        self.error_policy = (error_policy or PageErrorPolicy()).attach(page)
        self.current_url: str | None = None
        self.current_title: str | None = None

    @property
    def page(self) -> Page:
        return self._page

    async def _update_state(self) -> None:
        self.current_url = self._page.url
        self.current_title = await self._page.title()

    async def reset(self) -> Dict[str, Any]:
        """Navigate to about:blank (reset state)."""
        await self._page.goto("about:blank")
        await self._update_state()
        return {"url": self.current_url, "title": self.current_title}

    async def goto(self, url: str, wait_until: str = "load", timeout: int = 10000) -> Dict[str, Any]:
        """Navigate to URL and return url, title and HTTP status."""
        try:
            response = await self._page.goto(url, wait_until=wait_until, timeout=timeout)
        except PlaywrightError as exc:
            raise ToolError(name="goto", payload={"url": url, "wait_until": wait_until}, message=str(exc))
        await self._update_state()
        return {"url": self.current_url, "title": self.current_title, "status": response.status if response else None}

    async def is_visible(self, selector: str, timeout: float = 5.0) -> bool:
        """Wait up to `timeout` seconds for the selector to become visible."""
        try:
            await self._page.locator(selector).first.wait_for(state="visible", timeout=timeout * 1000)
            return True
        except PlaywrightTimeout:
            return False

    async def text(self, selector: str) -> str:
        try:
            text = await self._page.text_content(selector, timeout=5000)
            return text or ""
        except PlaywrightError as exc:
            raise ToolError(name="text", payload={"selector": selector}, message=str(exc))

    async def get_attribute(self, selector: str, attribute: str) -> str | None:
        try:
            return await self._page.get_attribute(selector, attribute, timeout=5000)
        except PlaywrightError as exc:
            raise ToolError(name="get_attribute", payload={"selector": selector, "attribute": attribute}, message=str(exc))

    async def wait_for_text(self, selector: str, expected: str, timeout: float = 3.0, interval: float = 0.5) -> str:
        """Poll for text content until it contains the expected substring."""
        deadline = anyio.current_time() + timeout
        last_error: ToolError | None = None

        while anyio.current_time() <= deadline:
            try:
                content = await self.text(selector)
            except ToolError as exc:
                content = ""
                last_error = exc
            if expected in content:
                return content
            await anyio.sleep(interval)

        if last_error:
            raise AssertionError(
                f"Timed out waiting for '{expected}' in selector '{selector}'. Last error: {last_error}"
            ) from last_error
        raise AssertionError(f"Timed out waiting for '{expected}' in selector '{selector}'")

    async def expect_visible(self, selector: str, timeout: float = 5.0) -> None:
        assert await self.is_visible(selector, timeout), f"'{selector}' not visible on {self.current_url}"

    async def expect_attribute(self, selector: str, attribute: str, expected: str) -> str:
        value = await self.get_attribute(selector, attribute)
        assert value == expected, f"{selector}[{attribute}] expected {expected!r}, got {value!r}"
        return value

    async def expect_substring(self, selector: str, expected: str) -> str:
        content = await self.text(selector)
        assert expected in content, f"'{expected}' not found in '{content}'"
        return content


def ignore_messages(*patterns: str) -> PageErrorPolicy:
    """Policy that drops page errors matching any of the given regexes."""
    return PageErrorPolicy(ignore=[re.compile(p) for p in patterns])
