"""Browser session lifecycle.

A run acquires exactly one session and must release it exactly once, on every exit path. The
`session_scope` context manager enforces that; `open_session` builds it for Playwright.
"""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import (
    TYPE_CHECKING,
    AsyncIterator,
    Awaitable,
    Callable,
    Protocol,
    TypeVar,
    runtime_checkable,
)

from playwright.async_api import async_playwright

if TYPE_CHECKING:
    from playwright.async_api import Browser, Page, Playwright

    from src.config.settings import Settings

logger = logging.getLogger(__name__)

S = TypeVar("S", bound="BrowserSession")


class BrowserSession(Protocol):
    """What the reservation workflow needs from a browser session."""

    async def navigate(self, url: str) -> None: ...

    def current_location(self) -> str: ...

    async def close(self) -> None: ...


@runtime_checkable
class PageSession(Protocol):
    """A session that exposes its Playwright page, as the LLM action executor requires."""

    page: Page


class PlaywrightSession:
    """A single Chromium page driven through Playwright's async API."""

    def __init__(
            self,
            playwright: Playwright,
            browser: Browser,
            page: Page,
            *,
            navigation_timeout_s: float = 30.0,
    ) -> None:
        self._playwright = playwright
        self._browser = browser
        self.page = page
        self._navigation_timeout_ms = navigation_timeout_s * 1000
        self._closed = False

    @classmethod
    async def launch(
            cls,
            *,
            headless: bool = False,
            navigation_timeout_s: float = 30.0,
    ) -> PlaywrightSession:
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(headless=headless)
            page = await browser.new_page()
        except Exception:
            await playwright.stop()
            raise
        return cls(playwright, browser, page, navigation_timeout_s=navigation_timeout_s)

    async def navigate(self, url: str) -> None:
        await self.page.goto(
            url,
            wait_until="domcontentloaded",
            timeout=self._navigation_timeout_ms,
        )

    def current_location(self) -> str:
        return self.page.url

    async def close(self) -> None:
        """Close the browser and stop Playwright. Safe to call more than once."""

        if self._closed:
            return
        self._closed = True
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()


@asynccontextmanager
async def session_scope(opener: Callable[[], Awaitable[S]]) -> AsyncIterator[S]:
    """Acquire a session from `opener`, yield it, and close it exactly once on exit.

    Errors raised inside the block propagate after the session has been closed.
    """

    session = await opener()
    try:
        yield session
    finally:
        logger.info("closing browser")
        await session.close()


def open_session(settings: Settings) -> AbstractAsyncContextManager[PlaywrightSession]:
    """Launch a Playwright session configured from `settings`, scoped to an `async with` block."""

    async def _launch() -> PlaywrightSession:
        logger.info("launching browser headless=%s", settings.headless)
        return await PlaywrightSession.launch(
            headless=settings.headless,
            navigation_timeout_s=settings.navigation_timeout_s,
        )

    return session_scope(_launch)
