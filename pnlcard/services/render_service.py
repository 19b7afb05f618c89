"""Card image export through a shared headless Chromium."""

import asyncio
import logging
from typing import Any
from urllib.parse import urlencode

from fastapi import Request
from playwright.async_api import Browser, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from pnlcard.config import Settings
from pnlcard.exceptions import RenderError

logger = logging.getLogger(__name__)

CARD_WIDTH = 480
CARD_HEIGHT = 280
CARD_SELECTOR = "#pnl-card-container"
CARD_VIEW_PATH = "/isolated-card"


def card_view_url(
    base_url: str,
    card_id: int | None = None,
    params: dict[str, Any] | None = None,
) -> str:
    """URL of the bare card page for a stored card or inline parameters."""
    query: dict[str, Any] = dict(params or {})
    if card_id is not None:
        query["card_id"] = card_id
    url = f"{base_url.rstrip('/')}{CARD_VIEW_PATH}"
    if query:
        url = f"{url}?{urlencode(query)}"
    return url


class CardRenderer:
    """
    Screenshots the card view with one browser shared across requests.

    The browser is launched on first use and again after it disconnects.
    Each render gets its own page, closed afterwards.

    Usage:
        renderer = CardRenderer(get_settings())
        png = await renderer.render_card("http://127.0.0.1:8000/isolated-card")
        await renderer.close()
    """

    def __init__(self, settings: Settings):
        self.scale = settings.render_scale
        self.timeout_ms = settings.render_timeout_seconds * 1000
        self.browser_args = list(settings.browser_args)
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._lock = asyncio.Lock()

    def _on_disconnected(self, browser: Browser) -> None:
        logger.warning("Shared browser disconnected, relaunching on next render")
        self._browser = None

    async def _get_browser(self) -> Browser:
        async with self._lock:
            if self._browser is not None and self._browser.is_connected():
                return self._browser

            logger.info("Launching shared headless browser")
            if self._playwright is None:
                self._playwright = await async_playwright().start()
            browser = await self._playwright.chromium.launch(
                headless=True, args=self.browser_args
            )
            browser.on("disconnected", self._on_disconnected)
            self._browser = browser
            return browser

    async def render_card(self, url: str) -> bytes:
        """Load the card view at url and return the card as PNG bytes."""
        try:
            browser = await self._get_browser()
        except PlaywrightError as e:
            logger.error("Failed to launch headless browser: %s", e)
            raise RenderError("Failed to launch headless browser", e) from e

        page = None
        try:
            page = await browser.new_page(
                viewport={"width": CARD_WIDTH, "height": CARD_HEIGHT},
                device_scale_factor=self.scale,
            )
            await page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
            element = await page.wait_for_selector(
                CARD_SELECTOR, state="visible", timeout=self.timeout_ms
            )
            if element is None:
                raise RenderError("Card container element is missing")
            return await element.screenshot(
                type="png", omit_background=True, timeout=self.timeout_ms
            )
        except PlaywrightTimeoutError as e:
            logger.error("Timed out rendering %s: %s", url, e)
            raise RenderError(f"Timed out rendering card from {url}", e) from e
        except PlaywrightError as e:
            logger.error("Image generation error for %s: %s", url, e)
            raise RenderError(f"Failed to render card: {e}", e) from e
        finally:
            if page is not None:
                await page.close()

    async def close(self) -> None:
        if self._browser is not None:
            logger.info("Closing shared browser")
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None


def get_renderer(request: Request) -> CardRenderer:
    """Dependency returning the application's renderer."""
    return request.app.state.renderer
