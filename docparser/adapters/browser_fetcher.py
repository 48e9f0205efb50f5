"""
Headless Browser Adapter for the Documentation Map Parser.
Used for JavaScript-rendered documentation sites (React, Next.js, Vue, ...).
"""
import asyncio
from typing import Any, Callable, Optional

from playwright.async_api import async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from docparser.adapters.http_fetcher import is_documentation_url, validate_url
from docparser.config import config
from docparser.exceptions import (
    BrowserLaunchError,
    FetchError,
    FetchTimeoutError,
    InvalidUrlError,
    NetworkError,
    NotDocumentationUrlError,
)
from docparser.models.graph import FetchResult
from docparser.utils.logger import LayerLogger

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]


class BrowserFetcher:
    """
    Fetches fully rendered HTML through a headless Chromium.

    One browser process is launched per call and always closed before
    returning, on success and on every failure path. There is no pooling:
    callers are responsible for bounding concurrent browser fetches.
    """

    def __init__(
        self,
        timeout: float = config.BROWSER_TIMEOUT,
        settle_delay: float = config.BROWSER_SETTLE_DELAY,
        playwright_factory: Optional[Callable[[], Any]] = None,
    ):
        """
        Args:
            timeout: Navigation timeout in seconds
            settle_delay: Seconds to wait after DOM ready for client-side rendering
            playwright_factory: Returns an object with an async start(), defaults to async_playwright
        """
        self.timeout = timeout
        self.settle_delay = settle_delay
        self.playwright_factory = playwright_factory or async_playwright
        self.logger = LayerLogger("browser_fetcher")

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch documentation with a headless browser.

        Args:
            url: HTTPS documentation URL (must look like a docs URL)

        Returns:
            FetchResult with rendered HTML and the final page URL
        """
        validation = validate_url(url)
        if not validation.valid:
            raise InvalidUrlError(validation.error or "Invalid URL", details={"url": url})

        if not is_documentation_url(url):
            raise NotDocumentationUrlError(
                "URL does not appear to be a documentation site. "
                "Please provide a URL containing /docs, /api, or /documentation",
                details={"url": url},
            )

        self.logger.log_action("browser_fetch", "started", url=url, timeout=self.timeout)

        timeout_ms = self.timeout * 1000
        playwright = None
        browser = None

        try:
            try:
                playwright = await self.playwright_factory().start()
                browser = await playwright.chromium.launch(headless=True, args=CHROMIUM_ARGS)
            except PlaywrightError as e:
                raise BrowserLaunchError(
                    "Browser launch failed. Chromium may not be installed or accessible.",
                    details={"url": url, "reason": str(e)},
                ) from e

            page = await browser.new_page(
                viewport={"width": 1920, "height": 1080},
                user_agent=config.USER_AGENT,
            )
            page.set_default_timeout(timeout_ms)

            await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)

            # Give client-side frameworks time to render navigation
            await asyncio.sleep(self.settle_delay)

            html = await page.content()
            final_url = page.url

            self.logger.log_action(
                "browser_fetch",
                "completed",
                url=final_url,
                content_length=len(html),
            )

            return FetchResult(url=final_url, html=html, content_type="text/html", status_code=200)

        except PlaywrightTimeoutError as e:
            self.logger.log_error(str(e), error_type="timeout", url=url)
            raise FetchTimeoutError(
                f"Page load timeout after {self.timeout:g} seconds",
                details={"url": url},
            ) from e
        except PlaywrightError as e:
            message = str(e)
            self.logger.log_error(message, error_type="browser_error", url=url)
            if "net::ERR" in message:
                raise NetworkError(
                    "Network error: Unable to reach the URL",
                    details={"url": url, "reason": message},
                ) from e
            raise FetchError(
                "Failed to fetch documentation with browser",
                details={"url": url, "reason": message},
            ) from e
        finally:
            await self._shutdown(browser, playwright, url)

    async def _shutdown(self, browser: Any, playwright: Any, url: str) -> None:
        """Close the browser and stop the driver without masking the original outcome."""
        if browser is not None:
            try:
                await browser.close()
            except PlaywrightError as e:
                self.logger.log_error(f"Browser close failed: {e}", error_type="browser_close", url=url)
        if playwright is not None:
            try:
                await playwright.stop()
            except PlaywrightError as e:
                self.logger.log_error(f"Playwright stop failed: {e}", error_type="browser_close", url=url)


async def fetch_with_browser(url: str) -> FetchResult:
    """Fetch documentation with the default browser fetcher."""
    return await BrowserFetcher().fetch(url)
