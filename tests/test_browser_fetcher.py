import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from docparser.adapters.browser_fetcher import CHROMIUM_ARGS, BrowserFetcher
from docparser.exceptions import (
    BrowserLaunchError,
    FetchError,
    FetchTimeoutError,
    InvalidUrlError,
    NetworkError,
    NotDocumentationUrlError,
)


class FakePage:
    def __init__(self, html="<html><nav>Docs</nav></html>", final_url=None, goto_error=None):
        self.html = html
        self.final_url = final_url
        self.goto_error = goto_error
        self.url = ""
        self.default_timeout = None
        self.goto_kwargs = None

    def set_default_timeout(self, timeout):
        self.default_timeout = timeout

    async def goto(self, url, **kwargs):
        self.goto_kwargs = kwargs
        if self.goto_error is not None:
            raise self.goto_error
        self.url = self.final_url or url

    async def content(self):
        return self.html


class FakeBrowser:
    def __init__(self, page):
        self.page = page
        self.closed = False
        self.page_kwargs = None

    async def new_page(self, **kwargs):
        self.page_kwargs = kwargs
        return self.page

    async def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, browser, launch_error=None):
        self.browser = browser
        self.launch_error = launch_error
        self.launch_kwargs = None

    async def launch(self, **kwargs):
        self.launch_kwargs = kwargs
        if self.launch_error is not None:
            raise self.launch_error
        return self.browser


class FakePlaywright:
    """Stands in for both async_playwright() and the started driver."""

    def __init__(self, page=None, launch_error=None):
        self.page = page or FakePage()
        self.browser = FakeBrowser(self.page)
        self.chromium = FakeChromium(self.browser, launch_error)
        self.stopped = False

    async def start(self):
        return self

    async def stop(self):
        self.stopped = True


def make_fetcher(fake: FakePlaywright) -> BrowserFetcher:
    return BrowserFetcher(timeout=45, settle_delay=0, playwright_factory=lambda: fake)


class TestBrowserFetcher:
    def test_returns_rendered_html_and_final_url(self):
        fake = FakePlaywright(page=FakePage(
            html="<html><nav>Rendered</nav></html>",
            final_url="https://docs.example.com/docs/intro",
        ))

        result = asyncio.run(make_fetcher(fake).fetch("https://docs.example.com/docs"))

        assert result.html == "<html><nav>Rendered</nav></html>"
        assert result.url == "https://docs.example.com/docs/intro"
        assert result.status_code == 200
        assert fake.browser.closed
        assert fake.stopped

    def test_launch_and_page_settings(self):
        fake = FakePlaywright()

        asyncio.run(make_fetcher(fake).fetch("https://example.com/docs"))

        assert fake.chromium.launch_kwargs == {"headless": True, "args": CHROMIUM_ARGS}
        assert fake.browser.page_kwargs["viewport"] == {"width": 1920, "height": 1080}
        assert fake.page.default_timeout == 45000
        assert fake.page.goto_kwargs["wait_until"] == "domcontentloaded"

    def test_rejects_invalid_url_without_launching(self):
        fake = FakePlaywright()

        with pytest.raises(InvalidUrlError):
            asyncio.run(make_fetcher(fake).fetch("http://example.com/docs"))

        assert fake.chromium.launch_kwargs is None

    def test_rejects_non_documentation_url(self):
        fake = FakePlaywright()

        with pytest.raises(NotDocumentationUrlError):
            asyncio.run(make_fetcher(fake).fetch("https://example.com/pricing"))

        assert fake.chromium.launch_kwargs is None

    def test_launch_failure(self):
        fake = FakePlaywright(launch_error=PlaywrightError("Executable doesn't exist"))

        with pytest.raises(BrowserLaunchError):
            asyncio.run(make_fetcher(fake).fetch("https://example.com/docs"))

        assert fake.stopped

    def test_timeout_closes_browser(self):
        fake = FakePlaywright(page=FakePage(goto_error=PlaywrightTimeoutError("Timeout 45000ms exceeded")))

        with pytest.raises(FetchTimeoutError) as exc_info:
            asyncio.run(make_fetcher(fake).fetch("https://example.com/docs"))

        assert exc_info.value.message == "Page load timeout after 45 seconds"
        assert fake.browser.closed
        assert fake.stopped

    def test_network_error(self):
        fake = FakePlaywright(page=FakePage(goto_error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED")))

        with pytest.raises(NetworkError):
            asyncio.run(make_fetcher(fake).fetch("https://example.com/docs"))

        assert fake.browser.closed

    def test_other_browser_errors(self):
        fake = FakePlaywright(page=FakePage(goto_error=PlaywrightError("Target closed")))

        with pytest.raises(FetchError) as exc_info:
            asyncio.run(make_fetcher(fake).fetch("https://example.com/docs"))

        assert type(exc_info.value) is FetchError
        assert exc_info.value.message == "Failed to fetch documentation with browser"
        assert fake.browser.closed
