"""
Ingestion Layer for the Documentation Map Parser.
Source-agnostic retrieval of documentation HTML: cache, plain HTTP, or headless browser.
"""
import time
from typing import Optional

from bs4 import BeautifulSoup

from docparser.adapters.browser_fetcher import BrowserFetcher
from docparser.adapters.http_fetcher import HTTPFetcher, is_documentation_url
from docparser.cache import DocumentationCache, get_default_cache
from docparser.config import config
from docparser.exceptions import (
    FetchError,
    ForbiddenError,
    InvalidUrlError,
    NotFoundError,
    RateLimitedError,
    RedirectError,
)
from docparser.layers.parsing import ParsingLayer
from docparser.models.graph import FetchResult, ParseResult
from docparser.strategies.crawl import DeepCrawler
from docparser.utils.logger import LayerLogger

# A browser will not change these outcomes, so they are raised as-is
NON_RECOVERABLE_ERRORS = (InvalidUrlError, RedirectError, NotFoundError, ForbiddenError, RateLimitedError)

# Tags whose absence suggests the page is rendered client-side
STRUCTURE_TAGS = ["nav", "aside", "h1", "h2", "a"]


class IngestionLayer:
    """
    Ingestion Layer - decides where documentation HTML comes from.

    This layer:
    - Serves HTML from the cache when a live entry exists
    - Fetches over plain HTTP first
    - Falls back to the headless browser for JS-rendered documentation sites
    - Caches whatever HTML it finally used

    Callers get a FetchResult and never see which source produced it.
    """

    def __init__(
        self,
        cache: Optional[DocumentationCache] = None,
        http_fetcher: Optional[HTTPFetcher] = None,
        browser_fetcher: Optional[BrowserFetcher] = None,
        parsing_layer: Optional[ParsingLayer] = None,
        use_browser_fallback: bool = config.USE_BROWSER_FALLBACK,
        cache_ttl_ms: int = config.CACHE_TTL_MS,
        crawl_delay: float = config.CRAWL_DELAY,
    ):
        self.cache = cache if cache is not None else get_default_cache()
        self.http_fetcher = http_fetcher or HTTPFetcher()
        self.browser_fetcher = browser_fetcher or BrowserFetcher()
        self.parsing_layer = parsing_layer or ParsingLayer()
        self.use_browser_fallback = use_browser_fallback
        self.cache_ttl_ms = cache_ttl_ms
        self.crawl_delay = crawl_delay
        self.logger = LayerLogger("ingestion_layer")

    async def fetch(self, url: str, force_browser: bool = False) -> FetchResult:
        """
        Retrieve documentation HTML for a URL.

        Args:
            url: Documentation URL
            force_browser: Skip plain HTTP and render with the browser

        Returns:
            FetchResult (cache hits report status 200 and the requested URL)
        """
        cached_html = self.cache.get(url)
        if cached_html is not None:
            self.logger.log_decision(
                decision="use_cache",
                reason="Live cache entry found",
                url=url,
                content_length=len(cached_html),
            )
            return FetchResult(url=url, html=cached_html)

        if force_browser:
            self.logger.log_decision(
                decision="use_browser",
                reason="Browser rendering explicitly requested",
                url=url,
            )
            result = await self.browser_fetcher.fetch(url)
        else:
            result = await self._fetch_http_with_fallback(url)

        self.cache.set(url, result.html, self.cache_ttl_ms)
        return result

    async def generate(self, url: str, force_browser: bool = False) -> ParseResult:
        """Fetch a documentation page and parse it into a graph."""
        fetched = await self.fetch(url, force_browser=force_browser)
        return await self.parsing_layer.parse(fetched.html, fetched.url)

    async def crawl(
        self,
        url: str,
        max_pages: int = config.CRAWL_MAX_PAGES,
        force_browser: bool = False,
    ) -> ParseResult:
        """
        Deep-crawl a documentation site and parse the pages into one graph.

        Section pages go through fetch() like the start page, so they share
        the cache, the URL guard and the browser fallback.
        """
        start = time.perf_counter()
        fetched = await self.fetch(url, force_browser=force_browser)

        async def fetch_section(section_url: str) -> FetchResult:
            return await self.fetch(section_url, force_browser=force_browser)

        crawler = DeepCrawler(fetch_section, max_pages=max_pages, delay=self.crawl_delay)
        self.logger.log_decision(
            decision="deep_crawl",
            reason=f"Crawling up to {max_pages} pages",
            url=fetched.url,
        )
        result = await crawler.parse(fetched.html, fetched.url)
        return self.parsing_layer.finalize(result, fetched.url, strategy_name=crawler.name, start=start)

    async def _fetch_http_with_fallback(self, url: str) -> FetchResult:
        try:
            result = await self.http_fetcher.fetch(url)
        except NON_RECOVERABLE_ERRORS:
            raise
        except FetchError as e:
            if not self._browser_allowed(url):
                raise
            self.logger.log_fallback(
                from_source="http_fetcher",
                to_source="browser_fetcher",
                reason=f"HTTP fetch failed: {e.message}",
                url=url,
            )
            return await self.browser_fetcher.fetch(url)

        if not self._looks_client_rendered(result.html) or not self._browser_allowed(url):
            return result

        self.logger.log_fallback(
            from_source="http_fetcher",
            to_source="browser_fetcher",
            reason="HTTP response has no navigable structure (likely client-side rendered)",
            url=url,
        )
        try:
            return await self.browser_fetcher.fetch(url)
        except FetchError as e:
            # The plain HTTP page is still usable, just thin
            self.logger.log_error(
                f"Browser fallback failed, keeping HTTP result: {e.message}",
                error_type="browser_fallback_failed",
                url=url,
            )
            return result

    def _browser_allowed(self, url: str) -> bool:
        return self.use_browser_fallback and is_documentation_url(url)

    def _looks_client_rendered(self, html: str) -> bool:
        soup = BeautifulSoup(html, "lxml")
        return soup.find(STRUCTURE_TAGS) is None
