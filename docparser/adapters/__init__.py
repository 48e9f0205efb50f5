"""Adapters package initialization."""
from docparser.adapters.http_fetcher import (
    HTTPFetcher,
    fetch_documentation,
    is_documentation_url,
    validate_url,
)
from docparser.adapters.browser_fetcher import BrowserFetcher, fetch_with_browser

__all__ = [
    "HTTPFetcher",
    "BrowserFetcher",
    "fetch_documentation",
    "fetch_with_browser",
    "is_documentation_url",
    "validate_url",
]
