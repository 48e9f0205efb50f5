"""
HTTP Fetcher Adapter for the Documentation Map Parser.
Validates URLs against SSRF targets and retrieves HTML with bounded, manual redirects.
"""
from typing import Optional
from urllib.parse import urljoin, urlparse

import httpx

from docparser.config import config
from docparser.exceptions import (
    FetchTimeoutError,
    ForbiddenError,
    HTTPStatusError,
    InvalidUrlError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    RedirectError,
    TooManyRedirectsError,
)
from docparser.models.graph import FetchResult, UrlValidation
from docparser.utils.logger import LayerLogger
from docparser.utils.text import is_private_host, is_valid_url, normalize_host

# Blocked domains for SSRF prevention
BLOCKED_DOMAINS = {
    "localhost",
    "127.0.0.1",
    "0.0.0.0",
    "::1",
    "[::1]",
}

# Private IPv4 ranges expressed as hostname prefixes
PRIVATE_IP_PREFIXES = (
    "10.",
    *(f"172.{octet}." for octet in range(16, 32)),
    "192.168.",
)

DOCUMENTATION_PATH_MARKERS = ("/docs", "/documentation", "/api", "/reference", "/guide")


def validate_url(url: str) -> UrlValidation:
    """
    Validate a URL for security and format.

    Rejects non-HTTPS and malformed URLs, loopback hosts and private IP prefixes.
    This is an SSRF guard, not a reachability check.
    """
    if not is_valid_url(url):
        return UrlValidation(valid=False, error="Invalid URL. Must be a valid HTTPS URL.")

    try:
        hostname = normalize_host(urlparse(url).hostname or "")
    except ValueError:
        return UrlValidation(valid=False, error="Failed to parse URL.")

    # is_valid_url already rejects every host below, so these branches only
    # fire if that check is loosened. Kept so the specific messages survive.
    if hostname is None or hostname in BLOCKED_DOMAINS:
        return UrlValidation(
            valid=False,
            error="URL points to a blocked domain (localhost or loopback).",
        )

    if hostname.startswith(PRIVATE_IP_PREFIXES) or is_private_host(hostname):
        return UrlValidation(valid=False, error="URL points to a private IP address.")

    return UrlValidation(valid=True)


def is_documentation_url(url: str) -> bool:
    """Check whether a URL looks like a documentation site."""
    try:
        parsed = urlparse(url)
        path = parsed.path.lower()
        hostname = (parsed.hostname or "").lower()
    except ValueError:
        return False

    return (
        any(marker in path for marker in DOCUMENTATION_PATH_MARKERS)
        or hostname.startswith("docs.")
        or ".docs." in hostname
    )


class HTTPFetcher:
    """
    Plain HTTP fetcher for documentation pages.

    Redirects are followed by hand so every hop can be re-validated and the
    hop count capped. Failures are raised as typed FetchError subclasses and
    never retried here.
    """

    def __init__(
        self,
        timeout: float = config.FETCH_TIMEOUT,
        max_redirects: int = config.MAX_REDIRECTS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.transport = transport
        self.logger = LayerLogger("http_fetcher")

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch documentation HTML from a URL.

        Args:
            url: HTTPS documentation URL

        Returns:
            FetchResult with the final URL after redirects
        """
        validation = validate_url(url)
        if not validation.valid:
            self.logger.log_error(validation.error, error_type="invalid_url", url=url)
            raise InvalidUrlError(validation.error or "Invalid URL", details={"url": url})

        self.logger.log_action("fetch_html", "started", url=url)

        current_url = url
        redirect_count = 0

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=False,
                transport=self.transport,
            ) as client:
                while True:
                    response = await client.get(current_url, headers=self._get_headers())
                    status_code = response.status_code

                    self.logger.log_http_response(
                        url=current_url,
                        status_code=status_code,
                        result=self._status_to_result(status_code),
                        redirect_count=redirect_count,
                    )

                    if 300 <= status_code < 400:
                        current_url = self._next_redirect(current_url, response)
                        redirect_count += 1
                        if redirect_count > self.max_redirects:
                            raise TooManyRedirectsError(
                                f"Too many redirects (max {self.max_redirects})",
                                details={"url": url, "last_location": current_url},
                            )
                        continue

                    self._raise_for_status(response, current_url)

                    html = response.text
                    content_type = response.headers.get("content-type") or "text/html"

                    self.logger.log_action(
                        "fetch_html",
                        "completed",
                        url=current_url,
                        status_code=status_code,
                        content_length=len(html),
                        redirects=redirect_count,
                    )

                    return FetchResult(
                        url=current_url,
                        html=html,
                        content_type=content_type,
                        status_code=status_code,
                    )

        except httpx.TimeoutException as e:
            self.logger.log_error(f"Timeout fetching URL: {e}", error_type="timeout", url=current_url)
            raise FetchTimeoutError(
                f"Request timeout after {self.timeout:g} seconds",
                details={"url": current_url},
            ) from e
        except httpx.TransportError as e:
            self.logger.log_error(f"Network failure: {e}", error_type="network", url=current_url)
            raise NetworkError(
                "Network error: Unable to reach the URL",
                details={"url": current_url, "reason": str(e)},
            ) from e

    def _next_redirect(self, current_url: str, response: httpx.Response) -> str:
        """Resolve and re-validate a redirect target."""
        location = response.headers.get("location")
        if not location:
            raise RedirectError(
                "Redirect response missing Location header",
                details={"url": current_url, "status_code": response.status_code},
            )

        next_url = urljoin(current_url, location)
        validation = validate_url(next_url)
        if not validation.valid:
            self.logger.log_decision(
                decision="redirect_blocked",
                reason=validation.error or "invalid redirect target",
                url=current_url,
                location=next_url,
            )
            raise RedirectError(
                f"Redirect URL invalid: {validation.error}",
                details={"url": current_url, "location": next_url},
            )

        return next_url

    def _raise_for_status(self, response: httpx.Response, url: str) -> None:
        """Map error status codes to typed exceptions."""
        status_code = response.status_code
        details = {"url": url, "status_code": status_code}

        if status_code == 404:
            raise NotFoundError("Documentation not found (404)", details=details)
        if status_code == 403:
            raise ForbiddenError("Access forbidden (403)", details=details)
        if status_code == 429:
            raise RateLimitedError("Rate limited (429)", details=details)
        if not response.is_success:
            raise HTTPStatusError(
                f"HTTP error {status_code}: {response.reason_phrase}",
                status_code=status_code,
                details=details,
            )

    def _get_headers(self) -> dict:
        """Identify as the documentation bot rather than a browser."""
        return {
            "User-Agent": config.USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        }

    def _status_to_result(self, status_code: int) -> str:
        """Convert HTTP status code to a log-friendly result string."""
        if 200 <= status_code < 300:
            return "success"
        if 300 <= status_code < 400:
            return "redirect"
        if status_code == 429:
            return "rate_limited"
        if 400 <= status_code < 500:
            return "client_error"
        return "server_error"


async def fetch_documentation(url: str) -> FetchResult:
    """Fetch documentation with the default HTTP fetcher."""
    return await HTTPFetcher().fetch(url)
