"""
Deep crawl extractor.

Ranks the start page's documentation links, fetches the best few section
pages, and turns their headings into components under one feature per section.
"""
import asyncio
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Set
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from docparser.config import config
from docparser.exceptions import FetchError
from docparser.models.graph import ExtractedEdge, ExtractedNode, FetchResult, NodeType, ParseResult
from docparser.strategies.base import BaseStrategy
from docparser.utils.text import is_valid_url, sanitize_text

FetchFunction = Callable[[str], Awaitable[FetchResult]]

DOC_HREF_MARKERS = ("/docs", "/api", "/guide", "/reference")
NON_DOC_HREF_MARKERS = ("/signup", "/login", "/pricing", "/blog", "/changelog")
SKIPPED_LINK_WORDS = ("edit", "github", "dashboard", "sign in", "sign up", "login", "home page", "changelog")
SKIPPED_LINK_LABELS = ("home", "welcome")

# Marketing tails on card-style links: "Payments → Learn more"
LABEL_TAILS = (
    re.compile(r"\s*→.*$"),
    re.compile(r"\s*\(.*?\).*$"),
    re.compile(r"Learn more.*$", re.IGNORECASE),
    re.compile(r"Explore more.*$", re.IGNORECASE),
    re.compile(r"Manage your.*$", re.IGNORECASE),
    re.compile(r"Quickly build.*$", re.IGNORECASE),
)

KEYWORD_SCORES = (
    ("api", 5),
    ("reference", 4),
    ("guide", 3),
    ("integration", 3),
    ("configuration", 2),
    ("deployment", 2),
    ("authentication", 2),
    ("overview", 1),
)
GENERIC_LABEL_PENALTIES = {
    "documentation": -10,
    "docs": -10,
    "introduction": -3,
    "getting started": -2,
}

SKIPPED_HEADING_WORDS = (
    "table of contents", "on this page", "related", "see also", "next steps",
    "prerequisites", "introduction", "overview", "getting started",
)
SKIPPED_HEADING_PREFIXES = ("step ", "what is", "why ")
NUMBERED_STEP = re.compile(r"^\d+\.")

MAX_LINK_LABEL_LENGTH = 80
MIN_FEATURE_LABEL_LENGTH = 5
MAX_FEATURES_PER_SECTION = 8


@dataclass
class SectionLink:
    """Candidate section page found on the start page."""
    label: str
    href: str
    score: int


def score_section_label(label: str) -> int:
    """Rank a link label: specific 2-4 word feature names beat generic entries."""
    lower = label.lower()
    score = sum(points for keyword, points in KEYWORD_SCORES if keyword in lower)
    score += GENERIC_LABEL_PENALTIES.get(lower, 0)
    if "home page" in lower:
        score -= 10

    word_count = len(label.split())
    if 2 <= word_count <= 4:
        score += 2
    elif word_count == 1:
        score -= 1
    elif word_count > 6:
        score -= 2
    return score


class DeepCrawler(BaseStrategy):
    """
    Multi-page extractor.

    Pages are fetched through the injected fetch function, one at a time with
    a pause in between. A section page that fails to fetch is logged and
    skipped; the crawl itself only fails if the start page does.
    """

    name = "deep_crawl"

    def __init__(
        self,
        fetch: FetchFunction,
        max_pages: int = config.CRAWL_MAX_PAGES,
        delay: float = config.CRAWL_DELAY,
    ):
        super().__init__()
        self.fetch = fetch
        self.max_pages = max_pages
        self.delay = delay

    def can_handle(self, html: str, url: str) -> bool:
        return "href" in html

    def confidence(self) -> float:
        return 0.85

    async def parse(self, html: str, url: str) -> ParseResult:
        """Crawl outward from an already fetched start page."""
        soup = self._soup(html)
        root = self._root_node(soup, url, use_heading=False)
        nodes: List[ExtractedNode] = [root]
        edges: List[ExtractedEdge] = []
        seen_labels = {root.data.label.lower()}
        warnings: List[str] = []

        sections = self._queue_sections(soup, url)
        self.logger.log_action(
            "deep_crawl",
            "started",
            url=url,
            sections=[section.label for section in sections],
        )

        pages_crawled = 1
        for index, section in enumerate(sections):
            if index and self.delay:
                await asyncio.sleep(self.delay)

            try:
                page = await self.fetch(section.href)
            except FetchError as e:
                self.logger.log_error(
                    f"Section page skipped: {e.message}",
                    error_type="crawl_page_failed",
                    url=section.href,
                )
                warnings.append(f"Could not fetch {section.href}")
                continue
            pages_crawled += 1

            section_node = self._make_node(section.label, NodeType.FEATURE, doc_url=section.href)
            nodes.append(section_node)
            edges.append(self._hierarchy_edge(root, section_node, 0.8))
            seen_labels.add(section.label.lower())

            features = self._page_features(self._soup(page.html), seen_labels)
            self.logger.log_action(
                "crawl_page",
                "completed",
                url=section.href,
                features_found=len(features),
            )
            for label in features[:MAX_FEATURES_PER_SECTION]:
                component = self._make_node(label, NodeType.COMPONENT, source_selector="h2, h3, h4")
                nodes.append(component)
                edges.append(self._hierarchy_edge(section_node, component, 0.7))

        nodes = self._unique_by_id(nodes)
        score = self._crawl_confidence(len(nodes), pages_crawled)
        return self._build_result(url, nodes, edges, score, warnings, pages_crawled=pages_crawled)

    def _queue_sections(self, soup: BeautifulSoup, url: str) -> List[SectionLink]:
        """Top-ranked same-site section pages, at most max_pages - 1 of them."""
        ranked = sorted(self._section_links(soup, url), key=lambda link: link.score, reverse=True)

        queued: List[SectionLink] = []
        seen_urls = {url}
        seen_labels: Set[str] = set()
        for link in ranked[:max(self.max_pages - 1, 0)]:
            target = urljoin(url, link.href)
            label = sanitize_text(link.label)
            if len(label) < 3 or target in seen_urls or label.lower() in seen_labels:
                continue
            if not is_valid_url(target):
                continue
            seen_urls.add(target)
            seen_labels.add(label.lower())
            queued.append(SectionLink(label=label, href=target, score=link.score))
        return queued

    def _section_links(self, soup: BeautifulSoup, url: str) -> List[SectionLink]:
        host = urlparse(url).hostname
        links = []

        for anchor in soup.select("a[href]"):
            text = anchor.get_text().strip()
            href = self._href(anchor)
            if not href or not 3 <= len(text) <= MAX_LINK_LABEL_LENGTH:
                continue

            # Same site, no fragments, documentation paths only
            try:
                link_host = urlparse(urljoin(url, href)).hostname
            except ValueError:
                continue
            if link_host != host or "#" in href:
                continue
            if href == "/" or any(marker in href for marker in NON_DOC_HREF_MARKERS):
                continue
            if not any(marker in href for marker in DOC_HREF_MARKERS):
                continue

            lower = text.lower()
            if lower in SKIPPED_LINK_LABELS or any(word in lower for word in SKIPPED_LINK_WORDS):
                continue

            label = text
            for tail in LABEL_TAILS:
                label = tail.sub("", label)
            label = label.strip()
            if len(label) < 3:
                continue

            links.append(SectionLink(label=label, href=href, score=score_section_label(label)))

        return links

    def _page_features(self, soup: BeautifulSoup, seen_labels: Set[str]) -> List[str]:
        """Headings on a section page that name a feature rather than a step or a meta section."""
        features = []
        for heading in soup.find_all(["h2", "h3", "h4"]):
            text = heading.get_text().strip()
            if not 3 < len(text) < MAX_LINK_LABEL_LENGTH:
                continue

            label = sanitize_text(text)
            lower = label.lower()
            if lower in seen_labels or len(label) < MIN_FEATURE_LABEL_LENGTH:
                continue
            if any(word in lower for word in SKIPPED_HEADING_WORDS):
                continue
            if lower.startswith(SKIPPED_HEADING_PREFIXES) or NUMBERED_STEP.match(lower):
                continue

            seen_labels.add(lower)
            features.append(label)
        return features

    @staticmethod
    def _crawl_confidence(node_count: int, pages_crawled: int) -> float:
        if node_count >= 15 and pages_crawled >= 3:
            return 0.95
        if node_count >= 10 and pages_crawled >= 2:
            return 0.85
        if node_count >= 5:
            return 0.7
        return 0.5


async def deep_crawl(
    fetch: FetchFunction,
    start_url: str,
    max_pages: int = config.CRAWL_MAX_PAGES,
    delay: float = config.CRAWL_DELAY,
) -> ParseResult:
    """
    Fetch start_url and up to max_pages - 1 of its section pages, and map them.

    Args:
        fetch: Async function returning a FetchResult for a URL (use a browser
            backed one for JS-rendered sites)
        start_url: Documentation landing page
        max_pages: Page budget, start page included

    Returns:
        Raw ParseResult; stats.pages_crawled counts pages actually fetched
    """
    start = await fetch(start_url)
    crawler = DeepCrawler(fetch, max_pages=max_pages, delay=delay)
    return await crawler.parse(start.html, start.url)
