"""
Hybrid extractor: main-content headings first, then list items, then navigation links.
"""
import re
from typing import List, Optional, Set
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from docparser.models.graph import ExtractedEdge, ExtractedNode, NodeType, ParseResult
from docparser.strategies.base import BaseStrategy

# Checked in order; the first one present is the main content
MAIN_CONTENT_SELECTORS = ('main', '[role="main"]', 'article', '.content', '.main-content', 'body')
NAV_SELECTORS = ('nav', '[role="navigation"]', 'aside', '.sidebar', '.nav', '.menu')

SKIPPED_HEADINGS = ("table of contents", "on this page", "related", "see also", "next steps")
SKIPPED_PHRASES = ("click", "read", "learn", "more")
SKIPPED_LINKS = ("edit", "github", "sign", "login", "contact", "support")
COMPONENT_WORDS = ("api", "sdk", "client", "library")
NUMBERED_STEP = re.compile(r"^\d+\.")
SENTENCE_END = re.compile(r"[.!?]")

MIN_HEADING_NODES = 3   # below this, list items are mined too
MIN_CONTENT_NODES = 5   # below this, navigation links are mined too
MAX_LIST_ITEMS = 15
MAX_NAV_LINKS = 25
MAX_NAV_LABEL_LENGTH = 79
MIN_PHRASE_LENGTH = 5
CONFIDENCE_BANDS = ((10, 0.9), (5, 0.7), (3, 0.5))


class HybridStrategy(BaseStrategy):
    """
    Builds a flat product map from whatever the page offers.

    Every node hangs directly off the site's product node. Headings in the
    main content come first; list items and navigation links are only mined
    when the page is too thin to give enough headings.
    """

    name = "hybrid"

    def can_handle(self, html: str, url: str) -> bool:
        return True

    async def parse(self, html: str, url: str) -> ParseResult:
        soup = self._soup(html)
        root = self._root_node(soup, url)
        nodes = [root]
        seen = {root.data.label.lower()}

        main = self._main_content(soup)
        if main is not None:
            nodes.extend(self._from_headings(main, seen))
            if len(nodes) < MIN_HEADING_NODES:
                nodes.extend(self._from_list_items(main, seen))

        if len(nodes) < MIN_CONTENT_NODES:
            nodes.extend(self._from_navigation(soup, url, seen))

        nodes = self._unique_by_id(nodes)
        edges: List[ExtractedEdge] = [self._hierarchy_edge(root, node, 0.6) for node in nodes[1:]]

        warnings: List[str] = []
        if len(nodes) == 1:
            warnings.append("Only the site title could be extracted")

        score = self._confidence_by_size(len(nodes), CONFIDENCE_BANDS, floor=0.3)
        return self._build_result(url, nodes, edges, score, warnings)

    def confidence(self) -> float:
        return 0.7

    @staticmethod
    def _main_content(soup: BeautifulSoup) -> Optional[Tag]:
        for selector in MAIN_CONTENT_SELECTORS:
            element = soup.select_one(selector)
            if element is not None:
                return element
        return None

    def _from_headings(self, main: Tag, seen: Set[str]) -> List[ExtractedNode]:
        nodes = []
        for heading in main.find_all(["h2", "h3", "h4"]):
            label = self._clean_label(heading.get_text())
            if not label:
                continue

            lower = label.lower()
            if lower in seen:
                continue
            if any(phrase in lower for phrase in SKIPPED_HEADINGS):
                continue
            if lower.startswith("step ") or NUMBERED_STEP.match(lower):
                continue

            seen.add(lower)
            node_type = NodeType.COMPONENT if any(w in lower for w in COMPONENT_WORDS) else NodeType.FEATURE
            nodes.append(self._make_node(label, node_type, source_selector="h2, h3, h4"))
        return nodes

    def _from_list_items(self, main: Tag, seen: Set[str]) -> List[ExtractedNode]:
        """First phrase of list items and bold text, for pages without headings."""
        candidates = [
            element for element in main.select("li, strong, b, .feature, .item")
            if MIN_PHRASE_LENGTH < len(element.get_text().strip()) < 100
        ]

        nodes = []
        for element in candidates[:MAX_LIST_ITEMS]:
            phrase = SENTENCE_END.split(element.get_text().strip(), maxsplit=1)[0]
            label = self._clean_label(phrase)
            if not label or len(label) < MIN_PHRASE_LENGTH:
                continue

            lower = label.lower()
            if lower in seen or any(word in lower for word in SKIPPED_PHRASES):
                continue

            seen.add(lower)
            nodes.append(self._make_node(label, NodeType.FEATURE, source_selector="li, strong, b"))
        return nodes

    def _from_navigation(self, soup: BeautifulSoup, url: str, seen: Set[str]) -> List[ExtractedNode]:
        """Any meaningful link in the busiest navigation container."""
        best: Optional[Tag] = None
        most_links = 0
        for selector in NAV_SELECTORS:
            for element in soup.select(selector):
                count = len(element.find_all("a"))
                if count > most_links:
                    best, most_links = element, count
        if best is None:
            return []

        links = [
            link for link in best.find_all("a")
            if self._href(link) and 2 < len(link.get_text().strip()) <= MAX_NAV_LABEL_LENGTH
        ]

        nodes = []
        for link in links[:MAX_NAV_LINKS]:
            label = self._clean_label(link.get_text())
            if not label:
                continue

            lower = label.lower()
            if lower in seen or lower in ("home", "docs"):
                continue
            if any(word in lower for word in SKIPPED_LINKS):
                continue

            seen.add(lower)
            href = self._href(link)
            node_type = NodeType.COMPONENT if "/api/" in href or "api" in lower else NodeType.FEATURE
            nodes.append(self._make_node(label, node_type, doc_url=urljoin(url, href), source_selector="nav a"))
        return nodes


async def parse_hybrid(html: str, url: str) -> ParseResult:
    """Extract a flat map from headings, list items and navigation links."""
    return await HybridStrategy().parse(html, url)
