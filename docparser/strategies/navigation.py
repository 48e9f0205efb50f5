"""
Navigation extractor for modern documentation sites (Docusaurus, Mintlify, Nextra).
Builds the map from the sidebar that carries the most documentation links.
"""
import math
import re
from typing import Dict, List, Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from docparser.models.graph import ExtractedEdge, ExtractedNode, NodeType, ParseResult
from docparser.strategies.base import BaseStrategy

NAV_SELECTORS = (
    "nav",
    '[role="navigation"]',
    "aside",
    ".sidebar",
    ".navigation",
    ".nav-menu",
    ".docs-sidebar",
    '[class*="sidebar"]',
    '[class*="navigation"]',
)
DOC_LINKS = 'a[href*="/docs"], a[href*="/api"], a[href*="/guide"], a[href*="/reference"]'
DOC_HREF_MARKERS = ("/docs", "/api", "/guide", "/reference", "/documentation")

# Site chrome that shows up in every sidebar
NAV_BLACKLIST = frozenset({
    "edit this page", "edit page", "edit on github", "view on github", "github",
    "contribute", "feedback", "report issue", "report bug", "suggest edit",
    "improve this page", "star us", "follow us", "twitter", "discord", "slack",
    "community", "changelog", "blog", "pricing", "login", "sign in", "sign up",
    "get started", "try it", "download", "install", "search", "menu",
    "navigation", "table of contents", "on this page", "skip to", "back to top",
    "previous", "next", "home", "documentation", "docs", "how-to", "how to",
    "manuals", "guides", "tutorials",
})
META_PREFIXES = ("view ", "edit ", "see ")
META_SUFFIXES = (" →", " ↗")

COMPONENT_HREF_MARKERS = ("/api/", "/reference/", "/sdk/")
COMPONENT_KEYWORDS = (
    "sdk", "client", "library", "package", "method", "function", "class",
    "interface", "endpoint",
)
# Broad concepts stay features even when they mention an API
FEATURE_KEYWORDS = (
    "getting started", "quickstart", "introduction", "overview", "guide",
    "tutorial", "examples", "use case", "integration", "deployment",
    "configuration", "authentication", "authorization", "security",
    "monitoring", "analytics",
)

MAX_DOM_DEPTH = 3
CONFIDENCE_BANDS = ((10, 0.9), (5, 0.7), (3, 0.5))


def mentions_api(label: str) -> bool:
    """True for labels like "Payments API", "API keys" or "restapi", but not "rapid"."""
    return " api" in label or "api " in label or label.endswith("api")


class NavigationStrategy(BaseStrategy):
    """
    Turns a documentation sidebar into a product map.

    The site title becomes the product. Each documentation link becomes a
    feature or component, and link nesting depth decides the hierarchy:
    the shallowest links hang off the product, and each deeper level is
    spread evenly across the level above it.
    """

    name = "navigation"

    def can_handle(self, html: str, url: str) -> bool:
        return "<nav" in html or "<aside" in html or "sidebar" in html

    async def parse(self, html: str, url: str) -> ParseResult:
        soup = self._soup(html)
        root = self._root_node(soup, url)

        container = self._best_navigation(soup)
        links = self._extract_links(container, url)
        nodes = [root] + [node for node, _ in links]
        edges = self._level_edges(root, links)

        warnings: List[str] = []
        if not links:
            warnings.append("No documentation links found in navigation")

        score = self._confidence_by_size(len(nodes), CONFIDENCE_BANDS, floor=0.3)
        return self._build_result(url, nodes, edges, score, warnings)

    def confidence(self) -> float:
        return 0.7

    def _best_navigation(self, soup: BeautifulSoup) -> Tag:
        """Navigation container with the most documentation links, else the whole body."""
        best: Optional[Tag] = None
        most_links = 0
        for selector in NAV_SELECTORS:
            for element in soup.select(selector):
                count = len(element.select(DOC_LINKS))
                if count > most_links:
                    best, most_links = element, count

        if best is not None:
            return best
        return soup.body or soup

    def _extract_links(self, container: Tag, url: str) -> List[Tuple[ExtractedNode, int]]:
        """Documentation links as (node, DOM depth) pairs, in document order."""
        links: List[Tuple[ExtractedNode, int]] = []
        seen_labels = set()
        seen_ids = set()

        for link in container.find_all("a"):
            href = self._href(link) or ""
            if not any(marker in href for marker in DOC_HREF_MARKERS):
                continue

            label = self._clean_label(link.get_text())
            if not label:
                continue

            lower = label.lower()
            if self._is_chrome(lower) or lower in seen_labels:
                continue
            seen_labels.add(lower)

            node = self._make_node(
                label,
                self._classify(lower, href),
                doc_url=urljoin(url, href),
                source_selector="nav a",
            )
            if node.id in seen_ids:
                continue
            seen_ids.add(node.id)

            depth = min(len(link.find_parents(["ul", "ol", "nav", "div"])), MAX_DOM_DEPTH)
            links.append((node, depth))

        return links

    @staticmethod
    def _is_chrome(lower: str) -> bool:
        collapsed = re.sub(r"[&\s-]+", " ", lower).strip()
        if lower in NAV_BLACKLIST or collapsed in NAV_BLACKLIST:
            return True
        return lower.startswith(META_PREFIXES) or lower.endswith(META_SUFFIXES)

    @staticmethod
    def _classify(lower: str, href: str) -> NodeType:
        if any(keyword in lower for keyword in FEATURE_KEYWORDS):
            return NodeType.FEATURE
        if (
            any(marker in href for marker in COMPONENT_HREF_MARKERS)
            or mentions_api(lower)
            or any(keyword in lower for keyword in COMPONENT_KEYWORDS)
        ):
            return NodeType.COMPONENT
        return NodeType.FEATURE

    def _level_edges(
        self,
        root: ExtractedNode,
        links: List[Tuple[ExtractedNode, int]],
    ) -> List[ExtractedEdge]:
        by_depth: Dict[int, List[ExtractedNode]] = {}
        for node, depth in links:
            by_depth.setdefault(depth, []).append(node)
        if not by_depth:
            return []

        depths = sorted(by_depth)
        edges = [self._hierarchy_edge(root, node, 0.7) for node in by_depth[depths[0]]]

        # Children are handed out in contiguous, equal-sized runs
        for parent_depth, child_depth in zip(depths, depths[1:]):
            parents = by_depth[parent_depth]
            children = by_depth[child_depth]
            per_parent = math.ceil(len(children) / len(parents))
            for index, parent in enumerate(parents):
                for child in children[index * per_parent:(index + 1) * per_parent]:
                    edges.append(self._hierarchy_edge(parent, child, 0.6))

        return edges


async def parse_from_navigation(html: str, url: str) -> ParseResult:
    """Extract a map from the page's documentation sidebar."""
    return await NavigationStrategy().parse(html, url)
