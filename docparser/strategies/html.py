"""
HTML strategy for generic documentation sites.
Combines navigation menus, heading hierarchy and breadcrumbs.
"""
from typing import List

from bs4 import BeautifulSoup, Tag

from docparser.models.graph import ExtractedNode, NodeType, ParseResult
from docparser.strategies.base import BaseStrategy

NAV_CONTAINERS = 'nav, aside, [role="navigation"]'
NAV_TOP_ITEMS = ":scope > ul > li, :scope > div > ul > li"
NAV_NESTED_ITEMS = ":scope > ul > li"
NAV_ITEM_LINK = ":scope > a"
BREADCRUMB_CONTAINERS = '[aria-label*="readcrumb" i], .breadcrumb, .breadcrumbs'

# Nesting depth -> (node type, debug selector)
NAV_LEVELS = (
    (NodeType.PRODUCT, "nav > ul > li"),
    (NodeType.FEATURE, "nav > ul > li > ul > li"),
    (NodeType.COMPONENT, "nav > ul > li > ul > li > ul > li"),
)

HEADING_TYPES = (
    ("h1", NodeType.PRODUCT),
    ("h2", NodeType.FEATURE),
    ("h3", NodeType.COMPONENT),
)


class HtmlStrategy(BaseStrategy):
    """HTML strategy for sites without a known template or embedded schema."""

    name = "html"

    def can_handle(self, html: str, url: str) -> bool:
        has_nav = "<nav" in html or "<aside" in html
        has_headings = "<h1" in html or "<h2" in html
        return has_nav or has_headings

    async def parse(self, html: str, url: str) -> ParseResult:
        soup = self._soup(html)
        warnings: List[str] = []

        # Merge passes by exact id; the first occurrence wins
        nodes = self._unique_by_id(
            self._extract_from_navigation(soup)
            + self._extract_from_headings(soup)
            + self._extract_from_breadcrumbs(soup)
        )

        if not nodes:
            warnings.append("No nodes extracted from HTML structure")

        edges = self._anchor_edges(nodes, feature_confidence=0.6, component_confidence=0.5)
        score = self._score_structure(nodes, edges, base=0.5, cap=0.7, empty=0.3)

        return self._build_result(url, nodes, edges, score, warnings)

    def confidence(self) -> float:
        return 0.6

    # =========================================================================
    # NAVIGATION
    # =========================================================================

    def _extract_from_navigation(self, soup: BeautifulSoup) -> List[ExtractedNode]:
        nodes: List[ExtractedNode] = []
        for nav in soup.select(NAV_CONTAINERS):
            for item in nav.select(NAV_TOP_ITEMS):
                self._walk_nav_item(item, 0, nodes)
        return nodes

    def _walk_nav_item(self, item: Tag, depth: int, nodes: List[ExtractedNode]) -> None:
        """Add a list item and, if it is valid, recurse into its nested list."""
        link = item.select_one(NAV_ITEM_LINK)
        label = self._clean_label(link.get_text()) if link is not None else None
        if not label:
            return

        node_type, selector = NAV_LEVELS[depth]
        nodes.append(self._make_node(label, node_type, doc_url=self._href(link), source_selector=selector))

        if depth + 1 < len(NAV_LEVELS):
            for nested in item.select(NAV_NESTED_ITEMS):
                self._walk_nav_item(nested, depth + 1, nodes)

    # =========================================================================
    # HEADINGS
    # =========================================================================

    def _extract_from_headings(self, soup: BeautifulSoup) -> List[ExtractedNode]:
        nodes: List[ExtractedNode] = []
        for tag_name, node_type in HEADING_TYPES:
            for heading in soup.find_all(tag_name):
                label = self._clean_label(heading.get_text())
                if label:
                    nodes.append(self._make_node(label, node_type, source_selector=tag_name))
        return nodes

    # =========================================================================
    # BREADCRUMBS
    # =========================================================================

    def _extract_from_breadcrumbs(self, soup: BeautifulSoup) -> List[ExtractedNode]:
        """Type breadcrumb entries by position: product, feature, then components."""
        nodes: List[ExtractedNode] = []
        for trail in soup.select(BREADCRUMB_CONTAINERS):
            for index, item in enumerate(trail.select("a, li")):
                label = self._clean_label(item.get_text())
                if not label:
                    continue

                if index == 0:
                    node_type = NodeType.PRODUCT
                elif index == 1:
                    node_type = NodeType.FEATURE
                else:
                    node_type = NodeType.COMPONENT

                href = self._href(item) or self._href(item.find("a"))
                nodes.append(self._make_node(label, node_type, doc_url=href, source_selector="breadcrumb"))
        return nodes
