"""
Template strategy for known documentation platforms.
Uses predefined selectors per platform for high-accuracy extraction.
"""
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern

from bs4 import BeautifulSoup

from docparser.exceptions import StrategyError
from docparser.models.graph import ExtractedNode, NodeType, ParseResult
from docparser.strategies.base import BaseStrategy
from docparser.utils.text import truncate_description


@dataclass(frozen=True)
class PlatformTemplate:
    """Selectors for one documentation platform."""
    name: str
    url_pattern: Pattern[str]
    product_selector: str
    feature_selector: str


PLATFORM_TEMPLATES = (
    PlatformTemplate(
        name="aws",
        url_pattern=re.compile(r"https?://(docs\.)?aws\.amazon\.com", re.I),
        product_selector='.awsui-side-navigation > ul > li, nav[role="navigation"] > ul > li',
        feature_selector=(
            '.awsui-side-navigation > ul > li > ul > li, '
            'nav[role="navigation"] > ul > li > ul > li'
        ),
    ),
    PlatformTemplate(
        name="stripe",
        url_pattern=re.compile(r"https?://(docs\.)?stripe\.com", re.I),
        product_selector=".DocsSidebar > ul > li, nav.sidebar > ul > li",
        feature_selector=".DocsSidebar > ul > li > ul > li, nav.sidebar > ul > li > ul > li",
    ),
    PlatformTemplate(
        name="github",
        url_pattern=re.compile(r"https?://(docs\.)?github\.com", re.I),
        product_selector='.js-navigation > ul > li, nav[role="navigation"] > ul > li',
        feature_selector=(
            '.js-navigation > ul > li > ul > li, '
            'nav[role="navigation"] > ul > li > ul > li'
        ),
    ),
)


class TemplateStrategy(BaseStrategy):
    """Template strategy for AWS, Stripe and GitHub style documentation sites."""

    name = "template"

    def __init__(self, templates=PLATFORM_TEMPLATES):
        super().__init__()
        self.templates = templates

    def match_platform(self, url: str) -> Optional[PlatformTemplate]:
        """Return the first platform template whose URL pattern matches."""
        for template in self.templates:
            if template.url_pattern.search(url):
                return template
        return None

    def can_handle(self, html: str, url: str) -> bool:
        return self.match_platform(url) is not None

    async def parse(self, html: str, url: str) -> ParseResult:
        template = self.match_platform(url)
        if template is None:
            raise StrategyError("No template matched for URL", strategy=self.name, details={"url": url})

        self.logger.log_decision(
            decision="template_matched",
            reason=f"URL matches {template.name} pattern",
            url=url,
            platform=template.name,
        )

        soup = self._soup(html)
        warnings: List[str] = []

        products = self._extract_items(soup, template.product_selector, NodeType.PRODUCT)
        if not products:
            warnings.append("No products found using template selectors")

        features = self._extract_items(soup, template.feature_selector, NodeType.FEATURE)
        if not features:
            warnings.append("No features found using template selectors")

        nodes = products + features
        edges = self._anchor_edges(nodes, feature_confidence=0.8)

        return self._build_result(url, nodes, edges, self.confidence(), warnings)

    def confidence(self) -> float:
        return 0.9

    def _extract_items(
        self,
        soup: BeautifulSoup,
        selector: str,
        node_type: NodeType,
    ) -> List[ExtractedNode]:
        """Turn the first link of every matched list item into a node."""
        nodes = []
        for item in soup.select(selector):
            link = item.find("a")
            if link is None:
                continue

            label = self._clean_label(link.get_text())
            if not label:
                continue

            nodes.append(self._make_node(
                label,
                node_type,
                doc_url=self._href(link),
                description=truncate_description(label, 200),
                source_selector=selector.split(",")[0].strip(),
            ))
        return nodes
