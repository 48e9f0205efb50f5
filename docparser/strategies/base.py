"""
Base parsing strategy.

Every strategy answers three questions about a page: can it handle it, what
nodes/edges does it extract, and how much should its output be trusted.
"""
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from docparser.models.graph import (
    EdgeType,
    ExtractedEdge,
    ExtractedNode,
    GenerationMetadata,
    GenerationStats,
    InferenceMethod,
    NodeData,
    NodeType,
    ParseResult,
)
from docparser.utils.logger import LayerLogger
from docparser.utils.text import generate_node_id, sanitize_text

MIN_LABEL_LENGTH = 3
MAX_LABEL_LENGTH = 100

NODE_LEVELS = {
    NodeType.PRODUCT: 1,
    NodeType.FEATURE: 2,
    NodeType.COMPONENT: 3,
}

# "Stripe API | Reference" -> "Stripe API"
TITLE_SEPARATOR = re.compile(r"\s*(\||\s-\s|\s–\s).*$")
TITLE_SUFFIXES = (
    re.compile(r"GitHub$", re.IGNORECASE),
    re.compile(r"Documentation$", re.IGNORECASE),
    re.compile(r"Docs$", re.IGNORECASE),
)


class BaseStrategy(ABC):
    """Abstract base class for all parsing strategies."""

    name: str = ""

    def __init__(self):
        self.logger = LayerLogger(f"strategy.{self.name}")

    @abstractmethod
    def can_handle(self, html: str, url: str) -> bool:
        """Check if this strategy can handle the given HTML/URL."""

    @abstractmethod
    async def parse(self, html: str, url: str) -> ParseResult:
        """Parse the HTML and extract nodes/edges."""

    @abstractmethod
    def confidence(self) -> float:
        """Nominal confidence score for this strategy (0-1)."""

    # =========================================================================
    # Shared helpers
    # =========================================================================

    @staticmethod
    def _soup(html: str) -> BeautifulSoup:
        return BeautifulSoup(html, "lxml")

    @staticmethod
    def _clean_label(text: Optional[str]) -> Optional[str]:
        """Sanitize text and return it only if it fits the label length window."""
        label = sanitize_text(text)
        if MIN_LABEL_LENGTH <= len(label) <= MAX_LABEL_LENGTH:
            return label
        return None

    @staticmethod
    def _make_node(
        label: str,
        node_type: NodeType,
        doc_url: Optional[str] = None,
        description: Optional[str] = None,
        source_selector: Optional[str] = None,
    ) -> ExtractedNode:
        return ExtractedNode(
            id=generate_node_id(label, node_type.value),
            type=node_type,
            data=NodeData(label=label, description=description or None, doc_url=doc_url or None),
            level=NODE_LEVELS[node_type],
            source_selector=source_selector,
        )

    @staticmethod
    def _href(element: Optional[Tag]) -> Optional[str]:
        if element is None:
            return None
        href = element.get("href")
        return href if isinstance(href, str) and href else None

    @staticmethod
    def _meta_content(soup: BeautifulSoup, **attrs) -> str:
        tag = soup.find("meta", attrs=attrs)
        content = tag.get("content") if tag is not None else None
        return content.strip() if isinstance(content, str) else ""

    def _site_title(self, soup: BeautifulSoup, url: str, use_heading: bool = True) -> str:
        """
        Product name for a page: <title>, og:title, then the first h1.

        Anything after a " | " or " - " separator and a trailing
        "GitHub"/"Documentation"/"Docs" are dropped. Falls back to the hostname.
        """
        hostname = urlparse(url).hostname or url
        title = soup.title.get_text().strip() if soup.title else ""
        if not title:
            title = self._meta_content(soup, property="og:title")
        if not title and use_heading:
            heading = soup.find("h1")
            title = heading.get_text().strip() if heading is not None else ""

        title = TITLE_SEPARATOR.sub("", title or hostname)
        for suffix in TITLE_SUFFIXES:
            title = suffix.sub("", title).strip()

        return sanitize_text(title) or hostname

    def _root_node(self, soup: BeautifulSoup, url: str, use_heading: bool = True) -> ExtractedNode:
        """Product node named after the site, described by its meta description."""
        return self._make_node(
            self._site_title(soup, url, use_heading=use_heading),
            NodeType.PRODUCT,
            description=self._meta_content(soup, name="description"),
        )

    @staticmethod
    def _confidence_by_size(count: int, bands: Sequence[Tuple[int, float]], floor: float) -> float:
        """Score of the first (minimum count, score) band that count reaches."""
        for minimum, score in bands:
            if count >= minimum:
                return score
        return floor

    @staticmethod
    def _hierarchy_edge(
        source: ExtractedNode,
        target: ExtractedNode,
        confidence: float,
        method: InferenceMethod = InferenceMethod.HIERARCHY,
    ) -> ExtractedEdge:
        return ExtractedEdge(
            id=f"{source.id}-{target.id}",
            source=source.id,
            target=target.id,
            type=EdgeType.HIERARCHY,
            confidence=confidence,
            inference_method=method,
        )

    def _anchor_edges(
        self,
        nodes: Sequence[ExtractedNode],
        feature_confidence: float,
        component_confidence: Optional[float] = None,
    ) -> List[ExtractedEdge]:
        """
        Connect every feature to the first product, and every component to the
        first feature (or the first product when there are no features).

        Anchoring to the first higher-level node is a simplification that suits
        single-product documentation sites.
        """
        products = [n for n in nodes if n.type == NodeType.PRODUCT]
        features = [n for n in nodes if n.type == NodeType.FEATURE]
        components = [n for n in nodes if n.type == NodeType.COMPONENT]

        edges: List[ExtractedEdge] = []

        if products:
            edges.extend(
                self._hierarchy_edge(products[0], feature, feature_confidence)
                for feature in features
            )

        if component_confidence is not None:
            anchor = features[0] if features else (products[0] if products else None)
            if anchor is not None:
                edges.extend(
                    self._hierarchy_edge(anchor, component, component_confidence)
                    for component in components
                )

        return edges

    @staticmethod
    def _score_structure(
        nodes: Sequence[ExtractedNode],
        edges: Sequence[ExtractedEdge],
        base: float,
        cap: float,
        empty: float,
    ) -> float:
        """Base confidence plus bonuses for edges and node-type variety, capped."""
        if not nodes:
            return empty

        score = base
        if edges:
            score += 0.1

        types = {n.type for n in nodes}
        if NodeType.PRODUCT in types and NodeType.FEATURE in types:
            score += 0.05
        if NodeType.COMPONENT in types:
            score += 0.05

        return round(min(score, cap), 4)

    @staticmethod
    def _unique_by_id(nodes: Sequence[ExtractedNode]) -> List[ExtractedNode]:
        """Keep the first node for each id, preserving order."""
        seen = {}
        for node in nodes:
            seen.setdefault(node.id, node)
        return list(seen.values())

    def _build_result(
        self,
        url: str,
        nodes: List[ExtractedNode],
        edges: List[ExtractedEdge],
        confidence: float,
        warnings: List[str],
        pages_crawled: Optional[int] = None,
    ) -> ParseResult:
        self.logger.log_extraction(
            strategy=self.name,
            nodes=len(nodes),
            edges=len(edges),
            confidence=confidence,
            warnings=len(warnings),
        )
        return ParseResult(
            nodes=nodes,
            edges=edges,
            metadata=GenerationMetadata(
                source_url=url,
                generated_at=datetime.now(timezone.utc).isoformat(),
                strategy=self.name,
                confidence=confidence,
                warnings=warnings,
                stats=GenerationStats(
                    nodes_extracted=len(nodes),
                    nodes_final=len(nodes),
                    edges_extracted=len(edges),
                    pages_crawled=pages_crawled,
                ),
            ),
        )
