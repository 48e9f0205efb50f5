"""
Heuristic strategy: last-resort extraction by scoring candidate elements.
"""
from dataclasses import dataclass
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from docparser.models.graph import ExtractedNode, NodeType, ParseResult
from docparser.strategies.base import BaseStrategy

CANDIDATE_TAGS = ["a", "h1", "h2", "h3", "h4", "button"]
MIN_SCORE = 0.3
MAX_ELEMENTS = 50

HEADING_STYLE_SCORES = {"h1": 0.3, "h2": 0.25, "h3": 0.2, "h4": 0.15}
ELEMENT_TYPE_SCORES = {"h1": 0.3, "h2": 0.25, "h3": 0.2, "a": 0.15, "button": 0.1}


@dataclass
class ScoredElement:
    """Candidate element with its heuristic score."""
    label: str
    score: float
    href: Optional[str] = None


class HeuristicStrategy(BaseStrategy):
    """
    Heuristic strategy used when nothing more specific applies.

    Scores links, headings and buttons by position, styling, text length and
    link density, then assigns types by rank. parse() never raises: on any
    internal failure it returns an empty result with a warning.
    """

    name = "heuristic"

    def can_handle(self, html: str, url: str) -> bool:
        return len(html) > 0

    async def parse(self, html: str, url: str) -> ParseResult:
        warnings: List[str] = []

        try:
            soup = self._soup(html) if html else None
            scored = self._score_elements(soup) if soup is not None else []
        except Exception as e:
            self.logger.log_error(f"Heuristic scoring failed: {e}", error_type="heuristic_error", url=url)
            warnings.append(f"Heuristic scoring failed: {e}")
            scored = []

        top = sorted(
            (element for element in scored if element.score > MIN_SCORE),
            key=lambda element: element.score,
            reverse=True,
        )[:MAX_ELEMENTS]

        if not top:
            warnings.append("No elements scored above threshold")

        nodes = self._elements_to_nodes(top)
        edges = self._anchor_edges(nodes, feature_confidence=0.4, component_confidence=0.3)
        score = self._score_structure(nodes, edges, base=0.3, cap=0.5, empty=0.2)

        return self._build_result(url, nodes, edges, score, warnings)

    def confidence(self) -> float:
        return 0.4

    # =========================================================================
    # ELEMENT SCORING
    # =========================================================================

    def _score_elements(self, soup: BeautifulSoup) -> List[ScoredElement]:
        scored = []
        for element in soup.find_all(CANDIDATE_TAGS):
            label = self._clean_label(element.get_text())
            if not label:
                continue

            score = (
                self._score_position(element)
                + self._score_styling(element)
                + self._score_text_length(label)
                + self._score_link_density(element)
                + ELEMENT_TYPE_SCORES.get(element.name, 0.05)
            )
            scored.append(ScoredElement(label=label, score=score, href=self._href(element)))
        return scored

    def _score_position(self, element: Tag) -> float:
        """Navigation chrome scores highest, footers lowest."""
        if element.find_parent(["nav", "aside", "header"]) is not None:
            return 0.3
        if element.find_parent(["main", "article"]) is not None:
            return 0.2
        if element.find_parent("footer") is not None:
            return 0.05
        return 0.1

    def _score_styling(self, element: Tag) -> float:
        score = 0.0
        if element.name in ("strong", "b") or element.find_parent(["strong", "b"]) is not None:
            score += 0.1
        return score + HEADING_STYLE_SCORES.get(element.name, 0.0)

    def _score_text_length(self, text: str) -> float:
        length = len(text)
        if 10 <= length <= 50:
            return 0.3
        if 5 <= length <= 100:
            return 0.2
        return 0.05

    def _score_link_density(self, element: Tag) -> float:
        if element.name == "a":
            return 0.2
        links = len(element.find_all("a"))
        if links:
            return min(0.2, links * 0.05)
        return 0.0

    # =========================================================================
    # NODE CONVERSION
    # =========================================================================

    def _elements_to_nodes(self, elements: List[ScoredElement]) -> List[ExtractedNode]:
        """Top 20% by rank become products, the next 30% features, the rest components."""
        total = len(elements)
        nodes = []
        for index, element in enumerate(elements):
            if index < total * 0.2:
                node_type = NodeType.PRODUCT
            elif index < total * 0.5:
                node_type = NodeType.FEATURE
            else:
                node_type = NodeType.COMPONENT

            nodes.append(self._make_node(
                element.label,
                node_type,
                doc_url=element.href,
                source_selector="heuristic",
            ))
        return self._unique_by_id(nodes)
