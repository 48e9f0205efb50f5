"""
Schema strategy for structured documentation.
Parses embedded OpenAPI/Swagger documents and sitemap-referencing pages.
"""
import json
from typing import Any, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup

from docparser.models.graph import (
    ExtractedEdge,
    ExtractedNode,
    InferenceMethod,
    NodeType,
    ParseResult,
)
from docparser.strategies.base import BaseStrategy
from docparser.utils.text import truncate_description

HTTP_METHODS = ("get", "post", "put", "delete", "patch")


def _has_openapi(html: str) -> bool:
    return "openapi" in html or "swagger" in html


def _has_sitemap(html: str) -> bool:
    return "sitemap.xml" in html or '<link rel="sitemap"' in html


class SchemaStrategy(BaseStrategy):
    """Schema strategy for OpenAPI specs and sitemap references."""

    name = "schema"

    def can_handle(self, html: str, url: str) -> bool:
        return _has_openapi(html) or _has_sitemap(html)

    async def parse(self, html: str, url: str) -> ParseResult:
        warnings: List[str] = []
        nodes: List[ExtractedNode] = []
        edges: List[ExtractedEdge] = []

        soup = self._soup(html)

        if _has_openapi(html):
            nodes, edges = self._parse_openapi(soup, warnings)
            if not nodes:
                warnings.append("OpenAPI schema detected but no endpoints extracted")
        elif _has_sitemap(html):
            nodes, edges = self._parse_sitemap(soup)
            if not nodes:
                warnings.append("Sitemap reference detected but no URLs extracted")

        score = self._score_structure(nodes, edges, base=0.7, cap=0.9, empty=0.3)
        return self._build_result(url, nodes, edges, score, warnings)

    def confidence(self) -> float:
        # Nominal value; parse() adjusts it to the structure actually found
        return 0.8

    # =========================================================================
    # OPENAPI
    # =========================================================================

    def _find_openapi_document(self, soup: BeautifulSoup, warnings: List[str]) -> Optional[Dict[str, Any]]:
        """Return the first JSON script block that decodes to an OpenAPI/Swagger object."""
        for script in soup.select('script[type="application/json"]'):
            content = script.string or script.get_text()
            if not content or not _has_openapi(content):
                continue
            try:
                document = json.loads(content)
            except ValueError as e:
                warnings.append(f"Skipped invalid OpenAPI JSON: {e}")
                continue
            if isinstance(document, dict):
                return document
        return None

    def _parse_openapi(
        self,
        soup: BeautifulSoup,
        warnings: List[str],
    ) -> Tuple[List[ExtractedNode], List[ExtractedEdge]]:
        nodes: List[ExtractedNode] = []
        edges: List[ExtractedEdge] = []

        document = self._find_openapi_document(soup, warnings)
        if document is None:
            return nodes, edges

        # API title becomes the product
        product: Optional[ExtractedNode] = None
        info = document.get("info")
        if isinstance(info, dict):
            title = self._clean_label(info.get("title") if isinstance(info.get("title"), str) else None)
            if title:
                product = self._make_node(
                    title,
                    NodeType.PRODUCT,
                    description=truncate_description(self._as_text(info.get("description")), 200),
                )
                nodes.append(product)

        # Tags become features
        tag_map: Dict[str, ExtractedNode] = {}
        tags = document.get("tags")
        if isinstance(tags, list):
            for tag in tags:
                if not isinstance(tag, dict) or not isinstance(tag.get("name"), str):
                    continue
                label = self._clean_label(tag["name"])
                if not label:
                    continue

                feature = self._make_node(
                    label,
                    NodeType.FEATURE,
                    description=truncate_description(self._as_text(tag.get("description")), 200),
                )
                tag_map[tag["name"]] = feature
                nodes.append(feature)

                if product is not None:
                    edges.append(self._hierarchy_edge(product, feature, 0.9, InferenceMethod.EXPLICIT))

        # First operation of each path becomes a component
        paths = document.get("paths")
        if isinstance(paths, dict):
            for path, methods in paths.items():
                if not isinstance(methods, dict):
                    continue
                method_key = next((key for key in methods if key in HTTP_METHODS), None)
                if method_key is None:
                    continue

                operation = methods[method_key]
                if not isinstance(operation, dict):
                    continue

                raw_label = (
                    self._as_text(operation.get("summary"))
                    or self._as_text(operation.get("operationId"))
                    or path
                )
                label = self._clean_label(raw_label)
                if not label:
                    continue

                component = self._make_node(
                    label,
                    NodeType.COMPONENT,
                    doc_url=path,
                    description=truncate_description(self._as_text(operation.get("description")) or path, 200),
                )
                nodes.append(component)

                op_tags = operation.get("tags")
                if isinstance(op_tags, list) and op_tags:
                    feature = tag_map.get(op_tags[0]) if isinstance(op_tags[0], str) else None
                    if feature is not None:
                        edges.append(self._hierarchy_edge(feature, component, 0.9, InferenceMethod.EXPLICIT))

        return nodes, edges

    @staticmethod
    def _as_text(value: Any) -> str:
        return value if isinstance(value, str) else ""

    # =========================================================================
    # SITEMAP
    # =========================================================================

    def _parse_sitemap(self, soup: BeautifulSoup) -> Tuple[List[ExtractedNode], List[ExtractedEdge]]:
        """
        Classify the page's own links by URL depth.

        The referenced sitemap.xml itself is not fetched; links on the current
        page stand in for it.
        """
        sitemap_link = soup.select_one('link[rel="sitemap"]')
        if sitemap_link is None or not self._href(sitemap_link):
            return [], []

        nodes: List[ExtractedNode] = []
        seen_ids = set()

        for link in soup.select("a[href]"):
            href = self._href(link)
            label = self._clean_label(link.get_text())
            if not href or not label:
                continue

            segments = [segment for segment in href.split("/") if segment]
            if len(segments) == 1:
                node_type = NodeType.PRODUCT
            elif len(segments) == 2:
                node_type = NodeType.FEATURE
            else:
                node_type = NodeType.COMPONENT

            node = self._make_node(label, node_type, doc_url=href)
            if node.id in seen_ids:
                continue
            seen_ids.add(node.id)
            nodes.append(node)

        edges = self._anchor_edges(nodes, feature_confidence=0.7, component_confidence=0.6)
        return nodes, edges
