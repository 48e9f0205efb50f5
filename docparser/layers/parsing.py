"""
Parsing Layer for the Documentation Map Parser.
Selects an extraction strategy and runs the validator chain on its output.
"""
import time
from typing import List, Optional, Sequence

from docparser.config import config
from docparser.models.graph import GenerationStats, ParseResult
from docparser.strategies import (
    BaseStrategy,
    HeuristicStrategy,
    HtmlStrategy,
    SchemaStrategy,
    TemplateStrategy,
)
from docparser.utils.logger import LayerLogger
from docparser.validators import (
    FilterOptions,
    deduplicate_nodes,
    filter_nodes,
    sanitize_nodes,
    update_edge_references,
)

STRATEGY_NAMES = ("template", "schema", "html", "heuristic")


def build_strategies() -> List[BaseStrategy]:
    """Strategies in fixed priority order, highest confidence first."""
    return [
        TemplateStrategy(),   # 0.9
        SchemaStrategy(),     # 0.7-0.9
        HtmlStrategy(),       # 0.5-0.7
        HeuristicStrategy(),  # 0.3-0.5
    ]


class ParsingLayer:
    """
    Parsing Layer - turns HTML into a cleaned documentation graph.

    Strategies run strictly one after another. The first one that can handle
    the page and reports enough confidence wins; a strategy that raises is
    skipped. Heuristic output is used when nothing else qualifies. The
    validator chain (dedup -> filter -> sanitize) always runs afterwards.
    """

    def __init__(
        self,
        strategies: Optional[Sequence[BaseStrategy]] = None,
        min_confidence: float = config.MIN_CONFIDENCE,
        dedup_threshold: float = config.DEDUP_THRESHOLD,
        filter_options: Optional[FilterOptions] = None,
    ):
        self.strategies = list(strategies) if strategies is not None else build_strategies()
        self.fallback = HeuristicStrategy()
        self.min_confidence = min_confidence
        self.dedup_threshold = dedup_threshold
        self.filter_options = filter_options or FilterOptions(max_nodes=config.MAX_NODES)
        self.logger = LayerLogger("parsing_layer")

    async def parse(self, html: str, url: str) -> ParseResult:
        """
        Parse documentation HTML into nodes, edges and metadata.

        Args:
            html: Raw HTML content
            url: Source URL (used for template matching and metadata)

        Returns:
            ParseResult whose edges only reference returned nodes
        """
        start = time.perf_counter()
        logger = self.logger.bind(url=url)
        logger.log_action("parse_documentation", "started", html_length=len(html))

        result, strategy_name = await self._run_strategies(html, url)
        final = self.finalize(result, url, strategy_name=strategy_name, start=start)

        stats = final.metadata.stats
        logger.log_action(
            "parse_documentation",
            "completed",
            strategy=strategy_name,
            confidence=final.metadata.confidence,
            nodes_extracted=stats.nodes_extracted,
            nodes_final=stats.nodes_final,
            edges_final=len(final.edges),
            duration_ms=stats.duration_ms,
        )
        return final

    def finalize(
        self,
        result: ParseResult,
        url: str,
        strategy_name: Optional[str] = None,
        start: Optional[float] = None,
    ) -> ParseResult:
        """
        Run the validator chain over raw extractor output and fill in the stats.

        Also used for extractors outside the strategy chain, such as the deep crawl.
        """
        start = start if start is not None else time.perf_counter()
        strategy_name = strategy_name or result.metadata.strategy
        logger = self.logger.bind(url=url, strategy=strategy_name)

        nodes_extracted = len(result.nodes)
        edges_extracted = len(result.edges)

        # 1. Deduplication
        dedup = deduplicate_nodes(result.nodes, threshold=self.dedup_threshold)
        edges = update_edge_references(result.edges, dedup.id_mapping)
        nodes_deduplicated = nodes_extracted - len(dedup.nodes)
        logger.log_validation("deduplication", nodes_extracted, len(dedup.nodes), edges=len(edges))

        # 2. Filtering
        filtered = filter_nodes(dedup.nodes, self.filter_options)
        nodes_filtered = len(dedup.nodes) - len(filtered)
        logger.log_validation("filtering", len(dedup.nodes), len(filtered), max_nodes=self.filter_options.max_nodes)

        # 3. Sanitization
        nodes = sanitize_nodes(filtered)

        # Drop edges whose endpoints were filtered out
        node_ids = {node.id for node in nodes}
        kept_edges = [edge for edge in edges if edge.source in node_ids and edge.target in node_ids]
        if len(kept_edges) < len(edges):
            logger.log_action("prune_edges", "completed", removed=len(edges) - len(kept_edges))

        raw_stats = result.metadata.stats
        metadata = result.metadata.model_copy(update={
            "strategy": strategy_name,
            "auto_generated_node_ids": [node.id for node in nodes],
            "stats": GenerationStats(
                nodes_extracted=nodes_extracted,
                nodes_final=len(nodes),
                edges_extracted=edges_extracted,
                nodes_deduplicated=nodes_deduplicated,
                nodes_filtered=nodes_filtered,
                duration_ms=int((time.perf_counter() - start) * 1000),
                pages_crawled=raw_stats.pages_crawled if raw_stats else None,
            ),
        })

        return ParseResult(nodes=nodes, edges=kept_edges, metadata=metadata)

    async def _run_strategies(self, html: str, url: str):
        """Return the accepted strategy result and the winning strategy name."""
        for strategy in self.strategies:
            if not strategy.can_handle(html, url):
                continue

            try:
                result = await strategy.parse(html, url)
            except Exception as e:
                self.logger.log_fallback(
                    from_source=strategy.name,
                    to_source="next_strategy",
                    reason=f"Strategy failed: {e}",
                    url=url,
                )
                continue

            if result.metadata.confidence >= self.min_confidence:
                self.logger.log_decision(
                    decision=f"use_{strategy.name}",
                    reason="Strategy handled page with sufficient confidence",
                    url=url,
                    confidence=result.metadata.confidence,
                )
                return result, strategy.name

            self.logger.log_fallback(
                from_source=strategy.name,
                to_source="next_strategy",
                reason=f"Confidence {result.metadata.confidence} below {self.min_confidence}",
                url=url,
            )

        self.logger.log_decision(
            decision="force_heuristic",
            reason="No strategy produced an acceptable result",
            url=url,
        )
        return await self.fallback.parse(html, url), self.fallback.name

    def detect_strategy(self, html: str, url: str) -> str:
        """Name of the first strategy whose can_handle accepts the page (no extraction)."""
        for strategy in self.strategies:
            if strategy.can_handle(html, url):
                return strategy.name
        return self.fallback.name


async def parse_documentation(html: str, url: str) -> ParseResult:
    """Parse documentation HTML with the default strategy chain."""
    return await ParsingLayer().parse(html, url)


def detect_strategy(html: str, url: str) -> str:
    """Report which strategy would be selected first for the given page."""
    return ParsingLayer().detect_strategy(html, url)


def get_available_strategies() -> List[str]:
    return list(STRATEGY_NAMES)
