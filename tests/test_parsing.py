import asyncio
import json

from docparser.layers.parsing import (
    ParsingLayer,
    detect_strategy,
    get_available_strategies,
    parse_documentation,
)
from docparser.models.graph import NodeType
from docparser.strategies import BaseStrategy, HeuristicStrategy

AWS_URL = "https://docs.aws.amazon.com/lambda/latest/dg/welcome.html"
GENERIC_URL = "https://docs.example.com/guide"

AWS_HTML = """
<nav role="navigation"><ul>
  <li><a href="https://docs.aws.amazon.com/lambda/">AWS Lambda</a>
    <ul><li><a href="https://docs.aws.amazon.com/lambda/functions">Functions</a></li></ul>
  </li>
</ul></nav>
"""

OPENAPI_HTML = '<script type="application/json">{}</script>'.format(json.dumps({
    "openapi": "3.0.0",
    "info": {"title": "Orders API"},
    "tags": [{"name": "Orders"}],
    "paths": {"/orders": {"post": {"summary": "Create order", "tags": ["Orders"]}}},
}))

NAV_HTML = """
<nav><ul>
  <li><a href="/">Home</a></li>
  <li><a href="/about">About</a></li>
  <li><a href="https://docs.example.com/platform">Platform Overview</a>
    <ul><li><a href="/docs/storage">Object Storage</a></li></ul>
  </li>
</ul></nav>
"""


class StubStrategy(BaseStrategy):
    """Strategy returning canned nodes/edges, or raising."""

    name = "stub"

    def __init__(self, items=(), links=(), confidence=0.95, error=None):
        super().__init__()
        self.items = items
        self.links = links
        self.score = confidence
        self.error = error

    def can_handle(self, html, url):
        return True

    async def parse(self, html, url):
        if self.error is not None:
            raise self.error
        nodes = [self._make_node(label, node_type) for label, node_type in self.items]
        by_label = {n.data.label: n for n in nodes}
        edges = [self._hierarchy_edge(by_label[src], by_label[tgt], 0.9) for src, tgt in self.links]
        return self._build_result(url, nodes, edges, self.score, [])

    def confidence(self):
        return self.score


def run(layer, html, url=GENERIC_URL):
    return asyncio.run(layer.parse(html, url))


class TestStrategySelection:
    def test_template_for_known_platform(self):
        result = asyncio.run(parse_documentation(AWS_HTML, AWS_URL))

        assert result.metadata.strategy == "template"
        assert result.metadata.confidence >= 0.9

    def test_schema_for_openapi(self):
        result = asyncio.run(parse_documentation(OPENAPI_HTML, GENERIC_URL))

        assert result.metadata.strategy == "schema"
        assert {n.data.label for n in result.nodes} == {"Orders API", "Orders", "Create order"}

    def test_html_for_generic_docs(self):
        result = asyncio.run(parse_documentation(NAV_HTML, GENERIC_URL))
        assert result.metadata.strategy == "html"

    def test_plain_text_falls_back_to_heuristic(self):
        result = asyncio.run(parse_documentation("<div>Plain text</div>", GENERIC_URL))

        assert result.metadata.strategy == "heuristic"
        assert result.nodes == []

    def test_empty_html(self):
        result = asyncio.run(parse_documentation("", GENERIC_URL))

        assert result.nodes == []
        assert result.edges == []
        assert result.metadata.strategy == "heuristic"

    def test_failing_strategy_is_skipped(self):
        layer = ParsingLayer(strategies=[
            StubStrategy(error=RuntimeError("selector exploded")),
            StubStrategy(items=[("Second Choice", NodeType.PRODUCT)]),
        ])

        result = run(layer, "<p>x</p>")

        assert [n.data.label for n in result.nodes] == ["Second Choice"]

    def test_low_confidence_strategy_is_skipped(self):
        layer = ParsingLayer(strategies=[
            StubStrategy(items=[("Low Confidence", NodeType.PRODUCT)], confidence=0.1),
            StubStrategy(items=[("High Confidence", NodeType.PRODUCT)], confidence=0.6),
        ])

        result = run(layer, "<p>x</p>")

        assert [n.data.label for n in result.nodes] == ["High Confidence"]
        assert result.metadata.confidence == 0.6

    def test_heuristic_is_forced_when_nothing_qualifies(self):
        layer = ParsingLayer(strategies=[StubStrategy(confidence=0.1)])

        result = run(layer, "<nav><a href='/docs/a'>Some Documentation</a></nav>")

        assert result.metadata.strategy == HeuristicStrategy.name
        assert [n.data.label for n in result.nodes] == ["Some Documentation"]


class TestValidatorChain:
    def test_navigation_chrome_is_filtered(self):
        result = asyncio.run(parse_documentation(NAV_HTML, GENERIC_URL))
        labels = {n.data.label for n in result.nodes}

        assert "Home" not in labels
        assert "About" not in labels
        assert {"Platform Overview", "Object Storage"} <= labels
        assert result.metadata.stats.nodes_filtered == 2

    def test_relative_doc_urls_are_dropped(self):
        result = asyncio.run(parse_documentation(NAV_HTML, GENERIC_URL))
        nodes = {n.data.label: n for n in result.nodes}

        assert nodes["Platform Overview"].data.doc_url == "https://docs.example.com/platform"
        assert nodes["Object Storage"].data.doc_url is None

    def test_dedup_filter_and_edge_pruning(self):
        layer = ParsingLayer(strategies=[StubStrategy(
            items=[
                ("Acme Cloud", NodeType.PRODUCT),
                ("Home", NodeType.FEATURE),
                ("Storage", NodeType.FEATURE),
                ("Storages", NodeType.FEATURE),
            ],
            links=[
                ("Acme Cloud", "Home"),
                ("Acme Cloud", "Storage"),
                ("Acme Cloud", "Storages"),
                ("Home", "Storage"),
            ],
        )])

        result = run(layer, "<p>x</p>")
        stats = result.metadata.stats

        node_ids = {n.id for n in result.nodes}
        for e in result.edges:
            assert e.source in node_ids
            assert e.target in node_ids

        assert len(result.nodes) == 2
        assert len(result.edges) == 1
        assert stats.nodes_extracted == 4
        assert stats.nodes_deduplicated == 1
        assert stats.nodes_filtered == 1
        assert stats.nodes_final == 2
        assert stats.edges_extracted == 4

    def test_metadata(self):
        result = asyncio.run(parse_documentation(NAV_HTML, GENERIC_URL))
        metadata = result.metadata

        assert metadata.source_url == GENERIC_URL
        assert metadata.generated_at
        assert metadata.confidence > 0
        assert metadata.auto_generated_node_ids == [n.id for n in result.nodes]
        assert metadata.stats.duration_ms >= 0

    def test_node_cap(self):
        items = [(f"Component Number {i}", NodeType.COMPONENT) for i in range(80)]
        # Labels differ by one character, so keep dedup from merging them
        layer = ParsingLayer(strategies=[StubStrategy(items=items)], dedup_threshold=1.01)

        result = run(layer, "<p>x</p>")

        assert len(result.nodes) == 50

    def test_wire_format_uses_camel_case(self):
        result = asyncio.run(parse_documentation(AWS_HTML, AWS_URL))
        payload = result.to_dict()

        product = payload["nodes"][0]
        assert product["data"]["docUrl"] == "https://docs.aws.amazon.com/lambda/"
        assert "sourceSelector" in product
        assert payload["edges"][0]["inferenceMethod"] == "hierarchy"


class TestDetectStrategy:
    def test_detection_follows_priority(self):
        assert detect_strategy(AWS_HTML, AWS_URL) == "template"
        assert detect_strategy(OPENAPI_HTML, GENERIC_URL) == "schema"
        assert detect_strategy(NAV_HTML, GENERIC_URL) == "html"
        assert detect_strategy("<div>Plain text</div>", GENERIC_URL) == "heuristic"

    def test_empty_page_defaults_to_heuristic(self):
        assert detect_strategy("", GENERIC_URL) == "heuristic"

    def test_available_strategies(self):
        assert get_available_strategies() == ["template", "schema", "html", "heuristic"]
