import asyncio
import json

import pytest

from docparser.exceptions import StrategyError
from docparser.strategies import HeuristicStrategy, HtmlStrategy, SchemaStrategy, TemplateStrategy

AWS_URL = "https://docs.aws.amazon.com/lambda/latest/dg/welcome.html"

AWS_HTML = """
<html><body>
<nav role="navigation">
  <ul>
    <li><a href="/lambda/">AWS Lambda</a>
      <ul>
        <li><a href="/lambda/functions">Functions</a></li>
        <li><a href="/lambda/layers">Layers</a></li>
      </ul>
    </li>
  </ul>
</nav>
</body></html>
"""

OPENAPI_DOCUMENT = {
    "openapi": "3.0.0",
    "info": {"title": "Pet Store API", "description": "Manage pets"},
    "tags": [{"name": "Pets", "description": "Pet operations"}],
    "paths": {
        "/pets": {"get": {"summary": "List pets", "tags": ["Pets"]}},
        "/pets/{id}": {"delete": {"operationId": "deletePet"}},
    },
}

NAV_HTML = """
<html><body>
<nav>
  <ul>
    <li><a href="/docs/getting-started">Getting Started</a>
      <ul>
        <li><a href="/docs/install">Installation</a>
          <ul><li><a href="/docs/install/linux">Linux Setup</a></li></ul>
        </li>
      </ul>
    </li>
  </ul>
</nav>
</body></html>
"""


def parse(strategy, html, url="https://docs.example.com"):
    return asyncio.run(strategy.parse(html, url))


def by_label(result):
    return {node.data.label: node for node in result.nodes}


class TestTemplateStrategy:
    def test_matches_known_platforms(self):
        strategy = TemplateStrategy()
        assert strategy.can_handle("", AWS_URL)
        assert strategy.can_handle("", "https://stripe.com/docs/payments")
        assert strategy.can_handle("", "https://docs.github.com/en/actions")
        assert not strategy.can_handle("", "https://docs.example.com")

    def test_extracts_products_features_and_edges(self):
        result = parse(TemplateStrategy(), AWS_HTML, AWS_URL)
        nodes = by_label(result)

        assert nodes["AWS Lambda"].type == "product"
        assert nodes["AWS Lambda"].data.doc_url == "/lambda/"
        assert nodes["Functions"].type == "feature"
        assert nodes["Layers"].type == "feature"
        assert {(e.source, e.target) for e in result.edges} == {
            ("product-aws-lambda", "feature-functions"),
            ("product-aws-lambda", "feature-layers"),
        }
        assert all(e.confidence == 0.8 for e in result.edges)
        assert result.metadata.confidence == 0.9
        assert result.metadata.strategy == "template"

    def test_warns_when_selectors_find_nothing(self):
        result = parse(TemplateStrategy(), "<html><body><p>Nothing here</p></body></html>", AWS_URL)

        assert result.nodes == []
        assert "No products found using template selectors" in result.metadata.warnings
        assert "No features found using template selectors" in result.metadata.warnings

    def test_unmatched_url_raises(self):
        with pytest.raises(StrategyError):
            parse(TemplateStrategy(), AWS_HTML, "https://docs.example.com")


class TestSchemaStrategy:
    def test_detects_openapi_and_sitemap(self):
        strategy = SchemaStrategy()
        assert strategy.can_handle('{"openapi": "3.0.0"}', "https://x.com")
        assert strategy.can_handle('<link rel="sitemap" href="/sitemap.xml">', "https://x.com")
        assert not strategy.can_handle("<h1>Plain</h1>", "https://x.com")

    def test_parses_embedded_openapi(self):
        html = f'<script type="application/json">{json.dumps(OPENAPI_DOCUMENT)}</script>'

        result = parse(SchemaStrategy(), html)
        nodes = by_label(result)

        assert nodes["Pet Store API"].type == "product"
        assert nodes["Pet Store API"].data.description == "Manage pets"
        assert nodes["Pets"].type == "feature"
        assert nodes["List pets"].type == "component"
        assert nodes["List pets"].data.doc_url == "/pets"
        # No summary, so the operationId is used
        assert nodes["deletePet"].type == "component"

        edges = {(e.source, e.target): e for e in result.edges}
        assert set(edges) == {
            ("product-pet-store-api", "feature-pets"),
            ("feature-pets", "component-list-pets"),
        }
        assert all(e.inference_method == "explicit" for e in result.edges)
        assert result.metadata.confidence == 0.9

    def test_invalid_json_is_warned_and_skipped(self):
        html = (
            '<script type="application/json">{"openapi": broken</script>'
            f'<script type="application/json">{json.dumps(OPENAPI_DOCUMENT)}</script>'
        )

        result = parse(SchemaStrategy(), html)

        assert any(w.startswith("Skipped invalid OpenAPI JSON") for w in result.metadata.warnings)
        assert "Pet Store API" in by_label(result)

    def test_openapi_without_endpoints_has_low_confidence(self):
        result = parse(SchemaStrategy(), "<p>See our openapi docs</p>")

        assert result.nodes == []
        assert result.metadata.confidence == 0.3
        assert "OpenAPI schema detected but no endpoints extracted" in result.metadata.warnings

    def test_classifies_sitemap_links_by_depth(self):
        html = """
        <html><head><link rel="sitemap" href="/sitemap.xml"></head>
        <body>
          <a href="/products">Products</a>
          <a href="/products/billing">Billing</a>
          <a href="/products/billing/invoices">Invoices</a>
          <a href="/products">Products</a>
        </body></html>
        """

        result = parse(SchemaStrategy(), html)
        nodes = by_label(result)

        assert len(result.nodes) == 3
        assert nodes["Products"].type == "product"
        assert nodes["Billing"].type == "feature"
        assert nodes["Invoices"].type == "component"
        confidences = {(e.source, e.target): e.confidence for e in result.edges}
        assert confidences == {
            ("product-products", "feature-billing"): 0.7,
            ("feature-billing", "component-invoices"): 0.6,
        }


class TestHtmlStrategy:
    @pytest.mark.parametrize("html, expected", [
        ("<nav></nav>", True),
        ("<aside></aside>", True),
        ("<h1>Title</h1>", True),
        ("<h2>Title</h2>", True),
        ("<div>Plain text</div>", False),
    ])
    def test_can_handle(self, html, expected):
        assert HtmlStrategy().can_handle(html, "https://docs.example.com") is expected

    def test_walks_nested_navigation(self):
        result = parse(HtmlStrategy(), NAV_HTML)
        nodes = by_label(result)

        assert nodes["Getting Started"].type == "product"
        assert nodes["Installation"].type == "feature"
        assert nodes["Linux Setup"].type == "component"
        assert nodes["Linux Setup"].level == 3
        assert {(e.source, e.target) for e in result.edges} == {
            ("product-getting-started", "feature-installation"),
            ("feature-installation", "component-linux-setup"),
        }
        assert result.metadata.confidence == 0.7

    def test_heading_hierarchy(self):
        result = parse(HtmlStrategy(), "<h1>Acme Platform</h1><h2>Billing</h2><h3>Invoices API</h3>")
        nodes = by_label(result)

        assert nodes["Acme Platform"].type == "product"
        assert nodes["Billing"].type == "feature"
        assert nodes["Invoices API"].type == "component"

    def test_breadcrumb_position_sets_type(self):
        html = """
        <div class="breadcrumb">
          <a href="/">Products</a>
          <a href="/api">API</a>
          <a href="/api/rest">REST</a>
        </div>
        """

        nodes = by_label(parse(HtmlStrategy(), html))

        assert nodes["Products"].type == "product"
        assert nodes["API"].type == "feature"
        assert nodes["REST"].type == "component"
        assert nodes["REST"].data.doc_url == "/api/rest"

    def test_labels_outside_length_window_are_skipped(self):
        html = f"<h1>AB</h1><h2>{'x' * 101}</h2><h2>Valid Label</h2>"

        nodes = by_label(parse(HtmlStrategy(), html))

        assert list(nodes) == ["Valid Label"]

    def test_same_label_from_two_sources_is_kept_once(self):
        html = NAV_HTML.replace("</body>", "<h1>Getting Started</h1></body>")

        result = parse(HtmlStrategy(), html)

        ids = [node.id for node in result.nodes]
        assert ids.count("product-getting-started") == 1

    def test_empty_page_warns(self):
        result = parse(HtmlStrategy(), "")

        assert result.nodes == []
        assert result.metadata.confidence == 0.3
        assert "No nodes extracted from HTML structure" in result.metadata.warnings


class TestHeuristicStrategy:
    def test_handles_any_non_empty_html(self):
        strategy = HeuristicStrategy()
        assert strategy.can_handle("<div>x</div>", "https://x.com")
        assert not strategy.can_handle("", "https://x.com")

    def test_ranks_elements_into_types(self):
        links = "".join(
            f'<a href="/docs/{i}">Documentation Topic {i}</a>' for i in range(5)
        )

        result = parse(HeuristicStrategy(), f"<nav>{links}</nav>")
        types = [node.type for node in result.nodes]

        assert types == ["product", "feature", "feature", "component", "component"]
        assert len(result.edges) == 4
        assert result.metadata.confidence == 0.5

    def test_nothing_to_score(self):
        result = parse(HeuristicStrategy(), "<div>Plain text</div>")

        assert result.nodes == []
        assert result.metadata.confidence == 0.2
        assert "No elements scored above threshold" in result.metadata.warnings

    def test_scoring_failure_becomes_warning(self, monkeypatch):
        strategy = HeuristicStrategy()

        def explode(soup):
            raise RuntimeError("boom")

        monkeypatch.setattr(strategy, "_score_elements", explode)

        result = parse(strategy, "<nav><a href='/a'>Some Link</a></nav>")

        assert result.nodes == []
        assert any("boom" in w for w in result.metadata.warnings)
