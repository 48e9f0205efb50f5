"""Strategies package initialization."""
from docparser.strategies.base import BaseStrategy
from docparser.strategies.template import TemplateStrategy
from docparser.strategies.schema import SchemaStrategy
from docparser.strategies.html import HtmlStrategy
from docparser.strategies.heuristic import HeuristicStrategy
from docparser.strategies.navigation import NavigationStrategy, parse_from_navigation
from docparser.strategies.hybrid import HybridStrategy, parse_hybrid
from docparser.strategies.crawl import DeepCrawler, deep_crawl

__all__ = [
    "BaseStrategy",
    "TemplateStrategy",
    "SchemaStrategy",
    "HtmlStrategy",
    "HeuristicStrategy",
    "NavigationStrategy",
    "HybridStrategy",
    "DeepCrawler",
    "parse_from_navigation",
    "parse_hybrid",
    "deep_crawl",
]
