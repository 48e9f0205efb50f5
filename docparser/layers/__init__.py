"""Layers package initialization."""
from docparser.layers.parsing import (
    ParsingLayer,
    detect_strategy,
    get_available_strategies,
    parse_documentation,
)
from docparser.layers.ingestion import IngestionLayer

__all__ = [
    "ParsingLayer",
    "IngestionLayer",
    "parse_documentation",
    "detect_strategy",
    "get_available_strategies",
]
