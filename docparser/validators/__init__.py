"""Validators package initialization."""
from docparser.validators.deduplication import (
    DeduplicationResult,
    deduplicate_nodes,
    update_edge_references,
)
from docparser.validators.filtering import FilterOptions, filter_nodes, get_filter_stats
from docparser.validators.sanitization import (
    is_node_safe,
    remove_dangerous_content,
    sanitize_node,
    sanitize_nodes,
)

__all__ = [
    "DeduplicationResult",
    "deduplicate_nodes",
    "update_edge_references",
    "FilterOptions",
    "filter_nodes",
    "get_filter_stats",
    "sanitize_node",
    "sanitize_nodes",
    "remove_dangerous_content",
    "is_node_safe",
]
