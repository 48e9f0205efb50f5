"""
Filtering validator: removes irrelevant nodes and caps the node count.
"""
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Sequence

from docparser.models.graph import ExtractedNode, NodeType

# Navigation chrome that never describes a product concept
EXCLUDED_LABELS = frozenset({
    "home",
    "about",
    "contact",
    "privacy",
    "terms",
    "login",
    "sign up",
    "signup",
    "sign in",
    "signin",
    "search",
    "menu",
    "navigation",
    "footer",
    "header",
    "sidebar",
    "back",
    "next",
    "previous",
    "skip",
    "close",
    "cancel",
})

TYPE_PRIORITY = {
    NodeType.PRODUCT: 100,
    NodeType.FEATURE: 50,
    NodeType.COMPONENT: 25,
}


@dataclass(frozen=True)
class FilterOptions:
    """Tunable filtering criteria."""
    max_nodes: int = 50
    min_label_length: int = 3
    max_label_length: int = 100
    excluded_labels: FrozenSet[str] = field(default=EXCLUDED_LABELS)
    require_description: bool = False


def calculate_priority(node: ExtractedNode) -> int:
    """Higher score = kept first when the node cap is hit."""
    score = TYPE_PRIORITY.get(node.type, 0)

    data = node.data
    if data.description:
        score += 10
    if data.doc_url:
        score += 5
    if data.icon:
        score += 3
    if data.tags:
        score += 2

    if node.level:
        score += (4 - node.level) * 5

    return score


def _passes(node: ExtractedNode, options: FilterOptions) -> bool:
    label = node.data.label
    if not options.min_label_length <= len(label) <= options.max_label_length:
        return False
    if label.lower().strip() in options.excluded_labels:
        return False
    if options.require_description and not node.data.description:
        return False
    return True


def filter_nodes(
    nodes: Sequence[ExtractedNode],
    options: FilterOptions = FilterOptions(),
) -> List[ExtractedNode]:
    """
    Drop nodes with out-of-range or blacklisted labels, then keep at most
    max_nodes ranked by priority. Truncation is lossy by design of the cap,
    not an error.
    """
    filtered = [node for node in nodes if _passes(node, options)]

    if len(filtered) > options.max_nodes:
        filtered = sorted(filtered, key=calculate_priority, reverse=True)[:options.max_nodes]

    return filtered


def get_filter_stats(original_count: int, filtered_count: int) -> Dict[str, float]:
    """Summarize how many nodes a filtering pass removed."""
    removed = original_count - filtered_count
    return {
        "original": original_count,
        "filtered": filtered_count,
        "removed": removed,
        "removal_rate": removed / original_count if original_count > 0 else 0,
    }
