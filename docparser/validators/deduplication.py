"""
Deduplication validator: merges near-duplicate nodes and remaps edges.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from rapidfuzz.distance import Levenshtein

from docparser.models.graph import ExtractedEdge, ExtractedNode, NodeData

DEFAULT_SIMILARITY_THRESHOLD = 0.85


@dataclass
class DeduplicationResult:
    """Surviving nodes plus a mapping from every original id to its survivor."""
    nodes: List[ExtractedNode] = field(default_factory=list)
    id_mapping: Dict[str, str] = field(default_factory=dict)


def calculate_similarity(first: str, second: str) -> float:
    """Case-insensitive similarity: 1 - edit distance / longer length (1.0 for two empty strings)."""
    return Levenshtein.normalized_similarity(first.lower(), second.lower())


def _completeness(node: ExtractedNode) -> int:
    data = node.data
    score = 0
    if data.description:
        score += 2
    if data.doc_url:
        score += 1
    if data.icon:
        score += 1
    if data.tags:
        score += 1
    return score


def merge_nodes(first: ExtractedNode, second: ExtractedNode) -> ExtractedNode:
    """
    Merge two nodes, keeping the more complete one as the base.

    Ties go to the second node. Tags are unioned, additional links
    concatenated, and missing scalar fields filled from the other node.
    """
    primary, secondary = (first, second) if _completeness(first) > _completeness(second) else (second, first)
    p, s = primary.data, secondary.data

    tags = list(dict.fromkeys((p.tags or []) + (s.tags or [])))
    links = (p.additional_links or []) + (s.additional_links or [])

    return primary.model_copy(update={
        "data": NodeData(
            label=p.label,
            description=p.description or s.description,
            icon=p.icon or s.icon,
            color=p.color or s.color,
            tags=tags,
            doc_url=p.doc_url or s.doc_url,
            additional_links=links,
        ),
    })


def deduplicate_nodes(
    nodes: Sequence[ExtractedNode],
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> DeduplicationResult:
    """
    Deduplicate nodes of the same type by label similarity.

    Each unprocessed node anchors a group of later same-type nodes whose
    similarity to it is at least the threshold; the group is folded left to
    right with merge_nodes. The fold is order dependent when completeness
    scores tie.
    """
    result = DeduplicationResult()
    processed = set()

    for i, anchor in enumerate(nodes):
        if i in processed:
            continue

        group = [i]
        for j in range(i + 1, len(nodes)):
            if j in processed:
                continue
            candidate = nodes[j]
            if candidate.type != anchor.type:
                continue
            if calculate_similarity(anchor.data.label, candidate.data.label) >= threshold:
                group.append(j)
                processed.add(j)

        merged = anchor
        for index in group[1:]:
            merged = merge_nodes(merged, nodes[index])

        result.nodes.append(merged)
        for index in group:
            result.id_mapping[nodes[index].id] = merged.id

    return result


def update_edge_references(
    edges: Sequence[ExtractedEdge],
    id_mapping: Dict[str, str],
) -> List[ExtractedEdge]:
    """
    Remap edge endpoints after deduplication.

    Edges that become self-referencing are dropped, and edges that collapse to
    the same (source, target, type) keep only their first occurrence.
    """
    updated: List[ExtractedEdge] = []
    seen = set()

    for edge in edges:
        source = id_mapping.get(edge.source, edge.source)
        target = id_mapping.get(edge.target, edge.target)

        if source == target:
            continue

        key = (source, target, edge.type or "default")
        if key in seen:
            continue
        seen.add(key)

        updated.append(edge.model_copy(update={
            "id": f"{source}-{target}",
            "source": source,
            "target": target,
        }))

    return updated
