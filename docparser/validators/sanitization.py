"""
Sanitization validator: cleans node text and drops unsafe links.
"""
import re
from typing import List, Sequence

from docparser.models.graph import AdditionalLink, ExtractedNode
from docparser.utils.text import is_valid_url, sanitize_text, truncate_description

_SCRIPT_BLOCK = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.I)
_QUOTED_HANDLER = re.compile(r"on\w+\s*=\s*[\"'][^\"']*[\"']", re.I)
_BARE_HANDLER = re.compile(r"on\w+\s*=\s*[^\s>]*", re.I)
_JAVASCRIPT_SCHEME = re.compile(r"javascript:", re.I)


def sanitize_node(node: ExtractedNode) -> ExtractedNode:
    """Return a cleaned copy of a node. Missing optional fields stay unset."""
    data = node.data

    description = (
        truncate_description(sanitize_text(data.description), 200) if data.description else None
    )
    doc_url = data.doc_url if data.doc_url and is_valid_url(data.doc_url) else None

    tags = None
    if data.tags is not None:
        tags = [cleaned for cleaned in (sanitize_text(tag) for tag in data.tags) if cleaned]

    links = None
    if data.additional_links is not None:
        links = []
        for link in data.additional_links:
            title = sanitize_text(link.title)
            if title and is_valid_url(link.url):
                links.append(AdditionalLink(title=title, url=link.url))

    return node.model_copy(update={
        "data": data.model_copy(update={
            "label": sanitize_text(data.label),
            "description": description or None,
            "doc_url": doc_url,
            "tags": tags,
            "additional_links": links,
        }),
    })


def sanitize_nodes(nodes: Sequence[ExtractedNode]) -> List[ExtractedNode]:
    return [sanitize_node(node) for node in nodes]


def remove_dangerous_content(text: str) -> str:
    """
    Strip script blocks, inline event handlers and javascript: URLs.

    Optional hardening; the default pipeline does not call it.
    """
    cleaned = _SCRIPT_BLOCK.sub("", text)
    cleaned = _QUOTED_HANDLER.sub("", cleaned)
    cleaned = _BARE_HANDLER.sub("", cleaned)
    return _JAVASCRIPT_SCHEME.sub("", cleaned)


def is_node_safe(node: ExtractedNode) -> bool:
    """Detect script tags or javascript: URLs in a node's text and link."""
    data = node.data

    for text in (data.label, data.description):
        if text and ("<script" in text or "javascript:" in text):
            return False

    if data.doc_url and data.doc_url.startswith("javascript:"):
        return False

    return True
