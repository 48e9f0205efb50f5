"""
Graph models for the Documentation Map Parser.
These models are the contract handed to the graph editor and persistence layer,
regardless of which strategy produced the nodes and edges.
"""
from typing import Any, Dict, List, Optional
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class NodeType(str, Enum):
    """Kind of item extracted from documentation."""
    PRODUCT = "product"
    FEATURE = "feature"
    COMPONENT = "component"


class EdgeType(str, Enum):
    """Relationship between two nodes."""
    HIERARCHY = "hierarchy"
    RELATED = "related"
    DEPENDS_ON = "depends-on"
    OPTIONAL = "optional"


class InferenceMethod(str, Enum):
    """How an edge was inferred (debugging aid)."""
    HIERARCHY = "hierarchy"
    KEYWORD = "keyword"
    PROXIMITY = "proximity"
    EXPLICIT = "explicit"


class GraphModel(BaseModel):
    """
    Base class for graph values.

    Instances are frozen: pipeline stages build new copies instead of mutating.
    Field names are snake_case in Python and camelCase on the wire.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, use_enum_values=True)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using wire aliases, omitting unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class AdditionalLink(GraphModel):
    """Extra documentation link attached to a node."""
    title: str
    url: str


class NodeData(GraphModel):
    """Display data for a node."""
    label: str
    description: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    tags: Optional[List[str]] = None
    doc_url: Optional[str] = Field(default=None, alias="docUrl")
    additional_links: Optional[List[AdditionalLink]] = Field(default=None, alias="additionalLinks")


class ExtractedNode(GraphModel):
    """Node extracted from documentation before layout calculation."""
    id: str
    type: NodeType
    data: NodeData
    level: Optional[int] = Field(default=None, ge=1, le=3)
    source_selector: Optional[str] = Field(default=None, alias="sourceSelector")


class EdgeStyle(GraphModel):
    """Optional rendering overrides for an edge."""
    stroke_dasharray: Optional[str] = Field(default=None, alias="strokeDasharray")


class ExtractedEdge(GraphModel):
    """Directed, typed relation between two extracted nodes."""
    id: str
    source: str
    target: str
    type: Optional[EdgeType] = None
    label: Optional[str] = None
    floating: Optional[bool] = None
    style: Optional[EdgeStyle] = None
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    inference_method: Optional[InferenceMethod] = Field(default=None, alias="inferenceMethod")


class GenerationStats(GraphModel):
    """Counts collected while running the pipeline."""
    nodes_extracted: int = 0
    nodes_final: int = 0
    edges_extracted: int = 0
    nodes_deduplicated: int = 0
    nodes_filtered: int = 0
    duration_ms: int = 0
    pages_crawled: Optional[int] = None  # deep crawl only


class GenerationMetadata(GraphModel):
    """Metadata about one parse, stored alongside the generated map."""
    source_url: str
    generated_at: str
    strategy: str
    confidence: float
    warnings: List[str] = Field(default_factory=list)
    auto_generated_node_ids: Optional[List[str]] = None
    stats: Optional[GenerationStats] = None


class ParseResult(GraphModel):
    """Nodes, edges and metadata produced by a strategy or the full pipeline."""
    nodes: List[ExtractedNode] = Field(default_factory=list)
    edges: List[ExtractedEdge] = Field(default_factory=list)
    metadata: GenerationMetadata


class FetchResult(GraphModel):
    """Raw HTML retrieved from a documentation URL."""
    url: str  # final URL after redirects
    html: str
    content_type: str = "text/html"
    status_code: int = 200


class UrlValidation(GraphModel):
    """Outcome of the SSRF guard."""
    valid: bool
    error: Optional[str] = None
