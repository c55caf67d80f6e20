"""
Substrate Types
===============

Immutable value objects for the geometric substrate.

Everything here is built once per input snapshot and never patched.
Derived views are new objects. Every type serializes to plain JSON
via to_dict() (maps become dicts of lists, sets become sorted lists).

Hierarchy:
    Edge → SimilarityGraph (knn, mutual, strong)
    NodeStats (one per paragraph)
    Component → TopologyMetrics
    ShapeClassification (four continuous signals, no label)
    SimilarityStats / ExtendedSimilarityStats → SubstrateMeta
    GeometricSubstrate (degenerate variant = same type, degenerate=True)
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .contracts.signals import SubstrateSignal


QUANTIZATION_LABEL = "1e-6"
TIE_BREAKER = "lexicographic"


class GraphKind(Enum):
    """The three graph variants sharing the Edge shape."""
    KNN = "knn"
    MUTUAL = "mutual"
    STRONG = "strong"


class DegenerateReason(Enum):
    """Why a substrate could not be built normally."""
    INSUFFICIENT_PARAGRAPHS = "insufficient_paragraphs"
    EMBEDDING_FAILURE = "embedding_failure"
    ALL_EMBEDDINGS_IDENTICAL = "all_embeddings_identical"


# =============================================================================
# EDGES AND GRAPHS
# =============================================================================

@dataclass(frozen=True)
class Edge:
    """Similarity edge. rank is 1-indexed (1 = nearest neighbor)."""
    source: str
    target: str
    similarity: float
    rank: int

    @property
    def key(self) -> Tuple[str, str]:
        """Canonical (sorted) endpoint pair."""
        if self.source < self.target:
            return (self.source, self.target)
        return (self.target, self.source)

    def reversed(self) -> "Edge":
        return Edge(source=self.target, target=self.source, similarity=self.similarity, rank=self.rank)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "similarity": self.similarity,
            "rank": self.rank,
        }


@dataclass(frozen=True)
class SimilarityGraph:
    """One graph variant.

    edges holds one record per undirected edge, sorted by canonical key.
    adjacency lists every edge from both endpoints' perspective; it is a
    read-only view and stays out of the hash (it is derived from edges).
    """
    kind: GraphKind
    edges: Tuple[Edge, ...]
    adjacency: Mapping[str, Tuple[Edge, ...]] = field(hash=False)
    k: int
    soft_threshold: Optional[float] = None
    threshold_method: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(
            self, "adjacency", MappingProxyType({nid: tuple(adj) for nid, adj in self.adjacency.items()}),
        )

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    def degree(self, node_id: str) -> int:
        return len(self.adjacency.get(node_id, ()))

    def neighbors(self, node_id: str) -> List[str]:
        return [e.target for e in self.adjacency.get(node_id, ())]

    def edge_keys(self) -> set:
        return {e.key for e in self.edges}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "k": self.k,
            "soft_threshold": self.soft_threshold,
            "threshold_method": self.threshold_method,
            "edges": [e.to_dict() for e in self.edges],
            "adjacency": {
                node_id: [e.to_dict() for e in edges]
                for node_id, edges in sorted(self.adjacency.items())
            },
        }


@dataclass(frozen=True)
class SubstrateGraphs:
    knn: SimilarityGraph
    mutual: SimilarityGraph
    strong: SimilarityGraph

    def get(self, kind: str) -> SimilarityGraph:
        return getattr(self, kind)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "knn": self.knn.to_dict(),
            "mutual": self.mutual.to_dict(),
            "strong": self.strong.to_dict(),
        }


# =============================================================================
# NODES
# =============================================================================

@dataclass(frozen=True)
class NodeStats:
    """Per-paragraph local statistics."""
    paragraph_id: str
    model_index: int
    stance: str
    contested: bool
    statement_ids: Tuple[str, ...]

    # Similarity stats
    top1_sim: float
    avg_topk_sim: float

    # Connectivity
    knn_degree: int
    mutual_degree: int
    strong_degree: int

    # 1 - top1_sim (higher = more isolated)
    isolation_score: float

    # Self + mutual-kNN neighbors, sorted
    mutual_neighborhood_patch: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "paragraph_id": self.paragraph_id,
            "model_index": self.model_index,
            "stance": self.stance,
            "contested": self.contested,
            "statement_ids": list(self.statement_ids),
            "top1_sim": self.top1_sim,
            "avg_topk_sim": self.avg_topk_sim,
            "knn_degree": self.knn_degree,
            "mutual_degree": self.mutual_degree,
            "strong_degree": self.strong_degree,
            "isolation_score": self.isolation_score,
            "mutual_neighborhood_patch": list(self.mutual_neighborhood_patch),
        }


# =============================================================================
# TOPOLOGY AND SHAPE
# =============================================================================

@dataclass(frozen=True)
class Component:
    """Connected component. IDs are assigned after the deterministic sort."""
    id: str
    node_ids: Tuple[str, ...]
    size: int
    internal_density: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "node_ids": list(self.node_ids),
            "size": self.size,
            "internal_density": self.internal_density,
        }


@dataclass(frozen=True)
class TopologyMetrics:
    components: Tuple[Component, ...]
    largest_component_ratio: float
    isolation_ratio: float
    global_density: float

    @property
    def component_count(self) -> int:
        return len(self.components)

    @property
    def largest_component(self) -> Optional[Component]:
        return self.components[0] if self.components else None

    def component_of(self) -> Dict[str, str]:
        """node_id -> component id."""
        return {nid: c.id for c in self.components for nid in c.node_ids}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "components": [c.to_dict() for c in self.components],
            "component_count": self.component_count,
            "largest_component_ratio": self.largest_component_ratio,
            "isolation_ratio": self.isolation_ratio,
            "global_density": self.global_density,
        }


@dataclass(frozen=True)
class ShapeClassification:
    """Four continuous structural signals in [0, 1].

    No categorical label is derived from these.
    """
    fragmentation: float
    bimodality: float
    parallelism: float
    convergence: float

    @property
    def confidence(self) -> float:
        return max(self.fragmentation, self.bimodality, self.parallelism, self.convergence)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "confidence": self.confidence,
            "signals": {
                "fragmentation": self.fragmentation,
                "bimodality": self.bimodality,
                "parallelism": self.parallelism,
                "convergence": self.convergence,
            },
        }


# =============================================================================
# META
# =============================================================================

@dataclass(frozen=True)
class SimilarityStats:
    """Distribution of top-k similarities. Diagnostic only."""
    max: float = 0.0
    p95: float = 0.0
    p80: float = 0.0
    p50: float = 0.0
    mean: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"max": self.max, "p95": self.p95, "p80": self.p80, "p50": self.p50, "mean": self.mean}


@dataclass(frozen=True)
class ExtendedSimilarityStats:
    """Distribution of all canonical pairwise similarities (pre-kNN)."""
    count: int = 0
    min: float = 0.0
    p10: float = 0.0
    p50: float = 0.0
    p90: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    stddev: float = 0.0

    @property
    def discrimination_range(self) -> float:
        return self.p90 - self.p10

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "min": self.min,
            "p10": self.p10,
            "p50": self.p50,
            "p90": self.p90,
            "max": self.max,
            "mean": self.mean,
            "stddev": self.stddev,
            "discrimination_range": self.discrimination_range,
        }


@dataclass(frozen=True)
class SubstrateMeta:
    embedding_backend: str
    embedding_success: bool
    node_count: int
    knn_edge_count: int
    mutual_edge_count: int
    strong_edge_count: int
    similarity_stats: SimilarityStats
    extended_similarity_stats: ExtendedSimilarityStats
    build_time_ms: float
    params_hash: str
    quantization: str = QUANTIZATION_LABEL
    tie_breaker: str = TIE_BREAKER
    signals: Tuple[SubstrateSignal, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "embedding_backend": self.embedding_backend,
            "embedding_success": self.embedding_success,
            "node_count": self.node_count,
            "knn_edge_count": self.knn_edge_count,
            "mutual_edge_count": self.mutual_edge_count,
            "strong_edge_count": self.strong_edge_count,
            "similarity_stats": self.similarity_stats.to_dict(),
            "extended_similarity_stats": self.extended_similarity_stats.to_dict(),
            "quantization": self.quantization,
            "tie_breaker": self.tie_breaker,
            "build_time_ms": self.build_time_ms,
            "params_hash": self.params_hash,
            "signals": [s.to_dict() for s in self.signals],
        }


# =============================================================================
# SUBSTRATE
# =============================================================================

@dataclass(frozen=True)
class GeometricSubstrate:
    """The full substrate.

    A degenerate substrate has the same shape: singleton components,
    empty graphs, isolation_ratio = 1, degenerate=True and a reason.
    """
    nodes: Tuple[NodeStats, ...]
    graphs: SubstrateGraphs
    topology: TopologyMetrics
    shape: ShapeClassification
    meta: SubstrateMeta
    degenerate: bool = False
    degenerate_reason: Optional[DegenerateReason] = None

    @property
    def node_ids(self) -> List[str]:
        return [n.paragraph_id for n in self.nodes]

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    def nodes_by_id(self) -> Dict[str, NodeStats]:
        return {n.paragraph_id: n for n in self.nodes}

    def model_indices(self) -> List[int]:
        """Observed model indices, ascending (natural order)."""
        return sorted({n.model_index for n in self.nodes})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "degenerate": self.degenerate,
            "degenerate_reason": self.degenerate_reason.value if self.degenerate_reason else None,
            "nodes": [n.to_dict() for n in self.nodes],
            "graphs": self.graphs.to_dict(),
            "topology": self.topology.to_dict(),
            "shape": self.shape.to_dict(),
            "meta": self.meta.to_dict(),
        }


def is_degenerate(substrate: GeometricSubstrate) -> bool:
    return substrate.degenerate
