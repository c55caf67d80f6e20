"""
Similarity Graphs
=================

Pairwise cosine similarity over paragraph embeddings, and the two
rank-based graphs built from it:

    kNN     symmetric union of every node's top-k neighbors
    mutual  kNN edges where each endpoint ranks the other in its top-k
            (edge rank = min of the two ranks)

All similarities are quantized to 1e-6 before any comparison, and
every tie is broken by lexicographic node ID, so the same input always
produces the same edges in the same order.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..types import Edge, GraphKind, SimilarityGraph

logger = logging.getLogger(__name__)


QUANTIZATION = 1e6


def quantize(value: float) -> float:
    """Round to 1e-6 (half up) so comparisons are deterministic."""
    return math.floor(value * QUANTIZATION + 0.5) / QUANTIZATION


def quantize_array(values: np.ndarray) -> np.ndarray:
    return np.floor(values * QUANTIZATION + 0.5) / QUANTIZATION


def cosine_similarity(a, b) -> float:
    """Cosine similarity between two embedding vectors."""
    a, b = np.asarray(a, dtype=float), np.asarray(b, dtype=float)
    norm_a, norm_b = np.linalg.norm(a), np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


def normalize(vector) -> np.ndarray:
    v = np.asarray(vector, dtype=float)
    norm = np.linalg.norm(v)
    if norm == 0:
        return v
    return v / norm


def mean_vector(vectors: Sequence) -> Optional[np.ndarray]:
    """Unit-length mean of vectors (None for an empty list)."""
    if not vectors:
        return None
    return normalize(np.mean(np.asarray(vectors, dtype=float), axis=0))


@dataclass(frozen=True, eq=False)
class SimilarityMatrix:
    """Quantized cosine matrix over the embedded subset of node IDs.

    ids follow the caller's paragraph order; values[i, j] is the
    similarity between ids[i] and ids[j] (diagonal unused).
    """
    ids: Tuple[str, ...]
    values: np.ndarray

    @property
    def size(self) -> int:
        return len(self.ids)

    def pairwise(self) -> List[float]:
        """All canonical (i < j) similarities."""
        if self.size < 2:
            return []
        upper = np.triu_indices(self.size, k=1)
        return [float(v) for v in self.values[upper]]


def compute_similarity_matrix(
    paragraph_ids: Sequence[str],
    embeddings: Mapping[str, Sequence[float]],
) -> SimilarityMatrix:
    """Cosine similarity between every pair of embedded paragraphs.

    Paragraphs without an embedding are left out; they become isolated
    nodes downstream.
    """
    ids = tuple(pid for pid in paragraph_ids if pid in embeddings)
    if not ids:
        return SimilarityMatrix(ids=(), values=np.zeros((0, 0)))

    rows = np.asarray([embeddings[pid] for pid in ids], dtype=float)
    norms = np.linalg.norm(rows, axis=1)
    norms[norms == 0] = 1.0
    unit = rows / norms[:, None]
    values = quantize_array(unit @ unit.T)
    return SimilarityMatrix(ids=ids, values=values)


# =============================================================================
# NEIGHBOR RANKING
# =============================================================================

@dataclass(frozen=True)
class RankedNeighbor:
    target: str
    similarity: float
    rank: int  # 1-indexed


@dataclass(frozen=True)
class NeighborGraphs:
    """kNN + mutual graphs plus the per-node similarity lists they came from."""
    knn: SimilarityGraph
    mutual: SimilarityGraph
    ranked: Dict[str, Tuple[RankedNeighbor, ...]]
    top1_sims: Dict[str, float]
    topk_sims: Dict[str, Tuple[float, ...]]


def rank_neighbors(matrix: SimilarityMatrix, k: int) -> Dict[str, Tuple[RankedNeighbor, ...]]:
    """Top-k neighbors per embedded node, similarity desc then ID asc."""
    ranked = {}
    for i, source in enumerate(matrix.ids):
        candidates = [
            (target, float(matrix.values[i, j]))
            for j, target in enumerate(matrix.ids)
            if j != i
        ]
        candidates.sort(key=lambda c: (-c[1], c[0]))
        ranked[source] = tuple(
            RankedNeighbor(target=target, similarity=sim, rank=idx + 1)
            for idx, (target, sim) in enumerate(candidates[:k])
        )
    return ranked


def _edge_key(a: str, b: str) -> Tuple[str, str]:
    return (a, b) if a < b else (b, a)


def _freeze_graph(
    kind: GraphKind,
    edges: List[Edge],
    adjacency: Dict[str, List[Edge]],
    k: int,
) -> SimilarityGraph:
    edges = sorted(edges, key=lambda e: e.key)
    return SimilarityGraph(
        kind=kind,
        edges=tuple(edges),
        adjacency={nid: tuple(adj) for nid, adj in adjacency.items()},
        k=k,
    )


def build_knn_graphs(
    paragraph_ids: Sequence[str],
    embeddings: Mapping[str, Sequence[float]],
    k: int = 5,
    matrix: Optional[SimilarityMatrix] = None,
) -> NeighborGraphs:
    """Build the kNN and mutual-kNN graphs.

    Every paragraph ID gets an adjacency entry (possibly empty). One edge
    record is stored per undirected pair, keyed by the sorted ID pair;
    both endpoints' adjacency lists carry it.

    Args:
        paragraph_ids: node universe, in input order
        embeddings: {paragraph_id: vector}; missing IDs get no edges
        k: neighbors kept per node
        matrix: precomputed similarity matrix (computed if omitted)
    """
    if matrix is None:
        matrix = compute_similarity_matrix(paragraph_ids, embeddings)

    ranked = rank_neighbors(matrix, k)

    top1_sims = {}
    topk_sims = {}
    for pid in paragraph_ids:
        neighbors = ranked.get(pid, ())
        top1_sims[pid] = neighbors[0].similarity if neighbors else 0.0
        topk_sims[pid] = tuple(n.similarity for n in neighbors)

    # kNN: symmetric union, first writer of a pair fixes its orientation and rank
    knn_edges: Dict[Tuple[str, str], Edge] = {}
    knn_adjacency: Dict[str, List[Edge]] = {pid: [] for pid in paragraph_ids}
    for source in paragraph_ids:
        for neighbor in ranked.get(source, ()):
            key = _edge_key(source, neighbor.target)
            if key in knn_edges:
                continue
            edge = Edge(source=source, target=neighbor.target, similarity=neighbor.similarity, rank=neighbor.rank)
            knn_edges[key] = edge
            knn_adjacency[source].append(edge)
            knn_adjacency[neighbor.target].append(edge.reversed())

    # Mutual: both endpoints list each other
    rank_lookup = {
        source: {n.target: n.rank for n in neighbors}
        for source, neighbors in ranked.items()
    }
    mutual_edges: List[Edge] = []
    mutual_adjacency: Dict[str, List[Edge]] = {pid: [] for pid in paragraph_ids}
    for key in sorted(knn_edges):
        edge = knn_edges[key]
        forward = rank_lookup.get(edge.source, {}).get(edge.target)
        backward = rank_lookup.get(edge.target, {}).get(edge.source)
        if forward is None or backward is None:
            continue
        mutual = Edge(source=edge.source, target=edge.target, similarity=edge.similarity, rank=min(forward, backward))
        mutual_edges.append(mutual)
        mutual_adjacency[edge.source].append(mutual)
        mutual_adjacency[edge.target].append(mutual.reversed())

    logger.debug(
        f"kNN graphs: {len(paragraph_ids)} nodes, {matrix.size} embedded, "
        f"{len(knn_edges)} knn edges, {len(mutual_edges)} mutual edges (k={k})"
    )

    return NeighborGraphs(
        knn=_freeze_graph(GraphKind.KNN, list(knn_edges.values()), knn_adjacency, k),
        mutual=_freeze_graph(GraphKind.MUTUAL, mutual_edges, mutual_adjacency, k),
        ranked=ranked,
        top1_sims=top1_sims,
        topk_sims=topk_sims,
    )
