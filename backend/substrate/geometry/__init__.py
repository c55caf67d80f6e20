"""
Geometry primitives: similarity graphs, soft threshold, topology, shape.

Pure functions only. No I/O, no environment reads.
"""

from .similarity import (
    QUANTIZATION,
    quantize,
    cosine_similarity,
    normalize,
    mean_vector,
    SimilarityMatrix,
    compute_similarity_matrix,
    RankedNeighbor,
    NeighborGraphs,
    rank_neighbors,
    build_knn_graphs,
)
from .threshold import (
    percentile,
    compute_soft_threshold,
    build_strong_graph,
    compute_similarity_stats,
    compute_extended_similarity_stats,
)
from .topology import UnionFind, connected_components, count_components, compute_topology
from .shape import classify_shape
from .nodes import compute_node_stats

__all__ = [
    "QUANTIZATION",
    "quantize",
    "cosine_similarity",
    "normalize",
    "mean_vector",
    "SimilarityMatrix",
    "compute_similarity_matrix",
    "RankedNeighbor",
    "NeighborGraphs",
    "rank_neighbors",
    "build_knn_graphs",
    "percentile",
    "compute_soft_threshold",
    "build_strong_graph",
    "compute_similarity_stats",
    "compute_extended_similarity_stats",
    "UnionFind",
    "connected_components",
    "count_components",
    "compute_topology",
    "classify_shape",
    "compute_node_stats",
]
