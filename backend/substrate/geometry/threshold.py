"""
Soft threshold and the strong backbone.

The threshold is a field-intensity cutoff derived from the top-1
similarity distribution. It filters mutual edges into the strong graph
without forcing any merges. Similarity statistics are diagnostic only
and never feed back into the threshold.
"""

import logging
import math
from typing import Dict, Iterable, List, Mapping, Sequence

from ..params import ThresholdParams
from ..types import (
    Edge,
    ExtendedSimilarityStats,
    GraphKind,
    SimilarityGraph,
    SimilarityStats,
)
from .similarity import quantize

logger = logging.getLogger(__name__)


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """Nearest-rank percentile over an ascending list: values[floor(len * p)]."""
    if not sorted_values:
        return 0.0
    idx = int(math.floor(len(sorted_values) * p))
    return sorted_values[min(idx, len(sorted_values) - 1)]


def compute_soft_threshold(
    top1_sims: Mapping[str, float],
    params: ThresholdParams = ThresholdParams(),
) -> float:
    """Percentile of positive top-1 similarities, clamped and quantized.

    Always returns a value in [clamp_min, clamp_max]. Empty input
    returns clamp_min.
    """
    if params.method == "fixed":
        raw = params.fixed_value
    else:
        sims = sorted(s for s in top1_sims.values() if s > 0)
        if not sims:
            return params.clamp_min
        raw = percentile(sims, params.percentile)

    clamped = max(params.clamp_min, min(params.clamp_max, raw))
    return quantize(clamped)


def build_strong_graph(
    mutual: SimilarityGraph,
    paragraph_ids: Sequence[str],
    soft_threshold: float,
    threshold_method: str,
) -> SimilarityGraph:
    """Mutual edges with similarity >= soft_threshold."""
    adjacency: Dict[str, List[Edge]] = {pid: [] for pid in paragraph_ids}
    edges = []
    for edge in mutual.edges:
        if edge.similarity < soft_threshold:
            continue
        if edge.source not in adjacency or edge.target not in adjacency:
            logger.debug(f"Strong graph: skipping edge {edge.key} with unknown endpoint")
            continue
        edges.append(edge)
        adjacency[edge.source].append(edge)
        adjacency[edge.target].append(edge.reversed())

    return SimilarityGraph(
        kind=GraphKind.STRONG,
        edges=tuple(edges),
        adjacency={nid: tuple(adj) for nid, adj in adjacency.items()},
        k=mutual.k,
        soft_threshold=soft_threshold,
        threshold_method=threshold_method,
    )


def compute_similarity_stats(topk_sims: Mapping[str, Iterable[float]]) -> SimilarityStats:
    """max/p95/p80/p50/mean over every top-k similarity (zeros on empty input)."""
    all_sims = sorted(s for sims in topk_sims.values() for s in sims)
    if not all_sims:
        return SimilarityStats()

    return SimilarityStats(
        max=all_sims[-1],
        p95=percentile(all_sims, 0.95),
        p80=percentile(all_sims, 0.80),
        p50=percentile(all_sims, 0.50),
        mean=quantize(sum(all_sims) / len(all_sims)),
    )


def compute_extended_similarity_stats(pairwise: Iterable[float]) -> ExtendedSimilarityStats:
    """Distribution of all canonical pairwise similarities.

    discrimination_range (p90 - p10) tells how much the embedding space
    separates anything from anything else.
    """
    sims = sorted(pairwise)
    if not sims:
        return ExtendedSimilarityStats()

    count = len(sims)
    mean = sum(sims) / count
    variance = sum((s - mean) ** 2 for s in sims) / count

    return ExtendedSimilarityStats(
        count=count,
        min=sims[0],
        p10=percentile(sims, 0.10),
        p50=percentile(sims, 0.50),
        p90=percentile(sims, 0.90),
        max=sims[-1],
        mean=quantize(mean),
        stddev=quantize(math.sqrt(variance)),
    )
