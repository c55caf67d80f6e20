"""
Substrate Builder
=================

Assembles the GeometricSubstrate from paragraphs and their embeddings:

    similarity matrix → kNN + mutual graphs → soft threshold → strong graph
    → topology → shape → node stats → meta (+ quality signals)

GUARANTEES:
- Always returns a GeometricSubstrate, never raises on data
- Degenerate inputs come back tagged (degenerate=True, degenerate_reason)
  with singleton components, empty graphs and isolation_ratio = 1
- All similarities quantized, all ties broken lexicographically

Degeneracy checks, in order:
1. fewer paragraphs than params.min_paragraphs
2. no usable embeddings (missing map, empty map, < 2 embedded paragraphs)
3. collapsed similarity distribution (every pairwise similarity identical;
   a lone pair only when its vectors point the same way)
"""

import logging
import math
import time
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..contracts.inputs import ParagraphRecord, parse_paragraphs
from ..contracts.signals import Severity, SignalType, SubstrateSignal
from ..geometry.nodes import compute_node_stats
from ..geometry.shape import classify_shape
from ..geometry.similarity import build_knn_graphs, compute_similarity_matrix
from ..geometry.threshold import (
    build_strong_graph,
    compute_extended_similarity_stats,
    compute_similarity_stats,
    compute_soft_threshold,
)
from ..geometry.topology import compute_topology
from ..params import SubstrateParams
from ..types import (
    Component,
    DegenerateReason,
    ExtendedSimilarityStats,
    GeometricSubstrate,
    GraphKind,
    NodeStats,
    SimilarityGraph,
    SimilarityStats,
    SubstrateGraphs,
    SubstrateMeta,
    TopologyMetrics,
)

logger = logging.getLogger(__name__)


LOW_MAX_SIMILARITY = 0.7
LOW_MEAN_SIMILARITY = 0.4


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


def _collapsed(pairwise: Sequence[float]) -> bool:
    """True when the similarity distribution carries no structure."""
    if not pairwise:
        return False
    if len(pairwise) == 1:
        return pairwise[0] >= 1.0
    return len(set(pairwise)) == 1


def _usable_embeddings(
    paragraph_ids: Sequence[str],
    embeddings: Optional[Mapping[str, Sequence[float]]],
) -> Tuple[Dict[str, List[float]], List[SubstrateSignal]]:
    """Embeddings for known paragraphs, with coverage signals.

    The first embedded paragraph (in input order) fixes the dimension;
    vectors of any other dimension, or with non-finite values, are skipped.
    """
    signals: List[SubstrateSignal] = []
    if not embeddings:
        return {}, signals

    usable: Dict[str, List[float]] = {}
    missing: List[str] = []
    mismatched: List[str] = []
    dimension: Optional[int] = None

    for pid in paragraph_ids:
        vector = embeddings.get(pid)
        if vector is None:
            missing.append(pid)
            continue
        values = [float(x) for x in vector]
        if not values or not all(math.isfinite(x) for x in values):
            missing.append(pid)
            continue
        if dimension is None:
            dimension = len(values)
        if len(values) != dimension:
            mismatched.append(pid)
            continue
        usable[pid] = values

    if missing and usable:
        logger.warning(
            f"Substrate: {len(missing)}/{len(paragraph_ids)} paragraphs have no usable embedding; "
            f"they will be isolated nodes"
        )
        signals.append(SubstrateSignal.create(
            SignalType.MISSING_EMBEDDINGS,
            Severity.WARNING,
            evidence={"missing_count": len(missing), "paragraph_ids": missing},
            message=f"{len(missing)} paragraph(s) have no embedding",
            resolution_hint="Re-run embedding for the listed paragraphs",
        ))

    if mismatched:
        logger.warning(
            f"Substrate: skipped {len(mismatched)} embedding(s) with dimension != {dimension}"
        )
        signals.append(SubstrateSignal.create(
            SignalType.DIMENSION_MISMATCH,
            Severity.WARNING,
            evidence={"expected_dimension": dimension, "paragraph_ids": mismatched},
            message=f"{len(mismatched)} embedding(s) skipped: dimension differs from {dimension}",
            resolution_hint="Embed every paragraph with the same backend",
        ))

    return usable, signals


def _distribution_signals(
    stats: SimilarityStats,
    soft_threshold: float,
) -> List[SubstrateSignal]:
    signals = []

    if stats.p95 < soft_threshold:
        logger.warning(
            f"Substrate: sparse regime, p95 similarity ({stats.p95:.3f}) < "
            f"soft threshold ({soft_threshold:.3f}); expect fragmented structure"
        )
        signals.append(SubstrateSignal.create(
            SignalType.SPARSE_REGIME,
            Severity.WARNING,
            evidence={"p95": stats.p95, "soft_threshold": soft_threshold},
            message="p95 similarity is below the soft threshold",
        ))

    if stats.max < LOW_MAX_SIMILARITY:
        logger.warning(
            f"Substrate: very low max similarity ({stats.max:.3f}); "
            f"embeddings may be degraded or content unrelated"
        )
        signals.append(SubstrateSignal.create(
            SignalType.LOW_MAX_SIMILARITY,
            Severity.WARNING,
            evidence={"max": stats.max, "floor": LOW_MAX_SIMILARITY},
            message="No pair of paragraphs is strongly similar",
        ))

    if stats.mean < LOW_MEAN_SIMILARITY:
        logger.warning(f"Substrate: low mean similarity ({stats.mean:.3f})")
        signals.append(SubstrateSignal.create(
            SignalType.LOW_MEAN_SIMILARITY,
            Severity.INFO,
            evidence={"mean": stats.mean, "floor": LOW_MEAN_SIMILARITY},
            message="Similarity is diffuse across paragraphs",
        ))

    return signals


def build_geometric_substrate(
    paragraphs: Iterable[Any],
    embeddings: Optional[Mapping[str, Sequence[float]]],
    embedding_backend: str = "none",
    params: SubstrateParams = SubstrateParams(),
) -> GeometricSubstrate:
    """Build the complete geometric substrate.

    Args:
        paragraphs: ParagraphRecords (or dicts coercible to them), in input order
        embeddings: {paragraph_id: vector}, or None if embedding failed
        embedding_backend: tag recorded in meta
        params: graph construction parameters

    Returns:
        GeometricSubstrate (possibly degenerate)

    Raises:
        InputValidationError: if a paragraph dict cannot be coerced
    """
    started = time.perf_counter()
    records = parse_paragraphs(paragraphs)
    paragraph_ids = [p.id for p in records]
    n = len(paragraph_ids)

    if n < params.min_paragraphs:
        return build_degenerate_substrate(
            records, DegenerateReason.INSUFFICIENT_PARAGRAPHS, embedding_backend, params, started,
        )

    usable, signals = _usable_embeddings(paragraph_ids, embeddings)
    if len(usable) < 2:
        return build_degenerate_substrate(
            records, DegenerateReason.EMBEDDING_FAILURE, embedding_backend, params, started, signals,
        )

    matrix = compute_similarity_matrix(paragraph_ids, usable)
    pairwise = matrix.pairwise()
    if _collapsed(pairwise):
        return build_degenerate_substrate(
            records, DegenerateReason.ALL_EMBEDDINGS_IDENTICAL, embedding_backend, params, started, signals,
        )

    neighbor_graphs = build_knn_graphs(paragraph_ids, usable, params.k, matrix=matrix)

    threshold_params = params.threshold
    soft_threshold = compute_soft_threshold(neighbor_graphs.top1_sims, threshold_params)
    strong = build_strong_graph(
        neighbor_graphs.mutual, paragraph_ids, soft_threshold, threshold_params.method,
    )
    graphs = SubstrateGraphs(knn=neighbor_graphs.knn, mutual=neighbor_graphs.mutual, strong=strong)

    topology = compute_topology(strong.edges, paragraph_ids)
    shape = classify_shape(topology, n)
    nodes = compute_node_stats(records, graphs, neighbor_graphs.top1_sims, neighbor_graphs.topk_sims)

    similarity_stats = compute_similarity_stats(neighbor_graphs.topk_sims)
    signals.extend(_distribution_signals(similarity_stats, soft_threshold))

    meta = SubstrateMeta(
        embedding_backend=embedding_backend,
        embedding_success=True,
        node_count=n,
        knn_edge_count=graphs.knn.edge_count,
        mutual_edge_count=graphs.mutual.edge_count,
        strong_edge_count=strong.edge_count,
        similarity_stats=similarity_stats,
        extended_similarity_stats=compute_extended_similarity_stats(pairwise),
        build_time_ms=_elapsed_ms(started),
        params_hash=params.params_hash,
        signals=tuple(signals),
    )

    logger.info(
        f"Substrate built: {n} nodes, {meta.knn_edge_count} knn / {meta.mutual_edge_count} mutual / "
        f"{meta.strong_edge_count} strong edges, {topology.component_count} components, "
        f"threshold={soft_threshold:.3f}"
    )

    return GeometricSubstrate(
        nodes=nodes,
        graphs=graphs,
        topology=topology,
        shape=shape,
        meta=meta,
    )


def build_degenerate_substrate(
    paragraphs: Sequence[ParagraphRecord],
    reason: DegenerateReason,
    embedding_backend: str,
    params: SubstrateParams,
    started: Optional[float] = None,
    signals: Sequence[SubstrateSignal] = (),
) -> GeometricSubstrate:
    """Fully structured substrate for inputs that cannot be built normally.

    Every node is its own component, every graph is empty, and the
    topology reports total fragmentation.
    """
    if started is None:
        started = time.perf_counter()

    paragraph_ids = sorted(p.id for p in paragraphs)
    n = len(paragraph_ids)

    logger.info(f"Degenerate substrate: reason={reason.value}, nodes={n}")

    empty_adjacency = {pid: () for pid in paragraph_ids}

    def empty_graph(kind: GraphKind, **kwargs) -> SimilarityGraph:
        return SimilarityGraph(kind=kind, edges=(), adjacency=dict(empty_adjacency), k=params.k, **kwargs)

    graphs = SubstrateGraphs(
        knn=empty_graph(GraphKind.KNN),
        mutual=empty_graph(GraphKind.MUTUAL),
        strong=empty_graph(GraphKind.STRONG, soft_threshold=0.0, threshold_method=params.threshold.method),
    )

    nodes = tuple(sorted(
        (
            NodeStats(
                paragraph_id=p.id,
                model_index=p.model_index,
                stance=p.stance,
                contested=p.contested,
                statement_ids=tuple(p.statement_ids),
                top1_sim=0.0,
                avg_topk_sim=0.0,
                knn_degree=0,
                mutual_degree=0,
                strong_degree=0,
                isolation_score=1.0,
                mutual_neighborhood_patch=(p.id,),
            )
            for p in paragraphs
        ),
        key=lambda node: node.paragraph_id,
    ))

    topology = TopologyMetrics(
        components=tuple(
            Component(id=f"comp_{i}", node_ids=(pid,), size=1, internal_density=0.0)
            for i, pid in enumerate(paragraph_ids)
        ),
        largest_component_ratio=1 / n if n > 0 else 0.0,
        isolation_ratio=1.0,
        global_density=0.0,
    )

    meta = SubstrateMeta(
        embedding_backend=embedding_backend,
        embedding_success=reason != DegenerateReason.EMBEDDING_FAILURE,
        node_count=n,
        knn_edge_count=0,
        mutual_edge_count=0,
        strong_edge_count=0,
        similarity_stats=SimilarityStats(),
        extended_similarity_stats=ExtendedSimilarityStats(),
        build_time_ms=_elapsed_ms(started),
        params_hash=params.params_hash,
        signals=tuple(signals),
    )

    return GeometricSubstrate(
        nodes=nodes,
        graphs=graphs,
        topology=topology,
        shape=classify_shape(topology, n),
        meta=meta,
        degenerate=True,
        degenerate_reason=reason,
    )
