"""
Diagnostics
===========

Compares the synthesis output (claims + claim edges) with the
pre-semantic geometry and records hedged observations:

    uncovered_peak              peak region with no high-support claim
    overclaimed_floor           floor region cited by several claims
    claim_count_outside_range   claim count vs. position groups at a hard merge threshold
    topology_mapper_divergence  component count vs. claim-graph component count
    embedding_quality_suspect   fragmented topology yet a dominant claim

plus per-claim and per-claim-edge measurements. Every observation says
what *may* be happening; none asserts a semantic conclusion, and
nothing upstream is modified.
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..contracts.alignment import (
    ClaimMeasurement,
    DiagnosticsResult,
    EdgeMeasurement,
    GeometricObservation,
    ObservationType,
)
from ..contracts.inputs import ClaimEdgeRecord, ClaimRecord, ParagraphRecord, parse_claim_edges, parse_paragraphs
from ..contracts.regions import RegionProfile, Regionization, Tier
from ..geometry.similarity import cosine_similarity, quantize
from ..geometry.topology import count_components
from ..params import DiagnosticsParams
from ..types import GeometricSubstrate
from .claims import coerce_claims, statement_region_map

logger = logging.getLogger(__name__)


def _pct(value: float) -> str:
    return f"{round(value * 100)}%"


def _coerce_edges(edges: Iterable[Any]) -> List[ClaimEdgeRecord]:
    return parse_claim_edges(edges)


def _coerce_paragraphs(paragraphs: Optional[Iterable[Any]]) -> List[ParagraphRecord]:
    if paragraphs is None:
        return []
    return parse_paragraphs(paragraphs)


def _cites_any(claim: ClaimRecord, statement_set: set) -> bool:
    return any(sid in statement_set for sid in claim.source_statement_ids)


def _embedded(statement_ids: Sequence[str], embeddings: Optional[Mapping[str, Sequence[float]]]) -> List[np.ndarray]:
    if not embeddings:
        return []
    vectors = [np.asarray(embeddings[sid], dtype=float) for sid in statement_ids if sid in embeddings]
    if vectors:
        dimension = len(vectors[0])
        vectors = [v for v in vectors if len(v) == dimension]
    return vectors


def pairwise_stats(vectors: Sequence[np.ndarray]) -> Tuple[Optional[float], Optional[float]]:
    """(mean, population stddev) of pairwise cosine similarity.

    mean needs two vectors, stddev needs at least two pairs.
    """
    if len(vectors) < 2:
        return None, None
    sims = [
        cosine_similarity(vectors[i], vectors[j])
        for i in range(len(vectors))
        for j in range(i + 1, len(vectors))
    ]
    mean = sum(sims) / len(sims)
    if len(sims) < 2:
        return quantize(mean), None
    variance = sum((s - mean) ** 2 for s in sims) / len(sims)
    return quantize(mean), quantize(math.sqrt(variance))


def dominant_region(statement_ids: Sequence[str], region_of: Mapping[str, str]) -> Tuple[Optional[str], int]:
    """(region holding most of the statements, number of regions touched).

    Ties go to the lexicographically smallest region ID.
    """
    counts: Dict[str, int] = {}
    for sid in statement_ids:
        rid = region_of.get(sid)
        if rid is not None:
            counts[rid] = counts.get(rid, 0) + 1
    if not counts:
        return None, 0
    best = min(counts, key=lambda rid: (-counts[rid], rid))
    return best, len(counts)


# =============================================================================
# OBSERVATIONS
# =============================================================================

def _tier_observations(
    regions: Regionization,
    profiles: Sequence[RegionProfile],
    claims: Sequence[ClaimRecord],
    params: DiagnosticsParams,
) -> List[GeometricObservation]:
    observations = []
    profile_of = {p.region_id: p for p in profiles}

    for region in regions.regions:
        profile = profile_of.get(region.id)
        statement_set = set(region.statement_ids)
        if profile is None or not statement_set:
            continue

        if profile.tier == Tier.PEAK:
            covered = any(
                c.support_ratio > params.high_support_ratio and _cites_any(c, statement_set)
                for c in claims
            )
            if not covered:
                observations.append(GeometricObservation(
                    observation_type=ObservationType.UNCOVERED_PEAK,
                    region_ids=(region.id,),
                    observation=(
                        f"Peak region {region.id} (model_diversity={profile.mass.model_diversity}, "
                        f"density={profile.geometry.internal_density:.3f}) has no corresponding "
                        f"high-support claim. The synthesis may have missed a consensus position, "
                        f"or the region's geometric prominence may not reflect semantic importance."
                    ),
                ))

        elif profile.tier == Tier.FLOOR:
            covering = [c.id for c in claims if _cites_any(c, statement_set)]
            if len(covering) > 1:
                observations.append(GeometricObservation(
                    observation_type=ObservationType.OVERCLAIMED_FLOOR,
                    region_ids=(region.id,),
                    claim_ids=tuple(covering),
                    observation=(
                        f"Floor region {region.id} spawned {len(covering)} claims. The synthesis may "
                        f"have found nuance the geometry could not see, or may have fragmented a "
                        f"single position."
                    ),
                ))

    return observations


def _substrate_observations(
    substrate: GeometricSubstrate,
    claims: Sequence[ClaimRecord],
    edges: Sequence[ClaimEdgeRecord],
    params: DiagnosticsParams,
) -> List[GeometricObservation]:
    observations = []
    claim_count = len(claims)

    hard_merge = params.hard_merge_threshold
    if hard_merge is None:
        hard_merge = substrate.graphs.strong.soft_threshold or 0.0

    if hard_merge > 0 and substrate.node_count > 0:
        total_groups, multi_member_groups = count_components(
            substrate.node_ids,
            ((e.source, e.target) for e in substrate.graphs.mutual.edges if e.similarity >= hard_merge),
        )
        if claim_count < multi_member_groups or (total_groups > 0 and claim_count > 2 * total_groups):
            observations.append(GeometricObservation(
                observation_type=ObservationType.CLAIM_COUNT_OUTSIDE_RANGE,
                observation=(
                    f"Synthesis produced {claim_count} claim(s), while geometry has "
                    f"{multi_member_groups} multi-member position group(s) ({total_groups} total) "
                    f"at hard_merge_threshold={hard_merge:.3f}. This may reflect over- or "
                    f"under-fragmentation in synthesis, or geometry over- or under-connecting."
                ),
            ))

    topology_components = substrate.topology.component_count
    claim_components = 0
    if claims:
        claim_components, _ = count_components(
            [c.id for c in claims],
            ((e.source, e.target) for e in edges),
        )
    if (
        topology_components > 0
        and claim_components > 0
        and abs(topology_components - claim_components) >= params.divergence_min_gap
    ):
        observations.append(GeometricObservation(
            observation_type=ObservationType.TOPOLOGY_MAPPER_DIVERGENCE,
            observation=(
                f"Strong-graph topology has {topology_components} component(s), while the claims "
                f"form {claim_components} independent group(s). This may indicate a mismatch "
                f"between embedding topology and semantic grouping."
            ),
        ))

    isolation = substrate.topology.isolation_ratio
    largest = substrate.topology.largest_component_ratio
    max_support = max((c.support_ratio for c in claims), default=0.0)
    if (
        isolation > params.suspect_isolation
        and largest < params.suspect_largest_ratio
        and max_support > params.dominant_support_ratio
    ):
        observations.append(GeometricObservation(
            observation_type=ObservationType.EMBEDDING_QUALITY_SUSPECT,
            observation=(
                f"Topology is highly fragmented (isolation={_pct(isolation)}, "
                f"largest_component={_pct(largest)}), yet one claim is dominant "
                f"(max support={_pct(max_support)}). The embeddings may not be tracking "
                f"semantic content well."
            ),
        ))

    return observations


# =============================================================================
# MEASUREMENTS
# =============================================================================

def _claim_measurements(
    claims: Sequence[ClaimRecord],
    region_of: Mapping[str, str],
    profiles: Sequence[RegionProfile],
    statement_embeddings: Optional[Mapping[str, Sequence[float]]],
    paragraphs: Sequence[ParagraphRecord],
) -> List[ClaimMeasurement]:
    profile_of = {p.region_id: p for p in profiles}
    model_of_statement: Dict[str, int] = {}
    for p in paragraphs:
        for sid in p.statement_ids:
            model_of_statement.setdefault(sid, p.model_index)

    measurements = []
    for claim in claims:
        sids = claim.source_statement_ids
        region_id, span = dominant_region(sids, region_of)
        profile = profile_of.get(region_id) if region_id else None

        coherence, spread = (None, None)
        if statement_embeddings:
            coherence, spread = pairwise_stats(_embedded(sids, statement_embeddings))

        measurements.append(ClaimMeasurement(
            claim_id=claim.id,
            source_statement_count=len(sids),
            source_coherence=coherence,
            embedding_spread=spread,
            region_span=span,
            source_model_diversity=len({model_of_statement[s] for s in sids if s in model_of_statement}),
            dominant_region_id=region_id,
            dominant_region_tier=profile.tier.value if profile else None,
            dominant_region_model_diversity=profile.mass.model_diversity if profile else None,
        ))
    return measurements


def _edge_measurements(
    edges: Sequence[ClaimEdgeRecord],
    claims: Sequence[ClaimRecord],
    claim_measurements: Sequence[ClaimMeasurement],
    statement_embeddings: Optional[Mapping[str, Sequence[float]]],
) -> List[EdgeMeasurement]:
    region_of_claim = {m.claim_id: m.dominant_region_id for m in claim_measurements}

    centroids: Dict[str, np.ndarray] = {}
    if statement_embeddings:
        for claim in claims:
            vectors = _embedded(claim.source_statement_ids, statement_embeddings)
            if vectors:
                centroids[claim.id] = np.mean(vectors, axis=0)

    measurements = []
    for edge in edges:
        source_region = region_of_claim.get(edge.source)
        target_region = region_of_claim.get(edge.target)

        similarity = None
        a, b = centroids.get(edge.source), centroids.get(edge.target)
        if a is not None and b is not None and a.shape == b.shape:
            similarity = quantize(cosine_similarity(a, b))

        measurements.append(EdgeMeasurement(
            source=edge.source,
            target=edge.target,
            edge_type=edge.edge_type,
            crosses_region_boundary=bool(source_region and target_region and source_region != target_region),
            centroid_similarity=similarity,
            source_region_id=source_region,
            target_region_id=target_region,
        ))
    return measurements


def compute_diagnostics(
    regions: Regionization,
    profiles: Sequence[RegionProfile],
    claims: Iterable[Any],
    claim_edges: Iterable[Any],
    substrate: Optional[GeometricSubstrate] = None,
    statement_embeddings: Optional[Mapping[str, Sequence[float]]] = None,
    paragraphs: Optional[Iterable[Any]] = None,
    params: DiagnosticsParams = DiagnosticsParams(),
) -> DiagnosticsResult:
    """Hedged observations plus claim/edge measurements.

    Substrate-level observations need the substrate; coherence, spread
    and centroid similarity need statement embeddings; source model
    diversity needs paragraphs. Missing inputs leave those parts empty.
    """
    claim_records = coerce_claims(claims)
    edge_records = _coerce_edges(claim_edges)
    paragraph_records = _coerce_paragraphs(paragraphs)

    observations = _tier_observations(regions, profiles, claim_records, params)
    if substrate is not None:
        observations.extend(_substrate_observations(substrate, claim_records, edge_records, params))

    claim_measurements = _claim_measurements(
        claim_records, statement_region_map(regions), profiles, statement_embeddings, paragraph_records,
    )
    edge_measurements = _edge_measurements(edge_records, claim_records, claim_measurements, statement_embeddings)

    for obs in observations:
        logger.info(f"Diagnostic [{obs.observation_type.value}]: {obs.observation}")

    return DiagnosticsResult(
        observations=tuple(observations),
        claim_measurements=tuple(claim_measurements),
        edge_measurements=tuple(edge_measurements),
        region_count=len(regions.regions),
        claim_count=len(claim_records),
    )
