"""
Claim Alignment
===============

Post-hoc comparison of synthesized claims against the geometry:

- claim vectors: mean of the cited statements' embeddings, renormalized
- region coverage: statements whose best claim similarity clears a threshold
- unattended regions: low coverage despite enough statements
- split alerts: one claim's sources span regions far apart
- merge alerts: two claims with near-identical vectors

Read-only. Statements without embeddings are excluded from pooling and
from coverage counts rather than failing the pass.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..contracts.alignment import (
    AlignmentResult,
    ClaimVector,
    MergeAlert,
    RegionCoverage,
    SplitAlert,
)
from ..contracts.inputs import ClaimRecord, parse_claims
from ..contracts.regions import Region, RegionProfile, Regionization, Tier
from ..geometry.similarity import cosine_similarity, mean_vector, quantize
from ..params import AlignmentParams

logger = logging.getLogger(__name__)


def coerce_claims(claims: Iterable[Any]) -> List[ClaimRecord]:
    return parse_claims(claims)


def statement_region_map(regions: Optional[Regionization]) -> Dict[str, str]:
    """statement_id -> first region (in region order) listing it."""
    mapping: Dict[str, str] = {}
    if regions is None:
        return mapping
    for region in regions.regions:
        for sid in region.statement_ids:
            mapping.setdefault(sid, region.id)
    return mapping


def _embedded(statement_ids: Sequence[str], embeddings: Mapping[str, Sequence[float]]) -> List[Sequence[float]]:
    """Embeddings for the given statements, skipping missing ones and
    any whose dimension differs from the first found."""
    vectors = []
    dimension = None
    for sid in statement_ids:
        v = embeddings.get(sid)
        if v is None:
            continue
        if dimension is None:
            dimension = len(v)
        if len(v) != dimension:
            continue
        vectors.append(v)
    return vectors


def build_claim_vectors(
    claims: Iterable[Any],
    statement_embeddings: Mapping[str, Sequence[float]],
    regions: Optional[Regionization] = None,
) -> Tuple[ClaimVector, ...]:
    """Pool cited statement embeddings into one unit vector per claim.

    Claims citing no embedded statement get no vector. Source regions
    come from the claim when it carries them, otherwise from the
    statement -> region map.
    """
    region_of = statement_region_map(regions)
    vectors = []
    for claim in coerce_claims(claims):
        pooled_from = _embedded(claim.source_statement_ids, statement_embeddings)
        if not pooled_from:
            logger.debug(f"Claim {claim.id}: no embedded source statements, skipped")
            continue

        if claim.source_region_ids is not None:
            source_regions = tuple(claim.source_region_ids)
        else:
            seen: List[str] = []
            for sid in claim.source_statement_ids:
                rid = region_of.get(sid)
                if rid is not None and rid not in seen:
                    seen.append(rid)
            source_regions = tuple(seen)

        vectors.append(ClaimVector(
            claim_id=claim.id,
            label=claim.label,
            vector=tuple(float(x) for x in mean_vector(pooled_from)),
            source_statement_ids=tuple(claim.source_statement_ids),
            source_region_ids=source_regions,
            pooled_count=len(pooled_from),
        ))
    return tuple(vectors)


def _similarity(a: Sequence[float], b: Sequence[float]) -> Optional[float]:
    if len(a) != len(b):
        return None
    return quantize(cosine_similarity(a, b))


def region_centroid(
    region: Region,
    statement_embeddings: Mapping[str, Sequence[float]],
) -> Optional[np.ndarray]:
    return mean_vector(_embedded(region.statement_ids, statement_embeddings))


def _coverage(
    region: Region,
    tier: str,
    claim_vectors: Sequence[ClaimVector],
    statement_embeddings: Mapping[str, Sequence[float]],
    threshold: float,
) -> RegionCoverage:
    covered = 0
    best_claim_id = None
    best_similarity = 0.0

    for sid in region.statement_ids:
        vector = statement_embeddings.get(sid)
        if vector is None:
            continue
        max_sim = 0.0
        max_claim = None
        for cv in claim_vectors:
            sim = _similarity(vector, cv.vector)
            if sim is not None and sim > max_sim:
                max_sim, max_claim = sim, cv.claim_id
        if max_sim >= threshold:
            covered += 1
        if max_sim > best_similarity:
            best_similarity, best_claim_id = max_sim, max_claim

    total = len(region.statement_ids)
    return RegionCoverage(
        region_id=region.id,
        tier=tier,
        total_statements=total,
        covered_statements=covered,
        coverage_ratio=covered / total if total > 0 else 0.0,
        best_claim_id=best_claim_id,
        best_claim_similarity=best_similarity,
    )


def compute_alignment(
    claim_vectors: Sequence[ClaimVector],
    regions: Regionization,
    profiles: Sequence[RegionProfile],
    statement_embeddings: Mapping[str, Sequence[float]],
    params: AlignmentParams = AlignmentParams(),
) -> AlignmentResult:
    """Coverage, split and merge measurements for a set of claim vectors."""
    tier_of = {p.region_id: p.tier.value for p in profiles}

    coverages = tuple(
        _coverage(
            region,
            tier_of.get(region.id, Tier.FLOOR.value),
            claim_vectors,
            statement_embeddings,
            params.coverage_threshold,
        )
        for region in regions.regions
    )

    total_statements = sum(c.total_statements for c in coverages)
    total_covered = sum(c.covered_statements for c in coverages)
    global_coverage = total_covered / total_statements if total_statements > 0 else 0.0

    unattended = tuple(
        c.region_id for c in coverages
        if c.coverage_ratio < params.unattended_coverage
        and c.total_statements >= params.unattended_min_statements
    )

    # Split: cited regions whose centroids are far apart
    centroids: Dict[str, Optional[np.ndarray]] = {}

    def centroid_of(region_id: str) -> Optional[np.ndarray]:
        if region_id not in centroids:
            region = regions.get(region_id)
            centroids[region_id] = region_centroid(region, statement_embeddings) if region else None
        return centroids[region_id]

    split_alerts = []
    for cv in claim_vectors:
        region_ids = cv.source_region_ids
        if len(region_ids) < 2:
            continue
        max_distance = 0.0
        for i, rid_a in enumerate(region_ids):
            centroid_a = centroid_of(rid_a)
            if centroid_a is None:
                continue
            for rid_b in region_ids[i + 1:]:
                centroid_b = centroid_of(rid_b)
                if centroid_b is None:
                    continue
                sim = _similarity(centroid_a, centroid_b)
                if sim is not None:
                    max_distance = max(max_distance, quantize(1 - sim))
        if max_distance > params.split_threshold:
            split_alerts.append(SplitAlert(
                claim_id=cv.claim_id,
                label=cv.label,
                region_ids=tuple(region_ids),
                max_inter_region_distance=max_distance,
            ))

    # Merge: near-identical claim vectors
    merge_alerts = []
    for i, a in enumerate(claim_vectors):
        for b in claim_vectors[i + 1:]:
            sim = _similarity(a.vector, b.vector)
            if sim is not None and sim >= params.merge_threshold:
                merge_alerts.append(MergeAlert(
                    claim_id_a=a.claim_id,
                    claim_id_b=b.claim_id,
                    label_a=a.label,
                    label_b=b.label,
                    similarity=sim,
                ))

    logger.debug(
        f"Alignment: coverage={global_coverage:.2f}, {len(unattended)} unattended, "
        f"{len(split_alerts)} split, {len(merge_alerts)} merge"
    )

    return AlignmentResult(
        region_coverages=coverages,
        split_alerts=tuple(split_alerts),
        merge_alerts=tuple(merge_alerts),
        global_coverage=global_coverage,
        unattended_region_ids=unattended,
        total_claims=len(claim_vectors),
        total_regions=len(regions.regions),
    )
