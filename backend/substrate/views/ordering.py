"""
Model Ordering
==============

Scores each model's geometric irreplaceability and turns the ranking
into an outside-in placement order.

For every region r containing model m's nodes:

    irreplaceability[m] += (m's nodes in r / r's nodes) * 1 / diversity(r)

A sole carrier of a region earns full credit; a region every model
covers contributes almost nothing to anyone.

An optional per-model relevance boost is blended in. The blend fraction
grows with the population stddev of the boosts (flat boosts change
nothing) and is capped at params.max_relevance_blend.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence, TypeVar

import numpy as np

from ..contracts.ordering import ModelOrderingResult, ModelScore, ModelScoreBreakdown
from ..contracts.regions import RegionProfile, Regionization
from ..geometry.similarity import quantize
from ..params import OrderingParams
from ..types import GeometricSubstrate

logger = logging.getLogger(__name__)

T = TypeVar("T")

EQUALITY_EPS = 1e-9


def outside_in_order(ranked: Sequence[T]) -> List[T]:
    """Place ranked items alternately at the front and the back.

    [A, B, C, D] -> [A, C, D, B]: the two strongest anchor the ends, the
    weakest ends up in the middle.
    """
    result: List[Optional[T]] = [None] * len(ranked)
    left, right = 0, len(ranked) - 1
    for i, item in enumerate(ranked):
        if i % 2 == 0:
            result[left] = item
            left += 1
        else:
            result[right] = item
            right -= 1
    return result


def relevance_blend_fraction(boosts: Sequence[float], params: OrderingParams = OrderingParams()) -> float:
    """How much the relevance boost may reshape scores (0 = not at all)."""
    if len(boosts) < 2:
        return 0.0
    spread = float(np.std(boosts))
    return params.max_relevance_blend * min(1.0, spread / params.relevance_spread_saturation)


def _natural_result(
    model_indices: Sequence[int],
    scores: Sequence[ModelScore],
    region_count: int,
    blend: float = 0.0,
) -> ModelOrderingResult:
    return ModelOrderingResult(
        ordered_model_indices=tuple(model_indices),
        scores=tuple(scores),
        total_models=len(model_indices),
        region_count=region_count,
        relevance_blend=blend,
        natural_order=True,
    )


def compute_model_ordering(
    regionization: Regionization,
    profiles: Sequence[RegionProfile],
    substrate: GeometricSubstrate,
    query_relevance_boost: Optional[Mapping[int, float]] = None,
    params: OrderingParams = OrderingParams(),
) -> ModelOrderingResult:
    """Rank models by irreplaceability and lay them out outside-in.

    Empty region sets and all-equal scores return the observed models in
    ascending (natural) order.
    """
    model_indices = substrate.model_indices()
    regions = regionization.regions

    if not regions:
        return _natural_result(
            model_indices,
            [ModelScore(model_index=m, irreplaceability=0.0, breakdown=ModelScoreBreakdown()) for m in model_indices],
            region_count=0,
        )

    model_of = {n.paragraph_id: n.model_index for n in substrate.nodes}
    diversity_by_region = {p.region_id: p.mass.model_diversity for p in profiles}

    irreplaceability: Dict[int, float] = {m: 0.0 for m in model_indices}
    solo: Dict[int, int] = {m: 0 for m in model_indices}
    low_diversity: Dict[int, float] = {m: 0.0 for m in model_indices}
    paragraphs_in_regions: Dict[int, int] = {m: 0 for m in model_indices}

    for region in regions:
        total = len(region.node_ids)
        if total == 0:
            continue

        counts: Dict[int, int] = {}
        for nid in region.node_ids:
            m = model_of.get(nid)
            if m is None:
                logger.debug(f"Ordering: region {region.id} references unknown node {nid}")
                continue
            counts[m] = counts.get(m, 0) + 1

        diversity = max(1, diversity_by_region.get(region.id, len(region.model_indices) or len(counts)))
        weight = 1 / diversity

        for m in sorted(counts):
            fraction = counts[m] / total
            irreplaceability[m] = irreplaceability.get(m, 0.0) + fraction * weight
            paragraphs_in_regions[m] = paragraphs_in_regions.get(m, 0) + counts[m]
            if diversity == 1:
                solo[m] = solo.get(m, 0) + 1
            if diversity <= params.low_diversity_max:
                low_diversity[m] = low_diversity.get(m, 0.0) + fraction

    boosts: Dict[int, float] = {}
    blend = 0.0
    if query_relevance_boost:
        boosts = {m: max(0.0, float(query_relevance_boost.get(m, 0.0))) for m in model_indices}
        max_boost = max(boosts.values(), default=0.0)
        if max_boost > 0:
            blend = relevance_blend_fraction([boosts[m] for m in model_indices], params)
            for m in model_indices:
                irreplaceability[m] *= (1 - blend) + blend * boosts[m] / max_boost

    scores = [
        ModelScore(
            model_index=m,
            irreplaceability=irreplaceability[m],
            breakdown=ModelScoreBreakdown(
                solo_carrier_regions=solo[m],
                low_diversity_contribution=quantize(low_diversity[m]),
                total_paragraphs_in_regions=paragraphs_in_regions[m],
            ),
            query_relevance_boost=boosts.get(m) if boosts else None,
        )
        for m in model_indices
    ]

    first = scores[0].irreplaceability if scores else 0.0
    if len(scores) <= 1 or all(abs(s.irreplaceability - first) <= EQUALITY_EPS for s in scores):
        return _natural_result(model_indices, scores, len(regions), blend)

    ranked = sorted(scores, key=lambda s: (-s.irreplaceability, s.model_index))
    ordered = outside_in_order([s.model_index for s in ranked])

    logger.debug(
        f"Model ordering: {ordered} (ranked {[s.model_index for s in ranked]}, blend={blend:.3f})"
    )

    return ModelOrderingResult(
        ordered_model_indices=tuple(ordered),
        scores=tuple(ranked),
        total_models=len(model_indices),
        region_count=len(regions),
        relevance_blend=blend,
    )


def natural_model_ordering(substrate: GeometricSubstrate, region_count: int = 0) -> ModelOrderingResult:
    """Natural ascending order, used when geometry is skipped."""
    model_indices = substrate.model_indices()
    return _natural_result(
        model_indices,
        [ModelScore(model_index=m, irreplaceability=0.0, breakdown=ModelScoreBreakdown()) for m in model_indices],
        region_count=region_count,
    )
