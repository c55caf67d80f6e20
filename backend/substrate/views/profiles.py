"""
Region Profiles
===============

Per-region measurements:

    mass      node count, model diversity, diversity ratio
    purity    dominant stance (majority vote), unanimity, contested ratio, variety
    geometry  internal density, mean isolation, nearest-carrier similarity,
              average internal similarity

and a tier (peak / hill / floor) with a continuous confidence.

Tier minimum ratios are max(ratio threshold, absolute threshold / model
count), so a small model pool cannot reach peak on a ratio alone.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..contracts.regions import (
    Region,
    RegionGeometry,
    RegionMass,
    RegionProfile,
    RegionPurity,
    Regionization,
    Tier,
)
from ..geometry.similarity import mean_vector, quantize
from ..params import ProfileParams, TierThresholds
from ..types import GeometricSubstrate, NodeStats, SimilarityGraph

logger = logging.getLogger(__name__)


DEFAULT_STANCE = "assertive"


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def min_diversity_ratio(tier: TierThresholds, model_count: int) -> float:
    """Effective ratio floor for a tier given the observed model count."""
    return max(tier.min_model_diversity_ratio, tier.min_model_diversity_absolute / max(1, model_count))


def _qualifies(tier: TierThresholds, diversity: int, ratio: float, density: float, model_count: int) -> bool:
    return (
        diversity >= tier.min_model_diversity_absolute
        and ratio >= min_diversity_ratio(tier, model_count)
        and density >= tier.min_internal_density
    )


def assign_tier(
    diversity: int,
    ratio: float,
    density: float,
    model_count: int,
    params: ProfileParams = ProfileParams(),
) -> Tier:
    if _qualifies(params.peak, diversity, ratio, density, model_count):
        return Tier.PEAK
    if _qualifies(params.hill, diversity, ratio, density, model_count):
        return Tier.HILL
    return Tier.FLOOR


def tier_confidence(
    tier: Tier,
    ratio: float,
    density: float,
    model_count: int,
    params: ProfileParams = ProfileParams(),
) -> float:
    """Continuous margin score for an assigned tier.

    peak:  0.7 + 0.3 * min(diversity margin, density margin)
    hill:  0.5 + 0.3 * max(progress toward peak ratio, progress toward peak density)
    floor: 0.3 + 0.2 * max(ratio, density), capped at 0.6
    """
    peak = params.peak
    peak_min_ratio = min_diversity_ratio(peak, model_count)

    if tier == Tier.PEAK:
        ratio_room = 1 - peak_min_ratio
        density_room = 1 - peak.min_internal_density
        diversity_margin = (ratio - peak_min_ratio) / ratio_room if ratio_room > 0 else 1.0
        density_margin = (density - peak.min_internal_density) / density_room if density_room > 0 else 1.0
        return _clamp(0.7 + 0.3 * min(diversity_margin, density_margin))

    if tier == Tier.HILL:
        diversity_progress = ratio / peak_min_ratio if peak_min_ratio > 0 else 1.0
        density_progress = density / peak.min_internal_density if peak.min_internal_density > 0 else 1.0
        return _clamp(0.5 + 0.3 * max(diversity_progress, density_progress))

    return _clamp(0.3 + 0.2 * max(ratio, density), 0.0, 0.6)


# =============================================================================
# GEOMETRY HELPERS
# =============================================================================

def _internal_edges(node_set: set, graph: SimilarityGraph) -> list:
    return [e for e in graph.edges if e.source in node_set and e.target in node_set]


def internal_density(node_ids: Sequence[str], graph: SimilarityGraph) -> float:
    size = len(node_ids)
    if size < 2:
        return 0.0
    internal = len(_internal_edges(set(node_ids), graph))
    return internal / (size * (size - 1) / 2)


def avg_internal_similarity(node_ids: Sequence[str], substrate: GeometricSubstrate) -> float:
    """Mean similarity of strong internal edges, else mutual internal edges, else 0."""
    if len(node_ids) < 2:
        return 0.0
    node_set = set(node_ids)
    for graph in (substrate.graphs.strong, substrate.graphs.mutual):
        edges = _internal_edges(node_set, graph)
        if edges:
            return quantize(sum(e.similarity for e in edges) / len(edges))
    return 0.0


def _region_centroids(
    regions: Sequence[Region],
    embeddings: Optional[Mapping[str, Sequence[float]]],
) -> Dict[str, np.ndarray]:
    centroids = {}
    if not embeddings:
        return centroids
    for region in regions:
        vectors = [embeddings[nid] for nid in region.node_ids if nid in embeddings]
        dims = {len(v) for v in vectors}
        if len(dims) != 1:
            continue
        centroid = mean_vector(vectors)
        if centroid is not None:
            centroids[region.id] = centroid
    return centroids


def _centroid_carrier(region_id: str, centroids: Dict[str, np.ndarray]) -> Optional[float]:
    own = centroids.get(region_id)
    if own is None:
        return None
    best = None
    for other_id, other in centroids.items():
        if other_id == region_id or other.shape != own.shape:
            continue
        sim = float(np.dot(own, other))
        if best is None or sim > best:
            best = sim
    return best


def _edge_carrier(node_set: set, graph: SimilarityGraph) -> Optional[float]:
    best = None
    for e in graph.edges:
        if (e.source in node_set) == (e.target in node_set):
            continue
        if best is None or e.similarity > best:
            best = e.similarity
    return best


def nearest_carrier_similarity(
    region: Region,
    substrate: GeometricSubstrate,
    centroids: Dict[str, np.ndarray],
    carrier_sources: Sequence[str],
) -> Tuple[float, Optional[str]]:
    """Highest cross-region similarity from the first source that yields one.

    Returns (similarity, source name) or (0.0, None) when no source does.
    """
    node_set = set(region.node_ids)
    for source in carrier_sources:
        if source == "centroid":
            value = _centroid_carrier(region.id, centroids)
        else:
            value = _edge_carrier(node_set, substrate.graphs.get(source))
        if value is not None:
            return quantize(value), source
    return 0.0, None


# =============================================================================
# PURITY
# =============================================================================

def _purity(members: List[NodeStats]) -> RegionPurity:
    counts: Dict[str, int] = {}
    contested = 0
    for node in members:
        counts[node.stance] = counts.get(node.stance, 0) + 1
        if node.contested:
            contested += 1

    if not counts:
        return RegionPurity(
            dominant_stance=DEFAULT_STANCE, stance_unanimity=0.0, contested_ratio=0.0, stance_variety=0,
        )

    # Majority vote, lexicographic tie-break
    dominant = min(counts, key=lambda s: (-counts[s], s))
    total = sum(counts.values())
    return RegionPurity(
        dominant_stance=dominant,
        stance_unanimity=counts[dominant] / total,
        contested_ratio=contested / len(members),
        stance_variety=len(counts),
    )


# =============================================================================
# PROFILING
# =============================================================================

def profile_region(
    region: Region,
    substrate: GeometricSubstrate,
    backbone: SimilarityGraph,
    model_count: int,
    centroids: Dict[str, np.ndarray],
    nodes_by_id: Dict[str, NodeStats],
    params: ProfileParams = ProfileParams(),
) -> RegionProfile:
    members = [nodes_by_id[nid] for nid in region.node_ids if nid in nodes_by_id]

    diversity = len(region.model_indices)
    ratio = diversity / model_count if model_count > 0 else 0.0

    density = internal_density(region.node_ids, backbone)
    isolation = (
        quantize(sum(n.isolation_score for n in members) / len(members))
        if members else 1.0
    )
    carrier, carrier_source = nearest_carrier_similarity(
        region, substrate, centroids, params.carrier_sources,
    )

    tier = assign_tier(diversity, ratio, density, model_count, params)

    return RegionProfile(
        region_id=region.id,
        tier=tier,
        tier_confidence=tier_confidence(tier, ratio, density, model_count, params),
        mass=RegionMass(
            node_count=len(region.node_ids),
            model_diversity=diversity,
            model_diversity_ratio=ratio,
        ),
        purity=_purity(members),
        geometry=RegionGeometry(
            internal_density=density,
            isolation=isolation,
            nearest_carrier_similarity=carrier,
            avg_internal_similarity=avg_internal_similarity(region.node_ids, substrate),
            carrier_source=carrier_source,
        ),
    )


def profile_regions(
    regionization: Regionization,
    substrate: GeometricSubstrate,
    params: ProfileParams = ProfileParams(),
    embeddings: Optional[Mapping[str, Sequence[float]]] = None,
) -> Tuple[RegionProfile, ...]:
    """Profile every region, in region order.

    Args:
        regionization: output of build_regions
        substrate: the substrate the regions partition
        params: tier tables and carrier fallback order
        embeddings: paragraph embeddings for centroid carriers (optional;
            without them the centroid source yields nothing and the next
            source is tried)
    """
    model_count = max(1, len(substrate.model_indices()))
    backbone = substrate.graphs.get(regionization.meta.backbone)
    centroids = _region_centroids(regionization.regions, embeddings)
    nodes_by_id = substrate.nodes_by_id()

    profiles = tuple(
        profile_region(region, substrate, backbone, model_count, centroids, nodes_by_id, params)
        for region in regionization.regions
    )

    tiers = [p.tier.value for p in profiles]
    logger.debug(
        f"Profiles: {tiers.count('peak')} peak, {tiers.count('hill')} hill, "
        f"{tiers.count('floor')} floor across {model_count} models"
    )
    return profiles
