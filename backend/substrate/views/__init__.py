"""
Substrate Views - measurements derived from a built substrate.

Each view reads the substrate (and regions) and returns new frozen
objects. Nothing here mutates its inputs.

- profiles: per-region mass / purity / geometry and tier
- gates: advisory pipeline verdict
- ordering: model irreplaceability and outside-in placement
- relevance: per-model query relevance (ordering boost)
- enrichment: per-statement geometric coordinates
"""

from .profiles import (
    profile_regions,
    profile_region,
    assign_tier,
    tier_confidence,
    min_diversity_ratio,
    internal_density,
    avg_internal_similarity,
    nearest_carrier_similarity,
)
from .gates import measure_gates, evaluate_gate_measurements, evaluate_pipeline_gates
from .ordering import (
    outside_in_order,
    relevance_blend_fraction,
    compute_model_ordering,
    natural_model_ordering,
)
from .relevance import compute_per_model_query_relevance
from .enrichment import (
    EnrichmentFailureReason,
    StatementCoordinates,
    EnrichmentFailure,
    EnrichmentResult,
    enrich_statements,
)

__all__ = [
    # Profiles
    "profile_regions",
    "profile_region",
    "assign_tier",
    "tier_confidence",
    "min_diversity_ratio",
    "internal_density",
    "avg_internal_similarity",
    "nearest_carrier_similarity",
    # Gates
    "measure_gates",
    "evaluate_gate_measurements",
    "evaluate_pipeline_gates",
    # Ordering
    "outside_in_order",
    "relevance_blend_fraction",
    "compute_model_ordering",
    "natural_model_ordering",
    # Relevance
    "compute_per_model_query_relevance",
    # Enrichment
    "EnrichmentFailureReason",
    "StatementCoordinates",
    "EnrichmentFailure",
    "EnrichmentResult",
    "enrich_statements",
]
