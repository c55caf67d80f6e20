"""
Claim alignment, diagnostics and statement completeness.

Runs after an external synthesis step. Pure observation: results are
never fed back into the substrate, regions or ordering.
"""

from .claims import (
    build_claim_vectors,
    compute_alignment,
    region_centroid,
    statement_region_map,
)
from .diagnostics import compute_diagnostics, dominant_region, pairwise_stats
from .completeness import (
    build_completeness_report,
    build_statement_fates,
    statement_universe,
    track_statement_fates,
)

__all__ = [
    "build_claim_vectors",
    "compute_alignment",
    "region_centroid",
    "statement_region_map",
    "compute_diagnostics",
    "dominant_region",
    "pairwise_stats",
    "build_completeness_report",
    "build_statement_fates",
    "statement_universe",
    "track_statement_fates",
]
