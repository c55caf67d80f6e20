"""
Alignment Contracts - Post-hoc comparison of claims against geometry.

Everything here is observation. Nothing in an alignment or diagnostics
result is fed back into the substrate, regions or ordering.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class ClaimVector:
    """Mean-pooled, renormalized embedding of a claim's cited statements."""
    claim_id: str
    label: str
    vector: Tuple[float, ...]
    source_statement_ids: Tuple[str, ...]
    source_region_ids: Tuple[str, ...]
    pooled_count: int  # statements that actually had an embedding

    def to_dict(self) -> Dict[str, Any]:
        return {
            "claim_id": self.claim_id,
            "label": self.label,
            "source_statement_ids": list(self.source_statement_ids),
            "source_region_ids": list(self.source_region_ids),
            "pooled_count": self.pooled_count,
            "dimensions": len(self.vector),
        }


@dataclass(frozen=True)
class RegionCoverage:
    region_id: str
    tier: str
    total_statements: int
    covered_statements: int
    coverage_ratio: float
    best_claim_id: Optional[str]
    best_claim_similarity: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "region_id": self.region_id,
            "tier": self.tier,
            "total_statements": self.total_statements,
            "covered_statements": self.covered_statements,
            "coverage_ratio": self.coverage_ratio,
            "best_claim_id": self.best_claim_id,
            "best_claim_similarity": self.best_claim_similarity,
        }


@dataclass(frozen=True)
class SplitAlert:
    claim_id: str
    label: str
    region_ids: Tuple[str, ...]
    max_inter_region_distance: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "claim_id": self.claim_id,
            "label": self.label,
            "region_ids": list(self.region_ids),
            "max_inter_region_distance": self.max_inter_region_distance,
        }


@dataclass(frozen=True)
class MergeAlert:
    claim_id_a: str
    claim_id_b: str
    label_a: str
    label_b: str
    similarity: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "claim_id_a": self.claim_id_a,
            "claim_id_b": self.claim_id_b,
            "label_a": self.label_a,
            "label_b": self.label_b,
            "similarity": self.similarity,
        }


@dataclass(frozen=True)
class AlignmentResult:
    region_coverages: Tuple[RegionCoverage, ...]
    split_alerts: Tuple[SplitAlert, ...]
    merge_alerts: Tuple[MergeAlert, ...]
    global_coverage: float
    unattended_region_ids: Tuple[str, ...]
    total_claims: int
    total_regions: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "region_coverages": [c.to_dict() for c in self.region_coverages],
            "split_alerts": [a.to_dict() for a in self.split_alerts],
            "merge_alerts": [a.to_dict() for a in self.merge_alerts],
            "global_coverage": self.global_coverage,
            "unattended_region_ids": list(self.unattended_region_ids),
            "meta": {
                "total_claims": self.total_claims,
                "total_regions": self.total_regions,
            },
        }


# =============================================================================
# DIAGNOSTICS
# =============================================================================

class ObservationType(Enum):
    UNCOVERED_PEAK = "uncovered_peak"
    OVERCLAIMED_FLOOR = "overclaimed_floor"
    CLAIM_COUNT_OUTSIDE_RANGE = "claim_count_outside_range"
    TOPOLOGY_MAPPER_DIVERGENCE = "topology_mapper_divergence"
    EMBEDDING_QUALITY_SUSPECT = "embedding_quality_suspect"


@dataclass(frozen=True)
class GeometricObservation:
    """A hedged observation. The text never asserts a semantic conclusion."""
    observation_type: ObservationType
    observation: str
    region_ids: Tuple[str, ...] = ()
    claim_ids: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.observation_type.value,
            "observation": self.observation,
            "region_ids": list(self.region_ids),
            "claim_ids": list(self.claim_ids),
        }


@dataclass(frozen=True)
class ClaimMeasurement:
    claim_id: str
    source_statement_count: int
    source_coherence: Optional[float]  # mean pairwise similarity of cited statements
    embedding_spread: Optional[float]  # stddev of the same
    region_span: int
    source_model_diversity: int
    dominant_region_id: Optional[str]
    dominant_region_tier: Optional[str]
    dominant_region_model_diversity: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "claim_id": self.claim_id,
            "source_statement_count": self.source_statement_count,
            "source_coherence": self.source_coherence,
            "embedding_spread": self.embedding_spread,
            "region_span": self.region_span,
            "source_model_diversity": self.source_model_diversity,
            "dominant_region_id": self.dominant_region_id,
            "dominant_region_tier": self.dominant_region_tier,
            "dominant_region_model_diversity": self.dominant_region_model_diversity,
        }


@dataclass(frozen=True)
class EdgeMeasurement:
    source: str
    target: str
    edge_type: str
    crosses_region_boundary: bool
    centroid_similarity: Optional[float]
    source_region_id: Optional[str]
    target_region_id: Optional[str]

    @property
    def edge_id(self) -> str:
        return f"{self.source}->{self.target}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "edge_id": self.edge_id,
            "source": self.source,
            "target": self.target,
            "edge_type": self.edge_type,
            "crosses_region_boundary": self.crosses_region_boundary,
            "centroid_similarity": self.centroid_similarity,
            "source_region_id": self.source_region_id,
            "target_region_id": self.target_region_id,
        }


@dataclass(frozen=True)
class DiagnosticsResult:
    observations: Tuple[GeometricObservation, ...]
    claim_measurements: Tuple[ClaimMeasurement, ...]
    edge_measurements: Tuple[EdgeMeasurement, ...]
    region_count: int
    claim_count: int

    @property
    def summary(self) -> str:
        if not self.observations:
            return "No diagnostic observations"
        return f"{len(self.observations)} diagnostic observation(s)"

    def observation_types(self) -> Tuple[str, ...]:
        return tuple(o.observation_type.value for o in self.observations)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "observations": [o.to_dict() for o in self.observations],
            "measurements": {
                "claim_measurements": [m.to_dict() for m in self.claim_measurements],
                "edge_measurements": [m.to_dict() for m in self.edge_measurements],
            },
            "summary": self.summary,
            "meta": {
                "region_count": self.region_count,
                "claim_count": self.claim_count,
            },
        }


# =============================================================================
# STATEMENT FATES AND COMPLETENESS
# =============================================================================

class FateKind(Enum):
    PRIMARY = "primary"  # cited by exactly one claim
    SUPPORTING = "supporting"  # cited by several claims
    ORPHAN = "orphan"  # placed in the geometry, cited by no claim
    NOISE = "noise"  # no usable geometric coordinates


@dataclass(frozen=True)
class StatementFate:
    """What happened to one statement between extraction and synthesis."""
    statement_id: str
    fate: FateKind
    reason: str
    claim_ids: Tuple[str, ...]
    region_id: Optional[str]
    component_id: Optional[str]
    model_index: Optional[int]
    geometric_isolation: float  # 1.0 when the statement has no coordinates

    def to_dict(self) -> Dict[str, Any]:
        return {
            "statement_id": self.statement_id,
            "fate": self.fate.value,
            "reason": self.reason,
            "claim_ids": list(self.claim_ids),
            "region_id": self.region_id,
            "component_id": self.component_id,
            "model_index": self.model_index,
            "geometric_isolation": self.geometric_isolation,
        }


@dataclass(frozen=True)
class StatementCompleteness:
    total: int
    in_claims: int
    orphaned: int
    noise: int
    coverage_ratio: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "in_claims": self.in_claims,
            "orphaned": self.orphaned,
            "noise": self.noise,
            "coverage_ratio": self.coverage_ratio,
        }


@dataclass(frozen=True)
class RegionCompleteness:
    total: int
    attended: int
    unattended: int
    coverage_ratio: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "attended": self.attended,
            "unattended": self.unattended,
            "coverage_ratio": self.coverage_ratio,
        }


@dataclass(frozen=True)
class UnattendedRegionPreview:
    region_id: str
    statement_ids: Tuple[str, ...]  # first few member statements

    def to_dict(self) -> Dict[str, Any]:
        return {"region_id": self.region_id, "statement_ids": list(self.statement_ids)}


@dataclass(frozen=True)
class CompletenessReport:
    statements: StatementCompleteness
    regions: RegionCompleteness
    unattended_previews: Tuple[UnattendedRegionPreview, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "statements": self.statements.to_dict(),
            "regions": self.regions.to_dict(),
            "recovery": {
                "unattended_region_previews": [p.to_dict() for p in self.unattended_previews],
            },
        }
