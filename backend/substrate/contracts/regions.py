"""
Region Contracts - Partition units and their measured profiles.

A Regionization covers every substrate node exactly once. Region IDs
(r_0, r_1, ...) are assigned only after the deterministic sort, so they
are stable for a given substrate.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple


class RegionKind(Enum):
    COMPONENT = "component"  # connected component on the backbone
    PATCH = "patch"  # shared mutual-neighborhood signature (or a leftover singleton)


class Tier(Enum):
    PEAK = "peak"
    HILL = "hill"
    FLOOR = "floor"


@dataclass(frozen=True)
class Region:
    """One partition unit.

    source_id is the component ID for component regions and the patch
    signature for patch regions.
    """
    id: str
    kind: RegionKind
    node_ids: Tuple[str, ...]
    statement_ids: Tuple[str, ...]
    model_indices: Tuple[int, ...]
    source_id: str

    @property
    def size(self) -> int:
        return len(self.node_ids)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "node_ids": list(self.node_ids),
            "statement_ids": list(self.statement_ids),
            "model_indices": list(self.model_indices),
            "source_id": self.source_id,
        }


@dataclass(frozen=True)
class RegionizationMeta:
    region_count: int
    kind_counts: Mapping[str, int] = field(hash=False)
    covered_nodes: int
    total_nodes: int
    backbone: str

    def __post_init__(self):
        object.__setattr__(self, "kind_counts", MappingProxyType(dict(self.kind_counts)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "region_count": self.region_count,
            "kind_counts": dict(self.kind_counts),
            "covered_nodes": self.covered_nodes,
            "total_nodes": self.total_nodes,
            "backbone": self.backbone,
        }


@dataclass(frozen=True)
class Regionization:
    regions: Tuple[Region, ...]
    meta: RegionizationMeta

    def region_of(self) -> Dict[str, str]:
        """node_id -> region id."""
        return {nid: r.id for r in self.regions for nid in r.node_ids}

    def get(self, region_id: str) -> Optional[Region]:
        for r in self.regions:
            if r.id == region_id:
                return r
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "regions": [r.to_dict() for r in self.regions],
            "meta": self.meta.to_dict(),
        }


# =============================================================================
# PROFILES
# =============================================================================

@dataclass(frozen=True)
class RegionMass:
    node_count: int
    model_diversity: int
    model_diversity_ratio: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_count": self.node_count,
            "model_diversity": self.model_diversity,
            "model_diversity_ratio": self.model_diversity_ratio,
        }


@dataclass(frozen=True)
class RegionPurity:
    dominant_stance: str
    stance_unanimity: float
    contested_ratio: float
    stance_variety: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dominant_stance": self.dominant_stance,
            "stance_unanimity": self.stance_unanimity,
            "contested_ratio": self.contested_ratio,
            "stance_variety": self.stance_variety,
        }


@dataclass(frozen=True)
class RegionGeometry:
    internal_density: float
    isolation: float
    nearest_carrier_similarity: float
    avg_internal_similarity: float
    carrier_source: Optional[str] = None  # which fallback produced nearest_carrier_similarity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "internal_density": self.internal_density,
            "isolation": self.isolation,
            "nearest_carrier_similarity": self.nearest_carrier_similarity,
            "avg_internal_similarity": self.avg_internal_similarity,
            "carrier_source": self.carrier_source,
        }


@dataclass(frozen=True)
class RegionProfile:
    region_id: str
    tier: Tier
    tier_confidence: float
    mass: RegionMass
    purity: RegionPurity
    geometry: RegionGeometry

    def to_dict(self) -> Dict[str, Any]:
        return {
            "region_id": self.region_id,
            "tier": self.tier.value,
            "tier_confidence": self.tier_confidence,
            "mass": self.mass.to_dict(),
            "purity": self.purity.to_dict(),
            "geometry": self.geometry.to_dict(),
        }
