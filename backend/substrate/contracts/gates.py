"""
Gate Contracts - Advisory pipeline verdicts.

Evidence strings are for logging only. Decisions read measurements,
never evidence.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple


class GateVerdict(Enum):
    SKIP_GEOMETRY = "skip_geometry"
    TRIVIAL_CONVERGENCE = "trivial_convergence"
    INSUFFICIENT_STRUCTURE = "insufficient_structure"
    PROCEED = "proceed"


@dataclass(frozen=True)
class GateMeasurements:
    """Raw measurements the verdict is a pure function of."""
    is_degenerate: bool
    largest_component_ratio: float
    largest_component_model_diversity_ratio: float
    isolation_ratio: float
    max_component_size: int
    global_density: float
    node_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_degenerate": self.is_degenerate,
            "largest_component_ratio": self.largest_component_ratio,
            "largest_component_model_diversity_ratio": self.largest_component_model_diversity_ratio,
            "isolation_ratio": self.isolation_ratio,
            "max_component_size": self.max_component_size,
            "global_density": self.global_density,
            "node_count": self.node_count,
        }


@dataclass(frozen=True)
class PipelineGateResult:
    verdict: GateVerdict
    confidence: float
    evidence: Tuple[str, ...]
    measurements: GateMeasurements

    @property
    def permits_geometric_ordering(self) -> bool:
        return self.verdict != GateVerdict.SKIP_GEOMETRY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verdict": self.verdict.value,
            "confidence": self.confidence,
            "evidence": list(self.evidence),
            "measurements": self.measurements.to_dict(),
        }
