"""
Ordering Contracts - Per-model irreplaceability and placement order.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class ModelScoreBreakdown:
    solo_carrier_regions: int = 0  # regions carried by this model alone
    low_diversity_contribution: float = 0.0  # fractional share of regions with few carriers
    total_paragraphs_in_regions: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "solo_carrier_regions": self.solo_carrier_regions,
            "low_diversity_contribution": self.low_diversity_contribution,
            "total_paragraphs_in_regions": self.total_paragraphs_in_regions,
        }


@dataclass(frozen=True)
class ModelScore:
    model_index: int
    irreplaceability: float
    breakdown: ModelScoreBreakdown
    query_relevance_boost: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_index": self.model_index,
            "irreplaceability": self.irreplaceability,
            "query_relevance_boost": self.query_relevance_boost,
            "breakdown": self.breakdown.to_dict(),
        }


@dataclass(frozen=True)
class ModelOrderingResult:
    """Placement order plus the scores behind it.

    ordered_model_indices is outside-in: strongest first, second strongest
    last, weakest near the middle. scores are listed in rank order.
    """
    ordered_model_indices: Tuple[int, ...]
    scores: Tuple[ModelScore, ...]
    total_models: int
    region_count: int
    relevance_blend: float = 0.0
    natural_order: bool = False  # True when geometry could not rank the models

    def score_for(self, model_index: int) -> Optional[ModelScore]:
        for s in self.scores:
            if s.model_index == model_index:
                return s
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ordered_model_indices": list(self.ordered_model_indices),
            "scores": [s.to_dict() for s in self.scores],
            "meta": {
                "total_models": self.total_models,
                "region_count": self.region_count,
                "relevance_blend": self.relevance_blend,
                "natural_order": self.natural_order,
            },
        }
