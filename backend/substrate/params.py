"""
Parameters - Frozen value objects for every tunable.

Parameters are plain values passed in by the caller. They are never read
from the environment or from module globals. Each object validates itself
on construction and exposes a short params_hash for reproducibility.

The cutoffs below are recalibratable defaults, not invariants.
"""

from dataclasses import dataclass, fields
from typing import Optional, Tuple
import hashlib

from .errors import InvalidParamsError


THRESHOLD_METHODS = ("p80_top1", "p75_top1", "fixed")
BACKBONES = ("strong", "mutual")
CARRIER_SOURCES = ("centroid", "strong", "mutual", "knn")


def _hash_fields(obj) -> str:
    parts = []
    for f in fields(obj):
        value = getattr(obj, f.name)
        if hasattr(value, "params_hash"):
            value = value.params_hash
        parts.append(f"{f.name}={value}")
    content = "|".join(parts)
    return hashlib.sha256(content.encode()).hexdigest()[:8]


def _require_unit(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise InvalidParamsError(f"{name} must lie in [0, 1], got {value}")


@dataclass(frozen=True)
class ThresholdParams:
    """Soft-threshold computation over top-1 similarities."""
    method: str = "p80_top1"
    fixed_value: float = 0.65
    clamp_min: float = 0.55
    clamp_max: float = 0.78

    def __post_init__(self):
        if self.method not in THRESHOLD_METHODS:
            raise InvalidParamsError(
                f"Unknown threshold method {self.method!r}, expected one of {THRESHOLD_METHODS}"
            )
        _require_unit("clamp_min", self.clamp_min)
        _require_unit("clamp_max", self.clamp_max)
        _require_unit("fixed_value", self.fixed_value)
        if self.clamp_min > self.clamp_max:
            raise InvalidParamsError(
                f"clamp_min ({self.clamp_min}) must not exceed clamp_max ({self.clamp_max})"
            )

    @property
    def percentile(self) -> Optional[float]:
        """Percentile implied by the method name (None for 'fixed')."""
        if self.method == "p80_top1":
            return 0.80
        if self.method == "p75_top1":
            return 0.75
        return None

    @property
    def params_hash(self) -> str:
        return _hash_fields(self)


@dataclass(frozen=True)
class SubstrateParams:
    """Graph construction and degeneracy checks."""
    k: int = 5
    min_paragraphs: int = 3
    threshold: ThresholdParams = ThresholdParams()

    def __post_init__(self):
        if not isinstance(self.k, int) or self.k < 1:
            raise InvalidParamsError(f"k must be a positive integer, got {self.k!r}")
        if not isinstance(self.min_paragraphs, int) or self.min_paragraphs < 2:
            raise InvalidParamsError(
                f"min_paragraphs must be an integer >= 2 (similarity needs pairs), got {self.min_paragraphs!r}"
            )

    @property
    def params_hash(self) -> str:
        return _hash_fields(self)


@dataclass(frozen=True)
class RegionParams:
    """Region partitioning.

    backbone: which graph's connected components seed component regions.
    """
    backbone: str = "strong"
    min_component_size: int = 2

    def __post_init__(self):
        if self.backbone not in BACKBONES:
            raise InvalidParamsError(
                f"Unknown backbone {self.backbone!r}, expected one of {BACKBONES}"
            )
        if self.min_component_size < 2:
            raise InvalidParamsError(
                f"min_component_size must be at least 2, got {self.min_component_size}"
            )

    @property
    def params_hash(self) -> str:
        return _hash_fields(self)


@dataclass(frozen=True)
class TierThresholds:
    """Minimums a region must clear to reach a tier."""
    min_model_diversity_ratio: float
    min_model_diversity_absolute: int
    min_internal_density: float

    def __post_init__(self):
        _require_unit("min_model_diversity_ratio", self.min_model_diversity_ratio)
        _require_unit("min_internal_density", self.min_internal_density)
        if self.min_model_diversity_absolute < 1:
            raise InvalidParamsError(
                f"min_model_diversity_absolute must be >= 1, got {self.min_model_diversity_absolute}"
            )


@dataclass(frozen=True)
class ProfileParams:
    """Region profiling: tier tables and nearest-carrier fallback order."""
    peak: TierThresholds = TierThresholds(0.5, 3, 0.25)
    hill: TierThresholds = TierThresholds(0.25, 2, 0.1)
    carrier_sources: Tuple[str, ...] = CARRIER_SOURCES

    def __post_init__(self):
        if not self.carrier_sources:
            raise InvalidParamsError("carrier_sources must name at least one source")
        unknown = [s for s in self.carrier_sources if s not in CARRIER_SOURCES]
        if unknown:
            raise InvalidParamsError(
                f"Unknown carrier sources {unknown}, expected a subset of {CARRIER_SOURCES}"
            )

    @property
    def params_hash(self) -> str:
        return _hash_fields(self)


@dataclass(frozen=True)
class GateParams:
    """Pipeline gate cutoffs."""
    trivial_largest_ratio: float = 0.85
    trivial_model_diversity_ratio: float = 0.8
    trivial_isolation: float = 0.1
    insufficient_isolation: float = 0.7
    insufficient_max_component_size: int = 2
    proceed_density_reference: float = 0.35

    def __post_init__(self):
        for name in (
            "trivial_largest_ratio",
            "trivial_model_diversity_ratio",
            "trivial_isolation",
            "insufficient_isolation",
        ):
            _require_unit(name, getattr(self, name))
        if self.trivial_largest_ratio >= 1.0:
            raise InvalidParamsError("trivial_largest_ratio must be below 1")
        if self.trivial_model_diversity_ratio >= 1.0:
            raise InvalidParamsError("trivial_model_diversity_ratio must be below 1")
        if self.trivial_isolation <= 0.0:
            raise InvalidParamsError("trivial_isolation must be positive")
        if self.insufficient_isolation >= 1.0:
            raise InvalidParamsError("insufficient_isolation must be below 1")
        if self.insufficient_max_component_size < 1:
            raise InvalidParamsError("insufficient_max_component_size must be >= 1")
        if self.proceed_density_reference <= 0.0:
            raise InvalidParamsError("proceed_density_reference must be positive")

    @property
    def params_hash(self) -> str:
        return _hash_fields(self)


@dataclass(frozen=True)
class OrderingParams:
    """Model ordering.

    max_relevance_blend caps how much an external relevance boost can reshape
    irreplaceability; relevance_spread_saturation is the boost stddev at which
    the cap is reached.
    """
    low_diversity_max: int = 2
    max_relevance_blend: float = 0.35
    relevance_spread_saturation: float = 0.15

    def __post_init__(self):
        if self.low_diversity_max < 1:
            raise InvalidParamsError(f"low_diversity_max must be >= 1, got {self.low_diversity_max}")
        _require_unit("max_relevance_blend", self.max_relevance_blend)
        if self.relevance_spread_saturation <= 0.0:
            raise InvalidParamsError("relevance_spread_saturation must be positive")

    @property
    def params_hash(self) -> str:
        return _hash_fields(self)


@dataclass(frozen=True)
class AlignmentParams:
    """Claim alignment thresholds."""
    coverage_threshold: float = 0.50
    split_threshold: float = 0.85
    merge_threshold: float = 0.92
    unattended_coverage: float = 0.25
    unattended_min_statements: int = 2

    def __post_init__(self):
        _require_unit("coverage_threshold", self.coverage_threshold)
        _require_unit("merge_threshold", self.merge_threshold)
        _require_unit("unattended_coverage", self.unattended_coverage)
        # Split compares cosine distance, which spans [0, 2]
        if not 0.0 <= self.split_threshold <= 2.0:
            raise InvalidParamsError(f"split_threshold must lie in [0, 2], got {self.split_threshold}")
        if self.unattended_min_statements < 0:
            raise InvalidParamsError("unattended_min_statements must be >= 0")

    @property
    def params_hash(self) -> str:
        return _hash_fields(self)


@dataclass(frozen=True)
class DiagnosticsParams:
    """Diagnostics cutoffs.

    hard_merge_threshold: similarity at which mutual edges form position
    groups. None means the substrate's soft threshold.
    """
    high_support_ratio: float = 0.3
    dominant_support_ratio: float = 0.7
    divergence_min_gap: int = 2
    suspect_isolation: float = 0.5
    suspect_largest_ratio: float = 0.4
    hard_merge_threshold: Optional[float] = None

    def __post_init__(self):
        _require_unit("high_support_ratio", self.high_support_ratio)
        _require_unit("dominant_support_ratio", self.dominant_support_ratio)
        _require_unit("suspect_isolation", self.suspect_isolation)
        _require_unit("suspect_largest_ratio", self.suspect_largest_ratio)
        if self.hard_merge_threshold is not None:
            _require_unit("hard_merge_threshold", self.hard_merge_threshold)
        if self.divergence_min_gap < 1:
            raise InvalidParamsError("divergence_min_gap must be >= 1")

    @property
    def params_hash(self) -> str:
        return _hash_fields(self)


@dataclass(frozen=True)
class KernelParams:
    """Combined parameters for the whole pipeline."""
    substrate: SubstrateParams = SubstrateParams()
    regions: RegionParams = RegionParams()
    profiles: ProfileParams = ProfileParams()
    gates: GateParams = GateParams()
    ordering: OrderingParams = OrderingParams()
    alignment: AlignmentParams = AlignmentParams()
    diagnostics: DiagnosticsParams = DiagnosticsParams()
    kernel_version: str = "1.0.0"

    @property
    def params_hash(self) -> str:
        return _hash_fields(self)
