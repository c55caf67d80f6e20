"""
Contracts - Frozen value objects crossing module boundaries.

inputs:    pydantic records accepted from the extraction/synthesis steps
signals:   structured quality warnings attached to substrate meta
regions:   Region, Regionization, RegionProfile
gates:     PipelineGateResult
ordering:  ModelOrderingResult
alignment: AlignmentResult, DiagnosticsResult, StatementFate, CompletenessReport
"""

from .inputs import (
    ParagraphRecord,
    ClaimRecord,
    ClaimEdgeRecord,
    parse_paragraphs,
    parse_claims,
    parse_claim_edges,
)
from .signals import SignalType, Severity, SubstrateSignal, generate_signal_id
from .regions import (
    RegionKind,
    Tier,
    Region,
    RegionizationMeta,
    Regionization,
    RegionMass,
    RegionPurity,
    RegionGeometry,
    RegionProfile,
)
from .gates import GateVerdict, GateMeasurements, PipelineGateResult
from .ordering import ModelScoreBreakdown, ModelScore, ModelOrderingResult
from .alignment import (
    ClaimVector,
    RegionCoverage,
    SplitAlert,
    MergeAlert,
    AlignmentResult,
    ObservationType,
    GeometricObservation,
    ClaimMeasurement,
    EdgeMeasurement,
    DiagnosticsResult,
    FateKind,
    StatementFate,
    StatementCompleteness,
    RegionCompleteness,
    UnattendedRegionPreview,
    CompletenessReport,
)

__all__ = [
    # Inputs
    "ParagraphRecord",
    "ClaimRecord",
    "ClaimEdgeRecord",
    "parse_paragraphs",
    "parse_claims",
    "parse_claim_edges",
    # Signals
    "SignalType",
    "Severity",
    "SubstrateSignal",
    "generate_signal_id",
    # Regions
    "RegionKind",
    "Tier",
    "Region",
    "RegionizationMeta",
    "Regionization",
    "RegionMass",
    "RegionPurity",
    "RegionGeometry",
    "RegionProfile",
    # Gates
    "GateVerdict",
    "GateMeasurements",
    "PipelineGateResult",
    # Ordering
    "ModelScoreBreakdown",
    "ModelScore",
    "ModelOrderingResult",
    # Alignment
    "ClaimVector",
    "RegionCoverage",
    "SplitAlert",
    "MergeAlert",
    "AlignmentResult",
    "ObservationType",
    "GeometricObservation",
    "ClaimMeasurement",
    "EdgeMeasurement",
    "DiagnosticsResult",
    "FateKind",
    "StatementFate",
    "StatementCompleteness",
    "RegionCompleteness",
    "UnattendedRegionPreview",
    "CompletenessReport",
]
