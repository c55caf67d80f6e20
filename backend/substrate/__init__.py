"""
Geometric Substrate
===================

Deterministic geometric structure over paragraph embeddings produced by
several models answering the same query.

ARCHITECTURE:
    paragraphs + embeddings → GeometricSubstrate (kNN / mutual / strong graphs,
                                                  topology, shape, node stats)
                            → Regionization (complete, disjoint partition)
                            → RegionProfiles (mass, purity, geometry, tier)
                            → PipelineGateResult (advisory verdict)
                            → ModelOrderingResult (outside-in placement)
    claims + claim edges    → AlignmentResult + DiagnosticsResult (observation only)
                            → StatementFates + CompletenessReport

GUARANTEES:
- Identical input + params → identical edges, component IDs, region IDs, ordering
- Similarities quantized to 1e-6; every tie broken by lexicographic ID
- Degenerate input is a tagged substrate, never an exception
- Only configuration errors raise (InvalidParamsError)

PUBLIC API (Stable):
- GeometryKernel, PreSemanticInterpretation, PostSemanticAlignment
- KernelParams and the per-stage params objects
- build_geometric_substrate, build_regions, profile_regions,
  evaluate_pipeline_gates, compute_model_ordering
- build_claim_vectors, compute_alignment, compute_diagnostics,
  track_statement_fates, build_completeness_report
"""

# =============================================================================
# PUBLIC API - Stable exports for downstream consumers
# =============================================================================

# Errors
from .errors import SubstrateError, InvalidParamsError, InputValidationError

# Parameters
from .params import (
    ThresholdParams,
    SubstrateParams,
    RegionParams,
    TierThresholds,
    ProfileParams,
    GateParams,
    OrderingParams,
    AlignmentParams,
    DiagnosticsParams,
    KernelParams,
)

# Core types
from .types import (
    GraphKind,
    DegenerateReason,
    Edge,
    SimilarityGraph,
    SubstrateGraphs,
    NodeStats,
    Component,
    TopologyMetrics,
    ShapeClassification,
    SimilarityStats,
    ExtendedSimilarityStats,
    SubstrateMeta,
    GeometricSubstrate,
    is_degenerate,
)

# Contracts
from .contracts import (
    ParagraphRecord,
    ClaimRecord,
    ClaimEdgeRecord,
    parse_paragraphs,
    parse_claims,
    parse_claim_edges,
    SignalType,
    Severity,
    SubstrateSignal,
    RegionKind,
    Tier,
    Region,
    Regionization,
    RegionProfile,
    GateVerdict,
    GateMeasurements,
    PipelineGateResult,
    ModelScore,
    ModelOrderingResult,
    ClaimVector,
    AlignmentResult,
    ObservationType,
    DiagnosticsResult,
    FateKind,
    StatementFate,
    CompletenessReport,
)

# Builders
from .builders import build_geometric_substrate, build_regions

# Views
from .views import (
    profile_regions,
    evaluate_pipeline_gates,
    evaluate_gate_measurements,
    compute_model_ordering,
    outside_in_order,
    compute_per_model_query_relevance,
    enrich_statements,
)

# Alignment
from .alignment import (
    build_claim_vectors,
    compute_alignment,
    compute_diagnostics,
    track_statement_fates,
    build_completeness_report,
)

# Kernel
from .kernel import GeometryKernel, PreSemanticInterpretation, PostSemanticAlignment


__all__ = [
    # Errors
    "SubstrateError",
    "InvalidParamsError",
    "InputValidationError",
    # Parameters
    "ThresholdParams",
    "SubstrateParams",
    "RegionParams",
    "TierThresholds",
    "ProfileParams",
    "GateParams",
    "OrderingParams",
    "AlignmentParams",
    "DiagnosticsParams",
    "KernelParams",
    # Types
    "GraphKind",
    "DegenerateReason",
    "Edge",
    "SimilarityGraph",
    "SubstrateGraphs",
    "NodeStats",
    "Component",
    "TopologyMetrics",
    "ShapeClassification",
    "SimilarityStats",
    "ExtendedSimilarityStats",
    "SubstrateMeta",
    "GeometricSubstrate",
    "is_degenerate",
    # Contracts
    "ParagraphRecord",
    "ClaimRecord",
    "ClaimEdgeRecord",
    "parse_paragraphs",
    "parse_claims",
    "parse_claim_edges",
    "SignalType",
    "Severity",
    "SubstrateSignal",
    "RegionKind",
    "Tier",
    "Region",
    "Regionization",
    "RegionProfile",
    "GateVerdict",
    "GateMeasurements",
    "PipelineGateResult",
    "ModelScore",
    "ModelOrderingResult",
    "ClaimVector",
    "AlignmentResult",
    "ObservationType",
    "DiagnosticsResult",
    "FateKind",
    "StatementFate",
    "CompletenessReport",
    # Builders
    "build_geometric_substrate",
    "build_regions",
    # Views
    "profile_regions",
    "evaluate_pipeline_gates",
    "evaluate_gate_measurements",
    "compute_model_ordering",
    "outside_in_order",
    "compute_per_model_query_relevance",
    "enrich_statements",
    # Alignment
    "build_claim_vectors",
    "compute_alignment",
    "compute_diagnostics",
    "track_statement_fates",
    "build_completeness_report",
    # Kernel
    "GeometryKernel",
    "PreSemanticInterpretation",
    "PostSemanticAlignment",
]
