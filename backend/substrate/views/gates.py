"""
Pipeline Gates
==============

Ordered decision list, first match wins:

    skip_geometry          substrate is degenerate
    trivial_convergence    one dominant, model-diverse, well-connected component
    insufficient_structure mostly isolated nodes and no component above size 2
    proceed                otherwise

The verdict is advisory. Only skip_geometry changes downstream behavior
(model ordering falls back to natural order); every other verdict still
permits full computation.
"""

import logging
from typing import List

from ..contracts.gates import GateMeasurements, GateVerdict, PipelineGateResult
from ..params import GateParams
from ..types import GeometricSubstrate

logger = logging.getLogger(__name__)


def _clamp01(value: float) -> float:
    if value <= 0:
        return 0.0
    if value >= 1:
        return 1.0
    return value


def _pct(value: float) -> str:
    return f"{round(value * 100)}%"


def measure_gates(substrate: GeometricSubstrate) -> GateMeasurements:
    """Collect the raw measurements the gates decide on."""
    topology = substrate.topology
    largest = topology.largest_component

    model_of = {n.paragraph_id: n.model_index for n in substrate.nodes}
    total_models = len(set(model_of.values()))
    largest_models = {model_of[nid] for nid in largest.node_ids if nid in model_of} if largest else set()

    return GateMeasurements(
        is_degenerate=substrate.degenerate,
        largest_component_ratio=topology.largest_component_ratio,
        largest_component_model_diversity_ratio=(
            len(largest_models) / total_models if total_models > 0 else 0.0
        ),
        isolation_ratio=topology.isolation_ratio,
        max_component_size=max((c.size for c in topology.components), default=0),
        global_density=topology.global_density,
        node_count=substrate.node_count,
    )


def evaluate_gate_measurements(
    m: GateMeasurements,
    params: GateParams = GateParams(),
) -> PipelineGateResult:
    """Pure verdict over measurements."""
    if m.is_degenerate:
        return PipelineGateResult(
            verdict=GateVerdict.SKIP_GEOMETRY,
            confidence=1.0,
            evidence=("degenerate_substrate=true",),
            measurements=m,
        )

    evidence: List[str] = [
        f"largest_component={_pct(m.largest_component_ratio)}_of_nodes",
        f"model_diversity_in_largest={_pct(m.largest_component_model_diversity_ratio)}",
        f"isolation_ratio={_pct(m.isolation_ratio)}",
        f"max_component_size={m.max_component_size}",
        f"global_density={m.global_density:.3f}",
    ]

    if (
        m.largest_component_ratio > params.trivial_largest_ratio
        and m.largest_component_model_diversity_ratio > params.trivial_model_diversity_ratio
        and m.isolation_ratio < params.trivial_isolation
    ):
        a = _clamp01((m.largest_component_ratio - params.trivial_largest_ratio) / (1 - params.trivial_largest_ratio))
        b = _clamp01(
            (m.largest_component_model_diversity_ratio - params.trivial_model_diversity_ratio)
            / (1 - params.trivial_model_diversity_ratio)
        )
        c = _clamp01((params.trivial_isolation - m.isolation_ratio) / params.trivial_isolation)
        return PipelineGateResult(
            verdict=GateVerdict.TRIVIAL_CONVERGENCE,
            confidence=_clamp01((a + b + c) / 3),
            evidence=tuple(evidence),
            measurements=m,
        )

    if (
        m.isolation_ratio > params.insufficient_isolation
        and m.max_component_size <= params.insufficient_max_component_size
    ):
        return PipelineGateResult(
            verdict=GateVerdict.INSUFFICIENT_STRUCTURE,
            confidence=_clamp01(
                (m.isolation_ratio - params.insufficient_isolation) / (1 - params.insufficient_isolation)
            ),
            evidence=tuple(evidence),
            measurements=m,
        )

    confidence = _clamp01(
        0.25
        + _clamp01(m.global_density / params.proceed_density_reference) * 0.45
        + _clamp01((1 - m.isolation_ratio) / 0.9) * 0.3
    )
    return PipelineGateResult(
        verdict=GateVerdict.PROCEED,
        confidence=confidence,
        evidence=tuple(evidence),
        measurements=m,
    )


def evaluate_pipeline_gates(
    substrate: GeometricSubstrate,
    params: GateParams = GateParams(),
) -> PipelineGateResult:
    result = evaluate_gate_measurements(measure_gates(substrate), params)
    logger.debug(f"Pipeline gate: {result.verdict.value} ({result.confidence:.2f}) {', '.join(result.evidence)}")
    return result
