"""
Pipeline Gate Tests
===================

First-match decision list over topology measurements, with
monotonicity checks over the isolation axis.
"""

import numpy as np
import pytest

from substrate.builders.substrate_builder import build_geometric_substrate
from substrate.contracts.gates import GateMeasurements, GateVerdict
from substrate.views.gates import evaluate_gate_measurements, evaluate_pipeline_gates, measure_gates


def _measurements(**overrides):
    values = dict(
        is_degenerate=False,
        largest_component_ratio=0.5,
        largest_component_model_diversity_ratio=0.5,
        isolation_ratio=0.3,
        max_component_size=5,
        global_density=0.2,
        node_count=20,
    )
    values.update(overrides)
    return GateMeasurements(**values)


class TestVerdicts:
    """First matching rule decides the verdict."""

    def test_degenerate_skips_geometry(self, scenario_paragraphs):
        """A degenerate substrate skips geometry with full confidence."""
        substrate = build_geometric_substrate(scenario_paragraphs, None)
        result = evaluate_pipeline_gates(substrate)
        assert result.verdict == GateVerdict.SKIP_GEOMETRY
        assert result.confidence == 1.0
        assert not result.permits_geometric_ordering

    def test_trivial_convergence(self):
        """One dominant, diverse component with little isolation is trivial."""
        m = _measurements(
            largest_component_ratio=0.9,
            largest_component_model_diversity_ratio=0.9,
            isolation_ratio=0.05,
        )
        result = evaluate_gate_measurements(m)
        assert result.verdict == GateVerdict.TRIVIAL_CONVERGENCE
        assert result.confidence == pytest.approx((1 / 3 + 0.5 + 0.5) / 3)
        assert result.permits_geometric_ordering

    def test_trivial_needs_model_diversity(self):
        """A dominant component from few models is not trivial."""
        m = _measurements(
            largest_component_ratio=0.9,
            largest_component_model_diversity_ratio=0.5,
            isolation_ratio=0.05,
        )
        assert evaluate_gate_measurements(m).verdict == GateVerdict.PROCEED

    def test_insufficient_structure(self):
        """Mostly isolated nodes with only tiny components."""
        m = _measurements(isolation_ratio=0.85, max_component_size=2, largest_component_ratio=0.1)
        result = evaluate_gate_measurements(m)
        assert result.verdict == GateVerdict.INSUFFICIENT_STRUCTURE
        assert result.confidence == pytest.approx(0.5)
        assert result.permits_geometric_ordering

    def test_large_component_blocks_insufficient(self):
        """A component of three or more keeps the pipeline going."""
        m = _measurements(isolation_ratio=0.85, max_component_size=3)
        assert evaluate_gate_measurements(m).verdict == GateVerdict.PROCEED

    def test_scenario_proceeds(self, scenario_substrate):
        """The scenario proceeds with blended confidence."""
        result = evaluate_pipeline_gates(scenario_substrate)
        assert result.verdict == GateVerdict.PROCEED
        assert result.confidence == pytest.approx(0.25 + (0.3 / 0.35) * 0.45 + (0.6 / 0.9) * 0.3)

    def test_evidence_strings(self, scenario_substrate):
        """Evidence is a list of readable key=value strings."""
        evidence = evaluate_pipeline_gates(scenario_substrate).evidence
        assert "largest_component=60%_of_nodes" in evidence
        assert "isolation_ratio=40%" in evidence
        assert "max_component_size=3" in evidence


class TestMeasurements:
    """Measurements read off the substrate."""

    def test_scenario_measurements(self, scenario_substrate):
        """Largest component, its model spread and node count."""
        m = measure_gates(scenario_substrate)
        assert m.largest_component_ratio == pytest.approx(0.6)
        assert m.largest_component_model_diversity_ratio == pytest.approx(0.75)
        assert m.max_component_size == 3
        assert m.node_count == 5
        assert not m.is_degenerate

    def test_serializes(self, scenario_substrate):
        """Gate results serialize with their measurements."""
        data = evaluate_pipeline_gates(scenario_substrate).to_dict()
        assert data["verdict"] == "proceed"
        assert data["measurements"]["max_component_size"] == 3


class TestMonotonicity:
    """Raising isolation never moves a verdict back toward proceed, and
    never lowers insufficient-structure confidence."""

    @pytest.mark.parametrize("max_size", [1, 2])
    def test_isolation_sweep(self, max_size):
        """Once insufficient, always insufficient, with rising confidence."""
        seen_insufficient = False
        last_confidence = 0.0
        for isolation in np.linspace(0.0, 1.0, 41):
            m = _measurements(isolation_ratio=float(isolation), max_component_size=max_size, largest_component_ratio=0.2)
            result = evaluate_gate_measurements(m)
            if seen_insufficient:
                assert result.verdict == GateVerdict.INSUFFICIENT_STRUCTURE
                assert result.confidence >= last_confidence
            if result.verdict == GateVerdict.INSUFFICIENT_STRUCTURE:
                seen_insufficient = True
                last_confidence = result.confidence
        assert seen_insufficient

    def test_proceed_confidence_falls_with_isolation(self):
        """More isolation means less confidence in proceeding."""
        confidences = [
            evaluate_gate_measurements(_measurements(isolation_ratio=float(x))).confidence
            for x in np.linspace(0.0, 0.7, 15)
        ]
        assert confidences == sorted(confidences, reverse=True)

    def test_confidence_in_unit_range(self):
        """Confidence stays in [0, 1] across the grid."""
        for isolation in np.linspace(0.0, 1.0, 11):
            for density in (0.0, 0.2, 1.0):
                result = evaluate_gate_measurements(
                    _measurements(isolation_ratio=float(isolation), global_density=density),
                )
                assert 0.0 <= result.confidence <= 1.0
