"""
Geometry Kernel Tests
=====================

End-to-end orchestration: build, interpret, align. Results are
JSON-serializable and identical across runs (apart from timing).
"""

import json

import pytest

from substrate import GeometryKernel, KernelParams
from substrate.contracts.alignment import FateKind
from substrate.contracts.gates import GateVerdict
from substrate.types import DegenerateReason


CLAIMS = [
    {"id": "c1", "label": "Core position", "sourceStatementIds": ["s_a1", "s_b1"], "supportRatio": 0.6},
    {"id": "c2", "label": "Bridge", "sourceStatementIds": ["s_d1", "s_e1"], "supportRatio": 0.2},
]
EDGES = [{"from": "c1", "to": "c2", "type": "conflicts"}]


def _strip_timing(data):
    data = json.loads(json.dumps(data))
    data["meta"].pop("build_time_ms")
    return data


@pytest.fixture
def kernel(scenario_kernel_params):
    return GeometryKernel(scenario_kernel_params)


class TestPipeline:
    """build_substrate, interpret and align in sequence."""

    def test_full_run(self, kernel, scenario_paragraphs, scenario_embeddings, scenario_statement_embeddings):
        """The scenario flows through all three stages."""
        substrate = kernel.build_substrate(scenario_paragraphs, scenario_embeddings, "test")
        interpretation = kernel.interpret(substrate, scenario_embeddings)
        post = kernel.align(
            substrate, interpretation, CLAIMS, EDGES, scenario_statement_embeddings, scenario_paragraphs,
        )

        assert interpretation.regionization.meta.region_count == 3
        assert interpretation.gate.verdict == GateVerdict.PROCEED
        assert interpretation.ordering.ordered_model_indices == (0, 1, 2, 3)
        assert interpretation.profile_for("r_0").tier.value == "peak"
        assert interpretation.profile_for("r_9") is None
        assert post.alignment.total_claims == 2
        assert post.diagnostics.claim_count == 2

    def test_everything_serializes(
        self, kernel, scenario_paragraphs, scenario_embeddings, scenario_statement_embeddings,
    ):
        """Every stage output survives a JSON round trip."""
        substrate = kernel.build_substrate(scenario_paragraphs, scenario_embeddings, "test")
        interpretation = kernel.interpret(substrate, scenario_embeddings)
        post = kernel.align(substrate, interpretation, CLAIMS, EDGES, scenario_statement_embeddings)

        for payload in (substrate.to_dict(), interpretation.to_dict(), post.to_dict()):
            assert json.loads(json.dumps(payload)) == payload

    def test_kernel_version(self):
        """The kernel reports the version from its params."""
        assert GeometryKernel().kernel_version == KernelParams().kernel_version


class TestDeterminism:
    """Same input, same output."""

    def test_identical_runs(self, kernel, scenario_paragraphs, scenario_embeddings):
        """Two builds match apart from build time."""
        first = kernel.build_substrate(scenario_paragraphs, scenario_embeddings, "test")
        second = kernel.build_substrate(scenario_paragraphs, scenario_embeddings, "test")
        assert _strip_timing(first.to_dict()) == _strip_timing(second.to_dict())
        assert kernel.interpret(first).to_dict() == kernel.interpret(second).to_dict()

    def test_seeded_corpus_runs_match(self, corpus_factory):
        """Reversed input order gives the same graphs and interpretation."""
        paragraphs, embeddings = corpus_factory(seed=7)
        kernel = GeometryKernel()
        first = kernel.build_substrate(paragraphs, embeddings)
        second = kernel.build_substrate(list(reversed(paragraphs)), embeddings)
        assert first.graphs.knn.edge_keys() == second.graphs.knn.edge_keys()
        assert first.graphs.strong.edge_keys() == second.graphs.strong.edge_keys()
        assert first.topology.to_dict() == second.topology.to_dict()
        assert kernel.interpret(first, embeddings).to_dict() == kernel.interpret(second, embeddings).to_dict()


class TestSkipGeometry:
    """Degenerate substrates fall back to natural order."""

    def test_degenerate_uses_natural_order(self, kernel, scenario_paragraphs):
        """No embeddings: skip geometry, order models by index."""
        substrate = kernel.build_substrate(scenario_paragraphs, None)
        interpretation = kernel.interpret(substrate)

        assert substrate.degenerate_reason == DegenerateReason.EMBEDDING_FAILURE
        assert interpretation.gate.verdict == GateVerdict.SKIP_GEOMETRY
        assert interpretation.ordering.natural_order
        assert interpretation.ordering.ordered_model_indices == (0, 1, 2, 3)
        assert interpretation.ordering.region_count == 5

    def test_align_on_degenerate(self, kernel, scenario_paragraphs, scenario_statement_embeddings):
        """Alignment still runs over the singleton regions."""
        substrate = kernel.build_substrate(scenario_paragraphs, None)
        interpretation = kernel.interpret(substrate)
        post = kernel.align(substrate, interpretation, CLAIMS, EDGES, scenario_statement_embeddings)
        assert post.alignment.total_regions == 5


class TestStatementFates:
    """align tracks every statement and reports completeness."""

    @pytest.fixture
    def prepared(self, kernel, scenario_paragraphs, scenario_embeddings):
        substrate = kernel.build_substrate(scenario_paragraphs, scenario_embeddings, "test")
        return substrate, kernel.interpret(substrate, scenario_embeddings)

    def test_fates_from_claims(self, kernel, prepared, scenario_paragraphs, scenario_statement_embeddings):
        """Cited statements are primary; uncited ones in r_0 are orphans."""
        substrate, interpretation = prepared
        post = kernel.align(
            substrate, interpretation, CLAIMS, EDGES, scenario_statement_embeddings, scenario_paragraphs,
        )
        assert post.fate_of("s_a1").fate == FateKind.PRIMARY
        assert post.fate_of("s_a2").fate == FateKind.ORPHAN
        assert post.fate_of("s_c1").region_id == "r_0"
        assert post.fate_of("unknown") is None

    def test_completeness(self, kernel, prepared, scenario_paragraphs, scenario_statement_embeddings):
        """Four of six statements are in claims; every region is attended."""
        substrate, interpretation = prepared
        post = kernel.align(
            substrate, interpretation, CLAIMS, EDGES, scenario_statement_embeddings, scenario_paragraphs,
        )
        statements = post.completeness.statements
        assert (statements.total, statements.in_claims, statements.orphaned) == (6, 4, 2)
        assert post.completeness.regions.attended == 3
        assert post.completeness.regions.coverage_ratio == 1.0

    def test_nodes_stand_in_for_paragraphs(self, kernel, prepared, scenario_statement_embeddings):
        """Without paragraphs, the same statements come from the substrate."""
        substrate, interpretation = prepared
        post = kernel.align(substrate, interpretation, CLAIMS, EDGES, scenario_statement_embeddings)
        assert post.completeness.statements.total == 6
        assert post.completeness.statements.in_claims == 4

    def test_paragraph_generator_read_once(self, kernel, prepared, scenario_paragraphs, scenario_statement_embeddings):
        """A one-shot iterable of paragraphs feeds both diagnostics and fates."""
        substrate, interpretation = prepared
        post = kernel.align(
            substrate, interpretation, CLAIMS, EDGES, scenario_statement_embeddings, iter(scenario_paragraphs),
        )
        assert post.completeness.statements.total == 6
        c1 = {m.claim_id: m for m in post.diagnostics.claim_measurements}["c1"]
        assert c1.source_model_diversity == 2

    def test_serialized(self, kernel, prepared, scenario_statement_embeddings):
        """Fates and completeness appear in the serialized output."""
        substrate, interpretation = prepared
        data = kernel.align(substrate, interpretation, CLAIMS, EDGES, scenario_statement_embeddings).to_dict()
        assert [f["statement_id"] for f in data["statement_fates"]][:2] == ["s_a1", "s_a2"]
        assert data["completeness"]["statements"]["in_claims"] == 4
