"""
Claim Alignment Tests
=====================

Claim vectors, region coverage, unattended regions, split and merge
alerts on the scenario layout.
"""

import numpy as np
import pytest

from substrate.alignment.claims import build_claim_vectors, compute_alignment, statement_region_map
from substrate.params import AlignmentParams


CLAIMS = [
    {"id": "c1", "label": "Core position", "sourceStatementIds": ["s_a1", "s_b1"], "supportRatio": 0.6},
    {"id": "c2", "label": "Restated core", "sourceStatementIds": ["s_a2"], "supportRatio": 0.2},
    {"id": "c3", "label": "Bridge", "sourceStatementIds": ["s_d1", "s_e1"], "supportRatio": 0.1},
]


@pytest.fixture
def claim_vectors(scenario_statement_embeddings, scenario_regions):
    return build_claim_vectors(CLAIMS, scenario_statement_embeddings, scenario_regions)


class TestClaimVectors:
    """Pooled claim vectors and their source regions."""

    def test_unit_length(self, claim_vectors):
        """Claim vectors are normalized."""
        for cv in claim_vectors:
            assert np.linalg.norm(cv.vector) == pytest.approx(1.0)

    def test_source_regions_from_statements(self, claim_vectors):
        """Source regions are derived from the cited statements."""
        by_id = {cv.claim_id: cv for cv in claim_vectors}
        assert by_id["c1"].source_region_ids == ("r_0",)
        assert by_id["c3"].source_region_ids == ("r_1", "r_2")
        assert by_id["c1"].pooled_count == 2

    def test_explicit_regions_win(self, scenario_statement_embeddings, scenario_regions):
        """Regions given on the claim override derivation."""
        claims = [{"id": "c9", "sourceStatementIds": ["s_a1"], "sourceRegionIds": ["r_2"]}]
        [cv] = build_claim_vectors(claims, scenario_statement_embeddings, scenario_regions)
        assert cv.source_region_ids == ("r_2",)

    def test_claim_without_embeddings_skipped(self, scenario_statement_embeddings):
        """A claim with nothing to pool produces no vector."""
        claims = [{"id": "c9", "sourceStatementIds": ["unknown"]}]
        assert build_claim_vectors(claims, scenario_statement_embeddings) == ()

    def test_statement_region_map(self, scenario_regions):
        """Statement to region lookup; empty without regions."""
        mapping = statement_region_map(scenario_regions)
        assert mapping["s_c1"] == "r_0"
        assert mapping["s_e1"] == "r_2"
        assert statement_region_map(None) == {}


class TestCoverage:
    """Region coverage and unattended regions."""

    def test_full_coverage(self, claim_vectors, scenario_regions, scenario_profiles, scenario_statement_embeddings):
        """All three claims together cover every region."""
        result = compute_alignment(claim_vectors, scenario_regions, scenario_profiles, scenario_statement_embeddings)

        assert result.global_coverage == 1.0
        assert result.unattended_region_ids == ()
        r0 = result.region_coverages[0]
        assert r0.tier == "peak"
        assert r0.total_statements == 4
        assert r0.covered_statements == 4
        assert r0.best_claim_id in ("c1", "c2")
        assert r0.best_claim_similarity == pytest.approx(1.0, abs=1e-6)
        assert result.total_claims == 3
        assert result.total_regions == 3

    def test_unattended_region(self, scenario_regions, scenario_profiles, scenario_statement_embeddings):
        """Without the core claims, the peak region is unattended."""
        vectors = build_claim_vectors([CLAIMS[2]], scenario_statement_embeddings, scenario_regions)
        result = compute_alignment(vectors, scenario_regions, scenario_profiles, scenario_statement_embeddings)

        assert result.unattended_region_ids == ("r_0",)
        assert result.region_coverages[0].coverage_ratio == 0.0
        assert result.global_coverage == pytest.approx(2 / 6)

    def test_single_statement_region_not_unattended(
        self, scenario_regions, scenario_profiles, scenario_statement_embeddings,
    ):
        """r_1 and r_2 hold one statement each, below the minimum of two."""
        vectors = build_claim_vectors([CLAIMS[0]], scenario_statement_embeddings, scenario_regions)
        result = compute_alignment(vectors, scenario_regions, scenario_profiles, scenario_statement_embeddings)
        assert result.region_coverages[1].coverage_ratio == 0.0
        assert "r_1" not in result.unattended_region_ids

    def test_no_claims(self, scenario_regions, scenario_profiles, scenario_statement_embeddings):
        """No claims means zero coverage and no best claim."""
        result = compute_alignment((), scenario_regions, scenario_profiles, scenario_statement_embeddings)
        assert result.global_coverage == 0.0
        assert result.region_coverages[0].best_claim_id is None


class TestAlerts:
    """Split and merge alerts."""

    def test_split_alert(self, claim_vectors, scenario_regions, scenario_profiles, scenario_statement_embeddings):
        """c3 spans two orthogonal regions."""
        result = compute_alignment(claim_vectors, scenario_regions, scenario_profiles, scenario_statement_embeddings)
        [alert] = result.split_alerts
        assert alert.claim_id == "c3"
        assert alert.region_ids == ("r_1", "r_2")
        assert alert.max_inter_region_distance == pytest.approx(1.0)

    def test_merge_alert(self, claim_vectors, scenario_regions, scenario_profiles, scenario_statement_embeddings):
        """c1 and c2 point the same way."""
        result = compute_alignment(claim_vectors, scenario_regions, scenario_profiles, scenario_statement_embeddings)
        [alert] = result.merge_alerts
        assert (alert.claim_id_a, alert.claim_id_b) == ("c1", "c2")
        assert alert.similarity > 0.92

    def test_thresholds_are_tunable(
        self, claim_vectors, scenario_regions, scenario_profiles, scenario_statement_embeddings,
    ):
        """Split and merge thresholds come from params."""
        params = AlignmentParams(split_threshold=1.5, merge_threshold=0.999)
        result = compute_alignment(
            claim_vectors, scenario_regions, scenario_profiles, scenario_statement_embeddings, params,
        )
        assert result.split_alerts == ()
        assert result.merge_alerts == ()

    def test_serializes(self, claim_vectors, scenario_regions, scenario_profiles, scenario_statement_embeddings):
        """Alignment serializes with meta and alert region lists."""
        data = compute_alignment(
            claim_vectors, scenario_regions, scenario_profiles, scenario_statement_embeddings,
        ).to_dict()
        assert data["meta"] == {"total_claims": 3, "total_regions": 3}
        assert data["split_alerts"][0]["region_ids"] == ["r_1", "r_2"]
