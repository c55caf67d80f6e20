"""
Statement Fate and Completeness Tests
=====================================

Every statement gets exactly one fate (primary, supporting, orphan,
noise); the completeness report rolls fates and unattended regions up
into counts and ratios.
"""

import logging

import pytest

from substrate.alignment.completeness import (
    build_completeness_report,
    build_statement_fates,
    statement_universe,
    track_statement_fates,
)
from substrate.contracts.alignment import FateKind
from substrate.contracts.regions import Regionization, RegionizationMeta
from substrate.views.enrichment import EnrichmentResult, StatementCoordinates, enrich_statements


CLAIMS = [
    {"id": "c1", "label": "Core position", "sourceStatementIds": ["s_a1", "s_b1"], "supportRatio": 0.6},
    {"id": "c2", "label": "Restated core", "sourceStatementIds": ["s_a2"], "supportRatio": 0.2},
    {"id": "c3", "label": "Bridge", "sourceStatementIds": ["s_d1", "s_e1"], "supportRatio": 0.1},
]


@pytest.fixture
def fates(scenario_substrate, scenario_regions, scenario_paragraphs):
    return track_statement_fates(CLAIMS, scenario_substrate, scenario_regions, scenario_paragraphs)


def _by_id(fates):
    return {f.statement_id: f for f in fates}


# ============================================================================
# STATEMENT UNIVERSE
# ============================================================================

class TestStatementUniverse:
    """The statements a fate pass covers."""

    def test_paragraph_order(self, scenario_substrate, scenario_paragraphs):
        """Statements follow paragraph order, then statement order."""
        assert statement_universe(scenario_substrate, scenario_paragraphs) == [
            "s_a1", "s_a2", "s_b1", "s_c1", "s_d1", "s_e1",
        ]

    def test_falls_back_to_nodes(self, scenario_substrate):
        """Without paragraphs the substrate nodes supply the statements."""
        assert statement_universe(scenario_substrate) == [
            "s_a1", "s_a2", "s_b1", "s_c1", "s_d1", "s_e1",
        ]

    def test_shared_statement_listed_once(self, scenario_substrate):
        """A statement listed by two paragraphs appears once."""
        paragraphs = [
            {"id": "p1", "modelIndex": 0, "statementIds": ["s1", "s2"]},
            {"id": "p2", "modelIndex": 1, "statementIds": ["s2", "s3"]},
        ]
        assert statement_universe(scenario_substrate, paragraphs) == ["s1", "s2", "s3"]


# ============================================================================
# FATES
# ============================================================================

class TestFates:
    """Fate assignment from claim citations and geometric coordinates."""

    def test_one_fate_per_statement(self, fates):
        """Six statements in, six fates out, in universe order."""
        assert [f.statement_id for f in fates] == ["s_a1", "s_a2", "s_b1", "s_c1", "s_d1", "s_e1"]

    def test_primary(self, fates):
        """A statement cited by one claim is primary."""
        fate = _by_id(fates)["s_b1"]
        assert fate.fate == FateKind.PRIMARY
        assert fate.claim_ids == ("c1",)
        assert fate.reason == "Referenced by 1 claim(s): c1"
        assert fate.region_id == "r_0"

    def test_orphan_in_region(self, fates):
        """An uncited statement inside a region is an orphan."""
        fate = _by_id(fates)["s_c1"]
        assert fate.fate == FateKind.ORPHAN
        assert fate.claim_ids == ()
        assert fate.reason == "In region r_0 but not referenced by any claim"
        assert fate.component_id == "comp_0"
        assert fate.model_index == 2
        assert fate.geometric_isolation == pytest.approx(1 - 0.950074, abs=1e-6)

    def test_supporting(self, scenario_substrate, scenario_regions, scenario_paragraphs):
        """A statement cited by several claims is supporting."""
        claims = CLAIMS + [{"id": "c4", "sourceStatementIds": ["s_a1"]}]
        fate = _by_id(track_statement_fates(claims, scenario_substrate, scenario_regions, scenario_paragraphs))["s_a1"]
        assert fate.fate == FateKind.SUPPORTING
        assert fate.claim_ids == ("c1", "c4")
        assert fate.reason == "Referenced by 2 claim(s): c1, c4"

    def test_repeated_citation_counts_once(self, scenario_substrate, scenario_regions):
        """One claim citing a statement twice still makes it primary."""
        claims = [{"id": "c5", "sourceStatementIds": ["s_c1", "s_c1"]}]
        fate = _by_id(track_statement_fates(claims, scenario_substrate, scenario_regions))["s_c1"]
        assert fate.fate == FateKind.PRIMARY
        assert fate.claim_ids == ("c5",)

    def test_no_coordinates_is_noise(self, scenario_substrate, scenario_regions, scenario_paragraphs):
        """A statement no paragraph owns has no coordinates and is noise."""
        enrichment = enrich_statements(["s_a1", "ghost"], scenario_paragraphs, scenario_substrate, scenario_regions)
        fate = _by_id(build_statement_fates(["s_a1", "ghost"], [], enrichment))["ghost"]
        assert fate.fate == FateKind.NOISE
        assert fate.reason == "No geometric coordinates"
        assert fate.region_id is None
        assert fate.geometric_isolation == 1.0

    def test_component_without_region(self, scenario_substrate, scenario_paragraphs):
        """With no region assignment, the component still makes it an orphan."""
        empty = Regionization(
            regions=(),
            meta=RegionizationMeta(region_count=0, kind_counts={}, covered_nodes=0, total_nodes=5, backbone="strong"),
        )
        fate = _by_id(track_statement_fates([], scenario_substrate, empty, scenario_paragraphs))["s_a1"]
        assert fate.fate == FateKind.ORPHAN
        assert fate.reason == "In component comp_0 but no region assignment"

    def test_isolated_node_is_noise(self):
        """Coordinates with neither component nor region mean an isolated node."""
        coords = StatementCoordinates(
            statement_id="s1", paragraph_id="p1", model_index=0, component_id=None, region_id=None,
            knn_degree=0, mutual_degree=0, strong_degree=0, isolation_score=1.0,
        )
        [fate] = build_statement_fates(["s1"], [], EnrichmentResult(coordinates=(coords,), failures=()))
        assert fate.fate == FateKind.NOISE
        assert fate.reason == "Isolated node"
        assert fate.model_index == 0

    def test_warns_without_any_coordinates(self, caplog):
        """A pass where nothing has coordinates is logged as a warning."""
        with caplog.at_level(logging.WARNING, logger="substrate.alignment.completeness"):
            build_statement_fates(["s1"], [], EnrichmentResult(coordinates=(), failures=()))
        assert "no statement has geometric coordinates" in caplog.text

    def test_inputs_untouched(self, fates, scenario_regions):
        """Fate tracking leaves the regionization as it was."""
        assert scenario_regions.meta.region_count == 3
        assert scenario_regions.regions[0].statement_ids == ("s_a1", "s_a2", "s_b1", "s_c1")


# ============================================================================
# COMPLETENESS REPORT
# ============================================================================

class TestCompletenessReport:
    """Statement and region completeness counts and ratios."""

    def test_statement_counts(self, fates, scenario_regions):
        """Five of six statements are in claims; s_c1 is the orphan."""
        report = build_completeness_report(fates, (), scenario_regions)
        assert report.statements.total == 6
        assert report.statements.in_claims == 5
        assert report.statements.orphaned == 1
        assert report.statements.noise == 0
        assert report.statements.coverage_ratio == pytest.approx(5 / 6)

    def test_all_regions_attended(self, fates, scenario_regions):
        """No unattended regions means full region coverage and no previews."""
        report = build_completeness_report(fates, (), scenario_regions)
        assert report.regions.total == 3
        assert report.regions.attended == 3
        assert report.regions.coverage_ratio == 1.0
        assert report.unattended_previews == ()

    def test_unattended_region_preview(self, fates, scenario_regions):
        """An unattended region is previewed with its first three statements."""
        report = build_completeness_report(fates, ("r_0",), scenario_regions)
        assert report.regions.attended == 2
        assert report.regions.unattended == 1
        assert report.regions.coverage_ratio == pytest.approx(2 / 3)
        [preview] = report.unattended_previews
        assert preview.region_id == "r_0"
        assert preview.statement_ids == ("s_a1", "s_a2", "s_b1")

    def test_unknown_region_previewed_empty(self, fates, scenario_regions):
        """An unattended ID with no matching region yields an empty preview."""
        report = build_completeness_report(fates, ("r_9",), scenario_regions)
        assert report.unattended_previews[0].statement_ids == ()

    def test_previews_capped(self, fates, scenario_regions):
        """At most five regions are previewed; attended never goes negative."""
        report = build_completeness_report(fates, [f"r_{i}" for i in range(7)], scenario_regions)
        assert len(report.unattended_previews) == 5
        assert report.regions.attended == 0

    def test_empty_is_complete(self):
        """No statements and no regions count as complete."""
        empty = Regionization(
            regions=(),
            meta=RegionizationMeta(region_count=0, kind_counts={}, covered_nodes=0, total_nodes=0, backbone="strong"),
        )
        report = build_completeness_report((), (), empty)
        assert report.statements.coverage_ratio == 1.0
        assert report.regions.coverage_ratio == 1.0

    def test_serializes(self, fates, scenario_regions):
        """The report serializes to plain dicts with a recovery section."""
        data = build_completeness_report(fates, ("r_0",), scenario_regions).to_dict()
        assert data["statements"]["in_claims"] == 5
        assert data["recovery"]["unattended_region_previews"] == [
            {"region_id": "r_0", "statement_ids": ["s_a1", "s_a2", "s_b1"]},
        ]
        assert fates[3].to_dict()["fate"] == "orphan"
