"""
Region Builder Tests
====================

Component regions first, patch regions for the rest; every node in
exactly one region; IDs assigned after sorting.
"""

import pytest

from substrate.builders.region_builder import backbone_components, build_regions
from substrate.builders.substrate_builder import build_geometric_substrate
from substrate.contracts.regions import RegionKind
from substrate.params import RegionParams, SubstrateParams, ThresholdParams


class TestScenarioRegions:
    """Regions over the scenario substrate."""

    def test_partition(self, scenario_regions):
        """One component region, then two singleton patches."""
        regions = scenario_regions.regions
        assert [r.id for r in regions] == ["r_0", "r_1", "r_2"]
        assert [r.node_ids for r in regions] == [("a", "b", "c"), ("d",), ("e",)]
        assert [r.kind for r in regions] == [RegionKind.COMPONENT, RegionKind.PATCH, RegionKind.PATCH]

    def test_source_ids(self, scenario_regions):
        """Regions remember the component or patch they came from."""
        r0, r1, _ = scenario_regions.regions
        assert r0.source_id == "comp_0"
        assert r1.source_id == "patch_d"

    def test_statement_union_in_node_order(self, scenario_regions):
        """Statements are collected node by node."""
        assert scenario_regions.regions[0].statement_ids == ("s_a1", "s_a2", "s_b1", "s_c1")

    def test_model_indices(self, scenario_regions):
        """Model indices are distinct and ascending."""
        assert scenario_regions.regions[0].model_indices == (0, 1, 2)
        assert scenario_regions.regions[2].model_indices == (3,)

    def test_meta(self, scenario_regions):
        """Meta counts regions by kind and confirms full coverage."""
        meta = scenario_regions.meta
        assert meta.region_count == 3
        assert meta.kind_counts == {"component": 1, "patch": 2}
        assert meta.covered_nodes == meta.total_nodes == 5
        assert meta.backbone == "strong"

    def test_lookup(self, scenario_regions):
        """Node-to-region and ID lookups."""
        assert scenario_regions.region_of()["c"] == "r_0"
        assert scenario_regions.get("r_2").node_ids == ("e",)
        assert scenario_regions.get("r_9") is None

    def test_kind_counts_read_only(self, scenario_regions):
        """kind_counts cannot be modified after the build."""
        with pytest.raises(TypeError):
            scenario_regions.meta.kind_counts["patch"] = 9
        assert scenario_regions.meta.kind_counts["patch"] == 2

    def test_regionization_hashable(self, scenario_regions, scenario_substrate):
        """Regionizations hash, and rebuilding gives an equal hash."""
        assert hash(scenario_regions) == hash(build_regions(scenario_substrate))

    def test_serializes_kind_counts(self, scenario_regions):
        """kind_counts serializes as a plain dict."""
        data = scenario_regions.meta.to_dict()
        assert data["kind_counts"] == {"component": 1, "patch": 2}
        assert type(data["kind_counts"]) is dict


class TestPatches:
    """Patch regions for nodes outside any component."""

    def test_shared_patch_signature_groups_nodes(self, scenario_paragraphs, scenario_embeddings):
        """With a threshold above every edge the strong graph is empty,
        and a, b, c share the mutual patch {a, b, c}."""
        threshold = ThresholdParams(method="fixed", fixed_value=0.99, clamp_max=0.99)
        params = SubstrateParams(k=2, threshold=threshold)
        substrate = build_geometric_substrate(scenario_paragraphs, scenario_embeddings, params=params)
        assert substrate.graphs.strong.edge_count == 0

        regions = build_regions(substrate)
        assert regions.meta.kind_counts["component"] == 0
        first = regions.regions[0]
        assert first.kind == RegionKind.PATCH
        assert first.node_ids == ("a", "b", "c")
        assert first.source_id == "patch_a_b_c"

    def test_degenerate_substrate_is_all_singletons(self, scenario_paragraphs):
        """A degenerate substrate yields one patch per node."""
        substrate = build_geometric_substrate(scenario_paragraphs, None)
        regions = build_regions(substrate)
        assert regions.meta.region_count == 5
        assert all(r.kind == RegionKind.PATCH and r.size == 1 for r in regions.regions)
        assert [r.node_ids[0] for r in regions.regions] == ["a", "b", "c", "d", "e"]


class TestBackbone:
    """Backbone choice and component size floor."""

    def test_mutual_backbone(self, scenario_substrate):
        """Components can be taken from the mutual graph."""
        components = backbone_components(scenario_substrate, "mutual")
        assert components[0].node_ids == ("a", "b", "c")

    def test_min_component_size(self, scenario_substrate):
        """Components below the floor fall through to patches."""
        regions = build_regions(scenario_substrate, RegionParams(min_component_size=4))
        assert regions.meta.kind_counts["component"] == 0
        assert regions.meta.covered_nodes == 5
