"""
Region Builder
==============

Partitions substrate nodes into disjoint regions with a strict fallback
chain:

1. every backbone component with >= min_component_size nodes becomes a
   `component` region
2. remaining nodes are grouped by identical mutual-neighborhood patch
   signature into `patch` regions (singletons included)

Every node lands in exactly one region. Regions are sorted (component
kind first, larger first, smallest member ID as tie-break) and only then
numbered r_0, r_1, ...
"""

import logging
from typing import Dict, List, Sequence, Tuple

from ..contracts.regions import Region, RegionKind, Regionization, RegionizationMeta
from ..geometry.topology import compute_topology
from ..params import RegionParams
from ..types import Component, GeometricSubstrate, NodeStats

logger = logging.getLogger(__name__)


_KIND_ORDER = {RegionKind.COMPONENT: 0, RegionKind.PATCH: 1}


def _statement_union(node_ids: Sequence[str], nodes_by_id: Dict[str, NodeStats]) -> Tuple[str, ...]:
    """Member statement IDs, first occurrence wins, in node order."""
    seen = set()
    out = []
    for nid in node_ids:
        node = nodes_by_id.get(nid)
        if node is None:
            continue
        for sid in node.statement_ids:
            if sid not in seen:
                seen.add(sid)
                out.append(sid)
    return tuple(out)


def _model_indices(node_ids: Sequence[str], nodes_by_id: Dict[str, NodeStats]) -> Tuple[int, ...]:
    return tuple(sorted({nodes_by_id[nid].model_index for nid in node_ids if nid in nodes_by_id}))


def _make_region(
    kind: RegionKind,
    node_ids: Sequence[str],
    source_id: str,
    nodes_by_id: Dict[str, NodeStats],
) -> Region:
    node_ids = tuple(sorted(node_ids))
    return Region(
        id="",  # assigned after sorting
        kind=kind,
        node_ids=node_ids,
        statement_ids=_statement_union(node_ids, nodes_by_id),
        model_indices=_model_indices(node_ids, nodes_by_id),
        source_id=source_id,
    )


def backbone_components(substrate: GeometricSubstrate, backbone: str) -> Tuple[Component, ...]:
    """Components of the chosen backbone graph."""
    if backbone == "strong":
        return substrate.topology.components
    return compute_topology(substrate.graphs.get(backbone).edges, substrate.node_ids).components


def build_regions(
    substrate: GeometricSubstrate,
    params: RegionParams = RegionParams(),
) -> Regionization:
    """Partition all substrate nodes into regions."""
    nodes_by_id = substrate.nodes_by_id()
    covered = set()
    regions: List[Region] = []

    for component in backbone_components(substrate, params.backbone):
        members = [nid for nid in component.node_ids if nid not in covered]
        if len(members) < params.min_component_size:
            continue
        regions.append(_make_region(RegionKind.COMPONENT, members, component.id, nodes_by_id))
        covered.update(members)

    patches: Dict[Tuple[str, ...], List[str]] = {}
    for node in substrate.nodes:
        if node.paragraph_id in covered:
            continue
        signature = tuple(sorted(node.mutual_neighborhood_patch))
        patches.setdefault(signature, []).append(node.paragraph_id)

    for signature, members in patches.items():
        regions.append(_make_region(
            RegionKind.PATCH, members, "patch_" + "_".join(signature), nodes_by_id,
        ))
        covered.update(members)

    regions.sort(key=lambda r: (_KIND_ORDER[r.kind], -r.size, r.node_ids[0]))
    regions = [
        Region(
            id=f"r_{i}",
            kind=r.kind,
            node_ids=r.node_ids,
            statement_ids=r.statement_ids,
            model_indices=r.model_indices,
            source_id=r.source_id,
        )
        for i, r in enumerate(regions)
    ]

    kind_counts = {kind.value: 0 for kind in RegionKind}
    for r in regions:
        kind_counts[r.kind.value] += 1

    meta = RegionizationMeta(
        region_count=len(regions),
        kind_counts=kind_counts,
        covered_nodes=len(covered),
        total_nodes=substrate.node_count,
        backbone=params.backbone,
    )

    logger.debug(
        f"Regions: {meta.region_count} ({kind_counts['component']} component, "
        f"{kind_counts['patch']} patch) over {meta.total_nodes} nodes"
    )

    return Regionization(regions=tuple(regions), meta=meta)
