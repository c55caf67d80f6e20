"""
Topology - connected components over any backbone edge list.

One implementation serves every backbone (strong, mutual, thresholded
mutual for diagnostics, claim graphs). Callers pass the edge pairs and
the full node universe; nodes without edges become singletons.
"""

import logging
from typing import Dict, Iterable, List, Sequence, Tuple

from ..types import Component, Edge, TopologyMetrics

logger = logging.getLogger(__name__)


class UnionFind:
    """Union-find over a dense 0..n-1 index space.

    Path compression + union by rank. Elements are array slots, so
    callers map their IDs to indices once and work with ints.
    """

    def __init__(self, size: int):
        self.parent = list(range(size))
        self.rank = [0] * size

    def find(self, x: int) -> int:
        root = x
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]
        return root

    def union(self, x: int, y: int) -> bool:
        """Union two elements. Returns True if they were in different sets."""
        px, py = self.find(x), self.find(y)
        if px == py:
            return False
        if self.rank[px] < self.rank[py]:
            px, py = py, px
        self.parent[py] = px
        if self.rank[px] == self.rank[py]:
            self.rank[px] += 1
        return True

    def groups(self) -> Dict[int, List[int]]:
        """root -> member indices, members in index order."""
        groups: Dict[int, List[int]] = {}
        for x in range(len(self.parent)):
            groups.setdefault(self.find(x), []).append(x)
        return groups


def connected_components(
    node_ids: Sequence[str],
    pairs: Iterable[Tuple[str, str]],
) -> List[List[str]]:
    """Connected components as sorted ID lists.

    Components are ordered by size descending, then by smallest member ID.
    Pairs naming an unknown node are skipped.
    """
    index = {nid: i for i, nid in enumerate(node_ids)}
    uf = UnionFind(len(node_ids))
    for a, b in pairs:
        ia, ib = index.get(a), index.get(b)
        if ia is None or ib is None:
            logger.debug(f"Skipping edge ({a}, {b}) outside the node universe")
            continue
        uf.union(ia, ib)

    components = [
        sorted(node_ids[i] for i in members)
        for members in uf.groups().values()
    ]
    components.sort(key=lambda c: (-len(c), c[0]))
    return components


def count_components(node_ids: Sequence[str], pairs: Iterable[Tuple[str, str]]) -> Tuple[int, int]:
    """(total components, components with more than one member)."""
    components = connected_components(node_ids, pairs)
    return len(components), sum(1 for c in components if len(c) > 1)


def compute_topology(edges: Sequence[Edge], node_ids: Sequence[str]) -> TopologyMetrics:
    """Components and aggregate metrics for one backbone graph.

    Component IDs comp_0, comp_1, ... are assigned after sorting by size
    descending with the smallest member ID as tie-break.
    """
    n = len(node_ids)
    if n == 0:
        return TopologyMetrics(
            components=(),
            largest_component_ratio=0.0,
            isolation_ratio=1.0,
            global_density=0.0,
        )

    known = set(node_ids)
    edges = [e for e in edges if e.source in known and e.target in known]

    groups = connected_components(node_ids, ((e.source, e.target) for e in edges))

    component_index = {nid: i for i, group in enumerate(groups) for nid in group}
    internal_edges = [0] * len(groups)
    for e in edges:
        ci = component_index[e.source]
        if ci == component_index[e.target]:
            internal_edges[ci] += 1

    components = []
    for i, group in enumerate(groups):
        size = len(group)
        max_possible = size * (size - 1) / 2
        components.append(Component(
            id=f"comp_{i}",
            node_ids=tuple(group),
            size=size,
            internal_density=internal_edges[i] / max_possible if max_possible > 0 else 0.0,
        ))

    touched = set()
    for e in edges:
        touched.add(e.source)
        touched.add(e.target)
    isolated = sum(1 for nid in node_ids if nid not in touched)

    max_edges = n * (n - 1) / 2
    return TopologyMetrics(
        components=tuple(components),
        largest_component_ratio=components[0].size / n,
        isolation_ratio=isolated / n,
        global_density=len(edges) / max_edges if max_edges > 0 else 0.0,
    )
