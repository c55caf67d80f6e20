"""
Shape signals - a pure function of topology.

Four continuous signals, no categorical label. A label such as
"bimodal fork" implies a semantic reading that the geometry cannot
back up, so none is derived.
"""

from ..types import ShapeClassification, TopologyMetrics


def classify_shape(topology: TopologyMetrics, node_count: int) -> ShapeClassification:
    """Map topology metrics to fragmentation / bimodality / parallelism / convergence."""
    components = topology.components
    lcr = topology.largest_component_ratio

    fragmentation = min(
        1.0,
        (1 - lcr) * 0.5
        + topology.isolation_ratio * 0.3
        + (1 - topology.global_density) * 0.2,
    )

    bimodality = 0.0
    if len(components) >= 2 and node_count > 0:
        first, second = components[0], components[1]
        size_ratio = second.size / first.size
        combined_coverage = (first.size + second.size) / node_count
        bimodality = size_ratio * combined_coverage

    # Saturates at 5 components of size >= 3
    significant = sum(1 for c in components if c.size >= 3)
    parallelism = min(1.0, significant / 5) if significant >= 3 else 0.0

    return ShapeClassification(
        fragmentation=max(0.0, fragmentation),
        bimodality=bimodality,
        parallelism=parallelism,
        convergence=lcr,
    )
