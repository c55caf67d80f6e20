"""
Substrate Builders - Pure Algorithmic Components
================================================

No I/O, no database or network dependencies.

Modules:
- substrate_builder: paragraphs + embeddings → GeometricSubstrate
- region_builder: GeometricSubstrate → Regionization (complete, disjoint)
"""

from .substrate_builder import build_geometric_substrate, build_degenerate_substrate
from .region_builder import build_regions, backbone_components

__all__ = [
    "build_geometric_substrate",
    "build_degenerate_substrate",
    "build_regions",
    "backbone_components",
]
