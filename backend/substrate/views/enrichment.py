"""
Statement Enrichment - geometric coordinates for individual statements.

Maps each statement to the paragraph that contains it, then to that
paragraph's node, component and region. Returns new objects; the
statements, paragraphs, substrate and regions are never modified.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from ..contracts.inputs import parse_paragraphs
from ..contracts.regions import Regionization
from ..types import GeometricSubstrate


class EnrichmentFailureReason(Enum):
    NO_PARAGRAPH = "no_paragraph"  # no paragraph lists the statement
    NO_NODE = "no_node"  # paragraph is not a substrate node


@dataclass(frozen=True)
class StatementCoordinates:
    statement_id: str
    paragraph_id: str
    model_index: int
    component_id: Optional[str]
    region_id: Optional[str]
    knn_degree: int
    mutual_degree: int
    strong_degree: int
    isolation_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "statement_id": self.statement_id,
            "paragraph_id": self.paragraph_id,
            "model_index": self.model_index,
            "component_id": self.component_id,
            "region_id": self.region_id,
            "knn_degree": self.knn_degree,
            "mutual_degree": self.mutual_degree,
            "strong_degree": self.strong_degree,
            "isolation_score": self.isolation_score,
        }


@dataclass(frozen=True)
class EnrichmentFailure:
    statement_id: str
    reason: EnrichmentFailureReason

    def to_dict(self) -> Dict[str, Any]:
        return {"statement_id": self.statement_id, "reason": self.reason.value}


@dataclass(frozen=True)
class EnrichmentResult:
    coordinates: Tuple[StatementCoordinates, ...]
    failures: Tuple[EnrichmentFailure, ...]

    @property
    def enriched_count(self) -> int:
        return len(self.coordinates)

    @property
    def unenriched_count(self) -> int:
        return len(self.failures)

    def by_statement(self) -> Dict[str, StatementCoordinates]:
        return {c.statement_id: c for c in self.coordinates}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "coordinates": [c.to_dict() for c in self.coordinates],
            "failures": [f.to_dict() for f in self.failures],
            "enriched_count": self.enriched_count,
            "unenriched_count": self.unenriched_count,
        }


def enrich_statements(
    statement_ids: Iterable[str],
    paragraphs: Optional[Iterable[Any]],
    substrate: GeometricSubstrate,
    regions: Regionization,
) -> EnrichmentResult:
    """Geometric coordinates per statement, in input order.

    With paragraphs=None the statement lists carried by the substrate
    nodes are used instead.
    """
    if paragraphs is None:
        owners = [(n.paragraph_id, n.statement_ids) for n in substrate.nodes]
    else:
        owners = [(p.id, p.statement_ids) for p in parse_paragraphs(paragraphs)]

    paragraph_of: Dict[str, str] = {}
    for pid, statement_ids in owners:
        for sid in statement_ids:
            paragraph_of[sid] = pid

    nodes_by_id = substrate.nodes_by_id()
    component_of = substrate.topology.component_of()
    region_of = regions.region_of()

    coordinates = []
    failures = []
    for sid in statement_ids:
        pid = paragraph_of.get(sid)
        if pid is None:
            failures.append(EnrichmentFailure(sid, EnrichmentFailureReason.NO_PARAGRAPH))
            continue
        node = nodes_by_id.get(pid)
        if node is None:
            failures.append(EnrichmentFailure(sid, EnrichmentFailureReason.NO_NODE))
            continue
        coordinates.append(StatementCoordinates(
            statement_id=sid,
            paragraph_id=pid,
            model_index=node.model_index,
            component_id=component_of.get(pid),
            region_id=region_of.get(pid),
            knn_degree=node.knn_degree,
            mutual_degree=node.mutual_degree,
            strong_degree=node.strong_degree,
            isolation_score=node.isolation_score,
        ))

    return EnrichmentResult(coordinates=tuple(coordinates), failures=tuple(failures))
