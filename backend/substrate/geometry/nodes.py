"""Per-node local statistics."""

from typing import Mapping, Sequence, Tuple

from ..contracts.inputs import ParagraphRecord
from ..types import NodeStats, SubstrateGraphs
from .similarity import quantize


def compute_node_stats(
    paragraphs: Sequence[ParagraphRecord],
    graphs: SubstrateGraphs,
    top1_sims: Mapping[str, float],
    topk_sims: Mapping[str, Tuple[float, ...]],
) -> Tuple[NodeStats, ...]:
    """One NodeStats per paragraph, sorted by paragraph ID.

    The neighborhood patch is the node itself plus its mutual-kNN
    neighbors, sorted.
    """
    nodes = []
    for p in paragraphs:
        top1 = top1_sims.get(p.id, 0.0)
        topk = topk_sims.get(p.id, ())
        avg_topk = sum(topk) / len(topk) if topk else 0.0

        patch = sorted([p.id] + graphs.mutual.neighbors(p.id))

        nodes.append(NodeStats(
            paragraph_id=p.id,
            model_index=p.model_index,
            stance=p.stance,
            contested=p.contested,
            statement_ids=tuple(p.statement_ids),
            top1_sim=top1,
            avg_topk_sim=quantize(avg_topk),
            knn_degree=graphs.knn.degree(p.id),
            mutual_degree=graphs.mutual.degree(p.id),
            strong_degree=graphs.strong.degree(p.id),
            isolation_score=quantize(1 - top1),
            mutual_neighborhood_patch=tuple(patch),
        ))

    nodes.sort(key=lambda n: n.paragraph_id)
    return tuple(nodes)
