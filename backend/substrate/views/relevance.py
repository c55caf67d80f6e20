"""Per-model query relevance, the usual producer of the ordering boost."""

import logging
from typing import Any, Dict, Iterable, Mapping, Sequence

from ..contracts.inputs import parse_paragraphs
from ..geometry.similarity import cosine_similarity

logger = logging.getLogger(__name__)


def compute_per_model_query_relevance(
    query_vec: Sequence[float],
    statement_embeddings: Mapping[str, Sequence[float]],
    paragraphs: Iterable[Any],
) -> Dict[int, float]:
    """Mean query/statement cosine per model index.

    Statements that no paragraph claims are ignored. Models with no
    embedded statements are absent from the result.
    """
    records = parse_paragraphs(paragraphs)

    model_of_statement: Dict[str, int] = {}
    for p in records:
        for sid in p.statement_ids:
            model_of_statement[sid] = p.model_index

    sums: Dict[int, float] = {}
    counts: Dict[int, int] = {}
    for sid in sorted(statement_embeddings):
        model_index = model_of_statement.get(sid)
        if model_index is None:
            continue
        vector = statement_embeddings[sid]
        if len(vector) != len(query_vec):
            logger.debug(f"Query relevance: skipping {sid}, dimension {len(vector)} != {len(query_vec)}")
            continue
        sums[model_index] = sums.get(model_index, 0.0) + cosine_similarity(query_vec, vector)
        counts[model_index] = counts.get(model_index, 0) + 1

    return {m: sums[m] / counts[m] for m in sorted(sums)}
