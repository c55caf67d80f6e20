"""
Pytest configuration for substrate tests.

The `scenario_*` fixtures describe a small, hand-checked layout (k=2):

    a, b, c   one tight cluster across models 0, 1, 2 (strong component)
    d         orthogonal to everything, model 0
    e         orthogonal to everything, model 3

giving regions r_0 = [a, b, c] (component), r_1 = [d], r_2 = [e] (patches).
"""

import numpy as np
import pytest

from substrate.builders.region_builder import build_regions
from substrate.builders.substrate_builder import build_geometric_substrate
from substrate.contracts.inputs import ParagraphRecord
from substrate.params import KernelParams, SubstrateParams
from substrate.views.profiles import profile_regions


SCENARIO_VECTORS = {
    "a": [1.0, 0.0, 0.0, 0.0],
    "b": [0.95, 0.312, 0.0, 0.0],
    "c": [0.95, -0.312, 0.0, 0.0],
    "d": [0.0, 0.0, 1.0, 0.0],
    "e": [0.0, 0.0, 0.0, 1.0],
}


@pytest.fixture
def scenario_paragraphs():
    return [
        ParagraphRecord(id="a", model_index=0, stance="assertive", statement_ids=["s_a1", "s_a2"]),
        ParagraphRecord(id="b", model_index=1, stance="assertive", statement_ids=["s_b1"]),
        ParagraphRecord(id="c", model_index=2, stance="cautionary", contested=True, statement_ids=["s_c1"]),
        ParagraphRecord(id="d", model_index=0, stance="prescriptive", statement_ids=["s_d1"]),
        ParagraphRecord(id="e", model_index=3, stance="assertive", statement_ids=["s_e1"]),
    ]


@pytest.fixture
def scenario_embeddings():
    return {pid: list(v) for pid, v in SCENARIO_VECTORS.items()}


@pytest.fixture
def scenario_statement_embeddings():
    """Each statement shares its paragraph's vector."""
    return {
        "s_a1": SCENARIO_VECTORS["a"],
        "s_a2": SCENARIO_VECTORS["a"],
        "s_b1": SCENARIO_VECTORS["b"],
        "s_c1": SCENARIO_VECTORS["c"],
        "s_d1": SCENARIO_VECTORS["d"],
        "s_e1": SCENARIO_VECTORS["e"],
    }


@pytest.fixture
def scenario_params():
    return SubstrateParams(k=2)


@pytest.fixture
def scenario_kernel_params(scenario_params):
    return KernelParams(substrate=scenario_params)


@pytest.fixture
def scenario_substrate(scenario_paragraphs, scenario_embeddings, scenario_params):
    return build_geometric_substrate(scenario_paragraphs, scenario_embeddings, "test", scenario_params)


@pytest.fixture
def scenario_regions(scenario_substrate):
    return build_regions(scenario_substrate)


@pytest.fixture
def scenario_profiles(scenario_regions, scenario_substrate, scenario_embeddings):
    return profile_regions(scenario_regions, scenario_substrate, embeddings=scenario_embeddings)


@pytest.fixture
def corpus_factory():
    """Seeded clustered corpus: (paragraphs, embeddings).

    Paragraphs are spread over `models` model indices and drawn around
    `clusters` random centers, with gaussian noise of scale `noise`.
    """
    def make(seed: int, n: int = 24, models: int = 4, dim: int = 16, clusters: int = 3, noise: float = 0.35):
        rng = np.random.default_rng(seed)
        centers = rng.normal(size=(clusters, dim))
        paragraphs = []
        embeddings = {}
        for i in range(n):
            pid = f"p{i:03d}"
            center = centers[i % clusters]
            vector = center + rng.normal(scale=noise, size=dim)
            paragraphs.append(ParagraphRecord(
                id=pid,
                model_index=i % models,
                stance=("assertive", "cautionary", "prescriptive")[int(rng.integers(0, 3))],
                contested=bool(rng.random() < 0.2),
                statement_ids=[f"{pid}_s0", f"{pid}_s1"],
            ))
            embeddings[pid] = [float(x) for x in vector]
        return paragraphs, embeddings

    return make
