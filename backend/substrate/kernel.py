"""
GeometryKernel - Pure orchestrator for the geometric pipeline.

    build_substrate  paragraphs + embeddings → GeometricSubstrate
    interpret        substrate → regions → profiles → gate → ordering
    align            claims + edges → alignment + diagnostics + statement fates

Stateless. Every call takes a frozen snapshot and returns immutable
results; nothing is cached between calls.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from .alignment.claims import build_claim_vectors, coerce_claims, compute_alignment
from .alignment.completeness import build_completeness_report, track_statement_fates
from .alignment.diagnostics import compute_diagnostics
from .builders.region_builder import build_regions
from .builders.substrate_builder import build_geometric_substrate
from .contracts.alignment import AlignmentResult, CompletenessReport, DiagnosticsResult, StatementFate
from .contracts.gates import GateVerdict, PipelineGateResult
from .contracts.inputs import parse_paragraphs
from .contracts.ordering import ModelOrderingResult
from .contracts.regions import RegionProfile, Regionization
from .params import KernelParams
from .types import GeometricSubstrate
from .views.gates import evaluate_pipeline_gates
from .views.ordering import compute_model_ordering, natural_model_ordering
from .views.profiles import profile_regions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreSemanticInterpretation:
    """Everything the geometry says before any claim is synthesized."""
    regionization: Regionization
    profiles: Tuple[RegionProfile, ...]
    gate: PipelineGateResult
    ordering: ModelOrderingResult

    def profile_for(self, region_id: str) -> Optional[RegionProfile]:
        for p in self.profiles:
            if p.region_id == region_id:
                return p
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "regionization": self.regionization.to_dict(),
            "profiles": [p.to_dict() for p in self.profiles],
            "gate": self.gate.to_dict(),
            "ordering": self.ordering.to_dict(),
        }


@dataclass(frozen=True)
class PostSemanticAlignment:
    alignment: AlignmentResult
    diagnostics: DiagnosticsResult
    fates: Tuple[StatementFate, ...]
    completeness: CompletenessReport

    def fate_of(self, statement_id: str) -> Optional[StatementFate]:
        for f in self.fates:
            if f.statement_id == statement_id:
                return f
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alignment": self.alignment.to_dict(),
            "diagnostics": self.diagnostics.to_dict(),
            "statement_fates": [f.to_dict() for f in self.fates],
            "completeness": self.completeness.to_dict(),
        }


class GeometryKernel:
    """Pure kernel for geometric substrate computation.

    Usage:
        kernel = GeometryKernel(params)
        substrate = kernel.build_substrate(paragraphs, embeddings, "wasm")
        interpretation = kernel.interpret(substrate, embeddings)
        post = kernel.align(substrate, interpretation, claims, edges, statement_embeddings)
    """

    def __init__(self, params: KernelParams = KernelParams()):
        self.params = params

    @property
    def kernel_version(self) -> str:
        return self.params.kernel_version

    def build_substrate(
        self,
        paragraphs: Iterable[Any],
        embeddings: Optional[Mapping[str, Sequence[float]]],
        embedding_backend: str = "none",
    ) -> GeometricSubstrate:
        return build_geometric_substrate(
            paragraphs, embeddings, embedding_backend, self.params.substrate,
        )

    def interpret(
        self,
        substrate: GeometricSubstrate,
        embeddings: Optional[Mapping[str, Sequence[float]]] = None,
        query_relevance_boost: Optional[Mapping[int, float]] = None,
    ) -> PreSemanticInterpretation:
        """Regions, profiles, gate verdict and model ordering.

        A skip_geometry verdict forces natural model order; every other
        verdict lets the geometric ordering through.
        """
        regionization = build_regions(substrate, self.params.regions)
        profiles = profile_regions(regionization, substrate, self.params.profiles, embeddings)
        gate = evaluate_pipeline_gates(substrate, self.params.gates)

        if gate.verdict == GateVerdict.SKIP_GEOMETRY:
            ordering = natural_model_ordering(substrate, regionization.meta.region_count)
        else:
            ordering = compute_model_ordering(
                regionization, profiles, substrate, query_relevance_boost, self.params.ordering,
            )

        logger.info(
            f"Interpretation: {regionization.meta.region_count} regions, gate={gate.verdict.value}, "
            f"order={list(ordering.ordered_model_indices)}"
        )

        return PreSemanticInterpretation(
            regionization=regionization,
            profiles=profiles,
            gate=gate,
            ordering=ordering,
        )

    def align(
        self,
        substrate: GeometricSubstrate,
        interpretation: PreSemanticInterpretation,
        claims: Iterable[Any],
        claim_edges: Iterable[Any],
        statement_embeddings: Mapping[str, Sequence[float]],
        paragraphs: Optional[Iterable[Any]] = None,
    ) -> PostSemanticAlignment:
        """Alignment, diagnostics and statement fates for one synthesis output.

        Without paragraphs, statements are taken from the substrate nodes.
        """
        claim_records = coerce_claims(claims)
        paragraph_records = None if paragraphs is None else parse_paragraphs(paragraphs)
        regions = interpretation.regionization

        claim_vectors = build_claim_vectors(claim_records, statement_embeddings, regions)
        alignment = compute_alignment(
            claim_vectors, regions, interpretation.profiles, statement_embeddings, self.params.alignment,
        )
        diagnostics = compute_diagnostics(
            regions,
            interpretation.profiles,
            claim_records,
            claim_edges,
            substrate=substrate,
            statement_embeddings=statement_embeddings,
            paragraphs=paragraph_records,
            params=self.params.diagnostics,
        )
        fates = track_statement_fates(claim_records, substrate, regions, paragraph_records)
        completeness = build_completeness_report(fates, alignment.unattended_region_ids, regions)

        logger.info(
            f"Alignment: {alignment.total_claims} claims, coverage={alignment.global_coverage:.2f}, "
            f"{completeness.statements.in_claims}/{completeness.statements.total} statements in claims"
        )

        return PostSemanticAlignment(
            alignment=alignment,
            diagnostics=diagnostics,
            fates=fates,
            completeness=completeness,
        )
