"""
Statement Fates and Completeness
================================

Follows every extracted statement through synthesis:

    primary     cited by exactly one claim
    supporting  cited by more than one claim
    orphan      placed in a region or component, cited by no claim
    noise       no geometric coordinates at all

The fates are then rolled up, together with the unattended regions found
by alignment, into a completeness report. Read-only: claims, regions and
the substrate are never modified.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..contracts.alignment import (
    CompletenessReport,
    FateKind,
    RegionCompleteness,
    StatementCompleteness,
    StatementFate,
    UnattendedRegionPreview,
)
from ..contracts.inputs import parse_paragraphs
from ..contracts.regions import Regionization
from ..types import GeometricSubstrate
from ..views.enrichment import EnrichmentResult, enrich_statements
from .claims import coerce_claims

logger = logging.getLogger(__name__)


MAX_UNATTENDED_PREVIEWS = 5
PREVIEW_STATEMENTS = 3


def statement_universe(
    substrate: GeometricSubstrate,
    paragraphs: Optional[Iterable[Any]] = None,
) -> List[str]:
    """Every statement ID once, in paragraph order then statement order.

    Without paragraphs, the substrate nodes (sorted by ID) supply the lists.
    """
    if paragraphs is None:
        lists = [n.statement_ids for n in substrate.nodes]
    else:
        lists = [p.statement_ids for p in parse_paragraphs(paragraphs)]

    seen = set()
    out = []
    for statement_ids in lists:
        for sid in statement_ids:
            if sid not in seen:
                seen.add(sid)
                out.append(sid)
    return out


def build_statement_fates(
    statement_ids: Sequence[str],
    claims: Iterable[Any],
    enrichment: EnrichmentResult,
) -> Tuple[StatementFate, ...]:
    """One fate per statement, in the given order.

    A claim citing the same statement twice counts once.
    """
    claims_of: Dict[str, List[str]] = {}
    for claim in coerce_claims(claims):
        for sid in claim.source_statement_ids:
            cited = claims_of.setdefault(sid, [])
            if claim.id not in cited:
                cited.append(claim.id)

    if statement_ids and enrichment.enriched_count == 0:
        logger.warning("Statement fates: no statement has geometric coordinates")

    coords_of = enrichment.by_statement()
    fates = []
    for sid in statement_ids:
        claim_ids = tuple(claims_of.get(sid, ()))
        coords = coords_of.get(sid)

        if claim_ids:
            fate = FateKind.PRIMARY if len(claim_ids) == 1 else FateKind.SUPPORTING
            reason = f"Referenced by {len(claim_ids)} claim(s): {', '.join(claim_ids)}"
        elif coords is not None and coords.region_id:
            fate = FateKind.ORPHAN
            reason = f"In region {coords.region_id} but not referenced by any claim"
        elif coords is not None and coords.component_id:
            fate = FateKind.ORPHAN
            reason = f"In component {coords.component_id} but no region assignment"
        elif coords is not None:
            fate = FateKind.NOISE
            reason = "Isolated node"
        else:
            fate = FateKind.NOISE
            reason = "No geometric coordinates"

        fates.append(StatementFate(
            statement_id=sid,
            fate=fate,
            reason=reason,
            claim_ids=claim_ids,
            region_id=coords.region_id if coords else None,
            component_id=coords.component_id if coords else None,
            model_index=coords.model_index if coords else None,
            geometric_isolation=coords.isolation_score if coords else 1.0,
        ))

    return tuple(fates)


def track_statement_fates(
    claims: Iterable[Any],
    substrate: GeometricSubstrate,
    regions: Regionization,
    paragraphs: Optional[Iterable[Any]] = None,
) -> Tuple[StatementFate, ...]:
    """Enrich every known statement and assign its fate."""
    records = None if paragraphs is None else parse_paragraphs(paragraphs)
    statement_ids = statement_universe(substrate, records)
    enrichment = enrich_statements(statement_ids, records, substrate, regions)
    if enrichment.failures:
        logger.debug(f"Statement fates: {enrichment.unenriched_count} statement(s) without coordinates")
    return build_statement_fates(statement_ids, claims, enrichment)


def build_completeness_report(
    fates: Sequence[StatementFate],
    unattended_region_ids: Sequence[str],
    regions: Regionization,
) -> CompletenessReport:
    """Statement and region completeness counts and ratios.

    Empty populations count as complete (ratio 1.0).
    """
    total = len(fates)
    in_claims = sum(1 for f in fates if f.fate in (FateKind.PRIMARY, FateKind.SUPPORTING))
    orphaned = sum(1 for f in fates if f.fate == FateKind.ORPHAN)
    noise = sum(1 for f in fates if f.fate == FateKind.NOISE)

    total_regions = len(regions.regions)
    unattended = len(unattended_region_ids)
    attended = max(0, total_regions - unattended)

    previews = []
    for rid in list(unattended_region_ids)[:MAX_UNATTENDED_PREVIEWS]:
        region = regions.get(rid)
        statement_ids = region.statement_ids[:PREVIEW_STATEMENTS] if region is not None else ()
        previews.append(UnattendedRegionPreview(region_id=rid, statement_ids=tuple(statement_ids)))

    report = CompletenessReport(
        statements=StatementCompleteness(
            total=total,
            in_claims=in_claims,
            orphaned=orphaned,
            noise=noise,
            coverage_ratio=in_claims / total if total > 0 else 1.0,
        ),
        regions=RegionCompleteness(
            total=total_regions,
            attended=attended,
            unattended=unattended,
            coverage_ratio=attended / total_regions if total_regions > 0 else 1.0,
        ),
        unattended_previews=tuple(previews),
    )

    logger.debug(
        f"Completeness: {in_claims}/{total} statements in claims, "
        f"{attended}/{total_regions} regions attended"
    )
    return report
