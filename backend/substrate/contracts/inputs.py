"""
Input Contracts - Pydantic models for records crossing the boundary.

Paragraph records come from the external extraction step; claim and
claim-edge records come from the external synthesis step. Embedding
maps are plain {id: vector} mappings and are not modelled here.

Both snake_case and the extractor's camelCase field names are accepted.
"""

from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import InputValidationError


class ParagraphRecord(BaseModel):
    """One paragraph produced by one model."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, protected_namespaces=())

    id: str
    model_index: int = Field(alias="modelIndex", ge=0)
    stance: str = Field(default="assertive", alias="dominantStance")
    contested: bool = False
    statement_ids: List[str] = Field(default_factory=list, alias="statementIds")

    @field_validator("id")
    @classmethod
    def id_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("paragraph id must not be blank")
        return v

    @field_validator("statement_ids")
    @classmethod
    def drop_blank_statement_ids(cls, v: List[str]) -> List[str]:
        return [s.strip() for s in v if s and s.strip()]


class ClaimRecord(BaseModel):
    """A synthesized claim citing source statements."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    label: str = ""
    source_statement_ids: List[str] = Field(default_factory=list, alias="sourceStatementIds")
    support_ratio: float = Field(default=0.0, alias="supportRatio", ge=0.0, le=1.0)
    source_region_ids: Optional[List[str]] = Field(default=None, alias="sourceRegionIds")

    @field_validator("source_statement_ids")
    @classmethod
    def drop_blank_statement_ids(cls, v: List[str]) -> List[str]:
        return [s.strip() for s in v if s and s.strip()]


class ClaimEdgeRecord(BaseModel):
    """A relation between two claims (support, conflict, ...)."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source: str = Field(alias="from")
    target: str = Field(alias="to")
    edge_type: str = Field(default="", alias="type")


def _parse(model, items: Iterable[Any], kind: str) -> list:
    parsed = []
    for i, item in enumerate(items):
        if isinstance(item, model):
            parsed.append(item)
            continue
        try:
            parsed.append(model.model_validate(item))
        except ValidationError as e:
            raise InputValidationError(f"Invalid {kind} record at index {i}: {e}") from e
    return parsed


def parse_paragraphs(items: Iterable[Any]) -> List[ParagraphRecord]:
    """Coerce raw dicts into ParagraphRecords (records pass through unchanged).

    Duplicate IDs are rejected whether the items arrive as dicts or records.

    Raises:
        InputValidationError: on the first invalid record, or on duplicate IDs
    """
    paragraphs = _parse(ParagraphRecord, items, "paragraph")
    seen = set()
    for p in paragraphs:
        if p.id in seen:
            raise InputValidationError(f"Duplicate paragraph id {p.id!r}")
        seen.add(p.id)
    return paragraphs


def parse_claims(items: Iterable[Any]) -> List[ClaimRecord]:
    return _parse(ClaimRecord, items, "claim")


def parse_claim_edges(items: Iterable[Any]) -> List[ClaimEdgeRecord]:
    return _parse(ClaimEdgeRecord, items, "claim edge")
