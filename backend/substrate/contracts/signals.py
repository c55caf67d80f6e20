"""
Signal Contracts - Structured observations about input quality.

Signals are not errors. They record suspicious but valid inputs
(sparse similarity regimes, missing vectors) so callers can branch
on data instead of parsing log lines.

Signal IDs are content hashes, so identical input yields identical
signals.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional
import hashlib
import json


def generate_signal_id(signal_type: "SignalType", subject_id: str, evidence: Dict[str, Any]) -> str:
    """Deterministic signal ID from signal content."""
    content = f"{signal_type.value}|{subject_id}|{json.dumps(evidence, sort_keys=True)}"
    return f"sig_{hashlib.sha256(content.encode()).hexdigest()[:12]}"


class SignalType(Enum):
    """Quality signal types emitted while assembling a substrate."""

    # Similarity distribution signals
    SPARSE_REGIME = "sparse_regime"  # p95 below the soft threshold
    LOW_MAX_SIMILARITY = "low_max_similarity"  # nothing is really close to anything
    LOW_MEAN_SIMILARITY = "low_mean_similarity"  # diffuse content

    # Input coverage signals
    MISSING_EMBEDDINGS = "missing_embeddings"  # some paragraphs have no vector
    DIMENSION_MISMATCH = "dimension_mismatch"  # vector skipped, wrong dimension


class Severity(Enum):
    """Signal severity levels."""

    INFO = "info"  # Informational, no action needed
    WARNING = "warning"  # May affect quality


@dataclass(frozen=True)
class SubstrateSignal:
    """Quality signal emitted by the substrate builder."""

    id: str
    signal_type: SignalType
    subject_id: str  # "substrate" or a paragraph ID
    severity: Severity
    evidence: Mapping[str, Any] = field(hash=False)  # read-only; list values stored as tuples
    message: str
    resolution_hint: Optional[str] = None

    def __post_init__(self):
        frozen = {k: tuple(v) if isinstance(v, list) else v for k, v in self.evidence.items()}
        object.__setattr__(self, "evidence", MappingProxyType(frozen))

    @classmethod
    def create(
        cls,
        signal_type: SignalType,
        severity: Severity,
        evidence: Dict[str, Any],
        message: str,
        subject_id: str = "substrate",
        resolution_hint: Optional[str] = None,
    ) -> "SubstrateSignal":
        return cls(
            id=generate_signal_id(signal_type, subject_id, evidence),
            signal_type=signal_type,
            subject_id=subject_id,
            severity=severity,
            evidence=evidence,
            message=message,
            resolution_hint=resolution_hint,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for persistence/logging."""
        return {
            "id": self.id,
            "signal_type": self.signal_type.value,
            "subject_id": self.subject_id,
            "severity": self.severity.value,
            "evidence": {k: list(v) if isinstance(v, tuple) else v for k, v in self.evidence.items()},
            "message": self.message,
            "resolution_hint": self.resolution_hint,
        }
