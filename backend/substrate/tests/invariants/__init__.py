"""Structural invariants checked against any substrate build."""

from .substrate_invariants import InvariantViolation, SubstrateInvariants, check_all

__all__ = ["InvariantViolation", "SubstrateInvariants", "check_all"]
