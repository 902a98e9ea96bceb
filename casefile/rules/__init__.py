"""
Narrative rules as pure functions.

Evidence classification, trust banding, phase unlocks, condition
evaluation and text shaping. Nothing here mutates state.
"""

from .evidence import classify_evidence, coerce_strength, meets_strength, EVIDENCE_BREAKPOINTS
from .trust import clamp_trust, trust_level_for, scale_delta, TRUST_THRESHOLDS
from .progression import missing_requirements, phase_requirements_met
from .conditions import evaluate, evaluate_condition, explain
from .text import select_variant, shape_text

__all__ = [
    # Evidence
    "classify_evidence",
    "coerce_strength",
    "meets_strength",
    "EVIDENCE_BREAKPOINTS",
    # Trust
    "clamp_trust",
    "trust_level_for",
    "scale_delta",
    "TRUST_THRESHOLDS",
    # Phases
    "missing_requirements",
    "phase_requirements_met",
    # Conditions
    "evaluate",
    "evaluate_condition",
    "explain",
    # Text
    "select_variant",
    "shape_text",
]
