"""
Evidence classification as pure functions.

Evidence strength is always derived from the summed strengths of
discovered clues, never set directly.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Iterable

from ..state.schema import EvidenceStrength

if TYPE_CHECKING:
    from ..state.schema import DiscoveredClue


# Lower bound of each band, highest first - first match wins
EVIDENCE_BREAKPOINTS: list[tuple[float, EvidenceStrength]] = [
    (9.0, EvidenceStrength.OVERWHELMING),
    (6.0, EvidenceStrength.STRONG),
    (3.0, EvidenceStrength.MODERATE),
    (1.0, EvidenceStrength.WEAK),
    (0.0, EvidenceStrength.NONE),
]


def classify_evidence(total: float) -> EvidenceStrength:
    """
    Classify a summed clue strength.

    Args:
        total: Sum of discovered clue strengths

    Returns:
        The highest band whose breakpoint is <= total
    """
    for threshold, strength in EVIDENCE_BREAKPOINTS:
        if total >= threshold:
            return strength
    return EvidenceStrength.NONE


# Totals are rounded so fractional clues land exactly on a breakpoint
TOTAL_PRECISION = 6


def evidence_total(clues: Iterable["DiscoveredClue"]) -> float:
    return round(math.fsum(clue.strength for clue in clues), TOTAL_PRECISION)


def breakpoint_for(strength: EvidenceStrength) -> float:
    """Smallest clue total that reaches a band."""
    for threshold, band in EVIDENCE_BREAKPOINTS:
        if band == strength:
            return threshold
    return 0.0


def meets_strength(current: EvidenceStrength, required: EvidenceStrength) -> bool:
    return current.rank >= required.rank


def coerce_strength(value) -> EvidenceStrength:
    """
    Read an evidence requirement from authored content.

    Accepts an EvidenceStrength, a band name in any case ("Weak", "weak"),
    or a number that is classified like a clue total.
    """
    if isinstance(value, EvidenceStrength):
        return value
    if value is None:
        return EvidenceStrength.NONE
    if isinstance(value, bool):
        raise ValueError(f"Not an evidence strength: {value!r}")
    if isinstance(value, (int, float)):
        return classify_evidence(float(value))
    if isinstance(value, str):
        try:
            return EvidenceStrength(value.strip().lower())
        except ValueError:
            pass
    raise ValueError(f"Not an evidence strength: {value!r}")
