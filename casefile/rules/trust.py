"""
Trust rules as pure functions.

Trust is an integer in [-100, 100] banded into six levels.
"""

from ..state.schema import TrustLevel


TRUST_MIN = -100
TRUST_MAX = 100

# Lower bound of each level, highest first - first match wins
TRUST_THRESHOLDS: list[tuple[int, TrustLevel]] = [
    (80, TrustLevel.CONFIDANT),
    (50, TrustLevel.TRUSTED),
    (20, TrustLevel.FRIENDLY),
    (-20, TrustLevel.NEUTRAL),
    (-60, TrustLevel.SUSPICIOUS),
    (TRUST_MIN, TrustLevel.HOSTILE),
]


def clamp_trust(value: int) -> int:
    return max(TRUST_MIN, min(TRUST_MAX, value))


def trust_level_for(value: int) -> TrustLevel:
    """Convert a trust value to its level. Monotonic in value."""
    value = clamp_trust(value)
    for threshold, level in TRUST_THRESHOLDS:
        if value >= threshold:
            return level
    return TrustLevel.HOSTILE


def level_floor(level: TrustLevel) -> int:
    """Smallest trust value at a level."""
    for threshold, band in TRUST_THRESHOLDS:
        if band == level:
            return threshold
    return TRUST_MIN


def scale_delta(delta: int, trust_building_speed: float) -> int:
    """
    Apply an NPC's trust-building speed to a dialogue delta.

    Only gains are scaled; losses land at full weight. Rounds half away
    from zero.
    """
    if delta <= 0:
        return delta
    return int(delta * trust_building_speed + 0.5)
