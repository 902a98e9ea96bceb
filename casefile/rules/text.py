"""
Node text selection and shaping.

Picks the most specific text variant for the NPC's emotional state and
trust level, then applies personality transforms. Every transform is
deterministic: the same node, personality and inputs always produce the
same text.
"""

from __future__ import annotations

import hashlib
import re
from typing import TYPE_CHECKING

from ..state.schema import EmotionalState, TrustLevel

if TYPE_CHECKING:
    from ..state.schemas.dialogue import (
        DialogueNode,
        PersonalityModifiers,
        TextVariant,
        VariantPredicate,
    )


# Stage direction prepended for each emotional state (CALM adds nothing)
EMOTION_MARKERS: dict[EmotionalState, str] = {
    EmotionalState.CALM: "",
    EmotionalState.ANXIOUS: "*nervously*",
    EmotionalState.EXCITED: "*eagerly*",
    EmotionalState.SUSPICIOUS: "*eyes narrowing*",
    EmotionalState.MELANCHOLY: "*quietly*",
    EmotionalState.CHEERFUL: "*brightly*",
    EmotionalState.ANGRY: "*sharply*",
}

HESITATION = "..."

_FIRST_SENTENCE = re.compile(r"^(.+?[.!?])(?:\s|$)", re.DOTALL)


def variant_matches(
    predicate: "VariantPredicate",
    emotion: EmotionalState,
    trust_level: TrustLevel,
) -> bool:
    if predicate.emotional_states and emotion not in predicate.emotional_states:
        return False
    if predicate.min_trust is not None and trust_level.rank < predicate.min_trust.rank:
        return False
    if predicate.max_trust is not None and trust_level.rank > predicate.max_trust.rank:
        return False
    return True


def select_variant(
    node: "DialogueNode",
    emotion: EmotionalState,
    trust_level: TrustLevel,
) -> tuple[int, "TextVariant"] | None:
    """
    Pick the most specific matching variant.

    Ties go to the variant declared first. The default variant (empty
    predicate) always matches, so None only comes back for a node
    without one.

    Returns:
        (index, variant) or None
    """
    best: tuple[int, "TextVariant"] | None = None
    for index, variant in enumerate(node.variants):
        if not variant_matches(variant.when, emotion, trust_level):
            continue
        if best is None or variant.when.specificity > best[1].when.specificity:
            best = (index, variant)
    return best


def first_sentence(text: str) -> str:
    match = _FIRST_SENTENCE.match(text.strip())
    return match.group(1) if match else text.strip()


def _stable_index(seed_key: str, size: int) -> int:
    digest = hashlib.sha1(seed_key.encode("utf-8")).hexdigest()
    return int(digest[:8], 16) % size


def verbosity_phrases(
    personality: "PersonalityModifiers",
    seed_key: str,
    max_phrases: int,
) -> list[str]:
    """Speech patterns a rambling NPC tacks on (one per 0.25 of verbosity above 1)."""
    patterns = personality.speech_patterns
    if personality.verbosity <= 1.0 or not patterns:
        return []
    count = min(max_phrases, len(patterns), int((personality.verbosity - 1.0) / 0.25))
    start = _stable_index(seed_key, len(patterns))
    return [patterns[(start + i) % len(patterns)] for i in range(count)]


def shape_text(
    variant: "TextVariant",
    personality: "PersonalityModifiers",
    emotion: EmotionalState,
    trust_level: TrustLevel,
    seed_key: str,
    config: dict,
) -> str:
    """
    Apply personality transforms to a variant's text.

    Args:
        variant: Selected text variant
        personality: Conversation personality modifiers
        emotion: Emotional state the text is spoken in
        trust_level: Player's trust level with the NPC
        seed_key: Stable key (conversation and node id) for pattern choice
        config: Engine config with verbosity/reluctance thresholds

    Returns:
        Final text for presentation
    """
    text = variant.text.strip()

    if personality.verbosity < config["terse_verbosity_threshold"]:
        text = first_sentence(text)

    extras = verbosity_phrases(personality, seed_key, config["max_verbosity_phrases"])
    if extras:
        text = " ".join([text, *extras])

    reluctant = personality.information_reluctance >= config["hesitation_reluctance_threshold"]
    if reluctant and trust_level.rank < TrustLevel.FRIENDLY.rank:
        text = f"{HESITATION} {text}"

    # Emotion-targeted variants were written for the mood already
    marker = EMOTION_MARKERS.get(emotion, "")
    if marker and not variant.when.emotional_states:
        text = f"{marker} {text}"

    return text
