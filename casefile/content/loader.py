"""
Authored content loading.

Turns quest and dialogue JSON in the authoring format into catalog
models. The authoring format is friendlier than the models: a node has a
single ``text``, choices carry ``requires``/``quest_action``/``clue_flags``
shorthands, and so on. Everything here normalizes those shorthands into
conditions and consequences.

Directory layout for load_catalog_dir():

    content/
        quests/*.json      one quest, a list of quests, or {"quests": [...]}
        dialogues/*.json   one NPC dialogue per file
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError

from ..errors import ContentIntegrityError
from ..state.catalog import ContentCatalog
from ..state.schemas.dialogue import END_CONVERSATION, NpcDialogue
from ..state.schemas.quest import QuestDefinition

logger = logging.getLogger(__name__)


# Authored quest_action type -> consequence kind
QUEST_ACTION_KINDS: dict[str, str] = {
    "start_quest": "start_quest",
    "quest_assigned": "start_quest",
    "give_clue": "reveal_clue",
    "complete_quest": "complete_quest",
}


# ─── Shorthand normalization ─────────────────────────────────────


def requires_to_conditions(requires: dict[str, Any]) -> list[dict]:
    """
    Expand a ``requires`` block into condition dicts.

    Recognized keys: quests, completed_quests, clues, trust_level,
    min_trust, time, location, flags, world_flags, skills, evidence.
    """
    conditions: list[dict] = []
    for quest_id in requires.get("quests", []):
        conditions.append({"kind": "quest_active", "quest_id": quest_id})
    for quest_id in requires.get("completed_quests", []):
        conditions.append({"kind": "quest_completed", "quest_id": quest_id})
    for clue_id in requires.get("clues", []):
        conditions.append({"kind": "clue_discovered", "clue_id": clue_id})
    if "trust_level" in requires:
        conditions.append({"kind": "trust_at_least", "level": str(requires["trust_level"]).lower()})
    if "min_trust" in requires:
        conditions.append({"kind": "trust_at_least", "value": requires["min_trust"]})
    if "time" in requires:
        window = requires["time"]
        conditions.append({
            "kind": "time_of_day",
            "start_hour": window["start"],
            "end_hour": window["end"],
        })
    if "location" in requires:
        conditions.append({"kind": "location", "location": requires["location"]})
    for flag in requires.get("flags", []):
        conditions.append({"kind": "flag_set", "flag": flag})
    for key, value in requires.get("world_flags", {}).items():
        conditions.append({"kind": "world_flag", "key": key, "value": value})
    for skill, level in requires.get("skills", {}).items():
        conditions.append({"kind": "skill_at_least", "skill": skill, "level": level})
    for quest_id, strength in requires.get("evidence", {}).items():
        conditions.append({"kind": "evidence_at_least", "quest_id": quest_id, "strength": strength})
    return conditions


def quest_action_to_consequences(action: dict[str, Any], source: str = "") -> list[dict]:
    """Map an authored quest_action onto consequence dicts."""
    action_type = action.get("type", "")
    kind = QUEST_ACTION_KINDS.get(action_type)
    if kind is None:
        raise ContentIntegrityError(f"unknown quest_action type '{action_type}'", source=source)

    quest_id = action.get("quest_id")
    if kind == "reveal_clue":
        clue_ids = list(action.get("clues", []))
        if "clue_id" in action:
            clue_ids.append(action["clue_id"])
        return [{"kind": "reveal_clue", "clue_id": cid, "quest_id": quest_id} for cid in clue_ids]

    if not quest_id:
        raise ContentIntegrityError(f"quest_action '{action_type}' needs a quest_id", source=source)
    return [{"kind": kind, "quest_id": quest_id}]


def _node_effects(entry: dict[str, Any], source: str) -> list[dict]:
    """Consequences from quest_action and clue_flags shorthands."""
    effects: list[dict] = []
    action = entry.get("quest_action")
    if action:
        effects.extend(quest_action_to_consequences(action, source))
    for clue_id in entry.get("clue_flags", []):
        effects.append({"kind": "reveal_clue", "clue_id": clue_id})
    return effects


def normalize_choice(choice: dict[str, Any], source: str = "") -> dict:
    conditions = list(choice.get("conditions", []))
    conditions += requires_to_conditions(choice.get("requires", {}))
    for skill, level in choice.get("skill_requirements", {}).items():
        conditions.append({"kind": "skill_at_least", "skill": skill, "level": level})

    consequences = list(choice.get("consequences", []))
    if choice.get("trust_delta"):
        consequences.append({"kind": "trust_delta", "delta": choice["trust_delta"]})
    consequences += _node_effects(choice, source)

    return {
        "choice_id": choice.get("choice_id", choice.get("id")),
        "text": choice.get("text", ""),
        "next": choice.get("next", END_CONVERSATION),
        "conditions": conditions,
        "approach": choice.get("approach"),
        "consequences": consequences,
        "tags": list(choice.get("tags", [])),
    }


def normalize_node(node_id: str, node: dict[str, Any], source: str = "") -> dict:
    """Authored node -> DialogueNode dict. ``text`` becomes the default variant."""
    where = f"{source}#{node_id}"
    variants = [dict(v) for v in node.get("variants", [])]
    if "text" in node:
        variants.append({"text": node["text"]})

    return {
        "node_id": node_id,
        "speaker": node.get("speaker", "npc"),
        "variants": variants,
        "choices": [normalize_choice(c, where) for c in node.get("choices", [])],
        "on_enter": list(node.get("on_enter", [])) + _node_effects(node, where),
        "reveals_clues": list(node.get("reveals_clues", [])),
    }


def normalize_conversation(npc_id: str, conversation_id: str, conversation: dict[str, Any]) -> dict:
    source = f"conversation:{npc_id}/{conversation_id}"
    conditions = list(conversation.get("conditions", []))
    conditions += requires_to_conditions(conversation.get("requires", {}))

    normalized = {
        "npc_id": npc_id,
        "conversation_id": conversation_id,
        "title": conversation.get("title", ""),
        "category": conversation.get("category", "casual"),
        "conditions": conditions,
        "nodes": {
            node_id: normalize_node(node_id, node, source)
            for node_id, node in conversation.get("nodes", {}).items()
        },
    }
    if "entry_node" in conversation:
        normalized["entry_node"] = conversation["entry_node"]
    if "personality" in conversation:
        normalized["personality"] = conversation["personality"]
    return normalized


# ─── Parsing ─────────────────────────────────────────────────────


def parse_quest(payload: dict[str, Any]) -> QuestDefinition:
    """Validate one authored quest."""
    try:
        return QuestDefinition.model_validate(payload)
    except ValidationError as exc:
        raise ContentIntegrityError(str(exc), source=f"quest:{payload.get('id', '?')}") from exc


def parse_dialogue(payload: dict[str, Any]) -> NpcDialogue:
    """Validate one authored NPC dialogue file."""
    npc_id = payload.get("npc_id", "?")
    try:
        conversations = {
            conv_id: normalize_conversation(npc_id, conv_id, conv)
            for conv_id, conv in payload.get("conversations", {}).items()
        }
        return NpcDialogue.model_validate({
            "npc_id": npc_id,
            "name": payload.get("name", ""),
            "description": payload.get("description", ""),
            "default_conversation": payload.get("default_conversation"),
            "conversations": conversations,
            "relationship_effects": payload.get("relationship_effects", {}),
        })
    except ValidationError as exc:
        raise ContentIntegrityError(str(exc), source=f"npc:{npc_id}") from exc
    except (KeyError, TypeError) as exc:
        raise ContentIntegrityError(f"malformed dialogue: {exc}", source=f"npc:{npc_id}") from exc


def catalog_from_payload(
    quests: Iterable[dict[str, Any]] = (),
    dialogues: Iterable[dict[str, Any]] = (),
) -> ContentCatalog:
    """Build a catalog from already-decoded authored JSON."""
    return ContentCatalog(
        quests=[parse_quest(q) for q in quests],
        dialogues=[parse_dialogue(d) for d in dialogues],
    )


# ─── Files ───────────────────────────────────────────────────────


def _read_json(path: Path) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        raise ContentIntegrityError(f"invalid JSON: {exc}", source=str(path)) from exc


def load_quests(path: Path | str) -> list[QuestDefinition]:
    """Load one quest, a list of quests, or {"quests": [...]} from a file."""
    data = _read_json(Path(path))
    if isinstance(data, dict) and "quests" in data:
        data = data["quests"]
    if isinstance(data, dict):
        data = [data]
    return [parse_quest(entry) for entry in data]


def load_dialogue(path: Path | str) -> NpcDialogue:
    return parse_dialogue(_read_json(Path(path)))


def load_catalog(
    quest_files: Iterable[Path | str] = (),
    dialogue_files: Iterable[Path | str] = (),
) -> ContentCatalog:
    catalog = ContentCatalog()
    for path in quest_files:
        for quest in load_quests(path):
            catalog.add_quest(quest)
    for path in dialogue_files:
        catalog.add_dialogue(load_dialogue(path))
    logger.info(f"Loaded {len(catalog.quests)} quests and {len(catalog.npc_ids)} NPC dialogues")
    return catalog


def load_catalog_dir(content_dir: Path | str) -> ContentCatalog:
    """Load quests/*.json and dialogues/*.json under a content directory."""
    root = Path(content_dir)
    return load_catalog(
        sorted((root / "quests").glob("*.json")),
        sorted((root / "dialogues").glob("*.json")),
    )
