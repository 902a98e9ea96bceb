"""
Read-only content catalog.

Holds quest definitions and NPC dialogue once loaded. The engine only
ever looks things up by id; a missing id comes back as None.
"""

from typing import Iterable

from ..errors import ContentIntegrityError
from .schemas.dialogue import ConversationTree, NpcDialogue
from .schemas.quest import ClueDefinition, QuestDefinition


class ContentCatalog:
    """
    Quest and dialogue content indexed for lookup.

    Clue ids must be unique across quests so a clue can be resolved
    without naming its quest.
    """

    def __init__(
        self,
        quests: Iterable[QuestDefinition] = (),
        dialogues: Iterable[NpcDialogue] = (),
    ):
        self._quests: dict[str, QuestDefinition] = {}
        self._dialogues: dict[str, NpcDialogue] = {}
        self._clue_owner: dict[str, str] = {}

        for quest in quests:
            self.add_quest(quest)
        for dialogue in dialogues:
            self.add_dialogue(dialogue)

    # -------------------------------------------------------------------------
    # Building
    # -------------------------------------------------------------------------

    def add_quest(self, quest: QuestDefinition) -> None:
        if quest.id in self._quests:
            raise ContentIntegrityError("duplicate quest id", source=f"quest:{quest.id}")
        for clue_id in quest.available_clues:
            owner = self._clue_owner.get(clue_id)
            if owner is not None:
                raise ContentIntegrityError(
                    f"clue '{clue_id}' already declared by quest '{owner}'",
                    source=f"quest:{quest.id}",
                )
        self._quests[quest.id] = quest
        for clue_id in quest.available_clues:
            self._clue_owner[clue_id] = quest.id

    def add_dialogue(self, dialogue: NpcDialogue) -> None:
        """Add an NPC's conversations, merging with any already loaded."""
        existing = self._dialogues.get(dialogue.npc_id)
        if existing is None:
            self._dialogues[dialogue.npc_id] = dialogue
            return

        clashes = set(existing.conversations) & set(dialogue.conversations)
        if clashes:
            raise ContentIntegrityError(
                f"duplicate conversation ids {sorted(clashes)}",
                source=f"npc:{dialogue.npc_id}",
            )
        self._dialogues[dialogue.npc_id] = existing.model_copy(update={
            "conversations": {**existing.conversations, **dialogue.conversations},
            "relationship_effects": existing.relationship_effects.merged(dialogue.relationship_effects),
        })

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def lookup_quest(self, quest_id: str) -> QuestDefinition | None:
        return self._quests.get(quest_id)

    def lookup_conversation(self, npc_id: str, conversation_id: str) -> ConversationTree | None:
        dialogue = self._dialogues.get(npc_id)
        if dialogue is None:
            return None
        return dialogue.conversations.get(conversation_id)

    def lookup_clue(self, clue_id: str) -> ClueDefinition | None:
        quest_id = self._clue_owner.get(clue_id)
        if quest_id is None:
            return None
        return self._quests[quest_id].available_clues[clue_id]

    def quest_for_clue(self, clue_id: str) -> str | None:
        return self._clue_owner.get(clue_id)

    def conversations_for(self, npc_id: str) -> list[ConversationTree]:
        """Every conversation tree for an NPC, ordered by conversation id."""
        dialogue = self._dialogues.get(npc_id)
        if dialogue is None:
            return []
        return [dialogue.conversations[cid] for cid in sorted(dialogue.conversations)]

    def npc_dialogue(self, npc_id: str) -> NpcDialogue | None:
        return self._dialogues.get(npc_id)

    @property
    def quests(self) -> list[QuestDefinition]:
        return list(self._quests.values())

    @property
    def dialogues(self) -> list[NpcDialogue]:
        return list(self._dialogues.values())

    @property
    def npc_ids(self) -> list[str]:
        return sorted(self._dialogues)
