"""
Content integrity checks.

Walks a loaded catalog and reports references that would break at
runtime: undefined phases, objectives, clues, nodes and quests, nodes
without a default text variant. The engine detects the same problems
lazily; this catches them before a player does.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from ..state.catalog import ContentCatalog
from ..state.schemas.conditions import (
    ClueDiscoveredCondition,
    CompleteObjectiveConsequence,
    CompleteQuestConsequence,
    EvidenceAtLeastCondition,
    QuestActiveCondition,
    QuestCompletedCondition,
    RevealClueConsequence,
    StartQuestConsequence,
)
from ..state.schemas.dialogue import END_CONVERSATION, ConversationTree, NpcDialogue
from ..state.schemas.quest import QuestDefinition


class IssueSeverity(str, Enum):
    ERROR = "error"  # Will raise ContentIntegrityError at runtime
    WARNING = "warning"  # Suspicious but playable


@dataclass
class ContentIssue:
    severity: IssueSeverity
    source: str
    message: str

    def __str__(self) -> str:
        return f"[{self.severity.value}] {self.source}: {self.message}"


def _error(source: str, message: str) -> ContentIssue:
    return ContentIssue(IssueSeverity.ERROR, source, message)


def _warning(source: str, message: str) -> ContentIssue:
    return ContentIssue(IssueSeverity.WARNING, source, message)


def _check_references(items: Iterable, catalog: ContentCatalog, source: str) -> list[ContentIssue]:
    """Quest and clue ids named by conditions or consequences must exist."""
    issues = []
    for item in items:
        quest_id = getattr(item, "quest_id", None)
        if isinstance(item, (
            QuestActiveCondition, QuestCompletedCondition, EvidenceAtLeastCondition,
            StartQuestConsequence, CompleteObjectiveConsequence, CompleteQuestConsequence,
        )) and catalog.lookup_quest(quest_id) is None:
            issues.append(_error(source, f"{item.kind} references unknown quest '{quest_id}'"))

        if isinstance(item, (ClueDiscoveredCondition, RevealClueConsequence)):
            if catalog.lookup_clue(item.clue_id) is None:
                issues.append(_error(source, f"{item.kind} references unknown clue '{item.clue_id}'"))
            elif quest_id and catalog.quest_for_clue(item.clue_id) != quest_id:
                issues.append(_error(
                    source, f"clue '{item.clue_id}' does not belong to quest '{quest_id}'"
                ))

        if isinstance(item, CompleteObjectiveConsequence):
            quest = catalog.lookup_quest(quest_id)
            if quest is not None and not quest.declares_objective(item.objective_id):
                issues.append(_error(
                    source, f"quest '{quest_id}' has no objective '{item.objective_id}'"
                ))
    return issues


def check_quest(quest: QuestDefinition, catalog: ContentCatalog) -> list[ContentIssue]:
    source = f"quest:{quest.id}"
    issues = []

    if not quest.phases:
        return [_error(source, "quest has no phases")]
    if quest.start_phase not in quest.phases:
        issues.append(_error(source, f"initial phase '{quest.start_phase}' is not defined"))

    for phase_id, phase in quest.phases.items():
        if phase.id != phase_id:
            issues.append(_warning(source, f"phase key '{phase_id}' has id '{phase.id}'"))
        for target in quest.successors(phase_id):
            if target not in quest.phases:
                issues.append(_error(source, f"phase '{phase_id}' leads to undefined phase '{target}'"))
        for objective_id in phase.unlock_conditions.completed_objectives:
            if not quest.declares_objective(objective_id):
                issues.append(_error(
                    source, f"phase '{phase_id}' requires undeclared objective '{objective_id}'"
                ))
        for clue_id in phase.unlock_conditions.required_clues:
            if clue_id not in quest.available_clues:
                issues.append(_error(
                    source, f"phase '{phase_id}' requires undeclared clue '{clue_id}'"
                ))

    if not any(quest.is_terminal(pid) for pid in quest.phases):
        issues.append(_warning(source, "no terminal phase; quest can never be completed"))

    for fail in quest.fail_conditions:
        if not fail.conditions:
            issues.append(_warning(source, f"fail condition '{fail.id}' has no conditions and never fires"))
        for phase_id in fail.phases:
            if phase_id not in quest.phases:
                issues.append(_error(source, f"fail condition '{fail.id}' names undefined phase '{phase_id}'"))
        issues += _check_references(fail.conditions, catalog, source)

    return issues


def _reachable(tree: ConversationTree) -> set[str]:
    seen: set[str] = set()
    pending = [tree.entry_node]
    while pending:
        node_id = pending.pop()
        node = tree.node(node_id)
        if node_id in seen or node is None:
            continue
        seen.add(node_id)
        pending.extend(c.next for c in node.choices if not c.ends_conversation)
    return seen


def check_conversation(tree: ConversationTree, catalog: ContentCatalog) -> list[ContentIssue]:
    source = f"conversation:{tree.npc_id}/{tree.conversation_id}"
    issues = _check_references(tree.conditions, catalog, source)

    if tree.node(tree.entry_node) is None:
        issues.append(_error(source, f"entry node '{tree.entry_node}' is not defined"))

    for node_id, node in tree.nodes.items():
        if node.default_variant is None:
            issues.append(_error(source, f"node '{node_id}' has no default text variant"))
        issues += _check_references(node.on_enter, catalog, source)
        for clue_id in node.reveals_clues:
            if catalog.lookup_clue(clue_id) is None:
                issues.append(_error(source, f"node '{node_id}' reveals unknown clue '{clue_id}'"))
        for choice in node.choices:
            if choice.next != END_CONVERSATION and tree.node(choice.next) is None:
                issues.append(_error(
                    source, f"choice '{choice.choice_id}' leads to undefined node '{choice.next}'"
                ))
            issues += _check_references(choice.conditions, catalog, source)
            issues += _check_references(choice.consequences, catalog, source)

    unreachable = sorted(set(tree.nodes) - _reachable(tree))
    if unreachable:
        issues.append(_warning(source, f"unreachable nodes: {', '.join(unreachable)}"))

    return issues


def check_npc_dialogue(dialogue: NpcDialogue, catalog: ContentCatalog) -> list[ContentIssue]:
    source = f"npc:{dialogue.npc_id}"
    issues = []
    default = dialogue.default_conversation
    if default is not None and default not in dialogue.conversations:
        issues.append(_error(source, f"default conversation '{default}' is not defined"))
    for tree in dialogue.conversations.values():
        issues += check_conversation(tree, catalog)
    return issues


def check_catalog(catalog: ContentCatalog) -> list[ContentIssue]:
    """Every integrity issue in the catalog, quests first."""
    issues = []
    for quest in catalog.quests:
        issues += check_quest(quest, catalog)
    for dialogue in catalog.dialogues:
        issues += check_npc_dialogue(dialogue, catalog)
    return issues


def has_errors(issues: list[ContentIssue]) -> bool:
    return any(issue.severity == IssueSeverity.ERROR for issue in issues)
