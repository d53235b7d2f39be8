"""Dialogue interpreter — walks a conversation graph against live game state.

All mutable state lives behind a DialogueStateAccess adapter; the runtime only
indexes the conversation's nodes.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ash_aether.models.content import (
    AddItemEffect,
    AddReputationEffect,
    CompleteQuestEffect,
    DialogueChoice,
    DialogueData,
    DialogueNode,
    FlagEqualsCondition,
    FlagValue,
    ItemCountAtLeastCondition,
    QuestStatusCondition,
    ReputationAtLeastCondition,
    SetFlagEffect,
    StartQuestEffect,
    StatAtLeastCondition,
)
from ash_aether.models.quest import QuestStatus


class DialogueStateAccess(ABC):
    """Capabilities a dialogue needs from whoever owns the game state."""

    @abstractmethod
    def get_flag(self, flag_id: str) -> FlagValue | None: ...

    @abstractmethod
    def set_flag(self, flag_id: str, value: FlagValue) -> None: ...

    @abstractmethod
    def get_stat(self, stat_id: str) -> float: ...

    @abstractmethod
    def get_item_count(self, item_id: str) -> int: ...

    @abstractmethod
    def add_item(self, item_id: str, amount: int) -> None: ...

    @abstractmethod
    def get_reputation(self, faction_id: str) -> int: ...

    @abstractmethod
    def add_reputation(self, faction_id: str, amount: int) -> None: ...

    @abstractmethod
    def get_quest_status(self, quest_id: str) -> QuestStatus | None: ...

    @abstractmethod
    def start_quest(self, quest_id: str) -> None: ...

    @abstractmethod
    def complete_quest(self, quest_id: str) -> None: ...


def flag_matches(actual: FlagValue | None, expected: FlagValue) -> bool:
    """Strict equality: True must not match 1, nor 1 match 1.0."""
    return type(actual) is type(expected) and actual == expected


class DialogueRuntime:
    def __init__(self, conversation: DialogueData, state: DialogueStateAccess) -> None:
        self.conversation = conversation
        self._state = state
        self._nodes: dict[str, DialogueNode] = {node.id: node for node in conversation.nodes}

    @property
    def start_node_id(self) -> str:
        return self.conversation.nodes[0].id

    def get_node(self, node_id: str) -> DialogueNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise ValueError(f"Dialogue node {node_id} not found")
        return node

    def is_terminal(self, node_id: str) -> bool:
        return not self.get_node(node_id).choices

    def get_available_choices(self, node_id: str) -> list[DialogueChoice]:
        """Choices on the node whose conditions all hold right now."""
        node = self.get_node(node_id)
        return [c for c in node.choices if self.conditions_met(c.conditions)]

    def apply_choice(self, choice: DialogueChoice) -> str:
        """Apply the choice's effects in order and return the next node id."""
        for effect in choice.effects:
            self.apply_effect(effect)

        if choice.next_node_id not in self._nodes:
            raise ValueError(f"Dialogue choice points to missing node {choice.next_node_id}")
        return choice.next_node_id

    def conditions_met(self, conditions: Sequence[object]) -> bool:
        return all(self._evaluate(condition) for condition in conditions)

    def _evaluate(self, condition: object) -> bool:
        state = self._state
        if isinstance(condition, FlagEqualsCondition):
            return flag_matches(state.get_flag(condition.flag_id), condition.equals)
        if isinstance(condition, StatAtLeastCondition):
            return state.get_stat(condition.stat_id) >= condition.value
        if isinstance(condition, ItemCountAtLeastCondition):
            return state.get_item_count(condition.item_id) >= condition.value
        if isinstance(condition, ReputationAtLeastCondition):
            return state.get_reputation(condition.faction_id) >= condition.value
        if isinstance(condition, QuestStatusCondition):
            return state.get_quest_status(condition.quest_id) == condition.status
        # Unknown condition kinds fail closed.
        return False

    def apply_effect(self, effect: object) -> None:
        state = self._state
        if isinstance(effect, SetFlagEffect):
            state.set_flag(effect.flag_id, effect.value)
        elif isinstance(effect, AddReputationEffect):
            state.add_reputation(effect.faction_id, effect.value)
        elif isinstance(effect, AddItemEffect):
            state.add_item(effect.item_id, effect.amount)
        elif isinstance(effect, StartQuestEffect):
            state.start_quest(effect.quest_id)
        elif isinstance(effect, CompleteQuestEffect):
            state.complete_quest(effect.quest_id)
