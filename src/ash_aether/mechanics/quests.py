"""Quest state machine — per-quest status and objective progress, no I/O.

Statuses only move forward: locked -> available -> active -> completed,
with failed reachable from anything except completed.
"""
from __future__ import annotations

from ash_aether.models.quest import (
    ObjectiveProgress,
    QuestDefinition,
    QuestInstance,
    QuestPrerequisites,
    QuestStatus,
    SerializedQuestState,
)


class QuestStateMachine:
    """Tracks every registered quest plus the boolean flags gating them."""

    def __init__(self) -> None:
        self._definitions: dict[str, QuestDefinition] = {}
        self._instances: dict[str, QuestInstance] = {}
        self._flags: dict[str, bool] = {}

    @classmethod
    def from_serialized(cls, state: SerializedQuestState) -> QuestStateMachine:
        machine = cls()
        for quest in state.quests:
            machine._instances[quest.id] = quest.model_copy(deep=True)
        machine._flags.update(state.flags)
        return machine

    def register_quest(self, definition: QuestDefinition) -> None:
        """Register a definition; an existing (restored) instance keeps its state."""
        self._definitions[definition.id] = definition
        if definition.id in self._instances:
            return
        self._instances[definition.id] = QuestInstance(
            id=definition.id,
            status=QuestStatus.LOCKED,
            objectives=[
                ObjectiveProgress(
                    id=o.id, description=o.description, required=o.required, progress=0,
                )
                for o in definition.objectives
            ],
        )

    # -- Flags --

    def set_flag(self, flag_id: str, value: bool) -> None:
        self._flags[flag_id] = value

    def get_flag(self, flag_id: str) -> bool:
        return self._flags.get(flag_id, False)

    # -- Transitions --

    def sync_availability(self) -> list[str]:
        """Promote locked quests whose prerequisites are met. Returns promoted ids."""
        promoted: list[str] = []
        for quest_id, definition in self._definitions.items():
            quest = self._instances.get(quest_id)
            if quest is None or quest.status != QuestStatus.LOCKED:
                continue
            if self._prerequisites_met(definition.prerequisites):
                quest.status = QuestStatus.AVAILABLE
                promoted.append(quest_id)
        return promoted

    def start_quest(self, quest_id: str) -> None:
        quest = self._require_quest(quest_id)
        if quest.status != QuestStatus.AVAILABLE:
            raise ValueError(f"Quest {quest_id} is not available")
        quest.status = QuestStatus.ACTIVE

    def advance_objective(self, quest_id: str, objective_id: str, amount: int = 1) -> None:
        """Add progress to one objective, completing the quest once all are met."""
        quest = self._require_quest(quest_id)
        if quest.status != QuestStatus.ACTIVE:
            raise ValueError(f"Quest {quest_id} is not active")
        if amount < 0:
            raise ValueError(f"Objective progress amount must not be negative: {amount}")

        objective = next((o for o in quest.objectives if o.id == objective_id), None)
        if objective is None:
            raise ValueError(f"Quest {quest_id} has no objective {objective_id}")

        objective.progress = min(objective.required, objective.progress + amount)

        if quest.objectives_met:
            quest.status = QuestStatus.COMPLETED

    def fail_quest(self, quest_id: str) -> None:
        # Allowed from locked and available as well as active.
        quest = self._require_quest(quest_id)
        if quest.status == QuestStatus.COMPLETED:
            raise ValueError(f"Quest {quest_id} is already completed")
        quest.status = QuestStatus.FAILED

    # -- Queries --

    def get_quest(self, quest_id: str) -> QuestInstance | None:
        quest = self._instances.get(quest_id)
        return quest.model_copy(deep=True) if quest else None

    def get_status(self, quest_id: str) -> QuestStatus | None:
        quest = self._instances.get(quest_id)
        return quest.status if quest else None

    def get_definition(self, quest_id: str) -> QuestDefinition | None:
        return self._definitions.get(quest_id)

    def list_quests(self) -> list[QuestInstance]:
        return [q.model_copy(deep=True) for q in self._instances.values()]

    def serialize(self) -> SerializedQuestState:
        return SerializedQuestState(
            quests=self.list_quests(),
            flags=dict(self._flags),
        )

    def _prerequisites_met(self, prerequisites: QuestPrerequisites | None) -> bool:
        if prerequisites is None:
            return True
        flags_met = all(
            self.get_flag(req.id) == req.equals for req in prerequisites.flags
        )
        quests_met = all(
            self.get_status(quest_id) == QuestStatus.COMPLETED
            for quest_id in prerequisites.quests_completed
        )
        return flags_met and quests_met

    def _require_quest(self, quest_id: str) -> QuestInstance:
        quest = self._instances.get(quest_id)
        if quest is None:
            raise ValueError(f"Quest {quest_id} does not exist")
        return quest
