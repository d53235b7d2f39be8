from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class QuestStatus(str, Enum):
    LOCKED = "locked"
    AVAILABLE = "available"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class QuestObjective(BaseModel):
    id: str
    description: str = ""
    required: int = 1


class FlagRequirement(BaseModel):
    id: str
    equals: bool


class QuestPrerequisites(BaseModel):
    flags: list[FlagRequirement] = Field(default_factory=list)
    quests_completed: list[str] = Field(default_factory=list)


class QuestDefinition(BaseModel):
    """Static quest shape registered with the state machine."""

    id: str
    title: str
    objectives: list[QuestObjective] = Field(default_factory=list)
    prerequisites: QuestPrerequisites | None = None


class ObjectiveProgress(BaseModel):
    id: str
    description: str = ""
    required: int = 1
    progress: int = 0


class QuestInstance(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    status: QuestStatus = QuestStatus.LOCKED
    objectives: list[ObjectiveProgress] = Field(default_factory=list)

    @property
    def objectives_met(self) -> bool:
        return all(o.progress >= o.required for o in self.objectives)


class SerializedQuestState(BaseModel):
    quests: list[QuestInstance] = Field(default_factory=list)
    flags: dict[str, bool] = Field(default_factory=dict)
