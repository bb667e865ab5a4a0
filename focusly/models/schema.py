"""
Schema definitions for data models.

All models are JSON-serializable. Persisted documents use camelCase keys,
Python code uses snake_case attributes; both are accepted when loading.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

NodeType = Literal["signal", "noise"]
NodeStatus = Literal["locked", "available", "in-progress", "mastered"]
PlaygroundType = Literal["code", "spreadsheet"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlaygroundDescriptor(CamelModel):
    """Interactive exercise attached to deep content."""
    type: PlaygroundType
    initial_data: str = ""  #csv rows for spreadsheets, source for code
    prompt: str = ""


class DeepContent(CamelModel):
    executive_summary: str
    technical_mechanics: list[str]
    minute_details: list[str]
    expert_mental_model: str
    common_pitfalls: list[str]
    eli7: str
    playground: Optional[PlaygroundDescriptor] = None


# provider output, snake_case as requested in the prompt
class NodeDescriptor(BaseModel):
    title: str = Field(description="Expert terminology for the node")
    description: str = Field(description="The why and the how of this node")
    type: NodeType
    difficulty_level: int = Field(description="Level 0 to 100")
    learning_outcome: str
    search_queries: list[str] = []
    resources: list[str] = []

    @field_validator("difficulty_level")
    @classmethod
    def clamp_difficulty(cls, v: int) -> int:
        return max(0, min(100, v))


class RoadmapResponse(BaseModel):
    nodes: list[NodeDescriptor]


class LearningNode(CamelModel):
    id: str
    parent_id: Optional[str] = None
    title: str
    description: str = ""
    type: NodeType = "signal"
    status: NodeStatus = "available"
    depth: int = Field(default=0, ge=0)
    difficulty_level: int = Field(default=0, ge=0, le=100)
    learning_outcome: str = ""
    search_queries: list[str] = []
    resources: list[str] = []
    deep_content: Optional[DeepContent] = None
    pomodoros_spent: int = Field(default=0, ge=0)
    children_ids: list[str] = []
    created_at: int = 0  #epoch milliseconds


class MasterySample(CamelModel):
    date: str  #iso date, one sample per day
    count: int = 0


class UserStats(CamelModel):
    daily_streak: int = 0
    total_nodes_mastered: int = 0
    total_focus_hours: float = 0.0
    mastery_history: list[MasterySample] = []
