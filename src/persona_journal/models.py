import uuid
from datetime import datetime
from typing import List, Literal, Optional

from casual_llm import ChatMessage
from pydantic import BaseModel, ConfigDict, Field, field_validator

MemoryKind = Literal["persona", "firstMessage", "journal"]
RelationshipStatus = Literal["friendly", "acquaintance", "neutral", "wary", "hostile"]

MIN_IMPORTANCE = 0.1
MAX_IMPORTANCE = 1.0


def clamp_importance(value: float) -> float:
    """Clamp a normalized importance into [0.1, 1.0]."""
    return max(MIN_IMPORTANCE, min(MAX_IMPORTANCE, float(value)))


class Emotions(BaseModel):
    """Emotion weights attached to a journal entry."""

    positive: float = 0.0
    negative: float = 0.0
    neutral: float = 0.0


class MemoryRecord(BaseModel):
    """
    One retrievable unit of long-term memory.

    Seed memories (``persona``, ``firstMessage``) carry only the common
    fields; journal entries also carry the structured analysis fields.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Opaque record id")
    owner: str = Field(..., min_length=1, description="Persona this memory belongs to")
    summary: str
    timestamp: datetime = Field(default_factory=datetime.now)
    importance: float = Field(default=0.5, description="Normalized importance in [0.1, 1.0]")
    embedding: List[float] = Field(default_factory=list)
    kind: MemoryKind = "journal"

    # Journal-only structured fields
    emotions: Emotions = Field(default_factory=Emotions)
    decisions: List[str] = Field(default_factory=list)
    topics: List[str] = Field(default_factory=list)
    participants: List[str] = Field(default_factory=list)
    plot_elements: List[str] = Field(default_factory=list)
    conversation_drivers: List[str] = Field(default_factory=list)
    relationship_delta: float = 0.0

    # Transient retrieval annotations, never persisted
    score: Optional[float] = Field(default=None, exclude=True)
    rerank_score: Optional[float] = Field(default=None, exclude=True)

    @field_validator("importance")
    @classmethod
    def _clamp_importance(cls, value: float) -> float:
        return clamp_importance(value)

    def metadata_json(self) -> str:
        """Serialize every persisted field except the embedding."""
        return self.model_dump_json(exclude={"embedding"})

    @classmethod
    def from_metadata(cls, data: str, embedding: List[float]) -> "MemoryRecord":
        """Rebuild a record from its metadata blob and stored embedding."""
        record = cls.model_validate_json(data)
        return record.model_copy(update={"embedding": embedding})


class QueryHit(BaseModel):
    """A VectorStore query result: the record and its cosine distance (smaller is closer)."""

    record: MemoryRecord
    score: float


class RelationshipState(BaseModel):
    sentiment: float = Field(default=0.0, ge=-1.0, le=1.0)
    status: RelationshipStatus = "neutral"


class OwnerState(BaseModel):
    """Caller-supplied state of the persona a journal is built for."""

    name: str
    sentiment: float = 0.0


class PersonaProfile(BaseModel):
    """Static persona fields used to seed memories and the prompt."""

    name: str
    persona: str = ""
    first_message: str = ""
    scenario: str = ""


class JournalAnalysis(BaseModel):
    """A validated structured-extraction result for one conversation chunk."""

    model_config = ConfigDict(populate_by_name=True)

    summary: str = Field(..., min_length=1)
    emotions: Emotions
    decisions: List[str]
    topics: List[str]
    importance: float
    relationship_delta: float = Field(..., alias="relationshipDelta")
    conversation_drivers: List[str] = Field(default_factory=list, alias="conversationDrivers")
    participants: List[str] = Field(default_factory=list)
    plot_elements: List[str] = Field(default_factory=list, alias="plotElements")
    source: Literal["llm", "heuristic"] = "llm"


class JournalResult(BaseModel):
    """A stored journal entry and the relationship state it produced."""

    record: MemoryRecord
    relationship: RelationshipState


class PromptContext(BaseModel):
    """Assembled prompt messages plus the budget accounting behind them."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    messages: List[ChatMessage]
    memory_token_budget: int
    memory_tokens: int
    memories_included: int
    history_included: int
    memory_budget_defect: bool = False


class RecycleProgress(BaseModel):
    step: Literal["clearing", "seeding", "journaling", "done"]
    message: str
    current: int = 0
    total: int = 0


class RecycleResult(BaseModel):
    success: bool
    memories_created: int = 0
    chunks_processed: int = 0
    relationship: Optional[RelationshipState] = None
    error: Optional[str] = None
