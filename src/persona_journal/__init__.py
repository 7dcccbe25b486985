"""
persona-journal: Long-term journal memory for roleplay personas.

Core components:
- storage: VectorStore protocol, SQLAlchemy store with optional Qdrant index
- embeddings: Embedding providers and the fallback gateway
- journal: Conversation analysis into journal entries and seed memories
- retrieval: Query formulation, owner-scoped search and reranking
- context: Token-budgeted prompt assembly
- models: Core data models (MemoryRecord, RelationshipState, etc.)
"""

__version__ = "0.1.0"

from persona_journal.config import KeyRotation, MemorySettings
from persona_journal.models import (
    JournalAnalysis,
    JournalResult,
    MemoryRecord,
    OwnerState,
    PersonaProfile,
    PromptContext,
    QueryHit,
    RelationshipState,
)
from persona_journal.memory_service import JournalMemoryService

__all__ = [
    "__version__",
    # Config
    "MemorySettings",
    "KeyRotation",
    # Models
    "MemoryRecord",
    "QueryHit",
    "RelationshipState",
    "OwnerState",
    "PersonaProfile",
    "JournalAnalysis",
    "JournalResult",
    "PromptContext",
    "JournalMemoryService",
]
