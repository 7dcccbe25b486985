"""
Error taxonomy for persona-journal.

Provider errors are raised by capability adapters (embedding, reranking) and
are always caught by the fallback gateways that own them. Store errors wrap
the underlying database failure so callers do not depend on SQLAlchemy.
"""


class PersonaJournalError(Exception):
    """Base class for all persona-journal errors."""


class ProviderError(PersonaJournalError):
    """A capability backend (embedding, reranking) failed."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class ProviderUnavailableError(ProviderError):
    """A provider has no credentials or is not configured."""


class VectorStoreError(PersonaJournalError):
    """The authoritative vector store failed."""
