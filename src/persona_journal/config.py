"""
Configuration for persona-journal.

MemorySettings is read from the environment (prefix ``PERSONA_JOURNAL_``)
or built directly. KeyRotation holds the per-provider round-robin cursors
for API keys and lives as long as the settings it was created from.
"""

import logging
from typing import Dict, List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

QueryMethod = Literal["plain", "llm-summary", "hyde", "average"]


class MemorySettings(BaseSettings):
    """Settings for journal creation, retrieval and context assembly."""

    model_config = SettingsConfigDict(
        env_prefix="PERSONA_JOURNAL_", env_nested_delimiter="__", extra="ignore"
    )

    # Journal creation
    journal_frequency: int = Field(
        default=10, ge=1, description="Messages per chunk before a journal entry is built"
    )
    analysis_temperature: float = 0.3
    recycle_delay_seconds: float = Field(
        default=5.0, ge=0.0, description="Pause between entries during bulk regeneration"
    )
    user_name: str = "User"

    # Retrieval
    enable_retrieval: bool = True
    retrieval_count: int = 5
    embedding_provider: str = "nvidia"
    query_method: QueryMethod = "llm-summary"
    hyde_enabled: bool = False
    summary_temperature: float = 0.2
    hyde_temperature: float = 0.5

    # Reranking
    enable_reranking: bool = True
    reranking_provider: str = "jina"

    # Context assembly
    max_context_tokens: int = 6000
    history_message_count: int = 15

    # Provider credentials, several keys per provider are rotated
    api_keys: Dict[str, List[str]] = Field(default_factory=dict)

    def key_rotation(self) -> "KeyRotation":
        """Create a key rotation bound to these settings' API keys."""
        return KeyRotation(self.api_keys)


class KeyRotation:
    """
    Round-robin API key selection, one cursor per provider.

    Example:
        >>> rotation = KeyRotation({"nvidia": ["k1", "k2"]})
        >>> rotation.next_key("nvidia"), rotation.next_key("nvidia"), rotation.next_key("nvidia")
        ('k1', 'k2', 'k1')
    """

    def __init__(self, keys: Optional[Dict[str, List[str]]] = None):
        self._keys: Dict[str, List[str]] = {
            provider: [key for key in provider_keys if key]
            for provider, provider_keys in (keys or {}).items()
        }
        self._cursors: Dict[str, int] = {}

    def has_key(self, provider: str) -> bool:
        return bool(self._keys.get(provider))

    def next_key(self, provider: str) -> Optional[str]:
        """Return the next key for a provider, or None if it has none."""
        keys = self._keys.get(provider)
        if not keys:
            return None

        cursor = self._cursors.get(provider, 0) % len(keys)
        self._cursors[provider] = cursor + 1

        if len(keys) > 1:
            logger.debug(f"Using {provider} API key #{cursor + 1} of {len(keys)}")
        return keys[cursor]
