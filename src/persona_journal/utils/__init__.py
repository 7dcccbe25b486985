"""Text and time helpers shared by journaling and context assembly."""

from persona_journal.utils.text import replace_user_placeholder, time_ago

__all__ = [
    "replace_user_placeholder",
    "time_ago",
]
