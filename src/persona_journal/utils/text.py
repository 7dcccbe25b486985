"""
Text helpers for persona fields and memory display.

Persona text may address the user as ``{{user}}`` (any case); it is
replaced with the configured user name before it is embedded or shown to
the generator.
"""

import re
from datetime import datetime
from typing import Optional

USER_PLACEHOLDER = re.compile(r"\{\{user\}\}", re.IGNORECASE)


def replace_user_placeholder(text: str, user_name: Optional[str]) -> str:
    """Replace every ``{{user}}`` placeholder; "User" when no name is set."""
    if not text:
        return text
    name = user_name or "User"
    return USER_PLACEHOLDER.sub(lambda _: name, text)


def time_ago(timestamp: datetime, now: Optional[datetime] = None) -> str:
    """
    Describe how long ago a memory was made, in whole days.

    Examples:
        0 days -> "Earlier today", 1 -> "Yesterday", 3 -> "3 days ago",
        14 -> "2 weeks ago", 65 -> "2 months ago"
    """
    now = now or datetime.now()
    if timestamp.tzinfo is not None and now.tzinfo is None:
        now = datetime.now(timestamp.tzinfo)

    days = max(0, (now - timestamp).days)
    if days == 0:
        return "Earlier today"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    if days < 30:
        return f"{days // 7} weeks ago"
    return f"{days // 30} months ago"
