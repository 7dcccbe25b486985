"""
Prompts for journal analysis.

JOURNAL_ANALYSIS_PROMPT asks the model for one JSON object describing a
conversation chunk from the character's point of view.
"""

JOURNAL_ANALYSIS_PROMPT = """Analyze the following conversation chunk involving {character}. Focus specifically on decisive actions, strong opinions, and how the character drove the conversation.

Respond STRICTLY in JSON format with the following keys:
- "summary": A brief 1-2 sentence summary emphasizing decisive moments and authoritative actions.
- "emotions": An object with the character's emotions (e.g., {{"positive": 0.7, "negative": 0.1, "neutral": 0.2}})
- "decisions": An array of definitive stances, clear choices, or bold actions taken by the character (e.g., ["Confronted user about their behavior", "Declared intention to explore the forbidden area"])
- "topics": An array of main topics discussed, especially those the character feels strongly about (e.g., ["Authority", "Boundaries", "Personal values"])
- "importance": A score from 1 (low) to 10 (high) indicating the memory's significance, with higher scores for assertive actions
- "relationshipDelta": Estimated change in sentiment towards {user} (-1.0 to +1.0) based ONLY on this chunk
- "conversationDrivers": An array of authoritative statements, direct questions or challenges that moved the interaction forward
- "participants": An array of the people present in the scene (optional)
- "plotElements": An array of story developments, places or objects that matter later (optional)

Rate the importance highest (8-10) when the character showed leadership, made unambiguous decisions, or took control of the conversation direction.

Conversation Chunk:
---
{conversation}
---
JSON Response:"""


def format_conversation(messages, character: str, user_name: str) -> str:
    """Render chat messages as "Name: content" lines for the analysis prompt."""
    lines = []
    for message in messages:
        speaker = user_name if message.role == "user" else character
        lines.append(f"{speaker}: {message.content}")
    return "\n".join(lines)
