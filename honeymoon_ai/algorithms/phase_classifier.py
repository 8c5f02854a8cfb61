"""
Conversation Phase Classifier
Labels the conversation from its last few messages

Precedence: greeting -> discovery, booking -> booking,
itinerary -> planning, otherwise discovery.
"""

from typing import Sequence

from ..schemas.ai_schemas import ConversationPhase, Message
from .keyword_tables import DEFAULT_KEYWORDS, KeywordTable, normalize_text

RECENT_MESSAGES = 3


def classify_phase(
    messages: Sequence[Message],
    keywords: KeywordTable = DEFAULT_KEYWORDS
) -> ConversationPhase:
    """
    Classify the current conversation phase

    Args:
        messages: Chronological history; only the last three are inspected
        keywords: Vocabulary to match against

    Returns:
        ConversationPhase
    """
    recent = " ".join(normalize_text(m.content) for m in messages[-RECENT_MESSAGES:])

    if keywords.greeting_pattern.search(recent):
        return ConversationPhase.DISCOVERY
    if keywords.booking_pattern.search(recent):
        return ConversationPhase.BOOKING
    if keywords.planning_pattern.search(recent):
        return ConversationPhase.PLANNING
    return ConversationPhase.DISCOVERY
