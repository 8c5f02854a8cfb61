"""
Preference Extractor
Pulls structured honeymoon preferences out of free-text chat history

Extracted fields:
1. Budget - "<number>[k] <currency>", the last mention wins
2. Destinations - gazetteer matches, gazetteer order, no duplicates
3. Group size - couple phrases -> 2, solo phrases -> 1, last mention wins
4. Travel style - first matching family in priority order
5. Special requests - labelled extras (spa, private pool, ...)

Only user-authored text is considered. Nothing here raises: fields that
cannot be found are simply left empty.
"""

from typing import List, Optional, Sequence
from loguru import logger

from ..schemas.ai_schemas import Message, Role, TravelStyle, UserPreferences
from .keyword_tables import DEFAULT_KEYWORDS, KeywordTable, normalize_text


def user_text(messages: Sequence[Message]) -> str:
    """Lower-cased concatenation of all user-authored message text"""
    return " ".join(
        normalize_text(m.content) for m in messages if m.role == Role.USER
    )


def extract_budget(text: str, keywords: KeywordTable = DEFAULT_KEYWORDS) -> Optional[str]:
    """Return the most recently mentioned budget figure, if any"""
    matches = list(keywords.budget_pattern.finditer(text))
    if not matches:
        return None
    return matches[-1].group(0).strip()


def extract_destinations(text: str, keywords: KeywordTable = DEFAULT_KEYWORDS) -> List[str]:
    return [
        name for name, pattern in keywords.destination_patterns
        if pattern.search(text)
    ]


def extract_group_size(text: str, keywords: KeywordTable = DEFAULT_KEYWORDS) -> Optional[int]:
    last_couple = _last_position(keywords.couple_pattern, text)
    last_solo = _last_position(keywords.solo_pattern, text)

    if last_couple is None and last_solo is None:
        return None
    if last_solo is None:
        return 2
    if last_couple is None:
        return 1
    return 1 if last_solo > last_couple else 2


def extract_travel_style(text: str, keywords: KeywordTable = DEFAULT_KEYWORDS) -> Optional[TravelStyle]:
    for style, pattern in keywords.style_patterns:
        if pattern.search(text):
            return style
    return None


def extract_special_requests(text: str, keywords: KeywordTable = DEFAULT_KEYWORDS) -> List[str]:
    return [label for label, pattern in keywords.request_patterns if pattern.search(text)]


def _last_position(pattern, text: str) -> Optional[int]:
    position = None
    for match in pattern.finditer(text):
        position = match.start()
    return position


class PreferenceExtractor:
    """
    Extract UserPreferences from a message history

    The keyword table is injectable so the same logic can run against any
    language's vocabulary (or a synthetic table in tests).
    """

    def __init__(self, keywords: KeywordTable = DEFAULT_KEYWORDS):
        self.keywords = keywords

    def extract(self, messages: Sequence[Message]) -> UserPreferences:
        """
        Build a preference record from user-authored messages

        Args:
            messages: Chat history in chronological order

        Returns:
            UserPreferences: Partial record; missing fields stay empty
        """
        text = user_text(messages)
        if not text:
            return UserPreferences()

        preferences = UserPreferences(
            budget=extract_budget(text, self.keywords),
            destinations=extract_destinations(text, self.keywords),
            group_size=extract_group_size(text, self.keywords),
            travel_style=extract_travel_style(text, self.keywords),
            special_requests=extract_special_requests(text, self.keywords),
        )

        logger.debug(
            f"Extracted preferences: budget={preferences.budget}, "
            f"destinations={preferences.destinations}, style={preferences.travel_style}"
        )
        return preferences


# Global extractor instance
preference_extractor = PreferenceExtractor()


def extract_preferences(messages: Sequence[Message]) -> UserPreferences:
    """Convenience function using the default keyword table"""
    return preference_extractor.extract(messages)
