"""
Algorithms Module
Text heuristics and scoring for conversation context and personalization
"""

from .keyword_tables import KeywordTable, DEFAULT_KEYWORDS, ENGLISH, TURKISH
from .preference_extractor import PreferenceExtractor, extract_preferences
from .relevance_scorer import RelevanceScorer, RelevanceRecord, RelevanceWeights, score_messages
from .context_window import ContextWindowSelector, select_context_window
from .phase_classifier import classify_phase
from .session_grouper import SessionGrouper, group_messages, flatten_chats

__all__ = [
    "KeywordTable",
    "DEFAULT_KEYWORDS",
    "ENGLISH",
    "TURKISH",
    "PreferenceExtractor",
    "extract_preferences",
    "RelevanceScorer",
    "RelevanceRecord",
    "RelevanceWeights",
    "score_messages",
    "ContextWindowSelector",
    "select_context_window",
    "classify_phase",
    "SessionGrouper",
    "group_messages",
    "flatten_chats"
]
