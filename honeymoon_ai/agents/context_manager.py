"""
Context Manager
Maintains one ConversationContext per session and builds the dynamic
system prompt from it.

Each update recomputes the context from the full message history and
replaces the previous one; nothing is merged incrementally.
"""

from typing import List, Optional, Sequence

from loguru import logger

from ..algorithms.context_window import ContextWindowSelector
from ..algorithms.keyword_tables import DEFAULT_KEYWORDS, KeywordTable, normalize_text
from ..algorithms.phase_classifier import classify_phase
from ..algorithms.preference_extractor import PreferenceExtractor
from ..config import settings
from ..interfaces.session_registry import SessionRegistry
from ..llm.package_directives import CURATED_CITY_PACKAGES
from ..llm.prompts import CONTEXT_PROMPT, PHASE_GUIDANCE, SYSTEM_PROMPT
from ..schemas.ai_schemas import (
    ConversationContext,
    Message,
    PackageCategory,
    Role,
    utcnow,
)
from ..utils.ai_helpers import truncate_text

SUMMARY_MESSAGES = 5
SUMMARY_QUESTIONS = 2
QUESTION_LENGTH = 100


class ContextManager:
    """
    Per-session conversation context

    Args:
        registry: Owner of per-session state
        keywords: Vocabulary for extraction, topics and phase
        selector: Context window selector
    """

    def __init__(
        self,
        registry: SessionRegistry,
        keywords: KeywordTable = DEFAULT_KEYWORDS,
        selector: Optional[ContextWindowSelector] = None
    ):
        self.registry = registry
        self.keywords = keywords
        self.extractor = PreferenceExtractor(keywords)
        self.selector = selector if selector is not None else ContextWindowSelector()

    def update_context(self, session_id: str, messages: Sequence[Message]) -> ConversationContext:
        """Recompute and store the context for a session"""
        context = ConversationContext(
            session_id=session_id,
            user_preferences=self.extractor.extract(messages),
            session_summary=self.generate_summary(messages),
            key_topics=self.extract_key_topics(messages),
            last_interaction_time=utcnow(),
            conversation_phase=classify_phase(messages, self.keywords),
        )

        self.registry.get_or_create(session_id).context = context
        logger.debug(
            f"Context updated for {session_id}: phase={context.conversation_phase.value}, "
            f"topics={context.key_topics}"
        )
        return context

    def get_context(self, session_id: str) -> Optional[ConversationContext]:
        state = self.registry.get(session_id)
        return state.context if state else None

    def clear_context(self, session_id: str):
        state = self.registry.get(session_id)
        if state:
            state.context = None

    def generate_summary(self, messages: Sequence[Message]) -> str:
        """
        Short natural-language summary of the recent user turns

        Args:
            messages: Chronological history

        Returns:
            str: Summary mentioning destinations, budget, style and open questions
        """
        recent = [m for m in messages if m.role == Role.USER][-SUMMARY_MESSAGES:]
        if not recent:
            return "New conversation."

        preferences = self.extractor.extract(recent)
        parts: List[str] = []

        if preferences.destinations:
            parts.append(f"Interested in: {', '.join(preferences.destinations)}")
        if preferences.budget:
            parts.append(f"Budget: {preferences.budget}")
        if preferences.travel_style:
            parts.append(f"Style: {preferences.travel_style.value}")

        questions = [
            m.content.strip() for m in recent
            if self.keywords.question_pattern.search(normalize_text(m.content))
        ][-SUMMARY_QUESTIONS:]
        if questions:
            asked = "; ".join(truncate_text(q, QUESTION_LENGTH) for q in questions)
            parts.append(f"Recent questions: {asked}")

        if not parts:
            return "Gathering honeymoon preferences."
        return ". ".join(parts) + "."

    def extract_key_topics(self, messages: Sequence[Message]) -> List[str]:
        """Topics mentioned anywhere in the conversation, sorted"""
        text = " ".join(normalize_text(m.content) for m in messages)
        return sorted({
            label for label, pattern in self.keywords.topic_patterns
            if pattern.search(text)
        })

    def select_relevant_messages(
        self,
        messages: Sequence[Message],
        max_window: Optional[int] = None
    ) -> List[Message]:
        if max_window is None:
            max_window = settings.MAX_CONTEXT_MESSAGES
        return self.selector.select(messages, max_window)

    def build_system_prompt(self, context: Optional[ConversationContext]) -> str:
        """Base prompt plus a context-awareness section when context exists"""
        prompt = SYSTEM_PROMPT.format(
            categories=", ".join(c.value for c in PackageCategory),
            cities=", ".join(p.title for p in CURATED_CITY_PACKAGES),
        )
        if context is None:
            return prompt

        preferences = context.user_preferences
        lines = ""
        if preferences.budget:
            lines += f"- User budget: {preferences.budget}\n"
        if preferences.destinations:
            lines += f"- Interested destinations: {', '.join(preferences.destinations)}\n"
        if preferences.travel_style:
            lines += f"- Travel style: {preferences.travel_style.value}\n"
        if preferences.group_size:
            lines += f"- Travelers: {preferences.group_size}\n"
        if preferences.special_requests:
            lines += f"- Special requests: {', '.join(preferences.special_requests)}\n"

        phase = context.conversation_phase.value
        return prompt + CONTEXT_PROMPT.format(
            preferences=lines,
            key_topics=", ".join(context.key_topics) or "none yet",
            phase=phase,
            summary=context.session_summary,
            phase_guidance=PHASE_GUIDANCE[phase],
        )
