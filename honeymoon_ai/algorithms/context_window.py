"""
Context Window Selector
Keeps the prompt bounded by sending only the most relevant history

Selection:
1. Short histories (len <= max_window) pass through unchanged
2. Otherwise keep messages scoring >= threshold, best first
3. Take the top max_window - 1, then force-include the latest message
4. Return the selection in original chronological order

The selector never pads with low-relevance filler, so it may return fewer
messages than the cap.
"""

from typing import List, Optional, Sequence
from loguru import logger

from ..config import settings
from ..schemas.ai_schemas import Message
from .relevance_scorer import RelevanceScorer, relevance_scorer


class ContextWindowSelector:

    def __init__(
        self,
        scorer: Optional[RelevanceScorer] = None,
        threshold: Optional[float] = None
    ):
        self.scorer = scorer if scorer is not None else relevance_scorer
        self.threshold = settings.RELEVANCE_THRESHOLD if threshold is None else threshold

    def select(self, messages: Sequence[Message], max_window: int) -> List[Message]:
        """
        Choose the messages to replay to the text generator

        Args:
            messages: Full history in chronological order
            max_window: Maximum number of messages to return

        Returns:
            List[Message]: Chronologically ordered subset, latest message included
        """
        if max_window <= 0:
            logger.warning(f"Context window size must be positive, got {max_window}")
            return []

        if len(messages) <= max_window:
            return list(messages)

        records = self.scorer.score(messages)
        relevant = [r for r in records if r.score >= self.threshold]
        # sorted() is stable, so equal scores keep chronological order
        relevant = sorted(relevant, key=lambda r: r.score, reverse=True)

        selected = {r.index for r in relevant[:max_window - 1]}
        selected.add(len(messages) - 1)

        window = [messages[i] for i in sorted(selected)]
        logger.debug(
            f"Context window: {len(window)}/{len(messages)} messages "
            f"({len(relevant)} above threshold {self.threshold})"
        )
        return window


# Global selector instance
context_window_selector = ContextWindowSelector()


def select_context_window(messages: Sequence[Message], max_window: Optional[int] = None) -> List[Message]:
    """Convenience function using configured window size and threshold"""
    if max_window is None:
        max_window = settings.MAX_CONTEXT_MESSAGES
    return context_window_selector.select(messages, max_window)
