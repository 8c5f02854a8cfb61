"""
Message Relevance Scorer
Scores each historical message for inclusion in the prompt window (0.0-1.0)

Score Components:
1. Base (0.3) - every message starts here
2. Preference (+0.4) - budget/price/destination/date/people vocabulary
3. Question (+0.3) - question mark or question word
4. Package (+0.2) - package directive or recommend/suggest vocabulary
5. Recency (+0.0-0.2) - (index / length) * 0.2

Total is clamped to 0.0-1.0.
"""

from dataclasses import dataclass
from typing import List, NamedTuple, Sequence
from loguru import logger

from ..schemas.ai_schemas import Message
from .keyword_tables import DEFAULT_KEYWORDS, KeywordTable, normalize_text


@dataclass(frozen=True)
class RelevanceWeights:
    """Tunable scoring constants"""
    base: float = 0.3
    preference: float = 0.4
    question: float = 0.3
    package: float = 0.2
    recency: float = 0.2


DEFAULT_WEIGHTS = RelevanceWeights()


class RelevanceRecord(NamedTuple):
    """
    Relevance of one message, with the signals that produced it
    """
    index: int
    message: Message
    score: float
    has_preference: bool
    is_question: bool
    mentions_packages: bool

    def __repr__(self) -> str:
        return (
            f"Relevance(index={self.index}, score={self.score:.2f}, "
            f"pref={self.has_preference}, question={self.is_question}, "
            f"packages={self.mentions_packages})"
        )


class RelevanceScorer:
    """Order-preserving relevance scoring over a message list"""

    def __init__(
        self,
        keywords: KeywordTable = DEFAULT_KEYWORDS,
        weights: RelevanceWeights = DEFAULT_WEIGHTS
    ):
        self.keywords = keywords
        self.weights = weights

    def score(self, messages: Sequence[Message]) -> List[RelevanceRecord]:
        """
        Score every message

        Args:
            messages: History in chronological order

        Returns:
            List[RelevanceRecord]: One record per input message, same order
        """
        total = len(messages)
        records = []

        for index, message in enumerate(messages):
            content = normalize_text(message.content)

            has_preference = bool(self.keywords.preference_pattern.search(content))
            is_question = bool(self.keywords.question_pattern.search(content))
            mentions_packages = bool(self.keywords.package_pattern.search(content))

            score = self.weights.base
            if has_preference:
                score += self.weights.preference
            if is_question:
                score += self.weights.question
            if mentions_packages:
                score += self.weights.package
            score += (index / total) * self.weights.recency

            records.append(RelevanceRecord(
                index=index,
                message=message,
                score=round(min(max(score, 0.0), 1.0), 4),
                has_preference=has_preference,
                is_question=is_question,
                mentions_packages=mentions_packages,
            ))

        logger.debug(f"Scored {total} messages for relevance")
        return records


# Global scorer instance
relevance_scorer = RelevanceScorer()


def score_messages(messages: Sequence[Message]) -> List[RelevanceRecord]:
    """Convenience function using the default keywords and weights"""
    return relevance_scorer.score(messages)
