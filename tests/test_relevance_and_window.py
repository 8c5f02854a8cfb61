import pytest

from honeymoon_ai.algorithms.context_window import ContextWindowSelector
from honeymoon_ai.algorithms.relevance_scorer import RelevanceScorer, RelevanceWeights


def test_plain_message_scores_base_plus_recency(make_message):
    messages = [make_message("user", "ok", i) for i in range(4)]

    records = RelevanceScorer().score(messages)

    assert records[0].score == pytest.approx(0.3)
    assert records[2].score == pytest.approx(0.4)


def test_score_is_clamped_to_one(make_message):
    messages = [make_message("user", "ok"), make_message("user", "What budget should we plan for the package?")]

    record = RelevanceScorer().score(messages)[1]

    assert record.has_preference and record.is_question and record.mentions_packages
    assert record.score == 1.0


def test_turkish_question_and_preference(make_message):
    record = RelevanceScorer().score([make_message("user", "Bütçemiz ne kadar olmalı, hangi otel?")])[0]

    assert record.has_preference
    assert record.is_question


def test_custom_weights(make_message):
    scorer = RelevanceScorer(weights=RelevanceWeights(base=0.1, recency=0.0))

    assert scorer.score([make_message("user", "ok")])[0].score == pytest.approx(0.1)


def test_non_positive_window_is_empty(make_message):
    selector = ContextWindowSelector(threshold=0.6)

    assert selector.select([make_message("user", "hi")], 0) == []
    assert selector.select([make_message("user", "hi")], -3) == []


def test_short_history_passes_through(make_message):
    messages = [make_message("user", f"message {i}", i) for i in range(5)]

    assert ContextWindowSelector(threshold=0.6).select(messages, 10) == messages


def test_long_history_is_capped_and_keeps_latest(make_message):
    messages = []
    for i in range(30):
        content = "What is the price for two people?" if i % 2 else "ok"
        messages.append(make_message("user" if i % 2 else "assistant", content, i))

    window = ContextWindowSelector(threshold=0.6).select(messages, 10)

    assert len(window) <= 10
    assert window[-1] is messages[-1]
    positions = [messages.index(m) for m in window]
    assert positions == sorted(positions)


def test_window_is_not_padded_with_low_relevance_messages(make_message):
    messages = [make_message("user", "ok", i) for i in range(15)]

    window = ContextWindowSelector(threshold=0.6).select(messages, 10)

    assert window == [messages[-1]]


def test_latest_message_included_even_when_irrelevant(make_message):
    messages = [make_message("user", "What budget do we need?", i) for i in range(12)]
    messages.append(make_message("user", "ok", 20))

    window = ContextWindowSelector(threshold=0.6).select(messages, 5)

    assert len(window) == 5
    assert window[-1].content == "ok"


def test_default_weights_and_threshold():
    assert RelevanceWeights() == RelevanceWeights(base=0.3, preference=0.4, question=0.3, package=0.2, recency=0.2)
    assert ContextWindowSelector().threshold == 0.6
