from honeymoon_ai.algorithms.keyword_tables import KeywordTable
from honeymoon_ai.algorithms.phase_classifier import classify_phase
from honeymoon_ai.schemas.ai_schemas import ConversationPhase


def test_greeting_with_planning_is_discovery(make_message):
    messages = [make_message("user", "merhaba, balayı planlamak istiyorum")]

    assert classify_phase(messages) == ConversationPhase.DISCOVERY


def test_booking_intent(make_message):
    messages = [make_message("user", "rezervasyon yapmak istiyorum")]

    assert classify_phase(messages) == ConversationPhase.BOOKING


def test_itinerary_is_planning(make_message):
    messages = [make_message("user", "Can you draft a 7 day itinerary?")]

    assert classify_phase(messages) == ConversationPhase.PLANNING


def test_only_last_three_messages_count(make_message):
    messages = [
        make_message("user", "I want to book now", 0),
        make_message("assistant", "Sounds nice", 1),
        make_message("user", "Thanks", 2),
        make_message("assistant", "You're welcome", 3),
    ]

    assert classify_phase(messages) == ConversationPhase.DISCOVERY


def test_empty_history_is_discovery():
    assert classify_phase([]) == ConversationPhase.DISCOVERY


def test_empty_table_never_matches(make_message):
    messages = [make_message("user", "hello, book it")]

    assert classify_phase(messages, KeywordTable(language="none")) == ConversationPhase.DISCOVERY
