from honeymoon_ai.agents.context_manager import ContextManager
from honeymoon_ai.schemas.ai_schemas import ConversationPhase, TravelStyle


def test_update_and_clear_context(registry, make_message):
    manager = ContextManager(registry)
    messages = [make_message("user", "Merhaba! Paris'e gitmek istiyoruz, bütçemiz 5000 euro")]

    context = manager.update_context("sess-1", messages)

    assert manager.get_context("sess-1") is context
    assert context.user_preferences.destinations == ["paris"]
    assert context.user_preferences.budget == "5000 euro"
    assert context.conversation_phase == ConversationPhase.DISCOVERY

    manager.clear_context("sess-1")
    assert manager.get_context("sess-1") is None


def test_update_replaces_previous_context(registry, make_message):
    manager = ContextManager(registry)
    manager.update_context("sess-1", [make_message("user", "luxury please")])

    context = manager.update_context("sess-1", [make_message("user", "beach please")])

    assert context.user_preferences.travel_style == TravelStyle.BEACH
    assert len(registry) == 1


def test_summary_defaults(registry, make_message):
    manager = ContextManager(registry)

    assert manager.generate_summary([]) == "New conversation."
    assert manager.generate_summary([make_message("user", "hello")]) == "Gathering honeymoon preferences."


def test_summary_mentions_preferences_and_questions(registry, make_message):
    manager = ContextManager(registry)
    messages = [
        make_message("user", "We adore Bali and have 3000 euro", 0),
        make_message("user", "Is a beach villa possible?", 1),
    ]

    summary = manager.generate_summary(messages)

    assert "Interested in: bali" in summary
    assert "Budget: 3000 euro" in summary
    assert "Style: beach" in summary
    assert "Recent questions: Is a beach villa possible?" in summary


def test_key_topics_are_sorted(registry, make_message):
    manager = ContextManager(registry)
    messages = [make_message("user", "A romantic beach honeymoon with a spa day")]

    assert manager.extract_key_topics(messages) == ["beach", "honeymoon", "romantic", "spa"]


def test_system_prompt_without_context(registry):
    prompt = ContextManager(registry).build_system_prompt(None)

    assert "**SHOW_PACKAGES:cities**" in prompt
    assert "luxury, adventure, romantic, cultural, beach, city" in prompt
    assert "CONTEXT AWARENESS" not in prompt


def test_system_prompt_with_context(registry, make_message):
    manager = ContextManager(registry)
    context = manager.update_context("sess-1", [make_message("user", "A luxury trip for two people to Antalya")])

    prompt = manager.build_system_prompt(context)

    assert "CONTEXT AWARENESS" in prompt
    assert "- Travel style: luxury" in prompt
    assert "- Interested destinations: antalya" in prompt
    assert "Conversation phase: discovery" in prompt
