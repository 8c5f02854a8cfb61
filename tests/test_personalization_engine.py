from datetime import datetime, timedelta, timezone

import pytest

from honeymoon_ai.agents.context_manager import ContextManager
from honeymoon_ai.agents.personalization_engine import PersonalizationEngine
from honeymoon_ai.schemas.ai_schemas import (
    ActionType,
    BookingPrediction,
    BudgetRange,
    DeviceInfo,
    DeviceType,
    PersonalityTraits,
    PersonalizationContext,
    PredictionBundle,
    PricingPrediction,
    ProfileAnalytics,
    BehaviorMetrics,
    Tone,
    TravelPreferences,
    UrgencyLevel,
    UrgencySignalType,
    UserAction,
    UserProfile,
    utcnow,
)

SUMMER_EVENING = datetime(2025, 7, 5, 20, 0, tzinfo=timezone.utc)
SPRING_MORNING = datetime(2025, 3, 12, 9, 0, tzinfo=timezone.utc)


class BrokenProfiles:
    async def get_profile(self, user_id):
        raise ConnectionError("profile service offline")

    async def get_predictions(self, user_id):
        return PredictionBundle()


@pytest.fixture
def engine(registry, profile_store, package_store):
    return PersonalizationEngine(registry, profile_store=profile_store, package_store=package_store)


@pytest.fixture
async def luxury_user(profile_store):
    await profile_store.save_profile(UserProfile(
        user_id="u-lux",
        display_name="Ayşe Yılmaz",
        personality=PersonalityTraits(luxury=9, romantic=6),
        analytics=ProfileAnalytics(profile_completeness=80, engagement_score=75, lifetime_value=20000),
        behavior=BehaviorMetrics(sessions_count=6, average_session_duration=400),
    ))
    await profile_store.save_predictions("u-lux", PredictionBundle(
        booking=BookingPrediction(
            booking_probability=0.85,
            urgency_level=UrgencyLevel.HIGH,
            predicted_destinations=["Maldives"],
            predicted_budget=BudgetRange(min=5000, max=10000),
        ),
        pricing=PricingPrediction(premium_willingness=0.8),
    ))
    return "u-lux"


@pytest.fixture
async def budget_user(profile_store):
    await profile_store.save_profile(UserProfile(
        user_id="u-budget",
        personality=PersonalityTraits(budget_conscious=8, social=7),
        travel_preferences=TravelPreferences(budget_range=BudgetRange(min=1000, max=2000)),
    ))
    await profile_store.save_predictions("u-budget", PredictionBundle(
        pricing=PricingPrediction(optimal_price_range=BudgetRange(min=1900, max=2600)),
    ))
    return "u-budget"


# ============================================
# personalize
# ============================================

async def test_unknown_user_gets_cached_default_bundle(engine, registry):
    response = await engine.personalize(PersonalizationContext(user_id="ghost", session_id="s1"))

    assert response.confidence == 0.3
    assert [c.id for c in response.personalized_content] == ["welcome_default"]
    assert response.messaging.tone == Tone.FRIENDLY
    assert response.ui_personalization.theme.mood == "romantic"
    assert registry.get("s1").personalization is response


async def test_default_bundle_is_recomputed_once_profile_exists(engine, profile_store):
    context = PersonalizationContext(user_id="late", session_id="s1")
    await engine.personalize(context)

    await profile_store.save_profile(UserProfile(user_id="late", personality=PersonalityTraits(luxury=9)))
    response = await engine.personalize(context)

    assert response.ui_personalization.theme.mood == "luxury"


async def test_zero_profile_hits_confidence_floor(engine, profile_store):
    await profile_store.save_profile(UserProfile(user_id="u0"))

    response = await engine.personalize(PersonalizationContext(user_id="u0", session_id="s0"))

    assert response.confidence == 0.3


async def test_luxury_high_intent_bundle(engine, luxury_user):
    context = PersonalizationContext(
        user_id=luxury_user, session_id="s-lux", time_on_page=120, current_time=SUMMER_EVENING
    )

    response = await engine.personalize(context)

    assert [c.id for c in response.personalized_content] == ["booking_urgency", "luxury_hero"]
    assert response.ui_personalization.theme.mood == "luxury"
    assert response.ui_personalization.layout.package_display_style == "grid"
    assert response.ui_personalization.layout.information_density == "detailed"
    assert response.ui_personalization.layout.navigation_style == "advanced"
    assert response.messaging.tone == Tone.PROFESSIONAL
    assert response.messaging.urgency_level == UrgencyLevel.MEDIUM
    assert response.messaging.greeting.startswith("Good evening Ayşe")
    assert [s.type for s in response.urgency_signals] == [
        UrgencySignalType.BOOKING_WINDOW,
        UrgencySignalType.SEASONAL_TREND,
    ]
    assert [a.priority for a in response.next_best_actions] == [10, 8]
    assert response.next_best_actions[0].estimated_value == pytest.approx(8000)
    assert response.confidence == pytest.approx(0.5893, abs=1e-4)
    assert "High urgency signal detected" in response.reasoning_chain


async def test_recommended_packages_are_ranked_and_unique(engine, luxury_user):
    context = PersonalizationContext(user_id=luxury_user, session_id="s-lux", current_time=SUMMER_EVENING)

    packages = (await engine.personalize(context)).recommended_packages

    assert 0 < len(packages) <= 6
    assert len({p.id for p in packages}) == len(packages)
    assert packages[0].id == "pkg-maldives-overwater"


async def test_budget_user_on_mobile(engine, budget_user):
    context = PersonalizationContext(
        user_id=budget_user,
        session_id="s-budget",
        device_info=DeviceInfo(type=DeviceType.MOBILE),
        current_time=SPRING_MORNING,
    )

    response = await engine.personalize(context)
    ui = response.ui_personalization

    assert [c.id for c in response.personalized_content] == ["value_packages", "social_testimonial"]
    assert ui.theme.mood == "budget"
    assert ui.layout.package_display_style == "carousel"
    assert ui.animations.speed == "fast"
    assert ui.features.show_price_first and ui.features.highlight_discounts
    assert ui.features.show_social_proof
    assert response.messaging.tone == Tone.CARING
    assert response.messaging.greeting.startswith("Good morning there")
    assert [s.type for s in response.urgency_signals] == [UrgencySignalType.PRICE_INCREASE]
    assert response.urgency_signals[0].expires_at == SPRING_MORNING + timedelta(days=7)
    assert [a.priority for a in response.next_best_actions] == [6]


async def test_profile_failure_falls_back_to_default(registry, package_store):
    engine = PersonalizationEngine(registry, profile_store=BrokenProfiles(), package_store=package_store)

    response = await engine.personalize(PersonalizationContext(user_id="u1", session_id="s1"))

    assert response.confidence == 0.3
    assert response.personalized_content[0].id == "welcome_default"


# ============================================
# record_action
# ============================================

async def test_action_without_cached_bundle_is_only_buffered(engine, registry):
    result = await engine.record_action("s1", UserAction(type=ActionType.PACKAGE_VIEW))

    assert result is None
    assert len(registry.get("s1").actions) == 1


async def test_significant_action_recomputes(engine):
    await engine.personalize(PersonalizationContext(user_id="u1", session_id="s1"))

    result = await engine.record_action("s1", UserAction(type=ActionType.SEARCH, target="/search"))

    assert result is not None
    assert result.user_id == "u1"
    assert engine.get_cached("s1") is result


async def test_every_tenth_action_recomputes(engine):
    await engine.personalize(PersonalizationContext(user_id="u1", session_id="s1"))

    results = [await engine.record_action("s1", UserAction(type=ActionType.CLICK)) for _ in range(10)]

    assert results[:9] == [None] * 9
    assert results[9] is not None


async def test_stale_buffer_recomputes(engine):
    await engine.personalize(PersonalizationContext(user_id="u1", session_id="s1"))
    old = UserAction(type=ActionType.SCROLL, timestamp=utcnow() - timedelta(minutes=10))

    assert await engine.record_action("s1", old) is not None


async def test_action_metadata_user_id_is_used(engine):
    await engine.personalize(PersonalizationContext(user_id="u1", session_id="s1"))

    result = await engine.record_action(
        "s1", UserAction(type=ActionType.BOOKING_START, metadata={"user_id": "u2"})
    )

    assert result.user_id == "u2"


# ============================================
# cleanup
# ============================================

async def test_cleanup_evicts_expired_bundles(engine, registry):
    await engine.personalize(PersonalizationContext(user_id="u1", session_id="s1"))

    assert engine.cleanup_expired(now=utcnow() + timedelta(hours=2)) == 1
    assert "s1" not in registry


async def test_cleanup_keeps_fresh_bundles(engine):
    await engine.personalize(PersonalizationContext(user_id="u1", session_id="s1"))

    assert engine.cleanup_expired() == 0
    assert engine.get_cached("s1") is not None


async def test_cleanup_evicts_orphan_action_buffers(engine, registry):
    await engine.record_action("s2", UserAction(type=ActionType.CLICK))

    assert engine.cleanup_expired(now=utcnow() + timedelta(hours=2)) == 1
    assert "s2" not in registry


def test_cleanup_drops_idle_chat_sessions(engine, registry, make_message):
    ContextManager(registry).update_context("s-old", [make_message("user", "Merhaba")])

    assert engine.cleanup_expired(now=utcnow() + timedelta(days=30)) == 1
    assert len(registry) == 0


def test_cleanup_keeps_active_chat_sessions(engine, registry, make_message):
    ContextManager(registry).update_context("s-live", [make_message("user", "Merhaba")])

    assert engine.cleanup_expired() == 0
    assert [state.session_id for state in registry] == ["s-live"]


async def test_cleanup_clears_stale_bundle_but_keeps_live_context(engine, registry, make_message):
    await engine.personalize(PersonalizationContext(user_id="u1", session_id="s1"))
    state = registry.get("s1")
    state.personalization = state.personalization.model_copy(
        update={"generated_at": utcnow() - timedelta(days=1)}
    )
    ContextManager(registry).update_context("s1", [make_message("user", "Bali")])

    assert engine.cleanup_expired() == 1
    assert engine.get_cached("s1") is None
    assert registry.get("s1").context is not None


async def test_cleanup_loop_starts_and_stops(engine):
    engine.start()
    assert engine._cleanup_task is not None

    await engine.stop()
    assert engine._cleanup_task is None
