"""
Personalization Engine
Turns a user profile, predictions and the session's live behavior into a
scored personalization bundle:

1. Recommended packages (ranked by package fit)
2. Content blocks (priority ordered)
3. UI theme, layout, features and animations
4. Messaging copy (greeting, tone, urgency, offers, next steps)
5. Urgency signals and next-best-actions
6. Confidence and a human-readable reasoning chain

The engine never raises to its caller: unknown users and internal errors
both produce the default bundle.
"""

import asyncio
from datetime import datetime, timedelta
from typing import List, Optional

from loguru import logger

from ..algorithms.personalization_scoring import (
    CATEGORY_TRAITS,
    CONFIDENCE_FLOOR,
    BehaviorAnalysis,
    analyze_behavior,
    calculate_confidence,
    calculate_scoring_factors,
    rank_packages,
    top_trait,
)
from ..config import settings
from ..interfaces.package_store import PackageStore, get_package_store
from ..interfaces.profile_store import ProfileStore, get_profile_store
from ..interfaces.session_registry import SessionRegistry, SessionState, session_registry
from ..schemas.ai_schemas import (
    ActionType,
    ContentType,
    DecisionSpeed,
    DeviceType,
    HoneymoonPackage,
    NextBestAction,
    PersonalizationContext,
    PersonalizationResponse,
    PersonalizedContent,
    PersonalizedMessaging,
    PredictionBundle,
    ResearchBehavior,
    RiskLevel,
    Tone,
    UIAnimations,
    UIFeatures,
    UILayout,
    UIPersonalization,
    UITheme,
    UrgencyLevel,
    UrgencySignal,
    UrgencySignalType,
    UserAction,
    UserProfile,
    utcnow,
)
from ..utils.ai_helpers import first_name, format_price

SIGNIFICANT_ACTIONS = {ActionType.PACKAGE_VIEW, ActionType.SEARCH, ActionType.BOOKING_START}
SUMMER_MONTHS = (6, 7, 8)
MAX_RECOMMENDED_PACKAGES = 6

TRAIT_CATEGORIES = {trait: category for category, trait in CATEGORY_TRAITS.items()}


class PersonalizationEngine:
    """
    Real-time personalization over per-session state

    Args:
        registry: Owner of cached responses and action buffers
        profile_store: Profile / prediction provider
        package_store: Package catalog for recommendations
    """

    def __init__(
        self,
        registry: SessionRegistry,
        profile_store: Optional[ProfileStore] = None,
        package_store: Optional[PackageStore] = None,
        ttl_seconds: Optional[int] = None,
        cleanup_interval: Optional[int] = None
    ):
        self.registry = registry
        self._profile_store = profile_store
        self._package_store = package_store
        self.ttl = timedelta(seconds=ttl_seconds or settings.PERSONALIZATION_TTL_SECONDS)
        self.cleanup_interval = cleanup_interval or settings.CLEANUP_INTERVAL_SECONDS
        self.recompute_every = settings.ACTION_RECOMPUTE_EVERY
        self.recompute_after = timedelta(seconds=settings.ACTION_RECOMPUTE_AFTER_SECONDS)
        self._cleanup_task: Optional[asyncio.Task] = None

    @property
    def profile_store(self) -> ProfileStore:
        if self._profile_store is None:
            self._profile_store = get_profile_store()
        return self._profile_store

    @property
    def package_store(self) -> PackageStore:
        if self._package_store is None:
            self._package_store = get_package_store()
        return self._package_store

    # ============================================
    # Public API
    # ============================================

    async def personalize(self, context: PersonalizationContext) -> PersonalizationResponse:
        """
        Build (and cache) a personalization bundle for a session

        Args:
            context: Current request context

        Returns:
            PersonalizationResponse: Never raises; falls back to the default bundle
        """
        state = self.registry.get_or_create(context.session_id)
        async with state.lock:
            try:
                response = await self._build(context, state)
            except Exception as e:
                logger.error(f"Personalization failed for user {context.user_id}: {e}")
                response = default_personalization(context)

            state.personalization = response
            return response

    async def record_action(self, session_id: str, action: UserAction) -> Optional[PersonalizationResponse]:
        """
        Buffer a user action and recompute when it matters

        Recomputes when the action is significant, the buffer length hits a
        multiple of the recompute modulus, or the oldest buffered action is
        older than the recompute age, and a cached response exists.

        Returns:
            Updated PersonalizationResponse, or None when nothing was recomputed
        """
        try:
            state = self.registry.get_or_create(session_id)
            state.actions.append(action)

            if not self.should_recompute(state, action):
                return None

            cached = state.personalization
            if cached is None:
                return None

            context = self._updated_context(state, action, cached)
            logger.info(f"Recomputing personalization for {session_id} after {action.type.value}")
            return await self.personalize(context)
        except Exception as e:
            logger.error(f"Error updating personalization for {session_id}: {e}")
            return None

    def should_recompute(self, state: SessionState, action: UserAction, now: Optional[datetime] = None) -> bool:
        if action.type in SIGNIFICANT_ACTIONS:
            return True
        if state.actions and len(state.actions) % self.recompute_every == 0:
            return True
        now = now or utcnow()
        return bool(state.actions) and now - state.actions[0].timestamp > self.recompute_after

    def get_cached(self, session_id: str) -> Optional[PersonalizationResponse]:
        state = self.registry.get(session_id)
        return state.personalization if state else None

    def cleanup_expired(self, now: Optional[datetime] = None) -> int:
        """
        Evict session state older than the TTL

        Idle sessions are dropped entirely; active sessions only lose a stale
        personalization or an orphaned action buffer.

        Returns:
            Number of sessions evicted
        """
        now = now or utcnow()
        cutoff = now - self.ttl
        evicted = 0

        for state in self.registry:
            if state.last_activity < cutoff:
                self.registry.drop(state.session_id)
                evicted += 1
                continue

            expired = False
            if state.personalization is not None:
                expired = state.personalization.generated_at < cutoff
            elif state.actions:
                expired = state.actions[-1].timestamp < cutoff

            if expired:
                state.personalization = None
                state.actions = []
                evicted += 1
            if state.is_empty():
                self.registry.drop(state.session_id)

        if evicted:
            logger.info(f"Evicted {evicted} expired sessions, {len(self.registry)} remaining")
        return evicted

    async def run_cleanup_loop(self):
        """Periodically evict expired sessions until cancelled"""
        while True:
            await asyncio.sleep(self.cleanup_interval)
            self.cleanup_expired()

    def start(self):
        if self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(self.run_cleanup_loop())
            logger.info(f"Personalization cleanup every {self.cleanup_interval}s")

    async def stop(self):
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None

    # ============================================
    # Bundle Generation
    # ============================================

    async def _build(self, context: PersonalizationContext, state: SessionState) -> PersonalizationResponse:
        profile, predictions = await asyncio.gather(
            self.profile_store.get_profile(context.user_id),
            self.profile_store.get_predictions(context.user_id),
        )

        if profile is None:
            logger.info(f"No profile for user {context.user_id}, using default personalization")
            return default_personalization(context)

        actions = state.actions or context.previous_actions
        behavior = analyze_behavior(actions, context)
        factors = calculate_scoring_factors(profile, predictions, behavior, context)
        logger.debug(f"Scoring factors for {context.user_id}: {factors!r}")

        response = PersonalizationResponse(
            session_id=context.session_id,
            user_id=context.user_id,
            recommended_packages=self._recommend_packages(profile, predictions, context),
            personalized_content=self._content(profile, predictions),
            ui_personalization=self._ui(profile, context, behavior),
            messaging=self._messaging(profile, predictions, context),
            urgency_signals=self._urgency_signals(profile, predictions, context),
            next_best_actions=self._next_best_actions(profile, predictions),
            confidence=calculate_confidence(profile, behavior, context),
            reasoning_chain=self._reasoning_chain(profile, predictions, behavior, context),
        )
        logger.info(
            f"Personalized session {context.session_id}: confidence={response.confidence}, "
            f"packages={len(response.recommended_packages)}"
        )
        return response

    def _recommend_packages(
        self,
        profile: UserProfile,
        predictions: PredictionBundle,
        context: PersonalizationContext
    ) -> List[HoneymoonPackage]:
        try:
            candidates = list(self.package_store.query_featured(20))
            destinations = (
                predictions.booking.predicted_destinations
                + profile.travel_preferences.preferred_destinations
            )
            for destination in destinations:
                candidates.extend(self.package_store.query_by_location(destination))

            category = TRAIT_CATEGORIES.get(top_trait(profile.personality))
            if category is not None:
                candidates.extend(self.package_store.query_by_category(category.value))
        except Exception as e:
            logger.error(f"Package lookup failed for personalization: {e}")
            return []

        fits = rank_packages(
            candidates, profile, predictions, context.current_time, limit=MAX_RECOMMENDED_PACKAGES
        )
        return [fit.package for fit in fits]

    def _content(self, profile: UserProfile, predictions: PredictionBundle) -> List[PersonalizedContent]:
        traits = profile.personality
        content = []

        if traits.luxury > 7:
            content.append(PersonalizedContent(
                id="luxury_hero",
                type=ContentType.HERO_BANNER,
                title="Luxury Honeymoon Experiences",
                content="Premium destinations and VIP service picked for you",
                image_url="/images/luxury-hero.jpg",
                cta_text="Explore Luxury Packages",
                cta_url="/packages?category=luxury",
                priority=9,
                personalized_reason="High luxury preference score",
                target_emotions=["exclusivity", "sophistication", "prestige"],
            ))

        if traits.adventurous > 7:
            content.append(PersonalizedContent(
                id="adventure_highlight",
                type=ContentType.PACKAGE_HIGHLIGHT,
                title="An Adventurous Honeymoon",
                content="Unforgettable experiences and thrilling activities",
                image_url="/images/adventure-highlight.jpg",
                cta_text="Let the Adventure Begin",
                cta_url="/packages?category=adventure",
                priority=8,
                personalized_reason="High adventure score",
                target_emotions=["excitement", "thrill", "discovery"],
            ))

        if predictions.booking.urgency_level == UrgencyLevel.HIGH:
            content.append(PersonalizedContent(
                id="booking_urgency",
                type=ContentType.PROMOTION,
                title="Last Chance!",
                content="The perfect time to book your dream honeymoon, with special discounts",
                image_url="/images/urgency-promo.jpg",
                cta_text="Book Now",
                cta_url="/booking",
                priority=10,
                personalized_reason="High booking likelihood",
                target_emotions=["urgency", "excitement", "decisiveness"],
            ))

        if traits.budget_conscious > 6:
            content.append(PersonalizedContent(
                id="value_packages",
                type=ContentType.PACKAGE_HIGHLIGHT,
                title="Best Value Offers",
                content="Premium experiences that fit your budget",
                image_url="/images/value-packages.jpg",
                cta_text="See Value Offers",
                cta_url="/packages?sort=value",
                priority=7,
                personalized_reason="Budget-conscious approach",
                target_emotions=["smartness", "satisfaction", "value"],
            ))

        if traits.social > 6:
            content.append(PersonalizedContent(
                id="social_testimonial",
                type=ContentType.TESTIMONIAL,
                title="Couple Stories",
                content='"We had the honeymoon of our dreams with AI LOVVE" - Ayşe & Mehmet',
                image_url="/images/testimonial.jpg",
                cta_text="More Stories",
                cta_url="/testimonials",
                priority=6,
                personalized_reason="Social interaction preference",
                target_emotions=["trust", "belonging", "inspiration"],
            ))

        return sorted(content, key=lambda c: c.priority, reverse=True)

    def _ui(
        self,
        profile: UserProfile,
        context: PersonalizationContext,
        behavior: BehaviorAnalysis
    ) -> UIPersonalization:
        traits = profile.personality

        if traits.luxury > 7:
            theme = UITheme(primary_color="#8B5CF6", accent_color="#F59E0B", mood="luxury")
        elif traits.adventurous > 7:
            theme = UITheme(primary_color="#F97316", accent_color="#10B981", mood="adventure")
        elif traits.romantic > 8:
            theme = UITheme(primary_color="#EC4899", accent_color="#F472B6", mood="romantic")
        elif traits.cultural > 7:
            theme = UITheme(primary_color="#3B82F6", accent_color="#6366F1", mood="cultural")
        else:
            theme = UITheme(primary_color="#10B981", accent_color="#059669", mood="budget")

        is_mobile = context.device_info.type == DeviceType.MOBILE

        layout = UILayout(
            package_display_style="carousel" if is_mobile else "grid",
            information_density="detailed" if profile.behavior.average_session_duration > 300 else "standard",
            navigation_style="advanced" if profile.analytics.engagement_score > 70 else "simple",
        )

        features = UIFeatures(
            show_price_first=traits.budget_conscious > 6,
            highlight_discounts=traits.budget_conscious > 6,
            show_social_proof=traits.social > 6,
            enable_quick_booking=behavior.decision_speed == DecisionSpeed.IMPULSIVE,
            show_comparison_tools=behavior.research_behavior == ResearchBehavior.EXTENSIVE,
        )

        animations = UIAnimations(
            speed="fast" if is_mobile else "normal",
            effects="dynamic" if traits.adventurous > 7 else "standard",
        )

        return UIPersonalization(theme=theme, layout=layout, features=features, animations=animations)

    def _messaging(
        self,
        profile: UserProfile,
        predictions: PredictionBundle,
        context: PersonalizationContext
    ) -> PersonalizedMessaging:
        traits = profile.personality

        if traits.luxury > 7:
            tone = Tone.PROFESSIONAL
        elif traits.social > 7:
            tone = Tone.FRIENDLY
        elif traits.adventurous > 7:
            tone = Tone.ENTHUSIASTIC
        else:
            tone = Tone.CARING

        booking = predictions.booking
        if booking.urgency_level == UrgencyLevel.CRITICAL:
            urgency = UrgencyLevel.HIGH
        elif booking.urgency_level == UrgencyLevel.HIGH:
            urgency = UrgencyLevel.MEDIUM
        elif booking.booking_probability > 0.6:
            urgency = UrgencyLevel.LOW
        else:
            urgency = UrgencyLevel.NONE

        return PersonalizedMessaging(
            greeting=personalized_greeting(profile, context.current_time),
            tone=tone,
            urgency_level=urgency,
            offers=self._offers(profile, predictions),
            recommendations=self._recommendations(profile, predictions),
            next_steps=next_steps(booking.booking_probability),
        )

    def _offers(self, profile: UserProfile, predictions: PredictionBundle) -> List[str]:
        offers = []
        if predictions.booking.urgency_level == UrgencyLevel.HIGH:
            offers.append("15% off when you book today")
        if profile.personality.budget_conscious > 6:
            offers.append("Flexible payment in 12 instalments")
        if profile.personality.luxury > 7:
            offers.append("VIP service and free transfers")
        if profile.analytics.engagement_score > 80:
            offers.append("Loyal customer discount")
        return offers

    def _recommendations(self, profile: UserProfile, predictions: PredictionBundle) -> List[str]:
        booking = predictions.booking
        recommendations = []

        if booking.predicted_destinations:
            recommendations.append(
                f"Best matching destinations: {', '.join(booking.predicted_destinations[:3])}"
            )
        budget = booking.predicted_budget
        if budget.max > 0:
            recommendations.append(
                f"Suggested budget: {format_price(budget.min, budget.currency)} - "
                f"{format_price(budget.max, budget.currency)}"
            )
        if profile.personality.romantic > 7:
            recommendations.append("Romantic extras: couples massage, sunset cruise, private dinner")
        if profile.personality.adventurous > 6:
            recommendations.append("Adventure extras: paragliding, diving, safari tours")
        return recommendations

    def _urgency_signals(
        self,
        profile: UserProfile,
        predictions: PredictionBundle,
        context: PersonalizationContext
    ) -> List[UrgencySignal]:
        now = context.current_time
        signals = []

        if predictions.booking.booking_probability > 0.7:
            signals.append(UrgencySignal(
                type=UrgencySignalType.BOOKING_WINDOW,
                message="The most popular dates are filling up fast!",
                action_required="Book now",
                urgency_level=8,
                expires_at=now + timedelta(hours=24),
            ))

        if now.month in SUMMER_MONTHS:
            signals.append(UrgencySignal(
                type=UrgencySignalType.SEASONAL_TREND,
                message="Early booking deals for the summer season!",
                action_required="Browse summer packages",
                urgency_level=6,
            ))

        budget_max = profile.travel_preferences.budget_range.max
        if budget_max > 0 and predictions.pricing.optimal_price_range.min > budget_max * 0.9:
            signals.append(UrgencySignal(
                type=UrgencySignalType.PRICE_INCREASE,
                message="Prices are expected to rise",
                action_required="Lock in today's prices",
                urgency_level=7,
                expires_at=now + timedelta(days=7),
            ))

        return sorted(signals, key=lambda s: s.urgency_level, reverse=True)

    def _next_best_actions(self, profile: UserProfile, predictions: PredictionBundle) -> List[NextBestAction]:
        actions = []

        if predictions.booking.booking_probability > 0.8:
            actions.append(NextBestAction(
                action="Schedule a personal consultant call",
                reason="High booking probability",
                priority=10,
                expected_outcome="90% booking completion",
                estimated_value=predictions.booking.predicted_budget.max * 0.8,
                time_to_execute_minutes=15,
            ))

        if predictions.churn.risk_level == RiskLevel.HIGH:
            actions.append(NextBestAction(
                action="Start a win-back campaign",
                reason="High churn risk",
                priority=9,
                expected_outcome="70% reactivation",
                estimated_value=profile.analytics.lifetime_value * 0.6,
                time_to_execute_minutes=5,
            ))

        if profile.analytics.engagement_score < 50:
            actions.append(NextBestAction(
                action="Send an educational content series",
                reason="Low engagement score",
                priority=6,
                expected_outcome="40% engagement lift",
                estimated_value=200,
                time_to_execute_minutes=10,
            ))

        if profile.personality.luxury > 6 and predictions.pricing.premium_willingness > 0.7:
            actions.append(NextBestAction(
                action="Offer premium package upgrades",
                reason="High willingness to pay for premium",
                priority=8,
                expected_outcome="60% upsell success",
                estimated_value=15000,
                time_to_execute_minutes=3,
            ))

        return sorted(actions, key=lambda a: a.priority, reverse=True)

    def _reasoning_chain(
        self,
        profile: UserProfile,
        predictions: PredictionBundle,
        behavior: BehaviorAnalysis,
        context: PersonalizationContext
    ) -> List[str]:
        chain = [
            f"Analyzed user profile ({round(profile.analytics.profile_completeness)}% complete)",
            f"Reviewed behavior patterns ({behavior.engagement_level}/100 engagement)",
            f"Evaluated predictions ({round(predictions.booking.booking_probability * 100)}% booking probability)",
            f"Analyzed current session ({round(context.time_on_page / 60)} minutes)",
            f"Matched personality ({profile.analytics.user_segment} segment)",
        ]
        if predictions.booking.urgency_level == UrgencyLevel.HIGH:
            chain.append("High urgency signal detected")
        if predictions.churn.risk_level == RiskLevel.HIGH:
            chain.append("Suggested preventive actions for churn risk")
        return chain

    def _updated_context(
        self,
        state: SessionState,
        action: UserAction,
        cached: PersonalizationResponse
    ) -> PersonalizationContext:
        now = utcnow()
        first = state.actions[0].timestamp if state.actions else now
        return PersonalizationContext(
            user_id=str(action.metadata.get("user_id") or cached.user_id),
            session_id=state.session_id,
            current_page=action.target or "/",
            time_on_page=max(0.0, (now - first).total_seconds()),
            current_time=now,
            previous_actions=list(state.actions),
        )


# ============================================
# Copy helpers
# ============================================

def personalized_greeting(profile: UserProfile, moment: datetime) -> str:
    """Greeting keyed by hour of day and the dominant personality trait"""
    if moment.hour < 12:
        salutation = "Good morning"
    elif moment.hour < 18:
        salutation = "Good afternoon"
    else:
        salutation = "Good evening"

    name = first_name(profile.display_name)
    trait = top_trait(profile.personality)
    traits = profile.personality

    if trait == "luxury" and traits.luxury > 7:
        return f"{salutation} {name}, we have prepared exclusive luxury experiences for you"
    if trait == "adventurous" and traits.adventurous > 7:
        return f"{salutation} {name}! Adventurous honeymoon plans are waiting for you"
    if trait == "romantic" and traits.romantic > 8:
        return f"{salutation} {name}, ready to make your romantic honeymoon dreams come true?"
    return f"{salutation} {name}, let's plan your dream honeymoon together"


def next_steps(booking_probability: float) -> List[str]:
    if booking_probability > 0.7:
        return [
            "1. Pick your favourite packages",
            "2. Set your dates and details",
            "3. Complete your booking",
        ]
    if booking_probability > 0.4:
        return [
            "1. Browse more packages",
            "2. Ask our chat for help with any questions",
            "3. Book a free consultation",
        ]
    return [
        "1. Read our honeymoon guide",
        "2. Plan your budget",
        "3. Start researching destinations",
    ]


def default_personalization(context: PersonalizationContext) -> PersonalizationResponse:
    """Bundle used for unknown users and whenever personalization fails"""
    return PersonalizationResponse(
        session_id=context.session_id,
        user_id=context.user_id,
        recommended_packages=[],
        personalized_content=[PersonalizedContent(
            id="welcome_default",
            type=ContentType.HERO_BANNER,
            title="Welcome to Your Dream Honeymoon",
            content="Complete your profile analysis for tailored suggestions",
            cta_text="Start Profile Analysis",
            cta_url="/profile-analysis",
            priority=10,
            personalized_reason="New user experience",
            target_emotions=["welcome", "curiosity", "excitement"],
        )],
        ui_personalization=UIPersonalization(
            theme=UITheme(primary_color="#EC4899", accent_color="#F472B6", mood="romantic"),
            layout=UILayout(
                package_display_style="carousel",
                information_density="standard",
                navigation_style="simple",
            ),
            features=UIFeatures(show_social_proof=True),
            animations=UIAnimations(speed="normal", effects="standard"),
        ),
        messaging=PersonalizedMessaging(
            greeting="Welcome! Let's plan your dream honeymoon together",
            tone=Tone.FRIENDLY,
            urgency_level=UrgencyLevel.NONE,
            offers=["10% off for new members"],
            recommendations=["Complete the personality test", "Browse popular destinations"],
            next_steps=["1. Create your profile", "2. Explore packages", "3. Chat with our AI assistant"],
        ),
        urgency_signals=[],
        next_best_actions=[NextBestAction(
            action="Encourage profile completion",
            reason="Missing user profile",
            priority=8,
            expected_outcome="Better personalization",
            estimated_value=500,
            time_to_execute_minutes=10,
        )],
        confidence=CONFIDENCE_FLOOR,
        reasoning_chain=[
            "Not enough user data yet",
            "Applied default personalization",
            "Profile completion is recommended",
        ],
    )


# Global instance (lazy initialization)
_engine: Optional[PersonalizationEngine] = None


def get_personalization_engine() -> PersonalizationEngine:
    """Get or create the global personalization engine"""
    global _engine
    if _engine is None:
        _engine = PersonalizationEngine(session_registry)
    return _engine
