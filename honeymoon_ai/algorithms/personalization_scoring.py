"""
Personalization Scoring
Behavior analysis, alignment sub-scores, confidence and package fit

Alignment sub-scores (each 0.0-1.0):
1. Personality - how clearly the trait profile is defined
2. Behavior - session engagement level / 100
3. Prediction - booking model confidence
4. Context - time-of-day and weekend bonus over a 0.5 base
5. Temporal - 1.0 when the current season is a preferred season, else 0.5

Confidence (0.3-1.0):
- Profile completeness (40%)
- Behavioral engagement (30%)
- Time on page, capped at 3 minutes (20%)
- Historical sessions, capped at 5 (10%)
"""

from datetime import datetime
from typing import List, NamedTuple, Optional, Sequence
from loguru import logger

from ..schemas.ai_schemas import (
    ActionType,
    DecisionSpeed,
    HoneymoonPackage,
    PackageCategory,
    PersonalityTraits,
    PersonalizationContext,
    PredictionBundle,
    ResearchBehavior,
    UserAction,
    UserProfile,
)

CONFIDENCE_FLOOR = 0.3

SEASONS = {
    "spring": (3, 4, 5),
    "summer": (6, 7, 8),
    "autumn": (9, 10, 11),
    "winter": (12, 1, 2),
}

# Which personality trait drives interest in each package category
CATEGORY_TRAITS = {
    PackageCategory.LUXURY: "luxury",
    PackageCategory.ADVENTURE: "adventurous",
    PackageCategory.ROMANTIC: "romantic",
    PackageCategory.CULTURAL: "cultural",
    PackageCategory.BEACH: "nature_lover",
    PackageCategory.CITY: "social",
}

RESEARCH_ACTIONS = {ActionType.SEARCH, ActionType.PACKAGE_VIEW, ActionType.SCROLL}


# ============================================
# Behavior Analysis
# ============================================

class BehaviorAnalysis(NamedTuple):
    """Summary of a session's buffered actions"""
    session_duration: float
    action_count: int
    action_types: List[str]
    engagement_level: float       # 0-100
    intent_signals: List[str]
    decision_speed: DecisionSpeed
    research_behavior: ResearchBehavior


def calculate_engagement_level(actions: Sequence[UserAction], time_on_page: float) -> float:
    """
    Engagement on a 0-100 scale

    - Time on page: up to 30 points at 5+ minutes
    - Action diversity: 10 points per distinct action type
    - Action frequency: up to 40 points at 10+ actions
    """
    score = min(time_on_page / 300, 1) * 30
    score += len({a.type for a in actions}) * 10
    score += min(len(actions) / 10, 1) * 40
    return round(min(100.0, score), 1)


def detect_intent_signals(actions: Sequence[UserAction]) -> List[str]:
    package_views = sum(1 for a in actions if a.type == ActionType.PACKAGE_VIEW)
    searches = sum(1 for a in actions if a.type == ActionType.SEARCH)
    clicks = [a for a in actions if a.type == ActionType.CLICK]
    price_clicks = sum(1 for a in clicks if "price" in a.target.lower())

    signals = []
    if package_views > 3:
        signals.append("high_package_interest")
    if searches > 2:
        signals.append("active_research")
    if len(clicks) > 5:
        signals.append("high_engagement")
    if price_clicks > 2:
        signals.append("price_focused")
    return signals


def average_action_gap(actions: Sequence[UserAction]) -> Optional[float]:
    """Mean seconds between consecutive actions, None with fewer than two"""
    if len(actions) < 2:
        return None
    total = sum(
        (actions[i].timestamp - actions[i - 1].timestamp).total_seconds()
        for i in range(1, len(actions))
    )
    return total / (len(actions) - 1)


def calculate_decision_speed(actions: Sequence[UserAction]) -> DecisionSpeed:
    gap = average_action_gap(actions)
    if gap is None:
        return DecisionSpeed.MODERATE
    if gap < 5:
        return DecisionSpeed.IMPULSIVE
    if gap < 15:
        return DecisionSpeed.QUICK
    if gap < 60:
        return DecisionSpeed.MODERATE
    return DecisionSpeed.DELIBERATE


def calculate_research_behavior(actions: Sequence[UserAction]) -> ResearchBehavior:
    research = sum(1 for a in actions if a.type in RESEARCH_ACTIONS)
    if research < 3:
        return ResearchBehavior.MINIMAL
    if research < 8:
        return ResearchBehavior.MODERATE
    if research < 15:
        return ResearchBehavior.EXTENSIVE
    return ResearchBehavior.OBSESSIVE


def analyze_behavior(actions: Sequence[UserAction], context: PersonalizationContext) -> BehaviorAnalysis:
    """Analyze buffered actions for one session"""
    analysis = BehaviorAnalysis(
        session_duration=context.time_on_page,
        action_count=len(actions),
        action_types=[a.type.value for a in actions],
        engagement_level=calculate_engagement_level(actions, context.time_on_page),
        intent_signals=detect_intent_signals(actions),
        decision_speed=calculate_decision_speed(actions),
        research_behavior=calculate_research_behavior(actions),
    )
    logger.debug(
        f"Behavior for {context.session_id}: engagement={analysis.engagement_level}, "
        f"speed={analysis.decision_speed.value}, research={analysis.research_behavior.value}"
    )
    return analysis


# ============================================
# Alignment Sub-scores
# ============================================

class ScoringFactors(NamedTuple):
    personality: float
    behavior: float
    prediction: float
    context: float
    temporal: float

    @property
    def overall(self) -> float:
        return round(sum(self) / len(self), 4)

    def __repr__(self) -> str:
        return (
            f"ScoringFactors(overall={self.overall:.2f}, personality={self.personality:.2f}, "
            f"behavior={self.behavior:.2f}, prediction={self.prediction:.2f}, "
            f"context={self.context:.2f}, temporal={self.temporal:.2f})"
        )


def season_of(moment: datetime) -> str:
    for season, months in SEASONS.items():
        if moment.month in months:
            return season
    return "winter"


def personality_alignment(traits: PersonalityTraits) -> float:
    """Clarity of the trait profile: mean level plus spread"""
    values = list(traits.model_dump().values())
    mean = sum(values) / len(values)
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    return min(1.0, mean / 10 + variance / 25)


def context_alignment(moment: datetime) -> float:
    score = 0.5
    if 19 <= moment.hour <= 22:
        score += 0.2
    if moment.weekday() >= 5:
        score += 0.1
    return min(1.0, score)


def temporal_alignment(profile: UserProfile, moment: datetime) -> float:
    preferred = {s.lower() for s in profile.travel_preferences.season_preference}
    return 1.0 if season_of(moment) in preferred else 0.5


def calculate_scoring_factors(
    profile: UserProfile,
    predictions: PredictionBundle,
    behavior: BehaviorAnalysis,
    context: PersonalizationContext
) -> ScoringFactors:
    return ScoringFactors(
        personality=round(personality_alignment(profile.personality), 4),
        behavior=round(behavior.engagement_level / 100, 4),
        prediction=round(predictions.booking.confidence, 4),
        context=context_alignment(context.current_time),
        temporal=temporal_alignment(profile, context.current_time),
    )


def calculate_confidence(
    profile: UserProfile,
    behavior: BehaviorAnalysis,
    context: PersonalizationContext
) -> float:
    """
    Overall personalization confidence

    Args:
        profile: User profile (completeness and session history)
        behavior: Behavior analysis for this session
        context: Request context (time on page)

    Returns:
        float: Confidence clamped to 0.3-1.0
    """
    confidence = profile.analytics.profile_completeness / 100 * 0.4
    confidence += behavior.engagement_level / 100 * 0.3
    confidence += min(1.0, context.time_on_page / 180) * 0.2
    confidence += min(1.0, profile.behavior.sessions_count / 5) * 0.1
    return round(max(CONFIDENCE_FLOOR, min(1.0, confidence)), 4)


def top_trait(traits: PersonalityTraits) -> str:
    """Name of the strongest trait; declaration order breaks ties"""
    values = traits.model_dump()
    return max(values, key=lambda name: values[name])


# ============================================
# Package Fit
# ============================================

class PackageFit(NamedTuple):
    """
    Breakdown of how well a package suits a user
    """
    package: HoneymoonPackage
    trait_score: float        # 0.0-0.35
    budget_score: float       # 0.0-0.25
    destination_score: float  # 0.0-0.15
    season_score: float       # 0.0-0.10
    rating_score: float       # 0.0-0.15
    total: float              # 0.0-1.0


def _budget_fit(price: float, profile: UserProfile, predictions: PredictionBundle) -> float:
    budget = predictions.booking.predicted_budget
    if budget.max <= 0:
        budget = profile.travel_preferences.budget_range
    if budget.max <= 0:
        return 0.5
    if price <= budget.max:
        return 1.0
    # Linear decay to zero at 50% over budget
    overshoot = (price - budget.max) / budget.max
    return max(0.0, 1.0 - overshoot * 2)


def score_package(
    package: HoneymoonPackage,
    profile: UserProfile,
    predictions: PredictionBundle,
    moment: datetime
) -> PackageFit:
    trait_name = CATEGORY_TRAITS.get(package.category, "romantic")
    trait_score = getattr(profile.personality, trait_name) / 10 * 0.35

    budget_score = _budget_fit(package.price, profile, predictions) * 0.25

    wanted = {
        d.lower() for d in (
            predictions.booking.predicted_destinations
            + profile.travel_preferences.preferred_destinations
        )
    }
    place = f"{package.location} {package.country}".lower()
    destination_score = 0.15 if any(d and d in place for d in wanted) else 0.0

    seasons = {s.lower() for s in package.seasonality}
    season_score = 0.10 if not seasons or season_of(moment) in seasons else 0.0

    rating_score = min(package.rating, 5.0) / 5 * 0.15

    total = trait_score + budget_score + destination_score + season_score + rating_score
    return PackageFit(
        package=package,
        trait_score=round(trait_score, 4),
        budget_score=round(budget_score, 4),
        destination_score=destination_score,
        season_score=season_score,
        rating_score=round(rating_score, 4),
        total=round(min(1.0, total), 4),
    )


def rank_packages(
    packages: Sequence[HoneymoonPackage],
    profile: UserProfile,
    predictions: PredictionBundle,
    moment: datetime,
    limit: int = 6
) -> List[PackageFit]:
    """Score, de-duplicate and rank candidate packages, best first"""
    seen = set()
    fits = []
    for package in packages:
        if package.id in seen or not package.availability:
            continue
        seen.add(package.id)
        fits.append(score_package(package, profile, predictions, moment))

    fits.sort(key=lambda f: f.total, reverse=True)
    return fits[:limit]
