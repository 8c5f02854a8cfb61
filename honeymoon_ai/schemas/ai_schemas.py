# schemas/ai_schemas.py
"""
Pydantic v2 schemas for the Honeymoon AI Service
Covers chat messages, conversation context, packages, user profiles,
personalization bundles and the offline sync queue
"""

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from typing import Annotated, Optional, List, Dict, Any
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid4().hex


def _assume_utc(value: Any) -> Any:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# Naive timestamps from clients are treated as UTC
UTCDateTime = Annotated[datetime, BeforeValidator(_assume_utc)]


# ============================================
# Enums
# ============================================

class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ConversationPhase(str, Enum):
    DISCOVERY = "discovery"
    PLANNING = "planning"
    BOOKING = "booking"
    FOLLOW_UP = "follow_up"


class TravelStyle(str, Enum):
    LUXURY = "luxury"
    ADVENTURE = "adventure"
    ROMANTIC = "romantic"
    CULTURAL = "cultural"
    BEACH = "beach"


class PackageCategory(str, Enum):
    LUXURY = "luxury"
    ADVENTURE = "adventure"
    ROMANTIC = "romantic"
    CULTURAL = "cultural"
    BEACH = "beach"
    CITY = "city"


class ActionType(str, Enum):
    PAGE_VIEW = "page_view"
    PACKAGE_VIEW = "package_view"
    SEARCH = "search"
    MESSAGE = "message"
    CLICK = "click"
    SCROLL = "scroll"
    HOVER = "hover"
    BOOKING_START = "booking_start"


class DeviceType(str, Enum):
    MOBILE = "mobile"
    TABLET = "tablet"
    DESKTOP = "desktop"


class UrgencyLevel(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ContentType(str, Enum):
    HERO_BANNER = "hero_banner"
    PACKAGE_HIGHLIGHT = "package_highlight"
    PROMOTION = "promotion"
    TESTIMONIAL = "testimonial"


class Tone(str, Enum):
    PROFESSIONAL = "professional"
    FRIENDLY = "friendly"
    ENTHUSIASTIC = "enthusiastic"
    CARING = "caring"


class DecisionSpeed(str, Enum):
    IMPULSIVE = "impulsive"
    QUICK = "quick"
    MODERATE = "moderate"
    DELIBERATE = "deliberate"


class ResearchBehavior(str, Enum):
    MINIMAL = "minimal"
    MODERATE = "moderate"
    EXTENSIVE = "extensive"
    OBSESSIVE = "obsessive"


class UrgencySignalType(str, Enum):
    BOOKING_WINDOW = "booking_window"
    SEASONAL_TREND = "seasonal_trend"
    PRICE_INCREASE = "price_increase"
    LIMITED_AVAILABILITY = "limited_availability"


class SyncItemType(str, Enum):
    CHAT = "chat"
    MESSAGE = "message"
    SETTINGS = "settings"
    ANALYTICS = "analytics"


class SyncAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


# ============================================
# Messages & Chats
# ============================================

class Message(BaseModel):
    """A single chat message. Immutable once created."""
    model_config = ConfigDict(frozen=True)
    
    id: str = Field(default_factory=new_id)
    role: Role
    content: str
    timestamp: UTCDateTime = Field(default_factory=utcnow)


class MessageUpdate(BaseModel):
    """Published once per streamed fragment while an assistant reply is built"""
    message_id: str
    session_id: str
    delta: str = ""
    content: str = ""
    done: bool = False


class Chat(BaseModel):
    """A UI-level chat session derived from a raw session's messages"""
    id: str
    title: str
    messages: List[Message] = Field(default_factory=list)
    last_message_preview: str = ""
    session_id: str = ""


# ============================================
# Preferences & Conversation Context
# ============================================

class UserPreferences(BaseModel):
    """Preferences extracted from free-text chat history"""
    budget: Optional[str] = None
    destinations: List[str] = Field(default_factory=list)
    group_size: Optional[int] = None
    travel_style: Optional[TravelStyle] = None
    special_requests: List[str] = Field(default_factory=list)


class ConversationContext(BaseModel):
    """Derived per-session context, replaced wholesale on every update"""
    session_id: str
    user_preferences: UserPreferences = Field(default_factory=UserPreferences)
    session_summary: str = ""
    key_topics: List[str] = Field(default_factory=list)
    last_interaction_time: UTCDateTime = Field(default_factory=utcnow)
    conversation_phase: ConversationPhase = ConversationPhase.DISCOVERY


# ============================================
# Packages
# ============================================

class HoneymoonPackage(BaseModel):
    """A bookable honeymoon package from the catalog"""
    id: str
    title: str
    description: str = ""
    location: str
    country: str = ""
    duration: int = Field(7, description="Duration in days")
    price: float
    currency: str = "EUR"
    category: PackageCategory
    features: List[str] = Field(default_factory=list)
    inclusions: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    rating: float = 0.0
    reviews: int = 0
    availability: bool = True
    seasonality: List[str] = Field(default_factory=list)  # ["spring", "summer"]
    featured: bool = False


# ============================================
# Actions & Personalization Context
# ============================================

class UserAction(BaseModel):
    """A single UI interaction event"""
    type: ActionType
    target: str = ""
    timestamp: UTCDateTime = Field(default_factory=utcnow)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    duration: Optional[float] = None  # seconds
    value: Optional[Any] = None


class DeviceInfo(BaseModel):
    type: DeviceType = DeviceType.DESKTOP
    os: str = "unknown"
    browser: str = "unknown"


class LocationInfo(BaseModel):
    country: str = "TR"
    city: str = "Istanbul"
    timezone: str = "Europe/Istanbul"


class PersonalizationContext(BaseModel):
    """Everything the engine needs to know about the current request"""
    user_id: str
    session_id: str
    current_page: str = "/"
    time_on_page: float = 0.0  # seconds
    device_info: DeviceInfo = Field(default_factory=DeviceInfo)
    location: LocationInfo = Field(default_factory=LocationInfo)
    current_time: UTCDateTime = Field(default_factory=utcnow)
    referral_source: Optional[str] = None
    previous_actions: List[UserAction] = Field(default_factory=list)


# ============================================
# Profile & Predictions
# ============================================

class PersonalityTraits(BaseModel):
    """Trait scores on a 0-10 scale"""
    adventurous: float = Field(5.0, ge=0, le=10)
    luxury: float = Field(5.0, ge=0, le=10)
    cultural: float = Field(5.0, ge=0, le=10)
    romantic: float = Field(5.0, ge=0, le=10)
    active: float = Field(5.0, ge=0, le=10)
    social: float = Field(5.0, ge=0, le=10)
    budget_conscious: float = Field(5.0, ge=0, le=10)
    spontaneous: float = Field(5.0, ge=0, le=10)
    family_oriented: float = Field(5.0, ge=0, le=10)
    photography: float = Field(5.0, ge=0, le=10)
    food_lover: float = Field(5.0, ge=0, le=10)
    nature_lover: float = Field(5.0, ge=0, le=10)


class BudgetRange(BaseModel):
    min: float = 0.0
    max: float = 0.0
    currency: str = "EUR"


class TravelPreferences(BaseModel):
    budget_range: BudgetRange = Field(default_factory=BudgetRange)
    season_preference: List[str] = Field(default_factory=list)
    preferred_destinations: List[str] = Field(default_factory=list)


class ProfileAnalytics(BaseModel):
    profile_completeness: float = Field(0.0, ge=0, le=100)
    engagement_score: float = Field(0.0, ge=0, le=100)
    lifetime_value: float = 0.0
    user_segment: str = "new"


class BehaviorMetrics(BaseModel):
    sessions_count: int = 0
    average_session_duration: float = 0.0  # seconds


class UserProfile(BaseModel):
    """Detailed user profile supplied by the profile provider"""
    user_id: str
    display_name: str = ""
    email_verified: bool = False
    personality: PersonalityTraits = Field(default_factory=PersonalityTraits)
    travel_preferences: TravelPreferences = Field(default_factory=TravelPreferences)
    analytics: ProfileAnalytics = Field(default_factory=ProfileAnalytics)
    behavior: BehaviorMetrics = Field(default_factory=BehaviorMetrics)


class BookingPrediction(BaseModel):
    booking_probability: float = Field(0.0, ge=0, le=1)
    urgency_level: UrgencyLevel = UrgencyLevel.NONE
    confidence: float = Field(0.5, ge=0, le=1)
    predicted_destinations: List[str] = Field(default_factory=list)
    predicted_budget: BudgetRange = Field(default_factory=BudgetRange)


class ChurnPrediction(BaseModel):
    risk_level: RiskLevel = RiskLevel.LOW
    probability: float = Field(0.0, ge=0, le=1)


class PricingPrediction(BaseModel):
    optimal_price_range: BudgetRange = Field(default_factory=BudgetRange)
    premium_willingness: float = Field(0.0, ge=0, le=1)


class PredictionBundle(BaseModel):
    """Model outputs for one user"""
    booking: BookingPrediction = Field(default_factory=BookingPrediction)
    churn: ChurnPrediction = Field(default_factory=ChurnPrediction)
    pricing: PricingPrediction = Field(default_factory=PricingPrediction)


# ============================================
# Personalization Response
# ============================================

class PersonalizedContent(BaseModel):
    id: str
    type: ContentType
    title: str
    content: str
    priority: int
    cta_text: Optional[str] = None
    cta_url: Optional[str] = None
    image_url: Optional[str] = None
    personalized_reason: str = ""
    target_emotions: List[str] = Field(default_factory=list)


class UITheme(BaseModel):
    primary_color: str
    accent_color: str
    mood: str  # luxury | adventure | romantic | cultural | budget


class UILayout(BaseModel):
    package_display_style: str = "grid"      # grid | carousel
    information_density: str = "standard"    # detailed | standard
    navigation_style: str = "simple"         # advanced | simple


class UIFeatures(BaseModel):
    show_price_first: bool = False
    highlight_discounts: bool = False
    show_social_proof: bool = False
    enable_quick_booking: bool = False
    show_comparison_tools: bool = False


class UIAnimations(BaseModel):
    speed: str = "normal"      # fast | normal
    effects: str = "standard"  # dynamic | standard


class UIPersonalization(BaseModel):
    theme: UITheme
    layout: UILayout = Field(default_factory=UILayout)
    features: UIFeatures = Field(default_factory=UIFeatures)
    animations: UIAnimations = Field(default_factory=UIAnimations)


class PersonalizedMessaging(BaseModel):
    greeting: str
    tone: Tone
    urgency_level: UrgencyLevel = UrgencyLevel.NONE
    offers: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    next_steps: List[str] = Field(default_factory=list)


class UrgencySignal(BaseModel):
    type: UrgencySignalType
    message: str
    action_required: str = ""
    urgency_level: int = Field(..., ge=1, le=10)
    expires_at: Optional[UTCDateTime] = None


class NextBestAction(BaseModel):
    action: str
    reason: str = ""
    priority: int
    expected_outcome: str
    estimated_value: float
    time_to_execute_minutes: int


class PersonalizationResponse(BaseModel):
    """Scored personalization bundle cached per session"""
    session_id: str
    user_id: str
    recommended_packages: List[HoneymoonPackage] = Field(default_factory=list)
    personalized_content: List[PersonalizedContent] = Field(default_factory=list)
    ui_personalization: UIPersonalization
    messaging: PersonalizedMessaging
    urgency_signals: List[UrgencySignal] = Field(default_factory=list)
    next_best_actions: List[NextBestAction] = Field(default_factory=list)
    confidence: float = Field(..., ge=0, le=1)
    reasoning_chain: List[str] = Field(default_factory=list)
    generated_at: UTCDateTime = Field(default_factory=utcnow)


# ============================================
# Offline Sync Queue
# ============================================

class SyncQueueItem(BaseModel):
    """A serializable pending write waiting for connectivity"""
    id: str = Field(default_factory=new_id)
    type: SyncItemType
    action: SyncAction
    data: Dict[str, Any] = Field(default_factory=dict)
    timestamp: UTCDateTime = Field(default_factory=utcnow)
    retry_count: int = 0


# ============================================
# API Request/Response Models
# ============================================

class ChatRequest(BaseModel):
    """Chat request from user"""
    message: str = Field(..., max_length=4000, description="User's message")
    session_id: str = Field(..., description="Raw session identifier")
    user_id: str = Field("anonymous", description="User identifier")


class ChatResponse(BaseModel):
    """Chat response with resolved packages"""
    session_id: str
    user_message: Message
    assistant_message: Message
    display_text: str
    packages: List[HoneymoonPackage] = Field(default_factory=list)
    context: Optional[ConversationContext] = None
    persisted: bool = True


class ChatHistoryResponse(BaseModel):
    session_id: str
    chats: List[Chat] = Field(default_factory=list)


class DeleteHistoryResponse(BaseModel):
    session_id: str
    deleted: int


class PackageResolveRequest(BaseModel):
    text: str


class PackageResolveResponse(BaseModel):
    packages: List[HoneymoonPackage] = Field(default_factory=list)
    display_text: str = ""


class ActionRecordResponse(BaseModel):
    session_id: str
    recomputed: bool
    personalization: Optional[PersonalizationResponse] = None
