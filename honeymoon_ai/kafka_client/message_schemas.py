"""
Kafka Message Schemas - Pydantic v2 Models
Defines the structure of user action events
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..schemas.ai_schemas import ActionType, UTCDateTime, UserAction, utcnow


# ============================================
# User Action Event (Consumed from Frontend tracking)
# ============================================

class UserActionEvent(BaseModel):
    """
    Event emitted by the web client's activity tracker
    Topic: user.actions

    Fed into the personalization engine's action buffer for its session
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "session_id": "sess-42",
                "user_id": "user-7",
                "type": "package_view",
                "target": "pkg-santorini-sunset",
                "timestamp": "2025-06-01T10:15:00Z",
                "duration": 42.5
            }
        }
    )

    session_id: str = Field(..., min_length=1, description="Raw session identifier")
    user_id: Optional[str] = Field(None, description="Identity-provider user id")
    type: ActionType
    target: str = ""
    timestamp: UTCDateTime = Field(default_factory=utcnow)
    duration: Optional[float] = None
    value: Optional[float] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def to_user_action(self) -> UserAction:
        metadata = dict(self.metadata)
        if self.user_id:
            metadata.setdefault("user_id", self.user_id)
        return UserAction(
            type=self.type,
            target=self.target,
            timestamp=self.timestamp,
            metadata=metadata,
            duration=self.duration,
            value=self.value,
        )
