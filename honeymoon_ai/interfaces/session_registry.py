"""
Session Registry - Owns all per-session mutable state

Each raw session id gets exactly one SessionState holding its conversation
context, its cached personalization and its action buffer. The context
manager and the personalization engine both receive the registry explicitly,
so lifetimes are visible and tests can use a fresh registry.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterator, List, Optional

from loguru import logger

from ..schemas.ai_schemas import (
    ConversationContext,
    PersonalizationResponse,
    UserAction,
    utcnow,
)


@dataclass
class SessionState:
    """State for one session id"""
    session_id: str
    context: Optional[ConversationContext] = None
    personalization: Optional[PersonalizationResponse] = None
    actions: List[UserAction] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    # Serializes personalization recomputation for this session
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def last_activity(self) -> datetime:
        """Latest of creation, last action and last personalization"""
        moments = [self.created_at]
        if self.actions:
            moments.append(self.actions[-1].timestamp)
        if self.personalization:
            moments.append(self.personalization.generated_at)
        if self.context:
            moments.append(self.context.last_interaction_time)
        return max(moments)

    def is_empty(self) -> bool:
        return self.context is None and self.personalization is None and not self.actions


class SessionRegistry:
    """
    Map of session id -> SessionState

    A session id maps to at most one state object, so at most one live
    context and one cached personalization exist per session.
    """

    def __init__(self):
        self._sessions: Dict[str, SessionState] = {}

    def get(self, session_id: str) -> Optional[SessionState]:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> SessionState:
        state = self._sessions.get(session_id)
        if state is None:
            state = SessionState(session_id=session_id)
            self._sessions[session_id] = state
            logger.debug(f"Created session state: {session_id}")
        return state

    def drop(self, session_id: str) -> bool:
        """Remove a session's state entirely"""
        removed = self._sessions.pop(session_id, None) is not None
        if removed:
            logger.debug(f"Dropped session state: {session_id}")
        return removed

    def __iter__(self) -> Iterator[SessionState]:
        return iter(list(self._sessions.values()))

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions


# Global registry instance
session_registry = SessionRegistry()
