# agents/__init__.py
"""
AI Agents Package

Contains the core agents:
- ChatAgent: Chat-facing agent for a session's conversation
- ContextManager: Per-session conversation context and system prompt
- PersonalizationEngine: Profile-driven personalization bundles
"""

from .chat_agent import ChatAgent, MessageAccumulator, get_chat_agent
from .context_manager import ContextManager
from .personalization_engine import (
    PersonalizationEngine,
    default_personalization,
    get_personalization_engine,
)

__all__ = [
    "ChatAgent",
    "MessageAccumulator",
    "get_chat_agent",
    "ContextManager",
    "PersonalizationEngine",
    "default_personalization",
    "get_personalization_engine"
]
