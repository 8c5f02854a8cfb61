# interfaces/__init__.py
"""
Interfaces Package

Contains data stores and per-session state:
- conversation_store: Raw chat messages per session id
- package_store: Honeymoon package catalog
- profile_store: User profiles and predictions
- session_registry: Context, personalization cache and action buffers
- sync_queue: Offline retry queue for message writes
"""

from .conversation_store import ConversationStore, StoreUnavailableError, get_conversation_store
from .package_store import PackageStore, get_package_store
from .profile_store import ProfileStore, get_profile_store
from .session_registry import SessionRegistry, SessionState, session_registry
from .sync_queue import SyncQueue, get_sync_queue

__all__ = [
    "ConversationStore",
    "StoreUnavailableError",
    "get_conversation_store",
    "PackageStore",
    "get_package_store",
    "ProfileStore",
    "get_profile_store",
    "SessionRegistry",
    "SessionState",
    "session_registry",
    "SyncQueue",
    "get_sync_queue"
]
