"""
Shared fixtures: in-memory collaborators and a scripted text generator
"""

from datetime import datetime, timedelta, timezone

import pytest

from honeymoon_ai.interfaces.conversation_store import ConversationStore
from honeymoon_ai.interfaces.package_store import PackageStore
from honeymoon_ai.interfaces.profile_store import ProfileStore
from honeymoon_ai.interfaces.session_registry import SessionRegistry
from honeymoon_ai.interfaces.sync_queue import SyncQueue
from honeymoon_ai.llm.text_generation import TextGenerationError
from honeymoon_ai.schemas.ai_schemas import Message, Role

BASE_TIME = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


class ScriptedGenerator:
    """Yields canned fragments and records what it was asked"""

    def __init__(self, fragments=None, fail=False):
        self.fragments = fragments or ["Hello!"]
        self.fail = fail
        self.calls = []

    async def stream_completion(self, history, session_id, user_id, system_prompt=None):
        self.calls.append({
            "history": list(history),
            "session_id": session_id,
            "user_id": user_id,
            "system_prompt": system_prompt,
        })
        if self.fail:
            raise TextGenerationError("backend down")
        for fragment in self.fragments:
            yield fragment


@pytest.fixture
def base_time():
    return BASE_TIME


@pytest.fixture
def make_message():
    def _make(role, content, minutes=0.0):
        return Message(
            role=Role(role),
            content=content,
            timestamp=BASE_TIME + timedelta(minutes=minutes),
        )
    return _make


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def conversation_store():
    return ConversationStore(redis_url="")


@pytest.fixture
def profile_store():
    return ProfileStore(redis_url="")


@pytest.fixture
def package_store():
    return PackageStore(mongo_uri="")


@pytest.fixture
def sync_queue():
    return SyncQueue(redis_url="")


@pytest.fixture
def generator():
    return ScriptedGenerator()


@pytest.fixture
def scripted_generator():
    return ScriptedGenerator
