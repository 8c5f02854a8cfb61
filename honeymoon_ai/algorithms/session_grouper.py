"""
Session Grouper
Partitions a raw session's flat message history into UI-level chats

A new chat starts when the current buffer is non-empty and either:
1. The gap since the previous message exceeds the threshold (1 hour), or
2. The previous message is from the assistant and this one is from the user

The storage layer does not guarantee order, so input is sorted first.
Grouping is deterministic: regrouping the flattened output gives the same
chats.
"""

from datetime import timedelta
from typing import List, Optional, Sequence

from ..config import settings
from ..schemas.ai_schemas import Chat, Message, Role
from ..utils.ai_helpers import truncate_text

TITLE_LENGTH = 50
PREVIEW_LENGTH = 100


class SessionGrouper:

    def __init__(
        self,
        gap: Optional[timedelta] = None,
        split_on_role_transition: Optional[bool] = None
    ):
        self.gap = gap if gap is not None else timedelta(minutes=settings.SESSION_GAP_MINUTES)
        self.split_on_role_transition = (
            settings.SPLIT_ON_ROLE_TRANSITION
            if split_on_role_transition is None
            else split_on_role_transition
        )

    def _is_boundary(self, previous: Message, current: Message) -> bool:
        if current.timestamp - previous.timestamp > self.gap:
            return True
        if self.split_on_role_transition:
            return previous.role == Role.ASSISTANT and current.role == Role.USER
        return False

    def group(self, history: Sequence[Message], session_id: str = "") -> List[Chat]:
        """
        Group a raw history into chats

        Args:
            history: Messages for one raw session id, in any order
            session_id: Raw session id stamped onto every chat

        Returns:
            List[Chat]: Non-empty chats in chronological order
        """
        ordered = sorted(history, key=lambda m: m.timestamp)

        sessions: List[List[Message]] = []
        current: List[Message] = []

        for message in ordered:
            if current and self._is_boundary(current[-1], message):
                sessions.append(current)
                current = []
            current.append(message)

        if current:
            sessions.append(current)

        return [
            self._build_chat(messages, index, session_id)
            for index, messages in enumerate(sessions)
        ]

    def _build_chat(self, messages: List[Message], index: int, session_id: str) -> Chat:
        first_ms = int(messages[0].timestamp.timestamp() * 1000)
        first_user = next((m for m in messages if m.role == Role.USER), None)

        if first_user is not None:
            title = truncate_text(first_user.content.strip(), TITLE_LENGTH)
        else:
            title = f"Chat {index + 1}"

        return Chat(
            id=f"chat-{first_ms}-{index}",
            title=title,
            messages=list(messages),
            last_message_preview=truncate_text(messages[-1].content.strip(), PREVIEW_LENGTH),
            session_id=session_id,
        )


def flatten_chats(chats: Sequence[Chat]) -> List[Message]:
    """Concatenate grouped chats back into one history"""
    return [message for chat in chats for message in chat.messages]


# Global grouper instance
session_grouper = SessionGrouper()


def group_messages(history: Sequence[Message], session_id: str = "") -> List[Chat]:
    """Convenience function using configured gap and split policy"""
    return session_grouper.group(history, session_id)
