"""
Honeymoon Chat Agent
Runs one conversational turn end to end:

1. Load and sort the session history, append the user message
2. Recompute the conversation context
3. Select the bounded context window and build the system prompt
4. Stream the assistant reply (published as MessageUpdate events)
5. Resolve **SHOW_PACKAGES:<token>** directives
6. Dual-write user and assistant messages; queue failed writes for replay
"""

import asyncio
from typing import AsyncIterable, List, Optional

from loguru import logger

from ..algorithms.session_grouper import SessionGrouper
from ..config import settings
from ..interfaces.conversation_store import ConversationStore, get_conversation_store
from ..interfaces.session_registry import SessionRegistry, session_registry
from ..interfaces.sync_queue import SyncQueue, get_sync_queue
from ..llm.package_directives import PackageDirectiveParser, strip_directives
from ..llm.text_generation import TextGenerationError, TextGenerator, get_text_generator
from ..schemas.ai_schemas import (
    Chat,
    ChatResponse,
    Message,
    MessageUpdate,
    Role,
    SyncAction,
    SyncItemType,
    SyncQueueItem,
    new_id,
)
from .context_manager import ContextManager

GENERATION_FAILED_NOTICE = (
    "Sorry, I can't reach our honeymoon assistant right now. "
    "Please try again in a moment."
)


# ============================================
# Streaming
# ============================================

class MessageAccumulator:
    """
    Collects streamed fragments into one assistant message

    Every fragment is published as a MessageUpdate to each subscriber queue.
    The message only becomes a Message once the stream finishes.
    """

    def __init__(self, session_id: str, message_id: Optional[str] = None):
        self.session_id = session_id
        self.message_id = message_id or new_id()
        self.content = ""
        self.done = False
        self._subscribers: List[asyncio.Queue] = []

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)
        return queue

    def publish(self, update: MessageUpdate):
        for queue in self._subscribers:
            queue.put_nowait(update)

    def add(self, fragment: str):
        self.content += fragment
        self.publish(MessageUpdate(
            message_id=self.message_id,
            session_id=self.session_id,
            delta=fragment,
            content=self.content,
        ))

    def finish(self, content: Optional[str] = None) -> Message:
        """Publish the final update and freeze the message"""
        if content is not None:
            self.content = content
        self.done = True
        self.publish(MessageUpdate(
            message_id=self.message_id,
            session_id=self.session_id,
            content=self.content,
            done=True,
        ))
        return Message(id=self.message_id, role=Role.ASSISTANT, content=self.content)

    async def consume(self, fragments: AsyncIterable[str]) -> Message:
        async for fragment in fragments:
            self.add(fragment)
        return self.finish()


# ============================================
# Chat Agent
# ============================================

class ChatAgent:
    """
    Orchestrates history, context, generation and persistence for a session

    Args:
        registry: Per-session state owner
        store: Conversation message store
        generator: Streaming text generator
        parser: Package directive parser
        sync_queue: Queue for writes that failed
    """

    def __init__(
        self,
        registry: Optional[SessionRegistry] = None,
        store: Optional[ConversationStore] = None,
        generator: Optional[TextGenerator] = None,
        parser: Optional[PackageDirectiveParser] = None,
        sync_queue: Optional[SyncQueue] = None,
        grouper: Optional[SessionGrouper] = None
    ):
        self.registry = registry if registry is not None else session_registry
        self.store = store if store is not None else get_conversation_store()
        self._generator = generator
        self.parser = parser if parser is not None else PackageDirectiveParser()
        self.sync_queue = sync_queue if sync_queue is not None else get_sync_queue()
        self.grouper = grouper if grouper is not None else SessionGrouper()
        self.context_manager = ContextManager(self.registry)

    @property
    def generator(self) -> TextGenerator:
        if self._generator is None:
            self._generator = get_text_generator()
        return self._generator

    async def load_history(self, session_id: str) -> List[Message]:
        """Stored messages for a session, oldest first"""
        messages = await self.store.query(session_id, limit=settings.HISTORY_LIMIT)
        return sorted(messages, key=lambda m: m.timestamp)

    async def process_message(
        self,
        session_id: str,
        user_id: str,
        text: str,
        accumulator: Optional[MessageAccumulator] = None
    ) -> Optional[ChatResponse]:
        """
        Handle one user turn

        Args:
            session_id: Raw session identifier
            user_id: Identity-provider user id
            text: User message text
            accumulator: Optional accumulator whose subscribers see each fragment

        Returns:
            ChatResponse, or None when the session id is missing
        """
        if not session_id:
            logger.warning("process_message called without a session id")
            return None

        user_message = Message(role=Role.USER, content=text)
        history = await self.load_history(session_id)
        history.append(user_message)

        context = self.context_manager.update_context(session_id, history)
        window = self.context_manager.select_relevant_messages(history)
        system_prompt = self.context_manager.build_system_prompt(context)

        accumulator = accumulator or MessageAccumulator(session_id)
        logger.info(
            f"Chat turn: session={session_id}, user={user_id}, "
            f"history={len(history)}, window={len(window)}"
        )

        try:
            assistant_message = await accumulator.consume(
                self.generator.stream_completion(window, session_id, user_id, system_prompt)
            )
        except TextGenerationError as e:
            logger.error(f"Generation failed for session {session_id}: {e}")
            notice = accumulator.finish(GENERATION_FAILED_NOTICE)
            # Only the user turn is kept; the notice is not part of the conversation
            persisted = await self._persist(session_id, [user_message])
            return ChatResponse(
                session_id=session_id,
                user_message=user_message,
                assistant_message=notice,
                display_text=notice.content,
                context=context,
                persisted=persisted,
            )

        packages = self.parser.parse(assistant_message.content)
        persisted = await self._persist(session_id, [user_message, assistant_message])

        return ChatResponse(
            session_id=session_id,
            user_message=user_message,
            assistant_message=assistant_message,
            display_text=strip_directives(assistant_message.content),
            packages=packages,
            context=context,
            persisted=persisted,
        )

    async def _persist(self, session_id: str, messages: List[Message]) -> bool:
        """Write messages concurrently; queue every failed write"""
        results = await asyncio.gather(
            *[self.store.append(session_id, m) for m in messages],
            return_exceptions=True
        )

        persisted = True
        for message, result in zip(messages, results):
            if isinstance(result, Exception):
                persisted = False
                logger.error(f"Failed to store {message.role.value} message {message.id}: {result}")
                await self.sync_queue.enqueue(SyncQueueItem(
                    type=SyncItemType.MESSAGE,
                    action=SyncAction.CREATE,
                    data={"session_id": session_id, "message": message.model_dump(mode="json")},
                ))
        return persisted

    async def load_chats(self, session_id: str) -> List[Chat]:
        """History grouped into chats"""
        if not session_id:
            logger.warning("load_chats called without a session id")
            return []
        history = await self.load_history(session_id)
        return self.grouper.group(history, session_id)

    async def delete_history(self, session_id: str) -> int:
        """
        Delete stored messages and all in-process state for a session

        Returns:
            Number of messages removed (0 when the delete was queued)
        """
        if not session_id:
            logger.warning("delete_history called without a session id")
            return 0

        self.registry.drop(session_id)
        try:
            return await self.store.delete_all(session_id)
        except Exception as e:
            logger.error(f"Delete failed for session {session_id}, queued for replay: {e}")
            await self.sync_queue.enqueue(SyncQueueItem(
                type=SyncItemType.MESSAGE,
                action=SyncAction.DELETE,
                data={"session_id": session_id},
            ))
            return 0

    async def apply_sync_item(self, item: SyncQueueItem):
        """Replay one queued write against the message store"""
        if item.type != SyncItemType.MESSAGE:
            logger.warning(f"No replay handler for {item.type.value} items, skipping {item.id}")
            return

        session_id = item.data["session_id"]
        if item.action == SyncAction.DELETE:
            await self.store.delete_all(session_id)
        else:
            await self.store.append(session_id, Message.model_validate(item.data["message"]))

    async def replay_pending(self):
        """Drain the sync queue into the message store"""
        return await self.sync_queue.process(self.apply_sync_item)

    async def run_replay_loop(self, interval: Optional[int] = None):
        interval = interval or settings.SYNC_INTERVAL_SECONDS
        while True:
            await asyncio.sleep(interval)
            if await self.sync_queue.pending():
                await self.replay_pending()


# Global instance (lazy initialization)
_chat_agent: Optional[ChatAgent] = None


def get_chat_agent() -> ChatAgent:
    """Get or create the global chat agent"""
    global _chat_agent
    if _chat_agent is None:
        _chat_agent = ChatAgent()
    return _chat_agent
