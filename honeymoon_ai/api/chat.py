# api/chat.py
"""
Chat API Endpoint
Conversational interface for the honeymoon assistant.

- POST   /api/ai/chat                   one turn, full response
- POST   /api/ai/chat/stream            one turn, NDJSON message-updated events
- GET    /api/ai/history/{session_id}   history grouped into chats
- DELETE /api/ai/history/{session_id}   delete history and session state
- GET    /api/ai/context/{session_id}   current conversation context
- POST   /api/ai/packages/resolve       resolve SHOW_PACKAGES markers in text
"""

import asyncio
import json
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import StreamingResponse
from loguru import logger

from ..agents.chat_agent import ChatAgent, MessageAccumulator, get_chat_agent
from ..llm.package_directives import strip_directives
from ..schemas.ai_schemas import (
    ChatHistoryResponse,
    ChatRequest,
    ChatResponse,
    ConversationContext,
    DeleteHistoryResponse,
    PackageResolveRequest,
    PackageResolveResponse,
)

router = APIRouter(prefix="/api/ai", tags=["chat"])


# ============================================
# Helper Functions
# ============================================

def validate_chat_request(request: ChatRequest, x_user_id: Optional[str]) -> str:
    """Reject empty input and resolve the caller's user id"""
    if not request.session_id.strip():
        raise HTTPException(status_code=400, detail="session_id is required")
    if not request.message.strip():
        raise HTTPException(status_code=400, detail="message must not be empty")
    return x_user_id or request.user_id


def ndjson(event: str, data) -> str:
    return json.dumps({"event": event, "data": data}, ensure_ascii=False) + "\n"


# ============================================
# API Endpoints
# ============================================

@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    agent: ChatAgent = Depends(get_chat_agent),
    x_user_id: Optional[str] = Header(None)
):
    """
    Send one message and receive the assistant reply.

    Packages referenced by the reply's SHOW_PACKAGES markers are resolved
    into `packages`; `display_text` has the markers removed.
    """
    user_id = validate_chat_request(request, x_user_id)
    logger.info(f"Chat request: session={request.session_id}, query={request.message[:50]}...")

    return await agent.process_message(request.session_id, user_id, request.message)


@router.post("/chat/stream")
async def chat_stream(
    request: ChatRequest,
    agent: ChatAgent = Depends(get_chat_agent),
    x_user_id: Optional[str] = Header(None)
):
    """
    Send one message and stream the reply as NDJSON.

    Emits one `message-updated` line per fragment, then a final
    `message-completed` line carrying the full ChatResponse.
    """
    user_id = validate_chat_request(request, x_user_id)

    async def event_stream() -> AsyncIterator[str]:
        accumulator = MessageAccumulator(request.session_id)
        updates = accumulator.subscribe()
        task = asyncio.create_task(
            agent.process_message(request.session_id, user_id, request.message, accumulator)
        )

        while True:
            getter = asyncio.ensure_future(updates.get())
            done, _ = await asyncio.wait({getter, task}, return_when=asyncio.FIRST_COMPLETED)
            if getter not in done:
                getter.cancel()
                break
            update = getter.result()
            yield ndjson("message-updated", update.model_dump(mode="json"))
            if update.done:
                break

        while not updates.empty():
            yield ndjson("message-updated", updates.get_nowait().model_dump(mode="json"))

        response = await task
        yield ndjson("message-completed", response.model_dump(mode="json"))

    return StreamingResponse(event_stream(), media_type="application/x-ndjson")


@router.get("/history/{session_id}", response_model=ChatHistoryResponse)
async def get_history(session_id: str, agent: ChatAgent = Depends(get_chat_agent)):
    """Stored history for a session, grouped into chats"""
    chats = await agent.load_chats(session_id)
    return ChatHistoryResponse(session_id=session_id, chats=chats)


@router.delete("/history/{session_id}", response_model=DeleteHistoryResponse)
async def delete_history(session_id: str, agent: ChatAgent = Depends(get_chat_agent)):
    """Delete all messages and in-process state for a session"""
    deleted = await agent.delete_history(session_id)
    return DeleteHistoryResponse(session_id=session_id, deleted=deleted)


@router.get("/context/{session_id}", response_model=ConversationContext)
async def get_context(session_id: str, agent: ChatAgent = Depends(get_chat_agent)):
    """Conversation context computed on the session's last turn"""
    context = agent.context_manager.get_context(session_id)
    if context is None:
        raise HTTPException(status_code=404, detail=f"No context for session {session_id}")
    return context


@router.post("/packages/resolve", response_model=PackageResolveResponse)
async def resolve_packages(request: PackageResolveRequest, agent: ChatAgent = Depends(get_chat_agent)):
    """Resolve SHOW_PACKAGES markers in arbitrary assistant text"""
    return PackageResolveResponse(
        packages=agent.parser.parse(request.text),
        display_text=strip_directives(request.text),
    )
