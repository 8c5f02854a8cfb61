"""
Honeymoon AI Service - FastAPI Application
LLM Provider:
- If OPENAI_API_KEY is set: use OpenAI
- If no OPENAI_API_KEY: use Ollama (llama3.2)
"""

import asyncio
import sys
from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from . import __version__
from .agents.chat_agent import get_chat_agent
from .agents.personalization_engine import get_personalization_engine
from .api import chat_router, personalization_router
from .config import settings
from .interfaces.package_store import get_package_store
from .interfaces.session_registry import session_registry
from .kafka_client.kafka_consumer import ActionEventConsumer
from .schemas.ai_schemas import utcnow

# Configure logging
logger.remove()
logger.add(sys.stderr, level=settings.LOG_LEVEL)


# ============================================
# Application Lifespan
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start and stop the background loops"""
    logger.info("=" * 50)
    logger.info("Starting Honeymoon AI Service")
    logger.info("=" * 50)
    logger.info(f"Environment: {settings.API_ENV}")
    if settings.use_openai:
        logger.info(f"LLM Provider: OpenAI ({settings.OPENAI_MODEL})")
    else:
        logger.info(f"LLM Provider: Ollama ({settings.OLLAMA_MODEL} at {settings.OLLAMA_BASE_URL})")

    engine = get_personalization_engine()
    agent = get_chat_agent()

    engine.start()
    tasks: List[asyncio.Task] = [asyncio.create_task(agent.run_replay_loop())]

    action_consumer = None
    if settings.KAFKA_ENABLED:
        action_consumer = ActionEventConsumer(engine)
        action_consumer.start()

    yield

    if action_consumer is not None:
        await action_consumer.stop()
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    await engine.stop()

    logger.info("Honeymoon AI Service shutdown complete")


# ============================================
# FastAPI Application
# ============================================

app = FastAPI(
    title="Honeymoon AI Service",
    description="Honeymoon planning chat with context-aware package recommendations and real-time personalization. Supports OpenAI and Ollama.",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chat_router)
app.include_router(personalization_router)


# ============================================
# REST Endpoints
# ============================================

@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": "Honeymoon AI Service",
        "version": __version__,
        "status": "running",
        "llm_provider": "OpenAI" if settings.use_openai else "Ollama",
        "docs": "/docs",
        "endpoints": [
            "/health",
            "/api/ai/chat",
            "/api/ai/chat/stream",
            "/api/ai/history/{session_id}",
            "/api/ai/context/{session_id}",
            "/api/ai/packages/resolve",
            "/api/personalization/personalize",
            "/api/personalization/actions/{session_id}"
        ]
    }


@app.get("/health")
async def health_check():
    """Component status"""
    agent = get_chat_agent()
    await agent.store._ensure_connected()
    await agent.sync_queue._ensure_connected()

    return {
        "status": "healthy",
        "service": "honeymoon-ai-service",
        "version": __version__,
        "llm_provider": "OpenAI" if settings.use_openai else "Ollama",
        "llm_model": settings.OPENAI_MODEL if settings.use_openai else settings.OLLAMA_MODEL,
        "components": {
            "conversation_store": "redis" if agent.store.redis_client else "memory",
            "sync_queue": "redis" if agent.sync_queue.redis_client else "memory",
            "pending_sync_items": len(await agent.sync_queue.pending()),
            "packages": get_package_store().get_stats(),
            "active_sessions": len(session_registry),
            "kafka": "enabled" if settings.KAFKA_ENABLED else "disabled"
        },
        "timestamp": utcnow().isoformat()
    }


# ============================================
# Main
# ============================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "honeymoon_ai.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.API_ENV == "development"
    )
