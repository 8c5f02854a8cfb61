# honeymoon_ai/__init__.py
"""
Honeymoon Planner AI Service Package

Conversation context and real-time personalization core for the
honeymoon-planning chat:
- Preference extraction and relevance-scored context windows
- Conversation phase classification and session grouping
- Streaming chat with package directive resolution
- Profile-driven personalization (content, UI, messaging, urgency)
- Offline sync queue for message writes
"""

__version__ = "1.0.0"
__author__ = "Honeymoon Planner Team"

# Package structure:
# honeymoon_ai/
# ├── __init__.py           <- This file
# ├── main.py               <- FastAPI application entry
# ├── config.py             <- Configuration settings
# │
# ├── agents/               <- Orchestration
# │   ├── context_manager.py         <- Per-session conversation context
# │   ├── personalization_engine.py  <- Personalization bundles
# │   └── chat_agent.py              <- Chat turn pipeline
# │
# ├── algorithms/           <- Pure text heuristics and scoring
# │   ├── keyword_tables.py
# │   ├── preference_extractor.py
# │   ├── relevance_scorer.py
# │   ├── context_window.py
# │   ├── phase_classifier.py
# │   ├── session_grouper.py
# │   └── personalization_scoring.py
# │
# ├── api/                  <- FastAPI Routers
# │   ├── chat.py           <- /api/ai/*
# │   └── personalization.py <- /api/personalization/*
# │
# ├── interfaces/           <- Data Stores
# │   ├── conversation_store.py
# │   ├── package_store.py
# │   ├── profile_store.py
# │   ├── session_registry.py
# │   └── sync_queue.py
# │
# ├── llm/                  <- LLM Components
# │   ├── prompts.py
# │   ├── text_generation.py
# │   └── package_directives.py
# │
# ├── schemas/              <- Pydantic Models
# │   └── ai_schemas.py
# │
# ├── utils/
# │   └── ai_helpers.py
# │
# └── kafka_client/         <- Kafka action ingestion
#     ├── message_schemas.py
#     └── kafka_consumer.py
