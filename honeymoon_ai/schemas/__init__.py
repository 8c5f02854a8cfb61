# schemas/__init__.py
"""
Pydantic Schemas Package

Contains all Pydantic v2 models for:
- API requests/responses
- Conversation and personalization data structures
"""

from .ai_schemas import *  # noqa: F401,F403
