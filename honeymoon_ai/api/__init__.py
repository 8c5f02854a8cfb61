# api/__init__.py
"""
API Endpoints Package

Contains all FastAPI routers for the honeymoon service:
- chat: Conversational interface, history and package resolution
- personalization: Personalization bundles and action tracking
"""

from .chat import router as chat_router
from .personalization import router as personalization_router

__all__ = [
    "chat_router",
    "personalization_router"
]
