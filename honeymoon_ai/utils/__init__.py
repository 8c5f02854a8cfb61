"""
Utilities Module
Helper functions for the honeymoon AI service
"""

from .ai_helpers import (
    truncate_text,
    format_price,
    first_name,
    dedupe_packages
)

__all__ = [
    "truncate_text",
    "format_price",
    "first_name",
    "dedupe_packages"
]
