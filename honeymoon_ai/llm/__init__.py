# llm/__init__.py
"""
LLM Package

Contains:
- prompts: System prompt templates
- text_generation: Streaming OpenAI / Ollama client
- package_directives: **SHOW_PACKAGES:<token>** resolution
"""

from .package_directives import (
    PackageDirectiveParser,
    find_directives,
    parse_package_directives,
    strip_directives,
)
from .text_generation import TextGenerator, TextGenerationError, get_text_generator

__all__ = [
    "PackageDirectiveParser",
    "find_directives",
    "parse_package_directives",
    "strip_directives",
    "TextGenerator",
    "TextGenerationError",
    "get_text_generator"
]
