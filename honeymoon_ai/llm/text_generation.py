"""
Text Generation
Streams assistant replies from OpenAI, or from a local Ollama server when no
OPENAI_API_KEY is configured.

The caller bounds the history (see algorithms.context_window) before calling.
"""

import json
from typing import AsyncIterator, Dict, List, Optional, Sequence

import httpx
from loguru import logger
from openai import AsyncOpenAI

from ..config import settings
from ..schemas.ai_schemas import Message, Role


class TextGenerationError(RuntimeError):
    """The text generation backend could not produce a reply"""


def to_chat_messages(history: Sequence[Message], system_prompt: Optional[str] = None) -> List[Dict[str, str]]:
    """Convert history to the role/content list both backends accept"""
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    for message in history:
        messages.append({"role": message.role.value, "content": message.content})
    return messages


class TextGenerator:
    """
    Streaming text generation client

    LLM Provider:
    - If OPENAI_API_KEY is set: use OpenAI
    - If no OPENAI_API_KEY: use Ollama
    """

    def __init__(
        self,
        openai_api_key: Optional[str] = None,
        openai_model: Optional[str] = None,
        ollama_base_url: Optional[str] = None,
        ollama_model: Optional[str] = None
    ):
        api_key = settings.OPENAI_API_KEY if openai_api_key is None else openai_api_key
        self.openai_model = openai_model or settings.OPENAI_MODEL
        self.ollama_base_url = ollama_base_url or settings.OLLAMA_BASE_URL
        self.ollama_model = ollama_model or settings.OLLAMA_MODEL

        self.openai_client: Optional[AsyncOpenAI] = None
        if api_key:
            self.openai_client = AsyncOpenAI(api_key=api_key)
            logger.info(f"TextGenerator using OpenAI ({self.openai_model})")
        else:
            logger.info(f"TextGenerator using Ollama ({self.ollama_model} at {self.ollama_base_url})")

    async def stream_completion(
        self,
        history: Sequence[Message],
        session_id: str,
        user_id: str,
        system_prompt: Optional[str] = None
    ) -> AsyncIterator[str]:
        """
        Stream reply fragments for a conversation

        Args:
            history: Bounded, chronological history ending with the user turn
            session_id: Raw session id (sent as request metadata)
            user_id: Identity-provider user id
            system_prompt: Optional system instructions

        Yields:
            str: Text fragments in order

        Raises:
            TextGenerationError: The backend failed before or during streaming
        """
        if not history or history[-1].role != Role.USER:
            logger.warning(f"Stream requested without a trailing user message (session={session_id})")

        messages = to_chat_messages(history, system_prompt)

        if self.openai_client:
            stream = self._stream_openai(messages, user_id)
        else:
            stream = self._stream_ollama(messages)

        async for fragment in stream:
            yield fragment

    async def _stream_openai(self, messages: List[Dict[str, str]], user_id: str) -> AsyncIterator[str]:
        try:
            stream = await self.openai_client.chat.completions.create(
                model=self.openai_model,
                messages=messages,
                max_tokens=settings.OPENAI_MAX_TOKENS,
                temperature=settings.OPENAI_TEMPERATURE,
                user=user_id,
                stream=True
            )
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta
        except Exception as e:
            logger.error(f"OpenAI API error: {e}")
            raise TextGenerationError(str(e)) from e

    async def _stream_ollama(self, messages: List[Dict[str, str]]) -> AsyncIterator[str]:
        payload = {
            "model": self.ollama_model,
            "messages": messages,
            "stream": True,
            "options": {"temperature": settings.OPENAI_TEMPERATURE},
        }
        try:
            async with httpx.AsyncClient(timeout=settings.OLLAMA_TIMEOUT) as client:
                async with client.stream("POST", f"{self.ollama_base_url}/api/chat", json=payload) as response:
                    if response.status_code != 200:
                        raise TextGenerationError(f"Ollama error: {response.status_code}")
                    async for line in response.aiter_lines():
                        if not line:
                            continue
                        chunk = json.loads(line)
                        content = chunk.get("message", {}).get("content", "")
                        if content:
                            yield content
                        if chunk.get("done"):
                            break
        except httpx.ConnectError as e:
            logger.error("Cannot connect to Ollama. Make sure Ollama is running.")
            raise TextGenerationError("Cannot connect to Ollama") from e
        except (httpx.HTTPError, json.JSONDecodeError) as e:
            logger.error(f"Ollama API error: {e}")
            raise TextGenerationError(str(e)) from e


# Global instance (lazy initialization)
_text_generator: Optional[TextGenerator] = None


def get_text_generator() -> TextGenerator:
    """Get or create the global text generator"""
    global _text_generator
    if _text_generator is None:
        _text_generator = TextGenerator()
    return _text_generator
