"""
generation.py
-------------

The chat capability used to write answers, plus an OpenAI-backed
implementation.  Throttling responses from the API surface as
:class:`~rag_pipeline.exceptions.RateLimitedError` so the answer
synthesizer can tell them apart from other failures.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional, Protocol

import openai
from openai import OpenAI

from .exceptions import RateLimitedError

logger = logging.getLogger(__name__)

EMPTY_RESPONSE_MESSAGE = "No response generated."


class ChatService(Protocol):
    def generate(self, system_prompt: str, user_prompt: str) -> str:
        ...


class OpenAIChatModel:
    """Generate text with OpenAI's chat completion API.

    Parameters
    ----------
    model : str
        Chat model name.  Defaults to ``gpt-4o``.
    temperature : float
        Sampling temperature.
    max_tokens : int
        Maximum number of tokens to generate.  Increase this if answers
        are truncated.
    api_key, base_url : str, optional
        Credentials and endpoint; default to ``OPENAI_API_KEY`` and
        ``OPENAI_BASE_URL``.
    client : object, optional
        A preconfigured client exposing ``chat.completions.create``.
    """

    def __init__(
        self,
        model: str = "gpt-4o",
        *,
        temperature: float = 0.2,
        max_tokens: int = 1024,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[Any] = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._api_key = api_key
        self._base_url = base_url
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            api_key = self._api_key or os.getenv("OPENAI_API_KEY")
            if not api_key:
                raise RuntimeError(
                    "OpenAI API key not found; set OPENAI_API_KEY to enable answer generation."
                )
            base_url = self._base_url or os.getenv("OPENAI_BASE_URL") or None
            self._client = OpenAI(api_key=api_key, base_url=base_url)
        return self._client

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        client = self._get_client()
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except openai.RateLimitError as exc:
            raise RateLimitedError(f"Rate limited by {self.model} (429): {exc}") from exc
        except Exception as exc:
            logger.error("OpenAI chat completion failed: %s", exc)
            raise
        choice = response.choices[0]
        if getattr(choice, "finish_reason", None) == "length":
            logger.warning(
                "Completion stopped because of max_tokens limit; consider increasing max_tokens."
            )
        message = choice.message.content
        return message.strip() if message else EMPTY_RESPONSE_MESSAGE
