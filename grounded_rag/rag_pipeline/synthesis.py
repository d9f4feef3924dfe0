"""
synthesis.py
------------

Grounded answer generation.

The retrieved contexts are numbered into a prompt that tells the model
to answer only from them, and the chat service is called with a bounded
exponential backoff when it reports throttling.  :meth:`synthesize`
always returns text: an empty context list, exhausted retries and other
generation failures each map to a fixed message.  The one exception that
escapes is :class:`~rag_pipeline.exceptions.OperationCancelled`, raised
as soon as the caller's cancel event is set, including mid-backoff.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional, Sequence

import openai

from .config import RetryPolicy
from .exceptions import OperationCancelled, RateLimitedError
from .generation import ChatService
from .models import RetrievedContext

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful assistant that answers questions based on provided context.\n"
    "Use ONLY the information from the context to answer questions.\n"
    "If the context doesn't contain enough information, say so clearly.\n"
    "Be concise but thorough in your response."
)

NO_CONTEXT_MESSAGE = (
    "I couldn't find any relevant information in the knowledge base to answer your "
    "question. Please try rephrasing or ensure relevant documents have been uploaded."
)
RATE_LIMIT_MESSAGE = (
    "The answer service is rate-limited. Please wait 30-60 seconds and try again."
)
GENERATION_ERROR_MESSAGE = "An error occurred while generating the answer. Please try again."


def backoff_delay(attempt: int, base_delay: float = 4.0) -> float:
    """Seconds to wait after failed attempt ``attempt`` (0-based)."""
    return base_delay * (2 ** attempt)


def backoff_schedule(max_attempts: int, base_delay: float = 4.0) -> List[float]:
    """All waits between ``max_attempts`` attempts, e.g. ``[4, 8, 16, 32]``."""
    return [backoff_delay(attempt, base_delay) for attempt in range(max(0, max_attempts - 1))]


def is_rate_limit_error(exc: BaseException) -> bool:
    """Whether ``exc``, or an exception it was raised from, signals HTTP 429."""
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, (RateLimitedError, openai.RateLimitError)):
            return True
        if getattr(current, "status_code", None) == 429:
            return True
        current = current.__cause__ or current.__context__
    return False


def build_context_block(contexts: Sequence[RetrievedContext]) -> str:
    return "\n\n".join(
        f"[Source {number}]: {context.content}"
        for number, context in enumerate(contexts, start=1)
    )


def build_user_prompt(question: str, contexts: Sequence[RetrievedContext]) -> str:
    return f"CONTEXT:\n{build_context_block(contexts)}\n\nQUESTION: {question}\n\nANSWER:"


class AnswerSynthesizer:
    """Writes an answer from retrieved contexts.

    Parameters
    ----------
    chat : ChatService
        The generation capability.
    retry : RetryPolicy, optional
        Attempt cap and base delay for throttled calls.
    sleep : callable, optional
        Used to wait between attempts when no cancel event is given.
    """

    def __init__(
        self,
        chat: ChatService,
        retry: Optional[RetryPolicy] = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.chat = chat
        self.retry = retry or RetryPolicy()
        self._sleep = sleep

    def _wait(self, delay: float, cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is None:
            self._sleep(delay)
        elif cancel_event.wait(delay):
            raise OperationCancelled("Answer generation cancelled during backoff")

    def synthesize(
        self,
        question: str,
        contexts: Sequence[RetrievedContext],
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        if not contexts:
            return NO_CONTEXT_MESSAGE

        user_prompt = build_user_prompt(question, contexts)
        max_attempts = max(1, self.retry.max_attempts)

        for attempt in range(max_attempts):
            if cancel_event is not None and cancel_event.is_set():
                raise OperationCancelled("Answer generation cancelled")
            try:
                return self.chat.generate(SYSTEM_PROMPT, user_prompt)
            except OperationCancelled:
                raise
            except Exception as exc:
                if not is_rate_limit_error(exc):
                    logger.exception("Failed to generate answer")
                    return GENERATION_ERROR_MESSAGE
                if attempt + 1 >= max_attempts:
                    logger.error("Rate limit exceeded after %d attempts: %s", max_attempts, exc)
                    return RATE_LIMIT_MESSAGE
            delay = backoff_delay(attempt, self.retry.base_delay)
            logger.warning(
                "Rate limited by the answer service. Retrying in %.0fs (attempt %d/%d)",
                delay,
                attempt + 1,
                max_attempts,
            )
            self._wait(delay, cancel_event)

        return RATE_LIMIT_MESSAGE
