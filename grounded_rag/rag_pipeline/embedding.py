"""
embedding.py
------------

This module defines the embedding capability used by both pipelines and
its default implementation, :class:`OpenAIEmbeddingModel`, which wraps
OpenAI's embedding API.  Any OpenAI-compatible endpoint works (set
``OPENAI_BASE_URL``), which includes a local Ollama server serving
``nomic-embed-text``.

The pipelines only depend on :class:`EmbeddingService`, so tests and
other deployments can substitute any object with the same two methods.
"""

from __future__ import annotations

import logging
import os
from typing import Any, List, Optional, Protocol, Sequence

from openai import OpenAI

from .exceptions import EmbeddingError

logger = logging.getLogger(__name__)


class EmbeddingService(Protocol):
    """Turns text into fixed-size vectors.

    ``embed_texts`` must return exactly one vector per input text, in
    input order.
    """

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        ...

    def embed_query(self, text: str) -> List[float]:
        ...


class OpenAIEmbeddingModel:
    """Compute embeddings through the OpenAI embeddings endpoint.

    Parameters
    ----------
    model_name : str, optional
        The embedding model.  Defaults to ``text-embedding-3-small``.
    api_key : str, optional
        Explicit API key.  If omitted, ``OPENAI_API_KEY`` is used.
    base_url : str, optional
        Endpoint override.  If omitted, ``OPENAI_BASE_URL`` is used.
    client : object, optional
        A preconfigured client exposing ``embeddings.create``.
    """

    def __init__(
        self,
        model_name: str = "text-embedding-3-small",
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[Any] = None,
    ) -> None:
        self.model_name = model_name
        self._api_key = api_key
        self._base_url = base_url
        self._client = client

    def _get_client(self) -> Any:
        """Lazily create and cache the OpenAI client."""
        if self._client is None:
            api_key = self._api_key or os.getenv("OPENAI_API_KEY")
            if not api_key:
                raise EmbeddingError(
                    "OpenAI API key not found; set OPENAI_API_KEY to enable embeddings."
                )
            base_url = self._base_url or os.getenv("OPENAI_BASE_URL") or None
            self._client = OpenAI(api_key=api_key, base_url=base_url)
        return self._client

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed multiple texts with a single API call.

        Raises
        ------
        EmbeddingError
            If the request fails or the response does not contain one
            vector per input.
        """
        texts = list(texts)
        if not texts:
            return []
        client = self._get_client()
        try:
            response = client.embeddings.create(model=self.model_name, input=texts)
        except Exception as exc:
            logger.error("Embedding request failed: %s", exc)
            raise EmbeddingError(f"Embedding request failed: {exc}") from exc
        # The API reports each vector's input position; do not rely on list order.
        ordered = sorted(response.data, key=lambda item: item.index)
        if len(ordered) != len(texts):
            raise EmbeddingError(
                f"Embedding service returned {len(ordered)} vectors for {len(texts)} inputs"
            )
        return [list(item.embedding) for item in ordered]

    def embed_query(self, text: str) -> List[float]:
        return self.embed_texts([text])[0]
