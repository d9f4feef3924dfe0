"""Shared fakes and fixtures for the pipeline tests."""

import hashlib
import re
import threading

import pytest

from rag_pipeline.config import RAGConfig, RetryPolicy, StoreSettings
from rag_pipeline.vector_store import LocalVectorStore

DIMENSION = 64

_TOKEN = re.compile(r"[a-z0-9]+")


class BagOfWordsEmbedder:
    """Deterministic embedder: token counts hashed into ``dimension`` buckets."""

    def __init__(self, dimension=DIMENSION):
        self.dimension = dimension
        self.calls = []

    def _vector(self, text):
        vector = [0.0] * self.dimension
        for token in _TOKEN.findall(text.lower()):
            bucket = int(hashlib.md5(token.encode("utf-8")).hexdigest(), 16) % self.dimension
            vector[bucket] += 1.0
        return vector

    def embed_texts(self, texts):
        texts = list(texts)
        self.calls.append(texts)
        return [self._vector(text) for text in texts]

    def embed_query(self, text):
        return self.embed_texts([text])[0]


class ScriptedChat:
    """Chat service replaying scripted outcomes.

    Each outcome is a string to return, an exception to raise or a
    callable invoked in place of the call.  Once the script runs out
    ``default`` is returned.
    """

    def __init__(self, *outcomes, default="Scripted answer."):
        self.outcomes = list(outcomes)
        self.default = default
        self.calls = []

    def generate(self, system_prompt, user_prompt):
        self.calls.append((system_prompt, user_prompt))
        if not self.outcomes:
            return self.default
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return outcome()
        return outcome


class RecordingSleep:
    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)


def make_document(topic, sentences=20):
    """Build a multi-sentence document about ``topic``."""
    return " ".join(
        f"The {topic} module handles request number {i} with careful validation."
        for i in range(sentences)
    )


@pytest.fixture
def embedder():
    return BagOfWordsEmbedder()


@pytest.fixture
def chat():
    return ScriptedChat()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def store():
    return LocalVectorStore()


@pytest.fixture
def config():
    return RAGConfig(
        store=StoreSettings(collection_name="test-docs", vector_size=DIMENSION),
        retry=RetryPolicy(max_attempts=5, base_delay=0.0),
    )


@pytest.fixture
def cancel_event():
    return threading.Event()
