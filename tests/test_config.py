"""Tests for configuration defaults and environment parsing."""

import os

import pytest

from rag_pipeline.config import RAGConfig


def test_defaults():
    config = RAGConfig()

    assert config.store.collection_name == "documents"
    assert config.store.vector_size == 1536
    assert (config.chunking.max_chunk_size, config.chunking.chunk_overlap) == (500, 100)
    assert config.chunking.min_chunk_length == 50
    assert config.retrieval.score_threshold == 0.3
    assert config.retrieval.default_top_k == 3
    assert (config.retry.max_attempts, config.retry.base_delay) == (5, 4.0)


def test_from_env_with_empty_mapping_uses_defaults():
    assert RAGConfig.from_env({}) == RAGConfig()


def test_from_env_reads_variables():
    config = RAGConfig.from_env(
        {
            "RAG_COLLECTION_NAME": "kb",
            "RAG_VECTOR_SIZE": "768",
            "RAG_STORE_DIR": "/tmp/store",
            "RAG_EMBEDDING_MODEL": "nomic-embed-text",
            "RAG_CHAT_MODEL": "llama3",
            "RAG_MAX_CHUNK_SIZE": "800",
            "RAG_CHUNK_OVERLAP": "80",
            "RAG_MIN_CHUNK_LENGTH": "20",
            "RAG_SCORE_THRESHOLD": "0.5",
            "RAG_TOP_K": "7",
            "RAG_RETRY_ATTEMPTS": "2",
            "RAG_RETRY_BASE_DELAY": "1.5",
            "RAG_TEMPERATURE": "0",
            "RAG_MAX_TOKENS": "256",
            "OPENAI_API_KEY": "sk-test",
            "OPENAI_BASE_URL": "http://localhost:11434/v1",
        }
    )

    assert config.store.collection_name == "kb"
    assert config.store.vector_size == 768
    assert config.store.persist_directory == "/tmp/store"
    assert config.models.embedding_model == "nomic-embed-text"
    assert config.models.chat_model == "llama3"
    assert config.models.temperature == 0.0
    assert config.models.max_tokens == 256
    assert config.models.api_key == "sk-test"
    assert config.models.base_url == "http://localhost:11434/v1"
    assert (config.chunking.max_chunk_size, config.chunking.chunk_overlap) == (800, 80)
    assert config.chunking.min_chunk_length == 20
    assert config.retrieval.score_threshold == 0.5
    assert config.retrieval.default_top_k == 7
    assert (config.retry.max_attempts, config.retry.base_delay) == (2, 1.5)


def test_blank_values_fall_back_to_defaults():
    config = RAGConfig.from_env({"RAG_VECTOR_SIZE": "  ", "RAG_STORE_DIR": ""})

    assert config.store.vector_size == 1536
    assert config.store.persist_directory is None


def test_invalid_number_names_the_variable():
    with pytest.raises(ValueError, match="RAG_VECTOR_SIZE"):
        RAGConfig.from_env({"RAG_VECTOR_SIZE": "large"})


@pytest.mark.parametrize(
    "name,value",
    [
        ("RAG_VECTOR_SIZE", "0"),
        ("RAG_MAX_CHUNK_SIZE", "-1"),
        ("RAG_CHUNK_OVERLAP", "-5"),
        ("RAG_RETRY_ATTEMPTS", "0"),
        ("RAG_RETRY_BASE_DELAY", "-1"),
    ],
)
def test_out_of_range_values_are_rejected(name, value):
    with pytest.raises(ValueError):
        RAGConfig.from_env({name: value})


def test_from_env_loads_env_file(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("RAG_COLLECTION_NAME=from-file\n", encoding="utf-8")
    monkeypatch.delenv("RAG_COLLECTION_NAME", raising=False)

    config = RAGConfig.from_env(env_file=str(env_file))

    assert config.store.collection_name == "from-file"
    os.environ.pop("RAG_COLLECTION_NAME", None)
