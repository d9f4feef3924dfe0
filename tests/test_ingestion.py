"""Tests for document ingestion."""

import logging
import uuid
from datetime import datetime
from unittest.mock import MagicMock

import pytest

from conftest import BagOfWordsEmbedder, make_document
from rag_pipeline.exceptions import DimensionMismatchError, EmbeddingError
from rag_pipeline.ingestion import NO_CHUNKS_MESSAGE, IngestionPipeline, build_records
from rag_pipeline.models import Chunk


@pytest.fixture
def pipeline(config, embedder, store):
    return IngestionPipeline(config, embedder, store)


class TestBuildRecords:
    def test_pairs_chunks_with_vectors(self):
        chunks = [Chunk("first chunk", "a.txt", 0), Chunk("second chunk", "a.txt", 1)]

        records = build_records(chunks, [[1.0, 0.0], [0.0, 1.0]], 2)

        assert [record.vector for record in records] == [[1.0, 0.0], [0.0, 1.0]]
        assert records[1].payload["content"] == "second chunk"
        assert records[1].payload["sourceDocument"] == "a.txt"
        assert records[1].payload["chunkIndex"] == 1
        assert len({record.id for record in records}) == 2

    def test_count_mismatch_raises(self):
        with pytest.raises(EmbeddingError):
            build_records([Chunk("only", "a.txt", 0)], [], 2)

    def test_dimension_mismatch_raises(self):
        with pytest.raises(DimensionMismatchError):
            build_records([Chunk("only", "a.txt", 0)], [[1.0, 2.0, 3.0]], 2)


class TestIngest:
    def test_long_document_is_chunked_and_stored(self, pipeline, config, store, embedder):
        result = pipeline.ingest(make_document("billing"), "billing.txt")

        assert result.success is True
        assert result.chunks_created > 1
        assert result.message == f"Successfully ingested 'billing.txt' into {result.chunks_created} chunks"
        assert len(embedder.calls) == 1
        assert len(embedder.calls[0]) == result.chunks_created

        records = store.scroll(config.store.collection_name, 100)
        assert len(records) == result.chunks_created
        assert [record.payload["chunkIndex"] for record in records] == list(range(result.chunks_created))
        for record in records:
            uuid.UUID(record.id)
            assert record.payload["sourceDocument"] == "billing.txt"
            assert len(record.vector) == config.store.vector_size
            datetime.fromisoformat(record.payload["createdAt"])

    def test_collection_is_created_on_demand(self, pipeline, config, store):
        assert store.list_collections() == []

        pipeline.ingest(make_document("search"), "search.txt")

        assert store.list_collections() == [config.store.collection_name]
        assert store.collection_info(config.store.collection_name).dimension == config.store.vector_size

    def test_second_ingest_appends(self, pipeline, config, store):
        first = pipeline.ingest(make_document("alpha"), "alpha.txt")
        second = pipeline.ingest(make_document("beta"), "beta.txt")

        count = store.collection_info(config.store.collection_name).point_count
        assert count == first.chunks_created + second.chunks_created

    @pytest.mark.parametrize("content", ["", "   ", "Too short.", None])
    def test_no_chunks_is_reported_without_embedding(self, pipeline, embedder, content):
        result = pipeline.ingest(content, "empty.txt")

        assert result.success is False
        assert result.message == NO_CHUNKS_MESSAGE
        assert result.chunks_created == 0
        assert embedder.calls == []

    def test_embedding_failure_is_reported(self, config, store):
        embedder = MagicMock()
        embedder.embed_texts.side_effect = EmbeddingError("service unavailable")
        pipeline = IngestionPipeline(config, embedder, store)

        result = pipeline.ingest(make_document("billing"), "billing.txt")

        assert result.success is False
        assert result.chunks_created == 0
        assert result.message == "Failed to ingest document: service unavailable"
        assert store.collection_info(config.store.collection_name).point_count == 0

    def test_failure_log_names_the_stage(self, config, store, caplog):
        embedder = MagicMock()
        embedder.embed_texts.side_effect = EmbeddingError("service unavailable")
        pipeline = IngestionPipeline(config, embedder, store)

        with caplog.at_level(logging.ERROR, logger="rag_pipeline.ingestion"):
            pipeline.ingest(make_document("billing"), "billing.txt")

        assert "Failed to ingest document billing.txt (stage: embedding)" in caplog.text

    def test_wrong_dimension_writes_nothing(self, config, store):
        pipeline = IngestionPipeline(config, BagOfWordsEmbedder(dimension=8), store)

        result = pipeline.ingest(make_document("billing"), "billing.txt")

        assert result.success is False
        assert result.message.startswith("Failed to ingest document: Vector dimension mismatch")
        assert store.collection_info(config.store.collection_name).point_count == 0

    def test_store_failure_is_reported(self, config, embedder):
        store = MagicMock()
        store.list_collections.return_value = [config.store.collection_name]
        store.upsert.side_effect = RuntimeError("disk full")
        pipeline = IngestionPipeline(config, embedder, store)

        result = pipeline.ingest(make_document("billing"), "billing.txt")

        assert result.success is False
        assert result.message == "Failed to ingest document: disk full"
        store.upsert.assert_called_once()

    def test_to_dict_shape(self, pipeline):
        result = pipeline.ingest(make_document("billing"), "billing.txt")

        assert result.to_dict() == {
            "success": True,
            "message": result.message,
            "chunksCreated": result.chunks_created,
        }
