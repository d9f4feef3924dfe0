"""
Grounded Document Question Answering
====================================

This package implements a small retrieval-augmented generation pipeline.
Documents are split into overlapping, sentence-aligned chunks, embedded
and stored in a vector collection.  Questions are embedded the same way,
the most similar chunks are retrieved, and a chat model is asked to
answer using only those chunks.

Modules
-------

- :mod:`chunking`: Sentence-aware splitting with a character budget and
  an overlap carried between consecutive chunks.
- :mod:`embedding`: A wrapper around OpenAI's embedding API that converts
  text into dense vectors.
- :mod:`generation`: A wrapper around OpenAI's chat completion API.
- :mod:`vector_store`: A numpy-backed cosine-similarity store with
  optional on-disk persistence.
- :mod:`parsing`: Plain-text extraction from text, Markdown, HTML, PDF
  and DOCX files.
- :mod:`ingestion`, :mod:`retrieval`, :mod:`synthesis`: The three
  pipeline stages.  Answer synthesis retries throttled calls with an
  exponential backoff.
- :mod:`admin`: Collection housekeeping.
- :mod:`main`: A high level interface exposing simple functions to
  initialise the pipeline, ingest documents and ask questions.

Example
-------

>>> from rag_pipeline.main import initialise_rag, ingest_text, answer_question
>>> client = initialise_rag()
>>> ingest_text(client, open('notes.txt').read(), 'notes.txt')
>>> result = answer_question(client, 'How do I install Python?')
>>> print(result.answer)
>>> for source in result.sources:
...     print(source.source_document, source.score)

See the docstrings in individual modules for more details.
"""

from .chunking import TextChunker, chunk_text
from .config import RAGConfig
from .embedding import OpenAIEmbeddingModel
from .generation import OpenAIChatModel
from .main import RAGClient, answer_question, ingest_text, initialise_rag
from .models import IngestResult, QueryResult, RetrievedContext
from .parsing import DocumentParser
from .vector_store import LocalVectorStore
