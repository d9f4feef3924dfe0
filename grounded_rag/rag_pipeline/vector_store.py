"""
vector_store.py
---------------

The vector store capability and a local numpy-backed implementation.

:class:`VectorStore` describes what the pipelines need from a store:
named collections with a fixed dimension, upsert, nearest-neighbour
search with a minimum score, scrolling and deletion by id.

:class:`LocalVectorStore` keeps each collection as an ``(N, D)`` float32
matrix with a parallel list of ids and payloads, and ranks by cosine
similarity using scikit-learn.  When a ``directory`` is given every
collection is saved there (``collection.json`` plus ``vectors.npy``)
after each change and reloaded on start-up.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity

from .exceptions import CollectionNotFoundError, DimensionMismatchError
from .models import CollectionInfo, SearchHit, StoredVectorRecord

logger = logging.getLogger(__name__)

COSINE = "cosine"
_METADATA_FILE = "collection.json"
_VECTORS_FILE = "vectors.npy"


class VectorStore(Protocol):
    def list_collections(self) -> List[str]:
        ...

    def create_collection(self, name: str, dimension: int, metric: str = COSINE) -> None:
        ...

    def delete_collection(self, name: str) -> bool:
        ...

    def collection_info(self, name: str) -> CollectionInfo:
        ...

    def upsert(self, name: str, records: Sequence[StoredVectorRecord]) -> None:
        ...

    def search(
        self,
        name: str,
        vector: Sequence[float],
        top_k: int,
        score_threshold: Optional[float] = None,
    ) -> List[SearchHit]:
        ...

    def scroll(self, name: str, limit: int) -> List[StoredVectorRecord]:
        ...

    def delete(self, name: str, ids: Sequence[str]) -> int:
        ...


@dataclass
class _Collection:
    dimension: int
    metric: str = COSINE
    ids: List[str] = field(default_factory=list)
    payloads: List[Dict[str, Any]] = field(default_factory=list)
    vectors: np.ndarray = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if self.vectors is None:
            self.vectors = np.zeros((0, self.dimension), dtype="float32")


class LocalVectorStore:
    """In-process vector store with optional on-disk persistence.

    Parameters
    ----------
    directory : str, optional
        Where collections are saved.  If omitted the store lives in
        memory only.
    """

    def __init__(self, directory: Optional[str] = None) -> None:
        self.directory = directory
        self._collections: Dict[str, _Collection] = {}
        self._lock = threading.RLock()
        if self.directory:
            os.makedirs(self.directory, exist_ok=True)
            self._load_all()

    # -- persistence -------------------------------------------------

    def _collection_dir(self, name: str) -> str:
        return os.path.join(self.directory, name)

    def _load_all(self) -> None:
        for entry in sorted(os.listdir(self.directory)):
            meta_path = os.path.join(self.directory, entry, _METADATA_FILE)
            if not os.path.isfile(meta_path):
                continue
            try:
                self._collections[entry] = self._load_collection(entry)
            except (OSError, ValueError, KeyError) as exc:
                logger.warning("Skipping unreadable collection %s: %s", entry, exc)
        logger.info(
            "Loaded %d collection(s) from %s", len(self._collections), self.directory
        )

    def _load_collection(self, name: str) -> _Collection:
        base = self._collection_dir(name)
        with open(os.path.join(base, _METADATA_FILE), "r", encoding="utf-8") as fh:
            meta = json.load(fh)
        collection = _Collection(dimension=int(meta["dimension"]), metric=meta.get("metric", COSINE))
        records = meta.get("records", [])
        collection.ids = [str(item["id"]) for item in records]
        collection.payloads = [dict(item.get("payload", {})) for item in records]
        vectors_path = os.path.join(base, _VECTORS_FILE)
        if records and os.path.exists(vectors_path):
            vectors = np.load(vectors_path).astype("float32")
            if vectors.shape != (len(records), collection.dimension):
                raise ValueError(f"vectors.npy shape {vectors.shape} does not match metadata")
            collection.vectors = vectors
        elif records:
            raise ValueError("vectors.npy is missing")
        return collection

    def _save(self, name: str) -> None:
        if not self.directory:
            return
        collection = self._collections[name]
        base = self._collection_dir(name)
        os.makedirs(base, exist_ok=True)
        payload = {
            "dimension": collection.dimension,
            "metric": collection.metric,
            "records": [
                {"id": record_id, "payload": record_payload}
                for record_id, record_payload in zip(collection.ids, collection.payloads)
            ],
        }
        with open(os.path.join(base, _METADATA_FILE), "w", encoding="utf-8") as fh:
            json.dump(payload, fh)
        np.save(os.path.join(base, _VECTORS_FILE), collection.vectors)

    def _get(self, name: str) -> _Collection:
        try:
            return self._collections[name]
        except KeyError:
            raise CollectionNotFoundError(name) from None

    # -- collection lifecycle ----------------------------------------

    def list_collections(self) -> List[str]:
        with self._lock:
            return sorted(self._collections)

    def create_collection(self, name: str, dimension: int, metric: str = COSINE) -> None:
        if metric != COSINE:
            raise ValueError(f"Unsupported distance metric: {metric}")
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        with self._lock:
            if name in self._collections:
                raise ValueError(f"Collection already exists: {name}")
            self._collections[name] = _Collection(dimension=dimension, metric=metric)
            self._save(name)

    def delete_collection(self, name: str) -> bool:
        """Drop a collection; returns ``False`` if it did not exist."""
        with self._lock:
            existed = self._collections.pop(name, None) is not None
            if self.directory:
                shutil.rmtree(self._collection_dir(name), ignore_errors=True)
            return existed

    def collection_info(self, name: str) -> CollectionInfo:
        with self._lock:
            collection = self._get(name)
            return CollectionInfo(point_count=len(collection.ids), dimension=collection.dimension)

    # -- records -----------------------------------------------------

    def upsert(self, name: str, records: Sequence[StoredVectorRecord]) -> None:
        """Insert records, replacing any existing record with the same id.

        Raises
        ------
        DimensionMismatchError
            If any vector's length differs from the collection dimension.
            Nothing is written in that case.
        """
        with self._lock:
            collection = self._get(name)
            for record in records:
                if len(record.vector) != collection.dimension:
                    raise DimensionMismatchError(collection.dimension, len(record.vector))
            if not records:
                return
            # A repeated id within one batch keeps its last record.
            batch: Dict[str, StoredVectorRecord] = {}
            for record in records:
                batch[record.id] = record
            positions = {record_id: i for i, record_id in enumerate(collection.ids)}
            new_rows: List[Sequence[float]] = []
            for record in batch.values():
                row = np.asarray(record.vector, dtype="float32")
                existing = positions.get(record.id)
                if existing is not None:
                    collection.vectors[existing] = row
                    collection.payloads[existing] = dict(record.payload)
                    continue
                positions[record.id] = len(collection.ids)
                collection.ids.append(record.id)
                collection.payloads.append(dict(record.payload))
                new_rows.append(row)
            if new_rows:
                collection.vectors = np.vstack([collection.vectors, np.array(new_rows, dtype="float32")])
            self._save(name)

    def search(
        self,
        name: str,
        vector: Sequence[float],
        top_k: int,
        score_threshold: Optional[float] = None,
    ) -> List[SearchHit]:
        """Return up to ``top_k`` hits by descending cosine similarity.

        Hits scoring below ``score_threshold`` are left out.
        """
        with self._lock:
            collection = self._get(name)
            if len(vector) != collection.dimension:
                raise DimensionMismatchError(collection.dimension, len(vector))
            if top_k <= 0 or not collection.ids:
                return []
            query = np.asarray(vector, dtype="float32").reshape(1, -1)
            scores = cosine_similarity(query, collection.vectors)[0]
            ranked = np.argsort(-scores, kind="stable")
            hits: List[SearchHit] = []
            for idx in ranked:
                score = float(scores[idx])
                if score_threshold is not None and score < score_threshold:
                    break
                hits.append(
                    SearchHit(
                        id=collection.ids[idx],
                        score=score,
                        payload=dict(collection.payloads[idx]),
                    )
                )
                if len(hits) >= top_k:
                    break
            return hits

    def scroll(self, name: str, limit: int) -> List[StoredVectorRecord]:
        """Return up to ``limit`` records in insertion order."""
        with self._lock:
            collection = self._get(name)
            count = max(0, min(limit, len(collection.ids)))
            return [
                StoredVectorRecord(
                    id=collection.ids[i],
                    vector=collection.vectors[i].tolist(),
                    payload=dict(collection.payloads[i]),
                )
                for i in range(count)
            ]

    def delete(self, name: str, ids: Sequence[str]) -> int:
        """Delete records by id and return how many were removed."""
        with self._lock:
            collection = self._get(name)
            doomed = set(ids)
            keep = [i for i, record_id in enumerate(collection.ids) if record_id not in doomed]
            removed = len(collection.ids) - len(keep)
            if removed:
                collection.ids = [collection.ids[i] for i in keep]
                collection.payloads = [collection.payloads[i] for i in keep]
                collection.vectors = collection.vectors[keep] if keep else np.zeros(
                    (0, collection.dimension), dtype="float32"
                )
                self._save(name)
            return removed
