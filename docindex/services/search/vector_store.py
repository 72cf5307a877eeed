"""Hash-projection embeddings and a flat, file-backed vector store.

The embedding is a bag-of-words projection: each whitespace token is hashed
into one of ``dimension`` buckets, the bucket accumulates the token's term
frequency and the vector is L2-normalised. It is deterministic and needs no
model, at the cost of bucket collisions.

Search is a linear cosine scan over every stored vector. An approximate
nearest-neighbour index would replace ``search`` if the corpus outgrew a
single user's documents.
"""

import json
import logging
import os
import threading
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np

from docindex.core.config import settings

logger = logging.getLogger(__name__)


def string_hash(token: str) -> int:
    """Rolling ``hash * 31 + code`` string hash wrapped to a signed 32-bit int."""
    value = 0
    for char in token:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    return value - 0x100000000 if value >= 0x80000000 else value


def text_to_vector(text: str, dimension: int = 384) -> np.ndarray:
    words = (text or "").lower().split()
    vector = np.zeros(dimension, dtype=np.float64)
    if not words:
        return vector

    total = len(words)
    for word, freq in Counter(words).items():
        vector[abs(string_hash(word)) % dimension] += freq / total

    norm = np.linalg.norm(vector)
    if norm > 0:
        vector /= norm
    return vector


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    if a.shape != b.shape:
        raise ValueError("Vectors must have the same dimension")
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


@dataclass
class VectorEntry:
    id: str
    vector: np.ndarray
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SemanticHit:
    id: str
    score: float
    metadata: Dict[str, Any]


class VectorStore:
    """Flat id -> vector collection persisted as one JSON file.

    Adding an id that already exists replaces its entry in place.
    """

    def __init__(self, path: Optional[str] = None, dimension: Optional[int] = None):
        self.path = path or settings.VECTOR_STORE_PATH
        self.dimension = dimension or settings.VECTOR_DIMENSION
        self._entries: Dict[str, VectorEntry] = {}
        self._lock = threading.RLock()
        self._loaded = False

    def load(self) -> None:
        with self._lock:
            self._entries = {}
            if self.path and os.path.exists(self.path):
                try:
                    with open(self.path, "r", encoding="utf-8") as f:
                        data = json.load(f)
                except (OSError, ValueError) as e:
                    logger.error(f"Vector store at {self.path} is unreadable, starting empty: {e}")
                    data = {}

                try:
                    self._entries = self._parse_entries(data)
                except (KeyError, TypeError, AttributeError, ValueError) as e:
                    logger.error(f"Vector store at {self.path} is malformed, starting empty: {e!r}")
            self._loaded = True
            logger.info(f"Loaded {len(self._entries)} vectors from {self.path}")

    def _parse_entries(self, data: Dict[str, Any]) -> Dict[str, VectorEntry]:
        stored_dimension = data.get("dimension", self.dimension)
        if stored_dimension != self.dimension:
            logger.warning(
                f"Vector store dimension {stored_dimension} differs from configured "
                f"{self.dimension}, discarding stored vectors"
            )
            return {}

        entries = {}
        for item in data.get("vectors", []):
            vector = np.asarray(item["vector"], dtype=np.float64)
            if vector.shape != (self.dimension,):
                raise ValueError(f"vector for {item['id']} has shape {vector.shape}")
            entries[item["id"]] = VectorEntry(id=item["id"], vector=vector, metadata=item.get("metadata") or {})
        return entries

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def save(self) -> None:
        if not self.path:
            return
        with self._lock:
            payload = {
                "vectors": [
                    {"id": e.id, "vector": e.vector.tolist(), "metadata": e.metadata}
                    for e in self._entries.values()
                ],
                "dimension": self.dimension,
            }
            os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
            tmp_path = f"{self.path}.tmp"
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)

    def add(self, doc_id: str, text: str, metadata: Optional[Dict[str, Any]] = None, persist: bool = True) -> None:
        with self._lock:
            self._ensure_loaded()
            self._entries[doc_id] = VectorEntry(
                id=doc_id,
                vector=text_to_vector(text, self.dimension),
                metadata=dict(metadata or {}),
            )
            if persist:
                self.save()

    def add_many(self, items: Iterable[Tuple[str, str, Optional[Dict[str, Any]]]]) -> int:
        count = 0
        with self._lock:
            for doc_id, text, metadata in items:
                self.add(doc_id, text, metadata, persist=False)
                count += 1
            self.save()
        return count

    def remove(self, doc_id: str) -> bool:
        with self._lock:
            self._ensure_loaded()
            removed = self._entries.pop(doc_id, None) is not None
            if removed:
                self.save()
            return removed

    def clear(self) -> None:
        with self._lock:
            self._entries = {}
            self._loaded = True
            self.save()

    def __contains__(self, doc_id: str) -> bool:
        with self._lock:
            self._ensure_loaded()
            return doc_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            self._ensure_loaded()
            return len(self._entries)

    def search(self, query: str, limit: int = 10, threshold: Optional[float] = None) -> List[SemanticHit]:
        """Return up to ``limit`` entries whose cosine similarity clears ``threshold``."""
        threshold = settings.SEMANTIC_SIMILARITY_THRESHOLD if threshold is None else threshold
        query_vector = text_to_vector(query, self.dimension)
        with self._lock:
            self._ensure_loaded()
            entries = list(self._entries.values())

        hits = []
        for entry in entries:
            score = cosine_similarity(query_vector, entry.vector)
            if score >= threshold:
                hits.append(SemanticHit(id=entry.id, score=score, metadata=entry.metadata))
        hits.sort(key=lambda h: h.score, reverse=True)
        return hits[:limit]

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            self._ensure_loaded()
            return {"count": len(self._entries), "dimension": self.dimension, "path": self.path}


_vector_store: Optional[VectorStore] = None
_vector_store_lock = threading.Lock()


def get_vector_store() -> VectorStore:
    """Get the process-wide vector store."""
    global _vector_store
    with _vector_store_lock:
        if _vector_store is None:
            _vector_store = VectorStore()
        return _vector_store
