"""In-memory vector index backed by numpy."""

from __future__ import annotations

from collections.abc import Mapping

import numpy as np

from ragdesk.config import config
from ragdesk.models import IndexEntry, RetrievalResult, Segment
from ragdesk.vector_store.base import VectorIndex, validate_query_params

logger = config.get_logger(__name__)


class InMemoryVectorIndex(VectorIndex):
    """Exhaustive cosine search over normalized vectors kept in process memory."""

    backend = "memory"

    def __init__(self) -> None:
        super().__init__()
        self._entries: list[IndexEntry] = []
        self._vectors: list[np.ndarray] = []
        self._matrix: np.ndarray | None = None

    def insert(
        self,
        embedding: np.ndarray,
        segment: Segment,
        metadata: Mapping[str, str] | None = None,
    ) -> None:
        entry = self._build_entry(embedding, segment, metadata)
        normalized = self._normalize_embedding(entry.embedding)
        with self._lock:
            self._check_dimension(normalized)
            self._entries.append(entry)
            self._vectors.append(normalized)
            self._matrix = None

    def query(
        self,
        query_embedding: np.ndarray,
        k: int,
        min_score: float,
    ) -> RetrievalResult:
        """Rank stored segments against ``query_embedding``.

        Returns:
            Ranked list of (Segment, score) tuples, possibly empty.
        """
        validate_query_params(k, min_score)
        normalized_query = self._normalize_embedding(query_embedding)

        with self._lock:
            if not self._entries:
                return []
            self._check_dimension(normalized_query)
            if self._matrix is None:
                self._matrix = np.vstack(self._vectors)
            scores = self._matrix @ normalized_query
            entries = list(self._entries)

        # stable sort keeps insertion order among equal scores
        order = np.argsort(-scores, kind="stable")
        results: RetrievalResult = []
        for position in order:
            score = float(scores[position])
            if score < min_score or len(results) == k:
                break
            results.append((entries[position].segment, score))
        return results

    def entries(self) -> list[IndexEntry]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries = []
            self._vectors = []
            self._matrix = None
            self._dimension = None
        logger.info("Cleared in-memory vector index")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
