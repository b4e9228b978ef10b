"""Shared contract and helpers for vector indexes."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import replace

import numpy as np

from ragdesk.config import config
from ragdesk.exceptions import InvalidConfigError, VectorIndexError
from ragdesk.models import IndexEntry, RetrievalResult, Segment

logger = config.get_logger(__name__)


class VectorIndex(ABC):
    """Stores (embedding, segment, metadata) entries and answers cosine queries.

    Inserts are additive (no deduplication). Queries rank by descending cosine
    similarity, break ties by insertion order, and drop entries scoring below
    ``min_score``. Each operation holds the index lock for its in-memory work
    only, so a query observes an insert either completely or not at all.
    """

    backend: str = "base"

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._dimension: int | None = None

    @property
    def dimension(self) -> int | None:
        """Dimensionality shared by every stored embedding, None while empty."""
        return self._dimension

    @abstractmethod
    def insert(
        self,
        embedding: np.ndarray,
        segment: Segment,
        metadata: Mapping[str, str] | None = None,
    ) -> None:
        """Store one embedding with its segment."""

    @abstractmethod
    def query(
        self,
        query_embedding: np.ndarray,
        k: int,
        min_score: float,
    ) -> RetrievalResult:
        """Return up to ``k`` segments scoring at least ``min_score``."""

    @abstractmethod
    def entries(self) -> list[IndexEntry]:
        """Snapshot of stored entries in insertion order."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry."""

    @abstractmethod
    def __len__(self) -> int: ...

    @staticmethod
    def _build_entry(
        embedding: np.ndarray,
        segment: Segment,
        metadata: Mapping[str, str] | None,
    ) -> IndexEntry:
        """Freeze a copy of the embedding and attach the entry metadata.

        Returns:
            IndexEntry owning a read-only embedding.

        Raises:
            VectorIndexError: If the embedding is not a non-empty 1-D vector.
        """
        vector = np.array(embedding, dtype=np.float32).reshape(-1)
        if vector.size == 0:
            msg = "Cannot insert an empty embedding"
            raise VectorIndexError(msg)
        vector.flags.writeable = False
        if metadata is not None:
            segment = replace(segment, metadata=dict(metadata))
        return IndexEntry(embedding=vector, segment=segment)

    @staticmethod
    def _normalize_embedding(embedding: np.ndarray) -> np.ndarray:
        """Normalize embedding for cosine similarity using inner product search.

        Returns:
            Normalized float32 vector; zero vectors are returned unchanged.
        """
        vector = np.asarray(embedding, dtype=np.float32).reshape(-1)
        norm = np.linalg.norm(vector)
        if norm == 0:
            return vector
        return vector / norm

    def _check_dimension(self, vector: np.ndarray) -> None:
        """Fix the index dimensionality on first insert and enforce it afterwards.

        Raises:
            VectorIndexError: If ``vector`` does not match the index dimension.
        """
        if self._dimension is None:
            self._dimension = int(vector.shape[0])
            logger.info(
                "Initialized %s index with dimension %d", self.backend, self._dimension
            )
        elif vector.shape[0] != self._dimension:
            msg = (
                f"Embedding dimension {vector.shape[0]} does not match "
                f"index dimension {self._dimension}"
            )
            raise VectorIndexError(msg)


def validate_query_params(k: int, min_score: float) -> None:
    """Reject retrieval parameters that cannot produce a meaningful result.

    Raises:
        InvalidConfigError: If ``k`` is below 1 or ``min_score`` is outside
            the cosine range.
    """
    if k < 1:
        msg = f"k must be at least 1, got {k}"
        raise InvalidConfigError(msg)
    if not -1.0 <= min_score <= 1.0:
        msg = f"min_score must be within [-1, 1], got {min_score}"
        raise InvalidConfigError(msg)
