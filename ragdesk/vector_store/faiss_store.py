"""FAISS-backed vector index with a JSON segment sidecar."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path

import faiss
import numpy as np

from ragdesk.config import config
from ragdesk.exceptions import VectorIndexError
from ragdesk.models import IndexEntry, RetrievalResult, Segment
from ragdesk.vector_store.base import VectorIndex, validate_query_params

logger = config.get_logger(__name__)

# range_search keeps strictly greater scores; widen the radius so that
# scores equal to min_score survive and are filtered exactly afterwards
SCORE_EPSILON = 1e-6


class FaissVectorIndex(VectorIndex):
    """Vector index using a flat FAISS inner-product index over normalized vectors.

    FAISS ids are insertion positions, so ordering ties by id is ordering
    them by insertion.
    """

    backend = "faiss"

    def __init__(self, index_path: Path | None = None) -> None:
        """Configure FAISS-backed vector index.

        Args:
            index_path: Where ``save``/``load`` keep the FAISS index. The segment
                sidecar lives next to it with a ``.json`` suffix.
        """
        super().__init__()
        self.index_path = Path(index_path) if index_path is not None else None
        self.index: faiss.IndexFlatIP | None = None
        self._entries: list[IndexEntry] = []

    @property
    def segments_path(self) -> Path | None:
        if self.index_path is None:
            return None
        return self.index_path.with_suffix(".json")

    def _init_index(self, dimension: int) -> None:
        """Initialize FAISS index if missing."""
        self.index = faiss.IndexFlatIP(dimension)
        logger.info("Initialized FAISS IndexFlatIP with dimension %d", dimension)

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
            if self.index is None:
                self._init_index(normalized.shape[0])
            self.index.add(normalized.reshape(1, -1))
            self._entries.append(entry)

    def query(
        self,
        query_embedding: np.ndarray,
        k: int,
        min_score: float,
    ) -> RetrievalResult:
        """Search similar segments using FAISS range search.

        Returns:
            Ranked list of (Segment, score) tuples, possibly empty.
        """
        validate_query_params(k, min_score)
        normalized_query = self._normalize_embedding(query_embedding)

        with self._lock:
            index = self.index
            if index is None or index.ntotal == 0:
                return []
            self._check_dimension(normalized_query)
            lims, scores, vector_ids = index.range_search(
                normalized_query.reshape(1, -1),
                float(min_score) - SCORE_EPSILON,
            )
            entries = list(self._entries)

        hits = sorted(
            (
                (float(score), int(vector_id))
                for score, vector_id in zip(
                    scores[lims[0] : lims[1]],
                    vector_ids[lims[0] : lims[1]],
                    strict=True,
                )
                if float(score) >= min_score
            ),
            key=lambda hit: (-hit[0], hit[1]),
        )
        return [(entries[vector_id].segment, score) for score, vector_id in hits[:k]]

    def entries(self) -> list[IndexEntry]:
        with self._lock:
            return list(self._entries)

    def clear(self) -> None:
        with self._lock:
            self.index = None
            self._entries = []
            self._dimension = None
        logger.info("Cleared FAISS vector index")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def save(self) -> None:
        """Persist FAISS index and segments to disk.

        Raises:
            VectorIndexError: If no index path was configured.
        """
        if self.index_path is None or self.segments_path is None:
            msg = "FaissVectorIndex.save() requires an index_path"
            raise VectorIndexError(msg)

        with self._lock:
            index = self.index
            if index is None:
                logger.warning("No FAISS index to save")
                return
            records = [
                {
                    "text": entry.segment.text,
                    "metadata": entry.segment.metadata,
                    "start": entry.segment.start,
                    "end": entry.segment.end,
                }
                for entry in self._entries
            ]
            self.index_path.parent.mkdir(exist_ok=True, parents=True)
            faiss.write_index(index, str(self.index_path))
            self.segments_path.write_text(
                json.dumps(records, ensure_ascii=False), encoding="utf-8"
            )
        logger.info(
            "Saved FAISS index with %d vectors to %s", len(records), self.index_path
        )

    def load(self) -> None:
        """Load the FAISS index and segments from disk.

        Loaded entries carry the normalized vectors reconstructed from FAISS.

        Raises:
            VectorIndexError: If the index and the segment sidecar disagree.
        """
        if (
            self.index_path is None
            or self.segments_path is None
            or not self.index_path.exists()
            or not self.segments_path.exists()
        ):
            logger.warning(
                "FAISS index not found at %s. Start with an empty index.",
                self.index_path,
            )
            return

        loaded_index = faiss.read_index(str(self.index_path))
        records = json.loads(self.segments_path.read_text(encoding="utf-8"))
        if loaded_index.ntotal != len(records):
            msg = (
                f"FAISS index holds {loaded_index.ntotal} vectors but "
                f"{self.segments_path} describes {len(records)} segments"
            )
            raise VectorIndexError(msg)

        vectors = (
            loaded_index.reconstruct_n(0, loaded_index.ntotal)
            if loaded_index.ntotal
            else np.empty((0, loaded_index.d), dtype=np.float32)
        )
        entries = []
        for record, vector in zip(records, vectors, strict=True):
            segment = Segment(
                text=record["text"],
                metadata=dict(record["metadata"]),
                start=int(record.get("start", 0)),
                end=int(record.get("end", 0)),
            )
            entries.append(self._build_entry(vector, segment, None))

        with self._lock:
            self.index = loaded_index
            self._entries = entries
            self._dimension = int(loaded_index.d)
        logger.info(
            "Loaded FAISS index from %s with %d vectors",
            self.index_path,
            loaded_index.ntotal,
        )
