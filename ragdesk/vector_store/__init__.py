"""Vector index adapters and factory."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from ragdesk.config import config
from ragdesk.exceptions import InvalidConfigError

from .base import VectorIndex, validate_query_params
from .faiss_store import FaissVectorIndex
from .memory_store import InMemoryVectorIndex

if TYPE_CHECKING:
    from pathlib import Path

VectorBackend = Literal["memory", "faiss"]


def get_vector_index(
    backend: VectorBackend | str = "memory",
    *,
    index_path: Path | None = None,
) -> InMemoryVectorIndex | FaissVectorIndex:
    """Return a configured, empty vector index instance.

    Raises:
        InvalidConfigError: If an unsupported backend is requested.
    """
    name = backend.lower()

    if name == "memory":
        return InMemoryVectorIndex()

    if name == "faiss":
        return FaissVectorIndex(
            index_path=index_path if index_path is not None else config.FAISS_INDEX_PATH
        )

    msg = f"Unsupported vector store backend: {backend}"
    raise InvalidConfigError(msg)


__all__ = [
    "FaissVectorIndex",
    "InMemoryVectorIndex",
    "VectorBackend",
    "VectorIndex",
    "get_vector_index",
    "validate_query_params",
]
