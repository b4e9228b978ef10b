"""Similarity retrieval over the vector index."""

from .config import config
from .embeddings import Embedder
from .models import RetrievalResult
from .vector_store import VectorIndex, validate_query_params

logger = config.get_logger(__name__)


class Retriever:
    """Embeds a query and returns the top-k segments above a score threshold."""

    def __init__(
        self,
        embedder: Embedder,
        vector_index: VectorIndex,
        top_k: int | None = None,
        min_score: float | None = None,
    ) -> None:
        """Initialize the retriever.

        Args:
            embedder: Default query embedder; must match the ingestion model.
            vector_index: Index to search.
            top_k: Default result count. If None, uses config.RETRIEVAL_TOP_K.
            min_score: Default similarity threshold. If None, uses
                config.RETRIEVAL_MIN_SCORE.
        """
        self.embedder = embedder
        self.vector_index = vector_index
        self.top_k = top_k if top_k is not None else config.RETRIEVAL_TOP_K
        self.min_score = (
            min_score if min_score is not None else config.RETRIEVAL_MIN_SCORE
        )
        validate_query_params(self.top_k, self.min_score)

    def retrieve(
        self,
        query: str,
        k: int | None = None,
        min_score: float | None = None,
        *,
        embedder: Embedder | None = None,
    ) -> RetrievalResult:
        """Query the vector index.

        Args:
            query: The input question to search for.
            k: Maximum number of results. Defaults to the retriever's top_k.
            min_score: Minimum cosine similarity. Defaults to the retriever's.
            embedder: Per-call embedder overriding the default one.

        Returns:
            A list of tuples, each containing a Segment and its similarity score.
        """
        k = self.top_k if k is None else k
        min_score = self.min_score if min_score is None else min_score
        # fail before paying for an embedding call
        validate_query_params(k, min_score)

        logger.info("Processing query: %s", query)
        query_embedding = (embedder or self.embedder).embed(query)
        results = self.vector_index.query(query_embedding, k=k, min_score=min_score)
        logger.info(
            "Retrieved %d segments (k=%d, min_score=%.2f)", len(results), k, min_score
        )
        return results
