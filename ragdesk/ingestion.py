"""Document ingestion: Split -> Embed -> Store."""

from .config import config
from .document_processing import TextChunker
from .embeddings import Embedder
from .exceptions import IngestionError, RAGError
from .models import Document
from .vector_store import VectorIndex

logger = config.get_logger(__name__)


class Ingestor:
    """Orchestrates chunking, embedding and indexing for one document at a time."""

    def __init__(
        self,
        chunker: TextChunker,
        embedder: Embedder,
        vector_index: VectorIndex,
        batch_size: int | None = None,
    ) -> None:
        """Initialize the ingestor.

        Args:
            chunker: Splits documents into segments.
            embedder: Default embedder for segment texts.
            vector_index: Index receiving the embedded segments.
            batch_size: Segments embedded per embedder call. If None, uses
                config.EMBEDDING_BATCH_SIZE.
        """
        self.chunker = chunker
        self.embedder = embedder
        self.vector_index = vector_index
        self.batch_size = max(1, batch_size or config.EMBEDDING_BATCH_SIZE)

    def ingest(self, document: Document, *, embedder: Embedder | None = None) -> int:
        """Split, embed and index ``document``.

        Segments are inserted batch by batch as their embeddings arrive, so a
        failure leaves earlier batches in the index.

        Args:
            document: Document to ingest.
            embedder: Per-call embedder overriding the default one.

        Returns:
            Number of segments inserted.

        Raises:
            IngestionError: If chunking, embedding or indexing fails.
        """
        embedder = embedder or self.embedder
        source = document.metadata.get("fileName", "<unnamed>")
        logger.info("Starting ingestion for document: %s", source)

        try:
            segments = self.chunker.split(document)
        except RAGError as exc:
            msg = f"Failed to split document {source}: {exc}"
            raise IngestionError(msg) from exc

        for start in range(0, len(segments), self.batch_size):
            batch = segments[start : start + self.batch_size]
            stop = start + len(batch)
            try:
                embeddings = embedder.embed_batch([segment.text for segment in batch])
            except RAGError as exc:
                logger.exception(
                    "Embedding failed for %s segments %d-%d", source, start, stop - 1
                )
                msg = (
                    f"Failed to embed segments {start}-{stop - 1} "
                    f"of document {source}: {exc}"
                )
                raise IngestionError(msg) from exc

            if len(embeddings) != len(batch):
                msg = (
                    f"Embedder returned {len(embeddings)} vectors for "
                    f"{len(batch)} segments of document {source}"
                )
                raise IngestionError(msg)

            for segment, embedding in zip(batch, embeddings, strict=True):
                try:
                    self.vector_index.insert(embedding, segment, segment.metadata)
                except RAGError as exc:
                    msg = (
                        f"Failed to index segment {segment.metadata['index']} "
                        f"of document {source}: {exc}"
                    )
                    raise IngestionError(msg) from exc

        logger.info("Ingested %d segments from %s", len(segments), source)
        return len(segments)
