import random
import string
import time
from datetime import datetime, timezone

import httpx
from pydantic import BaseModel

from services.ingestion.errors import ExtractionError, InsufficientContentError, StorageError
from services.ingestion.extraction import (
    extract_file_text,
    fetch_url_text,
    validate_file,
    validate_text,
    validate_url,
)
from services.ingestion.sources import FileSource, IngestSource, TextSource, UrlSource
from shared.clients.rag.VectorStoreInterface import VectorStoreInterface
from shared.embedding.EmbeddingProvider import EmbeddingProvider
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import PipelineConfig
from shared.models.document import Document
from shared.text.TextChunker import TextChunker

MANUAL_ENTRY_TITLE = "Manual Entry"

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_document_id() -> str:
    """Build a document ID of the form "doc_<ms timestamp>_<9 base36 chars>"."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"doc_{int(time.time() * 1000)}_{suffix}"


class IngestionResult(BaseModel):
    """Outcome of one ingestion run.

    Attributes:
        document:        Summary of the stored document.
        content_length:  Total characters over all stored chunks.
        chunk_sizes:     Character length of each stored chunk.
    """

    document: Document
    content_length: int
    chunk_sizes: list[int]

    @property
    def avg_chunk_size(self) -> int:
        if not self.chunk_sizes:
            return 0
        return round(sum(self.chunk_sizes) / len(self.chunk_sizes))


class IngestionService:
    """Orchestrates the ingestion pipeline: validate, extract, chunk, embed, store."""

    def __init__(
        self,
        helper_config: HelperConfig,
        pipeline_config: PipelineConfig,
        store: VectorStoreInterface,
        embedding_provider: EmbeddingProvider,
        http_client: httpx.AsyncClient,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._config = pipeline_config
        self._store = store
        self._embedding_provider = embedding_provider
        self._http_client = http_client
        self._chunker = TextChunker(chunk_size=pipeline_config.chunk_size, overlap=pipeline_config.chunk_overlap)

    ##########################################
    ############### PIPELINE #################
    ##########################################

    async def ingest(self, source: IngestSource, user_id: str) -> Document:
        """Ingest a source and return the stored document summary.

        Args:
            source (IngestSource): Raw text, uploaded file or URL.
            user_id (str): Owner of the document; stored in the chunk metadata.

        Returns:
            Document: The stored document.

        Raises:
            IngestionValidationError: If the input is invalid. Nothing is stored.
            InsufficientContentError: If a web page yields too little text.
            ExtractionError: If text could not be extracted.
            StorageError: If the chunks could not be persisted.
        """
        result = await self.ingest_detailed(source, user_id)
        return result.document

    async def ingest_detailed(self, source: IngestSource, user_id: str) -> IngestionResult:
        """Same as ingest(), additionally reporting chunk statistics."""
        title, origin, text = await self._extract(source)

        document_id = generate_document_id()
        created_at = datetime.now(timezone.utc)
        metadata = {
            "id": document_id,
            "source": origin,
            "timestamp": created_at.isoformat(),
            "userId": user_id,
        }

        chunks = self._chunker.chunk(text, document_id)
        if not chunks:
            raise ExtractionError(f"No text content could be extracted from '{title}'.", client_fault=True)

        vectors = await self._embedding_provider.embed_batch([chunk.content for chunk in chunks])
        chunks = [chunk.model_copy(update={"embedding": vector}) for chunk, vector in zip(chunks, vectors)]

        document = Document(
            id=document_id,
            title=title,
            source=origin,
            created_at=created_at,
            chunk_count=len(chunks),
            metadata=metadata,
        )

        try:
            await self._store.upsert(chunks, document)
        except Exception as e:
            self.logging.error("Storing document %r ('%s') failed: %s", document_id, title, e)
            raise StorageError(f"Failed to store document '{title}'.") from e

        chunk_sizes = [len(chunk.content) for chunk in chunks]
        self.logging.info(
            "Ingested document %r ('%s') from %s source for user %r: %d chunk(s).",
            document_id, title, source.kind, user_id, len(chunks),
        )
        return IngestionResult(document=document, content_length=sum(chunk_sizes), chunk_sizes=chunk_sizes)

    async def _extract(self, source: IngestSource) -> tuple[str, str, str]:
        """Validate the source and extract its text.

        Returns:
            tuple[str, str, str]: (title, source tag, text)
        """
        if isinstance(source, TextSource):
            text = validate_text(source.text, self._config.max_text_length)
            return MANUAL_ENTRY_TITLE, "text", text

        if isinstance(source, FileSource):
            validate_file(source, self._config)
            self.logging.debug("Extracting text from %s (%s).", source.filename, source.content_type)
            return source.filename, source.filename, extract_file_text(source)

        if isinstance(source, UrlSource):
            url = validate_url(source.url)
            self.logging.debug("Fetching %s.", url)
            title, text = await fetch_url_text(self._http_client, url, self._config.url_fetch_timeout)
            if len(text) < self._config.min_url_content_length:
                raise InsufficientContentError("No meaningful content found on the webpage")
            return title, url, text

        raise TypeError(f"Unsupported ingestion source: {type(source).__name__}")

    ##########################################
    ############### DELETION #################
    ##########################################

    async def delete_document(self, document_id: str) -> None:
        """Remove a document and all its chunks."""
        await self._store.delete_by_document_id(document_id)
        self.logging.info("Deleted document %r.", document_id)

    async def clear_all(self) -> None:
        """Drop every stored chunk of every user."""
        await self._store.clear_collection()
        self.logging.warning("Knowledge base cleared.")
