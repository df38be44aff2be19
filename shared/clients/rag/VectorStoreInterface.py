"""Capability interface shared by every vector store.

The Qdrant client, the in-memory mock and the resilient facade all implement
this set of operations, so callers never know which one they are talking to.
"""

from abc import ABC, abstractmethod
from typing import Any

from shared.models.document import Document, DocumentChunk, SearchResult


class VectorStoreInterface(ABC):

    @abstractmethod
    async def ensure_collection(self) -> None:
        """Create the collection if it does not exist yet. Idempotent."""
        pass

    @abstractmethod
    async def upsert(self, chunks: list[DocumentChunk], document: Document) -> None:
        """Store one point per embedded chunk of the given document.

        Args:
            chunks (list[DocumentChunk]): Chunks with their embeddings set.
            document (Document): The owning document; its metadata (including userId)
                                 is copied into every point payload.
        """
        pass

    @abstractmethod
    async def search(
        self,
        query_vector: list[float],
        limit: int,
        score_threshold: float | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        """Return up to ``limit`` nearest chunks.

        Args:
            query_vector (list[float]): The query embedding.
            limit (int): Maximum number of results.
            score_threshold (float | None): Minimum similarity score of a result.
            filters (dict[str, Any] | None): Equality conditions on payload keys, all of
                which must match. Nested keys use dots, e.g. {"metadata.userId": "u1"}.

        Returns:
            list[SearchResult]: Results ordered by descending score.
        """
        pass

    @abstractmethod
    async def delete_by_document_id(self, document_id: str) -> None:
        """Remove every chunk of the given document."""
        pass

    @abstractmethod
    async def get_collection_info(self) -> dict[str, Any]:
        """Return collection statistics (name, status, point and vector counts)."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Return True if the store is reachable and usable."""
        pass

    @abstractmethod
    async def clear_collection(self) -> None:
        """Drop all stored chunks and recreate an empty collection."""
        pass
