import asyncio
import random
from typing import Any

from shared.clients.rag.VectorStoreInterface import VectorStoreInterface
from shared.clients.rag.models.VectorPoint import VectorPoint, resolve_payload_key
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Document, DocumentChunk, SearchResult


class VectorStoreMock(VectorStoreInterface):
    """In-memory stand-in for the vector database.

    Keeps a map document_id -> chunks plus a flat list of all stored points.
    Search does not rank by similarity: matching points are shuffled and
    scored by position (0.9, 0.8, ...), so results only prove the plumbing.
    """

    def __init__(self, helper_config: HelperConfig, collection_name: str = "documents"):
        self.logging = helper_config.get_logger()
        self.collection_name = collection_name
        self._documents: dict[str, list[DocumentChunk]] = {}
        self._points: list[tuple[VectorPoint, list[float] | None]] = []
        self._lock = asyncio.Lock()

    ##########################################
    ########### VECTOR STORE OPS #############
    ##########################################

    async def ensure_collection(self) -> None:
        self.logging.debug("Mock collection %r is always available.", self.collection_name)

    async def upsert(self, chunks: list[DocumentChunk], document: Document) -> None:
        async with self._lock:
            # replace semantics, mirroring point-id overwrites in the real store
            self._drop_document(document.id)
            self._documents[document.id] = list(chunks)
            for chunk in chunks:
                self._points.append((VectorPoint.from_chunk(chunk, document), chunk.embedding))
        self.logging.info("Mock store holds %d chunks for document %r.", len(chunks), document.id)

    async def search(
        self,
        query_vector: list[float],
        limit: int,
        score_threshold: float | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        async with self._lock:
            candidates = [
                (point, embedding)
                for point, embedding in self._points
                if self._matches(point, filters)
            ]
        random.shuffle(candidates)
        return [
            point.to_search_result(score=0.9 - 0.1 * rank, embedding=embedding)
            for rank, (point, embedding) in enumerate(candidates[:limit])
        ]

    async def delete_by_document_id(self, document_id: str) -> None:
        async with self._lock:
            self._drop_document(document_id)
        self.logging.info("Deleted document %r from mock store.", document_id)

    async def get_collection_info(self) -> dict[str, Any]:
        async with self._lock:
            count = len(self._points)
        return {
            "name": self.collection_name,
            "status": "green",
            "points_count": count,
            "vectors_count": count,
            "indexed_vectors_count": count,
        }

    async def health_check(self) -> bool:
        return True

    async def clear_collection(self) -> None:
        async with self._lock:
            self._documents.clear()
            self._points.clear()
        self.logging.info("Cleared mock collection %r.", self.collection_name)

    ##########################################
    ################ HELPER ##################
    ##########################################

    def _drop_document(self, document_id: str) -> None:
        """Remove a document from both indexes. Caller holds the lock."""
        self._documents.pop(document_id, None)
        self._points = [entry for entry in self._points if entry[0].document_id != document_id]

    @staticmethod
    def _matches(point: VectorPoint, filters: dict[str, Any] | None) -> bool:
        if not filters:
            return True
        payload = point.to_payload()
        return all(resolve_payload_key(payload, key) == value for key, value in filters.items())
