from typing import Any

from shared.clients.rag.VectorStoreInterface import VectorStoreInterface
from shared.clients.rag.mock.VectorStoreMock import VectorStoreMock
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Document, DocumentChunk, SearchResult


class ResilientVectorStore(VectorStoreInterface):
    """Vector store that degrades to the in-memory mock.

    Every operation is tried against the primary store first. On any failure a
    warning is logged and the same call is re-issued against the mock, so
    callers never see a vector database error. Without a primary store (no
    backend configured) the mock serves every call directly.

    Note: chunks written to the mock while the primary is down are not synced
    back once it recovers. Deletes and clears always reach the mock as well,
    so such chunks cannot resurface on a later fallback search.
    """

    def __init__(self, helper_config: HelperConfig, primary: VectorStoreInterface | None, fallback: VectorStoreMock):
        self.logging = helper_config.get_logger()
        self.primary = primary
        self.fallback = fallback

    def is_degraded(self) -> bool:
        """True when no primary store is configured."""
        return self.primary is None

    def _warn(self, operation: str, error: Exception) -> None:
        self.logging.warning(
            "Vector store operation '%s' failed (%s: %s), using in-memory mock.",
            operation, error.__class__.__name__, error,
        )

    ##########################################
    ########### VECTOR STORE OPS #############
    ##########################################

    async def ensure_collection(self) -> None:
        if self.primary is not None:
            try:
                await self.primary.ensure_collection()
                return
            except Exception as e:
                self._warn("ensure_collection", e)
        await self.fallback.ensure_collection()

    async def upsert(self, chunks: list[DocumentChunk], document: Document) -> None:
        if self.primary is not None:
            try:
                await self.primary.upsert(chunks, document)
                return
            except Exception as e:
                self._warn("upsert", e)
        await self.fallback.upsert(chunks, document)

    async def search(
        self,
        query_vector: list[float],
        limit: int,
        score_threshold: float | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        if self.primary is not None:
            try:
                return await self.primary.search(query_vector, limit, score_threshold, filters)
            except Exception as e:
                self._warn("search", e)
        return await self.fallback.search(query_vector, limit, score_threshold, filters)

    async def delete_by_document_id(self, document_id: str) -> None:
        # the mock may still hold chunks written during an earlier outage
        if self.primary is not None:
            try:
                await self.primary.delete_by_document_id(document_id)
            except Exception as e:
                self._warn("delete_by_document_id", e)
        await self.fallback.delete_by_document_id(document_id)

    async def get_collection_info(self) -> dict[str, Any]:
        if self.primary is not None:
            try:
                return await self.primary.get_collection_info()
            except Exception as e:
                self._warn("get_collection_info", e)
        return await self.fallback.get_collection_info()

    async def health_check(self) -> bool:
        if self.primary is not None:
            try:
                return await self.primary.health_check()
            except Exception as e:
                self._warn("health_check", e)
        return await self.fallback.health_check()

    async def clear_collection(self) -> None:
        if self.primary is not None:
            try:
                await self.primary.clear_collection()
            except Exception as e:
                self._warn("clear_collection", e)
        await self.fallback.clear_collection()
