"""VectorPoint model: payload stored alongside each chunk vector in a vector store."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from shared.models.document import ChunkMetadata, Document, DocumentChunk, SearchResult

# Fixed namespace for deterministic UUIDv5 point IDs.
# Changing this value would invalidate all existing point IDs in the collection.
_POINT_ID_NAMESPACE = uuid.UUID("3b1f6a52-8c0e-4d7a-9f21-5e6c7d8a9b40")


def make_point_id(chunk_id: str) -> str:
    """Build a deterministic UUID5 point ID for a chunk.

    Qdrant only accepts UUIDs or unsigned integers as point IDs, so the
    readable chunk ID is hashed and kept in the payload as ``chunkId``.
    Re-ingesting the same chunk ID overwrites instead of duplicating.

    Args:
        chunk_id (str): The chunk ID, e.g. "doc_1700000000000_ab12cd34e_chunk_0".

    Returns:
        str: UUID string usable as a point ID.
    """
    return str(uuid.uuid5(_POINT_ID_NAMESPACE, chunk_id))


class VectorPoint(BaseModel):
    """Payload stored alongside each chunk vector.

    Serialised with camelCase keys. ``metadata`` carries the document metadata
    ({id, source, timestamp, userId}); per-user scoping filters on
    ``metadata.userId``.

    Attributes:
        document_id:      ID of the owning document, used for cascade deletes.
        chunk_id:         Readable chunk ID ("<documentId>_chunk_<index>").
        content:          Cleaned chunk text.
        chunk_index:      Zero-based position of the chunk within the document.
        start_char:       Offset of the chunk start in the extracted text.
        end_char:         Offset of the chunk end in the extracted text.
        document_title:   Title of the owning document.
        document_source:  Origin tag of the owning document ("text", filename or URL).
        timestamp:        ISO-8601 creation time of the owning document.
        chunk_count:      Number of chunks of the owning document.
        metadata:         Document metadata map, including userId.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    document_id: str
    chunk_id: str
    content: str
    chunk_index: int
    start_char: int
    end_char: int
    document_title: str
    document_source: str
    timestamp: str
    chunk_count: int = 0
    metadata: dict[str, Any] = {}

    @classmethod
    def from_chunk(cls, chunk: DocumentChunk, document: Document) -> "VectorPoint":
        return cls(
            document_id=chunk.document_id,
            chunk_id=chunk.id,
            content=chunk.content,
            chunk_index=chunk.metadata.chunk_index,
            start_char=chunk.metadata.start_char,
            end_char=chunk.metadata.end_char,
            document_title=document.title,
            document_source=document.source,
            timestamp=document.created_at.isoformat(),
            chunk_count=document.chunk_count,
            metadata=dict(document.metadata),
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)

    def to_search_result(self, score: float, embedding: list[float] | None = None) -> SearchResult:
        """Rebuild the chunk and its document summary from the stored payload."""
        chunk = DocumentChunk(
            id=self.chunk_id,
            document_id=self.document_id,
            content=self.content,
            embedding=embedding,
            metadata=ChunkMetadata(
                chunk_index=self.chunk_index,
                start_char=self.start_char,
                end_char=self.end_char,
            ),
        )
        document = Document(
            id=self.document_id,
            title=self.document_title,
            source=self.document_source,
            created_at=datetime.fromisoformat(self.timestamp),
            chunk_count=self.chunk_count,
            metadata=self.metadata,
        )
        return SearchResult(chunk=chunk, score=score, document=document)


def resolve_payload_key(payload: dict[str, Any], key: str) -> Any:
    """Look up a dotted key ("metadata.userId") in a nested payload dict. Missing keys yield None."""
    value: Any = payload
    for part in key.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value
