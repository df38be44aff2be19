"""Pydantic models for documents, chunks and retrieval results.

Hierarchy:
  Document : one ingested unit (text, file or web page), owned by a user.
  DocumentChunk : a contiguous slice of a document's cleaned text plus its embedding.
  SearchResult : a retrieved chunk with its similarity score and owning document.
  ChatMessage : a single conversation turn.

All models serialise with camelCase aliases (``model_dump(by_alias=True)``).
"""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Document(_CamelModel):
    """Summary of an ingested document.

    The id is assigned once at ingestion time and never changes; chunk_count
    always equals the number of chunks persisted for the document.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    title: str
    source: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    chunk_count: int = Field(default=0, ge=0)
    metadata: dict[str, Any] = {}


class ChunkMetadata(_CamelModel):
    chunk_index: int = Field(ge=0)
    start_char: int = Field(ge=0)
    end_char: int


class DocumentChunk(_CamelModel):
    """A chunk of a document; ``embedding`` is None until the chunk is embedded."""

    id: str
    document_id: str
    content: str
    embedding: list[float] | None = None
    metadata: ChunkMetadata


class SearchResult(_CamelModel):
    chunk: DocumentChunk
    score: float
    document: Document


class ChatMessage(_CamelModel):
    id: str
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    sources: list[str] | None = None
