from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from shared.models.document import Document


class _CamelResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IngestResponse(_CamelResponse):
    success: bool = True
    document: Document
    message: str = "Document processed and stored successfully"


class IngestUrlResponse(IngestResponse):
    original_docs: int = 1
    total_chunks: int
    avg_chunk_size: int
    content_length: int
    message: str = "Website content chunked, processed & stored successfully"


class DeleteResponse(_CamelResponse):
    success: bool = True
    message: str = "Document deleted successfully"


class ChatResponse(_CamelResponse):
    response: str
    sources: list[str] = []


class CollectionStatus(BaseModel):
    name: str | None = None
    points_count: int | None = None
    vectors_count: int | None = None


class QdrantStatus(BaseModel):
    status: str
    collection: CollectionStatus | None = None


class EmbeddingsStatus(BaseModel):
    status: str
    model: str


class HealthServices(BaseModel):
    qdrant: QdrantStatus
    embeddings: EmbeddingsStatus


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    services: HealthServices
    mode: str | None = None
