from datetime import datetime, timezone

from fastapi import APIRouter, Request

from server.models.responses import (
    CollectionStatus,
    EmbeddingsStatus,
    HealthResponse,
    HealthServices,
    QdrantStatus,
)
from shared.clients.rag.ResilientVectorStore import ResilientVectorStore
from shared.embedding.EmbeddingProvider import EmbeddingProvider

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health(request: Request) -> HealthResponse:
    """Report vector store connectivity, collection statistics and the embedding strategy.

    Answers 200 even when the vector database is down ("unhealthy"); the
    application keeps serving from the in-memory mock in that case.
    """
    store: ResilientVectorStore = request.app.state.vector_store
    embedding_provider: EmbeddingProvider = request.app.state.embedding_provider

    healthy = await store.health_check()
    collection = None
    if healthy:
        info = await store.get_collection_info()
        collection = CollectionStatus(
            name=info.get("name"),
            points_count=info.get("points_count"),
            vectors_count=info.get("vectors_count"),
        )

    if store.is_degraded():
        qdrant_status = "mock"
    else:
        qdrant_status = "connected" if healthy else "disconnected"

    return HealthResponse(
        status="healthy" if healthy else "unhealthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        mode="mock" if store.is_degraded() else "qdrant",
        services=HealthServices(
            qdrant=QdrantStatus(status=qdrant_status, collection=collection),
            embeddings=EmbeddingsStatus(status="ready", model=embedding_provider.get_model_name()),
        ),
    )
