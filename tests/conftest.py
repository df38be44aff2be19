import os

# keep test runs from writing log files; must happen before server.api_server is imported
os.environ["LOG_TO_FILE"] = "false"

import contextlib
import logging

import httpx
import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock

from services.ingestion.IngestionService import IngestionService
from server.core.QueryService import QueryService
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.clients.rag.ResilientVectorStore import ResilientVectorStore
from shared.clients.rag.mock.VectorStoreMock import VectorStoreMock
from shared.embedding.EmbeddingProvider import EmbeddingProvider
from shared.embedding.synthetic import synthetic_embedding
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger
from shared.models.config import PipelineConfig
from shared.models.document import Document
from shared.text.TextChunker import chunk_text

TEST_DIMENSIONS = 16

SAMPLE_TEXT = (
    "Qdrant is a vector database written in Rust. It stores points made of a vector and a payload. "
    "Collections group points that share the same vector size and distance metric. "
    "Payload filters restrict a search to points whose payload matches a condition. "
)

SAMPLE_HTML = """
<html>
  <head><title>Vector Search Guide</title><style>body { color: red; }</style></head>
  <body>
    <script>var tracking = "should never be indexed";</script>
    <h1>Vector search</h1>
    <p>Vector search finds the nearest neighbours of a query embedding among stored embeddings.</p>
    <p>Chunking splits long documents into overlapping windows before they are embedded.</p>
  </body>
</html>
"""


@pytest.fixture
def helper_config() -> HelperConfig:
    return HelperConfig(logger=ColorLogger(logging.getLogger("ragkb.tests")))


@pytest.fixture
def pipeline_config() -> PipelineConfig:
    return PipelineConfig()


@pytest.fixture
def mock_store(helper_config) -> VectorStoreMock:
    return VectorStoreMock(helper_config=helper_config, collection_name="test_documents")


@pytest.fixture
def embedding_provider(helper_config, monkeypatch) -> EmbeddingProvider:
    monkeypatch.setenv("EMBED_DIMENSIONS", str(TEST_DIMENSIONS))
    return EmbeddingProvider(helper_config=helper_config, client=None)


@pytest.fixture
def make_document():
    """Factory building a document plus its embedded chunks, owned by the given user."""

    def _make(user_id: str, text: str = SAMPLE_TEXT, title: str = "Manual Entry", document_id: str | None = None, chunk_size: int = 100):
        document_id = document_id or f"doc_{abs(hash((user_id, title, text))) % 10**13:013d}_abcdefghi"
        chunks = chunk_text(text, document_id, chunk_size=chunk_size, overlap=20)
        chunks = [
            chunk.model_copy(update={"embedding": synthetic_embedding(chunk.content, TEST_DIMENSIONS)})
            for chunk in chunks
        ]
        document = Document(
            id=document_id,
            title=title,
            source="text",
            chunk_count=len(chunks),
            metadata={"id": document_id, "source": "text", "userId": user_id},
        )
        return document, chunks

    return _make


def html_transport(pages: dict[str, tuple[int, str]]) -> httpx.MockTransport:
    """MockTransport serving fixed HTML bodies by URL."""

    def handler(request: httpx.Request) -> httpx.Response:
        status, body = pages.get(str(request.url), (404, "<html><body>not found</body></html>"))
        return httpx.Response(status, text=body, headers={"Content-Type": "text/html"})

    return httpx.MockTransport(handler)


@pytest.fixture
def llm_client() -> AsyncMock:
    client = AsyncMock(spec=LLMClientInterface)
    client.do_chat.return_value = "Mocked answer"
    return client


@pytest.fixture
def api_client(helper_config, pipeline_config, llm_client, monkeypatch):
    """TestClient over the real routers and services, backed by the in-memory store."""
    monkeypatch.setenv("EMBED_DIMENSIONS", str(TEST_DIMENSIONS))
    from server.api_server import app

    @contextlib.asynccontextmanager
    async def test_lifespan(app):
        store = ResilientVectorStore(
            helper_config=helper_config,
            primary=None,
            fallback=VectorStoreMock(helper_config=helper_config),
        )
        provider = EmbeddingProvider(helper_config=helper_config, client=None)
        web_client = httpx.AsyncClient(
            transport=html_transport({"https://example.com/guide": (200, SAMPLE_HTML)})
        )
        app.state.logging = helper_config.get_logger()
        app.state.vector_store = store
        app.state.embedding_provider = provider
        app.state.ingestion_service = IngestionService(
            helper_config=helper_config,
            pipeline_config=pipeline_config,
            store=store,
            embedding_provider=provider,
            http_client=web_client,
        )
        app.state.query_service = QueryService(
            helper_config=helper_config,
            pipeline_config=pipeline_config,
            store=store,
            embedding_provider=provider,
            llm_client=llm_client,
        )
        yield
        await web_client.aclose()

    original_lifespan = app.router.lifespan_context
    app.router.lifespan_context = test_lifespan
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
    app.router.lifespan_context = original_lifespan


@pytest.fixture
def sample_html() -> str:
    return SAMPLE_HTML


@pytest.fixture
def page_transport():
    """Factory for a MockTransport serving {url: (status, html)}."""
    return html_transport
