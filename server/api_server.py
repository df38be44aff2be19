"""FastAPI application entry point for the RAG knowledge base."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import PipelineConfig
from shared.clients.ClientInterface import ClientInterface
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.clients.rag.ResilientVectorStore import ResilientVectorStore
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.embedding.EmbeddingProvider import EmbeddingProvider
from services.ingestion.IngestionService import IngestionService
from server.core.QueryService import QueryService
from server.errors import register_exception_handlers
from server.routers.DocumentRouter import router as document_router
from server.routers.ChatRouter import router as chat_router
from server.routers.HealthRouter import router as health_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)
    pipeline_config = PipelineConfig.from_helper(app.state.helper_config)

    rag_manager = RAGClientManager(helper_config=app.state.helper_config)
    embed_client = EmbedClientManager(helper_config=app.state.helper_config).get_client()
    llm_client = LLMClientManager(helper_config=app.state.helper_config).get_client()
    clients: list[ClientInterface] = [c for c in (rag_manager.get_client(), embed_client, llm_client) if c is not None]

    logging.info("Booting all clients...")
    for client in clients:
        await client.boot()
    web_client = httpx.AsyncClient(timeout=pipeline_config.url_fetch_timeout)
    logging.info("All clients booted successfully.")

    vector_store = rag_manager.get_store()
    embedding_provider = EmbeddingProvider(helper_config=app.state.helper_config, client=embed_client)

    app.state.pipeline_config = pipeline_config
    app.state.vector_store = vector_store
    app.state.embedding_provider = embedding_provider
    app.state.llm_client = llm_client

    app.state.ingestion_service = IngestionService(
        helper_config=app.state.helper_config,
        pipeline_config=pipeline_config,
        store=vector_store,
        embedding_provider=embedding_provider,
        http_client=web_client,
    )
    app.state.query_service = QueryService(
        helper_config=app.state.helper_config,
        pipeline_config=pipeline_config,
        store=vector_store,
        embedding_provider=embedding_provider,
        llm_client=llm_client,
    )

    await check_connections(vector_store, embedding_provider)

    # while the app is running...
    yield

    # when the app shuts down, close all client connections
    logging.info("Shutting down, closing all clients...")
    for client in clients:
        await client.close()
    await web_client.aclose()
    logging.info("All clients closed.")


app = FastAPI(
    title="rag_knowledge_base",
    description=(
        "Retrieval-augmented chat over your own documents. "
        "Text, files (TXT, MD, PDF, DOCX) and web pages are chunked, embedded and stored "
        "in a vector database via POST /documents/*; POST /chat answers questions "
        "from the caller's documents only."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(document_router)
app.include_router(chat_router)
app.include_router(health_router)


async def check_connections(vector_store: ResilientVectorStore, embedding_provider: EmbeddingProvider) -> None:
    """Prepare the collection and report the operating mode on startup.

    Nothing here is fatal: an unreachable vector database degrades to the
    in-memory mock and a missing embedding backend to synthetic vectors.
    """
    await vector_store.ensure_collection()

    if vector_store.is_degraded():
        logging.warning("Running without a vector database, documents are kept in memory only.", color="yellow")
    elif not await vector_store.health_check():
        logging.warning("Vector database is not reachable, requests will be served by the in-memory mock.", color="yellow")
    else:
        logging.info("Vector database is reachable.", color="green")

    if embedding_provider.is_synthetic():
        logging.warning("Using synthetic embeddings, retrieval quality is not meaningful.", color="yellow")
    else:
        logging.info("Using embedding model '%s'.", embedding_provider.get_model_name())


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting rag_knowledge_base API Server v%s from root dir: %s on port %s...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
        os.environ.get("PORT", "8000"),
    )
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "8000")))
