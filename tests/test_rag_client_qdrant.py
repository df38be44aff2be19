import json

import httpx
import pytest

from shared.clients.ClientError import ClientNotBootedError, ClientRequestError
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.clients.rag.models.VectorPoint import VectorPoint, make_point_id
from shared.clients.rag.qdrant.RAGClientQdrant import RAGClientQdrant
from shared.models.document import ChunkMetadata, Document, DocumentChunk

BASE_URL = "http://qdrant.test:6333"
COLLECTION = "test_docs"


class FakeQdrant:
    """Records requests and answers like the Qdrant REST API."""

    def __init__(self, exists: bool = False, fail_upsert_call: int | None = None, healthy: bool = True):
        self.exists = exists
        self.fail_upsert_call = fail_upsert_call
        self.healthy = healthy
        self.requests: list[httpx.Request] = []
        self.upsert_calls = 0
        self.search_hits: list[dict] = []

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/healthz":
            return httpx.Response(200 if self.healthy else 503, text="ok")
        if path == f"/collections/{COLLECTION}/exists":
            return httpx.Response(200, json={"result": {"exists": self.exists}})
        if path == f"/collections/{COLLECTION}" and request.method in ("PUT", "DELETE"):
            return httpx.Response(200, json={"result": True})
        if path == f"/collections/{COLLECTION}" and request.method == "GET":
            return httpx.Response(200, json={"result": {"status": "green", "points_count": 7, "vectors_count": 7}})
        if path == f"/collections/{COLLECTION}/points":
            self.upsert_calls += 1
            if self.upsert_calls == self.fail_upsert_call:
                return httpx.Response(500, json={"status": {"error": "boom"}})
            return httpx.Response(200, json={"result": {"status": "acknowledged"}})
        if path == f"/collections/{COLLECTION}/points/search":
            return httpx.Response(200, json={"result": self.search_hits})
        if path == f"/collections/{COLLECTION}/points/delete":
            return httpx.Response(200, json={"result": {"status": "acknowledged"}})
        return httpx.Response(404)


@pytest.fixture
def qdrant_env(monkeypatch):
    monkeypatch.setenv("RAG_QDRANT_BASE_URL", BASE_URL)
    monkeypatch.setenv("RAG_QDRANT_API_KEY", "secret")
    monkeypatch.setenv("RAG_QDRANT_COLLECTION", COLLECTION)
    monkeypatch.setenv("EMBED_DIMENSIONS", "4")


async def _booted_client(helper_config, fake: FakeQdrant) -> RAGClientQdrant:
    client = RAGClientQdrant(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(fake.handler))
    return client


def _document_with_chunks(count: int) -> tuple[Document, list[DocumentChunk]]:
    document = Document(
        id="doc_1700000000000_abcdefghi",
        title="Big file.txt",
        source="Big file.txt",
        chunk_count=count,
        metadata={"id": "doc_1700000000000_abcdefghi", "source": "Big file.txt", "userId": "u1"},
    )
    chunks = [
        DocumentChunk(
            id=f"{document.id}_chunk_{i}",
            document_id=document.id,
            content=f"chunk {i}",
            embedding=[0.1, 0.2, 0.3, 0.4],
            metadata=ChunkMetadata(chunk_index=i, start_char=i * 10, end_char=i * 10 + 7),
        )
        for i in range(count)
    ]
    return document, chunks


async def test_ensure_collection_creates_missing_collection(helper_config, qdrant_env):
    fake = FakeQdrant(exists=False)
    client = await _booted_client(helper_config, fake)

    await client.ensure_collection()

    [create] = fake.calls("PUT", f"/collections/{COLLECTION}")
    assert json.loads(create.content)["vectors"] == {"size": 4, "distance": "Cosine"}
    assert create.headers["api-key"] == "secret"
    await client.close()


async def test_ensure_collection_is_idempotent(helper_config, qdrant_env):
    fake = FakeQdrant(exists=True)
    client = await _booted_client(helper_config, fake)

    await client.ensure_collection()

    assert fake.calls("PUT", f"/collections/{COLLECTION}") == []
    await client.close()


async def test_upsert_sends_points_in_batches(helper_config, qdrant_env):
    fake = FakeQdrant()
    client = await _booted_client(helper_config, fake)
    document, chunks = _document_with_chunks(250)

    await client.upsert(chunks, document)

    upserts = fake.calls("PUT", f"/collections/{COLLECTION}/points")
    assert [len(json.loads(r.content)["points"]) for r in upserts] == [100, 100, 50]
    assert all(r.url.params["wait"] == "true" for r in upserts)
    first_point = json.loads(upserts[0].content)["points"][0]
    assert first_point["id"] == make_point_id(chunks[0].id)
    assert first_point["payload"]["chunkId"] == chunks[0].id
    assert first_point["payload"]["metadata"]["userId"] == "u1"
    await client.close()


async def test_failed_upsert_cleans_up_and_raises(helper_config, qdrant_env):
    fake = FakeQdrant(fail_upsert_call=2)
    client = await _booted_client(helper_config, fake)
    document, chunks = _document_with_chunks(150)

    with pytest.raises(ClientRequestError) as exc_info:
        await client.upsert(chunks, document)

    assert exc_info.value.status_code == 500
    [delete] = fake.calls("POST", f"/collections/{COLLECTION}/points/delete")
    assert json.loads(delete.content) == {
        "filter": {"must": [{"key": "documentId", "match": {"value": document.id}}]}
    }
    await client.close()


async def test_search_sends_filter_and_maps_hits(helper_config, qdrant_env):
    fake = FakeQdrant()
    document, chunks = _document_with_chunks(1)
    fake.search_hits = [
        {"id": make_point_id(chunks[0].id), "score": 0.83, "payload": VectorPoint.from_chunk(chunks[0], document).to_payload()}
    ]
    client = await _booted_client(helper_config, fake)

    results = await client.search([0.1, 0.2, 0.3, 0.4], limit=5, score_threshold=0.7, filters={"metadata.userId": "u1"})

    [search] = fake.calls("POST", f"/collections/{COLLECTION}/points/search")
    body = json.loads(search.content)
    assert body["limit"] == 5
    assert body["score_threshold"] == 0.7
    assert body["with_payload"] is True
    assert body["filter"] == {"must": [{"key": "metadata.userId", "match": {"value": "u1"}}]}
    assert len(results) == 1
    assert results[0].score == 0.83
    assert results[0].chunk.id == chunks[0].id
    assert results[0].document.title == "Big file.txt"
    await client.close()


async def test_collection_info_and_clear(helper_config, qdrant_env):
    fake = FakeQdrant()
    client = await _booted_client(helper_config, fake)

    info = await client.get_collection_info()
    await client.clear_collection()

    assert info == {"name": COLLECTION, "status": "green", "points_count": 7, "vectors_count": 7}
    assert len(fake.calls("DELETE", f"/collections/{COLLECTION}")) == 1
    assert len(fake.calls("PUT", f"/collections/{COLLECTION}")) == 1
    await client.close()


async def test_health_check_never_raises(helper_config, qdrant_env):
    assert await (await _booted_client(helper_config, FakeQdrant(healthy=True))).health_check() is True
    assert await (await _booted_client(helper_config, FakeQdrant(healthy=False))).health_check() is False

    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = RAGClientQdrant(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(unreachable))
    assert await client.health_check() is False


async def test_requests_before_boot_fail(helper_config, qdrant_env):
    client = RAGClientQdrant(helper_config=helper_config)

    with pytest.raises(ClientNotBootedError):
        await client.get_collection_info()


def test_manager_without_base_url_runs_on_mock(helper_config, monkeypatch):
    monkeypatch.delenv("RAG_QDRANT_BASE_URL", raising=False)

    manager = RAGClientManager(helper_config=helper_config)

    assert manager.get_client() is None
    assert manager.get_store().is_degraded()


def test_manager_builds_qdrant_client(helper_config, qdrant_env):
    manager = RAGClientManager(helper_config=helper_config)

    assert isinstance(manager.get_client(), RAGClientQdrant)
    assert manager.get_client().get_collection_name() == COLLECTION
    assert not manager.get_store().is_degraded()


def test_manager_rejects_unknown_engine(helper_config, monkeypatch):
    monkeypatch.setenv("RAG_ENGINE", "nosuchdb")
    monkeypatch.setenv("RAG_NOSUCHDB_BASE_URL", BASE_URL)

    with pytest.raises(ValueError):
        RAGClientManager(helper_config=helper_config)
