from unittest.mock import AsyncMock

from shared.clients.ClientError import ClientRequestError
from shared.clients.rag.ResilientVectorStore import ResilientVectorStore
from shared.clients.rag.VectorStoreInterface import VectorStoreInterface
from shared.clients.rag.models.VectorPoint import VectorPoint, make_point_id, resolve_payload_key

QUERY = [0.0] * 16


##########################################
############### MOCK STORE ###############
##########################################

async def test_mock_search_is_scoped_to_user(mock_store, make_document):
    doc_a, chunks_a = make_document("user-a", title="A notes")
    doc_b, chunks_b = make_document("user-b", title="B notes")
    await mock_store.upsert(chunks_a, doc_a)
    await mock_store.upsert(chunks_b, doc_b)

    results = await mock_store.search(QUERY, limit=50, filters={"metadata.userId": "user-a"})

    assert len(results) == len(chunks_a)
    assert {r.document.id for r in results} == {doc_a.id}
    assert {r.document.title for r in results} == {"A notes"}


async def test_mock_search_scores_by_rank_and_respects_limit(mock_store, make_document):
    document, chunks = make_document("user-a")
    await mock_store.upsert(chunks, document)

    results = await mock_store.search(QUERY, limit=2, score_threshold=0.99)

    assert len(results) == 2
    assert [round(r.score, 6) for r in results] == [0.9, 0.8]


async def test_mock_delete_cascades(mock_store, make_document):
    document, chunks = make_document("user-a")
    other, other_chunks = make_document("user-a", title="Other")
    await mock_store.upsert(chunks, document)
    await mock_store.upsert(other_chunks, other)

    await mock_store.delete_by_document_id(document.id)

    results = await mock_store.search(QUERY, limit=100)
    assert {r.document.id for r in results} == {other.id}
    info = await mock_store.get_collection_info()
    assert info["points_count"] == len(other_chunks)
    assert info["status"] == "green"


async def test_mock_clear_and_health(mock_store, make_document):
    document, chunks = make_document("user-a")
    await mock_store.upsert(chunks, document)

    await mock_store.clear_collection()

    assert await mock_store.search(QUERY, limit=10) == []
    assert await mock_store.health_check() is True


async def test_mock_upsert_replaces_document(mock_store, make_document):
    document, chunks = make_document("user-a")
    await mock_store.upsert(chunks, document)
    await mock_store.upsert(chunks, document)

    info = await mock_store.get_collection_info()
    assert info["points_count"] == len(chunks)


##########################################
############ RESILIENT STORE #############
##########################################

def _failing_primary() -> AsyncMock:
    primary = AsyncMock(spec=VectorStoreInterface)
    error = ClientRequestError("connection refused", engine="qdrant")
    for name in ("ensure_collection", "upsert", "search", "delete_by_document_id",
                 "get_collection_info", "clear_collection"):
        getattr(primary, name).side_effect = error
    return primary


async def test_facade_falls_back_on_primary_failure(helper_config, mock_store, make_document):
    store = ResilientVectorStore(helper_config=helper_config, primary=_failing_primary(), fallback=mock_store)
    document, chunks = make_document("user-a")

    await store.ensure_collection()
    await store.upsert(chunks, document)
    results = await store.search(QUERY, limit=10, filters={"metadata.userId": "user-a"})
    info = await store.get_collection_info()
    await store.delete_by_document_id(document.id)

    assert len(results) == len(chunks)
    assert info["points_count"] == len(chunks)
    assert await mock_store.search(QUERY, limit=10) == []


async def test_facade_delete_reaches_chunks_stored_during_outage(helper_config, mock_store, make_document):
    primary = AsyncMock(spec=VectorStoreInterface)
    primary.upsert.side_effect = ClientRequestError("connection refused", engine="qdrant")
    store = ResilientVectorStore(helper_config=helper_config, primary=primary, fallback=mock_store)
    document, chunks = make_document("user-a")
    await store.upsert(chunks, document)

    # primary is back for the delete, then goes down again
    await store.delete_by_document_id(document.id)
    primary.search.side_effect = ClientRequestError("connection refused", engine="qdrant")
    results = await store.search(QUERY, limit=100, filters={"metadata.userId": "user-a"})

    primary.delete_by_document_id.assert_awaited_once_with(document.id)
    assert results == []


async def test_facade_clear_also_wipes_mock(helper_config, mock_store, make_document):
    document, chunks = make_document("user-a")
    await mock_store.upsert(chunks, document)
    primary = AsyncMock(spec=VectorStoreInterface)
    store = ResilientVectorStore(helper_config=helper_config, primary=primary, fallback=mock_store)

    await store.clear_collection()

    primary.clear_collection.assert_awaited_once()
    assert (await mock_store.get_collection_info())["points_count"] == 0


async def test_facade_prefers_healthy_primary(helper_config, mock_store, make_document):
    document, chunks = make_document("user-a")
    await mock_store.upsert(chunks, document)
    primary = AsyncMock(spec=VectorStoreInterface)
    primary.search.return_value = []
    store = ResilientVectorStore(helper_config=helper_config, primary=primary, fallback=mock_store)

    results = await store.search(QUERY, limit=10)

    assert results == []
    primary.search.assert_awaited_once_with(QUERY, 10, None, None)
    assert not store.is_degraded()


async def test_facade_without_primary_uses_mock(helper_config, mock_store, make_document):
    store = ResilientVectorStore(helper_config=helper_config, primary=None, fallback=mock_store)
    document, chunks = make_document("user-a")

    await store.upsert(chunks, document)

    assert store.is_degraded()
    assert await store.health_check() is True
    assert len(await store.search(QUERY, limit=10)) == len(chunks)


async def test_facade_reports_unhealthy_primary(helper_config, mock_store):
    primary = AsyncMock(spec=VectorStoreInterface)
    primary.health_check.return_value = False
    store = ResilientVectorStore(helper_config=helper_config, primary=primary, fallback=mock_store)

    assert await store.health_check() is False


##########################################
############## VECTOR POINT ##############
##########################################

def test_point_payload_round_trip(make_document):
    document, chunks = make_document("user-a", title="Guide")
    payload = VectorPoint.from_chunk(chunks[0], document).to_payload()

    assert payload["documentId"] == document.id
    assert payload["chunkId"] == chunks[0].id
    assert payload["documentTitle"] == "Guide"
    assert resolve_payload_key(payload, "metadata.userId") == "user-a"
    assert resolve_payload_key(payload, "metadata.missing.key") is None

    result = VectorPoint.model_validate(payload).to_search_result(score=0.5)
    assert result.chunk.content == chunks[0].content
    assert result.document.title == "Guide"
    assert result.score == 0.5


def test_point_ids_are_deterministic_uuids():
    assert make_point_id("doc_1_chunk_0") == make_point_id("doc_1_chunk_0")
    assert make_point_id("doc_1_chunk_0") != make_point_id("doc_1_chunk_1")
    assert len(make_point_id("doc_1_chunk_0")) == 36
