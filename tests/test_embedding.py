import math

import pytest
from unittest.mock import AsyncMock

from shared.clients.ClientError import ClientRequestError
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.embedding.EmbeddingProvider import EmbeddingProvider
from shared.embedding.synthetic import cosine_similarity, simple_hash, synthetic_embedding


def test_simple_hash_matches_31_polynomial():
    assert simple_hash("") == 0
    assert simple_hash("a") == 97
    assert simple_hash("hello") == 99162322


def test_simple_hash_counts_utf16_code_units():
    # U+1F600 is hashed as its surrogate pair 0xD83D 0xDE00
    assert simple_hash("\U0001F600") == 0xD83D * 31 + 0xDE00
    assert simple_hash("\u00e9") == 0xE9


def test_simple_hash_wraps_to_int32():
    h = simple_hash("a fairly long string that overflows thirty-two bits many times over")
    assert -(2**31) <= h < 2**31


def test_synthetic_embedding_is_deterministic_and_unit_length():
    first = synthetic_embedding("The quick brown fox")
    second = synthetic_embedding("The quick brown fox")

    assert first == second
    assert len(first) == 1536
    assert math.isclose(math.sqrt(sum(v * v for v in first)), 1.0, rel_tol=1e-9)


def test_synthetic_embedding_respects_dimensions():
    assert len(synthetic_embedding("abc", 8)) == 8


def test_different_texts_give_different_vectors():
    assert synthetic_embedding("alpha", 32) != synthetic_embedding("beta", 32)


def test_cosine_similarity():
    a = synthetic_embedding("alpha", 32)
    b = synthetic_embedding("beta", 32)

    assert math.isclose(cosine_similarity(a, a), 1.0, rel_tol=1e-9)
    assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))
    assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0


def test_cosine_similarity_rejects_mismatched_lengths():
    with pytest.raises(ValueError):
        cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])


##########################################
########### EMBEDDING PROVIDER ###########
##########################################

def _embed_client(dimensions: int = 8) -> AsyncMock:
    client = AsyncMock(spec=EmbedClientInterface)
    client.embed_dimensions = dimensions
    client.embed_model = "text-embedding-3-small"
    return client


async def test_provider_without_client_is_synthetic(embedding_provider):
    vector = await embedding_provider.embed("hello")

    assert embedding_provider.is_synthetic()
    assert embedding_provider.get_model_name() == "synthetic"
    assert vector == synthetic_embedding("hello", embedding_provider.dimensions)


async def test_provider_uses_real_client(helper_config):
    client = _embed_client()
    client.do_embed.return_value = [[0.1] * 8, [0.2] * 8]
    provider = EmbeddingProvider(helper_config=helper_config, client=client)

    vectors = await provider.embed_batch(["a", "b"])

    assert vectors == [[0.1] * 8, [0.2] * 8]
    client.do_embed.assert_awaited_once_with(["a", "b"])
    assert provider.get_model_name() == "text-embedding-3-small"


async def test_provider_falls_back_to_synthetic_on_failure(helper_config):
    client = _embed_client()
    client.do_embed.side_effect = ClientRequestError("rate limited", engine="openai", status_code=429)
    provider = EmbeddingProvider(helper_config=helper_config, client=client)

    vectors = await provider.embed_batch(["first", "second"])

    assert vectors == [synthetic_embedding("first", 8), synthetic_embedding("second", 8)]


async def test_provider_empty_batch(embedding_provider):
    assert await embedding_provider.embed_batch([]) == []


async def test_provider_sends_bounded_batches_in_order(helper_config, monkeypatch):
    monkeypatch.setenv("EMBED_BATCH_SIZE", "2")
    client = _embed_client()
    client.do_embed.side_effect = [
        [[1.0] * 8, [2.0] * 8],
        ClientRequestError("request too large", engine="openai", status_code=400),
        [[5.0] * 8],
    ]
    provider = EmbeddingProvider(helper_config=helper_config, client=client)

    vectors = await provider.embed_batch(["t1", "t2", "t3", "t4", "t5"])

    assert [call.args[0] for call in client.do_embed.await_args_list] == [["t1", "t2"], ["t3", "t4"], ["t5"]]
    assert vectors == [
        [1.0] * 8,
        [2.0] * 8,
        synthetic_embedding("t3", 8),
        synthetic_embedding("t4", 8),
        [5.0] * 8,
    ]
