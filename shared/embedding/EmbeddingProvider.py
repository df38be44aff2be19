from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.embedding.synthetic import DEFAULT_DIMENSIONS, synthetic_embedding
from shared.helper.HelperConfig import HelperConfig

DEFAULT_EMBED_BATCH_SIZE = 100


class EmbeddingProvider:
    """Turns texts into vectors.

    Uses the real embedding client when one is configured. Any failure of that
    client (network, auth, rate limit, timeout, malformed response) is logged
    and that request's texts are embedded synthetically instead, so callers always
    get one vector per input.
    """

    def __init__(self, helper_config: HelperConfig, client: EmbedClientInterface | None = None):
        self.logging = helper_config.get_logger()
        self.client = client
        self.dimensions = client.embed_dimensions if client else int(
            helper_config.get_number_val("EMBED_DIMENSIONS", default=DEFAULT_DIMENSIONS)
        )
        # max texts per embedding request
        self.batch_size = max(1, int(helper_config.get_number_val("EMBED_BATCH_SIZE", default=DEFAULT_EMBED_BATCH_SIZE)))

    def get_model_name(self) -> str:
        """Name of the active embedding strategy, as reported by the health endpoint."""
        if self.client is None:
            return "synthetic"
        return self.client.embed_model

    def is_synthetic(self) -> bool:
        return self.client is None

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts, at most batch_size per request.

        A failed request only falls back to synthetic vectors for its own batch.

        Args:
            texts (list[str]): The texts to embed.

        Returns:
            list[list[float]]: One vector per input, in input order.
        """
        vectors: list[list[float]] = []
        for offset in range(0, len(texts), self.batch_size):
            vectors.extend(await self._embed_single_batch(texts[offset:offset + self.batch_size]))
        return vectors

    async def _embed_single_batch(self, texts: list[str]) -> list[list[float]]:
        if self.client is not None:
            try:
                return await self.client.do_embed(texts)
            except Exception as e:
                self.logging.warning(
                    "Embedding request failed (%s: %s), falling back to synthetic embeddings for %d text(s).",
                    e.__class__.__name__, e, len(texts),
                )
        return [synthetic_embedding(text, self.dimensions) for text in texts]
