"""Deterministic synthetic embeddings.

Used whenever no real embedding backend is configured or it fails. The same
text always maps to the same unit-length vector, so ingestion and retrieval
stay consistent with each other even without a backend. The vectors carry no
semantic meaning.
"""

import math

DEFAULT_DIMENSIONS = 1536


def simple_hash(text: str) -> int:
    """32-bit signed string hash: h = h * 31 + unit, wrapped to int32.

    Iterates UTF-16 code units: a character outside the BMP (emoji)
    contributes both of its surrogates.
    """
    data = text.encode("utf-16-le", "surrogatepass")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = ((h << 5) - h + unit) & 0xFFFFFFFF
    return h - 0x100000000 if h >= 0x80000000 else h


def synthetic_embedding(text: str, dimensions: int = DEFAULT_DIMENSIONS) -> list[float]:
    """Build a deterministic, L2-normalised pseudo embedding for a text.

    Args:
        text (str): The text to embed.
        dimensions (int): Vector length.

    Returns:
        list[float]: Unit-length vector of the given length.
    """
    h = simple_hash(text)
    vector = [math.sin(h + i * 0.1) * math.cos(h * 0.7 + i * 0.3) for i in range(dimensions)]
    norm = math.sqrt(sum(v * v for v in vector))
    if norm == 0:
        return vector
    return [v / norm for v in vector]


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine similarity of two vectors.

    Raises:
        ValueError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise ValueError(f"Vectors must have the same dimensions ({len(a)} != {len(b)}).")
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)
