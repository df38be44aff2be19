import re

from shared.models.document import ChunkMetadata, DocumentChunk

SENTENCE_ENDERS = (". ", "! ", "? ", ".\n", "!\n", "?\n")

_WHITESPACE_RE = re.compile(r"\s+")


def clean_text(text: str) -> str:
    """Collapse whitespace runs (including blank lines) to single spaces and trim."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def find_last_sentence_end(window: str) -> int:
    """Return the position right after the last sentence ender in the window.

    Args:
        window (str): The candidate chunk text.

    Returns:
        int: Offset after the last ender, or len(window) if the window contains none.
    """
    last_end = -1
    for ender in SENTENCE_ENDERS:
        index = window.rfind(ender)
        if index != -1:
            last_end = max(last_end, index + len(ender))
    return last_end if last_end > 0 else len(window)


def chunk_text(text: str, document_id: str, chunk_size: int = 1000, overlap: int = 200) -> list[DocumentChunk]:
    """Split a document's text into overlapping chunks.

    A window of chunk_size characters slides over the text. Windows that do not
    reach the end of the text are cut after the last sentence ender, provided
    that cut keeps more than half of the window. Chunks are cleaned, empty ones
    are dropped, and every emitted chunk gets the next contiguous index.

    Args:
        text (str): The full extracted text.
        document_id (str): ID of the owning document, used to build chunk IDs.
        chunk_size (int): Maximum characters per window.
        overlap (int): Characters the next window reaches back.

    Returns:
        list[DocumentChunk]: Ordered chunks without embeddings.

    Raises:
        ValueError: If chunk_size is not positive or overlap is outside [0, chunk_size).
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}.")
    if overlap < 0 or overlap >= chunk_size:
        raise ValueError(f"overlap must be in [0, {chunk_size}), got {overlap}.")

    chunks: list[DocumentChunk] = []
    text_length = len(text)
    start = 0
    while start < text_length:
        end = min(start + chunk_size, text_length)
        window = text[start:end]

        if end < text_length:
            boundary = find_last_sentence_end(window)
            if boundary > chunk_size * 0.5:
                window = window[:boundary]

        cleaned = clean_text(window)
        if cleaned:
            chunk_index = len(chunks)
            chunks.append(
                DocumentChunk(
                    id=f"{document_id}_chunk_{chunk_index}",
                    document_id=document_id,
                    content=cleaned,
                    metadata=ChunkMetadata(
                        chunk_index=chunk_index,
                        start_char=start,
                        end_char=start + len(cleaned),
                    ),
                )
            )

        if end >= text_length:
            break

        next_start = start + len(cleaned) - overlap
        if next_start >= end:
            next_start = end
        # forced progress
        if next_start <= start:
            next_start = end
        start = next_start
    return chunks


class TextChunker:
    """Chunker bound to the configured window size and overlap.

    Bounds are checked by chunk_text() on every call.
    """

    def __init__(self, chunk_size: int = 1000, overlap: int = 200):
        self.chunk_size = chunk_size
        self.overlap = overlap

    def chunk(self, text: str, document_id: str) -> list[DocumentChunk]:
        return chunk_text(text, document_id, self.chunk_size, self.overlap)
