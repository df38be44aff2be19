"""Ingestion sources.

A source is one of three variants, discriminated by ``kind``. The ingestion
service dispatches on the variant once; everything after extraction is shared.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class TextSource(BaseModel):
    kind: Literal["text"] = "text"
    text: str


class FileSource(BaseModel):
    """An uploaded file.

    Attributes:
        filename:      Original file name, used as document title and source.
        content_type:  MIME type as sent by the client.
        data:          Raw file bytes, None if no file was sent.
    """

    kind: Literal["file"] = "file"
    filename: str = ""
    content_type: str = ""
    data: bytes | None = None

    @property
    def size(self) -> int:
        return len(self.data) if self.data is not None else 0


class UrlSource(BaseModel):
    kind: Literal["url"] = "url"
    url: str


IngestSource = Annotated[Union[TextSource, FileSource, UrlSource], Field(discriminator="kind")]
