from fastapi import APIRouter, File, Query, Request, UploadFile

from server.errors import ApiError
from server.models.requests import DeleteDocumentRequest, IngestTextRequest, IngestUrlRequest
from server.models.responses import DeleteResponse, IngestResponse, IngestUrlResponse
from services.ingestion.IngestionService import IngestionService
from services.ingestion.sources import FileSource, TextSource, UrlSource

router = APIRouter(prefix="/documents", tags=["documents"])


def _require_user_id(user_id: object) -> str:
    if not user_id or not isinstance(user_id, str):
        raise ApiError("userId is required", status_code=400)
    return user_id


@router.post("/ingest-text")
async def ingest_text(request: Request, body: IngestTextRequest) -> IngestResponse:
    """Chunk, embed and store a raw text as a "Manual Entry" document.

    Args:
        request (Request): FastAPI request (provides app.state.ingestion_service).
        body (IngestTextRequest): JSON body with text and userId.

    Returns:
        IngestResponse: The stored document summary.
    """
    user_id = _require_user_id(body.user_id)
    ingestion_service: IngestionService = request.app.state.ingestion_service
    document = await ingestion_service.ingest(TextSource.model_construct(text=body.text), user_id)
    return IngestResponse(document=document)


@router.post("/ingest-file")
async def ingest_file(
    request: Request,
    file: UploadFile | None = File(default=None),
    user_id: str | None = Query(default=None, alias="userId"),
) -> IngestResponse:
    """Extract, chunk, embed and store an uploaded TXT, MD, PDF or DOCX file.

    Args:
        request (Request): FastAPI request (provides app.state.ingestion_service).
        file (UploadFile | None): Multipart form field "file".
        user_id (str | None): Owner of the document, query parameter "userId".

    Returns:
        IngestResponse: The stored document summary.
    """
    user_id = _require_user_id(user_id)
    if file is None:
        source = FileSource()
    else:
        source = FileSource(
            filename=file.filename or "",
            content_type=file.content_type or "",
            data=await file.read(),
        )
    ingestion_service: IngestionService = request.app.state.ingestion_service
    document = await ingestion_service.ingest(source, user_id)
    return IngestResponse(document=document)


@router.post("/ingest-url")
async def ingest_url(request: Request, body: IngestUrlRequest) -> IngestUrlResponse:
    """Fetch a web page, then chunk, embed and store its visible text.

    Args:
        request (Request): FastAPI request (provides app.state.ingestion_service).
        body (IngestUrlRequest): JSON body with url and userId.

    Returns:
        IngestUrlResponse: The stored document summary plus chunk statistics.
    """
    user_id = _require_user_id(body.user_id)
    ingestion_service: IngestionService = request.app.state.ingestion_service
    result = await ingestion_service.ingest_detailed(UrlSource.model_construct(url=body.url), user_id)
    return IngestUrlResponse(
        document=result.document,
        total_chunks=result.document.chunk_count,
        avg_chunk_size=result.avg_chunk_size,
        content_length=result.content_length,
    )


@router.delete("/delete")
async def delete_document(request: Request, body: DeleteDocumentRequest) -> DeleteResponse:
    """Remove a document and all of its chunks."""
    if not body.document_id or not isinstance(body.document_id, str):
        raise ApiError("Document ID is required", status_code=400)
    ingestion_service: IngestionService = request.app.state.ingestion_service
    await ingestion_service.delete_document(body.document_id)
    return DeleteResponse()


@router.delete("")
async def clear_documents(request: Request) -> DeleteResponse:
    """Drop every stored document. Meant for development resets."""
    ingestion_service: IngestionService = request.app.state.ingestion_service
    await ingestion_service.clear_all()
    return DeleteResponse(message="All documents deleted successfully")
