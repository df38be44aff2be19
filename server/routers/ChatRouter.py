from fastapi import APIRouter, Request

from server.core.QueryService import QueryService
from server.errors import ApiError
from server.models.requests import ChatRequest
from server.models.responses import ChatResponse

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("")
async def chat(request: Request, body: ChatRequest) -> ChatResponse:
    """Answer a question from the caller's own documents.

    Args:
        request (Request): FastAPI request (provides app.state.query_service).
        body (ChatRequest): JSON body with userQuery, userId and conversationHistory.

    Returns:
        ChatResponse: The assistant reply and the titles of the used sources.
    """
    if not body.user_query or not isinstance(body.user_query, str) or not body.user_query.strip():
        raise ApiError("Message is required.", status_code=400)

    user_id = body.user_id if isinstance(body.user_id, str) else ""
    if not user_id:
        request.app.state.logging.warning("Chat request without userId, no documents will match.")

    query_service: QueryService = request.app.state.query_service
    history = [turn.to_chat_message() for turn in body.conversation_history]
    try:
        message = await query_service.answer(body.user_query, user_id, history)
    except Exception as e:
        request.app.state.logging.error("Chat request failed: %s", e, exc_info=e)
        raise ApiError("Failed to process chat request", status_code=500) from e

    return ChatResponse(response=message.content, sources=message.sources or [])
