import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from shared.models.document import ChatMessage


class _CamelRequest(BaseModel):
    # fields stay loosely typed so the routers can answer with their own 400 messages
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IngestTextRequest(_CamelRequest):
    text: Any = None
    user_id: Any = None


class IngestUrlRequest(_CamelRequest):
    url: Any = None
    user_id: Any = None


class DeleteDocumentRequest(_CamelRequest):
    document_id: Any = None


class ConversationTurn(_CamelRequest):
    """One earlier chat turn as sent by the client.

    Clients send either {"role", "content"} or {"sender", "text"}.
    """

    id: str | None = None
    role: str | None = None
    sender: str | None = None
    content: str | None = None
    text: str | None = None

    def to_chat_message(self) -> ChatMessage:
        role = "user" if "user" in (self.sender, self.role) else "assistant"
        return ChatMessage(
            id=self.id or str(uuid.uuid4()),
            role=role,
            content=self.content if self.content is not None else (self.text or ""),
        )


class ChatRequest(_CamelRequest):
    user_query: Any = None
    user_id: Any = None
    conversation_history: list[ConversationTurn] = []
