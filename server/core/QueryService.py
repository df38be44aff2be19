import uuid

from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.clients.rag.VectorStoreInterface import VectorStoreInterface
from shared.embedding.EmbeddingProvider import EmbeddingProvider
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import PipelineConfig
from shared.models.document import ChatMessage, SearchResult

NO_CONTEXT_MESSAGE = "No relevant information found in the knowledge base."
EMPTY_RESPONSE_FALLBACK = "Sorry, I could not generate a response."

SYSTEM_PROMPT_TEMPLATE = """You are a helpful assistant that answers questions about the user's knowledge base.
Answer only based on the context below. If the context does not contain enough
information to answer the question, say so clearly instead of guessing.
When you use information from a source, mention its title.

Context:
{context}"""


class QueryService:
    """Answers questions: embed -> search (per user) -> build context -> complete."""

    def __init__(
        self,
        helper_config: HelperConfig,
        pipeline_config: PipelineConfig,
        store: VectorStoreInterface,
        embedding_provider: EmbeddingProvider,
        llm_client: LLMClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._config = pipeline_config
        self._store = store
        self._embedding_provider = embedding_provider
        self._llm_client = llm_client

    ##########################################
    ############### CORE #####################
    ##########################################

    async def answer(self, question: str, user_id: str, conversation_history: list[ChatMessage] | None = None) -> ChatMessage:
        """Answer a question from the user's own documents.

        Args:
            question (str): The user question.
            user_id (str): Only chunks stored with this userId are retrieved.
            conversation_history (list[ChatMessage] | None): Earlier turns, oldest first.

        Returns:
            ChatMessage: The assistant reply with the titles of the used sources.

        Raises:
            ClientError: If the completion request fails. Not retried.
        """
        self.logging.info("QueryService.answer: user_id=%r, question='%s'", user_id, question[:200])

        query_vector = await self._embedding_provider.embed(question)
        results = await self._store.search(
            query_vector=query_vector,
            limit=self._config.top_k,
            score_threshold=self._config.score_threshold,
            filters={"metadata.userId": user_id},
        )
        self.logging.debug("Retrieved %d chunk(s) for user %r.", len(results), user_id)

        messages = self.build_messages(question, results, conversation_history or [])
        content = await self._llm_client.do_chat(messages)
        if not content or not content.strip():
            self.logging.warning("LLM returned an empty completion.")
            content = EMPTY_RESPONSE_FALLBACK

        return ChatMessage(
            id=str(uuid.uuid4()),
            role="assistant",
            content=content,
            sources=self.extract_sources(results),
        )

    ##########################################
    ############### HELPER ###################
    ##########################################

    @staticmethod
    def build_context(results: list[SearchResult]) -> str:
        """Join retrieved chunks into numbered "[Source i: title]" blocks."""
        if not results:
            return NO_CONTEXT_MESSAGE
        return "\n\n".join(
            f"[Source {i}: {result.document.title}]\n{result.chunk.content}"
            for i, result in enumerate(results, start=1)
        )

    def build_messages(self, question: str, results: list[SearchResult], history: list[ChatMessage]) -> list[dict]:
        """Assemble the chat messages: system prompt with context, history, then the question."""
        messages = [{"role": "system", "content": SYSTEM_PROMPT_TEMPLATE.format(context=self.build_context(results))}]
        messages.extend({"role": turn.role, "content": turn.content} for turn in history)
        messages.append({"role": "user", "content": question})
        return messages

    @staticmethod
    def extract_sources(results: list[SearchResult]) -> list[str]:
        """Distinct document titles of the results, in retrieval order."""
        return list(dict.fromkeys(result.document.title for result in results))
