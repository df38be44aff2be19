from shared.helper.HelperConfig import HelperConfig
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.ResilientVectorStore import ResilientVectorStore
from shared.clients.rag.mock.VectorStoreMock import VectorStoreMock


class RAGClientManager:
    """
    Manager class to build the vector store stack based on configuration.

    The configured engine client is wrapped into a ResilientVectorStore together
    with an in-memory mock. If the engine has no base URL configured, the store
    runs on the mock alone.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()
        self.store = self._initialize_store()

    def _get_engine_from_env(self) -> str:
        """
        Reads the RAG engine from ENV configuration.

        Returns:
            str: Capitalised engine name (e.g. "Qdrant").
        """
        engine = self.helper_config.get_string_val("RAG_ENGINE", default="qdrant")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> RAGClientInterface | None:
        """
        Initializes the RAG client for the configured engine.

        Returns:
            RAGClientInterface | None: The client instance, or None if the engine has no base URL configured.

        Raises:
            ValueError: If the configured engine is unsupported.
        """
        engine = self._get_engine_from_env()
        base_url_key = f"RAG_{engine.upper()}_BASE_URL"
        if not self.helper_config.get_string_val(base_url_key, default=""):
            self.logging.warning("%s is not set, vector storage runs on the in-memory mock only.", base_url_key)
            return None

        className = f"RAGClient{engine}"
        try:
            module = __import__(
                f"shared.clients.rag.{engine.lower()}.{className}",
                fromlist=[className],
            )
            client_class = getattr(module, className)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported RAG engine specified: '{engine}'. Error: {e}")
        client = client_class(helper_config=self.helper_config)
        self.logging.debug(f"Instantiated RAG client for engine: {engine}")
        return client

    def _initialize_store(self) -> ResilientVectorStore:
        collection_name = self.client.get_collection_name() if self.client else "documents"
        fallback = VectorStoreMock(helper_config=self.helper_config, collection_name=collection_name)
        return ResilientVectorStore(helper_config=self.helper_config, primary=self.client, fallback=fallback)

    def get_client(self) -> RAGClientInterface | None:
        """
        Returns the engine client (to boot and close), None when running on the mock only.

        Returns:
            RAGClientInterface | None: The RAG client instance.
        """
        return self.client

    def get_store(self) -> ResilientVectorStore:
        """
        Returns the resilient vector store that services should use.

        Returns:
            ResilientVectorStore: The store facade.
        """
        return self.store
