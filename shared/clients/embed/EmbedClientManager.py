from shared.helper.HelperConfig import HelperConfig
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface

PLACEHOLDER_API_KEYS = ("demo-key", "mock-key")


class EmbedClientManager:
    """
    Manager class to handle Embed client based on configuration.

    Without a usable API key no client is created and the embedding provider
    works with synthetic vectors only.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Reads the Embed engine from ENV configuration.

        Returns:
            str: The name of the Embed engine.
        """
        engine = self.helper_config.get_string_val("EMBED_ENGINE", default="openai")

        #lowercase all and uppcercase first letter for better comparison and display
        engine = engine.strip().lower()
        engine = engine.capitalize()
        return engine

    def _has_usable_api_key(self, engine: str) -> bool:
        api_key = self.helper_config.get_string_val(f"EMBED_{engine.upper()}_API_KEY", default="")
        return bool(api_key) and api_key not in PLACEHOLDER_API_KEYS

    def _initialize_client(self) -> EmbedClientInterface | None:
        """
        Initializes the Embed client based on the engine specified in the configuration.

        Returns:
            EmbedClientInterface | None: The client instance, or None if no usable API key is configured.

        Raises:
            ValueError: If the configured engine is unsupported.
        """
        engine = self._get_engine_from_env()
        if not self._has_usable_api_key(engine):
            self.logging.warning(
                "No API key configured for embed engine '%s', using synthetic embeddings.", engine
            )
            return None

        className = f"EmbedClient{engine}"
        # try to import the class from shared.clients.embed.{engine}
        try:
            module = __import__(
                f"shared.clients.embed.{engine.lower()}.{className}",
                fromlist=[className],
            )
            client_class = getattr(module, className)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported Embed engine specified: '{engine}'. Error: {e}")
        client = client_class(helper_config=self.helper_config)
        self.logging.debug(f"Instantiated Embed client for engine: {engine}")
        return client

    def get_client(self) -> EmbedClientInterface | None:
        """
        Returns the instantiated Embed client.

        Returns:
            EmbedClientInterface | None: The Embed client instance, None in synthetic-only mode.
        """
        return self.client
