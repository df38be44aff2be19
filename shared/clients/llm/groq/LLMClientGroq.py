from shared.clients.ClientError import ClientResponseError
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class LLMClientGroq(LLMClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://api.groq.com/openai/v1", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Groq"

    def _get_default_chat_model(self) -> str:
        return "llama-3.1-8b-instant"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://api.groq.com/openai/v1"),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/models"

    def _get_endpoint_chat(self) -> str:
        # OpenAI-compatible chat completions
        return "/chat/completions"

    ################ PAYLOAD BUILDER ##################
    def get_chat_payload(self, messages: list[dict]) -> dict:
        """Build the Groq chat completion request body.

        Args:
            messages (list[dict]): OpenAI-format messages.

        Returns:
            dict: {"model": "...", "messages": [...], "temperature": t, "max_tokens": n, "stream": False}
        """
        return {
            "model": self.chat_model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "stream": False,
        }

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_chat_response(self, response_data: dict) -> str:
        """Extract the assistant reply text from a /chat/completions response.

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            str: The content of the first choice, empty if it has none.

        Raises:
            ClientResponseError: If the response has no choices.
        """
        choices = response_data.get("choices")
        if not choices:
            raise ClientResponseError(
                "Groq chat response does not contain any choices. "
                "Response keys: %s" % list(response_data.keys()),
                engine=self.get_engine_name(),
            )
        message = choices[0].get("message") or {}
        return message.get("content") or ""
