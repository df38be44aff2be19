from pydantic import BaseModel, Field, model_validator

from shared.helper.HelperConfig import HelperConfig

DEFAULT_SUPPORTED_FILE_TYPES = [
    "text/plain",
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/markdown",
]

FILE_TYPE_LABELS = {
    "text/plain": "TXT",
    "application/pdf": "PDF",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "DOCX",
    "text/markdown": "MD",
}


class EnvConfig(BaseModel):
    """
    Represents a single configuration parameter required for a env setting.

    Attributes:
        env_key (str): The key/name of the environment variable to read.
        val_type (str): The expected type of the environment variable's value. Supported types are "string", "number", "bool", and "list".
        default (str | int | bool | list | None): An optional default value if the environment variable is not set. If None, the variable is required and an error will be raised if it is not set.
    """

    env_key: str
    val_type: str
    default: str | int | float | bool | list | None = None


class PipelineConfig(BaseModel):
    """Tunables of the ingestion and retrieval pipeline.

    Attributes:
        chunk_size:               Characters per chunk window.
        chunk_overlap:            Characters shared between consecutive chunks.
        top_k:                    Maximum number of chunks retrieved per question.
        score_threshold:          Minimum similarity score of a retrieved chunk.
        max_file_size:            Upload limit in bytes.
        max_text_length:          Limit for raw text ingestion in characters.
        min_url_content_length:   Pages yielding fewer characters are rejected.
        supported_file_types:     Accepted upload MIME types.
        url_fetch_timeout:        Seconds allowed for fetching a web page.
    """

    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)
    top_k: int = Field(default=5, gt=0)
    score_threshold: float = 0.7
    max_file_size: int = Field(default=10 * 1024 * 1024, gt=0)
    max_text_length: int = Field(default=1_000_000, gt=0)
    min_url_content_length: int = 100
    supported_file_types: list[str] = Field(default_factory=lambda: list(DEFAULT_SUPPORTED_FILE_TYPES))
    url_fetch_timeout: float = 30.0

    @model_validator(mode="after")
    def _check_overlap(self) -> "PipelineConfig":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError(
                f"CHUNK_OVERLAP ({self.chunk_overlap}) must be smaller than CHUNK_SIZE ({self.chunk_size})."
            )
        return self

    @classmethod
    def from_helper(cls, helper_config: HelperConfig) -> "PipelineConfig":
        """Build the pipeline configuration from environment variables.

        Args:
            helper_config (HelperConfig): The central configuration helper.

        Returns:
            PipelineConfig: The resolved configuration, defaults applied.
        """
        return cls(
            chunk_size=int(helper_config.get_number_val("CHUNK_SIZE", default=1000)),
            chunk_overlap=int(helper_config.get_number_val("CHUNK_OVERLAP", default=200)),
            top_k=int(helper_config.get_number_val("RETRIEVAL_TOP_K", default=5)),
            score_threshold=float(helper_config.get_number_val("RETRIEVAL_SCORE_THRESHOLD", default=0.7)),
            max_file_size=int(helper_config.get_number_val("MAX_FILE_SIZE", default=10 * 1024 * 1024)),
            max_text_length=int(helper_config.get_number_val("MAX_TEXT_LENGTH", default=1_000_000)),
            min_url_content_length=int(helper_config.get_number_val("MIN_URL_CONTENT_LENGTH", default=100)),
            supported_file_types=helper_config.get_list_val(
                "SUPPORTED_FILE_TYPES", default=DEFAULT_SUPPORTED_FILE_TYPES
            ),
            url_fetch_timeout=float(helper_config.get_number_val("URL_FETCH_TIMEOUT", default=30.0)),
        )
