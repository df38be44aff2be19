"""Validation and text extraction for the three ingestion sources.

- validate_text / validate_file / validate_url: reject bad input before any side effect
- extract_file_text: plain text and markdown decoding, PDF via pypdf, DOCX via python-docx
- fetch_url_text: fetches a page with httpx and reduces it to (title, text) with BeautifulSoup
"""

import io
import re
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup
from docx import Document as DocxDocument
from pypdf import PdfReader

from services.ingestion.errors import ExtractionError, IngestionValidationError
from services.ingestion.sources import FileSource
from shared.models.config import FILE_TYPE_LABELS, PipelineConfig

PDF_MIME = "application/pdf"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
PLAIN_TEXT_MIMES = ("text/plain", "text/markdown")

USER_AGENT = "Mozilla/5.0 (compatible; RAGKnowledgeBase/1.0)"

_WHITESPACE_RE = re.compile(r"\s+")


##########################################
############### VALIDATION ###############
##########################################

def validate_text(text: object, max_length: int = 1_000_000) -> str:
    """Validate raw text input.

    Raises:
        IngestionValidationError: If the text is missing, blank or too long.
    """
    if not text or not isinstance(text, str):
        raise IngestionValidationError("Text must be a non-empty string")
    if not text.strip():
        raise IngestionValidationError("Text cannot be empty or only whitespace")
    if len(text) > max_length:
        raise IngestionValidationError(f"Text is too large (max {max_length // 1_000_000 or 1}MB)")
    return text


def validate_file(source: FileSource, config: PipelineConfig) -> None:
    """Validate an upload: presence, type, size limit and emptiness, in that order.

    Raises:
        IngestionValidationError: On the first failed check.
    """
    if source.data is None:
        raise IngestionValidationError("No file provided")
    if source.content_type not in config.supported_file_types:
        supported = ", ".join(FILE_TYPE_LABELS.get(t, t) for t in config.supported_file_types)
        raise IngestionValidationError(
            f"Unsupported file type: {source.content_type or 'unknown'}. Supported types: {supported}"
        )
    if source.size > config.max_file_size:
        raise IngestionValidationError(
            f"File too large: {source.size / 1024 / 1024:.1f}MB. "
            f"Maximum size is {config.max_file_size / 1024 / 1024:g}MB"
        )
    if source.size == 0:
        raise IngestionValidationError("File is empty")


def validate_url(url: object) -> str:
    """Validate that the input is an absolute http(s) URL.

    Raises:
        IngestionValidationError: If the URL is missing or malformed.
    """
    if not url or not isinstance(url, str):
        raise IngestionValidationError("Valid URL is required")
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise IngestionValidationError("Invalid URL format")
    return url.strip()


##########################################
############### EXTRACTION ###############
##########################################

def _extract_pdf(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    return "\n".join(page.extract_text() or "" for page in reader.pages)


def _extract_docx(data: bytes) -> str:
    document = DocxDocument(io.BytesIO(data))
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


def extract_file_text(source: FileSource) -> str:
    """Extract the plain text of a validated upload.

    Args:
        source (FileSource): The uploaded file.

    Returns:
        str: The extracted text (may be blank for image-only PDFs).

    Raises:
        ExtractionError: If the file cannot be parsed (client fault).
    """
    data = source.data or b""
    if source.content_type in PLAIN_TEXT_MIMES:
        return data.decode("utf-8", errors="replace")
    try:
        if source.content_type == PDF_MIME:
            return _extract_pdf(data)
        if source.content_type == DOCX_MIME:
            return _extract_docx(data)
    except Exception as e:
        raise ExtractionError(
            f"Could not read {source.filename or 'file'}: {e.__class__.__name__}", client_fault=True
        ) from e
    raise ExtractionError(f"No extractor for file type: {source.content_type}", client_fault=True)


def html_to_title_and_text(html: str, url: str) -> tuple[str, str]:
    """Reduce an HTML page to its title and visible text.

    Scripts, styles and noscript blocks are dropped and whitespace is collapsed.
    Falls back to the URL hostname when the page has no <title>.

    Args:
        html (str): Raw HTML.
        url (str): The page URL, used for the title fallback.

    Returns:
        tuple[str, str]: (title, text)
    """
    soup = BeautifulSoup(html, "lxml")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    title = soup.title.get_text(" ", strip=True) if soup.title else ""
    if not title:
        title = urlparse(url).hostname or url

    root = soup.body if soup.body else soup
    text = _WHITESPACE_RE.sub(" ", root.get_text(" ", strip=True)).strip()
    return title, text


async def fetch_url_text(http_client: httpx.AsyncClient, url: str, timeout: float = 30.0) -> tuple[str, str]:
    """Fetch a web page and extract its title and text.

    Args:
        http_client (httpx.AsyncClient): Shared client used for the request.
        url (str): A validated http(s) URL.
        timeout (float): Request timeout in seconds.

    Returns:
        tuple[str, str]: (title, text)

    Raises:
        ExtractionError: If the page cannot be fetched (server fault).
    """
    try:
        response = await http_client.get(
            url,
            headers={"User-Agent": USER_AGENT},
            timeout=timeout,
            follow_redirects=True,
        )
    except httpx.HTTPError as e:
        raise ExtractionError(f"Failed to process website: {e.__class__.__name__}") from e

    if response.status_code >= 300:
        raise ExtractionError(f"Failed to process website: status {response.status_code}")

    return html_to_title_and_text(response.text, url)
