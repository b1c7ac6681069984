"""Text extraction from uploaded résumés (PDF, DOCX, plain text)."""

import io
import logging
import mimetypes

import docx
import fitz  # PyMuPDF

from curriculopro.core.errors import ExtractionError

logger = logging.getLogger(__name__)

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
MSWORD = "application/msword"
TEXT = "text/plain"

SUPPORTED_TYPES = {PDF, DOCX, MSWORD, TEXT}


def resolve_content_type(filename: str | None, content_type: str | None) -> str:
    """Trust the client's content type unless it is missing or generic."""
    if content_type and content_type not in ("application/octet-stream", "binary/octet-stream"):
        return content_type.split(";")[0].strip()
    if filename:
        guessed, _ = mimetypes.guess_type(filename)
        if guessed:
            return guessed
        if filename.lower().endswith(".docx"):
            return DOCX
    return content_type or "application/octet-stream"


def extract_text_from_pdf(pdf_bytes: bytes) -> str:
    """Extract all text from a PDF file's bytes."""
    doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    pages = [page.get_text() for page in doc]
    doc.close()
    return "\n".join(pages).strip()


def extract_text_from_docx(data: bytes) -> str:
    document = docx.Document(io.BytesIO(data))
    lines = [p.text for p in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            lines.append(" | ".join(cell.text for cell in row.cells))
    return "\n".join(lines).strip()


def extract_text(filename: str | None, content_type: str | None, data: bytes) -> str:
    """Extract plain text from an uploaded file.

    Raises ExtractionError for unsupported formats or unreadable files.
    """
    kind = resolve_content_type(filename, content_type)
    if kind not in SUPPORTED_TYPES:
        raise ExtractionError("Formato de arquivo não suportado. Use PDF, DOCX ou TXT.")

    try:
        if kind == PDF:
            return extract_text_from_pdf(data)
        if kind in (DOCX, MSWORD):
            return extract_text_from_docx(data)
        return data.decode("utf-8").strip()
    except UnicodeDecodeError as exc:
        raise ExtractionError("Arquivo de texto não está em UTF-8") from exc
    except Exception as exc:
        logger.warning("Failed to extract text from %s (%s): %s", filename, kind, exc)
        raise ExtractionError(f"Erro ao extrair texto do arquivo: {exc}") from exc
