from __future__ import annotations

import hashlib
from io import BytesIO

from docx import Document
from pypdf import PdfReader

from app.core.errors import ExtractionFailure

from .models import ParsedBlock, ParsedDoc

PDF_MAGIC = b"%PDF"
ZIP_MAGIC = b"PK\x03\x04"
DOCX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _compute_doc_id(text: str, content: bytes) -> str:
    seed = text.encode("utf-8", errors="ignore") if text.strip() else content
    return hashlib.sha256(seed).hexdigest()[:16]


def detect_source_type(content: bytes, content_type: str = "", filename: str = "") -> str:
    declared = (content_type or "").split(";")[0].strip().lower()
    name = (filename or "").lower()

    if content.startswith(PDF_MAGIC) or declared == "application/pdf" or name.endswith(".pdf"):
        return "pdf"
    if declared == DOCX_CONTENT_TYPE or name.endswith(".docx"):
        return "docx"
    if content.startswith(ZIP_MAGIC):
        return "docx"
    if declared.startswith("text/") or name.endswith((".txt", ".md")):
        return "txt"
    raise ExtractionFailure(f"Unsupported resume media type '{declared or 'unknown'}'.")


def _parse_txt(content: bytes) -> tuple[str, list[ParsedBlock]]:
    return content.decode("utf-8", errors="replace"), []


def _parse_pdf(content: bytes) -> tuple[str, list[ParsedBlock]]:
    reader = PdfReader(BytesIO(content))
    text_parts: list[str] = []
    blocks: list[ParsedBlock] = []
    for index, page in enumerate(reader.pages, start=1):
        page_text = (page.extract_text() or "").strip()
        if page_text:
            text_parts.append(page_text)
            blocks.append(ParsedBlock(page=index, text=page_text))
    return "\n".join(text_parts), blocks


def _parse_docx(content: bytes) -> tuple[str, list[ParsedBlock]]:
    document = Document(BytesIO(content))
    paragraphs = [p.text.strip() for p in document.paragraphs if p.text and p.text.strip()]
    return "\n".join(paragraphs), [ParsedBlock(text=paragraph) for paragraph in paragraphs]


_PARSERS = {
    "txt": _parse_txt,
    "pdf": _parse_pdf,
    "docx": _parse_docx,
}


def parse_resume_bytes(content: bytes, content_type: str = "", filename: str = "") -> ParsedDoc:
    """Extract plain text from resume bytes.

    Raises ``ExtractionFailure`` when the format is unsupported or the parser
    library rejects the document. An empty ``text`` is a valid result.
    """
    if not content:
        raise ExtractionFailure("Resume file is empty.")

    source_type = detect_source_type(content, content_type, filename)
    try:
        text, blocks = _PARSERS[source_type](content)
    except Exception as exc:  # noqa: BLE001 - pypdf and python-docx raise a wide range of errors
        raise ExtractionFailure(f"{source_type.upper()} parsing failed: {exc}") from exc

    warnings: list[str] = []
    if not text.strip():
        warnings.append(f"No extractable text found in {source_type.upper()}.")

    return ParsedDoc(
        doc_id=_compute_doc_id(text, content),
        source_type=source_type,
        text=text,
        blocks=blocks,
        parsing_warnings=warnings,
    )
