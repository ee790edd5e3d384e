import io
import logging
import re
from pathlib import Path

from ..utils.error_handlers import ExtractionError, get_error_message

logger = logging.getLogger(__name__)

PDF_EXTENSIONS = {".pdf"}
WORD_EXTENSIONS = {".docx", ".doc"}

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
_MULTISPACE_RE = re.compile(r"[ \t]{2,}")
_MULTINEWLINE_RE = re.compile(r"\n{3,}")


def _read_bytes(source: bytes | str | Path) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    # Paths are read only; the caller owns (and deletes) the file.
    return Path(source).read_bytes()


def _extract_pdf(data: bytes) -> str:
    from pypdf import PdfReader

    try:
        reader = PdfReader(io.BytesIO(data))
        pages = list(reader.pages)
    except Exception as e:
        # pypdf raises a mix of PdfReadError / PdfStreamError / ValueError on damaged input
        raise ExtractionError(get_error_message("file_corrupted"), details={"format": "pdf"}) from e

    parts: list[str] = []
    for i, page in enumerate(pages):
        try:
            parts.append(page.extract_text() or "")
        except Exception as e:
            # One bad page should not sink the whole document.
            logger.warning("PDF page %s text extraction failed: %s", i, type(e).__name__)
            parts.append("")
    return "\n\n".join(parts)


def _extract_word(data: bytes) -> str:
    import docx

    try:
        document = docx.Document(io.BytesIO(data))
    except Exception as e:
        # python-docx surfaces zip/xml errors for non-docx input (e.g. legacy binary .doc)
        raise ExtractionError(get_error_message("file_corrupted"), details={"format": "docx"}) from e
    return "\n".join(p.text for p in document.paragraphs if p.text)


def clean_extracted_text(text: str) -> str:
    """Normalize newlines, drop control characters and squeeze runs of whitespace."""
    text = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    text = _CONTROL_CHARS_RE.sub("", text)
    text = _MULTISPACE_RE.sub(" ", text)
    text = _MULTINEWLINE_RE.sub("\n\n", text)
    return text.strip()


def extract_text(*, source: bytes | str | Path, original_filename: str) -> str:
    """
    Turn an uploaded resume into plain text.

    Dispatch is on the extension of `original_filename` (the stored temp file
    may have any name):
      - .pdf         -> pypdf
      - .docx / .doc -> python-docx
      - anything else is decoded as UTF-8

    Raises ExtractionError when the parser cannot read the bytes. An empty
    result (e.g. an image-only PDF) is returned as "" rather than raised.
    """
    ext = Path(original_filename or "").suffix.lower()
    try:
        data = _read_bytes(source)
    except OSError as e:
        raise ExtractionError("Uploaded file could not be read") from e

    if ext in PDF_EXTENSIONS:
        raw = _extract_pdf(data)
    elif ext in WORD_EXTENSIONS:
        raw = _extract_word(data)
    else:
        raw = data.decode("utf-8", errors="replace")

    text = clean_extracted_text(raw)
    if not text:
        logger.warning("No text extracted from %s (%s bytes)", original_filename, len(data))
    return text
