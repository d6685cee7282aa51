"""Text acquisition for stub files.

Turns a file into a text blob for the extraction core. PDFs use their text
layer via PyPDF2; plain text exports are read as-is. Image OCR is not done
here: scanned stubs must be converted to text upstream.
"""

import logging
from pathlib import Path
from typing import List, Union

import PyPDF2
from PyPDF2.errors import PdfReadError


logger = logging.getLogger(__name__)

TEXT_SUFFIXES = (".txt", ".text")


class ExtractionImpossibleError(Exception):
    """Raised when no text can be obtained for a document."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Could not extract text from {source}: {reason}")


def extract_text_per_page(pdf_path: Union[str, Path]) -> List[str]:
    """Extract text from PDF file, returning text per page."""
    pages = []
    with open(pdf_path, "rb") as f:
        reader = PyPDF2.PdfReader(f)
        for page in reader.pages:
            pages.append(page.extract_text() or "")
    return pages


def extract_text_from_pdf(pdf_path: Union[str, Path]) -> str:
    """Extract text from PDF file, one page per block."""
    try:
        pages = extract_text_per_page(pdf_path)
    except (OSError, PdfReadError) as e:
        raise ExtractionImpossibleError(str(pdf_path), str(e)) from e

    return "".join(page + "\n" for page in pages if page)


def extract_text(path: Union[str, Path]) -> str:
    """Get the text blob for a stub file.

    Raises:
        ExtractionImpossibleError: unsupported type, unreadable file, or no text
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".pdf":
        text = extract_text_from_pdf(path)
    elif suffix in TEXT_SUFFIXES:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ExtractionImpossibleError(str(path), str(e)) from e
    else:
        raise ExtractionImpossibleError(str(path), f"unsupported file type '{suffix or 'none'}'")

    if not text.strip():
        # Image-only PDFs have no text layer
        raise ExtractionImpossibleError(str(path), "no text layer (scanned image?)")

    logger.debug(f"extracted {len(text)} chars of text from {path.name}")
    return text
