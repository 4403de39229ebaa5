"""
PDF I/O utilities for Roster Watch.
"""

import io
from typing import List

import pdfplumber

from rosterwatch.log import get_logger
from rosterwatch.model import ParseError

logger = get_logger(__name__)


def extract_pages(pdf_bytes: bytes) -> List[str]:
    """
    Extract the text of each page of a PDF.

    Args:
        pdf_bytes: Raw PDF document

    Returns:
        One string per page
    """
    try:
        with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
            pages = []
            for page_num, page in enumerate(pdf.pages, 1):
                logger.debug(f"Processing page {page_num} of {len(pdf.pages)}")
                pages.append(page.extract_text() or "")
            return pages
    except Exception as e:
        logger.error(f"Error extracting text from PDF: {e}")
        raise ParseError(f"Error extracting text from PDF: {e}") from e


def extract_text(pdf_bytes: bytes) -> str:
    """
    Extract the text of a PDF as one string.

    Args:
        pdf_bytes: Raw PDF document

    Returns:
        Page texts joined by newlines
    """
    return "\n".join(extract_pages(pdf_bytes))


def read_source_text(path: str) -> str:
    """
    Read a saved report, either the PDF itself or its extracted text.

    Args:
        path: Path to a .pdf or text file

    Returns:
        Report text
    """
    if path.lower().endswith(".pdf"):
        with open(path, "rb") as f:
            return extract_text(f.read())
    with open(path, "r", encoding="utf-8") as f:
        return f.read()
