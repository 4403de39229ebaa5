"""
Web retrieval module for fetching the roster and release reports.
"""

from typing import Dict, Optional, Tuple

import requests

from rosterwatch.config import Config
from rosterwatch.log import get_logger
from rosterwatch.model import FetchError, ParseError
from rosterwatch.pdfio import extract_text

logger = get_logger(__name__)


def fetch_document(url: str, timeout: Optional[float] = None,
                   headers: Optional[Dict[str, str]] = None) -> bytes:
    """
    Fetch a document from a URL.

    One attempt only; a failed run is simply retried by the next scheduled run.

    Args:
        url: URL to fetch
        timeout: Request timeout in seconds, None for the transport default
        headers: Optional request headers

    Returns:
        Response body
    """
    logger.info(f"Fetching {url}")
    try:
        response = requests.get(url, headers=headers or {}, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        logger.error(f"Failed to fetch {url}: {e}")
        raise FetchError(f"Failed to fetch {url}: {e}") from e

    logger.debug(f"Fetched {len(response.content)} bytes from {url}")
    return response.content


def fetch_roster(cfg: Config) -> Tuple[bytes, str]:
    """
    Fetch the in-custody roster and extract its text.

    Args:
        cfg: Application configuration

    Returns:
        Tuple of (raw PDF bytes, extracted text)
    """
    pdf_bytes = fetch_document(cfg.sources.roster_url, cfg.sources.timeout)
    return pdf_bytes, extract_text(pdf_bytes)


def fetch_release_text(cfg: Config) -> str:
    """
    Fetch the release report and extract its text.

    The release report only enriches releases, so any failure is logged and
    treated as "no details published yet".

    Args:
        cfg: Application configuration

    Returns:
        Extracted text, or "" if the report is unavailable
    """
    try:
        return extract_text(fetch_document(cfg.sources.release_url, cfg.sources.timeout))
    except (FetchError, ParseError) as e:
        logger.warning(f"Release report unavailable, continuing without details: {e}")
        return ""
