"""Extract main page text using trafilatura."""

from __future__ import annotations

from typing import Optional
import logging

import trafilatura


logger = logging.getLogger(__name__)

# Recipe blogs are long; the model only needs the recipe card and nearby text.
MAX_TEXT_CHARS = 120_000


def extract_main_text(html: str, url: Optional[str] = None) -> str:
    """Return main text extracted by trafilatura or empty string."""
    text = trafilatura.extract(html, url=url, include_comments=False, include_tables=True)
    logger.debug("Extracted text length: %d", len(text or ""))
    return (text or "")[:MAX_TEXT_CHARS]
