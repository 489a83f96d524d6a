"""HTTP fetcher for recipe pages."""

from __future__ import annotations

import requests
from typing import Optional, Tuple
import logging

from cookbook.settings import settings


logger = logging.getLogger(__name__)

USER_AGENT = "cookbook-steal/1.0 (+https://example.com)"


def fetch_url(url: str, timeout: Optional[int] = None) -> Tuple[str, str]:
    """GET the url with UA header and a timeout. Returns (html, final_url).

    Raises requests.HTTPError on non-2xx.
    """
    headers = {"User-Agent": USER_AGENT, "Accept": "text/html,application/xhtml+xml"}
    logger.debug("Fetching URL: %s", url)
    resp = requests.get(
        url,
        headers=headers,
        timeout=timeout or settings.FETCH_TIMEOUT,
        allow_redirects=True,
    )
    resp.raise_for_status()
    logger.info("Fetched %s -> status %s (%d bytes)", url, resp.status_code, len(resp.text))
    return resp.text, resp.url
