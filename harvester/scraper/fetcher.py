"""HTTP page fetcher used to enrich search hits with their meta tags."""

from __future__ import annotations

import logging
from typing import Dict

import httpx

from harvester.config import settings
from harvester.errors import MetadataError, TransportError
from harvester.scraper.extractor import extract_meta_tags
from harvester.scraper.models import RawPage

logger = logging.getLogger(__name__)

_HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")


def _is_html(content_type: str) -> bool:
    """Return ``True`` if *content_type* is empty or names an HTML document."""
    if not content_type:
        return True
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type in _HTML_CONTENT_TYPES


def fetch_url(url: str) -> RawPage:
    """Fetch *url* and return a :class:`RawPage`.

    Redirects are followed; the request is bounded by
    ``settings.request_timeout``.

    Raises:
        TransportError: On network failure, timeout or a 4xx/5xx status.
        MetadataError: If the server declares a non-HTML content type.
    """
    try:
        with httpx.Client(
            headers={"User-Agent": settings.user_agent},
            timeout=settings.request_timeout,
            follow_redirects=True,
        ) as client:
            response = client.get(url)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        raise TransportError(f"fetching {url} failed: {type(exc).__name__}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    if not _is_html(content_type):
        raise MetadataError(f"{url} is not an HTML document ({content_type})")

    return RawPage(
        url=url,
        html=response.text,
        status_code=response.status_code,
        content_type=content_type,
    )


def fetch_meta_tags(url: str) -> Dict[str, str]:
    """Fetch *url* and return its ``<meta name content>`` mapping.

    Raises:
        TransportError: If the page could not be fetched.
        MetadataError: If the page is not HTML.
    """
    logger.info("retrieving metadata from %s", url)
    raw = fetch_url(url)
    return extract_meta_tags(raw.html)
