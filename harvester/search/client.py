"""Yandex XML search client.

One :meth:`SearchClient.search` call issues exactly one GET request for one
term and returns the raw XML body.  Parsing lives in
:mod:`harvester.search.parser`; the client never inspects the payload.
"""

from __future__ import annotations

import logging

import httpx

from harvester.config import Settings, settings as default_settings
from harvester.errors import TransportError
from harvester.search.models import Credentials, SearchResult
from harvester.search.parser import parse_response

logger = logging.getLogger(__name__)

_SORT_BY = "tm.order=ascending"
_FILTER = "none"


def build_query_params(term: str, credentials: Credentials, settings: Settings) -> dict[str, str]:
    """Return the query-string parameters for one search request."""
    groupby = (
        'attr="".mode=flat'
        f".groups-on-page={settings.groups_on_page}"
        f".docs-in-group={settings.docs_in_group}"
    )
    return {
        "query": term,
        "user": credentials.user,
        "key": credentials.api_key,
        "l10n": settings.search_l10n,
        "sortby": _SORT_BY,
        "filter": _FILTER,
        "groupby": groupby,
    }


class SearchClient:
    """Issue search requests against ``settings.search_url``.

    Credentials are passed per call rather than stored, so a single client can
    serve several accounts.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or default_settings

    def search(self, term: str, credentials: Credentials) -> str:
        """Return the raw response body for *term*.

        Raises:
            TransportError: On network failure, timeout or a 4xx/5xx status.
        """
        params = build_query_params(term, credentials, self._settings)
        logger.info("searching for %r", term)
        try:
            with httpx.Client(
                headers={"User-Agent": self._settings.user_agent},
                timeout=self._settings.request_timeout,
            ) as client:
                response = client.get(self._settings.search_url, params=params)
                response.raise_for_status()
                return response.text
        except httpx.HTTPStatusError as exc:
            # The status error message embeds the request URL, which carries the key.
            raise TransportError(
                f"search request for {term!r} failed with HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(
                f"search request for {term!r} failed: {type(exc).__name__}: {exc}"
            ) from exc

    def search_and_parse(self, term: str, credentials: Credentials) -> SearchResult:
        """Search for *term* and parse the response into a :class:`SearchResult`.

        Raises:
            TransportError: If the request fails.
            SearchError: If the API reports an error or the body is malformed.
        """
        body = self.search(term, credentials)
        hits = parse_response(body)
        logger.info("%r: %d hit(s)", term, len(hits))
        return SearchResult(term=term, hits=tuple(hits))
