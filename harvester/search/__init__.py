"""Search package — Yandex XML request + response parsing."""

from harvester.search.client import SearchClient
from harvester.search.models import Credentials, Hit, SearchResult
from harvester.search.parser import parse_response

__all__ = ["SearchClient", "parse_response", "Credentials", "Hit", "SearchResult"]
