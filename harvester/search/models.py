"""Data models for the search stage."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class Credentials:
    """Search API account, passed explicitly into every search call."""

    user: str
    api_key: str = field(repr=False)


@dataclass(frozen=True)
class Hit:
    """A single ``(url, description)`` pair taken from one search response."""

    url: str
    description: str = ""


@dataclass(frozen=True)
class SearchResult:
    """The parsed hits for one search term, in the order the API returned them."""

    term: str
    hits: Tuple[Hit, ...] = ()
