"""Meta-tag extraction: turns page HTML into a ``name → content`` mapping."""

from __future__ import annotations

from typing import Dict

from bs4 import BeautifulSoup


def extract_meta_tags(html: str) -> Dict[str, str]:
    """Return ``{name: content}`` for every ``<meta>`` carrying both attributes.

    When several tags share a name the last one in document order wins.
    Tags missing either ``name`` or ``content`` are ignored.
    """
    soup = BeautifulSoup(html, "html.parser")
    tags: Dict[str, str] = {}
    for meta in soup.find_all("meta", attrs={"name": True, "content": True}):
        tags[meta["name"]] = meta["content"]
    return tags
