"""Parse a Yandex XML search response into a list of :class:`Hit`.

Expected document shape (irrelevant elements omitted)::

    <yandexsearch>
      <response>
        <error code="15">Sorry, there are no results for this search</error>
        <results>
          <grouping>
            <group>
              <doc>
                <url>https://example.com/</url>
                <passages><passage>… <hlword>term</hlword> …</passage></passages>
              </doc>
            </group>
          </grouping>
        </results>
      </response>
    </yandexsearch>

An ``<error>`` element wins over any result data in the same document.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import List

from harvester.errors import SearchError
from harvester.search.models import Hit

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _text(element: ET.Element | None) -> str:
    """Return all text inside *element* (sub-elements included), stripped."""
    if element is None:
        return ""
    return "".join(element.itertext()).strip()


def _parse_doc(doc: ET.Element) -> Hit | None:
    url = _text(doc.find("url"))
    if not url:
        return None
    return Hit(url=url, description=_text(doc.find("passages/passage")))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_response(body: str) -> List[Hit]:
    """Return the hits contained in one raw search response body.

    Hits are returned in document order.  A response with no groups is a
    valid, empty result.

    Raises:
        SearchError: If the body is not XML, has no top-level ``<response>``,
            or carries an ``<error>`` element.
    """
    try:
        root = ET.fromstring(body)
    except ET.ParseError as exc:
        raise SearchError(f"malformed search response: {exc}") from exc

    response = root.find("response")
    if response is None:
        raise SearchError(f"unexpected search response: no <response> under <{root.tag}>")

    error = response.find("error")
    if error is not None:
        raise SearchError(_text(error) or "search API returned an error", code=error.get("code"))

    hits: List[Hit] = []
    for doc in response.iterfind("results/grouping/group/doc"):
        hit = _parse_doc(doc)
        if hit is None:
            logger.debug("skipping result document without a url")
            continue
        hits.append(hit)
    return hits
