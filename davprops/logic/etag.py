"""ETag helpers for multistatus responses.

Single source of truth for the ETag validity pattern and for reading the
``d:getetag`` value out of a parsed response.
"""

from __future__ import annotations

import re

from davprops.logic.xml_response import MultistatusDocument, node_text

# Quoted opaque token as emitted by the server, e.g. "5f3e9a0b1c2d".
ETAG_PATTERN = r'"[a-f0-9:.]{1,32}"'
_ETAG_RE = re.compile(rf"^{ETAG_PATTERN}$")

GETETAG_XPATH = "//d:prop/d:getetag"

__all__ = [
    "ETAG_PATTERN",
    "GETETAG_XPATH",
    "is_etag_valid",
    "etag_from_document",
]


def is_etag_valid(etag: str) -> bool:
    return bool(etag) and _ETAG_RE.match(etag) is not None


def etag_from_document(document: MultistatusDocument) -> str:
    """Return the first ``d:getetag`` value, or "" when the response has none.

    Callers that need the ETag to exist go through the property existence
    check instead.
    """
    node = document.first(GETETAG_XPATH)
    if node is None:
        return ""
    return node_text(node)
