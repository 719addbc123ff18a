"""Parsed view of a WebDAV multistatus response.

Wraps an lxml tree and exposes the pieces the assertions need: the finite
list of ``d:response`` entries with their hrefs, namespace-aware XPath
evaluation, and SimpleXML-style string values of nodes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Union
from urllib.parse import unquote

from lxml import etree

from davprops.errors import PropertyNotFoundError, ResponseXmlError
from davprops.models.namespaces import DAV_NS, DEFAULT_NAMESPACES, NamespaceMap


logger = logging.getLogger(__name__)

# Server-supplied bodies are untrusted: no entity expansion, no network.
_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, huge_tree=False)


@dataclass(frozen=True)
class ResponseEntry:
    index: int
    href: str
    element: etree._Element

    @property
    def decoded_href(self) -> str:
        return unquote(self.href)


def node_text(node: Union[etree._Element, str]) -> str:
    """String value of a node the way SimpleXMLElement::__toString reads it.

    Only the element's own text nodes count, not the text of its children.
    XPath string results (attributes, ``text()``) are returned unchanged.
    """
    if not isinstance(node, etree._Element):
        return str(node)
    return "".join(node.xpath("text()"))


def xpath_on(node: etree._Element, expression: str, namespaces: Optional[NamespaceMap] = None) -> list:
    """Evaluate ``expression`` relative to ``node`` with an explicit namespace map.

    An undeclared prefix is reported as a missing node, the same way an
    absent property is, because the item cannot be located.
    """
    ns = (namespaces or DEFAULT_NAMESPACES).as_dict()
    try:
        result = node.xpath(expression, namespaces=ns)
    except etree.XPathEvalError as exc:
        raise PropertyNotFoundError(
            f'Cannot find item with xpath "{expression}": {exc}'
        ) from exc
    if isinstance(result, list):
        return result
    # count(), boolean() and string() select no nodes
    return []


def xpath_literal(value: str) -> str:
    """Quote ``value`` as an XPath 1.0 string literal."""
    if "'" not in value:
        return f"'{value}'"
    if '"' not in value:
        return f'"{value}"'
    parts = value.split("'")
    return "concat(" + ", \"'\", ".join(f"'{p}'" for p in parts) + ")"


class MultistatusDocument:
    def __init__(self, root: etree._Element) -> None:
        self.root = root
        self._entries: Optional[List[ResponseEntry]] = None

    @classmethod
    def parse(cls, content: Union[bytes, str], *, context: str = "") -> "MultistatusDocument":
        if isinstance(content, str):
            content = content.encode("utf-8")
        if not content or not content.strip():
            raise ResponseXmlError("response body is empty, expected an XML document", context=context or None)
        try:
            root = etree.fromstring(content, parser=_PARSER)
        except etree.XMLSyntaxError as exc:
            preview = content[:200].decode("utf-8", errors="replace")
            logger.error("response_xml.parse_failed error=%s preview=%s", exc, preview)
            raise ResponseXmlError(f"response body is not valid XML: {exc}", context=context or None) from exc
        return cls(root)

    def xpath(self, expression: str, namespaces: Optional[NamespaceMap] = None) -> list:
        return xpath_on(self.root, expression, namespaces)

    def first(self, expression: str, namespaces: Optional[NamespaceMap] = None):
        found = self.xpath(expression, namespaces)
        return found[0] if found else None

    def entries(self) -> List[ResponseEntry]:
        if self._entries is None:
            entries: List[ResponseEntry] = []
            for index, response in enumerate(self.root.iterfind(f"{{{DAV_NS}}}response"), start=1):
                href_el = response.find(f"{{{DAV_NS}}}href")
                href = (href_el.text or "").strip() if href_el is not None else ""
                entries.append(ResponseEntry(index=index, href=href, element=response))
            self._entries = entries
        return self._entries

    def first_href(self) -> str:
        entries = self.entries()
        if not entries:
            raise PropertyNotFoundError('Cannot find any "d:href" in the response')
        return entries[0].href

    def entry_for_href(self, href: str) -> Optional[ResponseEntry]:
        for entry in self.entries():
            if entry.href == href or entry.decoded_href == href:
                return entry
        return None


__all__ = ["MultistatusDocument", "ResponseEntry", "node_text", "xpath_on", "xpath_literal"]
