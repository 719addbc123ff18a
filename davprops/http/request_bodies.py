"""PROPFIND and PROPPATCH request bodies built with lxml."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from lxml import etree

from davprops.models.namespaces import DAV_NS, DEFAULT_NAMESPACES, NamespaceBinding, NamespaceMap
from davprops.models.property_address import NameSegment
from davprops.models.query import PropertyRequest


def _xml_to_bytes(element: etree._Element) -> bytes:
    return etree.tostring(element, encoding="UTF-8", xml_declaration=True)


def _qualified_tag(name: str, namespaces: NamespaceMap, default_prefix: str) -> str:
    segment = NameSegment.parse(name)
    if segment.uri is None and not segment.prefix:
        segment = NameSegment(local=segment.local, prefix=default_prefix)
    uri = segment.resolved_uri(namespaces)
    if uri is None:
        raise ValueError(f"namespace prefix {segment.prefix!r} of property {name!r} is not declared")
    return f"{{{uri}}}{segment.local}"


def _namespaces_for(bindings: Iterable[Optional[NamespaceBinding]]) -> NamespaceMap:
    namespaces = DEFAULT_NAMESPACES
    for binding in bindings:
        namespaces = namespaces.bind(binding)
    return namespaces


def propfind_body(properties: Optional[Sequence[PropertyRequest]]) -> bytes:
    """Body listing ``properties``; empty when the server's default set is wanted."""
    if properties is None:
        return b""
    namespaces = _namespaces_for(p.namespace for p in properties)
    root = etree.Element(f"{{{DAV_NS}}}propfind", nsmap=namespaces.as_dict())
    prop = etree.SubElement(root, f"{{{DAV_NS}}}prop")
    for item in properties:
        # A bare name takes the prefix of its own namespace binding
        default_prefix = item.namespace.prefix if item.namespace is not None else "d"
        etree.SubElement(prop, _qualified_tag(item.name, namespaces, default_prefix))
    return _xml_to_bytes(root)


def proppatch_body(
    items: Sequence[Tuple[str, str]],
    namespace: Optional[NamespaceBinding] = None,
    default_prefix: str = "oc",
) -> bytes:
    """``d:propertyupdate`` setting each (name, value).

    Unprefixed names take the prefix of ``namespace`` when one is given,
    otherwise ``default_prefix``.
    """
    namespaces = _namespaces_for([namespace])
    if namespace is not None:
        default_prefix = namespace.prefix
    root = etree.Element(f"{{{DAV_NS}}}propertyupdate", nsmap=namespaces.as_dict())
    set_el = etree.SubElement(root, f"{{{DAV_NS}}}set")
    prop = etree.SubElement(set_el, f"{{{DAV_NS}}}prop")
    for name, value in items:
        el = etree.SubElement(prop, _qualified_tag(name, namespaces, default_prefix))
        el.text = value
    return _xml_to_bytes(root)


def rows_to_items(rows: Iterable[dict]) -> List[Tuple[str, str]]:
    return [(str(row["propertyName"]), str(row["propertyValue"])) for row in rows]


__all__ = ["propfind_body", "proppatch_body", "rows_to_items"]
