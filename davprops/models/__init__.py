"""Reusable types shared by the query helper, assertions and steps."""

from __future__ import annotations

from davprops.models.namespaces import DEFAULT_NAMESPACES, NamespaceBinding, NamespaceMap
from davprops.models.property_address import PropertyAddress
from davprops.models.query import DavPathVersion, Depth, PropertyQuery, PropertyRequest, QueryMode

__all__ = [
    "DEFAULT_NAMESPACES",
    "NamespaceBinding",
    "NamespaceMap",
    "PropertyAddress",
    "DavPathVersion",
    "Depth",
    "PropertyQuery",
    "PropertyRequest",
    "QueryMode",
]
