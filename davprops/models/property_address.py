"""Path-like addressing of properties inside a ``d:prop`` container."""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

from davprops.models.namespaces import NamespaceMap


_SEGMENT_RE = re.compile(r"\{[^}]*\}[^/]+|[^/]+")


class NameSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    local: str
    prefix: Optional[str] = None
    uri: Optional[str] = None

    @field_validator("local")
    @classmethod
    def local_must_be_non_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("property name segment must be non-empty")
        return v.strip()

    @classmethod
    def parse(cls, text: str) -> "NameSegment":
        text = text.strip()
        if text.startswith("{"):
            uri, _, local = text[1:].partition("}")
            return cls(local=local, uri=uri)
        if ":" in text:
            prefix, _, local = text.partition(":")
            return cls(local=local, prefix=prefix)
        return cls(local=text)

    def xpath_step(self) -> str:
        if self.uri is not None:
            return f"*[local-name()='{self.local}' and namespace-uri()='{self.uri}']"
        if self.prefix:
            return f"{self.prefix}:{self.local}"
        return self.local

    def resolved_uri(self, namespaces: NamespaceMap) -> Optional[str]:
        if self.uri is not None:
            return self.uri
        if self.prefix:
            return namespaces.get(self.prefix)
        return None

    def __str__(self) -> str:
        if self.uri is not None:
            return f"{{{self.uri}}}{self.local}"
        return f"{self.prefix}:{self.local}" if self.prefix else self.local


class PropertyAddress(BaseModel):
    """Ordered name segments; the last one is the leaf property."""

    model_config = ConfigDict(frozen=True)

    segments: Tuple[NameSegment, ...]

    @field_validator("segments")
    @classmethod
    def segments_must_be_non_empty(cls, v: Tuple[NameSegment, ...]) -> Tuple[NameSegment, ...]:
        if not v:
            raise ValueError("property address needs at least one segment")
        return v

    @classmethod
    def parse(cls, text: str) -> "PropertyAddress":
        """Parse ``oc:share-types/oc:share-type`` or ``{uri}name`` forms."""
        parts: List[str] = _SEGMENT_RE.findall(text or "")
        return cls(segments=tuple(NameSegment.parse(p) for p in parts if p.strip()))

    @property
    def leaf(self) -> NameSegment:
        return self.segments[-1]

    def child(self, text: str) -> "PropertyAddress":
        return PropertyAddress(segments=self.segments + PropertyAddress.parse(text).segments)

    def relative_xpath(self) -> str:
        return "/".join(seg.xpath_step() for seg in self.segments)

    def prop_xpath(self) -> str:
        """XPath locating this property under any ``d:prop`` container."""
        return f"//d:prop/{self.relative_xpath()}"

    def __str__(self) -> str:
        return "/".join(str(seg) for seg in self.segments)


__all__ = ["NameSegment", "PropertyAddress"]
