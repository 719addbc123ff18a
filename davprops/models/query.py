"""Request-side types for property queries."""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import List, Optional

from pydantic import BaseModel, field_validator

from davprops.models.namespaces import NamespaceBinding


class Depth(str, Enum):
    ZERO = "0"
    ONE = "1"
    INFINITY = "infinity"

    @classmethod
    def parse(cls, value: object) -> "Depth":
        text = str(value).strip().lower()
        if text in {"inf", "infinite"}:
            text = "infinity"
        return cls(text)


class QueryMode(str, Enum):
    USER = "user"
    PUBLIC = "public"


class DavPathVersion(IntEnum):
    OLD = 1
    NEW = 2
    SPACES = 3


class PropertyRequest(BaseModel):
    """One property to request, e.g. ``oc:fileid`` or ``x1:custom`` with a binding."""

    name: str
    namespace: Optional[NamespaceBinding] = None

    @field_validator("name")
    @classmethod
    def name_must_be_non_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("property name must be non-empty")
        return v.strip()


class PropertyQuery(BaseModel):
    actor: str
    path: str
    depth: Depth = Depth.ZERO
    properties: Optional[List[PropertyRequest]] = None
    space_id: Optional[str] = None
    mode: QueryMode = QueryMode.USER

    @field_validator("depth", mode="before")
    @classmethod
    def depth_from_text(cls, v: object) -> Depth:
        return v if isinstance(v, Depth) else Depth.parse(v)

    @classmethod
    def for_names(cls, actor: str, path: str, depth: object, names: Optional[List[str]], **kwargs) -> "PropertyQuery":
        properties = None if names is None else [PropertyRequest(name=n) for n in names]
        return cls(actor=actor, path=path, depth=depth, properties=properties, **kwargs)


__all__ = [
    "Depth",
    "QueryMode",
    "DavPathVersion",
    "PropertyRequest",
    "PropertyQuery",
]
