"""XML namespace bindings passed explicitly to every XPath lookup."""

from __future__ import annotations

import re
from typing import Dict, Iterator, Mapping, Optional

from pydantic import BaseModel, ConfigDict, field_validator


DAV_NS = "DAV:"
OC_NS = "http://owncloud.org/ns"
OCS_NS = "http://open-collaboration-services.org/ns"
OCM_NS = "http://open-cloud-mesh.org/ns"

# Scenario form: x1='http://whatever.org/ns'
_BINDING_RE = re.compile(r"""^\s*([A-Za-z_][\w.-]*)\s*=\s*(['"])(.*)\2\s*$""")


class NamespaceBinding(BaseModel):
    model_config = ConfigDict(frozen=True)

    prefix: str
    uri: str

    @field_validator("prefix")
    @classmethod
    def prefix_must_be_ncname(cls, v: str) -> str:
        if not re.match(r"^[A-Za-z_][\w.-]*$", v or ""):
            raise ValueError(f"invalid namespace prefix {v!r}")
        return v

    @classmethod
    def parse(cls, text: str) -> "NamespaceBinding":
        """Parse ``x1='http://whatever.org/ns'`` into a binding."""
        m = _BINDING_RE.match(text or "")
        if not m:
            raise ValueError(f"namespace must look like prefix='uri', got {text!r}")
        return cls(prefix=m.group(1), uri=m.group(3))


class NamespaceMap(Mapping[str, str]):
    """Immutable prefix -> URI map.

    Adding a binding returns a new map, so a lookup always sees exactly the
    prefixes its caller passed in.
    """

    def __init__(self, bindings: Optional[Mapping[str, str]] = None) -> None:
        self._bindings: Dict[str, str] = dict(bindings or {})

    def __getitem__(self, prefix: str) -> str:
        return self._bindings[prefix]

    def __iter__(self) -> Iterator[str]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def __repr__(self) -> str:
        return f"NamespaceMap({self._bindings!r})"

    def bind(self, binding: Optional[NamespaceBinding]) -> "NamespaceMap":
        if binding is None:
            return self
        merged = dict(self._bindings)
        merged[binding.prefix] = binding.uri
        return NamespaceMap(merged)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._bindings)


DEFAULT_NAMESPACES = NamespaceMap({
    "d": DAV_NS,
    "oc": OC_NS,
    "ocs": OCS_NS,
    "ocm": OCM_NS,
})


def namespaces_with(namespace: Optional[str]) -> NamespaceMap:
    """Default namespaces plus an optional scenario-supplied binding."""
    if not namespace:
        return DEFAULT_NAMESPACES
    return DEFAULT_NAMESPACES.bind(NamespaceBinding.parse(namespace))


__all__ = [
    "DAV_NS",
    "OC_NS",
    "OCS_NS",
    "OCM_NS",
    "NamespaceBinding",
    "NamespaceMap",
    "DEFAULT_NAMESPACES",
    "namespaces_with",
]
