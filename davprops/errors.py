"""Assertion error types raised by the property query and assertion helpers.

Every failure is an ``AssertionError`` so behave and pytest report it as a
failed step rather than an errored one. Each class carries a stable ``code``
that step diagnostics and tests can match on instead of message text.
"""

from __future__ import annotations

from typing import Optional


class PropertyAssertionError(AssertionError):
    code = "PROPERTY_ASSERTION_FAILED"

    def __init__(self, message: str, *, context: Optional[str] = None) -> None:
        if context:
            message = f"{context} {message}"
        super().__init__(message)
        self.message = message


class PropertyNotFoundError(PropertyAssertionError):
    """No node matched the addressed property or XPath item."""

    code = "PROPERTY_NOT_FOUND"


class PropertyValueMismatchError(PropertyAssertionError):
    code = "PROPERTY_VALUE_MISMATCH"


class ItemUnexpectedlyPresentError(PropertyAssertionError):
    code = "ITEM_UNEXPECTEDLY_PRESENT"


class EntryNotFoundError(PropertyAssertionError):
    """No response entry carried the expected href."""

    code = "ENTRY_NOT_FOUND"


class MissingStoredEtagError(PropertyAssertionError):
    """A change check ran for an (actor, path) that was never stored.

    Kept distinct from a mismatch: it means the scenario skipped its
    precondition, not that the server misbehaved.
    """

    code = "ETAG_NOT_STORED"


class EtagChangeError(PropertyAssertionError):
    code = "ETAG_CHANGE_MISMATCH"


class ResponseXmlError(PropertyAssertionError):
    code = "RESPONSE_NOT_XML"


class MissingShareTokenError(PropertyAssertionError):
    code = "SHARE_TOKEN_MISSING"


class TableColumnsError(PropertyAssertionError):
    code = "TABLE_COLUMNS_INVALID"


class HttpStatusMismatchError(PropertyAssertionError):
    code = "HTTP_STATUS_MISMATCH"


__all__ = [
    "PropertyAssertionError",
    "PropertyNotFoundError",
    "PropertyValueMismatchError",
    "ItemUnexpectedlyPresentError",
    "EntryNotFoundError",
    "MissingStoredEtagError",
    "EtagChangeError",
    "ResponseXmlError",
    "MissingShareTokenError",
    "TableColumnsError",
    "HttpStatusMismatchError",
]
