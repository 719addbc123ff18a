"""Property and item assertions over a parsed multistatus response.

Every function takes the parsed document plus its parameters and either
returns the located node/value or raises a typed ``PropertyAssertionError``
whose message names the property, the actual value and what was expected.
None of these helpers perform requests.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from lxml import etree

from davprops.errors import (
    EntryNotFoundError,
    ItemUnexpectedlyPresentError,
    PropertyNotFoundError,
    PropertyValueMismatchError,
)
from davprops.logic.dav_paths import parse_base_dav_path_from_href, prefix_remote_php
from davprops.logic.etag import etag_from_document, is_etag_valid
from davprops.logic.patterns import compile_pattern, full_match, split_delimited
from davprops.logic.substitution import InlineCodeSubstitutor
from davprops.logic.xml_response import (
    MultistatusDocument,
    ResponseEntry,
    node_text,
    xpath_literal,
    xpath_on,
)
from davprops.models.namespaces import NamespaceMap, namespaces_with
from davprops.models.property_address import PropertyAddress
from davprops.models.query import DavPathVersion


logger = logging.getLogger(__name__)

# Escapes preg_quote leaves in substituted space ids
_SPACE_ID_UNESCAPES = (("\\-", "-"), ("\\$", "$"), ("\\!", "!"))


def _substitute(
    substitutor: Optional[InlineCodeSubstitutor],
    text: str,
    user: Optional[str],
    **kwargs,
) -> str:
    if substitutor is None:
        return text
    return substitutor.substitute(text, user, **kwargs)


def _entry_or_fail(document: MultistatusDocument, href: str) -> ResponseEntry:
    entry = document.entry_for_href(href)
    if entry is None:
        raise EntryNotFoundError(f'Cannot find a response entry with href "{href}"')
    return entry


def _local_name(node) -> str:
    if isinstance(node, etree._Element):
        return etree.QName(node).localname
    return ""


def find_property(
    document: MultistatusDocument,
    key: str,
    namespace: Optional[str] = None,
    *,
    href: Optional[str] = None,
):
    """First node matching ``//d:prop/<key>``.

    ``namespace`` is an optional ``prefix='uri'`` binding used by ``key``.
    With ``href`` the lookup is limited to the response entry carrying it.
    """
    address = PropertyAddress.parse(key)
    namespaces = namespaces_with(namespace)
    if href is None:
        matches = document.xpath(address.prop_xpath(), namespaces)
    else:
        entry = _entry_or_fail(document, href)
        matches = xpath_on(entry.element, f".//d:prop/{address.relative_xpath()}", namespaces)
    if not matches:
        raise PropertyNotFoundError(f'Cannot find property "{key}"')
    node = matches[0]
    expected_leaf = address.leaf.local.split("[", 1)[0]
    if _local_name(node) != expected_leaf:
        raise PropertyNotFoundError(
            f'Property "{key}" resolved to element "{_local_name(node)}", expected "{expected_leaf}"'
        )
    return node


def assert_property_exists(
    document: MultistatusDocument,
    key: str,
    namespace: Optional[str] = None,
) -> str:
    return node_text(find_property(document, key, namespace))


def assert_property_value(
    document: MultistatusDocument,
    key: str,
    expected: str,
    alternative: Optional[str] = None,
    *,
    substitutor: Optional[InlineCodeSubstitutor] = None,
    user: Optional[str] = None,
    href: Optional[str] = None,
) -> str:
    """Property value must fully match ``expected`` or ``alternative``.

    Both are treated as anchored regexes after inline-code substitution; a
    value that is not a valid regex is compared literally.
    """
    value = node_text(find_property(document, key, href=href))
    if alternative is None:
        alternative = expected
    expected = _substitute(substitutor, expected, user)
    alternative = _substitute(substitutor, alternative, user)
    if full_match(expected, value) or full_match(alternative, value):
        return value
    raise PropertyValueMismatchError(
        f'Property "{key}" found with value "{value}", '
        f'expected "^{expected}$" or "^{alternative}$"'
    )


def assert_custom_property_value(
    document: MultistatusDocument,
    name: str,
    expected: str,
    namespace: Optional[str] = None,
) -> str:
    expected = expected.replace('\\"', '"')
    address = PropertyAddress.parse(name)
    node = document.first(address.prop_xpath(), namespaces_with(namespace))
    if node is None:
        raise PropertyNotFoundError(f'Cannot find property "{name}"')
    actual = node_text(node)
    if actual != expected:
        raise PropertyValueMismatchError(
            f'"{name}" has a value "{actual}" but "{expected}" expected'
        )
    return actual


def assert_child_property(
    document: MultistatusDocument,
    prop: str,
    child: str,
    present: bool,
) -> None:
    address = PropertyAddress.parse(prop).child(child)
    found = document.first(address.prop_xpath()) is not None
    if present and not found:
        raise PropertyNotFoundError(f'Cannot find property "{prop}/{child}"')
    if not present and found:
        raise ItemUnexpectedlyPresentError(f'Found property "{prop}/{child}"')


def assert_empty_property(document: MultistatusDocument, prop: str) -> None:
    matches = document.xpath(PropertyAddress.parse(prop).prop_xpath())
    if len(matches) != 1:
        raise PropertyNotFoundError(f'Cannot find property "{prop}"')
    node = matches[0]
    if len(node) or (node.text or "").strip() or node.attrib:
        raise PropertyValueMismatchError(f'Property "{prop}" is not empty')


def assert_value_like(document: MultistatusDocument, key: str, regex: str) -> str:
    node = document.first(PropertyAddress.parse(key).prop_xpath())
    if node is None:
        raise PropertyNotFoundError(f'Cannot find property "{key}"')
    value = node_text(node)
    if not compile_pattern(regex).search(value):
        raise PropertyValueMismatchError(
            f'Property "{key}" found with value "{value}", expected "{regex}"'
        )
    return value


def get_item(
    document: MultistatusDocument,
    xpath: str,
    namespaces: Optional[NamespaceMap] = None,
) -> str:
    node = document.first(xpath, namespaces)
    if node is None:
        raise PropertyNotFoundError(f'Cannot find item with xpath "{xpath}"')
    return node_text(node)


def _normalise_expected(value: str) -> str:
    # An empty %base_path% leaves a leading "//"
    return "/" + value[2:] if value.startswith("//") else value


def _compare_item(value: str, xpath: str, expected_values: Sequence[str]) -> str:
    first = expected_values[0]
    second = expected_values[1] if len(expected_values) > 1 and expected_values[1] else first
    if value in (first, second):
        return value
    if len(expected_values) == 1:
        raise PropertyValueMismatchError(
            f'item "{xpath}" found with value "{value}", expected "{first}"'
        )
    raise PropertyValueMismatchError(
        f'The actual value "{value}" is not one of the expected values: "{first}" or "{second}"'
    )


def assert_item_value(
    document: MultistatusDocument,
    xpath: str,
    expected_values: Sequence[str],
    *,
    substitutor: Optional[InlineCodeSubstitutor] = None,
    user: Optional[str] = None,
) -> str:
    """Item at ``xpath`` must equal one of one or two expected values."""
    value = get_item(document, xpath)
    expected = [_normalise_expected(_substitute(substitutor, v, user)) for v in expected_values]
    return _compare_item(value, xpath, expected)


def assert_item_value_of_path(
    document: MultistatusDocument,
    path: str,
    xpath: str,
    expected: str,
    *,
    with_remote_php: bool,
    substitutor: Optional[InlineCodeSubstitutor] = None,
    user: Optional[str] = None,
) -> str:
    """Item ``xpath`` under the propstat of the entry whose href is ``path``.

    ``xpath`` is relative to the ``d:propstat`` sibling of the href, so it
    usually starts with ``/d:prop/...`` or ``//``.
    """
    path = _substitute(substitutor, path, user).lstrip("/")
    href = "/" + prefix_remote_php(path, with_remote_php)
    entry = _entry_or_fail(document, href)
    nodes = xpath_on(entry.element, f"d:propstat{xpath}")
    if not nodes:
        raise PropertyNotFoundError(f'Cannot find item with xpath "{xpath}" for href "{href}"')
    expected = _normalise_expected(_substitute(substitutor, expected, user))
    return _compare_item(node_text(nodes[0]), xpath, [expected])


def _rebase_href_pattern(pattern: str, with_remote_php: bool) -> str:
    """Anchor an href pattern at the server's DAV prefix.

    The pattern's own leading ``^`` and slashes are dropped and replaced by
    ``^/`` plus ``remote.php/`` when that prefix is configured.
    """
    body, flags = split_delimited(pattern)
    if body.startswith("^"):
        body = body[1:]
    body = body.lstrip("\\/")
    prefix = r"remote\.php\/" if with_remote_php else ""
    return f"/^\\/{prefix}{body}/{flags}"


def assert_item_matches(
    document: MultistatusDocument,
    xpath: str,
    pattern: str,
    *,
    substitutor: Optional[InlineCodeSubstitutor] = None,
    user: Optional[str] = None,
    with_remote_php: bool = False,
) -> str:
    value = get_item(document, xpath)
    if xpath.endswith("d:href"):
        pattern = _rebase_href_pattern(pattern, with_remote_php)
    pattern = _substitute(substitutor, pattern, user, regex_quote=True)
    if not compile_pattern(pattern).search(value):
        raise PropertyValueMismatchError(
            f'item "{xpath}" found with value "{value}", '
            f'expected to match regex pattern: "{pattern}"'
        )
    return value


def assert_item_absent(document: MultistatusDocument, xpath: str) -> None:
    if document.first(xpath) is not None:
        raise ItemUnexpectedlyPresentError(
            f'Found item with xpath "{xpath}" but it should not exist'
        )


def assert_share_types(document: MultistatusDocument, share_types: Iterable[str]) -> None:
    if document.first("//d:prop/oc:share-types") is None:
        raise PropertyNotFoundError('Cannot find property "oc:share-types"')
    for share_type in share_types:
        xpath = f"//d:prop/oc:share-types/oc:share-type[.={xpath_literal(str(share_type).strip())}]"
        if document.first(xpath) is None:
            raise PropertyNotFoundError(
                f'Cannot find share-type "{share_type}" in the share-types property'
            )


def assert_entries_have_properties(
    document: MultistatusDocument,
    rows: Iterable[Dict[str, str]],
) -> None:
    """Each row's (resource, propertyName) must hold exactly propertyValue.

    Resource paths are resolved against the DAV root of the first href in
    the response.
    """
    base = parse_base_dav_path_from_href(document.first_href())
    for row in rows:
        href = base + row["resource"]
        entry = _entry_or_fail(document, href)
        nodes = xpath_on(entry.element, f"d:propstat//{row['propertyName']}")
        actual = node_text(nodes[0]) if nodes else ""
        if not nodes or actual != row["propertyValue"]:
            raise PropertyValueMismatchError(
                f"Expected '{row['propertyValue']}' but got '{actual}'",
                context=f"{href} {row['propertyName']}:",
            )


def find_entry_with_href(
    document: MultistatusDocument,
    expected_href: str,
    *,
    user: Optional[str],
    substitutor: Optional[InlineCodeSubstitutor],
    with_remote_php: bool,
    dav_version: DavPathVersion,
) -> ResponseEntry:
    """Entry whose decoded href ends with ``expected_href``.

    Alignment starts at the first segment of the expected href (e.g. ``dav``
    in ``dav/spaces/%spaceid%/file``), which must not be the first segment
    of the actual href.
    """
    expected = _substitute(substitutor, expected_href, user, regex_quote=True)
    expected = prefix_remote_php(expected, with_remote_php)
    if dav_version == DavPathVersion.SPACES:
        for escaped, plain in _SPACE_ID_UNESCAPES:
            expected = expected.replace(escaped, plain)
    anchor = expected.split("/")[0]
    for entry in document.entries():
        parts = entry.decoded_href.split("/")
        if anchor not in parts:
            continue
        index = parts.index(anchor)
        if index == 0:
            continue
        if "/".join(parts[index:]) == expected:
            return entry
    raise EntryNotFoundError(
        f"Cannot find any entry having href with value {expected} in response to {user}"
    )


def assert_etag_present(document: MultistatusDocument) -> str:
    etag = etag_from_document(document)
    if not etag:
        raise PropertyNotFoundError("getetag not found in response")
    if not is_etag_valid(etag):
        raise PropertyValueMismatchError(f'getetag "{etag}" in response is not a valid etag')
    return etag


def share_types_from_rows(rows: Iterable[Sequence[str]]) -> List[str]:
    return [str(row[0]) for row in rows]


__all__ = [
    "find_property",
    "assert_property_exists",
    "assert_property_value",
    "assert_custom_property_value",
    "assert_child_property",
    "assert_empty_property",
    "assert_value_like",
    "get_item",
    "assert_item_value",
    "assert_item_value_of_path",
    "assert_item_matches",
    "assert_item_absent",
    "assert_share_types",
    "assert_entries_have_properties",
    "find_entry_with_href",
    "assert_etag_present",
    "share_types_from_rows",
]
