"""Functional tests for the property and item assertion helpers.

Each test builds the multistatus body it asserts against and checks both the
passing path and the typed failure (error code and message) of a helper.
"""

from __future__ import annotations

import pytest

from davprops.errors import (
    EntryNotFoundError,
    ItemUnexpectedlyPresentError,
    PropertyNotFoundError,
    PropertyValueMismatchError,
)
from davprops.logic import property_assertions as pa
from davprops.logic.xml_response import node_text
from davprops.models.query import DavPathVersion


FOLDER_HREF = "/owncloud/dav/files/Alice/"
FILE_HREF = "/owncloud/dav/files/Alice/file.txt"

FILE_PROPS = (
    '<d:getetag>"abc123"</d:getetag>'
    "<oc:fileid>00000123ocabc</oc:fileid>"
    "<oc:owner-display-name>Alice Hansen</oc:owner-display-name>"
    "<oc:share-types><oc:share-type>0</oc:share-type><oc:share-type>3</oc:share-type></oc:share-types>"
    "<x1:testprop>lucky</x1:testprop>"
    '<oc:quoted>say "hi"</oc:quoted>'
    "<oc:odd>a(b</oc:odd>"
    "<oc:empty/>"
)
FOLDER_PROPS = '<d:getetag>"f01d3e"</d:getetag><oc:fileid>00000100ocabc</oc:fileid>'


@pytest.fixture
def doc(make_document):
    return make_document([(FOLDER_HREF, FOLDER_PROPS), (FILE_HREF, FILE_PROPS)])


def test_find_property_returns_first_match(doc) -> None:
    assert node_text(pa.find_property(doc, "oc:fileid")) == "00000100ocabc"


def test_find_property_scoped_to_href(doc) -> None:
    assert node_text(pa.find_property(doc, "oc:fileid", href=FILE_HREF)) == "00000123ocabc"
    with pytest.raises(EntryNotFoundError):
        pa.find_property(doc, "oc:fileid", href="/owncloud/dav/files/Alice/nope.txt")


def test_missing_property_is_not_found(doc) -> None:
    with pytest.raises(PropertyNotFoundError) as err:
        pa.assert_property_exists(doc, "oc:checksums")
    assert err.value.code == "PROPERTY_NOT_FOUND"
    assert 'Cannot find property "oc:checksums"' in str(err.value)


def test_property_with_custom_namespace_needs_its_binding(doc) -> None:
    with pytest.raises(PropertyNotFoundError):
        pa.assert_property_exists(doc, "x1:testprop")
    assert pa.assert_property_exists(doc, "x1:testprop", "x1='http://whatever.org/ns'") == "lucky"


def test_nested_property_exists(doc) -> None:
    assert pa.assert_property_exists(doc, "oc:share-types/oc:share-type") == "0"


def test_property_value_is_a_full_match_regex(doc) -> None:
    assert pa.assert_property_value(doc, "oc:fileid", r"\d+ocabc") == "00000100ocabc"
    with pytest.raises(PropertyValueMismatchError):
        pa.assert_property_value(doc, "oc:fileid", "00000100")


def test_property_value_passes_on_alternative(doc) -> None:
    pa.assert_property_value(doc, "oc:fileid", "nope", "00000100ocabc")
    with pytest.raises(PropertyValueMismatchError) as err:
        pa.assert_property_value(doc, "oc:fileid", "nope", "also-nope")
    assert 'Property "oc:fileid" found with value "00000100ocabc"' in str(err.value)
    assert err.value.code == "PROPERTY_VALUE_MISMATCH"


def test_property_value_substitutes_inline_codes(doc, substitutor) -> None:
    pa.assert_property_value(
        doc, "oc:owner-display-name", "%displayname%", substitutor=substitutor, user="Alice"
    )


def test_invalid_regex_is_compared_literally(doc) -> None:
    assert pa.assert_property_value(doc, "oc:odd", "a(b") == "a(b"


def test_custom_property_value_unescapes_quotes(doc) -> None:
    pa.assert_custom_property_value(doc, "oc:quoted", 'say \\"hi\\"')
    with pytest.raises(PropertyValueMismatchError) as err:
        pa.assert_custom_property_value(doc, "oc:fileid", "123")
    assert '"oc:fileid" has a value "00000100ocabc" but "123" expected' in str(err.value)


def test_custom_property_with_namespace(doc) -> None:
    pa.assert_custom_property_value(doc, "x1:testprop", "lucky", "x1='http://whatever.org/ns'")


def test_unset_custom_property_is_not_found(doc) -> None:
    with pytest.raises(PropertyNotFoundError):
        pa.assert_custom_property_value(doc, "oc:very-custom-prop", "")


def test_child_property_with_and_without(doc) -> None:
    pa.assert_child_property(doc, "oc:share-types", "oc:share-type", present=True)
    pa.assert_child_property(doc, "oc:fileid", "oc:share-type", present=False)
    with pytest.raises(ItemUnexpectedlyPresentError):
        pa.assert_child_property(doc, "oc:share-types", "oc:share-type", present=False)
    with pytest.raises(PropertyNotFoundError):
        pa.assert_child_property(doc, "oc:fileid", "oc:share-type", present=True)


def test_empty_property(doc) -> None:
    pa.assert_empty_property(doc, "oc:empty")
    with pytest.raises(PropertyValueMismatchError):
        pa.assert_empty_property(doc, "oc:quoted")
    # Present once per entry: not a single match
    with pytest.raises(PropertyNotFoundError):
        pa.assert_empty_property(doc, "oc:fileid")


def test_value_like_accepts_delimited_and_bare_patterns(doc) -> None:
    pa.assert_value_like(doc, "oc:fileid", r"/^\d+oc[a-z]+$/")
    pa.assert_value_like(doc, "oc:fileid", r"/^\d+OC/i")
    pa.assert_value_like(doc, "oc:fileid", r"ocabc$")
    with pytest.raises(PropertyValueMismatchError):
        pa.assert_value_like(doc, "oc:fileid", r"/^xyz/")


def test_item_value_normalises_leading_double_slash(doc, substitutor) -> None:
    pa.assert_item_value(
        doc,
        "//d:response[2]/d:href",
        ["/%base_path%/dav/files/%username%/file.txt"],
        substitutor=substitutor,
        user="Alice",
    )


def test_item_value_one_of_two(doc) -> None:
    pa.assert_item_value(doc, "//d:response[2]/d:href", ["/x", FILE_HREF])
    pa.assert_item_value(doc, "//d:response[2]/d:href", [FILE_HREF, ""])
    with pytest.raises(PropertyValueMismatchError) as err:
        pa.assert_item_value(doc, "//d:response[2]/d:href", ["/x", "/y"])
    assert "is not one of the expected values" in str(err.value)


def test_item_value_missing_item(doc) -> None:
    with pytest.raises(PropertyNotFoundError) as err:
        pa.assert_item_value(doc, "//d:response[5]/d:href", ["/x"])
    assert 'Cannot find item with xpath "//d:response[5]/d:href"' in str(err.value)


def test_item_value_of_path(doc, substitutor) -> None:
    pa.assert_item_value_of_path(
        doc,
        "owncloud/dav/files/%username%/file.txt",
        "/d:prop/oc:fileid",
        "00000123ocabc",
        with_remote_php=False,
        substitutor=substitutor,
        user="Alice",
    )
    with pytest.raises(EntryNotFoundError):
        pa.assert_item_value_of_path(
            doc, "/elsewhere/file.txt", "/d:prop/oc:fileid", "1", with_remote_php=False
        )


def test_href_pattern_is_rebased_and_substituted(doc, substitutor) -> None:
    pa.assert_item_matches(
        doc,
        "//d:response[2]/d:href",
        r"/^\/owncloud\/dav\/files\/%username%\/file\.txt$/",
        substitutor=substitutor,
        user="Alice",
    )


def test_href_pattern_gets_remote_php_prefix(make_document, substitutor) -> None:
    doc = make_document([("/remote.php/dav/files/Alice/x.txt", "<oc:fileid>1</oc:fileid>")])
    pa.assert_item_matches(
        doc,
        "//d:href",
        r"/dav\/files\/%username%\/x\.txt$/",
        substitutor=substitutor,
        user="Alice",
        with_remote_php=True,
    )
    with pytest.raises(PropertyValueMismatchError):
        pa.assert_item_matches(doc, "//d:href", r"/dav\/files\/Alice\/x\.txt$/", with_remote_php=False)


def test_href_pattern_resolves_public_token(make_document, substitutor) -> None:
    substitutor.tokens.record("tok123")
    doc = make_document([("/dav/public-files/tok123/file.txt", "<oc:fileid>1</oc:fileid>")])
    pa.assert_item_matches(
        doc, "//d:href", r"/dav\/public-files\/%public_token%\/file.txt$/", substitutor=substitutor
    )


def test_item_matches_non_href(doc) -> None:
    pa.assert_item_matches(doc, "//d:response[2]//oc:fileid", r"/^\d{8}ocabc$/")
    with pytest.raises(PropertyValueMismatchError) as err:
        pa.assert_item_matches(doc, "//d:response[2]//oc:fileid", r"/^zzz/")
    assert "expected to match regex pattern" in str(err.value)


def test_item_absent(doc) -> None:
    pa.assert_item_absent(doc, "//oc:checksums")
    with pytest.raises(ItemUnexpectedlyPresentError) as err:
        pa.assert_item_absent(doc, "//oc:fileid")
    assert err.value.code == "ITEM_UNEXPECTEDLY_PRESENT"


@pytest.mark.parametrize("expression", ["boolean(//d:nothing)", "count(//oc:fileid)", "string(//oc:fileid)"])
def test_scalar_xpath_selects_no_item(doc, expression: str) -> None:
    pa.assert_item_absent(doc, expression)
    with pytest.raises(PropertyNotFoundError):
        pa.get_item(doc, expression)


def test_share_types(doc) -> None:
    pa.assert_share_types(doc, ["0", "3"])
    with pytest.raises(PropertyNotFoundError):
        pa.assert_share_types(doc, ["1"])


def test_share_types_property_missing(make_document) -> None:
    doc = make_document([(FILE_HREF, "<oc:fileid>1</oc:fileid>")])
    with pytest.raises(PropertyNotFoundError):
        pa.assert_share_types(doc, ["0"])


def test_entries_have_properties(doc) -> None:
    pa.assert_entries_have_properties(
        doc,
        [
            {"resource": "/file.txt", "propertyName": "oc:fileid", "propertyValue": "00000123ocabc"},
            {"resource": "/", "propertyName": "oc:fileid", "propertyValue": "00000100ocabc"},
        ],
    )
    with pytest.raises(PropertyValueMismatchError) as err:
        pa.assert_entries_have_properties(
            doc, [{"resource": "/file.txt", "propertyName": "oc:fileid", "propertyValue": "x"}]
        )
    assert "Expected 'x' but got '00000123ocabc'" in str(err.value)
    with pytest.raises(EntryNotFoundError):
        pa.assert_entries_have_properties(
            doc, [{"resource": "/gone.txt", "propertyName": "oc:fileid", "propertyValue": "x"}]
        )


def test_find_entry_with_href_aligns_on_first_segment(doc, substitutor) -> None:
    entry = pa.find_entry_with_href(
        doc,
        "dav/files/%username%/file.txt",
        user="Alice",
        substitutor=substitutor,
        with_remote_php=False,
        dav_version=DavPathVersion.NEW,
    )
    assert entry.href == FILE_HREF


def test_find_entry_with_href_spaces_unescapes_space_id(make_document, substitutor, dav_config) -> None:
    space_id = dav_config.users["Alice"].space_id
    href = "/dav/spaces/" + space_id.replace("$", "%24").replace("!", "%21") + "/C%2B%2B%20file.cpp"
    doc = make_document([(href, "<oc:fileid>1</oc:fileid>")])
    kwargs = dict(user="Alice", substitutor=substitutor, with_remote_php=False)
    entry = pa.find_entry_with_href(
        doc, "dav/spaces/%spaceid%/C++ file.cpp", dav_version=DavPathVersion.SPACES, **kwargs
    )
    assert entry.index == 1
    # Without the spaces unescape the regex-quoted id never matches
    with pytest.raises(EntryNotFoundError) as err:
        pa.find_entry_with_href(
            doc, "dav/spaces/%spaceid%/C++ file.cpp", dav_version=DavPathVersion.NEW, **kwargs
        )
    assert "in response to Alice" in str(err.value)


def test_find_entry_with_href_ignores_match_at_first_segment(make_document) -> None:
    doc = make_document([("dav/files/Alice/a.txt", "<oc:fileid>1</oc:fileid>")])
    with pytest.raises(EntryNotFoundError):
        pa.find_entry_with_href(
            doc,
            "dav/files/Alice/a.txt",
            user="Alice",
            substitutor=None,
            with_remote_php=False,
            dav_version=DavPathVersion.NEW,
        )


def test_etag_present(doc, make_document) -> None:
    assert pa.assert_etag_present(doc) == '"f01d3e"'
    with pytest.raises(PropertyNotFoundError):
        pa.assert_etag_present(make_document([(FILE_HREF, "<oc:fileid>1</oc:fileid>")]))
    with pytest.raises(PropertyValueMismatchError):
        pa.assert_etag_present(make_document([(FILE_HREF, '<d:getetag>"NOT-HEX"</d:getetag>')]))
