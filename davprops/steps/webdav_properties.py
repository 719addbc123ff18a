"""Behave step definitions for WebDAV properties and ETags.

Steps read and write the per-scenario `WebDavPropertiesScenario` stored on
`context.dav` (built in `before_scenario`). Query steps record their result
as the scenario's last response; assertion steps check that response, or
issue their own PROPFIND where the step names a user and a resource.

Notes:
- Patterns use behave's "re" matcher, which anchors each pattern at both
  ends, so steps sharing a prefix ("... with value" / "... with value ... or
  with value") never shadow each other.
- Table-driven steps check their column headings first and fail with
  TABLE_COLUMNS_INVALID when the table is malformed.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from behave import given, step, then, use_step_matcher, when  # type: ignore

from davprops.config import DAV_PATH_VERSIONS, load_config
from davprops.errors import TableColumnsError
from davprops.http.request_bodies import rows_to_items
from davprops.logic import property_assertions as pa
from davprops.models.query import DavPathVersion, Depth
from davprops.scenario import WebDavPropertiesScenario, assert_status


MULTI_STATUS = 207
_LOCKDISCOVERY = ["d:lockdiscovery"]


def _dav(context: Any) -> WebDavPropertiesScenario:
    scenario = getattr(context, "dav", None)
    if scenario is None:
        scenario = WebDavPropertiesScenario(load_config())
        context.dav = scenario
        add_cleanup = getattr(context, "add_cleanup", None)
        if add_cleanup is not None:
            add_cleanup(scenario.close)
    return scenario


def _verify_table_columns(table: Any, required: Sequence[str], count: Optional[int] = None) -> List[str]:
    if table is None:
        raise TableColumnsError(f"step needs a data table with columns {list(required)}")
    headings = [str(h).strip() for h in table.headings]
    missing = [col for col in required if col not in headings]
    if missing:
        raise TableColumnsError(f"table is missing columns {missing}; found {headings}")
    if count is not None and len(headings) != count:
        raise TableColumnsError(f"table must have exactly {count} column(s); found {headings}")
    return headings


def _rows(table: Any) -> List[Dict[str, str]]:
    return [{h: str(row[h]) for h in table.headings} for row in table]


def _property_names(table: Any) -> List[str]:
    _verify_table_columns(table, ["propertyName"], count=1)
    return [row["propertyName"] for row in _rows(table)]


use_step_matcher("re")


# ------------------
# Scenario plumbing
# ------------------

@step(r'using (?P<version>old|new|spaces) DAV path')
def step_using_dav_path(context: Any, version: str) -> None:
    _dav(context).dav_version = DavPathVersion(DAV_PATH_VERSIONS[version])


@step(r'as user "(?P<user>[^"]*)"')
def step_as_user(context: Any, user: str) -> None:
    dav = _dav(context)
    dav.actors.current_user = dav.actors.actual_username(user)


@step(r'the last created public link has token "(?P<token>[^"]*)"(?: and password "(?P<password>[^"]*)")?')
def step_record_public_link(context: Any, token: str, password: Optional[str] = None) -> None:
    _dav(context).tokens.record(token, password or None)


@then(r'the HTTP status code should be "(?P<status>\d+)"')
def step_http_status_should_be(context: Any, status: str) -> None:
    assert_status(_dav(context).response, int(status))


# ------------------
# Property queries
# ------------------

@when(r'user "(?P<user>[^"]*)" gets the properties of (?:file|folder|entry) "(?P<path>[^"]*)" using the WebDAV API')
def step_user_gets_properties(context: Any, user: str, path: str) -> None:
    dav = _dav(context)
    dav.set_response(dav.facade.list_folder(user, path, Depth.ZERO))


@when(r'user "(?P<user>[^"]*)" gets the properties of (?:file|folder|entry) "(?P<path>[^"]*)" with depth (?P<depth>\d+|infinity) using the WebDAV API')
def step_user_gets_properties_with_depth(context: Any, user: str, path: str, depth: str) -> None:
    dav = _dav(context)
    dav.set_response(dav.facade.list_folder(user, path, Depth.parse(depth)))


@when(r'user "(?P<user>[^"]*)" gets the following properties of (?:file|folder|entry) "(?P<path>[^"]*)" using the WebDAV API')
def step_user_gets_following_properties(context: Any, user: str, path: str) -> None:
    dav = _dav(context)
    names = _property_names(context.table)
    dav.set_response(dav.facade.list_folder(user, path, Depth.ONE, names))


@when(r'the user gets the following properties of (?:file|folder|entry) "(?P<path>[^"]*)" using the WebDAV API')
def step_current_user_gets_following_properties(context: Any, path: str) -> None:
    dav = _dav(context)
    names = _property_names(context.table)
    user = dav.actors.require_current_user()
    dav.set_response(dav.facade.list_folder(user, path, Depth.ONE, names))


@when(r'user "(?P<user>[^"]*)" gets a custom property "(?P<name>[^"]*)" of file "(?P<path>[^"]*)"')
def step_user_gets_custom_property(context: Any, user: str, name: str, path: str) -> None:
    dav = _dav(context)
    dav.set_response(dav.facade.query_custom_property(user, path, name))


@when(r'user "(?P<user>[^"]*)" gets a custom property "(?P<name>[^"]*)" with namespace "(?P<namespace>[^"]*)" of file "(?P<path>[^"]*)"')
def step_user_gets_custom_property_with_namespace(
    context: Any, user: str, name: str, namespace: str, path: str
) -> None:
    dav = _dav(context)
    dav.set_response(dav.facade.query_custom_property(user, path, name, namespace))


@when(r'the public gets the following properties of (?:file|folder|entry) "(?P<path>[^"]*)" in the last created public link using the WebDAV API')
def step_public_gets_following_properties(context: Any, path: str) -> None:
    dav = _dav(context)
    names = _property_names(context.table)
    dav.set_response(dav.facade.list_public_link(path, names))


# ------------------
# Property writes
# ------------------

@given(r'user "(?P<user>[^"]*)" has set the following properties to (?:file|folder|entry) "(?P<path>[^"]*)" using the WebDav API')
def step_user_has_set_following_properties(context: Any, user: str, path: str) -> None:
    dav = _dav(context)
    _verify_table_columns(context.table, ["propertyName", "propertyValue"])
    result = dav.facade.set_properties(user, path, rows_to_items(_rows(context.table)))
    assert_status(result, MULTI_STATUS)


@given(r'user "(?P<user>[^"]*)" sets property "(?P<name>[^"]*)" of (?:file|folder|entry) "(?P<path>[^"]*)" to "(?P<value>[^"]*)"')
def step_user_sets_property(context: Any, user: str, name: str, path: str, value: str) -> None:
    dav = _dav(context)
    dav.set_response(dav.facade.set_property(user, path, name, value))


@when(r'user "(?P<user>[^"]*)" sets property "(?P<name>[^"]*)" with namespace "(?P<namespace>[^"]*)" of (?:file|folder|entry) "(?P<path>[^"]*)" to "(?P<value>[^"]*)" using the WebDAV API')
def step_user_sets_property_with_namespace(
    context: Any, user: str, name: str, namespace: str, path: str, value: str
) -> None:
    dav = _dav(context)
    dav.set_response(dav.facade.set_property(user, path, name, value, namespace))


@given(r'user "(?P<user>[^"]*)" has set property "(?P<name>[^"]*)" of (?:file|folder|entry) "(?P<path>[^"]*)" to "(?P<value>[^"]*)"')
def step_user_has_set_property(context: Any, user: str, name: str, path: str, value: str) -> None:
    assert_status(_dav(context).facade.set_property(user, path, name, value), MULTI_STATUS)


@given(r'user "(?P<user>[^"]*)" has set property "(?P<name>[^"]*)" with namespace "(?P<namespace>[^"]*)" of (?:file|folder|entry) "(?P<path>[^"]*)" to "(?P<value>[^"]*)"')
def step_user_has_set_property_with_namespace(
    context: Any, user: str, name: str, namespace: str, path: str, value: str
) -> None:
    result = _dav(context).facade.set_property(user, path, name, value, namespace)
    assert_status(result, MULTI_STATUS)


# ------------------
# Property assertions on the last response
# ------------------

@then(r'the response should contain a custom "(?P<name>[^"]*)" property with value "(?P<value>(?:[^"\\]|\\.)*)"')
def step_custom_property_has_value(context: Any, name: str, value: str) -> None:
    pa.assert_custom_property_value(_dav(context).document, name, value)


@then(r'the response should contain a custom "(?P<name>[^"]*)" property with namespace "(?P<namespace>[^"]*)" and value "(?P<value>[^"]*)"')
def step_custom_property_with_namespace_has_value(context: Any, name: str, namespace: str, value: str) -> None:
    pa.assert_custom_property_value(_dav(context).document, name, value, namespace)


@then(r'the single response should contain a property "(?P<prop>[^"]*)" (?P<with_or_without>with|without) a child property "(?P<child>[^"]*)"')
def step_property_with_child(context: Any, prop: str, with_or_without: str, child: str) -> None:
    pa.assert_child_property(_dav(context).document, prop, child, with_or_without == "with")


@then(r'the xml response should contain a property "(?P<key>[^"]*)"')
def step_response_contains_property(context: Any, key: str) -> None:
    pa.assert_property_exists(_dav(context).document, key)


@then(r'the xml response should contain a property "(?P<key>[^"]*)" with namespace "(?P<namespace>[^"]*)"')
def step_response_contains_property_with_namespace(context: Any, key: str, namespace: str) -> None:
    pa.assert_property_exists(_dav(context).document, key, namespace)


@then(r'the single response should contain a property "(?P<key>[^"]*)" with value "(?P<value>[^"]*)"')
def step_single_response_property_value(context: Any, key: str, value: str) -> None:
    dav = _dav(context)
    pa.assert_property_value(dav.document, key, value, substitutor=dav.substitutor)


@then(r'the single response about the file owned by "(?P<user>[^"]*)" should contain a property "(?P<key>[^"]*)" with value "(?P<value>[^"]*)"')
def step_single_response_about_owner_property_value(context: Any, user: str, key: str, value: str) -> None:
    dav = _dav(context)
    pa.assert_property_value(dav.document, key, value, substitutor=dav.substitutor, user=user)


@then(r'the single response should contain a property "(?P<key>[^"]*)" with value "(?P<value>[^"]*)" or with value "(?P<alternative>[^"]*)"')
def step_single_response_property_value_or_alternative(
    context: Any, key: str, value: str, alternative: str
) -> None:
    dav = _dav(context)
    pa.assert_property_value(dav.document, key, value, alternative, substitutor=dav.substitutor)


@then(r'the single response should contain a property "(?P<key>[^"]*)" with value like "(?P<regex>[^"]*)"')
def step_single_response_property_value_like(context: Any, key: str, regex: str) -> None:
    pa.assert_value_like(_dav(context).document, key, regex)


@then(r'the response should contain a share-types property with')
def step_response_contains_share_types(context: Any) -> None:
    _verify_table_columns(context.table, [], count=1)
    # The heading row is a share type too
    share_types = [context.table.headings[0]] + pa.share_types_from_rows(context.table.rows)
    pa.assert_share_types(_dav(context).document, share_types)


@then(r'the response should contain an empty property "(?P<prop>[^"]*)"')
def step_response_contains_empty_property(context: Any, prop: str) -> None:
    pa.assert_empty_property(_dav(context).document, prop)


@then(r'the properties response should contain an etag')
def step_properties_response_contains_etag(context: Any) -> None:
    pa.assert_etag_present(_dav(context).document)


@then(r'as user "(?P<user>[^"]*)" the last response should have the following properties')
def step_last_response_has_properties(context: Any, user: str) -> None:
    _verify_table_columns(context.table, ["resource", "propertyName", "propertyValue"])
    pa.assert_entries_have_properties(_dav(context).document, _rows(context.table))


# ------------------
# Item (XPath) assertions
# ------------------

@then(r'the value of the item "(?P<xpath>[^"]*)" in the response should be "(?P<value>[^"]*)"')
def step_item_value(context: Any, xpath: str, value: str) -> None:
    dav = _dav(context)
    pa.assert_item_value(dav.document, xpath, [value], substitutor=dav.substitutor)


@then(r'as user "(?P<user>[^"]*)" the value of the item "(?P<xpath>[^"]*)" of path "(?P<path>[^"]*)" in the response should be "(?P<value>[^"]*)"')
def step_item_value_of_path(context: Any, user: str, xpath: str, path: str, value: str) -> None:
    dav = _dav(context)
    pa.assert_item_value_of_path(
        dav.document,
        path,
        xpath,
        value,
        with_remote_php=dav.config.with_remote_php,
        substitutor=dav.substitutor,
        user=user,
    )


@then(r'the value of the item "(?P<xpath>[^"]*)" in the response about user "(?P<user>[^"]*)" should be "(?P<value>[^"]*)"')
def step_item_value_about_user(context: Any, xpath: str, user: str, value: str) -> None:
    dav = _dav(context)
    pa.assert_item_value(dav.document, xpath, [value], substitutor=dav.substitutor, user=user)


@then(r'the value of the item "(?P<xpath>[^"]*)" in the response about user "(?P<user>[^"]*)" should be "(?P<value1>[^"]*)" or "(?P<value2>[^"]*)"')
def step_item_value_about_user_either(context: Any, xpath: str, user: str, value1: str, value2: str) -> None:
    dav = _dav(context)
    pa.assert_item_value(dav.document, xpath, [value1, value2], substitutor=dav.substitutor, user=user)


@then(r'the value of the item "(?P<xpath>[^"]*)" in the response should match "(?P<pattern>[^"]*)"')
def step_item_value_matches(context: Any, xpath: str, pattern: str) -> None:
    dav = _dav(context)
    pa.assert_item_matches(
        dav.document,
        xpath,
        pattern,
        substitutor=dav.substitutor,
        with_remote_php=dav.config.with_remote_php,
    )


@then(r'the item "(?P<xpath>[^"]*)" in the response should not exist')
def step_item_does_not_exist(context: Any, xpath: str) -> None:
    pa.assert_item_absent(_dav(context).document, xpath)


@then(r'there should be an entry with href containing "(?P<href>[^"]*)" in the response to user "(?P<user>[^"]*)"')
def step_entry_with_href_containing(context: Any, href: str, user: str) -> None:
    dav = _dav(context)
    pa.find_entry_with_href(
        dav.document,
        href,
        user=dav.actors.actual_username(user),
        substitutor=dav.substitutor,
        with_remote_php=dav.config.with_remote_php,
        dav_version=dav.dav_version,
    )


# ------------------
# Assertions that query first
# ------------------

@then(r'as a public the lock discovery property "(?P<xpath>[^"]*)" of the (?:file|folder|entry) "(?P<path>[^"]*)" should match "(?P<pattern>[^"]*)"')
def step_public_lock_discovery_matches(context: Any, xpath: str, path: str, pattern: str) -> None:
    dav = _dav(context)
    result = dav.facade.list_public_link(path, _LOCKDISCOVERY)
    assert_status(result, MULTI_STATUS)
    pa.assert_item_matches(
        result.document,
        xpath,
        pattern,
        substitutor=dav.substitutor,
        with_remote_php=dav.config.with_remote_php,
    )


@then(r'as user "(?P<user>[^"]*)" the lock discovery property "(?P<xpath>[^"]*)" of the (?:file|folder|entry) "(?P<path>[^"]*)" should match "(?P<pattern>[^"]*)"')
def step_user_lock_discovery_matches(context: Any, user: str, xpath: str, path: str, pattern: str) -> None:
    dav = _dav(context)
    result = dav.facade.list_folder(user, path, Depth.ONE, _LOCKDISCOVERY)
    assert_status(result, MULTI_STATUS)
    pa.assert_item_matches(
        result.document,
        xpath,
        pattern,
        substitutor=dav.substitutor,
        user=user,
        with_remote_php=dav.config.with_remote_php,
    )


@then(r'as user "(?P<user>[^"]*)" (?:file|folder|entry) "(?P<path>[^"]*)" should contain a property "(?P<prop>[^"]*)" with value "(?P<value>[^"]*)"(?: or with value "(?P<alternative>[^"]*)")?')
def step_user_entry_property_value(
    context: Any, user: str, path: str, prop: str, value: str, alternative: Optional[str] = None
) -> None:
    dav = _dav(context)
    result = dav.facade.list_folder(user, path, Depth.ZERO, [prop])
    pa.assert_property_value(
        result.document, prop, value, alternative, substitutor=dav.substitutor, user=user
    )


# ------------------
# ETags
# ------------------

@when(r'user "(?P<user>[^"]*)" stores etag of element "(?P<path>[^"]*)" using the WebDAV API')
def step_user_stores_etag(context: Any, user: str, path: str) -> None:
    _dav(context).tracker.store_etag(user, path)


@given(r'user "(?P<user>[^"]*)" has stored etag of element "(?P<path>[^"]*)" on path "(?P<store_path>[^"]*)"')
def step_user_has_stored_etag_on_path(context: Any, user: str, path: str, store_path: str) -> None:
    _dav(context).tracker.store_etag(user, path, store_path, require=True)


@given(r'user "(?P<user>[^"]*)" has stored etag of element "(?P<path>[^"]*)"')
def step_user_has_stored_etag(context: Any, user: str, path: str) -> None:
    _dav(context).tracker.store_etag(user, path, require=True)


@then(r'these etags should not have changed:?')
def step_etags_not_changed(context: Any) -> None:
    _verify_table_columns(context.table, ["user", "path"], count=2)
    _dav(context).tracker.assert_etags_unchanged(_rows(context.table))


@then(r'these etags should have changed:?')
def step_etags_changed(context: Any) -> None:
    _verify_table_columns(context.table, ["user", "path"], count=2)
    _dav(context).tracker.assert_etags_changed(_rows(context.table))


@then(r'the etag of element "(?P<path>[^"]*)" of user "(?P<user>[^"]*)" (?P<should>should|should not) have changed')
def step_etag_should_or_should_not_change(context: Any, path: str, user: str, should: str) -> None:
    _dav(context).tracker.assert_etag_changed(user, path, should_change=(should == "should"))


use_step_matcher("parse")
