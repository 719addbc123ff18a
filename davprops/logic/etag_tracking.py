"""Store ETags and detect whether they changed.

The tracker queries ``d:getetag`` through the property query facade and
compares the current value with what the scenario's ``EtagStore`` recorded.
Batch checks collect every violation before failing once.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Mapping, Optional

from davprops.errors import EtagChangeError, PropertyNotFoundError
from davprops.logic.actors import ActorResolver
from davprops.logic.etag import etag_from_document
from davprops.logic.etag_store import EtagStore
from davprops.logic.property_assertions import find_property
from davprops.logic.property_query import PropertyQueryFacade, QueryResult
from davprops.logic.xml_response import node_text
from davprops.models.query import Depth


logger = logging.getLogger(__name__)

_GETETAG = ["d:getetag"]


class EtagTracker:
    def __init__(self, facade: PropertyQueryFacade, store: EtagStore, actors: ActorResolver) -> None:
        self.facade = facade
        self.store = store
        self.actors = actors

    def _query_etag(self, user: str, path: str, space_id: Optional[str] = None) -> QueryResult:
        return self.facade.list_folder(user, path, Depth.ZERO, _GETETAG, space_id=space_id)

    def current_etag(self, user: str, path: str, space_id: Optional[str] = None) -> str:
        result = self._query_etag(user, path, space_id)
        return node_text(find_property(result.document, "d:getetag"))

    def store_etag(
        self,
        user: str,
        path: str,
        store_path: Optional[str] = None,
        space_id: Optional[str] = None,
        *,
        require: bool = False,
    ) -> QueryResult:
        """Query ``path`` and remember its ETag under ``store_path`` (default ``path``).

        With ``require`` an empty or missing ETag fails instead of being stored.
        """
        user = self.actors.actual_username(user) or user
        store_path = store_path or path
        result = self._query_etag(user, path, space_id)
        etag = etag_from_document(result.document)
        if require and not etag:
            raise PropertyNotFoundError(
                f"Expected stored etag of element {path} of user {user} to be some string but found none"
            )
        self.store.store(user, store_path, etag)
        logger.info("etag.stored user=%s path=%s store_path=%s etag=%s", user, path, store_path, etag)
        return result

    def assert_etag_changed(self, user: str, path: str, should_change: bool) -> None:
        user = self.actors.actual_username(user) or user
        actual = self.current_etag(user, path)
        stored = self.store.get(user, path, context="etag change check:")
        if should_change and actual == stored:
            raise EtagChangeError(
                f"The etag of element '{path}' of user '{user}' was expected to change."
                f" The stored etag was '{stored}' and also got '{actual}' from the response"
            )
        if not should_change and actual != stored:
            raise EtagChangeError(
                f"The etag of element '{path}' of user '{user}' was not expected to change."
                f" The stored etag was '{stored}' but got '{actual}' from the response"
            )

    def _check_rows(self, rows: Iterable[Mapping[str, str]], expect_change: bool) -> None:
        violations: List[str] = []
        for row in rows:
            user = self.actors.actual_username(row["user"]) or row["user"]
            path = row["path"]
            actual = self.current_etag(user, path)
            stored = self.store.get(user, path, context="etag table check:")
            if expect_change and actual == stored:
                violations.append(f"The etag '{stored}' of element '{path}' of user '{user}' did not change.")
            elif not expect_change and actual != stored:
                violations.append(
                    f"The etag '{stored}' of element '{path}' of user '{user}' changed to '{actual}'."
                )
        if violations:
            header = "Some etags did not change:" if expect_change else "Some etags changed:"
            raise EtagChangeError("\n".join([header] + violations))

    def assert_etags_unchanged(self, rows: Iterable[Mapping[str, str]]) -> None:
        self._check_rows(rows, expect_change=False)

    def assert_etags_changed(self, rows: Iterable[Mapping[str, str]]) -> None:
        self._check_rows(rows, expect_change=True)


__all__ = ["EtagTracker"]
