"""Per-scenario state for the WebDAV property steps.

A fresh ``WebDavPropertiesScenario`` is built for every scenario and closed
when it ends; it owns the HTTP client, the stored ETags and the last
response, so nothing carries over from one scenario to the next.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from davprops.config import DavConfig
from davprops.errors import HttpStatusMismatchError, PropertyAssertionError
from davprops.http.webdav_client import WebDavClient
from davprops.logic.actors import ActorResolver, ShareTokenProvider
from davprops.logic.etag_store import EtagStore
from davprops.logic.etag_tracking import EtagTracker
from davprops.logic.property_query import PropertyQueryFacade, QueryResult
from davprops.logic.substitution import InlineCodeSubstitutor
from davprops.logic.xml_response import MultistatusDocument
from davprops.models.query import DavPathVersion


logger = logging.getLogger(__name__)


class WebDavPropertiesScenario:
    def __init__(self, config: DavConfig, *, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.config = config
        self.dav_version = DavPathVersion(config.dav_path_version)
        self.actors = ActorResolver(config)
        self.tokens = ShareTokenProvider(config.use_sharing_ng)
        self.client = WebDavClient(config, transport=transport)
        self.substitutor = InlineCodeSubstitutor(config, self.actors, self.tokens, self._current_dav_version)
        self.facade = PropertyQueryFacade(self.client, self.actors, self.tokens, self._current_dav_version)
        self.etags = EtagStore()
        self.tracker = EtagTracker(self.facade, self.etags, self.actors)
        self.last_result: Optional[QueryResult] = None

    def _current_dav_version(self) -> DavPathVersion:
        return self.dav_version

    def set_response(self, result: QueryResult) -> QueryResult:
        self.last_result = result
        logger.debug("scenario.response status=%s", result.status_code)
        return result

    @property
    def response(self) -> QueryResult:
        if self.last_result is None:
            raise PropertyAssertionError("No WebDAV response has been recorded in this scenario")
        return self.last_result

    @property
    def document(self) -> MultistatusDocument:
        return self.response.document

    def close(self) -> None:
        self.etags.clear()
        self.last_result = None
        self.client.close()


def assert_status(result: QueryResult, expected: int) -> None:
    if result.status_code != int(expected):
        preview = result.content[:300].decode("utf-8", errors="replace")
        raise HttpStatusMismatchError(
            f"HTTP status code {result.status_code} is not the expected value {expected}: {preview}"
        )


__all__ = ["WebDavPropertiesScenario", "assert_status"]
