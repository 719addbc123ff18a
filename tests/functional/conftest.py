"""Functional test fixtures for the WebDAV property helpers.

No server is needed: HTTP goes through an httpx MockTransport that records
every request and answers from a queue of canned multistatus bodies. XML
fixtures are built from (href, props) pairs so each test states exactly the
response it asserts against.
"""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Tuple

import httpx
import pytest

from davprops.config import DavConfig, UserAccount
from davprops.logic.actors import ActorResolver, ShareTokenProvider
from davprops.logic.substitution import InlineCodeSubstitutor
from davprops.logic.xml_response import MultistatusDocument
from davprops.models.query import DavPathVersion
from davprops.scenario import WebDavPropertiesScenario


SPACE_ID = "1284d238-aa92-42ce$bdc4!0b0000009157"

_ROOT_OPEN = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<d:multistatus xmlns:d="DAV:" xmlns:oc="http://owncloud.org/ns" '
    'xmlns:x1="http://whatever.org/ns">'
)


def _response_xml(href: str, props: str, status: str = "HTTP/1.1 200 OK") -> str:
    return (
        f"<d:response><d:href>{href}</d:href>"
        f"<d:propstat><d:prop>{props}</d:prop><d:status>{status}</d:status></d:propstat>"
        "</d:response>"
    )


def build_multistatus(entries: Iterable[Tuple[str, str]]) -> bytes:
    body = "".join(_response_xml(href, props) for href, props in entries)
    return (_ROOT_OPEN + body + "</d:multistatus>").encode("utf-8")


def etag_body(etag: Optional[str], href: str = "/owncloud/dav/files/Alice/file.txt") -> bytes:
    props = f"<d:getetag>{etag}</d:getetag>" if etag is not None else "<oc:fileid>1</oc:fileid>"
    return build_multistatus([(href, props)])


class RecordingTransport:
    """MockTransport handler that records requests and replays queued responses."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self._queue: List[Tuple[int, bytes]] = []
        self.transport = httpx.MockTransport(self._handle)

    def queue(self, content: bytes = b"", status: int = 207) -> None:
        self._queue.append((status, content))

    def _handle(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        status, content = self._queue.pop(0) if self._queue else (207, b"")
        return httpx.Response(status, content=content, headers={"Content-Type": "application/xml"})

    @property
    def last(self) -> httpx.Request:
        assert self.requests, "no request was sent"
        return self.requests[-1]


@pytest.fixture
def dav_config() -> DavConfig:
    return DavConfig(
        base_url="http://dav.test/owncloud",
        dav_path_version=2,
        with_remote_php=False,
        admin_username="root",
        admin_password="rootpw",
        users={
            "Alice": UserAccount(password="alicepw", display_name="Alice Hansen", space_id=SPACE_ID),
            "Brian": UserAccount(display_name="Brian Murphy"),
        },
    )


@pytest.fixture
def recorder() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def scenario(dav_config: DavConfig, recorder: RecordingTransport):
    dav = WebDavPropertiesScenario(dav_config, transport=recorder.transport)
    yield dav
    dav.close()


@pytest.fixture
def substitutor(dav_config: DavConfig) -> InlineCodeSubstitutor:
    actors = ActorResolver(dav_config)
    tokens = ShareTokenProvider(use_sharing_ng=False)
    return InlineCodeSubstitutor(dav_config, actors, tokens, lambda: DavPathVersion.NEW)


@pytest.fixture
def make_document() -> Callable[[Iterable[Tuple[str, str]]], MultistatusDocument]:
    def _make(entries: Iterable[Tuple[str, str]]) -> MultistatusDocument:
        return MultistatusDocument.parse(build_multistatus(entries))

    return _make


@pytest.fixture
def multistatus() -> Callable[[Iterable[Tuple[str, str]]], bytes]:
    return build_multistatus


@pytest.fixture
def etag_response() -> Callable[..., bytes]:
    return etag_body
