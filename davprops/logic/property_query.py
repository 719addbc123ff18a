"""Property query facade: one PROPFIND in, one parsed result out.

Resolves the actor (authenticated user or public share token), picks the DAV
path for the active path version and hands back the raw response together
with its parsed multistatus document. Status codes are left to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import httpx

from davprops.http.webdav_client import WebDavClient
from davprops.logic.actors import ActorResolver, ShareTokenProvider
from davprops.logic.xml_response import MultistatusDocument
from davprops.models.namespaces import NamespaceBinding
from davprops.models.query import DavPathVersion, Depth, PropertyQuery, PropertyRequest, QueryMode


logger = logging.getLogger(__name__)


@dataclass
class QueryResult:
    status_code: int
    headers: Dict[str, str]
    content: bytes
    query: Optional[PropertyQuery] = None
    _document: Optional[MultistatusDocument] = field(default=None, repr=False)

    @classmethod
    def from_response(cls, response: httpx.Response, query: Optional[PropertyQuery] = None) -> "QueryResult":
        return cls(
            status_code=response.status_code,
            headers={k: v for k, v in response.headers.items()},
            content=bytes(response.content),
            query=query,
        )

    @property
    def document(self) -> MultistatusDocument:
        if self._document is None:
            self._document = MultistatusDocument.parse(
                self.content, context=f"HTTP {self.status_code} response:"
            )
        return self._document


class PropertyQueryFacade:
    def __init__(
        self,
        client: WebDavClient,
        actors: ActorResolver,
        tokens: ShareTokenProvider,
        dav_version: Callable[[], DavPathVersion],
    ) -> None:
        self.client = client
        self.actors = actors
        self.tokens = tokens
        self._dav_version = dav_version

    def query(self, query: PropertyQuery) -> QueryResult:
        if query.mode == QueryMode.PUBLIC:
            response = self.client.propfind(
                query.actor,
                self.tokens.link_password,
                query.path,
                query.properties,
                query.depth,
                dav_version=self._dav_version(),
                dav_type="public-files",
            )
            return QueryResult.from_response(response, query)

        user = self.actors.actual_username(query.actor) or query.actor
        version = self._dav_version()
        space_id = query.space_id
        if version == DavPathVersion.SPACES and not space_id:
            space_id = self.actors.personal_space_id(user)
        response = self.client.propfind(
            user,
            self.actors.password_for(user),
            query.path,
            query.properties,
            query.depth,
            dav_version=version,
            space_id=space_id,
        )
        return QueryResult.from_response(response, query)

    def list_folder(
        self,
        user: str,
        path: str,
        depth: object = Depth.ZERO,
        properties: Optional[List[str]] = None,
        space_id: Optional[str] = None,
        mode: QueryMode = QueryMode.USER,
    ) -> QueryResult:
        return self.query(
            PropertyQuery.for_names(user, path, depth, properties, space_id=space_id, mode=mode)
        )

    def list_public_link(
        self,
        path: str,
        properties: Optional[List[str]] = None,
        depth: object = Depth.ZERO,
    ) -> QueryResult:
        return self.list_folder(
            self.tokens.current_token(), path, depth, properties, mode=QueryMode.PUBLIC
        )

    def query_custom_property(
        self,
        user: str,
        path: str,
        property_name: str,
        namespace: Optional[str] = None,
    ) -> QueryResult:
        binding = NamespaceBinding.parse(namespace) if namespace else None
        return self.query(
            PropertyQuery(
                actor=user,
                path=path,
                depth=Depth.ZERO,
                properties=[PropertyRequest(name=property_name, namespace=binding)],
            )
        )

    def _writer(self, user: str, space_id: Optional[str]):
        user = self.actors.actual_username(user) or user
        version = self._dav_version()
        if version == DavPathVersion.SPACES and not space_id:
            space_id = self.actors.personal_space_id(user)
        return user, self.actors.password_for(user), version, space_id

    def set_property(
        self,
        user: str,
        path: str,
        property_name: str,
        property_value: str,
        namespace: Optional[str] = None,
        space_id: Optional[str] = None,
    ) -> QueryResult:
        user, password, version, space_id = self._writer(user, space_id)
        binding = NamespaceBinding.parse(namespace) if namespace else None
        response = self.client.proppatch(
            user,
            password,
            path,
            property_name,
            property_value,
            binding,
            dav_version=version,
            space_id=space_id,
        )
        return QueryResult.from_response(response)

    def set_properties(
        self,
        user: str,
        path: str,
        items: List[Tuple[str, str]],
        space_id: Optional[str] = None,
    ) -> QueryResult:
        user, password, version, space_id = self._writer(user, space_id)
        response = self.client.proppatch_multiple(
            user, password, path, items, dav_version=version, space_id=space_id
        )
        return QueryResult.from_response(response)


__all__ = ["PropertyQueryFacade", "QueryResult"]
