"""Synchronous WebDAV request helper over httpx.

Issues PROPFIND and PROPPATCH requests against the configured server. The
helper never interprets status codes; transport errors raised by httpx
propagate to the caller unchanged.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence, Tuple

import httpx

from davprops.config import DavConfig
from davprops.http.request_bodies import propfind_body, proppatch_body
from davprops.logic.dav_paths import dav_path, resource_url
from davprops.models.namespaces import NamespaceBinding
from davprops.models.query import DavPathVersion, Depth, PropertyRequest


logger = logging.getLogger(__name__)

XML_CONTENT_TYPE = "application/xml; charset=utf-8"


class WebDavClient:
    def __init__(self, config: DavConfig, *, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.config = config
        self._client = httpx.Client(
            timeout=httpx.Timeout(config.http_timeout),
            verify=config.verify_tls,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "WebDavClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def url_for(
        self,
        user: str,
        path: str,
        dav_version: DavPathVersion,
        *,
        dav_type: str = "files",
        space_id: Optional[str] = None,
    ) -> str:
        root = dav_path(
            user,
            dav_version,
            with_remote_php=self.config.with_remote_php,
            dav_type=dav_type,
            space_id=space_id,
        )
        return resource_url(self.config.base_url, root, path)

    def request(
        self,
        method: str,
        url: str,
        *,
        auth: Optional[Tuple[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
        content: bytes = b"",
    ) -> httpx.Response:
        hdrs = dict(headers or {})
        if content:
            hdrs.setdefault("Content-Type", XML_CONTENT_TYPE)
        response = self._client.request(
            method.upper(),
            url,
            headers=hdrs,
            content=content or None,
            auth=httpx.BasicAuth(*auth) if auth else None,
        )
        logger.info(
            "webdav.request %s %s depth=%s -> %s",
            method.upper(),
            response.request.url.path,
            hdrs.get("Depth", "-"),
            response.status_code,
        )
        return response

    def propfind(
        self,
        user: str,
        password: Optional[str],
        path: str,
        properties: Optional[Sequence[PropertyRequest]] = None,
        depth: Depth = Depth.ZERO,
        *,
        dav_version: DavPathVersion = DavPathVersion.NEW,
        dav_type: str = "files",
        space_id: Optional[str] = None,
    ) -> httpx.Response:
        """PROPFIND ``path``; ``properties=None`` asks for the server default set.

        For ``dav_type="public-files"``, ``user`` is the share token and
        ``password`` the optional link password.
        """
        url = self.url_for(user, path, dav_version, dav_type=dav_type, space_id=space_id)
        if dav_type == "public-files":
            auth = ("public", password) if password else None
        else:
            auth = (user, password or "")
        return self.request(
            "PROPFIND",
            url,
            auth=auth,
            headers={"Depth": depth.value},
            content=propfind_body(properties),
        )

    def proppatch(
        self,
        user: str,
        password: str,
        path: str,
        property_name: str,
        property_value: str,
        namespace: Optional[NamespaceBinding] = None,
        *,
        dav_version: DavPathVersion = DavPathVersion.NEW,
        space_id: Optional[str] = None,
    ) -> httpx.Response:
        url = self.url_for(user, path, dav_version, space_id=space_id)
        body = proppatch_body([(property_name, property_value)], namespace)
        return self.request("PROPPATCH", url, auth=(user, password), content=body)

    def proppatch_multiple(
        self,
        user: str,
        password: str,
        path: str,
        items: Sequence[Tuple[str, str]],
        *,
        dav_version: DavPathVersion = DavPathVersion.NEW,
        space_id: Optional[str] = None,
    ) -> httpx.Response:
        url = self.url_for(user, path, dav_version, space_id=space_id)
        return self.request("PROPPATCH", url, auth=(user, password), content=proppatch_body(items))


__all__ = ["WebDavClient", "XML_CONTENT_TYPE"]
