"""HTTP helpers for WebDAV PROPFIND and PROPPATCH requests."""

from davprops.http.webdav_client import WebDavClient

__all__ = ["WebDavClient"]
