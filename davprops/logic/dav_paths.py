"""DAV URL layout for the old, new and spaces path versions."""

from __future__ import annotations

from typing import Optional
from urllib.parse import quote

from davprops.models.query import DavPathVersion


def prefix_remote_php(path: str, with_remote_php: bool) -> str:
    """Prepend ``remote.php/`` when the server routes DAV through it."""
    return f"remote.php/{path}" if with_remote_php else path


def dav_path(
    user: str,
    version: DavPathVersion,
    *,
    with_remote_php: bool,
    dav_type: str = "files",
    space_id: Optional[str] = None,
) -> str:
    """Relative DAV root (always ending in "/") for a user or share token.

    ``dav_type`` is ``files`` for authenticated access and ``public-files``
    for public link access, where ``user`` carries the share token.
    """
    if dav_type == "public-files":
        return prefix_remote_php(f"dav/public-files/{user}/", with_remote_php)
    if version == DavPathVersion.OLD:
        return "remote.php/webdav/"
    if version == DavPathVersion.SPACES:
        if not space_id:
            raise ValueError(f"spaces DAV path for user {user!r} requires a space id")
        return prefix_remote_php(f"dav/spaces/{space_id}/", with_remote_php)
    return prefix_remote_php(f"dav/{dav_type}/{user}/", with_remote_php)


def resource_url(base_url: str, root: str, path: str) -> str:
    encoded = quote(path.lstrip("/"), safe="/")
    return f"{base_url.rstrip('/')}/{root}{encoded}"


def parse_base_dav_path_from_href(href: str) -> str:
    """Cut an entry href down to the DAV root it was listed under.

    ``/remote.php/webdav/a/b`` -> ``/remote.php/webdav``;
    ``/remote.php/dav/files/alice/a`` -> ``/remote.php/dav/files/alice``;
    ``/dav/spaces/<id>/a`` -> ``/dav/spaces/<id>``. Anything else is
    returned unchanged.
    """
    parts = href.split("/")
    if "webdav" in parts:
        parts = parts[: parts.index("webdav") + 1]
    elif "files" in parts:
        parts = parts[: parts.index("files") + 2]
    elif "spaces" in parts:
        parts = parts[: parts.index("spaces") + 2]
    return "/".join(parts)


__all__ = [
    "prefix_remote_php",
    "dav_path",
    "resource_url",
    "parse_base_dav_path_from_href",
]
