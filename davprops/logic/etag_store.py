"""Per-scenario record of ETags observed for (actor, resource path) pairs.

One store is owned by each scenario object and discarded with it, so stored
values never leak between scenarios.
"""

from __future__ import annotations

from typing import Dict, Optional

from davprops.errors import MissingStoredEtagError


class EtagStore:
    def __init__(self) -> None:
        self._etags: Dict[str, Dict[str, str]] = {}

    def store(self, user: str, path: str, etag: str) -> None:
        self._etags.setdefault(user, {})[path] = etag

    def get(self, user: str, path: str, context: Optional[str] = None) -> str:
        """Stored ETag for ``(user, path)``; absent keys fail hard."""
        if user not in self._etags:
            raise MissingStoredEtagError(
                f"Trying to check etag of element {path} of user {user} "
                "but the user does not have any stored etags",
                context=context,
            )
        if path not in self._etags[user]:
            raise MissingStoredEtagError(
                f"Trying to check etag of element {path} of user {user} "
                "but the user does not have a stored etag for the element",
                context=context,
            )
        return self._etags[user][path]

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        user, path = key
        return path in self._etags.get(user, {})

    def __len__(self) -> int:
        return sum(len(paths) for paths in self._etags.values())

    def clear(self) -> None:
        self._etags.clear()


__all__ = ["EtagStore"]
