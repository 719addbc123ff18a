"""Actor and share-token resolution for scenario steps.

Maps the logical user names used in scenario text to the credentials,
display names and personal space ids configured for the run, and keeps the
share token of the most recently created public link.
"""

from __future__ import annotations

import logging
from typing import Optional

from davprops.config import DavConfig
from davprops.errors import MissingShareTokenError, PropertyAssertionError


logger = logging.getLogger(__name__)


class ActorResolver:
    def __init__(self, config: DavConfig) -> None:
        self.config = config
        self.current_user: Optional[str] = None

    def actual_username(self, user: Optional[str]) -> Optional[str]:
        """Resolve scenario aliases; ``admin`` maps to the configured admin."""
        if user is None:
            return None
        user = user.strip()
        if user.lower() == "admin":
            return self.config.admin_username
        return user

    def password_for(self, user: str) -> str:
        user = self.actual_username(user) or ""
        if user == self.config.admin_username:
            return self.config.admin_password
        account = self.config.users.get(user)
        if account is not None and account.password:
            return account.password
        return self.config.regular_user_password

    def display_name(self, user: str) -> str:
        user = self.actual_username(user) or ""
        account = self.config.users.get(user)
        if account is not None and account.display_name:
            return account.display_name
        return user

    def personal_space_id(self, user: str) -> Optional[str]:
        user = self.actual_username(user) or ""
        account = self.config.users.get(user)
        return account.space_id if account is not None else None

    def require_current_user(self) -> str:
        if not self.current_user:
            raise PropertyAssertionError("No current user has been set for this scenario")
        return self.current_user


class ShareTokenProvider:
    """Token of the last public link, from whichever sharing API is active."""

    def __init__(self, use_sharing_ng: bool = False) -> None:
        self.use_sharing_ng = use_sharing_ng
        self._public_share_token: Optional[str] = None
        self._link_share_token: Optional[str] = None
        self.link_password: Optional[str] = None

    def record_public_share(self, token: str, password: Optional[str] = None) -> None:
        self._public_share_token = token
        self.link_password = password

    def record_link_share(self, token: str, password: Optional[str] = None) -> None:
        self._link_share_token = token
        self.link_password = password

    def record(self, token: str, password: Optional[str] = None) -> None:
        if self.use_sharing_ng:
            self.record_link_share(token, password)
        else:
            self.record_public_share(token, password)

    def current_token(self) -> str:
        token = self._link_share_token if self.use_sharing_ng else self._public_share_token
        if not token:
            api = "sharing NG link share" if self.use_sharing_ng else "public share"
            raise MissingShareTokenError(f"No {api} token has been recorded in this scenario")
        return token


__all__ = ["ActorResolver", "ShareTokenProvider"]
