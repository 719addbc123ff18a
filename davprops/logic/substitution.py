"""Inline-code substitution for expected values written in scenario text.

Scenario values may contain codes such as ``%username%`` or ``%base_path%``
that only make sense once the actor and the server are known. Values can be
regex-quoted on the way in when the surrounding text is itself a pattern.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from davprops.config import DavConfig
from davprops.logic.actors import ActorResolver, ShareTokenProvider
from davprops.logic.dav_paths import dav_path
from davprops.logic.etag import ETAG_PATTERN
from davprops.models.query import DavPathVersion


# Characters PHP's preg_quote escapes; feature files were written against it.
_PREG_SPECIALS = set(".\\+*?[^]$(){}=!<>|:-#")


def preg_quote(value: str, delimiter: Optional[str] = "/") -> str:
    out = []
    for ch in value:
        if ch in _PREG_SPECIALS or (delimiter and ch == delimiter):
            out.append("\\" + ch)
        elif ch == "\0":
            out.append("\\000")
        else:
            out.append(ch)
    return "".join(out)


Resolver = Callable[[Optional[str]], Optional[str]]


class InlineCodeSubstitutor:
    def __init__(
        self,
        config: DavConfig,
        actors: ActorResolver,
        tokens: ShareTokenProvider,
        dav_version: Callable[[], DavPathVersion],
    ) -> None:
        self.config = config
        self.actors = actors
        self.tokens = tokens
        self._dav_version = dav_version
        self._codes: Dict[str, Resolver] = {
            "%base_url%": lambda _user: self.config.base_url,
            "%base_path%": lambda _user: self.config.base_path,
            "%username%": lambda user: user,
            "%displayname%": lambda user: self.actors.display_name(user) if user else None,
            "%password%": lambda user: self.actors.password_for(user) if user else None,
            "%spaceid%": lambda user: self.actors.personal_space_id(user) if user else None,
            "%dav_path%": self._dav_path_code,
            "%public_token%": lambda _user: self.tokens.current_token(),
        }

    def _dav_path_code(self, user: Optional[str]) -> Optional[str]:
        if not user:
            return None
        version = self._dav_version()
        space_id = self.actors.personal_space_id(user)
        if version == DavPathVersion.SPACES and not space_id:
            return None
        root = dav_path(user, version, with_remote_php=self.config.with_remote_php, space_id=space_id)
        return "/" + root.rstrip("/")

    def substitute(
        self,
        text: str,
        user: Optional[str] = None,
        *,
        regex_quote: bool = False,
    ) -> str:
        """Replace every known code present in ``text``.

        Codes that cannot be resolved for this actor are left in place so the
        comparison fails visibly on the literal code.
        """
        if "%" not in text:
            return text
        user = self.actors.actual_username(user) or self.actors.current_user
        for code, resolve in self._codes.items():
            if code not in text:
                continue
            value = resolve(user)
            if value is None:
                continue
            if regex_quote:
                value = preg_quote(value)
            text = text.replace(code, value)
        if "%etag_pattern%" in text:
            text = text.replace("%etag_pattern%", ETAG_PATTERN)
        return text


__all__ = ["InlineCodeSubstitutor", "preg_quote"]
