"""Regex patterns as written in feature files.

Patterns may be PHP-style delimited (``/^"[a-f0-9]+"$/i``) or a bare Python
regex. Delimited flags map onto ``re`` flags; unknown flags are ignored.
"""

from __future__ import annotations

import re
from typing import Pattern, Tuple

_DELIMITERS = "/#~@!%|"
_FLAG_MAP = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}
_FLAGS_RE = re.compile(r"^[imsxuADUJn]*$")


def split_delimited(pattern: str) -> Tuple[str, str]:
    """Return ``(body, flags)``; a bare pattern comes back with no flags."""
    if len(pattern) >= 2 and pattern[0] in _DELIMITERS:
        end = pattern.rfind(pattern[0])
        if end > 0 and _FLAGS_RE.match(pattern[end + 1:]):
            return pattern[1:end], pattern[end + 1:]
    return pattern, ""


def compile_pattern(pattern: str) -> Pattern[str]:
    body, flags = split_delimited(pattern)
    re_flags = 0
    for flag in flags:
        re_flags |= _FLAG_MAP.get(flag, 0)
    return re.compile(body, re_flags)


def full_match(pattern: str, value: str) -> bool:
    """Anchored match of a bare pattern; an invalid regex compares literally."""
    try:
        return re.fullmatch(pattern, value) is not None
    except re.error:
        return pattern == value


__all__ = ["split_delimited", "compile_pattern", "full_match"]
