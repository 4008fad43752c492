"""Pathname normalization and page-pattern glob matching.

Output files, compiled modules, and search entries are all identified by the
same forward-slash *pathname* (``/``, ``/about``, ``/blog/post/``) so that
asset patterns, hydrate groups, and search paths agree regardless of the host
path convention.

Examples
--------
>>> build_pathname("dist/about/index.html", "dist")
'/about/'
>>> build_pathname("dist\\\\docs\\\\intro.html", "dist")
'/docs/intro'
>>> glob_match("/blog/post/", ["/blog/**"])
True
"""

from __future__ import annotations

import functools
import re
import typing as typ
from pathlib import PurePath, PurePosixPath

def _posix(value: str | PurePath) -> str:
    return str(value).replace("\\", "/")


def build_pathname(target: str | PurePath, base: str | PurePath) -> str:
    """Return the site pathname for ``target`` relative to ``base``.

    The ``base`` prefix is removed, then a trailing ``index.<ext>`` or the
    file extension. The result always starts with ``/`` and never contains
    backslashes.
    """
    text = _posix(target)
    prefix = _posix(base).rstrip("/")
    if prefix and prefix != "." and text.startswith(prefix + "/"):
        text = text[len(prefix) :]
    elif text.startswith("./"):
        text = text[1:]
    name = PurePosixPath(text).name
    suffix = PurePosixPath(name).suffix
    if name == f"index{suffix}":
        text = text[: -len(name)]
    elif suffix:
        text = text[: -len(suffix)]
    if not text.startswith("/"):
        text = f"/{text}"
    return text


def path_depth(pathname: str) -> int:
    """Return the number of non-empty segments in ``pathname``."""
    return len([segment for segment in pathname.split("/") if segment])


@functools.lru_cache(maxsize=512)
def _compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a page glob into a regular expression.

    ``**/`` matches zero or more whole segments, a trailing ``**`` matches
    anything, ``*`` matches within one segment and ``?`` one character.
    """
    parts: list[str] = []
    index = 0
    while index < len(pattern):
        if pattern.startswith("**/", index):
            parts.append("(?:.*/)?")
            index += 3
        elif pattern.startswith("**", index):
            parts.append(".*")
            index += 2
        elif pattern[index] == "*":
            parts.append("[^/]*")
            index += 1
        elif pattern[index] == "?":
            parts.append("[^/]")
            index += 1
        else:
            parts.append(re.escape(pattern[index]))
            index += 1
    return re.compile("".join(parts))


def glob_match(pathname: str, patterns: typ.Iterable[str]) -> bool:
    """Return ``True`` when ``pathname`` matches any of ``patterns``.

    Leading slashes are ignored on both sides, and a pathname with a trailing
    slash also matches patterns written without one.
    """
    candidate = pathname.lstrip("/")
    candidates = {candidate, candidate.rstrip("/")}
    for pattern in patterns:
        regex = _compile_glob(pattern.lstrip("/"))
        if any(regex.fullmatch(item) for item in candidates):
            return True
    return False


__all__ = [
    "build_pathname",
    "glob_match",
    "path_depth",
]
