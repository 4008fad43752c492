"""Resolve per-page static data and expand dynamic routes.

A page module may export ``get_static_data`` returning one of three shapes:

1. ``{"props": {...}}`` - one page, props applied.
2. ``{"props": {...}, "paths": {"slug": "hello"}}`` - one page, every
   ``[slug]`` token in the output path replaced by ``hello``.
3. a non-empty list of shape-2 items - one page per item.

Anything else (``None``, an empty list, a list holding non-mappings, a mapping
with neither key) is "no data" and yields a single page with default props.

Example
-------
>>> import asyncio
>>> from pathlib import Path
>>> from island_pages.components import PageModule
>>> async def get_static_data():
...     return [{"paths": {"slug": "a"}}, {"paths": {"slug": "b"}}]
>>> page = PageModule(get_static_data=get_static_data)
>>> routes = asyncio.run(resolve_routes(page, Path("dist/blog/[slug].html")))
>>> [route.route_path.as_posix() for route in routes]
['dist/blog/a.html', 'dist/blog/b.html']
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import inspect
import logging
import typing as typ
from pathlib import Path

from .errors import StaticDataError

if typ.TYPE_CHECKING:
    from .components import PageModule

logger = logging.getLogger(__name__)


@dc.dataclass(frozen=True, slots=True)
class StaticDataItem:
    """Normalized static data for one output page."""

    props: typ.Mapping[str, typ.Any] = dc.field(default_factory=dict)
    paths: typ.Mapping[str, typ.Any] = dc.field(default_factory=dict)


@dc.dataclass(frozen=True, slots=True)
class ResolvedRoute:
    """A static data item bound to its concrete output path."""

    item: StaticDataItem
    route_path: Path


async def call_static_data(getter: typ.Callable[[], typ.Any]) -> typ.Any:
    """Invoke a data getter, awaiting the result when it is awaitable."""
    result = getter()
    if inspect.isawaitable(result):
        result = await result
    return result


def _normalize_item(payload: typ.Mapping[str, typ.Any]) -> StaticDataItem:
    props = payload.get("props") or {}
    paths = payload.get("paths") or {}
    return StaticDataItem(props=dict(props), paths=dict(paths))


def normalize_static_data(data: object) -> list[StaticDataItem] | None:
    """Classify a getter result and normalize it into items.

    Returns
    -------
    list[StaticDataItem] | None
        One item for shapes 1 and 2, one item per entry for shape 3, or
        ``None`` when the result has no recognized shape.
    """
    match data:
        case cabc.Mapping() if "paths" in data or "props" in data:
            return [_normalize_item(data)]
        case list() | tuple() if data and all(
            isinstance(entry, cabc.Mapping) for entry in data
        ):
            return [_normalize_item(entry) for entry in data]
        case None:
            return None
        case _:
            logger.warning("ignoring static data with no recognized shape: %r", data)
            return None


def resolve_route_path(route_path: Path, paths: typ.Mapping[str, typ.Any]) -> Path:
    """Replace every ``[name]`` token in ``route_path`` with ``paths[name]``.

    Replacement is textual and applies to every occurrence of each token,
    independent of path segments. Tokens without a binding are left as-is.
    """
    text = str(route_path)
    for key, value in paths.items():
        text = text.replace(f"[{key}]", str(value))
    return Path(text)


async def resolve_routes(page: PageModule, out_file: Path) -> list[ResolvedRoute]:
    """Expand ``page`` into ``(StaticDataItem, output path)`` pairs.

    Parameters
    ----------
    page : PageModule
        Loaded page module; its ``frontmatter`` is not consulted here.
    out_file : Path
        Output path for the page, possibly containing route tokens.

    Returns
    -------
    list[ResolvedRoute]
        Exactly one route when the page has no data getter or its data has a
        single-page shape; one route per item for list data.

    Raises
    ------
    StaticDataError
        If the page's ``get_static_data`` raises.
    """
    if page.get_static_data is None:
        return [ResolvedRoute(StaticDataItem(), out_file)]
    try:
        data = await call_static_data(page.get_static_data)
    except Exception as exc:
        raise StaticDataError(page.source or out_file, exc) from exc

    items = normalize_static_data(data)
    if items is None:
        return [ResolvedRoute(StaticDataItem(), out_file)]
    return [
        ResolvedRoute(item, resolve_route_path(out_file, item.paths)) for item in items
    ]


__all__ = [
    "ResolvedRoute",
    "StaticDataItem",
    "call_static_data",
    "normalize_static_data",
    "resolve_route_path",
    "resolve_routes",
]
