"""Scan compiled modules for partial IDs and group pages by the set they use.

Every page's IDs are unioned with the root's, since the root wraps every page.
Pages sharing the same sorted ID set share one client bundle; pages with no
partials get none.
"""

from __future__ import annotations

import asyncio
import logging
import re
import typing as typ

import aiofiles
import msgspec

from .models import HydrateGroup, PartialModule, ScannedModule

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

logger = logging.getLogger(__name__)


def _contains_id(source: str, ident: str, *, token_boundary: bool) -> bool:
    if not token_boundary:
        return ident in source
    pattern = rf"(?<![\w$]){re.escape(ident)}(?![\w$])"
    return re.search(pattern, source) is not None


def search_partial_ids(
    source: str,
    modules: cabc.Sequence[PartialModule],
    *,
    token_boundary: bool = False,
) -> tuple[str, ...]:
    """Return the IDs of ``modules`` that appear in ``source``.

    The default is a plain substring test. With ``token_boundary`` an ID only
    counts when it is not embedded in a longer identifier.

    Examples
    --------
    >>> modules = [PartialModule("ph_1", "PH_1", "ph-1", "html_1", "targets_1",
    ...                          "a.jinja", "data-ph", "div", "")]
    >>> search_partial_ids('partial("ph_1")', modules)
    ('ph_1',)
    >>> search_partial_ids("xph_1x", modules, token_boundary=True)
    ()
    """
    return tuple(
        module.id
        for module in modules
        if _contains_id(source, module.id, token_boundary=token_boundary)
    )


async def scan_module(
    path: Path,
    modules: cabc.Sequence[PartialModule],
    *,
    token_boundary: bool = False,
) -> ScannedModule:
    """Read one compiled module and record the partial IDs it references."""
    async with aiofiles.open(path, encoding="utf-8") as handle:
        source = await handle.read()
    ids = search_partial_ids(source, modules, token_boundary=token_boundary)
    return ScannedModule(path=path.as_posix(), ids=ids)


async def scan_modules(
    paths: cabc.Sequence[Path],
    modules: cabc.Sequence[PartialModule],
    *,
    token_boundary: bool = False,
) -> list[ScannedModule]:
    """Scan ``paths`` concurrently, returning results in input order."""
    results = await asyncio.gather(
        *(scan_module(path, modules, token_boundary=token_boundary) for path in paths),
        return_exceptions=True,
    )
    scanned: list[ScannedModule] = []
    for result in results:
        if isinstance(result, BaseException):
            raise result
        scanned.append(result)
    return scanned


def build_hydrate_groups(
    root: ScannedModule | None,
    pages: cabc.Sequence[ScannedModule],
    modules: cabc.Sequence[PartialModule],
    *,
    pathnames: typ.Mapping[str, cabc.Sequence[str]],
    out_name: str,
) -> list[HydrateGroup]:
    """Group pages by the partial IDs they (or the root) reference.

    Parameters
    ----------
    root : ScannedModule | None
        Scan result of the compiled root module, if there is one.
    pages : Sequence[ScannedModule]
        Scan results of the compiled page modules.
    modules : Sequence[PartialModule]
        Numbered partial modules.
    pathnames : Mapping[str, Sequence[str]]
        Concrete pathnames each scanned page is written to, keyed by
        ``ScannedModule.path``. Pages without pathnames (drafts, failed
        pages) join no group.
    out_name : str
        Group name prefix; groups are named ``<out_name>-<n>``.

    Returns
    -------
    list[HydrateGroup]
        One group per distinct non-empty ID set, ordered by the sorted key.
    """
    root_ids = set(root.ids) if root else set()
    pages_by_key: dict[str, list[str]] = {}
    ids_by_key: dict[str, set[str]] = {}
    for page in pages:
        ids = set(page.ids) | root_ids
        routes = pathnames.get(page.path, ())
        if not ids or not routes:
            continue
        key = "-".join(sorted(ids))
        bucket = pages_by_key.setdefault(key, [])
        for pathname in routes:
            if pathname not in bucket:
                bucket.append(pathname)
        ids_by_key[key] = ids

    groups: list[HydrateGroup] = []
    for number, key in enumerate(sorted(pages_by_key), start=1):
        members = ids_by_key[key]
        groups.append(
            HydrateGroup(
                name=f"{out_name}-{number}",
                insert_pages=tuple(pages_by_key[key]),
                has_partial_modules=tuple(
                    module for module in modules if module.id in members
                ),
            )
        )
        logger.debug("hydrate group %s: %s", groups[-1].name, key)
    return groups


async def write_hydrate_groups(path: Path, groups: cabc.Sequence[HydrateGroup]) -> Path:
    """Persist the group manifest as a JSON array and return ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    encoded = msgspec.json.encode([group.as_payload() for group in groups])
    async with aiofiles.open(path, "wb") as handle:
        await handle.write(msgspec.json.format(encoded, indent=2))
    return path


__all__ = [
    "build_hydrate_groups",
    "scan_module",
    "scan_modules",
    "search_partial_ids",
    "write_hydrate_groups",
]
