"""Decide which asset tags belong on which pages.

:func:`build_assets_tag_array` turns the bundled output files into
:class:`AssetTagObject` values, each carrying the page patterns that load it.
:func:`build_assets_tag_str` then picks the tags for one page pathname and
rewrites relative asset paths for the page's nesting depth.

Example
-------
>>> tags = build_assets_tag_array(
...     [Path("dist/assets/bundle.css")], out_base=Path("dist"), href_base="./"
... )
>>> build_assets_tag_str("/a/b/c/", tags)
'<link rel="stylesheet" href="../../assets/bundle.css">'
"""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ
from pathlib import Path, PurePosixPath

from .paths import glob_match, path_depth

if typ.TYPE_CHECKING:
    import collections.abc as cabc

MATCH_EVERY_PAGE: tuple[str, ...] = ("**/*",)
HASH_SUFFIX_PATTERN = re.compile(r"[-.][0-9a-fA-F]{8,}$")
STYLE_SUFFIXES = frozenset({".css"})


@dc.dataclass(frozen=True, slots=True)
class AssetRule:
    """Pages that should load the asset with the given logical name."""

    name: str
    insert_pages: tuple[str, ...]


@dc.dataclass(frozen=True, slots=True)
class AssetTagObject:
    """An asset tag and the page patterns it is injected into."""

    pattern: tuple[str, ...]
    asset_tag: str
    asset_path: str


def asset_name(asset_path: str) -> str:
    """Return the logical asset name: file name without hash or extension."""
    stem = PurePosixPath(asset_path).stem
    return HASH_SUFFIX_PATTERN.sub("", stem)


def asset_href(asset: Path, out_base: Path, href_base: str) -> str:
    """Return the public href of ``asset`` below ``out_base``."""
    text = str(asset).replace("\\", "/")
    prefix = str(out_base).replace("\\", "/").rstrip("/") + "/"
    if text.startswith(prefix):
        text = text[len(prefix) :]
    base = href_base or "/"
    if not base.endswith("/"):
        base = f"{base}/"
    return f"{base}{text.lstrip('/')}"


def asset_tag(asset_path: str) -> str:
    """Return a stylesheet link for styles and a deferred script otherwise."""
    if PurePosixPath(asset_path).suffix in STYLE_SUFFIXES:
        return f'<link rel="stylesheet" href="{asset_path}">'
    return f'<script defer src="{asset_path}"></script>'


def build_assets_tag_array(
    asset_paths: cabc.Iterable[Path],
    *,
    out_base: Path,
    href_base: str = "/",
    entry_pattern: cabc.Sequence[AssetRule] = (),
    bundle_pattern: cabc.Sequence[AssetRule] = (),
    partial_pattern: cabc.Sequence[AssetRule] = (),
) -> list[AssetTagObject]:
    """Classify output assets and attach their page patterns.

    Parameters
    ----------
    asset_paths : Iterable[Path]
        Bundled style and script files written below ``out_base``.
    out_base : Path
        Site output root; stripped from each asset path.
    href_base : str, optional
        Public base prepended to each asset path (``"/"`` or ``"./"``).
    entry_pattern, bundle_pattern, partial_pattern : Sequence[AssetRule]
        Rules checked in that order; the first rule whose name equals the
        asset's logical name supplies the page patterns.

    Returns
    -------
    list[AssetTagObject]
        One object per asset, in input order. Assets matching no rule are
        injected into every page.
    """
    rules = [*entry_pattern, *bundle_pattern, *partial_pattern]
    result: list[AssetTagObject] = []
    for asset in asset_paths:
        href = asset_href(asset, out_base, href_base)
        name = asset_name(href)
        rule = next((item for item in rules if item.name == name), None)
        result.append(
            AssetTagObject(
                pattern=rule.insert_pages if rule else MATCH_EVERY_PAGE,
                asset_tag=asset_tag(href),
                asset_path=href,
            )
        )
    return result


def relative_asset_path(pathname: str, asset_path: str) -> str:
    """Rewrite a ``./``-relative ``asset_path`` for a page at ``pathname``.

    Depth is the number of non-empty pathname segments. Pages at depth 1 or
    less keep the path unchanged; deeper pages climb ``depth - 1`` levels.
    Paths not starting with ``./`` (rooted, absolute URLs, or bare relative
    paths) are never rewritten.
    """
    if not asset_path.startswith("./"):
        return asset_path
    depth = path_depth(pathname)
    if depth <= 1:
        return asset_path
    return "../" * (depth - 1) + asset_path.removeprefix("./")


def build_assets_tag_str(
    pathname: str, assets_tag_array: cabc.Sequence[AssetTagObject]
) -> str:
    """Concatenate the tags whose patterns match ``pathname``, in array order."""
    tags: list[str] = []
    for item in assets_tag_array:
        if not glob_match(pathname, item.pattern):
            continue
        rewritten = relative_asset_path(pathname, item.asset_path)
        if rewritten == item.asset_path:
            tags.append(item.asset_tag)
        else:
            tags.append(item.asset_tag.replace(item.asset_path, rewritten, 1))
    return "".join(tags)


__all__ = [
    "MATCH_EVERY_PAGE",
    "AssetRule",
    "AssetTagObject",
    "asset_href",
    "asset_name",
    "asset_tag",
    "build_assets_tag_array",
    "build_assets_tag_str",
    "relative_asset_path",
]
