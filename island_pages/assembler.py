"""Compose root and page components into final HTML files.

For every resolved route the assembler renders the page (as the ``children``
of the root unless the root is the identity), injects the asset tags whose
patterns match the page pathname, substitutes pre-rendered partial markup for
each placeholder, turns comment markers into HTML comments, and writes the
result.
"""

from __future__ import annotations

import asyncio
import dataclasses as dc
import logging
import re
import typing as typ
from pathlib import Path

import aiofiles
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from .assets import build_assets_tag_str
from .components import FRAGMENT, IDENTITY_ROOT, Location, PageModule
from .errors import StaticDataError
from .paths import build_pathname
from .routes import (
    ResolvedRoute,
    StaticDataItem,
    call_static_data,
    normalize_static_data,
    resolve_routes,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .assets import AssetTagObject

logger = logging.getLogger(__name__)

PARTIAL_PLACEHOLDER_PATTERN = re.compile(
    r'<div data-partial-hydration="(?P<id>[^"]+)"></div>'
)
COMMENT_MARKER_PATTERN = re.compile(r'<div class="island-comment" hidden="">(.+?)</div>')
HEAD_CLOSE_PATTERN = re.compile(r"</head\s*>", re.I)
HTML_OPEN_PATTERN = re.compile(r"<html(?:\s[^>]*)?>", re.I)
DOCTYPE_PATTERN = re.compile(r"\A\s*<!doctype", re.I)


@dc.dataclass(frozen=True, slots=True)
class RootContent:
    """The root module and the global props every page receives."""

    module: PageModule = IDENTITY_ROOT
    global_props: typ.Mapping[str, typ.Any] = dc.field(default_factory=dict)

    @property
    def is_identity(self) -> bool:
        """``True`` when pages render without a wrapping root component."""
        return self.module.component is FRAGMENT


async def build_root_content(root: PageModule | None) -> RootContent:
    """Load global props from the root's data getter.

    Raises
    ------
    StaticDataError
        If the root's ``get_static_data`` raises.
    """
    module = root or IDENTITY_ROOT
    if module.get_static_data is None:
        return RootContent(module=module)
    try:
        data = await call_static_data(module.get_static_data)
    except Exception as exc:
        raise StaticDataError(module.source or Path("<root>"), exc) from exc
    items = normalize_static_data(data)
    props = dict(items[0].props) if items else {}
    return RootContent(module=module, global_props=props)


def is_draft(page: PageModule) -> bool:
    """Return ``True`` when the page's front matter marks it as a draft."""
    return bool(page.frontmatter and page.frontmatter.get("draft"))


def build_location(out_file: Path, out_dir: Path) -> Location:
    """Return the location of the page written to ``out_file``."""
    return Location(pathname=build_pathname(out_file, out_dir))


def render_page(
    root: RootContent, page: PageModule, item: StaticDataItem, location: Location
) -> str:
    """Render ``page`` (inside the root, unless it is the identity) to markup."""
    props = {
        **root.global_props,
        **item.props,
        "frontmatter": dict(page.frontmatter or {}),
        "location": location,
    }
    markup = page.component.render(props, "")
    if root.is_identity:
        return markup
    return root.module.component.render(props, markup)


def replace_partial_placeholders(
    markup: str, partial_strings: typ.Mapping[str, str]
) -> str:
    """Swap each partial placeholder for its pre-rendered island markup.

    Placeholders whose ID has no rendered markup are left untouched.
    """

    def _repl(match: re.Match[str]) -> str:
        ident = match.group("id")
        if ident not in partial_strings:
            logger.warning("no pre-rendered markup for partial %s", ident)
            return match.group(0)
        return partial_strings[ident]

    return PARTIAL_PLACEHOLDER_PATTERN.sub(_repl, markup)


def replace_comment_markers(markup: str) -> str:
    """Turn comment marker elements into HTML comments."""
    return COMMENT_MARKER_PATTERN.sub(r"\n<!-- \1 -->", markup)


def build_document_environment(templates_dir: Path | None = None) -> Environment:
    """Create the environment holding the package ``document.jinja`` shell."""
    directory = templates_dir or Path(__file__).parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(directory)),
        autoescape=select_autoescape(["html", "xml", "jinja"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def inject_asset_tags(
    markup: str,
    tags: str,
    *,
    env: Environment,
    frontmatter: typ.Mapping[str, typ.Any] | None = None,
) -> str:
    """Place ``tags`` in the document head, adding a shell when there is none.

    Markup with a ``</head>`` receives the tags right before it; markup with
    only an ``<html>`` element gets a new head. Anything else is a fragment and
    is wrapped in ``document.jinja``.
    """
    if HEAD_CLOSE_PATTERN.search(markup):
        document = HEAD_CLOSE_PATTERN.sub(lambda m: f"{tags}{m.group(0)}", markup, count=1)
    elif match := HTML_OPEN_PATTERN.search(markup):
        head = f"<head>{tags}</head>"
        document = f"{markup[: match.end()]}{head}{markup[match.end() :]}"
    else:
        meta = frontmatter or {}
        return env.get_template("document.jinja").render(
            title=meta.get("title"),
            lang=meta.get("lang"),
            head=Markup(tags),
            body=Markup(markup),
        )
    if not DOCTYPE_PATTERN.match(document):
        document = f"<!doctype html>\n{document}"
    return document


async def write_markup(path: Path, markup: str) -> Path | None:
    """Write ``markup`` to ``path``; log and return ``None`` on failure."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "w", encoding="utf-8") as handle:
            await handle.write(markup)
    except OSError:
        logger.exception("failed to write %s", path)
        return None
    return path


class PageAssembler:
    """Render and write every route of a page.

    Parameters
    ----------
    root : RootContent
        Root module and global props.
    partial_strings : Mapping[str, str]
        Persisted partial markup keyed by partial ID.
    assets_tag_array : Sequence[AssetTagObject]
        Asset tags with their page patterns.
    out_dir : Path
        Site output root; page pathnames are relative to it.
    env : Environment, optional
        Environment providing ``document.jinja``.
    """

    def __init__(
        self,
        *,
        root: RootContent,
        partial_strings: typ.Mapping[str, str],
        assets_tag_array: cabc.Sequence[AssetTagObject],
        out_dir: Path,
        env: Environment | None = None,
    ) -> None:
        self.root = root
        self.partial_strings = partial_strings
        self.assets_tag_array = assets_tag_array
        self.out_dir = out_dir
        self.env = env or build_document_environment()

    def assemble(self, page: PageModule, route: ResolvedRoute) -> str | None:
        """Return the final markup of one route, or ``None`` for drafts."""
        if is_draft(page):
            return None
        location = build_location(route.route_path, self.out_dir)
        markup = render_page(self.root, page, route.item, location)
        tags = build_assets_tag_str(location.pathname, self.assets_tag_array)
        markup = inject_asset_tags(
            markup, tags, env=self.env, frontmatter=page.frontmatter
        )
        markup = replace_partial_placeholders(markup, self.partial_strings)
        return replace_comment_markers(markup)

    async def build_page(self, page: PageModule, out_file: Path) -> list[Path]:
        """Resolve the page's routes, then render and write each one.

        Returns
        -------
        list[Path]
            Files written, in route order. Drafts write nothing, but their
            data getter still runs.

        Raises
        ------
        StaticDataError
            If the page's data getter fails.
        """
        routes = await resolve_routes(page, out_file)
        return await self.write_routes(page, routes)

    async def write_routes(
        self, page: PageModule, routes: cabc.Sequence[ResolvedRoute]
    ) -> list[Path]:
        """Render and write already resolved ``routes`` of ``page`` concurrently."""
        if is_draft(page):
            logger.info("skipping draft %s", page.source or "<page>")
        results = await asyncio.gather(
            *(self._write_route(page, route) for route in routes),
            return_exceptions=True,
        )
        written: list[Path] = []
        for result in results:
            if isinstance(result, BaseException):
                raise result
            if result is not None:
                written.append(result)
        return written

    async def _write_route(self, page: PageModule, route: ResolvedRoute) -> Path | None:
        markup = self.assemble(page, route)
        if markup is None:
            return None
        return await write_markup(route.route_path, markup)


__all__ = [
    "COMMENT_MARKER_PATTERN",
    "PARTIAL_PLACEHOLDER_PATTERN",
    "PageAssembler",
    "RootContent",
    "build_document_environment",
    "build_location",
    "build_root_content",
    "inject_asset_tags",
    "is_draft",
    "render_page",
    "replace_comment_markers",
    "replace_partial_placeholders",
    "write_markup",
]
