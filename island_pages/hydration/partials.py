"""Partial module discovery and the string (pre-render) phase.

The compiler leaves one manifest per interactive partial in the partial
manifest directory: ``<id>.txt`` holding the partial's source path. This
module numbers those partials, renders each one standalone, and persists the
wrapped markup so the page assembler can substitute it later.
"""

from __future__ import annotations

import asyncio
import logging
import re
import typing as typ
from pathlib import Path

import aiofiles
import msgspec

from island_pages._constants import PARTIAL_MANIFEST_SUFFIX

from .models import PartialModule, VirtualEntry, VirtualImport

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from island_pages.config import PartialConfig
    from island_pages.module_loader import ModuleLoader

logger = logging.getLogger(__name__)

STRING_ENTRY_NAME = "string-initial"
_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class PartialString(msgspec.Struct):
    """Pre-rendered markup of one partial."""

    id: str
    html: str


class PartialStrings(msgspec.Struct):
    """Persisted form of the string phase output."""

    items: list[PartialString]


def style_to_string(style: cabc.Iterable[tuple[str, str]]) -> str:
    """Format a style mapping as an inline CSS declaration list.

    Examples
    --------
    >>> style_to_string([("display", "contents"), ("marginTop", "1em")])
    'display: contents; margin-top: 1em;'
    """
    declarations = [
        f"{_CAMEL_BOUNDARY.sub('-', key).lower()}: {value};" for key, value in style
    ]
    return " ".join(declarations)


async def _read_manifest(path: Path) -> tuple[str, str]:
    async with aiofiles.open(path, encoding="utf-8") as handle:
        importer = (await handle.read()).strip()
    return path.name.removesuffix(PARTIAL_MANIFEST_SUFFIX), importer


async def discover_partials(manifest_dir: Path) -> dict[str, str]:
    """Return ``{partial id: importer}`` for every manifest in ``manifest_dir``."""
    if not manifest_dir.is_dir():
        return {}
    manifests = sorted(manifest_dir.glob(f"*{PARTIAL_MANIFEST_SUFFIX}"))
    results = await asyncio.gather(
        *(_read_manifest(path) for path in manifests), return_exceptions=True
    )
    found: dict[str, str] = {}
    for result in results:
        if isinstance(result, BaseException):
            raise result
        ident, importer = result
        found[ident] = importer
    return found


def build_partial_modules(
    partials: typ.Mapping[str, str], config: PartialConfig
) -> list[PartialModule]:
    """Number the discovered partials in ``importer.upper()`` order.

    Parameters
    ----------
    partials : Mapping[str, str]
        Partial ID to importer path, as returned by :func:`discover_partials`.
    config : PartialConfig
        Naming settings for the island wrapper.

    Returns
    -------
    list[PartialModule]
        Modules numbered from 1; numbering is deterministic for a given set
        of importer paths.
    """
    style = style_to_string(config.root_style)
    ordered = sorted(partials.items(), key=lambda item: (item[1].upper(), item[0]))
    return [
        PartialModule(
            id=ident,
            ph_id=f"PH_{number}",
            ph_dom_id=f"{config.root_value_prefix}-{number}",
            html_id=f"html_{number}",
            targets_id=f"targets_{number}",
            importer=importer,
            root_attr=f"data-{config.root_attr_suffix}",
            root_dom_element=config.root_dom_element,
            root_style_str=style,
        )
        for number, (ident, importer) in enumerate(ordered, start=1)
    ]


def build_string_entry(modules: cabc.Sequence[PartialModule]) -> VirtualEntry:
    """Describe the string phase entry: every partial bound to its ``PH_n``."""
    return VirtualEntry(
        name=STRING_ENTRY_NAME,
        imports=tuple(VirtualImport(module.importer, module.ph_id) for module in modules),
    )


def wrap_partial_html(module: PartialModule, html: str) -> str:
    """Wrap pre-rendered partial markup in its island root element."""
    style = f' style="{module.root_style_str}"' if module.root_style_str else ""
    element = module.root_dom_element
    return (
        f'<{element} {module.root_attr}="{module.ph_dom_id}"{style}>'
        f"{html}</{element}>"
    )


def render_partial_strings(
    modules: cabc.Sequence[PartialModule], loader: ModuleLoader
) -> PartialStrings:
    """Render every partial standalone with empty props and wrap the result."""
    entry = build_string_entry(modules)
    by_binding = {module.ph_id: module for module in modules}
    items: list[PartialString] = []
    for item in entry.imports:
        module = by_binding[item.binding_id]
        loaded = loader.load_module(Path(item.import_path))
        html = loaded.component.render({}, "")
        items.append(PartialString(id=module.id, html=wrap_partial_html(module, html)))
        logger.debug("rendered partial %s (%s)", module.ph_id, module.importer)
    return PartialStrings(items=items)


async def write_partial_strings(path: Path, strings: PartialStrings) -> Path:
    """Persist the string phase output as JSON and return ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = msgspec.json.format(msgspec.json.encode(strings), indent=2)
    async with aiofiles.open(path, "wb") as handle:
        await handle.write(payload)
    return path


async def load_partial_strings(path: Path) -> dict[str, str]:
    """Read persisted partial markup back as ``{partial id: html}``.

    A missing file means no partials were discovered.
    """
    if not path.exists():
        return {}
    async with aiofiles.open(path, "rb") as handle:
        raw = await handle.read()
    strings = msgspec.json.decode(raw, type=PartialStrings)
    return {item.id: item.html for item in strings.items}


__all__ = [
    "STRING_ENTRY_NAME",
    "PartialString",
    "PartialStrings",
    "build_partial_modules",
    "build_string_entry",
    "discover_partials",
    "load_partial_strings",
    "render_partial_strings",
    "style_to_string",
    "wrap_partial_html",
    "write_partial_strings",
]
