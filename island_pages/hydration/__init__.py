"""Partial hydration: discover interactive partials, pre-render them, and
group pages into the minimal set of client bundles.

The client index phase lives in :mod:`island_pages.hydration.client`; it
depends on the compiler collaborator, which itself consumes the models here.
"""

from __future__ import annotations

from .grouping import (
    build_hydrate_groups,
    scan_module,
    scan_modules,
    search_partial_ids,
    write_hydrate_groups,
)
from .models import (
    HydrateGroup,
    HydrateOptions,
    PartialModule,
    ScannedModule,
    VirtualEntry,
    VirtualImport,
)
from .partials import (
    PartialString,
    PartialStrings,
    build_partial_modules,
    build_string_entry,
    discover_partials,
    load_partial_strings,
    render_partial_strings,
    style_to_string,
    wrap_partial_html,
    write_partial_strings,
)

__all__ = [
    "HydrateGroup",
    "HydrateOptions",
    "PartialModule",
    "PartialString",
    "PartialStrings",
    "ScannedModule",
    "VirtualEntry",
    "VirtualImport",
    "build_hydrate_groups",
    "build_partial_modules",
    "build_string_entry",
    "discover_partials",
    "load_partial_strings",
    "render_partial_strings",
    "scan_module",
    "scan_modules",
    "search_partial_ids",
    "style_to_string",
    "wrap_partial_html",
    "write_hydrate_groups",
    "write_partial_strings",
]
