"""Client index phase: one hydration bundle per hydrate group."""

from __future__ import annotations

import logging
import typing as typ

from island_pages.compiler import BundleOptions, write_bundle_outputs

from .models import HydrateGroup, HydrateOptions, VirtualEntry, VirtualImport

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from island_pages.compiler import Compiler
    from island_pages.config import BuildConfig, PartialConfig

logger = logging.getLogger(__name__)


def build_hydrate_options(config: PartialConfig) -> HydrateOptions:
    """Translate partial settings into client hydration options."""
    observer = config.intersection_observer_options
    return HydrateOptions(
        use_intersection_observer=config.use_intersection_observer,
        root=observer.root,
        root_margin=observer.root_margin,
        thresholds=observer.thresholds,
    )


def build_hydrate_entry(group: HydrateGroup, config: PartialConfig) -> VirtualEntry:
    """Describe the client entry hydrating every island of ``group``."""
    return VirtualEntry(
        name=group.name,
        imports=tuple(
            VirtualImport(
                import_path=module.importer,
                binding_id=module.ph_id,
                targets_id=module.targets_id,
                selector=module.selector,
            )
            for module in group.has_partial_modules
        ),
        hydrate=build_hydrate_options(config),
    )


async def build_hydrate_bundles(
    groups: cabc.Sequence[HydrateGroup], config: BuildConfig, compiler: Compiler
) -> list[Path]:
    """Bundle and write the client entry of each group.

    Returns
    -------
    list[Path]
        Written entry files, in group order. Groups whose partials have no
        client code produce nothing.
    """
    written: list[Path] = []
    for group in groups:
        entry = build_hydrate_entry(group, config.assets.partial)
        outputs = compiler.bundle_for_client(
            entry,
            BundleOptions(
                out_dir=config.assets_dir,
                out_name=group.name,
                minify=config.minify,
            ),
        )
        if not outputs:
            logger.debug("hydrate group %s has no client code", group.name)
            continue
        written.extend(await write_bundle_outputs(outputs, config.assets_dir))
    return written


__all__ = ["build_hydrate_bundles", "build_hydrate_entry", "build_hydrate_options"]
