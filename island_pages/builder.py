"""Sequence the build stages and hand work to the compiler between them.

Stage order is fixed: compile root and pages, load every page and resolve its
routes, discover partials, pre-render them (persisted), scan and group by the
concrete page pathnames (persisted), bundle client assets, build the asset tag
array, render and write every page, then build the search index from what was
written. Compile failures abort the build; page failures are
collected into the :class:`BuildReport` while the remaining pages finish.
"""

from __future__ import annotations

import asyncio
import dataclasses as dc
import logging
import os
import shutil
import typing as typ
from pathlib import Path

from ._constants import DEFAULT_LOADER_RULES
from .assembler import PageAssembler, RootContent, build_root_content, is_draft
from .assets import MATCH_EVERY_PAGE, AssetRule, build_assets_tag_array
from .compiler import (
    BundleOptions,
    CompileOptions,
    Compiler,
    SourceCompiler,
    write_bundle_outputs,
)
from .errors import StaticDataError
from .hydration import (
    HydrateGroup,
    VirtualEntry,
    VirtualImport,
    build_hydrate_groups,
    build_partial_modules,
    discover_partials,
    load_partial_strings,
    render_partial_strings,
    scan_modules,
    write_hydrate_groups,
    write_partial_strings,
)
from .hydration.client import build_hydrate_bundles
from .module_loader import CompiledModuleLoader, ModuleLoader
from .paths import build_pathname
from .routes import ResolvedRoute, resolve_routes
from .search import run_search

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .assets import AssetTagObject
    from .components import PageModule
    from .config import BuildConfig

logger = logging.getLogger(__name__)


@dc.dataclass(frozen=True, slots=True)
class PageFailure:
    """A page that could not be built, with the error that stopped it."""

    page: Path
    error: BaseException

    @property
    def message(self) -> str:
        """One-line description suitable for terminal output."""
        return f"{self.page}: {self.error}"


@dc.dataclass(frozen=True, slots=True)
class BuildReport:
    """Files written by a build and the pages that failed."""

    written: tuple[Path, ...] = ()
    failures: tuple[PageFailure, ...] = ()

    @property
    def ok(self) -> bool:
        """``True`` when every page was built."""
        return not self.failures


@dc.dataclass(frozen=True, slots=True)
class ResolvedPage:
    """A loaded page together with the routes its data expanded into."""

    source: Path
    compiled: Path
    module: PageModule
    routes: tuple[ResolvedRoute, ...]


class SiteBuilder:
    """Build a static site described by a :class:`BuildConfig`.

    Parameters
    ----------
    config : BuildConfig
        Immutable build configuration passed to every stage.
    compiler : Compiler, optional
        Compiler/bundler collaborator; defaults to :class:`SourceCompiler`.
    loader : ModuleLoader, optional
        Module loader; defaults to a :class:`CompiledModuleLoader` over the
        compiled modules directory and the source root.
    loader_rules : Mapping[str, str], optional
        File suffix to source kind for root, page, and partial sources.

    Examples
    --------
    >>> from island_pages.config import default_build_config
    >>> report = SiteBuilder(default_build_config()).run()  # doctest: +SKIP
    >>> report.ok  # doctest: +SKIP
    True
    """

    def __init__(
        self,
        config: BuildConfig,
        *,
        compiler: Compiler | None = None,
        loader: ModuleLoader | None = None,
        loader_rules: cabc.Mapping[str, str] | None = None,
    ) -> None:
        self.config = config
        self.compiler = compiler or SourceCompiler()
        self.loader_rules = dict(loader_rules or DEFAULT_LOADER_RULES)
        self._loader = loader

    @property
    def source_base(self) -> Path:
        """Common directory of the root and page sources."""
        return Path(
            os.path.commonpath(
                [self.config.root_src_dir.absolute(), self.config.pages_src_dir.absolute()]
            )
        )

    @property
    def compiled_pages_dir(self) -> Path:
        """Directory holding the compiled page modules."""
        relative = self.config.pages_src_dir.absolute().relative_to(self.source_base)
        return self.config.modules_dir / relative

    def find_root_source(self) -> Path | None:
        """Return the root source file, trying each loader suffix in order."""
        for suffix in self.loader_rules:
            candidate = self.config.root_src_dir / f"{self.config.root_src_name}{suffix}"
            if candidate.is_file():
                return candidate
        return None

    def find_page_sources(self) -> list[Path]:
        """Return every page source; names starting with ``_`` are skipped."""
        pages_dir = self.config.pages_src_dir
        if not pages_dir.is_dir():
            return []
        return sorted(
            path
            for path in pages_dir.rglob("*")
            if path.is_file()
            and path.suffix in self.loader_rules
            and not any(
                part.startswith("_") for part in path.relative_to(pages_dir).parts
            )
        )

    def run(self) -> BuildReport:
        """Run :meth:`build` to completion on a fresh event loop."""
        return asyncio.run(self.build())

    async def build(self) -> BuildReport:
        """Run every build stage.

        Raises
        ------
        CompileError
            If the compiler rejects the root or page sources.
        """
        config = self.config
        if config.temp_dir.exists():
            shutil.rmtree(config.temp_dir)

        root_source = self.find_root_source()
        page_sources = self.find_page_sources()
        entries = [root_source, *page_sources] if root_source else page_sources
        entries = [path.absolute() for path in entries]
        compiled = self.compiler.compile(
            entries,
            CompileOptions(
                out_base=self.source_base,
                out_dir=config.modules_dir,
                partial_dir=config.partial_manifest_dir,
                alias_map=config.alias,
                loader_rules=self.loader_rules,
            ),
        )
        compiled_root = compiled[0] if root_source else None
        compiled_pages = compiled[1:] if root_source else list(compiled)
        logger.info("compiled %d page(s)", len(compiled_pages))

        loader = self._loader or CompiledModuleLoader(
            [config.modules_dir, self.source_base], loader_rules=self.loader_rules
        )
        resolved, failures = await self._resolve_pages(
            compiled_pages, page_sources, loader
        )
        groups = await self._build_partials(
            compiled_root, compiled_pages, loader, self.page_pathnames(resolved)
        )

        asset_files = await self.build_static_assets()
        partial_files = await build_hydrate_bundles(groups, config, self.compiler)
        assets_tag_array = build_assets_tag_array(
            [*sorted(asset_files), *partial_files],
            out_base=config.out_dir,
            href_base=config.base,
            entry_pattern=[
                AssetRule(entry.name, entry.insert_pages)
                for entry in config.assets.entry
            ],
            bundle_pattern=[AssetRule(config.assets.bundle_name, MATCH_EVERY_PAGE)],
            partial_pattern=[
                AssetRule(group.name, group.insert_pages) for group in groups
            ],
        )

        try:
            root = await build_root_content(
                loader.load_module(compiled_root) if compiled_root else None
            )
        except StaticDataError as exc:
            logger.error("root data failed: %s", exc)  # noqa: TRY400
            return BuildReport(
                written=(*asset_files, *partial_files),
                failures=(PageFailure(exc.page, exc), *failures),
            )

        written, write_failures = await self._build_pages(
            root, resolved, assets_tag_array
        )
        search_file = await run_search(config)
        return BuildReport(
            written=(
                *asset_files,
                *partial_files,
                *written,
                *((search_file,) if search_file else ()),
            ),
            failures=(*failures, *write_failures),
        )

    async def _resolve_page(
        self, loader: ModuleLoader, source: Path, compiled_page: Path
    ) -> ResolvedPage:
        module = loader.load_module(compiled_page)
        routes = await resolve_routes(module, self.page_out_file(compiled_page))
        return ResolvedPage(source, compiled_page, module, tuple(routes))

    async def _resolve_pages(
        self,
        compiled_pages: cabc.Sequence[Path],
        page_sources: cabc.Sequence[Path],
        loader: ModuleLoader,
    ) -> tuple[list[ResolvedPage], list[PageFailure]]:
        """Load every page and call its data getter, drafts included.

        Pages whose module or data fails are reported and left out of the
        rest of the build.
        """
        results = await asyncio.gather(
            *(
                self._resolve_page(loader, source, compiled)
                for source, compiled in zip(page_sources, compiled_pages, strict=True)
            ),
            return_exceptions=True,
        )
        resolved: list[ResolvedPage] = []
        failures: list[PageFailure] = []
        for source, result in zip(page_sources, results, strict=True):
            if isinstance(result, Exception):
                logger.error("failed to build %s: %s", source, result)
                failures.append(PageFailure(source, result))
            elif isinstance(result, BaseException):
                raise result
            else:
                resolved.append(result)
        return resolved, failures

    def page_pathnames(
        self, resolved: cabc.Iterable[ResolvedPage]
    ) -> dict[str, list[str]]:
        """Map each compiled page to the pathnames it will be written to.

        Drafts are written nowhere, so they map to no pathnames.
        """
        return {
            page.compiled.as_posix(): []
            if is_draft(page.module)
            else [
                build_pathname(route.route_path, self.config.out_dir)
                for route in page.routes
            ]
            for page in resolved
        }

    async def _build_partials(
        self,
        compiled_root: Path | None,
        compiled_pages: cabc.Sequence[Path],
        loader: ModuleLoader,
        pathnames: typ.Mapping[str, cabc.Sequence[str]],
    ) -> list[HydrateGroup]:
        """Run partial discovery, the string phase, and scan/group."""
        config = self.config
        partials = await discover_partials(config.partial_manifest_dir)
        modules = build_partial_modules(partials, config.assets.partial)
        strings = render_partial_strings(modules, loader)
        await write_partial_strings(config.partial_strings_file, strings)

        scanned = await scan_modules(
            [*([compiled_root] if compiled_root else []), *compiled_pages],
            modules,
            token_boundary=config.assets.partial.token_boundary,
        )
        root_scan = scanned[0] if compiled_root else None
        page_scans = scanned[1:] if compiled_root else scanned
        groups = build_hydrate_groups(
            root_scan,
            page_scans,
            modules,
            pathnames=pathnames,
            out_name=config.assets.partial.out_name,
        )
        await write_hydrate_groups(config.hydrate_pages_file, groups)
        logger.info(
            "found %d partial(s) in %d hydrate group(s)", len(modules), len(groups)
        )
        return groups

    async def build_static_assets(self) -> list[Path]:
        """Bundle the configured entries and the global bundle."""
        config = self.config
        written: list[Path] = []
        for entry in config.assets.entry:
            outputs = self.compiler.bundle_for_client(
                entry.input,
                BundleOptions(
                    out_dir=config.assets_dir, out_name=entry.name, minify=config.minify
                ),
            )
            written.extend(await write_bundle_outputs(outputs, config.assets_dir))
        if config.assets.bundle:
            bundle = VirtualEntry(
                name=config.assets.bundle_name,
                imports=tuple(
                    VirtualImport(str(path), f"bundle_{number}")
                    for number, path in enumerate(config.assets.bundle, start=1)
                ),
            )
            outputs = self.compiler.bundle_for_client(
                bundle,
                BundleOptions(
                    out_dir=config.assets_dir,
                    out_name=config.assets.bundle_name,
                    minify=config.minify,
                ),
            )
            written.extend(await write_bundle_outputs(outputs, config.assets_dir))
        return written

    def page_out_file(self, compiled_page: Path) -> Path:
        """Return the output file of a compiled page (route tokens intact)."""
        relative = compiled_page.relative_to(self.compiled_pages_dir)
        return self.config.out_dir / relative.with_suffix(".html")

    async def _build_pages(
        self,
        root: RootContent,
        resolved: cabc.Sequence[ResolvedPage],
        assets_tag_array: cabc.Sequence[AssetTagObject],
    ) -> tuple[list[Path], list[PageFailure]]:
        """Render and write all resolved pages concurrently, collecting failures."""
        assembler = PageAssembler(
            root=root,
            partial_strings=await load_partial_strings(self.config.partial_strings_file),
            assets_tag_array=assets_tag_array,
            out_dir=self.config.out_dir,
        )
        results = await asyncio.gather(
            *(assembler.write_routes(page.module, page.routes) for page in resolved),
            return_exceptions=True,
        )
        written: list[Path] = []
        failures: list[PageFailure] = []
        for page, result in zip(resolved, results, strict=True):
            if isinstance(result, Exception):
                logger.error("failed to build %s: %s", page.source, result)
                failures.append(PageFailure(page.source, result))
            elif isinstance(result, BaseException):
                raise result
            else:
                written.extend(result)
        return written, failures


__all__ = ["BuildReport", "PageFailure", "ResolvedPage", "SiteBuilder"]
