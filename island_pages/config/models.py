"""Typed dataclasses describing island_pages build configuration."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path

from island_pages._constants import (
    HYDRATE_PAGES_FILENAME,
    PARTIAL_STRINGS_FILENAME,
)


class BuildConfigError(ValueError):
    """Raised when the build configuration is invalid or incomplete."""


@dc.dataclass(frozen=True, slots=True)
class EntryConfig:
    """A client asset entry and the page patterns that load it."""

    name: str
    input: Path
    insert_pages: tuple[str, ...] = ("**/*",)


@dc.dataclass(frozen=True, slots=True)
class IntersectionObserverOptions:
    """Options forwarded to the client-side ``IntersectionObserver``."""

    root: str | None = None
    root_margin: str = "0px"
    thresholds: tuple[float, ...] = (1.0,)


@dc.dataclass(frozen=True, slots=True)
class PartialConfig:
    """Naming and hydration behaviour for interactive partial components."""

    out_name: str = "partial-hydration"
    root_attr_suffix: str = "partial-hydration"
    root_value_prefix: str = "ph"
    root_dom_element: str = "div"
    root_style: tuple[tuple[str, str], ...] = (("display", "contents"),)
    use_intersection_observer: bool = True
    intersection_observer_options: IntersectionObserverOptions = dc.field(
        default_factory=IntersectionObserverOptions
    )
    token_boundary: bool = False


@dc.dataclass(frozen=True, slots=True)
class AssetsConfig:
    """Where client assets are written and which pages receive them."""

    out_dir: str = "assets"
    bundle_name: str = "bundle"
    bundle: tuple[Path, ...] = ()
    entry: tuple[EntryConfig, ...] = ()
    partial: PartialConfig = dc.field(default_factory=PartialConfig)


@dc.dataclass(frozen=True, slots=True)
class SearchHitConfig:
    """Predicate deciding which vocabulary words are searchable hits."""

    min_length: int = 2
    number: bool = False
    english: bool = True
    hiragana: bool = False
    katakana: bool = True
    kanji: bool = True


@dc.dataclass(frozen=True, slots=True)
class SearchConfig:
    """Search index generation settings."""

    enabled: bool = False
    cache: bool = False
    out_file: str = "assets/search.json"
    include: tuple[str, ...] = ("**/*",)
    exclude: tuple[str, ...] = ("/404",)
    trim_title: str = ""
    target_selector: str = "[data-search]"
    skip_elements: tuple[str, ...] = ("script", "style", "pre")
    hit: SearchHitConfig = dc.field(default_factory=SearchHitConfig)


@dc.dataclass(frozen=True, slots=True)
class BuildConfig:
    """A fully resolved, immutable build configuration.

    The same value is passed explicitly to every pipeline stage; nothing reads
    configuration from module-level state.
    """

    root_src_dir: Path = Path("src")
    root_src_name: str = "root"
    pages_src_dir: Path = Path("src/pages")
    out_dir: Path = Path("dist")
    temp_dir: Path = Path(".island_pages")
    base: str = "/"
    alias: tuple[tuple[str, Path], ...] = ()
    assets: AssetsConfig = dc.field(default_factory=AssetsConfig)
    search: SearchConfig = dc.field(default_factory=SearchConfig)
    minify: bool = True

    @property
    def modules_dir(self) -> Path:
        """Directory receiving compiled root and page modules."""
        return self.temp_dir / "modules"

    @property
    def partial_manifest_dir(self) -> Path:
        """Directory receiving one manifest file per discovered partial."""
        return self.temp_dir / "partials"

    @property
    def partial_strings_file(self) -> Path:
        """JSON file holding the pre-rendered partial markup."""
        return self.temp_dir / "partial-hydration" / PARTIAL_STRINGS_FILENAME

    @property
    def hydrate_pages_file(self) -> Path:
        """JSON manifest describing the hydrate groups."""
        return self.temp_dir / "partial-hydration" / HYDRATE_PAGES_FILENAME

    @property
    def assets_dir(self) -> Path:
        """Output directory for bundled client assets."""
        return self.out_dir / self.assets.out_dir

    @property
    def search_file(self) -> Path:
        """Output path of the search index JSON."""
        return self.out_dir / self.search.out_file


__all__ = [
    "AssetsConfig",
    "BuildConfig",
    "BuildConfigError",
    "EntryConfig",
    "IntersectionObserverOptions",
    "PartialConfig",
    "SearchConfig",
    "SearchHitConfig",
]
