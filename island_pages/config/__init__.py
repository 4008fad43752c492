"""Load and validate build configuration YAML for island_pages sites.

This subpackage parses the project's ``island.yaml`` file, applies defaults
for every omitted key, and produces frozen dataclasses (:class:`BuildConfig`,
:class:`AssetsConfig`, :class:`SearchConfig`, etc.) that every pipeline stage
receives explicitly. The primary entry point is :func:`load_build_config`.

Examples
--------
>>> from pathlib import Path
>>> from island_pages.config import load_build_config
>>> config = load_build_config(Path("island.yaml"))  # doctest: +SKIP
>>> config.assets.partial.out_name  # doctest: +SKIP
'partial-hydration'
"""

from .loader import build_config_from_mapping, default_build_config, load_build_config
from .models import (
    AssetsConfig,
    BuildConfig,
    BuildConfigError,
    EntryConfig,
    IntersectionObserverOptions,
    PartialConfig,
    SearchConfig,
    SearchHitConfig,
)

__all__ = [
    "AssetsConfig",
    "BuildConfig",
    "BuildConfigError",
    "EntryConfig",
    "IntersectionObserverOptions",
    "PartialConfig",
    "SearchConfig",
    "SearchHitConfig",
    "build_config_from_mapping",
    "default_build_config",
    "load_build_config",
]
