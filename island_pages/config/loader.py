"""Load build configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .helpers import (
    _build_alias,
    _build_assets_config,
    _build_search_config,
)
from .models import BuildConfig, BuildConfigError


def default_build_config() -> BuildConfig:
    """Return the configuration used when no YAML file is supplied."""
    return BuildConfig()


def load_build_config(path: Path) -> BuildConfig:
    """Load the YAML configuration describing a site build.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML configuration file (for example,
        ``island.yaml``).

    Returns
    -------
    BuildConfig
        Immutable configuration with defaults applied for every omitted key.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    BuildConfigError
        If a section holds values of the wrong shape.
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pathlib import Path
    >>> from island_pages.config import load_build_config
    >>> config = load_build_config(Path("island.yaml"))  # doctest: +SKIP
    >>> config.out_dir  # doctest: +SKIP
    PosixPath('dist')
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    return build_config_from_mapping(loaded)


def build_config_from_mapping(raw: typ.Mapping[str, typ.Any]) -> BuildConfig:
    """Build a :class:`BuildConfig` from an already parsed mapping."""
    base = BuildConfig()
    root_src_dir = Path(raw.get("root_src_dir", base.root_src_dir))
    pages_src_dir = Path(raw.get("pages_src_dir", root_src_dir / "pages"))
    root_src_name = raw.get("root_src_name", base.root_src_name)
    if not root_src_name:
        msg = "'root_src_name' must not be empty."
        raise BuildConfigError(msg)

    return BuildConfig(
        root_src_dir=root_src_dir,
        root_src_name=str(root_src_name),
        pages_src_dir=pages_src_dir,
        out_dir=Path(raw.get("out_dir", base.out_dir)),
        temp_dir=Path(raw.get("temp_dir", base.temp_dir)),
        base=str(raw.get("base", base.base) or "/"),
        alias=_build_alias(raw.get("alias")),
        assets=_build_assets_config(raw.get("assets")),
        search=_build_search_config(raw.get("search")),
        minify=bool(raw.get("minify", base.minify)),
    )


__all__ = ["build_config_from_mapping", "default_build_config", "load_build_config"]
