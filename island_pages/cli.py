"""Cyclopts CLI entrypoint for building island_pages sites.

The ``island-pages`` console script renders every page below the configured
pages directory, bundles the client assets each page needs, and optionally
writes a search index. ``island-pages search`` rebuilds only the search index
from an existing output directory.

Examples
--------
Build the site described by ``island.yaml``:

>>> from island_pages.cli import main
>>> main()  # doctest: +SKIP

Build into a custom directory with debug logging:

>>> from island_pages.cli import app
>>> app.run(["build", "--out-dir", "public", "--verbose"])  # doctest: +SKIP
"""

from __future__ import annotations

import asyncio
import dataclasses as dc
import logging
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter
from rich.console import Console
from rich.logging import RichHandler

from .builder import SiteBuilder
from .config import BuildConfig, default_build_config, load_build_config
from .errors import BuildError
from .search import run_search

DEFAULT_CONFIG = Path("island.yaml")

app = App(name="island-pages", config=cyclopts.config.Env("INPUT_", command=False))  # type: ignore[unknown-argument]

logger = logging.getLogger(__name__)


def _configure_logging(*, verbose: bool) -> None:
    """Route log records through rich; DEBUG when ``verbose`` is set."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose)],
        force=True,
    )


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _load_config(config: Path, out_dir: Path | None = None) -> BuildConfig:
    """Load ``config``, falling back to defaults when the default file is absent."""
    if config == DEFAULT_CONFIG and not config.exists():
        site_config = default_build_config()
    else:
        site_config = load_build_config(config)
    if out_dir is not None:
        site_config = dc.replace(site_config, out_dir=out_dir)
    return site_config


@app.command(help="Render every page and bundle its client assets.")
def build(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to build config", env_var="INPUT_CONFIG")
    ] = DEFAULT_CONFIG,
    out_dir: typ.Annotated[
        Path | None,
        Parameter(help="Override the output folder", env_var="INPUT_OUT_DIR"),
    ] = None,
    verbose: typ.Annotated[
        bool, Parameter(help="Enable debug logging", env_var="INPUT_VERBOSE")
    ] = False,
) -> None:
    """Build the site described by ``config``.

    Parameters
    ----------
    config : Path, optional
        Path to the ``island.yaml`` configuration file (overridable via
        ``INPUT_CONFIG``). Defaults apply when the default file is absent.
    out_dir : Path or None, optional
        Override the configured output directory.
    verbose : bool, optional
        Log debug messages for every stage.

    Returns
    -------
    None
        Prints one ``wrote <path>`` line per written file.

    Raises
    ------
    SystemExit
        With status 1 when compilation fails or any page failed to build.
    """
    _configure_logging(verbose=verbose)
    site_config = _load_config(config, out_dir)
    try:
        report = SiteBuilder(site_config).run()
    except BuildError as exc:
        logger.error("build failed: %s", exc)  # noqa: TRY400
        raise SystemExit(1) from exc
    for path in report.written:
        print(f"wrote {_format_path(path)}")
    for failure in report.failures:
        logger.error("page failed: %s", failure.message)
    if not report.ok:
        raise SystemExit(1)


@app.command(help="Rebuild the search index from an existing output folder.")
def search(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to build config", env_var="INPUT_CONFIG")
    ] = DEFAULT_CONFIG,
    verbose: typ.Annotated[
        bool, Parameter(help="Enable debug logging", env_var="INPUT_VERBOSE")
    ] = False,
) -> None:
    """Write the search index for the already rendered pages.

    Search is forced on for this command; the cache flag still applies.
    """
    _configure_logging(verbose=verbose)
    site_config = _load_config(config)
    site_config = dc.replace(
        site_config, search=dc.replace(site_config.search, enabled=True)
    )
    written = asyncio.run(run_search(site_config))
    if written is not None:
        print(f"wrote {_format_path(written)}")


def main() -> None:
    """Invoke the Cyclopts application that powers the `island-pages` command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
