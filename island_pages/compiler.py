"""Compiler and bundler collaborator used between pipeline stages.

The build only relies on two capabilities, captured by :class:`Compiler`:

- ``compile``: turn root/page sources into loadable modules on disk, writing
  one manifest per interactive partial they reference.
- ``bundle_for_client``: turn an entry (a file or a :class:`VirtualEntry`)
  into client asset files.

:class:`SourceCompiler` is the built-in implementation. It copies sources into
the compiled-output directory, rewriting every ``partial("<path>")`` reference
to ``partial("<id>")`` so the hydration scan can find IDs textually, and it
renders hydration entries from ``templates/hydrate_entry.js.jinja``.
"""

from __future__ import annotations

import asyncio
import dataclasses as dc
import hashlib
import logging
import re
import typing as typ
from pathlib import Path

import aiofiles
from jinja2 import Environment, FileSystemLoader, select_autoescape

from ._constants import (
    CLIENT_SCRIPT_SUFFIX,
    DEFAULT_LOADER_RULES,
    PARTIAL_MANIFEST_SUFFIX,
)
from .errors import BundleError, CompileError
from .hydration.models import VirtualEntry, VirtualImport

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = logging.getLogger(__name__)

PARTIAL_REFERENCE_PATTERN = re.compile(
    r"""\bpartial\(\s*(?P<quote>["'])(?P<target>[^"'\n]+)(?P=quote)\s*\)"""
)


@dc.dataclass(frozen=True, slots=True)
class CompileOptions:
    """Where compiled modules and partial manifests are written."""

    out_base: Path
    out_dir: Path
    partial_dir: Path
    alias_map: tuple[tuple[str, Path], ...] = ()
    loader_rules: typ.Mapping[str, str] = dc.field(
        default_factory=lambda: dict(DEFAULT_LOADER_RULES)
    )


@dc.dataclass(frozen=True, slots=True)
class BundleOptions:
    """Naming and output settings for one client bundle."""

    out_dir: Path
    out_name: str
    minify: bool = False
    asset_naming: str = "{name}-{hash}{ext}"


@dc.dataclass(frozen=True, slots=True)
class BundleOutput:
    """One file produced by the bundler, relative to ``BundleOptions.out_dir``.

    Only entry outputs receive page tags; the rest are loaded by entries.
    """

    file_name: str
    code: str
    is_entry: bool = True


class Compiler(typ.Protocol):
    """Capability interface of the external compiler/bundler."""

    def compile(
        self, entries: cabc.Sequence[Path], options: CompileOptions
    ) -> list[Path]:
        """Compile ``entries`` and return the loadable module paths in order."""
        ...

    def bundle_for_client(
        self, entry: Path | VirtualEntry, options: BundleOptions
    ) -> list[BundleOutput]:
        """Bundle ``entry`` into client assets."""
        ...


def partial_id(importer: str) -> str:
    """Return the stable identifier for the partial stored at ``importer``."""
    digest = hashlib.sha1(importer.encode("utf-8")).hexdigest()[:12]  # noqa: S324
    return f"ph_{digest}"


def client_script_path(importer: str | Path) -> Path:
    """Return the client script expected next to a partial source."""
    path = Path(importer)
    return path.with_name(f"{path.stem}{CLIENT_SCRIPT_SUFFIX}")


def _minify(code: str) -> str:
    lines = (line.strip() for line in code.splitlines())
    return "\n".join(line for line in lines if line and not line.startswith("//"))


class SourceCompiler:
    """Copy-through compiler with partial rewriting and a template bundler."""

    def __init__(self, *, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def compile(
        self, entries: cabc.Sequence[Path], options: CompileOptions
    ) -> list[Path]:
        """Write each entry below ``options.out_dir`` and record its partials.

        Raises
        ------
        CompileError
            If an entry has no loader rule, cannot be read, lies outside
            ``options.out_base``, or references a missing partial.
        """
        options.out_dir.mkdir(parents=True, exist_ok=True)
        options.partial_dir.mkdir(parents=True, exist_ok=True)
        compiled: list[Path] = []
        for entry in entries:
            if entry.suffix not in options.loader_rules:
                msg = f"No loader rule for '{entry}'."
                raise CompileError(msg)
            try:
                source = entry.read_text(encoding="utf-8")
                relative = entry.relative_to(options.out_base)
            except (OSError, ValueError) as exc:
                msg = f"Cannot compile '{entry}': {exc}"
                raise CompileError(msg) from exc
            rewritten, partials = self._rewrite_partials(source, entry, options)
            target = options.out_dir / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(rewritten, encoding="utf-8")
            for ident, importer in partials.items():
                manifest = options.partial_dir / f"{ident}{PARTIAL_MANIFEST_SUFFIX}"
                manifest.write_text(importer, encoding="utf-8")
            compiled.append(target)
            logger.debug("compiled %s -> %s", entry, target)
        return compiled

    def _rewrite_partials(
        self, source: str, entry: Path, options: CompileOptions
    ) -> tuple[str, dict[str, str]]:
        """Replace partial path references with IDs, collecting the importers."""
        found: dict[str, str] = {}

        def _repl(match: re.Match[str]) -> str:
            importer = self._resolve_partial(match.group("target"), entry, options)
            ident = partial_id(importer)
            found[ident] = importer
            quote = match.group("quote")
            return f"partial({quote}{ident}{quote})"

        return PARTIAL_REFERENCE_PATTERN.sub(_repl, source), found

    @staticmethod
    def _resolve_partial(target: str, entry: Path, options: CompileOptions) -> str:
        """Resolve an aliased, relative, or base-relative partial reference."""
        candidate: Path | None = None
        for prefix, replacement in options.alias_map:
            if target == prefix or target.startswith(f"{prefix}/"):
                candidate = replacement / target[len(prefix) :].lstrip("/")
                break
        if candidate is None:
            if target.startswith("."):
                candidate = entry.parent / target
            else:
                candidate = options.out_base / target
        if not candidate.is_file():
            msg = f"Partial '{target}' referenced from '{entry}' was not found."
            raise CompileError(msg)
        return candidate.resolve().as_posix()

    def bundle_for_client(
        self, entry: Path | VirtualEntry, options: BundleOptions
    ) -> list[BundleOutput]:
        """Bundle a file, a static virtual entry, or a hydration entry.

        Raises
        ------
        BundleError
            If a source file cannot be read.
        """
        if isinstance(entry, VirtualEntry):
            if entry.hydrate is None:
                return self._concatenate(entry, options)
            return self._hydration_bundle(entry, options)
        code = self._read(Path(entry))
        return [BundleOutput(f"{options.out_name}{entry.suffix}", code)]

    @staticmethod
    def _read(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            msg = f"Cannot bundle '{path}': {exc}"
            raise BundleError(msg) from exc

    def _concatenate(
        self, entry: VirtualEntry, options: BundleOptions
    ) -> list[BundleOutput]:
        """Join static imports into one output per file suffix."""
        by_suffix: dict[str, list[str]] = {}
        for item in entry.imports:
            path = Path(item.import_path)
            by_suffix.setdefault(path.suffix, []).append(self._read(path))
        return [
            BundleOutput(f"{options.out_name}{suffix}", "\n".join(chunks))
            for suffix, chunks in by_suffix.items()
        ]

    def _hydration_bundle(
        self, entry: VirtualEntry, options: BundleOptions
    ) -> list[BundleOutput]:
        """Emit client chunks for each partial plus the entry that loads them."""
        chunks: list[BundleOutput] = []
        items: list[dict[str, str]] = []
        for item in entry.imports:
            script = client_script_path(item.import_path)
            if not script.is_file():
                logger.debug("partial %s has no client script", item.import_path)
                continue
            code = self._read(script)
            digest = hashlib.sha1(code.encode("utf-8")).hexdigest()[:8]  # noqa: S324
            file_name = options.asset_naming.format(
                name=Path(item.import_path).stem, hash=digest, ext=".js"
            )
            chunks.append(BundleOutput(file_name, code, is_entry=False))
            items.append(self._import_context(item, file_name))
        if not items:
            return []
        template = self.env.get_template("hydrate_entry.js.jinja")
        code = template.render(name=entry.name, imports=items, hydrate=entry.hydrate)
        if options.minify:
            code = _minify(code)
        return [BundleOutput(f"{options.out_name}.js", code), *chunks]

    @staticmethod
    def _import_context(item: VirtualImport, file_name: str) -> dict[str, str]:
        return {
            "binding_id": item.binding_id,
            "targets_id": item.targets_id,
            "selector": item.selector,
            "url": f"./{file_name}",
        }


async def _write_output(path: Path, code: str) -> Path | None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "w", encoding="utf-8") as handle:
            await handle.write(code)
    except OSError:
        logger.exception("failed to write %s", path)
        return None
    return path


async def write_bundle_outputs(
    outputs: cabc.Sequence[BundleOutput], out_dir: Path
) -> list[Path]:
    """Write every bundle output below ``out_dir``; return the entry files.

    Files that cannot be written are logged and left out of the result.
    """
    results = await asyncio.gather(
        *(_write_output(out_dir / output.file_name, output.code) for output in outputs),
        return_exceptions=True,
    )
    written: list[Path] = []
    for output, result in zip(outputs, results, strict=True):
        if isinstance(result, BaseException):
            raise result
        if result is not None and output.is_entry:
            written.append(result)
    return written


__all__ = [
    "PARTIAL_REFERENCE_PATTERN",
    "BundleOptions",
    "BundleOutput",
    "CompileOptions",
    "Compiler",
    "SourceCompiler",
    "client_script_path",
    "partial_id",
    "write_bundle_outputs",
]
