"""Load compiled root, page, and partial sources into :class:`PageModule` values.

The build never imports user sources directly; it asks a :class:`ModuleLoader`
for a module by path. :class:`CompiledModuleLoader` is the implementation
backed by the compiled-output directory. Tests can supply any object with a
``load_module`` method that returns in-memory modules.

Two source kinds are understood, chosen by the loader rules:

- ``module``: a Python file exposing ``component`` (or ``default``),
  ``get_static_data`` and ``frontmatter`` attributes.
- ``template``: a Jinja template, optionally starting with a YAML front-matter
  block delimited by ``---`` lines.
"""

from __future__ import annotations

import hashlib
import importlib.util
import io
import logging
import re
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from ruamel.yaml import YAML

from ._constants import DEFAULT_LOADER_RULES
from .components import (
    PageModule,
    TemplateComponent,
    as_component,
    comment,
    partial,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = logging.getLogger(__name__)

FRONT_MATTER_PATTERN = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.S | re.M)


class ModuleLoader(typ.Protocol):
    """Capability interface: resolve a source path to a page module."""

    def load_module(self, path: Path) -> PageModule:
        """Load the module stored at ``path``."""
        ...


def split_front_matter(source: str) -> tuple[dict[str, typ.Any], str]:
    """Return the parsed front matter and the template body of ``source``."""
    match = FRONT_MATTER_PATTERN.match(source)
    if not match:
        return {}, source
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    loaded = loader.load(io.StringIO(match.group(1))) or {}
    if not isinstance(loaded, dict):
        msg = "Front matter must be a mapping."
        raise TypeError(msg)
    return dict(loaded), source[match.end() :]


def build_template_environment(search_path: cabc.Sequence[Path]) -> Environment:
    """Create the Jinja environment used to render page templates."""
    env = Environment(
        loader=FileSystemLoader([str(path) for path in search_path]),
        autoescape=select_autoescape(["html", "xml", "jinja"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.globals["partial"] = partial
    env.globals["comment"] = comment
    return env


class CompiledModuleLoader:
    """Load modules from the compiled-output directory.

    Parameters
    ----------
    search_path : Sequence[Path]
        Directories Jinja searches for ``extends``/``include`` targets,
        normally the compiled modules directory followed by the source root.
    loader_rules : Mapping[str, str], optional
        File suffix to source kind (``"module"`` or ``"template"``).
    """

    def __init__(
        self,
        search_path: cabc.Sequence[Path],
        *,
        loader_rules: cabc.Mapping[str, str] | None = None,
    ) -> None:
        self.loader_rules = dict(loader_rules or DEFAULT_LOADER_RULES)
        self.env = build_template_environment(search_path)

    def load_module(self, path: Path) -> PageModule:
        """Load ``path`` according to its suffix.

        Raises
        ------
        ValueError
            If no loader rule covers the file suffix.
        """
        kind = self.loader_rules.get(path.suffix)
        if kind == "module":
            return self._load_python(path)
        if kind == "template":
            return self._load_template(path)
        msg = f"No loader rule for '{path.suffix}' ({path})."
        raise ValueError(msg)

    def _load_template(self, path: Path) -> PageModule:
        source = path.read_text(encoding="utf-8")
        frontmatter, body = split_front_matter(source)
        template = self.env.from_string(body)
        return PageModule(
            component=TemplateComponent(template),
            frontmatter=frontmatter or None,
            source=path,
        )

    @staticmethod
    def _load_python(path: Path) -> PageModule:
        digest = hashlib.sha1(str(path.resolve()).encode("utf-8")).hexdigest()[:12]  # noqa: S324
        spec = importlib.util.spec_from_file_location(f"_island_module_{digest}", path)
        if spec is None or spec.loader is None:
            msg = f"Cannot import '{path}'."
            raise ImportError(msg)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        logger.debug("loaded module %s", path)
        export = getattr(module, "component", None)
        if export is None:
            export = getattr(module, "default", None)
        frontmatter = getattr(module, "frontmatter", None)
        return PageModule(
            component=as_component(export),
            get_static_data=getattr(module, "get_static_data", None),
            frontmatter=dict(frontmatter) if frontmatter else None,
            source=path,
        )


__all__ = [
    "CompiledModuleLoader",
    "ModuleLoader",
    "build_template_environment",
    "split_front_matter",
]
