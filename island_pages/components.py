"""Renderable components and the module shape that page sources expose.

A page or root source is loaded into a :class:`PageModule`. Its ``component``
is either an object with a ``render(props, children)`` method (templates and
wrapped callables) or the :data:`FRAGMENT` identity marker, which renders its
children unchanged and stands in for a missing root or an empty page.

Examples
--------
>>> page = FunctionComponent(lambda props, children: f"<h1>{props['title']}</h1>")
>>> page.render({"title": "Hi"}, "")
'<h1>Hi</h1>'
>>> partial("ph_0123456789ab")
Markup('<div data-partial-hydration="ph_0123456789ab"></div>')
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from markupsafe import Markup, escape

from ._constants import COMMENT_MARKER_TEMPLATE, PARTIAL_PLACEHOLDER_TEMPLATE

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from jinja2 import Template


class Component(typ.Protocol):
    """Anything that renders props and pre-rendered children to markup."""

    def render(self, props: typ.Mapping[str, typ.Any], children: str) -> str:
        """Return the markup for ``props`` with ``children`` nested inside."""
        ...


class Fragment:
    """Identity component: renders its children and nothing else."""

    _instance: Fragment | None = None

    def __new__(cls) -> Fragment:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def render(self, props: typ.Mapping[str, typ.Any], children: str) -> str:  # noqa: ARG002
        return children

    def __repr__(self) -> str:
        return "FRAGMENT"


FRAGMENT = Fragment()


class FunctionComponent:
    """Wrap a ``callable(props, children) -> str`` as a component."""

    def __init__(
        self, func: cabc.Callable[[typ.Mapping[str, typ.Any], str], str]
    ) -> None:
        self.func = func

    def render(self, props: typ.Mapping[str, typ.Any], children: str) -> str:
        return str(self.func(props, children))

    def __repr__(self) -> str:
        name = getattr(self.func, "__qualname__", repr(self.func))
        return f"FunctionComponent({name})"


class TemplateComponent:
    """Render a Jinja template with props as context and ``children`` markup."""

    def __init__(self, template: Template) -> None:
        self.template = template

    def render(self, props: typ.Mapping[str, typ.Any], children: str) -> str:
        context = dict(props)
        context["children"] = Markup(children)
        return self.template.render(context)

    def __repr__(self) -> str:
        return f"TemplateComponent({self.template.name or '<string>'})"


def as_component(value: object) -> Component | Fragment:
    """Coerce a module export into a component, defaulting to FRAGMENT."""
    if value is None or value is FRAGMENT:
        return FRAGMENT
    if callable(getattr(value, "render", None)):
        return typ.cast("Component", value)
    if callable(value):
        return FunctionComponent(value)  # type: ignore[arg-type]
    msg = f"Cannot use {value!r} as a component."
    raise TypeError(msg)


@dc.dataclass(frozen=True, slots=True)
class Location:
    """The site pathname a page is rendered for."""

    pathname: str


@dc.dataclass(frozen=True, slots=True)
class PageModule:
    """A loaded root or page source.

    Attributes
    ----------
    component : Component | Fragment
        Renderable export; ``FRAGMENT`` when the source exports none.
    get_static_data : callable, optional
        Async (or plain) callable returning one of the StaticData shapes.
    frontmatter : Mapping, optional
        Free-form metadata; a truthy ``draft`` suppresses the page output.
    source : Path, optional
        File the module was loaded from.
    """

    component: Component | Fragment = FRAGMENT
    get_static_data: cabc.Callable[[], typ.Any] | None = None
    frontmatter: typ.Mapping[str, typ.Any] | None = None
    source: Path | None = None


IDENTITY_ROOT = PageModule()


def partial(partial_id: str) -> Markup:
    """Return the placeholder markup for an interactive partial.

    Compiled sources reference partials as ``partial("<id>")``; the page
    assembler swaps each placeholder for the partial's pre-rendered markup.
    """
    return Markup(PARTIAL_PLACEHOLDER_TEMPLATE.format(id=escape(partial_id)))


def comment(text: str) -> Markup:
    """Return a marker that the page assembler turns into an HTML comment."""
    return Markup(COMMENT_MARKER_TEMPLATE.format(text=escape(text)))


__all__ = [
    "FRAGMENT",
    "IDENTITY_ROOT",
    "Component",
    "Fragment",
    "FunctionComponent",
    "Location",
    "PageModule",
    "TemplateComponent",
    "as_component",
    "comment",
    "partial",
]
