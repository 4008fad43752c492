"""Shared dataclasses used by the partial hydration stages."""

from __future__ import annotations

import dataclasses as dc
import typing as typ


@dc.dataclass(frozen=True, slots=True)
class PartialModule:
    """An interactive component discovered while compiling pages.

    Attributes
    ----------
    id : str
        Identifier written into compiled sources as ``partial("<id>")``.
    ph_id : str
        Binding name of the component in generated entries (``PH_<n>``).
    ph_dom_id : str
        Value of the root attribute marking the rendered island (``ph-<n>``).
    html_id : str
        Binding name of the pre-rendered markup (``html_<n>``).
    targets_id : str
        Binding name of the client-side element list (``targets_<n>``).
    importer : str
        Source path of the partial component.
    root_attr : str
        Attribute placed on the island wrapper (``data-partial-hydration``).
    root_dom_element : str
        Tag name of the island wrapper.
    root_style_str : str
        Inline style of the island wrapper; empty when none is configured.
    """

    id: str
    ph_id: str
    ph_dom_id: str
    html_id: str
    targets_id: str
    importer: str
    root_attr: str
    root_dom_element: str
    root_style_str: str

    @property
    def selector(self) -> str:
        """CSS selector matching the rendered island wrappers."""
        return f'[{self.root_attr}="{self.ph_dom_id}"]'

    def as_payload(self) -> dict[str, str]:
        """Return the JSON manifest representation."""
        return {
            "id": self.id,
            "phId": self.ph_id,
            "phDomId": self.ph_dom_id,
            "htmlId": self.html_id,
            "targetsId": self.targets_id,
            "importer": self.importer,
            "rootAttr": self.root_attr,
            "rootDOMElement": self.root_dom_element,
            "rootStyleStr": self.root_style_str,
        }


@dc.dataclass(frozen=True, slots=True)
class ScannedModule:
    """Partial IDs textually referenced by one compiled root or page module."""

    path: str
    ids: tuple[str, ...]


@dc.dataclass(frozen=True, slots=True)
class HydrateGroup:
    """Pages sharing one identical set of referenced partials."""

    name: str
    insert_pages: tuple[str, ...]
    has_partial_modules: tuple[PartialModule, ...]

    @property
    def group_key(self) -> str:
        """Sorted, hyphen-joined partial IDs of the group."""
        return "-".join(sorted(module.id for module in self.has_partial_modules))

    def as_payload(self) -> dict[str, typ.Any]:
        """Return the JSON manifest representation."""
        return {
            "name": self.name,
            "insertPages": list(self.insert_pages),
            "hasPartialModules": [
                module.as_payload() for module in self.has_partial_modules
            ],
        }


@dc.dataclass(frozen=True, slots=True)
class HydrateOptions:
    """How a client entry triggers hydration of its islands."""

    use_intersection_observer: bool
    root: str | None = None
    root_margin: str = "0px"
    thresholds: tuple[float, ...] = (1.0,)


@dc.dataclass(frozen=True, slots=True)
class VirtualImport:
    """One ``{import_path, binding_id}`` entry of a virtual entry module."""

    import_path: str
    binding_id: str
    targets_id: str = ""
    selector: str = ""


@dc.dataclass(frozen=True, slots=True)
class VirtualEntry:
    """An entry module described as data instead of generated source text.

    Without ``hydrate`` the imports are bundled as plain static assets;
    with it the bundler emits a client entry hydrating each import's islands.
    """

    name: str
    imports: tuple[VirtualImport, ...]
    hydrate: HydrateOptions | None = None


__all__ = [
    "HydrateGroup",
    "HydrateOptions",
    "PartialModule",
    "ScannedModule",
    "VirtualEntry",
    "VirtualImport",
]
