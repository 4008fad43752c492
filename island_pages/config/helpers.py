"""Utility helpers shared by the island_pages configuration loader."""

from __future__ import annotations

import re
import typing as typ
from pathlib import Path

from .models import (
    AssetsConfig,
    BuildConfigError,
    EntryConfig,
    IntersectionObserverOptions,
    PartialConfig,
    SearchConfig,
    SearchHitConfig,
)


def _string_tuple(value: object, *, field: str) -> tuple[str, ...]:
    """Normalize a scalar or list value into a tuple of non-empty strings."""
    match value:
        case None:
            return ()
        case str() as text:
            return (text,) if text.strip() else ()
        case list() | tuple():
            return tuple(str(item) for item in value if str(item).strip())
        case _:
            msg = f"'{field}' must be a string or a list of strings."
            raise BuildConfigError(msg)


def _mapping(value: object, *, field: str) -> typ.Mapping[str, typ.Any]:
    """Return ``value`` as a mapping, treating ``None`` as empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        msg = f"'{field}' must be a mapping."
        raise BuildConfigError(msg)
    return value


def _build_alias(payload: object) -> tuple[tuple[str, Path], ...]:
    """Build the ordered alias table used to resolve partial import paths."""
    aliases = _mapping(payload, field="alias")
    return tuple((str(key), Path(str(target))) for key, target in aliases.items())


def _build_entry(payload: object) -> EntryConfig:
    """Build a single asset entry from its mapping payload."""
    raw = _mapping(payload, field="assets.entry[]")
    name = raw.get("name")
    source = raw.get("input")
    if not name or not source:
        msg = "Each assets.entry item needs both 'name' and 'input'."
        raise BuildConfigError(msg)
    insert_pages = _string_tuple(raw.get("insert_pages"), field="insert_pages")
    return EntryConfig(
        name=str(name),
        input=Path(str(source)),
        insert_pages=insert_pages or ("**/*",),
    )


def _build_style(value: object) -> tuple[tuple[str, str], ...]:
    """Normalize the partial root style mapping into ordered key/value pairs."""
    style = _mapping(value, field="assets.partial.root_style")
    return tuple((str(key), str(val)) for key, val in style.items())


def _build_observer_options(payload: object) -> IntersectionObserverOptions:
    """Build intersection observer options, applying defaults per key."""
    raw = _mapping(payload, field="intersection_observer_options")
    base = IntersectionObserverOptions()
    thresholds = raw.get("thresholds", base.thresholds)
    if isinstance(thresholds, int | float):
        thresholds = (thresholds,)
    try:
        normalized = tuple(float(item) for item in thresholds)
    except (TypeError, ValueError) as exc:
        msg = "'thresholds' must be a number or a list of numbers."
        raise BuildConfigError(msg) from exc
    return IntersectionObserverOptions(
        root=raw.get("root", base.root),
        root_margin=str(raw.get("root_margin", base.root_margin)),
        thresholds=normalized,
    )


def _build_partial_config(payload: object) -> PartialConfig:
    """Build the partial hydration configuration block."""
    raw = _mapping(payload, field="assets.partial")
    base = PartialConfig()
    root_style = (
        _build_style(raw["root_style"]) if "root_style" in raw else base.root_style
    )
    return PartialConfig(
        out_name=raw.get("out_name", base.out_name),
        root_attr_suffix=raw.get("root_attr_suffix", base.root_attr_suffix),
        root_value_prefix=raw.get("root_value_prefix", base.root_value_prefix),
        root_dom_element=raw.get("root_dom_element", base.root_dom_element),
        root_style=root_style,
        use_intersection_observer=bool(
            raw.get("use_intersection_observer", base.use_intersection_observer)
        ),
        intersection_observer_options=_build_observer_options(
            raw.get("intersection_observer_options")
        ),
        token_boundary=bool(raw.get("token_boundary", base.token_boundary)),
    )


def _build_assets_config(payload: object) -> AssetsConfig:
    """Build the assets block, including entries and partial settings."""
    raw = _mapping(payload, field="assets")
    base = AssetsConfig()
    entries = raw.get("entry") or []
    if not isinstance(entries, list):
        msg = "'assets.entry' must be a list."
        raise BuildConfigError(msg)
    bundle = _string_tuple(raw.get("bundle"), field="assets.bundle")
    return AssetsConfig(
        out_dir=str(raw.get("out_dir", base.out_dir)).strip("/"),
        bundle_name=raw.get("bundle_name", base.bundle_name),
        bundle=tuple(Path(item) for item in bundle),
        entry=tuple(_build_entry(item) for item in entries),
        partial=_build_partial_config(raw.get("partial")),
    )


def _build_hit_config(payload: object) -> SearchHitConfig:
    """Build the searchable-token predicate settings."""
    raw = _mapping(payload, field="search.hit")
    base = SearchHitConfig()
    min_length = raw.get("min_length", base.min_length)
    if not isinstance(min_length, int) or min_length < 0:
        msg = "'search.hit.min_length' must be a non-negative integer."
        raise BuildConfigError(msg)
    return SearchHitConfig(
        min_length=min_length,
        number=bool(raw.get("number", base.number)),
        english=bool(raw.get("english", base.english)),
        hiragana=bool(raw.get("hiragana", base.hiragana)),
        katakana=bool(raw.get("katakana", base.katakana)),
        kanji=bool(raw.get("kanji", base.kanji)),
    )


def _build_search_config(payload: object) -> SearchConfig:
    """Build the search block, keeping defaults for omitted keys."""
    raw = _mapping(payload, field="search")
    base = SearchConfig()
    include = _string_tuple(raw.get("include"), field="search.include")
    exclude = (
        _string_tuple(raw["exclude"], field="search.exclude")
        if "exclude" in raw
        else base.exclude
    )
    skip = (
        _string_tuple(raw["skip_elements"], field="search.skip_elements")
        if "skip_elements" in raw
        else base.skip_elements
    )
    trim_title = str(raw.get("trim_title") or "")
    try:
        re.compile(trim_title)
    except re.error as exc:
        msg = f"'search.trim_title' is not a valid regular expression: {exc}"
        raise BuildConfigError(msg) from exc
    return SearchConfig(
        enabled=bool(raw.get("enabled", base.enabled)),
        cache=bool(raw.get("cache", base.cache)),
        out_file=str(raw.get("out_file", base.out_file)).lstrip("/"),
        include=include or base.include,
        exclude=exclude,
        trim_title=trim_title,
        target_selector=str(raw.get("target_selector", base.target_selector)),
        skip_elements=skip,
        hit=_build_hit_config(raw.get("hit")),
    )


__all__ = [
    "_build_alias",
    "_build_assets_config",
    "_build_entry",
    "_build_hit_config",
    "_build_observer_options",
    "_build_partial_config",
    "_build_search_config",
    "_mapping",
    "_string_tuple",
]
