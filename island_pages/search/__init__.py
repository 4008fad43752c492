"""Client-side search index generation."""

from __future__ import annotations

from .index import (
    ParsedPage,
    SearchIndex,
    SearchPage,
    build_search_index,
    build_search_json,
    is_hit,
    parse_page,
    run_search,
    select_search_pages,
    use_cache_exists,
    write_search_index,
)
from .segmenter import segment, squash

__all__ = [
    "ParsedPage",
    "SearchIndex",
    "SearchPage",
    "build_search_index",
    "build_search_json",
    "is_hit",
    "parse_page",
    "run_search",
    "segment",
    "select_search_pages",
    "squash",
    "use_cache_exists",
    "write_search_index",
]
