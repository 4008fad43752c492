"""Build the client-side search index from rendered pages.

The index is one JSON document::

    {"words": [...], "hits": [...], "pages": [{"path", "title", "toc", "content"}]}

``words`` is the sorted vocabulary. ``hits`` lists the vocabulary indices a
client may match queries against. Each page stores its title and content as
vocabulary indices, and ``toc`` pairs every element ``id`` in the content with
the number of words preceding it.
"""

from __future__ import annotations

import asyncio
import dataclasses as dc
import logging
import re
import typing as typ

import aiofiles
import msgspec
from bs4 import BeautifulSoup, NavigableString, ParserRejectedMarkup, Tag
from bs4.element import PreformattedString

from island_pages.paths import build_pathname, glob_match

from .segmenter import KANJI, segment, squash

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from island_pages.config import BuildConfig, SearchConfig, SearchHitConfig

logger = logging.getLogger(__name__)

HIT_CLASS_PATTERNS: dict[str, re.Pattern[str]] = {
    "number": re.compile(r"[0-9]"),
    "english": re.compile(r"[a-zA-Z]"),
    "hiragana": re.compile(r"[ぁ-ん]"),
    "katakana": re.compile(r"[ァ-ヴ]"),
    "kanji": re.compile(rf"[{KANJI}]"),
}
ELLIPSIS = "..."


class SearchPage(msgspec.Struct):
    """One page of the search index, encoded as vocabulary indices."""

    path: str
    title: list[int]
    toc: list[tuple[int, str]]
    content: list[int]


class SearchIndex(msgspec.Struct):
    """The complete search index document."""

    words: list[str]
    hits: list[int]
    pages: list[SearchPage]


@dc.dataclass(frozen=True, slots=True)
class ParsedPage:
    """Tokens extracted from one rendered page, before vocabulary encoding."""

    path: str
    title: tuple[str, ...] = ()
    toc: tuple[tuple[int, str], ...] = ()
    content: tuple[str, ...] = ()
    body: tuple[str, ...] = ()

    @property
    def tokens(self) -> set[str]:
        """Every token the page contributes to the vocabulary."""
        return {*self.title, *self.content, *self.body}


def _collect(
    node: Tag,
    skip: cabc.Container[str],
    words: list[str],
    toc: list[tuple[int, str]] | None,
) -> None:
    """Walk ``node`` in document order, appending words and toc entries."""
    if toc is not None and node.get("id"):
        toc.append((len(words), str(node["id"])))
    for child in node.children:
        if isinstance(child, Tag):
            if child.name not in skip:
                _collect(child, skip, words, toc)
        elif isinstance(child, NavigableString) and not isinstance(
            child, PreformattedString
        ):
            words.extend(segment(squash(str(child))))


def parse_page(html: str, path: str, config: SearchConfig) -> ParsedPage:
    """Extract title, table of contents, and content tokens from ``html``.

    Markup the parser rejects yields an empty page. A page without an element
    matching ``config.target_selector`` keeps only its title.
    """
    try:
        soup = BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup:
        logger.warning("could not parse %s for search", path)
        return ParsedPage(path=path)

    title = soup.title.get_text() if soup.title else ""
    if config.trim_title:
        title = re.sub(config.trim_title, "", title, count=1)
    title_words = tuple(segment(squash(title)))

    skip = frozenset(config.skip_elements)
    body_words: list[str] = []
    _collect(soup.body or soup, skip, body_words, None)

    target = soup.select_one(config.target_selector) if config.target_selector else None
    if target is None:
        return ParsedPage(path=path, title=title_words, body=tuple(body_words))
    words: list[str] = []
    toc: list[tuple[int, str]] = []
    _collect(target, skip, words, toc)
    return ParsedPage(
        path=path,
        title=title_words,
        toc=tuple(toc),
        content=tuple(words),
        body=tuple(body_words),
    )


def is_hit(word: str, config: SearchHitConfig) -> bool:
    """Return ``True`` when ``word`` is long enough and in an enabled class."""
    if len(word) < config.min_length or word == ELLIPSIS:
        return False
    return any(
        getattr(config, name) and pattern.search(word)
        for name, pattern in HIT_CLASS_PATTERNS.items()
    )


def build_search_index(
    pages: cabc.Iterable[ParsedPage], config: SearchHitConfig
) -> SearchIndex:
    """Encode parsed pages against a shared, sorted vocabulary.

    The vocabulary is deduplicated and sorted by ``(word.upper(), word)``, so
    the same input always produces the same document.
    """
    parsed = sorted(pages, key=lambda page: (page.path.upper(), page.path))
    vocabulary: set[str] = set()
    for page in parsed:
        vocabulary.update(page.tokens)
    words = sorted(vocabulary, key=lambda word: (word.upper(), word))
    position = {word: index for index, word in enumerate(words)}
    return SearchIndex(
        words=words,
        hits=[index for index, word in enumerate(words) if is_hit(word, config)],
        pages=[
            SearchPage(
                path=page.path,
                title=[position[word] for word in page.title],
                toc=list(page.toc),
                content=[position[word] for word in page.content],
            )
            for page in parsed
        ],
    )


def select_search_pages(out_dir: Path, config: SearchConfig) -> list[tuple[str, Path]]:
    """Return ``(pathname, file)`` for rendered pages the index should cover."""
    selected: list[tuple[str, Path]] = []
    for path in sorted(out_dir.rglob("*.html")):
        pathname = build_pathname(path, out_dir)
        if not glob_match(pathname, config.include):
            continue
        if glob_match(pathname, config.exclude):
            continue
        selected.append((pathname, path))
    return selected


def use_cache_exists(config: BuildConfig) -> bool:
    """Return ``True`` when a cached index may be reused as-is."""
    return config.search.cache and config.search_file.exists()


async def _read_page(pathname: str, path: Path) -> tuple[str, str] | None:
    try:
        async with aiofiles.open(path, encoding="utf-8", errors="replace") as handle:
            return pathname, await handle.read()
    except OSError:
        logger.exception("failed to read %s for search", path)
        return None


async def build_search_json(config: BuildConfig) -> SearchIndex:
    """Read and parse the selected rendered pages into a search index."""
    selected = select_search_pages(config.out_dir, config.search)
    results = await asyncio.gather(
        *(_read_page(pathname, path) for pathname, path in selected),
        return_exceptions=True,
    )
    parsed: list[ParsedPage] = []
    for result in results:
        if isinstance(result, BaseException):
            raise result
        if result is None:
            continue
        pathname, html = result
        parsed.append(parse_page(html, pathname, config.search))
    return build_search_index(parsed, config.search.hit)


async def write_search_index(path: Path, index: SearchIndex) -> Path:
    """Write ``index`` as compact JSON and return ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    async with aiofiles.open(path, "wb") as handle:
        await handle.write(msgspec.json.encode(index))
    return path


async def run_search(config: BuildConfig) -> Path | None:
    """Build and write the search index when enabled.

    Returns
    -------
    Path | None
        The written index, or ``None`` when search is disabled, the cached
        index is reused, or the file could not be written.
    """
    if not config.search.enabled:
        return None
    if use_cache_exists(config):
        logger.info("reusing cached search index %s", config.search_file)
        return None
    index = await build_search_json(config)
    try:
        return await write_search_index(config.search_file, index)
    except OSError:
        logger.exception("failed to write %s", config.search_file)
        return None


__all__ = [
    "HIT_CLASS_PATTERNS",
    "ParsedPage",
    "SearchIndex",
    "SearchPage",
    "build_search_index",
    "build_search_json",
    "is_hit",
    "parse_page",
    "run_search",
    "select_search_pages",
    "use_cache_exists",
    "write_search_index",
]
