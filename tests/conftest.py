"""Shared fixtures for building small sites in temporary directories."""

from __future__ import annotations

import os
import typing as typ
from pathlib import Path

import pytest

if typ.TYPE_CHECKING:
    import collections.abc as cabc

ROOT_MODULE = """\
async def get_static_data():
    return {"props": {"site": "Example"}}


def component(props, children):
    return (
        "<!doctype html><html><head><title>" + props["site"] + "</title></head>"
        "<body>" + children + "</body></html>"
    )
"""

BLOG_MODULE = """\
from island_pages.components import partial


def get_static_data():
    return [
        {"props": {"title": "First"}, "paths": {"slug": "first"}},
        {"props": {"title": "Second"}, "paths": {"slug": "second"}},
    ]


def component(props, children):
    banner = partial("@/components/banner.jinja")
    return f"<main data-search><h1>{props['title']}</h1>{banner}</main>"
"""

INDEX_TEMPLATE = """\
---
title: Home
---
<main data-search><h1 id="top">Welcome home</h1>{{ partial('../components/counter.jinja') }}</main>
"""


def write_tree(base: Path, files: typ.Mapping[str, str]) -> None:
    """Write ``files`` (relative path to text) below ``base``."""
    for relative, text in files.items():
        path = base / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")


@pytest.fixture
def site_dir(tmp_path: Path) -> cabc.Iterator[Path]:
    """Chdir into an empty site directory so relative config paths resolve."""
    previous = Path.cwd()
    os.chdir(tmp_path)
    try:
        yield tmp_path
    finally:
        os.chdir(previous)


@pytest.fixture
def sample_site(site_dir: Path) -> Path:
    """Create a site with a root, static and dynamic pages, and two partials."""
    write_tree(
        site_dir,
        {
            "src/root.py": ROOT_MODULE,
            "src/components/counter.jinja": "<button>0</button>",
            "src/components/counter.client.js": "export default (el) => {}\n",
            "src/components/banner.jinja": "<aside>static banner</aside>",
            "src/pages/index.jinja": INDEX_TEMPLATE,
            "src/pages/about.jinja": "<main data-search><p>About us</p></main>",
            "src/pages/draft.jinja": "---\ndraft: true\n---\n<p>secret</p>",
            "src/pages/_private.jinja": "<p>private</p>",
            "src/pages/blog/[slug].py": BLOG_MODULE,
            "src/styles/global.css": "body { margin: 0; }",
            "island.yaml": (
                "alias:\n  '@': src\n"
                "assets:\n  bundle: [src/styles/global.css]\n"
                "search:\n  enabled: true\n"
            ),
        },
    )
    return site_dir
