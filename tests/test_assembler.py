"""Tests for page rendering, post-processing, and writing."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from bs4 import BeautifulSoup

from island_pages.assembler import (
    PageAssembler,
    RootContent,
    build_document_environment,
    build_location,
    build_root_content,
    inject_asset_tags,
    render_page,
    replace_comment_markers,
    replace_partial_placeholders,
)
from island_pages.assets import AssetTagObject
from island_pages.components import (
    FRAGMENT,
    FunctionComponent,
    Location,
    PageModule,
    comment,
    partial,
)
from island_pages.errors import StaticDataError
from island_pages.routes import StaticDataItem

SHELL = FunctionComponent(
    lambda props, children: (
        f"<html><head><title>{props.get('site', '')}</title></head>"
        f"<body>{children}</body></html>"
    )
)


def _page(func, **kwargs) -> PageModule:
    return PageModule(component=FunctionComponent(func), **kwargs)


@pytest.mark.parametrize(
    ("out_file", "pathname"),
    [
        ("dist/index.html", "/"),
        ("dist/about.html", "/about"),
        ("dist/blog/post/index.html", "/blog/post/"),
    ],
)
def test_build_location(out_file: str, pathname: str) -> None:
    assert build_location(Path(out_file), Path("dist")) == Location(pathname)


def test_identity_root_renders_page_alone() -> None:
    page = _page(lambda props, children: f"<p>{props['location'].pathname}</p>")
    html = render_page(RootContent(), page, StaticDataItem(), Location("/x"))
    assert html == "<p>/x</p>"
    assert render_page(RootContent(), PageModule(), StaticDataItem(), Location("/")) == ""


def test_page_renders_as_root_children_with_merged_props() -> None:
    page = _page(
        lambda props, children: f"<h1>{props['title']}/{props['site']}</h1>",
        frontmatter={"title": "ignored"},
    )
    root = RootContent(module=PageModule(component=SHELL), global_props={"site": "S", "title": "G"})
    html = render_page(root, page, StaticDataItem(props={"title": "P"}), Location("/"))
    assert html == "<html><head><title>S</title></head><body><h1>P/S</h1></body></html>"


def test_root_getter_supplies_global_props() -> None:
    async def get_static_data() -> dict:
        return {"props": {"site": "Docs"}}

    root = asyncio.run(
        build_root_content(PageModule(component=SHELL, get_static_data=get_static_data))
    )
    assert root.global_props == {"site": "Docs"}
    assert not root.is_identity
    assert asyncio.run(build_root_content(None)).is_identity


def test_root_getter_failure_is_reported() -> None:
    def get_static_data() -> dict:
        raise KeyError("site")

    with pytest.raises(StaticDataError):
        asyncio.run(build_root_content(PageModule(get_static_data=get_static_data)))


def test_replace_partial_placeholders() -> None:
    markup = f"<main>{partial('ph_1')}{partial('ph_unknown')}</main>"
    assert replace_partial_placeholders(markup, {"ph_1": "<div>island</div>"}) == (
        '<main><div>island</div><div data-partial-hydration="ph_unknown"></div></main>'
    )


def test_replace_comment_markers() -> None:
    markup = f"<p>a</p>{comment('note')}<p>b</p>"
    assert replace_comment_markers(markup) == "<p>a</p>\n<!-- note --><p>b</p>"


def test_inject_asset_tags_before_head_close() -> None:
    env = build_document_environment()
    html = inject_asset_tags(
        "<html><head><title>t</title></head><body></body></html>", "<link>", env=env
    )
    assert html == (
        "<!doctype html>\n<html><head><title>t</title><link></head><body></body></html>"
    )


def test_inject_asset_tags_adds_head_when_missing() -> None:
    env = build_document_environment()
    html = inject_asset_tags("<html><body>x</body></html>", "<script></script>", env=env)
    assert html.endswith("<html><head><script></script></head><body>x</body></html>")


def test_fragment_is_wrapped_in_document_shell() -> None:
    env = build_document_environment()
    html = inject_asset_tags(
        "<p>frag</p>", "<link>", env=env, frontmatter={"title": "T<"}
    )
    soup = BeautifulSoup(html, "html.parser")
    assert html.lower().startswith("<!doctype html>")
    assert soup.title is not None
    assert soup.title.get_text() == "T<"
    assert soup.head is not None
    assert soup.head.find("link") is not None
    assert soup.body is not None
    assert soup.body.find("p").get_text() == "frag"


@pytest.fixture
def assembler(tmp_path: Path) -> PageAssembler:
    return PageAssembler(
        root=RootContent(module=PageModule(component=SHELL), global_props={"site": "S"}),
        partial_strings={"ph_1": '<div data-partial-hydration="ph-1">0</div>'},
        assets_tag_array=[
            AssetTagObject(("**/*",), '<link rel="stylesheet" href="./a.css">', "./a.css"),
            AssetTagObject(("/blog/*",), '<script defer src="/b.js"></script>', "/b.js"),
        ],
        out_dir=tmp_path / "dist",
    )


def test_build_page_writes_every_route(assembler: PageAssembler) -> None:
    async def get_static_data() -> list:
        return [{"props": {"t": s}, "paths": {"slug": s}} for s in ("one", "two")]

    page = _page(
        lambda props, children: f"<h1>{props['t']}</h1>{partial('ph_1')}{comment('c')}",
        get_static_data=get_static_data,
    )
    out_file = assembler.out_dir / "blog" / "[slug].html"
    written = asyncio.run(assembler.build_page(page, out_file))

    assert written == [
        assembler.out_dir / "blog" / "one.html",
        assembler.out_dir / "blog" / "two.html",
    ]
    html = written[0].read_text(encoding="utf-8")
    soup = BeautifulSoup(html, "html.parser")
    assert soup.h1.get_text() == "one"
    assert soup.select_one('[data-partial-hydration="ph-1"]').get_text() == "0"
    assert soup.head.find("link")["href"] == "../a.css"
    assert soup.head.find("script")["src"] == "/b.js"
    assert "<!-- c -->" in html


def test_draft_page_resolves_data_but_writes_nothing(assembler: PageAssembler) -> None:
    called = []

    def get_static_data() -> list:
        called.append(True)
        return [{"props": {}, "paths": {"slug": "one"}}]

    page = _page(
        lambda props, children: "<p>draft</p>",
        frontmatter={"draft": True},
        get_static_data=get_static_data,
    )
    out_file = assembler.out_dir / "[slug].html"
    assert asyncio.run(assembler.build_page(page, out_file)) == []
    assert called == [True]
    assert not (assembler.out_dir / "one.html").exists()


def test_draft_page_data_failure_is_raised(assembler: PageAssembler) -> None:
    def get_static_data() -> dict:
        raise RuntimeError("boom")

    page = _page(
        lambda props, children: "<p>draft</p>",
        frontmatter={"draft": True},
        get_static_data=get_static_data,
    )
    with pytest.raises(StaticDataError, match="boom"):
        asyncio.run(assembler.build_page(page, assembler.out_dir / "draft.html"))


def test_write_failure_is_logged_and_skipped(
    assembler: PageAssembler, caplog: pytest.LogCaptureFixture
) -> None:
    assembler.out_dir.mkdir(parents=True)
    (assembler.out_dir / "blocked").write_text("file, not a directory")
    page = _page(lambda props, children: "<p>x</p>")
    written = asyncio.run(
        assembler.build_page(page, assembler.out_dir / "blocked" / "page.html")
    )
    assert written == []
    assert "failed to write" in caplog.text


def test_identity_root_page_is_wrapped(tmp_path: Path) -> None:
    assembler = PageAssembler(
        root=RootContent(),
        partial_strings={},
        assets_tag_array=[],
        out_dir=tmp_path,
    )
    page = _page(lambda props, children: "<p>bare</p>")
    (written,) = asyncio.run(assembler.build_page(page, tmp_path / "index.html"))
    soup = BeautifulSoup(written.read_text(encoding="utf-8"), "html.parser")
    assert soup.body.find("p").get_text() == "bare"
    assert FRAGMENT.render({}, "") == ""
