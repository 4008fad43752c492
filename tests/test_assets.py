from __future__ import annotations

from pathlib import Path

import pytest

from island_pages.assets import (
    MATCH_EVERY_PAGE,
    AssetRule,
    AssetTagObject,
    asset_name,
    asset_tag,
    build_assets_tag_array,
    build_assets_tag_str,
    relative_asset_path,
)


@pytest.mark.parametrize(
    ("asset_path", "expected"),
    [
        ("/assets/bundle.css", "bundle"),
        ("/assets/partial-hydration-1.js", "partial-hydration-1"),
        ("/assets/app-1a2b3c4d.js", "app"),
        ("/assets/app.1a2b3c4d5e.css", "app"),
        ("/assets/app-1234.js", "app-1234"),
    ],
)
def test_asset_name_strips_hash_and_extension(asset_path: str, expected: str) -> None:
    assert asset_name(asset_path) == expected


def test_asset_tag_by_extension() -> None:
    assert asset_tag("/a.css") == '<link rel="stylesheet" href="/a.css">'
    assert asset_tag("/a.js") == '<script defer src="/a.js"></script>'


def test_build_assets_tag_array_uses_first_matching_rule() -> None:
    array = build_assets_tag_array(
        [Path("dist/assets/app.js"), Path("dist/assets/bundle.css")],
        out_base=Path("dist"),
        entry_pattern=[AssetRule("app", ("/blog/**",))],
        bundle_pattern=[AssetRule("app", ("/never",)), AssetRule("bundle", ("/",))],
    )
    assert array == [
        AssetTagObject(
            pattern=("/blog/**",),
            asset_tag='<script defer src="/assets/app.js"></script>',
            asset_path="/assets/app.js",
        ),
        AssetTagObject(
            pattern=("/",),
            asset_tag='<link rel="stylesheet" href="/assets/bundle.css">',
            asset_path="/assets/bundle.css",
        ),
    ]


def test_unmatched_asset_goes_on_every_page() -> None:
    array = build_assets_tag_array([Path("dist/x.js")], out_base=Path("dist"))
    assert array[0].pattern == MATCH_EVERY_PAGE


def test_tag_str_concatenates_matches_in_array_order() -> None:
    array = [
        AssetTagObject(("**/*",), "<a1>", "/a1"),
        AssetTagObject(("/blog/*",), "<b1>", "/b1"),
        AssetTagObject(("**/*",), "<a2>", "/a2"),
    ]
    assert build_assets_tag_str("/blog/post", array) == "<a1><b1><a2>"
    assert build_assets_tag_str("/about", array) == "<a1><a2>"


@pytest.mark.parametrize(
    ("pathname", "expected"),
    [
        ("/", "./bundle.css"),
        ("/about", "./bundle.css"),
        ("/a/b", "../bundle.css"),
        ("/a/b/c/", "../../bundle.css"),
    ],
)
def test_relative_asset_path(pathname: str, expected: str) -> None:
    assert relative_asset_path(pathname, "./bundle.css") == expected


def test_rooted_paths_are_never_rewritten() -> None:
    assert relative_asset_path("/a/b/c/", "/assets/bundle.css") == "/assets/bundle.css"
    assert relative_asset_path("/a/b/c/", "https://cdn/x.js") == "https://cdn/x.js"


def test_bare_relative_paths_are_never_rewritten() -> None:
    assert relative_asset_path("/a/b/c/", "assets/x.css") == "assets/x.css"
    assert relative_asset_path("/a/b/c/", "../x.css") == "../x.css"


def test_tag_str_rewrites_relative_paths_for_deep_pages() -> None:
    array = build_assets_tag_array(
        [Path("dist/bundle.css")], out_base=Path("dist"), href_base="./"
    )
    assert (
        build_assets_tag_str("/a/b/c/", array)
        == '<link rel="stylesheet" href="../../bundle.css">'
    )
