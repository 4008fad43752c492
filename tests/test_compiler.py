"""Tests for the built-in compiler and client bundler."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from island_pages.compiler import (
    BundleOptions,
    BundleOutput,
    CompileOptions,
    SourceCompiler,
    partial_id,
    write_bundle_outputs,
)
from island_pages.errors import BundleError, CompileError
from island_pages.hydration import HydrateOptions, VirtualEntry, VirtualImport


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    """Create a source tree with one page referencing two partials."""
    src = tmp_path / "src"
    (src / "pages" / "blog").mkdir(parents=True)
    (src / "components").mkdir()
    (src / "components" / "counter.jinja").write_text("<button>0</button>")
    (src / "components" / "clock.jinja").write_text("<time>now</time>")
    (src / "pages" / "blog" / "index.jinja").write_text(
        "{{ partial('../../components/counter.jinja') }}"
        '{{ partial("@/components/clock.jinja") }}'
    )
    return tmp_path


def _options(root: Path) -> CompileOptions:
    return CompileOptions(
        out_base=root / "src",
        out_dir=root / "tmp" / "modules",
        partial_dir=root / "tmp" / "partials",
        alias_map=(("@", root / "src"),),
    )


def test_compile_rewrites_partials_and_writes_manifests(source_tree: Path) -> None:
    page = source_tree / "src" / "pages" / "blog" / "index.jinja"
    compiled = SourceCompiler().compile([page], _options(source_tree))

    assert compiled == [source_tree / "tmp" / "modules" / "pages" / "blog" / "index.jinja"]
    counter = (source_tree / "src" / "components" / "counter.jinja").resolve().as_posix()
    clock = (source_tree / "src" / "components" / "clock.jinja").resolve().as_posix()
    text = compiled[0].read_text()
    assert text == (
        f"{{{{ partial('{partial_id(counter)}') }}}}"
        f'{{{{ partial("{partial_id(clock)}") }}}}'
    )
    manifests = {
        path.stem: path.read_text()
        for path in (source_tree / "tmp" / "partials").iterdir()
    }
    assert manifests == {partial_id(counter): counter, partial_id(clock): clock}


def test_compile_rejects_missing_partial(source_tree: Path) -> None:
    page = source_tree / "src" / "pages" / "broken.jinja"
    page.write_text("{{ partial('./missing.jinja') }}")
    with pytest.raises(CompileError, match="missing.jinja"):
        SourceCompiler().compile([page], _options(source_tree))


def test_compile_rejects_unknown_suffix(source_tree: Path) -> None:
    page = source_tree / "src" / "pages" / "notes.md"
    page.write_text("# notes")
    with pytest.raises(CompileError, match="No loader rule"):
        SourceCompiler().compile([page], _options(source_tree))


def test_partial_id_is_stable() -> None:
    assert partial_id("/a/b.jinja") == partial_id("/a/b.jinja")
    assert partial_id("/a/b.jinja").startswith("ph_")
    assert len(partial_id("/a/b.jinja")) == len("ph_") + 12


def test_bundle_file_entry(tmp_path: Path) -> None:
    source = tmp_path / "app.css"
    source.write_text("body{}")
    outputs = SourceCompiler().bundle_for_client(
        source, BundleOptions(out_dir=tmp_path, out_name="theme")
    )
    assert outputs == [BundleOutput("theme.css", "body{}")]


def test_bundle_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(BundleError):
        SourceCompiler().bundle_for_client(
            tmp_path / "nope.js", BundleOptions(out_dir=tmp_path, out_name="x")
        )


def test_bundle_static_virtual_entry_joins_by_suffix(tmp_path: Path) -> None:
    for name, text in [("a.css", "a{}"), ("b.js", "b()"), ("c.css", "c{}")]:
        (tmp_path / name).write_text(text)
    entry = VirtualEntry(
        name="bundle",
        imports=tuple(
            VirtualImport(str(tmp_path / name), f"bundle_{n}")
            for n, name in enumerate(["a.css", "b.js", "c.css"], start=1)
        ),
    )
    outputs = SourceCompiler().bundle_for_client(
        entry, BundleOptions(out_dir=tmp_path, out_name="bundle")
    )
    assert outputs == [
        BundleOutput("bundle.css", "a{}\nc{}"),
        BundleOutput("bundle.js", "b()"),
    ]


def _hydrate_entry(tmp_path: Path, *, observer: bool) -> VirtualEntry:
    (tmp_path / "counter.jinja").write_text("<button>0</button>")
    (tmp_path / "counter.client.js").write_text("export default (el) => {}\n")
    (tmp_path / "static.jinja").write_text("<p>static</p>")
    return VirtualEntry(
        name="partial-hydration-1",
        imports=(
            VirtualImport(
                str(tmp_path / "counter.jinja"),
                "PH_1",
                "targets_1",
                '[data-partial-hydration="ph-1"]',
            ),
            VirtualImport(
                str(tmp_path / "static.jinja"),
                "PH_2",
                "targets_2",
                '[data-partial-hydration="ph-2"]',
            ),
        ),
        hydrate=HydrateOptions(
            use_intersection_observer=observer, root_margin="10px", thresholds=(0.5,)
        ),
    )


def test_bundle_hydration_entry_with_observer(tmp_path: Path) -> None:
    entry = _hydrate_entry(tmp_path, observer=True)
    outputs = SourceCompiler().bundle_for_client(
        entry, BundleOptions(out_dir=tmp_path, out_name="partial-hydration-1")
    )

    main, chunk = outputs
    assert main.file_name == "partial-hydration-1.js"
    assert main.is_entry
    assert not chunk.is_entry
    assert chunk.file_name.startswith("counter-")
    assert chunk.code == "export default (el) => {}\n"
    assert "new IntersectionObserver" in main.code
    assert 'rootMargin: "10px"' in main.code
    assert "threshold: [0.5]" in main.code
    assert f'"./{chunk.file_name}"' in main.code
    assert "targets_1" in main.code
    assert "targets_2" not in main.code


def test_bundle_hydration_entry_immediate_and_minified(tmp_path: Path) -> None:
    entry = _hydrate_entry(tmp_path, observer=False)
    main, _chunk = SourceCompiler().bundle_for_client(
        entry,
        BundleOptions(out_dir=tmp_path, out_name="partial-hydration-1", minify=True),
    )
    assert "IntersectionObserver" not in main.code
    assert "//" not in main.code.replace("./", "")
    assert all(line == line.strip() for line in main.code.splitlines())


def test_hydration_entry_without_client_code_emits_nothing(tmp_path: Path) -> None:
    (tmp_path / "static.jinja").write_text("<p>static</p>")
    entry = VirtualEntry(
        name="partial-hydration-1",
        imports=(VirtualImport(str(tmp_path / "static.jinja"), "PH_1"),),
        hydrate=HydrateOptions(use_intersection_observer=False),
    )
    assert (
        SourceCompiler().bundle_for_client(
            entry, BundleOptions(out_dir=tmp_path, out_name="partial-hydration-1")
        )
        == []
    )


def test_write_bundle_outputs_returns_entry_files(tmp_path: Path) -> None:
    outputs = [BundleOutput("main.js", "main()"), BundleOutput("chunk.js", "c", False)]
    written = asyncio.run(write_bundle_outputs(outputs, tmp_path / "assets"))
    assert written == [tmp_path / "assets" / "main.js"]
    assert (tmp_path / "assets" / "chunk.js").read_text() == "c"
