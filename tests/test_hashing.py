from pathlib import Path
from types import SimpleNamespace

import pytest

from leptosbuild.hashing import (
    add_hashes_to_site,
    compute_front_file_hashes,
    rename_files,
    replace_in_file,
)
from leptosbuild.parts import HashFile
from leptosbuild.project import Site
from leptosbuild.project_config import SiteFile, SourcedSiteFile


def make_project(tmp_path):
    root = tmp_path / "site"
    pkg = root / "pkg"
    pkg.mkdir(parents=True)
    site = Site(root_dir=root, pkg_dir=Path("pkg"), addr="127.0.0.1:3000", reload_port=3001)
    lib = SimpleNamespace(
        js_file=SiteFile(dest=pkg / "app.js", site=Path("pkg/app.js")),
        wasm_file=SourcedSiteFile(
            source=tmp_path / "in.wasm", dest=pkg / "app.wasm", site=Path("pkg/app.wasm")
        ),
    )
    style = SimpleNamespace(site_file=SiteFile(dest=pkg / "app.css", site=Path("pkg/app.css")))
    hash_file = HashFile(abs=tmp_path / "target" / "debug" / "hash.txt", rel=Path("hash.txt"))
    return SimpleNamespace(site=site, lib=lib, style=style, hash_file=hash_file), pkg


def test_compute_skips_other_css_and_inline_snippets(tmp_path):
    proj, pkg = make_project(tmp_path)
    (pkg / "app.js").write_text("js")
    (pkg / "app.wasm").write_bytes(b"wasm")
    (pkg / "app.css").write_text("body {}")
    (pkg / "other.css").write_text("p {}")
    snippets = pkg / "snippets" / "dep"
    snippets.mkdir(parents=True)
    (snippets / "inline0.js").write_text("a")
    (snippets / "module.js").write_text("b")

    hashes = compute_front_file_hashes(proj)

    assert set(hashes) == {
        pkg / "app.js",
        pkg / "app.wasm",
        pkg / "app.css",
        snippets / "module.js",
    }


def test_empty_file_hash(tmp_path):
    proj, pkg = make_project(tmp_path)
    (pkg / "app.js").write_bytes(b"")
    assert compute_front_file_hashes(proj)[pkg / "app.js"] == "1B2M2Y8AsgTpgAmY7PhCfg"


def test_hashes_depend_only_on_content(tmp_path):
    proj, pkg = make_project(tmp_path)
    (pkg / "app.js").write_text("same")
    (pkg / "app.wasm").write_text("same")
    (pkg / "app.css").write_text("different")
    hashes = compute_front_file_hashes(proj)
    assert hashes[pkg / "app.js"] == hashes[pkg / "app.wasm"]
    assert hashes[pkg / "app.js"] != hashes[pkg / "app.css"]
    for value in hashes.values():
        assert len(value) == 22
        assert "=" not in value and "+" not in value and "/" not in value


def test_missing_pkg_dir_gives_no_hashes(tmp_path):
    proj, pkg = make_project(tmp_path)
    pkg.rmdir()
    assert compute_front_file_hashes(proj) == {}


def test_rename_files(tmp_path):
    first = tmp_path / "app.js"
    second = tmp_path / "app.min.wasm"
    first.write_text("one")
    second.write_text("two")

    renamed = rename_files({first: "abc", second: "xyz"})

    assert renamed == {first: tmp_path / "app.abc.js", second: tmp_path / "app.min.xyz.wasm"}
    assert not first.exists() and not second.exists()
    assert (tmp_path / "app.abc.js").read_text() == "one"
    assert (tmp_path / "app.min.xyz.wasm").read_text() == "two"


def test_rename_without_extension_fails(tmp_path):
    plain = tmp_path / "LICENSE"
    plain.write_text("x")
    with pytest.raises(ValueError):
        rename_files({plain: "abc"})
    assert plain.exists()


def test_replace_in_file(tmp_path):
    root = tmp_path / "pkg"
    root.mkdir()
    js = root / "app.js"
    js.write_text('fetch("./app.wasm"); import "./snippets/dep/module.js";')
    mapping = {
        root / "app.wasm": root / "app.h1.wasm",
        root / "snippets" / "dep" / "module.js": root / "snippets" / "dep" / "module.h2.js",
    }
    replace_in_file(js, mapping, root)
    assert js.read_text() == 'fetch("./app.h1.wasm"); import "./snippets/dep/module.h2.js";'


def test_replace_in_file_outside_root_fails(tmp_path):
    root = tmp_path / "pkg"
    root.mkdir()
    js = root / "app.js"
    js.write_text("x")
    with pytest.raises(ValueError):
        replace_in_file(js, {tmp_path / "a.js": tmp_path / "a.h.js"}, root)


def test_add_hashes_to_site(tmp_path):
    proj, pkg = make_project(tmp_path)
    (pkg / "app.js").write_text('init("./app.wasm");')
    (pkg / "app.wasm").write_bytes(b"\0asm")
    (pkg / "app.css").write_text("body {}")

    add_hashes_to_site(proj)

    lines = proj.hash_file.abs.read_text().splitlines()
    assert [line.split(": ")[0] for line in lines] == ["js", "wasm", "css"]
    js_hash, wasm_hash, css_hash = (line.split(": ")[1] for line in lines)
    assert (pkg / f"app.{css_hash}.css").read_text() == "body {}"
    assert (pkg / f"app.{wasm_hash}.wasm").read_bytes() == b"\0asm"
    js_text = (pkg / f"app.{js_hash}.js").read_text()
    assert js_text == f'init("./app.{wasm_hash}.wasm");'
    assert not (pkg / "app.js").exists()


def test_add_hashes_without_css_fails(tmp_path):
    proj, pkg = make_project(tmp_path)
    (pkg / "app.js").write_text("js")
    (pkg / "app.wasm").write_bytes(b"wasm")
    with pytest.raises(ValueError):
        add_hashes_to_site(proj)
    assert not proj.hash_file.abs.exists()