import json
import subprocess
from pathlib import Path
from types import SimpleNamespace
from unittest import mock

import pytest

from leptosbuild.cli import Opts
from leptosbuild.packages import (
    CargoPackage,
    CargoTarget,
    load_metadata,
    metadata_from_json,
    resolve_bin_package,
    resolve_lib_package,
)
from leptosbuild.project_config import ProjectConfig


def _target(name, lib=False):
    kinds = ["cdylib", "rlib"] if lib else ["bin"]
    return {"name": name, "kind": kinds, "crate_types": kinds, "src_path": f"/src/{name}.rs"}


def _package(root, name, rel=".", targets=(), source=None):
    return {
        "name": name,
        "id": f"{name}-id",
        "manifest_path": str(root / rel / "Cargo.toml"),
        "targets": list(targets),
        "source": source,
        "metadata": None,
    }


def _metadata_json(root, packages, members=None, resolve=None):
    return {
        "packages": packages,
        "workspace_members": members if members is not None else [p["id"] for p in packages],
        "workspace_root": str(root),
        "target_directory": str(root / "target"),
        "metadata": {"leptos": []},
        "resolve": resolve,
    }


def _single(root, bins=("my-app",)):
    pkg = _package(root, "my-app", targets=[_target("my-app", lib=True)]
                   + [_target(b) for b in bins])
    return metadata_from_json(_metadata_json(root, [pkg]))


def _def(name):
    return SimpleNamespace(name=name, bin_package=name, lib_package=name)


def test_metadata_from_json_fields(tmp_path):
    md = _single(tmp_path)
    assert md.workspace_root == tmp_path
    assert md.workspace_metadata == {"leptos": []}
    pkg = md.packages[0]
    assert pkg.has_bin_target()
    assert pkg.cdylib_target().name == "my-app"


def test_metadata_from_json_text(tmp_path):
    md = metadata_from_json(json.dumps(_metadata_json(tmp_path, [])))
    assert md.target_directory == tmp_path / "target"
    assert md.packages == []


def test_package_without_targets():
    pkg = CargoPackage(name="x", id="x", manifest_path=Path("/x/Cargo.toml"))
    assert not pkg.has_bin_target()
    assert pkg.cdylib_target() is None


def test_target_kinds():
    assert CargoTarget("a", kind=("bin",)).is_bin
    assert not CargoTarget("a", kind=("lib",), crate_types=("rlib",)).is_cdylib


def test_workspace_packages_only_members(tmp_path):
    a = _package(tmp_path, "a", "a")
    b = _package(tmp_path, "b", "b")
    md = metadata_from_json(_metadata_json(tmp_path, [a, b], members=[b["id"]]))
    assert [p.name for p in md.workspace_packages()] == ["b"]


def test_rel_target_dir(tmp_path):
    assert _single(tmp_path).rel_target_dir() == Path("target")


def test_src_path_dependencies(tmp_path):
    app = _package(tmp_path, "app", "app")
    local = _package(tmp_path, "shared", "libs/shared")
    remote = _package(tmp_path, "serde", "registry/serde", source="registry+index")
    resolve = {"nodes": [{"id": app["id"], "deps": [{"pkg": local["id"]}, {"pkg": remote["id"]}]}]}
    md = metadata_from_json(_metadata_json(tmp_path, [app, local, remote], resolve=resolve))
    assert md.src_path_dependencies(app["id"]) == [Path("libs") / "shared" / "src"]


def test_src_path_dependencies_without_resolve(tmp_path):
    md = _single(tmp_path)
    assert md.src_path_dependencies(md.packages[0].id) == []


def test_lib_defaults(tmp_path):
    md = _single(tmp_path)
    config = ProjectConfig()
    lib = resolve_lib_package(Opts(), md, _def("my-app"), config)
    assert lib.output_name == "my_app"
    assert lib.wasm_file.source == (
        Path("target") / "front" / "wasm32-unknown-unknown" / "debug" / "my_app.wasm"
    )
    assert lib.js_file.site == Path("pkg") / "my_app.js"
    assert lib.wasm_file.dest == config.site_root / lib.wasm_file.site
    assert lib.rel_dir == Path(".")
    assert lib.src_paths == [Path("src")]
    assert lib.front_target_path == tmp_path / "target" / "front"
    assert lib.cargo_args is None


def test_lib_features_and_args_precedence(tmp_path):
    md = _single(tmp_path)
    config = ProjectConfig(
        output_name="out", lib_features=["hydrate"], features=["common"],
        lib_cargo_args=["-j", "2"],
    )
    cli = Opts(lib_features=["csr"], features=["extra"], lib_cargo_args=["-j", "8"])
    lib = resolve_lib_package(cli, md, _def("my-app"), config)
    assert lib.features == ["csr", "common", "extra"]
    assert lib.cargo_args == ["-j", "8"]
    assert lib.js_file.site == Path("pkg") / "out.js"


def test_lib_config_features_used_without_cli(tmp_path):
    md = _single(tmp_path)
    config = ProjectConfig(lib_features=["hydrate"], lib_cargo_args=["-j", "2"])
    lib = resolve_lib_package(Opts(), md, _def("my-app"), config)
    assert lib.features == ["hydrate"]
    assert lib.cargo_args == ["-j", "2"]


def test_lib_release_profile(tmp_path):
    md = _single(tmp_path)
    lib = resolve_lib_package(Opts(release=True), md, _def("my-app"), ProjectConfig())
    assert lib.wasm_file.source.parent.name == "release"


def test_lib_missing_package(tmp_path):
    with pytest.raises(ValueError, match="Could not find the project lib-package"):
        resolve_lib_package(Opts(), _single(tmp_path), _def("other"), ProjectConfig())


def test_lib_in_member_dir(tmp_path):
    front = _package(tmp_path, "front", "p/front", targets=[_target("front", lib=True)])
    md = metadata_from_json(_metadata_json(tmp_path, [front]))
    lib = resolve_lib_package(Opts(), md, _def("front"), ProjectConfig())
    assert lib.rel_dir == Path("p") / "front"
    assert lib.src_paths == [Path("p") / "front" / "src"]


def test_bin_defaults(tmp_path):
    md = _single(tmp_path)
    config = ProjectConfig(bin_features=["ssr"])
    with mock.patch("sys.platform", "linux"):
        b = resolve_bin_package(Opts(), md, _def("my-app"), config, None)
    assert b.target == "my-app"
    assert b.features == ["ssr"]
    assert b.exe_file == Path("target") / "debug" / "my-app"
    assert b.bin_args is None
    assert b.src_paths == [Path("src")]


def test_bin_windows_exe(tmp_path):
    with mock.patch("sys.platform", "win32"):
        b = resolve_bin_package(Opts(), _single(tmp_path), _def("my-app"), ProjectConfig())
    assert b.exe_file.suffix == ".exe"


def test_bin_wasm_triple_and_dir(tmp_path):
    config = ProjectConfig(bin_target_triple="wasm32-wasip1", bin_target_dir="out",
                           bin_exe_name="srv")
    b = resolve_bin_package(Opts(), _single(tmp_path), _def("my-app"), config)
    assert b.exe_file == Path("out") / "wasm32-wasip1" / "debug" / "srv.wasm"
    assert b.target_triple == "wasm32-wasip1"
    assert b.target_dir == "out"


def test_bin_named_release_profile_and_args(tmp_path):
    config = ProjectConfig(bin_profile_release="server-release", bin_cargo_args=["-j", "4"])
    b = resolve_bin_package(Opts(release=True), _single(tmp_path), _def("my-app"), config,
                            ["--", "--foo"])
    assert str(b.profile) == "server-release"
    assert b.exe_file.parent.name == "server-release"
    assert b.cargo_args == ["-j", "4"]
    assert b.bin_args == ["--", "--foo"]


def test_bin_select_named_target(tmp_path):
    md = _single(tmp_path, bins=("a", "b"))
    b = resolve_bin_package(Opts(), md, _def("my-app"), ProjectConfig(bin_target="b"))
    assert b.target == "b"


def test_bin_several_targets(tmp_path):
    md = _single(tmp_path, bins=("a", "b"))
    with pytest.raises(ValueError, match="Several bin targets found"):
        resolve_bin_package(Opts(), md, _def("my-app"), ProjectConfig())


def test_bin_target_not_found(tmp_path):
    with pytest.raises(ValueError, match="Could not find the target specified"):
        resolve_bin_package(Opts(), _single(tmp_path), _def("my-app"),
                            ProjectConfig(bin_target="nope"))


def test_bin_package_needs_bin_target(tmp_path):
    md = _single(tmp_path, bins=())
    with pytest.raises(ValueError, match="Could not find the project bin-package"):
        resolve_bin_package(Opts(), md, _def("my-app"), ProjectConfig())


def test_load_metadata_runs_cargo(tmp_path):
    output = json.dumps(_metadata_json(tmp_path, []))
    done = subprocess.CompletedProcess(args=[], returncode=0, stdout=output, stderr="")
    with mock.patch("subprocess.run", return_value=done) as run:
        md = load_metadata(tmp_path / "Cargo.toml")
    assert md.workspace_root == tmp_path
    assert run.call_args.args[0][:2] == ["cargo", "metadata"]


def test_load_metadata_failure(tmp_path):
    done = subprocess.CompletedProcess(args=[], returncode=101, stdout="", stderr="boom")
    with mock.patch("subprocess.run", return_value=done):
        with pytest.raises(RuntimeError, match="boom"):
            load_metadata(tmp_path / "Cargo.toml")