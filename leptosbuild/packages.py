"""Cargo metadata and the lib (front-end) and bin (server) packages of a project."""

from __future__ import annotations

import json
import logging
import subprocess
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from .cli import Opts
from .parts import _with_extension
from .profile import Profile
from .project_config import ProjectConfig, SiteFile, SourcedSiteFile

log = logging.getLogger(__name__)


class _Definition(Protocol):
    bin_package: str
    lib_package: str


@dataclass(frozen=True)
class CargoTarget:
    """A build target of a cargo package."""

    name: str
    kind: tuple[str, ...] = ()
    crate_types: tuple[str, ...] = ()
    src_path: Path | None = None

    @property
    def is_bin(self) -> bool:
        return "bin" in self.kind

    @property
    def is_cdylib(self) -> bool:
        return "cdylib" in self.crate_types


@dataclass
class CargoPackage:
    """A package listed in cargo metadata."""

    name: str
    id: str
    manifest_path: Path
    targets: list[CargoTarget] = field(default_factory=list)
    source: str | None = None
    metadata: Any = None

    def has_bin_target(self) -> bool:
        return any(target.is_bin for target in self.targets)

    def cdylib_target(self) -> CargoTarget | None:
        return next((target for target in self.targets if target.is_cdylib), None)


@dataclass
class CargoMetadata:
    """The parts of ``cargo metadata`` output that the build uses."""

    workspace_root: Path
    target_directory: Path
    packages: list[CargoPackage] = field(default_factory=list)
    workspace_members: list[str] = field(default_factory=list)
    workspace_metadata: Any = None
    resolve: dict[str, list[str]] | None = None

    def _package(self, package_id: str) -> CargoPackage:
        for package in self.packages:
            if package.id == package_id:
                return package
        raise KeyError(f"unknown package id {package_id!r}")

    def workspace_packages(self) -> list[CargoPackage]:
        """The packages that are members of the workspace, in member order."""
        return [self._package(member) for member in self.workspace_members]

    def rel_target_dir(self) -> Path:
        """The target directory relative to the workspace root."""
        return _unbase(self.target_directory, self.workspace_root)

    def src_path_dependencies(self, package_id: str) -> list[Path]:
        """Source directories of the local path dependencies of a package."""
        if self.resolve is None:
            return []
        if package_id not in self.resolve:
            raise ValueError(f"package {package_id!r} is not in the dependency graph")
        found = []
        for dep_id in self.resolve[package_id]:
            dep = self._package(dep_id)
            if dep.source is not None:
                continue
            directory = dep.manifest_path.parent
            try:
                found.append(_unbase(directory, self.workspace_root) / "src")
            except ValueError:
                found.append(directory)
        return found


def _unbase(path: Path, base: Path) -> Path:
    try:
        return Path(path).relative_to(base)
    except ValueError as exc:
        raise ValueError(f"{path} is not inside {base}") from exc


def _target_from_json(data: Mapping[str, Any]) -> CargoTarget:
    src = data.get("src_path")
    return CargoTarget(
        name=data["name"],
        kind=tuple(data.get("kind", ())),
        crate_types=tuple(data.get("crate_types", ())),
        src_path=Path(src) if src is not None else None,
    )


def _package_from_json(data: Mapping[str, Any]) -> CargoPackage:
    return CargoPackage(
        name=data["name"],
        id=data["id"],
        manifest_path=Path(data["manifest_path"]),
        targets=[_target_from_json(t) for t in data.get("targets", ())],
        source=data.get("source"),
        metadata=data.get("metadata"),
    )


def _resolve_from_json(data: Mapping[str, Any] | None) -> dict[str, list[str]] | None:
    if data is None:
        return None
    graph = {}
    for node in data.get("nodes", ()):
        if "deps" in node:
            deps = [dep["pkg"] for dep in node["deps"]]
        else:
            deps = list(node.get("dependencies", ()))
        graph[node["id"]] = deps
    return graph


def metadata_from_json(data: Mapping[str, Any] | str | bytes) -> CargoMetadata:
    """Build metadata from the JSON that ``cargo metadata`` prints."""
    if isinstance(data, (str, bytes)):
        data = json.loads(data)
    return CargoMetadata(
        workspace_root=Path(data["workspace_root"]),
        target_directory=Path(data["target_directory"]),
        packages=[_package_from_json(p) for p in data.get("packages", ())],
        workspace_members=list(data.get("workspace_members", ())),
        workspace_metadata=data.get("metadata"),
        resolve=_resolve_from_json(data.get("resolve")),
    )


def load_metadata(manifest_path: str | Path) -> CargoMetadata:
    """Run ``cargo metadata`` for a manifest and parse its output."""
    result = subprocess.run(
        ["cargo", "metadata", "--format-version", "1", "--manifest-path", str(manifest_path)],
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        raise RuntimeError(f"cargo metadata failed for {manifest_path}: {result.stderr.strip()}")
    return metadata_from_json(result.stdout)


def _features(cli_specific: Sequence[str], config_specific: Sequence[str],
              config: ProjectConfig, cli: Opts) -> list[str]:
    features = list(cli_specific) if cli_specific else list(config_specific)
    return features + list(config.features) + list(cli.features)


def _src_paths(metadata: CargoMetadata, package: CargoPackage, rel_dir: Path) -> list[Path]:
    paths = metadata.src_path_dependencies(package.id)
    paths.append(Path("src") if str(rel_dir) == "." else rel_dir / "src")
    return paths


@dataclass
class LibPackage:
    """The package compiled to WebAssembly for the browser."""

    name: str
    abs_dir: Path
    rel_dir: Path
    wasm_file: SourcedSiteFile
    js_file: SiteFile
    features: list[str]
    default_features: bool
    output_name: str
    src_paths: list[Path]
    front_target_path: Path
    profile: Profile
    cargo_args: list[str] | None


def resolve_lib_package(
    cli: Opts, metadata: CargoMetadata, project: _Definition, config: ProjectConfig
) -> LibPackage:
    """Resolve the lib package of a project against the cargo metadata."""
    name = project.lib_package
    output_name = config.output_name or name.replace("-", "_")
    package = next((p for p in metadata.workspace_packages() if p.name == name), None)
    if package is None:
        raise ValueError(f'Could not find the project lib-package "{name}"')

    features = _features(cli.lib_features, config.lib_features, config, cli)
    abs_dir = package.manifest_path.parent
    rel_dir = _unbase(abs_dir, metadata.workspace_root)
    profile = Profile.new(cli.release, config.lib_profile_release, config.lib_profile_dev)

    wasm_source = _with_extension(
        metadata.rel_target_dir() / "front" / "wasm32-unknown-unknown" / str(profile)
        / name.replace("-", "_"),
        "wasm",
    )
    wasm_site = _with_extension(config.site_pkg_dir / output_name, "wasm")
    wasm_file = SourcedSiteFile(
        source=wasm_source, dest=config.site_root / wasm_site, site=wasm_site
    )
    js_site = _with_extension(config.site_pkg_dir / output_name, "js")
    js_file = SiteFile(dest=config.site_root / js_site, site=js_site)

    cargo_args = cli.lib_cargo_args if cli.lib_cargo_args is not None else config.lib_cargo_args

    return LibPackage(
        name=name,
        abs_dir=abs_dir,
        rel_dir=rel_dir,
        wasm_file=wasm_file,
        js_file=js_file,
        features=features,
        default_features=config.lib_default_features,
        output_name=output_name,
        src_paths=_src_paths(metadata, package, rel_dir),
        front_target_path=metadata.target_directory / "front",
        profile=profile,
        cargo_args=None if cargo_args is None else list(cargo_args),
    )


@dataclass
class BinPackage:
    """The package built as the server executable."""

    name: str
    abs_dir: Path
    rel_dir: Path
    exe_file: Path
    target: str
    features: list[str]
    default_features: bool
    src_paths: list[Path]
    profile: Profile
    target_triple: str | None
    target_dir: str | None
    cargo_command: str | None
    cargo_args: list[str] | None
    bin_args: list[str] | None


def _exe_extension(triple: str | None) -> str:
    if sys.platform == "win32" and (triple is None or "-pc-windows-" in triple):
        return "exe"
    if triple is not None and triple.startswith("wasm32-"):
        return "wasm"
    return ""


def _select_target(name: str, targets: list[CargoTarget], wanted: str) -> CargoTarget:
    if wanted:
        for target in targets:
            if target.name == wanted:
                return target
        raise ValueError(
            "Could not find the target specified: "
            f'[[workspace.metadata.leptos]] bin-target = "{wanted}"'
        )
    if len(targets) == 1:
        return targets[0]
    if not targets:
        raise ValueError(f"No bin targets found for member {name}")
    raise ValueError(
        f'Several bin targets found for member "{name}", please specify which one to use '
        'with: [[workspace.metadata.leptos]] bin-target = "name"'
    )


def resolve_bin_package(
    cli: Opts,
    metadata: CargoMetadata,
    project: _Definition,
    config: ProjectConfig,
    bin_args: Sequence[str] | None = None,
) -> BinPackage:
    """Resolve the bin package of a project against the cargo metadata."""
    features = _features(cli.bin_features, config.bin_features, config, cli)

    name = project.bin_package
    package = next(
        (p for p in metadata.workspace_packages() if p.name == name and p.has_bin_target()),
        None,
    )
    if package is None:
        raise ValueError(f'Could not find the project bin-package "{name}"')

    bin_targets = [t for t in package.targets if t.is_bin]
    target = _select_target(name, bin_targets, config.bin_target)

    abs_dir = package.manifest_path.parent
    rel_dir = _unbase(abs_dir, metadata.workspace_root)
    profile = Profile.new(cli.release, config.bin_profile_release, config.bin_profile_dev)

    triple = config.bin_target_triple
    base = Path(config.bin_target_dir) if config.bin_target_dir is not None \
        else metadata.rel_target_dir()
    if triple is not None:
        base = base / triple
    exe_name = config.bin_exe_name if config.bin_exe_name is not None else name
    exe_file = _with_extension(base / str(profile) / exe_name, _exe_extension(triple))

    cargo_args = cli.bin_cargo_args if cli.bin_cargo_args is not None else config.bin_cargo_args

    log.debug("BEFORE BIN %r", config.bin_cargo_command)
    return BinPackage(
        name=name,
        abs_dir=abs_dir,
        rel_dir=rel_dir,
        exe_file=exe_file,
        target=target.name,
        features=features,
        default_features=config.bin_default_features,
        src_paths=_src_paths(metadata, package, rel_dir),
        profile=profile,
        target_triple=triple,
        target_dir=config.bin_target_dir,
        cargo_command=config.bin_cargo_command,
        cargo_args=None if cargo_args is None else list(cargo_args),
        bin_args=None if bin_args is None else list(bin_args),
    )