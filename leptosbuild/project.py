"""Resolution of leptos projects from cargo metadata."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .cli import Opts
from .dotenvs import load_dotenvs, overlay_env
from .packages import (
    BinPackage,
    CargoMetadata,
    CargoPackage,
    LibPackage,
    resolve_bin_package,
    resolve_lib_package,
)
from .parts import (
    AssetsConfig,
    End2EndConfig,
    HashFile,
    StyleConfig,
    hash_file_for,
    resolve_assets,
    resolve_end2end,
    style_config,
)
from .project_config import (
    CARGO_BUILD_TARGET_DIR_MARKER,
    CARGO_TARGET_DIR_MARKER,
    ProjectConfig,
    project_config_from_dict,
)

log = logging.getLogger(__name__)

_FORBIDDEN_SITE_ROOTS = (
    Path("/"),
    Path("."),
    Path(CARGO_TARGET_DIR_MARKER),
    Path(CARGO_BUILD_TARGET_DIR_MARKER),
)


@dataclass(frozen=True)
class Site:
    """Where the generated site lives and where it is served."""

    root_dir: Path
    pkg_dir: Path
    addr: str
    reload_port: int

    def root_relative_pkg_dir(self) -> Path:
        """The package directory inside the site root."""
        return self.root_dir / self.pkg_dir


def _site_for(config: ProjectConfig) -> Site:
    return Site(
        root_dir=config.site_root,
        pkg_dir=config.site_pkg_dir,
        addr=config.site_addr,
        reload_port=config.reload_port,
    )


@dataclass
class Project:
    """A fully resolved leptos project: a lib and a bin package built together."""

    working_dir: Path
    name: str
    lib: LibPackage
    bin: BinPackage
    style: StyleConfig
    watch: bool
    release: bool
    precompress: bool
    hot_reload: bool
    wasm_debug: bool
    site: Site
    end2end: End2EndConfig | None
    assets: AssetsConfig | None
    js_dir: Path
    watch_additional_files: list[Path]
    hash_file: HashFile
    hash_files: bool
    js_minify: bool
    server_fn_prefix: str | None
    disable_server_fn_hash: bool
    server_fn_mod_path: bool

    def to_envs(self) -> list[tuple[str, str]]:
        """Environment variables handed to the external commands."""
        envs = [
            ("LEPTOS_OUTPUT_NAME", self.lib.output_name),
            ("LEPTOS_SITE_ROOT", str(self.site.root_dir)),
            ("LEPTOS_SITE_PKG_DIR", str(self.site.pkg_dir)),
            ("LEPTOS_SITE_ADDR", self.site.addr),
            ("LEPTOS_RELOAD_PORT", str(self.site.reload_port)),
            ("LEPTOS_LIB_DIR", str(self.lib.rel_dir)),
            ("LEPTOS_BIN_DIR", str(self.bin.rel_dir)),
            ("LEPTOS_JS_MINIFY", str(bool(self.js_minify)).lower()),
            ("LEPTOS_HASH_FILES", str(bool(self.hash_files)).lower()),
        ]
        if self.hash_files:
            envs.append(("LEPTOS_HASH_FILE_NAME", str(self.hash_file.rel)))
        if self.watch:
            envs.append(("LEPTOS_WATCH", "true"))
        if self.server_fn_prefix is not None:
            envs.append(("SERVER_FN_PREFIX", self.server_fn_prefix))
        if self.disable_server_fn_hash:
            envs.append(("DISABLE_SERVER_FN_HASH", "true"))
        if self.server_fn_mod_path:
            envs.append(("SERVER_FN_MOD_PATH", "true"))
        return envs


@dataclass(frozen=True)
class ProjectDefinition:
    """Which packages make up a project."""

    name: str
    bin_package: str
    lib_package: str


def parse_config(
    directory: str | Path, section: Mapping[str, Any], metadata: CargoMetadata
) -> ProjectConfig:
    """Read one leptos metadata section, overlay the environment and validate it."""
    directory = Path(directory)
    conf = project_config_from_dict(section)
    conf.config_dir = directory
    conf.tmp_dir = metadata.target_directory / "tmp"
    overlay_env(conf, load_dotenvs(directory))

    if conf.site_root in _FORBIDDEN_SITE_ROOTS:
        raise ValueError(
            f"site-root cannot be '{conf.site_root}'. "
            "All the content is erased when building the site."
        )
    for marker in (CARGO_TARGET_DIR_MARKER, CARGO_BUILD_TARGET_DIR_MARKER):
        parts = conf.site_root.parts
        if parts[:1] == (marker,):
            conf.site_root = metadata.target_directory.joinpath(*parts[1:])

    if conf.site_port == conf.reload_port:
        raise ValueError(
            f"The site-addr port and reload-port cannot be the same: {conf.reload_port}"
        )

    if conf.separate_front_target_dir is not None:
        log.warning("Deprecated: the `separate-front-target-dir` option is deprecated")
        log.warning("It is now unconditionally enabled; you can remove it from your Cargo.toml")
    return conf


def _leptos_metadata(value: Any) -> Any:
    if isinstance(value, Mapping):
        return value.get("leptos")
    return None


def _definition_from_section(section: Mapping[str, Any]) -> ProjectDefinition:
    values = []
    for key in ("name", "bin-package", "lib-package"):
        if key not in section:
            raise ValueError(f"missing field `{key}` in [[workspace.metadata.leptos]]")
        value = section[key]
        if not isinstance(value, str):
            raise ValueError(f"{key}: expected a string, got {value!r}")
        values.append(value)
    name, bin_package, lib_package = values
    return ProjectDefinition(name=name, bin_package=bin_package, lib_package=lib_package)


def _definition_from_package(package: CargoPackage) -> ProjectDefinition:
    if package.cdylib_target() is None:
        raise ValueError(
            "Cargo.toml has leptos metadata but is missing a cdylib library target. "
            f"{package.manifest_path}"
        )
    if not package.has_bin_target():
        raise ValueError(
            f"Cargo.toml has leptos metadata but is missing a bin target. {package.manifest_path}"
        )
    return ProjectDefinition(name=package.name, bin_package=package.name,
                             lib_package=package.name)


def parse_definitions(metadata: CargoMetadata) -> list[tuple[ProjectDefinition, ProjectConfig]]:
    """Find the projects defined in the workspace metadata and in the member packages."""
    found: list[tuple[ProjectDefinition, ProjectConfig]] = []

    workspace_sections = _leptos_metadata(metadata.workspace_metadata)
    if isinstance(workspace_sections, list):
        for section in workspace_sections:
            conf = parse_config(Path(), section, metadata)
            found.append((_definition_from_section(section), conf))

    for package in metadata.workspace_packages():
        section = _leptos_metadata(package.metadata)
        if section is None:
            continue
        try:
            manifest = package.manifest_path.relative_to(metadata.workspace_root)
        except ValueError as exc:
            raise ValueError(
                f"{package.manifest_path} is not inside {metadata.workspace_root}"
            ) from exc
        conf = parse_config(manifest.parent, section, metadata)
        found.append((_definition_from_package(package), conf))
    return found


def resolve_projects(
    cli: Opts,
    cwd: str | Path,
    metadata: CargoMetadata,
    watch: bool = False,
    bin_args: Sequence[str] | None = None,
) -> list[Project]:
    """Resolve every project; if exactly one lies under ``cwd``, only that one."""
    resolved: list[Project] = []
    is_workspace = len(metadata.workspace_members) > 1
    log.debug("Detected Workspace: %s", is_workspace)

    for definition, config in parse_definitions(metadata):
        if not config.output_name:
            config.output_name = definition.name

        lib = resolve_lib_package(cli, metadata, definition, config)
        bin_package = resolve_bin_package(cli, metadata, definition, config, bin_args)
        hash_file = hash_file_for(
            metadata.workspace_root if is_workspace else None,
            bin_package,
            config.hash_file_name,
        )
        resolved.append(
            Project(
                working_dir=metadata.workspace_root,
                name=definition.name,
                lib=lib,
                bin=bin_package,
                style=style_config(config),
                watch=watch,
                release=cli.release,
                precompress=cli.precompress,
                hot_reload=cli.hot_reload,
                wasm_debug=cli.wasm_debug,
                site=_site_for(config),
                end2end=resolve_end2end(config),
                assets=resolve_assets(config),
                js_dir=config.js_dir if config.js_dir is not None else Path("src"),
                watch_additional_files=list(config.watch_additional_files or []),
                hash_file=hash_file,
                hash_files=config.hash_files,
                js_minify=cli.release and (cli.js_minify or config.js_minify),
                server_fn_prefix=config.server_fn_prefix,
                disable_server_fn_hash=config.disable_server_fn_hash,
                server_fn_mod_path=config.server_fn_mod_path,
            )
        )

    cwd = Path(cwd)
    in_cwd = [
        project
        for project in resolved
        if Path(project.bin.abs_dir).is_relative_to(cwd)
        or Path(project.lib.abs_dir).is_relative_to(cwd)
    ]
    return in_cwd if len(in_cwd) == 1 else resolved