"""Smaller pieces of a resolved project: assets, end-to-end tests, hash file and styles."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .project_config import ProjectConfig, SiteFile, SourcedSiteFile
from .version import VersionConfig

log = logging.getLogger(__name__)

_DEFAULT_HASH_FILE = "hash.txt"
_DEFAULT_TAILWIND_CONFIG = "tailwind.config.js"


def _with_extension(path: Path, ext: str) -> Path:
    """Replace the extension of the last component, or drop it when ``ext`` is empty."""
    if not path.name:
        return path
    return path.with_suffix(f".{ext}" if ext else "")


class _ExecutableOwner(Protocol):
    exe_file: Path
    abs_dir: Path


@dataclass(frozen=True)
class AssetsConfig:
    """The directory whose content is copied to the site root."""

    dir: Path


def resolve_assets(config: ProjectConfig) -> AssetsConfig | None:
    """The assets directory, relative to the configuration file, if one is set."""
    if config.assets_dir is None:
        return None
    return AssetsConfig(dir=config.config_dir / config.assets_dir)


@dataclass(frozen=True)
class End2EndConfig:
    """The command that runs the end-to-end tests and the directory it runs in."""

    cmd: str
    dir: Path


def resolve_end2end(config: ProjectConfig) -> End2EndConfig | None:
    """The end-to-end settings, present only when a command is configured."""
    if config.end2end_cmd is None:
        return None
    directory = config.end2end_dir if config.end2end_dir is not None else Path()
    return End2EndConfig(cmd=config.end2end_cmd, dir=directory)


@dataclass(frozen=True)
class HashFile:
    """Where the hashes of the front-end files are written."""

    abs: Path
    rel: Path


def hash_file_for(
    workspace_root: Path | None,
    bin_package: _ExecutableOwner,
    rel: Path | None = None,
) -> HashFile:
    """Place the hash file next to the server executable."""
    rel_path = Path(rel) if rel is not None else Path(_DEFAULT_HASH_FILE)
    exe_file_dir = Path(bin_package.exe_file).parent
    if workspace_root is not None:
        log.debug("BIN PARENT: %s", exe_file_dir)
        abs_path = Path(workspace_root) / exe_file_dir / rel_path
    else:
        abs_path = Path(bin_package.abs_dir) / exe_file_dir / rel_path
    return HashFile(abs=abs_path, rel=rel_path)


@dataclass(frozen=True)
class TailwindConfig:
    """Input, optional JS config and temporary output of the Tailwind step."""

    input_file: Path
    config_file: Path | None
    tmp_file: Path


def tailwind_config(config: ProjectConfig) -> TailwindConfig | None:
    """The Tailwind settings, or None when no input file is configured."""
    if config.tailwind_input_file is None:
        if config.tailwind_config_file is not None:
            raise ValueError(
                "The Cargo.toml `tailwind-input-file` is required when using "
                "`tailwind-config-file`"
            )
        return None
    input_file = config.config_dir / config.tailwind_input_file

    if VersionConfig.TAILWIND.version().startswith("v4"):
        if (
            config.tailwind_config_file is not None
            or (config.config_dir / _DEFAULT_TAILWIND_CONFIG).exists()
        ):
            log.info(
                "JavaScript config files are no longer required in Tailwind CSS v4. "
                "Refer to the Tailwind upgrade guide if you still need one."
            )
        config_file = config.tailwind_config_file
    else:
        name = (
            config.tailwind_config_file
            if config.tailwind_config_file is not None
            else Path(_DEFAULT_TAILWIND_CONFIG)
        )
        config_file = config.config_dir / name

    return TailwindConfig(
        input_file=input_file,
        config_file=config_file,
        tmp_file=config.tmp_dir / "tailwind.css",
    )


@dataclass(frozen=True)
class StyleConfig:
    """Style sources of a project and the CSS file they produce."""

    file: SourcedSiteFile | None
    browserquery: str
    tailwind: TailwindConfig | None
    site_file: SiteFile


def style_config(config: ProjectConfig) -> StyleConfig:
    """Resolve the style file, Tailwind settings and the output CSS file."""
    site_rel = _with_extension(config.site_pkg_dir / config.output_name, "css")
    site_file = SiteFile(dest=config.site_root / site_rel, site=site_rel)

    style_file = None
    if config.style_file is not None:
        style_file = SourcedSiteFile(
            source=config.config_dir / config.style_file,
            dest=config.site_root / site_rel,
            site=site_rel,
        )
    return StyleConfig(
        file=style_file,
        browserquery=config.browserquery,
        tailwind=tailwind_config(config),
        site_file=site_file,
    )