"""Copying the assets directory into the site root."""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from .change import ChangeSet

log = logging.getLogger(__name__)

_INDEX = "index.html"
_DEFAULT_PKG_DIR_NAME = "pkg"


def reserved(src: str | Path, pkg_dir: str | Path) -> list[Path]:
    """Paths in the assets directory that are never copied."""
    return [Path(src) / _INDEX, Path(pkg_dir)]


def clean_dest(dest: str | Path, pkg_dir: str | Path) -> None:
    """Remove everything from ``dest`` except the package directory and index.html."""
    pkg_dir_name = Path(pkg_dir).name
    if not pkg_dir_name:
        log.warning("Assets No site-pkg-dir given, defaulting to 'pkg' for checks what to delete.")
        log.warning("Assets This will probably delete already generated files.")
        pkg_dir_name = _DEFAULT_PKG_DIR_NAME

    with os.scandir(dest) as entries:
        for entry in list(entries):
            if entry.is_dir(follow_symlinks=False):
                if entry.name != pkg_dir_name:
                    log.debug("Assets removing folder %s", entry.path)
                    shutil.rmtree(entry.path)
            elif entry.name != _INDEX:
                log.debug("Assets removing file %s", entry.path)
                os.remove(entry.path)


def mirror(
    src_root: str | Path, dest_root: str | Path, reserved_paths: Sequence[Path]
) -> None:
    """Copy the entries of ``src_root`` into ``dest_root``, skipping reserved paths."""
    src_root = Path(src_root)
    dest_root = Path(dest_root)
    reserved_set = {Path(p) for p in reserved_paths}
    with os.scandir(src_root) as entries:
        for entry in list(entries):
            source = src_root / entry.name
            target = dest_root / entry.name
            if source in reserved_set:
                log.warning("Assets skipping reserved path %s", source)
                continue
            if entry.is_dir(follow_symlinks=False):
                log.debug("Assets copy folder %s -> %s", source, target)
                shutil.copytree(source, target, dirs_exist_ok=True)
            else:
                log.debug("Assets copy file %s -> %s", source, target)
                shutil.copy(source, target)


def resync(src: str | Path, dest: str | Path, pkg_dir: str | Path) -> None:
    """Clean the site root and copy the assets into it again."""
    try:
        clean_dest(dest, pkg_dir)
    except OSError as exc:
        raise RuntimeError(f"Cleaning {dest}") from exc
    try:
        mirror(src, dest, reserved(src, pkg_dir))
    except OSError as exc:
        raise RuntimeError(f"Mirroring {src} -> {dest}") from exc


def sync_assets(proj: Any, changes: ChangeSet) -> bool:
    """Resync the assets when they changed; return True if the site's assets were updated."""
    if not changes.need_assets_change() or proj.assets is None:
        return False
    log.debug("Assets starting resync")
    resync(proj.assets.dir, proj.site.root_dir, proj.site.pkg_dir)
    log.debug("Assets finished")
    return True