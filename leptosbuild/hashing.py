"""Content hashes in the file names of the generated front-end files."""

from __future__ import annotations

import base64
import hashlib
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

log = logging.getLogger(__name__)


def _hash_bytes(data: bytes) -> str:
    digest = hashlib.md5(data, usedforsecurity=False).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def _extension(path: Path) -> str:
    if not path.suffix:
        raise ValueError(f"no extension: {path}")
    return path.suffix[1:]


def _lookup(table: Mapping[Path, Any], path: Path) -> Any:
    try:
        return table[Path(path)]
    except KeyError:
        raise ValueError(f"no hashed file for {path}") from None


def _skipped(path: Path, css_site_file: Path) -> bool:
    """Other CSS files, and inline JS snippets that the wasm loads by their plain name."""
    if path.suffix == ".css" and path != css_site_file:
        return True
    return "snippets" in str(path) and "inline" in path.name and path.suffix == ".js"


def compute_front_file_hashes(proj: Any) -> dict[Path, str]:
    """Hash every front-end file below the package directory of the site."""
    css_site_file = Path(proj.style.site_file.dest)
    hashes: dict[Path, str] = {}
    stack = [Path(proj.site.root_relative_pkg_dir())]
    while stack:
        directory = stack.pop()
        try:
            entries = list(os.scandir(directory))
        except OSError:
            continue
        for entry in entries:
            path = directory / entry.name
            if path.is_file():
                if _skipped(path, css_site_file):
                    continue
                hashes[path] = _hash_bytes(path.read_bytes())
            elif path.is_dir():
                stack.append(path)
    return hashes


def rename_files(files_to_hashes: Mapping[Path, str]) -> dict[Path, Path]:
    """Rename each file to ``<stem>.<hash>.<ext>``; return the old to new mapping."""
    old_to_new: dict[Path, Path] = {}
    for path, digest in files_to_hashes.items():
        path = Path(path)
        extension = _extension(path)
        new_path = path.with_name(f"{path.stem}.{digest}.{extension}")
        try:
            path.rename(new_path)
        except OSError as exc:
            raise OSError(f"Failed to rename {path} to {new_path}") from exc
        old_to_new[path] = new_path
    return old_to_new


def replace_in_file(
    path: str | Path, old_to_new_paths: Mapping[Path, Path], root_dir: str | Path
) -> None:
    """Rewrite references to renamed files, relative to ``root_dir``, inside a file."""
    path = Path(path)
    root_dir = Path(root_dir)
    contents = path.read_text()
    for old_path, new_path in old_to_new_paths.items():
        try:
            old_rel = Path(old_path).relative_to(root_dir)
            new_rel = Path(new_path).relative_to(root_dir)
        except ValueError as exc:
            raise ValueError(f"could not strip root path {root_dir}") from exc
        contents = contents.replace(old_rel.as_posix(), new_rel.as_posix())
    path.write_text(contents)


def add_hashes_to_site(proj: Any) -> None:
    """Add content hashes to the CSS, JS and wasm file names and write the hash file."""
    files_to_hashes = compute_front_file_hashes(proj)
    log.debug("Hash computed: %r", files_to_hashes)

    renamed = rename_files(files_to_hashes)
    js_dest = Path(proj.lib.js_file.dest)
    replace_in_file(_lookup(renamed, js_dest), renamed, proj.site.root_relative_pkg_dir())

    hash_path = Path(proj.hash_file.abs)
    try:
        hash_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OSError(f"Failed to create parent dir for {hash_path}") from exc

    dests = (js_dest, Path(proj.lib.wasm_file.dest), Path(proj.style.site_file.dest))
    content = "".join(
        f"{_extension(dest)}: {_lookup(files_to_hashes, dest)}\n" for dest in dests
    )
    try:
        hash_path.write_text(content)
    except OSError as exc:
        raise OSError(f"Failed to write hash file to {hash_path}") from exc
    log.debug("Hash written to %s", hash_path)