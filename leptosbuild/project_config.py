"""The per-project settings read from the leptos metadata section."""

from __future__ import annotations

import ipaddress
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

CARGO_TARGET_DIR_MARKER = "CARGO_TARGET_DIR"
CARGO_BUILD_TARGET_DIR_MARKER = "CARGO_BUILD_TARGET_DIR"


def parse_socket_addr(text: str) -> str:
    """Validate an ``ip:port`` address and return it in canonical form."""
    host, sep, port_text = text.rpartition(":")
    if not sep or not port_text.isascii() or not port_text.isdigit():
        raise ValueError(f"invalid socket address syntax: {text!r}")
    try:
        if host.startswith("[") and host.endswith("]"):
            shown = f"[{ipaddress.IPv6Address(host[1:-1])}]"
        else:
            shown = str(ipaddress.IPv4Address(host))
    except ValueError as exc:
        raise ValueError(f"invalid socket address syntax: {text!r}") from exc
    port = int(port_text)
    if port > 0xFFFF:
        raise ValueError(f"invalid socket address syntax: {text!r}")
    return f"{shown}:{port}"


@dataclass(frozen=True)
class SiteFile:
    """A file of the generated site: its path on disk and relative to the site root."""

    dest: Path
    site: Path


@dataclass(frozen=True)
class SourcedSiteFile:
    """A site file that is produced from a source file."""

    source: Path
    dest: Path
    site: Path


@dataclass
class ProjectConfig:
    """Settings of one leptos project, before resolution against cargo metadata."""

    output_name: str = ""
    site_addr: str = "127.0.0.1:3000"
    site_root: Path = field(default_factory=lambda: Path(CARGO_TARGET_DIR_MARKER) / "site")
    site_pkg_dir: Path = field(default_factory=lambda: Path("pkg"))
    style_file: Path | None = None
    hash_file_name: Path | None = None
    hash_files: bool = False
    tailwind_input_file: Path | None = None
    tailwind_config_file: Path | None = None
    assets_dir: Path | None = None
    js_dir: Path | None = None
    js_minify: bool = True
    watch_additional_files: list[Path] | None = None
    reload_port: int = 3001
    end2end_cmd: str | None = None
    end2end_dir: Path | None = None
    browserquery: str = "defaults"
    bin_target: str = ""
    bin_target_triple: str | None = None
    bin_target_dir: str | None = None
    bin_cargo_command: str | None = None
    bin_cargo_args: list[str] | None = None
    bin_exe_name: str | None = None
    features: list[str] = field(default_factory=list)
    lib_features: list[str] = field(default_factory=list)
    lib_default_features: bool = False
    lib_cargo_args: list[str] | None = None
    bin_features: list[str] = field(default_factory=list)
    bin_default_features: bool = False
    server_fn_prefix: str | None = None
    disable_server_fn_hash: bool = False
    server_fn_mod_path: bool = False
    config_dir: Path = field(default_factory=Path)
    tmp_dir: Path = field(default_factory=Path)
    separate_front_target_dir: bool | None = None
    lib_profile_dev: str | None = None
    lib_profile_release: str | None = None
    bin_profile_dev: str | None = None
    bin_profile_release: str | None = None

    @property
    def site_port(self) -> int:
        """The port part of ``site_addr``."""
        return int(self.site_addr.rpartition(":")[2])


_Converter = Callable[[str, Any], Any]


def _string(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{key}: expected a string, got {value!r}")
    return value


def _bool(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{key}: expected a boolean, got {value!r}")
    return value


def _path(key: str, value: Any) -> Path:
    return Path(_string(key, value))


def _string_list(key: str, value: Any) -> list[str]:
    if not isinstance(value, list):
        raise ValueError(f"{key}: expected a list of strings, got {value!r}")
    return [_string(key, item) for item in value]


def _path_list(key: str, value: Any) -> list[Path]:
    return [Path(item) for item in _string_list(key, value)]


def _port(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 0xFFFF:
        raise ValueError(f"{key}: expected a port number, got {value!r}")
    return value


def _addr(key: str, value: Any) -> str:
    try:
        return parse_socket_addr(_string(key, value))
    except ValueError as exc:
        raise ValueError(f"{key}: {exc}") from exc


def _optional(convert: _Converter) -> _Converter:
    def converter(key: str, value: Any) -> Any:
        return None if value is None else convert(key, value)

    return converter


_FIELDS: dict[str, tuple[str, _Converter]] = {
    "output-name": ("output_name", _string),
    "site-addr": ("site_addr", _addr),
    "site-root": ("site_root", _path),
    "site-pkg-dir": ("site_pkg_dir", _path),
    "style-file": ("style_file", _optional(_path)),
    "hash-file-name": ("hash_file_name", _optional(_path)),
    "hash-files": ("hash_files", _bool),
    "tailwind-input-file": ("tailwind_input_file", _optional(_path)),
    "tailwind-config-file": ("tailwind_config_file", _optional(_path)),
    "assets-dir": ("assets_dir", _optional(_path)),
    "js-dir": ("js_dir", _optional(_path)),
    "js-minify": ("js_minify", _bool),
    "watch-additional-files": ("watch_additional_files", _optional(_path_list)),
    "reload-port": ("reload_port", _port),
    "end2end-cmd": ("end2end_cmd", _optional(_string)),
    "end2end-dir": ("end2end_dir", _optional(_path)),
    "browserquery": ("browserquery", _string),
    "bin-target": ("bin_target", _string),
    "bin-target-triple": ("bin_target_triple", _optional(_string)),
    "bin-target-dir": ("bin_target_dir", _optional(_string)),
    "bin-cargo-command": ("bin_cargo_command", _optional(_string)),
    "bin-cargo-args": ("bin_cargo_args", _optional(_string_list)),
    "bin-exe-name": ("bin_exe_name", _optional(_string)),
    "features": ("features", _string_list),
    "lib-features": ("lib_features", _string_list),
    "lib-default-features": ("lib_default_features", _bool),
    "lib-cargo-args": ("lib_cargo_args", _optional(_string_list)),
    "bin-features": ("bin_features", _string_list),
    "bin-default-features": ("bin_default_features", _bool),
    "server-fn-prefix": ("server_fn_prefix", _optional(_string)),
    "disable-server-fn-hash": ("disable_server_fn_hash", _bool),
    "server-fn-mod-path": ("server_fn_mod_path", _bool),
    "separate-front-target-dir": ("separate_front_target_dir", _optional(_bool)),
    "lib-profile-dev": ("lib_profile_dev", _optional(_string)),
    "lib-profile-release": ("lib_profile_release", _optional(_string)),
    "bin-profile-dev": ("bin_profile_dev", _optional(_string)),
    "bin-profile-release": ("bin_profile_release", _optional(_string)),
}


def project_config_from_dict(data: Mapping[str, Any]) -> ProjectConfig:
    """Build a config from a kebab-case metadata table; unknown keys are ignored."""
    if not isinstance(data, Mapping):
        raise ValueError(f"expected a table of leptos settings, got {data!r}")
    values = {
        attr: convert(key, data[key]) for key, (attr, convert) in _FIELDS.items() if key in data
    }
    return ProjectConfig(**values)