"""Reading `.env` files and overlaying environment settings onto a project config."""

from __future__ import annotations

import enum
import logging
import os
from collections.abc import Iterable, Mapping
from pathlib import Path

from dotenv import dotenv_values

from .project_config import ProjectConfig, parse_socket_addr
from .version import ENV_VAR_LEPTOS_SASS_VERSION, ENV_VAR_LEPTOS_TAILWIND_VERSION

log = logging.getLogger(__name__)


def load_dotenvs(directory: str | os.PathLike[str]) -> list[tuple[str, str]] | None:
    """Read the nearest `.env` file in ``directory`` or one of its parents."""
    current = Path(directory)
    while True:
        candidate = current / ".env"
        if candidate.is_file():
            return [
                (key, "" if value is None else value)
                for key, value in dotenv_values(candidate).items()
            ]
        parent = current.parent
        if parent == current:
            return None
        current = parent


def _parse_bool(key: str, value: str) -> bool:
    if value == "true":
        return True
    if value == "false":
        return False
    raise ValueError(f"{key}: provided string was not `true` or `false`: {value!r}")


def _parse_port(key: str, value: str) -> int:
    digits = value[1:] if value.startswith("+") else value
    if not digits.isascii() or not digits.isdigit() or int(digits) > 0xFFFF:
        raise ValueError(f"{key}: invalid port number: {value!r}")
    return int(digits)


class _Kind(enum.Enum):
    TEXT = "text"
    PATH = "path"
    ADDR = "addr"
    PORT = "port"
    BOOL = "bool"
    PRESENT = "present"


def _convert(kind: _Kind, key: str, val: str) -> object:
    """Turn the raw variable value into the value stored on the config."""
    if kind is _Kind.PATH:
        return Path(val)
    if kind is _Kind.ADDR:
        return parse_socket_addr(val)
    if kind is _Kind.PORT:
        return _parse_port(key, val)
    if kind is _Kind.BOOL:
        return _parse_bool(key, val)
    if kind is _Kind.PRESENT:
        # the variable being set at all switches the option on
        return True
    return val


_FIELDS: dict[str, tuple[str, _Kind]] = {
    "LEPTOS_OUTPUT_NAME": ("output_name", _Kind.TEXT),
    "LEPTOS_SITE_ROOT": ("site_root", _Kind.PATH),
    "LEPTOS_SITE_PKG_DIR": ("site_pkg_dir", _Kind.PATH),
    "LEPTOS_STYLE_FILE": ("style_file", _Kind.PATH),
    "LEPTOS_ASSETS_DIR": ("assets_dir", _Kind.PATH),
    "LEPTOS_SITE_ADDR": ("site_addr", _Kind.ADDR),
    "LEPTOS_RELOAD_PORT": ("reload_port", _Kind.PORT),
    "LEPTOS_END2END_CMD": ("end2end_cmd", _Kind.TEXT),
    "LEPTOS_END2END_DIR": ("end2end_dir", _Kind.PATH),
    "LEPTOS_HASH_FILES": ("hash_files", _Kind.BOOL),
    "LEPTOS_HASH_FILE_NAME": ("hash_file_name", _Kind.PATH),
    "LEPTOS_BROWSERQUERY": ("browserquery", _Kind.TEXT),
    "LEPTOS_BIN_EXE_NAME": ("bin_exe_name", _Kind.TEXT),
    "LEPTOS_BIN_TARGET": ("bin_target", _Kind.TEXT),
    "LEPTOS_BIN_TARGET_TRIPLE": ("bin_target_triple", _Kind.TEXT),
    "LEPTOS_BIN_TARGET_DIR": ("bin_target_dir", _Kind.TEXT),
    "LEPTOS_BIN_CARGO_COMMAND": ("bin_cargo_command", _Kind.TEXT),
    "LEPTOS_JS_MINIFY": ("js_minify", _Kind.BOOL),
    "SERVER_FN_PREFIX": ("server_fn_prefix", _Kind.TEXT),
    "DISABLE_SERVER_FN_HASH": ("disable_server_fn_hash", _Kind.PRESENT),
}

_IGNORED = frozenset({ENV_VAR_LEPTOS_TAILWIND_VERSION, ENV_VAR_LEPTOS_SASS_VERSION})


def overlay(conf: ProjectConfig, envs: Iterable[tuple[str, str]]) -> None:
    """Apply recognised LEPTOS_* and server function variables to ``conf``."""
    for key, val in envs:
        field = _FIELDS.get(key)
        if field is not None:
            attr, kind = field
            setattr(conf, attr, _convert(kind, key, val))
        elif key in _IGNORED:
            continue
        elif key.startswith("LEPTOS_"):
            log.warning("Env %s is not used by leptosbuild", key)


def overlay_env(
    conf: ProjectConfig,
    dotenvs: Iterable[tuple[str, str]] | None,
    environ: Mapping[str, str] | None = None,
) -> None:
    """Apply `.env` values, then the process environment, which wins."""
    if dotenvs is not None:
        overlay(conf, dotenvs)
    overlay(conf, (os.environ if environ is None else environ).items())