"""Cargo command lines for the front-end (wasm) and server builds."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from .project import Project

log = logging.getLogger(__name__)

_WASM_TARGET = "wasm32-unknown-unknown"


def build_cargo_command_string(args: Iterable[str]) -> str:
    """A printable ``cargo ...`` line, quoting arguments that contain spaces."""
    shown = (f"'{arg}'" if " " in arg else arg for arg in args)
    return " ".join(["cargo", *shown])


@dataclass
class CargoInvocation:
    """A cargo run: the program prefix, the cargo arguments and the extra environment."""

    program: list[str]
    args: list[str]
    envs: list[tuple[str, str]] = field(default_factory=list)

    @property
    def argv(self) -> list[str]:
        """The complete argument vector to execute."""
        return [*self.program, *self.args]

    @property
    def envs_str(self) -> str:
        """The extra environment as ``NAME=value`` pairs separated by spaces."""
        return " ".join(f"{name}={value}" for name, value in self.envs)

    @property
    def line(self) -> str:
        """The cargo command as shown to the user."""
        return build_cargo_command_string(self.args)

    def environment(self, base: Mapping[str, str] | None = None) -> dict[str, str]:
        """The environment for the child process: ``base`` with the extra variables."""
        env = dict(os.environ if base is None else base)
        env.update(self.envs)
        return env

    def spawn(self) -> subprocess.Popen:
        """Start the command."""
        return subprocess.Popen(self.argv, env=self.environment())


def build_cargo_front_cmd(cmd: str, wasm: bool, proj: Project) -> CargoInvocation:
    """The cargo invocation that builds or tests the lib package."""
    lib = proj.lib
    args = [
        cmd,
        f"--package={lib.name}",
        "--lib",
        f"--target-dir={lib.front_target_path}",
    ]
    if wasm:
        args.append(f"--target={_WASM_TARGET}")
    if not lib.default_features:
        args.append("--no-default-features")
    if lib.features:
        args.append(f"--features={','.join(lib.features)}")
    if lib.cargo_args is not None:
        args.extend(lib.cargo_args)
    args.extend(lib.profile.cargo_args())
    return CargoInvocation(program=["cargo"], args=args, envs=proj.to_envs())


def server_command(proj: Project) -> list[str]:
    """The program and leading arguments used instead of plain ``cargo`` for the server."""
    raw = proj.bin.cargo_command if proj.bin.cargo_command is not None else "cargo"
    try:
        words = shlex.split(raw)
    except ValueError as exc:
        raise ValueError(
            "bin-cargo-command cannot contain escaped quotes. Not sure why you'd want to"
        ) from exc
    if not words:
        raise ValueError("Failed to get bin command. This should default to cargo")
    return words


def build_cargo_server_cmd(cmd: str, proj: Project) -> CargoInvocation:
    """The cargo invocation that builds or tests the bin package."""
    bin_package = proj.bin
    args = [cmd, f"--package={bin_package.name}"]

    # a wasm server is built as a lib so that a wasm runtime can load it
    server_is_wasm = (
        bin_package.target_triple is not None and "wasm" in bin_package.target_triple
    )
    if cmd != "test":
        args.append("--lib" if server_is_wasm else f"--bin={bin_package.target}")

    if bin_package.target_dir is not None:
        args.append(f"--target-dir={bin_package.target_dir}")
    if bin_package.target_triple is not None:
        args.append(f"--target={bin_package.target_triple}")
    if not bin_package.default_features:
        args.append("--no-default-features")
    if bin_package.features:
        args.append(f"--features={','.join(bin_package.features)}")

    log.debug("BIN CARGO ARGS: %r", bin_package.cargo_args)
    if bin_package.cargo_args is not None:
        args.extend(bin_package.cargo_args)
    args.extend(bin_package.profile.cargo_args())
    return CargoInvocation(program=server_command(proj), args=args, envs=proj.to_envs())


def front_cargo_process(
    cmd: str, wasm: bool, proj: Project
) -> tuple[str, str, subprocess.Popen]:
    """Start cargo for the lib package; return the env string, the line and the process."""
    invocation = build_cargo_front_cmd(cmd, wasm, proj)
    return invocation.envs_str, invocation.line, invocation.spawn()


def server_cargo_process(cmd: str, proj: Project) -> tuple[str, str, subprocess.Popen]:
    """Start cargo for the bin package; return the env string, the line and the process."""
    invocation = build_cargo_server_cmd(cmd, proj)
    log.debug("CARGO SERVER COMMAND: %r", invocation.argv)
    return invocation.envs_str, invocation.line, invocation.spawn()