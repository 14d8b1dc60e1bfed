"""Command line parsing."""

from __future__ import annotations

import argparse
import copy
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

_VERSION = "0.2.32"

_STARTER_HOST = "github.com"
_STARTER_OWNER = "leptos-rs"


class Log(Enum):
    """Dependency log sources that can be switched on."""

    WASM = "wasm"
    SERVER = "server"

    def __str__(self) -> str:
        return self.value


class Command(Enum):
    """The subcommands."""

    BUILD = "build"
    TEST = "test"
    END_TO_END = "end-to-end"
    SERVE = "serve"
    WATCH = "watch"
    NEW = "new"


@dataclass
class Opts:
    """Options shared by the build-related subcommands."""

    release: bool = False
    precompress: bool = False
    hot_reload: bool = False
    project: str | None = None
    features: list[str] = field(default_factory=list)
    lib_features: list[str] = field(default_factory=list)
    lib_cargo_args: list[str] | None = None
    bin_features: list[str] = field(default_factory=list)
    bin_cargo_args: list[str] | None = None
    wasm_debug: bool = False
    verbose: int = 0
    js_minify: bool = False


def absolute_git_url(url: str | None) -> str | None:
    """Expand the short names of the starter templates into full repository URLs."""
    if url is None:
        return None
    aliases = {
        "start-trunk": "start-trunk",
        "start-actix": "start-actix",
        "start": "start-actix",
        "start-axum": "start-axum",
        "start-axum-workspace": "start-axum-workspace",
        "start-aws": "start-aws",
        "start-spin": "start-spin",
    }
    short = url.removeprefix(f"{_STARTER_OWNER}/")
    # bare "start" is only an alias when written with the owner
    if short == "start" and url == short:
        return url
    repo = aliases.get(short)
    if repo is None:
        return url
    return f"https://{_STARTER_HOST}/{_STARTER_OWNER}/{repo}"


@dataclass
class NewCommand:
    """Options for creating a new project from a template."""

    git: str | None = None
    branch: str | None = None
    tag: str | None = None
    path: str | None = None
    name: str | None = None
    force: bool = False
    verbose: bool = False
    init: bool = False

    def generate_args(self) -> dict[str, object]:
        """The template generator settings, with short git names expanded."""
        return {
            "git": absolute_git_url(self.git),
            "branch": self.branch,
            "tag": self.tag,
            "path": self.path,
            "name": self.name,
            "force": self.force,
            "verbose": self.verbose,
            "init": self.init,
        }


@dataclass
class Cli:
    """The parsed command line."""

    command: Command
    manifest_path: Path | None = None
    log: list[Log] = field(default_factory=list)
    options: Opts | None = None
    bin_args: list[str] | None = None
    new: NewCommand | None = None

    def opts(self) -> Opts | None:
        """A copy of the build options, or None for the ``new`` command."""
        if self.command is Command.NEW or self.options is None:
            return None
        return copy.deepcopy(self.options)


_TRUE_WORDS = {"y", "yes", "t", "true", "on", "1"}
_FALSE_WORDS = {"n", "no", "f", "false", "off", "0"}


def _boolish(text: str) -> bool:
    word = text.lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value: {text!r}")


def _add_opts(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-r", "--release", action="store_true",
                        help="Build artifacts in release mode, with optimizations.")
    parser.add_argument("-P", "--precompress", action="store_true",
                        help="Precompress static assets with gzip and brotli (release only).")
    parser.add_argument("--hot-reload", action="store_true",
                        help="Turn on partial hot-reloading.")
    parser.add_argument("-p", "--project",
                        help="Which project to use, from the projects defined in a workspace.")
    parser.add_argument("--features", action="append", default=[],
                        help="The features to use when compiling all targets.")
    parser.add_argument("--lib-features", action="append", default=[],
                        help="The features to use when compiling the lib target.")
    parser.add_argument("--lib-cargo-args", action="append", default=None,
                        help="The cargo flags to pass when compiling the lib target.")
    parser.add_argument("--bin-features", action="append", default=[],
                        help="The features to use when compiling the bin target.")
    parser.add_argument("--bin-cargo-args", action="append", default=None,
                        help="The cargo flags to pass when compiling the bin target.")
    parser.add_argument("--wasm-debug", action="store_true",
                        help="Include debug information in Wasm output.")
    parser.add_argument("-v", dest="verbose", action="count", default=0,
                        help="Verbosity (-v: verbose, -vv: very verbose).")
    parser.add_argument("--js-minify", type=_boolish, default=True, metavar="BOOL",
                        help="Minify javascript assets (release only).")


def build_parser() -> argparse.ArgumentParser:
    """The argument parser for the whole command line."""
    parser = argparse.ArgumentParser(prog="leptosbuild", description="Build tool for Leptos.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_VERSION}")
    parser.add_argument("--manifest-path", type=Path, help="Path to Cargo.toml.")
    parser.add_argument("--log", action="append", type=Log, choices=list(Log), default=[],
                        help="Output logs from dependencies (may be repeated).")
    sub = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    helps = {
        Command.BUILD: "Build the server (feature ssr) and the client (wasm with feature hydrate).",
        Command.TEST: "Run the cargo tests for app, client and server.",
        Command.END_TO_END: "Start the server and end-2-end tests.",
        Command.SERVE: "Serve. Defaults to hydrate mode.",
        Command.WATCH: "Serve and automatically reload when files change.",
    }
    for command, text in helps.items():
        command_parser = sub.add_parser(command.value, help=text, description=text)
        _add_opts(command_parser)
        if command in (Command.SERVE, Command.WATCH):
            command_parser.add_argument("bin_args", nargs="*", metavar="BIN_ARGS")

    new = sub.add_parser(
        Command.NEW.value,
        help="Start a wizard for creating a new project from a template.",
    )
    source = new.add_mutually_exclusive_group()
    source.add_argument("-g", "--git",
                        help="Git repository to clone the template from, or a starter name.")
    source.add_argument("-p", "--path", help="Local path to copy the template from.")
    ref = new.add_mutually_exclusive_group()
    ref.add_argument("-b", "--branch", help="Branch to use when installing from git.")
    ref.add_argument("-t", "--tag", help="Tag to use when installing from git.")
    new.add_argument("-n", "--name", help="Directory to create / project name.")
    new.add_argument("-f", "--force", action="store_true",
                     help="Don't convert the project name to kebab-case.")
    new.add_argument("-v", "--verbose", action="store_true", help="Enable more verbose output.")
    new.add_argument("--init", action="store_true",
                     help="Generate the template directly into the current dir.")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> Cli:
    """Parse the command line; exits with usage on errors like any argparse tool."""
    args = list(sys.argv[1:] if argv is None else argv)
    trailing: list[str] = []
    if "--" in args:
        split = args.index("--")
        args, trailing = args[:split], args[split + 1:]

    parser = build_parser()
    ns = parser.parse_args(args)
    command = Command(ns.command)
    cli = Cli(command=command, manifest_path=ns.manifest_path, log=list(ns.log))

    if trailing and command not in (Command.SERVE, Command.WATCH):
        parser.error(f"unexpected arguments: {' '.join(trailing)}")

    if command is Command.NEW:
        new = NewCommand(
            git=ns.git, branch=ns.branch, tag=ns.tag, path=ns.path, name=ns.name,
            force=ns.force, verbose=ns.verbose, init=ns.init,
        )
        if new == NewCommand():
            parser.error("the 'new' command needs at least one argument")
        cli.new = new
        return cli

    cli.options = Opts(
        release=ns.release,
        precompress=ns.precompress,
        hot_reload=ns.hot_reload,
        project=ns.project,
        features=ns.features,
        lib_features=ns.lib_features,
        lib_cargo_args=ns.lib_cargo_args,
        bin_features=ns.bin_features,
        bin_cargo_args=ns.bin_cargo_args,
        wasm_debug=ns.wasm_debug,
        verbose=ns.verbose,
        js_minify=ns.js_minify,
    )
    if command in (Command.SERVE, Command.WATCH):
        cli.bin_args = list(ns.bin_args) + trailing
    return cli