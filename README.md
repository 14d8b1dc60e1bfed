# leptosbuild

A library for building Leptos web projects from Python. It reads the
`[package.metadata.leptos]` and `[[workspace.metadata.leptos]]` sections of a
Cargo workspace, resolves them into projects, and assembles the `cargo`
invocations that build the server binary and the WebAssembly front end.

## What it does

- `leptosbuild.config.load_config` runs `cargo metadata` for a manifest and
  resolves every Leptos project in it; `config_from_metadata` does the same
  for metadata you already have (see `leptosbuild.packages.metadata_from_json`).
- Each `leptosbuild.project.Project` carries its lib and bin packages, site
  root and package directory, style and Tailwind settings, assets directory,
  end-to-end test command and hash file.
- Settings are overlaid from the nearest `.env` file (searched upwards from
  the project directory) and then from `LEPTOS_*` environment variables
  (`leptosbuild.dotenvs`).
- `leptosbuild.cargo` builds the exact `cargo` argument lists and environment
  for the server and front-end builds, including profiles, features, target
  triples and extra cargo arguments, and can start them as subprocesses.
- `leptosbuild.change` tracks which kinds of source changed and which build
  steps they require.
- `leptosbuild.hashing.add_hashes_to_site` adds content hashes to the
  generated CSS, JS and WASM file names and writes the hash file.
- `leptosbuild.assets_sync` mirrors an assets directory into the site root.
- `leptosbuild.commands.test_all` runs `cargo test` for the server and front
  end of every project and raises `RuntimeError` naming the first project
  whose tests failed.

## Usage

```python
from leptosbuild.cli import Opts
from leptosbuild.config import load_config
from leptosbuild.cargo import build_cargo_server_cmd, build_cargo_front_cmd

conf = load_config(Opts(), "examples", "examples/workspace/Cargo.toml", True, None)

for proj in conf.projects:
    server = build_cargo_server_cmd("build", proj)
    front = build_cargo_front_cmd("build", True, proj)
    print(proj.name)
    print(server.line)      # e.g. cargo build --package=... --bin=...
    print(front.line)
    print(server.envs_str)  # LEPTOS_OUTPUT_NAME=... LEPTOS_SITE_ROOT=... ...
```

A `CargoInvocation` has `argv` (the full argument vector), `environment()`
(the process environment plus the project variables) and `spawn()`.

When a workspace defines several projects, pick one with the `project` field
of `Opts`, or call `Config.current_project()`, which raises `ValueError` when
more than one project is available.

`Project.to_envs()` lists the variables passed to every cargo run:
`LEPTOS_OUTPUT_NAME`, `LEPTOS_SITE_ROOT`, `LEPTOS_SITE_PKG_DIR`,
`LEPTOS_SITE_ADDR`, `LEPTOS_RELOAD_PORT`, `LEPTOS_LIB_DIR`, `LEPTOS_BIN_DIR`,
`LEPTOS_JS_MINIFY`, `LEPTOS_HASH_FILES`, and, when they apply,
`LEPTOS_HASH_FILE_NAME`, `LEPTOS_WATCH`, `SERVER_FN_PREFIX`,
`DISABLE_SERVER_FN_HASH` and `SERVER_FN_MOD_PATH`.

### Change tracking

```python
from leptosbuild.change import Change, ChangeSet, all_changes

changes = ChangeSet()
changes.add(Change.STYLE)
changes.need_style_build(True, False)   # True
changes.need_server_build()             # False
all_changes().need_front_build()        # True
```

### Command-line arguments

`leptosbuild.cli.parse_args(argv)` parses the `build`, `test`, `end-to-end`,
`serve`, `watch` and `new` subcommands with their options into a `Cli`
object. `Cli.opts()` returns a copy of the build options for every subcommand
except `new`; for `serve` and `watch`, arguments after `--` are kept in
`Cli.bin_args`. For `new`, `NewCommand.generate_args()` returns the template
settings, with starter names such as `start-axum` expanded to full repository
URLs by `absolute_git_url`.

## Configuration keys

The keys under `[package.metadata.leptos]` are kebab-case: `output-name`,
`site-root`, `site-pkg-dir`, `site-addr`, `reload-port`, `style-file`,
`tailwind-input-file`, `tailwind-config-file`, `assets-dir`, `js-dir`,
`bin-features`, `lib-features`, `bin-target`, `bin-target-triple`,
`bin-cargo-command`, `hash-files`, `end2end-cmd` and so on; unknown keys are
ignored. The site root defaults to `CARGO_TARGET_DIR/site` (the cargo target
directory), the package directory to `pkg`, the site address to
`127.0.0.1:3000` and the reload port to `3001`. The site root may never be
`/`, `.` or the bare target directory, and the site and reload ports must
differ; these raise `ValueError`.

## What it does not do

- There is no installed command: `parse_args` parses a command line, but
  nothing dispatches the parsed subcommands.
- It does not serve the site, watch files, or send live-reload signals.
- It does not run wasm-bindgen, optimise WebAssembly, minify JavaScript,
  compile Sass or Tailwind, process CSS, or precompress static files.
- It does not generate new projects from templates; `NewCommand` only
  prepares the settings for doing so.