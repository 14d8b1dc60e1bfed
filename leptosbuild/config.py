"""The overall build configuration: every selected project and the options."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from .cli import Opts
from .packages import CargoMetadata, load_metadata
from .project import Project, resolve_projects


def _names(projects: Sequence[Project]) -> str:
    return ", ".join(project.name for project in projects)


@dataclass
class Config:
    """The projects to work on, with the command line options they were resolved with."""

    working_dir: Path
    projects: list[Project]
    cli: Opts
    watch: bool

    def current_project(self) -> Project:
        """The single selected project; fails when several are available."""
        if len(self.projects) == 1:
            return self.projects[0]
        raise ValueError(
            f"There are several projects available ({_names(self.projects)}). "
            "Please select one of them with the command line parameter --project"
        )


def config_from_metadata(
    cli: Opts,
    cwd: str | Path,
    metadata: CargoMetadata,
    watch: bool = False,
    bin_args: Sequence[str] | None = None,
) -> Config:
    """Resolve the projects of already loaded metadata and apply ``--project``."""
    projects = resolve_projects(cli, cwd, metadata, watch, bin_args)
    if not projects:
        raise ValueError(
            "Please define leptos projects in the workspace Cargo.toml sections "
            "[[workspace.metadata.leptos]]"
        )
    if cli.project is not None:
        chosen = next((p for p in projects if p.name == cli.project), None)
        if chosen is None:
            raise ValueError(
                f'The specified project "{cli.project}" not found. '
                f"Available projects: {_names(projects)}"
            )
        projects = [chosen]
    return Config(working_dir=metadata.workspace_root, projects=projects, cli=cli, watch=watch)


def load_config(
    cli: Opts,
    cwd: str | Path,
    manifest_path: str | Path,
    watch: bool = False,
    bin_args: Sequence[str] | None = None,
) -> Config:
    """Run ``cargo metadata`` for the manifest and resolve the configuration."""
    metadata = load_metadata(Path(manifest_path).resolve())
    return config_from_metadata(cli, Path(cwd).resolve(), metadata, watch, bin_args)