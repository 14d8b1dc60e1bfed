"""Cargo build profiles."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Profile:
    """A cargo profile: the built-in debug or release, or a custom named one."""

    name: str
    custom: bool = False

    @classmethod
    def new(cls, is_release: bool, release: str | None = None, debug: str | None = None) -> Profile:
        """Pick the profile for a build, preferring a configured custom name."""
        if is_release:
            return cls(release, custom=True) if release is not None else cls("release")
        return cls(debug, custom=True) if debug is not None else cls("debug")

    def __str__(self) -> str:
        return self.name

    def cargo_args(self) -> list[str]:
        """The cargo arguments that select this profile."""
        if self.custom:
            return [f"--profile={self.name}"]
        if self.name == "release":
            return ["--release"]
        return []