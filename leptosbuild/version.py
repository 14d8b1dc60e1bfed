"""Versions of the external style tools."""

from __future__ import annotations

import os
from enum import Enum

ENV_VAR_LEPTOS_TAILWIND_VERSION = "LEPTOS_TAILWIND_VERSION"
ENV_VAR_LEPTOS_SASS_VERSION = "LEPTOS_SASS_VERSION"


class VersionConfig(Enum):
    """An external tool whose version can be overridden from the environment."""

    TAILWIND = "tailwind"
    SASS = "sass"

    def version(self) -> str:
        """The version from the environment, or the default one."""
        return os.environ.get(self.env_var_version_name(), self.default_version())

    def default_version(self) -> str:
        return {
            VersionConfig.TAILWIND: "v4.0.6",
            VersionConfig.SASS: "1.86.0",
        }[self]

    def env_var_version_name(self) -> str:
        return {
            VersionConfig.TAILWIND: ENV_VAR_LEPTOS_TAILWIND_VERSION,
            VersionConfig.SASS: ENV_VAR_LEPTOS_SASS_VERSION,
        }[self]