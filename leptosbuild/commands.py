"""Running the cargo tests of the projects."""

from __future__ import annotations

import logging
from typing import Any

from .cargo import front_cargo_process, server_cargo_process

log = logging.getLogger(__name__)


def test_proj(proj: Any) -> bool:
    """Run the server and front tests of a project; True if both passed."""
    envs, line, process = server_cargo_process("test", proj)
    server_status = process.wait()
    log.debug("Cargo envs: %s", envs)
    log.info("Cargo server tests finished %s", line)

    envs, line, process = front_cargo_process("test", False, proj)
    front_status = process.wait()
    log.debug("Cargo envs: %s", envs)
    log.info("Cargo front tests finished %s", line)

    return server_status == 0 and front_status == 0


def test_all(conf: Any) -> None:
    """Test every project; fail naming the first project whose tests failed."""
    first_failed = None
    for proj in conf.projects:
        if not test_proj(proj) and first_failed is None:
            first_failed = proj
    if first_failed is not None:
        raise RuntimeError(f"Tests failed for {first_failed.name}")


test_proj.__test__ = False  # type: ignore[attr-defined]
test_all.__test__ = False  # type: ignore[attr-defined]