"""Kinds of source change and the set of changes awaiting a rebuild."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from enum import Enum, auto


class Change(Enum):
    """What kind of file changed."""

    BIN_SOURCE = auto()
    LIB_SOURCE = auto()
    ASSET = auto()
    STYLE = auto()
    CONF = auto()
    ADDITIONAL = auto()


class ChangeSet:
    """An ordered collection of distinct changes."""

    def __init__(self, changes: Iterable[Change] = ()) -> None:
        self._changes: list[Change] = []
        for change in changes:
            self.add(change)

    def __iter__(self) -> Iterator[Change]:
        return iter(self._changes)

    def __len__(self) -> int:
        return len(self._changes)

    def __contains__(self, change: object) -> bool:
        return change in self._changes

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChangeSet):
            return NotImplemented
        return self._changes == other._changes

    def __repr__(self) -> str:
        names = ", ".join(change.name for change in self._changes)
        return f"ChangeSet([{names}])"

    def add(self, change: Change) -> bool:
        """Add a change; return True if it was not already present."""
        if change in self._changes:
            return False
        self._changes.append(change)
        return True

    def clear(self) -> None:
        self._changes.clear()

    def need_server_build(self) -> bool:
        return any(c in self for c in (Change.BIN_SOURCE, Change.CONF, Change.ADDITIONAL))

    def need_front_build(self) -> bool:
        return any(c in self for c in (Change.LIB_SOURCE, Change.CONF, Change.ADDITIONAL))

    def need_style_build(self, css_files: bool, css_in_source: bool) -> bool:
        return (css_files and Change.STYLE in self) or (
            css_in_source and Change.LIB_SOURCE in self
        )

    def need_assets_change(self) -> bool:
        return Change.ASSET in self


def all_changes() -> ChangeSet:
    """The change set that forces a complete build."""
    return ChangeSet(
        [Change.BIN_SOURCE, Change.LIB_SOURCE, Change.STYLE, Change.CONF, Change.ASSET]
    )