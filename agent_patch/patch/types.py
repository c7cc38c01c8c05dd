"""Data model for parsed patches and resolved commits."""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, List, Optional, TypeVar

V = TypeVar("V")


class ActionKind(str, Enum):
    """What a patch does to one path."""
    ADD = "add"
    DELETE = "delete"
    UPDATE = "update"


@dataclass
class Chunk:
    """One contiguous edit anchored at a line offset of the original file."""

    orig_index: int
    del_lines: List[str] = field(default_factory=list)
    ins_lines: List[str] = field(default_factory=list)


@dataclass
class Action:
    """A parsed per-file action.

    ``new_file`` is only meaningful for Add, ``chunks`` and ``move_path`` only
    for Update.
    """

    kind: ActionKind
    new_file: Optional[str] = None
    chunks: List[Chunk] = field(default_factory=list)
    move_path: Optional[str] = None


@dataclass
class FileChange:
    """Resolved before/after state for one path."""

    kind: ActionKind
    old_content: Optional[str] = None
    new_content: Optional[str] = None
    move_path: Optional[str] = None


class PathMap(Mapping[str, V], Generic[V]):
    """Insertion-ordered mapping from path to value with duplicate detection.

    Keeps the order paths were added in a list and membership in a set, so
    iteration is deterministic and ``add`` rejects a repeated path in O(1).
    """

    def __init__(self) -> None:
        self._order: list[str] = []
        self._seen: set[str] = set()
        self._values: dict[str, V] = {}

    def add(self, path: str, value: V) -> None:
        """Insert ``path``; raises ``KeyError`` if it is already present."""
        if path in self._seen:
            raise KeyError(path)
        self._seen.add(path)
        self._order.append(path)
        self._values[path] = value

    def __contains__(self, path: object) -> bool:
        return path in self._seen

    def __getitem__(self, path: str) -> V:
        return self._values[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._order)

    def __len__(self) -> int:
        return len(self._order)

    def __repr__(self) -> str:
        items = ", ".join(f"{path!r}: {self._values[path]!r}" for path in self._order)
        return f"{type(self).__name__}({{{items}}})"


class Patch(PathMap[Action]):
    """Parsed patch: path -> Action in the order the patch lists them."""


class Commit(PathMap[FileChange]):
    """Resolved commit: path -> FileChange in patch order."""


@dataclass
class ParseResult:
    """Outcome of parsing: the patch plus the summed context-match fuzz."""

    patch: Patch
    fuzz: int = 0
