"""Hunk body tokenizer.

A hunk body is a run of lines prefixed with ``' '`` (keep), ``-`` (delete)
or ``+`` (insert). The tokenizer is a three-state machine; a chunk is emitted
whenever the machine re-enters ``KEEP`` with pending edits, and once more at
the end of the body.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from .constants import END_OF_FILE, SECTION_BOUNDARIES, SENTINEL_TOKEN
from .errors import FormatError
from .types import Chunk


class HunkMode(str, Enum):
    KEEP = "keep"
    DELETE = "delete"
    INSERT = "insert"


LINE_PREFIXES: dict[str, HunkMode] = {
    " ": HunkMode.KEEP,
    "-": HunkMode.DELETE,
    "+": HunkMode.INSERT,
}

# (current mode, next mode) -> emit the pending chunk before switching
TRANSITIONS: dict[tuple[HunkMode, HunkMode], bool] = {
    (HunkMode.KEEP, HunkMode.KEEP): False,
    (HunkMode.KEEP, HunkMode.DELETE): False,
    (HunkMode.KEEP, HunkMode.INSERT): False,
    (HunkMode.DELETE, HunkMode.KEEP): True,
    (HunkMode.DELETE, HunkMode.DELETE): False,
    (HunkMode.DELETE, HunkMode.INSERT): False,
    (HunkMode.INSERT, HunkMode.KEEP): True,
    (HunkMode.INSERT, HunkMode.DELETE): False,
    (HunkMode.INSERT, HunkMode.INSERT): False,
}


class HunkTokenizer:
    """Accumulates one hunk body into anchor text and relative chunks.

    ``old`` collects keep and delete lines: the text that must be found in the
    original file. Chunk offsets are relative to ``old``.

    Example:
        >>> tok = HunkTokenizer()
        >>> for line in [" a", "-b", "+B", " c"]:
        ...     tok.feed(line)
        >>> old, chunks = tok.finish()
        >>> old
        ['a', 'b', 'c']
        >>> chunks
        [Chunk(orig_index=1, del_lines=['b'], ins_lines=['B'])]
    """

    def __init__(self) -> None:
        self.mode = HunkMode.KEEP
        self.old: List[str] = []
        self.chunks: List[Chunk] = []
        self._del_lines: List[str] = []
        self._ins_lines: List[str] = []

    @property
    def has_pending(self) -> bool:
        return bool(self._del_lines or self._ins_lines)

    def _emit(self) -> None:
        self.chunks.append(
            Chunk(
                orig_index=len(self.old) - len(self._del_lines),
                del_lines=self._del_lines,
                ins_lines=self._ins_lines,
            )
        )
        self._del_lines = []
        self._ins_lines = []

    def feed(self, line: str) -> None:
        """Consume one body line.

        Raises:
            FormatError: If the line has no keep/delete/insert prefix.
        """
        # A bare empty line is an empty context line.
        if line == "":
            line = " "
        next_mode = LINE_PREFIXES.get(line[0])
        if next_mode is None:
            raise FormatError(
                f"invalid line: {line}",
                hint="Hunk lines must start with ' ', '+', or '-'",
            )

        if TRANSITIONS[(self.mode, next_mode)] and self.has_pending:
            self._emit()
        self.mode = next_mode

        text = line[1:]
        if next_mode is HunkMode.DELETE:
            self._del_lines.append(text)
            self.old.append(text)
        elif next_mode is HunkMode.INSERT:
            self._ins_lines.append(text)
        else:
            self.old.append(text)

    def finish(self) -> tuple[List[str], List[Chunk]]:
        """Flush any pending edit and return ``(old, chunks)``."""
        if self.has_pending:
            self._emit()
        return self.old, self.chunks


@dataclass
class Section:
    """One tokenized hunk and where the parser should resume."""

    old: List[str]
    chunks: List[Chunk] = field(default_factory=list)
    end_index: int = 0
    eof: bool = False


def peek_next_section(lines: Sequence[str], index: int, path: Optional[str] = None) -> Section:
    """Tokenize the hunk body starting at ``lines[index]``.

    The body ends at the next ``@@`` header, action header, ``*** End Patch``,
    a bare ``***`` line or an ``*** End of File`` marker; the latter is
    consumed and marks the section EOF-anchored.

    Raises:
        FormatError: On an unknown ``***`` line, an unprefixed body line, or
            an empty section.
    """
    tokenizer = HunkTokenizer()
    start = index

    while index < len(lines):
        line = lines[index]
        if line.startswith(SECTION_BOUNDARIES) or line == SENTINEL_TOKEN:
            break
        if line.startswith(SENTINEL_TOKEN):
            raise FormatError(f"invalid line: {line}", path=path)
        try:
            tokenizer.feed(line)
        except FormatError as e:
            e.path = path
            raise
        index += 1

    old, chunks = tokenizer.finish()

    if index < len(lines) and lines[index].startswith(END_OF_FILE):
        return Section(old=old, chunks=chunks, end_index=index + 1, eof=True)
    if index == start:
        raise FormatError("nothing in this section", path=path)
    return Section(old=old, chunks=chunks, end_index=index, eof=False)
