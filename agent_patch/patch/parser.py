"""Patch text parser.

Grammar (one or more actions between the envelope sentinels)::

    *** Begin Patch
    *** Update File: path/to/file.py
    *** Move to: path/to/renamed.py        (optional)
    @@ optional context header
     context line
    -removed line
    +added line
    *** End of File                         (optional EOF anchor)
    *** Delete File: path/to/old.py
    *** Add File: path/to/new.py
    +first line
    +second line
    *** End Patch

Update hunks are resolved against the original file contents while parsing,
so ``Chunk.orig_index`` values in the result are absolute line offsets.
"""
from __future__ import annotations

from typing import List, Mapping, Optional, Sequence

from .constants import (
    ACTION_BOUNDARIES,
    ADD_FILE_HEADER,
    BEGIN_PATCH,
    DELETE_FILE_HEADER,
    END_OF_FILE,
    END_PATCH,
    HUNK_HEADER,
    MOVE_TO_HEADER,
    UPDATE_FILE_HEADER,
)
from .errors import FormatError
from .hunks import peek_next_section
from .matcher import find_context
from .types import Action, ActionKind, ParseResult, Patch


def norm(line: str) -> str:
    """Strip trailing carriage returns left over from CRLF patch text."""
    return line.rstrip("\r")


def parse_header_path(line: str, header: str) -> Optional[str]:
    """Return the path after ``header`` (e.g. ``*** Add File:``), or None.

    A missing space after the colon is tolerated and surrounding whitespace is
    trimmed, so ``*** Add File:a.txt`` and ``*** Add File: a.txt`` agree.
    """
    line = norm(line)
    if not line.startswith(header):
        return None
    return line[len(header):].strip()


class Parser:
    """Single-use cursor over the lines of a normalized patch.

    Args:
        current_files: Original contents of every path the patch updates or
            deletes, keyed exactly as written in the headers.
        lines: Patch text split on ``\\n``.
        index: Line to start parsing at (just after ``*** Begin Patch``).
    """

    def __init__(self, current_files: Mapping[str, str], lines: Sequence[str], index: int = 0):
        self.current_files = current_files
        self.lines = lines
        self.index = index

    # -- cursor helpers ----------------------------------------------------

    def is_done(self, prefixes: Sequence[str] = ()) -> bool:
        if self.index >= len(self.lines):
            return True
        return norm(self.lines[self.index]).startswith(tuple(prefixes))

    def starts_with(self, prefix: str) -> bool:
        if self.index >= len(self.lines):
            return False
        return norm(self.lines[self.index]).startswith(prefix)

    def read_header(self, header: str) -> Optional[str]:
        """Consume a header line and return its path; None if it is not one."""
        if self.index >= len(self.lines):
            return None
        line = self.lines[self.index]
        path = parse_header_path(line, header)
        if path is None:
            return None
        if not path:
            raise FormatError(f"missing path in header: {norm(line)}")
        self.index += 1
        return path

    def read_line(self) -> str:
        if self.index >= len(self.lines):
            raise FormatError("unexpected end of input while reading line")
        line = self.lines[self.index]
        self.index += 1
        return line

    # -- grammar -----------------------------------------------------------

    def parse(self) -> ParseResult:
        """Parse every action up to and including ``*** End Patch``.

        Raises:
            FormatError: On unknown lines, duplicate or invalid actions, or a
                missing end sentinel.
            ContextNotFoundError: If an Update hunk cannot be located.
        """
        patch = Patch()
        fuzz = 0

        while not self.is_done((END_PATCH,)):
            if not norm(self.lines[self.index]).strip():
                self.index += 1
                continue

            path = self.read_header(UPDATE_FILE_HEADER)
            if path is not None:
                if path in patch:
                    raise FormatError(f"duplicate update for file: {path}", path=path)
                move_to = self.read_header(MOVE_TO_HEADER)
                if path not in self.current_files:
                    raise FormatError(
                        f"update file error - missing file: {path}",
                        path=path,
                        hint="Use '*** Add File:' to create new files",
                    )
                action, action_fuzz = self.parse_update_file(path, self.current_files[path])
                action.move_path = move_to
                patch.add(path, action)
                fuzz += action_fuzz
                continue

            path = self.read_header(DELETE_FILE_HEADER)
            if path is not None:
                if path in patch:
                    raise FormatError(f"duplicate delete for file: {path}", path=path)
                if path not in self.current_files:
                    raise FormatError(f"delete file error - missing file: {path}", path=path)
                patch.add(path, Action(kind=ActionKind.DELETE))
                continue

            path = self.read_header(ADD_FILE_HEADER)
            if path is not None:
                if path in patch:
                    raise FormatError(f"duplicate add for file: {path}", path=path)
                if path in self.current_files:
                    raise FormatError(
                        f"add file error - file already exists: {path}",
                        path=path,
                        hint="Use '*** Update File:' to modify existing files",
                    )
                patch.add(path, self.parse_add_file(path))
                continue

            raise FormatError(f"unknown line while parsing: {norm(self.lines[self.index])}")

        if not self.starts_with(END_PATCH):
            raise FormatError(f"missing {END_PATCH} sentinel")
        self.index += 1
        return ParseResult(patch=patch, fuzz=fuzz)

    def parse_add_file(self, path: str) -> Action:
        lines: List[str] = []
        while not self.is_done(ACTION_BOUNDARIES):
            line = norm(self.read_line())
            if not line.startswith("+"):
                raise FormatError(
                    f"invalid add file line (missing '+'): {line}",
                    path=path,
                    hint="All content lines in Add File must start with '+'",
                )
            lines.append(line[1:])
        return Action(kind=ActionKind.ADD, new_file="\n".join(lines))

    def parse_update_file(self, path: str, text: str) -> tuple[Action, int]:
        """Parse the hunks of one Update action against the file's ``text``.

        Returns:
            The action with absolute chunk offsets, and the summed fuzz.
        """
        action = Action(kind=ActionKind.UPDATE)
        orig_lines = text.split("\n")
        search_from = 0
        fuzz = 0

        while not self.is_done(ACTION_BOUNDARIES + (END_OF_FILE,)):
            # The @@ header only aids human readers.
            if self.starts_with(HUNK_HEADER):
                self.index += 1

            section = peek_next_section(self.lines, self.index, path=path)
            match = find_context(orig_lines, section.old, search_from, section.eof, path=path)
            fuzz += match.fuzz
            for chunk in section.chunks:
                chunk.orig_index += match.index
                action.chunks.append(chunk)
            search_from = match.index + len(section.old)
            self.index = section.end_index

        return action, fuzz


def text_to_patch(text: str, current_files: Mapping[str, str]) -> ParseResult:
    """Parse normalized patch text against the loaded original files.

    Raises:
        FormatError: If the text is not framed by the begin/end sentinels or
            fails to parse.
        ContextNotFoundError: If an Update hunk cannot be located.
    """
    lines = text.split("\n")
    if (
        len(lines) < 2
        or not norm(lines[0]).startswith(BEGIN_PATCH)
        or norm(lines[-1]) != END_PATCH
    ):
        raise FormatError(
            "invalid patch text - missing sentinels",
            hint=f"Patch must start with '{BEGIN_PATCH}' and end with '{END_PATCH}'",
        )
    return Parser(current_files, lines, index=1).parse()


# ---------------------------------------------------------------------------
# Header pre-scan
# ---------------------------------------------------------------------------

def _header_paths(text: str, header: str) -> List[str]:
    out: List[str] = []
    for line in text.split("\n"):
        path = parse_header_path(line, header)
        if path:
            out.append(path)
    return out


def identify_files_needed(text: str) -> List[str]:
    """Paths named by Update and Delete headers, in patch order."""
    out: List[str] = []
    for line in text.split("\n"):
        path = parse_header_path(line, UPDATE_FILE_HEADER) or parse_header_path(line, DELETE_FILE_HEADER)
        if path:
            out.append(path)
    return out


def identify_files_added(text: str) -> List[str]:
    """Paths named by Add headers, in patch order."""
    return _header_paths(text, ADD_FILE_HEADER)


def identify_move_targets(text: str) -> List[str]:
    """Destination paths of ``*** Move to`` lines, in patch order."""
    return _header_paths(text, MOVE_TO_HEADER)


def identify_moves(text: str) -> List[tuple[str, str]]:
    """``(source, destination)`` pairs for Update actions with a Move to line."""
    out: List[tuple[str, str]] = []
    source: Optional[str] = None
    for line in text.split("\n"):
        path = parse_header_path(line, UPDATE_FILE_HEADER)
        if path is not None:
            source = path
            continue
        target = parse_header_path(line, MOVE_TO_HEADER)
        if target and source:
            out.append((source, target))
        source = None
    return out


def collect_patch_paths(text: str) -> List[str]:
    """Every path the patch touches (updated, deleted, added, moved to), sorted."""
    seen = set(identify_files_needed(text))
    seen.update(identify_files_added(text))
    seen.update(identify_move_targets(text))
    return sorted(seen)
