"""Locate a hunk's anchor text inside the original file.

Matching escalates through three tolerance levels; each level scans forward
from the start index and the first hit wins:

    1) exact line equality                     (fuzz 0)
    2) equality ignoring trailing ``\\r``        (fuzz 1)
    3) equality ignoring surrounding whitespace (fuzz 100)

EOF-anchored hunks are first tried against the tail of the file. If the tail
does not match, a normal forward scan runs and the result carries an extra
fuzz of 10000 to flag the low-confidence placement.
"""
from __future__ import annotations

from typing import Callable, List, NamedTuple, Optional, Sequence

from .constants import FUZZ_EOF_FALLBACK, FUZZ_EXACT, FUZZ_TRAILING_CR, FUZZ_WHITESPACE
from .errors import ContextNotFoundError


class ContextMatch(NamedTuple):
    index: int
    fuzz: int


def _exact(line: str) -> str:
    return line


def _strip_cr(line: str) -> str:
    return line.rstrip("\r")


def _strip_ws(line: str) -> str:
    return line.strip()


# Matching modes in strictness order.
LEVELS: List[tuple[Callable[[str], str], int]] = [
    (_exact, FUZZ_EXACT),
    (_strip_cr, FUZZ_TRAILING_CR),
    (_strip_ws, FUZZ_WHITESPACE),
]


def _matches_at(
    lines: Sequence[str],
    context: Sequence[str],
    pos: int,
    canon: Callable[[str], str],
) -> bool:
    for j, expected in enumerate(context):
        if canon(lines[pos + j]) != canon(expected):
            return False
    return True


def find_context_core(
    lines: Sequence[str],
    context: Sequence[str],
    start: int,
) -> Optional[ContextMatch]:
    """Scan forward from ``start`` for ``context`` at increasing tolerance.

    Returns ``None`` when no level matches. An empty context matches at
    ``start`` with no fuzz.
    """
    if not context:
        return ContextMatch(start, FUZZ_EXACT)

    start = max(start, 0)
    last = len(lines) - len(context)
    for canon, fuzz in LEVELS:
        for pos in range(start, last + 1):
            if _matches_at(lines, context, pos, canon):
                return ContextMatch(pos, fuzz)
    return None


def _eof_anchors(lines: Sequence[str], n: int, start: int) -> List[int]:
    """Candidate start positions for a block that ends the file.

    A trailing newline leaves an empty last element after splitting, so the
    block may also end one line early.
    """
    trailing_blank = bool(lines) and lines[-1] == ""
    if n == 0:
        anchors = [len(lines) - 1] if trailing_blank else [len(lines)]
    else:
        anchors = [len(lines) - n]
        if trailing_blank:
            anchors.append(len(lines) - n - 1)
    return [pos for pos in anchors if pos >= max(start, 0) and pos + n <= len(lines)]


def _find_at_eof(lines: Sequence[str], context: Sequence[str], start: int) -> Optional[ContextMatch]:
    anchors = _eof_anchors(lines, len(context), start)
    for canon, fuzz in LEVELS:
        for pos in anchors:
            if _matches_at(lines, context, pos, canon):
                return ContextMatch(pos, fuzz)
    return None


def find_context(
    lines: Sequence[str],
    context: Sequence[str],
    start: int,
    eof: bool = False,
    path: Optional[str] = None,
) -> ContextMatch:
    """Find ``context`` in ``lines`` at or after ``start``.

    Args:
        lines: The original file split on ``\\n``.
        context: Keep and delete lines of the hunk.
        start: First index the match may begin at.
        eof: The hunk was marked ``*** End of File``.
        path: File path used in the error, if any.

    Returns:
        The absolute match index and the fuzz cost of the match.

    Raises:
        ContextNotFoundError: If no tolerance level matches.
    """
    if eof:
        match = _find_at_eof(lines, context, start)
        if match is not None:
            return match
        match = find_context_core(lines, context, start)
        if match is not None:
            return ContextMatch(match.index, match.fuzz + FUZZ_EOF_FALLBACK)
    else:
        match = find_context_core(lines, context, start)
        if match is not None:
            return match

    raise ContextNotFoundError(start, context, path=path)
