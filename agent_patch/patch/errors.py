"""Exceptions raised while parsing or applying a patch.

Every error carries a human-readable message plus, where known, the file path
it concerns and a hint telling the model how to fix its patch. The tool
adapter turns these attributes into the JSON ``error`` payload.
"""
from __future__ import annotations

from typing import Any, Optional, Sequence


class PatchError(Exception):
    """Base exception for all patch failures."""

    def __init__(self, error: str, path: Optional[str] = None, hint: Optional[str] = None):
        super().__init__(error)
        self.error = error
        self.path = path
        self.hint = hint

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready payload for tool responses."""
        result: dict[str, Any] = {"error": self.error}
        if self.path is not None:
            result["path"] = self.path
        if self.hint is not None:
            result["hint"] = self.hint
        return result


class FormatError(PatchError):
    """The patch text does not follow the grammar."""


class ContextNotFoundError(PatchError):
    """No tolerance level located a hunk's context in the original file."""

    def __init__(
        self,
        search_index: int,
        context_lines: Sequence[str],
        path: Optional[str] = None,
        max_preview: int = 5,
    ):
        self.search_index = search_index
        self.context_lines = list(context_lines)
        preview = "\n".join(f"  {line}" for line in self.context_lines[:max_preview])
        if len(self.context_lines) > max_preview:
            preview += f"\n  ... ({len(self.context_lines) - max_preview} more lines)"
        super().__init__(
            f"invalid context at {search_index}:\n{preview}",
            path=path,
            hint="Context mismatch. Re-read the file to get its current content.",
        )


class BoundsError(PatchError):
    """A chunk points past the end of the original file."""

    def __init__(self, orig_index: int, line_count: int, path: Optional[str] = None):
        self.orig_index = orig_index
        self.line_count = line_count
        super().__init__(
            f"chunk index {orig_index} exceeds file length {line_count}",
            path=path,
        )


class OverlapError(PatchError):
    """Chunks are out of order or overlap."""

    def __init__(self, cursor: int, orig_index: int, path: Optional[str] = None):
        self.cursor = cursor
        self.orig_index = orig_index
        super().__init__(
            f"overlapping chunks at {cursor} > {orig_index}",
            path=path,
            hint="Ensure hunks are in file order and don't overlap.",
        )


class FileSystemError(PatchError):
    """Reading, writing, removing or creating a directory failed.

    The underlying ``OSError`` (or ``UnicodeDecodeError``) is chained as
    ``__cause__``.
    """

    def __init__(self, operation: str, path: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"failed to {operation} {path}: {reason}", path=path)


class ApprovalDeniedError(PatchError):
    """The user declined to let the tool run."""
