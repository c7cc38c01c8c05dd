"""Turn parsed actions into resolved file contents."""
from __future__ import annotations

from typing import List, Mapping, Optional, Sequence

from .errors import BoundsError, FormatError, OverlapError
from .types import ActionKind, Chunk, Commit, FileChange, Patch


def apply_chunks(original: str, chunks: Sequence[Chunk], path: Optional[str] = None) -> str:
    """Apply ordered, non-overlapping chunks to ``original``.

    Lines between chunks are copied through, each chunk's ``ins_lines``
    replace its ``del_lines``, and the result is joined with ``\\n``.

    Raises:
        BoundsError: If a chunk starts past the end of the file.
        OverlapError: If a chunk starts before the previous one ended.
    """
    orig_lines = original.split("\n")
    dest: List[str] = []
    cursor = 0

    for chunk in chunks:
        if chunk.orig_index > len(orig_lines):
            raise BoundsError(chunk.orig_index, len(orig_lines), path=path)
        if cursor > chunk.orig_index:
            raise OverlapError(cursor, chunk.orig_index, path=path)
        dest.extend(orig_lines[cursor:chunk.orig_index])
        dest.extend(chunk.ins_lines)
        cursor = chunk.orig_index + len(chunk.del_lines)

    dest.extend(orig_lines[cursor:])
    return "\n".join(dest)


def build_commit(patch: Patch, originals: Mapping[str, str]) -> Commit:
    """Resolve every action of ``patch`` into before/after file contents.

    Raises:
        FormatError: If an Add action has no content.
        BoundsError, OverlapError: Propagated from ``apply_chunks``.
    """
    commit = Commit()
    for path, action in patch.items():
        if action.kind is ActionKind.DELETE:
            commit.add(path, FileChange(kind=ActionKind.DELETE, old_content=originals[path]))
        elif action.kind is ActionKind.ADD:
            if not action.new_file:
                raise FormatError("add action without file content", path=path)
            commit.add(path, FileChange(kind=ActionKind.ADD, new_content=action.new_file))
        else:
            new_content = apply_chunks(originals[path], action.chunks, path=path)
            commit.add(
                path,
                FileChange(
                    kind=ActionKind.UPDATE,
                    old_content=originals[path],
                    new_content=new_content,
                    move_path=action.move_path,
                ),
            )
    return commit
