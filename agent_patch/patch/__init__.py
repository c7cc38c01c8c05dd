"""Patch-apply engine.

Pipeline: normalize -> pre-scan header paths -> load originals -> parse
(hunks matched against originals) -> build commit -> apply commit.

Example:
    >>> from agent_patch.patch import MemoryFileSystem, process_patch
    >>> fs = MemoryFileSystem({"hello.txt": "Hello\\nGoodbye\\n"})
    >>> process_patch(
    ...     "*** Begin Patch\\n*** Update File: hello.txt\\n@@\\n-Hello\\n+Hello, world\\n*** End Patch",
    ...     fs=fs,
    ... ).fuzz
    0
    >>> fs.read("hello.txt")
    'Hello, world\\nGoodbye\\n'
"""
from .apply import apply_chunks, build_commit
from .driver import PatchResult, process_patch
from .errors import (
    ApprovalDeniedError,
    BoundsError,
    ContextNotFoundError,
    FileSystemError,
    FormatError,
    OverlapError,
    PatchError,
)
from .filesystem import (
    FILESYSTEMS,
    LocalFileSystem,
    MemoryFileSystem,
    PatchFileSystem,
    apply_commit,
    get_filesystem,
    load_files,
)
from .hunks import HunkMode, HunkTokenizer, Section, peek_next_section
from .matcher import ContextMatch, find_context, find_context_core
from .normalize import normalize_patch_text
from .parser import (
    Parser,
    collect_patch_paths,
    identify_files_added,
    identify_files_needed,
    identify_move_targets,
    identify_moves,
    text_to_patch,
)
from .types import Action, ActionKind, Chunk, Commit, FileChange, ParseResult, Patch

__all__ = [
    # Driver
    "process_patch",
    "PatchResult",
    # Pipeline steps
    "normalize_patch_text",
    "text_to_patch",
    "Parser",
    "peek_next_section",
    "HunkTokenizer",
    "HunkMode",
    "Section",
    "find_context",
    "find_context_core",
    "ContextMatch",
    "apply_chunks",
    "build_commit",
    "apply_commit",
    "load_files",
    # Path discovery
    "identify_files_needed",
    "identify_files_added",
    "identify_move_targets",
    "identify_moves",
    "collect_patch_paths",
    # File systems
    "PatchFileSystem",
    "LocalFileSystem",
    "MemoryFileSystem",
    "FILESYSTEMS",
    "get_filesystem",
    # Data model
    "ActionKind",
    "Action",
    "Chunk",
    "Patch",
    "FileChange",
    "Commit",
    "ParseResult",
    # Errors
    "PatchError",
    "FormatError",
    "ContextNotFoundError",
    "BoundsError",
    "OverlapError",
    "FileSystemError",
    "ApprovalDeniedError",
]
