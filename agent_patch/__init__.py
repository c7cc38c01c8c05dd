"""
Patch-apply engine for terminal LLM agents.

A model edits files by emitting a structured patch document; this library
parses it, locates each hunk in the current files with progressively relaxed
matching, resolves the per-file results and writes them to disk.

Main exports:
    - process_patch: raw patch text -> applied changes (or a PatchError)
    - ApplyPatchTool: approval-gated ``apply_patch`` agent tool
    - PatchConfig: base path, file modes and limits

Example:
    >>> from agent_patch import ApplyPatchTool, StaticApprover
    >>> apply_patch = ApplyPatchTool(approver=StaticApprover("y")).get_tool()
    >>> apply_patch("*** Begin Patch\\n*** Add File: notes.txt\\n+hi\\n*** End Patch")
    '{"error": ""}'
"""

from .config import PatchConfig
from .patch import (
    ApprovalDeniedError,
    BoundsError,
    Commit,
    ContextNotFoundError,
    FileSystemError,
    FormatError,
    LocalFileSystem,
    MemoryFileSystem,
    OverlapError,
    PatchError,
    PatchResult,
    process_patch,
)
from .tools import ApplyPatchTool, StaticApprover, ToolRegistry

__all__ = [
    "PatchConfig",
    "process_patch",
    "PatchResult",
    "Commit",
    "LocalFileSystem",
    "MemoryFileSystem",
    "ApplyPatchTool",
    "StaticApprover",
    "ToolRegistry",
    "PatchError",
    "FormatError",
    "ContextNotFoundError",
    "BoundsError",
    "OverlapError",
    "FileSystemError",
    "ApprovalDeniedError",
]
