"""End-to-end patch application: raw text in, file system effects out."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..config import PatchConfig
from ..logging import get_logger
from .apply import build_commit
from .constants import FUZZ_EOF_FALLBACK
from .errors import FormatError, PatchError
from .filesystem import LocalFileSystem, PatchFileSystem, apply_commit, load_files
from .normalize import normalize_patch_text
from .parser import (
    collect_patch_paths,
    identify_files_added,
    identify_files_needed,
    identify_moves,
    text_to_patch,
)
from .types import Commit

logger = get_logger(__name__)


@dataclass
class PatchResult:
    """What a successful ``process_patch`` call did (or would do, for dry runs)."""

    commit: Commit
    fuzz: int = 0
    paths: List[str] = field(default_factory=list)
    dry_run: bool = False


def _check_new_targets(text: str, originals: dict[str, str], fs: PatchFileSystem) -> None:
    for path in identify_files_added(text):
        if path not in originals and fs.exists(path):
            raise FormatError(
                f"add file error - file already exists: {path}",
                path=path,
                hint="Use '*** Update File:' to modify existing files",
            )
    for source, target in identify_moves(text):
        if fs.exists(target) and not fs.same_file(source, target):
            raise FormatError(
                f"update file error - move target already exists: {target}",
                path=target,
                hint="Move to a path that does not exist yet",
            )


def process_patch(
    text: str,
    fs: Optional[PatchFileSystem] = None,
    config: Optional[PatchConfig] = None,
    dry_run: bool = False,
) -> PatchResult:
    """Normalize, parse, resolve and apply a patch.

    Steps up to building the commit are pure; any failure there raises before
    a single file is touched. Applying the commit is not transactional.

    Args:
        text: Raw patch text, possibly surrounded by other model output.
        fs: File system to read originals from and write results to.
            Defaults to a ``LocalFileSystem`` built from ``config``.
        config: Engine configuration. Defaults to ``PatchConfig()``.
        dry_run: Resolve the commit but do not apply it.

    Returns:
        PatchResult with the resolved commit and the total match fuzz.

    Raises:
        PatchError: Any FormatError, ContextNotFoundError, BoundsError,
            OverlapError or FileSystemError.
    """
    config = config or PatchConfig()
    fs = fs or LocalFileSystem(config)

    try:
        text = normalize_patch_text(text)
        needed = identify_files_needed(text)
        logger.debug("Loading original files", paths=needed)
        originals = load_files(needed, fs)
        if config.check_add_targets:
            _check_new_targets(text, originals, fs)

        parsed = text_to_patch(text, originals)
        logger.debug("Parsed patch", actions=len(parsed.patch), fuzz=parsed.fuzz)
        if parsed.fuzz >= FUZZ_EOF_FALLBACK:
            logger.warning("End of File hunk matched away from the end of the file", fuzz=parsed.fuzz)

        commit = build_commit(parsed.patch, originals)
        result = PatchResult(
            commit=commit,
            fuzz=parsed.fuzz,
            paths=collect_patch_paths(text),
            dry_run=dry_run,
        )
        if dry_run:
            logger.debug("Dry run, skipping apply", files=len(commit))
            return result

        apply_commit(commit, fs)
    except PatchError as e:
        logger.warning("Patch failed", error=e.error, path=e.path, error_type=type(e).__name__)
        raise

    logger.info("Applied patch", files=len(commit), fuzz=parsed.fuzz)
    return result
