"""File system backends and the commit applier.

This module defines:
1. PatchFileSystem ABC : the read/exists/write/remove surface the engine needs
2. LocalFileSystem : real files resolved against ``PatchConfig.base_path``
3. MemoryFileSystem : dict-backed files for dry runs and tests
4. load_files / apply_commit : the loader and mutation steps of the driver

``apply_commit`` is not transactional: if the Nth change fails, changes
1..N-1 stay on disk. Snapshot the tree first if you need atomicity.
"""
from __future__ import annotations

import os
import tempfile
from abc import ABC, abstractmethod
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Iterable, Literal, Optional

from ..config import PatchConfig
from ..logging import get_logger
from .errors import FileSystemError
from .types import ActionKind, Commit

logger = get_logger(__name__)


class PatchFileSystem(ABC):
    """Abstract file access used by the driver.

    Paths are the strings written in the patch headers. Implementations
    raise ``FileSystemError`` for any failure.
    """

    @abstractmethod
    def read(self, path: str) -> str:
        """Return the text content of ``path``."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Return True if something already exists at ``path``."""

    @abstractmethod
    def write(self, path: str, content: str) -> None:
        """Create or replace ``path``, creating parent directories."""

    @abstractmethod
    def remove(self, path: str) -> None:
        """Delete the file at ``path``."""

    @abstractmethod
    def same_file(self, a: str, b: str) -> bool:
        """Return True if ``a`` and ``b`` name the same file."""


def _atomic_write_bytes(path: Path, data: bytes, *, mode: int) -> None:
    """Replace ``path`` with ``data`` via a temp file and ``os.replace``."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.apply_patch.", dir=str(path.parent))
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    finally:
        tmp_path.unlink(missing_ok=True)


class LocalFileSystem(PatchFileSystem):
    """Files on the local disk.

    New files get ``config.file_mode``; rewritten files keep their current
    permission bits. Missing parent directories are created one level at a
    time with ``config.dir_mode``.
    """

    def __init__(self, config: Optional[PatchConfig] = None, base_path: str | Path | None = None):
        config = config or PatchConfig()
        if base_path is not None:
            config = replace(config, base_path=Path(base_path))
        self.config = config

    def _resolve(self, path: str) -> Path:
        return self.config.resolve(path)

    def _make_parents(self, directory: Path) -> None:
        missing = []
        while not directory.exists():
            missing.append(directory)
            directory = directory.parent
        for d in reversed(missing):
            d.mkdir(mode=self.config.dir_mode, exist_ok=True)

    def read(self, path: str) -> str:
        target = self._resolve(path)
        try:
            data = target.read_bytes()
        except OSError as e:
            raise FileSystemError("read", path, e.strerror or str(e)) from e
        try:
            return data.decode(self.config.encoding)
        except UnicodeDecodeError as e:
            raise FileSystemError("decode", path, f"not valid {self.config.encoding} text") from e

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def same_file(self, a: str, b: str) -> bool:
        return self._resolve(a).resolve() == self._resolve(b).resolve()

    def write(self, path: str, content: str) -> None:
        # Write through symlinks to the file they point at.
        target = self._resolve(path).resolve()
        try:
            self._make_parents(target.parent)
            mode = target.stat().st_mode & 0o777 if target.is_file() else self.config.file_mode
            _atomic_write_bytes(target, content.encode(self.config.encoding), mode=mode)
        except OSError as e:
            raise FileSystemError("write", path, e.strerror or str(e)) from e

    def remove(self, path: str) -> None:
        try:
            self._resolve(path).unlink()
        except OSError as e:
            raise FileSystemError("remove", path, e.strerror or str(e)) from e


class MemoryFileSystem(PatchFileSystem):
    """In-memory files keyed by patch path.

    Example:
        >>> fs = MemoryFileSystem({"hello.txt": "Hello\\n"})
        >>> fs.read("hello.txt")
        'Hello\\n'
    """

    def __init__(self, files: Optional[Dict[str, str]] = None):
        self.files: Dict[str, str] = dict(files or {})

    def read(self, path: str) -> str:
        if path not in self.files:
            raise FileSystemError("read", path, "No such file or directory")
        return self.files[path]

    def exists(self, path: str) -> bool:
        return path in self.files

    def write(self, path: str, content: str) -> None:
        self.files[path] = content

    def remove(self, path: str) -> None:
        if path not in self.files:
            raise FileSystemError("remove", path, "No such file or directory")
        del self.files[path]

    def same_file(self, a: str, b: str) -> bool:
        return os.path.normpath(a) == os.path.normpath(b)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------
FileSystemType = Literal["local", "memory"]

FILESYSTEMS: dict[str, type[PatchFileSystem]] = {
    "local": LocalFileSystem,
    "memory": MemoryFileSystem,
}


def get_filesystem(fs_type: FileSystemType = "local", **kwargs: Any) -> PatchFileSystem:
    """Create a file system backend by name.

    Args:
        fs_type: ``"local"`` or ``"memory"``.
        **kwargs: Passed to the backend constructor
            - local: config, base_path
            - memory: files

    Raises:
        ValueError: If fs_type is not recognized.
    """
    if fs_type not in FILESYSTEMS:
        available = ", ".join(FILESYSTEMS.keys())
        raise ValueError(f"Unknown file system type: '{fs_type}'. Available: {available}")
    return FILESYSTEMS[fs_type](**kwargs)


# ---------------------------------------------------------------------------
# Loader and applier
# ---------------------------------------------------------------------------

def load_files(paths: Iterable[str], fs: PatchFileSystem) -> Dict[str, str]:
    """Read the current content of every path; the first failure aborts."""
    originals: Dict[str, str] = {}
    for path in paths:
        originals[path] = fs.read(path)
    return originals


def apply_commit(commit: Commit, fs: PatchFileSystem) -> None:
    """Perform the commit's deletes, writes and moves in commit order."""
    for path, change in commit.items():
        if change.kind is ActionKind.DELETE:
            fs.remove(path)
            logger.info("Deleted file", path=path)
        elif change.kind is ActionKind.ADD:
            fs.write(path, change.new_content or "")
            logger.info("Added file", path=path)
        else:
            if change.move_path and not fs.same_file(change.move_path, path):
                fs.write(change.move_path, change.new_content or "")
                fs.remove(path)
                logger.info("Moved file", path=path, move_path=change.move_path)
            else:
                fs.write(path, change.new_content or "")
                logger.info("Updated file", path=path)
