"""Engine and tool configuration.

``PatchConfig`` holds the knobs shared by the driver, the file system
backends and the ``apply_patch`` tool adapter.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

MAX_PATCH_SIZE_BYTES: int = 1 * 1024 * 1024  # 1 MB
DEFAULT_FILE_MODE: int = 0o644
DEFAULT_DIR_MODE: int = 0o755

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {name}: '{raw}'")


@dataclass
class PatchConfig:
    """Configuration for patch application.

    Attributes:
        base_path: Directory that relative patch paths are resolved against.
            ``None`` means the process working directory at the time of use.
        file_mode: Permission bits for files written by the engine.
        dir_mode: Permission bits for parent directories the engine creates.
        encoding: Text encoding for reading and writing files.
        check_add_targets: Refuse ``*** Add File`` and ``*** Move to`` targets
            that already exist on disk, even when no Update/Delete header
            mentions them. A move onto its own source is allowed.
        max_patch_size_bytes: Largest patch text the tool adapter accepts.

    Example:
        >>> config = PatchConfig(base_path=Path("/workspace"))
        >>> config.resolve("src/app.py")
        PosixPath('/workspace/src/app.py')
    """

    base_path: Optional[Path] = None
    file_mode: int = DEFAULT_FILE_MODE
    dir_mode: int = DEFAULT_DIR_MODE
    encoding: str = "utf-8"
    check_add_targets: bool = True
    max_patch_size_bytes: int = MAX_PATCH_SIZE_BYTES

    def __post_init__(self) -> None:
        """Ensure base_path is a Path object."""
        if isinstance(self.base_path, str):
            self.base_path = Path(self.base_path)

    @property
    def root(self) -> Path:
        """The effective base directory."""
        return self.base_path if self.base_path is not None else Path.cwd()

    def resolve(self, path: str) -> Path:
        """Resolve a patch path against the base directory."""
        candidate = Path(path)
        if candidate.is_absolute():
            return candidate
        return self.root / candidate

    @classmethod
    def from_env(cls, prefix: str = "AGENT_PATCH_") -> "PatchConfig":
        """Build a config from ``<prefix>BASE_PATH`` and ``<prefix>CHECK_ADD_TARGETS``."""
        config = cls()
        base_path = os.environ.get(f"{prefix}BASE_PATH")
        if base_path:
            config.base_path = Path(base_path)
        check = os.environ.get(f"{prefix}CHECK_ADD_TARGETS")
        if check:
            config.check_add_targets = _parse_bool(f"{prefix}CHECK_ADD_TARGETS", check)
        return config
