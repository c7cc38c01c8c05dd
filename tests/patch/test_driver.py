"""End-to-end tests for process_patch."""
import tempfile
from pathlib import Path

import pytest

from agent_patch.config import PatchConfig
from agent_patch.patch.driver import PatchResult, process_patch
from agent_patch.patch.errors import (
    ContextNotFoundError,
    FileSystemError,
    FormatError,
    OverlapError,
)
from agent_patch.patch.filesystem import LocalFileSystem, MemoryFileSystem
from agent_patch.patch.types import Action, ActionKind, Chunk, ParseResult, Patch


def wrap(*lines: str) -> str:
    return "\n".join(["*** Begin Patch", *lines, "*** End Patch"])


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def local_fs(temp_dir: Path) -> LocalFileSystem:
    return LocalFileSystem(base_path=temp_dir)


# ---------------------------------------------------------------------------
# Basic operations on disk
# ---------------------------------------------------------------------------
class TestProcessPatchOnDisk:
    def test_simple_update(self, temp_dir: Path, local_fs: LocalFileSystem) -> None:
        (temp_dir / "hello.txt").write_text("Hello\nGoodbye\n")
        patch = wrap("*** Update File: hello.txt", "@@", "-Hello", "+Hello, world")

        result = process_patch(patch, fs=local_fs)

        assert isinstance(result, PatchResult)
        assert (temp_dir / "hello.txt").read_text() == "Hello, world\nGoodbye\n"
        assert result.fuzz == 0
        assert result.paths == ["hello.txt"]
        assert result.dry_run is False

    def test_add_file(self, temp_dir: Path, local_fs: LocalFileSystem) -> None:
        process_patch(wrap("*** Add File: new.txt", "+line1", "+line2"), fs=local_fs)
        assert (temp_dir / "new.txt").read_text() == "line1\nline2"

    def test_delete_file(self, temp_dir: Path, local_fs: LocalFileSystem) -> None:
        (temp_dir / "old.txt").write_text("bye\n")
        process_patch(wrap("*** Delete File: old.txt"), fs=local_fs)
        assert not (temp_dir / "old.txt").exists()

    def test_move_file(self, temp_dir: Path, local_fs: LocalFileSystem) -> None:
        (temp_dir / "old.txt").write_text("a\nb\n")
        patch = wrap("*** Update File: old.txt", "*** Move to: new/path.txt", "@@", " a", "-b", "+B")

        process_patch(patch, fs=local_fs)

        assert not (temp_dir / "old.txt").exists()
        assert (temp_dir / "new" / "path.txt").read_text() == "a\nB\n"

    def test_uses_config_base_path(self, temp_dir: Path) -> None:
        process_patch(wrap("*** Add File: c.txt", "+c"), config=PatchConfig(base_path=temp_dir))
        assert (temp_dir / "c.txt").read_text() == "c"

    def test_chatter_around_patch_is_ignored(self, temp_dir: Path, local_fs: LocalFileSystem) -> None:
        text = "Here you go:\n" + wrap("*** Add File: a.txt", "+a") + "\nDone."
        process_patch(text, fs=local_fs)
        assert (temp_dir / "a.txt").read_text() == "a"

    def test_multi_file_patch(self, temp_dir: Path, local_fs: LocalFileSystem) -> None:
        (temp_dir / "a.py").write_text("def a():\n    return 1\n")
        (temp_dir / "b.py").write_text("obsolete\n")
        patch = wrap(
            "*** Update File: a.py",
            "@@ def a():",
            "-    return 1",
            "+    return 2",
            "*** Delete File: b.py",
            "*** Add File: c.py",
            "+def c():",
            "+    return 3",
        )

        result = process_patch(patch, fs=local_fs)

        assert (temp_dir / "a.py").read_text() == "def a():\n    return 2\n"
        assert not (temp_dir / "b.py").exists()
        assert (temp_dir / "c.py").read_text() == "def c():\n    return 3"
        assert list(result.commit) == ["a.py", "b.py", "c.py"]


# ---------------------------------------------------------------------------
# Add target protection
# ---------------------------------------------------------------------------
class TestAddTargets:
    def test_add_over_existing_file_is_rejected(self, temp_dir: Path, local_fs: LocalFileSystem) -> None:
        (temp_dir / "exists.txt").write_text("keep me")

        with pytest.raises(FormatError, match="file already exists: exists.txt"):
            process_patch(wrap("*** Add File: exists.txt", "+new"), fs=local_fs)

        assert (temp_dir / "exists.txt").read_text() == "keep me"

    def test_add_of_loaded_file_is_rejected(self) -> None:
        fs = MemoryFileSystem({"a.txt": "a"})
        patch = wrap("*** Add File: a.txt", "+b", "*** Delete File: a.txt")
        with pytest.raises(FormatError, match="file already exists"):
            process_patch(patch, fs=fs)
        assert fs.files == {"a.txt": "a"}

    def test_check_can_be_disabled(self) -> None:
        fs = MemoryFileSystem({"exists.txt": "old"})
        config = PatchConfig(check_add_targets=False)
        process_patch(wrap("*** Add File: exists.txt", "+new"), fs=fs, config=config)
        assert fs.files == {"exists.txt": "new"}


# ---------------------------------------------------------------------------
# Tolerance
# ---------------------------------------------------------------------------
class TestFuzz:
    def test_crlf_file(self) -> None:
        fs = MemoryFileSystem({"f.txt": "a\r\nb\r\n"})
        result = process_patch(wrap("*** Update File: f.txt", "@@", " a", "-b", "+c"), fs=fs)
        assert result.fuzz == 1
        assert fs.files["f.txt"] == "a\r\nc\n"

    def test_whitespace_drift(self) -> None:
        fs = MemoryFileSystem({"f.py": "if x:\n    y = 1\n"})
        result = process_patch(wrap("*** Update File: f.py", "@@", "-y = 1", "+    y = 2"), fs=fs)
        assert result.fuzz == 100
        assert fs.files["f.py"] == "if x:\n    y = 2\n"

    def test_end_of_file_anchor(self) -> None:
        fs = MemoryFileSystem({"f.txt": "end\nmiddle\nend\n"})
        patch = wrap("*** Update File: f.txt", "@@", "-end", "+END", "*** End of File")
        result = process_patch(patch, fs=fs)
        assert fs.files["f.txt"] == "end\nmiddle\nEND\n"
        assert result.fuzz == 0

    def test_end_of_file_fallback_is_flagged(self) -> None:
        fs = MemoryFileSystem({"f.txt": "a\nb\nc\n"})
        patch = wrap("*** Update File: f.txt", "@@", "-a", "+A", "*** End of File")
        result = process_patch(patch, fs=fs)
        assert result.fuzz == 10000
        assert fs.files["f.txt"] == "A\nb\nc\n"


# ---------------------------------------------------------------------------
# Failures leave files untouched
# ---------------------------------------------------------------------------
class TestFailures:
    def test_missing_begin_sentinel(self) -> None:
        with pytest.raises(FormatError):
            process_patch("*** Add File: a.txt\n+a\n*** End Patch", fs=MemoryFileSystem())

    def test_update_of_missing_file(self, local_fs: LocalFileSystem) -> None:
        with pytest.raises(FileSystemError) as exc_info:
            process_patch(wrap("*** Update File: nope.txt", "@@", "-a"), fs=local_fs)
        assert exc_info.value.operation == "read"

    def test_context_mismatch_writes_nothing(self) -> None:
        fs = MemoryFileSystem({"a.txt": "a\n", "b.txt": "b\n"})
        patch = wrap(
            "*** Update File: a.txt",
            "@@",
            "-a",
            "+A",
            "*** Update File: b.txt",
            "@@",
            "-zzz",
            "+Z",
        )
        with pytest.raises(ContextNotFoundError) as exc_info:
            process_patch(patch, fs=fs)
        assert exc_info.value.path == "b.txt"
        assert fs.files == {"a.txt": "a\n", "b.txt": "b\n"}

    def test_hunk_before_previous_match_writes_nothing(self) -> None:
        fs = MemoryFileSystem({"f.txt": "a\nb\nc\n"})
        patch = wrap(
            "*** Update File: f.txt",
            "@@",
            " a",
            "-b",
            "+B",
            "@@",
            "-b",
            "+X",
        )
        with pytest.raises(ContextNotFoundError):
            process_patch(patch, fs=fs)
        assert fs.files == {"f.txt": "a\nb\nc\n"}

    def test_overlapping_chunks_write_nothing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def overlapping(text, originals):
            patch = Patch()
            patch.add(
                "f.txt",
                Action(
                    kind=ActionKind.UPDATE,
                    chunks=[
                        Chunk(orig_index=1, del_lines=["b"], ins_lines=["B"]),
                        Chunk(orig_index=1, del_lines=["b"], ins_lines=["X"]),
                    ],
                ),
            )
            return ParseResult(patch=patch)

        monkeypatch.setattr("agent_patch.patch.driver.text_to_patch", overlapping)
        fs = MemoryFileSystem({"f.txt": "a\nb\nc\n"})

        with pytest.raises(OverlapError):
            process_patch(wrap("*** Update File: f.txt", "@@", "-b", "+B"), fs=fs)
        assert fs.files == {"f.txt": "a\nb\nc\n"}


# ---------------------------------------------------------------------------
# Round trip
# ---------------------------------------------------------------------------
def replace_everything(original: str, target: str) -> str:
    body = ["-" + line for line in original.split("\n")]
    body += ["+" + line for line in target.split("\n")]
    return wrap("*** Update File: f.txt", "@@", *body)


@pytest.mark.parametrize(
    "original,target",
    [
        ("a\nb\nc\n", "x\ny\n"),
        ("single", "single\nline added"),
        ("keep trailing\n", "no trailing"),
        ("  indented\n\tTabbed\n", "  indented\n\tTabbed\nnew\n"),
    ],
)
def test_round_trip(original: str, target: str) -> None:
    fs = MemoryFileSystem({"f.txt": original})
    result = process_patch(replace_everything(original, target), fs=fs)
    assert fs.files["f.txt"] == target
    assert result.fuzz == 0


# ---------------------------------------------------------------------------
# Dry run
# ---------------------------------------------------------------------------
class TestDryRun:
    def test_dry_run_does_not_write(self) -> None:
        fs = MemoryFileSystem({"f.txt": "a\n"})
        result = process_patch(wrap("*** Update File: f.txt", "@@", "-a", "+b"), fs=fs, dry_run=True)

        assert result.dry_run is True
        assert fs.files == {"f.txt": "a\n"}
        change = result.commit["f.txt"]
        assert change.kind is ActionKind.UPDATE
        assert change.old_content == "a\n"
        assert change.new_content == "b\n"


# ---------------------------------------------------------------------------
# Move targets, aliases and symlinks
# ---------------------------------------------------------------------------
class TestMoveTargets:
    def test_move_onto_existing_file_is_rejected(self, temp_dir: Path, local_fs: LocalFileSystem) -> None:
        (temp_dir / "a.txt").write_text("x\n")
        (temp_dir / "b.txt").write_text("precious\n")
        patch = wrap("*** Update File: a.txt", "*** Move to: b.txt", "@@", "-x", "+y")

        with pytest.raises(FormatError, match="move target already exists: b.txt"):
            process_patch(patch, fs=local_fs)

        assert (temp_dir / "a.txt").read_text() == "x\n"
        assert (temp_dir / "b.txt").read_text() == "precious\n"

    def test_move_onto_existing_file_allowed_when_check_disabled(self) -> None:
        fs = MemoryFileSystem({"a.txt": "x\n", "b.txt": "old\n"})
        patch = wrap("*** Update File: a.txt", "*** Move to: b.txt", "@@", "-x", "+y")
        process_patch(patch, fs=fs, config=PatchConfig(check_add_targets=False))
        assert fs.files == {"b.txt": "y\n"}

    def test_move_onto_itself_via_dot_path(self, temp_dir: Path, local_fs: LocalFileSystem) -> None:
        (temp_dir / "a.txt").write_text("x\n")
        patch = wrap("*** Update File: a.txt", "*** Move to: ./a.txt", "@@", "-x", "+y")

        process_patch(patch, fs=local_fs)

        assert (temp_dir / "a.txt").read_text() == "y\n"

    def test_update_through_symlink(self, temp_dir: Path, local_fs: LocalFileSystem) -> None:
        real = temp_dir / "real.txt"
        real.write_text("x\n")
        link = temp_dir / "link.txt"
        link.symlink_to(real)

        process_patch(wrap("*** Update File: link.txt", "@@", "-x", "+y"), fs=local_fs)

        assert link.is_symlink()
        assert real.read_text() == "y\n"
