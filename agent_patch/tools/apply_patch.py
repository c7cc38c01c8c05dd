"""agent_patch/tools/apply_patch.py

### Tool contract (high level)

- Signature
  - ``def apply_patch(input: str) -> str``

- Purpose
  - Let the model create, modify, delete and rename files by sending one
    patch document instead of whole file contents.

- Flow
  1) Build an approval request listing every touched file and ask the
     approver (skipped when the tool has no approver).
  2) Run ``process_patch`` on the text.
  3) Return JSON ``{"error": ""}`` on success, or ``{"error": "...",
     "path": ..., "hint": ...}`` on failure (denials included).

- Multi-file patches are applied file by file; a write failure part way
  through leaves earlier files changed.
"""
from __future__ import annotations

import json
import os
import uuid
from typing import Any, Callable, Dict, Optional

from ..config import PatchConfig
from ..logging import bind_context, get_logger, unbind_context
from ..patch.driver import process_patch
from ..patch.errors import ApprovalDeniedError, PatchError
from ..patch.filesystem import PatchFileSystem
from ..patch.parser import collect_patch_paths
from .approval import (
    APPROVAL_GROUP_FILEIO,
    APPROVAL_SUBSYS_TOOLS,
    APPROVAL_TARGET_DIR,
    ApprovalAction,
    ApprovalChoice,
    ApprovalRequest,
    ApprovalScope,
    Approver,
    approval_policy_id,
    common_root_dir,
    default_approval_request,
)

logger = get_logger(__name__)

TOOL_NAME = "apply_patch"
MAX_LISTED_PATHS = 10


class ApplyPatchTool:
    """Approval-gated ``apply_patch`` tool.

    The callable returned by ``get_tool()`` carries ``__tool_schema__`` and
    can be registered with ``ToolRegistry``.

    Args:
        approver: Asked before every application. ``None`` runs patches
            without asking.
        config: Engine configuration (base path, modes, size limit).
        fs: File system override; defaults to the local disk.
        description: Replacement tool description shown to the model.
    """

    DESCRIPTION = """Apply a patch to one or more files.

Use this tool to create, modify, delete, or rename files. Send the complete
patch text, including the Begin/End markers, as `input`.

Patch Format:
```
*** Begin Patch
*** Update File: path/to/file.py
@@ def function_name
 context line (space prefix)
-line to remove
+line to add
*** Delete File: path/to/obsolete.py
*** Add File: path/to/new.py
+every line of a new file starts with '+'
*** End Patch
```

Rules:
- Paths are relative to the working directory.
- `*** Move to: new/path` may follow an Update header to rename the file.
- Each hunk must carry enough unchanged context lines to be found; hunks
  must appear in file order.
- End a hunk with `*** End of File` when it edits the last lines of a file.
- Never Add a file that already exists; Update it instead.

Returns:
    JSON: {"error": ""} on success, {"error": "...", "hint": "..."} on failure.
"""

    def __init__(
        self,
        approver: Optional[Approver] = None,
        config: Optional[PatchConfig] = None,
        fs: Optional[PatchFileSystem] = None,
        description: Optional[str] = None,
    ):
        self.approver = approver
        self.config = config or PatchConfig()
        self.fs = fs
        self.description = description or self.DESCRIPTION

    # -- approval ----------------------------------------------------------

    def _absolute(self, path: str) -> str:
        return os.path.normpath(str(self.config.resolve(path)))

    def build_approval_request(self, patch_text: str) -> ApprovalRequest:
        """Directory-scoped approval request for the files a patch touches.

        Offers "once", "allow reads/writes under the common directory" (when
        that directory is meaningful) and "no".
        """
        paths = collect_patch_paths(patch_text)
        if not paths:
            return default_approval_request(TOOL_NAME, patch_text)

        abs_paths = sorted(self._absolute(p) for p in paths)
        root_dir = common_root_dir(abs_paths)

        lines = [
            f"agent would like to {TOOL_NAME} affecting files under {root_dir!r}.",
            f"This patch touches {len(abs_paths)} file(s):",
        ]
        for i, path in enumerate(abs_paths):
            if i >= MAX_LISTED_PATHS:
                lines.append(f"  ... and {len(abs_paths) - MAX_LISTED_PATHS} more")
                break
            lines.append(f"  - {path}")
        lines.append("Allow?")

        choices = [ApprovalChoice(key="y", label="Yes, this time only", scope=ApprovalScope.ONCE)]
        if root_dir not in (os.sep, ".", ""):
            choices.append(
                ApprovalChoice(
                    key="dw",
                    label="Yes, and allow all future reads/writes within this directory (recursively)",
                    scope=ApprovalScope.TARGET,
                    policy_id=approval_policy_id(
                        APPROVAL_SUBSYS_TOOLS, APPROVAL_GROUP_FILEIO, APPROVAL_TARGET_DIR, root_dir
                    ),
                    actions=[ApprovalAction.WRITE, ApprovalAction.READ],
                )
            )
        choices.append(ApprovalChoice(key="n", label="No", scope=ApprovalScope.DENY))

        return ApprovalRequest(
            prompt="\n".join(lines),
            choices=choices,
            required_actions=[ApprovalAction.WRITE],
            tool_name=TOOL_NAME,
            arg=patch_text,
        )

    def _require_approval(self, patch_text: str) -> None:
        if self.approver is None:
            return
        decision = self.approver.ask_approval(self.build_approval_request(patch_text))
        if not decision.allowed:
            raise ApprovalDeniedError(
                f"The user denied approval for us to run {TOOL_NAME}; you (the AI agent) "
                "should provide justification to the user for why we need to invoke it.",
            )

    # -- invocation --------------------------------------------------------

    def invoke(self, patch_text: str) -> Dict[str, Any]:
        """Approve and apply ``patch_text``; never raises ``PatchError``."""
        if len(patch_text.encode("utf-8")) > self.config.max_patch_size_bytes:
            return {
                "error": f"Patch exceeds maximum size ({self.config.max_patch_size_bytes} bytes)",
                "hint": "Split into smaller patches",
            }

        bind_context(patch_id=uuid.uuid4().hex[:12], tool=TOOL_NAME)
        try:
            self._require_approval(patch_text)
            result = process_patch(patch_text, fs=self.fs, config=self.config)
        except ApprovalDeniedError as e:
            logger.info("Patch denied by user")
            return e.to_dict()
        except PatchError as e:
            return e.to_dict()
        finally:
            unbind_context("patch_id", "tool")

        logger.debug("Tool call succeeded", files=len(result.commit), fuzz=result.fuzz)
        return {"error": ""}

    def get_schema(self) -> Dict[str, Any]:
        """Anthropic-style tool schema."""
        return {
            "name": TOOL_NAME,
            "description": self.description,
            "input_schema": {
                "type": "object",
                "properties": {
                    "input": {
                        "type": "string",
                        "description": "The patch content you wish to be applied.",
                    },
                },
                "required": ["input"],
            },
        }

    def get_tool(self) -> Callable:
        instance = self

        def apply_patch(input: str) -> str:
            return json.dumps(instance.invoke(input))

        apply_patch.__doc__ = self.description
        apply_patch.__tool_schema__ = self.get_schema()
        return apply_patch
