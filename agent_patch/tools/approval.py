"""User approval for tool calls.

An ``ApprovalRequest`` offers the user a few choices. Choosing a
target-scoped choice (for example "allow all writes under this directory")
stores a policy, and later requests that offer a choice with the same or a
descendant policy are approved without asking again.

Policy IDs have the form ``subsys:group:target:domain``, e.g.
``tools:fileio:directory:/home/me/project``.
"""
from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Sequence


class ApprovalScope(str, Enum):
    ONCE = "once"      # just this invocation
    TARGET = "target"  # tool-defined target (file, directory, ...)
    DENY = "deny"


class ApprovalAction(str, Enum):
    READ = "read"
    WRITE = "write"
    EXECUTE = "exec"


APPROVAL_SUBSYS_TOOLS = "tools"
APPROVAL_GROUP_FILEIO = "fileio"
APPROVAL_TARGET_FILE = "file"
APPROVAL_TARGET_DIR = "directory"

# Targets whose policies also cover descendants.
_RECURSIVE_TARGETS = {APPROVAL_TARGET_DIR}


@dataclass
class ApprovalChoice:
    """One option shown to the user."""

    key: str
    label: str
    scope: ApprovalScope
    policy_id: str = ""
    actions: List[ApprovalAction] = field(default_factory=list)


@dataclass
class ApprovalRequest:
    """A prompt plus the choices offered for it."""

    prompt: str
    choices: List[ApprovalChoice]
    required_actions: List[ApprovalAction] = field(default_factory=list)
    tool_name: str = ""
    arg: Any = None


@dataclass
class ApprovalDecision:
    allowed: bool
    choice: Optional[ApprovalChoice] = None


class Approver(Protocol):
    """Anything that can answer an approval request."""

    def ask_approval(self, request: ApprovalRequest) -> ApprovalDecision:
        ...


def approval_policy_id(subsys: str, group: str, target: str, domain: str) -> str:
    """Build a stable policy identifier."""
    return f"{subsys}:{group}:{target}:{domain}"


def parse_policy_id(policy_id: str) -> Optional[tuple[str, str, str, str]]:
    """Split a policy identifier into its four parts, or None if malformed."""
    parts = policy_id.split(":", 3)
    if len(parts) != 4:
        return None
    return parts[0], parts[1], parts[2], parts[3]


def is_path_within(path: str, root: str) -> bool:
    """True if ``path`` equals ``root`` or lies beneath it."""
    if not root:
        return False
    clean_path = os.path.normpath(path)
    clean_root = os.path.normpath(root)
    if clean_path == clean_root:
        return True
    if not clean_root.endswith(os.sep):
        clean_root += os.sep
    return clean_path.startswith(clean_root)


def has_all_actions(have: Sequence[ApprovalAction], need: Sequence[ApprovalAction]) -> bool:
    return set(need).issubset(have)


def common_root_dir(paths: Sequence[str]) -> str:
    """Deepest directory containing every path; ``"."`` for no paths."""
    if not paths:
        return "."

    common = os.path.dirname(os.path.normpath(paths[0]))
    for path in paths[1:]:
        directory = os.path.dirname(os.path.normpath(path))
        while common not in (os.sep, ".", "") and not is_path_within(directory, common):
            common = os.path.dirname(common)
        if not common:
            break
    return common or "."


class MemoryApprovalPolicyStore:
    """In-memory policy store with recursive directory semantics.

    A stored directory policy answers for that directory and everything
    beneath it; when several stored directories qualify, the deepest wins.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._data: Dict[str, List[ApprovalAction]] = {}

    def check(self, policy_id: str) -> Optional[List[ApprovalAction]]:
        """Return the allowed actions for ``policy_id``, or None."""
        with self._lock:
            if policy_id in self._data:
                return list(self._data[policy_id])

            parsed = parse_policy_id(policy_id)
            if parsed is None or parsed[2] not in _RECURSIVE_TARGETS:
                return None
            subsys, group, target, domain = parsed

            best: Optional[List[ApprovalAction]] = None
            best_len = -1
            for stored_id, actions in self._data.items():
                stored = parse_policy_id(stored_id)
                if stored is None or stored[:3] != (subsys, group, target):
                    continue
                if is_path_within(domain, stored[3]) and len(stored[3]) > best_len:
                    best, best_len = list(actions), len(stored[3])
            return best

    def save(self, policy_id: str, actions: Sequence[ApprovalAction]) -> None:
        """Store ``actions`` for ``policy_id``, replacing any previous set."""
        with self._lock:
            self._data[policy_id] = list(actions)


class PolicyStoreApprover:
    """Consult stored policies before delegating to another approver.

    Allow decisions on target-scoped choices that name a policy and actions
    are saved; denials are never remembered.
    """

    def __init__(self, underlying: Approver, store: Optional[MemoryApprovalPolicyStore] = None):
        self.underlying = underlying
        self.store = store if store is not None else MemoryApprovalPolicyStore()

    def ask_approval(self, request: ApprovalRequest) -> ApprovalDecision:
        if request.required_actions:
            for choice in request.choices:
                if not choice.policy_id:
                    continue
                actions = self.store.check(choice.policy_id)
                if actions is not None and has_all_actions(actions, request.required_actions):
                    return ApprovalDecision(allowed=True, choice=choice)

        if not request.choices:
            raise ValueError("no approval choices provided")

        decision = self.underlying.ask_approval(request)
        choice = decision.choice
        if (
            decision.allowed
            and choice is not None
            and choice.policy_id
            and choice.scope is ApprovalScope.TARGET
            and choice.actions
        ):
            self.store.save(choice.policy_id, choice.actions)
        return decision


class StaticApprover:
    """Answer every request by picking the choice with a fixed key.

    Useful for non-interactive runs: ``StaticApprover("y")`` approves once,
    ``StaticApprover("n")`` denies. A missing key denies.
    """

    def __init__(self, key: str):
        self.key = key
        self.requests: List[ApprovalRequest] = []

    def ask_approval(self, request: ApprovalRequest) -> ApprovalDecision:
        self.requests.append(request)
        for choice in request.choices:
            if choice.key == self.key:
                return ApprovalDecision(allowed=choice.scope is not ApprovalScope.DENY, choice=choice)
        return ApprovalDecision(allowed=False)


def default_approval_request(tool_name: str, arg: Any) -> ApprovalRequest:
    """Plain yes/no request for tools without a custom prompt."""
    return ApprovalRequest(
        prompt=f"agent would like to '{tool_name}'('{arg}')\nallow?",
        choices=[
            ApprovalChoice(key="y", label="yes", scope=ApprovalScope.ONCE),
            ApprovalChoice(key="n", label="no", scope=ApprovalScope.DENY),
        ],
        tool_name=tool_name,
        arg=arg,
    )
