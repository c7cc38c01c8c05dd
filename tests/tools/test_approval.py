"""Tests for approval requests, policies and approvers."""
import os

import pytest

from agent_patch.tools.approval import (
    ApprovalAction,
    ApprovalChoice,
    ApprovalDecision,
    ApprovalRequest,
    ApprovalScope,
    MemoryApprovalPolicyStore,
    PolicyStoreApprover,
    StaticApprover,
    approval_policy_id,
    common_root_dir,
    default_approval_request,
    is_path_within,
    parse_policy_id,
)

READ, WRITE = ApprovalAction.READ, ApprovalAction.WRITE


def dir_policy(path: str) -> str:
    return approval_policy_id("tools", "fileio", "directory", path)


def dir_request(path: str) -> ApprovalRequest:
    return ApprovalRequest(
        prompt=f"write under {path}?",
        choices=[
            ApprovalChoice(key="y", label="yes", scope=ApprovalScope.ONCE),
            ApprovalChoice(
                key="dw",
                label="always",
                scope=ApprovalScope.TARGET,
                policy_id=dir_policy(path),
                actions=[WRITE, READ],
            ),
            ApprovalChoice(key="n", label="no", scope=ApprovalScope.DENY),
        ],
        required_actions=[WRITE],
        tool_name="apply_patch",
    )


class CountingApprover:
    """Picks a fixed choice and counts how often it was asked."""

    def __init__(self, key: str):
        self.inner = StaticApprover(key)
        self.calls = 0

    def ask_approval(self, request: ApprovalRequest) -> ApprovalDecision:
        self.calls += 1
        return self.inner.ask_approval(request)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
class TestHelpers:
    def test_policy_id_round_trip(self) -> None:
        policy = dir_policy("/home/me/project")
        assert policy == "tools:fileio:directory:/home/me/project"
        assert parse_policy_id(policy) == ("tools", "fileio", "directory", "/home/me/project")

    def test_policy_id_domain_may_contain_colons(self) -> None:
        assert parse_policy_id("tools:fileio:directory:C:/x") == ("tools", "fileio", "directory", "C:/x")

    def test_malformed_policy_id(self) -> None:
        assert parse_policy_id("tools:fileio") is None

    def test_is_path_within(self) -> None:
        assert is_path_within("/a/b", "/a/b")
        assert is_path_within("/a/b/c.txt", "/a/b")
        assert is_path_within("/a/b/", "/a/b")
        assert not is_path_within("/a/bc", "/a/b")
        assert not is_path_within("/a", "/a/b")
        assert not is_path_within("/a", "")

    def test_common_root_dir(self) -> None:
        assert common_root_dir([]) == "."
        assert common_root_dir(["/w/src/a.py"]) == "/w/src"
        assert common_root_dir(["/w/src/a.py", "/w/src/pkg/b.py"]) == "/w/src"
        assert common_root_dir(["/w/src/a.py", "/w/docs/b.md"]) == "/w"
        assert common_root_dir(["/x/a", "/y/b"]) == os.sep

    def test_default_request_is_yes_no(self) -> None:
        request = default_approval_request("apply_patch", "text")
        assert [c.key for c in request.choices] == ["y", "n"]
        assert request.tool_name == "apply_patch"


# ---------------------------------------------------------------------------
# MemoryApprovalPolicyStore
# ---------------------------------------------------------------------------
class TestPolicyStore:
    def test_exact_match(self) -> None:
        store = MemoryApprovalPolicyStore()
        store.save(dir_policy("/w"), [WRITE])
        assert store.check(dir_policy("/w")) == [WRITE]

    def test_unknown_policy(self) -> None:
        assert MemoryApprovalPolicyStore().check(dir_policy("/w")) is None

    def test_directory_policy_covers_descendants(self) -> None:
        store = MemoryApprovalPolicyStore()
        store.save(dir_policy("/w"), [WRITE, READ])
        assert store.check(dir_policy("/w/src/pkg")) == [WRITE, READ]
        assert store.check(dir_policy("/workspace")) is None

    def test_deepest_directory_wins(self) -> None:
        store = MemoryApprovalPolicyStore()
        store.save(dir_policy("/w"), [READ])
        store.save(dir_policy("/w/src"), [READ, WRITE])
        assert store.check(dir_policy("/w/src/pkg")) == [READ, WRITE]
        assert store.check(dir_policy("/w/docs")) == [READ]

    def test_file_policies_are_not_recursive(self) -> None:
        store = MemoryApprovalPolicyStore()
        store.save(approval_policy_id("tools", "fileio", "file", "/w"), [WRITE])
        assert store.check(approval_policy_id("tools", "fileio", "file", "/w/a.txt")) is None

    def test_other_group_does_not_match(self) -> None:
        store = MemoryApprovalPolicyStore()
        store.save(approval_policy_id("tools", "shell", "directory", "/w"), [WRITE])
        assert store.check(dir_policy("/w/src")) is None

    def test_save_replaces_actions(self) -> None:
        store = MemoryApprovalPolicyStore()
        store.save(dir_policy("/w"), [READ])
        store.save(dir_policy("/w"), [WRITE])
        assert store.check(dir_policy("/w")) == [WRITE]


# ---------------------------------------------------------------------------
# Approvers
# ---------------------------------------------------------------------------
class TestStaticApprover:
    def test_picks_matching_choice(self) -> None:
        decision = StaticApprover("y").ask_approval(dir_request("/w"))
        assert decision.allowed
        assert decision.choice is not None and decision.choice.key == "y"

    def test_deny_choice(self) -> None:
        assert not StaticApprover("n").ask_approval(dir_request("/w")).allowed

    def test_missing_key_denies(self) -> None:
        decision = StaticApprover("zz").ask_approval(dir_request("/w"))
        assert not decision.allowed
        assert decision.choice is None

    def test_records_requests(self) -> None:
        approver = StaticApprover("y")
        request = dir_request("/w")
        approver.ask_approval(request)
        assert approver.requests == [request]


class TestPolicyStoreApprover:
    def test_target_choice_is_remembered(self) -> None:
        inner = CountingApprover("dw")
        approver = PolicyStoreApprover(inner)

        assert approver.ask_approval(dir_request("/w")).allowed
        assert approver.ask_approval(dir_request("/w/src")).allowed
        assert inner.calls == 1

    def test_once_choice_is_not_remembered(self) -> None:
        inner = CountingApprover("y")
        approver = PolicyStoreApprover(inner)
        approver.ask_approval(dir_request("/w"))
        approver.ask_approval(dir_request("/w"))
        assert inner.calls == 2

    def test_denial_is_not_remembered(self) -> None:
        inner = CountingApprover("n")
        approver = PolicyStoreApprover(inner)
        assert not approver.ask_approval(dir_request("/w")).allowed
        assert not approver.ask_approval(dir_request("/w")).allowed
        assert inner.calls == 2

    def test_stored_policy_must_cover_required_actions(self) -> None:
        store = MemoryApprovalPolicyStore()
        store.save(dir_policy("/w"), [READ])
        inner = CountingApprover("n")
        approver = PolicyStoreApprover(inner, store)
        assert not approver.ask_approval(dir_request("/w")).allowed
        assert inner.calls == 1

    def test_shared_store(self) -> None:
        store = MemoryApprovalPolicyStore()
        PolicyStoreApprover(StaticApprover("dw"), store).ask_approval(dir_request("/w"))
        inner = CountingApprover("n")
        assert PolicyStoreApprover(inner, store).ask_approval(dir_request("/w/a")).allowed
        assert inner.calls == 0

    def test_no_choices_fails(self) -> None:
        approver = PolicyStoreApprover(StaticApprover("y"))
        with pytest.raises(ValueError, match="no approval choices"):
            approver.ask_approval(ApprovalRequest(prompt="?", choices=[]))
