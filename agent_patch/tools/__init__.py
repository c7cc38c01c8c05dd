"""Agent-facing tools.

This module provides:
- ToolRegistry: registry of tool callables and their schemas
- ApplyPatchTool: the approval-gated ``apply_patch`` tool
- Approval primitives: requests, choices, policy store and approvers
"""

from .apply_patch import ApplyPatchTool
from .approval import (
    ApprovalAction,
    ApprovalChoice,
    ApprovalDecision,
    ApprovalRequest,
    ApprovalScope,
    Approver,
    MemoryApprovalPolicyStore,
    PolicyStoreApprover,
    StaticApprover,
    approval_policy_id,
    common_root_dir,
)
from .base import ToolRegistry

__all__ = [
    # Registry
    'ToolRegistry',
    # Tools
    'ApplyPatchTool',
    # Approval
    'ApprovalAction',
    'ApprovalChoice',
    'ApprovalDecision',
    'ApprovalRequest',
    'ApprovalScope',
    'Approver',
    'MemoryApprovalPolicyStore',
    'PolicyStoreApprover',
    'StaticApprover',
    'approval_policy_id',
    'common_root_dir',
]
