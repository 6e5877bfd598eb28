"""Stack data models for stackgraft."""

import dataclasses
import enum
from datetime import datetime, timezone
from typing import List, Optional

from stackgraft.utils.errors import BranchNotInStackError
from stackgraft.utils.types import BranchName, SYNC_OPERATION


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PrState(enum.Enum):
    OPEN = "open"
    MERGED = "merged"
    CLOSED = "closed"

    @classmethod
    def parse(cls, value) -> "PrState":
        """Unknown or missing values read as open."""
        for state in cls:
            if state.value == value:
                return state
        return cls.OPEN


@dataclasses.dataclass
class PullRequestRef:
    """Descriptive pull request metadata; the sync engine ignores it."""
    number: int
    url: str
    state: PrState = PrState.OPEN


@dataclasses.dataclass
class StackBranch:
    """One rung of a stack."""
    name: BranchName
    pr: Optional[PullRequestRef] = None


@dataclasses.dataclass
class StackDefinition:
    """An ordered chain of branches built on top of a trunk.

    Index 0 of `branches` sits directly on the trunk; the last entry is the
    top of the stack. The order is the merge cascade order.
    """
    name: str
    trunk: BranchName
    branches: List[StackBranch] = dataclasses.field(default_factory=list)
    created_at: datetime = dataclasses.field(default_factory=utcnow)
    updated_at: datetime = dataclasses.field(default_factory=utcnow)

    def branch_names(self) -> List[BranchName]:
        return [b.name for b in self.branches]

    def contains(self, branch: str) -> bool:
        return any(b.name == branch for b in self.branches)

    def index_of(self, branch: str) -> int:
        """Position of branch in the stack, raising if it is not there."""
        for i, b in enumerate(self.branches):
            if b.name == branch:
                return i
        raise BranchNotInStackError(branch, self.name)

    def parent_of(self, index: int) -> BranchName:
        """The branch a given position merges from."""
        return self.trunk if index == 0 else self.branches[index - 1].name

    def top(self) -> Optional[StackBranch]:
        return self.branches[-1] if self.branches else None

    def touch(self):
        self.updated_at = utcnow()


@dataclasses.dataclass(frozen=True)
class OperationState:
    """Checkpoint of a sync interrupted by a conflict.

    `original_branch` is a branch name, or a commit id if HEAD was detached.
    `sync_up_to_index` is only set when the sync was scoped to one branch.
    `worktree_path` is only set when the conflicted merge happened in a
    linked worktree.
    """
    stack_name: str
    branch_index: int
    original_branch: str
    operation: str = SYNC_OPERATION
    sync_up_to_index: Optional[int] = None
    worktree_path: Optional[str] = None


class SyncStatus(enum.Enum):
    UP_TO_DATE = "up-to-date"
    MERGED = "merged"
    CONFLICT = "conflict"


@dataclasses.dataclass
class BranchSyncResult:
    name: BranchName
    status: SyncStatus
    commit_count: int = 0
    # Only filled for SyncStatus.CONFLICT
    conflicting_files: List[str] = dataclasses.field(default_factory=list)


@dataclasses.dataclass
class SyncResult:
    trunk: BranchName
    branch_results: List[BranchSyncResult] = dataclasses.field(default_factory=list)
    has_conflict: bool = False
    push_warnings: List[str] = dataclasses.field(default_factory=list)

    def conflict(self) -> Optional[BranchSyncResult]:
        for r in self.branch_results:
            if r.status == SyncStatus.CONFLICT:
                return r
        return None


@dataclasses.dataclass(frozen=True)
class CommitResult:
    target_branch: BranchName
    commit: str
    original_branch: str
    # Branches above the target now need a sync
    branches_are_stale: bool = False
