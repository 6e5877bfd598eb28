"""Cascading sync of a stack, with continue and abort after a conflict.

A sync merges each branch's parent (the trunk for the first branch, the
previous branch otherwise) into it, bottom to top. When a merge conflicts
the cascade stops and an OperationState is written so that `continue_sync`
can pick up after the user resolved it, or `abort_sync` can roll it back.
Branches that changed are pushed once the cascade reaches its end.
"""

import os
import threading
from typing import Dict, List, Optional

from stackgraft.git.branch import branch_exists, checkout, resolve_original_head
from stackgraft.git.merge import get_conflicting_files, merge, merge_abort, merge_continue
from stackgraft.git.refs import count_commits_between, is_up_to_date
from stackgraft.git.remote import push_branch
from stackgraft.git.repo import merge_in_progress
from stackgraft.git.worktree import worktree_branch_map
from stackgraft.stack.active import get_active_stack_name
from stackgraft.stack.models import (
    BranchSyncResult, OperationState, StackDefinition, SyncResult, SyncStatus
)
from stackgraft.stack.store import (
    clear_operation_state, load_operation_state, load_stack, save_operation_state, save_stack
)
from stackgraft.utils.errors import (
    BranchNotFoundError, CorruptStateError, GitError, NoOperationInProgressError,
    NotFoundError, OperationInProgressError
)
from stackgraft.utils.logging import info, warning
from stackgraft.utils.types import BranchName, DEFAULT_REMOTE
from stackgraft.utils.validation import validate_name


class _Cascade:
    """State shared by the merge steps of one sync invocation."""

    def __init__(
        self,
        repo: str,
        stack: StackDefinition,
        original_branch: str,
        sync_up_to_index: Optional[int],
        result: SyncResult,
        cancel: Optional[threading.Event],
    ):
        self.repo = repo
        self.stack = stack
        self.original_branch = original_branch
        self.sync_up_to_index = sync_up_to_index
        self.result = result
        self.cancel = cancel
        self.merged: List[BranchName] = []
        self.worktrees: Dict[BranchName, str] = worktree_branch_map(repo, cancel=cancel)

    def run(self, start: int, end: int, parent: BranchName) -> bool:
        """Sync branches[start:end]; False if it stopped on a conflict."""
        for i in range(start, end):
            branch = self.stack.branches[i].name
            if not self.sync_one(i, parent, branch):
                return False
            parent = branch
        return True

    def sync_one(self, index: int, parent: BranchName, branch: BranchName) -> bool:
        if not branch_exists(self.repo, branch, cancel=self.cancel):
            raise BranchNotFoundError(
                "Branch '{0}' in stack '{1}' no longer exists.\n"
                "Restore it with 'git branch {0} <commit>', or remove it with 'stackgraft drop {0}'.",
                branch, self.stack.name,
            )

        if is_up_to_date(self.repo, parent, branch, cancel=self.cancel):
            info("{} is already up to date with {}", branch, parent)
            self.result.branch_results.append(BranchSyncResult(
                name=branch,
                status=SyncStatus.UP_TO_DATE,
                commit_count=self.commit_count(parent, branch),
            ))
            return True

        worktree_path = self.worktrees.get(branch)
        if worktree_path is not None:
            info("Merging {} into {} in worktree {}", parent, branch, worktree_path)
            cwd = worktree_path
        else:
            checkout(self.repo, branch, cancel=self.cancel)
            info("Merging {} into {}", parent, branch)
            cwd = self.repo

        r = merge(cwd, parent, cancel=self.cancel)
        if r.success:
            self.record_merged(parent, branch)
            return True

        conflicting_files = get_conflicting_files(cwd, cancel=self.cancel)
        if not conflicting_files and not merge_in_progress(cwd):
            raise GitError("Merging {} into {} failed:\n{}", parent, branch, r.stderr)

        warning("Merging {} into {} conflicts in {} file(s)", parent, branch, len(conflicting_files))
        save_operation_state(OperationState(
            stack_name=self.stack.name,
            branch_index=index,
            original_branch=self.original_branch,
            sync_up_to_index=self.sync_up_to_index,
            worktree_path=worktree_path,
        ), self.repo)
        self.result.branch_results.append(BranchSyncResult(
            name=branch,
            status=SyncStatus.CONFLICT,
            conflicting_files=conflicting_files,
        ))
        self.result.has_conflict = True
        return False

    def record_merged(self, parent: BranchName, branch: BranchName):
        self.merged.append(branch)
        self.result.branch_results.append(BranchSyncResult(
            name=branch,
            status=SyncStatus.MERGED,
            commit_count=self.commit_count(parent, branch),
        ))

    def commit_count(self, parent: BranchName, branch: BranchName) -> int:
        return count_commits_between(self.repo, parent, branch, cancel=self.cancel)

    def finish(self, push: bool, remote: str):
        """Push what changed, then go back to where the user was."""
        if push:
            for branch in self.merged:
                r = push_branch(self.repo, branch, remote, cancel=self.cancel)
                if not r.success:
                    message = "Failed to push '{}': {}".format(branch, r.stderr)
                    warning("{}", message)
                    self.result.push_warnings.append(message)

        clear_operation_state(self.repo)
        _return_to(self.repo, self.original_branch, "Sync completed", self.cancel)


def _return_to(repo: str, original_branch: str, what: str, cancel: Optional[threading.Event]):
    try:
        checkout(repo, original_branch, cancel=cancel)
    except GitError as e:
        raise GitError(
            "{} but failed to return to original branch '{}': {}", what, original_branch, e
        ) from e


def sync_stack(
    repo: str,
    branch: Optional[str] = None,
    *,
    push: bool = True,
    remote: str = DEFAULT_REMOTE,
    cancel: Optional[threading.Event] = None,
) -> SyncResult:
    """Sync the active stack, or only one of its branches.

    Refuses to start while another sync is waiting for continue or abort.
    """
    existing = load_operation_state(repo)
    if existing is not None:
        raise OperationInProgressError(existing.stack_name)

    stack = load_stack(get_active_stack_name(repo), repo)

    if branch is not None:
        validate_name(branch)
        start = stack.index_of(branch)
        end = start + 1
        sync_up_to_index: Optional[int] = start
    else:
        start, end, sync_up_to_index = 0, len(stack.branches), None

    original_branch = resolve_original_head(repo, cancel=cancel)
    result = SyncResult(trunk=stack.trunk)
    cascade = _Cascade(repo, stack, original_branch, sync_up_to_index, result, cancel)

    if cascade.run(start, end, stack.parent_of(start)):
        cascade.finish(push, remote)

    stack.touch()
    save_stack(stack, repo)
    return result


def continue_sync(
    repo: str,
    *,
    push: bool = True,
    remote: str = DEFAULT_REMOTE,
    cancel: Optional[threading.Event] = None,
) -> SyncResult:
    """Conclude the conflicted merge and carry the cascade on from there."""
    state = load_operation_state(repo)
    if state is None:
        raise NoOperationInProgressError()

    stack = load_stack(state.stack_name, repo)
    if state.branch_index >= len(stack.branches):
        raise CorruptStateError(
            "Operation state points at branch {} but stack '{}' has {} branches. "
            "Run 'stackgraft abort' to clean up.",
            state.branch_index, stack.name, len(stack.branches),
        )

    cwd = repo
    if state.worktree_path is not None:
        if not os.path.isdir(state.worktree_path):
            raise NotFoundError(
                "The worktree at '{}' no longer exists.\n"
                "Run 'stackgraft abort' to clean up, then try the sync again.",
                state.worktree_path,
            )
        cwd = state.worktree_path

    blocked = stack.branches[state.branch_index].name
    parent = stack.parent_of(state.branch_index)

    r = merge_continue(cwd, cancel=cancel)
    if not r.success:
        if merge_in_progress(cwd):
            info("{} still has unresolved conflicts", blocked)
            return SyncResult(
                trunk=stack.trunk,
                branch_results=[BranchSyncResult(
                    name=blocked,
                    status=SyncStatus.CONFLICT,
                    conflicting_files=get_conflicting_files(cwd, cancel=cancel),
                )],
                has_conflict=True,
            )
        # The merge was concluded outside of stackgraft
        if not is_up_to_date(repo, parent, blocked, cancel=cancel):
            raise GitError(
                "No merge in progress and {} does not contain {}. "
                "Run 'stackgraft abort' to clean up.\n{}",
                blocked, parent, r.stderr,
            )

    result = SyncResult(trunk=stack.trunk)
    cascade = _Cascade(repo, stack, state.original_branch, state.sync_up_to_index, result, cancel)
    cascade.record_merged(parent, blocked)

    if state.sync_up_to_index is not None:
        end = min(state.sync_up_to_index + 1, len(stack.branches))
    else:
        end = len(stack.branches)
    if cascade.run(state.branch_index + 1, end, blocked):
        cascade.finish(push, remote)
    return result


def abort_sync(repo: str, *, cancel: Optional[threading.Event] = None) -> Optional[OperationState]:
    """Abort the interrupted merge and return to the original branch.

    Without an operation state this only aborts a merge that is in progress
    in the repository, whoever started it. Returns the aborted state.
    """
    state = load_operation_state(repo)

    worktree_path = state.worktree_path if state is not None else None
    if worktree_path is not None and os.path.isdir(worktree_path):
        if merge_in_progress(worktree_path):
            info("Aborting merge in worktree {}", worktree_path)
            merge_abort(worktree_path, cancel=cancel)
    elif merge_in_progress(repo):
        info("Aborting merge")
        merge_abort(repo, cancel=cancel)

    if state is None:
        return None

    try:
        _return_to(repo, state.original_branch, "Abort completed", cancel)
    except GitError:
        clear_operation_state(repo)
        raise
    clear_operation_state(repo)
    return state
