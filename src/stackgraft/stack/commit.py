"""Commit routing: commit staged changes onto a branch of the active stack."""

import threading
from typing import Optional

from stackgraft.git.branch import checkout, get_current_branch, resolve_original_head
from stackgraft.git.index import commit, find_commit_stash, has_staged_changes, stash_pop, stash_staged
from stackgraft.git.refs import get_short_commit
from stackgraft.stack.active import get_active_stack_name
from stackgraft.stack.models import CommitResult, StackDefinition
from stackgraft.stack.store import load_stack
from stackgraft.utils.errors import GitError, NoStagedChangesError
from stackgraft.utils.logging import info
from stackgraft.utils.types import BranchName
from stackgraft.utils.validation import validate_name


def resolve_target_branch(
    branch: Optional[str],
    stack: StackDefinition,
    repo: str,
    *,
    cancel: Optional[threading.Event] = None,
) -> BranchName:
    """The given branch, else the top of the stack, else the checked-out branch."""
    if branch is not None:
        validate_name(branch)
        stack.index_of(branch)
        return BranchName(branch)
    top = stack.top()
    if top is not None:
        return top.name
    current = get_current_branch(repo, cancel=cancel)
    if current is None:
        raise GitError("HEAD is detached and stack '{}' has no branches to commit to", stack.name)
    return current


def commit_to_branch(
    branch: Optional[str],
    message: Optional[str],
    repo: str,
    *,
    amend: bool = False,
    cancel: Optional[threading.Event] = None,
) -> CommitResult:
    """Commit the staged changes onto a branch of the active stack.

    When the target is not checked out, the staged changes are carried over
    with a stash and HEAD is put back afterwards. Branches above the target
    are not synced; `branches_are_stale` tells the caller they need it.
    """
    stack = load_stack(get_active_stack_name(repo), repo)
    target = resolve_target_branch(branch, stack, repo, cancel=cancel)

    staged = has_staged_changes(repo, cancel=cancel)
    if not staged and not amend:
        raise NoStagedChangesError()

    original_branch = resolve_original_head(repo, cancel=cancel)
    if original_branch == target:
        commit(repo, message, amend=amend, cancel=cancel)
    else:
        _commit_elsewhere(repo, target, original_branch, message, amend, staged, cancel)

    sha = get_short_commit(repo, target, cancel=cancel)
    if sha is None:
        raise GitError("Cannot resolve the new commit on '{}'", target)
    info("Committed {} on {}", sha, target)

    stale = stack.contains(target) and stack.index_of(target) < len(stack.branches) - 1
    return CommitResult(
        target_branch=target,
        commit=sha,
        original_branch=original_branch,
        branches_are_stale=stale,
    )


def _commit_elsewhere(repo, target, original_branch, message, amend, staged, cancel):
    if staged:
        stash_staged(repo, cancel=cancel)
    try:
        checkout(repo, target, cancel=cancel)
        if staged:
            stash_pop(repo, cancel=cancel)
        commit(repo, message, amend=amend, cancel=cancel)
    except GitError as e:
        stash = find_commit_stash(repo, cancel=cancel) if staged else None
        returned = _checkout_quietly(repo, original_branch, cancel)
        if stash is not None:
            raise GitError(
                "Commit failed. Your staged changes are preserved in git stash ({0}). "
                "Run 'git stash pop {0}' to recover them.\n{1}",
                stash, e,
            ) from e
        if not returned:
            raise GitError(
                "Commit failed and could not return to original branch '{}'. "
                "You are currently on '{}'. Original error: {}",
                original_branch, target, e,
            ) from e
        raise

    try:
        checkout(repo, original_branch, cancel=cancel)
    except GitError as e:
        raise GitError(
            "Commit succeeded on '{}' but failed to return to original branch '{}': {}",
            target, original_branch, e,
        ) from e


def _checkout_quietly(repo: str, ref: str, cancel: Optional[threading.Event]) -> bool:
    try:
        checkout(repo, ref, cancel=cancel)
    except GitError:
        return False
    return True
