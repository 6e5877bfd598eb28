"""Stack mutation operations for stackgraft - init, push, pop, drop, shift, delete.

None of these cascade: they edit the stack definition and, for push, check
out a branch. Syncing is left to stackgraft.stack.sync.
"""

import threading
from typing import List, Optional, Tuple

from stackgraft.git.branch import branch_exists, checkout, create_branch, resolve_original_head
from stackgraft.git.repo import is_git_repo
from stackgraft.stack.active import clear_active_stack, get_active_stack_name, set_active_stack
from stackgraft.stack.models import StackBranch, StackDefinition
from stackgraft.stack.store import (
    delete_stack_file, list_stack_names, load_active_marker, load_stack, save_stack, stack_exists
)
from stackgraft.utils.errors import (
    AlreadyExistsError, BranchNotFoundError, EmptyStackError, NotARepositoryError
)
from stackgraft.utils.logging import info
from stackgraft.utils.types import BranchName
from stackgraft.utils.validation import validate_name, validate_stack_name


def load_active_stack(repo: str) -> StackDefinition:
    return load_stack(get_active_stack_name(repo), repo)


def _save(stack: StackDefinition, repo: str):
    stack.touch()
    save_stack(stack, repo)


def list_stacks(repo: str) -> List[Tuple[str, bool]]:
    """All stack names with a flag telling which one is active."""
    active = load_active_marker(repo)
    return [(name, name == active) for name in list_stack_names(repo)]


def init_stack(
    name: str,
    repo: str,
    base_branch: Optional[str] = None,
    *,
    cancel: Optional[threading.Event] = None,
) -> StackDefinition:
    """Create a stack and make it active.

    The trunk is base_branch when given, else the checked-out branch (or the
    HEAD commit if detached).
    """
    validate_stack_name(name)
    if not is_git_repo(repo):
        raise NotARepositoryError("'{}' is not a git repository", repo)
    if stack_exists(name, repo):
        raise AlreadyExistsError("Stack '{}' already exists", name)

    if base_branch is not None:
        validate_name(base_branch, "Base branch")
        if not branch_exists(repo, base_branch, cancel=cancel):
            raise BranchNotFoundError("Branch '{}' does not exist", base_branch)
        trunk = base_branch
    else:
        trunk = resolve_original_head(repo, cancel=cancel)

    stack = StackDefinition(name=name, trunk=BranchName(trunk))
    save_stack(stack, repo)
    set_active_stack(name, repo)
    info("Created stack {} on top of {}", name, trunk)
    return stack


def push_branch(
    branch: str,
    repo: str,
    create: bool = False,
    *,
    cancel: Optional[threading.Event] = None,
) -> StackDefinition:
    """Check out branch (creating it if asked) and put it on top of the active stack."""
    validate_name(branch)
    stack = load_active_stack(repo)
    if stack.contains(branch):
        raise AlreadyExistsError("Branch '{}' is already in stack '{}'", branch, stack.name)

    exists = branch_exists(repo, branch, cancel=cancel)
    if create:
        if exists:
            raise AlreadyExistsError(
                "Branch '{}' already exists. Push it without create to add an existing branch.", branch
            )
        create_branch(repo, BranchName(branch), cancel=cancel)
    else:
        if not exists:
            raise BranchNotFoundError("Branch '{}' does not exist. Push it with create to make it.", branch)
        checkout(repo, branch, cancel=cancel)

    stack.branches.append(StackBranch(name=BranchName(branch)))
    _save(stack, repo)
    return stack


def pop_branch(repo: str) -> BranchName:
    """Remove the top branch from the active stack. The git branch is kept."""
    stack = load_active_stack(repo)
    if not stack.branches:
        raise EmptyStackError("Stack '{}' has no branches to pop", stack.name)
    removed = stack.branches.pop()
    _save(stack, repo)
    return removed.name


def drop_branch(branch: str, repo: str) -> StackDefinition:
    """Remove a branch from any position of the active stack. The git branch is kept."""
    validate_name(branch)
    stack = load_active_stack(repo)
    del stack.branches[stack.index_of(branch)]
    _save(stack, repo)
    return stack


def shift_branch(branch: str, repo: str, *, cancel: Optional[threading.Event] = None) -> StackDefinition:
    """Insert an existing branch at the bottom of the active stack, right on the trunk."""
    validate_name(branch)
    stack = load_active_stack(repo)
    if stack.contains(branch):
        raise AlreadyExistsError("Branch '{}' is already in stack '{}'", branch, stack.name)
    if not branch_exists(repo, branch, cancel=cancel):
        raise BranchNotFoundError("Branch '{}' does not exist in git", branch)

    stack.branches.insert(0, StackBranch(name=BranchName(branch)))
    _save(stack, repo)
    return stack


def delete_stack(name: str, repo: str):
    """Delete a stack definition. Its branches are left alone."""
    validate_stack_name(name)
    delete_stack_file(name, repo)
    if load_active_marker(repo) == name:
        clear_active_stack(repo)
    info("Deleted stack {}", name)
