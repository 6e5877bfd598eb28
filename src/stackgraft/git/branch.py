"""Branch operations for stackgraft."""

import threading
from typing import List, Optional

from stackgraft.utils.errors import GitError
from stackgraft.utils.logging import info
from stackgraft.utils.shell import remove_prefix, run_git, run_git_checked
from stackgraft.utils.types import BranchName, Commit


def branch_exists(repo: str, branch: str, *, cancel: Optional[threading.Event] = None) -> bool:
    """Whether a local branch with this name exists."""
    r = run_git(["rev-parse", "--verify", "--quiet", "refs/heads/{}".format(branch)], repo, cancel=cancel)
    return r.success


def get_current_branch(repo: str, *, cancel: Optional[threading.Event] = None) -> Optional[BranchName]:
    """Get the checked-out branch, or None when HEAD is detached."""
    r = run_git(["symbolic-ref", "-q", "HEAD"], repo, cancel=cancel)
    if r.success and r.stdout.strip():
        return BranchName(remove_prefix(r.stdout.strip(), "refs/heads/"))
    return None


def get_all_branches(repo: str, *, cancel: Optional[threading.Event] = None) -> List[BranchName]:
    """Get all local branches."""
    r = run_git_checked(["for-each-ref", "--format", "%(refname:short)", "refs/heads"], repo, cancel=cancel)
    return [BranchName(b) for b in r.lines()]


def branch_name_completer(prefix, parsed_args, **kwargs):
    """Argcomplete completer function for branch names."""
    try:
        branches = get_all_branches(".")
        return [branch for branch in branches if branch.startswith(prefix)]
    except Exception:
        return []


def resolve_original_head(repo: str, *, cancel: Optional[threading.Event] = None) -> str:
    """Return the checked-out branch name, or the commit id if HEAD is detached."""
    branch = get_current_branch(repo, cancel=cancel)
    if branch is not None:
        return branch
    r = run_git(["rev-parse", "HEAD"], repo, cancel=cancel)
    if not r.success or not r.stdout.strip():
        raise GitError("Cannot determine current HEAD. Is this an empty repository?")
    return Commit(r.stdout.strip())


def checkout(repo: str, ref: str, *, cancel: Optional[threading.Event] = None):
    """Checkout a branch or commit, raising GitError on failure."""
    info("Checking out {}", ref)
    run_git_checked(["checkout", ref], repo, cancel=cancel)


def create_branch(repo: str, branch: BranchName, *, cancel: Optional[threading.Event] = None):
    """Create a new branch at HEAD and check it out."""
    info("Creating branch {}", branch)
    run_git_checked(["checkout", "-b", branch], repo, cancel=cancel)
