"""Worktree directory for stackgraft.

Maps branches to the linked worktrees they are checked out in, so the sync
engine can merge a branch where it lives instead of checking it out twice.
"""

import dataclasses
import os
import threading
from typing import Dict, List, Optional

from stackgraft.git.branch import branch_exists
from stackgraft.utils.errors import AlreadyExistsError, BranchNotFoundError, GitError, ValidationError
from stackgraft.utils.logging import info
from stackgraft.utils.shell import run_git, run_git_checked
from stackgraft.utils.types import BranchName
from stackgraft.utils.validation import validate_name

_WORKTREE_PREFIX = "worktree "
_BRANCH_PREFIX = "branch refs/heads/"
_HEAD_PREFIX = "HEAD "


@dataclasses.dataclass
class WorktreeInfo:
    path: str
    branch: Optional[BranchName] = None
    head: Optional[str] = None
    is_bare: bool = False


def parse_worktree_list(porcelain: str) -> List[WorktreeInfo]:
    """Parse the output of `git worktree list --porcelain`."""
    worktrees: List[WorktreeInfo] = []
    current: Optional[WorktreeInfo] = None
    for line in porcelain.split("\n"):
        line = line.strip()
        if line.startswith(_WORKTREE_PREFIX):
            current = WorktreeInfo(path=line[len(_WORKTREE_PREFIX):])
            worktrees.append(current)
        elif current is None:
            continue
        elif line.startswith(_BRANCH_PREFIX):
            current.branch = BranchName(line[len(_BRANCH_PREFIX):])
        elif line == "bare":
            current.is_bare = True
        elif line.startswith(_HEAD_PREFIX):
            current.head = line[len(_HEAD_PREFIX):]
    return worktrees


def list_worktrees(repo: str, *, cancel: Optional[threading.Event] = None) -> List[WorktreeInfo]:
    r = run_git_checked(["worktree", "list", "--porcelain"], repo, cancel=cancel)
    return parse_worktree_list(r.stdout)


def _normalize(path: str) -> str:
    return os.path.normcase(os.path.abspath(path)).rstrip(os.sep)


def worktree_branch_map(repo: str, *, cancel: Optional[threading.Event] = None) -> Dict[BranchName, str]:
    """Branches checked out in separate worktrees, mapped to their paths.

    The main checkout, bare entries, detached worktrees and worktrees whose
    directory no longer exists are left out.
    """
    repo_path = _normalize(repo)
    result: Dict[BranchName, str] = {}
    for wt in list_worktrees(repo, cancel=cancel):
        if wt.branch is None or wt.is_bare:
            continue
        if _normalize(wt.path) == repo_path:
            continue
        if os.path.isdir(wt.path):
            result[wt.branch] = wt.path
    return result


def get_worktree_path(branch: str, repo: str) -> str:
    """Worktree location: <parent>/<repo>.wt.<branch with '/' as '-'>."""
    repo_path = os.path.abspath(repo).rstrip(os.sep)
    repo_name = os.path.basename(repo_path)
    parent = os.path.dirname(repo_path)
    return os.path.join(parent, "{}.wt.{}".format(repo_name, branch.replace("/", "-")))


def _find_worktree_path(worktrees: List[WorktreeInfo], branch: str) -> Optional[str]:
    for wt in worktrees:
        if wt.branch == branch:
            return wt.path
    return None


def add_worktree(
    branch: BranchName,
    repo: str,
    create: bool = False,
    *,
    cancel: Optional[threading.Event] = None,
) -> str:
    """Check out branch in a new worktree next to the repository."""
    validate_name(branch)
    exists = branch_exists(repo, branch, cancel=cancel)
    if create:
        if exists:
            raise AlreadyExistsError("Branch '{}' already exists", branch)
        run_git_checked(["branch", branch], repo, cancel=cancel)
    elif not exists:
        raise BranchNotFoundError("Branch '{}' does not exist", branch)

    if _find_worktree_path(list_worktrees(repo, cancel=cancel), branch) is not None:
        raise AlreadyExistsError("Worktree already exists for branch '{}'", branch)

    wt_path = get_worktree_path(branch, repo)
    repo_parent = os.path.dirname(os.path.abspath(repo).rstrip(os.sep))
    if os.path.dirname(os.path.abspath(wt_path)) != repo_parent:
        raise ValidationError("Worktree path '{}' would be outside the repository parent directory", wt_path)

    info("Adding worktree for {} at {}", branch, wt_path)
    run_git_checked(["worktree", "add", wt_path, branch], repo, cancel=cancel)
    return wt_path


def remove_worktree(
    branch: BranchName,
    repo: str,
    force: bool = False,
    *,
    cancel: Optional[threading.Event] = None,
):
    """Remove the worktree holding branch; dirty worktrees need force."""
    wt_path = _find_worktree_path(list_worktrees(repo, cancel=cancel), branch)
    if wt_path is None:
        raise BranchNotFoundError("No worktree found for branch '{}'", branch)

    if not force:
        status = run_git(["status", "--porcelain"], wt_path, cancel=cancel)
        if status.success and status.stdout.strip():
            raise GitError("Worktree for '{}' has uncommitted changes. Use force to remove it.", branch)

    cmd = ["worktree", "remove"]
    if force:
        cmd.append("--force")
    cmd.append(wt_path)
    info("Removing worktree {}", wt_path)
    run_git_checked(cmd, repo, cancel=cancel)
