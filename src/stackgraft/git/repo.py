"""Repository discovery for stackgraft.

These helpers only look at the filesystem, so they work for the main
checkout as well as for linked worktrees (where `.git` is a file).
"""

import os
import threading
from typing import Optional

from stackgraft.utils.errors import NotARepositoryError
from stackgraft.utils.shell import run_git_checked
from stackgraft.utils.types import PathName

_GITDIR_PREFIX = "gitdir: "


def _read_gitdir_file(dot_git: str, working_dir: str) -> Optional[str]:
    with open(dot_git, encoding="utf-8") as f:
        content = f.read().strip()
    if not content.startswith(_GITDIR_PREFIX):
        return None
    git_dir = content[len(_GITDIR_PREFIX):]
    if not os.path.isabs(git_dir):
        git_dir = os.path.normpath(os.path.join(working_dir, git_dir))
    return git_dir


def is_git_repo(working_dir: str) -> bool:
    dot_git = os.path.join(working_dir, ".git")
    return os.path.isdir(dot_git) or os.path.isfile(dot_git)


def resolve_git_dir(working_dir: str) -> str:
    """Return the per-worktree git directory (where MERGE_HEAD lives)."""
    dot_git = os.path.join(working_dir, ".git")
    if os.path.isdir(dot_git):
        return dot_git
    if os.path.isfile(dot_git):
        git_dir = _read_gitdir_file(dot_git, working_dir)
        if git_dir is not None:
            return git_dir
    raise NotARepositoryError("'{}' is not a git repository", working_dir)


def resolve_git_common_dir(working_dir: str) -> str:
    """Return the git directory shared by all worktrees of the repository."""
    git_dir = resolve_git_dir(working_dir)
    common_dir_file = os.path.join(git_dir, "commondir")
    if os.path.isfile(common_dir_file):
        with open(common_dir_file, encoding="utf-8") as f:
            common_dir = f.read().strip()
        if not os.path.isabs(common_dir):
            common_dir = os.path.normpath(os.path.join(git_dir, common_dir))
        return common_dir
    return git_dir


def merge_in_progress(working_dir: str) -> bool:
    """Whether a merge is waiting to be concluded in this working copy."""
    return os.path.exists(os.path.join(resolve_git_dir(working_dir), "MERGE_HEAD"))


def get_top_level_dir(cwd: str, *, cancel: Optional[threading.Event] = None) -> PathName:
    """Get the top-level directory of the git repository containing cwd."""
    p = run_git_checked(["rev-parse", "--show-toplevel"], cwd, cancel=cancel)
    return PathName(p.stdout.strip())
