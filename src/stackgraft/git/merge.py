"""Merge primitives for stackgraft.

All of these take the working directory the merge happens in, which is either
the main checkout or the worktree holding the branch.
"""

import threading
from typing import List, Optional

from stackgraft.utils.shell import GitResult, run_git


def merge(cwd: str, parent: str, *, cancel: Optional[threading.Event] = None) -> GitResult:
    """Merge parent into the branch checked out in cwd."""
    return run_git(["merge", parent, "--no-edit"], cwd, cancel=cancel)


def merge_continue(cwd: str, *, cancel: Optional[threading.Event] = None) -> GitResult:
    return run_git(["merge", "--continue"], cwd, cancel=cancel)


def merge_abort(cwd: str, *, cancel: Optional[threading.Event] = None) -> GitResult:
    return run_git(["merge", "--abort"], cwd, cancel=cancel)


def get_conflicting_files(cwd: str, *, cancel: Optional[threading.Event] = None) -> List[str]:
    """Paths with unmerged entries; empty if git cannot tell."""
    r = run_git(["diff", "--name-only", "--diff-filter=U"], cwd, cancel=cancel)
    if not r.success:
        return []
    return r.lines()
