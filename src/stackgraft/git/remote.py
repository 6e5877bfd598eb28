"""Remote operations for stackgraft."""

import threading
from typing import Optional

from stackgraft.utils.logging import info
from stackgraft.utils.shell import GitResult, run_git
from stackgraft.utils.types import BranchName, DEFAULT_REMOTE


def push_branch(
    repo: str,
    branch: BranchName,
    remote: str = DEFAULT_REMOTE,
    *,
    cancel: Optional[threading.Event] = None,
) -> GitResult:
    """Push a branch to the remote; the caller decides what a failure means."""
    info("Pushing {} to {}", branch, remote)
    return run_git(["push", remote, branch], repo, cancel=cancel)
