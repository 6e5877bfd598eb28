"""Index, stash and commit operations for stackgraft."""

import threading
from typing import List, Optional

from stackgraft.utils.shell import GitResult, run_git, run_git_checked

COMMIT_STASH_MESSAGE = "stackgraft-commit-temp"


def has_staged_changes(repo: str, *, cancel: Optional[threading.Event] = None) -> bool:
    r = run_git(["diff", "--cached", "--name-only"], repo, cancel=cancel)
    return bool(r.stdout.strip())


def stash_staged(repo: str, *, cancel: Optional[threading.Event] = None):
    """Stash only the staged changes."""
    run_git_checked(["stash", "push", "--staged", "-m", COMMIT_STASH_MESSAGE], repo, cancel=cancel)


def stash_pop(repo: str, *, cancel: Optional[threading.Event] = None):
    run_git_checked(["stash", "pop", "--index"], repo, cancel=cancel)


def find_commit_stash(repo: str, *, cancel: Optional[threading.Event] = None) -> Optional[str]:
    """Return the commit id of our temporary stash entry, if it is still there."""
    r = run_git(["stash", "list"], repo, cancel=cancel)
    if not r.success:
        return None
    for line in r.lines():
        if COMMIT_STASH_MESSAGE not in line:
            continue
        stash_ref = line.split(":", 1)[0]
        if not stash_ref:
            return None
        sha = run_git(["rev-parse", stash_ref], repo, cancel=cancel)
        return sha.stdout.strip() if sha.success else stash_ref
    return None


def commit(
    repo: str,
    message: Optional[str],
    *,
    amend: bool = False,
    cancel: Optional[threading.Event] = None,
) -> GitResult:
    cmd: List[str] = ["commit"]
    if amend:
        cmd += ["--amend"]
    if message:
        cmd += ["-m", message]
    elif amend:
        cmd += ["--no-edit"]
    return run_git_checked(cmd, repo, cancel=cancel)
