"""Git ref operations for stackgraft."""

import threading
from typing import Optional

from stackgraft.utils.shell import run_git
from stackgraft.utils.types import Commit


def get_commit(repo: str, ref: str, *, cancel: Optional[threading.Event] = None) -> Optional[Commit]:
    """Resolve a ref to a commit id, or None if it does not resolve."""
    r = run_git(["rev-parse", "--verify", "--quiet", "{}^{{commit}}".format(ref)], repo, cancel=cancel)
    if r.success and r.stdout.strip():
        return Commit(r.stdout.strip())
    return None


def get_short_commit(repo: str, ref: str = "HEAD", *, cancel: Optional[threading.Event] = None) -> Optional[Commit]:
    r = run_git(["rev-parse", "--short", ref], repo, cancel=cancel)
    if r.success and r.stdout.strip():
        return Commit(r.stdout.strip())
    return None


def get_merge_base(repo: str, a: str, b: str, *, cancel: Optional[threading.Event] = None) -> Optional[Commit]:
    """Get the merge base of two refs."""
    r = run_git(["merge-base", a, b], repo, cancel=cancel)
    if r.success and r.stdout.strip():
        return Commit(r.stdout.strip())
    return None


def is_up_to_date(repo: str, parent: str, branch: str, *, cancel: Optional[threading.Event] = None) -> bool:
    """Whether branch already contains the tip of parent.

    Only merge-base equality counts; commit counts are not consulted.
    """
    merge_base = get_merge_base(repo, parent, branch, cancel=cancel)
    parent_head = get_commit(repo, parent, cancel=cancel)
    return merge_base is not None and merge_base == parent_head


def count_commits_between(repo: str, base: str, head: str, *, cancel: Optional[threading.Event] = None) -> int:
    """Number of commits on head that are not on base; 0 if git cannot tell."""
    r = run_git(["rev-list", "--count", "{}..{}".format(base, head)], repo, cancel=cancel)
    if not r.success:
        return 0
    try:
        return int(r.stdout.strip())
    except ValueError:
        return 0
