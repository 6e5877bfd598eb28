"""Shell execution utilities for stackgraft."""

import dataclasses
import os
import shlex
import subprocess
import threading
from typing import List, Optional

from stackgraft.utils.errors import GitError, OperationCancelled, ValidationError
from stackgraft.utils.logging import debug
from stackgraft.utils.types import CmdArgs

# How often a running subprocess checks the cancellation event
_POLL_INTERVAL = 0.1


@dataclasses.dataclass(frozen=True)
class GitResult:
    """Outcome of a single git invocation."""
    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0

    def lines(self) -> List[str]:
        """Non-empty, stripped stdout lines."""
        return [l.strip() for l in self.stdout.split("\n") if l.strip()]

    def check(self, cmd: CmdArgs) -> "GitResult":
        _check_returncode(self, cmd)
        return self


def _check_returncode(result: GitResult, cmd: CmdArgs):
    """Raise GitError if the invocation did not succeed."""
    rc = result.returncode
    if rc == 0:
        return
    if rc < 0:
        raise GitError("Killed by signal {}: {}. Stderr was:\n{}", -rc, shlex.join(cmd), result.stderr)
    raise GitError("Exited with status {}: {}. Stderr was:\n{}", rc, shlex.join(cmd), result.stderr)


def _git_env():
    env = dict(os.environ)
    # Never open an editor, e.g. during `merge --continue`
    env["GIT_EDITOR"] = "true"
    return env


def run(cmd: CmdArgs, cwd: str, *, cancel: Optional[threading.Event] = None) -> GitResult:
    """Run a command in cwd and return its result, whatever the exit status.

    If cancel is set while the command runs, the process is killed and
    OperationCancelled is raised.
    """
    debug("Running: {} (in {})", shlex.join(cmd), cwd)
    if cancel is not None and cancel.is_set():
        raise OperationCancelled(shlex.join(cmd))
    try:
        p = subprocess.Popen(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=_git_env(),
        )
    except FileNotFoundError as e:
        raise GitError("Cannot run {}: {}", shlex.join(cmd), e) from e
    while True:
        try:
            stdout, stderr = p.communicate(timeout=_POLL_INTERVAL)
            break
        except subprocess.TimeoutExpired:
            if cancel is not None and cancel.is_set():
                p.kill()
                p.communicate()
                raise OperationCancelled(shlex.join(cmd))
    return GitResult(
        p.returncode,
        stdout.decode("UTF-8").rstrip(),
        stderr.decode("UTF-8").rstrip(),
    )


def run_git(args: List[str], cwd: str, *, cancel: Optional[threading.Event] = None) -> GitResult:
    """Run `git <args>` in cwd."""
    return run(CmdArgs(["git", *args]), cwd, cancel=cancel)


def run_git_checked(args: List[str], cwd: str, *, cancel: Optional[threading.Event] = None) -> GitResult:
    """Run `git <args>` in cwd, raising GitError on failure."""
    return run_git(args, cwd, cancel=cancel).check(CmdArgs(["git", *args]))


def remove_prefix(s: str, prefix: str) -> str:
    """Remove a prefix from a string, failing if not present."""
    if not s.startswith(prefix):
        raise ValidationError('Invalid string "{}": expected prefix "{}"', s, prefix)
    return s[len(prefix):]
