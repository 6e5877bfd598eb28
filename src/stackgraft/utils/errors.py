"""Typed failures raised by the stackgraft core.

Core functions never print or exit; they raise one of these and leave it to
the caller (the CLI turns them into an error line and exit status 1).
"""

from typing import List


class StackError(Exception):
    """Base class for every failure reported by the core."""
    def __init__(self, fmt, *args, **kwargs):
        super().__init__(fmt.format(*args, **kwargs) if args or kwargs else fmt)


class ValidationError(StackError):
    """A user supplied name or value is malformed."""


class NotARepositoryError(StackError):
    pass


class AlreadyExistsError(StackError):
    pass


class NotFoundError(StackError):
    pass


class StackNotFoundError(NotFoundError):
    def __init__(self, name: str):
        super().__init__("Stack '{}' not found", name)
        self.name = name


class BranchNotFoundError(NotFoundError):
    """The branch does not exist in git."""


class BranchNotInStackError(NotFoundError):
    def __init__(self, branch: str, stack_name: str):
        super().__init__("Branch '{}' is not in stack '{}'", branch, stack_name)
        self.branch = branch
        self.stack_name = stack_name


class NoStacksError(StackError):
    def __init__(self):
        super().__init__("No stacks found. Run 'stackgraft stack init <name>' to create one.")


class AmbiguousActiveStackError(StackError):
    def __init__(self, names: List[str]):
        super().__init__(
            "No active stack. Multiple stacks exist ({}). "
            "Switch to one with 'stackgraft stack switch <name>'.",
            ", ".join(names),
        )
        self.names = list(names)


class EmptyStackError(StackError):
    pass


class NoOperationInProgressError(StackError):
    def __init__(self):
        super().__init__("No sync operation in progress")


class OperationInProgressError(StackError):
    def __init__(self, stack_name: str):
        super().__init__(
            "A sync of stack '{}' is already in progress. "
            "Run 'stackgraft continue' or 'stackgraft abort' first.",
            stack_name,
        )
        self.stack_name = stack_name


class NoStagedChangesError(StackError):
    def __init__(self):
        super().__init__("No staged changes to commit")


class CorruptStateError(StackError):
    """A persisted document could not be read back."""


class GitError(StackError):
    """A git invocation failed where success was required."""


class OperationCancelled(StackError):
    def __init__(self, cmd: str):
        super().__init__("Cancelled: {}", cmd)
