"""Stackgraft - manage stacks of dependent git branches."""

import sys

from .main import main

from .utils.errors import (
    StackError, ValidationError, StackNotFoundError, BranchNotFoundError,
    BranchNotInStackError, NoStacksError, AmbiguousActiveStackError,
    EmptyStackError, NoOperationInProgressError, OperationInProgressError,
    NoStagedChangesError, CorruptStateError, GitError, OperationCancelled
)
from .utils.logging import die, cout, debug, info, warning, error, fmt, ExitException
from .utils.config import StackgraftConfig, get_config, read_config
from .utils.shell import GitResult, run_git

from .stack.models import (
    StackBranch, StackDefinition, OperationState, SyncStatus, SyncResult,
    BranchSyncResult, CommitResult
)
from .stack.operations import (
    init_stack, push_branch, pop_branch, drop_branch, shift_branch,
    delete_stack, list_stacks, load_active_stack
)
from .stack.active import get_active_stack_name, set_active_stack
from .stack.sync import sync_stack, continue_sync, abort_sync
from .stack.commit import commit_to_branch


def runner():
    sys.exit(main())
