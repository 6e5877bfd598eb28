"""Sync commands - sync, continue, abort."""

from stackgraft.commands.context import CommandContext
from stackgraft.stack.models import SyncResult
from stackgraft.stack.sync import abort_sync, continue_sync, sync_stack
from stackgraft.stack.tree import print_sync_result
from stackgraft.utils.logging import cout


def _report(result: SyncResult):
    print_sync_result(result)
    blocked = result.conflict()
    if blocked is not None:
        cout(
            "\nResolve the conflicts in {}, stage the files, then run `stackgraft continue` "
            "(or `stackgraft abort`)\n",
            blocked.name,
            fg="yellow",
        )


def cmd_sync(ctx: CommandContext, args):
    result = sync_stack(
        ctx.repo,
        args.branch,
        push=args.push and ctx.config.push_after_sync,
        remote=ctx.config.remote,
        cancel=ctx.cancel,
    )
    _report(result)
    return 1 if result.has_conflict else 0


def cmd_continue(ctx: CommandContext, args):
    result = continue_sync(
        ctx.repo,
        push=ctx.config.push_after_sync,
        remote=ctx.config.remote,
        cancel=ctx.cancel,
    )
    _report(result)
    return 1 if result.has_conflict else 0


def cmd_abort(ctx: CommandContext, args):
    state = abort_sync(ctx.repo, cancel=ctx.cancel)
    if state is None:
        cout("No sync in progress; aborted any pending merge\n")
    else:
        cout("✓ Aborted sync of stack {}, back on {}\n", state.stack_name, state.original_branch, fg="green")
