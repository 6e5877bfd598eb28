"""Worktree commands - add, remove, list."""

from stackgraft.commands.context import CommandContext
from stackgraft.git.worktree import add_worktree, list_worktrees, remove_worktree
from stackgraft.utils.logging import cout


def cmd_wt_add(ctx: CommandContext, args):
    path = add_worktree(args.name, ctx.repo, args.create, cancel=ctx.cancel)
    cout("✓ Worktree for {} at {}\n", args.name, path, fg="green")


def cmd_wt_remove(ctx: CommandContext, args):
    remove_worktree(args.name, ctx.repo, args.force, cancel=ctx.cancel)
    cout("✓ Removed worktree for {}\n", args.name, fg="green")


def cmd_wt_list(ctx: CommandContext, args):
    for wt in list_worktrees(ctx.repo, cancel=ctx.cancel):
        if wt.is_bare:
            label = "(bare)"
        elif wt.branch is None:
            label = "(detached {})".format((wt.head or "")[:8])
        else:
            label = wt.branch
        cout("{}  {}\n", wt.path, label)
