"""Commit commands - commit, amend."""

from stackgraft.commands.context import CommandContext
from stackgraft.stack.commit import commit_to_branch
from stackgraft.stack.models import CommitResult
from stackgraft.utils.logging import cout, die


def _report(result: CommitResult):
    cout("✓ Committed {} on {}\n", result.commit, result.target_branch, fg="green")
    if result.branches_are_stale:
        cout("Branches above {} are now stale, run `stackgraft sync`\n", result.target_branch, fg="yellow")


def cmd_commit(ctx: CommandContext, args):
    """Commit command handler."""
    if not args.message and not args.amend:
        die("A commit message is required (-m)")
    _report(commit_to_branch(args.branch, args.message, ctx.repo, amend=args.amend, cancel=ctx.cancel))


def cmd_amend(ctx: CommandContext, args):
    """Amend the last commit of a branch (shortcut)."""
    _report(commit_to_branch(args.branch, None, ctx.repo, amend=True, cancel=ctx.cancel))
