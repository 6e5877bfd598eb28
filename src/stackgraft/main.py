"""Main entry point for stackgraft."""

import logging
import os
import signal
from argparse import ArgumentParser

import argcomplete  # type: ignore

from stackgraft.commands.commit import cmd_amend, cmd_commit
from stackgraft.commands.context import CommandContext
from stackgraft.commands.stack import (
    cmd_drop, cmd_pop, cmd_push, cmd_shift, cmd_stack_delete, cmd_stack_info,
    cmd_stack_init, cmd_stack_list, cmd_stack_switch, stack_name_completer
)
from stackgraft.commands.sync import cmd_abort, cmd_continue, cmd_sync
from stackgraft.commands.worktree import cmd_wt_add, cmd_wt_list, cmd_wt_remove
from stackgraft.git.branch import branch_name_completer
from stackgraft.git.repo import get_top_level_dir
from stackgraft.utils import config as config_module
from stackgraft.utils.config import read_config
from stackgraft.utils.errors import StackError
from stackgraft.utils.logging import ExitException, _LOGGING_FORMAT, report_failure, set_color_mode
from stackgraft.utils.types import LOGLEVELS


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(description="Manage stacks of dependent git branches")
    parser.add_argument(
        "--log-level", default="warning", choices=LOGLEVELS.keys(),
        help="Set the log level",
    )
    parser.add_argument(
        "--color", default="auto", choices=["always", "auto", "never"],
        help="Colorize output and error",
    )
    parser.add_argument(
        "--repo", "-C", default=".",
        help="Path inside the repository to operate on",
    )

    subparsers = parser.add_subparsers(required=True, dest="command")

    _setup_stack_subcommands(subparsers)
    _setup_worktree_subcommands(subparsers)

    push_parser = subparsers.add_parser("push", help="Add a branch on top of the active stack")
    push_parser.add_argument("name", help="Branch name").completer = branch_name_completer
    push_parser.add_argument("--create", "-c", action="store_true", help="Create the branch")
    push_parser.set_defaults(func=cmd_push)

    pop_parser = subparsers.add_parser("pop", help="Remove the top branch from the active stack")
    pop_parser.set_defaults(func=cmd_pop)

    drop_parser = subparsers.add_parser("drop", help="Remove a branch from the active stack")
    drop_parser.add_argument("name", help="Branch name").completer = branch_name_completer
    drop_parser.set_defaults(func=cmd_drop)

    shift_parser = subparsers.add_parser("shift", help="Insert a branch at the bottom of the active stack")
    shift_parser.add_argument("name", help="Branch name").completer = branch_name_completer
    shift_parser.set_defaults(func=cmd_shift)

    sync_parser = subparsers.add_parser("sync", help="Merge each branch's parent into it, bottom to top")
    sync_parser.add_argument("branch", nargs="?", help="Only sync this branch").completer = branch_name_completer
    sync_parser.add_argument("--no-push", dest="push", action="store_false", help="Do not push merged branches")
    sync_parser.set_defaults(func=cmd_sync)

    continue_parser = subparsers.add_parser("continue", help="Continue a sync after resolving conflicts")
    continue_parser.set_defaults(func=cmd_continue)

    abort_parser = subparsers.add_parser("abort", help="Abort an interrupted sync")
    abort_parser.set_defaults(func=cmd_abort)

    commit_parser = subparsers.add_parser("commit", help="Commit staged changes to a branch of the stack")
    commit_parser.add_argument("-m", help="Commit message", dest="message")
    commit_parser.add_argument("--branch", "-b", help="Target branch (default: top of the stack)").completer = branch_name_completer
    commit_parser.add_argument("--amend", action="store_true", help="Amend the last commit")
    commit_parser.set_defaults(func=cmd_commit)

    amend_parser = subparsers.add_parser("amend", help="Shortcut for amending the last commit")
    amend_parser.add_argument("--branch", "-b", help="Target branch (default: top of the stack)").completer = branch_name_completer
    amend_parser.set_defaults(func=cmd_amend)

    return parser


def _setup_stack_subcommands(subparsers):
    """Setup stack subcommands."""
    stack_parser = subparsers.add_parser("stack", aliases=["s"], help="Operations on stacks")
    stack_subparsers = stack_parser.add_subparsers(required=True, dest="stack_command")

    init_parser = stack_subparsers.add_parser("init", help="Create a stack and make it active")
    init_parser.add_argument("name", help="Stack name")
    init_parser.add_argument("--base", "-b", help="Trunk branch (default: current branch)").completer = branch_name_completer
    init_parser.set_defaults(func=cmd_stack_init)

    list_parser = stack_subparsers.add_parser("list", aliases=["ls"], help="List stacks")
    list_parser.set_defaults(func=cmd_stack_list)

    switch_parser = stack_subparsers.add_parser("switch", help="Change the active stack")
    switch_parser.add_argument("name", nargs="?", help="Stack name").completer = stack_name_completer
    switch_parser.set_defaults(func=cmd_stack_switch)

    delete_parser = stack_subparsers.add_parser("delete", help="Delete a stack, keeping its branches")
    delete_parser.add_argument("name", help="Stack name").completer = stack_name_completer
    delete_parser.add_argument("--force", "-f", action="store_true", help="Bypass confirmation")
    delete_parser.set_defaults(func=cmd_stack_delete)

    info_parser = stack_subparsers.add_parser("info", aliases=["i"], help="Show the active stack")
    info_parser.set_defaults(func=cmd_stack_info)


def _setup_worktree_subcommands(subparsers):
    """Setup worktree subcommands."""
    wt_parser = subparsers.add_parser("wt", help="Operations on worktrees")
    wt_subparsers = wt_parser.add_subparsers(required=True, dest="wt_command")

    add_parser = wt_subparsers.add_parser("add", help="Check out a branch in a new worktree")
    add_parser.add_argument("name", help="Branch name").completer = branch_name_completer
    add_parser.add_argument("--create", "-c", action="store_true", help="Create the branch")
    add_parser.set_defaults(func=cmd_wt_add)

    remove_parser = wt_subparsers.add_parser("remove", aliases=["rm"], help="Remove a branch's worktree")
    remove_parser.add_argument("name", help="Branch name").completer = branch_name_completer
    remove_parser.add_argument("--force", "-f", action="store_true", help="Remove even with local changes")
    remove_parser.set_defaults(func=cmd_wt_remove)

    list_parser = wt_subparsers.add_parser("list", aliases=["ls"], help="List worktrees")
    list_parser.set_defaults(func=cmd_wt_list)


def main(argv=None) -> int:
    """Main entry point for stackgraft."""
    logging.basicConfig(format=_LOGGING_FORMAT, level=logging.WARNING)
    parser = build_parser()
    argcomplete.autocomplete(parser)
    args = parser.parse_args(argv)
    logging.basicConfig(format=_LOGGING_FORMAT, level=LOGLEVELS[args.log_level], force=True)
    set_color_mode(args.color)

    try:
        repo = get_top_level_dir(os.path.abspath(args.repo))
        ctx = CommandContext(repo=repo, config=read_config(repo))
        config_module.CONFIG = ctx.config
        # Ctrl-C kills the running git command and stops before the next one
        signal.signal(signal.SIGINT, lambda signum, frame: ctx.cancel.set())
        return args.func(ctx, args) or 0
    except (StackError, ExitException) as e:
        return report_failure(e)
