"""Tree formatting for stackgraft stacks."""

from collections import OrderedDict
from typing import List, Optional

from stackgraft.stack.models import StackBranch, StackDefinition, SyncResult, SyncStatus
from stackgraft.utils import logging as output
from stackgraft.utils.logging import cout, fmt
from stackgraft.utils.ui import ASCII_TREE


def format_name(b: StackBranch, current: Optional[str], *, colorize: bool) -> str:
    """Format a branch name with PR and current-branch markers."""
    suffix = ""
    if b.pr is not None:
        suffix = fmt(" (#{} {})", b.pr.number, b.pr.state.value, color=colorize, fg="gray")
    if b.name == current:
        return fmt("*{}", b.name, color=colorize, fg="cyan") + suffix
    return b.name + suffix


def make_stack_tree(stack: StackDefinition, current: Optional[str], *, colorize: bool) -> "OrderedDict[str, OrderedDict]":
    """Nested dict trunk -> first branch -> ... -> top, as asciitree expects."""
    trunk_label = fmt("{}", stack.trunk, color=colorize, style="bold")
    if stack.trunk == current:
        trunk_label = "*" + trunk_label
    root: "OrderedDict[str, OrderedDict]" = OrderedDict()
    node = OrderedDict()
    root[trunk_label] = node
    for b in stack.branches:
        child: "OrderedDict[str, OrderedDict]" = OrderedDict()
        node[format_name(b, current, colorize=colorize)] = child
        node = child
    return root


def format_stack(stack: StackDefinition, current: Optional[str] = None, *, colorize: bool = False) -> List[str]:
    """Lines for a stack, top of the stack first, trunk last."""
    s = ASCII_TREE(make_stack_tree(stack, current, colorize=colorize))
    lines = [l.rstrip() for l in s.split("\n") if l.strip()]
    lines.reverse()
    return lines


def print_stack(stack: StackDefinition, current: Optional[str] = None):
    cout("Stack {}\n", stack.name, style="bold")
    for line in format_stack(stack, current, colorize=output.COLOR_STDOUT):
        cout("{}\n", line)


def print_sync_result(result: SyncResult):
    for r in result.branch_results:
        if r.status == SyncStatus.UP_TO_DATE:
            cout("✓ {} is up to date ({} commits ahead)\n", r.name, r.commit_count, fg="green")
        elif r.status == SyncStatus.MERGED:
            cout("✓ Merged into {} ({} commits ahead)\n", r.name, r.commit_count, fg="green")
        else:
            cout("✗ Conflict in {}\n", r.name, fg="red")
            for path in r.conflicting_files:
                cout("    {}\n", path, fg="yellow")
    for w in result.push_warnings:
        cout("! {}\n", w, fg="yellow")
