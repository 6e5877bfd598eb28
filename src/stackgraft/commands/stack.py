"""Stack commands - init, list, switch, delete, info, push, pop, drop, shift."""

from stackgraft.commands.context import CommandContext
from stackgraft.git.branch import get_current_branch
from stackgraft.stack.active import get_active_stack_name, set_active_stack
from stackgraft.stack.operations import (
    delete_stack, drop_branch, init_stack, list_stacks, load_active_stack,
    pop_branch, push_branch, shift_branch
)
from stackgraft.stack.store import list_stack_names, load_active_marker
from stackgraft.stack.tree import print_stack
from stackgraft.utils.logging import cout
from stackgraft.utils.ui import confirm, menu_choose


def stack_name_completer(prefix, parsed_args, **kwargs):
    """Argcomplete completer function for stack names."""
    try:
        return [n for n in list_stack_names(".") if n.startswith(prefix)]
    except Exception:
        return []


def cmd_stack_init(ctx: CommandContext, args):
    stack = init_stack(args.name, ctx.repo, args.base, cancel=ctx.cancel)
    cout("✓ Created stack {} on {}\n", stack.name, stack.trunk, fg="green")


def cmd_stack_list(ctx: CommandContext, args):
    stacks = list_stacks(ctx.repo)
    if not stacks:
        cout("No stacks found. Run 'stackgraft stack init <name>' to create one.\n")
        return
    for name, active in stacks:
        if active:
            cout("* {}\n", name, fg="green")
        else:
            cout("  {}\n", name)


def cmd_stack_switch(ctx: CommandContext, args):
    name = args.name
    if name is None:
        name = menu_choose(list_stack_names(ctx.repo), load_active_marker(ctx.repo))
    set_active_stack(name, ctx.repo)
    cout("✓ Switched to stack {}\n", name, fg="green")


def cmd_stack_delete(ctx: CommandContext, args):
    if not args.force:
        confirm("Delete stack {}? Its branches are kept.".format(args.name))
    delete_stack(args.name, ctx.repo)
    cout("✓ Deleted stack {}\n", args.name, fg="green")


def cmd_stack_info(ctx: CommandContext, args):
    stack = load_active_stack(ctx.repo)
    print_stack(stack, get_current_branch(ctx.repo, cancel=ctx.cancel))


def cmd_push(ctx: CommandContext, args):
    push_branch(args.name, ctx.repo, args.create, cancel=ctx.cancel)
    cout("✓ Pushed {} onto stack {}\n", args.name, get_active_stack_name(ctx.repo), fg="green")


def cmd_pop(ctx: CommandContext, args):
    name = pop_branch(ctx.repo)
    cout("✓ Popped {} (the branch itself is kept)\n", name, fg="green")


def cmd_drop(ctx: CommandContext, args):
    drop_branch(args.name, ctx.repo)
    cout("✓ Dropped {} (the branch itself is kept)\n", args.name, fg="green")


def cmd_shift(ctx: CommandContext, args):
    stack = shift_branch(args.name, ctx.repo, cancel=ctx.cancel)
    cout("✓ Inserted {} at the bottom of stack {}\n", args.name, stack.name, fg="green")
