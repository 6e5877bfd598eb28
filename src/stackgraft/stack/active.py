"""Resolution of the active stack of a repository."""

from stackgraft.stack.store import list_stack_names, load_active_marker, save_active_marker, stack_exists
from stackgraft.utils.errors import AmbiguousActiveStackError, NoStacksError, StackNotFoundError
from stackgraft.utils.logging import info
from stackgraft.utils.validation import validate_stack_name


def get_active_stack_name(repo: str) -> str:
    """Return the active stack.

    Without a marker, a repository holding exactly one stack gets that stack
    marked active; with none or several, the caller has to act.
    """
    name = load_active_marker(repo)
    if name is not None:
        return name

    stacks = list_stack_names(repo)
    if len(stacks) == 1:
        info("Marking {} as the active stack", stacks[0])
        set_active_stack(stacks[0], repo)
        return stacks[0]
    if not stacks:
        raise NoStacksError()
    raise AmbiguousActiveStackError(stacks)


def set_active_stack(name: str, repo: str):
    validate_stack_name(name)
    if not stack_exists(name, repo):
        raise StackNotFoundError(name)
    save_active_marker(name, repo)


def clear_active_stack(repo: str):
    save_active_marker(None, repo)
