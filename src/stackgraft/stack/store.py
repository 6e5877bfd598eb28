"""Persistence of stacks, the active stack marker and the operation state.

Everything lives under `<git common dir>/stackgraft/` so all worktrees of a
repository share it. Writes go to a temporary file that is then moved into
place, so readers never see a half written document.
"""

import os
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import tomli
import tomli_w

from stackgraft.git.repo import resolve_git_common_dir
from stackgraft.stack.models import OperationState, PrState, PullRequestRef, StackBranch, StackDefinition
from stackgraft.utils.errors import CorruptStateError, StackNotFoundError, ValidationError
from stackgraft.utils.logging import debug
from stackgraft.utils.types import (
    ACTIVE_STACK_FILE, BranchName, METADATA_DIR, OPERATION_STATE_FILE,
    STACK_FILE_SUFFIX, STACKS_DIR
)
from stackgraft.utils.validation import validate_name, validate_stack_name


def get_metadata_dir(repo: str) -> str:
    return os.path.join(resolve_git_common_dir(repo), METADATA_DIR)


def get_stacks_dir(repo: str) -> str:
    return os.path.join(get_metadata_dir(repo), STACKS_DIR)


def get_stack_path(name: str, repo: str) -> str:
    validate_stack_name(name)
    return os.path.join(get_stacks_dir(repo), name + STACK_FILE_SUFFIX)


def get_active_stack_path(repo: str) -> str:
    return os.path.join(get_metadata_dir(repo), ACTIVE_STACK_FILE)


def get_operation_state_path(repo: str) -> str:
    return os.path.join(get_metadata_dir(repo), OPERATION_STATE_FILE)


def _atomic_write(path: str, content: str):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    tmp_path = "{}.tmp.{}".format(path, uuid.uuid4().hex)
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)


def _remove_if_exists(path: str):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


def _read_toml(path: str) -> Dict[str, Any]:
    with open(path, "rb") as f:
        try:
            return tomli.load(f)
        except (tomli.TOMLDecodeError, UnicodeDecodeError) as e:
            raise CorruptStateError("{} has invalid TOML: {}", path, e) from e


def _format_timestamp(ts: datetime) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.isoformat()


def _parse_timestamp(value, path: str, key: str) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError as e:
            raise CorruptStateError("{} field '{}' is not a timestamp: {}", path, key, value) from e
    raise CorruptStateError("{} field '{}' must be a string", path, key)


# Stacks


def stack_exists(name: str, repo: str) -> bool:
    return os.path.isfile(get_stack_path(name, repo))


def list_stack_names(repo: str) -> List[str]:
    """Sorted names of all stacks in the repository."""
    stacks_dir = get_stacks_dir(repo)
    if not os.path.isdir(stacks_dir):
        return []
    return sorted(
        f[:-len(STACK_FILE_SUFFIX)]
        for f in os.listdir(stacks_dir)
        if f.endswith(STACK_FILE_SUFFIX) and os.path.isfile(os.path.join(stacks_dir, f))
    )


def _parse_branch(entry, path: str) -> StackBranch:
    if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
        raise CorruptStateError("{} has a branch entry without a valid 'name' field", path)
    name = entry["name"]
    try:
        validate_name(name)
    except ValidationError as e:
        raise CorruptStateError("{}: {}", path, e) from e
    branch = StackBranch(name=BranchName(name))
    pr_number = entry.get("pr_number")
    pr_url = entry.get("pr_url")
    if pr_number is not None and isinstance(pr_url, str):
        if isinstance(pr_number, bool) or not isinstance(pr_number, int):
            raise CorruptStateError(
                "{} branch '{}' has invalid pr_number: expected an integer, got '{}'",
                path, name, pr_number,
            )
        branch.pr = PullRequestRef(number=pr_number, url=pr_url, state=PrState.parse(entry.get("pr_state")))
    return branch


def load_stack(name: str, repo: str) -> StackDefinition:
    path = get_stack_path(name, repo)
    if not os.path.isfile(path):
        raise StackNotFoundError(name)

    table = _read_toml(path)
    trunk = table.get("trunk")
    if not isinstance(trunk, str):
        raise CorruptStateError("{} is missing required string field 'trunk'", path)
    stored_name = table.get("name", name)
    if not isinstance(stored_name, str):
        raise CorruptStateError("{} field 'name' must be a string", path)
    try:
        validate_name(trunk, "Trunk branch")
        validate_stack_name(stored_name)
    except ValidationError as e:
        raise CorruptStateError("{}: {}", path, e) from e

    branches = table.get("branches", [])
    if not isinstance(branches, list):
        raise CorruptStateError("{} field 'branches' must be an array of tables", path)

    stack = StackDefinition(
        name=stored_name,
        trunk=BranchName(trunk),
        branches=[_parse_branch(b, path) for b in branches],
    )
    seen = set()
    for branch_name in stack.branch_names():
        if branch_name in seen:
            raise CorruptStateError("{} lists branch '{}' more than once", path, branch_name)
        seen.add(branch_name)
    created_at = _parse_timestamp(table.get("created_at"), path, "created_at")
    updated_at = _parse_timestamp(table.get("updated_at"), path, "updated_at")
    if created_at is not None:
        stack.created_at = created_at
    if updated_at is not None:
        stack.updated_at = updated_at
    return stack


def save_stack(stack: StackDefinition, repo: str):
    path = get_stack_path(stack.name, repo)
    table: Dict[str, Any] = {
        "name": stack.name,
        "trunk": stack.trunk,
        "created_at": _format_timestamp(stack.created_at),
        "updated_at": _format_timestamp(stack.updated_at),
    }
    if stack.branches:
        entries = []
        for b in stack.branches:
            entry: Dict[str, Any] = {"name": b.name}
            if b.pr is not None:
                entry["pr_number"] = b.pr.number
                entry["pr_url"] = b.pr.url
                entry["pr_state"] = b.pr.state.value
            entries.append(entry)
        table["branches"] = entries
    debug("Saving stack {} to {}", stack.name, path)
    _atomic_write(path, tomli_w.dumps(table))


def delete_stack_file(name: str, repo: str):
    path = get_stack_path(name, repo)
    if not os.path.isfile(path):
        raise StackNotFoundError(name)
    os.remove(path)


# Active stack marker


def load_active_marker(repo: str) -> Optional[str]:
    path = get_active_stack_path(repo)
    if not os.path.isfile(path):
        return None
    with open(path, "rb") as f:
        raw = f.read()
    try:
        name = raw.decode("utf-8").strip()
    except UnicodeDecodeError as e:
        raise CorruptStateError("{} is not valid UTF-8: {}", path, e) from e
    return name or None


def save_active_marker(name: Optional[str], repo: str):
    """Persist the active stack name; None removes the marker."""
    path = get_active_stack_path(repo)
    if name is None:
        _remove_if_exists(path)
        return
    _atomic_write(path, name)


# Operation state


def save_operation_state(state: OperationState, repo: str):
    table: Dict[str, Any] = {
        "stack": state.stack_name,
        "branch_index": state.branch_index,
        "original_branch": state.original_branch,
        "operation": state.operation,
    }
    if state.sync_up_to_index is not None:
        table["sync_up_to_index"] = state.sync_up_to_index
    if state.worktree_path is not None:
        table["worktree_path"] = state.worktree_path
    path = get_operation_state_path(repo)
    debug("Saving operation state to {}", path)
    _atomic_write(path, tomli_w.dumps(table))


def _corrupt_state(path: str, detail: str) -> CorruptStateError:
    return CorruptStateError(
        "Operation state file is corrupt ({}): {}\n"
        "Delete it and run 'stackgraft abort' to clean up.",
        detail, path,
    )


def load_operation_state(repo: str) -> Optional[OperationState]:
    path = get_operation_state_path(repo)
    if not os.path.isfile(path):
        return None
    try:
        table = _read_toml(path)
    except CorruptStateError as e:
        raise _corrupt_state(path, "invalid TOML") from e

    def field(key: str, kind, required: bool = True):
        value = table.get(key)
        if value is None and not required:
            return None
        if not isinstance(value, kind) or isinstance(value, bool):
            raise _corrupt_state(path, "bad or missing '{}'".format(key))
        return value

    state = OperationState(
        stack_name=field("stack", str),
        branch_index=field("branch_index", int),
        original_branch=field("original_branch", str),
        operation=field("operation", str),
        sync_up_to_index=field("sync_up_to_index", int, required=False),
        worktree_path=field("worktree_path", str, required=False),
    )
    if state.branch_index < 0:
        raise _corrupt_state(path, "negative branch_index")
    # Values read back from disk end up in git commands
    try:
        validate_stack_name(state.stack_name)
        validate_name(state.original_branch, "Original branch")
    except ValidationError as e:
        raise _corrupt_state(path, str(e)) from e
    return state


def clear_operation_state(repo: str):
    _remove_if_exists(get_operation_state_path(repo))
