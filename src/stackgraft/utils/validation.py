"""Validation of user supplied names.

Names end up as git arguments and, for stacks, as file names under the
metadata directory, so anything that could be read as an option, escape the
directory or confuse ref parsing is rejected.
"""

import re

from stackgraft.utils.errors import ValidationError

# Branches may be namespaced with slashes (auth/base-types)
_SAFE_NAME = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9/_\-.]*$")
# Stacks map to file names: no slashes
_SAFE_STACK_NAME = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_\-.]*$")


def _check_common(name, kind: str):
    if name is None or not isinstance(name, str) or not name.strip():
        raise ValidationError("{} must not be empty", kind)
    if ".." in name:
        raise ValidationError("{} '{}' must not contain '..'", kind, name)
    if "\0" in name:
        raise ValidationError("{} '{}' must not contain null bytes", kind, name)
    if name.startswith("-"):
        raise ValidationError("{} '{}' must not start with '-'", kind, name)
    if "\\" in name:
        raise ValidationError("{} '{}' must not contain backslashes", kind, name)


def validate_name(name: str, kind: str = "Branch name") -> str:
    """Validate a branch name for use in git commands."""
    _check_common(name, kind)
    if name.startswith("/") or name.endswith("/"):
        raise ValidationError("{} '{}' must not start or end with '/'", kind, name)
    if "//" in name:
        raise ValidationError("{} '{}' must not contain consecutive slashes", kind, name)
    if name.endswith(".lock"):
        raise ValidationError("{} '{}' must not end with '.lock'", kind, name)
    if "@{" in name:
        raise ValidationError("{} '{}' must not contain '@{{'", kind, name)
    if not _SAFE_NAME.match(name):
        raise ValidationError(
            "{} '{}' contains invalid characters. "
            "Use alphanumeric, hyphens, underscores, dots, or forward slashes.",
            kind, name,
        )
    return name


def validate_stack_name(name: str) -> str:
    """Validate a stack name. Stack names are file names, so no slashes."""
    kind = "Stack name"
    _check_common(name, kind)
    if "/" in name:
        raise ValidationError("{} '{}' must not contain forward slashes", kind, name)
    if not _SAFE_STACK_NAME.match(name):
        raise ValidationError(
            "{} '{}' contains invalid characters. Use alphanumeric, hyphens, underscores, or dots.",
            kind, name,
        )
    return name
