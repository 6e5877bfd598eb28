"""Type aliases and constants for stackgraft."""

import logging
from typing import List, NewType

# Type aliases
BranchName = NewType("BranchName", str)
PathName = NewType("PathName", str)
Commit = NewType("Commit", str)
CmdArgs = NewType("CmdArgs", List[str])

# Layout of the metadata directory inside the git common dir
METADATA_DIR = "stackgraft"
STACKS_DIR = "stacks"
STACK_FILE_SUFFIX = ".toml"
ACTIVE_STACK_FILE = "active-stack"
OPERATION_STATE_FILE = "operation.toml"

DEFAULT_REMOTE = "origin"
SYNC_OPERATION = "sync"

# Log levels
LOGLEVELS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}
