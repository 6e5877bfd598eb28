"""What every command handler gets besides its parsed arguments."""

import dataclasses
import threading

from stackgraft.utils.config import StackgraftConfig


@dataclasses.dataclass
class CommandContext:
    repo: str
    config: StackgraftConfig
    cancel: threading.Event = dataclasses.field(default_factory=threading.Event)
