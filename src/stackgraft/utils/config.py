"""Configuration management for stackgraft."""

import configparser
import dataclasses
import os
from typing import Optional

from stackgraft.utils.logging import debug
from stackgraft.utils.types import DEFAULT_REMOTE

CONFIG_FILE_NAME = ".stackgraftconfig"


@dataclasses.dataclass
class StackgraftConfig:
    """Configuration options for stackgraft."""
    skip_confirm: bool = False
    remote: str = DEFAULT_REMOTE
    push_after_sync: bool = True

    def read_one_config(self, config_path: str):
        """Read configuration from a single file."""
        rawconfig = configparser.ConfigParser()
        rawconfig.read(config_path)
        if rawconfig.has_section("UI"):
            self.skip_confirm = rawconfig.getboolean("UI", "skip_confirm", fallback=self.skip_confirm)

        if rawconfig.has_section("GIT"):
            self.remote = rawconfig.get("GIT", "remote", fallback=self.remote)
            self.push_after_sync = rawconfig.getboolean("GIT", "push_after_sync", fallback=self.push_after_sync)


# Global config singleton, only used by the command layer
CONFIG: Optional[StackgraftConfig] = None


def get_config() -> StackgraftConfig:
    """Get the global configuration, loading it if necessary."""
    global CONFIG
    if CONFIG is None:
        CONFIG = read_config()
    return CONFIG


def read_config(repo_path: Optional[str] = None) -> StackgraftConfig:
    """Read configuration from the home directory and the repository root."""
    config = StackgraftConfig()
    config_paths = [os.path.expanduser("~/{}".format(CONFIG_FILE_NAME))]

    if repo_path is not None:
        config_paths.append(os.path.join(repo_path, CONFIG_FILE_NAME))
    else:
        debug("No repository given, skipping repo-level config")

    for p in config_paths:
        # Repo config overwrites home directory config
        if os.path.exists(p):
            config.read_one_config(p)

    return config
