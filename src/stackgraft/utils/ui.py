"""User interface utilities for stackgraft."""

import os
import sys
from typing import List, Optional

import asciitree  # type: ignore
from simple_term_menu import TerminalMenu  # type: ignore

from stackgraft.utils.config import get_config
from stackgraft.utils.logging import IS_TERMINAL, cout, die


def confirm(msg: str = "Proceed?"):
    """Ask for confirmation. Skips if skip_confirm is set."""
    if get_config().skip_confirm:
        return
    if not os.isatty(0):
        die("Standard input is not a terminal, use --force option to force action")
    print()
    while True:
        cout("{} [yes/no] ", msg, fg="yellow")
        sys.stderr.flush()
        r = input().strip().lower()
        if r == "yes" or r == "y":
            break
        if r == "no":
            die("Not confirmed")
        cout("Please answer yes or no\n", fg="red")


# Print upside down, to match the stack growing upwards from its trunk
_ASCII_TREE_BOX = {
    "UP_AND_RIGHT": "┌",
    "HORIZONTAL": "─",
    "VERTICAL": "│",
    "VERTICAL_AND_RIGHT": "├",
}
_ASCII_TREE_STYLE = asciitree.drawing.BoxStyle(gfx=_ASCII_TREE_BOX)
ASCII_TREE = asciitree.LeftAligned(draw=_ASCII_TREE_STYLE)


def menu_choose(entries: List[str], current: Optional[str] = None) -> str:
    """Let the user pick one entry from a terminal menu."""
    if not IS_TERMINAL:
        die("May only choose from menu when using a terminal")
    if not entries:
        die("Nothing to choose from")

    initial_index = entries.index(current) if current in entries else 0
    menu = TerminalMenu(entries, cursor_index=initial_index)
    idx = menu.show()
    if idx is None:
        die("Aborted")
    return entries[idx]
