"""Symbol vocabulary and styling for rendered branch trees.

The renderer decides *what* a line contains; this module decides how each
piece looks. Colour is applied with click.style and is switched off wholesale
by constructing the style with color=False, so plain and coloured output share
one rendering path.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

import click
from rich.cells import cell_len

# Prefix segments carried down to children
VERTICAL_PREFIX = "│   "
BLANK_PREFIX = "    "


class LineRole(Enum):
    """Visual role of a tree line, used to pick its connector."""

    PLAIN = "plain"
    CIRCULAR = "circular"
    DIAMOND_ANCESTOR = "diamond_ancestor"
    DIAMOND_MERGE = "diamond_merge"
    DIAMOND_PATH = "diamond_path"
    REFERENCE = "reference"


# (middle sibling, last sibling)
_CONNECTORS: dict[LineRole, tuple[str, str]] = {
    LineRole.PLAIN: ("├── ", "└── "),
    LineRole.CIRCULAR: ("├🔄─ ", "└🔄─ "),
    LineRole.DIAMOND_ANCESTOR: ("├◇─ ", "└◇─ "),
    LineRole.DIAMOND_MERGE: ("├◅─ ", "└◅─ "),
    LineRole.DIAMOND_PATH: ("├◈─ ", "└◈─ "),
    LineRole.REFERENCE: ("├→─ ", "└→─ "),
}


def connector(role: LineRole, *, is_last: bool) -> str:
    middle, last = _CONNECTORS[role]
    return last if is_last else middle


def child_prefix(prefix: str, *, is_last: bool) -> str:
    """Prefix for the children of a line drawn with `prefix`."""
    return prefix + (BLANK_PREFIX if is_last else VERTICAL_PREFIX)


def display_width(text: str) -> int:
    """Terminal cells taken by `text`, ignoring ANSI escape sequences.

    Wide characters such as the cycle emoji take two cells.
    """
    return cell_len(click.unstyle(text))


@dataclass(frozen=True)
class TreeStyle:
    """Styling for the individual pieces of a tree line."""

    color: bool

    def _style(self, text: str, **styles: Any) -> str:
        if not self.color:
            return text
        return click.style(text, **styles)

    def branch_name(self, name: str, *, is_current: bool, is_match: bool) -> str:
        if is_current:
            return self._style(name, fg="green", bold=True) + " (current)"
        if is_match:
            return self._style(name, fg="bright_white", bold=True, underline=True)
        return name

    def reference(self, name: str) -> str:
        return self._style(name, dim=True) + " " + self._style("(see above)", dim=True, italic=True)

    def circular_tag(self) -> str:
        return self._style(" [CIRCULAR]", fg="red", bold=True)

    def depth_tag(self, depth: int) -> str:
        return " [depth:" + self._style(str(depth), dim=True) + "]"

    def children_tag(self, count: int) -> str:
        return " [children:" + self._style(str(count), fg="blue") + "]"

    def refs_tag(self, count: int) -> str:
        return " [refs:" + self._style(str(count), fg="magenta") + "]"

    def orphan_tag(self) -> str:
        return self._style(" [orphan]", dim=True)

    def issue_badge(self, issue_key: str) -> str:
        return "[" + self._style(issue_key, fg="cyan") + "]"

    def pr_badge(self, pr_number: int) -> str:
        return "[PR#" + self._style(str(pr_number), fg="yellow") + "]"

    def also_badge(self, parents: list[str]) -> str:
        return "[also: " + self._style(", ".join(parents), dim=True) + "]"

    def highlight_count(self, value: int) -> str:
        return self._style(str(value), fg="yellow")

    def page_number(self, value: int) -> str:
        return self._style(str(value), fg="cyan")
