"""Read-only git gateway."""

from branchtree.core.git.abc import BranchInfo, Git

__all__ = ["BranchInfo", "Git"]
