"""Read-only git operations interface.

Architecture:
- Git: Abstract base class defining the interface
- RealGit: Production implementation using subprocess (branchtree.core.git.real)
- FakeGit: In-memory implementation for tests (tests/fakes/git.py)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from branchtree.core.graph import BranchKind


@dataclass(frozen=True)
class BranchInfo:
    """Descriptor for one branch as enumerated from the repository."""

    name: str
    kind: BranchKind
    oid: str
    upstream: str | None = None
    summary: str | None = None
    author: str | None = None
    committed_at: datetime | None = None


class Git(ABC):
    """Abstract interface for git operations.

    All implementations (real and fake) must implement this interface.
    Only read operations are exposed; nothing here mutates the repository.
    """

    @abstractmethod
    def get_repository_root(self, cwd: Path) -> Path | None:
        """Return the top-level directory of the repository containing cwd.

        Returns:
            Repository root, or None if cwd is not inside a git repository
        """
        ...

    @abstractmethod
    def get_current_branch(self, cwd: Path) -> str | None:
        """Get the currently checked-out branch (None on detached HEAD)."""
        ...

    @abstractmethod
    def list_branches(self, repo_root: Path, *, include_remote: bool) -> list[BranchInfo]:
        """Enumerate branches with their head commit information.

        Args:
            repo_root: Path to the repository root
            include_remote: Also enumerate remote-tracking branches

        Returns:
            Branch descriptors, local branches first
        """
        ...
