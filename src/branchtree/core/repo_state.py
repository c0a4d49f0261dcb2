"""Repository-local dependency state.

The dependency table is user-declared and lives in
<repo_root>/.branchtree/state.json. It records which branches depend on
which, which branches are roots (one of them the default), and the issue / PR
associated with each branch.

This module only reads the state. Editing dependencies is done by other tools.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

STATE_DIR_NAME = ".branchtree"
STATE_FILE_NAME = "state.json"


@dataclass(frozen=True)
class BranchDependency:
    """A declared dependency: `child` is stacked on top of `parent`."""

    child: str
    parent: str
    created_at: str | None = None


@dataclass(frozen=True)
class RootBranch:
    branch: str
    is_default: bool = False


@dataclass(frozen=True)
class BranchAssociation:
    """Issue tracker key and/or pull request linked to a branch."""

    branch: str
    issue_key: str | None = None
    pr_number: int | None = None
    created_at: str | None = None  # Display only


@dataclass(frozen=True)
class RepoState:
    """Immutable snapshot of the persisted dependency table."""

    dependencies: list[BranchDependency] = field(default_factory=list)
    root_branches: list[RootBranch] = field(default_factory=list)
    associations: dict[str, BranchAssociation] = field(default_factory=dict)

    @staticmethod
    def empty() -> "RepoState":
        return RepoState()

    def default_root(self) -> str | None:
        """Branch explicitly flagged as the default root, if any."""
        for root in self.root_branches:
            if root.is_default:
                return root.branch
        return None

    def root_branch_names(self) -> list[str]:
        return [root.branch for root in self.root_branches]

    def is_root(self, branch: str) -> bool:
        return any(root.branch == branch for root in self.root_branches)

    def dependency_parents(self, child: str) -> list[str]:
        """Declared parents of a branch, in declaration order."""
        return [dep.parent for dep in self.dependencies if dep.child == child]

    def dependency_children(self, parent: str) -> list[str]:
        return [dep.child for dep in self.dependencies if dep.parent == parent]

    def association_for(self, branch: str) -> BranchAssociation | None:
        return self.associations.get(branch)


def parse_repo_state(data: Any, *, source: str) -> RepoState:
    """Convert decoded state.json content into a RepoState.

    Args:
        data: Decoded JSON document
        source: Description of where the data came from (for error messages)

    Returns:
        RepoState with dependencies, roots and associations

    Raises:
        ValueError: If the document does not have the expected shape
    """
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {source}")

    dependencies: list[BranchDependency] = []
    for entry in _list_field(data, "dependencies", source):
        child = entry.get("child")
        parent = entry.get("parent")
        if not isinstance(child, str) or not isinstance(parent, str):
            raise ValueError(f"Dependency entries need 'child' and 'parent' strings in {source}")
        dependencies.append(
            BranchDependency(child=child, parent=parent, created_at=entry.get("created_at"))
        )

    root_branches: list[RootBranch] = []
    for entry in _list_field(data, "root_branches", source):
        branch = entry.get("branch")
        if not isinstance(branch, str):
            raise ValueError(f"Root branch entries need a 'branch' string in {source}")
        root_branches.append(RootBranch(branch=branch, is_default=bool(entry.get("is_default"))))

    raw_branches = data.get("branches", {})
    if not isinstance(raw_branches, dict):
        raise ValueError(f"'branches' must be an object in {source}")

    associations: dict[str, BranchAssociation] = {}
    for branch, entry in raw_branches.items():
        if not isinstance(entry, dict):
            raise ValueError(f"Branch metadata for '{branch}' must be an object in {source}")
        issue_key = entry.get("jira_issue")
        if issue_key is not None and not isinstance(issue_key, str):
            raise ValueError(f"'jira_issue' for '{branch}' must be a string in {source}")
        pr_number = entry.get("github_pr")
        # bool is an int subclass; reject it explicitly
        if pr_number is not None and (
            isinstance(pr_number, bool) or not isinstance(pr_number, int)
        ):
            raise ValueError(f"'github_pr' for '{branch}' must be an integer in {source}")
        associations[branch] = BranchAssociation(
            branch=branch,
            issue_key=issue_key or None,
            pr_number=pr_number,
            created_at=entry.get("created_at"),
        )

    return RepoState(
        dependencies=dependencies,
        root_branches=root_branches,
        associations=associations,
    )


def _list_field(data: dict[str, Any], key: str, source: str) -> list[dict[str, Any]]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise ValueError(f"'{key}' must be a list of objects in {source}")
    return value


class RepoStateStore(ABC):
    """Abstract interface for loading the repository dependency state.

    Provides dependency injection so tests can supply in-memory state without
    touching the filesystem.
    """

    @abstractmethod
    def load(self, repo_root: Path) -> RepoState:
        """Load the state for a repository.

        Returns:
            RepoState (empty when nothing has been declared yet)

        Raises:
            ValueError: If the state file exists but is malformed
        """
        ...

    @abstractmethod
    def path(self, repo_root: Path) -> Path:
        """Location of the state file for a repository."""
        ...


class FilesystemRepoStateStore(RepoStateStore):
    """Production implementation reading <repo_root>/.branchtree/state.json."""

    def path(self, repo_root: Path) -> Path:
        return repo_root / STATE_DIR_NAME / STATE_FILE_NAME

    def load(self, repo_root: Path) -> RepoState:
        state_path = self.path(repo_root)

        if not state_path.exists():
            logger.debug("No state file at %s, using empty state", state_path)
            return RepoState.empty()

        try:
            data = json.loads(state_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse state file {state_path}: {e}") from e

        return parse_repo_state(data, source=str(state_path))
