"""Application context with dependency injection."""

from dataclasses import dataclass
from pathlib import Path

import click

from branchtree.cli.output import user_output
from branchtree.core.git.abc import Git
from branchtree.core.git.real import RealGit
from branchtree.core.global_config import (
    FilesystemGlobalConfigStore,
    GlobalConfig,
    GlobalConfigStore,
)
from branchtree.core.repo_state import FilesystemRepoStateStore, RepoStateStore


@dataclass(frozen=True)
class BranchtreeContext:
    """Immutable context holding all dependencies for branchtree operations.

    Created at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime.
    """

    git: Git
    repo_state_store: RepoStateStore
    global_config: GlobalConfig
    cwd: Path  # Current working directory at CLI invocation

    @staticmethod
    def for_test(
        git: Git | None = None,
        repo_state_store: RepoStateStore | None = None,
        global_config: GlobalConfig | None = None,
        cwd: Path | None = None,
    ) -> "BranchtreeContext":
        """Create test context with optional pre-configured fakes.

        Args:
            git: Optional Git implementation. If None, creates empty FakeGit.
            repo_state_store: Optional RepoStateStore. If None, creates an empty
                FakeRepoStateStore.
            global_config: Optional GlobalConfig. If None, uses defaults.
            cwd: Optional current working directory. If None, uses Path("/test/repo").

        Returns:
            BranchtreeContext configured with provided values and test defaults

        Example:
            >>> git = FakeGit(repo_roots={Path("/repo"): Path("/repo")})
            >>> ctx = BranchtreeContext.for_test(git=git, cwd=Path("/repo"))
        """
        from tests.fakes.git import FakeGit
        from tests.fakes.repo_state import FakeRepoStateStore

        if git is None:
            git = FakeGit()

        if repo_state_store is None:
            repo_state_store = FakeRepoStateStore()

        if global_config is None:
            global_config = GlobalConfig()

        if cwd is None:
            cwd = Path("/test/repo")

        return BranchtreeContext(
            git=git,
            repo_state_store=repo_state_store,
            global_config=global_config,
            cwd=cwd,
        )


def safe_cwd() -> tuple[Path | None, str | None]:
    """Get current working directory, detecting if it no longer exists.

    Returns:
        Tuple of (Path, None) if successful, or (None, error_message) if cwd is invalid
    """
    try:
        return Path.cwd(), None
    except FileNotFoundError:
        return None, "Current working directory no longer exists"


def create_context(config_store: GlobalConfigStore | None = None) -> BranchtreeContext:
    """Create production context with real implementations.

    Called at CLI entry point to create the context for the entire
    command execution.

    Args:
        config_store: Source of the global config (defaults to the filesystem)

    Returns:
        BranchtreeContext with real implementations
    """
    cwd, error_msg = safe_cwd()
    if cwd is None:
        user_output(click.style("Error: ", fg="red") + str(error_msg))
        user_output("\nThe directory you're running from has been deleted.")
        user_output("Please change to a valid directory and try again.")
        raise SystemExit(1)

    if config_store is None:
        config_store = FilesystemGlobalConfigStore()

    try:
        global_config = config_store.load()
    except ValueError as e:
        user_output(click.style("Error: ", fg="red") + str(e))
        raise SystemExit(1) from e

    return BranchtreeContext(
        git=RealGit(),
        repo_state_store=FilesystemRepoStateStore(),
        global_config=global_config,
        cwd=cwd,
    )
