"""Production Git implementation using subprocess."""

import subprocess
from datetime import datetime
from pathlib import Path

from branchtree.core.git.abc import BranchInfo, Git
from branchtree.core.graph import BranchKind
from branchtree.core.subprocess import run_subprocess_with_context

# Fields are separated by NUL so subjects containing any printable character survive
FOR_EACH_REF_FORMAT = "%00".join(
    [
        "%(refname)",
        "%(objectname)",
        "%(upstream:short)",
        "%(subject)",
        "%(authorname)",
        "%(committerdate:iso-strict)",
    ]
)


def parse_for_each_ref_output(output: str) -> list[BranchInfo]:
    """Parse `git for-each-ref` output produced with FOR_EACH_REF_FORMAT.

    Symbolic remote HEAD refs (refs/remotes/<remote>/HEAD) are skipped.
    """
    branches: list[BranchInfo] = []
    seen: set[str] = set()

    for line in output.splitlines():
        if not line.strip():
            continue
        parts = line.split("\x00")
        if len(parts) < 6:
            continue
        refname, oid, upstream, subject, author, committed = parts[:6]

        if refname.startswith("refs/heads/"):
            name = refname.removeprefix("refs/heads/")
            kind = BranchKind.LOCAL
        elif refname.startswith("refs/remotes/"):
            name = refname.removeprefix("refs/remotes/")
            if name.endswith("/HEAD"):
                continue
            kind = BranchKind.REMOTE
        else:
            continue

        if name in seen:
            continue
        seen.add(name)

        branches.append(
            BranchInfo(
                name=name,
                kind=kind,
                oid=oid,
                upstream=upstream or None,
                summary=subject or None,
                author=author or None,
                committed_at=_parse_timestamp(committed),
            )
        )

    return branches


def _parse_timestamp(value: str) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


class RealGit(Git):
    """Production implementation using subprocess.

    All git operations execute actual git commands via subprocess.
    """

    def get_repository_root(self, cwd: Path) -> Path | None:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None
        return Path(result.stdout.strip())

    def get_current_branch(self, cwd: Path) -> str | None:
        result = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None

        branch = result.stdout.strip()
        if branch == "HEAD":
            return None

        return branch

    def list_branches(self, repo_root: Path, *, include_remote: bool) -> list[BranchInfo]:
        refs = ["refs/heads"]
        if include_remote:
            refs.append("refs/remotes")

        result = run_subprocess_with_context(
            ["git", "for-each-ref", f"--format={FOR_EACH_REF_FORMAT}", *refs],
            operation_context="list branches",
            cwd=repo_root,
        )
        return parse_for_each_ref_output(result.stdout)
